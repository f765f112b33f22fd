"""Asset rebuild orchestration.

Each task is checked, converted and written on its own; tasks share no state. By
default the run stops at the first failure and reports the remaining tasks as not
attempted. With `keep_going` every task is attempted and failures are collected.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum

from svg_asset_build.build.tasks import ConversionTask
from svg_asset_build.convert.renderer import Renderer
from svg_asset_build.convert.svg_detect import read_svg_source
from svg_asset_build.convert.svg_size import expected_height_px
from svg_asset_build.export.saver import atomic_write_bytes, png_size, read_png_size


class Outcome(Enum):
    BUILT = "built"
    SKIPPED = "skipped"
    PLANNED = "planned"


@dataclass(frozen=True)
class TaskFailure:
    task: ConversionTask
    message: str


@dataclass
class BuildReport:
    built: list[ConversionTask] = field(default_factory=list)
    skipped: list[ConversionTask] = field(default_factory=list)
    planned: list[ConversionTask] = field(default_factory=list)
    failed: list[TaskFailure] = field(default_factory=list)
    not_attempted: list[ConversionTask] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def record(self, task: ConversionTask, outcome: Outcome) -> None:
        if outcome is Outcome.BUILT:
            self.built.append(task)
        elif outcome is Outcome.SKIPPED:
            self.skipped.append(task)
        else:
            self.planned.append(task)


def is_up_to_date(task: ConversionTask) -> bool:
    """Destination exists, is not older than its source and has the target width."""
    dest = task.destination_path
    if not dest.is_file():
        return False
    if dest.stat().st_mtime < task.source_path.stat().st_mtime:
        return False
    size = read_png_size(dest)
    return size is not None and size[0] == task.width_px


class AssetBuilder:
    """Runs conversion tasks against a renderer."""

    def __init__(
        self,
        renderer: Renderer,
        *,
        keep_going: bool = False,
        force: bool = False,
        dry_run: bool = False,
        jobs: int = 1,
        timeout_s: float = 0.0,
    ) -> None:
        if jobs < 1:
            raise ValueError("jobs must be >= 1")
        self._log = logging.getLogger("svg_asset_build.build")
        self._renderer = renderer
        self._keep_going = bool(keep_going)
        self._force = bool(force)
        self._dry_run = bool(dry_run)
        self._jobs = int(jobs)
        self._timeout_s = float(timeout_s)

    def build_one(self, task: ConversionTask) -> Outcome:
        """Bring one destination up to date. Raises on any failure."""
        svg_text = read_svg_source(task.source_path)

        if not self._force and is_up_to_date(task):
            self._log.info("up_to_date task=%s dest=%s", task.name, task.destination_path)
            return Outcome.SKIPPED

        if self._dry_run:
            self._log.info(
                "would_convert task=%s src=%s dest=%s w=%d",
                task.name,
                task.source_path,
                task.destination_path,
                task.width_px,
            )
            return Outcome.PLANNED

        t0 = time.perf_counter()
        png = self._renderer.render_svg_to_png_bytes(
            task.source_path,
            width_px=task.width_px,
            timeout_s=self._timeout_s or None,
        )
        w, h = png_size(png)
        if w != task.width_px:
            raise RuntimeError(
                f"{task.name}: converter produced width {w}px, expected {task.width_px}px"
            )
        expected_h = expected_height_px(svg_text, width_px=task.width_px)
        if abs(h - expected_h) > 1:
            self._log.warning(
                "aspect_mismatch task=%s h=%d expected_h=%d", task.name, h, expected_h
            )

        atomic_write_bytes(task.destination_path, png)
        dt_ms = (time.perf_counter() - t0) * 1000.0
        self._log.info(
            "converted task=%s ms=%.1f w=%d h=%d dest=%s",
            task.name,
            dt_ms,
            w,
            h,
            task.destination_path,
        )
        return Outcome.BUILT

    def _attempt(self, task: ConversionTask) -> Outcome | TaskFailure:
        try:
            return self.build_one(task)
        except (OSError, ValueError, RuntimeError) as e:
            self._log.error("failed task=%s error=%s", task.name, e)
            return TaskFailure(task=task, message=str(e))

    def run(self, tasks: list[ConversionTask]) -> BuildReport:
        if self._jobs > 1 and len(tasks) > 1:
            report = self._run_parallel(tasks)
        else:
            report = self._run_sequential(tasks)
        self._log.info(
            "done built=%d skipped=%d planned=%d failed=%d not_attempted=%d",
            len(report.built),
            len(report.skipped),
            len(report.planned),
            len(report.failed),
            len(report.not_attempted),
        )
        return report

    def _run_sequential(self, tasks: list[ConversionTask]) -> BuildReport:
        report = BuildReport()
        for idx, task in enumerate(tasks):
            result = self._attempt(task)
            if isinstance(result, TaskFailure):
                report.failed.append(result)
                if not self._keep_going:
                    report.not_attempted.extend(tasks[idx + 1 :])
                    break
            else:
                report.record(task, result)
        return report

    def _run_parallel(self, tasks: list[ConversionTask]) -> BuildReport:
        report = BuildReport()
        stopped = False
        with ThreadPoolExecutor(max_workers=self._jobs, thread_name_prefix="svg_asset_build") as pool:
            futures: dict[Future[Outcome | TaskFailure], ConversionTask] = {
                pool.submit(self._attempt, task): task for task in tasks
            }
            pending = set(futures)
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for fut in done:
                    if fut.cancelled():
                        continue
                    result = fut.result()
                    if isinstance(result, TaskFailure):
                        report.failed.append(result)
                        stopped = stopped or not self._keep_going
                    else:
                        report.record(futures[fut], result)
                if stopped:
                    for fut in pending:
                        fut.cancel()

        if stopped:
            finished = set(report.built + report.skipped + report.planned)
            finished.update(f.task for f in report.failed)
            report.not_attempted = [t for t in tasks if t not in finished]

        order = {task: i for i, task in enumerate(tasks)}
        for bucket in (report.built, report.skipped, report.planned):
            bucket.sort(key=order.__getitem__)
        report.failed.sort(key=lambda f: order[f.task])
        return report
