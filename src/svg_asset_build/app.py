"""Command-line wiring: argument parsing, logging and the build run."""

from __future__ import annotations

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import Callable, Mapping, Sequence

from svg_asset_build.build.orchestrator import AssetBuilder, BuildReport
from svg_asset_build.build.tasks import ConversionTask, build_tasks, select_tasks
from svg_asset_build.config import BuildConfig, resolve_config
from svg_asset_build.convert.renderer import Renderer, make_renderer

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2

_OVERRIDE_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)=(.*)$")


def _setup_logging(*, verbose: bool, log_file: str) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        handlers=handlers,
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="svg-asset-build",
        description="Regenerate PNG assets from their SVG sources at fixed widths.",
        epilog=(
            "Settings such as STATIC=./static, SOURCE=./art, MENU_WIDTH=400 or "
            "BUILDING_WIDTH=200 may be given as NAME=VALUE arguments or environment variables."
        ),
    )
    p.add_argument(
        "items",
        nargs="*",
        metavar="TARGET|NAME=VALUE",
        help="asset to build (e.g. gui/letters or static/gui/letters.png), or a setting override",
    )
    p.add_argument("--config", type=Path, help="JSON file with build settings")
    p.add_argument(
        "-k", "--keep-going", action="store_true", help="continue with other assets after a failure"
    )
    p.add_argument(
        "-B", "--always-make", action="store_true", help="rebuild assets even when up to date"
    )
    p.add_argument(
        "-n", "--dry-run", action="store_true", help="show what would be converted, write nothing"
    )
    p.add_argument("-j", "--jobs", type=int, default=1, help="number of conversions to run at once")
    p.add_argument("--list", action="store_true", help="list selected assets and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    p.add_argument("--log-file", default=None, help="also write the log to this file")
    return p


def split_items(items: Sequence[str]) -> tuple[list[str], dict[str, str]]:
    """Separate positional targets from make-style NAME=VALUE overrides."""
    targets: list[str] = []
    overrides: dict[str, str] = {}
    for item in items:
        m = _OVERRIDE_RE.match(item)
        if m:
            overrides[m.group(1).upper()] = m.group(2)
        else:
            targets.append(item)
    return targets, overrides


def _format_task(task: ConversionTask) -> str:
    return f"{task.destination_path} <- {task.source_path} ({task.width_px} px)"


def _summarize(report: BuildReport) -> None:
    log = logging.getLogger("svg_asset_build")
    for failure in report.failed:
        log.error("FAILED %s: %s", failure.task.name, failure.message)
    for task in report.not_attempted:
        log.warning("not attempted: %s", task.name)


def run_build(
    argv: Sequence[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    renderer_factory: Callable[[BuildConfig], Renderer] = make_renderer,
) -> int:
    """Parse arguments, run the build and return the process exit code."""
    args = build_parser().parse_args(argv)
    targets, overrides = split_items(args.items)
    log = logging.getLogger("svg_asset_build")

    try:
        config = resolve_config(config_path=args.config, environ=environ, overrides=overrides)
    except ValueError as e:
        _setup_logging(verbose=args.verbose, log_file=args.log_file or "")
        log.error("invalid configuration: %s", e)
        return EXIT_USAGE

    _setup_logging(verbose=args.verbose, log_file=args.log_file or config.log_file)
    log.debug("config=%s", config.to_dict())

    if args.jobs < 1:
        log.error("invalid configuration: --jobs must be >= 1")
        return EXIT_USAGE

    try:
        tasks = select_tasks(build_tasks(config), targets)
    except KeyError as e:
        log.error("%s", e.args[0])
        return EXIT_USAGE

    if args.list:
        for task in tasks:
            print(_format_task(task))
        return EXIT_OK

    try:
        renderer: Renderer = renderer_factory(config)
    except FileNotFoundError as e:
        log.error("rasterizer unavailable: %s", e)
        return EXIT_FAILED

    log.info(
        "build_start tasks=%d rasterizer=%s source=%s static=%s",
        len(tasks),
        config.rasterizer,
        config.source_dir,
        config.static_dir,
    )
    builder = AssetBuilder(
        renderer,
        keep_going=args.keep_going,
        force=args.always_make,
        dry_run=args.dry_run,
        jobs=args.jobs,
        timeout_s=float(config.conversion_timeout_s),
    )
    report = builder.run(tasks)
    _summarize(report)
    return report.exit_code


def run_app(argv: Sequence[str] | None = None) -> None:
    raise SystemExit(run_build(sys.argv[1:] if argv is None else argv))
