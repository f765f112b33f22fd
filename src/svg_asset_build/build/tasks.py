"""The fixed list of SVG -> PNG assets and target selection."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Final, Iterable

from svg_asset_build.config import BuildConfig


@dataclass(frozen=True)
class ConversionTask:
    """One (source, destination, width) unit of work."""

    name: str
    source_path: Path
    destination_path: Path
    width_px: int


# Relative asset path -> config field holding its width.
ASSET_TABLE: Final[tuple[tuple[str, str], ...]] = (
    ("gui/letters", "menu_width"),
    ("gui/duck_shapes", "menu_width"),
    ("buildings/nest", "building_width"),
    ("buildings/nests", "building_width"),
    ("ducks/sitting_duck", "building_width"),
)

ALL_TARGETS: Final[frozenset[str]] = frozenset({"all", "images"})


def build_tasks(config: BuildConfig) -> list[ConversionTask]:
    source_root = Path(config.source_dir)
    static_root = Path(config.static_dir)
    return [
        ConversionTask(
            name=rel,
            source_path=source_root / f"{rel}.svg",
            destination_path=static_root / f"{rel}.png",
            width_px=int(getattr(config, width_field)),
        )
        for rel, width_field in ASSET_TABLE
    ]


def _target_keys(task: ConversionTask) -> set[str]:
    # Path() drops a leading "./", so "./static/x.png" and "static/x.png" compare equal.
    dest = task.destination_path
    return {
        task.name,
        f"{task.name}.png",
        f"{task.name}.svg",
        dest.as_posix(),
        dest.resolve().as_posix(),
    }


def select_tasks(tasks: list[ConversionTask], targets: Iterable[str]) -> list[ConversionTask]:
    """Pick the tasks named by `targets`, keeping table order.

    A target may be the relative asset name (`gui/letters`), that name with a `.png`
    or `.svg` suffix, or the destination path. `all` and `images` select every task.
    """
    wanted = [t.strip() for t in targets if t.strip()]
    if not wanted or any(t in ALL_TARGETS for t in wanted):
        return list(tasks)

    keys = [(task, _target_keys(task)) for task in tasks]
    selected: set[ConversionTask] = set()
    for target in wanted:
        candidates = {target, Path(target).as_posix(), Path(target).resolve().as_posix()}
        matches = [task for task, k in keys if candidates & k]
        if not matches:
            raise KeyError(f"no rule to make target {target!r}")
        selected.update(matches)
    return [task for task in tasks if task in selected]
