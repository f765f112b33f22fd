from pathlib import Path

import pytest

from svg_asset_build.build.tasks import build_tasks, select_tasks
from svg_asset_build.config import BuildConfig


def test_fixed_table_resolves_paths_and_widths() -> None:
    tasks = build_tasks(BuildConfig())
    assert [t.name for t in tasks] == [
        "gui/letters",
        "gui/duck_shapes",
        "buildings/nest",
        "buildings/nests",
        "ducks/sitting_duck",
    ]
    letters = tasks[0]
    assert letters.source_path == Path("art/gui/letters.svg")
    assert letters.destination_path == Path("static/gui/letters.png")
    assert [t.width_px for t in tasks] == [400, 400, 200, 200, 200]


def test_width_override_applies_to_building_assets() -> None:
    tasks = build_tasks(BuildConfig(building_width=50))
    widths = {t.name: t.width_px for t in tasks}
    assert widths["buildings/nest"] == 50
    assert widths["ducks/sitting_duck"] == 50
    assert widths["gui/letters"] == 400


def test_destinations_are_unique() -> None:
    tasks = build_tasks(BuildConfig())
    assert len({t.destination_path for t in tasks}) == len(tasks)


def test_select_by_name_suffix_and_destination() -> None:
    tasks = build_tasks(BuildConfig())
    assert [t.name for t in select_tasks(tasks, ["buildings/nests"])] == ["buildings/nests"]
    assert [t.name for t in select_tasks(tasks, ["gui/letters.png"])] == ["gui/letters"]
    picked = select_tasks(tasks, ["./static/ducks/sitting_duck.png", "gui/letters"])
    # Table order, not argument order.
    assert [t.name for t in picked] == ["gui/letters", "ducks/sitting_duck"]


def test_select_all_and_empty() -> None:
    tasks = build_tasks(BuildConfig())
    assert select_tasks(tasks, []) == tasks
    assert select_tasks(tasks, ["images"]) == tasks
    assert select_tasks(tasks, ["gui/letters", "gui/letters"]) == tasks[:1]


def test_select_unknown_target() -> None:
    with pytest.raises(KeyError, match="no rule to make target"):
        select_tasks(build_tasks(BuildConfig()), ["gui/missing"])
