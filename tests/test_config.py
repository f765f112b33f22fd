import json
from pathlib import Path

import pytest

from svg_asset_build.config import BuildConfig, resolve_config


def test_defaults() -> None:
    cfg = resolve_config(environ={})
    assert cfg.static_dir == "./static"
    assert cfg.source_dir == "./art"
    assert cfg.menu_width == 400
    assert cfg.building_width == 200
    assert cfg.rasterizer == "inkscape"


def test_env_overrides_parse_integers() -> None:
    cfg = resolve_config(environ={"BUILDING_WIDTH": "50", "STATIC": "/tmp/out", "PATH": "/bin"})
    assert cfg.building_width == 50
    assert cfg.static_dir == "/tmp/out"
    assert cfg.menu_width == 400


def test_command_line_overrides_win_over_env() -> None:
    cfg = resolve_config(environ={"MENU_WIDTH": "300"}, overrides={"MENU_WIDTH": "120"})
    assert cfg.menu_width == 120


def test_config_file_layer(tmp_path: Path) -> None:
    path = tmp_path / "assets.json"
    path.write_text(json.dumps({"menu_width": 640, "rasterizer": "resvg", "bogus": 1}), encoding="utf-8")
    cfg = resolve_config(config_path=path, environ={"MENU_WIDTH": "800"})
    assert cfg.rasterizer == "resvg"
    assert cfg.menu_width == 800


@pytest.mark.parametrize("value", ["0", "-5"])
def test_non_positive_width_rejected(value: str) -> None:
    with pytest.raises(ValueError, match="building_width"):
        resolve_config(environ={}, overrides={"BUILDING_WIDTH": value})


def test_non_integer_width_rejected() -> None:
    with pytest.raises(ValueError, match="MENU_WIDTH must be an integer"):
        resolve_config(environ={"MENU_WIDTH": "wide"})


def test_bool_width_rejected() -> None:
    cfg = BuildConfig(menu_width=True)
    with pytest.raises(ValueError):
        cfg.validate()


def test_unknown_setting_and_rasterizer_rejected() -> None:
    with pytest.raises(ValueError, match="unknown setting"):
        BuildConfig().with_overrides({"COLOR": "red"})
    with pytest.raises(ValueError, match="rasterizer"):
        resolve_config(environ={"RASTERIZER": "gimp"})


def test_missing_or_malformed_config_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="not found"):
        resolve_config(config_path=tmp_path / "nope.json", environ={})
    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError, match="JSON object"):
        BuildConfig.load(bad)
    assert BuildConfig.load(tmp_path / "nope.json") == BuildConfig()


@pytest.mark.parametrize(
    "raw,key",
    [
        ({"static_dir": 5}, "static_dir"),
        ({"source_dir": ["art"]}, "source_dir"),
        ({"conversion_timeout_s": None}, "conversion_timeout_s"),
        ({"conversion_timeout_s": True}, "conversion_timeout_s"),
        ({"menu_width": 400.5}, "menu_width"),
        ({"rasterizer": None}, "rasterizer"),
    ],
)
def test_badly_typed_config_file_values_rejected(tmp_path: Path, raw: dict, key: str) -> None:
    path = tmp_path / "assets.json"
    path.write_text(json.dumps(raw), encoding="utf-8")
    with pytest.raises(ValueError, match=key):
        resolve_config(config_path=path, environ={})


def test_config_file_numbers_and_strings_accepted(tmp_path: Path) -> None:
    path = tmp_path / "assets.json"
    path.write_text(json.dumps({"conversion_timeout_s": 5, "building_width": "75"}), encoding="utf-8")
    cfg = resolve_config(config_path=path, environ={})
    assert cfg.conversion_timeout_s == 5.0
    assert cfg.building_width == 75


def test_direct_construction_validated() -> None:
    with pytest.raises(ValueError, match="conversion_timeout_s must be a number"):
        BuildConfig(conversion_timeout_s=None).validate()
    with pytest.raises(ValueError, match="static_dir must be a string"):
        BuildConfig(static_dir=5).validate()


def test_environment_beats_config_file_and_defaults(tmp_path: Path) -> None:
    path = tmp_path / "assets.json"
    path.write_text(json.dumps({"static_dir": "from_file"}), encoding="utf-8")
    assert resolve_config(config_path=path, environ={"STATIC": "from_env"}).static_dir == "from_env"
    assert resolve_config(config_path=path, environ={"STATIC": ""}).static_dir == "from_file"
