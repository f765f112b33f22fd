"""Build configuration for svg-asset-build.

Settings come from four layers, later ones winning: dataclass defaults, an optional
JSON config file, the process environment, and make-style `NAME=value` arguments on
the command line. Keys in the last two layers use the upper-case names below.

Unlike make, where an assignment such as `STATIC=./static` in the Makefile beats an
exported `STATIC` unless `make -e` is used, environment variables here always override
the defaults and the config file. Unset or empty variables are ignored.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Final, Mapping

RASTERIZERS: Final[tuple[str, ...]] = ("inkscape", "resvg")

# Upper-case setting name -> dataclass field.
ENV_KEYS: Final[dict[str, str]] = {
    "STATIC": "static_dir",
    "SOURCE": "source_dir",
    "MENU_WIDTH": "menu_width",
    "BUILDING_WIDTH": "building_width",
    "RASTERIZER": "rasterizer",
    "RASTERIZER_PATH": "rasterizer_path",
    "CONVERSION_TIMEOUT": "conversion_timeout_s",
    "LOG_FILE": "log_file",
}

_INT_FIELDS: Final[frozenset[str]] = frozenset({"menu_width", "building_width"})
_FLOAT_FIELDS: Final[frozenset[str]] = frozenset({"conversion_timeout_s"})


@dataclass
class BuildConfig:
    """Rebuild settings.

    Notes:
    - Widths are target PNG widths in pixels; the height follows the SVG aspect ratio.
    - `rasterizer_path` empty means "look the rasterizer up on PATH".
    - `conversion_timeout_s` of 0 lets a converter run for as long as it needs.
    """

    static_dir: str = "./static"
    source_dir: str = "./art"

    menu_width: int = 400
    building_width: int = 200

    rasterizer: str = "inkscape"
    rasterizer_path: str = ""
    conversion_timeout_s: float = 0.0

    log_file: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "BuildConfig":
        cfg = cls()
        for k, v in raw.items():
            if hasattr(cfg, k):
                setattr(cfg, k, _coerce(k, v))
        return cfg

    @classmethod
    def load(cls, path: Path) -> "BuildConfig":
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid JSON in config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"config file {path} must contain a JSON object")
        return cls.from_dict(data)

    def with_overrides(self, overrides: Mapping[str, str]) -> "BuildConfig":
        """Return a copy with upper-case `NAME=value` settings applied."""
        data = self.to_dict()
        for key, value in overrides.items():
            name = ENV_KEYS.get(key.upper())
            if name is None:
                raise ValueError(f"unknown setting: {key}")
            data[name] = _coerce(name, value, key=key)
        return BuildConfig(**data)

    def with_env(self, environ: Mapping[str, str] | None = None) -> "BuildConfig":
        env = os.environ if environ is None else environ
        present = {k: env[k] for k in ENV_KEYS if env.get(k, "") != ""}
        return self.with_overrides(present)

    def validate(self) -> None:
        for name in ("menu_width", "building_width"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ValueError(f"{name} must be a positive number of pixels, got {value}")
        for name in ("static_dir", "source_dir"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ValueError(f"{name} must be a string, got {value!r}")
            if not value.strip():
                raise ValueError(f"{name} must not be empty")
        if self.rasterizer not in RASTERIZERS:
            raise ValueError(
                f"rasterizer must be one of {', '.join(RASTERIZERS)}, got {self.rasterizer!r}"
            )
        timeout = self.conversion_timeout_s
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise ValueError(f"conversion_timeout_s must be a number, got {timeout!r}")
        if timeout < 0:
            raise ValueError("conversion_timeout_s must be >= 0")


def _coerce(name: str, value: Any, *, key: str | None = None) -> Any:
    # Strings from the environment or the command line need numeric parsing; values
    # from a JSON file must already carry the field's type.
    label = key or name
    if name in _INT_FIELDS:
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError as e:
                raise ValueError(f"{label} must be an integer, got {value!r}") from e
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{label} must be an integer, got {value!r}")
        return value
    if name in _FLOAT_FIELDS:
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError as e:
                raise ValueError(f"{label} must be a number, got {value!r}") from e
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{label} must be a number, got {value!r}")
        return float(value)
    if not isinstance(value, str):
        raise ValueError(f"{label} must be a string, got {value!r}")
    return value


def resolve_config(
    *,
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, str] | None = None,
) -> BuildConfig:
    """Layer defaults, config file, environment and overrides, then validate."""
    if config_path is not None and not config_path.is_file():
        raise ValueError(f"config file not found: {config_path}")
    cfg = BuildConfig.load(config_path) if config_path is not None else BuildConfig()
    cfg = cfg.with_env(environ)
    if overrides:
        cfg = cfg.with_overrides(overrides)
    cfg.validate()
    return cfg
