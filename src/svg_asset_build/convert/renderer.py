"""SVG -> PNG rasterization through an external CLI.

Rendering is delegated to Inkscape (the default) or resvg. Each backend writes into a
private temporary directory and hands back PNG bytes, so a failed run never touches
the destination file.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from threading import Lock
from typing import Protocol

from svg_asset_build.config import BuildConfig

_INKSCAPE_VERSION_RE = re.compile(r"Inkscape\s+(\d+)\.(\d+)", flags=re.IGNORECASE)


def find_rasterizer_exe(name: str, override: str = "") -> Path:
    if override:
        p = Path(override).expanduser()
        if p.exists():
            return p
        raise FileNotFoundError(f"RASTERIZER_PATH points to missing file: {p}")

    found = shutil.which(name)
    if found:
        return Path(found)
    raise FileNotFoundError(
        f"{name} not found on PATH. Install it or set RASTERIZER_PATH."
    )


class Renderer(Protocol):
    name: str

    def render_svg_to_png_bytes(
        self, source: Path, *, width_px: int, timeout_s: float | None = None
    ) -> bytes: ...


def _creationflags() -> int:
    flags = 0
    if sys.platform.startswith("win"):
        # No console window flashes per conversion.
        flags |= getattr(subprocess, "CREATE_NO_WINDOW", 0)
    return flags


class _CliRenderer:
    """Shared subprocess handling for CLI rasterizers."""

    name = "rasterizer"

    def __init__(self, exe_path: Path) -> None:
        self._log = logging.getLogger(f"svg_asset_build.{self.name}")
        self._exe = Path(exe_path)

    @property
    def exe_path(self) -> Path:
        return self._exe

    def build_args(self, source: Path, output: Path, *, width_px: int) -> list[str]:
        raise NotImplementedError

    def render_svg_to_png_bytes(
        self, source: Path, *, width_px: int, timeout_s: float | None = None
    ) -> bytes:
        with tempfile.TemporaryDirectory(prefix="svg_asset_build_") as td:
            out_png = Path(td) / "out.png"
            args = self.build_args(Path(source), out_png, width_px=int(width_px))
            self._log.debug("run args=%s", args)

            try:
                p = subprocess.run(
                    args,
                    capture_output=True,
                    timeout=timeout_s if timeout_s else None,
                    creationflags=_creationflags(),
                )
            except subprocess.TimeoutExpired as e:
                raise RuntimeError(
                    f"{self.name} timed out after {float(timeout_s or 0):.1f}s on {source}"
                ) from e
            except OSError as e:
                raise RuntimeError(f"failed to start {self.name} ({self._exe}): {e}") from e

            if p.returncode != 0 or not out_png.exists():
                stderr = (p.stderr or b"").decode("utf-8", errors="replace")
                stdout = (p.stdout or b"").decode("utf-8", errors="replace")
                raise RuntimeError(
                    f"{self.name} failed on {source} (code={p.returncode}): {stderr or stdout}".strip()
                )

            if out_png.stat().st_size <= 0:
                raise RuntimeError(f"{self.name} produced an empty PNG for {source}")

            return out_png.read_bytes()


class InkscapeRenderer(_CliRenderer):
    """Inkscape in headless export mode.

    Inkscape 1.0 replaced `--without-gui --export-png` with `--export-filename`; the
    installed version is probed once and the matching flags are used.
    """

    name = "inkscape"

    def __init__(self, exe_path: Path) -> None:
        super().__init__(exe_path)
        self._version_lock = Lock()
        self._version: tuple[int, int] | None = None

    def probe_version(self) -> tuple[int, int]:
        with self._version_lock:
            if self._version is not None:
                return self._version

            try:
                p = subprocess.run(
                    [str(self._exe), "--version"],
                    capture_output=True,
                    text=True,
                    timeout=10.0,
                    creationflags=_creationflags(),
                )
                text = (p.stdout or "") + "\n" + (p.stderr or "")
            except (OSError, subprocess.SubprocessError) as e:
                self._log.warning("version_probe_failed=%s", e)
                text = ""

            m = _INKSCAPE_VERSION_RE.search(text)
            # Unknown output: assume a current release.
            version = (int(m.group(1)), int(m.group(2))) if m else (1, 0)
            self._log.info("inkscape_version=%d.%d", *version)
            self._version = version
            return version

    def build_args(self, source: Path, output: Path, *, width_px: int) -> list[str]:
        if self.probe_version() < (1, 0):
            return [
                str(self._exe),
                "--without-gui",
                "--file",
                str(source),
                "--export-png",
                str(output),
                "--export-width",
                str(int(width_px)),
            ]
        return [
            str(self._exe),
            str(source),
            "--export-type=png",
            f"--export-filename={output}",
            f"--export-width={int(width_px)}",
        ]


class ResvgRenderer(_CliRenderer):
    """Thin wrapper around the `resvg` CLI; `--width` alone keeps the aspect ratio."""

    name = "resvg"

    def build_args(self, source: Path, output: Path, *, width_px: int) -> list[str]:
        return [str(self._exe), "--width", str(int(width_px)), str(source), str(output)]


_BACKENDS: dict[str, type[_CliRenderer]] = {
    InkscapeRenderer.name: InkscapeRenderer,
    ResvgRenderer.name: ResvgRenderer,
}


def make_renderer(config: BuildConfig) -> Renderer:
    """Locate the configured rasterizer and wrap it.

    Raises FileNotFoundError when the executable cannot be found.
    """
    try:
        backend = _BACKENDS[config.rasterizer]
    except KeyError:
        raise ValueError(f"unknown rasterizer: {config.rasterizer!r}") from None
    exe = find_rasterizer_exe(config.rasterizer, config.rasterizer_path)
    return backend(exe)
