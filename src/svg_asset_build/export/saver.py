"""Writing rendered PNGs into the static tree."""

from __future__ import annotations

import os
import time
from io import BytesIO
from pathlib import Path

from PIL import Image

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_name = f".{path.name}.tmp.{os.getpid()}.{time.time_ns()}"
    tmp_path = path.parent / tmp_name
    try:
        tmp_path.write_bytes(data)
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)


def png_size(png_bytes: bytes) -> tuple[int, int]:
    """Return (width, height) of PNG bytes.

    Raises ValueError when the data is not a PNG image.
    """
    if png_bytes[:8] != PNG_SIGNATURE:
        raise ValueError("data is not a PNG image")
    with Image.open(BytesIO(png_bytes)) as im:
        return int(im.width), int(im.height)


def read_png_size(path: Path) -> tuple[int, int] | None:
    """Dimensions of an existing PNG file, or None if it is missing or unreadable."""
    try:
        with Image.open(path) as im:
            if im.format != "PNG":
                return None
            return int(im.width), int(im.height)
    except (OSError, ValueError):
        return None
