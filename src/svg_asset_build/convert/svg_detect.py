"""Cheap checks that a source file holds SVG markup."""

from __future__ import annotations

import codecs
import re
from pathlib import Path

_SVG_OPEN_RE = re.compile(r"<svg\b", flags=re.IGNORECASE)
_SVG_CLOSE_RE = re.compile(r"</svg\s*>", flags=re.IGNORECASE)
# Self-closing root, e.g. `<svg xmlns="..." width="10" height="10"/>`.
_SVG_SELF_CLOSED_RE = re.compile(r"<svg\b[^>]*/\s*>", flags=re.IGNORECASE | re.DOTALL)


def looks_like_svg_text(text: str) -> bool:
    """Heuristic check for an SVG document.

    Requires an opening `<svg` tag and either a matching close tag or a self-closed root.
    """
    if not text:
        return False
    if _SVG_OPEN_RE.search(text) is None:
        return False
    if _SVG_CLOSE_RE.search(text) is None and _SVG_SELF_CLOSED_RE.search(text) is None:
        return False
    return True


_BOMS: tuple[tuple[bytes, str], ...] = (
    # UTF-32 first: its little-endian BOM starts with the UTF-16 one.
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


def decode_svg_bytes(data: bytes) -> str:
    """Decode SVG file bytes.

    A byte order mark selects UTF-8, UTF-16 or UTF-32. Without one the data is read as
    UTF-8, falling back to Latin-1 for legacy single-byte encodings.
    """
    for bom, encoding in _BOMS:
        if data.startswith(bom):
            try:
                return data.decode(encoding)
            except UnicodeDecodeError:
                break
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def read_svg_source(path: Path) -> str:
    """Read an SVG source file, raising if it is missing or not SVG.

    Raises:
    - FileNotFoundError when `path` does not exist or is not a file.
    - ValueError when the content does not look like SVG markup.
    """
    if not path.is_file():
        raise FileNotFoundError(f"source not found: {path}")
    text = decode_svg_bytes(path.read_bytes())
    if not looks_like_svg_text(text):
        raise ValueError(f"not an SVG document: {path}")
    return text
