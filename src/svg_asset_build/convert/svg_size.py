"""SVG size parsing and aspect-preserving output sizing."""

from __future__ import annotations

import re
from dataclasses import dataclass

_SVG_TAG_RE = re.compile(r"<svg\b[^>]*>", flags=re.IGNORECASE | re.DOTALL)


@dataclass(frozen=True)
class SvgCssSize:
    width_px: float
    height_px: float

    @property
    def aspect(self) -> float:
        return self.height_px / self.width_px


def _extract_attr(tag: str, name: str) -> str | None:
    m = re.search(rf'\b{name}\s*=\s*["\']([^"\']+)["\']', tag, flags=re.IGNORECASE)
    if not m:
        return None
    return m.group(1).strip()


_LENGTH_RE = re.compile(r"^\s*([0-9]+(?:\.[0-9]+)?)\s*([a-zA-Z%]*)\s*$")

_UNIT_TO_PX = {
    "px": 1.0,
    "in": 96.0,
    "pt": 96.0 / 72.0,
    "pc": 16.0,
    "mm": 96.0 / 25.4,
    "cm": 96.0 / 2.54,
}


def _length_to_css_px(value: str) -> float | None:
    m = _LENGTH_RE.match(value)
    if not m:
        return None
    unit = (m.group(2) or "px").lower()
    # %, em and friends need a viewport or font context.
    factor = _UNIT_TO_PX.get(unit)
    if factor is None:
        return None
    return float(m.group(1)) * factor


def _parse_viewbox(value: str) -> tuple[float, float] | None:
    parts = re.split(r"[,\s]+", value.strip())
    if len(parts) != 4:
        return None
    try:
        w = float(parts[2])
        h = float(parts[3])
    except ValueError:
        return None
    if w <= 0 or h <= 0:
        return None
    return w, h


def parse_svg_css_size(svg_text: str) -> SvgCssSize:
    """Parse a best-effort CSS pixel size for an SVG.

    Explicit `width`/`height` win; otherwise the viewBox size; otherwise the CSS
    default replaced-element size of 300x150.
    """
    tag_m = _SVG_TAG_RE.search(svg_text)
    if not tag_m:
        return SvgCssSize(width_px=300.0, height_px=150.0)
    tag = tag_m.group(0)

    width_raw = _extract_attr(tag, "width")
    height_raw = _extract_attr(tag, "height")
    viewbox_raw = _extract_attr(tag, "viewBox")

    w = _length_to_css_px(width_raw) if width_raw else None
    h = _length_to_css_px(height_raw) if height_raw else None

    if w is not None and h is not None and w > 0 and h > 0:
        return SvgCssSize(width_px=w, height_px=h)

    if viewbox_raw:
        vb = _parse_viewbox(viewbox_raw)
        if vb is not None:
            return SvgCssSize(width_px=vb[0], height_px=vb[1])

    return SvgCssSize(width_px=300.0, height_px=150.0)


def expected_height_px(svg_text: str, *, width_px: int) -> int:
    """Height a converter should produce when scaling the SVG to `width_px`."""
    css = parse_svg_css_size(svg_text)
    return max(1, int(round(int(width_px) * css.aspect)))
