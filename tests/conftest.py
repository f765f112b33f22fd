from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from svg_asset_build.build.tasks import ASSET_TABLE
from svg_asset_build.convert.svg_detect import decode_svg_bytes
from svg_asset_build.convert.svg_size import expected_height_px


def svg_markup(width: int = 100, height: int = 50) -> str:
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}">'
        f'<rect width="{width}" height="{height}" fill="red"/></svg>'
    )


def png_bytes(width: int, height: int) -> bytes:
    buf = BytesIO()
    Image.new("RGBA", (width, height), (255, 0, 0, 255)).save(buf, format="PNG")
    return buf.getvalue()


class FakeRenderer:
    """Stands in for a CLI rasterizer: scales the SVG size to the requested width."""

    name = "fake"

    def __init__(self, fail_on: set[str] | None = None, width_offset: int = 0) -> None:
        self.calls: list[tuple[Path, int]] = []
        self.timeouts: list[float | None] = []
        self._fail_on = fail_on or set()
        self._width_offset = width_offset

    def render_svg_to_png_bytes(self, source: Path, *, width_px: int, timeout_s: float | None = None) -> bytes:
        self.calls.append((Path(source), width_px))
        self.timeouts.append(timeout_s)
        if Path(source).stem in self._fail_on:
            raise RuntimeError(f"fake failed on {source} (code=1): broken")
        svg = decode_svg_bytes(Path(source).read_bytes())
        return png_bytes(width_px + self._width_offset, expected_height_px(svg, width_px=width_px))


@pytest.fixture
def art_dir(tmp_path: Path) -> Path:
    """Source tree with every asset of the rebuild list, each 100x50."""
    root = tmp_path / "art"
    for rel, _ in ASSET_TABLE:
        path = root / f"{rel}.svg"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(svg_markup(), encoding="utf-8")
    return root


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    return tmp_path / "static"
