import base64
import io
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]
Point = Tuple[float, float]

DEFAULT_COLOR: RGB = (59, 130, 246)  # blue-500


class VectorCanvas:
    """
    Minimal 2D drawing surface (paths, arcs, rectangles, text) backed by a
    Pillow RGB image. Coordinates are pixels with the origin top-left; text
    positions refer to the top edge of the glyph box.
    """

    def __init__(
        self,
        width: int,
        height: int,
        background: str = "#FFFFFF",
        font_path: Optional[str] = None,
    ) -> None:
        self.width = width
        self.height = height
        self.font_path = font_path
        self.image = Image.new("RGB", (width, height), color=parse_color(background))
        self._draw = ImageDraw.Draw(self.image)
        self._path: List[List[Point]] = []

    # Paths -------------------------------------------------------------------

    def move_to(self, x: float, y: float) -> None:
        self._path.append([(x, y)])

    def line_to(self, x: float, y: float) -> None:
        if not self._path:
            self.move_to(x, y)
            return
        self._path[-1].append((x, y))

    def stroke(self, color: str, width: int = 2) -> None:
        fill = parse_color(color)
        for segment in self._path:
            if len(segment) > 1:
                self._draw.line(segment, fill=fill, width=width)
        self._path = []

    def arc(
        self,
        cx: float,
        cy: float,
        radius: float,
        start: float,
        end: float,
        color: str,
        width: int = 2,
    ) -> None:
        """Stroke an arc; angles in degrees, clockwise from 3 o'clock."""
        box = [cx - radius, cy - radius, cx + radius, cy + radius]
        self._draw.arc(box, start=start, end=end, fill=parse_color(color), width=width)

    def fill_circle(self, cx: float, cy: float, radius: float, color: str) -> None:
        box = [cx - radius, cy - radius, cx + radius, cy + radius]
        self._draw.ellipse(box, fill=parse_color(color))

    # Rectangles --------------------------------------------------------------

    def fill_rect(self, x: float, y: float, w: float, h: float, color: str) -> None:
        self._draw.rectangle([x, y, x + w, y + h], fill=parse_color(color))

    def stroke_rect(self, x: float, y: float, w: float, h: float, color: str, width: int = 2) -> None:
        self._draw.rectangle([x, y, x + w, y + h], outline=parse_color(color), width=width)

    def vertical_gradient(self, top: str, bottom: str) -> None:
        start = parse_color(top)
        end = parse_color(bottom)
        for row in range(self.height):
            t = row / max(self.height - 1, 1)
            color = tuple(int(s + (e - s) * t) for s, e in zip(start, end))
            self._draw.line([(0, row), (self.width, row)], fill=color)

    # Text --------------------------------------------------------------------

    def text(
        self,
        x: float,
        y: float,
        value: str,
        color: str,
        size: int = 16,
        align: str = "left",
    ) -> None:
        font = load_font(self.font_path, size)
        if align == "center":
            x -= self._draw.textlength(value, font=font) / 2
        elif align == "right":
            x -= self._draw.textlength(value, font=font)
        self._draw.text((x, y), value, font=font, fill=parse_color(color))

    # Output ------------------------------------------------------------------

    def to_png_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.image.save(buffer, format="PNG")
        return buffer.getvalue()

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.to_png_bytes()).decode("ascii")
        return f"data:image/png;base64,{encoded}"


def parse_color(color_str: str) -> RGB:
    """
    Parse hex color strings like '#FF0000' or 'FF0000' into RGB tuple.
    Falls back to a safe default if parsing fails.
    """
    s = color_str.strip().lstrip("#")
    if len(s) == 3:
        s = "".join(ch * 2 for ch in s)
    if len(s) == 6:
        try:
            return (int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16))
        except ValueError:
            pass
    logger.debug("Unparseable colour %r, using default", color_str)
    return DEFAULT_COLOR


@lru_cache(maxsize=64)
def load_font(font_path: Optional[str], size: int) -> ImageFont.ImageFont:
    """
    Load a TrueType font, preferring the project fonts/ folder, then the
    configured font_path, then common system fonts. Falls back to Pillow's
    built-in bitmap font.
    """
    candidates: List[str] = []

    fonts_dir = Path(__file__).parent.parent / "fonts"
    if fonts_dir.exists():
        candidates.extend(str(p) for p in sorted(fonts_dir.glob("*.ttf")))
        candidates.extend(str(p) for p in sorted(fonts_dir.glob("*.otf")))

    if font_path:
        candidates.append(font_path)

    candidates.extend(
        [
            # Linux
            "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
            "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
            # macOS
            "/System/Library/Fonts/Helvetica.ttc",
            "/Library/Fonts/Arial.ttf",
            # Windows
            "C:/Windows/Fonts/arial.ttf",
        ]
    )

    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size=size)
        except OSError:
            continue

    return ImageFont.load_default()
