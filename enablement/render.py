import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Protocol, Tuple
from urllib.parse import quote

from .brand import BRAND_COLORS, BRAND_NAME, PLACEHOLDER_COLORS
from .canvas import VectorCanvas
from .styles import StylePattern

logger = logging.getLogger(__name__)

DEFAULT_CANVAS_SIZE = (800, 600)
DEFAULT_PLACEHOLDER_SIZE = (400, 300)
DEFAULT_PLACEHOLDER_URL = "https://via.placeholder.com"
DEFAULT_STYLE_NAME = f"{BRAND_NAME} Professional"


@dataclass(frozen=True)
class RenderRequest:
    title: str
    industry: str
    elements: Tuple[str, ...] = ()
    branding: str = "tech_telecom"
    style: str = ""
    content_type: str = "image"

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            raise ValueError("RenderRequest.title is required")
        if not self.industry or not self.industry.strip():
            raise ValueError("RenderRequest.industry is required")
        object.__setattr__(self, "elements", tuple(self.elements))


@dataclass(frozen=True)
class GeneratedAsset:
    id: str
    title: str
    kind: str
    industry: str
    artifact_ref: str
    description: str
    generated_at: datetime
    style_used: str

    @property
    def ok(self) -> bool:
        return bool(self.artifact_ref)


class AssetRenderer(Protocol):
    def render(self, request: RenderRequest, style: Optional[StylePattern] = None) -> GeneratedAsset:
        ...


def _new_asset_id() -> str:
    return f"img_{uuid.uuid4().hex}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BaseRenderer:
    """
    Shared public boundary for every rendering strategy: subclasses implement
    `_render`, and any exception it raises becomes a failed asset.
    """

    id_factory: Callable[[], str] = _new_asset_id
    clock: Callable[[], datetime] = _utcnow

    def render(self, request: RenderRequest, style: Optional[StylePattern] = None) -> GeneratedAsset:
        try:
            return self._render(request, style)
        except Exception as exc:
            logger.exception("%s failed for %r", type(self).__name__, request.title)
            return self.failed_asset(request, style, str(exc))

    def failed_asset(
        self,
        request: RenderRequest,
        style: Optional[StylePattern],
        reason: str,
    ) -> GeneratedAsset:
        return GeneratedAsset(
            id=self.id_factory(),
            title="Image Generation Failed",
            kind=request.content_type,
            industry=request.industry,
            artifact_ref="",
            description=f"Unable to generate image for {request.title!r}: {reason}",
            generated_at=self.clock(),
            style_used=_style_name(request, style),
        )

    def _render(self, request: RenderRequest, style: Optional[StylePattern]) -> GeneratedAsset:
        raise NotImplementedError


# --- Icon vocabulary ----------------------------------------------------------

ELEMENT_LABELS: Dict[str, str] = {
    "office_building": "Office",
    "network": "Network",
    "router": "Router",
    "wifi_signal": "WiFi",
    "server": "Server",
}


def draw_office_building(canvas: VectorCanvas, x: float, y: float, color: str) -> None:
    canvas.fill_rect(x - 20, y - 10, 40, 20, color)
    for offset in (-15, -5, 5):
        canvas.fill_rect(x + offset, y - 5, 6, 6, "#FFFFFF")


def draw_network(canvas: VectorCanvas, x: float, y: float, color: str) -> None:
    nodes = [(x - 15, y - 10), (x, y), (x + 15, y - 10), (x, y + 10)]
    for i, start in enumerate(nodes):
        for end in nodes[i + 1:]:
            canvas.move_to(*start)
            canvas.line_to(*end)
    canvas.stroke(color)
    for node_x, node_y in nodes:
        canvas.fill_circle(node_x, node_y, 3, color)


def draw_router(canvas: VectorCanvas, x: float, y: float, color: str) -> None:
    canvas.fill_rect(x - 15, y - 8, 30, 16, color)
    canvas.move_to(x - 10, y - 8)
    canvas.line_to(x - 10, y - 15)
    canvas.move_to(x + 10, y - 8)
    canvas.line_to(x + 10, y - 15)
    canvas.stroke(color)


def draw_wifi_signal(canvas: VectorCanvas, x: float, y: float, color: str) -> None:
    for radius in (8, 12, 16):
        canvas.arc(x, y + 5, radius, 180, 360, color)


def draw_server(canvas: VectorCanvas, x: float, y: float, color: str) -> None:
    canvas.fill_rect(x - 12, y - 10, 24, 20, color)
    for offset in (-6, 0, 6):
        canvas.fill_rect(x - 8, y + offset, 16, 3, "#FFFFFF")


def draw_generic(canvas: VectorCanvas, x: float, y: float, color: str, element: str) -> None:
    canvas.fill_circle(x, y, 15, color)
    canvas.text(x, y - 6, element[:3].upper(), "#FFFFFF", size=10, align="center")


ICONS: Dict[str, Callable[[VectorCanvas, float, float, str], None]] = {
    "office_building": draw_office_building,
    "network": draw_network,
    "router": draw_router,
    "wifi_signal": draw_wifi_signal,
    "server": draw_server,
}


def element_label(element: str) -> str:
    return ELEMENT_LABELS.get(element, element)


@dataclass
class VectorCompositor(BaseRenderer):
    """
    Draws a branded visual locally: gradient background, header bar with
    wordmark, content panel, a centred row of icon tiles and a footer credit.
    Deterministic and offline; the artifact is a PNG data URL.
    """

    size: Tuple[int, int] = DEFAULT_CANVAS_SIZE
    font_path: Optional[str] = None

    tile_width = 100
    tile_height = 80
    tile_spacing = 120
    min_tile_pitch = 30
    row_gap = 30

    def _render(self, request: RenderRequest, style: Optional[StylePattern]) -> GeneratedAsset:
        logger.info("Compositing image for %r", request.title)
        width, height = self.size
        palette = _palette(style)
        logo = style.brand_elements.logo if style else BRAND_NAME

        canvas = VectorCanvas(width, height, font_path=self.font_path)
        canvas.vertical_gradient("#F8F9FA", "#E9ECEF")
        self._draw_header(canvas, palette, logo, request.branding)
        self._draw_content_panel(canvas, palette, request)
        self._draw_elements(canvas, palette, request.elements)
        self._draw_footer(canvas, logo)

        return GeneratedAsset(
            id=self.id_factory(),
            title=request.title,
            kind=request.content_type,
            industry=request.industry,
            artifact_ref=canvas.to_data_url(),
            description=f"Generated {request.title} for {request.industry} industry",
            generated_at=self.clock(),
            style_used=_style_name(request, style),
        )

    @staticmethod
    def _draw_header(canvas: VectorCanvas, palette: Dict[str, str], logo: str, branding: str) -> None:
        canvas.fill_rect(0, 0, canvas.width, 80, palette["primary"])
        canvas.text(50, 22, logo, "#FFFFFF", size=32)
        canvas.text(120, 30, f"{branding.upper()} SOLUTIONS", "#FFFFFF", size=18)

    @staticmethod
    def _draw_content_panel(
        canvas: VectorCanvas, palette: Dict[str, str], request: RenderRequest
    ) -> None:
        panel_w = canvas.width - 100
        panel_h = canvas.height - 200
        canvas.fill_rect(50, 100, panel_w, panel_h, palette["background"])
        canvas.stroke_rect(50, 100, panel_w, panel_h, palette["primary"], width=2)
        center = canvas.width / 2
        canvas.text(center, 125, request.title, palette["text"], size=24, align="center")
        canvas.text(
            center,
            160,
            f"{request.industry.upper()} BUSINESS SOLUTION",
            palette["light_text"],
            size=16,
            align="center",
        )

    def _draw_elements(
        self, canvas: VectorCanvas, palette: Dict[str, str], elements: Tuple[str, ...]
    ) -> None:
        if not elements:
            return
        # Shrink the pitch to fit the panel; past the minimum pitch, wrap rows.
        usable = max(canvas.width - 100, self.min_tile_pitch)
        per_row = max(1, min(len(elements), int(usable // self.min_tile_pitch)))
        spacing = min(self.tile_spacing, usable / per_row)
        tile_w = min(self.tile_width, spacing - 10)
        color = palette["primary"]

        for row_index, row_start in enumerate(range(0, len(elements), per_row)):
            row = elements[row_start:row_start + per_row]
            row_width = spacing * (len(row) - 1) + tile_w
            start_x = (canvas.width - row_width) / 2
            y = 220 + row_index * (self.tile_height + self.row_gap)
            for index, element in enumerate(row):
                x = start_x + index * spacing
                self._draw_tile(canvas, x, y, tile_w, color, element)

    def _draw_tile(
        self, canvas: VectorCanvas, x: float, y: float, tile_w: float, color: str, element: str
    ) -> None:
        canvas.fill_rect(x, y, tile_w, self.tile_height, "#E8F4FD")
        canvas.stroke_rect(x, y, tile_w, self.tile_height, color, width=2)
        cx = x + tile_w / 2
        cy = y + self.tile_height / 2
        icon = ICONS.get(element)
        if icon is None:
            draw_generic(canvas, cx, cy, color, element)
        else:
            icon(canvas, cx, cy, color)
        canvas.text(cx, y + self.tile_height + 8, element_label(element), color, size=12, align="center")

    @staticmethod
    def _draw_footer(canvas: VectorCanvas, logo: str) -> None:
        top = canvas.height - 60
        canvas.fill_rect(0, top, canvas.width, 60, "#F8F9FA")
        center = canvas.width / 2
        canvas.text(
            center,
            top + 14,
            f"{logo} Business Solutions - Professional Visualization",
            "#666666",
            size=12,
            align="center",
        )
        canvas.text(center, top + 32, "Generated by the sales enablement assistant", "#666666", size=12, align="center")


@dataclass
class PlaceholderRenderer(BaseRenderer):
    """
    Delegates to a remote placeholder image service: only the URL is built
    here, nothing is rasterized or fetched locally.
    """

    base_url: str = DEFAULT_PLACEHOLDER_URL
    size: Tuple[int, int] = DEFAULT_PLACEHOLDER_SIZE

    def _render(self, request: RenderRequest, style: Optional[StylePattern]) -> GeneratedAsset:
        label = f"{request.industry} {request.content_type}"
        color = self.color_for(request.industry, style)
        width, height = self.size
        url = f"{self.base_url.rstrip('/')}/{width}x{height}/{color}/ffffff?text={quote(label, safe='')}"
        logger.info("Placeholder image for %s: %s", request.industry, url)

        return GeneratedAsset(
            id=self.id_factory(),
            title=label,
            kind=request.content_type,
            industry=request.industry,
            artifact_ref=url,
            description=f"Visual representation for {request.industry} sector",
            generated_at=self.clock(),
            style_used=_style_name(request, style),
        )

    @staticmethod
    def color_for(industry: str, style: Optional[StylePattern] = None) -> str:
        if industry in PLACEHOLDER_COLORS:
            return PLACEHOLDER_COLORS[industry]
        primary = style.colors.primary if style else BRAND_COLORS["primary"]
        return primary.lstrip("#")


def _palette(style: Optional[StylePattern]) -> Dict[str, str]:
    if style is None:
        return {
            "primary": BRAND_COLORS["primary"],
            "background": BRAND_COLORS["background"],
            "text": BRAND_COLORS["text"],
            "light_text": BRAND_COLORS["light_text"],
        }
    colors = style.colors
    return {
        "primary": colors.primary,
        "background": colors.background,
        "text": colors.text,
        "light_text": colors.light_text or BRAND_COLORS["light_text"],
    }


def _style_name(request: RenderRequest, style: Optional[StylePattern]) -> str:
    if request.style:
        return request.style
    if style is not None:
        return style.name
    return DEFAULT_STYLE_NAME
