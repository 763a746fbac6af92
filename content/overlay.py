"""텍스트 오버레이 모듈 — 9분할 위치에 자유 텍스트를 줄바꿈하여 그린다."""

import logging

from config import WallpaperConfig
from renderer.canvas import Shadow, Surface, TextStyle, hex_to_rgba
from renderer.fonts import FontRegistry
from renderer.layout import Layout, round_half_up
from renderer.text import wrap_text

logger = logging.getLogger(__name__)

SIZE_RATIO = 0.04        # × height × fontSize × scale
LINE_HEIGHT = 1.2
SHADOW_ALPHA = 128
SHADOW_BLUR_RATIO = 0.008


def overlay_anchor(position: str, layout: Layout) -> tuple[float, str]:
    """가로 위치 → (x, Pillow 앵커). 세로 기준은 항상 글자 윗부분."""
    left, _, right, _ = layout.safe_area
    if "left" in position:
        return left, "la"
    if "right" in position:
        return right, "ra"
    return layout.width / 2, "ma"


def overlay_top(position: str, layout: Layout, block_height: float) -> float:
    """세로 위치 → 첫 줄 윗변 y. 블록은 여기서 아래로 자란다."""
    _, top, _, bottom = layout.safe_area
    if position.startswith("top"):
        return top
    if position.startswith("bottom"):
        return bottom - block_height
    return layout.height / 2 - block_height / 2


def draw_overlay(
    surface: Surface,
    layout: Layout,
    config: WallpaperConfig,
    fonts: FontRegistry,
    color: str,
) -> list[str]:
    """오버레이를 그리고 줄바꿈된 줄 목록을 반환한다. 비활성이면 빈 목록."""
    overlay = config.text_overlay
    if overlay is None or not overlay.active:
        return []

    stack = config.title_family if overlay.use_typography_font else overlay.font
    size = max(1, round_half_up(layout.height * SIZE_RATIO * overlay.font_size * layout.scale))
    font = fonts.get(stack, size)
    left, top, right, bottom = layout.safe_area

    lines = wrap_text(overlay.content, right - left, lambda s: surface.measure(s, font))
    line_height = size * LINE_HEIGHT
    x, anchor = overlay_anchor(overlay.position, layout)
    y = overlay_top(overlay.position, layout, len(lines) * line_height)

    shadow = Shadow((0, 0, 0, SHADOW_ALPHA), max(2, round_half_up(layout.height * SHADOW_BLUR_RATIO)))
    surface.fill_text(
        [(line, x, y + i * line_height) for i, line in enumerate(lines)],
        TextStyle(font, hex_to_rgba(color), shadow=shadow, anchor=anchor),
    )
    logger.debug("오버레이 %d줄 (%s, %dpx)", len(lines), overlay.position, size)
    return lines
