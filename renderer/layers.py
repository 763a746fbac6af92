"""레이어 합성 모듈 — 배경 사진 + 비네트 + 하단 그라데이션."""

import math

from PIL import Image

from .canvas import Surface

# 비네트: 중심에서 0.25·min(w,h) 까지 0.10, 0.9·max(w,h) 에서 0.40
VIGNETTE_INNER = 0.25
VIGNETTE_OUTER = 0.9
VIGNETTE_ALPHA = (0.10, 0.40)
# 하단 그라데이션: 0.7·h 에서 0 → h 에서 0.18
FADE_START = 0.7
FADE_ALPHA = 0.18
# 비네트는 이 폭의 격자에서 계산한 뒤 확대한다
_VIGNETTE_GRID = 256


def vignette_mask(width: int, height: int) -> Image.Image:
    """방사형 비네트 알파 마스크 (L 모드, width×height)."""
    gw = max(2, min(_VIGNETTE_GRID, width))
    gh = max(2, round(gw * height / width))
    cx, cy = width / 2, height / 2
    inner = VIGNETTE_INNER * min(width, height)
    outer = VIGNETTE_OUTER * max(width, height)
    a0, a1 = VIGNETTE_ALPHA

    values = []
    for j in range(gh):
        dy = (j + 0.5) * height / gh - cy
        for i in range(gw):
            dx = (i + 0.5) * width / gw - cx
            t = (math.hypot(dx, dy) - inner) / (outer - inner)
            t = max(0.0, min(1.0, t))
            values.append(round((a0 + (a1 - a0) * t) * 255))

    grid = Image.new("L", (gw, gh))
    grid.putdata(values)
    return grid.resize((width, height), Image.Resampling.BILINEAR)


def bottom_fade_mask(width: int, height: int) -> tuple[Image.Image, int] | None:
    """하단 그라데이션 마스크와 시작 y. 높이가 0이면 None."""
    top = round(height * FADE_START)
    fade_height = height - top
    if fade_height <= 0:
        return None
    ramp = Image.linear_gradient("L").resize((width, fade_height), Image.Resampling.BILINEAR)
    return ramp.point(lambda v: round(v * FADE_ALPHA)), top


def composite_background(surface: Surface, image: Image.Image | None) -> None:
    """배경 사진을 표면 전체에 깔고 가독성용 어둡게 처리를 합성한다.

    image가 None이면 아무것도 하지 않는다 (바탕색 그대로).
    """
    if image is None:
        return
    width, height = surface.size
    surface.draw_cover(image)
    surface.fill_mask((0, 0, 0), vignette_mask(width, height))
    fade = bottom_fade_mask(width, height)
    if fade is not None:
        mask, top = fade
        surface.fill_mask((0, 0, 0), mask, (0, top))
