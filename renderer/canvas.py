"""렌더링 표면 모듈 — 배치 알고리즘이 그리는 대상.

Surface는 글자 폭 측정, 텍스트 그리기, 이미지 그리기, 마스크 채우기만
제공한다. 스타일(색, 투명도, 그림자)은 호출마다 명시적으로 넘기고
표면에 상태로 남기지 않는다.

어댑터 두 개:
    RasterCanvas  : 오프라인 래스터라이저 (내보내기, 고품질 리샘플링)
    PreviewCanvas : 대화형 미리보기 (빠른 리샘플링)
"""

import math
from dataclasses import dataclass
from io import BytesIO
from typing import Callable

from PIL import Image, ImageDraw, ImageFilter, ImageFont, ImageOps

# 배경 이미지가 없을 때의 바탕색
BLANK = (0, 0, 0, 255)


def hex_to_rgba(value: str, alpha: int = 255) -> tuple[int, int, int, int]:
    h = value.strip().lstrip("#")
    if len(h) != 6:
        raise ValueError(f"Invalid hex color: {value}")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16), alpha


@dataclass(frozen=True)
class Shadow:
    """그림자. blur는 canvas shadowBlur와 같은 단위 (표준편차 × 2)."""
    color: tuple[int, int, int, int]
    blur: float


@dataclass(frozen=True)
class TextStyle:
    """텍스트 그리기 1회분의 전체 스타일."""
    font: ImageFont.FreeTypeFont
    fill: tuple[int, int, int, int]
    opacity: float = 1.0
    shadow: Shadow | None = None
    anchor: str = "ls"           # Pillow 앵커 (ls=왼쪽 기준선, ms=가운데, la=왼쪽 위)


def _tinted(mask: Image.Image, color: tuple, opacity: float) -> Image.Image:
    """L 마스크를 color 알파 × opacity로 칠한 RGBA 레이어로 만든다."""
    factor = color[3] / 255 * opacity
    layer = Image.new("RGBA", mask.size, tuple(color[:3]) + (0,))
    layer.putalpha(mask.point(lambda v: int(v * factor + 0.5)))
    return layer


class Surface:
    """배치 알고리즘이 쓰는 그리기 인터페이스."""

    @property
    def size(self) -> tuple[int, int]:
        raise NotImplementedError

    def measure(self, text: str, font: ImageFont.FreeTypeFont) -> float:
        """text의 advance 폭 (px)."""
        return font.getlength(text)

    def fill_text(self, items: list[tuple[str, float, float]], style: TextStyle) -> None:
        """[(문자열, x, y)]를 같은 스타일로 그린다."""
        raise NotImplementedError

    def draw_cover(self, image: Image.Image) -> None:
        """이미지를 비율 유지로 표면 전체를 덮도록 확대하고 가운데를 자른다."""
        raise NotImplementedError

    def fill_mask(self, color: tuple[int, int, int], mask: Image.Image,
                  origin: tuple[int, int] = (0, 0)) -> None:
        """L 마스크를 알파로 써서 단색을 합성한다 (그라데이션용)."""
        raise NotImplementedError

    def fill_ellipse(self, box: tuple[float, float, float, float], fill: tuple) -> None:
        raise NotImplementedError

    def stroke_line(self, start: tuple[float, float], end: tuple[float, float],
                    width: int, fill: tuple) -> None:
        raise NotImplementedError

    def to_image(self) -> Image.Image:
        raise NotImplementedError


class RasterCanvas(Surface):
    """Pillow RGBA 이미지 위에 그리는 오프라인 래스터라이저."""

    resample = Image.Resampling.LANCZOS

    def __init__(self, width: int, height: int, fill: tuple = BLANK):
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid surface size: {width}x{height}")
        self._image = Image.new("RGBA", (width, height), fill)

    @property
    def size(self) -> tuple[int, int]:
        return self._image.size

    def _paste_layer(self, layer: Image.Image, position: tuple[int, int]) -> None:
        """레이어를 지정 위치에 알파 합성한다. 캔버스 밖으로 나간 부분은 자른다."""
        x, y = position
        w, h = self._image.size
        x0, y0 = max(0, x), max(0, y)
        x1, y1 = min(w, x + layer.width), min(h, y + layer.height)
        if x0 >= x1 or y0 >= y1:
            return
        if (x0, y0, x1, y1) != (x, y, x + layer.width, y + layer.height):
            layer = layer.crop((x0 - x, y0 - y, x1 - x, y1 - y))
        self._image.alpha_composite(layer, dest=(x0, y0))

    def draw_cover(self, image: Image.Image) -> None:
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        fitted = ImageOps.fit(image, self._image.size, method=self.resample, centering=(0.5, 0.5))
        self._image.alpha_composite(fitted)

    def fill_mask(self, color, mask, origin=(0, 0)) -> None:
        self._paste_layer(_tinted(mask, tuple(color[:3]) + (255,), 1.0), origin)

    def fill_text(self, items, style: TextStyle) -> None:
        font = style.font
        boxes = []
        for text, x, y in items:
            if not text:
                continue
            left, top, right, bottom = font.getbbox(text, anchor=style.anchor)
            boxes.append((x + left, y + top, x + right, y + bottom))
        if not boxes:
            return

        # 그림자 번짐이 잘리지 않도록 여백을 둔다
        pad = 2
        if style.shadow is not None:
            pad += math.ceil(style.shadow.blur * 1.5)
        left = math.floor(min(b[0] for b in boxes)) - pad
        top = math.floor(min(b[1] for b in boxes)) - pad
        right = math.ceil(max(b[2] for b in boxes)) + pad
        bottom = math.ceil(max(b[3] for b in boxes)) + pad

        mask = Image.new("L", (right - left, bottom - top), 0)
        draw = ImageDraw.Draw(mask)
        for text, x, y in items:
            if text:
                draw.text((x - left, y - top), text, font=font, fill=255, anchor=style.anchor)

        layer = Image.new("RGBA", mask.size, (0, 0, 0, 0))
        if style.shadow is not None:
            shadow_mask = mask
            if style.shadow.blur > 0:
                shadow_mask = mask.filter(ImageFilter.GaussianBlur(style.shadow.blur / 2))
            layer = _tinted(shadow_mask, style.shadow.color, style.opacity)
        layer.alpha_composite(_tinted(mask, style.fill, style.opacity))
        self._paste_layer(layer, (left, top))

    def _draw_shape(self, box: tuple[float, float, float, float],
                    paint: Callable[[ImageDraw.ImageDraw, tuple[int, int]], None]) -> None:
        left, top = math.floor(box[0]) - 1, math.floor(box[1]) - 1
        right, bottom = math.ceil(box[2]) + 1, math.ceil(box[3]) + 1
        layer = Image.new("RGBA", (right - left, bottom - top), (0, 0, 0, 0))
        paint(ImageDraw.Draw(layer), (left, top))
        self._paste_layer(layer, (left, top))

    def fill_ellipse(self, box, fill) -> None:
        def paint(draw, origin):
            ox, oy = origin
            draw.ellipse((box[0] - ox, box[1] - oy, box[2] - ox, box[3] - oy), fill=tuple(fill))
        self._draw_shape(box, paint)

    def stroke_line(self, start, end, width, fill) -> None:
        half = width / 2
        box = (min(start[0], end[0]) - half, min(start[1], end[1]) - half,
               max(start[0], end[0]) + half, max(start[1], end[1]) + half)

        def paint(draw, origin):
            ox, oy = origin
            draw.line([(start[0] - ox, start[1] - oy), (end[0] - ox, end[1] - oy)],
                      fill=tuple(fill), width=max(1, int(width)))
        self._draw_shape(box, paint)

    def to_image(self) -> Image.Image:
        return self._image.copy()

    def to_rgb(self) -> Image.Image:
        """RGB 모드로 변환하여 반환한다 (PNG 인코딩용)."""
        return self._image.convert("RGB")

    def encode_png(self) -> bytes:
        buf = BytesIO()
        self.to_rgb().save(buf, format="PNG")
        return buf.getvalue()


class PreviewCanvas(RasterCanvas):
    """대화형 미리보기 표면. 배경 확대에 빠른 필터를 쓴다."""

    resample = Image.Resampling.BILINEAR
