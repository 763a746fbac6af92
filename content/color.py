"""배경 밝기 분석 모듈 — 가운데 영역 평균 휘도로 글자색(흰/검)을 고른다."""

from PIL import Image

DEFAULT_THRESHOLD = 0.5
LIGHT_TEXT = "#FFFFFF"
DARK_TEXT = "#000000"


def srgb_to_linear(c: float) -> float:
    """sRGB 채널값(0~1)을 선형값으로 변환한다."""
    if c <= 0.03928:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


# 0~255 채널값 → 선형값
_LINEAR = [srgb_to_linear(v / 255) for v in range(256)]


def relative_luminance(rgb: tuple[int, int, int]) -> float:
    r, g, b = rgb[:3]
    return 0.2126 * _LINEAR[r] + 0.7152 * _LINEAR[g] + 0.0722 * _LINEAR[b]


def analysis_box(size: tuple[int, int]) -> tuple[int, int, int, int]:
    """가운데 50%×50% 영역."""
    w, h = size
    left, top = w // 4, h // 4
    return left, top, max(left + 1, left + w // 2), max(top + 1, top + h // 2)


def average_luminance(image: Image.Image, box: tuple[int, int, int, int] | None = None) -> float:
    """box 안의 픽셀을 래스터 순서로 4개마다 하나씩 샘플링한 평균 휘도."""
    region = image.crop(box) if box else image
    data = region.convert("RGB").tobytes()
    reds, greens, blues = data[0::12], data[1::12], data[2::12]
    if not reds:
        return 0.0
    total = sum(0.2126 * _LINEAR[r] + 0.7152 * _LINEAR[g] + 0.0722 * _LINEAR[b]
                for r, g, b in zip(reds, greens, blues))
    return total / len(reds)


def contrast_color(luminance: float, threshold: float = DEFAULT_THRESHOLD) -> str:
    """어두운 배경이면 흰 글자, 밝은 배경이면 검은 글자."""
    return LIGHT_TEXT if luminance < threshold else DARK_TEXT


def pick_text_color(image: Image.Image, threshold: float = DEFAULT_THRESHOLD) -> str:
    return contrast_color(average_luminance(image, analysis_box(image.size)), threshold)
