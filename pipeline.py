"""렌더링 파이프라인 — 배경 → 밝기 분석 → 달력 → 오버레이 → PNG.

내보내기는 동기 함수이며 호출마다 새 RasterCanvas를 만든다. 같은 설정과
같은 배경이면 어떤 해상도에서든 같은 구도가 나온다.
"""

import logging

from PIL import Image

from config import ViewMode, WallpaperConfig
from content.background import load_background
from content.calendar import draw_calendar
from content.color import DEFAULT_THRESHOLD, pick_text_color
from content.overlay import draw_overlay
from errors import InvalidConfig, RenderFailure, WallpaperError
from renderer.canvas import RasterCanvas, Surface
from renderer.fonts import FontRegistry
from renderer.layers import composite_background
from renderer.layout import plan_layout

logger = logging.getLogger(__name__)

EXPORT_RESOLUTIONS = {
    ViewMode.DESKTOP: {
        "hd": (1280, 720),
        "fhd": (1920, 1080),
        "4k": (3840, 2160),
    },
    ViewMode.MOBILE: {
        "hd": (720, 1280),
        "fhd": (1080, 1920),
        "4k": (1440, 2560),
    },
}
DEFAULT_RESOLUTION = "4k"

# 밝기 분석용 캔버스의 긴 변 상한 (원본이 더 작으면 원본 크기 그대로)
ANALYSIS_MAX_SIDE = 1024


def resolve_resolution(view_mode: ViewMode, name: str = DEFAULT_RESOLUTION) -> tuple[int, int]:
    table = EXPORT_RESOLUTIONS[ViewMode(view_mode)]
    try:
        return table[name]
    except KeyError:
        raise InvalidConfig("resolution", f"허용값이 아님 ({name!r}; {', '.join(table)})") from None


def export_filename(config: WallpaperConfig) -> str:
    suffix = "-mobile" if config.view_mode is ViewMode.MOBILE else ""
    return f"calendar-{config.year}-{config.month + 1:02d}{suffix}.png"


def _threshold(settings: dict | None) -> float:
    if not settings:
        return DEFAULT_THRESHOLD
    return settings.get("color", {}).get("luminance_threshold", DEFAULT_THRESHOLD)


def analysis_size(background: Image.Image) -> tuple[int, int]:
    """배경 원본 크기에서 정한 분석 캔버스 크기. 출력 해상도와 무관하다."""
    width, height = background.size
    scale = min(1.0, ANALYSIS_MAX_SIDE / max(width, height))
    return max(1, round(width * scale)), max(1, round(height * scale))


def analyze_background(background: Image.Image | None, threshold: float = DEFAULT_THRESHOLD) -> str | None:
    """배경 이미지 하나에 대한 글자색. 배경이 바뀔 때 한 번만 계산한다.

    비네트와 하단 그라데이션까지 합성한 뒤 가운데 영역을 분석한다.
    """
    if background is None:
        return None
    canvas = RasterCanvas(*analysis_size(background))
    composite_background(canvas, background)
    color = pick_text_color(canvas.to_image(), threshold)
    logger.debug("배경 분석 %dx%d → %s", background.width, background.height, color)
    return color


def compose_wallpaper(
    surface: Surface,
    background: Image.Image | None,
    config: WallpaperConfig,
    fonts: FontRegistry,
    threshold: float = DEFAULT_THRESHOLD,
    analyzed_color: str | None = None,
) -> str:
    """표면 하나에 월페이퍼 전체를 그리고 실제 사용한 글자색을 반환한다.

    analyzed_color는 analyze_background()의 결과다. 여러 해상도로 내보낼
    때는 한 번 구한 값을 모든 표면에 넘긴다.
    """
    width, height = surface.size
    layout = plan_layout(
        width, height,
        view_mode=config.view_mode,
        scale=config.calendar_scale,
        offset_x=config.offset_x,
        offset_y=config.offset_y,
    )

    composite_background(surface, background)

    color = config.text_color
    if background is not None and config.auto_text_color:
        color = analyzed_color or analyze_background(background, threshold)

    draw_calendar(surface, layout, config, fonts, color)
    draw_overlay(surface, layout, config, fonts, color)
    return color


def render_wallpaper(
    background: Image.Image | None,
    config: WallpaperConfig,
    fonts: FontRegistry,
    size: tuple[int, int],
    threshold: float = DEFAULT_THRESHOLD,
    analyzed_color: str | None = None,
) -> bytes:
    """size 크기로 렌더링하여 PNG 바이트를 반환한다."""
    width, height = size
    try:
        surface = RasterCanvas(width, height)
        color = compose_wallpaper(surface, background, config, fonts, threshold, analyzed_color)
        data = surface.encode_png()
    except WallpaperError:
        raise
    except Exception as e:
        logger.exception("렌더링 실패 (%dx%d)", width, height)
        raise RenderFailure(f"렌더링 실패 ({width}x{height}): {e}") from e
    logger.info("렌더링 완료: %dx%d, 글자색 %s, %d bytes", width, height, color, len(data))
    return data


def _decode(image, settings: dict | None) -> Image.Image | None:
    if image is None or isinstance(image, Image.Image):
        return image
    limits = (settings or {}).get("limits")
    return load_background(bytes(image), limits)


def _analyzed_color(background: Image.Image | None, config: WallpaperConfig, threshold: float) -> str | None:
    if background is None or not config.auto_text_color:
        return None
    try:
        return analyze_background(background, threshold)
    except Exception as e:
        logger.exception("배경 분석 실패")
        raise RenderFailure(f"배경 분석 실패: {e}") from e


def export_wallpaper(
    image: bytes | Image.Image | None,
    config: WallpaperConfig,
    fonts: FontRegistry,
    resolution: str = DEFAULT_RESOLUTION,
    settings: dict | None = None,
) -> bytes:
    """이미지(바이트 또는 디코딩된 이미지) 하나를 지정 해상도로 내보낸다."""
    size = resolve_resolution(config.view_mode, resolution)
    background = _decode(image, settings)
    threshold = _threshold(settings)
    analyzed = _analyzed_color(background, config, threshold)
    return render_wallpaper(background, config, fonts, size, threshold, analyzed)


def export_all(
    image: bytes | Image.Image | None,
    config: WallpaperConfig,
    fonts: FontRegistry,
    resolutions: list[str] | None = None,
    settings: dict | None = None,
) -> dict[str, bytes]:
    """여러 해상도를 내보낸다.

    배경 디코딩과 밝기 분석은 한 번만 하고 모든 해상도가 같은 글자색을 쓴다.
    """
    if resolutions is None:
        resolutions = (settings or {}).get("export", {}).get("resolutions") \
            or list(EXPORT_RESOLUTIONS[config.view_mode])
    sizes = {name: resolve_resolution(config.view_mode, name) for name in resolutions}
    background = _decode(image, settings)
    threshold = _threshold(settings)
    analyzed = _analyzed_color(background, config, threshold)
    return {
        name: render_wallpaper(background, config, fonts, size, threshold, analyzed)
        for name, size in sizes.items()
    }
