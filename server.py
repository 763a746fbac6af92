"""HTTP 서버 — POST /api/create 로 월페이퍼 PNG를 생성한다.

multipart 필드:
    image       배경 이미지 파일 (선택)
    config      월페이퍼 설정 JSON (선택, 누락 키는 기본값)
    resolution  hd | fhd | 4k (기본 4k)
"""

import asyncio
import logging
from functools import partial

from aiohttp import web

from config import parse_wallpaper_config
from errors import FontLoadTimeout, ImageTooLarge, InvalidConfig, WallpaperError
from pipeline import DEFAULT_RESOLUTION, export_filename, export_wallpaper
from renderer.fonts import FontRegistry, parse_family_stack

logger = logging.getLogger(__name__)

SETTINGS_KEY = web.AppKey("settings", dict)
FONTS_KEY = web.AppKey("fonts", FontRegistry)

# multipart 헤더·설정 JSON 여유분
_FORM_OVERHEAD = 256 * 1024


@web.middleware
async def error_middleware(request: web.Request, handler):
    """엔진 오류를 JSON {"error": ...} 응답으로 바꾼다."""
    try:
        return await handler(request)
    except WallpaperError as e:
        if e.status >= 500:
            logger.error("요청 처리 실패: %s", e)
        else:
            logger.warning("요청 거부 (%d): %s", e.status, e)
        return web.json_response({"error": str(e)}, status=e.status)


def _read_field(value) -> str | None:
    if isinstance(value, web.FileField):
        return value.file.read().decode("utf-8")
    return value


def _image_bytes(value) -> bytes | None:
    if isinstance(value, web.FileField):
        return value.file.read()
    if isinstance(value, str) and value.strip():
        if value.strip().lower().startswith(("http://", "https://")):
            raise InvalidConfig("image", "URL 이미지는 지원하지 않음 (파일로 업로드)")
        raise InvalidConfig("image", "파일 업로드여야 함")
    return None


async def _wait_fonts(fonts: FontRegistry, config, timeout: float) -> None:
    stacks = [config.title_family, config.body_family]
    if config.text_overlay is not None and config.text_overlay.active:
        stacks.append(config.text_overlay.font)
    families = [f for s in stacks for f in parse_family_stack(s, fonts.default_family)]
    try:
        await fonts.wait_ready(families, timeout)
    except FontLoadTimeout as e:
        logger.warning("폰트 대기 실패, 기본 폰트로 그림: %s", e)


async def create_wallpaper(request: web.Request) -> web.Response:
    settings = request.app[SETTINGS_KEY]
    fonts = request.app[FONTS_KEY]
    limits = settings.get("limits", {})
    max_bytes = limits.get("max_input_bytes", 5 * 1024 * 1024)

    try:
        form = await request.post()
    except web.HTTPRequestEntityTooLarge:
        raise ImageTooLarge(f"요청 크기가 최대 {max_bytes:,} bytes를 넘음") from None

    config = parse_wallpaper_config(
        _read_field(form.get("config")) or "{}",
        max_overlay_chars=limits.get("max_overlay_chars"),
    )
    resolution = (_read_field(form.get("resolution")) or DEFAULT_RESOLUTION).strip()
    image = _image_bytes(form.get("image"))

    await _wait_fonts(fonts, config, settings.get("fonts", {}).get("load_timeout_sec", 3.0))

    loop = asyncio.get_running_loop()
    png = await loop.run_in_executor(
        None, partial(export_wallpaper, image, config, fonts, resolution, settings),
    )
    filename = export_filename(config)
    logger.info("생성 완료: %s (%s, %d bytes)", filename, resolution, len(png))
    return web.Response(
        body=png,
        content_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def create_app(settings: dict, fonts: FontRegistry) -> web.Application:
    max_bytes = settings.get("limits", {}).get("max_input_bytes", 5 * 1024 * 1024)
    app = web.Application(
        client_max_size=max_bytes + _FORM_OVERHEAD,
        middlewares=[error_middleware],
    )
    app[SETTINGS_KEY] = settings
    app[FONTS_KEY] = fonts
    app.router.add_post("/api/create", create_wallpaper)
    return app


def run_server(settings: dict, fonts: FontRegistry) -> None:
    server = settings.get("server", {})
    host = server.get("host", "0.0.0.0")
    port = server.get("port", 8080)
    logger.info("서버 시작: http://%s:%d", host, port)
    web.run_app(create_app(settings, fonts), host=host, port=port, print=None)
