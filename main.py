"""메인 — 달력 월페이퍼 렌더링 CLI.

    python main.py render photo.jpg --config wallpaper.json --resolution fhd 4k
    python main.py serve
"""

import argparse
import logging
import sys
from pathlib import Path

from config import load_config, parse_wallpaper_config
from content.background import load_background_file
from errors import WallpaperError
from pipeline import export_all, export_filename
from renderer.fonts import FontRegistry

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(message)s")
logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

logger = logging.getLogger("main")

BASE_DIR = Path(__file__).parent


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="달력 월페이퍼 렌더러")
    parser.add_argument("--settings", type=Path, help="앱 설정 파일 (기본: config.json)")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="PNG 파일로 내보내기")
    render.add_argument("image", nargs="?", type=Path, help="배경 이미지 (생략하면 검정 배경)")
    render.add_argument("--config", type=Path, help="월페이퍼 설정 JSON")
    render.add_argument("--resolution", nargs="+", help="hd / fhd / 4k (기본: 설정의 export.resolutions)")
    render.add_argument("--output", type=Path, default=Path("."), help="출력 디렉토리")

    sub.add_parser("serve", help="HTTP 서버 실행")
    return parser


def _render(args, settings: dict, fonts: FontRegistry) -> None:
    raw = args.config.read_text(encoding="utf-8") if args.config else "{}"
    config = parse_wallpaper_config(raw, max_overlay_chars=settings["limits"].get("max_overlay_chars"))
    background = load_background_file(args.image, settings["limits"]) if args.image else None

    results = export_all(background, config, fonts, args.resolution, settings)

    args.output.mkdir(parents=True, exist_ok=True)
    name = export_filename(config)
    for resolution, png in results.items():
        # 해상도가 여러 개면 파일 이름에 붙인다
        filename = name if len(results) == 1 else name.replace(".png", f"-{resolution}.png")
        path = args.output / filename
        path.write_bytes(png)
        logger.info("저장: %s (%d bytes)", path, len(png))


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    settings = load_config(args.settings)
    fonts = FontRegistry.from_config(settings["fonts"], BASE_DIR)

    if args.command == "serve":
        from server import run_server
        run_server(settings, fonts)
        return 0

    try:
        _render(args, settings, fonts)
    except WallpaperError as e:
        logger.error("렌더링 실패: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        logging.info("종료")
