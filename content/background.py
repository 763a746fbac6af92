"""배경 이미지 모듈 — 입력 바이트 검사, 헤더 크기 검사, 디코딩."""

import logging
from io import BytesIO
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from errors import ImageDecodeFailure, ImageDimensionsExceeded, ImageTooLarge

logger = logging.getLogger(__name__)

MAX_INPUT_BYTES = 5 * 1024 * 1024
MAX_PIXELS = 50_000_000
MAX_DIMENSION = 8192


def check_dimensions(width: int, height: int, limits: dict | None = None) -> None:
    """가로·세로·총 픽셀 수 한도 검사."""
    limits = limits or {}
    max_dim = limits.get("max_dimension", MAX_DIMENSION)
    max_pixels = limits.get("max_pixels", MAX_PIXELS)
    if width > max_dim or height > max_dim:
        raise ImageDimensionsExceeded(f"이미지 크기 {width}x{height}, 한 변 최대 {max_dim}px")
    if width * height > max_pixels:
        raise ImageDimensionsExceeded(f"이미지 픽셀 수 {width * height:,}, 최대 {max_pixels:,}")


def load_background(data: bytes, limits: dict | None = None) -> Image.Image:
    """이미지 바이트를 검사하고 디코딩하여 RGB/RGBA 이미지를 반환한다.

    검사 순서:
        1. 바이트 수 (ImageTooLarge)
        2. 헤더만 읽어서 크기 (ImageDimensionsExceeded), 전체 디코딩 전
        3. 디코딩 (ImageDecodeFailure)
    """
    limits = limits or {}
    max_bytes = limits.get("max_input_bytes", MAX_INPUT_BYTES)
    if len(data) > max_bytes:
        raise ImageTooLarge(f"이미지 {len(data):,} bytes, 최대 {max_bytes:,} bytes")
    if not data:
        raise ImageDecodeFailure("빈 이미지 데이터")

    try:
        # open()은 헤더만 읽는다
        img = Image.open(BytesIO(data))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ImageDecodeFailure(f"이미지 형식을 알 수 없음 ({e})") from None

    check_dimensions(img.width, img.height, limits)

    try:
        img.load()
        img = ImageOps.exif_transpose(img)
    except (Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise ImageDecodeFailure(f"이미지 디코딩 실패 ({e})") from None

    has_alpha = img.mode in ("RGBA", "LA", "PA") or (img.mode == "P" and "transparency" in img.info)
    img = img.convert("RGBA" if has_alpha else "RGB")
    logger.info("배경 로드: %dx%d %s", img.width, img.height, img.mode)
    return img


def load_background_file(path: str | Path, limits: dict | None = None) -> Image.Image:
    """파일에서 배경을 읽는다. 읽기 전에 파일 크기를 먼저 확인한다."""
    path = Path(path)
    limits = limits or {}
    max_bytes = limits.get("max_input_bytes", MAX_INPUT_BYTES)
    size = path.stat().st_size
    if size > max_bytes:
        raise ImageTooLarge(f"{path.name}: {size:,} bytes, 최대 {max_bytes:,} bytes")
    return load_background(path.read_bytes(), limits)
