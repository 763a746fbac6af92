"""폰트 레지스트리 모듈 — 패밀리 이름 → 폰트 파일 매핑과 크기별 캐시.

모듈 로드 시점에 전역 등록하지 않는다. 호출자가 레지스트리를 채워서
파이프라인에 넘긴다.
"""

import asyncio
import logging
import os
import re
import sys as _sys
import threading
from dataclasses import dataclass
from pathlib import Path

from PIL import ImageFont

from errors import FontLoadTimeout

logger = logging.getLogger(__name__)

_VAR_PATTERN = re.compile(r"var\([^)]*\)\s*,?")
_SAFE_FAMILY = re.compile(r"^[\w\s\-]+$")
_DEFAULT_ALIASES = ("default", "default (product sans)", "__default__")


def _find_fallback() -> str:
    """OS에 맞는 폴백 폰트 경로를 반환한다."""
    if _sys.platform == "win32":
        candidates = ["C:/Windows/Fonts/segoeui.ttf", "C:/Windows/Fonts/arial.ttf"]
    elif _sys.platform == "darwin":
        candidates = ["/System/Library/Fonts/Helvetica.ttc"]
    else:
        candidates = [
            "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
            "/usr/share/fonts/truetype/noto/NotoSans-Regular.ttf",
        ]
    for path in candidates:
        if os.path.exists(path):
            return path
    return ""


def font_weight(family: str) -> str:
    """패밀리별 기본 굵기. Montserrat=500, Doto=700, 나머지=400."""
    if "Montserrat" in family:
        return "500"
    if "Doto" in family:
        return "700"
    return "400"


def parse_family_stack(stack: str, default_family: str) -> list[str]:
    """CSS 스타일 패밀리 목록을 정리된 이름 리스트로 바꾼다.

    var(...) 는 제거하고, 따옴표를 벗기고, 허용되지 않는 문자가 들어간
    이름은 건너뛴다. "default" 별칭은 기본 패밀리로 바꾼다.
    """
    cleaned = _VAR_PATTERN.sub("", stack or "").strip()
    if not cleaned or cleaned.lower() in _DEFAULT_ALIASES:
        return [default_family]
    families = []
    for token in cleaned.split(","):
        name = token.strip().strip("\"'").strip()
        if not name:
            continue
        if name.lower() in _DEFAULT_ALIASES:
            name = default_family
        if not _SAFE_FAMILY.match(name):
            logger.warning("폰트 이름 무시 (허용되지 않는 문자): %r", name)
            continue
        families.append(name)
    return families or [default_family]


@dataclass(frozen=True)
class FontSource:
    """등록된 폰트 파일 1개."""
    family: str
    path: str
    weight: str = "400"


class FontRegistry:
    """패밀리 이름으로 폰트를 찾고, 크기별 FreeTypeFont를 캐싱한다."""

    def __init__(self, default_family: str = "Product Sans", fallback_path: str | None = None):
        self.default_family = default_family
        self._fallback_path = _find_fallback() if fallback_path is None else fallback_path
        self._sources: dict[str, dict[str, FontSource]] = {}
        self._pending: dict[str, asyncio.Event] = {}
        self._cache: dict[tuple[str, int], ImageFont.FreeTypeFont] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, fonts_config: dict, base_dir: Path | None = None) -> "FontRegistry":
        """설정의 fonts 섹션에서 폰트 파일을 등록한다. 없는 파일은 건너뛴다."""
        registry = cls(default_family=fonts_config.get("default_family", "Product Sans"))
        font_dir = Path(fonts_config.get("directory", "assets/fonts/"))
        if base_dir is not None and not font_dir.is_absolute():
            font_dir = base_dir / font_dir
        for family, entry in fonts_config.get("families", {}).items():
            path = font_dir / entry["file"]
            if not path.exists():
                logger.warning("폰트 파일 없음: %s (%s)", family, path)
                continue
            registry.register(family, path, entry.get("weight", "400"))
        logger.info("폰트 %d개 등록됨", len(registry.families()))
        return registry

    def register(self, family: str, path, weight: str = "400") -> None:
        """폰트 파일을 등록하고 대기 중인 준비 이벤트를 깨운다."""
        source = FontSource(family, str(path), weight)
        with self._lock:
            self._sources.setdefault(family, {})[weight] = source
        event = self._pending.pop(family, None)
        if event is not None:
            event.set()
        logger.debug("폰트 등록: %s %s (%s)", family, weight, path)

    def expect(self, family: str) -> None:
        """아직 로드 중인 패밀리를 표시한다. register()가 호출되면 준비 완료."""
        if family not in self._sources and family not in self._pending:
            self._pending[family] = asyncio.Event()

    def families(self) -> list[str]:
        return sorted(self._sources)

    def is_ready(self, family: str) -> bool:
        return family in self._sources

    async def wait_ready(self, families: list[str], timeout: float) -> None:
        """대기 중인 패밀리가 모두 등록될 때까지 기다린다.

        timeout 안에 준비되지 않으면 FontLoadTimeout. 등록도 예고도 안 된
        패밀리는 기다리지 않는다 (즉시 폴백 대상).
        """
        events = [self._pending[f] for f in dict.fromkeys(families) if f in self._pending]
        if not events:
            return
        try:
            await asyncio.wait_for(asyncio.gather(*(e.wait() for e in events)), timeout)
        except asyncio.TimeoutError:
            stalled = [f for f in families if f in self._pending]
            raise FontLoadTimeout(stalled, timeout) from None

    def _lookup(self, stack: str, weight: str | None) -> FontSource | None:
        for family in parse_family_stack(stack, self.default_family):
            by_weight = self._sources.get(family)
            if not by_weight:
                continue
            wanted = weight or font_weight(family)
            return by_weight.get(wanted) or next(iter(by_weight.values()))
        return None

    def get(self, stack: str, size: int, weight: str | None = None) -> ImageFont.FreeTypeFont:
        """패밀리 목록에서 처음 등록된 폰트를 size px로 반환한다.

        아무것도 없으면 시스템 폴백, 그것도 없으면 Pillow 내장 폰트.
        """
        size = max(1, int(size))
        source = self._lookup(stack, weight)
        path = source.path if source else self._fallback_path
        key = (path, size)
        with self._lock:
            font = self._cache.get(key)
            if font is None:
                if path:
                    font = ImageFont.truetype(path, size)
                else:
                    font = ImageFont.load_default(size)
                self._cache[key] = font
        return font
