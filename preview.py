"""미리보기 세션 — 설정이 바뀔 때마다 작은 캔버스에 다시 그린다.

상태: idle → background_loading → analyzing → compositing → done
배경이 바뀌지 않았으면 로딩/분석 단계는 건너뛴다. 새 요청이 들어오면
이전 요청의 결과는 버린다 (세대 번호 비교).
"""

import asyncio
import logging
from enum import Enum
from typing import Callable

from PIL import Image

from config import WallpaperConfig
from content.background import load_background
from content.color import DEFAULT_THRESHOLD
from errors import FontLoadTimeout
from pipeline import analyze_background, compose_wallpaper
from renderer.canvas import PreviewCanvas
from renderer.fonts import FontRegistry, parse_family_stack

logger = logging.getLogger(__name__)

# 배경 인자를 생략했을 때 (이전 배경 유지)
_UNCHANGED = object()


class PreviewState(str, Enum):
    IDLE = "idle"
    BACKGROUND_LOADING = "background_loading"
    ANALYZING = "analyzing"
    COMPOSITING = "compositing"
    DONE = "done"


def smoothstep(t: float) -> float:
    t = max(0.0, min(1.0, t))
    return t * t * (3 - 2 * t)


def crossfade_frames(old: Image.Image, new: Image.Image, fade_ms: float, fps: int) -> list[Image.Image]:
    """old → new 전환 프레임. 마지막 프레임은 new와 같다."""
    count = round(fade_ms / 1000 * fps)
    if count <= 1 or old.size != new.size:
        return [new]
    old = old.convert(new.mode)
    frames = [Image.blend(old, new, smoothstep(i / count)) for i in range(1, count)]
    frames.append(new)
    return frames


class PreviewSession:
    """대화형 미리보기. 완성된 프레임(RGB)을 frame_sink로 보낸다."""

    def __init__(
        self,
        fonts: FontRegistry,
        frame_sink: Callable[[Image.Image], None],
        width: int = 960,
        height: int = 540,
        fade_ms: float = 800,
        fps: int = 60,
        threshold: float = DEFAULT_THRESHOLD,
        font_timeout: float = 3.0,
        limits: dict | None = None,
        on_text_color: Callable[[str], None] | None = None,
        on_state: Callable[[PreviewState], None] | None = None,
    ):
        self._fonts = fonts
        self._sink = frame_sink
        self._size = (width, height)
        self._fade_ms = fade_ms
        self._fps = max(1, fps)
        self._threshold = threshold
        self._font_timeout = font_timeout
        self._limits = limits
        self._on_text_color = on_text_color
        self._on_state = on_state

        self._generation = 0
        self._state = PreviewState.IDLE
        self._requested = None          # 마지막으로 요청된 배경 원본
        self._committed = None          # 현재 _background의 원본
        self._background: Image.Image | None = None
        self._analyzed: str | None = None
        self._frame: Image.Image | None = None

    @classmethod
    def from_settings(cls, settings: dict, fonts: FontRegistry, frame_sink, **kwargs) -> "PreviewSession":
        preview = settings.get("preview", {})
        return cls(
            fonts,
            frame_sink,
            width=preview.get("width", 960),
            height=preview.get("height", 540),
            fade_ms=preview.get("fade_ms", 800),
            fps=preview.get("fps", 60),
            threshold=settings.get("color", {}).get("luminance_threshold", DEFAULT_THRESHOLD),
            font_timeout=settings.get("fonts", {}).get("load_timeout_sec", 3.0),
            limits=settings.get("limits"),
            **kwargs,
        )

    @property
    def state(self) -> PreviewState:
        return self._state

    @property
    def frame(self) -> Image.Image | None:
        """마지막으로 확정된 프레임."""
        return self._frame

    @property
    def text_color(self) -> str | None:
        """배경 분석으로 고른 글자색 (배경이 없으면 None)."""
        return self._analyzed

    def _set_state(self, state: PreviewState) -> None:
        self._state = state
        if self._on_state is not None:
            self._on_state(state)

    def _stale(self, generation: int) -> bool:
        if generation != self._generation:
            logger.debug("이전 요청 결과 폐기 (세대 %d, 현재 %d)", generation, self._generation)
            return True
        return False

    async def _decode(self, source) -> Image.Image | None:
        if source is None or isinstance(source, Image.Image):
            return source
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, load_background, bytes(source), self._limits)

    async def _wait_fonts(self, config: WallpaperConfig) -> None:
        stacks = [config.title_family, config.body_family]
        if config.text_overlay is not None and config.text_overlay.active:
            stacks.append(config.text_overlay.font)
        families = []
        for stack in stacks:
            families.extend(parse_family_stack(stack, self._fonts.default_family))
        try:
            await self._fonts.wait_ready(families, self._font_timeout)
        except FontLoadTimeout as e:
            logger.warning("폰트 대기 실패, 기본 폰트로 그림: %s", e)

    async def update(self, config: WallpaperConfig, background=_UNCHANGED) -> Image.Image | None:
        """설정(과 배경)으로 다시 그린다.

        background는 이미지 바이트, PIL 이미지, None(배경 제거) 중 하나.
        생략하면 이전 배경을 유지한다. 더 새로운 update()가 시작되면
        None을 반환하고 프레임을 내보내지 않는다.
        """
        self._generation += 1
        generation = self._generation
        if background is not _UNCHANGED:
            self._requested = background
        source = self._requested
        changed = source is not self._committed

        try:
            background_image = self._background
            analyzed = self._analyzed
            if changed:
                self._set_state(PreviewState.BACKGROUND_LOADING)
                background_image = await self._decode(source)
                if self._stale(generation):
                    return None

            await self._wait_fonts(config)
            if self._stale(generation):
                return None

            if changed:
                self._set_state(PreviewState.ANALYZING)
                analyzed = analyze_background(background_image, self._threshold)

            self._set_state(PreviewState.COMPOSITING)
            canvas = PreviewCanvas(*self._size)
            color = compose_wallpaper(canvas, background_image, config, self._fonts,
                                      self._threshold, analyzed_color=analyzed)
            frame = canvas.to_rgb()
        except Exception:
            if generation == self._generation:
                self._set_state(PreviewState.IDLE)
            raise

        previous = self._frame
        self._background, self._committed, self._analyzed = background_image, source, analyzed
        self._frame = frame
        if changed and analyzed is not None and config.auto_text_color and self._on_text_color:
            self._on_text_color(color)

        if changed and previous is not None:
            frames = crossfade_frames(previous, frame, self._fade_ms, self._fps)
            interval = 1 / self._fps
            for i, step in enumerate(frames):
                if self._stale(generation):
                    return None
                self._sink(step)
                if i < len(frames) - 1:
                    await asyncio.sleep(interval)
        else:
            self._sink(frame)

        self._set_state(PreviewState.DONE)
        logger.debug("미리보기 갱신 (세대 %d, 배경 변경=%s)", generation, changed)
        return frame
