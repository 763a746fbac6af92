"""텍스트 배치 모듈 — 폭 맞춤 축소, 자간(tracking) 배치, 단어 줄바꿈.

모두 순수 함수다. 글자 폭은 호출자가 넘긴 measure 함수로만 얻는다.
"""

from dataclasses import dataclass
from typing import Callable

# 자간 = 글자 크기 × 0.055
TRACKING_RATIO = 0.055
# 최대 폭 대비 허용 비율 (양옆 여백)
FIT_MARGIN = 0.96
# 축소 단계 (px)
FIT_STEP = 2


@dataclass(frozen=True)
class FitResult:
    size: int
    tracking: float


def tracking_for(size: float) -> float:
    return size * TRACKING_RATIO


def tracked_width(advances: list[float], tracking: float) -> float:
    """글자별 폭 합 + 자간 × (글자 수 - 1)."""
    return sum(advances) + tracking * max(0, len(advances) - 1)


def fit_text(
    text: str,
    measure: Callable[[str, int], float],
    start_size: int,
    max_width: float,
    min_size: int,
) -> FitResult:
    """text가 max_width의 96% 안에 들어올 때까지 2px씩 줄인다.

    measure(ch, size)는 글자 하나의 advance 폭을 돌려준다. 크기는
    min_size 아래로 내려가지 않는다 (시작 크기가 이미 더 작으면 그대로).
    """
    size = start_size
    chars = list(text)
    limit = max_width * FIT_MARGIN

    def width_at(s: int) -> float:
        return tracked_width([measure(ch, s) for ch in chars], tracking_for(s))

    measured = width_at(size)
    while measured > limit and size > min_size:
        size = max(min_size, size - FIT_STEP)
        measured = width_at(size)
    return FitResult(size=size, tracking=tracking_for(size))


def layout_tracked(
    text: str,
    center_x: float,
    tracking: float,
    advance: Callable[[str], float],
) -> list[tuple[str, float]]:
    """자간을 넣어 가운데 정렬할 때 각 글자의 왼쪽 x 좌표를 계산한다.

    글자마다 자기 폭만큼 전진하므로 폭이 다른 글자가 섞여도 간격이 고르다.
    """
    chars = list(text)
    advances = [advance(ch) for ch in chars]
    cursor = center_x - tracked_width(advances, tracking) / 2
    glyphs = []
    for ch, w in zip(chars, advances):
        glyphs.append((ch, cursor))
        cursor += w + tracking
    return glyphs


def wrap_text(text: str, max_width: float, measure: Callable[[str], float]) -> list[str]:
    """줄바꿈 문자로 문단을 나눈 뒤, 문단마다 단어 단위로 탐욕적 줄바꿈한다.

    빈 문단(공백만 있는 문단 포함)은 빈 줄 하나가 된다. max_width보다 긴
    단어 하나는 자르지 않고 그대로 넘친다.
    """
    lines = []
    for paragraph in text.split("\n"):
        if not paragraph.strip():
            lines.append("")
            continue
        current = ""
        for word in paragraph.split(" "):
            candidate = f"{current} {word}" if current else word
            if current and measure(candidate) > max_width:
                lines.append(current)
                current = word
            else:
                current = candidate
        if current:
            lines.append(current)
    return lines
