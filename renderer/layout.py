"""화면 레이아웃 모듈 — 캔버스 크기와 설정으로 모든 배치 좌표를 계산한다.

좌표는 높이 비율(그리드 폭만 너비 비율)로 정의되어 있어서 어떤 출력
크기에서도 같은 구도가 나온다. 이전 호출의 값을 저장하지 않는다.
"""

import math
from dataclasses import dataclass

from config import ViewMode


@dataclass(frozen=True)
class Proportions:
    """보기 모드별 비율 상수."""
    grid_width: float     # × width
    title_y: float        # × height
    title_size: float     # × height
    label_size: float     # × height (요일·날짜 공용)
    weekday_gap: float    # 제목 기준선 → 요일 기준선, × height
    rows_gap: float       # 요일 기준선 → 첫 날짜 줄, × height
    row_height: float     # × height


PROPORTIONS = {
    ViewMode.DESKTOP: Proportions(
        grid_width=0.25, title_y=0.34, title_size=0.05, label_size=0.02,
        weekday_gap=0.08, rows_gap=0.055, row_height=0.055,
    ),
    ViewMode.MOBILE: Proportions(
        grid_width=0.35, title_y=0.40, title_size=0.03, label_size=0.0115,
        weekday_gap=0.05, rows_gap=0.03, row_height=0.027,
    ),
}

SCALE_MIN = 0.5
SCALE_MAX = 1.5
# 세로 이동 한도 (× height)
MAX_SHIFT_Y = 0.3
# 오버레이 안전 영역 여백 (각 변)
SAFE_MARGIN = 0.05
# 제목이 폭에 맞춰 줄어들 수 있는 하한 (배율 적용 전 기본 크기 대비)
TITLE_FLOOR = 0.5


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: float, lo: float = -1.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class Layout:
    """한 번의 렌더링에 쓰는 절대 픽셀 좌표."""
    width: int
    height: int
    scale: float
    shift_x: float
    shift_y: float
    title_x: float
    title_y: float
    title_size: int
    title_min_size: int
    grid_left: float
    grid_width: float
    column_width: float
    label_size: int
    weekday_y: float
    rows_top: float
    row_height: int
    safe_area: tuple[float, float, float, float]

    def column_x(self, col: int) -> float:
        """col번째 칸의 가운데 x."""
        return self.grid_left + col * self.column_width + self.column_width / 2 + self.shift_x

    @property
    def column_centers(self) -> list[float]:
        return [self.column_x(i) for i in range(7)]

    def cell_center(self, row: int, col: int) -> tuple[float, float]:
        """날짜 칸의 (x, 기준선 y)."""
        return self.column_x(col), self.rows_top + row * self.row_height


def plan_layout(
    width: int,
    height: int,
    view_mode: ViewMode = ViewMode.DESKTOP,
    scale: float = 1.0,
    offset_x: float = 0.0,
    offset_y: float = 0.0,
) -> Layout:
    """캔버스 크기·보기 모드·배율·오프셋으로 Layout을 계산한다."""
    p = PROPORTIONS[ViewMode(view_mode)]
    scale = clamp(scale, SCALE_MIN, SCALE_MAX)

    grid_width = width * p.grid_width * scale
    grid_left = (width - grid_width) / 2

    # 배율이 커질수록 블록이 아래로 밀려 보이므로 위로 보정한다
    norm_x = clamp(offset_x)
    norm_y = clamp(clamp(offset_y) + (scale - 1) * -0.5)

    # 좌우 여백(grid_left)만큼 이동하면 그리드 끝이 캔버스 끝에 닿는다
    shift_x = norm_x * grid_left
    shift_y = norm_y * height * MAX_SHIFT_Y

    title_y = height * p.title_y + shift_y
    weekday_y = title_y + round_half_up(height * p.weekday_gap * scale)
    rows_top = weekday_y + round_half_up(height * p.rows_gap * scale)

    title_size = round_half_up(height * p.title_size * scale)
    title_min_size = min(title_size, round_half_up(height * p.title_size * TITLE_FLOOR))

    return Layout(
        width=width,
        height=height,
        scale=scale,
        shift_x=shift_x,
        shift_y=shift_y,
        title_x=width / 2 + shift_x,
        title_y=title_y,
        title_size=title_size,
        title_min_size=title_min_size,
        grid_left=grid_left,
        grid_width=grid_width,
        column_width=grid_width / 7,
        label_size=round_half_up(height * p.label_size * scale),
        weekday_y=weekday_y,
        rows_top=rows_top,
        row_height=round_half_up(height * p.row_height * scale),
        safe_area=(
            width * SAFE_MARGIN,
            height * SAFE_MARGIN,
            width * (1 - SAFE_MARGIN),
            height * (1 - SAFE_MARGIN),
        ),
    )
