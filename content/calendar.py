"""달력 콘텐츠 모듈 — 월 계산, 헤더 형식, 제목·요일·날짜 그리기."""

import calendar as _calendar

from config import HeaderFormat, WallpaperConfig, WeekStart
from renderer.canvas import Shadow, Surface, TextStyle, hex_to_rgba
from renderer.fonts import FontRegistry
from renderer.layout import Layout, round_half_up
from renderer.text import FitResult, fit_text, layout_tracked

MONTH_NAMES = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]

WEEKDAY_LABELS = {
    WeekStart.SUNDAY: ["S", "M", "T", "W", "T", "F", "S"],
    WeekStart.MONDAY: ["M", "T", "W", "T", "F", "S", "S"],
}

# 요일 라벨 투명도
WEEKDAY_OPACITY = 0.8
# 달력 그림자: 검정 25%, 흐림 = 높이 × 0.004
SHADOW_ALPHA = 64
SHADOW_BLUR_RATIO = 0.004
# 기준일 강조 원 / 지난 날짜 취소선
HIGHLIGHT_ALPHA = 56
HIGHLIGHT_RADIUS = 0.9         # × 날짜 글자 크기
STRIKE_ALPHA = 204
STRIKE_WIDTH_RATIO = 0.08


def days_in_month(year: int, month0: int) -> int:
    return _calendar.monthrange(year, month0 + 1)[1]


def js_weekday(year: int, month0: int, day: int = 1) -> int:
    """일요일=0 기준 요일."""
    return (_calendar.weekday(year, month0 + 1, day) + 1) % 7


def first_day_offset(year: int, month0: int, week_start: WeekStart = WeekStart.SUNDAY) -> int:
    """1일이 첫 줄의 몇 번째 칸인지 (0~6)."""
    offset = js_weekday(year, month0)
    if WeekStart(week_start) is WeekStart.MONDAY:
        return (offset + 6) % 7
    return offset


def format_month_header(month0: int, year: int, fmt: HeaderFormat = HeaderFormat.FULL) -> str:
    name = MONTH_NAMES[month0]
    short = name[:3]
    mm = f"{month0 + 1:02d}"
    yy = f"{year % 100:02d}"
    formats = {
        HeaderFormat.FULL: name,
        HeaderFormat.SHORT: short,
        HeaderFormat.NUMERIC: mm,
        HeaderFormat.NUMERIC_FULL_YEAR: f"{mm}-{year}",
        HeaderFormat.NUMERIC_SHORT_YEAR: f"{mm}-{yy}",
        HeaderFormat.SHORT_SHORT_YEAR: f"{short} {yy}",
        HeaderFormat.SHORT_FULL_YEAR: f"{short} {year}",
    }
    return formats[HeaderFormat(fmt)]


def weekday_labels(week_start: WeekStart = WeekStart.SUNDAY) -> list[str]:
    return list(WEEKDAY_LABELS[WeekStart(week_start)])


def date_cell(day: int, offset: int) -> tuple[int, int]:
    """날짜(1부터) → (줄, 칸)."""
    index = offset + day - 1
    return index // 7, index % 7


def calendar_shadow(height: int) -> Shadow:
    return Shadow((0, 0, 0, SHADOW_ALPHA), max(1, round_half_up(height * SHADOW_BLUR_RATIO)))


def draw_calendar(
    surface: Surface,
    layout: Layout,
    config: WallpaperConfig,
    fonts: FontRegistry,
    color: str,
) -> FitResult:
    """제목, 요일 라벨, 날짜를 그린다. 제목의 최종 크기/자간을 반환한다."""
    fill = hex_to_rgba(color)
    shadow = calendar_shadow(layout.height)

    # 제목: 그리드 폭에 맞춰 줄이고 자간을 넣어 가운데 정렬
    title = format_month_header(config.month, config.year, config.header_format)
    title_stack = config.title_family
    fit = fit_text(
        title,
        lambda ch, size: surface.measure(ch, fonts.get(title_stack, size)),
        layout.title_size,
        layout.grid_width,
        layout.title_min_size,
    )
    title_font = fonts.get(title_stack, fit.size)
    glyphs = layout_tracked(title, layout.title_x, fit.tracking,
                            lambda ch: surface.measure(ch, title_font))
    surface.fill_text(
        [(ch, x, layout.title_y) for ch, x in glyphs],
        TextStyle(title_font, fill, shadow=shadow, anchor="ls"),
    )

    # 요일 라벨
    body_font = fonts.get(config.body_family, layout.label_size)
    labels = weekday_labels(config.week_start)
    surface.fill_text(
        [(label, layout.column_x(i), layout.weekday_y) for i, label in enumerate(labels)],
        TextStyle(body_font, fill, opacity=WEEKDAY_OPACITY, shadow=shadow, anchor="ms"),
    )

    # 날짜
    offset = first_day_offset(config.year, config.month, config.week_start)
    days = days_in_month(config.year, config.month)
    cells = {day: layout.cell_center(*date_cell(day, offset)) for day in range(1, days + 1)}

    effects = config.date_effects
    target = effects.day if effects is not None else None
    if target is not None and effects.highlight:
        x, y = cells[target]
        # 기준선에서 글자 중심까지 올려서 원을 그린다
        cy = y - layout.label_size * 0.35
        r = layout.label_size * HIGHLIGHT_RADIUS
        surface.fill_ellipse((x - r, cy - r, x + r, cy + r), fill[:3] + (HIGHLIGHT_ALPHA,))

    surface.fill_text(
        [(str(day), x, y) for day, (x, y) in cells.items()],
        TextStyle(body_font, fill, shadow=shadow, anchor="ms"),
    )

    if target is not None and effects.strikethrough:
        width = max(1, round_half_up(layout.label_size * STRIKE_WIDTH_RATIO))
        for day in range(1, target):
            x, y = cells[day]
            half = surface.measure(str(day), body_font) / 2 + layout.label_size * 0.15
            line_y = y - layout.label_size * 0.3
            surface.stroke_line((x - half, line_y), (x + half, line_y), width,
                                fill[:3] + (STRIKE_ALPHA,))

    return fit
