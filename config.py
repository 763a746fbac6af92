"""설정 모듈 — 앱 설정 파일 로더와 월페이퍼 설정 모델."""

import calendar
import copy
import json
import math
import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from pathlib import Path

from errors import InvalidConfig

# 기본 설정 경로
_CONFIG_PATH = Path(__file__).parent / "config.json"

# 기본값 — config.json에 누락된 키가 있을 때 사용
_DEFAULTS = {
    "server": {
        "host": "0.0.0.0",
        "port": 8080,
    },
    "fonts": {
        "directory": "assets/fonts/",
        "default_family": "Product Sans",
        "load_timeout_sec": 3.0,
        "families": {
            "Product Sans": {"file": "ProductSans.ttf"},
            "Montserrat": {"file": "Montserrat.ttf", "weight": "500"},
            "Doto": {"file": "Doto.ttf", "weight": "700"},
            "Crafty Girls": {"file": "CraftyGirls.ttf"},
            "Freckle Face": {"file": "FreckleFace.ttf"},
            "Playwrite CA": {"file": "PlaywriteCA.ttf"},
            "Segoe Script": {"file": "SegoeScript.TTF"},
            "Instrument Serif": {"file": "InstrumentSerif.ttf"},
            "Ultra": {"file": "Ultra.ttf"},
        },
    },
    "limits": {
        "max_input_bytes": 5 * 1024 * 1024,
        "max_pixels": 50_000_000,
        "max_dimension": 8192,
        "max_overlay_chars": 1000,
    },
    "color": {
        "luminance_threshold": 0.5,
    },
    "preview": {
        "width": 960,
        "height": 540,
        "fade_ms": 800,
        "fps": 60,
    },
    "export": {
        "resolutions": ["hd", "fhd", "4k"],
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """base 딕셔너리에 override 값을 병합한다 (깊은 병합)."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: Path | None = None) -> dict:
    """설정 파일을 읽어 딕셔너리로 반환한다.

    파일이 없으면 기본값을 사용한다.
    """
    config_path = path or _CONFIG_PATH
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            user_config = json.load(f)
        return _deep_merge(copy.deepcopy(_DEFAULTS), user_config)
    return copy.deepcopy(_DEFAULTS)


# ---------------------------------------------------------------------------
# 월페이퍼 설정 모델
# ---------------------------------------------------------------------------

class WeekStart(str, Enum):
    SUNDAY = "sunday"
    MONDAY = "monday"


class ViewMode(str, Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"


class HeaderFormat(str, Enum):
    FULL = "full"
    SHORT = "short"
    NUMERIC = "numeric"
    NUMERIC_FULL_YEAR = "numeric-full-year"
    NUMERIC_SHORT_YEAR = "numeric-short-year"
    SHORT_SHORT_YEAR = "short-short-year"
    SHORT_FULL_YEAR = "short-full-year"


# 오버레이 9분할 위치
OVERLAY_POSITIONS = (
    "top-left", "top-center", "top-right",
    "middle-left", "center", "middle-right",
    "bottom-left", "bottom-center", "bottom-right",
)

# 제목 폰트와 본문 폰트를 구분하는 예약 구분자
MONTH_ONLY_DELIM = "|||MONTH_ONLY|||"
DEFAULT_FAMILY = "Product Sans"

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def _enum_value(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        options = ", ".join(e.value for e in enum_cls)
        raise InvalidConfig(field, f"허용값이 아님 ({value!r}; {options})") from None


def _check_bool(value, field: str) -> None:
    if not isinstance(value, bool):
        raise InvalidConfig(field, "bool 이어야 함")


def _check_number(value, field: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidConfig(field, "유한한 숫자여야 함")


def _check_int(value, field: str, lo: int, hi: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfig(field, "정수여야 함")
    if not lo <= value <= hi:
        raise InvalidConfig(field, f"{lo}~{hi} 범위를 벗어남 ({value})")


def _check_family(value, field: str) -> None:
    if not isinstance(value, str):
        raise InvalidConfig(field, "문자열이어야 함")
    if len(value) > 512 or _CONTROL_CHARS.search(value):
        raise InvalidConfig(field, "폰트 이름 형식 오류")


def _split_families(font_family: str) -> tuple[str, str]:
    """폰트 문자열을 (제목 폰트, 본문 폰트)로 나눈다."""
    incoming = font_family.strip()
    if MONTH_ONLY_DELIM not in incoming:
        return incoming, incoming or DEFAULT_FAMILY
    title, body = (incoming.split(MONTH_ONLY_DELIM) + [""])[:2]
    return title.strip() or DEFAULT_FAMILY, body.strip() or DEFAULT_FAMILY


@dataclass(frozen=True)
class TextOverlay:
    """자유 텍스트 오버레이 설정."""
    enabled: bool = False
    content: str = ""
    font_size: float = 1.0       # 기본 크기 배율
    font: str = DEFAULT_FAMILY
    use_typography_font: bool = True
    position: str = "center"

    def __post_init__(self):
        _check_bool(self.enabled, "textOverlay.enabled")
        if not isinstance(self.content, str):
            raise InvalidConfig("textOverlay.content", "문자열이어야 함")
        _check_number(self.font_size, "textOverlay.fontSize")
        if self.font_size <= 0:
            raise InvalidConfig("textOverlay.fontSize", "0보다 커야 함")
        _check_family(self.font, "textOverlay.font")
        _check_bool(self.use_typography_font, "textOverlay.useTypographyFont")
        if self.position not in OVERLAY_POSITIONS:
            raise InvalidConfig("textOverlay.position", f"허용값이 아님 ({self.position!r})")

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.content)


@dataclass(frozen=True)
class DateEffects:
    """기준일 표시 효과 (강조 원, 지난 날짜 취소선)."""
    highlight: bool = False
    strikethrough: bool = False
    day: int | None = None       # 기준일 (1부터). None이면 효과 없음

    def __post_init__(self):
        _check_bool(self.highlight, "dateEffects.highlight")
        _check_bool(self.strikethrough, "dateEffects.strikethrough")
        if self.day is not None:
            _check_int(self.day, "dateEffects.day", 1, 31)


@dataclass(frozen=True)
class WallpaperConfig:
    """렌더링 1회분의 불변 설정. 변경은 dataclasses.replace로 새 값을 만든다."""
    month: int                   # 0~11
    year: int
    week_start: WeekStart = WeekStart.SUNDAY
    header_format: HeaderFormat = HeaderFormat.FULL
    text_color: str = "#ffffff"
    font_family: str = DEFAULT_FAMILY
    offset_x: float = 0.0        # -1~1 (범위 밖은 사용 시 clamp)
    offset_y: float = 0.0
    view_mode: ViewMode = ViewMode.DESKTOP
    calendar_scale: float = 1.0  # 0.5~1.5
    text_overlay: TextOverlay | None = None
    auto_text_color: bool = True
    date_effects: DateEffects | None = None

    def __post_init__(self):
        _check_int(self.month, "month", 0, 11)
        _check_int(self.year, "year", 1000, 9999)
        object.__setattr__(self, "week_start", _enum_value(WeekStart, self.week_start, "weekStart"))
        object.__setattr__(self, "header_format", _enum_value(HeaderFormat, self.header_format, "headerFormat"))
        object.__setattr__(self, "view_mode", _enum_value(ViewMode, self.view_mode, "viewMode"))
        if not isinstance(self.text_color, str) or not _HEX_COLOR.match(self.text_color):
            raise InvalidConfig("textColor", f"#RRGGBB 형식이 아님 ({self.text_color!r})")
        _check_family(self.font_family, "fontFamily")
        _check_number(self.offset_x, "offsetX")
        _check_number(self.offset_y, "offsetY")
        _check_number(self.calendar_scale, "calendarScale")
        if not 0.5 <= self.calendar_scale <= 1.5:
            raise InvalidConfig("calendarScale", f"0.5~1.5 범위를 벗어남 ({self.calendar_scale})")
        _check_bool(self.auto_text_color, "autoTextColor")
        if self.date_effects is not None and self.date_effects.day is not None:
            days = calendar.monthrange(self.year, self.month + 1)[1]
            if self.date_effects.day > days:
                raise InvalidConfig("dateEffects.day", f"해당 월은 {days}일까지임")

    @property
    def title_family(self) -> str:
        return _split_families(self.font_family)[0] or DEFAULT_FAMILY

    @property
    def body_family(self) -> str:
        return _split_families(self.font_family)[1]


# 원본 생성 API의 기본값 (month/year는 요청 시점 기준)
DEFAULT_WALLPAPER = {
    "weekStart": "sunday",
    "headerFormat": "full",
    "textColor": "#ffffff",
    "fontFamily": DEFAULT_FAMILY,
    "offsetX": 0,
    "offsetY": 0,
    "viewMode": "desktop",
    "calendarScale": 1,
    "autoTextColor": True,
    "textOverlay": {
        "enabled": False,
        "content": "",
        "fontSize": 1,
        "font": DEFAULT_FAMILY,
        "useTypographyFont": True,
        "position": "center",
    },
    "dateEffects": None,
}


def parse_wallpaper_config(data, today: date | None = None,
                           max_overlay_chars: int | None = None) -> WallpaperConfig:
    """요청 JSON(문자열 또는 dict)을 기본값과 병합해 WallpaperConfig로 만든다.

    textColor를 보내고 autoTextColor를 생략하면 autoTextColor는 false다.
    형식 오류는 모두 InvalidConfig로 보고한다.
    """
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data) if data else {}
        except ValueError as e:
            raise InvalidConfig("config", f"JSON 파싱 실패 ({e})") from None
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidConfig("config", "JSON 객체여야 함")

    today = today or date.today()
    defaults = {**DEFAULT_WALLPAPER, "month": today.month - 1, "year": today.year}
    if "textColor" in data:
        # 글자색을 직접 지정한 요청은 자동 대비를 끄는 것이 기본
        defaults["autoTextColor"] = False
    merged = _deep_merge(defaults, data)

    overlay = None
    overlay_data = merged.get("textOverlay")
    if overlay_data is not None:
        if not isinstance(overlay_data, dict):
            raise InvalidConfig("textOverlay", "객체여야 함")
        overlay = TextOverlay(
            enabled=overlay_data.get("enabled"),
            content=overlay_data.get("content"),
            font_size=overlay_data.get("fontSize"),
            font=overlay_data.get("font"),
            use_typography_font=overlay_data.get("useTypographyFont"),
            position=overlay_data.get("position"),
        )
        if max_overlay_chars is not None and len(overlay.content) > max_overlay_chars:
            raise InvalidConfig("textOverlay.content", f"{max_overlay_chars}자를 넘음")

    effects = None
    effects_data = merged.get("dateEffects")
    if effects_data is not None:
        if not isinstance(effects_data, dict):
            raise InvalidConfig("dateEffects", "객체여야 함")
        effects = DateEffects(
            highlight=effects_data.get("highlight", False),
            strikethrough=effects_data.get("strikethrough", False),
            day=effects_data.get("day"),
        )

    return WallpaperConfig(
        month=merged.get("month"),
        year=merged.get("year"),
        week_start=merged.get("weekStart"),
        header_format=merged.get("headerFormat"),
        text_color=merged.get("textColor"),
        font_family=merged.get("fontFamily"),
        offset_x=merged.get("offsetX"),
        offset_y=merged.get("offsetY"),
        view_mode=merged.get("viewMode"),
        calendar_scale=merged.get("calendarScale"),
        text_overlay=overlay,
        auto_text_color=merged.get("autoTextColor"),
        date_effects=effects,
    )


def wallpaper_to_dict(config: WallpaperConfig) -> dict:
    """WallpaperConfig를 요청 JSON 형식(camelCase)으로 되돌린다."""
    data = {
        "month": config.month,
        "year": config.year,
        "weekStart": config.week_start.value,
        "headerFormat": config.header_format.value,
        "textColor": config.text_color,
        "fontFamily": config.font_family,
        "offsetX": config.offset_x,
        "offsetY": config.offset_y,
        "viewMode": config.view_mode.value,
        "calendarScale": config.calendar_scale,
        "autoTextColor": config.auto_text_color,
        "textOverlay": None,
        "dateEffects": None,
    }
    if config.text_overlay is not None:
        o = config.text_overlay
        data["textOverlay"] = {
            "enabled": o.enabled,
            "content": o.content,
            "fontSize": o.font_size,
            "font": o.font,
            "useTypographyFont": o.use_typography_font,
            "position": o.position,
        }
    if config.date_effects is not None:
        e = config.date_effects
        data["dateEffects"] = {"highlight": e.highlight, "strikethrough": e.strikethrough, "day": e.day}
    return data
