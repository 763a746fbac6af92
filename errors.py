"""렌더링 엔진 오류 모듈 — 호출자에게 그대로 전달되는 오류 종류."""


class WallpaperError(Exception):
    """모든 엔진 오류의 기반 클래스."""

    status = 500


class InvalidConfig(WallpaperError):
    """설정값 형식/범위 오류. 그리기 전에 거부한다."""

    status = 400

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class ImageTooLarge(WallpaperError):
    """입력 바이트 수가 한도를 넘었다."""

    status = 413


class ImageDimensionsExceeded(WallpaperError):
    """헤더상 이미지 크기(가로·세로·픽셀 수)가 한도를 넘었다."""

    status = 413


class ImageDecodeFailure(WallpaperError):
    """손상되었거나 지원하지 않는 이미지."""

    status = 400


class FontLoadTimeout(WallpaperError):
    """폰트 준비 대기 시간 초과. 파이프라인은 기본 폰트로 대체한다."""

    def __init__(self, families: list[str], timeout: float):
        super().__init__(f"폰트 준비 시간 초과 ({timeout}s): {', '.join(families)}")
        self.families = families
        self.timeout = timeout


class RenderFailure(WallpaperError):
    """래스터라이저 내부 오류. 부분 결과는 반환하지 않는다."""

    status = 500
