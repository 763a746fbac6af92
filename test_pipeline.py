"""파이프라인 테스트 — 내보내기, 입력 검사, 오류 처리."""

import unittest
from io import BytesIO
from unittest import mock

from PIL import Image

from config import DateEffects, TextOverlay, ViewMode, WallpaperConfig
from errors import (
    ImageDecodeFailure,
    ImageDimensionsExceeded,
    ImageTooLarge,
    InvalidConfig,
    RenderFailure,
)
from pipeline import (
    EXPORT_RESOLUTIONS,
    analysis_size,
    analyze_background,
    compose_wallpaper,
    export_all,
    export_filename,
    export_wallpaper,
    render_wallpaper,
    resolve_resolution,
)
from renderer.canvas import PreviewCanvas, RasterCanvas
from renderer.fonts import FontRegistry


def png_bytes(size=(64, 48), color=(255, 255, 255)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def striped(size=(3840, 2160)) -> Image.Image:
    """1px 가로 줄무늬 (흰색, 회색 번갈아). 리샘플링에 따라 평균 밝기가 흔들린다."""
    column = Image.new("RGB", (1, size[1]))
    column.putdata([(255, 255, 255) if y % 2 == 0 else (170, 170, 170) for y in range(size[1])])
    return column.resize(size, Image.Resampling.NEAREST)


class BrokenFonts(FontRegistry):
    def get(self, stack, size, weight=None):
        raise RuntimeError("broken font")


class TestExport(unittest.TestCase):

    def setUp(self):
        self.fonts = FontRegistry(fallback_path="")
        self.config = WallpaperConfig(month=0, year=2025)

    def test_resolutions(self):
        test_cases = [
            (ViewMode.DESKTOP, "hd", (1280, 720)),
            (ViewMode.DESKTOP, "fhd", (1920, 1080)),
            (ViewMode.DESKTOP, "4k", (3840, 2160)),
            (ViewMode.MOBILE, "hd", (720, 1280)),
            (ViewMode.MOBILE, "fhd", (1080, 1920)),
            (ViewMode.MOBILE, "4k", (1440, 2560)),
        ]
        for mode, name, expected in test_cases:
            with self.subTest(mode=mode, name=name):
                self.assertEqual(resolve_resolution(mode, name), expected)
        with self.assertRaises(InvalidConfig):
            resolve_resolution(ViewMode.DESKTOP, "8k")

    def test_filename(self):
        self.assertEqual(export_filename(self.config), "calendar-2025-01.png")
        mobile = WallpaperConfig(month=11, year=2025, view_mode=ViewMode.MOBILE)
        self.assertEqual(export_filename(mobile), "calendar-2025-12-mobile.png")

    def test_export_png(self):
        png = export_wallpaper(None, self.config, self.fonts, "hd")
        self.assertTrue(png.startswith(b"\x89PNG"))
        with Image.open(BytesIO(png)) as img:
            self.assertEqual(img.size, EXPORT_RESOLUTIONS[ViewMode.DESKTOP]["hd"])

    def test_export_is_deterministic(self):
        config = WallpaperConfig(
            month=1, year=2024,
            text_overlay=TextOverlay(enabled=True, content="hello world", position="bottom-left"),
            date_effects=DateEffects(highlight=True, strikethrough=True, day=29),
        )
        background = png_bytes(color=(40, 90, 160))
        first = export_wallpaper(background, config, self.fonts, "hd")
        second = export_wallpaper(background, config, self.fonts, "hd")
        self.assertEqual(first, second)

    def test_export_all_decodes_once(self):
        mobile = WallpaperConfig(month=0, year=2025, view_mode=ViewMode.MOBILE)
        results = export_all(png_bytes(), mobile, self.fonts, ["hd", "fhd"])
        self.assertEqual(list(results), ["hd", "fhd"])
        with Image.open(BytesIO(results["fhd"])) as img:
            self.assertEqual(img.size, (1080, 1920))

    def test_export_all_uses_settings(self):
        settings = {"export": {"resolutions": ["hd"]}}
        results = export_all(None, self.config, self.fonts, settings=settings)
        self.assertEqual(list(results), ["hd"])

    def test_render_failure(self):
        with self.assertRaises(RenderFailure):
            render_wallpaper(None, self.config, BrokenFonts(fallback_path=""), (320, 180))


class TestTextColor(unittest.TestCase):

    def setUp(self):
        self.fonts = FontRegistry(fallback_path="")

    def compose(self, background, **kwargs):
        config = WallpaperConfig(month=0, year=2025, text_color="#123456", **kwargs)
        return compose_wallpaper(RasterCanvas(320, 180), background, config, self.fonts)

    def test_auto_color(self):
        test_cases = [
            ((255, 255, 255), "#000000"),
            ((0, 0, 0), "#FFFFFF"),
            ((20, 30, 60), "#FFFFFF"),
        ]
        for rgb, expected in test_cases:
            with self.subTest(rgb=rgb):
                self.assertEqual(self.compose(Image.new("RGB", (200, 100), rgb)), expected)

    def test_manual_color(self):
        white = Image.new("RGB", (200, 100), (255, 255, 255))
        self.assertEqual(self.compose(white, auto_text_color=False), "#123456")

    def test_no_background_keeps_color(self):
        self.assertEqual(self.compose(None), "#123456")

    def test_analyzed_color_is_reused(self):
        config = WallpaperConfig(month=0, year=2025)
        white = Image.new("RGB", (200, 100), (255, 255, 255))
        color = compose_wallpaper(RasterCanvas(320, 180), white, config, self.fonts,
                                  analyzed_color="#FFFFFF")
        self.assertEqual(color, "#FFFFFF")


class TestAnalysisPerBackground(unittest.TestCase):

    def setUp(self):
        self.fonts = FontRegistry(fallback_path="")
        self.config = WallpaperConfig(month=0, year=2025)
        self.background = striped()

    def test_analysis_size(self):
        test_cases = [
            ((3840, 2160), (1024, 576)),
            ((1080, 1920), (576, 1024)),
            ((200, 100), (200, 100)),
        ]
        for size, expected in test_cases:
            with self.subTest(size=size):
                self.assertEqual(analysis_size(Image.new("RGB", size)), expected)

    def test_same_color_on_every_surface(self):
        expected = analyze_background(self.background)
        surfaces = [
            RasterCanvas(1280, 720),
            RasterCanvas(1920, 1080),
            RasterCanvas(3840, 2160),
            PreviewCanvas(960, 540),
        ]
        for surface in surfaces:
            with self.subTest(surface=type(surface).__name__, size=surface.size):
                color = compose_wallpaper(surface, self.background, self.config, self.fonts)
                self.assertEqual(color, expected)

    def test_export_all_uses_one_color(self):
        with mock.patch("pipeline.analyze_background", wraps=analyze_background) as analyze:
            with self.assertLogs("pipeline", level="INFO") as logs:
                results = export_all(self.background, self.config, self.fonts, ["hd", "fhd", "4k"])
        self.assertEqual(set(results), {"hd", "fhd", "4k"})
        analyze.assert_called_once()
        colors = {
            line.split("글자색 ")[1].split(",")[0]
            for line in logs.output if "렌더링 완료" in line
        }
        self.assertEqual(colors, {analyze_background(self.background)})

    def test_manual_color_skips_analysis(self):
        config = WallpaperConfig(month=0, year=2025, auto_text_color=False)
        with mock.patch("pipeline.analyze_background") as analyze:
            export_all(self.background, config, self.fonts, ["hd"])
        analyze.assert_not_called()


class TestBackgroundGuards(unittest.TestCase):

    def setUp(self):
        self.fonts = FontRegistry(fallback_path="")
        self.config = WallpaperConfig(month=0, year=2025)

    def export(self, data, limits):
        return export_wallpaper(data, self.config, self.fonts, "hd", {"limits": limits})

    def test_errors(self):
        test_cases = [
            (b"\x00" * 2000, {"max_input_bytes": 1000}, ImageTooLarge),
            (b"not an image", {}, ImageDecodeFailure),
            (b"", {}, ImageDecodeFailure),
            (png_bytes()[:60], {}, ImageDecodeFailure),
            (png_bytes((100, 10)), {"max_dimension": 50}, ImageDimensionsExceeded),
            (png_bytes((100, 10)), {"max_pixels": 500}, ImageDimensionsExceeded),
        ]
        for data, limits, error in test_cases:
            with self.subTest(error=error.__name__, limits=limits):
                with self.assertRaises(error):
                    self.export(data, limits)

    def test_error_status(self):
        self.assertEqual(ImageTooLarge.status, 413)
        self.assertEqual(ImageDimensionsExceeded.status, 413)
        self.assertEqual(ImageDecodeFailure.status, 400)
        self.assertEqual(InvalidConfig.status, 400)
        self.assertEqual(RenderFailure.status, 500)

    def test_transparent_background(self):
        buf = BytesIO()
        Image.new("RGBA", (50, 50), (255, 0, 0, 0)).save(buf, format="PNG")
        png = self.export(buf.getvalue(), {})
        self.assertTrue(png.startswith(b"\x89PNG"))


if __name__ == "__main__":
    unittest.main()
