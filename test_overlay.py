"""오버레이 테스트 — 9분할 위치, 줄바꿈, 비활성 조건."""

import unittest

from config import TextOverlay, WallpaperConfig
from content.overlay import draw_overlay, overlay_anchor, overlay_top
from renderer.canvas import RasterCanvas
from renderer.fonts import FontRegistry
from renderer.layout import plan_layout


class TestOverlayPosition(unittest.TestCase):

    def setUp(self):
        self.layout = plan_layout(1000, 500)

    def test_anchor(self):
        test_cases = [
            ("top-left", 50, "la"),
            ("middle-left", 50, "la"),
            ("bottom-right", 950, "ra"),
            ("top-center", 500, "ma"),
            ("center", 500, "ma"),
        ]
        for position, x, anchor in test_cases:
            with self.subTest(position=position):
                actual_x, actual_anchor = overlay_anchor(position, self.layout)
                self.assertAlmostEqual(actual_x, x)
                self.assertEqual(actual_anchor, anchor)

    def test_top(self):
        test_cases = [
            ("top-right", 25),
            ("bottom-left", 475 - 100),
            ("middle-right", 200),
            ("center", 200),
        ]
        for position, y in test_cases:
            with self.subTest(position=position):
                self.assertAlmostEqual(overlay_top(position, self.layout, 100), y)


class TestDrawOverlay(unittest.TestCase):

    def setUp(self):
        self.fonts = FontRegistry(fallback_path="")
        self.layout = plan_layout(640, 360)

    def draw(self, overlay):
        surface = RasterCanvas(640, 360)
        config = WallpaperConfig(month=0, year=2025, text_overlay=overlay)
        lines = draw_overlay(surface, self.layout, config, self.fonts, "#ffffff")
        return surface, lines

    def test_inactive(self):
        test_cases = [
            None,
            TextOverlay(enabled=False, content="hello"),
            TextOverlay(enabled=True, content=""),
        ]
        for overlay in test_cases:
            with self.subTest(overlay=overlay):
                surface, lines = self.draw(overlay)
                self.assertEqual(lines, [])
                self.assertIsNone(surface.to_rgb().getbbox())

    def test_draws_lines(self):
        surface, lines = self.draw(TextOverlay(enabled=True, content="first\n\nsecond", position="top-left"))
        self.assertEqual(lines, ["first", "", "second"])
        bbox = surface.to_rgb().getbbox()
        self.assertIsNotNone(bbox)
        self.assertLess(bbox[1], 180)

    def test_long_text_wraps_inside_safe_area(self):
        text = " ".join(["word"] * 80)
        _, lines = self.draw(TextOverlay(enabled=True, content=text, position="bottom-center"))
        self.assertGreater(len(lines), 1)


if __name__ == "__main__":
    unittest.main()
