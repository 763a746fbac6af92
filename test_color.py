"""밝기 분석 테스트 — 휘도 계산과 글자색 선택."""

import unittest

from PIL import Image

from content.color import (
    analysis_box,
    average_luminance,
    contrast_color,
    pick_text_color,
    relative_luminance,
    srgb_to_linear,
)


class TestColor(unittest.TestCase):

    def test_srgb_to_linear(self):
        self.assertEqual(srgb_to_linear(0), 0)
        self.assertAlmostEqual(srgb_to_linear(1), 1)
        self.assertAlmostEqual(srgb_to_linear(0.03), 0.03 / 12.92)
        self.assertAlmostEqual(srgb_to_linear(0.5), 0.2140, delta=1e-4)

    def test_relative_luminance(self):
        test_cases = [
            ((255, 255, 255), 1.0),
            ((0, 0, 0), 0.0),
            ((255, 0, 0), 0.2126),
            ((0, 255, 0), 0.7152),
            ((0, 0, 255), 0.0722),
        ]
        for rgb, expected in test_cases:
            with self.subTest(rgb=rgb):
                self.assertAlmostEqual(relative_luminance(rgb), expected, places=4)

    def test_pick_text_color(self):
        test_cases = [
            ((255, 255, 255), "#000000"),
            ((0, 0, 0), "#FFFFFF"),
            ((128, 128, 128), "#FFFFFF"),
            ((230, 230, 230), "#000000"),
            ((0, 0, 255), "#FFFFFF"),
            ((255, 255, 0), "#000000"),
        ]
        for rgb, expected in test_cases:
            with self.subTest(rgb=rgb):
                self.assertEqual(pick_text_color(Image.new("RGB", (80, 60), rgb)), expected)

    def test_only_center_is_sampled(self):
        img = Image.new("RGB", (100, 80), (0, 0, 0))
        img.paste((255, 255, 255), analysis_box(img.size))
        self.assertAlmostEqual(average_luminance(img, analysis_box(img.size)), 1.0)
        self.assertEqual(pick_text_color(img), "#000000")

    def test_analysis_box(self):
        self.assertEqual(analysis_box((100, 80)), (25, 20, 75, 60))
        self.assertEqual(analysis_box((1, 1)), (0, 0, 1, 1))

    def test_threshold(self):
        self.assertEqual(contrast_color(0.3), "#FFFFFF")
        self.assertEqual(contrast_color(0.3, threshold=0.2), "#000000")
        self.assertEqual(contrast_color(0.5), "#000000")

    def test_rgba_input(self):
        img = Image.new("RGBA", (40, 40), (255, 255, 255, 255))
        self.assertEqual(pick_text_color(img), "#000000")


if __name__ == "__main__":
    unittest.main()
