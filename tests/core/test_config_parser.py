"""
Unit tests for calibration configuration parsing
"""
import unittest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from core.config import CalibrationConfig, ConfigParser, DetectionConfig


class TestDefaults(unittest.TestCase):

    def test_detection_defaults(self):
        config = DetectionConfig()
        self.assertEqual(config.time_budget_s, 2.5)
        self.assertEqual(config.min_area_fraction, 0.00002)
        self.assertEqual(config.max_area_fraction, 0.25)
        self.assertEqual(config.min_side_px, 3.0)
        self.assertEqual(config.min_markers, 1)
        self.assertTrue(config.use_fast_path)

    def test_calibration_defaults(self):
        config = ConfigParser().create_default_config()
        self.assertEqual((config.color_width, config.color_height), (1920, 1080))
        self.assertEqual(config.touch_threshold_m, 0.03)
        self.assertEqual(config.required_marker_ids, (0, 1, 2, 3))
        self.assertEqual(config.marker_anchor, "center")
        self.assertIsInstance(config.detection, DetectionConfig)

    def test_detection_config_not_shared(self):
        a = CalibrationConfig()
        b = CalibrationConfig()
        a.detection.time_budget_s = 1.0
        self.assertEqual(b.detection.time_budget_s, 2.5)


class TestConfigParser(unittest.TestCase):

    def setUp(self):
        self.parser = ConfigParser()

    def test_parse_basic_settings(self):
        settings = [
            "color_width=1280",
            "color_height=720",
            "touch_threshold_m=0.02",
            "marker_anchor=top_left",
            "required_marker_ids=4, 5, 6, 7",
        ]

        config = self.parser.parse_settings(settings)

        self.assertEqual(config.color_width, 1280)
        self.assertEqual(config.color_height, 720)
        self.assertEqual(config.touch_threshold_m, 0.02)
        self.assertEqual(config.marker_anchor, "top_left")
        self.assertEqual(config.required_marker_ids, (4, 5, 6, 7))

    def test_parse_touch_scan_settings(self):
        defaults = self.parser.create_default_config()
        self.assertEqual((defaults.touch_sample_stride, defaults.touch_cluster_px), (4, 20.0))
        self.assertEqual((defaults.touch_min_blob, defaults.touch_max_blob), (100, 1000))

        config = self.parser.parse_settings([
            "touch_sample_stride=2",
            "touch_cluster_px=12.5",
            "touch_min_blob=40",
            "touch_max_blob=oops",
        ])

        self.assertEqual(config.touch_sample_stride, 2)
        self.assertEqual(config.touch_cluster_px, 12.5)
        self.assertEqual(config.touch_min_blob, 40)
        self.assertEqual(config.touch_max_blob, 1000)

    def test_parse_detection_settings(self):
        settings = [
            "detection.time_budget_s=1.5",
            "detection.min_side_px = 5",
            "detection.min_markers=4",
            "detection.use_fast_path=off",
        ]

        config = self.parser.parse_settings(settings)

        self.assertEqual(config.detection.time_budget_s, 1.5)
        self.assertEqual(config.detection.min_side_px, 5.0)
        self.assertEqual(config.detection.min_markers, 4)
        self.assertFalse(config.detection.use_fast_path)

    def test_skips_comments_unknown_and_malformed_lines(self):
        settings = [
            "# tuned on site",
            "",
            "unknown_key=3",
            "not a setting",
            "color_width=wide",
            "detection.use_fast_path=maybe",
            "required_marker_ids=",
            "marker_anchor=bottom_right",
            "touch_threshold_m=0.05",
        ]

        config = self.parser.parse_settings(settings)

        self.assertEqual(config.color_width, 1920)
        self.assertTrue(config.detection.use_fast_path)
        self.assertEqual(config.required_marker_ids, (0, 1, 2, 3))
        self.assertEqual(config.marker_anchor, "center")
        self.assertEqual(config.touch_threshold_m, 0.05)

    def test_to_settings_parses_back(self):
        original = CalibrationConfig(color_width=640, touch_threshold_m=0.04, marker_anchor="top_left")
        original.detection.time_budget_s = 0.75
        original.detection.use_fast_path = False

        lines = self.parser.to_settings(original)
        parsed = self.parser.parse_settings(lines)

        self.assertIn("detection.use_fast_path=false", lines)
        self.assertEqual(parsed.color_width, 640)
        self.assertEqual(parsed.touch_threshold_m, 0.04)
        self.assertEqual(parsed.marker_anchor, "top_left")
        self.assertEqual(parsed.detection.time_budget_s, 0.75)
        self.assertFalse(parsed.detection.use_fast_path)


if __name__ == '__main__':
    unittest.main()
