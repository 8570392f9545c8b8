"""
Unit tests for detector profiles, preprocessing variants and the search plan
"""
import unittest
import sys
import os

import cv2
import numpy as np

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from cv.aruco.preprocessing import IDENTITY, build_variants, to_gray
from cv.aruco.profiles import (DetectorProfile, FAST_DICTIONARIES, FAST_PROFILES,
                               SWEEP_DICTIONARIES, SWEEP_PROFILES)
from cv.aruco.search import STAGE_FAST, STAGE_SWEEP, build_search_plan


class TestProfiles(unittest.TestCase):

    def test_profile_counts_and_names(self):
        self.assertEqual(len(FAST_PROFILES), 4)
        self.assertEqual([p.name for p in SWEEP_PROFILES], ["default", "aggressive", "very_aggressive"])

    def test_every_profile_builds(self):
        for profile in FAST_PROFILES + SWEEP_PROFILES:
            params = profile.build()
            for key, value in profile.overrides.items():
                self.assertAlmostEqual(float(getattr(params, key)), float(value), msg=f"{profile.name}.{key}")

    def test_unknown_override_rejected(self):
        with self.assertRaises(AttributeError):
            DetectorProfile("broken", {"noSuchParameter": 1}).build()

    def test_dictionaries(self):
        self.assertEqual(FAST_DICTIONARIES[0].name, "DICT_4X4_50")
        self.assertEqual(SWEEP_DICTIONARIES[:3], FAST_DICTIONARIES)
        self.assertIn("DICT_APRILTAG_36h11", [d.name for d in SWEEP_DICTIONARIES])
        for spec in SWEEP_DICTIONARIES:
            self.assertIsNotNone(spec.build())


class TestPreprocessing(unittest.TestCase):

    def setUp(self):
        rng = np.random.default_rng(5)
        self.gray = rng.integers(0, 256, size=(60, 80), dtype=np.uint8)

    def test_variants_keep_size_unless_resizing(self):
        variants = build_variants()
        self.assertIs(variants[0], IDENTITY)
        for variant in variants:
            out = variant.apply(self.gray)
            self.assertEqual(out.dtype, np.uint8, variant.name)
            expected = (int(round(60 * variant.scale)), int(round(80 * variant.scale)))
            self.assertEqual(out.shape, expected, variant.name)

    def test_variant_names_unique_and_resizes_last(self):
        variants = build_variants()
        names = [v.name for v in variants]
        self.assertEqual(len(names), len(set(names)))
        self.assertEqual([v.scale for v in variants[-4:]], [0.5, 0.75, 1.5, 2.0])
        self.assertTrue(all(v.scale == 1.0 for v in variants[:-4]))

    def test_to_gray_inputs(self):
        bgr = cv2.cvtColor(self.gray, cv2.COLOR_GRAY2BGR)
        bgra = cv2.cvtColor(self.gray, cv2.COLOR_GRAY2BGRA)
        np.testing.assert_array_equal(to_gray(self.gray), self.gray)
        np.testing.assert_array_equal(to_gray(bgr), self.gray)
        np.testing.assert_array_equal(to_gray(bgra), self.gray)

    def test_to_gray_rejects_empty(self):
        with self.assertRaises(ValueError):
            to_gray(np.zeros((0, 0), dtype=np.uint8))
        with self.assertRaises(ValueError):
            to_gray(np.zeros((4, 4, 2), dtype=np.uint8))


class TestSearchPlan(unittest.TestCase):

    def test_fast_path_first_then_sweep(self):
        variants = build_variants()
        plan = build_search_plan(variants=variants)

        fast_count = len(FAST_PROFILES) * len(FAST_DICTIONARIES)
        sweep_count = len(variants) * len(SWEEP_PROFILES) * len(SWEEP_DICTIONARIES)
        self.assertEqual(len(plan), fast_count + sweep_count)
        self.assertTrue(all(c.stage == STAGE_FAST and c.variant is IDENTITY for c in plan[:fast_count]))
        self.assertTrue(all(c.stage == STAGE_SWEEP for c in plan[fast_count:]))
        self.assertEqual(plan[0].dictionary.name, "DICT_4X4_50")
        self.assertEqual(plan[0].strategy_name, "fast:gray")

    def test_sweep_nesting_order(self):
        variants = build_variants()[:2]
        plan = build_search_plan(variants=variants, use_fast_path=False)

        per_variant = len(SWEEP_PROFILES) * len(SWEEP_DICTIONARIES)
        self.assertEqual(len(plan), 2 * per_variant)
        self.assertTrue(all(c.variant is variants[0] for c in plan[:per_variant]))
        self.assertEqual(plan[0].profile.name, "default")
        self.assertEqual(plan[1].profile.name, "default")
        self.assertEqual(plan[1].dictionary, SWEEP_DICTIONARIES[1])
        self.assertEqual(plan[len(SWEEP_DICTIONARIES)].profile.name, "aggressive")

    def test_default_plan_has_no_repeated_attempts(self):
        plan = build_search_plan()
        keys = [(c.variant.name, c.profile.signature, c.dictionary.name) for c in plan]
        self.assertEqual(len(keys), len(set(keys)))

    def test_sweep_skips_attempts_the_fast_path_ran(self):
        stock = DetectorProfile("fast_stock")
        plan = build_search_plan(fast_profiles=[stock], fast_dictionaries=FAST_DICTIONARIES,
                                 variants=[IDENTITY], sweep_profiles=SWEEP_PROFILES[:1],
                                 sweep_dictionaries=SWEEP_DICTIONARIES[:4])

        self.assertEqual(len(plan), 4)
        self.assertEqual([c.stage for c in plan], [STAGE_FAST] * 3 + [STAGE_SWEEP])
        self.assertEqual(plan[-1].dictionary, SWEEP_DICTIONARIES[3])

    def test_fast_profiles_are_relaxed(self):
        for profile in FAST_PROFILES:
            self.assertTrue(profile.overrides, profile.name)
            self.assertLess(profile.overrides["minMarkerPerimeterRate"], 0.03, profile.name)

    def test_custom_plan(self):
        plan = build_search_plan(fast_profiles=FAST_PROFILES[:1], fast_dictionaries=FAST_DICTIONARIES[:1],
                                 variants=[IDENTITY], sweep_profiles=SWEEP_PROFILES[:1],
                                 sweep_dictionaries=SWEEP_DICTIONARIES[:1])
        self.assertEqual([c.strategy_name for c in plan], ["fast:gray", "sweep:gray"])


if __name__ == '__main__':
    unittest.main()
