"""
Unit tests for the 4-point perspective calibrator and the Homography value
"""
import unittest
from unittest.mock import patch
import sys
import os

import cv2
import numpy as np

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from core.results import CalibrationError
from geometry.homography import PerspectiveCalibrator
from geometry.types import Homography, Point2D


CAMERA = [(412.0, 230.0), (1490.0, 262.0), (1455.0, 870.0), (398.0, 835.0)]
PROJECTOR = [(100.0, 100.0), (1820.0, 100.0), (1820.0, 980.0), (100.0, 980.0)]


class TestSolveHomography(unittest.TestCase):

    def test_reproduces_destination_points(self):
        outcome = PerspectiveCalibrator.solve_homography(CAMERA, PROJECTOR)

        self.assertTrue(outcome.ok)
        homography = outcome.value
        for src, dst in zip(CAMERA, PROJECTOR):
            mapped = homography.apply(src)
            self.assertAlmostEqual(mapped.x, dst[0], places=6)
            self.assertAlmostEqual(mapped.y, dst[1], places=6)
        self.assertLess(PerspectiveCalibrator.reprojection_error(homography, CAMERA, PROJECTOR), 1e-6)

    def test_h33_fixed_to_one(self):
        homography = PerspectiveCalibrator.solve_homography(CAMERA, PROJECTOR).unwrap()
        self.assertEqual(homography.matrix[2, 2], 1.0)

    def test_matches_opencv(self):
        expected = cv2.getPerspectiveTransform(np.float32(CAMERA), np.float32(PROJECTOR))
        homography = PerspectiveCalibrator.solve_homography(CAMERA, PROJECTOR).unwrap()
        np.testing.assert_allclose(homography.matrix, expected, rtol=1e-3, atol=1e-6)

    def test_collinear_source_points_are_singular(self):
        source = [(0, 0), (1, 1), (2, 2), (0, 5)]
        outcome = PerspectiveCalibrator.solve_homography(source, PROJECTOR)
        self.assertEqual(outcome.error, CalibrationError.SINGULAR_MATRIX)

    def test_collinear_destination_points_are_singular(self):
        dest = [(0, 0), (10, 0), (20, 0), (0, 10)]
        outcome = PerspectiveCalibrator.solve_homography(CAMERA, dest)
        self.assertEqual(outcome.error, CalibrationError.SINGULAR_MATRIX)

    def test_repeated_point_is_singular(self):
        source = [(0, 0), (0, 0), (10, 10), (0, 10)]
        outcome = PerspectiveCalibrator.solve_homography(source, PROJECTOR)
        self.assertEqual(outcome.error, CalibrationError.SINGULAR_MATRIX)

    def test_non_finite_point_is_singular(self):
        source = [(float('nan'), 0), (10, 0), (10, 10), (0, 10)]
        outcome = PerspectiveCalibrator.solve_homography(source, PROJECTOR)
        self.assertEqual(outcome.error, CalibrationError.SINGULAR_MATRIX)

    def test_opencv_failure_is_singular(self):
        with patch('geometry.homography.cv2.getPerspectiveTransform', side_effect=cv2.error("solve failed")):
            outcome = PerspectiveCalibrator.solve_homography(CAMERA, PROJECTOR)
        self.assertEqual(outcome.error, CalibrationError.SINGULAR_MATRIX)

    def test_opencv_result_is_normalized(self):
        scaled = cv2.getPerspectiveTransform(np.float32(CAMERA), np.float32(PROJECTOR)) * 4.0
        with patch('geometry.homography.cv2.getPerspectiveTransform', return_value=scaled):
            homography = PerspectiveCalibrator.solve_homography(CAMERA, PROJECTOR).unwrap()
        self.assertAlmostEqual(homography.matrix[2, 2], 1.0)
        self.assertLess(PerspectiveCalibrator.reprojection_error(homography, CAMERA, PROJECTOR), 1e-6)

    def test_zero_solution_is_singular(self):
        with patch('geometry.homography.cv2.getPerspectiveTransform', return_value=np.zeros((3, 3))):
            outcome = PerspectiveCalibrator.solve_homography(CAMERA, PROJECTOR)
        self.assertEqual(outcome.error, CalibrationError.SINGULAR_MATRIX)

    def test_wrong_point_count_raises(self):
        with self.assertRaises(ValueError):
            PerspectiveCalibrator.solve_homography(CAMERA[:3], PROJECTOR[:3])
        with self.assertRaises(ValueError):
            PerspectiveCalibrator.solve_homography(CAMERA, PROJECTOR + [(0, 0)])

    def test_has_collinear_triple(self):
        self.assertTrue(PerspectiveCalibrator.has_collinear_triple([(0, 0), (1, 0), (5, 1), (2, 0)]))
        self.assertFalse(PerspectiveCalibrator.has_collinear_triple(CAMERA))


class TestHomographyValue(unittest.TestCase):

    def test_singular_matrix_rejected(self):
        with self.assertRaises(ValueError):
            Homography(np.zeros((3, 3)))
        with self.assertRaises(ValueError):
            Homography(np.eye(2))
        with self.assertRaises(ValueError):
            Homography(np.array([[1, 0, 0], [0, 1, 0], [0, 0, np.inf]]))

    def test_matrix_is_read_only_copy(self):
        source = np.eye(3)
        homography = Homography(source)
        source[0, 0] = 5.0
        self.assertEqual(homography.matrix[0, 0], 1.0)
        with self.assertRaises(ValueError):
            homography.matrix[0, 0] = 2.0

    def test_inverse_maps_back(self):
        homography = PerspectiveCalibrator.solve_homography(CAMERA, PROJECTOR).unwrap()
        back = homography.inverse().apply_many(PROJECTOR)
        for point, expected in zip(back, CAMERA):
            self.assertAlmostEqual(point.x, expected[0], places=5)
            self.assertAlmostEqual(point.y, expected[1], places=5)

    def test_identity_and_to_list(self):
        identity = Homography.identity()
        self.assertEqual(identity.apply((3.5, -2.0)), Point2D(3.5, -2.0))
        self.assertEqual(identity.to_list(), [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
        self.assertEqual(identity.apply_many([]), [])


if __name__ == '__main__':
    unittest.main()
