"""
Perspective calibration - exact 4-point homography between camera and projector
"""
from itertools import combinations
from typing import Sequence

import cv2
import numpy as np

from core.logger import logger
from core.results import CalibrationError, Outcome
from .types import Homography

_COMPONENT = "PerspectiveCalibrator"

# Relative tolerance: |cross| compared against the product of the two edge lengths
COLLINEAR_TOLERANCE = 1e-9


class PerspectiveCalibrator:
    """Exact 4-point perspective transform (OpenCV), h33 normalized to 1"""

    @staticmethod
    def has_collinear_triple(points: Sequence[Sequence[float]]) -> bool:
        for a, b, c in combinations(points, 3):
            abx, aby = b[0] - a[0], b[1] - a[1]
            acx, acy = c[0] - a[0], c[1] - a[1]
            cross = abx * acy - aby * acx
            scale = np.hypot(abx, aby) * np.hypot(acx, acy)
            if scale == 0.0 or abs(cross) <= COLLINEAR_TOLERANCE * scale:
                return True
        return False

    @staticmethod
    def solve_homography(source_points: Sequence[Sequence[float]],
                         dest_points: Sequence[Sequence[float]]) -> Outcome[Homography]:
        """
        Solve H with dest ~ H @ source for exactly four ordered correspondences.

        Degenerate point sets and numerically singular systems are reported as
        SINGULAR_MATRIX; a wrong point count is a caller bug and raises.
        """
        if len(source_points) != 4 or len(dest_points) != 4:
            raise ValueError(
                f"solve_homography needs 4 source and 4 destination points, "
                f"got {len(source_points)} and {len(dest_points)}")

        src = np.asarray(source_points, dtype=np.float64).reshape(4, 2)
        dst = np.asarray(dest_points, dtype=np.float64).reshape(4, 2)

        if not (np.all(np.isfinite(src)) and np.all(np.isfinite(dst))):
            return PerspectiveCalibrator._fail("non-finite input point")
        if PerspectiveCalibrator.has_collinear_triple(src):
            return PerspectiveCalibrator._fail("source points contain a collinear triple")
        if PerspectiveCalibrator.has_collinear_triple(dst):
            return PerspectiveCalibrator._fail("destination points contain a collinear triple")

        try:
            matrix = cv2.getPerspectiveTransform(src.astype(np.float32), dst.astype(np.float32))
        except cv2.error as e:
            return PerspectiveCalibrator._fail(f"OpenCV could not solve the system: {e}")

        matrix = np.asarray(matrix, dtype=np.float64)
        if not np.all(np.isfinite(matrix)):
            return PerspectiveCalibrator._fail("solution is not finite")
        if abs(matrix[2, 2]) < 1e-15:
            return PerspectiveCalibrator._fail("solution has h33 = 0")
        matrix = matrix / matrix[2, 2]

        det = float(np.linalg.det(matrix))
        if abs(det) < Homography.SINGULAR_DET:
            return PerspectiveCalibrator._fail(f"determinant {det:.3e} is zero")

        homography = Homography(matrix)
        logger.debug(f"homography solved (det={det:.6g})", _COMPONENT)
        return Outcome.success(homography)

    @staticmethod
    def reprojection_error(homography: Homography,
                           source_points: Sequence[Sequence[float]],
                           dest_points: Sequence[Sequence[float]]) -> float:
        """Largest distance between a mapped source point and its destination"""
        mapped = homography.apply_many(source_points)
        errors = [np.hypot(m.x - d[0], m.y - d[1]) for m, d in zip(mapped, dest_points)]
        return float(max(errors)) if errors else 0.0

    @staticmethod
    def _fail(message: str) -> Outcome[Homography]:
        logger.warning(f"homography solve failed: SINGULAR_MATRIX ({message})", _COMPONENT)
        return Outcome.failure(CalibrationError.SINGULAR_MATRIX, message)

