"""
Pairs detected camera markers with the projector positions they were drawn at.
"""
from dataclasses import dataclass
from typing import Sequence, Tuple

from core.results import CalibrationError, Outcome
from cv.aruco.calculator import MarkerCalculator
from cv.aruco.types import DetectionResult
from cv.interfaces import IMarkerSurface
from geometry.types import Point2D


@dataclass(frozen=True)
class Correspondences:
    marker_ids: Tuple[int, ...]
    camera_points: Tuple[Point2D, ...]
    projector_points: Tuple[Point2D, ...]


def collect_correspondences(detection: DetectionResult, surface: IMarkerSurface,
                            required_ids: Sequence[int] = (0, 1, 2, 3),
                            anchor: str = "center") -> Outcome[Correspondences]:
    """
    Marker required_ids[i] pairs with projector marker index i.

    A sweep that ran out of time reports DETECTION_TIMEOUT; anything else short
    of the full ID set reports INSUFFICIENT_MARKERS.
    """
    if not detection.success and detection.timed_out:
        return Outcome.failure(
            CalibrationError.DETECTION_TIMEOUT,
            f"marker sweep timed out after {detection.attempts} attempts ({detection.elapsed_time:.2f}s)")

    found = detection.by_id()
    missing = [marker_id for marker_id in required_ids if marker_id not in found]
    if missing:
        return Outcome.failure(
            CalibrationError.INSUFFICIENT_MARKERS,
            f"missing marker IDs {missing}, detected {sorted(found)}")

    if surface.marker_count() < len(required_ids):
        return Outcome.failure(
            CalibrationError.INSUFFICIENT_MARKERS,
            f"projector shows {surface.marker_count()} markers, {len(required_ids)} required")

    camera_points = tuple(MarkerCalculator.anchor_point(found[marker_id], anchor) for marker_id in required_ids)
    projector_points = tuple(surface.get_rendered_marker_center(index) for index in range(len(required_ids)))
    return Outcome.success(Correspondences(tuple(required_ids), camera_points, projector_points))
