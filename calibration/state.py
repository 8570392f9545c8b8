"""
Calibration records.

CalibrationState is the product of a successful calibration. It is built
whole by CalibrationState.create() and replaced whole; nothing mutates it.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

import numpy as np

from cv.aruco.types import TouchArea
from geometry.plane import PlaneInvariantError
from geometry.touch import TouchBlob, TouchProximityTester, TouchReading
from geometry.types import Homography, PlaneEquation, Point2D, Point3D

CORNER_COUNT = 4


@dataclass(frozen=True)
class SurfaceCapture:
    """Four picked surface corners (TL, TR, BR, BL) and the plane through them"""
    corner_points_normalized: Tuple[Point2D, ...]
    corner_points_physical: Tuple[Point3D, ...]
    plane: PlaneEquation


@dataclass(frozen=True)
class ProjectorMapping:
    """Camera -> projector homography and the correspondences it was solved from"""
    homography: Homography
    marker_ids: Tuple[int, ...]
    camera_points: Tuple[Point2D, ...]
    projector_points: Tuple[Point2D, ...]
    reprojection_error: float
    touch_area: Optional[TouchArea] = None


@dataclass(frozen=True)
class CalibrationState:
    plane: PlaneEquation
    corner_points_normalized: Tuple[Point2D, ...]
    corner_points_physical: Tuple[Point3D, ...]
    homography: Homography
    touch_threshold_meters: float
    camera_marker_anchors: Tuple[Point2D, ...] = ()
    projector_marker_centers: Tuple[Point2D, ...] = ()
    marker_ids: Tuple[int, ...] = ()
    touch_area: Optional[TouchArea] = None
    saved_utc: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(cls, plane: PlaneEquation,
               corner_points_normalized: Sequence[Sequence[float]],
               corner_points_physical: Sequence[Sequence[float]],
               homography: Homography,
               touch_threshold_meters: float,
               camera_marker_anchors: Sequence[Sequence[float]] = (),
               projector_marker_centers: Sequence[Sequence[float]] = (),
               marker_ids: Sequence[int] = (),
               touch_area: Optional[TouchArea] = None,
               saved_utc: Optional[datetime] = None) -> 'CalibrationState':
        """Validated constructor; a malformed record is a caller bug and raises"""
        if len(corner_points_normalized) != CORNER_COUNT:
            raise ValueError(f"expected {CORNER_COUNT} normalized corners, got {len(corner_points_normalized)}")
        if len(corner_points_physical) != CORNER_COUNT:
            raise ValueError(f"expected {CORNER_COUNT} physical corners, got {len(corner_points_physical)}")
        if not plane.is_unit():
            raise PlaneInvariantError(f"plane normal is not unit length: {plane.normal}")
        if not math.isfinite(touch_threshold_meters) or touch_threshold_meters <= 0:
            raise ValueError(f"touch threshold must be positive, got {touch_threshold_meters}")
        if len(camera_marker_anchors) != len(projector_marker_centers):
            raise ValueError("camera anchors and projector centers must pair up")

        return cls(
            plane=plane,
            corner_points_normalized=tuple(Point2D(float(p[0]), float(p[1])) for p in corner_points_normalized),
            corner_points_physical=tuple(Point3D(float(p[0]), float(p[1]), float(p[2]))
                                         for p in corner_points_physical),
            homography=homography,
            touch_threshold_meters=float(touch_threshold_meters),
            camera_marker_anchors=tuple(Point2D(float(p[0]), float(p[1])) for p in camera_marker_anchors),
            projector_marker_centers=tuple(Point2D(float(p[0]), float(p[1])) for p in projector_marker_centers),
            marker_ids=tuple(int(i) for i in marker_ids),
            touch_area=touch_area,
            saved_utc=saved_utc or datetime.now(timezone.utc),
        )

    def camera_to_projector(self, point: Sequence[float]) -> Point2D:
        return self.homography.apply(point)

    def evaluate_touch(self, point: Sequence[float]) -> TouchReading:
        return TouchProximityTester.evaluate(point, self.plane, self.touch_threshold_meters)

    def detect_touches(self, points: np.ndarray, **scan) -> List[TouchBlob]:
        """Touch blobs in one registered point grid, limited to the marker touch area"""
        return TouchProximityTester.detect_touches(points, self.plane, self.touch_threshold_meters,
                                                   area=self.touch_area, **scan)
