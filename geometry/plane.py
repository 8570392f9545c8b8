"""
Plane fitting and point-to-plane distances for the working surface
"""
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from core.logger import logger
from core.results import CalibrationError, Outcome
from .types import PlaneEquation, Point3D

Vector3 = Tuple[float, float, float]

COLLINEAR_EPSILON = 1e-9
FALLBACK_NORMAL: Vector3 = (0.0, 0.0, 1.0)
WORLD_UP: Vector3 = (0.0, 1.0, 0.0)
CAMERA_FORWARD: Vector3 = (0.0, 0.0, 1.0)

_COMPONENT = "PlaneFitter"


class PlaneInvariantError(AssertionError):
    """A plane with a non-unit normal reached a distance computation"""


def _vec(v: Sequence[float]) -> np.ndarray:
    return np.asarray(v, dtype=np.float64)[:3]


def _as_tuple(v: np.ndarray) -> Vector3:
    return (float(v[0]), float(v[1]), float(v[2]))


def _degenerate(message: str) -> Outcome[PlaneEquation]:
    logger.warning(f"plane fit failed: DEGENERATE_PLANE ({message})", _COMPONENT)
    return Outcome.failure(CalibrationError.DEGENERATE_PLANE, message)


class PlaneFitter:
    """Stateless plane computations - safe to call from any thread"""

    @staticmethod
    def normalize(v: Sequence[float]) -> Vector3:
        """Unit vector along v, or (0, 0, 1) when v is too short to have a direction"""
        vec = _vec(v)
        length = float(np.linalg.norm(vec))
        if not np.isfinite(length) or length < COLLINEAR_EPSILON:
            return FALLBACK_NORMAL
        return _as_tuple(vec / length)

    @staticmethod
    def fit_from_three_points(p0: Sequence[float], p1: Sequence[float],
                              p2: Sequence[float]) -> Outcome[PlaneEquation]:
        origin = _vec(p0)
        cross = np.cross(_vec(p1) - origin, _vec(p2) - origin)
        magnitude = float(np.linalg.norm(cross))
        if not np.isfinite(magnitude) or magnitude < COLLINEAR_EPSILON:
            return _degenerate(f"points are collinear (|cross|={magnitude:.3e})")

        normal = PlaneFitter.normalize(cross)
        plane = PlaneEquation(normal, -float(np.dot(normal, origin)))
        logger.debug(f"plane fit succeeded: {plane}", _COMPONENT)
        return Outcome.success(plane)

    @staticmethod
    def fit_best_plane(points: Iterable[Sequence[float]]) -> Outcome[PlaneEquation]:
        """Least-squares plane through many samples (smallest principal axis)"""
        pts = np.asarray([tuple(p[:3]) for p in points], dtype=np.float64).reshape(-1, 3)
        pts = pts[np.all(np.isfinite(pts), axis=1)]
        if len(pts) < 3:
            return _degenerate(f"need at least 3 finite points, got {len(pts)}")

        centroid = pts.mean(axis=0)
        _, singular_values, vt = np.linalg.svd(pts - centroid, full_matrices=False)

        # Points spread along a single line leave the second axis empty
        spread = singular_values[0]
        if spread < COLLINEAR_EPSILON or singular_values[1] < COLLINEAR_EPSILON * max(1.0, spread):
            return _degenerate("samples are collinear or coincident")

        normal = PlaneFitter.normalize(vt[-1])
        plane = PlaneEquation(normal, -float(np.dot(normal, centroid)))
        logger.debug(f"best-fit plane over {len(pts)} points: {plane}", _COMPONENT)
        return Outcome.success(plane)

    @staticmethod
    def fit_from_points(points: Sequence[Sequence[float]]) -> Outcome[PlaneEquation]:
        if len(points) == 3:
            return PlaneFitter.fit_from_three_points(points[0], points[1], points[2])
        return PlaneFitter.fit_best_plane(points)

    @staticmethod
    def fit_from_segment(p1: Sequence[float], p2: Sequence[float],
                         up: Sequence[float] = WORLD_UP) -> Outcome[PlaneEquation]:
        """Vertical wall plane through two picked points"""
        start = _vec(p1)
        segment = _vec(p2) - start
        if not np.all(np.isfinite(segment)) or np.linalg.norm(segment) < COLLINEAR_EPSILON:
            return _degenerate("segment endpoints coincide or are not finite")

        right = np.array(PlaneFitter.normalize(segment))
        n = np.cross(right, _vec(up))
        if np.linalg.norm(n) < 1e-6:
            n = np.cross(right, CAMERA_FORWARD)
        normal = PlaneFitter.normalize(n)
        plane = PlaneEquation(normal, -float(np.dot(normal, start)))
        logger.debug(f"segment plane: {plane}", _COMPONENT)
        return Outcome.success(plane)

    @staticmethod
    def orient_toward(plane: PlaneEquation,
                      viewpoint: Sequence[float] = (0.0, 0.0, 0.0)) -> PlaneEquation:
        """Flip the plane so the viewpoint (the sensor) lies on its positive side"""
        if PlaneFitter.signed_distance(viewpoint, plane) < 0:
            return plane.flipped()
        return plane

    @staticmethod
    def require_unit(plane: PlaneEquation) -> None:
        """Raise PlaneInvariantError unless the plane normal is unit length"""
        if not plane.is_unit():
            length = float(np.linalg.norm(plane.normal))
            raise PlaneInvariantError(
                f"plane normal is not unit length: {plane.normal} (|n|={length:.9f})")

    @staticmethod
    def signed_distance(point: Sequence[float], plane: PlaneEquation) -> float:
        PlaneFitter.require_unit(plane)
        return float(np.dot(plane.normal, _vec(point))) + plane.d

    @staticmethod
    def distance_to_plane(point: Sequence[float], plane: PlaneEquation) -> float:
        return abs(PlaneFitter.signed_distance(point, plane))

    @staticmethod
    def expected_distance_along_ray(point: Sequence[float], plane: PlaneEquation) -> Optional[float]:
        """
        Distance from the sensor origin, along the ray through point, to the plane.
        None when the ray is degenerate, parallel to the plane, or hits behind the sensor.
        """
        PlaneFitter.require_unit(plane)
        ray = _vec(point)
        length = float(np.linalg.norm(ray))
        if length < 1e-6:
            return None
        denom = float(np.dot(plane.normal, ray / length))
        if abs(denom) < 1e-6:
            return None
        t = -plane.d / denom
        if t <= 0:
            return None
        return t

    @staticmethod
    def project_onto_plane(point: Sequence[float], plane: PlaneEquation) -> Point3D:
        """Closest point on the plane"""
        dist = PlaneFitter.signed_distance(point, plane)
        return Point3D(*_as_tuple(_vec(point) - dist * np.asarray(plane.normal)))
