"""
Touch proximity - per-frame predicate over the calibrated plane, and the
per-frame scan that turns a registered point grid into touch blobs
"""
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import numpy as np
from sklearn.cluster import DBSCAN

from .plane import PlaneFitter
from .types import PlaneEquation, Point2D

# A touching point sits at least this far in front of the surface (meters)
MIN_TOUCH_DELTA_M = 0.010

# Depth range the sensor reports reliably (meters)
MIN_DEPTH_M = 0.3
MAX_DEPTH_M = 4.0


@dataclass(frozen=True)
class TouchReading:
    distance: float
    signed_distance: float
    touching: bool


@dataclass(frozen=True)
class TouchBlob:
    """Cluster of touching samples: mean pixel position and sample count"""
    center: Point2D
    area: int


class TouchProximityTester:
    """Stateless; debounce/hysteresis belong to the UI layer"""

    @staticmethod
    def signed_distance(point: Sequence[float], plane: PlaneEquation) -> float:
        return PlaneFitter.signed_distance(point, plane)

    @staticmethod
    def is_touching(point: Sequence[float], plane: PlaneEquation, threshold_meters: float) -> bool:
        return PlaneFitter.distance_to_plane(point, plane) < threshold_meters

    @staticmethod
    def evaluate(point: Sequence[float], plane: PlaneEquation, threshold_meters: float) -> TouchReading:
        signed = PlaneFitter.signed_distance(point, plane)
        distance = abs(signed)
        return TouchReading(distance=distance, signed_distance=signed,
                            touching=distance < threshold_meters)

    @staticmethod
    def clamp_threshold(threshold_meters: float, minimum: float = 0.005, maximum: float = 0.08) -> float:
        """Keep a user-set threshold inside the supported range (default 5..80 mm)"""
        return max(minimum, min(maximum, threshold_meters))

    @staticmethod
    def touch_mask(points: np.ndarray, plane: PlaneEquation, threshold_meters: float) -> np.ndarray:
        """
        Boolean mask over an (..., 3) array of sensor-space points.

        A point touches when the surface, measured along the sensor ray through
        the point, lies more than MIN_TOUCH_DELTA_M and less than the threshold
        behind it, and its depth is within the sensor's reliable range.
        """
        PlaneFitter.require_unit(plane)
        pts = np.asarray(points, dtype=np.float64)
        valid = np.all(np.isfinite(pts), axis=-1)
        pts = np.where(valid[..., None], pts, 0.0)

        ray_length = np.linalg.norm(pts, axis=-1)
        with np.errstate(divide='ignore', invalid='ignore'):
            denom = (pts @ np.asarray(plane.normal, dtype=np.float64)) / ray_length
            expected = -plane.d / denom
        hit = valid & (ray_length > 1e-6) & (np.abs(denom) > 1e-6) & (expected > 0)

        delta = np.where(hit, expected - ray_length, -np.inf)
        depth = pts[..., 2]
        return (hit & (delta > MIN_TOUCH_DELTA_M) & (delta < threshold_meters)
                & (depth > MIN_DEPTH_M) & (depth < MAX_DEPTH_M))

    @staticmethod
    def detect_touches(points: np.ndarray, plane: PlaneEquation, threshold_meters: float,
                       area: Optional[Any] = None, min_blob: int = 100, max_blob: int = 1000,
                       stride: int = 4, cluster_distance: float = 20.0) -> List[TouchBlob]:
        """
        Scan one frame of registered sensor-space points for touches.

        `points` is an (H, W, 3) grid indexed by color pixel, NaN where the
        sensor has no reading. `area` (anything with left/top/right/bottom,
        e.g. a TouchArea) limits the scan. Every `stride`-th pixel is tested;
        touching samples within `cluster_distance` pixels of each other form one
        blob, and blobs with between min_blob and max_blob samples are returned.
        """
        grid = np.asarray(points, dtype=np.float64)
        if grid.ndim != 3 or grid.shape[2] != 3:
            raise ValueError(f"points must be an (H, W, 3) grid, got shape {grid.shape}")
        if stride < 1:
            raise ValueError(f"stride must be positive, got {stride}")

        height, width = grid.shape[:2]
        left, top, right, bottom = 0, 0, width - 1, height - 1
        if area is not None:
            left = max(left, int(np.ceil(area.left)))
            top = max(top, int(np.ceil(area.top)))
            right = min(right, int(np.floor(area.right)))
            bottom = min(bottom, int(np.floor(area.bottom)))
        if left > right or top > bottom:
            return []

        sampled = grid[top:bottom + 1:stride, left:right + 1:stride]
        mask = TouchProximityTester.touch_mask(sampled, plane, threshold_meters)
        rows, cols = np.nonzero(mask)
        pixels = np.column_stack((left + cols * stride, top + rows * stride)).astype(np.float64)

        blobs = []
        for cluster in _cluster(pixels, cluster_distance):
            if min_blob <= len(cluster) <= max_blob:
                cx, cy = cluster.mean(axis=0)
                blobs.append(TouchBlob(Point2D(float(cx), float(cy)), len(cluster)))
        return blobs


def _cluster(pixels: np.ndarray, max_distance: float) -> List[np.ndarray]:
    """Single-linkage groups (DBSCAN with one-sample cores), in order of first sample"""
    if len(pixels) == 0:
        return []
    labels = DBSCAN(eps=max_distance, min_samples=1).fit(pixels).labels_
    found, first = np.unique(labels, return_index=True)
    return [pixels[labels == label] for label in found[np.argsort(first)]]
