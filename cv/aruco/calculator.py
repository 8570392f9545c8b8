import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from geometry.types import Point2D
from .types import FiducialMarker, TouchArea


@dataclass(frozen=True)
class GeometryLimits:
    min_area_fraction: float = 0.00002
    max_area_fraction: float = 0.25
    min_side_px: float = 3.0


class MarkerCalculator:
    """Pure geometric calculations on detected markers - stateless"""

    @staticmethod
    def rescale_corners(corners: np.ndarray, scale: float) -> np.ndarray:
        """Corners found on an image resized by `scale`, mapped back to source pixels"""
        pts = np.asarray(corners, dtype=np.float64).reshape(4, 2)
        if scale == 1.0:
            return pts
        return pts / scale

    @staticmethod
    def check_geometry(marker: FiducialMarker, image_size: Tuple[int, int],
                       limits: GeometryLimits = GeometryLimits()) -> Optional[str]:
        """Rejection reason, or None when the marker is plausible"""
        width, height = image_size
        if any(not (math.isfinite(p.x) and math.isfinite(p.y)) for p in marker.corners):
            return "non-finite corner"

        min_x, min_y, max_x, max_y = marker.bounding_box
        if min_x < 0 or min_y < 0 or max_x > width or max_y > height:
            return "outside image bounds"

        image_area = float(width * height)
        if image_area <= 0:
            return "empty image"
        fraction = (max_x - min_x) * (max_y - min_y) / image_area
        if fraction < limits.min_area_fraction:
            return f"too small ({fraction:.6%} of image)"
        if fraction > limits.max_area_fraction:
            return f"too large ({fraction:.2%} of image)"

        if marker.average_side_length < limits.min_side_px:
            return f"sides too short ({marker.average_side_length:.1f}px)"
        return None

    @staticmethod
    def filter_markers(markers: Iterable[FiducialMarker], image_size: Tuple[int, int],
                       limits: GeometryLimits = GeometryLimits()) -> Tuple[List[FiducialMarker], List[Tuple[int, str]]]:
        """
        Keep geometry-valid markers, one per ID (largest area wins), sorted by ID.
        Returns (accepted, [(marker_id, reason), ...] rejected).
        """
        best = {}
        rejected = []
        for marker in markers:
            reason = MarkerCalculator.check_geometry(marker, image_size, limits)
            if reason is not None:
                rejected.append((marker.marker_id, reason))
                continue
            current = best.get(marker.marker_id)
            if current is None or marker.area > current.area:
                best[marker.marker_id] = marker
        return [best[k] for k in sorted(best)], rejected

    @staticmethod
    def anchor_point(marker: FiducialMarker, anchor: str = "center") -> Point2D:
        if anchor == "center":
            return marker.center
        if anchor == "top_left":
            return marker.top_left
        raise ValueError(f"Unknown marker anchor: {anchor}")

    @staticmethod
    def calculate_touch_area(markers: Sequence[FiducialMarker],
                             image_size: Tuple[int, int]) -> Optional[TouchArea]:
        """Bounding rectangle of the marker centers, None without markers"""
        if not markers:
            return None
        centers = [m.center for m in markers]
        xs = [c.x for c in centers]
        ys = [c.y for c in centers]
        return TouchArea(left=min(xs), top=min(ys), right=max(xs), bottom=max(ys),
                         camera_width=int(image_size[0]), camera_height=int(image_size[1]))
