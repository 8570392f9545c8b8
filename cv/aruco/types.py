from dataclasses import dataclass
from typing import Dict, Optional, Tuple, List
import math

import numpy as np

from geometry.types import Point2D


@dataclass(frozen=True)
class FiducialMarker:
    """One decoded marker; corners keep detector order (top-left first, clockwise)"""
    marker_id: int
    corners: Tuple[Point2D, Point2D, Point2D, Point2D]

    @classmethod
    def from_array(cls, marker_id: int, corners: np.ndarray) -> 'FiducialMarker':
        pts = np.asarray(corners, dtype=np.float64).reshape(4, 2)
        return cls(int(marker_id), tuple(Point2D(float(x), float(y)) for x, y in pts))

    def as_array(self) -> np.ndarray:
        return np.array(self.corners, dtype=np.float32)

    @property
    def top_left(self) -> Point2D:
        return self.corners[0]

    @property
    def center(self) -> Point2D:
        return Point2D(sum(p.x for p in self.corners) / 4.0, sum(p.y for p in self.corners) / 4.0)

    @property
    def area(self) -> float:
        x = [p.x for p in self.corners]
        y = [p.y for p in self.corners]
        return 0.5 * abs(sum(x[i] * y[(i + 1) % 4] - x[(i + 1) % 4] * y[i] for i in range(4)))

    @property
    def bounding_box(self) -> Tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y)"""
        xs = [p.x for p in self.corners]
        ys = [p.y for p in self.corners]
        return min(xs), min(ys), max(xs), max(ys)

    @property
    def average_side_length(self) -> float:
        total = 0.0
        for i in range(4):
            a, b = self.corners[i], self.corners[(i + 1) % 4]
            total += math.hypot(b.x - a.x, b.y - a.y)
        return total / 4.0


@dataclass(frozen=True)
class TouchArea:
    """Axis-aligned region spanned by the marker centers, color-image pixels"""
    left: float
    top: float
    right: float
    bottom: float
    camera_width: int
    camera_height: int

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def contains(self, point: Tuple[float, float]) -> bool:
        return self.left <= point[0] <= self.right and self.top <= point[1] <= self.bottom


@dataclass(frozen=True)
class DetectionResult:
    """Immutable snapshot of one completed marker search"""
    markers: Tuple[FiducialMarker, ...]
    strategy_name: str
    dictionary_name: str
    elapsed_time: float
    success: bool
    profile_name: str = ""
    timed_out: bool = False
    attempts: int = 0
    frame_shape: Tuple[int, int] = (0, 0)
    timestamp: float = 0.0

    def ids(self) -> List[int]:
        return [m.marker_id for m in self.markers]

    def by_id(self) -> Dict[int, FiducialMarker]:
        return {m.marker_id: m for m in self.markers}

    def get(self, marker_id: int) -> Optional[FiducialMarker]:
        return self.by_id().get(marker_id)

    @classmethod
    def failed(cls, elapsed_time: float, attempts: int = 0, timed_out: bool = False,
               frame_shape: Tuple[int, int] = (0, 0), timestamp: float = 0.0) -> 'DetectionResult':
        return cls(markers=(), strategy_name="", dictionary_name="", elapsed_time=elapsed_time,
                   success=False, timed_out=timed_out, attempts=attempts,
                   frame_shape=frame_shape, timestamp=timestamp)
