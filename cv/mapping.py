"""
Coordinate space conversions between a display canvas, the color image and
normalized [0..1] coordinates.

The canvas shows the color image scaled uniformly to fit and centered
("fit-and-center"), so both directions share one scale and offset.
"""
from typing import List, Sequence, Tuple

from geometry.types import Point2D


def _clamp(value: float, upper: float) -> float:
    return max(0.0, min(float(upper), value))


class CoordinateSpaceMapper:
    """Pure conversions - no state, safe from any thread"""

    @staticmethod
    def compute_fit(container: Sequence[float], source: Sequence[float]) -> Tuple[float, float, float]:
        """(scale, offset_x, offset_y); identity when either size is empty"""
        cw, ch = float(container[0]), float(container[1])
        sw, sh = float(source[0]), float(source[1])
        if cw <= 0 or ch <= 0 or sw <= 0 or sh <= 0:
            return 1.0, 0.0, 0.0
        scale = min(cw / sw, ch / sh)
        offset_x = (cw - sw * scale) / 2.0
        offset_y = (ch - sh * scale) / 2.0
        return scale, offset_x, offset_y

    @staticmethod
    def to_source_pixel(canvas_point: Sequence[float], container: Sequence[float],
                        source: Sequence[float]) -> Point2D:
        """Canvas -> color pixel, clamped to [0, size-1] on both axes"""
        scale, offset_x, offset_y = CoordinateSpaceMapper.compute_fit(container, source)
        x = (canvas_point[0] - offset_x) / scale
        y = (canvas_point[1] - offset_y) / scale
        max_x = max(0.0, float(source[0]) - 1)
        max_y = max(0.0, float(source[1]) - 1)
        return Point2D(_clamp(x, max_x), _clamp(y, max_y))

    @staticmethod
    def to_canvas_point(source_point: Sequence[float], container: Sequence[float],
                        source: Sequence[float]) -> Point2D:
        """Color pixel -> canvas. Not clamped: overlay points may fall off-canvas"""
        scale, offset_x, offset_y = CoordinateSpaceMapper.compute_fit(container, source)
        return Point2D(source_point[0] * scale + offset_x, source_point[1] * scale + offset_y)

    @staticmethod
    def to_normalized(source_point: Sequence[float], source: Sequence[float]) -> Point2D:
        sw, sh = float(source[0]), float(source[1])
        if sw <= 0 or sh <= 0:
            return Point2D(0.0, 0.0)
        return Point2D(source_point[0] / sw, source_point[1] / sh)

    @staticmethod
    def from_normalized(normalized_point: Sequence[float], source: Sequence[float]) -> Point2D:
        sw, sh = float(source[0]), float(source[1])
        x = normalized_point[0] * sw
        y = normalized_point[1] * sh
        return Point2D(_clamp(x, max(0.0, sw - 1)), _clamp(y, max(0.0, sh - 1)))

    @staticmethod
    def map_to_source(canvas_points: Sequence[Sequence[float]], container: Sequence[float],
                      source: Sequence[float]) -> List[Point2D]:
        return [CoordinateSpaceMapper.to_source_pixel(p, container, source) for p in canvas_points]

    @staticmethod
    def map_to_canvas(source_points: Sequence[Sequence[float]], container: Sequence[float],
                      source: Sequence[float]) -> List[Point2D]:
        return [CoordinateSpaceMapper.to_canvas_point(p, container, source) for p in source_points]
