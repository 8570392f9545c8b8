# In-memory collaborators: frames pushed by the host, pinhole depth mapping, fixed marker layout
import threading
from typing import Optional, Sequence

import numpy as np

from core.event_broker import event_aware
from core.logger import log_aware
from geometry.types import Point2D, Point3D
from .events import SensorEvents
from .frames import ColorFrame, DepthFrame
from .interfaces import IFrameSource, IDepthMapper, IMarkerSurface


@event_aware()
@log_aware("FrameSource")
class StaticFrameSource(IFrameSource):
    """
    Holds the latest frames handed in by the host (capture loop, recorded
    session, test). Reads return snapshots; no hardware is touched.
    """

    def __init__(self, color: Optional[ColorFrame] = None, depth: Optional[DepthFrame] = None):
        self._lock = threading.Lock()
        self._color = color
        self._depth = depth

    def set_color_frame(self, frame: Optional[ColorFrame]) -> None:
        with self._lock:
            self._color = frame
        if frame is not None:
            self.emit(SensorEvents.COLOR_FRAME_UPDATED, frame.width, frame.height)

    def set_depth_frame(self, frame: Optional[DepthFrame]) -> None:
        with self._lock:
            self._depth = frame
        if frame is not None:
            self.emit(SensorEvents.DEPTH_FRAME_UPDATED, frame.width, frame.height)

    def try_get_color_frame(self) -> Optional[ColorFrame]:
        with self._lock:
            frame = self._color
        if frame is None:
            self.debug("No color frame available")
        return frame

    def try_get_depth_frame(self) -> Optional[DepthFrame]:
        with self._lock:
            frame = self._depth
        if frame is None:
            self.debug("No depth frame available")
        return frame


@event_aware()
@log_aware("DepthMapper")
class PinholeDepthMapper(IDepthMapper):
    """
    Back-projects a color pixel with pinhole intrinsics, assuming the depth
    frame is registered to the color frame. Depth is the median of valid
    samples in a small window so single dropouts do not fail the mapping.
    """

    def __init__(self, frame_source: IFrameSource, fx: float, fy: float, cx: float, cy: float,
                 window: int = 2):
        if fx <= 0 or fy <= 0:
            raise ValueError("focal lengths must be positive")
        self._frames = frame_source
        self.fx = fx
        self.fy = fy
        self.cx = cx
        self.cy = cy
        self.window = window

    def try_map_pixel_to_physical(self, color_x: int, color_y: int) -> Optional[Point3D]:
        depth = self._frames.try_get_depth_frame()
        if depth is None:
            return self._fail(color_x, color_y, "no depth frame")

        samples = []
        for dy in range(-self.window, self.window + 1):
            for dx in range(-self.window, self.window + 1):
                value = depth.depth_m_at(int(color_x) + dx, int(color_y) + dy)
                if value is not None:
                    samples.append(value)

        if not samples:
            return self._fail(color_x, color_y, "no valid depth sample")

        z = float(np.median(samples))
        x = (color_x - self.cx) * z / self.fx
        y = (color_y - self.cy) * z / self.fy
        return Point3D(x, y, z)

    def try_get_point_cloud(self) -> Optional[np.ndarray]:
        """Per-pixel back-projection of the whole depth frame, no window filtering"""
        depth = self._frames.try_get_depth_frame()
        if depth is None:
            self.debug("Point cloud unavailable: no depth frame")
            return None

        z = depth.depth_mm.astype(np.float64) / 1000.0
        z[z <= 0] = np.nan
        us, vs = np.meshgrid(np.arange(depth.width, dtype=np.float64),
                             np.arange(depth.height, dtype=np.float64))
        x = (us - self.cx) * z / self.fx
        y = (vs - self.cy) * z / self.fy
        return np.dstack((x, y, z))

    def project(self, point: Sequence[float]) -> Optional[Point2D]:
        """Inverse of the back-projection, None for points at or behind the sensor"""
        if point[2] <= 0:
            return None
        return Point2D(point[0] * self.fx / point[2] + self.cx,
                       point[1] * self.fy / point[2] + self.cy)

    def _fail(self, x: int, y: int, reason: str) -> None:
        self.debug(f"Mapping ({x}, {y}) failed: {reason}")
        self.emit(SensorEvents.MAPPING_FAILED, (x, y), reason)
        return None


class StaticMarkerSurface(IMarkerSurface):
    """Marker centers at fixed projector-pixel positions, index-ordered"""

    def __init__(self, centers: Sequence[Sequence[float]]):
        self._centers = [Point2D(float(c[0]), float(c[1])) for c in centers]

    def get_rendered_marker_center(self, index: int) -> Point2D:
        if index < 0 or index >= len(self._centers):
            raise IndexError(f"marker index {index} out of range (0..{len(self._centers) - 1})")
        return self._centers[index]

    def marker_count(self) -> int:
        return len(self._centers)
