# Segregated interfaces for the collaborators the calibration engine consumes
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from geometry.types import Point2D, Point3D
from .frames import ColorFrame, DepthFrame


class IFrameSource(ABC):
    """Pull interface for the latest sensor frames; the host decides the cadence"""

    @abstractmethod
    def try_get_color_frame(self) -> Optional[ColorFrame]:
        """Latest color frame, or None when none is available yet"""
        pass

    @abstractmethod
    def try_get_depth_frame(self) -> Optional[DepthFrame]:
        """Latest depth frame, or None when none is available yet"""
        pass


class IDepthMapper(ABC):
    """Resolves color-image pixels to sensor-space points"""

    @abstractmethod
    def try_map_pixel_to_physical(self, color_x: int, color_y: int) -> Optional[Point3D]:
        """3D point in meters, or None when no valid depth sample exists there"""
        pass

    @abstractmethod
    def try_get_point_cloud(self) -> Optional[np.ndarray]:
        """(H, W, 3) sensor-space points per color pixel, NaN without a reading; None without a frame"""
        pass


class IMarkerSurface(ABC):
    """Read-only view of where the projector draws each marker"""

    @abstractmethod
    def get_rendered_marker_center(self, index: int) -> Point2D:
        """Projector-pixel center of marker `index`"""
        pass

    @abstractmethod
    def marker_count(self) -> int:
        pass
