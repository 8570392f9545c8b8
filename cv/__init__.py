# cv/__init__.py
# Computer Vision module exports
from .events import SensorEvents
from .frames import ColorFrame, DepthFrame
from .interfaces import IFrameSource, IDepthMapper, IMarkerSurface
from .mapping import CoordinateSpaceMapper
from .sources import StaticFrameSource, PinholeDepthMapper, StaticMarkerSurface

__all__ = [
    'SensorEvents',
    'ColorFrame',
    'DepthFrame',
    'IFrameSource',
    'IDepthMapper',
    'IMarkerSurface',
    'CoordinateSpaceMapper',    # Canvas <-> source pixel mapping
    'StaticFrameSource',        # In-memory frames pushed by the host
    'PinholeDepthMapper',
    'StaticMarkerSurface',
]
