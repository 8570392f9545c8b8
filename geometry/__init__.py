# Geometry: value types, plane fitting, homography, touch testing
from .types import Point2D, Point3D, Size, PlaneEquation, Homography
from .plane import PlaneFitter, PlaneInvariantError
from .homography import PerspectiveCalibrator
from .touch import TouchBlob, TouchProximityTester, TouchReading

__all__ = [
    'Point2D',
    'Point3D',
    'Size',
    'PlaneEquation',
    'Homography',
    'PlaneFitter',
    'PlaneInvariantError',
    'PerspectiveCalibrator',
    'TouchBlob',
    'TouchProximityTester',
    'TouchReading',
]
