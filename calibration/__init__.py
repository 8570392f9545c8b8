# Calibration module exports
from .correspondence import Correspondences, collect_correspondences
from .events import CalibrationEvents
from .session import CalibrationSession
from .state import CalibrationState, ProjectorMapping, SurfaceCapture

__all__ = [
    'CalibrationEvents',
    'CalibrationSession',
    'CalibrationState',
    'Correspondences',
    'ProjectorMapping',
    'SurfaceCapture',
    'collect_correspondences',
]
