# cv/aruco/__init__.py
from .detector import FiducialDetector, FiducialDetectionPipeline
from .calculator import GeometryLimits, MarkerCalculator
from .types import FiducialMarker, TouchArea, DetectionResult
from .events import DetectionEvents
from .interfaces import IFiducialDetector
from .profiles import (DetectorProfile, DictionarySpec, FAST_PROFILES, SWEEP_PROFILES,
                       FAST_DICTIONARIES, SWEEP_DICTIONARIES)
from .preprocessing import PreprocessingVariant, IDENTITY, build_variants, to_gray
from .search import SearchCandidate, build_search_plan

__all__ = [
    "FiducialDetector",
    "FiducialDetectionPipeline",
    "GeometryLimits",
    "MarkerCalculator",
    "FiducialMarker",
    "TouchArea",
    "DetectionResult",
    "DetectionEvents",
    "IFiducialDetector",
    "DetectorProfile",
    "DictionarySpec",
    "FAST_PROFILES",
    "SWEEP_PROFILES",
    "FAST_DICTIONARIES",
    "SWEEP_DICTIONARIES",
    "PreprocessingVariant",
    "IDENTITY",
    "build_variants",
    "to_gray",
    "SearchCandidate",
    "build_search_plan",
]
