"""
Detector parameter profiles and candidate marker dictionaries.

Profiles differ mainly in the adaptive-threshold window range, the smallest
marker perimeter accepted, and how many wrong border bits are tolerated.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

import cv2


@dataclass(frozen=True)
class DetectorProfile:
    name: str
    overrides: Dict[str, Any] = field(default_factory=dict)

    def build(self) -> 'cv2.aruco.DetectorParameters':
        params = cv2.aruco.DetectorParameters()
        for key, value in self.overrides.items():
            if not hasattr(params, key):
                raise AttributeError(f"DetectorParameters has no attribute '{key}' (profile {self.name})")
            setattr(params, key, value)
        return params

    @property
    def signature(self) -> Tuple[Tuple[str, Any], ...]:
        """Overrides in a stable order; profiles with equal signatures detect identically"""
        return tuple(sorted(self.overrides.items()))


@dataclass(frozen=True)
class DictionarySpec:
    name: str
    cv2_id: int

    def build(self) -> 'cv2.aruco.Dictionary':
        return cv2.aruco.getPredefinedDictionary(self.cv2_id)


# Relaxed variations for the raw grayscale image
FAST_PROFILES: Tuple[DetectorProfile, ...] = (
    DetectorProfile("fast_relaxed", {
        "minMarkerPerimeterRate": 0.02,
        "polygonalApproxAccuracyRate": 0.05,
    }),
    DetectorProfile("fast_wide_window", {
        "adaptiveThreshWinSizeMin": 3,
        "adaptiveThreshWinSizeMax": 33,
        "adaptiveThreshWinSizeStep": 6,
        "minMarkerPerimeterRate": 0.02,
    }),
    DetectorProfile("fast_low_contrast", {
        "adaptiveThreshConstant": 3,
        "minMarkerPerimeterRate": 0.02,
        "maxErroneousBitsInBorderRate": 0.5,
    }),
    DetectorProfile("fast_inverted", {
        "minMarkerPerimeterRate": 0.02,
        "detectInvertedMarker": True,
    }),
)

SWEEP_PROFILES: Tuple[DetectorProfile, ...] = (
    DetectorProfile("default"),
    DetectorProfile("aggressive", {
        "adaptiveThreshWinSizeMin": 3,
        "adaptiveThreshWinSizeMax": 53,
        "adaptiveThreshWinSizeStep": 4,
        "adaptiveThreshConstant": 5,
        "minMarkerPerimeterRate": 0.01,
        "polygonalApproxAccuracyRate": 0.05,
        "maxErroneousBitsInBorderRate": 0.5,
        "errorCorrectionRate": 0.8,
    }),
    DetectorProfile("very_aggressive", {
        "adaptiveThreshWinSizeMin": 3,
        "adaptiveThreshWinSizeMax": 75,
        "adaptiveThreshWinSizeStep": 3,
        "adaptiveThreshConstant": 2,
        "minMarkerPerimeterRate": 0.005,
        "polygonalApproxAccuracyRate": 0.08,
        "minCornerDistanceRate": 0.01,
        "minDistanceToBorder": 1,
        "maxErroneousBitsInBorderRate": 0.8,
        "errorCorrectionRate": 1.0,
    }),
)

FAST_DICTIONARIES: Tuple[DictionarySpec, ...] = (
    DictionarySpec("DICT_4X4_50", cv2.aruco.DICT_4X4_50),
    DictionarySpec("DICT_5X5_100", cv2.aruco.DICT_5X5_100),
    DictionarySpec("DICT_6X6_250", cv2.aruco.DICT_6X6_250),
)

SWEEP_DICTIONARIES: Tuple[DictionarySpec, ...] = FAST_DICTIONARIES + (
    DictionarySpec("DICT_4X4_1000", cv2.aruco.DICT_4X4_1000),
    DictionarySpec("DICT_5X5_1000", cv2.aruco.DICT_5X5_1000),
    DictionarySpec("DICT_ARUCO_ORIGINAL", cv2.aruco.DICT_ARUCO_ORIGINAL),
    DictionarySpec("DICT_7X7_250", cv2.aruco.DICT_7X7_250),
    DictionarySpec("DICT_APRILTAG_36h11", cv2.aruco.DICT_APRILTAG_36h11),
)
