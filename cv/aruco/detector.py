# cv/aruco/detector.py
import threading
import time
from concurrent.futures import Future
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from core.config import DetectionConfig
from core.event_broker import event_aware
from core.logger import log_aware
from .calculator import GeometryLimits, MarkerCalculator
from .events import DetectionEvents
from .interfaces import IFiducialDetector
from .preprocessing import PreprocessingVariant, to_gray
from .profiles import (DetectorProfile, DictionarySpec, FAST_DICTIONARIES, FAST_PROFILES,
                       SWEEP_DICTIONARIES, SWEEP_PROFILES)
from .search import SearchCandidate, build_search_plan
from .types import DetectionResult, FiducialMarker


@event_aware()
@log_aware("FiducialDetector")
class FiducialDetector(IFiducialDetector):
    """
    Multi-strategy marker search under a wall-clock budget.

    Walks the search plan (fast path, then variant x profile x dictionary
    sweep) and stops at the first candidate yielding enough geometry-valid
    markers. The budget is checked after every attempt.
    """

    def __init__(self, config: Optional[DetectionConfig] = None,
                 fast_profiles: Sequence[DetectorProfile] = FAST_PROFILES,
                 fast_dictionaries: Sequence[DictionarySpec] = FAST_DICTIONARIES,
                 variants: Optional[Sequence[PreprocessingVariant]] = None,
                 sweep_profiles: Sequence[DetectorProfile] = SWEEP_PROFILES,
                 sweep_dictionaries: Sequence[DictionarySpec] = SWEEP_DICTIONARIES,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config or DetectionConfig()
        self._clock = clock
        self._plan: List[SearchCandidate] = build_search_plan(
            fast_profiles, fast_dictionaries, variants,
            sweep_profiles, sweep_dictionaries,
            use_fast_path=self.config.use_fast_path,
        )
        self._limits = GeometryLimits(
            min_area_fraction=self.config.min_area_fraction,
            max_area_fraction=self.config.max_area_fraction,
            min_side_px=self.config.min_side_px,
        )
        self._busy = False
        self._busy_lock = threading.Lock()

    @property
    def plan(self) -> List[SearchCandidate]:
        return list(self._plan)

    @property
    def is_busy(self) -> bool:
        with self._busy_lock:
            return self._busy

    def detect(self, image: np.ndarray) -> DetectionResult:
        start = self._clock()
        timestamp = time.time()
        try:
            gray = to_gray(image)
            height, width = gray.shape[:2]
            image_size = (width, height)
            frame_shape = (height, width)
            budget = self.config.time_budget_s
            min_markers = max(1, self.config.min_markers)

            self.emit(DetectionEvents.SWEEP_STARTED, width, height, len(self._plan))
            self.debug(f"Sweep started on {width}x{height}, {len(self._plan)} candidates, budget {budget:.2f}s")

            # Per-invocation caches, nothing carries over between sweeps
            variant_cache: Dict[str, Tuple[np.ndarray, float]] = {}
            dictionaries: Dict[str, 'cv2.aruco.Dictionary'] = {}
            attempts = 0
            for candidate in self._plan:
                markers = self._attempt(candidate, gray, image_size, variant_cache, dictionaries)
                attempts += 1
                elapsed = self._clock() - start

                if len(markers) >= min_markers:
                    result = DetectionResult(
                        markers=tuple(markers),
                        strategy_name=candidate.strategy_name,
                        dictionary_name=candidate.dictionary.name,
                        elapsed_time=elapsed,
                        success=True,
                        profile_name=candidate.profile.name,
                        attempts=attempts,
                        frame_shape=frame_shape,
                        timestamp=timestamp,
                    )
                    self.info(f"Found markers {result.ids()} with {result.strategy_name}/"
                              f"{result.profile_name}/{result.dictionary_name} "
                              f"after {attempts} attempts ({elapsed:.3f}s)")
                    self.emit(DetectionEvents.MARKERS_DETECTED, result)
                    return result

                if elapsed >= budget:
                    result = DetectionResult.failed(elapsed, attempts, timed_out=True,
                                                    frame_shape=frame_shape, timestamp=timestamp)
                    self.warning(f"Sweep timed out after {attempts}/{len(self._plan)} attempts ({elapsed:.3f}s)")
                    self.emit(DetectionEvents.SWEEP_TIMED_OUT, result)
                    return result

            elapsed = self._clock() - start
            result = DetectionResult.failed(elapsed, attempts, timed_out=False,
                                            frame_shape=frame_shape, timestamp=timestamp)
            self.info(f"No markers after exhausting {attempts} attempts ({elapsed:.3f}s)")
            self.emit(DetectionEvents.NO_MARKERS, result)
            return result

        except Exception as e:
            error_msg = f"Error detecting fiducial markers: {e}"
            self.error(error_msg)
            self.emit(DetectionEvents.DETECTION_ERROR, error_msg)
            raise

    def detect_async(self, image: np.ndarray) -> Future:
        """Run detect() on a worker thread; one sweep per detector at a time"""
        with self._busy_lock:
            if self._busy:
                raise RuntimeError("A marker sweep is already in flight on this detector")
            self._busy = True

        future = Future()
        frame = np.array(image, copy=True)

        def run():
            if not future.set_running_or_notify_cancel():
                self._release()
                return
            try:
                result = self.detect(frame)
            except Exception as e:
                self._release()
                future.set_exception(e)
            else:
                self._release()
                future.set_result(result)

        worker = threading.Thread(target=run, name="FiducialSweep", daemon=True)
        try:
            worker.start()
        except RuntimeError:
            self._release()
            raise
        return future

    def _release(self) -> None:
        with self._busy_lock:
            self._busy = False

    def _attempt(self, candidate: SearchCandidate, gray: np.ndarray,
                 image_size: Tuple[int, int],
                 variant_cache: Dict[str, Tuple[np.ndarray, float]],
                 dictionaries: Dict[str, 'cv2.aruco.Dictionary']) -> List[FiducialMarker]:
        variant = candidate.variant
        try:
            cached = variant_cache.get(variant.name)
            if cached is None:
                cached = (variant.apply(gray), variant.scale)
                variant_cache[variant.name] = cached
            processed, scale = cached

            dictionary = dictionaries.get(candidate.dictionary.name)
            if dictionary is None:
                dictionary = candidate.dictionary.build()
                dictionaries[candidate.dictionary.name] = dictionary

            detector = cv2.aruco.ArucoDetector(dictionary, candidate.profile.build())
            corners, ids, _ = detector.detectMarkers(processed)
        except cv2.error as e:
            self.warning(f"Attempt {candidate.strategy_name}/{candidate.profile.name}/"
                         f"{candidate.dictionary.name} failed: {e}")
            return []

        if ids is None or len(ids) == 0:
            return []

        found = [
            FiducialMarker.from_array(marker_id, MarkerCalculator.rescale_corners(marker_corners, scale))
            for marker_id, marker_corners in zip(ids.flatten(), corners)
        ]
        accepted, rejected = MarkerCalculator.filter_markers(found, image_size, self._limits)
        for marker_id, reason in rejected:
            self.debug(f"Rejected marker {marker_id} ({candidate.strategy_name}): {reason}")
        return accepted


# Name used by calibration callers
FiducialDetectionPipeline = FiducialDetector
