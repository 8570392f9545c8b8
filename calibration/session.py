"""
Calibration session - walks picked canvas points and detected markers through
the pure calculators and commits a CalibrationState only when every step succeeds.
"""
import threading
from concurrent.futures import Future
from typing import List, Optional, Sequence

from core.config import CalibrationConfig
from core.event_broker import event_aware
from core.logger import log_aware, logged, LogLevel
from core.results import CalibrationError, Outcome
from cv.aruco.calculator import MarkerCalculator
from cv.aruco.detector import FiducialDetector
from cv.aruco.interfaces import IFiducialDetector
from cv.aruco.types import DetectionResult
from cv.interfaces import IDepthMapper, IFrameSource, IMarkerSurface
from cv.mapping import CoordinateSpaceMapper
from geometry.homography import PerspectiveCalibrator
from geometry.plane import PlaneFitter
from geometry.touch import TouchBlob, TouchProximityTester, TouchReading
from geometry.types import PlaneEquation, Point3D, Size
from .correspondence import collect_correspondences
from .events import CalibrationEvents
from .state import CalibrationState, ProjectorMapping, SurfaceCapture

SENSOR_ORIGIN = (0.0, 0.0, 0.0)


@event_aware()
@log_aware("CalibrationSession")
class CalibrationSession:
    """
    Orchestrates one calibration: surface capture, marker detection, projector
    mapping, commit. Calculators are called with point snapshots; the session
    never reacts to point edits on its own.
    """

    def __init__(self, frame_source: IFrameSource, depth_mapper: IDepthMapper,
                 marker_surface: IMarkerSurface, detector: Optional[IFiducialDetector] = None,
                 config: Optional[CalibrationConfig] = None):
        self.config = config or CalibrationConfig()
        self._frames = frame_source
        self._depth_mapper = depth_mapper
        self._surface = marker_surface
        self._detector = detector or FiducialDetector(self.config.detection)

        self._state: Optional[CalibrationState] = None
        self._state_lock = threading.Lock()
        self._last_resolution: Optional[Size] = None

    @property
    def state(self) -> Optional[CalibrationState]:
        with self._state_lock:
            return self._state

    def source_resolution(self) -> Size:
        """Size of the latest color frame, else the last one seen, else the configured size"""
        frame = self._frames.try_get_color_frame()
        if frame is not None and frame.width > 0 and frame.height > 0:
            self._last_resolution = Size(frame.width, frame.height)
        if self._last_resolution is not None:
            return self._last_resolution
        return Size(self.config.color_width, self.config.color_height)

    def map_canvas_point(self, canvas_point: Sequence[float], container: Sequence[float]) -> Outcome[Point3D]:
        return self._map_canvas_point(canvas_point, container, self.source_resolution())

    def _map_canvas_point(self, canvas_point: Sequence[float], container: Sequence[float],
                          source: Size) -> Outcome[Point3D]:
        pixel = CoordinateSpaceMapper.to_source_pixel(canvas_point, container, source)
        px, py = int(round(pixel.x)), int(round(pixel.y))
        physical = self._depth_mapper.try_map_pixel_to_physical(px, py)
        if physical is None or not Point3D(*physical).is_finite():
            message = f"no valid depth at color pixel ({px}, {py})"
            self.warning(f"mapping failed: MAPPING_FAILURE ({message})")
            self.emit(CalibrationEvents.MAPPING_FAILED, tuple(canvas_point), (px, py))
            return Outcome.failure(CalibrationError.MAPPING_FAILURE, message)
        return Outcome.success(Point3D(*physical))

    @logged(LogLevel.DEBUG, log_args=True)
    def fit_plane(self, points: Sequence[Sequence[float]]) -> Outcome[PlaneEquation]:
        """Plane through the points, normal facing the sensor"""
        fitted = PlaneFitter.fit_from_points(points)
        if not fitted.ok:
            self.emit(CalibrationEvents.PLANE_FAILED, fitted.error, fitted.message)
            return fitted
        plane = PlaneFitter.orient_toward(fitted.value, SENSOR_ORIGIN)
        self.info(f"Plane fitted: {plane}")
        self.emit(CalibrationEvents.PLANE_FITTED, plane)
        return Outcome.success(plane)

    def capture_surface(self, canvas_corners: Sequence[Sequence[float]],
                        container: Sequence[float]) -> Outcome[SurfaceCapture]:
        """Map four canvas corners (TL, TR, BR, BL) to sensor space and fit the surface plane"""
        if len(canvas_corners) != 4:
            raise ValueError(f"capture_surface needs 4 corners, got {len(canvas_corners)}")

        source = self.source_resolution()
        normalized = []
        physical = []
        for index, corner in enumerate(canvas_corners):
            pixel = CoordinateSpaceMapper.to_source_pixel(corner, container, source)
            normalized.append(CoordinateSpaceMapper.to_normalized(pixel, source))
            mapped = self._map_canvas_point(corner, container, source)
            if not mapped.ok:
                return Outcome.failure(mapped.error, f"corner {index}: {mapped.message}")
            physical.append(mapped.value)

        plane = self.fit_plane(physical)
        if not plane.ok:
            return Outcome.failure(plane.error, plane.message)
        return Outcome.success(SurfaceCapture(tuple(normalized), tuple(physical), plane.value))

    def start_marker_detection(self) -> Future:
        """Sweep the latest color frame on a worker thread; Future[DetectionResult]"""
        frame = self._frames.try_get_color_frame()
        if frame is None:
            result = DetectionResult.failed(0.0)
            self.warning("Marker detection skipped: no color frame available")
            self.emit(CalibrationEvents.DETECTION_FAILED, result)
            future = Future()
            future.set_result(result)
            return future

        self._last_resolution = Size(frame.width, frame.height)
        sweep = self._detector.detect_async(frame.to_array())

        # Resolved only after the session events went out
        future = Future()
        sweep.add_done_callback(lambda done: self._on_detection_done(done, future))
        return future

    def _on_detection_done(self, sweep: Future, future: Future) -> None:
        if sweep.cancelled():
            self.debug("Marker detection cancelled")
            future.cancel()
            return
        error = sweep.exception()
        if error is not None:
            self.error(f"Marker detection raised: {error}")
            future.set_exception(error)
            return
        result = sweep.result()
        if result.success:
            self.emit(CalibrationEvents.MARKERS_DETECTED, result)
        else:
            self.emit(CalibrationEvents.DETECTION_FAILED, result)
        future.set_result(result)

    def solve_projector_mapping(self, detection: DetectionResult) -> Outcome[ProjectorMapping]:
        pairs = collect_correspondences(detection, self._surface,
                                        self.config.required_marker_ids, self.config.marker_anchor)
        if not pairs.ok:
            return self._mapping_failed(pairs.error, pairs.message)

        correspondences = pairs.value
        solved = PerspectiveCalibrator.solve_homography(correspondences.camera_points,
                                                        correspondences.projector_points)
        if not solved.ok:
            return self._mapping_failed(solved.error, solved.message)

        homography = solved.value
        error = PerspectiveCalibrator.reprojection_error(homography, correspondences.camera_points,
                                                         correspondences.projector_points)
        markers = [detection.get(marker_id) for marker_id in correspondences.marker_ids]
        height, width = detection.frame_shape
        touch_area = MarkerCalculator.calculate_touch_area(markers, (width, height))

        mapping = ProjectorMapping(
            homography=homography,
            marker_ids=correspondences.marker_ids,
            camera_points=correspondences.camera_points,
            projector_points=correspondences.projector_points,
            reprojection_error=error,
            touch_area=touch_area,
        )
        self.info(f"Homography solved from markers {list(mapping.marker_ids)} "
                  f"(max reprojection error {error:.2e}px)")
        self.emit(CalibrationEvents.HOMOGRAPHY_SOLVED, mapping)
        return Outcome.success(mapping)

    def _mapping_failed(self, error: CalibrationError, message: str) -> Outcome[ProjectorMapping]:
        self.warning(f"projector mapping failed: {error.name} ({message})")
        self.emit(CalibrationEvents.HOMOGRAPHY_FAILED, error, message)
        return Outcome.failure(error, message)

    def calibrate(self, capture: SurfaceCapture, detection: DetectionResult,
                  threshold_meters: Optional[float] = None) -> Outcome[CalibrationState]:
        """
        Build and commit a new CalibrationState. On any failure the previous
        state stays in place untouched.
        """
        if threshold_meters is None:
            threshold_meters = self.config.touch_threshold_m
        threshold = TouchProximityTester.clamp_threshold(
            threshold_meters, self.config.touch_threshold_min_m, self.config.touch_threshold_max_m)

        mapping = self.solve_projector_mapping(detection)
        if not mapping.ok:
            self.warning(f"Calibration not committed: {mapping.error.name}")
            return Outcome.failure(mapping.error, mapping.message)

        projector = mapping.value
        state = CalibrationState.create(
            plane=capture.plane,
            corner_points_normalized=capture.corner_points_normalized,
            corner_points_physical=capture.corner_points_physical,
            homography=projector.homography,
            touch_threshold_meters=threshold,
            camera_marker_anchors=projector.camera_points,
            projector_marker_centers=projector.projector_points,
            marker_ids=projector.marker_ids,
            touch_area=projector.touch_area,
        )
        with self._state_lock:
            self._state = state
        self.info(f"Calibration committed: plane {state.plane}, threshold {threshold * 1000:.1f}mm")
        self.emit(CalibrationEvents.STATE_COMMITTED, state)
        return Outcome.success(state)

    def evaluate_touch(self, point: Sequence[float]) -> Optional[TouchReading]:
        """Touch reading against the committed state, None before calibration"""
        state = self.state
        if state is None:
            return None
        return state.evaluate_touch(point)

    def detect_touches(self) -> Optional[List[TouchBlob]]:
        """
        Scan the latest depth frame for touches against the committed state.
        None before calibration or while no depth frame is available.
        """
        state = self.state
        if state is None:
            return None
        points = self._depth_mapper.try_get_point_cloud()
        if points is None:
            return None

        blobs = state.detect_touches(points,
                                     min_blob=self.config.touch_min_blob,
                                     max_blob=self.config.touch_max_blob,
                                     stride=self.config.touch_sample_stride,
                                     cluster_distance=self.config.touch_cluster_px)
        if blobs:
            self.debug(f"{len(blobs)} touch blob(s): {[b.center for b in blobs]}")
            self.emit(CalibrationEvents.TOUCHES_DETECTED, blobs)
        return blobs
