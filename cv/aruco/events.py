# Events emitted by the fiducial detection pipeline


class DetectionEvents:
    SWEEP_STARTED = "fiducial.sweep_started"
    MARKERS_DETECTED = "fiducial.markers_detected"
    NO_MARKERS = "fiducial.no_markers"
    SWEEP_TIMED_OUT = "fiducial.sweep_timed_out"
    DETECTION_ERROR = "fiducial.detection_error"
