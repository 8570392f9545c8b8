# Event definitions for the calibration session

class CalibrationEvents:
    """Event contracts for calibration steps"""
    # Surface capture
    PLANE_FITTED = "calibration.plane_fitted"
    PLANE_FAILED = "calibration.plane_failed"
    MAPPING_FAILED = "calibration.mapping_failed"

    # Marker detection
    MARKERS_DETECTED = "calibration.markers_detected"
    DETECTION_FAILED = "calibration.detection_failed"

    # Projector mapping
    HOMOGRAPHY_SOLVED = "calibration.homography_solved"
    HOMOGRAPHY_FAILED = "calibration.homography_failed"

    # Committed state
    STATE_COMMITTED = "calibration.state_committed"

    # Touch scan
    TOUCHES_DETECTED = "calibration.touches_detected"
