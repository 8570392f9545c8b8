# Event definitions for sensor collaborators

class SensorEvents:
    """Event contracts for frame sources and depth mappers"""
    # Frame events
    COLOR_FRAME_UPDATED = "sensor.color_frame_updated"
    DEPTH_FRAME_UPDATED = "sensor.depth_frame_updated"

    # Mapping events
    MAPPING_FAILED = "sensor.mapping_failed"
