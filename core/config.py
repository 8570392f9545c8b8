"""
Calibration Configuration - tunable defaults and a key=value settings parser
"""
import re
from dataclasses import dataclass, field
from typing import Tuple, List


@dataclass
class DetectionConfig:
    """Fiducial search limits. Empirical defaults, tune per installation"""

    # Wall-clock ceiling for one sweep (seconds)
    time_budget_s: float = 2.5

    # Geometry filter, fractions of total image area
    min_area_fraction: float = 0.00002   # 0.002%
    max_area_fraction: float = 0.25      # 25%
    min_side_px: float = 3.0

    # Markers a candidate must yield to end the search
    min_markers: int = 1

    # Try the raw grayscale image with relaxed profiles before the sweep
    use_fast_path: bool = True


@dataclass
class CalibrationConfig:
    """Calibration session parameters"""

    # Color sensor resolution used until a frame reports its own
    color_width: int = 1920
    color_height: int = 1080

    # Touch threshold (meters) and the range a UI may set it within
    touch_threshold_m: float = 0.03
    touch_threshold_min_m: float = 0.005
    touch_threshold_max_m: float = 0.08

    # Per-frame touch scan: pixel stride, blob linkage distance (px), blob size in samples
    touch_sample_stride: int = 4
    touch_cluster_px: float = 20.0
    touch_min_blob: int = 100
    touch_max_blob: int = 1000

    # Marker IDs that pair with projector marker indices 0..3
    required_marker_ids: Tuple[int, ...] = (0, 1, 2, 3)

    # Camera-side anchor per marker: "center" or "top_left"
    marker_anchor: str = "center"

    detection: DetectionConfig = field(default_factory=DetectionConfig)


class ConfigParser:
    """Parses key=value settings lines into a CalibrationConfig"""

    SETTING_MAP = {
        "color_width": ("calibration", "color_width", int),
        "color_height": ("calibration", "color_height", int),
        "touch_threshold_m": ("calibration", "touch_threshold_m", float),
        "touch_threshold_min_m": ("calibration", "touch_threshold_min_m", float),
        "touch_threshold_max_m": ("calibration", "touch_threshold_max_m", float),
        "touch_sample_stride": ("calibration", "touch_sample_stride", int),
        "touch_cluster_px": ("calibration", "touch_cluster_px", float),
        "touch_min_blob": ("calibration", "touch_min_blob", int),
        "touch_max_blob": ("calibration", "touch_max_blob", int),
        "marker_anchor": ("calibration", "marker_anchor", str),
        "required_marker_ids": ("calibration", "required_marker_ids", "ids"),
        "detection.time_budget_s": ("detection", "time_budget_s", float),
        "detection.min_area_fraction": ("detection", "min_area_fraction", float),
        "detection.max_area_fraction": ("detection", "max_area_fraction", float),
        "detection.min_side_px": ("detection", "min_side_px", float),
        "detection.min_markers": ("detection", "min_markers", int),
        "detection.use_fast_path": ("detection", "use_fast_path", "bool"),
    }

    VALID_ANCHORS = ("center", "top_left")

    _LINE = re.compile(r'^\s*([A-Za-z_][\w.]*)\s*=\s*(.*?)\s*$')

    def parse_settings(self, settings_lines: List[str]) -> CalibrationConfig:
        """Parse settings lines; malformed or unknown lines are ignored"""
        config = CalibrationConfig()

        for line in settings_lines:
            if not line or line.lstrip().startswith('#'):
                continue
            match = self._LINE.match(line)
            if not match:
                continue
            key, raw = match.groups()
            if key not in self.SETTING_MAP:
                continue

            section, attr_name, kind = self.SETTING_MAP[key]
            try:
                value = self._convert(raw, kind)
            except ValueError:
                continue

            if attr_name == "marker_anchor" and value not in self.VALID_ANCHORS:
                continue

            target = config.detection if section == "detection" else config
            setattr(target, attr_name, value)

        return config

    def create_default_config(self) -> CalibrationConfig:
        """Create default configuration for fallback"""
        return CalibrationConfig()

    def to_settings(self, config: CalibrationConfig) -> List[str]:
        """Inverse of parse_settings, one key=value line per setting"""
        lines = []
        for key, (section, attr_name, kind) in self.SETTING_MAP.items():
            source = config.detection if section == "detection" else config
            value = getattr(source, attr_name)
            if kind == "ids":
                value = ",".join(str(i) for i in value)
            elif kind == "bool":
                value = "true" if value else "false"
            lines.append(f"{key}={value}")
        return lines

    @staticmethod
    def _convert(raw: str, kind):
        if kind == "ids":
            ids = tuple(int(part) for part in raw.split(",") if part.strip())
            if not ids:
                raise ValueError("empty id list")
            return ids
        if kind == "bool":
            lowered = raw.lower()
            if lowered in ("1", "true", "yes", "on"):
                return True
            if lowered in ("0", "false", "no", "off"):
                return False
            raise ValueError(f"not a boolean: {raw}")
        if kind is str:
            if not raw:
                raise ValueError("empty string")
            return raw
        return kind(raw)

