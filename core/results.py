"""
Result values for routine calibration outcomes.

Noisy sensor data makes every failure below an expected outcome, so they are
returned to the caller instead of raised. Only invariant violations raise.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar('T')


class CalibrationError(Enum):
    """Failure kinds a calibration step can report"""
    MAPPING_FAILURE = "mapping_failure"            # pixel has no valid depth sample
    DEGENERATE_PLANE = "degenerate_plane"          # collinear / coincident points
    INSUFFICIENT_MARKERS = "insufficient_markers"  # required marker IDs not all detected
    DETECTION_TIMEOUT = "detection_timeout"        # sweep ended without a valid result
    SINGULAR_MATRIX = "singular_matrix"            # homography solve failed numerically

    @property
    def recoverable(self) -> bool:
        return self in (CalibrationError.MAPPING_FAILURE,
                        CalibrationError.INSUFFICIENT_MARKERS,
                        CalibrationError.DETECTION_TIMEOUT)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or a CalibrationError with a human readable message"""
    value: Optional[T] = None
    error: Optional[CalibrationError] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, message: str = "") -> 'Outcome[T]':
        return cls(value=value, error=None, message=message)

    @classmethod
    def failure(cls, error: CalibrationError, message: str = "") -> 'Outcome[T]':
        return cls(value=None, error=error, message=message or error.value)

    def unwrap(self) -> T:
        """Return the value, raising if this outcome is a failure"""
        if self.error is not None:
            raise ValueError(f"Outcome is a failure: {self.error.name} ({self.message})")
        return self.value

    def __str__(self) -> str:
        if self.ok:
            return f"ok({self.value})"
        return f"{self.error.name}: {self.message}"
