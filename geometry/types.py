from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence, Tuple, List
import math

import numpy as np


class Point2D(NamedTuple):
    """Pixel or normalized coordinate. The space is the caller's context"""
    x: float
    y: float


class Point3D(NamedTuple):
    """Sensor-space coordinate in meters"""
    x: float
    y: float
    z: float

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y) and math.isfinite(self.z)


class Size(NamedTuple):
    width: float
    height: float

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


UNIT_TOLERANCE = 1e-6
MIN_NORMAL_LENGTH = 1e-9


@dataclass(frozen=True)
class PlaneEquation:
    """Plane satisfying normal·P + d = 0, normal expected to be unit length"""
    normal: Tuple[float, float, float]
    d: float

    def __post_init__(self):
        if len(self.normal) != 3:
            raise ValueError(f"plane normal needs 3 components, got {len(self.normal)}")
        length = math.sqrt(sum(c * c for c in self.normal))
        if not math.isfinite(length) or length < MIN_NORMAL_LENGTH:
            raise ValueError(f"plane normal {self.normal} has no direction")
        if not math.isfinite(self.d):
            raise ValueError(f"plane offset must be finite, got {self.d}")

    def is_unit(self, tolerance: float = UNIT_TOLERANCE) -> bool:
        length = math.sqrt(sum(c * c for c in self.normal))
        return abs(length - 1.0) <= tolerance

    def flipped(self) -> 'PlaneEquation':
        nx, ny, nz = self.normal
        return PlaneEquation((-nx, -ny, -nz), -self.d)

    @classmethod
    def from_coefficients(cls, nx: float, ny: float, nz: float, d: float,
                          min_norm: float = 1e-3) -> Optional['PlaneEquation']:
        """Rescale stored coefficients to a unit normal, None when the normal vanishes"""
        norm = math.sqrt(nx * nx + ny * ny + nz * nz)
        if not math.isfinite(norm) or norm <= min_norm or not math.isfinite(d):
            return None
        return cls((nx / norm, ny / norm, nz / norm), d / norm)

    def __str__(self) -> str:
        nx, ny, nz = self.normal
        return f"N=({nx:.6f}, {ny:.6f}, {nz:.6f}), D={self.d:.6f}"


@dataclass(frozen=True, eq=False)
class Homography:
    """Invertible 3x3 projective transform, camera space -> projector space"""
    matrix: np.ndarray

    SINGULAR_DET = 1e-12

    def __post_init__(self):
        h = np.array(self.matrix, dtype=np.float64)
        if h.shape != (3, 3):
            raise ValueError(f"Homography must be 3x3, got {h.shape}")
        if not np.all(np.isfinite(h)):
            raise ValueError("Homography contains non-finite values")
        det = float(np.linalg.det(h))
        if abs(det) < self.SINGULAR_DET:
            raise ValueError(f"Homography is singular (det={det})")
        h.setflags(write=False)
        object.__setattr__(self, 'matrix', h)

    @property
    def determinant(self) -> float:
        return float(np.linalg.det(self.matrix))

    def apply(self, point: Sequence[float]) -> Point2D:
        x, y = float(point[0]), float(point[1])
        u, v, w = self.matrix @ np.array([x, y, 1.0])
        return Point2D(float(u / w), float(v / w))

    def apply_many(self, points: Sequence[Sequence[float]]) -> List[Point2D]:
        if len(points) == 0:
            return []
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        pts_h = np.hstack([pts, np.ones((len(pts), 1))])
        mapped = (self.matrix @ pts_h.T).T
        mapped = mapped[:, :2] / mapped[:, 2:3]
        return [Point2D(float(u), float(v)) for u, v in mapped]

    def inverse(self) -> 'Homography':
        inv = np.linalg.inv(self.matrix)
        return Homography(inv / inv[2, 2] if abs(inv[2, 2]) > 1e-15 else inv)

    def to_list(self) -> List[List[float]]:
        """Row-major nested lists, the layout a persistence collaborator stores"""
        return [[float(v) for v in row] for row in self.matrix]

    @classmethod
    def identity(cls) -> 'Homography':
        return cls(np.eye(3))
