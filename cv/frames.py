# Raw frame buffers as delivered by a sensor
from dataclasses import dataclass
from typing import Optional, Union

import cv2
import numpy as np

Buffer = Union[bytes, bytearray, memoryview, np.ndarray]


@dataclass(frozen=True)
class ColorFrame:
    """Packed color buffer (BGRA by default) with an explicit row stride in bytes"""
    pixels: Buffer
    width: int
    height: int
    stride: int
    channels: int = 4

    @classmethod
    def from_array(cls, image: np.ndarray) -> 'ColorFrame':
        """Wrap an OpenCV image (gray, BGR or BGRA)"""
        image = np.ascontiguousarray(image)
        height, width = image.shape[:2]
        channels = 1 if image.ndim == 2 else image.shape[2]
        return cls(image.tobytes(), width, height, width * channels, channels)

    def to_array(self) -> np.ndarray:
        """Image as HxWxC (or HxW for one channel), row padding dropped"""
        row_bytes = self.width * self.channels
        if self.stride < row_bytes:
            raise ValueError(f"stride {self.stride} is smaller than a row ({row_bytes} bytes)")

        if isinstance(self.pixels, np.ndarray):
            flat = np.ascontiguousarray(self.pixels).reshape(-1).view(np.uint8)
        else:
            flat = np.frombuffer(self.pixels, dtype=np.uint8)

        # The last row may omit its padding
        needed = self.stride * (self.height - 1) + row_bytes
        if flat.size < needed:
            raise ValueError(f"buffer holds {flat.size} bytes, frame needs {needed}")

        padded = np.zeros(self.stride * self.height, dtype=np.uint8)
        usable = min(flat.size, padded.size)
        padded[:usable] = flat[:usable]
        rows = padded.reshape(self.height, self.stride)[:, :row_bytes]
        if self.channels == 1:
            return np.ascontiguousarray(rows)
        return np.ascontiguousarray(rows).reshape(self.height, self.width, self.channels)

    def to_gray(self) -> np.ndarray:
        image = self.to_array()
        if self.channels == 1:
            return image
        if self.channels == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)


@dataclass(frozen=True)
class DepthFrame:
    """Depth samples in millimeters, 0 meaning no reading"""
    depth_mm: np.ndarray
    width: int
    height: int

    @classmethod
    def from_array(cls, depth_mm: np.ndarray) -> 'DepthFrame':
        depth = np.asarray(depth_mm, dtype=np.uint16)
        return cls(depth, depth.shape[1], depth.shape[0])

    def depth_m_at(self, x: int, y: int) -> Optional[float]:
        """Depth in meters at pixel (x, y), None when out of bounds or invalid"""
        if x < 0 or y < 0 or x >= self.width or y >= self.height:
            return None
        value = int(self.depth_mm[y, x])
        if value <= 0:
            return None
        return value / 1000.0
