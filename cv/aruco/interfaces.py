from abc import ABC, abstractmethod
from concurrent.futures import Future

import numpy as np

from .types import DetectionResult


class IFiducialDetector(ABC):
    @abstractmethod
    def detect(self, image: np.ndarray) -> DetectionResult: pass

    @abstractmethod
    def detect_async(self, image: np.ndarray) -> Future: pass

    @property
    @abstractmethod
    def is_busy(self) -> bool: pass
