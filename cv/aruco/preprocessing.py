"""
Image preprocessing variants tried by the marker sweep.

Each variant maps a grayscale image to another grayscale image. Resizing
variants carry their scale so detected corners can be mapped back.
"""
from dataclasses import dataclass
from typing import Callable, List

import cv2
import numpy as np

GrayTransform = Callable[[np.ndarray], np.ndarray]


@dataclass(frozen=True)
class PreprocessingVariant:
    name: str
    apply: GrayTransform
    scale: float = 1.0


def to_gray(image: np.ndarray) -> np.ndarray:
    """Grayscale uint8 view of a gray, BGR or BGRA image"""
    if image is None or image.size == 0:
        raise ValueError("Empty image")
    if image.ndim == 2:
        gray = image
    elif image.ndim == 3 and image.shape[2] == 1:
        gray = image[:, :, 0]
    elif image.ndim == 3 and image.shape[2] == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    elif image.ndim == 3 and image.shape[2] == 4:
        gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    else:
        raise ValueError(f"Unsupported image shape {image.shape}")
    if gray.dtype != np.uint8:
        gray = cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    return gray


def _identity(gray: np.ndarray) -> np.ndarray:
    return gray


def _contrast_stretch(gray: np.ndarray) -> np.ndarray:
    return cv2.normalize(gray, None, 0, 255, cv2.NORM_MINMAX)


def _gamma(value: float) -> GrayTransform:
    table = np.array([((i / 255.0) ** value) * 255 for i in range(256)]).clip(0, 255).astype(np.uint8)

    def apply(gray: np.ndarray) -> np.ndarray:
        return cv2.LUT(gray, table)
    return apply


def _contrast_boost(gray: np.ndarray) -> np.ndarray:
    return cv2.convertScaleAbs(gray, alpha=1.5, beta=-40)


def _clahe(clip_limit: float) -> GrayTransform:
    def apply(gray: np.ndarray) -> np.ndarray:
        return cv2.createCLAHE(clipLimit=clip_limit, tileGridSize=(8, 8)).apply(gray)
    return apply


def _gaussian(ksize: int) -> GrayTransform:
    def apply(gray: np.ndarray) -> np.ndarray:
        return cv2.GaussianBlur(gray, (ksize, ksize), 0)
    return apply


def _median(ksize: int) -> GrayTransform:
    def apply(gray: np.ndarray) -> np.ndarray:
        return cv2.medianBlur(gray, ksize)
    return apply


_SHARPEN_KERNEL = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.float32)


def _sharpen(gray: np.ndarray) -> np.ndarray:
    return cv2.filter2D(gray, -1, _SHARPEN_KERNEL)


def _unsharp(gray: np.ndarray) -> np.ndarray:
    blurred = cv2.GaussianBlur(gray, (0, 0), 3)
    return cv2.addWeighted(gray, 1.5, blurred, -0.5, 0)


_MORPH_KERNEL = np.ones((3, 3), np.uint8)


def _clean(binary: np.ndarray) -> np.ndarray:
    opened = cv2.morphologyEx(binary, cv2.MORPH_OPEN, _MORPH_KERNEL)
    return cv2.morphologyEx(opened, cv2.MORPH_CLOSE, _MORPH_KERNEL)


def _otsu(gray: np.ndarray) -> np.ndarray:
    _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    return _clean(binary)


def _binary(level: int) -> GrayTransform:
    def apply(gray: np.ndarray) -> np.ndarray:
        _, binary = cv2.threshold(gray, level, 255, cv2.THRESH_BINARY)
        return _clean(binary)
    return apply


def _adaptive(gray: np.ndarray) -> np.ndarray:
    return cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
                                 cv2.THRESH_BINARY, 21, 5)


def _invert(gray: np.ndarray) -> np.ndarray:
    return cv2.bitwise_not(gray)


def _inverted_clahe(gray: np.ndarray) -> np.ndarray:
    return cv2.bitwise_not(_clahe(2.0)(gray))


def _resize(scale: float) -> GrayTransform:
    interpolation = cv2.INTER_AREA if scale < 1.0 else cv2.INTER_CUBIC

    def apply(gray: np.ndarray) -> np.ndarray:
        return cv2.resize(gray, None, fx=scale, fy=scale, interpolation=interpolation)
    return apply


IDENTITY = PreprocessingVariant("gray", _identity)


def build_variants() -> List[PreprocessingVariant]:
    """Fixed ordered list swept after the fast path; cheap variants first"""
    variants = [
        IDENTITY,
        PreprocessingVariant("contrast_stretch", _contrast_stretch),
        PreprocessingVariant("gamma_0.5", _gamma(0.5)),
        PreprocessingVariant("gamma_1.5", _gamma(1.5)),
        PreprocessingVariant("gamma_2.0", _gamma(2.0)),
        PreprocessingVariant("contrast_boost", _contrast_boost),
        PreprocessingVariant("clahe_2", _clahe(2.0)),
        PreprocessingVariant("clahe_4", _clahe(4.0)),
        PreprocessingVariant("gaussian_3", _gaussian(3)),
        PreprocessingVariant("gaussian_5", _gaussian(5)),
        PreprocessingVariant("median_3", _median(3)),
        PreprocessingVariant("median_5", _median(5)),
        PreprocessingVariant("sharpen", _sharpen),
        PreprocessingVariant("unsharp", _unsharp),
        PreprocessingVariant("otsu", _otsu),
    ]
    variants += [PreprocessingVariant(f"binary_{level}", _binary(level)) for level in (64, 96, 128, 160, 192)]
    variants += [
        PreprocessingVariant("adaptive", _adaptive),
        PreprocessingVariant("inverted", _invert),
        PreprocessingVariant("inverted_clahe", _inverted_clahe),
    ]
    variants += [PreprocessingVariant(f"resize_{scale}", _resize(scale), scale) for scale in (0.5, 0.75, 1.5, 2.0)]
    return variants
