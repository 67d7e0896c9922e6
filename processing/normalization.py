"""
Size normalization for the transparency pipeline.

All functions are pure: they take an input and return a new output without
mutating the original array.
"""

import math

import cv2
import numpy as np


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward +infinity.

    Python's round() goes to even on ties; pixel and dimension math here
    needs 127.5 -> 128 and 2.5 -> 3.
    """
    return int(math.floor(value + 0.5))


def compute_target_size(
    width: int,
    height: int,
    max_width: int = 0,
    max_height: int = 0,
) -> tuple[int, int]:
    """Fit (width, height) inside the given bounds, preserving aspect ratio.

    The width bound is applied first. If the resulting height still exceeds
    max_height, both dimensions are scaled again by the height ratio. A bound
    of 0 disables that constraint. Images are never enlarged.

    Args:
        width: Source width in pixels.
        height: Source height in pixels.
        max_width: Maximum width, 0 for unbounded.
        max_height: Maximum height, 0 for unbounded.

    Returns:
        (target_width, target_height), both >= 1.

    Raises:
        ValueError: If source dimensions are not positive or a bound is negative.

    Examples:
        >>> compute_target_size(4000, 3000, max_width=1000)
        (1000, 750)
        >>> compute_target_size(4000, 3000, max_width=1000, max_height=500)
        (667, 500)
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Source dimensions must be positive, got {width}x{height}")
    if max_width < 0 or max_height < 0:
        raise ValueError(
            f"max_width/max_height must be non-negative, got {max_width}/{max_height}"
        )

    target_w, target_h = width, height

    if max_width > 0 and target_w > max_width:
        target_h = round_half_up(target_h * (max_width / target_w))
        target_w = max_width

    if max_height > 0 and target_h > max_height:
        ratio = max_height / target_h
        target_h = max_height
        target_w = round_half_up(target_w * ratio)

    return max(1, int(target_w)), max(1, int(target_h))


def resize_to_fit(
    img: np.ndarray,
    max_width: int = 0,
    max_height: int = 0,
    interpolation: int = cv2.INTER_AREA,
) -> tuple[np.ndarray, float]:
    """Downscale an image to fit max_width/max_height.

    Args:
        img: Input image (2D grayscale or 3D color, any channel count cv2 accepts).
        max_width: Maximum width, 0 for unbounded.
        max_height: Maximum height, 0 for unbounded.
        interpolation: OpenCV interpolation method. INTER_AREA averages
                       source pixels, which keeps thin strokes from aliasing.

    Returns:
        Tuple of:
        - Resized image with the same dtype and channel count as the input
          (a copy when no resize is needed)
        - Scale factor (original_width / new_width)

    Raises:
        TypeError: If img is not a numpy array.
        ValueError: If img is empty or has the wrong dimensionality.
    """
    if not isinstance(img, np.ndarray):
        raise TypeError(f"Expected numpy.ndarray, got {type(img).__name__}")

    if img.ndim < 2 or img.ndim > 3:
        raise ValueError(
            f"Image must be 2D or 3D array, got {img.ndim}D array with shape {img.shape}"
        )

    if img.size == 0:
        raise ValueError("Image array is empty")

    original_height, original_width = img.shape[:2]
    target_w, target_h = compute_target_size(
        original_width, original_height, max_width, max_height
    )

    if (target_w, target_h) == (original_width, original_height):
        return img.copy(), 1.0

    resized = cv2.resize(img, (target_w, target_h), interpolation=interpolation)
    return resized, original_width / target_w
