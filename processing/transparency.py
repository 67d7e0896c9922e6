"""
Per-pixel ink classification and color remapping.

Every function here is pure and works element-wise, so any row range of an
image can be processed independently of the rest. The arithmetic mirrors
the scalar definitions exactly (same operation order, float64, ties rounded
half-up) so vectorised and banded runs agree bit for bit.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import numpy as np

from config import BACKGROUND_RGB, LUMINOSITY_WEIGHTS, MIN_ROWS_PER_BAND

from .config import InkSettings


def clamp_channel(values) -> np.ndarray:
    """Round half-up and saturate to [0, 255].

    Returns:
        uint8 array of the same shape as values.
    """
    arr = np.asarray(values, dtype=np.float64)
    return np.clip(np.floor(arr + 0.5), 0, 255).astype(np.uint8)


def contrast_factor(contrast: float) -> float:
    """Standard contrast-stretch factor for an adjustment in (-259, 259)."""
    return (259 * (contrast + 255)) / (255 * (259 - contrast))


def apply_contrast(rgb: np.ndarray, contrast: int) -> np.ndarray:
    """Stretch (or compress) r, g, b around mid-gray.

    Args:
        rgb: (..., 3) array of channel values in [0, 255].
        contrast: Adjustment in [-100, 100]. 0 returns an unchanged copy.

    Returns:
        uint8 array of the same shape.
    """
    rgb = np.asarray(rgb)
    if contrast == 0:
        return rgb.astype(np.uint8, copy=True)
    factor = contrast_factor(contrast)
    return clamp_channel(factor * (rgb.astype(np.float64) - 127.5) + 127.5)


def estimate_brightness(rgb: np.ndarray, use_luminosity: bool = True) -> np.ndarray:
    """Reduce r, g, b to a scalar brightness in [0, 255].

    Args:
        rgb: (..., 3) array of channel values.
        use_luminosity: BT.601 weighted sum if True, arithmetic mean otherwise.

    Returns:
        float64 array of shape rgb.shape[:-1], not rounded.
    """
    rgb = np.asarray(rgb, dtype=np.float64)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    if use_luminosity:
        wr, wg, wb = LUMINOSITY_WEIGHTS
        return wr * r + wg * g + wb * b
    return (r + g + b) / 3


def classify_alpha(
    brightness,
    threshold: float,
    feather: float = 0,
    invert: bool = False,
) -> np.ndarray:
    """Map brightness to alpha with a linear ramp across the feather band.

    The band is [threshold - feather, threshold + feather]. For dark ink
    (invert=False) pixels at or below the band's lower edge are opaque,
    pixels inside the band fade out as they get brighter and pixels above
    it are transparent. invert=True mirrors this for light ink: strictly
    above the upper edge is opaque, the band fades in, the rest is clear.
    With feather == 0 the result is a hard 0/255 threshold.

    Args:
        brightness: Scalar or array of brightness values.
        threshold: Classification threshold (0-255).
        feather: Band half-width (>= 0).
        invert: True for light ink on a dark background.

    Returns:
        uint8 array of alpha values with the shape of brightness.
    """
    b = np.asarray(brightness, dtype=np.float64)
    low = threshold - feather
    high = threshold + feather

    if invert:
        opaque = b > high
        in_band = ~opaque & (b > low)
    else:
        opaque = b <= low
        in_band = ~opaque & (b <= high)

    if feather > 0:
        if invert:
            ramp = 255 * (b - low) / (2 * feather)
        else:
            ramp = 255 * (1 - (b - low) / (2 * feather))
        alpha = np.where(opaque, 255.0, np.where(in_band, ramp, 0.0))
    else:
        alpha = np.where(opaque, 255.0, 0.0)

    return clamp_channel(alpha)


def remap_colors(
    rgb: np.ndarray,
    brightness: np.ndarray,
    alpha: np.ndarray,
    to_grayscale: bool = False,
) -> np.ndarray:
    """Assemble output RGBA from classified pixels.

    Ink pixels (alpha > 0) keep rgb, or become uniform gray at their
    rounded brightness when to_grayscale is set. All other pixels are
    written as BACKGROUND_RGB with alpha 0.

    Args:
        rgb: (..., 3) contrast-adjusted channels.
        brightness: (...) brightness per pixel.
        alpha: (...) uint8 alpha per pixel.
        to_grayscale: Effective grayscale flag (already resolved against
                      preserve-ink-color).

    Returns:
        (..., 4) uint8 RGBA array.
    """
    rgb = np.asarray(rgb, dtype=np.uint8)
    alpha = np.asarray(alpha, dtype=np.uint8)
    ink = alpha > 0

    if to_grayscale:
        gray = clamp_channel(brightness)
        color = np.repeat(gray[..., np.newaxis], 3, axis=-1)
    else:
        color = rgb.copy()

    background = np.array(BACKGROUND_RGB, dtype=np.uint8)
    color = np.where(ink[..., np.newaxis], color, background)

    out = np.empty(alpha.shape + (4,), dtype=np.uint8)
    out[..., :3] = color
    out[..., 3] = np.where(ink, alpha, 0)
    return out


def transform_pixels(rgba: np.ndarray, settings: InkSettings) -> np.ndarray:
    """Run contrast, brightness, alpha and color stages on one block.

    Args:
        rgba: (..., 4) uint8 input. The source alpha channel is ignored.
        settings: Settings snapshot.

    Returns:
        New (..., 4) uint8 array; the input is not modified.
    """
    rgb = apply_contrast(rgba[..., :3], settings.contrast_adjustment)
    brightness = estimate_brightness(rgb, settings.use_luminosity_for_alpha)
    alpha = classify_alpha(
        brightness,
        settings.alpha_threshold,
        settings.feathering_range,
        settings.invert_processing,
    )
    return remap_colors(rgb, brightness, alpha, settings.effective_convert_to_grayscale)


def split_row_bands(height: int, workers: int, min_rows: int = MIN_ROWS_PER_BAND) -> list[tuple[int, int]]:
    """Partition [0, height) into at most `workers` contiguous row ranges.

    Bands are never shorter than min_rows unless the image itself is.
    """
    if height <= 0:
        return []
    count = max(1, min(workers, height // max(1, min_rows)))
    edges = np.linspace(0, height, count + 1).round().astype(int)
    return [(int(start), int(stop)) for start, stop in zip(edges[:-1], edges[1:]) if stop > start]


def process_pixels(
    rgba: np.ndarray,
    settings: InkSettings,
    workers: int = 1,
) -> np.ndarray:
    """Apply the per-pixel transform to a whole (H, W, 4) image.

    With workers > 1 the rows are split into bands and processed on a
    thread pool (numpy releases the GIL for the heavy lifting). Output is
    identical to the sequential run.

    Raises:
        TypeError: If rgba is not a numpy array.
        ValueError: If rgba is not shaped (H, W, 4).
    """
    if not isinstance(rgba, np.ndarray):
        raise TypeError(f"Expected numpy.ndarray, got {type(rgba).__name__}")
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError(f"Expected RGBA array of shape (H, W, 4), got {rgba.shape}")

    bands = split_row_bands(rgba.shape[0], workers)
    if len(bands) <= 1:
        return transform_pixels(rgba, settings)

    with ThreadPoolExecutor(max_workers=len(bands), thread_name_prefix="ink") as pool:
        parts = list(
            pool.map(lambda band: transform_pixels(rgba[band[0]:band[1]], settings), bands)
        )
    return np.concatenate(parts, axis=0)
