"""
Settings snapshot for the ink transparency pipeline.

One InkSettings instance is taken per invocation and passed explicitly
through every stage. It is frozen, so edits made in the settings store
while an image is being processed never reach the running pipeline.
"""

from dataclasses import dataclass, field, fields
from typing import Any

from config import (
    ALPHA_THRESHOLD,
    ALPHA_THRESHOLD_RANGE,
    FEATHERING_RANGE,
    FEATHERING_RANGE_LIMITS,
    CONTRAST_ADJUSTMENT,
    CONTRAST_ADJUSTMENT_RANGE,
    INVERT_PROCESSING,
    PRESERVE_INK_COLOR,
    CONVERT_TO_GRAYSCALE,
    USE_LUMINOSITY_FOR_ALPHA,
    MAX_WIDTH,
    MAX_HEIGHT,
)
from errors import InvalidSettingValueError

from .buffer import PixelBuffer

# Inclusive numeric bounds per field. None as upper bound means unbounded.
NUMERIC_LIMITS: dict[str, tuple[int, int | None]] = {
    "alpha_threshold": ALPHA_THRESHOLD_RANGE,
    "feathering_range": FEATHERING_RANGE_LIMITS,
    "contrast_adjustment": CONTRAST_ADJUSTMENT_RANGE,
    "max_width": (0, None),
    "max_height": (0, None),
}


def check_numeric_setting(name: str, value: Any) -> int:
    """Validate one numeric setting and return it as int.

    Booleans and non-integral numbers are rejected rather than coerced.

    Raises:
        InvalidSettingValueError: If the value is not an integer in range.
    """
    low, high = NUMERIC_LIMITS[name]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidSettingValueError(
            name, value, f"{name} must be an integer, got {value!r}"
        )
    if isinstance(value, float) and not value.is_integer():
        raise InvalidSettingValueError(
            name, value, f"{name} must be a whole number, got {value!r}"
        )
    if value < low or (high is not None and value > high):
        bound = f"{low}-{high}" if high is not None else f">= {low}"
        raise InvalidSettingValueError(
            name, value, f"{name} must be {bound}, got {value!r}"
        )
    return int(value)


@dataclass(frozen=True)
class InkSettings:
    """Parameters for one run of the transparency pipeline.

    Attributes:
        alpha_threshold: Brightness (0-255) separating ink from background.
        feathering_range: Half-width (0-50) of the brightness band in which
                          alpha ramps linearly. 0 is a hard threshold.
        contrast_adjustment: Contrast stretch (-100..100) applied to r, g, b
                             before brightness estimation. 0 is identity.
        invert_processing: True for light ink on a dark background.
        preserve_ink_color: Keep original ink RGB. Overrides
                            convert_to_grayscale.
        convert_to_grayscale: Replace ink RGB with its rounded brightness.
        use_luminosity_for_alpha: Perceptual weights instead of RGB mean.
        max_width: Downscale to at most this width (0 = unbounded).
        max_height: Downscale to at most this height (0 = unbounded).
    """

    alpha_threshold: int = ALPHA_THRESHOLD
    feathering_range: int = FEATHERING_RANGE
    contrast_adjustment: int = CONTRAST_ADJUSTMENT
    invert_processing: bool = INVERT_PROCESSING
    preserve_ink_color: bool = PRESERVE_INK_COLOR
    convert_to_grayscale: bool = CONVERT_TO_GRAYSCALE
    use_luminosity_for_alpha: bool = USE_LUMINOSITY_FOR_ALPHA
    max_width: int = MAX_WIDTH
    max_height: int = MAX_HEIGHT

    def __post_init__(self):
        # Whole-number floats (10.0) become ints so cv2 gets integer sizes.
        # Anything else is left for validate() to reject.
        for name in NUMERIC_LIMITS:
            value = getattr(self, name)
            if isinstance(value, float) and value.is_integer():
                object.__setattr__(self, name, int(value))

    @property
    def effective_convert_to_grayscale(self) -> bool:
        """Grayscale conversion as actually applied to ink pixels."""
        return self.convert_to_grayscale and not self.preserve_ink_color

    @property
    def resize_enabled(self) -> bool:
        return self.max_width > 0 or self.max_height > 0

    def validate(self) -> None:
        """Validate every field.

        Raises:
            InvalidSettingValueError: If any parameter is out of range.
        """
        for name in NUMERIC_LIMITS:
            check_numeric_setting(name, getattr(self, name))

        for f in fields(self):
            if f.name in NUMERIC_LIMITS:
                continue
            value = getattr(self, f.name)
            if not isinstance(value, bool):
                raise InvalidSettingValueError(
                    f.name, value, f"{f.name} must be a boolean, got {value!r}"
                )

    def as_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class ProcessResult:
    """Result of the transparency pipeline.

    Attributes:
        original: Decoded input buffer, untouched.
        processed: Final RGBA buffer ready for encoding.
        settings: The settings snapshot the run used.
        metadata: Per-step status and metrics keyed by step name.
    """

    original: PixelBuffer
    processed: PixelBuffer
    settings: InkSettings
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def was_resized(self) -> bool:
        return self.processed.size != self.original.size

    @property
    def ink_pixel_count(self) -> int:
        """Number of output pixels with non-zero alpha."""
        return int(self.metadata.get("transparency", {}).get("metrics", {}).get("ink_pixels", 0))
