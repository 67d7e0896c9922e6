"""
Typed RGBA pixel buffer.

A PixelBuffer owns its bytes and is immutable. Processing code works on
numpy arrays obtained via to_array(), which always returns a fresh copy, so
a buffer is never aliased between invocations.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from errors import BufferAcquisitionError

CHANNELS = 4


@dataclass(frozen=True)
class PixelBuffer:
    """Width x height RGBA pixels, 8 bits per channel, row-major.

    Attributes:
        width: Width in pixels (>= 1).
        height: Height in pixels (>= 1).
        data: Raw bytes in RGBA order, exactly width * height * 4 long.

    Raises:
        BufferAcquisitionError: If dimensions are not positive or the byte
            length does not match them.
    """

    width: int
    height: int
    data: bytes

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise BufferAcquisitionError(
                f"Pixel buffer dimensions must be positive, got {self.width}x{self.height}"
            )
        expected = self.width * self.height * CHANNELS
        if len(self.data) != expected:
            raise BufferAcquisitionError(
                f"Pixel buffer of {self.width}x{self.height} needs {expected} bytes, "
                f"got {len(self.data)}"
            )

    @property
    def size(self) -> tuple[int, int]:
        """(width, height)"""
        return self.width, self.height

    def to_array(self) -> np.ndarray:
        """Return a writable (height, width, 4) uint8 copy of the pixels."""
        flat = np.frombuffer(self.data, dtype=np.uint8)
        return flat.reshape(self.height, self.width, CHANNELS).copy()

    @classmethod
    def from_array(cls, arr: np.ndarray) -> PixelBuffer:
        """Build a buffer from a (height, width, 4) array.

        Values are expected in [0, 255]; the array is converted to uint8.

        Raises:
            BufferAcquisitionError: If the array is not an RGBA image.
        """
        if not isinstance(arr, np.ndarray):
            raise BufferAcquisitionError(f"Expected numpy.ndarray, got {type(arr).__name__}")
        if arr.ndim != 3 or arr.shape[2] != CHANNELS:
            raise BufferAcquisitionError(
                f"Expected an RGBA array of shape (H, W, 4), got {arr.shape}"
            )
        height, width = arr.shape[:2]
        data = np.ascontiguousarray(arr, dtype=np.uint8).tobytes()
        return cls(width=width, height=height, data=data)
