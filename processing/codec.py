"""
Image decode/encode at the pipeline boundary.

Pillow handles every format the host may hand us (PNG, JPEG, WebP, BMP,
TIFF, GIF). Decoded images are normalized to RGBA with EXIF orientation
applied, matching what a browser shows for the same photo.
"""

import io
import logging

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from config import PNG_COMPRESS_LEVEL
from errors import BufferAcquisitionError, DecodeError, EmptyInputError, EncodeError

from .buffer import PixelBuffer

logger = logging.getLogger(__name__)

# Single-channel modes holding more than 8 bits per sample
WIDE_GRAY_MODES = ("I;16", "I;16L", "I;16B", "I;16N", "I")


def to_8bit_gray(img: Image.Image) -> Image.Image:
    """Scale a 16-bit grayscale image down to mode "L".

    Pillow's own convert() clips these values at 255 instead of scaling,
    which turns a whole 16-bit scan white. Samples are taken as 0-65535.
    """
    samples = np.asarray(img).astype(np.int64)
    scaled = np.clip(samples >> 8, 0, 255).astype(np.uint8)
    return Image.fromarray(scaled)


def decode_image(data: bytes, source_name: str = "image") -> PixelBuffer:
    """Decode encoded image bytes into an RGBA PixelBuffer.

    Args:
        data: Encoded image bytes.
        source_name: Label used in error messages and logs.

    Returns:
        PixelBuffer with the decoded pixels.

    Raises:
        EmptyInputError: If data is empty.
        DecodeError: If the bytes are not a supported or intact image.
        BufferAcquisitionError: If the decoded image cannot be converted to RGBA.
    """
    if not data:
        raise EmptyInputError(f"Input is empty: {source_name}")

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            oriented = ImageOps.exif_transpose(img)
    except UnidentifiedImageError as exc:
        raise DecodeError(f"Not a recognized image: {source_name}") from exc
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Image load failed for {source_name}: {exc}") from exc

    source_mode = oriented.mode
    try:
        if oriented.mode in WIDE_GRAY_MODES:
            oriented = to_8bit_gray(oriented)
        rgba = oriented.convert("RGBA")
        buffer = PixelBuffer(width=rgba.width, height=rgba.height, data=rgba.tobytes())
    except (OSError, ValueError) as exc:
        raise BufferAcquisitionError(f"Could not read pixels from {source_name}: {exc}") from exc

    logger.debug(
        "Decoded %s: %sx%s (source mode %s)",
        source_name, buffer.width, buffer.height, source_mode,
    )
    return buffer


def encode_png(buffer: PixelBuffer, compress_level: int = PNG_COMPRESS_LEVEL) -> bytes:
    """Serialize an RGBA PixelBuffer to PNG bytes.

    Raises:
        EncodeError: If Pillow cannot write the image.
    """
    try:
        img = Image.frombytes("RGBA", buffer.size, buffer.data)
        out = io.BytesIO()
        img.save(out, format="PNG", compress_level=compress_level)
    except (OSError, ValueError) as exc:
        raise EncodeError(f"PNG encoding failed: {exc}") from exc

    encoded = out.getvalue()
    if not encoded:
        raise EncodeError("PNG encoding produced no data")
    return encoded
