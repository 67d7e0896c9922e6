"""
Image source adapters.

This module provides adapters for the two input paths:
- The system clipboard (via Pillow's ImageGrab)
- A user-selected local file

Each source returns raw encoded bytes; decoding is the pipeline's job.
"""

from .clipboard import read_clipboard_image
from .local import IMAGE_EXTENSIONS, SourceImage, is_image_path, load_source_image, read_image_file

__all__ = [
    "SourceImage",
    "read_clipboard_image",
    "IMAGE_EXTENSIONS",
    "is_image_path",
    "read_image_file",
    "load_source_image",
]
