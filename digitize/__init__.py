"""Digitize invocation: acquire, process, confirm, save, link."""

from .linking import format_embed_link
from .models import DigitizeOutcome, ProcessedImage
from .service import (
    digitize,
    digitize_clipboard,
    digitize_file,
    process_from_clipboard,
    process_from_file,
    process_image_bytes,
)
from .storage import write_processed_image

__all__ = [
    "DigitizeOutcome",
    "ProcessedImage",
    "digitize",
    "digitize_clipboard",
    "digitize_file",
    "process_from_clipboard",
    "process_from_file",
    "process_image_bytes",
    "write_processed_image",
    "format_embed_link",
]
