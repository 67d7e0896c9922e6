"""
Clipboard image input.

Uses Pillow's ImageGrab, which returns either an image, a list of copied
file paths, or None. The first image-typed entry wins.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Callable

from PIL import Image, ImageGrab

from errors import ClipboardAccessDeniedError, NoImageFoundError

from .local import SourceImage, is_image_path, read_image_file

logger = logging.getLogger(__name__)


def read_clipboard_image(grab: Callable[[], Any] | None = None) -> SourceImage:
    """Read the first image-typed entry from the clipboard.

    Args:
        grab: Clipboard reader; defaults to ImageGrab.grabclipboard.

    Raises:
        ClipboardAccessDeniedError: If the clipboard cannot be read here
            (no display, missing helper tool, unsupported platform).
        NoImageFoundError: If the clipboard holds no image.
    """
    if grab is None:
        grab = ImageGrab.grabclipboard

    try:
        content = grab()
    except (OSError, NotImplementedError) as exc:
        raise ClipboardAccessDeniedError(f"Clipboard unavailable: {exc}") from exc

    if isinstance(content, Image.Image):
        # Clipboard-native formats (DIB, TIFF) are re-encoded losslessly
        out = io.BytesIO()
        try:
            content.save(out, format="PNG")
        except (OSError, ValueError) as exc:
            raise ClipboardAccessDeniedError(f"Clipboard image unreadable: {exc}") from exc
        source = (content.format or "png").lower()
        return SourceImage(data=out.getvalue(), name_hint=f"clipboard-image.{source}")

    if isinstance(content, (list, tuple)):
        for entry in content:
            if not isinstance(entry, (str, Path)) or not is_image_path(entry):
                continue
            logger.debug("Using copied file %s", entry)
            return SourceImage(data=read_image_file(entry), name_hint=Path(entry).name)

    raise NoImageFoundError("No image found on the clipboard")
