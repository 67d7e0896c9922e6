"""
Local image file input.

Reads a user-selected file as raw bytes after checking that it looks like an
image. Decoding happens later in the pipeline.
"""

import mimetypes
from dataclasses import dataclass
from pathlib import Path

from errors import DecodeError, EmptyInputError, FileSystemError

# Supported image extensions
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tiff", ".tif", ".gif"}


@dataclass(frozen=True)
class SourceImage:
    """Encoded image bytes from one input source.

    Attributes:
        data: Encoded image bytes.
        name_hint: Label for logs and errors, e.g. "clipboard-image.png".
    """

    data: bytes
    name_hint: str


def is_image_path(path: str | Path) -> bool:
    """True if the path's extension or guessed MIME type is image/*."""
    path = Path(path)
    if path.suffix.lower() in IMAGE_EXTENSIONS:
        return True
    mime, _ = mimetypes.guess_type(path.name)
    return bool(mime and mime.startswith("image/"))


def read_image_file(path: str | Path) -> bytes:
    """Read an image file's raw bytes.

    Args:
        path: Path to the image file.

    Returns:
        File contents.

    Raises:
        FileSystemError: If the path does not exist, is not a file, or cannot be read.
        DecodeError: If the file is not image-typed.
        EmptyInputError: If the file is empty.
    """
    file_path = Path(path).expanduser()

    if not file_path.is_file():
        raise FileSystemError(f"{path} is not a readable file")

    if not is_image_path(file_path):
        raise DecodeError(f"{path} is not a supported image file")

    try:
        data = file_path.read_bytes()
    except OSError as exc:
        raise FileSystemError(f"Could not read {path}: {exc}") from exc

    if not data:
        raise EmptyInputError(f"{path} is empty")
    return data


def load_source_image(path: str | Path) -> SourceImage:
    """Read a user-selected image file into a SourceImage."""
    return SourceImage(data=read_image_file(path), name_hint=Path(path).name)
