"""Writing processed images to the output directory."""

from __future__ import annotations

import logging
from pathlib import Path

from errors import FileSystemError

from .models import ProcessedImage

logger = logging.getLogger(__name__)


def ensure_output_directory(directory: Path) -> bool:
    """Create directory if absent.

    Returns:
        True if the directory was created.

    Raises:
        FileSystemError: If a non-directory occupies the path or mkdir fails.
    """
    if directory.exists():
        if not directory.is_dir():
            raise FileSystemError(f'Path is not a directory: "{directory}"')
        return False
    try:
        directory.mkdir(parents=True)
    except FileExistsError:
        if not directory.is_dir():
            raise FileSystemError(f'Path is not a directory: "{directory}"')
        return False
    except OSError as exc:
        raise FileSystemError(f"Could not create directory {directory}: {exc}") from exc
    logger.info("Created directory %s", directory)
    return True


def write_processed_image(image: ProcessedImage, output_directory: str | Path) -> Path:
    """Write image.png to <output_directory>/<file_name>.png.

    An existing file of the same name is overwritten.

    Returns:
        Path of the written file.

    Raises:
        FileSystemError: If the directory cannot be prepared or the write fails.
    """
    directory = Path(output_directory)
    ensure_output_directory(directory)

    path = directory / image.file_name_with_extension
    try:
        path.write_bytes(image.png)
    except OSError as exc:
        raise FileSystemError(f"Could not write {path}: {exc}") from exc

    logger.info("Saved %s (%s bytes)", path, len(image.png))
    return path
