"""Digitize entrypoints for reuse across hosts (CLI, editor plugins).

One invocation is: acquire bytes -> decode -> process -> encode -> confirm
-> write -> optional link. Each arrow is an await; CPU and disk work runs
in worker threads so a host event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from config import PIXEL_WORKERS
from errors import EmptyInputError, LinkInsertionError
from naming import generate_file_name
from processing import InkSettings, decode_image, encode_png, run_pipeline
from settings_store import InkporterSettings
from sources import SourceImage, load_source_image, read_clipboard_image

from .models import (
    AcquireImage,
    ConfirmImage,
    DigitizeOutcome,
    InsertLink,
    ProcessedImage,
)
from .storage import write_processed_image

logger = logging.getLogger(__name__)


async def process_image_bytes(
    data: bytes,
    settings: InkSettings,
    file_name_template: str | None = None,
    source_name: str = "processed-image.png",
    workers: int = PIXEL_WORKERS,
    now: datetime | None = None,
) -> ProcessedImage:
    """Decode, process and encode one image.

    Args:
        data: Encoded input bytes.
        settings: Settings snapshot for this run.
        file_name_template: Template for the output name (default if empty).
        source_name: Label for logs and error messages.
        workers: Row-band threads for the pixel loop.
        now: Clock override for file naming.

    Raises:
        EmptyInputError: If data is empty.
        DecodeError: If data is not a supported image.
        BufferAcquisitionError: If pixels cannot be extracted.
        InvalidSettingValueError: If settings are out of range.
        EncodeError: If PNG encoding fails.
    """
    if not data:
        raise EmptyInputError(f"Input is empty: {source_name}")

    settings.validate()

    buffer = await asyncio.to_thread(decode_image, data, source_name)
    result = await asyncio.to_thread(run_pipeline, buffer, settings, workers)
    png = await asyncio.to_thread(encode_png, result.processed)

    file_name = generate_file_name(file_name_template, now=now)
    logger.debug(
        "Processed %s: %sx%s -> %sx%s, %s ink pixels",
        source_name,
        buffer.width, buffer.height,
        result.processed.width, result.processed.height,
        result.ink_pixel_count,
    )
    return ProcessedImage(
        png=png,
        pixels=result.processed,
        file_name=file_name,
        source_name=source_name,
        metadata=result.metadata,
    )


async def process_source(
    source: SourceImage,
    settings: InkSettings,
    file_name_template: str | None = None,
    workers: int = PIXEL_WORKERS,
) -> ProcessedImage:
    """Process an acquired image with an already-taken settings snapshot."""
    return await process_image_bytes(
        source.data,
        settings,
        file_name_template=file_name_template,
        source_name=source.name_hint,
        workers=workers,
    )


async def process_from_clipboard(
    record: InkporterSettings,
    grab: Callable[[], Any] | None = None,
    workers: int = PIXEL_WORKERS,
) -> ProcessedImage:
    """Process the first image found on the clipboard.

    Raises:
        ClipboardAccessDeniedError: If the clipboard cannot be read.
        NoImageFoundError: If the clipboard holds no image.
        Plus everything process_image_bytes() raises.
    """
    settings = record.to_ink_settings()
    template = record.file_name_template
    source = await asyncio.to_thread(read_clipboard_image, grab)
    return await process_source(source, settings, template, workers=workers)


async def process_from_file(
    path: str | Path,
    record: InkporterSettings,
    workers: int = PIXEL_WORKERS,
) -> ProcessedImage:
    """Process a user-selected image file.

    Raises:
        FileSystemError: If the file cannot be read.
        Plus everything process_image_bytes() raises.
    """
    settings = record.to_ink_settings()
    template = record.file_name_template
    source = await asyncio.to_thread(load_source_image, path)
    return await process_source(source, settings, template, workers=workers)


async def digitize(
    acquire: AcquireImage,
    record: InkporterSettings,
    confirm: ConfirmImage,
    insert_link: InsertLink | None = None,
    root: str | Path = ".",
    workers: int = PIXEL_WORKERS,
) -> DigitizeOutcome:
    """Run one full invocation.

    The settings record is snapshotted before anything is awaited, so edits
    made while the user looks at the preview do not change this run.

    Args:
        acquire: Coroutine factory returning the input image.
        record: Settings record (output directory, template, processing).
        confirm: Awaited with the processed image; True to save. Waits as
                 long as the host needs.
        insert_link: Awaited with the saved path after a successful write.
        root: Notes root that record.output_directory is relative to.
        workers: Row-band threads for the pixel loop.

    Returns:
        DigitizeOutcome with status "saved" or "cancelled".

    Raises:
        InkporterError: Any stage failure. LinkInsertionError means the
            image was saved but linking failed; the file is kept.
    """
    settings = record.to_ink_settings()
    output_directory = Path(root) / record.output_directory
    template = record.file_name_template

    source = await acquire()
    image = await process_source(source, settings, template, workers=workers)

    if not await confirm(image):
        logger.info("Cancelled; %s discarded", image.file_name_with_extension)
        return DigitizeOutcome(status="cancelled")

    saved_path = await asyncio.to_thread(write_processed_image, image, output_directory)

    link = None
    if insert_link is not None:
        try:
            link = await insert_link(saved_path)
        except Exception as exc:
            raise LinkInsertionError(
                saved_path, f"Saved {saved_path} but could not link it: {exc}"
            ) from exc

    return DigitizeOutcome(status="saved", image=image, saved_path=saved_path, link=link)


async def digitize_clipboard(
    record: InkporterSettings,
    confirm: ConfirmImage,
    insert_link: InsertLink | None = None,
    root: str | Path = ".",
    grab: Callable[[], Any] | None = None,
    workers: int = PIXEL_WORKERS,
) -> DigitizeOutcome:
    """Run the "process image from clipboard" command."""

    async def acquire() -> SourceImage:
        return await asyncio.to_thread(read_clipboard_image, grab)

    return await digitize(acquire, record, confirm, insert_link, root=root, workers=workers)


async def digitize_file(
    path: str | Path,
    record: InkporterSettings,
    confirm: ConfirmImage,
    insert_link: InsertLink | None = None,
    root: str | Path = ".",
    workers: int = PIXEL_WORKERS,
) -> DigitizeOutcome:
    """Run the "process image from file" command."""

    async def acquire() -> SourceImage:
        return await asyncio.to_thread(load_source_image, path)

    return await digitize(acquire, record, confirm, insert_link, root=root, workers=workers)
