"""
Transparency pipeline that applies all steps in order.

The standard pipeline is: Resize (if bounded) -> Contrast (if non-zero)
-> Transparency. run_pipeline() builds it from an InkSettings snapshot and
returns the processed PixelBuffer with per-step metadata.
"""

import dataclasses
import logging

from config import PIXEL_WORKERS
from errors import BufferAcquisitionError

from .buffer import PixelBuffer
from .config import InkSettings, ProcessResult
from .steps import (
    Pipeline,
    ProcessStep,
    ResizeStep,
    ContrastStep,
    TransparencyStep,
)

logger = logging.getLogger(__name__)


def build_pipeline(settings: InkSettings, workers: int = PIXEL_WORKERS) -> Pipeline:
    """Build a Pipeline from an InkSettings snapshot.

    1. ResizeStep - only when max_width or max_height is set
    2. ContrastStep - only when contrast_adjustment is non-zero
    3. TransparencyStep - always; receives the contrast already applied

    Args:
        settings: Settings snapshot.
        workers: Row-band threads for the transparency step.
    """
    steps: list[ProcessStep] = []

    if settings.resize_enabled:
        steps.append(ResizeStep(max_width=settings.max_width, max_height=settings.max_height))

    if settings.contrast_adjustment != 0:
        steps.append(ContrastStep(contrast=settings.contrast_adjustment))

    pixel_settings = dataclasses.replace(settings, contrast_adjustment=0)
    steps.append(TransparencyStep(settings=pixel_settings, workers=workers))

    return Pipeline(steps=steps)


def run_pipeline(
    buffer: PixelBuffer,
    settings: InkSettings | None = None,
    workers: int = PIXEL_WORKERS,
    artifact_dir: str | None = None,
) -> ProcessResult:
    """Turn a decoded image into transparent-background ink.

    Args:
        buffer: Decoded RGBA input.
        settings: Settings snapshot. Defaults to InkSettings().
        workers: Row-band threads for the pixel loop.
        artifact_dir: Optional directory for intermediate PNGs.

    Returns:
        ProcessResult with the untouched original and the processed buffer.

    Raises:
        InvalidSettingValueError: If settings are out of range.
        BufferAcquisitionError: If buffer is not a PixelBuffer.

    Examples:
        >>> buf = PixelBuffer(1, 1, bytes([10, 10, 10, 255]))
        >>> run_pipeline(buf, InkSettings(alpha_threshold=128)).processed.data
        b'\\n\\n\\n\\xff'
    """
    if settings is None:
        settings = InkSettings()

    settings.validate()

    if not isinstance(buffer, PixelBuffer):
        raise BufferAcquisitionError(f"Expected PixelBuffer, got {type(buffer).__name__}")

    pipeline = build_pipeline(settings, workers=workers)
    logger.debug("Running pipeline: %s", " -> ".join(step.name for step in pipeline))
    step_results = pipeline.run(buffer.to_array(), artifact_dir=artifact_dir)

    processed = PixelBuffer.from_array(step_results.final)
    metadata = dict(step_results.step_metadata)
    metadata["scale_factor"] = step_results.scale_factor
    if step_results.artifact_paths:
        metadata["artifact_paths"] = step_results.artifact_paths

    return ProcessResult(
        original=buffer,
        processed=processed,
        settings=settings,
        metadata=metadata,
    )
