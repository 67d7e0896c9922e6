"""
Ink transparency processing.

Turns a decoded photo of handwriting into RGBA pixels where ink keeps (or
recolors) its color and paper becomes fully transparent. All per-pixel
functions are pure and deterministic, so the same input and settings always
produce the same bytes.

Key components:
- buffer: PixelBuffer, the typed RGBA byte buffer passed between stages
- config: InkSettings snapshot and ProcessResult
- codec: decode_image() / encode_png() via Pillow
- normalization: compute_target_size() / resize_to_fit()
- transparency: contrast, brightness, alpha classification, color remap
- steps / pipeline: step classes and run_pipeline()
"""

from .buffer import PixelBuffer
from .config import InkSettings, ProcessResult
from .codec import decode_image, encode_png
from .normalization import compute_target_size, resize_to_fit, round_half_up
from .transparency import (
    apply_contrast,
    estimate_brightness,
    classify_alpha,
    remap_colors,
    process_pixels,
)
from .pipeline import run_pipeline, build_pipeline
from .steps import (
    ProcessStep,
    ResizeStep,
    ContrastStep,
    TransparencyStep,
    Pipeline,
    PipelineStepResults,
    StepResult,
)

__all__ = [
    # Data
    "PixelBuffer",
    "InkSettings",
    "ProcessResult",
    # Codec
    "decode_image",
    "encode_png",
    # Function API
    "compute_target_size",
    "resize_to_fit",
    "round_half_up",
    "apply_contrast",
    "estimate_brightness",
    "classify_alpha",
    "remap_colors",
    "process_pixels",
    "run_pipeline",
    "build_pipeline",
    # Class-based API
    "ProcessStep",
    "ResizeStep",
    "ContrastStep",
    "TransparencyStep",
    "Pipeline",
    "PipelineStepResults",
    "StepResult",
]
