"""
Processing step classes with a common interface.

Each step implements ProcessStep. Steps are pure: they take an RGBA array
and return a new one without mutating the input.

Usage:
    from processing.steps import ResizeStep, TransparencyStep, Pipeline

    pipeline = Pipeline(steps=[
        ResizeStep(max_width=1600),
        TransparencyStep(settings=InkSettings(alpha_threshold=170)),
    ])
    result = pipeline.run(rgba)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import cv2
import numpy as np

from config import PIXEL_WORKERS

from .config import InkSettings
from .normalization import resize_to_fit
from .transparency import apply_contrast, contrast_factor, process_pixels


class ProcessStep(ABC):
    """Base class for processing steps.

    Steps can optionally produce metadata (scale factors, pixel counts)
    that is collected into the pipeline results.
    """

    @abstractmethod
    def apply(self, img: np.ndarray) -> np.ndarray:
        """Apply this step to an (H, W, 4) uint8 image.

        Must be pure: never mutates the input image.
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for logging and artifact file names."""
        pass

    def get_metadata(self) -> dict[str, Any]:
        """Return any metadata produced by the last apply(). Empty by default."""
        return {}


@dataclass
class ResizeStep(ProcessStep):
    """Downscale to fit max_width/max_height, preserving aspect ratio.

    Attributes:
        max_width: Maximum width in pixels (0 = unbounded).
        max_height: Maximum height in pixels (0 = unbounded).
        interpolation: OpenCV interpolation method (area averaging by default).
    """

    max_width: int = 0
    max_height: int = 0
    interpolation: int = cv2.INTER_AREA
    _scale_factor: float = field(default=1.0, init=False, repr=False)
    _target_size: tuple[int, int] | None = field(default=None, init=False, repr=False)

    def apply(self, img: np.ndarray) -> np.ndarray:
        resized, scale_factor = resize_to_fit(
            img, self.max_width, self.max_height, self.interpolation
        )
        self._scale_factor = scale_factor
        self._target_size = (resized.shape[1], resized.shape[0])
        return resized

    @property
    def name(self) -> str:
        return f"resize({self.max_width}x{self.max_height})"

    def get_metadata(self) -> dict[str, Any]:
        applied = self._scale_factor != 1.0
        return {
            "scale_factor": self._scale_factor,
            "step_status": "applied" if applied else "declined",
            "skip_artifact": not applied,
            "step_metrics": {"target_size": self._target_size},
        }


@dataclass(frozen=True)
class ContrastStep(ProcessStep):
    """Contrast stretch of r, g, b around mid-gray. Alpha is copied through.

    Attributes:
        contrast: Adjustment in [-100, 100].
    """

    contrast: int = 0

    def apply(self, img: np.ndarray) -> np.ndarray:
        out = img.copy()
        out[..., :3] = apply_contrast(img[..., :3], self.contrast)
        return out

    @property
    def name(self) -> str:
        return f"contrast({self.contrast})"

    def get_metadata(self) -> dict[str, Any]:
        return {"step_metrics": {"factor": contrast_factor(self.contrast)}}


@dataclass
class TransparencyStep(ProcessStep):
    """Classify ink vs. background and write the transparent RGBA output.

    Attributes:
        settings: Settings snapshot. Its contrast_adjustment is applied here,
                  so pipelines with a separate ContrastStep pass 0.
        workers: Row-band threads (1 = sequential).
    """

    settings: InkSettings
    workers: int = PIXEL_WORKERS
    _metrics: dict[str, int] = field(default_factory=dict, init=False, repr=False)

    def apply(self, img: np.ndarray) -> np.ndarray:
        out = process_pixels(img, self.settings, workers=self.workers)
        alpha = out[..., 3]
        self._metrics = {
            "ink_pixels": int(np.count_nonzero(alpha)),
            "opaque_pixels": int(np.count_nonzero(alpha == 255)),
            "feathered_pixels": int(np.count_nonzero((alpha > 0) & (alpha < 255))),
            "total_pixels": int(alpha.size),
        }
        return out

    @property
    def name(self) -> str:
        return "transparency"

    def get_metadata(self) -> dict[str, Any]:
        return {"step_metrics": dict(self._metrics)}


@dataclass
class StepResult:
    """Result of applying a single step.

    Attributes:
        name: Name of the step that produced this result.
        image: Output image from the step.
        metadata: Metadata produced by the step.
        artifact_path: Where the image was saved (if artifact saving enabled).
    """

    name: str
    image: np.ndarray
    metadata: dict[str, Any] = field(default_factory=dict)
    artifact_path: str | None = None


@dataclass
class PipelineStepResults:
    """All intermediate images and metadata from one pipeline run."""

    original: np.ndarray
    steps: list[StepResult] = field(default_factory=list)
    original_artifact_path: str | None = None
    step_metadata: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def final(self) -> np.ndarray:
        """Get the final processed image."""
        if not self.steps:
            return self.original
        return self.steps[-1].image

    def get_intermediate(self, step_name: str) -> np.ndarray | None:
        """Get an intermediate image by full step name, e.g. "contrast(20)"."""
        for step in self.steps:
            if step.name == step_name:
                return step.image
        return None

    def get_metadata(self, key: str) -> Any | None:
        """Return the first step metadata value stored under key."""
        for step in self.steps:
            if key in step.metadata:
                return step.metadata[key]
        return None

    @property
    def scale_factor(self) -> float:
        return self.get_metadata("scale_factor") or 1.0

    @property
    def artifact_paths(self) -> dict[str, str]:
        """Step key (name without arguments) to saved artifact path."""
        paths = {}
        if self.original_artifact_path:
            paths["original"] = self.original_artifact_path
        for step in self.steps:
            if step.artifact_path:
                paths[step.name.split("(")[0]] = step.artifact_path
        return paths


def _save_image(img: np.ndarray, path: str) -> None:
    """Write an RGBA array as PNG (cv2 expects BGRA channel order)."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    cv2.imwrite(path, cv2.cvtColor(img, cv2.COLOR_RGBA2BGRA))


@dataclass
class Pipeline:
    """A sequence of steps run in order, keeping every intermediate result."""

    steps: list[ProcessStep]

    def run(
        self,
        img: np.ndarray,
        artifact_dir: str | None = None,
    ) -> PipelineStepResults:
        """Run the pipeline on an (H, W, 4) uint8 image.

        Args:
            img: Input RGBA image.
            artifact_dir: Optional directory to save original.png and each
                          step's output for inspection.
        """
        result = PipelineStepResults(original=img.copy())
        current = img.copy()

        if artifact_dir:
            original_path = f"{artifact_dir}/original.png"
            _save_image(img, original_path)
            result.original_artifact_path = original_path

        for step in self.steps:
            output = step.apply(current)
            metadata = step.get_metadata()
            step_key = step.name.split("(")[0]
            result.step_metadata[step_key] = {
                "status": metadata.get("step_status", "applied"),
                "metrics": metadata.get("step_metrics", {}),
            }

            artifact_path = None
            if artifact_dir and not metadata.get("skip_artifact", False):
                artifact_path = f"{artifact_dir}/{step_key}.png"
                _save_image(output, artifact_path)

            result.steps.append(
                StepResult(
                    name=step.name,
                    image=output,
                    metadata=metadata,
                    artifact_path=artifact_path,
                )
            )
            current = output

        return result

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)
