"""Result types and host callback signatures for one digitize invocation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Literal

from processing import PixelBuffer
from sources import SourceImage


@dataclass(frozen=True)
class ProcessedImage:
    """A processed, encoded image waiting for confirmation.

    Attributes:
        png: Encoded PNG bytes.
        pixels: The RGBA buffer that was encoded.
        file_name: Generated name without extension.
        source_name: Where the input came from (for logs).
        metadata: Per-step status and metrics from the pipeline.
    """

    png: bytes
    pixels: PixelBuffer
    file_name: str
    source_name: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def file_name_with_extension(self) -> str:
        return f"{self.file_name}.png"


@dataclass(frozen=True)
class DigitizeOutcome:
    """What happened to one invocation that did not fail.

    Attributes:
        status: "saved" or "cancelled".
        image: The processed image (None when cancelled).
        saved_path: Where the PNG was written.
        link: Text inserted into the note, if a link step ran.
    """

    status: Literal["saved", "cancelled"]
    image: ProcessedImage | None = None
    saved_path: Path | None = None
    link: str | None = None

    @property
    def cancelled(self) -> bool:
        return self.status == "cancelled"


# Host collaborators. Each is awaited; none has a timeout.
AcquireImage = Callable[[], Awaitable[SourceImage]]
ConfirmImage = Callable[[ProcessedImage], Awaitable[bool]]
InsertLink = Callable[[Path], Awaitable[str | None]]
