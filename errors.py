"""
Error taxonomy for ink digitization.

Every stage of an invocation raises one of these to its caller. Nothing is
retried internally; the host turns the failure into a user-visible message
and logs the detail.
"""

from __future__ import annotations

from pathlib import Path


class InkporterError(Exception):
    """Base class for all digitization failures."""


class EmptyInputError(InkporterError):
    """The source byte sequence has zero length."""


class DecodeError(InkporterError):
    """The source bytes are not a supported or intact image."""


class BufferAcquisitionError(InkporterError):
    """A pixel surface could not be obtained or has an inconsistent size."""


class ClipboardAccessDeniedError(InkporterError):
    """The clipboard could not be read on this platform or session."""


class NoImageFoundError(InkporterError):
    """The clipboard holds no image-typed entry."""


class EncodeError(InkporterError):
    """The processed buffer could not be serialized to PNG."""


class FileSystemError(InkporterError):
    """Directory creation or file write failed, or the path is occupied."""


class InvalidSettingValueError(InkporterError, ValueError):
    """A setting value is outside its accepted range.

    Attributes:
        name: Setting field name.
        value: The rejected value.
    """

    def __init__(self, name: str, value: object, message: str) -> None:
        super().__init__(message)
        self.name = name
        self.value = value


class LinkInsertionError(InkporterError):
    """Linking a saved image into the active note failed.

    The image itself was written; ``saved_path`` points at it.
    """

    def __init__(self, saved_path: Path, message: str) -> None:
        super().__init__(message)
        self.saved_path = saved_path


__all__ = [
    "InkporterError",
    "EmptyInputError",
    "DecodeError",
    "BufferAcquisitionError",
    "ClipboardAccessDeniedError",
    "NoImageFoundError",
    "EncodeError",
    "FileSystemError",
    "InvalidSettingValueError",
    "LinkInsertionError",
]
