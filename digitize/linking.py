"""Embed links for saved images."""

from __future__ import annotations

import os
from pathlib import Path


def format_embed_link(path: str | Path, base: str | Path | None = None) -> str:
    """Wiki-style embed for a saved image, e.g. ``![[FieldNotes/ink.png]]``.

    Args:
        path: Saved image path.
        base: Notes root; the link is made relative to it when given.

    Raises:
        ValueError: If path is not inside base (on a different drive).
    """
    target = Path(path)
    if base is not None:
        target = Path(os.path.relpath(target, base))
    return f"![[{target.as_posix()}]]"
