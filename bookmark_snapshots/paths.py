"""Map bookmark title paths to filesystem paths.

Titles are used verbatim as path segments. They are expected to already be
valid file names; nothing is escaped. ``unsafe_segments`` lets callers flag
titles that break that assumption.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .config import ARTIFACT_SUFFIX

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Sequence
    from pathlib import Path

_RESERVED = {"", ".", ".."}


def map_path(base: Path, segments: Sequence[str]) -> Path:
    """Join ``segments`` below ``base``."""
    return base.joinpath(*segments)


def artifact_path(base: Path, segments: Sequence[str]) -> Path:
    """Screenshot path for a bookmark: the mapped path plus the artifact suffix."""
    target = map_path(base, segments)
    # with_suffix would eat dotted titles such as "example.com"
    return target.with_name(target.name + ARTIFACT_SUFFIX)


def unsafe_segments(segments: Sequence[str]) -> list[str]:
    """Titles that cannot be used as a single path segment as-is."""
    separators = {os.sep, "/"}
    if os.altsep:
        separators.add(os.altsep)
    return [
        segment
        for segment in segments
        if segment in _RESERVED or any(sep in segment for sep in separators)
    ]
