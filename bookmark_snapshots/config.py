"""Global configuration constants for bookmark snapshots."""

from __future__ import annotations

# Titles dropped (with their whole subtree) before reconciliation.
# The empty title covers separators in browser exports.
DEFAULT_IGNORE: frozenset[str] = frozenset({""})

# Export folder whose subtree is mirrored to disk.
DEFAULT_SOURCE_LABEL: str = "toolbar"

# Synthetic name given to the mirrored root (first path segment on disk).
DEFAULT_ROOT_LABEL: str = "navigator"

ARTIFACT_SUFFIX: str = ".png"

# File name of the cleaned tree dump written once per run.
DEFAULT_TREE_DUMP: str = "navigator.json"

DEFAULT_VIEWPORT_WIDTH: int = 1280
DEFAULT_VIEWPORT_HEIGHT: int = 720

# Pause after navigation so client-rendered pages can finish drawing.
# Longer values trade throughput for completeness.
DEFAULT_SETTLE_MS: int = 5000

DEFAULT_NAVIGATION_TIMEOUT_MS: int = 100_000
