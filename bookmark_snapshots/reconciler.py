"""Bring the snapshot directory in line with the cleaned bookmark tree.

A run has three phases, strictly in order:

1. materialise: walk the tree pre-order, creating folders and capturing every
   bookmark whose screenshot is missing;
2. collect the set of screenshot paths the tree expects;
3. prune screenshots on disk that are not in that set.

Phase 1 finishes (captures included, failed or not) before anything is pruned,
so a screenshot taken in this run is never removed by it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from .models import Leaf, ReconcileReport
from .paths import artifact_path, map_path, unsafe_segments
from .store import SnapshotStoreError

if TYPE_CHECKING:  # pragma: no cover
    from .capture import Capture
    from .models import BookmarkNode, Interior
    from .store import SnapshotStore

LOGGER = logging.getLogger(__name__)


async def reconcile(
    tree: Interior,
    store: SnapshotStore,
    capture: Capture,
    *,
    remove_stale_directories: bool = False,
) -> ReconcileReport:
    """Run all three phases against ``store`` and return what happened."""
    report = ReconcileReport()
    await materialise(tree, (), store, capture, report)

    expected = expected_artifacts(tree, store.output_dir)
    LOGGER.debug("%d screenshots expected under %s", len(expected), store.output_dir)

    report.prune = store.prune_extraneous(
        expected,
        map_path(store.output_dir, (tree.title,)),
        tree,
        remove_stale_directories=remove_stale_directories,
    )
    LOGGER.info("Reconciliation finished: %s", report.summary())
    return report


async def materialise(
    node: BookmarkNode,
    parent: tuple[str, ...],
    store: SnapshotStore,
    capture: Capture,
    report: ReconcileReport,
) -> None:
    """Ensure the directory or screenshot for ``node`` and everything below it.

    A folder whose directory cannot be created is logged and skipped together
    with its subtree; siblings carry on.
    """
    segments = (*parent, node.title)
    if unsafe_segments((node.title,)):
        LOGGER.warning("Title %r is not a plain file name (path %s)", node.title, segments)

    if isinstance(node, Leaf):
        target = artifact_path(store.output_dir, segments)
        report.record(target, await store.ensure_artifact(target, node.uri, capture))
        return

    directory = map_path(store.output_dir, segments)
    try:
        created = store.ensure_directory(directory)
    except SnapshotStoreError:
        LOGGER.warning("Skipping folder %s and its %d entries", directory, len(node.children))
        report.directory_failures.append(directory)
        return
    if created:
        report.directories_created.append(directory)

    for child in node.children:
        await materialise(child, segments, store, capture, report)


def expected_artifacts(tree: BookmarkNode, base: Path) -> set[Path]:
    """Screenshot paths for every bookmark under ``tree``."""
    expected: set[Path] = set()
    _collect(tree, (), base, expected)
    return expected


def _collect(node: BookmarkNode, parent: tuple[str, ...], base: Path, out: set[Path]) -> None:
    segments = (*parent, node.title)
    if isinstance(node, Leaf):
        out.add(artifact_path(base, segments))
        return
    for child in node.children:
        _collect(child, segments, base, out)


def changed_bookmarks(previous: Interior, current: Interior) -> tuple[list[Path], list[Path]]:
    """Screenshot paths (relative to the output directory) added and removed between trees."""
    before = expected_artifacts(previous, Path())
    after = expected_artifacts(current, Path())
    return sorted(after - before), sorted(before - after)
