"""End-to-end reconciliation tests against a temporary directory."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from bookmark_snapshots.models import BookmarkNodeModel, Interior, Leaf
from bookmark_snapshots.reconciler import changed_bookmarks, expected_artifacts, reconcile
from bookmark_snapshots.store import SnapshotStore
from bookmark_snapshots.tree_filter import clean_tree

if TYPE_CHECKING:
    from conftest import FakeCapture


def _tree(source: BookmarkNodeModel, ignore: set[str] | None = None) -> Interior:
    return clean_tree(source, ignore or set(), "navigator")


def _pngs(root: Path) -> set[Path]:
    return set(root.rglob("*.png"))


def test_single_bookmark_run(
    work_tree: BookmarkNodeModel, store: SnapshotStore, capture: FakeCapture,
) -> None:
    """One folder with one bookmark gives one directory and one screenshot."""
    tree = _tree(work_tree)
    report = asyncio.run(reconcile(tree, store, capture))

    mail = store.output_dir / "navigator" / "Work" / "Mail.png"
    if not (store.output_dir / "navigator" / "Work").is_dir() or not mail.is_file():
        raise AssertionError("Directory or screenshot missing after first run")
    if expected_artifacts(tree, store.output_dir) != {mail}:
        raise AssertionError("Expected set must contain exactly the one bookmark")
    if report.created != [mail] or report.prune.deleted:
        msg = f"Unexpected report: {report.summary()}"
        raise AssertionError(msg)


def test_second_run_is_idempotent(
    work_tree: BookmarkNodeModel, store: SnapshotStore, capture: FakeCapture,
) -> None:
    """Re-running on an unchanged tree captures and deletes nothing."""
    tree = _tree(work_tree)
    asyncio.run(reconcile(tree, store, capture))
    before = _pngs(store.output_dir)

    report = asyncio.run(reconcile(tree, store, capture))

    if len(capture.calls) != 1:
        msg = f"Second run must not capture again: {capture.calls}"
        raise AssertionError(msg)
    if report.created or report.prune.deleted or report.directories_created:
        msg = f"Second run changed state: {report.summary()}"
        raise AssertionError(msg)
    if _pngs(store.output_dir) != before:
        raise AssertionError("Filesystem changed on an idempotent run")


def test_ignored_bookmark_is_pruned(
    work_tree: BookmarkNodeModel, store: SnapshotStore, capture: FakeCapture,
) -> None:
    """Ignoring the only bookmark keeps its empty folder and prunes its screenshot."""
    stale = store.output_dir / "navigator" / "Work" / "Mail.png"
    stale.parent.mkdir(parents=True)
    stale.write_bytes(b"old")

    report = asyncio.run(reconcile(_tree(work_tree, {"Mail"}), store, capture))

    if capture.calls:
        raise AssertionError("Nothing should be captured when the only bookmark is ignored")
    if stale.exists() or report.prune.deleted != [stale]:
        msg = f"Ignored bookmark screenshot not pruned: {report.summary()}"
        raise AssertionError(msg)
    if not stale.parent.is_dir():
        raise AssertionError("Empty folder directory must still exist")


def test_failed_capture_is_retried_next_run(
    store: SnapshotStore, capture_factory: type[FakeCapture],
) -> None:
    """Only the bookmark that failed is captured on the following run."""
    source = BookmarkNodeModel.model_validate(
        {
            "title": "toolbar",
            "children": [
                {"title": "Up", "uri": "https://up.example"},
                {"title": "Down", "uri": "https://down.example"},
            ],
        },
    )
    tree = _tree(source)

    flaky = capture_factory(failing={"https://down.example"})
    first = asyncio.run(reconcile(tree, store, flaky))
    failed = [p.name for p in first.failed]
    created = [p.name for p in first.created]
    if failed != ["Down.png"] or created != ["Up.png"]:
        msg = f"Unexpected first run: {first.summary()}"
        raise AssertionError(msg)

    healthy = capture_factory()
    second = asyncio.run(reconcile(tree, store, healthy))
    if healthy.calls != ["https://down.example"]:
        msg = f"Only the failed bookmark should be retried: {healthy.calls}"
        raise AssertionError(msg)
    if [p.name for p in second.created] != ["Down.png"]:
        msg = f"Unexpected second run: {second.summary()}"
        raise AssertionError(msg)


def test_write_failure_does_not_stop_the_run(store: SnapshotStore, capture: FakeCapture) -> None:
    """A screenshot that cannot be written fails alone; later bookmarks are still captured."""
    tree = Interior(
        title="navigator",
        children=(
            Leaf(title="Work", uri="https://work.example"),
            Leaf(title="Work.png/shot", uri="https://shot.example"),
            Leaf(title="After", uri="https://after.example"),
        ),
    )

    report = asyncio.run(reconcile(tree, store, capture))

    root = store.output_dir / "navigator"
    if report.failed != [root / "Work.png" / "shot.png"]:
        msg = f"Unwritable screenshot not reported as failed: {report.summary()}"
        raise AssertionError(msg)
    if report.created != [root / "Work.png", root / "After.png"]:
        msg = f"Run should continue past the failed write: {report.summary()}"
        raise AssertionError(msg)


def test_captures_follow_tree_order(store: SnapshotStore, capture: FakeCapture) -> None:
    """Captures happen one by one in pre-order."""
    tree = Interior(
        title="navigator",
        children=(
            Leaf(title="A", uri="https://a"),
            Interior(title="F", children=(Leaf(title="B", uri="https://b"),)),
            Leaf(title="C", uri="https://c"),
        ),
    )
    asyncio.run(reconcile(tree, store, capture))
    if capture.calls != ["https://a", "https://b", "https://c"]:
        msg = f"Captures out of pre-order: {capture.calls}"
        raise AssertionError(msg)


def test_directory_failure_skips_only_that_folder(
    store: SnapshotStore, capture: FakeCapture,
) -> None:
    """A folder that cannot be created is skipped; its siblings are processed."""
    blocked = store.output_dir / "navigator" / "Blocked"
    blocked.parent.mkdir(parents=True)
    blocked.write_text("file in the way", encoding="utf-8")
    tree = Interior(
        title="navigator",
        children=(
            Interior(title="Blocked", children=(Leaf(title="X", uri="https://x"),)),
            Interior(title="Fine", children=(Leaf(title="Y", uri="https://y"),)),
        ),
    )

    report = asyncio.run(reconcile(tree, store, capture))

    if report.directory_failures != [blocked]:
        msg = f"Directory failure not reported: {report.summary()}"
        raise AssertionError(msg)
    if capture.calls != ["https://y"]:
        msg = f"Sibling folder should still be processed: {capture.calls}"
        raise AssertionError(msg)


def test_removed_folder_directory_is_kept_unless_requested(
    store: SnapshotStore, capture: FakeCapture,
) -> None:
    """Removed folders stay on disk (and show in the summary) unless removal is requested."""
    old = Interior(
        title="navigator",
        children=(Interior(title="Old", children=(Leaf(title="P", uri="https://p"),)),),
    )
    asyncio.run(reconcile(old, store, capture))
    orphan = store.output_dir / "navigator" / "Old" / "P.png"

    new = Interior(title="navigator")
    kept = asyncio.run(reconcile(new, store, capture))
    if not orphan.exists():
        raise AssertionError("Default pruning must not descend into removed folders")
    if "1 stale directories found" not in kept.summary():
        msg = f"Summary should count the stale directory: {kept.summary()}"
        raise AssertionError(msg)

    report = asyncio.run(reconcile(new, store, capture, remove_stale_directories=True))
    if orphan.parent.exists():
        raise AssertionError("Removed folder directory should be deleted when requested")
    if report.prune.deleted != [orphan.parent]:
        msg = f"Unexpected prune result: {report.summary()}"
        raise AssertionError(msg)


def test_changed_bookmarks_between_trees() -> None:
    """Added and removed screenshots are reported relative to the output directory."""
    previous = Interior(
        title="navigator",
        children=(
            Leaf(title="Keep", uri="https://keep"),
            Interior(title="Old", children=(Leaf(title="Gone", uri="https://gone"),)),
        ),
    )
    current = Interior(
        title="navigator",
        children=(Leaf(title="Keep", uri="https://keep"), Leaf(title="New", uri="https://new")),
    )

    added, removed = changed_bookmarks(previous, current)

    if added != [Path("navigator", "New.png")]:
        msg = f"Unexpected additions: {added}"
        raise AssertionError(msg)
    if removed != [Path("navigator", "Old", "Gone.png")]:
        msg = f"Unexpected removals: {removed}"
        raise AssertionError(msg)
