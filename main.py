"""CLI entry point for the bookmark snapshot tool.

Mirrors one folder of a browser bookmark export as a directory tree of page
screenshots and keeps it in sync across runs: missing screenshots are captured,
existing ones are left alone, screenshots for removed bookmarks are pruned.
"""

from __future__ import annotations

# Standard library imports (alphabetical within groups)
import argparse
import asyncio
import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

# Third-party imports
from dotenv import load_dotenv
from playwright.async_api import Error as PlaywrightError

# Internal imports
from bookmark_snapshots.capture import PlaywrightCapture
from bookmark_snapshots.config import (
    DEFAULT_IGNORE,
    DEFAULT_NAVIGATION_TIMEOUT_MS,
    DEFAULT_ROOT_LABEL,
    DEFAULT_SETTLE_MS,
    DEFAULT_SOURCE_LABEL,
    DEFAULT_TREE_DUMP,
    DEFAULT_VIEWPORT_HEIGHT,
    DEFAULT_VIEWPORT_WIDTH,
)
from bookmark_snapshots.models import Interior, ReconcileReport
from bookmark_snapshots.parser import (
    find_subtree,
    load_bookmark_export,
    load_tree_json,
    write_tree_json,
)
from bookmark_snapshots.paths import map_path
from bookmark_snapshots.reconciler import changed_bookmarks, expected_artifacts, reconcile
from bookmark_snapshots.store import SnapshotStore
from bookmark_snapshots.tree_filter import clean_tree

STAGES: dict[int, str] = {
    1: "Load bookmark export",
    2: "Filter bookmark tree",
    3: "Write tree dump",
    4: "Capture snapshots",
    5: "Prune stale snapshots",
}


class RunMode(str, Enum):
    """Which stages a run goes through."""

    DUMP = "dump"
    SNAPSHOT = "snapshot"
    PRUNE = "prune"


def configure_logging(*, verbose: bool) -> None:
    """Configure root logging (debug when verbose).

    verbose: when True, sets DEBUG level; otherwise INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def load_ignore_titles(ignore_file: Path | None, extra: list[str] | None) -> frozenset[str]:
    """Merge the default ignore set with an ignore file and CLI values.

    The file holds one title per line; blank lines and lines starting with '#'
    are skipped. Raises FileNotFoundError when a non-existent path is supplied.
    """
    titles = set(DEFAULT_IGNORE)
    titles.update(extra or [])
    if ignore_file is None:
        return frozenset(titles)
    if not ignore_file.exists():
        msg = f"Ignore file not found: {ignore_file}"
        raise FileNotFoundError(msg)
    for line in ignore_file.read_text(encoding="utf-8").splitlines():
        title = line.strip()
        if title and not title.startswith("#"):
            titles.add(title)
    return frozenset(titles)


def log_stage(stage_number: int, message: str, *args: object) -> None:
    """Log a message prefixed with a stage label."""
    stage_label = STAGES.get(stage_number, f"Stage {stage_number}")
    logger = logging.getLogger("bookmark_snapshots")
    logger.info("[%s] %s", stage_label, message % args if args else message)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mirror a bookmark folder as a directory tree of page screenshots",
    )
    parser.add_argument(
        "--input",
        help=(
            "Path to the bookmark export (.json backup or .html export). If omitted, the"
            " environment variable BOOKMARKS_EXPORT_FILE is used."
        ),
    )
    parser.add_argument(
        "--output-dir",
        help=(
            "Directory that receives the screenshot tree. Defaults to BOOKMARK_SNAPSHOTS_DIR"
            " or the current directory."
        ),
    )
    parser.add_argument(
        "--tree-json",
        type=Path,
        help=f"Where to dump the cleaned tree (default: <output-dir>/{DEFAULT_TREE_DUMP})",
    )
    parser.add_argument(
        "--source-label",
        default=DEFAULT_SOURCE_LABEL,
        help="Top-level bookmark folder to mirror",
    )
    parser.add_argument(
        "--root-label",
        default=DEFAULT_ROOT_LABEL,
        help="Directory name used for the mirrored folder",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        metavar="TITLE",
        help="Bookmark or folder title to skip (repeatable)",
    )
    parser.add_argument(
        "--ignore-file",
        type=Path,
        help="Text file with one title to skip per line",
    )
    parser.add_argument(
        "--settle-ms",
        type=int,
        default=DEFAULT_SETTLE_MS,
        help="Wait after page load before the screenshot; longer is slower but more complete",
    )
    parser.add_argument(
        "--timeout-ms",
        type=int,
        default=DEFAULT_NAVIGATION_TIMEOUT_MS,
        help="Navigation/screenshot timeout",
    )
    parser.add_argument("--width", type=int, default=DEFAULT_VIEWPORT_WIDTH, help="Viewport width")
    parser.add_argument(
        "--height", type=int, default=DEFAULT_VIEWPORT_HEIGHT, help="Viewport height",
    )
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in RunMode],
        default=RunMode.SNAPSHOT.value,
        help=(
            "Workflow: 'dump'→cleaned tree JSON only; 'snapshot'→dump, capture and prune;"
            " 'prune'→dump and prune without opening a browser."
        ),
    )
    parser.add_argument(
        "--prune-directories",
        action="store_true",
        help="Also delete directories whose bookmark folder no longer exists",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)
    if args.mode == RunMode.DUMP.value and args.prune_directories:
        parser.error("--prune-directories cannot be combined with mode=dump")
    if args.settle_ms < 0 or args.timeout_ms <= 0:
        parser.error("--settle-ms must be >= 0 and --timeout-ms > 0")
    return args


def _resolve_input(path_arg: str | None) -> Path:
    resolved = path_arg or os.getenv("BOOKMARKS_EXPORT_FILE")
    if not resolved:
        msg = "No input file provided. Supply --input or set BOOKMARKS_EXPORT_FILE in env."
        raise SystemExit(msg)
    return Path(resolved)


def _resolve_output_dir(path_arg: str | None) -> Path:
    return Path(path_arg or os.getenv("BOOKMARK_SNAPSHOTS_DIR") or ".")


@dataclass(slots=True)
class RunPaths:
    """Bundle of paths used by one run."""

    input_path: Path
    output_dir: Path
    tree_json: Path


def log_changes_since_last_run(
    dump_path: Path, tree: Interior,
) -> tuple[list[Path], list[Path]] | None:
    """Compare ``tree`` with the dump of the previous run and log the difference.

    Returns (added, removed) screenshot paths, or None when there is no usable
    previous dump.
    """
    logger = logging.getLogger("bookmark_snapshots")
    if not dump_path.exists():
        return None
    try:
        previous = load_tree_json(dump_path)
    except (OSError, ValueError) as exc:
        logger.warning(
            "Failed to load previous tree at %s (%s); skipping change report", dump_path, exc,
        )
        return None
    added, removed = changed_bookmarks(previous, tree)
    log_stage(2, "%d bookmarks added, %d removed since last run", len(added), len(removed))
    for path in added:
        logger.debug("Added: %s", path)
    for path in removed:
        logger.debug("Removed: %s", path)
    return added, removed


def _prepare_tree(args: argparse.Namespace, paths: RunPaths) -> Interior:
    log_stage(1, "Reading %s", paths.input_path)
    export = load_bookmark_export(paths.input_path)
    source = find_subtree(export, args.source_label)
    log_stage(2, "Filtering folder %r", args.source_label)
    ignore = load_ignore_titles(args.ignore_file, args.ignore)
    tree = clean_tree(source, ignore, args.root_label)
    log_changes_since_last_run(paths.tree_json, tree)
    log_stage(3, "Writing %s", paths.tree_json)
    write_tree_json(tree, paths.tree_json)
    return tree


async def _run_snapshot(
    args: argparse.Namespace, tree: Interior, store: SnapshotStore,
) -> ReconcileReport:
    log_stage(4, "Capturing into %s", map_path(store.output_dir, (tree.title,)))
    async with PlaywrightCapture(
        settle_ms=args.settle_ms,
        timeout_ms=args.timeout_ms,
        width=args.width,
        height=args.height,
        headless=not args.headed,
    ) as capture:
        return await reconcile(
            tree, store, capture, remove_stale_directories=args.prune_directories,
        )


def _run_prune(args: argparse.Namespace, tree: Interior, store: SnapshotStore) -> ReconcileReport:
    directory = map_path(store.output_dir, (tree.title,))
    log_stage(5, "Pruning %s", directory)
    report = ReconcileReport()
    report.prune = store.prune_extraneous(
        expected_artifacts(tree, store.output_dir),
        directory,
        tree,
        remove_stale_directories=args.prune_directories,
    )
    return report


def run(argv: list[str] | None = None) -> ReconcileReport | None:
    """Execute one run; returns the report, or None in dump mode."""
    load_dotenv()
    args = _parse_args(argv)
    configure_logging(verbose=args.verbose)
    output_dir = _resolve_output_dir(args.output_dir)
    paths = RunPaths(
        input_path=_resolve_input(args.input),
        output_dir=output_dir,
        tree_json=args.tree_json or output_dir / DEFAULT_TREE_DUMP,
    )
    tree = _prepare_tree(args, paths)
    mode = RunMode(args.mode)
    if mode is RunMode.DUMP:
        log_stage(3, "Tree dump complete; dump-only mode finished")
        return None

    store = SnapshotStore(paths.output_dir)
    if mode is RunMode.PRUNE:
        report = _run_prune(args, tree, store)
    else:
        report = asyncio.run(_run_snapshot(args, tree, store))
    log_stage(5, "Done: %s", report.summary())
    return report


def main() -> None:
    """Entry point for the bookmark snapshot CLI."""
    logger = logging.getLogger("bookmark_snapshots")
    try:
        report = run()
    except (OSError, ValueError, PlaywrightError) as exc:
        logger.error("Run aborted: %s", exc)  # noqa: TRY400
        sys.exit(1)
    if report is not None and (report.failed or report.directory_failures):
        sys.exit(2)


if __name__ == "__main__":
    main()
