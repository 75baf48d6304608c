"""Filesystem side of the snapshot mirror."""

from __future__ import annotations

import contextlib
import logging
import shutil
from typing import TYPE_CHECKING

from .config import ARTIFACT_SUFFIX
from .models import ArtifactOutcome, PruneResult

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Awaitable, Callable, Collection
    from pathlib import Path

    from .models import Interior

LOGGER = logging.getLogger(__name__)


class SnapshotStoreError(RuntimeError):
    """Raised when the store cannot create a directory it needs."""


class SnapshotStore:
    """Creates directories and artifacts below ``output_dir`` and prunes stale ones.

    Every operation is idempotent on unchanged state. Existing artifacts are never
    re-captured: presence is the only thing checked.
    """

    def __init__(self, output_dir: Path) -> None:
        """Initialise the store rooted at ``output_dir``."""
        self.output_dir = output_dir

    @staticmethod
    def exists(path: Path) -> bool:
        """Whether anything is present at ``path``."""
        return path.exists()

    def ensure_directory(self, path: Path) -> bool:
        """Create ``path`` and missing parents; return True when it was created."""
        if path.is_dir():
            return False
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            LOGGER.error("Could not create directory %s: %s", path, exc)  # noqa: TRY400
            msg = f"Could not create directory {path}"
            raise SnapshotStoreError(msg) from exc
        LOGGER.info("Created directory %s", path)
        return True

    async def ensure_artifact(
        self,
        path: Path,
        uri: str,
        capture: Callable[[str], Awaitable[bytes]],
    ) -> ArtifactOutcome:
        """Capture ``uri`` into ``path`` unless the artifact already exists.

        Capture and write failures are logged and reported as FAILED; the artifact
        stays absent so the next run retries it.
        """
        if self.exists(path):
            LOGGER.debug("Skipping %s (already captured)", path)
            return ArtifactOutcome.SKIPPED

        try:
            image = await capture(uri)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Capture failed for %s (%s): %s", path, uri, exc)
            return ArtifactOutcome.FAILED

        try:
            path.write_bytes(image)
        except OSError as exc:
            LOGGER.warning("Could not write %s (%s): %s", path, uri, exc)
            with contextlib.suppress(OSError):
                path.unlink(missing_ok=True)
            return ArtifactOutcome.FAILED

        LOGGER.info("Captured %s", path)
        return ArtifactOutcome.CREATED

    def prune_extraneous(
        self,
        expected: Collection[Path],
        directory: Path,
        node: Interior,
        *,
        remove_stale_directories: bool = False,
    ) -> PruneResult:
        """Delete artifacts under ``directory`` that ``expected`` does not list.

        Sub-directories are only walked when ``node`` still has a folder of the
        same name. Directories without a folder counterpart are left in place
        unless ``remove_stale_directories`` is set, in which case they are removed
        with everything inside them. Files without the artifact suffix are never
        touched.
        """
        result = PruneResult()
        if not directory.is_dir():
            LOGGER.debug("Nothing to prune: %s does not exist", directory)
            return result
        self._prune_directory(
            set(expected),
            directory,
            node,
            result,
            remove_stale_directories=remove_stale_directories,
        )
        return result

    def _prune_directory(
        self,
        expected: set[Path],
        directory: Path,
        node: Interior,
        result: PruneResult,
        *,
        remove_stale_directories: bool,
    ) -> None:
        for entry in sorted(directory.iterdir()):
            if entry.is_dir():
                folder = node.find_interior(entry.name)
                if folder is not None:
                    self._prune_directory(
                        expected,
                        entry,
                        folder,
                        result,
                        remove_stale_directories=remove_stale_directories,
                    )
                else:
                    self._handle_stale_directory(entry, result, remove=remove_stale_directories)
            elif entry.name.endswith(ARTIFACT_SUFFIX) and entry not in expected:
                self._delete_artifact(entry, result)

    @staticmethod
    def _delete_artifact(path: Path, result: PruneResult) -> None:
        try:
            path.unlink()
        except OSError as exc:
            LOGGER.warning("Could not delete %s, remove it manually: %s", path, exc)
            result.failed.append(path)
            return
        LOGGER.info("Deleted %s", path)
        result.deleted.append(path)

    @staticmethod
    def _handle_stale_directory(path: Path, result: PruneResult, *, remove: bool) -> None:
        result.stale_directories.append(path)
        if not remove:
            LOGGER.info("Leaving directory %s (no matching bookmark folder)", path)
            return
        try:
            shutil.rmtree(path)
        except OSError as exc:
            LOGGER.warning("Could not delete directory %s, remove it manually: %s", path, exc)
            result.failed.append(path)
            return
        LOGGER.info("Deleted directory %s", path)
        result.deleted.append(path)
