"""Data models for the bookmark snapshot pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Union

from attrs import define
from pydantic import BaseModel, ConfigDict, field_validator

if TYPE_CHECKING:  # pragma: no cover
    from pathlib import Path


class BookmarkNodeModel(BaseModel):
    """Pydantic model for one node of a bookmark export.

    Browser exports carry many more keys (``guid``, ``typeCode``, ``dateAdded``...);
    only the three the pipeline needs are kept.
    """

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    uri: str | None = None
    children: list[BookmarkNodeModel] | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, value: object) -> str:
        return "" if value is None else str(value)


@define(frozen=True)
class Leaf:
    """Capturable bookmark: one screenshot artifact."""

    title: str
    uri: str

    def to_model(self) -> BookmarkNodeModel:
        """Convert the leaf into a serialisable pydantic model."""
        return BookmarkNodeModel(title=self.title, uri=self.uri)


@define(frozen=True)
class Interior:
    """Bookmark folder: one directory holding further nodes."""

    title: str
    children: tuple[BookmarkNode, ...] = ()

    def find_interior(self, title: str) -> Interior | None:
        """Return the first folder child called ``title``, if any."""
        for child in self.children:
            if isinstance(child, Interior) and child.title == title:
                return child
        return None

    def to_model(self) -> BookmarkNodeModel:
        """Convert the folder (recursively) into a serialisable pydantic model."""
        return BookmarkNodeModel(
            title=self.title,
            children=[child.to_model() for child in self.children],
        )

    @classmethod
    def from_model(cls, model: BookmarkNodeModel) -> Interior:
        """Rebuild a cleaned tree from a dumped model (no filtering applied)."""
        children: list[BookmarkNode] = []
        for child in model.children or []:
            if child.children is not None:
                children.append(cls.from_model(child))
            elif child.uri:
                children.append(Leaf(title=child.title, uri=child.uri))
        return cls(title=model.title, children=tuple(children))


BookmarkNode = Union[Leaf, Interior]


class ArtifactOutcome(Enum):
    """Result of ensuring a single artifact."""

    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True)
class PruneResult:
    """Counts produced by one pruning pass."""

    deleted: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)
    stale_directories: list[Path] = field(default_factory=list)


@dataclass(slots=True)
class ReconcileReport:
    """Outcome of a full reconciliation run."""

    created: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)
    directories_created: list[Path] = field(default_factory=list)
    directory_failures: list[Path] = field(default_factory=list)
    prune: PruneResult = field(default_factory=PruneResult)

    def record(self, path: Path, outcome: ArtifactOutcome) -> None:
        """File ``path`` under the list matching ``outcome``."""
        if outcome is ArtifactOutcome.CREATED:
            self.created.append(path)
        elif outcome is ArtifactOutcome.SKIPPED:
            self.skipped.append(path)
        else:
            self.failed.append(path)

    def summary(self) -> str:
        """One-line human readable summary."""
        return (
            f"{len(self.created)} captured, {len(self.skipped)} already present, "
            f"{len(self.failed)} failed, {len(self.directories_created)} directories created, "
            f"{len(self.directory_failures)} directory failures, "
            f"{len(self.prune.deleted)} pruned, {len(self.prune.failed)} prune failures, "
            f"{len(self.prune.stale_directories)} stale directories found"
        )
