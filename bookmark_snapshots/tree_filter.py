"""Prune a bookmark export down to the tree that gets mirrored to disk."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from attrs import evolve

from .models import BookmarkNode, Interior, Leaf

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Collection

    from .models import BookmarkNodeModel

LOGGER = logging.getLogger(__name__)


def filter_tree(node: BookmarkNodeModel, ignore: Collection[str]) -> BookmarkNode | None:
    """Return a cleaned copy of ``node`` or None when it is dropped.

    A node whose title is ignored is dropped together with its subtree. A folder
    whose children all disappear stays as an empty folder. Nodes with neither a
    uri nor children carry nothing to mirror and are dropped. A node with both is
    treated as a folder and its uri is ignored.
    """
    if node.title in ignore:
        return None

    if node.children is not None:
        if node.uri:
            LOGGER.debug("Folder %r also carries uri %s; uri ignored", node.title, node.uri)
        kept = (filter_tree(child, ignore) for child in node.children)
        return Interior(title=node.title, children=tuple(c for c in kept if c is not None))

    if node.uri:
        return Leaf(title=node.title, uri=node.uri)

    LOGGER.debug("Dropping inert node %r (no uri, no children)", node.title)
    return None


def clean_tree(
    source: BookmarkNodeModel,
    ignore: Collection[str],
    root_label: str,
) -> Interior:
    """Filter ``source`` and rename its root to ``root_label``.

    Raises ValueError when nothing mirrorable is left at the root.
    """
    cleaned = filter_tree(source, ignore)
    if not isinstance(cleaned, Interior):
        msg = f"Bookmark folder {source.title!r} is ignored or is not a folder"
        raise ValueError(msg)  # noqa: TRY004
    LOGGER.info(
        "Cleaned tree %r: %d bookmarks kept",
        source.title,
        count_leaves(cleaned),
    )
    return evolve(cleaned, title=root_label)


def count_leaves(node: BookmarkNode) -> int:
    """Number of capturable bookmarks under ``node``."""
    if isinstance(node, Leaf):
        return 1
    return sum(count_leaves(child) for child in node.children)
