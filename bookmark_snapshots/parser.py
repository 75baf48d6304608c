"""Load browser bookmark exports and persist the cleaned tree."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup, Tag

from .models import BookmarkNodeModel, Interior

if TYPE_CHECKING:  # pragma: no cover
    from pathlib import Path

LOGGER = logging.getLogger(__name__)

_HTML_SUFFIXES = {".html", ".htm"}


def load_bookmark_export(path: Path) -> BookmarkNodeModel:
    """Parse a JSON (Firefox backup) or HTML (Netscape format) export."""
    LOGGER.debug("Loading bookmark export from %s", path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in _HTML_SUFFIXES:
        root = parse_bookmark_html(text)
    else:
        root = BookmarkNodeModel.model_validate_json(text)
    LOGGER.info("Loaded bookmark export %s", path)
    return root


def find_subtree(root: BookmarkNodeModel, label: str) -> BookmarkNodeModel:
    """Return the top-level folder called ``label`` (e.g. the toolbar)."""
    for child in root.children or []:
        if child.title == label:
            return child
    available = [child.title for child in root.children or []]
    msg = f"Bookmark folder {label!r} not found at export root (available: {available})"
    raise ValueError(msg)


def parse_bookmark_html(html_text: str) -> BookmarkNodeModel:
    """Build a node tree from a Chrome/Brave/Edge HTML export."""
    soup = BeautifulSoup(html_text, "html.parser")
    root_dl = soup.find("dl")
    if not isinstance(root_dl, Tag):
        msg = "Bookmark export is missing <DL> root element"
        raise ValueError(msg)
    return BookmarkNodeModel(title="", children=_children_of(root_dl))


def _children_of(dl: Tag) -> list[BookmarkNodeModel]:
    # html.parser does not close <DT>, so entries nest inside each other; an
    # entry belongs to the closest enclosing <DL>.
    children: list[BookmarkNodeModel] = []
    for element in dl.find_all(["h3", "a"]):
        if element.find_parent("dl") is not dl:
            continue
        if element.name == "a":
            node = _leaf_from_anchor(element)
            if node is not None:
                children.append(node)
            continue
        folder_dl = element.find_next_sibling("dl")
        children.append(
            BookmarkNodeModel(
                title=element.get_text(strip=True),
                children=_children_of(folder_dl) if isinstance(folder_dl, Tag) else [],
            ),
        )
    return children


def _leaf_from_anchor(anchor: Tag) -> BookmarkNodeModel | None:
    href_value = anchor.get("href")
    if not isinstance(href_value, str) or not href_value.strip():
        LOGGER.debug("Skipping anchor without href")
        return None
    return BookmarkNodeModel(title=anchor.get_text(strip=True), uri=href_value.strip())


def write_tree_json(tree: Interior, path: Path) -> None:
    """Dump the cleaned tree as JSON for downstream tools and run-to-run diffs."""
    payload = tree.to_model().model_dump(exclude_none=True)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, ensure_ascii=False, indent=2)
    LOGGER.info("Wrote cleaned tree to %s", path)


def load_tree_json(path: Path) -> Interior:
    """Read a tree previously written by :func:`write_tree_json`."""
    model = BookmarkNodeModel.model_validate_json(path.read_text(encoding="utf-8"))
    return Interior.from_model(model)
