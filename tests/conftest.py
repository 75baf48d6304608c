"""Shared pytest fixtures for bookmark snapshot tests."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from bookmark_snapshots.models import BookmarkNodeModel
from bookmark_snapshots.store import SnapshotStore

if TYPE_CHECKING:
    from pathlib import Path

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


class FakeCapture:
    """Capture stand-in that records every uri and fails for selected ones."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = set(failing or ())
        self.calls: list[str] = []

    async def __call__(self, uri: str) -> bytes:
        self.calls.append(uri)
        if uri in self.failing:
            msg = f"navigation timeout for {uri}"
            raise TimeoutError(msg)
        return PNG_BYTES


@pytest.fixture
def capture() -> FakeCapture:
    """Capture that succeeds for every uri."""
    return FakeCapture()


@pytest.fixture
def store(tmp_path: Path) -> SnapshotStore:
    """Store rooted at a fresh temporary output directory."""
    return SnapshotStore(tmp_path / "out")


@pytest.fixture
def work_tree() -> BookmarkNodeModel:
    """Toolbar with one folder holding one bookmark."""
    return BookmarkNodeModel.model_validate(
        {
            "title": "toolbar",
            "children": [
                {
                    "title": "Work",
                    "children": [{"title": "Mail", "uri": "https://mail.example.com"}],
                },
            ],
        },
    )


@pytest.fixture
def sample_export_json(tmp_path: Path) -> Path:
    """Create a minimal Firefox-style JSON backup."""
    payload = {
        "guid": "root________",
        "title": "",
        "typeCode": 2,
        "children": [
            {"guid": "menu________", "title": "menu", "typeCode": 2, "children": []},
            {
                "guid": "toolbar_____",
                "title": "toolbar",
                "typeCode": 2,
                "children": [
                    {"title": "Example", "typeCode": 1, "uri": "https://example.com"},
                    {"title": "", "typeCode": 3},
                    {
                        "title": "Docs",
                        "typeCode": 2,
                        "children": [
                            {"title": "Python", "typeCode": 1, "uri": "https://docs.python.org"},
                        ],
                    },
                ],
            },
        ],
    }
    p = tmp_path / "bookmarks.json"
    p.write_text(json.dumps(payload), encoding="utf-8")
    return p


@pytest.fixture
def sample_export_html(tmp_path: Path) -> Path:
    """Create a minimal Chrome-style HTML export."""
    content = (
        "<!DOCTYPE NETSCAPE-Bookmark-file-1>\n"
        "<TITLE>Bookmarks</TITLE>\n<H1>Bookmarks</H1>\n"
        "<DL><p>\n"
        '    <DT><H3 PERSONAL_TOOLBAR_FOLDER="true">Bookmarks bar</H3>\n'
        "    <DL><p>\n"
        '        <DT><A HREF="https://example.com">Example</A>\n'
        "        <DT><H3>Docs</H3>\n"
        "        <DL><p>\n"
        '            <DT><A HREF="https://docs.python.org">Python</A>\n'
        "        </DL><p>\n"
        "        <DT><H3>Empty</H3>\n"
        "        <DL><p>\n"
        "        </DL><p>\n"
        '        <DT><A HREF="https://example.org">Example Org</A>\n'
        "    </DL><p>\n"
        "    <DT><H3>Other bookmarks</H3>\n"
        "    <DL><p>\n"
        '        <DT><A HREF="https://other.example">Other</A>\n'
        "    </DL><p>\n"
        "</DL><p>\n"
    )
    p = tmp_path / "bookmarks.html"
    p.write_text(content, encoding="utf-8")
    return p


@pytest.fixture
def capture_factory() -> type[FakeCapture]:
    """Build captures with custom failure sets."""
    return FakeCapture
