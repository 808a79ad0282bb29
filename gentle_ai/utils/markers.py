"""Marker-based section management for agent system prompt files.

Shared files such as CLAUDE.md hold user content alongside sections managed by
gentle-ai. Each managed section is wrapped in HTML comment markers so it can be
updated or removed without touching anything outside of it.

Marker Format:
    <!-- gentle-ai:{section-id} -->
    ... managed content ...
    <!-- /gentle-ai:{section-id} -->
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_OPEN_PREFIX = "<!-- gentle-ai:"
_CLOSE_PREFIX = "<!-- /gentle-ai:"
_SUFFIX = " -->"

_SECTION_PATTERN = re.compile(r"<!-- gentle-ai:([^\s/][^\s]*) -->")


def make_open_marker(section_id: str) -> str:
    """Create the opening marker for a section.

    Args:
        section_id: Identifier of the managed section

    Returns:
        HTML comment opening marker
    """
    return f"{_OPEN_PREFIX}{section_id}{_SUFFIX}"


def make_close_marker(section_id: str) -> str:
    """Create the closing marker for a section.

    Args:
        section_id: Identifier of the managed section

    Returns:
        HTML comment closing marker
    """
    return f"{_CLOSE_PREFIX}{section_id}{_SUFFIX}"


@dataclass
class MarkedSection:
    """A managed section located within a document."""

    section_id: str
    content: str
    start_pos: int
    end_pos: int


def find_section(document: str, section_id: str) -> MarkedSection | None:
    """Find a well-formed section in a document.

    A section is well-formed when both markers are present and the opening
    marker comes first.

    Args:
        document: The full document
        section_id: Identifier of the section to find

    Returns:
        MarkedSection if found, None otherwise. ``end_pos`` points just past
        the closing marker.
    """
    open_marker = make_open_marker(section_id)
    close_marker = make_close_marker(section_id)

    open_idx = document.find(open_marker)
    close_idx = document.find(close_marker)
    if open_idx == -1 or close_idx == -1 or close_idx <= open_idx:
        return None

    return MarkedSection(
        section_id=section_id,
        content=document[open_idx + len(open_marker) : close_idx].strip("\n"),
        start_pos=open_idx,
        end_pos=close_idx + len(close_marker),
    )


def list_sections(document: str) -> list[str]:
    """List the identifiers of every opening marker in a document."""
    return _SECTION_PATTERN.findall(document)


def _wrap(section_id: str, content: str) -> str:
    body = content if content.endswith("\n") else content + "\n"
    return f"{make_open_marker(section_id)}\n{body}{make_close_marker(section_id)}"


def _remove_section(document: str, section: MarkedSection) -> str:
    before = document[: section.start_pos].rstrip("\n")
    after = document[section.end_pos :]
    if after.startswith("\n"):
        after = after[1:]

    if after:
        return f"{before}\n{after}" if before else after
    return f"{before}\n" if before else ""


def inject_markdown_section(document: str, section_id: str, content: str) -> str:
    """Insert, replace or remove a marked section in a markdown document.

    If the section exists, only the text between its markers is replaced.
    If it does not (including malformed or out-of-order markers), a new
    marked block is appended at the end of the document. Empty ``content``
    removes the whole block, markers included, and is a no-op when the
    section is absent.

    Args:
        document: The current document
        section_id: Identifier of the section
        content: New section body

    Returns:
        The updated document
    """
    existing = find_section(document, section_id)

    if existing is not None:
        if content == "":
            return _remove_section(document, existing)
        return document[: existing.start_pos] + _wrap(section_id, content) + document[existing.end_pos :]

    if content == "":
        return document

    prefix = document
    if prefix and not prefix.endswith("\n"):
        prefix += "\n"
    if prefix:
        prefix += "\n"
    return prefix + _wrap(section_id, content) + "\n"
