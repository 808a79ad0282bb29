"""Tests for gentle_ai.utils.markers module."""

from gentle_ai.utils.markers import (
    find_section,
    inject_markdown_section,
    list_sections,
    make_close_marker,
    make_open_marker,
)

OPEN = "<!-- gentle-ai:persona -->"
CLOSE = "<!-- /gentle-ai:persona -->"


class TestMakeMarkers:
    """Tests for marker creation functions."""

    def test_make_open_marker(self):
        assert make_open_marker("persona") == OPEN

    def test_make_close_marker(self):
        assert make_close_marker("persona") == CLOSE


class TestFindSection:
    """Tests for find_section function."""

    def test_finds_existing_section(self):
        document = f"# CLAUDE.md\n\n{OPEN}\nBe direct.\n{CLOSE}\n"

        section = find_section(document, "persona")

        assert section is not None
        assert section.section_id == "persona"
        assert section.content == "Be direct."
        assert document[section.start_pos : section.end_pos].startswith(OPEN)
        assert document[section.start_pos : section.end_pos].endswith(CLOSE)

    def test_missing_section(self):
        assert find_section("# Nothing here\n", "persona") is None

    def test_close_before_open_is_not_a_section(self):
        assert find_section(f"{CLOSE}\nbody\n{OPEN}\n", "persona") is None

    def test_open_marker_only_is_not_a_section(self):
        assert find_section(f"{OPEN}\nbody\n", "persona") is None


class TestListSections:
    """Tests for list_sections function."""

    def test_lists_section_ids_in_order(self):
        document = (
            "<!-- gentle-ai:persona -->\nA\n<!-- /gentle-ai:persona -->\n"
            "<!-- gentle-ai:sdd-orchestrator -->\nB\n<!-- /gentle-ai:sdd-orchestrator -->\n"
        )

        assert list_sections(document) == ["persona", "sdd-orchestrator"]

    def test_no_sections(self):
        assert list_sections("# Title\n") == []


class TestInjectMarkdownSection:
    """Tests for inject_markdown_section function."""

    def test_inject_into_empty_document(self):
        result = inject_markdown_section("", "persona", "Be direct.")

        assert result == f"{OPEN}\nBe direct.\n{CLOSE}\n"

    def test_append_preserves_user_content(self):
        """A new section goes after a blank line at the end of the document."""
        result = inject_markdown_section("# My rules\n\nUse tabs.\n", "persona", "Be direct.\n")

        assert result == f"# My rules\n\nUse tabs.\n\n{OPEN}\nBe direct.\n{CLOSE}\n"

    def test_append_to_document_without_trailing_newline(self):
        result = inject_markdown_section("# My rules", "persona", "Be direct.")

        assert result == f"# My rules\n\n{OPEN}\nBe direct.\n{CLOSE}\n"

    def test_replace_only_touches_the_section(self):
        """Text outside the markers is preserved byte for byte."""
        document = f"# Header\n\n{OPEN}\nold\n{CLOSE}\n\n## Footer\nkeep me\n"

        result = inject_markdown_section(document, "persona", "new")

        assert result == f"# Header\n\n{OPEN}\nnew\n{CLOSE}\n\n## Footer\nkeep me\n"

    def test_replace_leaves_other_sections(self):
        other = "<!-- gentle-ai:engram-protocol -->\nmemory\n<!-- /gentle-ai:engram-protocol -->"
        document = f"{other}\n\n{OPEN}\nold\n{CLOSE}\n"

        result = inject_markdown_section(document, "persona", "new")

        assert result.startswith(other)
        assert find_section(result, "persona").content == "new"

    def test_inject_is_idempotent(self):
        once = inject_markdown_section("# Title\n", "persona", "Be direct.")
        twice = inject_markdown_section(once, "persona", "Be direct.")

        assert twice == once

    def test_empty_content_removes_section(self):
        document = f"# Header\n\n{OPEN}\nold\n{CLOSE}\n\n## Footer\n"

        result = inject_markdown_section(document, "persona", "")

        assert result == "# Header\n\n## Footer\n"
        assert OPEN not in result
        assert CLOSE not in result

    def test_remove_trailing_section(self):
        document = f"# Header\n\n{OPEN}\nold\n{CLOSE}\n"

        assert inject_markdown_section(document, "persona", "") == "# Header\n"

    def test_remove_only_section(self):
        assert inject_markdown_section(f"{OPEN}\nold\n{CLOSE}\n", "persona", "") == ""

    def test_empty_content_on_missing_section_is_noop(self):
        document = "# Header\nbody"

        assert inject_markdown_section(document, "persona", "") == document

    def test_out_of_order_markers_append_new_block(self):
        """Malformed markers are not treated as a section."""
        document = f"{CLOSE}\nstray\n{OPEN}\n"

        result = inject_markdown_section(document, "persona", "fresh")

        assert result.startswith(document)
        assert result.endswith(f"{OPEN}\nfresh\n{CLOSE}\n")
