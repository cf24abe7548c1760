"""Unit tests for change detection."""

from njgit.changes import compare, describe_changes
from njgit.changes.comparator import INITIAL_VERSION, UPDATED_SUMMARY
from njgit.domain.models import ChangeKind


class TestCompare:
    """Tests for compare function."""

    def test_no_stored_document_is_new(self, web_document):
        change = compare(None, web_document)

        assert change.kind == ChangeKind.NEW
        assert change.description == INITIAL_VERSION

    def test_identical_document_is_unchanged(self, web_document):
        change = compare(web_document, web_document)

        assert change.kind == ChangeKind.UNCHANGED
        assert not change.has_changes

    def test_line_ending_differences_are_unchanged(self, web_document):
        """Test a CRLF checkout of the same document is not a modification."""
        stored = web_document.replace(b"\n", b"\r\n")

        assert compare(stored, web_document).kind == ChangeKind.UNCHANGED

    def test_trailing_whitespace_differences_are_unchanged(self, web_document):
        stored = web_document.replace(b"count = 2\n", b"count = 2   \n") + b"\n\n"

        assert compare(stored, web_document).kind == ChangeKind.UNCHANGED

    def test_content_difference_is_modified(self, web_document):
        fresh = web_document.replace(b"count = 2", b"count = 3")

        change = compare(web_document, fresh)

        assert change.kind == ChangeKind.MODIFIED
        assert change.description.startswith(UPDATED_SUMMARY)
        assert "  - count = 2" in change.description
        assert "  + count = 3" in change.description

    def test_empty_stored_document_is_modified(self, web_document):
        """Test an existing but empty document is not treated as absent."""
        assert compare(b"", web_document).kind == ChangeKind.MODIFIED


class TestDescribeChanges:
    """Tests for describe_changes function."""

    def test_long_diff_is_truncated(self):
        old = "".join(f"line {i}\n" for i in range(20)).encode()
        new = "".join(f"LINE {i}\n" for i in range(20)).encode()

        description = describe_changes(old, new, max_lines=4)
        lines = description.splitlines()

        assert lines[0] == UPDATED_SUMMARY
        assert len(lines) == 6
        assert lines[-1] == "  ... and 36 more changed lines"

    def test_undecodable_input_degrades_to_headline(self):
        assert describe_changes(b"\xff\xfe", b"a\n") == UPDATED_SUMMARY

    def test_no_line_differences_has_headline_only(self):
        """Test inputs without differing lines produce the headline alone."""
        assert describe_changes(b"a\n", b"a\n") == UPDATED_SUMMARY
