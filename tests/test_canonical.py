"""Unit tests for document canonicalization."""

import pytest

from njgit.hcl import canonicalize, documents_equal


class TestCanonicalize:
    """Tests for canonicalize function."""

    def test_crlf_and_trailing_spaces(self):
        assert canonicalize(b'job "web" {  \r\n}\r\n\r\n') == b'job "web" {\n}\n'

    def test_lone_carriage_returns(self):
        assert canonicalize(b"a\rb\r") == b"a\nb\n"

    def test_adds_missing_final_newline(self):
        assert canonicalize(b"a") == b"a\n"

    def test_trailing_tabs_stripped(self):
        assert canonicalize(b"a\t\t\nb \t\n") == b"a\nb\n"

    def test_inner_blank_lines_kept(self):
        """Test only trailing blank lines are collapsed."""
        assert canonicalize(b"a\n\n\nb\n") == b"a\n\n\nb\n"

    def test_leading_whitespace_kept(self):
        assert canonicalize(b"  count = 2\n") == b"  count = 2\n"

    def test_accepts_text(self):
        assert canonicalize("a  \n") == b"a\n"

    @pytest.mark.parametrize("document", [b"", b"\n", b"a\r\n", b'job "x" {\n  a = 1  \n}\n\n'])
    def test_idempotent(self, document):
        once = canonicalize(document)

        assert canonicalize(once) == once

    def test_empty_document(self):
        assert canonicalize(b"") == b"\n"


class TestDocumentsEqual:
    """Tests for documents_equal function."""

    def test_equal_after_canonicalization(self):
        assert documents_equal(b"a\r\nb  \r\n", b"a\nb\n")

    def test_content_difference(self):
        assert not documents_equal(b"count = 2\n", b"count = 3\n")

    def test_absent_documents(self):
        assert documents_equal(None, None)
        assert not documents_equal(None, b"a\n")
        assert not documents_equal(b"a\n", None)
