"""Tests for content normalization and fingerprints."""

import pytest

from artifact_sync.core.content import (
    collapse_whitespace,
    compute_content_hash,
    contents_equivalent,
    normalize_for_comparison,
    strip_html_tags,
    strip_wrapped_quotes,
)


class TestStripHtmlTags:
    """Test markup removal."""

    def test_removes_tags_keeping_words_apart(self):
        """Test that tags become spaces so words do not merge."""
        assert collapse_whitespace(strip_html_tags("<p>one</p><p>two</p>")) == "one two"

    def test_removes_script_and_style_blocks(self):
        """Test that script and style contents are dropped entirely."""
        text = "before<script>alert('x')</script><style>p {}</style>after"
        result = strip_html_tags(text)
        assert "alert" not in result
        assert "p {}" not in result
        assert "before" in result and "after" in result

    def test_decodes_entities(self):
        """Test that HTML entities are decoded."""
        assert strip_html_tags("a &amp; b") == "a & b"

    def test_empty_and_none(self):
        """Test that empty input gives empty output."""
        assert strip_html_tags("") == ""
        assert strip_html_tags(None) == ""


class TestNormalizeForComparison:
    """Test canonicalization."""

    def test_lowercases_and_collapses(self):
        """Test case and whitespace folding."""
        assert normalize_for_comparison("  Hello\n\n  WORLD\t") == "hello world"

    def test_none_is_empty(self):
        """Test that None normalizes to an empty string."""
        assert normalize_for_comparison(None) == ""

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "plain",
            "<b>Bold</b> text",
            "&lt;b&gt;escaped&lt;/b&gt;",
            "&amp;lt;i&amp;gt;double&amp;lt;/i&amp;gt;",
            "Line one\r\nLine   two",
            "<<b>>nested<</b>>",
        ],
    )
    def test_idempotent(self, text):
        """Test that normalizing twice equals normalizing once."""
        once = normalize_for_comparison(text)
        assert normalize_for_comparison(once) == once

    def test_markdown_and_html_of_same_text_match(self):
        """Test that an HTML rendering matches the plain text."""
        assert normalize_for_comparison(
            "<p>User <em>login</em> requirement</p>"
        ) == normalize_for_comparison("User login requirement")


class TestComputeContentHash:
    """Test fingerprints."""

    def test_cosmetic_variants_share_hash(self):
        """Test that formatting, case and whitespace do not change the hash."""
        variants = [
            "User login requirement",
            "user   LOGIN requirement\n",
            "<p>User login</p>\n<p>requirement</p>",
        ]
        hashes = {compute_content_hash(v) for v in variants}
        assert len(hashes) == 1

    def test_different_text_differs(self):
        """Test that different wording changes the hash."""
        assert compute_content_hash("User login") != compute_content_hash("User logout")

    def test_hash_is_sha256_hex(self):
        """Test digest format."""
        digest = compute_content_hash("anything")
        assert len(digest) == 64
        int(digest, 16)

    def test_equivalence_helper(self):
        """Test contents_equivalent agrees with the hash."""
        assert contents_equivalent("A  b", "a b")
        assert not contents_equivalent("a b", "a c")


class TestStripWrappedQuotes:
    """Test removal of double-encoding quotes."""

    def test_strips_one_layer(self):
        """Test that one layer of quotes is removed."""
        assert strip_wrapped_quotes('"# Title"') == "# Title"

    def test_leaves_unquoted_text(self):
        """Test that other text is returned unchanged."""
        assert strip_wrapped_quotes('say "hi"') == 'say "hi"'

    def test_single_quote_char_untouched(self):
        """Test that a lone quote is not stripped."""
        assert strip_wrapped_quotes('"') == '"'
