"""Unit tests for text sanitization and slug generation."""

import pytest

from core.sanitizer import generate_slug, sanitize_html, sanitize_text, suffixed_slug


class TestSanitizeText:
    def test_none_passes_through(self):
        assert sanitize_text(None) is None

    def test_strips_tags_and_whitespace(self):
        assert sanitize_text("  <b>Bold</b> <i>move</i>  ") == "Bold move"

    def test_stray_angle_brackets_are_removed(self):
        cleaned = sanitize_text("a < b > c")

        assert "<" not in cleaned
        assert ">" not in cleaned
        assert cleaned.startswith("a ")

    def test_only_brackets_leaves_nothing(self):
        assert sanitize_text("<<<<<>>>>>") == ""

    def test_entities_are_decoded(self):
        assert sanitize_text("Tom & Jerry") == "Tom & Jerry"
        assert sanitize_text("Tom &amp; Jerry") == "Tom & Jerry"

    def test_encoded_markup_does_not_survive(self):
        cleaned = sanitize_text("&lt;script&gt;alert(1)")

        assert "<" not in cleaned
        assert "script" in cleaned

    def test_removes_javascript_scheme_case_insensitively(self):
        assert sanitize_text("JavaScript:alert(1)") == "alert(1)"

    def test_removes_inline_event_handlers(self):
        assert sanitize_text("img onerror = steal()") == "img  steal()"

    def test_plain_text_is_unchanged(self):
        assert sanitize_text("Jane O'Neil") == "Jane O'Neil"


class TestSanitizeHtml:
    def test_none_passes_through(self):
        assert sanitize_html(None) is None

    def test_formatting_tags_are_kept(self):
        assert sanitize_html("<p>Hello <b>world</b></p>") == "<p>Hello <b>world</b></p>"

    def test_attributes_are_dropped(self):
        assert sanitize_html('<p onclick="steal()">Hi</p>') == "<p>Hi</p>"

    def test_image_with_handler_is_removed(self):
        assert sanitize_html("<img src=x onerror=alert(1)>") == ""

    def test_script_and_links_are_stripped(self):
        cleaned = sanitize_html(
            '<script>alert(1)</script> body <a href="javascript:alert(1)">link</a>'
        )

        assert "<script" not in cleaned
        assert "<a" not in cleaned
        assert "javascript:" not in cleaned
        assert "body" in cleaned
        assert "link" in cleaned


class TestGenerateSlug:
    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Hello World", "hello-world"),
            ("Hello, World!  It's -- here", "hello-world-its-here"),
            ("  Leading and trailing  ", "leading-and-trailing"),
            ("Release 2.0 notes", "release-20-notes"),
        ],
    )
    def test_slug_from_title(self, title: str, expected: str):
        assert generate_slug(title) == expected

    def test_title_without_usable_characters_gets_default(self):
        assert generate_slug("!!!") == "message"


class TestSuffixedSlug:
    def test_first_attempt_is_base(self):
        assert suffixed_slug("hello", 0) == "hello"

    def test_later_attempts_are_numbered(self):
        assert suffixed_slug("hello", 1) == "hello-1"
        assert suffixed_slug("hello", 2) == "hello-2"
