"""
Tests for inbound text sanitation
"""
from academy_support.services.sanitizer import sanitize_text, preview


def test_strips_control_characters_and_whitespace():
    """Test control characters are removed, tabs and newlines kept"""
    assert sanitize_text("  hi\x00 there\x07\n\tfriend\r  ") == "hi there\n\tfriend"


def test_empty_input():
    """Test empty input sanitizes to an empty string"""
    assert sanitize_text(None) == ""
    assert sanitize_text("") == ""
    assert sanitize_text(" \x00 ") == ""


def test_truncates_to_limit():
    """Test long text is cut to the message limit"""
    assert len(sanitize_text("a" * 5000)) == 4000
    assert sanitize_text("abcdef", max_length=3) == "abc"


def test_sanitize_is_idempotent():
    """Test sanitizing twice changes nothing"""
    samples = ["a" * 3999 + "  b", " x\x01y ", "word " * 900, "ok"]
    for sample in samples:
        once = sanitize_text(sample)
        assert sanitize_text(once) == once


def test_preview_is_single_line():
    """Test log previews are short and single-line"""
    assert preview("line one\nline two", length=8) == "line one"
    assert preview(None) == ""
