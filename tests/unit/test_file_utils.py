"""Tests for filename and formatting utilities."""

import pytest

from mediagrab.utils import format_duration, format_size, sanitize_filename, sanitize_folder


class TestSanitizeFilename:
    """Test title sanitization."""

    @pytest.mark.parametrize(
        "title,expected",
        [
            ("Simple Title", "Simple Title"),
            ('What? "Really" <yes>', "What Really yes"),
            ("a/b\\c|d*e:f", "abcdef"),
            ("  padded  ", "padded"),
            ("tab\there", "tabhere"),
            ("Canção de Ninar", "Canção de Ninar"),
        ],
    )
    def test_sanitize(self, title, expected):
        assert sanitize_filename(title) == expected

    def test_length_capped(self):
        assert len(sanitize_filename("x" * 500)) == 200

    def test_only_unsafe_characters(self):
        assert sanitize_filename('<>:"/\\|?*') == ""


class TestSanitizeFolder:
    """Test folder sanitization."""

    def test_plain_folder(self):
        assert sanitize_folder("music") == "music"

    def test_nested_path_flattened(self):
        assert sanitize_folder("a/b") == "ab"

    @pytest.mark.parametrize("folder", ["", ".", "..", "/", None])
    def test_root_equivalents(self, folder):
        assert sanitize_folder(folder) == ""


class TestFormatting:
    """Test human-readable formatting helpers."""

    def test_format_duration(self):
        assert format_duration(3725) == "01:02:05"

    def test_format_duration_unknown(self):
        assert format_duration(None) == "Unknown"
        assert format_duration(0) == "Unknown"

    @pytest.mark.parametrize(
        "size,expected",
        [(512, "512 B"), (2048, "2.0 KB"), (5 * 1024 * 1024, "5.0 MB")],
    )
    def test_format_size(self, size, expected):
        assert format_size(size) == expected
