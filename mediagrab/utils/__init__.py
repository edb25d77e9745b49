"""Utility functions and helpers for mediagrab."""

from .file_utils import format_duration, format_size, sanitize_filename, sanitize_folder

__all__ = [
    "format_duration",
    "format_size",
    "sanitize_filename",
    "sanitize_folder",
]
