"""File and filename utilities for mediagrab."""

import re
from typing import Optional

MAX_FILENAME_CHARS = 200

_UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_filename(s: str) -> str:
    """Sanitize a video title for use as a filename.

    Removes path separators, characters invalid on common filesystems and
    control characters, trims whitespace and caps the length.

    Args:
        s: String to sanitize

    Returns:
        Sanitized string, possibly empty
    """
    return _UNSAFE_CHARS.sub("", s).strip()[:MAX_FILENAME_CHARS]


def sanitize_folder(name: str) -> str:
    """Reduce a caller-supplied folder to a single safe path component.

    Args:
        name: Requested folder name

    Returns:
        Safe folder name, or "" when the request names the root itself
    """
    folder = sanitize_filename(name or "")
    if folder in ("", ".", ".."):
        return ""
    return folder


def format_duration(seconds: Optional[int]) -> str:
    """Format duration in seconds to HH:MM:SS format.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string (HH:MM:SS) or "Unknown" if None
    """
    if not seconds:
        return "Unknown"

    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_size(num_bytes: int) -> str:
    """Human-readable byte count (1024-based)."""
    size = float(num_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"
