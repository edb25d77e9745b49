"""File storage utilities for the mediagrab server.

Lists and resolves finished downloads under the download root.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from mediagrab.core.jobs import format_timestamp
from mediagrab.logging import get_logger

logger = get_logger(__name__)


def list_downloads(root: Path) -> List[Dict[str, Union[str, int]]]:
    """List every file under the download root, recursively.

    Args:
        root: Download root directory

    Returns:
        List of {name, size, modified} dicts; empty if the root is missing
    """
    if not root.is_dir():
        return []

    files: List[Dict[str, Union[str, int]]] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        stat = path.stat()
        files.append(
            {
                "name": path.name,
                "size": stat.st_size,
                "modified": format_timestamp(
                    datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
                ),
            }
        )
    return files


def _within(root: Path, candidate: Path) -> bool:
    try:
        candidate.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True


def resolve_download_file(
    root: Path, filename: str, legacy_subdir: str = "downloads"
) -> Optional[Path]:
    """Find a finished file by name.

    The nested ``<root>/<legacy_subdir>/<filename>`` location is checked
    first for older layouts, then ``<root>/<filename>``.

    Args:
        root: Download root directory
        filename: Requested file name
        legacy_subdir: Nested directory checked before the root

    Returns:
        Path to the file, or None if absent or outside the root
    """
    candidates = [root / filename]
    if legacy_subdir:
        candidates.insert(0, root / legacy_subdir / filename)

    for candidate in candidates:
        if not _within(root, candidate):
            logger.warning("Rejected file outside download root", filename=filename)
            return None
        if candidate.is_file():
            return candidate
    return None
