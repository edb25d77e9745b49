#!/usr/bin/env python3
"""
Error types and filesystem validation helpers for mediagrab.
"""

from pathlib import Path
from typing import Union

from .logging import get_logger

logger = get_logger(__name__)


class MediagrabError(Exception):
    """Base exception for mediagrab-specific errors."""

    pass


class ValidationError(MediagrabError):
    """Raised when data validation fails."""

    pass


class JobNotFoundError(MediagrabError):
    """Raised when a job ID is not present in the store."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id} not found")


class JobStateError(MediagrabError):
    """Raised when a job update violates the job state machine."""

    pass


def validate_directory_exists(path: Union[str, Path], create: bool = False) -> Path:
    """Return ``path`` as a Path once it is known to be a directory.

    With ``create=True`` missing directories (and parents) are made, which is
    how job output folders come into existence.

    Raises:
        ValidationError: If the path is missing (and not created) or is a file
    """
    directory = Path(path)
    if directory.is_dir():
        return directory
    if directory.exists():
        raise ValidationError(f"Not a directory: {directory}")
    if not create:
        raise ValidationError(f"Directory not found: {directory}")

    directory.mkdir(parents=True, exist_ok=True)
    logger.debug("Created directory", path=str(directory))
    return directory
