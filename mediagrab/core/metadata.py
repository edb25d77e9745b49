"""Metadata lookup - the public projection of a video's details."""

from typing import Any, Dict

from ..errors import MediagrabError
from ..logging import get_logger
from .source import SourceEngine, SourceError, VideoInfo

logger = get_logger(__name__)

ELLIPSIS = "…"
LOOKUP_FAILED_MESSAGE = "Falha ao obter informações do vídeo."


class MetadataLookupError(MediagrabError):
    """Raised when video details cannot be retrieved.

    Carries a generic message; the provider's detail is only logged.
    """

    def __init__(self, message: str = LOOKUP_FAILED_MESSAGE):
        super().__init__(message)


def truncate_description(description: str, limit: int) -> str:
    """First ``limit`` characters followed by an ellipsis marker."""
    return (description or "")[:limit] + ELLIPSIS


def project_info(info: VideoInfo, description_chars: int = 200) -> Dict[str, Any]:
    """Shape VideoInfo for API consumers."""
    return {
        "title": info.title,
        "duration": int(info.duration),
        "uploader": info.uploader,
        "view_count": int(info.view_count),
        "description": truncate_description(info.description, description_chars),
        "formats": [stream.to_dict() for stream in info.streams],
    }


async def lookup_metadata(
    source: SourceEngine, url: str, description_chars: int = 200
) -> Dict[str, Any]:
    """Query the source once and project the result.

    Raises:
        MetadataLookupError: If the source fails for any reason
    """
    try:
        info = await source.get_info(url)
    except SourceError as e:
        logger.warning("Metadata lookup failed", url=url, error=str(e))
        raise MetadataLookupError() from e
    return project_info(info, description_chars)
