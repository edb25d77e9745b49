"""Schema models for the mediagrab server."""

from mediagrab.server.models.requests import DownloadRequestBody, InfoRequest
from mediagrab.server.models.responses import (
    DownloadedFile,
    DownloadStartedResponse,
    InfoResponse,
    JobStatusResponse,
    StreamFormat,
)

__all__ = [
    # Request models
    "InfoRequest",
    "DownloadRequestBody",
    # Response models
    "InfoResponse",
    "StreamFormat",
    "DownloadStartedResponse",
    "JobStatusResponse",
    "DownloadedFile",
]
