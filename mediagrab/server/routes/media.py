"""Metadata and download submission endpoints."""

from fastapi import APIRouter, Depends

from mediagrab.config import MediagrabConfig
from mediagrab.core.metadata import MetadataLookupError, lookup_metadata
from mediagrab.core.pipeline import DownloadPipeline, DownloadRequest, MediaType
from mediagrab.server.dependencies import get_pipeline, get_settings
from mediagrab.server.exceptions import (
    URL_REQUIRED_MESSAGE,
    InvalidInputException,
    MetadataUnavailableException,
)
from mediagrab.server.models import (
    DownloadRequestBody,
    DownloadStartedResponse,
    InfoRequest,
    InfoResponse,
)

router = APIRouter()

DOWNLOAD_STARTED_MESSAGE = "Download iniciado!"


@router.post("/api/info", response_model=InfoResponse)
async def get_video_info(
    body: InfoRequest,
    pipeline: DownloadPipeline = Depends(get_pipeline),
    settings: MediagrabConfig = Depends(get_settings),
) -> InfoResponse:
    """Look up a video's details and available streams.

    Raises:
        InvalidInputException: If url is missing
        MetadataUnavailableException: If the source cannot be queried
    """
    if not body.url:
        raise InvalidInputException(URL_REQUIRED_MESSAGE, field="url")

    try:
        info = await lookup_metadata(pipeline.source, body.url, settings.description_chars)
    except MetadataLookupError as e:
        raise MetadataUnavailableException(body.url) from e

    return InfoResponse(**info)


@router.post("/api/download", response_model=DownloadStartedResponse)
async def start_download(
    body: DownloadRequestBody,
    pipeline: DownloadPipeline = Depends(get_pipeline),
) -> DownloadStartedResponse:
    """Start a download job and return its ID without waiting for it.

    Raises:
        InvalidInputException: If url is missing
    """
    if not body.url:
        raise InvalidInputException(URL_REQUIRED_MESSAGE, field="url")

    title = await pipeline.resolve_title(body.url)
    job_id = pipeline.submit(
        DownloadRequest(
            url=body.url,
            media_type=MediaType(body.type),
            quality=body.quality,
            folder=body.folder,
            title=title,
        )
    )

    return DownloadStartedResponse(download_id=job_id, message=DOWNLOAD_STARTED_MESSAGE)
