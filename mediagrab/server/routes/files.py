"""Endpoints for listing and fetching finished downloads."""

from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from mediagrab.config import MediagrabConfig
from mediagrab.core.pipeline import DownloadPipeline
from mediagrab.server.dependencies import get_pipeline, get_settings
from mediagrab.server.exceptions import FileMissingException
from mediagrab.server.models import DownloadedFile
from mediagrab.server.storage import list_downloads, resolve_download_file

router = APIRouter()


@router.get("/api/downloads", response_model=List[DownloadedFile])
async def list_downloaded_files(
    pipeline: DownloadPipeline = Depends(get_pipeline),
) -> List[DownloadedFile]:
    """Every file under the download root, including subfolders."""
    return [DownloadedFile(**entry) for entry in list_downloads(pipeline.download_root)]


@router.get("/api/download-file/{filename}")
async def download_file(
    filename: str,
    pipeline: DownloadPipeline = Depends(get_pipeline),
    settings: MediagrabConfig = Depends(get_settings),
) -> FileResponse:
    """Send a finished file as an attachment.

    Raises:
        FileMissingException: If the file does not exist
    """
    path = resolve_download_file(pipeline.download_root, filename, settings.legacy_subdir)
    if path is None:
        raise FileMissingException(filename)
    return FileResponse(path, filename=path.name)
