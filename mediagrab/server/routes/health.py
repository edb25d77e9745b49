"""Health check endpoint for monitoring."""

import shutil
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from mediagrab import __version__
from mediagrab.config import MediagrabConfig
from mediagrab.core.pipeline import DownloadPipeline
from mediagrab.server.dependencies import get_pipeline, get_settings

router = APIRouter()

# Set once by the app lifespan
_SERVER_START_TIME: datetime | None = None


def set_server_start_time() -> None:
    """Record the server start time (first call wins)."""
    global _SERVER_START_TIME
    if _SERVER_START_TIME is None:
        _SERVER_START_TIME = datetime.now(timezone.utc)


def get_uptime_seconds() -> float:
    if _SERVER_START_TIME is None:
        return 0.0
    return (datetime.now(timezone.utc) - _SERVER_START_TIME).total_seconds()


class HealthResponse(BaseModel):
    """Liveness plus what a download needs to succeed."""

    status: str
    timestamp: str
    version: str
    uptime_seconds: float
    active_jobs: int
    ffmpeg_available: bool


@router.get("/health", response_model=HealthResponse)
async def health_check(
    pipeline: DownloadPipeline = Depends(get_pipeline),
    settings: MediagrabConfig = Depends(get_settings),
) -> HealthResponse:
    """Always ``healthy`` while the process serves requests.

    ``ffmpeg_available`` reports whether audio and merge jobs can run.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        uptime_seconds=get_uptime_seconds(),
        active_jobs=pipeline.active_jobs,
        ffmpeg_available=shutil.which(settings.ffmpeg_path) is not None,
    )
