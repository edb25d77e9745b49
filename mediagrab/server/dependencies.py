"""FastAPI dependencies shared by the route modules."""

from fastapi import Request

from mediagrab.config import MediagrabConfig
from mediagrab.core.pipeline import DownloadPipeline


def get_pipeline(request: Request) -> DownloadPipeline:
    """The application's download pipeline."""
    return request.app.state.pipeline


def get_settings(request: Request) -> MediagrabConfig:
    """The configuration the application was built with."""
    return request.app.state.config
