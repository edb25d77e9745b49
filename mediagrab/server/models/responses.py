"""Pydantic response models for the mediagrab API."""

from typing import List, Optional

from pydantic import BaseModel, Field


class StreamFormat(BaseModel):
    """One available encoding of a video."""

    streamId: str = Field(..., description="Opaque stream identifier")
    qualityLabel: Optional[str] = Field(None, description="Human-readable quality")
    audioBitrate: Optional[float] = Field(None, description="Audio bitrate (kbps)")
    hasVideo: bool = Field(..., description="Stream carries video")
    hasAudio: bool = Field(..., description="Stream carries audio")
    height: Optional[int] = Field(None, description="Video height in pixels")


class InfoResponse(BaseModel):
    """Response model for metadata lookups."""

    title: str = Field(..., description="Video title")
    duration: int = Field(..., description="Duration in seconds")
    uploader: Optional[str] = Field(None, description="Uploader name")
    view_count: int = Field(..., description="View count")
    description: str = Field(..., description="Truncated description")
    formats: List[StreamFormat] = Field(..., description="Available streams")


class DownloadStartedResponse(BaseModel):
    """Response model for job submission."""

    download_id: str = Field(..., description="Job ID to poll")
    message: str = Field(..., description="Confirmation message")


class JobStatusResponse(BaseModel):
    """Snapshot of a job as seen by pollers."""

    status: str = Field(
        ..., description="starting, downloading, completed, error or not_found"
    )
    message: str = Field(..., description="Progress or error message")
    timestamp: Optional[str] = Field(None, description="Last update (ISO-8601)")
    file: Optional[str] = Field(None, description="Output filename once completed")


class DownloadedFile(BaseModel):
    """A finished file under the download root."""

    name: str = Field(..., description="File name")
    size: int = Field(..., description="Size in bytes")
    modified: str = Field(..., description="Last modification (ISO-8601)")
