"""Pydantic request models for the mediagrab API."""

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


class InfoRequest(BaseModel):
    """Request model for metadata lookups."""

    url: Optional[str] = Field(None, description="Video page URL")


class DownloadRequestBody(BaseModel):
    """Request model for starting a download job."""

    url: Optional[str] = Field(None, description="Video page URL")
    type: Literal["audio", "video"] = Field(
        default="video", description="Produce an MP3 (audio) or an MP4 (video)"
    )
    quality: str = Field(
        default="best",
        description="'best', 'worst', an audio bitrate ceiling, or a stream ID",
    )
    folder: str = Field(
        default="", description="Optional subfolder of the download root"
    )

    @field_validator("quality", mode="before")
    @classmethod
    def coerce_quality(cls, v: Union[str, int, None]) -> str:
        if v is None or v == "":
            return "best"
        return str(v)

    @field_validator("folder", mode="before")
    @classmethod
    def coerce_folder(cls, v: Optional[str]) -> str:
        return v or ""
