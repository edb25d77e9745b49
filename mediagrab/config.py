#!/usr/bin/env python3
"""
Centralized configuration management for mediagrab.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MediagrabConfig(BaseSettings):
    """Main configuration for the mediagrab service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Storage Configuration
    download_root: Path = Field(
        default=Path("downloads"), validation_alias="MEDIAGRAB_DOWNLOAD_ROOT"
    )
    legacy_subdir: str = Field(
        default="downloads", validation_alias="MEDIAGRAB_LEGACY_SUBDIR"
    )

    # Pipeline Configuration
    default_audio_bitrate: int = Field(
        default=192, validation_alias="MEDIAGRAB_AUDIO_BITRATE"
    )
    merge_audio_codec: str = Field(
        default="aac", validation_alias="MEDIAGRAB_MERGE_AUDIO_CODEC"
    )
    merge_audio_bitrate: str = Field(
        default="192k", validation_alias="MEDIAGRAB_MERGE_AUDIO_BITRATE"
    )
    max_concurrent_jobs: Optional[int] = Field(
        default=None, validation_alias="MEDIAGRAB_MAX_CONCURRENT_JOBS"
    )
    description_chars: int = Field(
        default=200, validation_alias="MEDIAGRAB_DESCRIPTION_CHARS"
    )

    # External tools
    ffmpeg_path: str = Field(default="ffmpeg", validation_alias="MEDIAGRAB_FFMPEG_PATH")
    chunk_size: int = Field(default=64 * 1024, validation_alias="MEDIAGRAB_CHUNK_SIZE")
    http_timeout: float = Field(default=30.0, validation_alias="MEDIAGRAB_HTTP_TIMEOUT")

    # Server Configuration
    host: str = Field(default="127.0.0.1", validation_alias="MEDIAGRAB_HOST")
    port: int = Field(
        default=5000, validation_alias=AliasChoices("MEDIAGRAB_PORT", "PORT")
    )
    cors_origins: str = Field(default="*", validation_alias="MEDIAGRAB_CORS_ORIGINS")

    # Logging Configuration
    log_level: str = Field(default="INFO", validation_alias="MEDIAGRAB_LOG_LEVEL")
    log_format: str = Field(default="console", validation_alias="MEDIAGRAB_LOG_FORMAT")

    @field_validator("default_audio_bitrate", "chunk_size")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Value must be a positive integer")
        return v

    @field_validator("max_concurrent_jobs")
    @classmethod
    def validate_concurrency(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("max_concurrent_jobs must be at least 1 when set")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        valid_formats = {"console", "json"}
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of: {valid_formats}")
        return v.lower()

    def cors_origin_list(self) -> List[str]:
        """Split the comma-separated CORS setting ("*" allows everything)."""
        if self.cors_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


# Global config instance
_config: Optional[MediagrabConfig] = None


def get_config() -> MediagrabConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = MediagrabConfig()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
