"""mediagrab - web-triggered media acquisition.

Resolves a video URL, then fetches, transcodes and merges its streams into
local files as tracked background jobs:
- Metadata lookup and stream listing (yt-dlp)
- Audio extraction to MP3 (ffmpeg)
- Direct download of muxed video streams
- Download-then-merge of separate video and audio streams
- Job status polling over a FastAPI server

Quick Start:
    >>> from mediagrab import DownloadPipeline, DownloadRequest, MediaType, get_config
    >>> pipeline = DownloadPipeline.from_config(get_config())
    >>> job_id = pipeline.submit(DownloadRequest(url, MediaType.AUDIO))  # inside a running loop
"""

__version__ = "1.0.0"

from mediagrab.config import get_config
from mediagrab.core.codec import CodecEngine, TranscodeError
from mediagrab.core.jobs import InMemoryJobStore, JobState, JobStatus, JobStore
from mediagrab.core.pipeline import DownloadPipeline, DownloadRequest, MediaType
from mediagrab.core.source import SourceEngine, SourceError, VideoInfo

__all__ = [
    "__version__",
    "get_config",
    "CodecEngine",
    "TranscodeError",
    "InMemoryJobStore",
    "JobState",
    "JobStatus",
    "JobStore",
    "DownloadPipeline",
    "DownloadRequest",
    "MediaType",
    "SourceEngine",
    "SourceError",
    "VideoInfo",
]
