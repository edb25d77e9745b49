"""Remote source engine - metadata extraction and stream retrieval.

Uses yt-dlp to resolve a page URL into video details and the list of
available encodings, then streams the chosen encoding's bytes over HTTP.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

import httpx

from ..errors import MediagrabError
from ..logging import get_logger
from .formats import StreamDescriptor

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

ClientFactory = Callable[[], httpx.AsyncClient]


class SourceError(MediagrabError):
    """Raised when the remote source cannot be queried or read."""

    pass


@dataclass
class VideoInfo:
    """Video details and the encodings a source offers."""

    title: str
    duration: int = 0
    uploader: Optional[str] = None
    view_count: int = 0
    description: str = ""
    streams: List[StreamDescriptor] = field(default_factory=list)

    @classmethod
    def from_ytdlp(cls, info: Dict[str, Any]) -> "VideoInfo":
        return cls(
            title=info.get("title") or "",
            duration=int(info.get("duration") or 0),
            uploader=info.get("uploader") or info.get("channel"),
            view_count=int(info.get("view_count") or 0),
            description=info.get("description") or "",
            streams=[
                StreamDescriptor.from_ytdlp(fmt) for fmt in info.get("formats") or []
            ],
        )


@dataclass(frozen=True)
class DownloadProgress:
    """Bytes received so far for one stream download."""

    received: int
    total: Optional[int] = None

    @property
    def fraction(self) -> Optional[float]:
        if not self.total:
            return None
        return min(1.0, self.received / self.total)


class SourceEngine:
    """Resolves URLs with yt-dlp and streams encodings with httpx.

    Can be used by the web API, the CLI, or any other interface.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timeout: float = 30.0,
        ydl_options: Optional[Dict[str, Any]] = None,
        client_factory: Optional[ClientFactory] = None,
    ):
        """Initialize source engine.

        Args:
            chunk_size: Read size for streamed downloads
            timeout: HTTP timeout in seconds
            ydl_options: Extra yt-dlp options merged over the defaults
            client_factory: Builds the httpx client (tests inject a mock transport)
        """
        self.chunk_size = chunk_size
        self.timeout = timeout
        self.ydl_options = {
            "quiet": True,
            "no_warnings": True,
            "noplaylist": True,
            **(ydl_options or {}),
        }
        self._client_factory = client_factory or self._default_client

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(follow_redirects=True, timeout=self.timeout)

    def _extract(self, url: str) -> Dict[str, Any]:
        import yt_dlp

        with yt_dlp.YoutubeDL(self.ydl_options) as ydl:
            info = ydl.extract_info(url, download=False)
        if not info:
            raise SourceError(f"No video information returned for {url}")
        return info

    async def get_info(self, url: str) -> VideoInfo:
        """Extract metadata without downloading.

        Args:
            url: Video page URL

        Returns:
            VideoInfo with all available streams

        Raises:
            SourceError: If extraction fails for any reason
        """
        try:
            info = await asyncio.to_thread(self._extract, url)
        except SourceError:
            raise
        except Exception as e:
            raise SourceError(str(e)) from e

        video = VideoInfo.from_ytdlp(info)
        logger.debug(
            "Extracted video info",
            url=url,
            title=video.title,
            streams=len(video.streams),
        )
        return video

    async def _read(
        self, stream: StreamDescriptor
    ) -> AsyncIterator[Tuple[bytes, int, Optional[int]]]:
        """Yield ``(chunk, received, total)`` while reading a stream."""
        if not stream.url:
            raise SourceError(f"Stream {stream.stream_id} has no retrievable URL")

        try:
            async with self._client_factory() as client:
                async with client.stream(
                    "GET", stream.url, headers=stream.http_headers
                ) as response:
                    response.raise_for_status()
                    length = response.headers.get("content-length")
                    total = int(length) if length else stream.filesize
                    received = 0
                    async for chunk in response.aiter_bytes(self.chunk_size):
                        received += len(chunk)
                        yield chunk, received, total
        except httpx.HTTPStatusError as e:
            raise SourceError(
                f"Stream {stream.stream_id} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise SourceError(f"Stream {stream.stream_id} failed: {e}") from e

    async def iter_bytes(self, stream: StreamDescriptor) -> AsyncIterator[bytes]:
        """Yield the raw bytes of a stream.

        Raises:
            SourceError: On HTTP or transport failure
        """
        async for chunk, _, _ in self._read(stream):
            yield chunk

    async def download(
        self, stream: StreamDescriptor, dest: Path
    ) -> AsyncIterator[DownloadProgress]:
        """Write a stream to ``dest``, yielding progress after each chunk.

        Raises:
            SourceError: On HTTP or transport failure
        """
        logger.debug("Downloading stream", stream_id=stream.stream_id, dest=str(dest))
        with open(dest, "wb") as f:
            async for chunk, received, total in self._read(stream):
                await asyncio.to_thread(f.write, chunk)
                yield DownloadProgress(received=received, total=total)
