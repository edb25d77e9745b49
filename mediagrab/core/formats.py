"""Stream descriptors and the rules for choosing between them.

Everything here is pure: no network, no filesystem. The pipeline asks these
functions which stream to fetch and which strategy applies.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from ..errors import MediagrabError

BEST = "best"
WORST = "worst"

# Protocols whose URL serves the media bytes in one GET
DIRECT_PROTOCOLS = frozenset({"http", "https"})

_LEADING_INT = re.compile(r"\s*(\d+)")


class FormatNotFoundError(MediagrabError):
    """Raised when no stream matches the requested quality selector."""

    def __init__(self, selector: str):
        self.selector = selector
        super().__init__(f"Formato {selector} não encontrado")


class InvalidFormatError(MediagrabError):
    """Raised when the selected stream cannot serve the requested media type."""

    def __init__(self, message: str = "Formato selecionado inválido para vídeo"):
        super().__init__(message)


class NoAudioStreamError(MediagrabError):
    """Raised when a video-only stream has no audio-only partner to merge with."""

    def __init__(self, message: str = "Nenhuma faixa de áudio disponível"):
        super().__init__(message)


class Strategy(str, Enum):
    """Execution path chosen for a job."""

    AUDIO = "audio"
    COMBINED = "combined"
    SEPARATE = "separate"


def _has_codec(value: Optional[str]) -> bool:
    return value is not None and value != "none"


@dataclass(frozen=True)
class StreamDescriptor:
    """One remote encoding of a video."""

    stream_id: str
    has_audio: bool
    has_video: bool
    audio_bitrate: Optional[float] = None
    height: Optional[int] = None
    quality_label: Optional[str] = None
    ext: Optional[str] = None
    url: Optional[str] = field(default=None, repr=False)
    http_headers: Dict[str, str] = field(default_factory=dict, repr=False, compare=False)
    filesize: Optional[int] = None
    protocol: Optional[str] = None

    @classmethod
    def from_ytdlp(cls, fmt: Dict[str, Any]) -> "StreamDescriptor":
        """Build a descriptor from one entry of yt-dlp's ``formats`` list."""
        vcodec = fmt.get("vcodec")
        acodec = fmt.get("acodec")
        if vcodec is None and acodec is None:
            # yt-dlp leaves both unset when it cannot tell; treat as muxed
            has_video = has_audio = True
        else:
            has_video = _has_codec(vcodec)
            has_audio = _has_codec(acodec)

        height = fmt.get("height")
        label = fmt.get("format_note") or (f"{height}p" if height else None)
        return cls(
            stream_id=str(fmt.get("format_id")),
            has_audio=has_audio,
            has_video=has_video,
            audio_bitrate=fmt.get("abr"),
            height=height,
            quality_label=label,
            ext=fmt.get("ext"),
            url=fmt.get("url"),
            http_headers=dict(fmt.get("http_headers") or {}),
            filesize=fmt.get("filesize") or fmt.get("filesize_approx"),
            protocol=fmt.get("protocol"),
        )

    @property
    def is_combined(self) -> bool:
        return self.has_audio and self.has_video

    @property
    def is_audio_only(self) -> bool:
        return self.has_audio and not self.has_video

    @property
    def is_direct(self) -> bool:
        """True unless the URL is a manifest (HLS, DASH) rather than the media."""
        return self.protocol is None or self.protocol in DIRECT_PROTOCOLS

    def to_dict(self) -> Dict[str, Any]:
        """Public projection used by the info endpoint."""
        return {
            "streamId": self.stream_id,
            "qualityLabel": self.quality_label,
            "audioBitrate": self.audio_bitrate,
            "hasVideo": self.has_video,
            "hasAudio": self.has_audio,
            "height": self.height,
        }


def _bitrate(stream: StreamDescriptor) -> float:
    return stream.audio_bitrate or 0


def parse_bitrate_ceiling(selector: str) -> Optional[int]:
    """Leading integer of a selector like ``"128"`` or ``"128k"``, else None."""
    if not isinstance(selector, str):
        return None
    match = _LEADING_INT.match(selector)
    return int(match.group(1)) if match else None


def target_audio_bitrate(selector: str, default: int) -> int:
    """Output bitrate (kbps) for an audio job."""
    ceiling = parse_bitrate_ceiling(selector)
    return ceiling if ceiling is not None and ceiling > 0 else default


def select_audio_stream(
    streams: Iterable[StreamDescriptor], selector: str
) -> StreamDescriptor:
    """Pick the stream feeding an audio job.

    ``best``/``worst`` take the highest/lowest audio bitrate, a number takes
    the highest bitrate not above it. On equal bitrate an audio-only stream
    wins over a muxed one, then the first encountered.

    Raises:
        FormatNotFoundError: If no stream carrying audio satisfies the selector
    """
    candidates = [s for s in streams if s.has_audio and s.is_direct]

    if selector == BEST:
        pool = candidates
        pick_highest = True
    elif selector == WORST:
        pool = candidates
        pick_highest = False
    else:
        ceiling = parse_bitrate_ceiling(selector)
        if ceiling is None:
            raise FormatNotFoundError(selector)
        pool = [s for s in candidates if _bitrate(s) <= ceiling]
        pick_highest = True

    if not pool:
        raise FormatNotFoundError(selector)

    if pick_highest:
        return max(pool, key=lambda s: (_bitrate(s), s.is_audio_only))
    return min(pool, key=lambda s: (_bitrate(s), not s.is_audio_only))


def select_video_stream(
    streams: Iterable[StreamDescriptor], selector: str
) -> StreamDescriptor:
    """Pick the stream for a video job.

    A selector naming a stream ID picks that stream. ``best``/``worst`` take
    the tallest/shortest video stream, preferring one that already carries
    audio on equal height, then the first encountered. Streams served
    through a manifest (HLS, DASH) are never picked.

    Raises:
        FormatNotFoundError: If nothing matches the selector
    """
    streams = [s for s in streams if s.is_direct]
    for stream in streams:
        if stream.stream_id == selector:
            return stream

    if selector in (BEST, WORST):
        videos = [s for s in streams if s.has_video]
        if videos:
            if selector == BEST:
                return max(videos, key=lambda s: (s.height or 0, s.has_audio))
            return min(videos, key=lambda s: (s.height or 0, not s.has_audio))

    raise FormatNotFoundError(selector)


def classify_video_stream(stream: StreamDescriptor) -> Strategy:
    """Decide between direct streaming and download-then-merge.

    Raises:
        InvalidFormatError: If the stream carries no video
    """
    if stream.is_combined:
        return Strategy.COMBINED
    if stream.has_video:
        return Strategy.SEPARATE
    raise InvalidFormatError()


def select_merge_audio(streams: Iterable[StreamDescriptor]) -> StreamDescriptor:
    """Highest-bitrate audio-only stream; ties go to the first encountered.

    Raises:
        NoAudioStreamError: If there is no audio-only stream
    """
    audio_only: List[StreamDescriptor] = [
        s for s in streams if s.is_audio_only and s.is_direct
    ]
    if not audio_only:
        raise NoAudioStreamError()
    # max() keeps the first of equal keys
    return max(audio_only, key=_bitrate)
