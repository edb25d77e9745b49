"""Codec engine - ffmpeg transcoding and muxing.

No HTTP concerns. ffmpeg runs as an asyncio subprocess and reports progress
on stdout (``-progress pipe:1``); each finished progress block becomes one
CodecProgress yielded to the caller.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Deque, Dict, List, Optional

from ..errors import MediagrabError
from ..logging import get_logger

logger = get_logger(__name__)

STDERR_TAIL_LINES = 20


class TranscodeError(MediagrabError):
    """Raised when ffmpeg fails or cannot be started."""

    pass


@dataclass(frozen=True)
class CodecProgress:
    """One ffmpeg progress report."""

    target_size_kb: int = 0
    out_time: float = 0.0
    percent: Optional[float] = None


def _to_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


def parse_progress_block(
    fields: Dict[str, str], duration: Optional[float] = None
) -> CodecProgress:
    """Convert one ``key=value`` progress block into a CodecProgress.

    ffmpeg reports ``out_time_ms`` in microseconds as well, so either key is
    read as microseconds. Values of ``N/A`` are treated as zero.
    """
    size = _to_int(fields.get("total_size")) or 0
    micros = _to_int(fields.get("out_time_us"))
    if micros is None:
        micros = _to_int(fields.get("out_time_ms"))
    out_time = max(0, micros or 0) / 1_000_000

    percent = None
    if duration:
        percent = min(100.0, out_time / duration * 100)

    return CodecProgress(target_size_kb=size // 1024, out_time=out_time, percent=percent)


class CodecEngine:
    """ffmpeg wrapper producing progress streams.

    Can be used by the pipeline, the CLI, or any other interface.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        audio_codec: str = "aac",
        audio_bitrate: str = "192k",
    ):
        """Initialize codec engine.

        Args:
            ffmpeg_path: ffmpeg executable
            audio_codec: Audio codec used when merging video and audio
            audio_bitrate: Audio bitrate used when merging video and audio
        """
        self.ffmpeg_path = ffmpeg_path
        self.audio_codec = audio_codec
        self.audio_bitrate = audio_bitrate

    def audio_args(self, output: Path, bitrate_kbps: int) -> List[str]:
        """ffmpeg arguments for stdin -> MP3."""
        return [
            "-i",
            "pipe:0",
            "-vn",  # No video
            "-codec:a",
            "libmp3lame",
            "-b:a",
            f"{bitrate_kbps}k",
            "-f",
            "mp3",
            "-progress",
            "pipe:1",
            "-nostats",
            str(output),
        ]

    def merge_args(self, video: Path, audio: Path, output: Path) -> List[str]:
        """ffmpeg arguments for muxing a video-only and an audio-only file."""
        return [
            "-i",
            str(video),
            "-i",
            str(audio),
            "-map",
            "0:v:0",
            "-map",
            "1:a:0",
            "-c:v",
            "copy",
            "-c:a",
            self.audio_codec,
            "-b:a",
            self.audio_bitrate,
            "-f",
            "mp4",
            "-progress",
            "pipe:1",
            "-nostats",
            str(output),
        ]

    def transcode_audio(
        self,
        chunks: AsyncIterator[bytes],
        output: Path,
        bitrate_kbps: int,
        duration: Optional[float] = None,
    ) -> AsyncIterator[CodecProgress]:
        """Encode an incoming byte stream to MP3.

        Args:
            chunks: Source bytes, piped to ffmpeg's stdin
            output: Destination file
            bitrate_kbps: Target MP3 bitrate
            duration: Media duration in seconds, for percentages

        Yields:
            CodecProgress per ffmpeg progress block

        Raises:
            TranscodeError: If ffmpeg fails
        """
        return self._run(
            self.audio_args(output, bitrate_kbps), stdin_chunks=chunks, duration=duration
        )

    def merge(
        self,
        video: Path,
        audio: Path,
        output: Path,
        duration: Optional[float] = None,
    ) -> AsyncIterator[CodecProgress]:
        """Copy the video track and transcode the audio track into one MP4.

        Raises:
            TranscodeError: If ffmpeg fails
        """
        return self._run(self.merge_args(video, audio, output), duration=duration)

    async def _run(
        self,
        args: List[str],
        stdin_chunks: Optional[AsyncIterator[bytes]] = None,
        duration: Optional[float] = None,
    ) -> AsyncIterator[CodecProgress]:
        cmd = [self.ffmpeg_path, "-hide_banner", "-loglevel", "error", "-y", *args]
        logger.debug("Running ffmpeg", command=" ".join(cmd))

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE
                if stdin_chunks is not None
                else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise TranscodeError(f"Failed to start ffmpeg: {e}") from e

        stderr_tail: Deque[str] = deque(maxlen=STDERR_TAIL_LINES)

        async def drain_stderr() -> None:
            assert process.stderr is not None
            async for line in process.stderr:
                text = line.decode("utf-8", errors="ignore").rstrip()
                if text:
                    stderr_tail.append(text)

        async def feed_stdin() -> None:
            assert process.stdin is not None and stdin_chunks is not None
            stdin = process.stdin
            try:
                async for chunk in stdin_chunks:
                    stdin.write(chunk)
                    await stdin.drain()
            except (BrokenPipeError, ConnectionResetError):
                logger.debug("ffmpeg closed its input early")
            finally:
                if not stdin.is_closing():
                    stdin.close()

        stderr_task = asyncio.create_task(drain_stderr())
        feeder = asyncio.create_task(feed_stdin()) if stdin_chunks is not None else None

        try:
            assert process.stdout is not None
            fields: Dict[str, str] = {}
            async for raw in process.stdout:
                key, sep, value = raw.decode("utf-8", errors="ignore").strip().partition("=")
                if not sep:
                    continue
                fields[key] = value
                if key == "progress":
                    yield parse_progress_block(fields, duration)
                    fields = {}

            returncode = await process.wait()
            await stderr_task
            if feeder is not None and (feeder.done() or returncode == 0):
                # Input failures take precedence over ffmpeg's reaction to them
                await feeder

            if returncode != 0:
                detail = "\n".join(stderr_tail) or f"exit code {returncode}"
                raise TranscodeError(f"ffmpeg failed: {detail}")
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()
            for task in (stderr_task, feeder):
                if task is not None and not task.done():
                    task.cancel()
