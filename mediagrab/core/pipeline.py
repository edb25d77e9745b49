"""Download pipeline - job orchestration for media acquisition.

Each submitted request becomes one asyncio task that picks a strategy,
drives the source and codec engines, and folds their progress into the job
store:

- audio: source bytes piped through ffmpeg into an MP3
- combined video: a stream that already carries audio, saved as-is
- separate video: video-only and audio-only legs downloaded one after the
  other, then muxed by ffmpeg; both legs are deleted afterwards
"""

import asyncio
import uuid
from contextlib import aclosing
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Optional

from ..errors import JobStateError, validate_directory_exists
from ..logging import get_logger
from ..utils import sanitize_filename, sanitize_folder
from .codec import CodecEngine
from .formats import (
    StreamDescriptor,
    Strategy,
    classify_video_stream,
    select_audio_stream,
    select_merge_audio,
    select_video_stream,
    target_audio_bitrate,
)
from .jobs import InMemoryJobStore, JobState, JobStore
from .source import DownloadProgress, SourceEngine, SourceError, VideoInfo

if TYPE_CHECKING:
    from ..config import MediagrabConfig

logger = get_logger(__name__)

CANCELLED_MESSAGE = "Download cancelado"


class MediaType(str, Enum):
    """What the caller wants to end up with."""

    AUDIO = "audio"
    VIDEO = "video"


@dataclass(frozen=True)
class DownloadRequest:
    """Parameters of one download job."""

    url: str
    media_type: MediaType = MediaType.VIDEO
    quality: str = "best"
    folder: str = ""
    title: Optional[str] = None


def progress_message(progress: DownloadProgress, label: Optional[str] = None) -> str:
    """Progress text for a byte download: ``"42.0%"`` or ``"Baixando: 512kb"``."""
    fraction = progress.fraction
    if fraction is None:
        text = f"{progress.received // 1024}kb"
        return f"{label}: {text}" if label else f"Baixando: {text}"
    text = f"{fraction * 100:.1f}%"
    return f"{label}: {text}" if label else text


class DownloadPipeline:
    """Runs download jobs and records their progress.

    The job store is injected; the pipeline is the only writer of the jobs it
    creates.
    """

    def __init__(
        self,
        store: JobStore,
        source: SourceEngine,
        codec: CodecEngine,
        download_root: Path,
        default_audio_bitrate: int = 192,
        max_concurrent_jobs: Optional[int] = None,
    ):
        """Initialize pipeline.

        Args:
            store: Job store receiving every state change
            source: Remote source engine
            codec: ffmpeg engine
            download_root: Root directory for finished files
            default_audio_bitrate: MP3 bitrate (kbps) for best/worst selectors
            max_concurrent_jobs: Optional cap on pipelines running at once
        """
        self.store = store
        self.source = source
        self.codec = codec
        self.download_root = Path(download_root)
        self.default_audio_bitrate = default_audio_bitrate
        self._semaphore = (
            asyncio.Semaphore(max_concurrent_jobs) if max_concurrent_jobs else None
        )
        self._tasks: Dict[str, "asyncio.Task[None]"] = {}

    @classmethod
    def from_config(
        cls, config: "MediagrabConfig", store: Optional[JobStore] = None
    ) -> "DownloadPipeline":
        """Build a pipeline with real engines from configuration."""
        return cls(
            store=store or InMemoryJobStore(),
            source=SourceEngine(chunk_size=config.chunk_size, timeout=config.http_timeout),
            codec=CodecEngine(
                ffmpeg_path=config.ffmpeg_path,
                audio_codec=config.merge_audio_codec,
                audio_bitrate=config.merge_audio_bitrate,
            ),
            download_root=config.download_root,
            default_audio_bitrate=config.default_audio_bitrate,
            max_concurrent_jobs=config.max_concurrent_jobs,
        )

    @property
    def active_jobs(self) -> int:
        return len(self._tasks)

    def output_dir(self, folder: str = "") -> Path:
        """Download root, or one sanitized level below it."""
        safe = sanitize_folder(folder)
        return self.download_root / safe if safe else self.download_root

    async def resolve_title(self, url: str) -> str:
        """Sanitized video title, or a random UUID when the source fails."""
        try:
            info = await self.source.get_info(url)
        except SourceError as e:
            logger.warning("Could not resolve title", url=url, error=str(e))
            return str(uuid.uuid4())
        return sanitize_filename(info.title) or str(uuid.uuid4())

    def submit(self, request: DownloadRequest) -> str:
        """Create a job and start its pipeline without waiting for it.

        Must be called from within a running event loop.

        Returns:
            The new job ID
        """
        job_id = str(uuid.uuid4())
        self.store.create(job_id)

        task = asyncio.create_task(self.run(job_id, request), name=f"download-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job_id, None))

        logger.info(
            "Download submitted",
            job_id=job_id,
            url=request.url,
            media_type=request.media_type.value,
            quality=request.quality,
        )
        return job_id

    async def run(self, job_id: str, request: DownloadRequest) -> None:
        """Execute one job to a terminal state. Never raises except on cancel."""
        try:
            if self._semaphore is None:
                await self._execute(job_id, request)
            else:
                async with self._semaphore:
                    await self._execute(job_id, request)
        except asyncio.CancelledError:
            self._fail(job_id, CANCELLED_MESSAGE)
            raise
        except Exception as e:
            logger.error(
                "Download failed",
                job_id=job_id,
                url=request.url,
                error=str(e),
                exc_info=True,
            )
            self._fail(job_id, str(e) or e.__class__.__name__)

    async def wait_idle(self) -> None:
        """Wait until every submitted job has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel in-flight jobs; they end in the error state."""
        pending = dict(self._tasks)
        for task in pending.values():
            task.cancel()
        if not pending:
            return

        await asyncio.gather(*pending.values(), return_exceptions=True)
        for job_id in pending:
            # Tasks cancelled before their first step never reached run()
            state = self.store.get(job_id)
            if state is not None and not state.status.is_terminal:
                self._fail(job_id, CANCELLED_MESSAGE)
        logger.info("Cancelled in-flight downloads", count=len(pending))

    async def _execute(self, job_id: str, request: DownloadRequest) -> None:
        out_dir = validate_directory_exists(self.output_dir(request.folder), create=True)
        title = request.title or job_id

        if request.media_type == MediaType.AUDIO:
            filename = await self._run_audio(job_id, request, out_dir, title)
        else:
            filename = await self._run_video(job_id, request, out_dir, title)

        self.store.update(job_id, JobState.completed(filename))

    async def _run_audio(
        self, job_id: str, request: DownloadRequest, out_dir: Path, title: str
    ) -> str:
        info = await self.source.get_info(request.url)
        logger.debug(
            "Available audio tracks",
            job_id=job_id,
            tracks=[s.to_dict() for s in info.streams if s.is_audio_only],
        )

        stream = select_audio_stream(info.streams, request.quality)
        bitrate = target_audio_bitrate(request.quality, self.default_audio_bitrate)
        logger.info(
            "Transcoding audio",
            job_id=job_id,
            strategy=Strategy.AUDIO.value,
            stream_id=stream.stream_id,
            bitrate=bitrate,
        )

        filename = f"{title}.mp3"
        part = out_dir / f"{job_id}.part.mp3"
        try:
            events = self.codec.transcode_audio(
                self.source.iter_bytes(stream),
                part,
                bitrate,
                duration=info.duration or None,
            )
            async with aclosing(events):
                async for progress in events:
                    self._report(job_id, f"Processando: {progress.target_size_kb}kb")
            part.replace(out_dir / filename)
        finally:
            self._discard(part)
        return filename

    async def _run_video(
        self, job_id: str, request: DownloadRequest, out_dir: Path, title: str
    ) -> str:
        info = await self.source.get_info(request.url)
        stream = select_video_stream(info.streams, request.quality)
        strategy = classify_video_stream(stream)
        logger.info(
            "Downloading video",
            job_id=job_id,
            strategy=strategy.value,
            stream_id=stream.stream_id,
        )

        filename = f"{title}.mp4"
        part = out_dir / f"{job_id}.part.mp4"
        try:
            if strategy == Strategy.COMBINED:
                await self._fetch(job_id, stream, part)
            else:
                await self._download_and_merge(job_id, info, stream, out_dir, part)
            part.replace(out_dir / filename)
        finally:
            self._discard(part)
        return filename

    async def _download_and_merge(
        self,
        job_id: str,
        info: VideoInfo,
        video: StreamDescriptor,
        out_dir: Path,
        output: Path,
    ) -> None:
        audio = select_merge_audio(info.streams)
        video_tmp = out_dir / f"{job_id}_video.{video.ext or 'mp4'}"
        audio_tmp = out_dir / f"{job_id}_audio.{audio.ext or 'm4a'}"
        logger.debug(
            "Merging separate streams",
            job_id=job_id,
            video_stream=video.stream_id,
            audio_stream=audio.stream_id,
        )

        try:
            await self._fetch(job_id, video, video_tmp, label="Baixando vídeo")
            await self._fetch(job_id, audio, audio_tmp, label="Baixando áudio")

            events = self.codec.merge(
                video_tmp, audio_tmp, output, duration=info.duration or None
            )
            async with aclosing(events):
                async for progress in events:
                    percent = (
                        f"{progress.percent:.1f}" if progress.percent is not None else "0"
                    )
                    self._report(
                        job_id, f"Mesclando e transcodificando áudio: {percent}%"
                    )
        finally:
            self._discard(video_tmp)
            self._discard(audio_tmp)

    async def _fetch(
        self,
        job_id: str,
        stream: StreamDescriptor,
        dest: Path,
        label: Optional[str] = None,
    ) -> None:
        last: Optional[str] = None
        events = self.source.download(stream, dest)
        async with aclosing(events):
            async for progress in events:
                message = progress_message(progress, label)
                if message != last:
                    self._report(job_id, message)
                    last = message

    def _report(self, job_id: str, message: str) -> None:
        self.store.update(job_id, JobState.downloading(message))

    def _fail(self, job_id: str, message: str) -> None:
        try:
            self.store.update(job_id, JobState.failed(message))
        except JobStateError:
            logger.warning("Job already finished, failure not recorded", job_id=job_id)

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove file", path=str(path), error=str(e))
