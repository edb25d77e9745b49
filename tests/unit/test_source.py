"""Unit tests for the source engine.

yt-dlp is replaced in sys.modules and HTTP goes through httpx.MockTransport,
so nothing touches the network.
"""

import asyncio
import sys
from unittest.mock import MagicMock

import httpx
import pytest

from mediagrab.core.formats import StreamDescriptor
from mediagrab.core.source import DownloadProgress, SourceEngine, SourceError, VideoInfo

YTDLP_INFO = {
    "title": "Never Gonna Give You Up",
    "duration": 212.4,
    "channel": "Rick Astley",
    "view_count": 1500000000,
    "description": "The official video",
    "formats": [
        {
            "format_id": "18",
            "vcodec": "avc1.42001E",
            "acodec": "mp4a.40.2",
            "height": 360,
            "abr": 96,
            "ext": "mp4",
            "url": "https://cdn.example.com/18",
        },
        {
            "format_id": "140",
            "vcodec": "none",
            "acodec": "mp4a.40.2",
            "abr": 129.5,
            "ext": "m4a",
            "url": "https://cdn.example.com/140",
        },
    ],
}


@pytest.fixture
def mock_yt_dlp():
    """Fixture to mock yt-dlp module."""
    mock_module = MagicMock()
    sys.modules["yt_dlp"] = mock_module
    yield mock_module
    # Cleanup
    if "yt_dlp" in sys.modules:
        del sys.modules["yt_dlp"]


def _ydl(mock_module):
    return mock_module.YoutubeDL.return_value.__enter__.return_value


def _engine(handler, **kwargs):
    return SourceEngine(
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


def _stream(**overrides):
    values = dict(
        stream_id="18",
        has_audio=True,
        has_video=True,
        url="https://cdn.example.com/18",
    )
    values.update(overrides)
    return StreamDescriptor(**values)


class TestVideoInfo:
    """Test VideoInfo construction from yt-dlp output."""

    def test_from_ytdlp(self):
        info = VideoInfo.from_ytdlp(YTDLP_INFO)

        assert info.title == "Never Gonna Give You Up"
        assert info.duration == 212
        assert info.uploader == "Rick Astley"
        assert info.view_count == 1500000000
        assert [s.stream_id for s in info.streams] == ["18", "140"]

    def test_missing_fields(self):
        info = VideoInfo.from_ytdlp({"title": None})

        assert info.title == ""
        assert info.duration == 0
        assert info.view_count == 0
        assert info.streams == []


class TestDownloadProgress:
    """Test progress fractions."""

    def test_fraction(self):
        assert DownloadProgress(received=50, total=200).fraction == 0.25

    def test_fraction_unknown_total(self):
        assert DownloadProgress(received=50).fraction is None

    def test_fraction_capped(self):
        assert DownloadProgress(received=300, total=200).fraction == 1.0


class TestGetInfo:
    """Test metadata extraction."""

    @pytest.mark.asyncio
    async def test_get_info(self, mock_yt_dlp):
        _ydl(mock_yt_dlp).extract_info.return_value = YTDLP_INFO

        info = await SourceEngine().get_info("https://youtu.be/dQw4w9WgXcQ")

        assert info.title == "Never Gonna Give You Up"
        assert len(info.streams) == 2
        _ydl(mock_yt_dlp).extract_info.assert_called_once_with(
            "https://youtu.be/dQw4w9WgXcQ", download=False
        )

    @pytest.mark.asyncio
    async def test_manifest_formats_listed(self, mock_yt_dlp):
        hls = {
            "format_id": "96",
            "vcodec": "avc1.640028",
            "acodec": "mp4a.40.2",
            "height": 1080,
            "protocol": "m3u8_native",
            "url": "https://manifest.example.com/96.m3u8",
        }
        _ydl(mock_yt_dlp).extract_info.return_value = dict(
            YTDLP_INFO, formats=YTDLP_INFO["formats"] + [hls]
        )

        info = await SourceEngine().get_info("https://x")

        assert [s.stream_id for s in info.streams] == ["18", "140", "96"]
        assert not info.streams[-1].is_direct

    @pytest.mark.asyncio
    async def test_default_options(self, mock_yt_dlp):
        _ydl(mock_yt_dlp).extract_info.return_value = YTDLP_INFO

        await SourceEngine(ydl_options={"socket_timeout": 5}).get_info("https://x")

        options = mock_yt_dlp.YoutubeDL.call_args[0][0]
        assert options["quiet"] is True
        assert options["noplaylist"] is True
        assert options["socket_timeout"] == 5

    @pytest.mark.asyncio
    async def test_extraction_error(self, mock_yt_dlp):
        _ydl(mock_yt_dlp).extract_info.side_effect = Exception("Video unavailable")

        with pytest.raises(SourceError, match="Video unavailable"):
            await SourceEngine().get_info("https://x")

    @pytest.mark.asyncio
    async def test_empty_result(self, mock_yt_dlp):
        _ydl(mock_yt_dlp).extract_info.return_value = None

        with pytest.raises(SourceError, match="No video information"):
            await SourceEngine().get_info("https://x")


class TestDownload:
    """Test streamed downloads."""

    @pytest.mark.asyncio
    async def test_download_writes_file(self, tmp_path):
        payload = b"abc" * 1000

        def handler(request):
            return httpx.Response(200, content=payload)

        engine = _engine(handler, chunk_size=1024)
        dest = tmp_path / "out.mp4"

        events = [p async for p in engine.download(_stream(), dest)]

        assert dest.read_bytes() == payload
        assert events[-1].received == len(payload)
        assert events[-1].total == len(payload)
        assert [e.received for e in events] == sorted(e.received for e in events)

    @pytest.mark.asyncio
    async def test_writes_run_off_the_event_loop(self, tmp_path, monkeypatch):
        payload = b"xyz" * 1000
        written = []
        to_thread = asyncio.to_thread

        async def recording_to_thread(func, *args, **kwargs):
            written.extend(args)
            return await to_thread(func, *args, **kwargs)

        monkeypatch.setattr("mediagrab.core.source.asyncio.to_thread", recording_to_thread)
        engine = _engine(lambda request: httpx.Response(200, content=payload), chunk_size=1024)
        dest = tmp_path / "out.mp4"

        [p async for p in engine.download(_stream(), dest)]

        assert b"".join(written) == payload
        assert dest.read_bytes() == payload

    @pytest.mark.asyncio
    async def test_forwards_stream_headers(self, tmp_path):
        seen = {}

        def handler(request):
            seen["user-agent"] = request.headers.get("user-agent")
            seen["url"] = str(request.url)
            return httpx.Response(200, content=b"data")

        stream = _stream(http_headers={"User-Agent": "Mozilla/5.0 test"})
        [p async for p in _engine(handler).download(stream, tmp_path / "out")]

        assert seen["user-agent"] == "Mozilla/5.0 test"
        assert seen["url"] == "https://cdn.example.com/18"

    @pytest.mark.asyncio
    async def test_http_error_status(self, tmp_path):
        def handler(request):
            return httpx.Response(403)

        with pytest.raises(SourceError, match="HTTP 403"):
            [p async for p in _engine(handler).download(_stream(), tmp_path / "out")]

    @pytest.mark.asyncio
    async def test_transport_error(self, tmp_path):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SourceError, match="connection refused"):
            [p async for p in _engine(handler).download(_stream(), tmp_path / "out")]

    @pytest.mark.asyncio
    async def test_stream_without_url(self, tmp_path):
        engine = _engine(lambda request: httpx.Response(200))

        with pytest.raises(SourceError, match="no retrievable URL"):
            [p async for p in engine.download(_stream(url=None), tmp_path / "out")]

    @pytest.mark.asyncio
    async def test_iter_bytes(self):
        def handler(request):
            return httpx.Response(200, content=b"0123456789")

        engine = _engine(handler, chunk_size=4)
        chunks = [c async for c in engine.iter_bytes(_stream())]

        assert b"".join(chunks) == b"0123456789"

    @pytest.mark.asyncio
    async def test_filesize_used_without_content_length(self, tmp_path):
        async def body():
            yield b"12345"

        def handler(request):
            return httpx.Response(200, content=body())

        stream = _stream(filesize=10)
        events = [p async for p in _engine(handler).download(stream, tmp_path / "out")]

        assert events[-1].total == 10
        assert events[-1].fraction == 0.5
