"""Unit tests for metadata lookup and projection."""

import pytest

from mediagrab.core.metadata import (
    LOOKUP_FAILED_MESSAGE,
    MetadataLookupError,
    lookup_metadata,
    project_info,
    truncate_description,
)
from mediagrab.core.source import SourceError
from tests.fakes import FakeSource, sample_info


class TestTruncateDescription:
    def test_long_description(self):
        assert truncate_description("a" * 300, 200) == "a" * 200 + "…"

    def test_short_description_still_marked(self):
        assert truncate_description("short", 200) == "short…"

    def test_empty_description(self):
        assert truncate_description("", 200) == "…"


def test_project_info():
    data = project_info(sample_info(description="d" * 250))

    assert data["title"] == "Sample Video"
    assert data["duration"] == 120
    assert data["uploader"] == "Sample Channel"
    assert data["view_count"] == 4321
    assert data["description"] == "d" * 200 + "…"
    assert [f["streamId"] for f in data["formats"]] == ["18", "137", "140", "251", "249"]
    assert set(data["formats"][0]) == {
        "streamId",
        "qualityLabel",
        "audioBitrate",
        "hasVideo",
        "hasAudio",
        "height",
    }


def test_project_info_custom_length():
    data = project_info(sample_info(description="abcdef"), description_chars=3)
    assert data["description"] == "abc…"


@pytest.mark.asyncio
async def test_lookup_queries_source_once():
    source = FakeSource()

    data = await lookup_metadata(source, "https://youtu.be/x")

    assert data["title"] == "Sample Video"
    assert source.info_calls == 1


@pytest.mark.asyncio
async def test_lookup_failure_hides_provider_detail():
    source = FakeSource(error=SourceError("ERROR: [youtube] x: Sign in to confirm"))

    with pytest.raises(MetadataLookupError) as exc_info:
        await lookup_metadata(source, "https://youtu.be/x")

    assert str(exc_info.value) == LOOKUP_FAILED_MESSAGE
    assert isinstance(exc_info.value.__cause__, SourceError)
