"""Shared fixtures for the mediagrab test suite."""

import pytest

from mediagrab.config import reset_config
from mediagrab.core.pipeline import DownloadPipeline
from tests.fakes import FakeCodec, FakeSource, RecordingJobStore


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep the process environment and cached config out of tests."""
    for name in ("MEDIAGRAB_DOWNLOAD_ROOT", "MEDIAGRAB_MAX_CONCURRENT_JOBS", "PORT"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def download_root(tmp_path):
    """Download root inside the test's temporary directory."""
    return tmp_path / "downloads"


@pytest.fixture
def store():
    return RecordingJobStore()


@pytest.fixture
def fake_source():
    return FakeSource()


@pytest.fixture
def fake_codec():
    return FakeCodec()


@pytest.fixture
def pipeline(store, fake_source, fake_codec, download_root):
    """Pipeline wired to the fake engines."""
    return DownloadPipeline(
        store=store,
        source=fake_source,
        codec=fake_codec,
        download_root=download_root,
    )
