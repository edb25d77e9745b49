"""Unit tests for download listing and file resolution."""

import os

from mediagrab.server.storage import list_downloads, resolve_download_file


def test_list_missing_root(tmp_path):
    assert list_downloads(tmp_path / "nope") == []


def test_list_empty_root(tmp_path):
    assert list_downloads(tmp_path) == []


def test_list_includes_subfolders(tmp_path):
    (tmp_path / "song.mp3").write_bytes(b"x" * 10)
    (tmp_path / "music").mkdir()
    (tmp_path / "music" / "clip.mp4").write_bytes(b"y" * 3)

    files = list_downloads(tmp_path)

    assert sorted((f["name"], f["size"]) for f in files) == [
        ("clip.mp4", 3),
        ("song.mp3", 10),
    ]


def test_list_modified_timestamp(tmp_path):
    path = tmp_path / "song.mp3"
    path.write_bytes(b"x")
    os.utime(path, (1714566615, 1714566615))

    [entry] = list_downloads(tmp_path)

    assert entry["modified"] == "2024-05-01T12:30:15.000Z"


def test_resolve_flat_file(tmp_path):
    (tmp_path / "song.mp3").write_bytes(b"x")
    assert resolve_download_file(tmp_path, "song.mp3") == tmp_path / "song.mp3"


def test_resolve_prefers_nested_location(tmp_path):
    (tmp_path / "song.mp3").write_bytes(b"flat")
    (tmp_path / "downloads").mkdir()
    (tmp_path / "downloads" / "song.mp3").write_bytes(b"nested")

    path = resolve_download_file(tmp_path, "song.mp3")

    assert path.read_bytes() == b"nested"


def test_resolve_nested_only(tmp_path):
    (tmp_path / "downloads").mkdir()
    (tmp_path / "downloads" / "old.mp4").write_bytes(b"x")
    assert resolve_download_file(tmp_path, "old.mp4") is not None


def test_resolve_without_legacy_subdir(tmp_path):
    (tmp_path / "downloads").mkdir()
    (tmp_path / "downloads" / "old.mp4").write_bytes(b"x")
    assert resolve_download_file(tmp_path, "old.mp4", legacy_subdir="") is None


def test_resolve_missing_file(tmp_path):
    assert resolve_download_file(tmp_path, "missing.mp3") is None


def test_resolve_rejects_traversal(tmp_path):
    root = tmp_path / "root"
    root.mkdir()
    (tmp_path / "secret.txt").write_text("secret")

    assert resolve_download_file(root, "../secret.txt", legacy_subdir="") is None
    assert resolve_download_file(root, "../../secret.txt") is None


def test_resolve_ignores_directories(tmp_path):
    (tmp_path / "music").mkdir()
    assert resolve_download_file(tmp_path, "music") is None
