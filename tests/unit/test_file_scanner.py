import os
import sys
import pytest
from pathlib import Path
from abwalk.domain.exceptions import ConfigurationError
from abwalk.domain.models import MediaCategory
from abwalk.infrastructure.file_scanner import FileScanner, VIDEO_EXTENSIONS, classify


@pytest.mark.parametrize("name", sorted(f"movie.{ext}" for ext in VIDEO_EXTENSIONS))
def test_classify_video_extensions(name):
    assert classify(name) == MediaCategory.VIDEO


@pytest.mark.parametrize("name", [
    "movie.MP4",      # case-sensitive
    "movie.Mkv",
    "README",         # no extension
    "notes.txt",
    "movie.mkv.part",
    "mkv",
])
def test_classify_other(name):
    assert classify(name) == MediaCategory.OTHER


def test_classify_uses_final_extension_only():
    assert classify("/videos/show.mkv/episode.mp4") == MediaCategory.VIDEO
    assert classify("/videos/show.mp4/episode") == MediaCategory.OTHER


def test_scanner_finds_only_videos(video_tree):
    scanner = FileScanner()
    files = scanner.scan(video_tree)

    names = sorted(f.name for f in files)
    assert names == ["a.mkv", "b.mp4", "sample.mkv", "tiny.avi"]


def test_scanner_returns_absolute_paths_and_sizes(video_tree):
    files = FileScanner().scan(video_tree)

    for f in files:
        assert f.path.is_absolute()
        assert f.size_bytes == os.stat(f.path).st_size


def test_scanner_no_duplicates(video_tree):
    files = FileScanner().scan(video_tree)
    paths = [str(f.path) for f in files]
    assert len(paths) == len(set(paths))


def test_scanner_order_is_deterministic(video_tree):
    first = [f.path for f in FileScanner().scan(video_tree)]
    second = [f.path for f in FileScanner().scan(video_tree)]
    assert first == second


def test_scanner_empty_dir(tmp_path):
    assert FileScanner().scan(tmp_path) == []


def test_scanner_missing_root_raises(tmp_path):
    with pytest.raises(ConfigurationError, match="does not exist"):
        FileScanner().scan(tmp_path / "missing")


def test_scanner_file_root_raises(tmp_path):
    f = tmp_path / "movie.mkv"
    f.write_bytes(b"x")
    with pytest.raises(ConfigurationError, match="is not a folder"):
        FileScanner().scan(f)


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
def test_scanner_skips_dangling_symlink(tmp_path):
    (tmp_path / "real.mkv").write_bytes(b"x" * 10)
    os.symlink(tmp_path / "gone.mkv", tmp_path / "broken.mkv")

    files = FileScanner().scan(tmp_path)
    assert [f.name for f in files] == ["real.mkv"]


@pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges on Windows")
def test_scanner_does_not_follow_directory_symlinks(tmp_path):
    real = tmp_path / "real"
    real.mkdir()
    (real / "movie.mkv").write_bytes(b"x")
    os.symlink(real, tmp_path / "link")

    files = FileScanner().scan(tmp_path)
    assert [f.path for f in files] == [(real / "movie.mkv").absolute()]


@pytest.mark.skipif(sys.platform == "win32", reason="permission bits are not enforced on Windows")
def test_scanner_skips_unreadable_subdirectory(tmp_path):
    if hasattr(os, "geteuid") and os.geteuid() == 0:
        pytest.skip("root can read any directory")
    (tmp_path / "ok.mkv").write_bytes(b"x")
    locked = tmp_path / "locked"
    locked.mkdir()
    (locked / "hidden.mkv").write_bytes(b"x")
    locked.chmod(0)
    try:
        files = FileScanner().scan(tmp_path)
    finally:
        locked.chmod(0o755)

    assert [f.name for f in files] == ["ok.mkv"]


def test_check_root_returns_path(tmp_path):
    assert FileScanner.check_root(str(tmp_path)) == Path(tmp_path)
