"""Unit tests for directory listing and safe file resolution."""

import os

import pytest

from openvoice_gateway.core.exceptions import (
    DirectoryListingError,
    FileNotFoundInRootError,
    PathTraversalError,
)
from openvoice_gateway.core.file_gateway import list_directory, open_file, safe_resolve


def test_listing_sorted_newest_first(ref_dir, make_file):
    make_file(ref_dir, "old.wav", b"a", mtime=1_000)
    make_file(ref_dir, "new.wav", b"abc", mtime=3_000)
    make_file(ref_dir, "mid.wav", b"ab", mtime=2_000)

    entries = list_directory(ref_dir)

    assert [e.name for e in entries] == ["new.wav", "mid.wav", "old.wav"]
    assert [e.size for e in entries] == [3, 2, 1]
    assert entries[0].mtime_ms == pytest.approx(3_000_000)


def test_listing_skips_hidden_and_directories(ref_dir, make_file):
    make_file(ref_dir, ".DS_Store", b"x")
    make_file(ref_dir, "voice.mp3", b"x")
    (ref_dir / "nested").mkdir()

    assert [e.name for e in list_directory(ref_dir)] == ["voice.mp3"]


def test_listing_only_hidden_files_is_empty(ref_dir, make_file):
    make_file(ref_dir, ".hidden", b"x")
    make_file(ref_dir, ".gitkeep")

    assert list_directory(ref_dir) == []


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_listing_skips_symlinks(ref_dir, tmp_path, make_file):
    target = make_file(tmp_path, "outside.wav", b"x")
    (ref_dir / "link.wav").symlink_to(target)

    assert list_directory(ref_dir) == []


def test_listing_missing_directory_fails(tmp_path):
    missing = tmp_path / "nope"

    with pytest.raises(DirectoryListingError) as exc_info:
        list_directory(missing)

    assert exc_info.value.message.startswith(f"Failed to read {missing}")


def test_safe_resolve_inside_root(ref_dir, make_file):
    make_file(ref_dir, "a.wav")

    assert safe_resolve(ref_dir, "a.wav") == (ref_dir / "a.wav").resolve()


@pytest.mark.parametrize(
    "name",
    ["../../etc/passwd", "..", ".", "/etc/passwd", "../refs-evil/a.wav"],
)
def test_safe_resolve_rejects_escapes(ref_dir, name):
    with pytest.raises(PathTraversalError):
        safe_resolve(ref_dir, name)


def test_sibling_with_common_prefix_is_rejected(tmp_path, make_file):
    root = tmp_path / "refs"
    sibling = tmp_path / "refs2"
    root.mkdir()
    sibling.mkdir()
    make_file(sibling, "secret.wav", b"secret")

    with pytest.raises(PathTraversalError):
        open_file(root, "../refs2/secret.wav")


def test_open_file_missing(ref_dir):
    with pytest.raises(FileNotFoundInRootError):
        open_file(ref_dir, "missing.wav")


def test_open_file_rejects_directory(ref_dir):
    (ref_dir / "sub").mkdir()

    with pytest.raises(FileNotFoundInRootError):
        open_file(ref_dir, "sub")


def test_open_file_returns_path(out_dir, make_file):
    make_file(out_dir, "result.wav", b"RIFF")

    path = open_file(out_dir, "result.wav")

    assert path.read_bytes() == b"RIFF"
