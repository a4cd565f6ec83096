# tests/test_scanner.py
import hashlib
import os
from pathlib import Path

import pytest

from siv import scanner
from siv.errors import MetadataAccessError, PathNotFoundError, UnsupportedAlgorithmError
from siv.scanner import collect


def _tree(tmp_path: Path) -> Path:
    d = tmp_path / "dir"
    d.mkdir()
    (d / "one.txt").write_text("a")
    (d / "sub").mkdir()
    (d / "sub" / "two.py").write_text("b")
    return d


def test_scan_collects_metadata(tmp_path: Path):
    d = _tree(tmp_path)
    snap = collect(d, "sha1")
    paths = [e.path for e in snap.entries]
    assert paths == [f"{d}/one.txt", f"{d}/sub", f"{d}/sub/two.py"]
    assert snap.directory == str(d)
    assert snap.algorithm == "sha1"

    by_path = {e.path: e for e in snap.entries}
    assert by_path[f"{d}/one.txt"].digest == hashlib.sha1(b"a").hexdigest()
    assert by_path[f"{d}/one.txt"].size == 1
    assert by_path[f"{d}/sub"].digest == "directory"
    assert snap.file_count == 2
    assert snap.directory_count == 1


def test_root_is_not_an_entry(tmp_path: Path):
    d = _tree(tmp_path)
    assert str(d) not in {e.path for e in collect(d, "md5").entries}


def test_scan_exclude_glob(tmp_path: Path):
    d = tmp_path / "dir2"
    d.mkdir()
    (d / "a.pyc").write_text("x")
    (d / "b.txt").write_text("y")
    paths = {e.path for e in collect(d, "sha1", exclude=["*.pyc"]).entries}
    assert f"{d}/b.txt" in paths
    assert f"{d}/a.pyc" not in paths


def test_excluded_directory_is_not_descended(tmp_path: Path):
    d = _tree(tmp_path)
    paths = {e.path for e in collect(d, "sha1", exclude=["sub"]).entries}
    assert paths == {f"{d}/one.txt"}


def test_exclude_negation(tmp_path: Path):
    d = tmp_path / "dir3"
    d.mkdir()
    (d / "keep.log").write_text("x")
    (d / "drop.log").write_text("y")
    paths = {e.path for e in collect(d, "sha1", exclude=["*.log", "!keep.log"]).entries}
    assert paths == {f"{d}/keep.log"}


def test_missing_root(tmp_path: Path):
    with pytest.raises(PathNotFoundError):
        collect(tmp_path / "nope", "sha1")


def test_unknown_algorithm_fails_before_walking(tmp_path: Path, monkeypatch):
    def boom(*a, **kw):
        raise AssertionError("walk should not start")

    monkeypatch.setattr(scanner.os, "walk", boom)
    with pytest.raises(UnsupportedAlgorithmError):
        collect(tmp_path, "crc32")


def test_dangling_symlink_aborts_scan(tmp_path: Path):
    d = _tree(tmp_path)
    os.symlink(str(d / "missing"), str(d / "broken"))
    with pytest.raises(MetadataAccessError) as exc:
        collect(d, "sha1")
    assert exc.value.path == f"{d}/broken"


def test_non_utf8_name_is_collected(tmp_path: Path):
    d = tmp_path / "dir4"
    d.mkdir()
    with open(os.path.join(os.fsencode(d), b"bad\xff.txt"), "wb") as f:
        f.write(b"x")
    snap = collect(d, "sha1")
    assert [e.path for e in snap.entries] == [f"{d}/bad\udcff.txt"]
    assert snap.entries[0].digest == hashlib.sha1(b"x").hexdigest()


def test_fifo_is_recorded_without_reading(tmp_path: Path):
    d = tmp_path / "dir5"
    d.mkdir()
    os.mkfifo(str(d / "pipe"))
    (d / "a.txt").write_text("a")
    by_path = {e.path: e for e in collect(d, "sha1").entries}
    assert by_path[f"{d}/pipe"].digest == "special"
    assert by_path[f"{d}/pipe"].is_special
    assert by_path[f"{d}/a.txt"].digest == hashlib.sha1(b"a").hexdigest()
