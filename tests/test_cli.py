import json
import os
from pathlib import Path

import pytest

from siv import cli


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    d = tmp_path / "data"
    d.mkdir()
    (d / "a.txt").write_text("alpha")
    out = tmp_path / "out"
    out.mkdir()
    return d, out


def _init(d: Path, out: Path, *extra):
    return cli.main([
        "init", str(d),
        "-V", str(out / "snap.tsv"),
        "-R", str(out / "init.txt"),
        "-H", "md5",
        "--log", str(out / "log.jsonl"),
        *extra,
    ])


def test_init_then_verify_clean(workspace, capsys):
    d, out = workspace
    assert _init(d, out) == cli.EXIT_OK
    assert (out / "snap.tsv").exists()

    rc = cli.main(["verify", "-V", str(out / "snap.tsv"), "-R", str(out / "report.txt"), "--log", str(out / "log.jsonl")])
    assert rc == cli.EXIT_OK
    assert "No changes detected" in capsys.readouterr().out

    events = [json.loads(line) for line in (out / "log.jsonl").read_text().splitlines()]
    assert [e["event"] for e in events] == ["init", "verify"]
    assert events[1]["deleted"] == [] and events[1]["added"] == []


def test_verify_reports_changes(workspace, capsys):
    d, out = workspace
    _init(d, out)
    (d / "b.txt").write_text("beta")

    rc = cli.main(["verify", "-V", str(out / "snap.tsv"), "-R", str(out / "report.txt"), "--log", str(out / "log.jsonl")])
    assert rc == cli.EXIT_CHANGES
    assert f"{d / 'b.txt'} is new" in capsys.readouterr().out


def test_snapshot_inside_directory_is_an_error(workspace, capsys):
    d, out = workspace
    rc = cli.main(["init", str(d), "-V", str(d / "snap.tsv"), "-R", str(out / "r.txt"), "--log", str(out / "log.jsonl")])
    assert rc == cli.EXIT_ERROR
    assert "ERROR:" in capsys.readouterr().err
    assert not (d / "snap.tsv").exists()


def test_report_must_be_txt(workspace):
    d, out = workspace
    rc = cli.main(["init", str(d), "-V", str(out / "s.tsv"), "-R", str(out / "r.log"), "--log", str(out / "log.jsonl")])
    assert rc == cli.EXIT_ERROR
    assert not (out / "s.tsv").exists()


def test_unknown_hash_is_an_error(workspace):
    d, out = workspace
    assert _init(d, out, "-H", "crc32") == cli.EXIT_ERROR


def test_update_with_yes(workspace, capsys):
    d, out = workspace
    _init(d, out)
    (d / "a.txt").write_text("changed")

    rc = cli.main(["update", "-V", str(out / "snap.tsv"), "--yes", "--no-backup", "--log", str(out / "log.jsonl")])
    assert rc == cli.EXIT_OK
    assert "Snapshot updated" in capsys.readouterr().out
    assert not list(out.glob("snap.tsv.bak.*"))

    rc = cli.main(["verify", "-V", str(out / "snap.tsv"), "-R", str(out / "report.txt"), "--log", str(out / "log.jsonl")])
    assert rc == cli.EXIT_OK


def test_update_cancelled(workspace, monkeypatch):
    d, out = workspace
    _init(d, out)
    before = (out / "snap.tsv").read_text()
    (d / "a.txt").write_text("changed")
    monkeypatch.setattr("builtins.input", lambda prompt: "n")

    assert cli.main(["update", "-V", str(out / "snap.tsv"), "--log", str(out / "log.jsonl")]) == cli.EXIT_OK
    assert (out / "snap.tsv").read_text() == before


def test_init_and_verify_with_non_utf8_name(workspace, capsys):
    d, out = workspace
    with open(os.path.join(os.fsencode(d), b"bad\xff.txt"), "wb") as f:
        f.write(b"odd")
    assert _init(d, out) == cli.EXIT_OK

    with open(os.path.join(os.fsencode(d), b"new\xfe.txt"), "wb") as f:
        f.write(b"odd")
    rc = cli.main(["verify", "-V", str(out / "snap.tsv"), "-R", str(out / "report.txt"), "--log", str(out / "log.jsonl")])
    assert rc == cli.EXIT_CHANGES
    assert "new\\udcfe.txt is new" in capsys.readouterr().out
    assert b"new\xfe.txt is new" in (out / "report.txt").read_bytes()


def test_update_closed_stdin_cancels(workspace, monkeypatch, capsys):
    d, out = workspace
    _init(d, out)
    before = (out / "snap.tsv").read_text()
    (d / "a.txt").write_text("changed")

    def closed(prompt):
        raise EOFError

    monkeypatch.setattr("builtins.input", closed)
    assert cli.main(["update", "-V", str(out / "snap.tsv"), "--log", str(out / "log.jsonl")]) == cli.EXIT_OK
    assert "cancelled" in capsys.readouterr().out
    assert (out / "snap.tsv").read_text() == before
