from pathlib import Path

from siv.comparator import ChangeReport, FieldChange, ModifiedEntry
from siv.report import RunSummary, render_init_report, render_report, write_report

SUMMARY = RunSummary("/data", "/var/siv/snap.tsv", "sha1", 3, 1)


def test_init_report():
    text = render_init_report(SUMMARY)
    assert text.splitlines() == [
        "SIV Report File",
        "Directory: /data",
        "Verification File: /var/siv/snap.tsv",
        "Number of Parsed Files: 3",
        "Number of Parsed Directories: 1",
        "Hash Function: sha1",
    ]


def test_init_report_with_elapsed_time():
    summary = RunSummary("/data", "/s.tsv", "md5", 0, 0, elapsed_seconds=1.5)
    assert "Time of Initialization (in seconds): 1.500" in render_init_report(summary)


def test_verification_report_lines():
    report = ChangeReport(
        deleted=("/data/b.txt",),
        added=("/data/c.txt",),
        modified=(
            ModifiedEntry(
                "/data/a.txt",
                (FieldChange("permissions", "644", "600"), FieldChange("digest", "aa", "bb")),
            ),
        ),
    )
    lines = render_report(SUMMARY, report).splitlines()
    assert lines[:9] == [
        "SIV Report File",
        "Directory: /data",
        "Verification File: /var/siv/snap.tsv",
        "Hash Function: sha1",
        "Number of Parsed Files: 3",
        "Number of Parsed Directories: 1",
        "Number of Deleted Files: 1",
        "Number of New Files: 1",
        "Number of Changed Files: 1",
    ]
    assert lines[9:] == [
        "Warnings:",
        "/data/b.txt is deleted",
        "/data/c.txt is new",
        "/data/a.txt access rights are different: 644 600",
        "/data/a.txt hash is different: aa bb",
    ]


def test_clean_report_has_no_warnings():
    lines = render_report(SUMMARY, ChangeReport()).splitlines()
    assert lines[-1] == "Warnings:"
    assert "Number of Changed Files: 0" in lines


def test_write_report(tmp_path: Path):
    out = tmp_path / "r" / "report.txt"
    write_report(out, "hello\n")
    assert out.read_text() == "hello\n"
