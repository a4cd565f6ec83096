"""
Plain-text report rendering.

Renderers only format what they are given; counts and findings come
straight from RunSummary and ChangeReport.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .comparator import ChangeReport
from .storage.tsv_store import write_text_atomic

REPORT_TITLE = "SIV Report File"

# field -> (label, verb) as printed in warning lines
FIELD_LABELS = {
    "size": ("file size", "is"),
    "owner": ("owner", "is"),
    "group": ("group", "is"),
    "permissions": ("access rights", "are"),
    "last_modified": ("last modified time", "is"),
    "digest": ("hash", "is"),
}


@dataclass(frozen=True)
class RunSummary:
    directory: str
    snapshot_path: str
    algorithm: str
    file_count: int
    directory_count: int
    elapsed_seconds: Optional[float] = None


def _elapsed(seconds: float) -> str:
    return f"{seconds:.3f}"


def render_init_report(summary: RunSummary) -> str:
    lines = [
        REPORT_TITLE,
        f"Directory: {summary.directory}",
        f"Verification File: {summary.snapshot_path}",
        f"Number of Parsed Files: {summary.file_count}",
        f"Number of Parsed Directories: {summary.directory_count}",
        f"Hash Function: {summary.algorithm}",
    ]
    if summary.elapsed_seconds is not None:
        lines.append(f"Time of Initialization (in seconds): {_elapsed(summary.elapsed_seconds)}")
    return "\n".join(lines) + "\n"


def warning_lines(report: ChangeReport) -> List[str]:
    lines = [f"{path} is deleted" for path in report.deleted]
    lines.extend(f"{path} is new" for path in report.added)
    for entry in report.modified:
        for change in entry.changes:
            label, verb = FIELD_LABELS.get(change.field, (change.field, "is"))
            lines.append(f"{entry.path} {label} {verb} different: {change.old} {change.new}")
    return lines


def render_report(summary: RunSummary, report: ChangeReport) -> str:
    lines = [
        REPORT_TITLE,
        f"Directory: {summary.directory}",
        f"Verification File: {summary.snapshot_path}",
        f"Hash Function: {summary.algorithm}",
        f"Number of Parsed Files: {summary.file_count}",
        f"Number of Parsed Directories: {summary.directory_count}",
        f"Number of Deleted Files: {len(report.deleted)}",
        f"Number of New Files: {len(report.added)}",
        f"Number of Changed Files: {len(report.modified)}",
    ]
    if summary.elapsed_seconds is not None:
        lines.append(f"Time of Verification (in seconds): {_elapsed(summary.elapsed_seconds)}")
    lines.append("Warnings:")
    lines.extend(warning_lines(report))
    return "\n".join(lines) + "\n"


def write_report(path: Path, text: str) -> None:
    write_text_atomic(Path(path), text)
