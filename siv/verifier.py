"""
Initialization, verification and baseline update runs.

Each run validates its paths first, collects the full tree, and only then
writes output files, so a failed run leaves no partial snapshot or report.
"""
from __future__ import annotations

import logging
import shutil
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .comparator import ChangeReport, compare_baseline
from .errors import PathConflictError, SivError
from .report import RunSummary, render_init_report, render_report, write_report
from .scanner import collect
from .schema import Snapshot, is_within
from .storage.tsv_store import encode_snapshot, load_snapshot, save_snapshot, write_texts_atomic
from .store import SnapshotStore
from .utils import resolve_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InitResult:
    snapshot: Snapshot
    summary: RunSummary


@dataclass(frozen=True)
class VerifyResult:
    baseline: Snapshot
    current: Snapshot
    report: ChangeReport
    summary: RunSummary


@dataclass(frozen=True)
class UpdatePlan:
    snapshot_path: Path
    baseline: Snapshot
    current: Snapshot
    report: ChangeReport


def _canonical(path) -> str:
    return str(resolve_path(str(path)))


def check_paths(directory, snapshot_path, report_path=None) -> None:
    """
    Raise PathConflictError if the snapshot or report file would live inside
    the monitored directory, or if both point at the same file.
    """
    root = _canonical(directory)
    snapshot = _canonical(snapshot_path)
    if is_within(snapshot, root):
        raise PathConflictError(f"Verification file {snapshot} is inside the monitored directory {root}")
    if report_path is None:
        return
    report = _canonical(report_path)
    if is_within(report, root):
        raise PathConflictError(f"Report file {report} is inside the monitored directory {root}")
    if report == snapshot:
        raise PathConflictError(f"Verification file and report file are the same: {report}")


def _summary(snapshot: Snapshot, snapshot_path: Path, elapsed: float) -> RunSummary:
    return RunSummary(
        directory=snapshot.directory,
        snapshot_path=str(snapshot_path),
        algorithm=snapshot.algorithm,
        file_count=snapshot.file_count,
        directory_count=snapshot.directory_count,
        elapsed_seconds=elapsed,
    )


def initialize(
    directory: Path,
    snapshot_path: Path,
    report_path: Path,
    algorithm: str,
    exclude: Optional[List[str]] = None,
) -> InitResult:
    """Snapshot directory into snapshot_path and write a summary report."""
    start = time.monotonic()
    check_paths(directory, snapshot_path, report_path)

    snapshot = collect(Path(directory), algorithm, exclude=exclude)
    summary = _summary(snapshot, snapshot_path, time.monotonic() - start)

    # Both files land together or not at all.
    write_texts_atomic([
        (Path(snapshot_path), encode_snapshot(snapshot)),
        (Path(report_path), render_init_report(summary)),
    ])
    logger.info("Snapshot saved to %s", snapshot_path)
    return InitResult(snapshot=snapshot, summary=summary)


def verify(
    snapshot_path: Path,
    report_path: Path,
    exclude: Optional[List[str]] = None,
) -> VerifyResult:
    """
    Compare the monitored directory recorded in snapshot_path against its
    current state and write the change report.
    """
    start = time.monotonic()
    baseline = load_snapshot(Path(snapshot_path))
    check_paths(baseline.directory, snapshot_path, report_path)

    current = collect(Path(baseline.directory), baseline.algorithm, exclude=exclude)
    report = compare_baseline(
        SnapshotStore.from_snapshot(baseline), SnapshotStore.from_snapshot(current)
    )
    logger.info(
        "Verification of %s: %d deleted, %d new, %d changed",
        baseline.directory,
        len(report.deleted),
        len(report.added),
        len(report.modified),
    )

    summary = _summary(current, snapshot_path, time.monotonic() - start)
    write_report(Path(report_path), render_report(summary, report))
    return VerifyResult(baseline=baseline, current=current, report=report, summary=summary)


def plan_update(snapshot_path: Path, exclude: Optional[List[str]] = None) -> UpdatePlan:
    """Collect the current state without writing anything."""
    snapshot_path = Path(snapshot_path)
    baseline = load_snapshot(snapshot_path)
    check_paths(baseline.directory, snapshot_path)

    current = collect(Path(baseline.directory), baseline.algorithm, exclude=exclude)
    report = compare_baseline(
        SnapshotStore.from_snapshot(baseline), SnapshotStore.from_snapshot(current)
    )
    return UpdatePlan(snapshot_path=snapshot_path, baseline=baseline, current=current, report=report)


def apply_update(plan: UpdatePlan, backup: bool = True) -> Optional[Path]:
    """
    Replace the stored snapshot with plan.current. When backup is set the
    old file is first copied to <name>.bak.<UTC timestamp>; that path is
    returned.
    """
    backup_path = None
    if backup:
        ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        backup_path = plan.snapshot_path.with_name(f"{plan.snapshot_path.name}.bak.{ts}")
        try:
            shutil.copy2(plan.snapshot_path, backup_path)
        except OSError as e:
            raise SivError(f"Could not back up {plan.snapshot_path}: {e}") from e
        logger.info("Backup created: %s", backup_path)

    save_snapshot(plan.snapshot_path, plan.current)
    logger.info("Snapshot updated: %s", plan.snapshot_path)
    return backup_path


def update(
    snapshot_path: Path,
    exclude: Optional[List[str]] = None,
    backup: bool = True,
) -> Optional[Path]:
    """
    Accept the current state of the monitored directory without review.
    Returns the backup path, or None when nothing changed or backup is off.
    """
    plan = plan_update(snapshot_path, exclude=exclude)
    if plan.report.is_clean:
        logger.info("Snapshot %s is up-to-date", plan.snapshot_path)
        return None
    return apply_update(plan, backup=backup)
