"""Exceptions raised by siv.

Every failure that should abort an initialization or verification run is a
``SivError``; the CLI reports these and exits without writing output files.
"""
from __future__ import annotations

from typing import Optional


class SivError(RuntimeError):
    """Base class for all siv errors."""
    pass


class PathNotFoundError(SivError):
    """Monitored directory or snapshot file does not exist."""
    pass


class PathConflictError(SivError):
    """Snapshot/report path overlaps the monitored tree or each other."""
    pass


class UnsupportedAlgorithmError(SivError):
    """Digest name is not in the registry."""

    def __init__(self, name: str, available: Optional[list] = None):
        self.name = name
        msg = f"Unsupported hash function: {name!r}"
        if available:
            msg += f" (available: {', '.join(available)})"
        super().__init__(msg)


class MalformedSnapshotError(SivError):
    """Snapshot text could not be decoded."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class MetadataAccessError(SivError):
    """Stat, owner/group lookup or read failed for one entry."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read metadata for {path}: {reason}")
