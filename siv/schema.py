from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

SNAPSHOT_TITLE = "SIV Verification File"
DIRECTORY_SENTINEL = "directory"
# FIFOs, sockets and device nodes are recorded but never opened.
SPECIAL_SENTINEL = "special"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Column order of a snapshot data line.
COLUMNS = (
    "File Name",
    "File Size",
    "Owner",
    "Group",
    "Access Rights",
    "Last Modified",
    "Hash",
)


@dataclass(frozen=True, slots=True)
class FileMetadata:
    """
    Captured state of one filesystem entry.

    All fields are kept as recorded: permissions are an octal string
    ("644"), last_modified is UTC text in TIMESTAMP_FORMAT, and digest is
    the hex digest, DIRECTORY_SENTINEL or SPECIAL_SENTINEL.
    """

    path: str
    size: int
    owner: str
    group: str
    permissions: str
    last_modified: str
    digest: str

    @property
    def is_directory(self) -> bool:
        return self.digest == DIRECTORY_SENTINEL

    @property
    def is_special(self) -> bool:
        return self.digest == SPECIAL_SENTINEL


def is_within(path: str, directory: str) -> bool:
    """True when path equals directory or is one of its descendants."""
    directory = directory.rstrip("/") or "/"
    if path == directory:
        return True
    prefix = directory if directory.endswith("/") else directory + "/"
    return path.startswith(prefix)


@dataclass(frozen=True)
class Snapshot:
    """
    Point-in-time view of a monitored directory.

    entries are sorted by path and every path lies within directory.
    """

    directory: str
    algorithm: str
    entries: Tuple[FileMetadata, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.entries, key=lambda e: e.path))
        object.__setattr__(self, "entries", ordered)

        seen = set()
        for entry in ordered:
            if entry.path in seen:
                raise ValueError(f"duplicate path in snapshot: {entry.path}")
            if not is_within(entry.path, self.directory):
                raise ValueError(f"{entry.path} is outside {self.directory}")
            seen.add(entry.path)

    @property
    def file_count(self) -> int:
        return sum(1 for e in self.entries if not e.is_directory)

    @property
    def directory_count(self) -> int:
        return sum(1 for e in self.entries if e.is_directory)
