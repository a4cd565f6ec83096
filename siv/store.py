from __future__ import annotations

from typing import Dict, Iterator, Optional, Set

from .schema import FileMetadata, Snapshot


class SnapshotStore:
    """Read-only path -> FileMetadata index over one Snapshot."""

    def __init__(self, directory: str, algorithm: str, entries: Dict[str, FileMetadata]) -> None:
        self.directory = directory
        self.algorithm = algorithm
        self._entries = entries

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "SnapshotStore":
        return cls(
            snapshot.directory,
            snapshot.algorithm,
            {entry.path: entry for entry in snapshot.entries},
        )

    def lookup(self, path: str) -> Optional[FileMetadata]:
        return self._entries.get(path)

    def keys(self) -> Set[str]:
        return set(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[FileMetadata]:
        for path in sorted(self._entries):
            yield self._entries[path]
