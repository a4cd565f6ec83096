from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .schema import FileMetadata
from .store import SnapshotStore

# Fields compared between two captures of the same path, in report order.
COMPARED_FIELDS = ("size", "owner", "group", "permissions", "last_modified", "digest")


@dataclass(frozen=True)
class FieldChange:
    field: str
    old: str
    new: str


@dataclass(frozen=True)
class ModifiedEntry:
    path: str
    changes: Tuple[FieldChange, ...]


@dataclass(frozen=True)
class ChangeReport:
    """
    Result of comparing a baseline store against a current one.

    deleted/added are sorted paths; modified is sorted by path and each
    entry lists its differing fields in COMPARED_FIELDS order.
    """

    deleted: Tuple[str, ...] = field(default_factory=tuple)
    added: Tuple[str, ...] = field(default_factory=tuple)
    modified: Tuple[ModifiedEntry, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return not (self.deleted or self.added or self.modified)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deleted": list(self.deleted),
            "added": list(self.added),
            "modified": [
                {
                    "path": m.path,
                    "changes": [{"field": c.field, "old": c.old, "new": c.new} for c in m.changes],
                }
                for m in self.modified
            ],
        }


def compare_entries(old: FileMetadata, new: FileMetadata) -> Tuple[FieldChange, ...]:
    """
    Field-by-field comparison. A file replaced by a directory (or the other
    way round) shows up as a digest change.
    """
    changes: List[FieldChange] = []
    for name in COMPARED_FIELDS:
        old_value = getattr(old, name)
        new_value = getattr(new, name)
        if old_value != new_value:
            changes.append(FieldChange(name, str(old_value), str(new_value)))
    return tuple(changes)


def compare_baseline(baseline: SnapshotStore, current: SnapshotStore) -> ChangeReport:
    """
    Compares the baseline store with a freshly collected one.
    Returns a ChangeReport with deleted, added and modified paths.
    """
    old_paths = baseline.keys()
    new_paths = current.keys()

    deleted = tuple(sorted(old_paths - new_paths))
    added = tuple(sorted(new_paths - old_paths))

    modified = []
    for path in sorted(old_paths & new_paths):
        changes = compare_entries(baseline.lookup(path), current.lookup(path))
        if changes:
            modified.append(ModifiedEntry(path, changes))

    return ChangeReport(deleted=deleted, added=added, modified=tuple(modified))
