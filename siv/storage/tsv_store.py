"""
Snapshot file format.

A snapshot is a 4-line header followed by one tab-separated line per entry:

    SIV Verification File
    Directory: /monitored/dir
    Hash Function: sha1
    File Name<TAB>File Size<TAB>Owner<TAB>Group<TAB>Access Rights<TAB>Last Modified<TAB>Hash
    /monitored/dir/a.txt<TAB>12<TAB>alice<TAB>staff<TAB>644<TAB>2022-01-08 10:00:00<TAB>3f78...

Header lines 2 and 3 are tagged "Key: value" fields. Field text is written
and read back verbatim.
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import List, Tuple

from ..errors import MalformedSnapshotError, PathNotFoundError, SivError
from ..schema import COLUMNS, SNAPSHOT_TITLE, FileMetadata, Snapshot, is_within

DIRECTORY_TAG = "Directory"
ALGORITHM_TAG = "Hash Function"
HEADER_LINES = 4

# Non-UTF-8 file names survive a save/load cycle byte for byte.
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"

_COLUMN_ROW = "\t".join(COLUMNS)


def _check_field(value: str, what: str) -> str:
    if "\t" in value or "\n" in value or "\r" in value:
        raise MalformedSnapshotError(f"{what} cannot be encoded (contains tab or newline): {value!r}")
    return value


def _entry_line(entry: FileMetadata) -> str:
    fields = [
        entry.path,
        str(entry.size),
        entry.owner,
        entry.group,
        entry.permissions,
        entry.last_modified,
        entry.digest,
    ]
    return "\t".join(_check_field(v, COLUMNS[i]) for i, v in enumerate(fields))


def encode_snapshot(snapshot: Snapshot) -> str:
    lines = [
        SNAPSHOT_TITLE,
        f"{DIRECTORY_TAG}: {_check_field(snapshot.directory, DIRECTORY_TAG)}",
        f"{ALGORITHM_TAG}: {_check_field(snapshot.algorithm, ALGORITHM_TAG)}",
        _COLUMN_ROW,
    ]
    lines.extend(_entry_line(e) for e in snapshot.entries)
    return "\n".join(lines) + "\n"


def _tagged_value(line: str, tag: str, lineno: int) -> str:
    prefix = f"{tag}: "
    if not line.startswith(prefix):
        raise MalformedSnapshotError(f"expected '{tag}:' header", lineno)
    value = line[len(prefix):]
    if not value:
        raise MalformedSnapshotError(f"empty '{tag}' header", lineno)
    return value


def _parse_entry(line: str, lineno: int) -> FileMetadata:
    fields = line.split("\t")
    if len(fields) != len(COLUMNS):
        raise MalformedSnapshotError(
            f"expected {len(COLUMNS)} tab-separated fields, found {len(fields)}", lineno
        )
    path, size, owner, group, permissions, last_modified, digest = fields
    if not (size.isascii() and size.isdigit()):
        raise MalformedSnapshotError(f"invalid file size {size!r}", lineno)
    if not path:
        raise MalformedSnapshotError("empty file name", lineno)
    return FileMetadata(
        path=path,
        size=int(size),
        owner=owner,
        group=group,
        permissions=permissions,
        last_modified=last_modified,
        digest=digest,
    )


def decode_snapshot(text: str) -> Snapshot:
    """
    Parse snapshot text produced by encode_snapshot().

    Raises MalformedSnapshotError on a missing/unrecognised header, a data
    line without exactly 7 fields, a bad size, a duplicate path or a path
    outside the monitored directory.
    """
    lines = text.split("\n")
    if len(lines) < HEADER_LINES:
        raise MalformedSnapshotError(f"snapshot header must have {HEADER_LINES} lines")

    if lines[0].rstrip("\r") != SNAPSHOT_TITLE:
        raise MalformedSnapshotError(f"missing '{SNAPSHOT_TITLE}' title", 1)
    directory = _tagged_value(lines[1].rstrip("\r"), DIRECTORY_TAG, 2)
    algorithm = _tagged_value(lines[2].rstrip("\r"), ALGORITHM_TAG, 3)
    if lines[3].rstrip("\r") != _COLUMN_ROW:
        raise MalformedSnapshotError("unrecognised column header row", 4)

    entries: List[FileMetadata] = []
    seen = set()
    for lineno, line in enumerate(lines[HEADER_LINES:], start=HEADER_LINES + 1):
        line = line.rstrip("\r")
        if not line.strip():
            continue
        entry = _parse_entry(line, lineno)
        if entry.path in seen:
            raise MalformedSnapshotError(f"duplicate entry {entry.path}", lineno)
        if not is_within(entry.path, directory):
            raise MalformedSnapshotError(f"{entry.path} is outside {directory}", lineno)
        seen.add(entry.path)
        entries.append(entry)

    return Snapshot(directory=directory, algorithm=algorithm, entries=tuple(entries))


def write_texts_atomic(outputs: List[Tuple[Path, str]]) -> None:
    """
    Write every (path, text) pair to a temp file beside its target, then
    rename them all into place. Nothing is renamed unless every temp file
    was written.

    Text is encoded with surrogateescape so file names that are not valid
    UTF-8 are written back as their original bytes.
    """
    staged: List[Tuple[str, Path]] = []
    try:
        for path, text in outputs:
            path = Path(path)
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
                staged.append((tmp, path))
                with os.fdopen(fd, "w", encoding=ENCODING, errors=ENCODING_ERRORS, newline="\n") as f:
                    f.write(text)
            except OSError as e:
                raise SivError(f"Cannot write {path}: {e}") from e
        for tmp, path in staged:
            os.replace(tmp, path)
    except BaseException:
        for tmp, _ in staged:
            if os.path.exists(tmp):
                os.unlink(tmp)
        raise


def write_text_atomic(path: Path, text: str) -> None:
    write_texts_atomic([(Path(path), text)])


def save_snapshot(path: Path, snapshot: Snapshot) -> None:
    write_text_atomic(path, encode_snapshot(snapshot))


def load_snapshot(path: Path) -> Snapshot:
    path = Path(path)
    if not path.is_file():
        raise PathNotFoundError(f"Snapshot file does not exist: {path}")

    with path.open("r", encoding=ENCODING, errors=ENCODING_ERRORS, newline="") as f:
        return decode_snapshot(f.read())
