"""
OS metadata lookup for a single path.

stat_entry() returns a fresh FileMetadata per call. Directories get the
"directory" digest sentinel and other non-regular entries (FIFOs, sockets,
devices) get "special". For regular files the digest is left empty and
filled in by the scanner after hashing.
"""
from __future__ import annotations

from datetime import datetime, timezone
import grp
import os
import pwd
import stat

from .errors import MetadataAccessError
from .schema import DIRECTORY_SENTINEL, SPECIAL_SENTINEL, TIMESTAMP_FORMAT, FileMetadata


def format_permissions(mode: int) -> str:
    return format(stat.S_IMODE(mode) & 0o777, "o")


def format_mtime(mtime: float) -> str:
    return datetime.fromtimestamp(int(mtime), tz=timezone.utc).strftime(TIMESTAMP_FORMAT)


def _owner_name(uid: int, path: str) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        raise MetadataAccessError(path, f"no user with uid {uid}") from None


def _group_name(gid: int, path: str) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        raise MetadataAccessError(path, f"no group with gid {gid}") from None


def _placeholder_digest(mode: int) -> str:
    if stat.S_ISDIR(mode):
        return DIRECTORY_SENTINEL
    if stat.S_ISREG(mode):
        return ""
    return SPECIAL_SENTINEL


def stat_entry(path: str) -> FileMetadata:
    """
    Stat path (following symlinks) and resolve owner and group names.

    Raises MetadataAccessError when the entry cannot be stat'd (dangling
    symlink, permission denied, vanished) or its owner/group cannot be
    resolved.
    """
    try:
        st = os.stat(path)
    except OSError as e:
        raise MetadataAccessError(path, e.strerror or str(e)) from e

    return FileMetadata(
        path=path,
        size=st.st_size,
        owner=_owner_name(st.st_uid, path),
        group=_group_name(st.st_gid, path),
        permissions=format_permissions(st.st_mode),
        last_modified=format_mtime(st.st_mtime),
        digest=_placeholder_digest(st.st_mode),
    )
