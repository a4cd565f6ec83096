import dataclasses
import logging
import os
from pathlib import Path
from typing import List, Optional
from fnmatch import fnmatch

from .errors import MetadataAccessError, PathNotFoundError
from .fsinfo import stat_entry
from .hasher import get_digest, hash_file
from .schema import FileMetadata, Snapshot
from .utils import normalize_rel_path

logger = logging.getLogger(__name__)


def _matches_exclude_patterns(rel_path: str, patterns: List[str]) -> bool:
    """
    Return True if rel_path should be excluded according to patterns.
    Supports simple glob patterns (fnmatch) and negation with leading '!'.
    Rules:
      - Patterns are checked in order. A matching positive pattern excludes the path.
      - If a later negation pattern ('!pattern') matches, the path is included again.
    This is a simplified gitignore-like behavior.
    """
    if not patterns:
        return False

    excluded = False
    for pat in patterns:
        if pat == "":
            continue
        if pat.startswith("!"):
            if fnmatch(rel_path, pat[1:]):
                excluded = False
        elif fnmatch(rel_path, pat):
            excluded = True
    return excluded


def _raise_walk_error(err: OSError) -> None:
    raise MetadataAccessError(err.filename or "?", err.strerror or str(err)) from err


def _capture(path: str, algorithm: str) -> FileMetadata:
    meta = stat_entry(path)
    if meta.is_directory or meta.is_special:
        return meta
    return dataclasses.replace(meta, digest=hash_file(Path(path), algorithm))


def collect(root: Path, algorithm: str, exclude: Optional[List[str]] = None) -> Snapshot:
    """
    Walk root recursively and capture one FileMetadata per entry below it.

    Directories and special files are recorded but never opened; regular
    files are stat'd and hashed with ``algorithm``. Symlinked directories
    are recorded but not descended into. The result is sorted by path.

    exclude: fnmatch-style patterns matched against the root-relative POSIX
    path; '!pattern' re-includes. Excluded directories are not descended.

    Raises UnsupportedAlgorithmError before touching the filesystem,
    PathNotFoundError if root is not an existing directory, and
    MetadataAccessError for the first entry that cannot be read.
    """
    get_digest(algorithm)
    exclude = exclude or []

    root_str = os.path.abspath(os.fspath(root))
    if not os.path.isdir(root_str):
        raise PathNotFoundError(f"Monitored directory does not exist: {root_str}")

    logger.info("Collecting %s using %s", root_str, algorithm)
    entries: List[FileMetadata] = []

    for dirpath, dirnames, filenames in os.walk(root_str, onerror=_raise_walk_error):
        kept_dirs = []
        for name in sorted(dirnames):
            full = os.path.join(dirpath, name)
            rel = normalize_rel_path(os.path.relpath(full, root_str))
            if _matches_exclude_patterns(rel, exclude):
                logger.debug("Excluded directory %s", rel)
                continue
            entries.append(_capture(full, algorithm))
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for name in sorted(filenames):
            full = os.path.join(dirpath, name)
            rel = normalize_rel_path(os.path.relpath(full, root_str))
            if _matches_exclude_patterns(rel, exclude):
                logger.debug("Excluded file %s", rel)
                continue
            entries.append(_capture(full, algorithm))

    snapshot = Snapshot(directory=root_str, algorithm=algorithm, entries=tuple(entries))
    logger.info(
        "Collected %d files and %d directories",
        snapshot.file_count,
        snapshot.directory_count,
    )
    return snapshot
