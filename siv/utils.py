import os
from pathlib import Path


def resolve_path(path_str: str) -> Path:
    return Path(path_str).expanduser().resolve()


def normalize_rel_path(rel_path) -> str:
    """Relative path with forward slashes, used for exclude matching."""
    return str(rel_path).replace(os.sep, "/")
