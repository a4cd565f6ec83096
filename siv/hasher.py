from pathlib import Path
import hashlib
from typing import Callable, Dict, List
import logging

from .errors import MetadataAccessError, UnsupportedAlgorithmError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192

# name -> zero-argument hashlib constructor
_DIGESTS: Dict[str, Callable[[], "hashlib._Hash"]] = {
    "md5": hashlib.md5,
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
}


def register_digest(name: str, factory: Callable[[], "hashlib._Hash"]) -> None:
    """
    Add or replace a digest under ``name``. The factory must return an object
    with the hashlib ``update``/``digest``/``hexdigest`` interface.
    """
    _DIGESTS[name.lower()] = factory


def available_digests() -> List[str]:
    return sorted(_DIGESTS)


def get_digest(name: str) -> Callable[[], "hashlib._Hash"]:
    """Return the factory registered for name, or raise UnsupportedAlgorithmError."""
    try:
        return _DIGESTS[name.lower()]
    except (KeyError, AttributeError):
        raise UnsupportedAlgorithmError(str(name), available_digests()) from None


def digest_bytes(name: str, data: bytes) -> bytes:
    h = get_digest(name)()
    h.update(data)
    return h.digest()


def hash_file(path: Path, algorithm: str) -> str:
    """
    Compute the hex digest of a file, reading it in chunks from a single
    open handle. Raises MetadataAccessError if the file cannot be read.
    """
    hasher = get_digest(algorithm)()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                hasher.update(chunk)
    except OSError as e:
        logger.warning("Failed to hash %s: %s", path, e)
        raise MetadataAccessError(str(path), e.strerror or str(e)) from e
    return hasher.hexdigest()
