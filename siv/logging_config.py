from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
import os
from typing import Optional


_DEFAULT_MAX_BYTES = 5 * 1024 * 1024
_DEFAULT_BACKUP_COUNT = 5
_ENV_LOG_PATH = "SIV_LOG_FILE"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(
    verbose: bool = False,
    log_path: Optional[str] = None,
    max_bytes: int = _DEFAULT_MAX_BYTES,
    backup_count: int = _DEFAULT_BACKUP_COUNT,
) -> logging.Logger:
    """
    Configure the "siv" logger: console output at WARNING (DEBUG with
    verbose) and, when log_path or $SIV_LOG_FILE is set, a rotating file
    at INFO or lower.
    """
    logger = logging.getLogger("siv")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    if not any(getattr(h, "_siv_console", False) for h in logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(_FORMAT))
        console._siv_console = True
        logger.addHandler(console)
    for handler in logger.handlers:
        if getattr(handler, "_siv_console", False):
            handler.setLevel(logging.DEBUG if verbose else logging.WARNING)

    resolved_path = log_path or os.environ.get(_ENV_LOG_PATH)
    if not resolved_path:
        return logger
    resolved_path = os.path.abspath(resolved_path)

    for handler in logger.handlers:
        if isinstance(handler, RotatingFileHandler) and os.path.normcase(
            getattr(handler, "baseFilename", "")
        ) == os.path.normcase(resolved_path):
            return logger

    handler = RotatingFileHandler(
        resolved_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    formatter = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger
