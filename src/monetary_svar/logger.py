"""Shared logger for the monetary policy SVAR pipeline."""

import logging
import sys
from pathlib import Path

LOGGER_NAME = "monetary_svar"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

logger = logging.getLogger(LOGGER_NAME)

if not logger.handlers:
    _console = logging.StreamHandler(sys.stdout)
    _console.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(_console)
    logger.setLevel(logging.INFO)
    logger.propagate = False


def configure_file_logging(path: str | Path, level: int = logging.INFO) -> logging.Handler:
    """
    Mirror log output to a file.

    A file handler from an earlier call is closed and replaced, so repeated
    runs in one process write to a single log.

    Args:
        path: Log file path (parent directories are created)
        level: Minimum level written to the file

    Returns:
        The attached file handler
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    for old in [h for h in logger.handlers if isinstance(h, logging.FileHandler)]:
        logger.removeHandler(old)
        old.close()

    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    logger.addHandler(handler)

    return handler
