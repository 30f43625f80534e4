"""Logging for ko.

Records go to one rotating ko.log under ~/.ko/logs (or $KO_LOG_DIR), never to
the terminal. The detached cleanup process writes to the same file, so every
line carries its pid.
"""

from __future__ import annotations

import logging
import os
import sys
import tempfile
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ko.models.config import Settings

LOG_FORMAT = "%(asctime)s %(process)d %(levelname)-7s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "ko.log"
MAX_LOG_BYTES = 2 * 1024 * 1024
LOG_BACKUPS = 3

# Lines of a command's output kept in the log
MAX_OUTPUT_LINES = 50

# Where the detached cleanup process reports failures; it has no terminal.
FALLBACK_ERROR_LOG = Path(tempfile.gettempdir()) / "ko-cleanup-error.log"

_log_dir: Path | None = None


def get_log_dir() -> Path:
    global _log_dir  # noqa: PLW0603
    if _log_dir is None:
        override = os.environ.get("KO_LOG_DIR")
        _log_dir = Path(override) if override else Path.home() / ".ko" / "logs"
    _log_dir.mkdir(parents=True, exist_ok=True)
    return _log_dir


def setup_logging(settings: Settings | None = None) -> None:
    """Attach the ko.log handler once per process.

    Args:
        settings: When settings.verbose is set, DEBUG records are kept too
    """
    ko_logger = logging.getLogger("ko")
    if ko_logger.handlers:
        return

    handler = RotatingFileHandler(
        get_log_dir() / LOG_FILE_NAME,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    ko_logger.addHandler(handler)
    ko_logger.setLevel(logging.DEBUG if settings and settings.verbose else logging.INFO)

    ko_logger.info(f"--- {' '.join(sys.argv)} (cwd {Path.cwd()})")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_subprocess_result(
    logger: logging.Logger,
    args: list[str],
    returncode: int,
    output: str,
    success: bool = True,
) -> None:
    """Log a finished command and the head of its output.

    Successful commands log at DEBUG, failures at WARNING.
    """
    level = logging.DEBUG if success else logging.WARNING
    logger.log(level, f"{' '.join(args)} exited {returncode}")

    lines = output.strip().splitlines()
    for line in lines[:MAX_OUTPUT_LINES]:
        logger.log(level, f"  | {line}")
    if len(lines) > MAX_OUTPUT_LINES:
        logger.log(level, f"  | ({len(lines) - MAX_OUTPUT_LINES} more lines)")


def write_fallback_error(message: str, log_file: Path = FALLBACK_ERROR_LOG) -> None:
    """Append a timestamped line to the detached cleanup's fallback log."""
    timestamp = datetime.now(tz=UTC).strftime(LOG_DATE_FORMAT)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    with log_file.open("a", encoding="utf-8") as f:
        f.write(f"{timestamp} | {message}\n")
