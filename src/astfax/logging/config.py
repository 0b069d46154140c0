"""Logging setup for the spooler.

configure_logging() owns the "astfax" logger tree only. Its records stop
there instead of reaching the root logger, so libraries and the host
application keep their own logging setup.

The daemon usually runs under systemd with stderr captured by journald.
When that is detected, stderr lines carry a syslog priority prefix and no
timestamp; otherwise they use the same text layout as the log file.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from astfax.logging.context import JobContextFilter
from astfax.logging.handlers import TEXT_FORMAT, JournalFormatter, JSONFormatter

if TYPE_CHECKING:
    from astfax.config.models import LoggingConfig

LOGGER_NAME = "astfax"

_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def stream_is_journal(stream: TextIO) -> bool:
    """Return True if stream is the journald socket systemd connected.

    systemd exports JOURNAL_STREAM as "<device>:<inode>" of that socket.
    """
    journal_stream = os.environ.get("JOURNAL_STREAM")
    if not journal_stream:
        return False
    try:
        st = os.fstat(stream.fileno())
    except (OSError, ValueError):
        return False
    return journal_stream == f"{st.st_dev}:{st.st_ino}"


def _make_formatter(config: LoggingConfig, journal: bool) -> logging.Formatter:
    if config.format.casefold() == "json":
        return JSONFormatter()
    if journal:
        return JournalFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=_DATE_FORMAT)


def _open_log_file(config: LoggingConfig) -> logging.Handler | None:
    if config.file is None:
        return None
    path = Path(config.file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"astfax: cannot open log file {path}: {e}\n")
        return None


def configure_logging(config: LoggingConfig) -> logging.Logger:
    """Install handlers on the "astfax" logger.

    Calling it again replaces the handlers from the previous call. stderr
    is always used when the log file cannot be opened.

    Args:
        config: Logging configuration.

    Returns:
        The configured "astfax" logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(config.level.upper())
    logger.propagate = False

    context_filter = JobContextFilter()

    file_handler = _open_log_file(config)
    if file_handler is not None:
        file_handler.setFormatter(_make_formatter(config, journal=False))
        file_handler.addFilter(context_filter)
        logger.addHandler(file_handler)

    if config.include_stderr or file_handler is None:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(
            _make_formatter(config, journal=stream_is_journal(sys.stderr))
        )
        stderr_handler.addFilter(context_filter)
        logger.addHandler(stderr_handler)

    return logger
