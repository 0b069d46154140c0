"""Formatters for spooler log output.

JournalFormatter is used when stderr is connected to the systemd journal,
JSONFormatter when structured output is configured.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries, plus the ones formatting and
# JobContextFilter add; anything else arrived through extra=
_RECORD_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "job_id", "job_filename", "job_tag"}

# sd-daemon(3) priority prefixes
_JOURNAL_PRIORITY: dict[int, int] = {
    logging.CRITICAL: 2,
    logging.ERROR: 3,
    logging.WARNING: 4,
    logging.INFO: 6,
    logging.DEBUG: 7,
}

TEXT_FORMAT = (
    "%(asctime)s %(levelname)s [%(threadName)s] %(job_tag)s%(name)s: %(message)s"
)
JOURNAL_FORMAT = "%(job_tag)s%(name)s: %(message)s"


def journal_priority(levelno: int) -> int:
    """Return the syslog priority for a logging level."""
    for threshold in sorted(_JOURNAL_PRIORITY, reverse=True):
        if levelno >= threshold:
            return _JOURNAL_PRIORITY[threshold]
    return _JOURNAL_PRIORITY[logging.DEBUG]


class JournalFormatter(logging.Formatter):
    """Text formatter for stderr captured by journald.

    The journal timestamps and tags each line itself, so only the priority
    prefix, the job tag and the logger name are written. Tracebacks are
    folded onto the same entry.
    """

    def __init__(self) -> None:
        super().__init__(JOURNAL_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record).replace("\n", "\n    ")
        return f"<{journal_priority(record.levelno)}>{text}"


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Keys: timestamp, level, logger, message, then job_id and job_filename
    while a fax is being processed, worker for records from pipeline
    threads, context for extra= fields and exception for tracebacks.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        job_id = getattr(record, "job_id", None)
        if job_id:
            entry["job_id"] = job_id
            filename = getattr(record, "job_filename", None)
            if filename:
                entry["job_filename"] = filename

        if record.threadName and record.threadName != "MainThread":
            entry["worker"] = record.threadName

        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
