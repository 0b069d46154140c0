"""Logging for the fax spooler.

configure_logging() sets up the "astfax" logger tree: a rotating log file
and/or stderr, as text or JSON, with journald-friendly stderr lines when
running under systemd. job_context() tags every record emitted while a
fax is processed with its job id.
"""

from astfax.logging.config import LOGGER_NAME, configure_logging, stream_is_journal
from astfax.logging.context import (
    JobContextFilter,
    clear_job_context,
    get_job_context,
    job_context,
    set_job_context,
)
from astfax.logging.handlers import JournalFormatter, JSONFormatter

__all__ = [
    "JSONFormatter",
    "JobContextFilter",
    "JournalFormatter",
    "LOGGER_NAME",
    "clear_job_context",
    "configure_logging",
    "get_job_context",
    "job_context",
    "set_job_context",
    "stream_is_journal",
]
