"""Job context for structured logging.

Uses contextvars so every record emitted while a fax job is processed
carries its job id, including records from pipeline worker threads.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_job_filename: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_filename", default=None
)


def set_job_context(job_id: int | str, filename: str | None = None) -> None:
    """Set the current job context."""
    _job_id.set(str(job_id))
    _job_filename.set(filename)


def clear_job_context() -> None:
    """Clear the current job context."""
    _job_id.set(None)
    _job_filename.set(None)


@contextmanager
def job_context(
    job_id: int | str, filename: str | None = None
) -> Generator[None, None, None]:
    """Context manager for per-job logging context.

    Sets the job context on entry and restores the previous one on exit.

    Example:
        with job_context(42, "invoice.pdf"):
            logger.info("Converting")  # record carries job_id=42
    """
    old_job_id = _job_id.get()
    old_filename = _job_filename.get()
    try:
        set_job_context(job_id, filename)
        yield
    finally:
        _job_id.set(old_job_id)
        _job_filename.set(old_filename)


def get_job_context() -> tuple[str | None, str | None]:
    """Return (job_id, filename) for the current context."""
    return _job_id.get(), _job_filename.get()


class JobContextFilter(logging.Filter):
    """Logging filter that injects the job context into log records.

    Adds job_id and job_filename attributes, plus a job_tag such as
    "[job 42] " for the text formatter.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        job_id, filename = get_job_context()

        record.job_id = job_id
        record.job_filename = filename
        record.job_tag = f"[job {job_id}] " if job_id else ""

        return True
