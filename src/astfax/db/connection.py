"""Database connection management for the SQLite job store."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


def ensure_db_directory(db_path: Path) -> None:
    """Ensure the database directory exists, creating it if necessary."""
    db_path.parent.mkdir(parents=True, exist_ok=True)


@contextmanager
def get_connection(
    db_path: Path, timeout: float = 30.0
) -> Iterator[sqlite3.Connection]:
    """Get a database connection with proper settings.

    Args:
        db_path: Path to the database file.
        timeout: How long to wait for locks (seconds). Default 30s.

    Yields:
        An sqlite3 Connection object.

    Raises:
        sqlite3.OperationalError: If database is locked and timeout exceeded.
    """
    ensure_db_directory(db_path)

    conn = sqlite3.connect(str(db_path), timeout=timeout)

    conn.execute("PRAGMA foreign_keys = ON")

    # WAL lets the CLI read while the daemon writes
    conn.execute("PRAGMA journal_mode = WAL")
    conn.execute("PRAGMA synchronous = NORMAL")
    conn.execute("PRAGMA busy_timeout = 10000")

    conn.row_factory = sqlite3.Row

    try:
        yield conn
    finally:
        conn.close()


def check_database_connectivity(db_path: Path) -> bool:
    """Check if the database is accessible.

    Performs a simple SELECT 1 query. Does not create a missing database.

    Returns:
        True if database is accessible and responds to queries, False otherwise.
    """
    if not db_path.exists():
        return False

    try:
        conn = sqlite3.connect(str(db_path), timeout=5.0)
        try:
            conn.execute("SELECT 1")
            return True
        finally:
            conn.close()
    except sqlite3.Error as e:
        logger.debug("Database connectivity check failed for %s: %s", db_path, e)
        return False
