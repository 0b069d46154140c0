"""Job store interface and its SQLite implementation.

The spooler only needs four things from the store: list the jobs it should
pick up, move a job forward atomically, look up fax-capable trunks, and
answer a heartbeat. JobStore names that contract; SQLiteJobStore implements
it over the schema in astfax.db.schema.

Correctness when several spooler instances share one store rests entirely
on update_job_state: it only applies the single forward step from the
expected prior state, inside a write transaction.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from astfax.db.connection import get_connection
from astfax.db.models import FaxJob, FaxState, TrunkNumber
from astfax.exceptions import StateUpdateError, StoreConnectivityError

logger = logging.getLogger(__name__)


class JobStore(Protocol):
    """Operations the fax pipeline requires from the job store."""

    def list_eligible_jobs(self, server_name: str) -> list[FaxJob]:
        """Return fully populated 'created' jobs belonging to server_name.

        Raises:
            StoreConnectivityError: If the store cannot be queried.
        """
        ...

    def update_job_state(self, job_id: int, new_state: FaxState) -> None:
        """Atomically move a job one step forward to new_state.

        Raises:
            StateUpdateError: If the job does not exist, is not in the
                expected prior state, or the write fails.
        """
        ...

    def lookup_fax_trunks(self, trunk_id: int) -> list[TrunkNumber]:
        """Return every fax-capable trunk number with this id."""
        ...

    def ping(self) -> None:
        """Check the store is reachable.

        Raises:
            StoreConnectivityError: If it is not.
        """
        ...


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_job(row: sqlite3.Row) -> FaxJob:
    keys = row.keys()
    return FaxJob(
        id=row["id"],
        filename=row["filename"],
        outgoing_number_id=row["outgoing_number_id"],
        to=row["to"],
        state=FaxState(row["state"]),
        fax_data=bytes(row["fax_data"]) if "fax_data" in keys else b"",
        created_at=row["created_at"] if "created_at" in keys else None,
        updated_at=row["updated_at"] if "updated_at" in keys else None,
    )


def _row_to_trunk(row: sqlite3.Row) -> TrunkNumber:
    return TrunkNumber(
        id=row["id"],
        full_number=row["full_number"],
        ps_endpoints_id=row["ps_endpoints_id"],
        header_ppid=row["header_ppid"],
    )


class SQLiteJobStore:
    """JobStore backed by a SQLite database file.

    Each operation opens its own connection, so one store instance can be
    shared by the pipeline's worker threads.
    """

    def __init__(self, db_path: Path, timeout: float = 30.0) -> None:
        """Initialize the store.

        Args:
            db_path: Path to the SQLite database file.
            timeout: Seconds to wait for a database lock.
        """
        self.db_path = db_path
        self.timeout = timeout

    def list_eligible_jobs(self, server_name: str) -> list[FaxJob]:
        try:
            with get_connection(self.db_path, self.timeout) as conn:
                rows = conn.execute(
                    """
                    SELECT f.id, f.fax_data, f.filename, f.outgoing_number_id,
                           f."to", f.state, f.created_at, f.updated_at
                    FROM faxes_outgoing f
                    INNER JOIN iaxfriends i ON i.id = f.iaxfriends_id
                    WHERE i.name = ? AND f.state = ?
                    ORDER BY f.id
                    """,
                    (server_name, FaxState.CREATED.value),
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreConnectivityError(
                f"Could not query pending faxes from {self.db_path}: {e}"
            ) from e

        return [_row_to_job(row) for row in rows]

    def update_job_state(self, job_id: int, new_state: FaxState) -> None:
        expected = new_state.previous
        if expected is None:
            raise StateUpdateError(
                job_id, new_state.value, "not reachable by a forward transition"
            )

        try:
            with get_connection(self.db_path, self.timeout) as conn:
                # BEGIN IMMEDIATE takes the write lock before reading, so no
                # other instance can move the row between check and update
                conn.execute("BEGIN IMMEDIATE")
                try:
                    cursor = conn.execute(
                        """
                        UPDATE faxes_outgoing
                        SET state = ?, updated_at = ?
                        WHERE id = ? AND state = ?
                        """,
                        (new_state.value, _utc_now(), job_id, expected.value),
                    )
                    if cursor.rowcount == 1:
                        conn.execute("COMMIT")
                        logger.debug("Fax %s state -> %s", job_id, new_state.value)
                        return

                    row = conn.execute(
                        "SELECT state FROM faxes_outgoing WHERE id = ?", (job_id,)
                    ).fetchone()
                    conn.execute("ROLLBACK")
                except sqlite3.Error:
                    conn.execute("ROLLBACK")
                    raise
        except sqlite3.Error as e:
            raise StateUpdateError(job_id, new_state.value, str(e)) from e

        if row is None:
            reason = "job not found"
        else:
            reason = f"job is {row['state']!r}, expected {expected.value!r}"
        raise StateUpdateError(job_id, new_state.value, reason)

    def lookup_fax_trunks(self, trunk_id: int) -> list[TrunkNumber]:
        try:
            with get_connection(self.db_path, self.timeout) as conn:
                rows = conn.execute(
                    """
                    SELECT id, full_number, header_ppid, ps_endpoints_id
                    FROM trunk_numbers
                    WHERE id = ? AND is_fax = 'yes'
                    """,
                    (trunk_id,),
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreConnectivityError(
                f"Could not query trunk numbers from {self.db_path}: {e}"
            ) from e

        return [_row_to_trunk(row) for row in rows]

    def ping(self) -> None:
        if not self.db_path.exists():
            raise StoreConnectivityError(f"Job store not found: {self.db_path}")
        try:
            with get_connection(self.db_path, self.timeout) as conn:
                conn.execute("SELECT 1 = 1").fetchone()
        except sqlite3.Error as e:
            raise StoreConnectivityError(
                f"Job store heartbeat failed for {self.db_path}: {e}"
            ) from e

    def list_jobs(
        self, state: FaxState | None = None, limit: int = 50
    ) -> list[FaxJob]:
        """List jobs of every server for operator inspection, newest first.

        The PDF payload is not loaded.
        """
        query = """
            SELECT id, filename, outgoing_number_id, "to", state,
                   created_at, updated_at
            FROM faxes_outgoing
        """
        params: list[object] = []
        if state is not None:
            query += " WHERE state = ?"
            params.append(state.value)
        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)

        try:
            with get_connection(self.db_path, self.timeout) as conn:
                rows = conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise StoreConnectivityError(
                f"Could not list faxes from {self.db_path}: {e}"
            ) from e

        return [_row_to_job(row) for row in rows]

    def get_job_state(self, job_id: int) -> FaxState | None:
        """Return the stored state of a job, or None if it does not exist.

        Raises:
            StoreConnectivityError: If the store cannot be queried.
        """
        try:
            with get_connection(self.db_path, self.timeout) as conn:
                row = conn.execute(
                    "SELECT state FROM faxes_outgoing WHERE id = ?", (job_id,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreConnectivityError(
                f"Could not read fax {job_id} from {self.db_path}: {e}"
            ) from e
        return FaxState(row["state"]) if row else None
