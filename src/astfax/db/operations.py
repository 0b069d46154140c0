"""Provisioning helpers for the SQLite job store.

Fax submission and trunk management belong to other systems; these helpers
exist so a local store can be seeded for testing and demos.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

from astfax.db.models import FaxState


def insert_server(conn: sqlite3.Connection, name: str) -> int:
    """Insert an iaxfriends row and return its id."""
    cursor = conn.execute("INSERT INTO iaxfriends (name) VALUES (?)", (name,))
    conn.commit()
    return cursor.lastrowid


def insert_trunk_number(
    conn: sqlite3.Connection,
    full_number: str,
    ps_endpoints_id: str,
    *,
    header_ppid: str | None = None,
    is_fax: bool = True,
    trunk_id: int | None = None,
) -> int:
    """Insert a trunk_numbers row and return its id."""
    cursor = conn.execute(
        """
        INSERT INTO trunk_numbers (id, full_number, header_ppid, is_fax,
                                   ps_endpoints_id)
        VALUES (?, ?, ?, ?, ?)
        """,
        (trunk_id, full_number, header_ppid, "yes" if is_fax else "no", ps_endpoints_id),
    )
    conn.commit()
    return cursor.lastrowid


def insert_fax_job(
    conn: sqlite3.Connection,
    server_id: int,
    filename: str,
    fax_data: bytes,
    outgoing_number_id: int,
    to: str,
    *,
    state: FaxState = FaxState.CREATED,
    job_id: int | None = None,
) -> int:
    """Insert a faxes_outgoing row and return its id."""
    now = datetime.now(timezone.utc).isoformat()
    cursor = conn.execute(
        """
        INSERT INTO faxes_outgoing (id, iaxfriends_id, fax_data, filename,
                                    outgoing_number_id, "to", state,
                                    created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            job_id,
            server_id,
            sqlite3.Binary(fax_data),
            filename,
            outgoing_number_id,
            to,
            state.value,
            now,
            now,
        ),
    )
    conn.commit()
    return cursor.lastrowid
