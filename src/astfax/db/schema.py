"""Database schema management for the SQLite job store.

Table and column names follow the Asterisk realtime database the spooler
is deployed against (faxes_outgoing, trunk_numbers, iaxfriends).
"""

import sqlite3

SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS _meta (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

-- Asterisk peers; name scopes which jobs an instance handles
CREATE TABLE IF NOT EXISTS iaxfriends (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL
);

-- Outbound lines
CREATE TABLE IF NOT EXISTS trunk_numbers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    full_number TEXT NOT NULL,
    header_ppid TEXT,
    is_fax TEXT NOT NULL DEFAULT 'no' CHECK (is_fax IN ('yes', 'no')),
    ps_endpoints_id TEXT NOT NULL
);

-- Outgoing fax queue; rows are never deleted by the spooler
CREATE TABLE IF NOT EXISTS faxes_outgoing (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    iaxfriends_id INTEGER NOT NULL,
    fax_data BLOB NOT NULL,
    filename TEXT NOT NULL,
    outgoing_number_id INTEGER NOT NULL,
    "to" TEXT NOT NULL,
    state TEXT NOT NULL DEFAULT 'created'
        CHECK (state IN ('created', 'processing', 'processed')),
    created_at TEXT NOT NULL,  -- ISO 8601 UTC timestamp
    updated_at TEXT NOT NULL,  -- ISO 8601 UTC timestamp
    FOREIGN KEY (iaxfriends_id) REFERENCES iaxfriends(id)
);

CREATE INDEX IF NOT EXISTS idx_faxes_outgoing_state
    ON faxes_outgoing(state, iaxfriends_id);
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """Create all tables and record the schema version. Idempotent."""
    conn.executescript(SCHEMA_SQL)
    conn.execute(
        "INSERT OR REPLACE INTO _meta (key, value) VALUES ('schema_version', ?)",
        (str(SCHEMA_VERSION),),
    )
    conn.commit()


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """Return the stored schema version, or None for an uninitialized db."""
    try:
        row = conn.execute(
            "SELECT value FROM _meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        return None
    return int(row[0]) if row else None
