"""Shared test fixtures for the Asterisk fax spooler."""

import os
import sqlite3
from pathlib import Path

import pytest

from astfax.config import (
    AstfaxConfig,
    OwnershipConfig,
    PollConfig,
    SpoolConfig,
)
from astfax.db import (
    SQLiteJobStore,
    create_schema,
    get_connection,
    insert_fax_job,
    insert_server,
    insert_trunk_number,
)

SERVER_NAME = "upstream01"
TRUNK_ID = 7
PDF_BYTES = b"%PDF-1.4\n%fake test document\n%%EOF\n"


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Create a job store with the schema, one server and one fax trunk."""
    path = tmp_path / "faxes.db"
    with get_connection(path) as conn:
        create_schema(conn)
        insert_server(conn, SERVER_NAME)
        insert_trunk_number(conn, "5559999999", "trunk1", trunk_id=TRUNK_ID)
    return path


@pytest.fixture
def db_conn(db_path: Path):
    """Open a connection to the seeded job store."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    yield conn
    conn.close()


@pytest.fixture
def store(db_path: Path) -> SQLiteJobStore:
    """Return a SQLiteJobStore over the seeded database."""
    return SQLiteJobStore(db_path)


@pytest.fixture
def server_id(db_conn: sqlite3.Connection) -> int:
    """Return the id of the seeded server."""
    row = db_conn.execute(
        "SELECT id FROM iaxfriends WHERE name = ?", (SERVER_NAME,)
    ).fetchone()
    return row["id"]


@pytest.fixture
def add_job(db_conn: sqlite3.Connection, server_id: int):
    """Factory inserting a fax job for the seeded server."""

    def _add_job(
        filename: str = "invoice.pdf",
        to: str = "5551234567",
        outgoing_number_id: int = TRUNK_ID,
        **kwargs,
    ) -> int:
        return insert_fax_job(
            db_conn,
            server_id,
            filename,
            kwargs.pop("fax_data", PDF_BYTES),
            outgoing_number_id,
            to,
            **kwargs,
        )

    return _add_job


@pytest.fixture
def spool_config(tmp_path: Path) -> SpoolConfig:
    """Spool directories under tmp_path (not created)."""
    return SpoolConfig(
        outgoing_dir=tmp_path / "spool" / "outgoing",
        fax_in_dir=tmp_path / "spool" / "fax" / "incoming",
        fax_out_dir=tmp_path / "spool" / "fax" / "outgoing",
    )


@pytest.fixture
def config(spool_config: SpoolConfig, db_path: Path) -> AstfaxConfig:
    """Configuration that chowns to the current user so tests run unprivileged."""
    return AstfaxConfig(
        spool=spool_config,
        ownership=OwnershipConfig(uid=os.getuid(), gid=os.getgid()),
        poll=PollConfig(server_name=SERVER_NAME, interval_seconds=0.01),
        database_path=db_path,
    )


@pytest.fixture
def spool_dirs(config: AstfaxConfig) -> AstfaxConfig:
    """Create the spool directories of the test configuration."""
    for directory in config.spool.directories():
        directory.mkdir(parents=True, exist_ok=True)
    return config
