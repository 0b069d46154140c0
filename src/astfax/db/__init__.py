"""Job store access for the fax spooler."""

from astfax.db.connection import (
    check_database_connectivity,
    ensure_db_directory,
    get_connection,
)
from astfax.db.models import FaxJob, FaxState, TrunkNumber
from astfax.db.operations import insert_fax_job, insert_server, insert_trunk_number
from astfax.db.schema import create_schema, get_schema_version
from astfax.db.store import JobStore, SQLiteJobStore

__all__ = [
    # Models
    "FaxJob",
    "FaxState",
    "TrunkNumber",
    # Store
    "JobStore",
    "SQLiteJobStore",
    # Connection and schema
    "check_database_connectivity",
    "create_schema",
    "ensure_db_directory",
    "get_connection",
    "get_schema_version",
    # Provisioning
    "insert_fax_job",
    "insert_server",
    "insert_trunk_number",
]
