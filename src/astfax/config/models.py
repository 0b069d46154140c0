"""Configuration data models.

All configuration objects are frozen: the daemon builds one AstfaxConfig at
start-up and hands it to every component constructor.
"""

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_GHOSTSCRIPT_ARGS: tuple[str, ...] = (
    "-q",
    "-dNOPAUSE",
    "-dBATCH",
    "-sDEVICE=tiffg4",
    "-sPAPERSIZE=letter",
)


@dataclass(frozen=True)
class SpoolConfig:
    """Asterisk spool directories.

    outgoing_dir is watched by Asterisk; fax_out_dir is the staging area for
    PDFs, TIFFs and call files; fax_in_dir is reserved for inbound faxes.
    """

    outgoing_dir: Path = Path("/var/spool/asterisk/outgoing")
    fax_in_dir: Path = Path("/var/spool/asterisk/fax/incoming")
    fax_out_dir: Path = Path("/var/spool/asterisk/fax/outgoing")

    def directories(self) -> tuple[Path, ...]:
        """Return every directory the daemon must create on start-up."""
        return (self.fax_in_dir, self.fax_out_dir, self.outgoing_dir)


@dataclass(frozen=True)
class GhostscriptConfig:
    """Configuration for the PDF to TIFF conversion."""

    executable: str = "gs"
    args: tuple[str, ...] = DEFAULT_GHOSTSCRIPT_ARGS

    timeout: float | None = None
    """Seconds to wait for Ghostscript. None waits for the process to exit."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.executable:
            raise ValueError("Ghostscript executable must not be empty")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")


@dataclass(frozen=True)
class OwnershipConfig:
    """User and group Asterisk runs as; call files are chowned to these."""

    uid: int = 0
    gid: int = 0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.uid < 0 or self.gid < 0:
            raise ValueError("uid and gid must be non-negative")


@dataclass(frozen=True)
class PollConfig:
    """Configuration for the polling loop."""

    # Name of the iaxfriends row whose jobs this instance handles
    server_name: str | None = None

    interval_seconds: float = 10.0

    # Jobs of one batch processed concurrently (1 = sequential)
    max_workers: int = 1

    # Only poll when the hostname contains this substring
    hostname_filter: str | None = None


@dataclass(frozen=True)
class LoggingConfig:
    """Configuration for logging."""

    level: str = "info"
    file: Path | None = None
    format: str = "text"
    include_stderr: bool = True
    max_bytes: int = 10_485_760
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.casefold() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        if self.format.casefold() not in {"text", "json"}:
            raise ValueError(f"format must be 'text' or 'json', got {self.format}")
        if self.max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        if self.backup_count < 0:
            raise ValueError("backup_count must be non-negative")


@dataclass(frozen=True)
class AstfaxConfig:
    """Main configuration for the fax spooler."""

    spool: SpoolConfig = field(default_factory=SpoolConfig)
    ghostscript: GhostscriptConfig = field(default_factory=GhostscriptConfig)
    ownership: OwnershipConfig = field(default_factory=OwnershipConfig)
    poll: PollConfig = field(default_factory=PollConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # SQLite job store; None means ~/.astfax/faxes.db
    database_path: Path | None = None
