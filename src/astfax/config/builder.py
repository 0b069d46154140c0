"""Configuration builder with explicit layering.

This module provides ConfigBuilder for building AstfaxConfig by composing
configuration sources with explicit precedence handling.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from astfax.config.env import EnvReader
from astfax.config.models import (
    DEFAULT_GHOSTSCRIPT_ARGS,
    AstfaxConfig,
    GhostscriptConfig,
    LoggingConfig,
    OwnershipConfig,
    PollConfig,
    SpoolConfig,
)


@dataclass
class ConfigSource:
    """Configuration values from a single source.

    None values indicate "not specified in this source" and will not
    override values from lower-precedence sources.
    """

    # Spool directories
    spool_outgoing_dir: Path | None = None
    spool_fax_in_dir: Path | None = None
    spool_fax_out_dir: Path | None = None

    # Ghostscript
    gs_executable: str | None = None
    gs_args: tuple[str, ...] | None = None
    gs_timeout: float | None = None

    # Ownership
    asterisk_uid: int | None = None
    asterisk_gid: int | None = None

    # Polling
    server_name: str | None = None
    poll_interval: float | None = None
    poll_max_workers: int | None = None
    hostname_filter: str | None = None

    # Database
    database_path: Path | None = None

    # Logging
    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None


class ConfigBuilder:
    """Builds AstfaxConfig by layering ConfigSources with precedence.

    Later sources override earlier ones (for non-None values).

    Example:
        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config))
        builder.apply(source_from_env(reader))
        builder.apply(cli_source)
        config = builder.build()
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}
        self._sources: dict[str, str] = {}

    def apply(self, source: ConfigSource, source_name: str = "unknown") -> None:
        """Apply configuration source, overriding existing values.

        Args:
            source: Configuration source to apply.
            source_name: Label recorded for each value this source sets.
        """
        for field_obj in fields(source):
            value = getattr(source, field_obj.name)
            if value is not None:
                self._values[field_obj.name] = value
                self._sources[field_obj.name] = source_name

    def source_of(self, key: str) -> str:
        """Return which source supplied a value ("default" if none did)."""
        return self._sources.get(key, "default")

    def _get(self, key: str, default: Any) -> Any:
        return self._values.get(key, default)

    def build(self) -> AstfaxConfig:
        """Build the final AstfaxConfig with defaults for unset values.

        Raises:
            ValueError: If a value fails model validation.
        """
        spool_defaults = SpoolConfig()
        spool = SpoolConfig(
            outgoing_dir=self._get("spool_outgoing_dir", spool_defaults.outgoing_dir),
            fax_in_dir=self._get("spool_fax_in_dir", spool_defaults.fax_in_dir),
            fax_out_dir=self._get("spool_fax_out_dir", spool_defaults.fax_out_dir),
        )

        ghostscript = GhostscriptConfig(
            executable=self._get("gs_executable", "gs"),
            args=tuple(self._get("gs_args", DEFAULT_GHOSTSCRIPT_ARGS)),
            timeout=self._get("gs_timeout", None),
        )

        ownership = OwnershipConfig(
            uid=self._get("asterisk_uid", 0),
            gid=self._get("asterisk_gid", 0),
        )

        # Note: 0 workers means "no override", keep sequential processing
        max_workers = self._get("poll_max_workers", 1)
        poll = PollConfig(
            server_name=self._get("server_name", None),
            interval_seconds=self._get("poll_interval", 10.0),
            max_workers=max_workers if max_workers else 1,
            hostname_filter=self._get("hostname_filter", None),
        )

        logging_config = LoggingConfig(
            level=self._get("logging_level", "info"),
            file=self._get("logging_file", None),
            format=self._get("logging_format", "text"),
            include_stderr=self._get("logging_include_stderr", True),
            max_bytes=self._get("logging_max_bytes", 10_485_760),
            backup_count=self._get("logging_backup_count", 5),
        )

        return AstfaxConfig(
            spool=spool,
            ghostscript=ghostscript,
            ownership=ownership,
            poll=poll,
            logging=logging_config,
            database_path=self._get("database_path", None),
        )


def _optional_path(value: Any) -> Path | None:
    return Path(value).expanduser() if value else None


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create ConfigSource from a parsed TOML config file.

    Args:
        file_config: Parsed config dictionary.

    Returns:
        ConfigSource with values from the file.
    """
    spool = file_config.get("spool", {})
    gs = file_config.get("ghostscript", {})
    asterisk = file_config.get("asterisk", {})
    poll = file_config.get("poll", {})
    database = file_config.get("database", {})
    log = file_config.get("logging", {})

    gs_args = gs.get("args")
    if isinstance(gs_args, str):
        gs_args = tuple(gs_args.split())
    elif gs_args is not None:
        gs_args = tuple(str(arg) for arg in gs_args)

    return ConfigSource(
        spool_outgoing_dir=_optional_path(spool.get("outgoing_dir")),
        spool_fax_in_dir=_optional_path(spool.get("fax_in_dir")),
        spool_fax_out_dir=_optional_path(spool.get("fax_out_dir")),
        gs_executable=gs.get("executable"),
        gs_args=gs_args,
        gs_timeout=gs.get("timeout"),
        asterisk_uid=asterisk.get("uid"),
        asterisk_gid=asterisk.get("gid"),
        server_name=poll.get("server_name"),
        poll_interval=poll.get("interval_seconds"),
        poll_max_workers=poll.get("max_workers"),
        hostname_filter=poll.get("hostname_filter"),
        database_path=_optional_path(database.get("path")),
        logging_level=log.get("level"),
        logging_file=_optional_path(log.get("file")),
        logging_format=log.get("format"),
        logging_include_stderr=log.get("include_stderr"),
        logging_max_bytes=log.get("max_bytes"),
        logging_backup_count=log.get("backup_count"),
    )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from environment variables.

    Args:
        reader: EnvReader instance for reading environment variables.
    """
    return ConfigSource(
        spool_outgoing_dir=reader.get_path("ASTFAX_SPOOL_OUT_DIR"),
        spool_fax_in_dir=reader.get_path("ASTFAX_FAX_IN_DIR"),
        spool_fax_out_dir=reader.get_path("ASTFAX_FAX_OUT_DIR"),
        gs_executable=reader.get_str("ASTFAX_GS_PATH"),
        gs_args=reader.get_args("ASTFAX_GS_ARGS"),
        gs_timeout=reader.get_float("ASTFAX_GS_TIMEOUT"),
        asterisk_uid=reader.get_int("ASTFAX_AST_UID"),
        asterisk_gid=reader.get_int("ASTFAX_AST_GID"),
        server_name=reader.get_str("ASTFAX_SERVER_NAME"),
        poll_interval=reader.get_float("ASTFAX_UPDATE_INTERVAL"),
        poll_max_workers=reader.get_int("ASTFAX_MAX_WORKERS"),
        hostname_filter=reader.get_str("ASTFAX_HOSTNAME_FILTER"),
        database_path=reader.get_path("ASTFAX_DATABASE_PATH"),
        logging_level=reader.get_str("ASTFAX_LOG_LEVEL"),
        logging_file=reader.get_path("ASTFAX_LOG_FILE"),
        logging_format=reader.get_str("ASTFAX_LOG_FORMAT"),
    )
