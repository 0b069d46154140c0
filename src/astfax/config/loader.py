"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to get_config)
2. Environment variables (ASTFAX_*)
3. Config file (~/.astfax/config.toml)
4. Default values

Environment variables:
- ASTFAX_CONFIG_PATH: Path to config file (overrides default location)
- ASTFAX_SPOOL_OUT_DIR: Directory Asterisk watches for call files
- ASTFAX_FAX_IN_DIR: Incoming fax directory (created, otherwise unused)
- ASTFAX_FAX_OUT_DIR: Staging directory for PDFs, TIFFs and call files
- ASTFAX_GS_PATH: Ghostscript executable
- ASTFAX_GS_ARGS: Ghostscript arguments (shell quoting)
- ASTFAX_GS_TIMEOUT: Seconds to wait for Ghostscript
- ASTFAX_AST_UID / ASTFAX_AST_GID: Owner of generated call files
- ASTFAX_SERVER_NAME: iaxfriends name whose jobs this instance handles
- ASTFAX_UPDATE_INTERVAL: Seconds between polls
- ASTFAX_MAX_WORKERS: Jobs processed concurrently within a poll
- ASTFAX_HOSTNAME_FILTER: Only poll on hosts whose name contains this
- ASTFAX_DATABASE_PATH: Path to the SQLite job store
- ASTFAX_LOG_LEVEL / ASTFAX_LOG_FILE / ASTFAX_LOG_FORMAT: Logging overrides
"""

from __future__ import annotations

import logging
from pathlib import Path

from astfax.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from astfax.config.env import EnvReader
from astfax.config.models import AstfaxConfig
from astfax.config.toml_parser import load_toml_file

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".astfax"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"
DEFAULT_DB_FILE = DEFAULT_CONFIG_DIR / "faxes.db"


def get_default_config_path(env_reader: EnvReader | None = None) -> Path:
    """Get the config file path, honouring ASTFAX_CONFIG_PATH."""
    reader = env_reader or EnvReader()
    return reader.get_path("ASTFAX_CONFIG_PATH", DEFAULT_CONFIG_FILE)


def get_config(
    config_path: Path | None = None,
    # CLI overrides (highest precedence)
    server_name: str | None = None,
    poll_interval: float | None = None,
    database_path: Path | None = None,
    log_level: str | None = None,
    log_file: Path | None = None,
    log_format: str | None = None,
    # Optional dependency injection for testing
    env_reader: EnvReader | None = None,
    *,
    strict: bool = False,
) -> AstfaxConfig:
    """Build the fax spooler configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides ASTFAX_CONFIG_PATH).
        server_name: CLI override for the server name filter.
        poll_interval: CLI override for seconds between polls.
        database_path: CLI override for the SQLite job store path.
        log_level: CLI override for the log level.
        log_file: CLI override for the log file.
        log_format: CLI override for the log format.
        env_reader: Optional EnvReader for testing (uses os.environ if None).
        strict: If True, raise TomlParseError on config file parse failures.

    Returns:
        AstfaxConfig with merged configuration.

    Raises:
        TomlParseError: When strict=True and the config file cannot be parsed.
        ValueError: When a merged value fails validation.
    """
    reader = env_reader or EnvReader()

    if config_path is None:
        config_path = get_default_config_path(reader)
    file_config = load_toml_file(config_path, strict=strict)

    cli_source = ConfigSource(
        server_name=server_name,
        poll_interval=poll_interval,
        database_path=database_path,
        logging_level=log_level,
        logging_file=log_file,
        logging_format=log_format,
    )

    builder = ConfigBuilder()
    builder.apply(source_from_file(file_config), source_name="file")
    builder.apply(source_from_env(reader), source_name="env")
    builder.apply(cli_source, source_name="cli")

    config = builder.build()
    logger.debug(
        "Configuration loaded: server_name=%s (%s), database=%s (%s)",
        config.poll.server_name,
        builder.source_of("server_name"),
        config.database_path,
        builder.source_of("database_path"),
    )
    return config


def get_database_path(config: AstfaxConfig) -> Path:
    """Return the configured SQLite path, or the default under ~/.astfax."""
    return config.database_path or DEFAULT_DB_FILE


def validate_config(config: AstfaxConfig) -> list[str]:
    """Validate cross-field configuration constraints.

    Args:
        config: The configuration to validate.

    Returns:
        List of error strings. Empty list means configuration is valid.
    """
    errors: list[str] = []

    if not config.poll.server_name:
        errors.append(
            "server_name is not set (use --server-name, ASTFAX_SERVER_NAME "
            "or [poll] server_name)"
        )
    if config.poll.interval_seconds <= 0:
        errors.append(
            f"poll interval must be positive, got {config.poll.interval_seconds}"
        )
    if config.poll.max_workers < 1:
        errors.append(f"max_workers must be at least 1, got {config.poll.max_workers}")

    spool_dirs = config.spool.directories()
    if len(set(spool_dirs)) != len(spool_dirs):
        errors.append("spool directories must be distinct")

    return errors
