"""Configuration management for the fax spooler.

Configuration is loaded once at start-up with precedence handling:
1. CLI flags (highest priority)
2. Environment variables (ASTFAX_*)
3. Config file (~/.astfax/config.toml)
4. Default values (lowest priority)
"""

from astfax.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from astfax.config.env import EnvReader
from astfax.config.loader import (
    get_config,
    get_database_path,
    get_default_config_path,
    validate_config,
)
from astfax.config.models import (
    AstfaxConfig,
    GhostscriptConfig,
    LoggingConfig,
    OwnershipConfig,
    PollConfig,
    SpoolConfig,
)
from astfax.config.toml_parser import TomlParseError, load_toml_file

__all__ = [
    # Models
    "AstfaxConfig",
    "GhostscriptConfig",
    "LoggingConfig",
    "OwnershipConfig",
    "PollConfig",
    "SpoolConfig",
    # Loader
    "get_config",
    "get_database_path",
    "get_default_config_path",
    "validate_config",
    # Building blocks
    "EnvReader",
    "ConfigBuilder",
    "ConfigSource",
    "source_from_env",
    "source_from_file",
    "TomlParseError",
    "load_toml_file",
]
