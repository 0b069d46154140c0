"""Environment variable reader with dependency injection support.

This module provides the EnvReader class for reading and parsing environment
variables with type conversion and validation. It accepts an optional env
mapping so that configuration code can be tested without touching os.environ.
"""

from __future__ import annotations

import logging
import os
import shlex
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)


class EnvReader:
    """Environment variable reader with type conversion and validation.

    Example:
        # Production usage (reads from os.environ)
        reader = EnvReader()
        uid = reader.get_int("ASTFAX_AST_UID", 0)

        # Testing usage (inject custom env)
        reader = EnvReader(env={"ASTFAX_AST_UID": "112"})
        uid = reader.get_int("ASTFAX_AST_UID", 0)  # Returns 112
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        """Initialize the environment reader.

        Args:
            env: Optional mapping to use instead of os.environ.
        """
        self._env: Mapping[str, str] = env if env is not None else os.environ

    def get_str(self, var: str, default: str | None = None) -> str | None:
        """Get a string from environment variable.

        Empty values are treated as unset, matching how the spool deployment
        scripts blank out variables they do not want to override.
        """
        value = self._env.get(var)
        if not value:
            return default
        return value

    def get_int(self, var: str, default: int | None = None) -> int | None:
        """Get an integer from environment variable.

        Args:
            var: Environment variable name.
            default: Default value if not set or invalid.

        Returns:
            Parsed integer value, or default if not set or invalid.
            Logs a warning if the value is set but cannot be parsed.
        """
        value = self._env.get(var)
        if not value:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid integer value for %s: %s", var, value)
            return default

    def get_float(self, var: str, default: float | None = None) -> float | None:
        """Get a float from environment variable.

        Logs a warning and returns default if the value cannot be parsed.
        """
        value = self._env.get(var)
        if not value:
            return default
        try:
            return float(value)
        except ValueError:
            logger.warning("Invalid float value for %s: %s", var, value)
            return default

    def get_path(self, var: str, default: Path | None = None) -> Path | None:
        """Get a path from environment variable, with tilde expansion."""
        value = self._env.get(var)
        if not value:
            return default
        return Path(value).expanduser()

    def get_args(
        self, var: str, default: tuple[str, ...] | None = None
    ) -> tuple[str, ...] | None:
        """Get a shell-style argument list from environment variable.

        Args:
            var: Environment variable name.
            default: Default value if not set or unparseable.

        Returns:
            Tuple of arguments split with shell quoting rules.
        """
        value = self._env.get(var)
        if not value:
            return default
        try:
            return tuple(shlex.split(value))
        except ValueError:
            logger.warning("Invalid argument list for %s: %s", var, value)
            return default
