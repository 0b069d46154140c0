"""Centralized exit codes for all CLI commands.

Exit code ranges:
    0: Success
    1-9: General errors
    10-19: Validation errors
    40-49: Operation errors
    60-69: Warning states
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for astfax CLI commands."""

    # Success (0)
    SUCCESS = 0

    # General errors (1-9)
    GENERAL_ERROR = 1
    INTERRUPTED = 2

    # Validation errors (10-19)
    CONFIG_ERROR = 11

    # Operation errors (40-49)
    DATABASE_ERROR = 42
    DIRECTORY_ERROR = 43

    # Warning states (60-69)
    WARNINGS = 60
    CRITICAL = 61
