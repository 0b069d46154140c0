"""Shared utilities."""

from astfax.core.subprocess_utils import run_command

__all__ = ["run_command"]
