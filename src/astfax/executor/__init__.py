"""Executors for the external steps of sending a fax.

- ghostscript: PDF to TIFF conversion
- callfile: Asterisk call file rendering and writing
- ownership: chown to the Asterisk user
- spool: atomic handoff into the Asterisk outgoing spool
"""

from astfax.executor.callfile import (
    CallFileBuilder,
    escape_header_value,
    parse_call_file,
    render_call_file,
    resolve_trunk,
    unescape_header_value,
)
from astfax.executor.ghostscript import GhostscriptConverter, tiff_path_for
from astfax.executor.ownership import OwnershipSetter
from astfax.executor.spool import SpoolDispatcher

__all__ = [
    "CallFileBuilder",
    "GhostscriptConverter",
    "OwnershipSetter",
    "SpoolDispatcher",
    "escape_header_value",
    "parse_call_file",
    "render_call_file",
    "resolve_trunk",
    "tiff_path_for",
    "unescape_header_value",
]
