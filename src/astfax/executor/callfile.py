"""Asterisk call file generation.

A call file is a line-oriented "Key:Value" text file. Dropping one into the
Asterisk outgoing spool makes Asterisk dial the Channel and, once answered,
run the fax context which reads FAXID and FAXFILE to send the TIFF.

Retries are left to Asterisk through MaxRetries/RetryTime; the spooler
never redials on its own.
"""

from __future__ import annotations

import logging
from pathlib import Path

from astfax.db.models import TrunkNumber
from astfax.db.store import JobStore
from astfax.exceptions import DescriptorWriteError, TrunkResolutionError

logger = logging.getLogger(__name__)

CALL_FILE_EXTENSION = ".call"

# Dialing policy, applied to every fax
MAX_RETRIES = 4
RETRY_TIME = 60
WAIT_TIME = 45
ARCHIVE = "Yes"
CONTEXT = "fax"
EXTENSION = "out"
PRIORITY = 1

PPID_HEADER_DIRECTIVE = "PJSIP_HEADER(add,P-Preferred-Identity)"

# Characters with meaning inside a Set: value; escaped with a backslash
_ESCAPED_CHARS = ("\\", ";")


def escape_header_value(value: str) -> str:
    """Escape a header value for use in a Set: directive.

    Backslashes are escaped first so that unescape_header_value can
    recover the original value unambiguously.
    """
    for char in _ESCAPED_CHARS:
        value = value.replace(char, "\\" + char)
    return value


def unescape_header_value(value: str) -> str:
    """Reverse escape_header_value."""
    result: list[str] = []
    chars = iter(value)
    for char in chars:
        if char == "\\":
            result.append(next(chars, "\\"))
        else:
            result.append(char)
    return "".join(result)


def resolve_trunk(trunks: list[TrunkNumber], outgoing_number_id: int) -> TrunkNumber:
    """Return the single fax-capable trunk for a job.

    Raises:
        TrunkResolutionError: If there are zero or several matches.
    """
    if len(trunks) != 1:
        raise TrunkResolutionError(outgoing_number_id, len(trunks))
    return trunks[0]


def _check_single_line(name: str, value: str) -> str:
    if "\n" in value or "\r" in value:
        raise ValueError(f"{name} must not contain line breaks: {value!r}")
    return value


def render_call_file(
    trunk: TrunkNumber, fax_id: int, tiff_path: Path, receiver: str
) -> str:
    """Render call file text. Same inputs always give the same text.

    Args:
        trunk: Trunk to dial out through.
        fax_id: Fax job id, exposed to the dialplan as FAXID.
        tiff_path: Converted image, exposed as FAXFILE.
        receiver: Destination telephone number.

    Returns:
        Call file content, newline terminated.

    Raises:
        ValueError: If a value would break the line format.
    """
    receiver = _check_single_line("receiver", receiver)
    endpoint = _check_single_line("ps_endpoints_id", trunk.ps_endpoints_id)
    full_number = _check_single_line("full_number", trunk.full_number)
    faxfile = _check_single_line("tiff_path", str(tiff_path))

    lines = [
        f"Channel:PJSIP/{receiver}@{endpoint}",
        f'CallerID:"{full_number}"<{full_number}>',
        f"MaxRetries:{MAX_RETRIES}",
        f"RetryTime:{RETRY_TIME}",
        f"WaitTime:{WAIT_TIME}",
        f"Archive:{ARCHIVE}",
        f"Context:{CONTEXT}",
        f"Extension:{EXTENSION}",
        f"Priority:{PRIORITY}",
        f"Set:FAXID={fax_id}",
        f"Set:FAXFILE={faxfile}",
    ]

    if trunk.header_ppid:
        header = escape_header_value(
            _check_single_line("header_ppid", trunk.header_ppid)
        )
        lines.append(f"Set:{PPID_HEADER_DIRECTIVE}={header}")

    return "\n".join(lines) + "\n"


def parse_call_file(text: str) -> list[tuple[str, str]]:
    """Parse call file text into (key, value) pairs, in file order.

    Each line is split at its first colon; blank lines and '#' comments are
    skipped. Set: values are returned as written, still escaped, and keep
    any trailing whitespace since header values may end in a space.
    """
    entries: list[tuple[str, str]] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, sep, value = line.partition(":")
        if not sep:
            raise ValueError(f"Malformed call file line: {stripped!r}")
        entries.append((key.strip(), value.lstrip()))
    return entries


def call_file_path_for(tiff_path: Path) -> Path:
    """Return the call file path beside a converted TIFF."""
    return tiff_path.with_suffix(CALL_FILE_EXTENSION)


class CallFileBuilder:
    """Resolves a job's trunk and writes its call file."""

    def __init__(self, store: JobStore) -> None:
        self.store = store

    def build(
        self, outgoing_number_id: int, fax_id: int, tiff_path: Path, receiver: str
    ) -> Path:
        """Write the call file for a fax next to its TIFF.

        Args:
            outgoing_number_id: trunk_numbers id configured on the job.
            fax_id: Fax job id.
            tiff_path: Converted image.
            receiver: Destination telephone number.

        Returns:
            Path of the written call file.

        Raises:
            TrunkResolutionError: If not exactly one fax trunk matches; no
                file is written.
            DescriptorWriteError: If the file cannot be rendered or written.
        """
        trunks = self.store.lookup_fax_trunks(outgoing_number_id)
        trunk = resolve_trunk(trunks, outgoing_number_id)

        call_file = call_file_path_for(tiff_path)

        try:
            content = render_call_file(trunk, fax_id, tiff_path, receiver)
        except ValueError as e:
            raise DescriptorWriteError(call_file, str(e), job_id=fax_id) from e

        logger.info("Generating callfile %s", call_file)

        try:
            call_file.write_text(content, encoding="utf-8")
        except OSError as e:
            try:
                call_file.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove partial call file %s", call_file)
            raise DescriptorWriteError(call_file, str(e), job_id=fax_id) from e

        return call_file
