"""Handoff of finished call files to the Asterisk outgoing spool.

Asterisk scans its outgoing directory and acts on any file it finds, so a
call file must appear there complete. A rename within one filesystem is
atomic; a copy is not, which is why cross-device moves are refused rather
than emulated.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from astfax.exceptions import RelocationError, RelocationErrorType

logger = logging.getLogger(__name__)


class SpoolDispatcher:
    """Moves call files into the directory Asterisk watches."""

    def __init__(self, outgoing_dir: Path) -> None:
        """Initialize the dispatcher.

        Args:
            outgoing_dir: Asterisk outgoing spool directory.
        """
        self.outgoing_dir = outgoing_dir

    def destination_for(self, call_file: Path) -> Path:
        """Return the spool path a call file will be moved to."""
        return self.outgoing_dir / call_file.name

    def dispatch(self, call_file: Path) -> Path:
        """Move a call file into the spool, keeping its name.

        After this returns the file belongs to Asterisk.

        Args:
            call_file: Finished, chowned call file in the staging area.

        Returns:
            The call file's path inside the spool.

        Raises:
            RelocationError: If the rename fails. A file that was already
                moved fails with RelocationErrorType.NOT_FOUND.
        """
        destination = self.destination_for(call_file)

        logger.info("Moving callfile %s -> %s", call_file, destination)
        try:
            os.rename(call_file, destination)
        except OSError as e:
            error_type = RelocationErrorType.from_errno(e.errno)
            logger.error("Move failed (%s): %s", error_type.value, e)
            raise RelocationError(
                call_file, destination, error_type, e.strerror or str(e)
            ) from e

        return destination
