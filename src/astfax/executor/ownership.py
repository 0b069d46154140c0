"""File ownership normalization for Asterisk-readable files."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from astfax.config.models import OwnershipConfig
from astfax.exceptions import OwnershipError

logger = logging.getLogger(__name__)


class OwnershipSetter:
    """Chowns files to the user and group the Asterisk process runs as."""

    def __init__(self, config: OwnershipConfig) -> None:
        self.config = config

    def apply(self, path: Path) -> None:
        """Set path's owner to the configured uid and gid.

        Raises:
            OwnershipError: If the change is not permitted or path is gone.
        """
        uid, gid = self.config.uid, self.config.gid
        logger.info("Setting permissions for %s to uid (%d) gid (%d)", path, uid, gid)
        try:
            os.chown(path, uid, gid)
        except OSError as e:
            raise OwnershipError(path, uid, gid, e.strerror or str(e)) from e
