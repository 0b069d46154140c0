"""PDF to TIFF conversion with Ghostscript.

Asterisk's SendFAX application only transmits TIFF-F images, so every PDF
is rasterized before a call file is written. The default arguments produce
CCITT Group 4 compressed, letter sized pages.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess  # nosec B404 - only for TimeoutExpired
from pathlib import Path

from astfax.config.models import GhostscriptConfig
from astfax.core.subprocess_utils import run_command
from astfax.exceptions import ConversionFailed, UnsupportedFormat

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSIONS = frozenset({".pdf"})
OUTPUT_EXTENSION = ".tiff"

_WHITESPACE = re.compile(r"\s")


def is_supported_document(path: Path) -> bool:
    """Return True if path has a document extension (case-insensitive)."""
    return path.suffix.casefold() in DOCUMENT_EXTENSIONS


def tiff_path_for(source: Path) -> Path:
    """Derive the TIFF path for a document.

    The extension becomes .tiff and whitespace in the file name becomes "_",
    so the path can be written into a call file unquoted.

    Example:
        >>> tiff_path_for(Path("/spool/My Invoice.PDF"))
        PosixPath('/spool/My_Invoice.tiff')
    """
    stem = _WHITESPACE.sub("_", source.stem)
    return source.with_name(stem + OUTPUT_EXTENSION)


class GhostscriptConverter:
    """Converts documents to fax TIFFs by invoking Ghostscript."""

    def __init__(self, config: GhostscriptConfig) -> None:
        self.config = config

    def output_path_for(self, source: Path) -> Path:
        """Return where convert() writes the TIFF for source."""
        return tiff_path_for(source)

    def build_command(self, source: Path, destination: Path) -> list[str]:
        """Build the Ghostscript command line.

        Args:
            source: Document to convert.
            destination: TIFF file to write.

        Returns:
            Argument list suitable for run_command.
        """
        return [
            self.config.executable,
            *self.config.args,
            f"-sOutputFile={destination}",
            str(source),
        ]

    def is_available(self) -> bool:
        """Return True if the Ghostscript executable can be found."""
        return shutil.which(self.config.executable) is not None

    def convert(self, source: Path) -> Path:
        """Convert a document to TIFF, blocking until Ghostscript exits.

        Args:
            source: Path to a readable document.

        Returns:
            Path to the written TIFF.

        Raises:
            UnsupportedFormat: If source is not a recognized document.
            ConversionFailed: If Ghostscript cannot run, exits non-zero,
                times out, or leaves no output.
        """
        if not is_supported_document(source):
            raise UnsupportedFormat(source)

        if not source.is_file():
            raise ConversionFailed(f"source document not found: {source}")

        destination = self.output_path_for(source)
        command = self.build_command(source, destination)

        logger.info("Converting PDF file to TIFF: %s", destination)

        try:
            _, stderr, returncode = run_command(command, timeout=self.config.timeout)
        except FileNotFoundError as e:
            raise ConversionFailed(
                f"Ghostscript executable not found: {self.config.executable}"
            ) from e
        except subprocess.TimeoutExpired as e:
            self._discard(destination)
            raise ConversionFailed(
                f"Ghostscript timed out after {self.config.timeout}s"
            ) from e
        except OSError as e:
            raise ConversionFailed(f"could not start Ghostscript: {e}") from e

        if returncode != 0:
            self._discard(destination)
            raise ConversionFailed(
                stderr.strip() or "Ghostscript reported an error",
                returncode=returncode,
                stderr=stderr,
            )

        if not destination.exists() or destination.stat().st_size == 0:
            self._discard(destination)
            raise ConversionFailed(
                f"Ghostscript produced no output at {destination}",
                returncode=returncode,
                stderr=stderr,
            )

        return destination

    @staticmethod
    def _discard(path: Path) -> None:
        """Remove partial output left by a failed run."""
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove partial TIFF %s: %s", path, e)
