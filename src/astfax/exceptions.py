"""Exception hierarchy for the fax spooler.

Errors fall into two families:

- FaxJobError: scoped to a single fax job. The pipeline logs it with the
  job id and moves on to the next job; the job stays in whatever state its
  last successful transition left it.
- FatalLoopError: the poll loop cannot trust its filesystem or job store
  and must stop.
"""

from __future__ import annotations

import errno as errno_module
from enum import Enum
from pathlib import Path


class AstfaxError(Exception):
    """Base exception for all fax spooler errors."""


# =============================================================================
# Job-scoped errors
# =============================================================================


class FaxJobError(AstfaxError):
    """Base exception for errors contained within one job's pipeline run.

    Attributes:
        job_id: The fax job the error belongs to, when known.
    """

    def __init__(self, message: str, job_id: int | None = None) -> None:
        self.job_id = job_id
        super().__init__(message)


class UnsupportedDocumentType(FaxJobError):
    """Raised when a job's filename is not a PDF."""

    def __init__(self, filename: str, job_id: int | None = None) -> None:
        self.filename = filename
        super().__init__(f"Only handling .pdf files, got {filename!r}", job_id)


class DocumentWriteError(FaxJobError):
    """Raised when a job's PDF cannot be written to the staging area."""

    def __init__(self, path: Path, reason: str, job_id: int | None = None) -> None:
        self.path = path
        super().__init__(f"Could not write PDF file {path}: {reason}", job_id)


class ConversionError(FaxJobError):
    """Base exception for PDF to TIFF conversion errors."""


class UnsupportedFormat(ConversionError):
    """Raised when the converter is handed a file it cannot rasterize."""

    def __init__(self, path: Path, job_id: int | None = None) -> None:
        self.path = path
        super().__init__(f"Unsupported document format: {path.name}", job_id)


class ConversionFailed(ConversionError):
    """Raised when Ghostscript fails or produces no output.

    Attributes:
        returncode: Ghostscript exit status, None if it never ran to completion.
        stderr: Captured standard error of the process.
    """

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stderr: str = "",
        job_id: int | None = None,
    ) -> None:
        self.returncode = returncode
        self.stderr = stderr
        detail = f" (exit {returncode})" if returncode is not None else ""
        super().__init__(f"Could not convert PDF to TIFF: {message}{detail}", job_id)


class TrunkResolutionError(FaxJobError):
    """Raised when not exactly one fax-capable trunk matches a job."""

    def __init__(
        self, outgoing_number_id: int, matches: int, job_id: int | None = None
    ) -> None:
        self.outgoing_number_id = outgoing_number_id
        self.matches = matches
        super().__init__(
            f"Could not find outgoing fax number to use: trunk number "
            f"{outgoing_number_id} has {matches} fax-capable matches (expected 1)",
            job_id,
        )


class DescriptorWriteError(FaxJobError):
    """Raised when a call file cannot be written."""

    def __init__(self, path: Path, reason: str, job_id: int | None = None) -> None:
        self.path = path
        super().__init__(f"Could not write call file {path}: {reason}", job_id)


class OwnershipError(FaxJobError):
    """Raised when a call file cannot be chowned to the Asterisk user."""

    def __init__(
        self, path: Path, uid: int, gid: int, reason: str, job_id: int | None = None
    ) -> None:
        self.path = path
        self.uid = uid
        self.gid = gid
        super().__init__(
            f"Could not change ownership of {path} to {uid}:{gid}: {reason}", job_id
        )


class StateUpdateError(FaxJobError):
    """Raised when a job's state cannot be updated in the store.

    The update runs in a transaction that is rolled back on failure, so
    the stored state is still the prior one.
    """

    def __init__(self, job_id: int, state: str, reason: str) -> None:
        self.state = state
        super().__init__(f"Cannot set fax {job_id} to {state!r}: {reason}", job_id)


class RelocationErrorType(Enum):
    """Categorization of call file relocation errors."""

    NOT_FOUND = "not_found"
    PERMISSION = "permission"
    CROSS_DEVICE = "cross_device"
    DISK_SPACE = "disk_space"
    IO_ERROR = "io_error"
    UNKNOWN = "unknown"

    @classmethod
    def from_errno(cls, code: int | None) -> RelocationErrorType:
        """Map an OSError errno to a relocation error type."""
        return _ERRNO_TO_RELOCATION_TYPE.get(code, cls.UNKNOWN)


_ERRNO_TO_RELOCATION_TYPE = {
    errno_module.ENOENT: RelocationErrorType.NOT_FOUND,
    errno_module.EACCES: RelocationErrorType.PERMISSION,
    errno_module.EPERM: RelocationErrorType.PERMISSION,
    errno_module.EXDEV: RelocationErrorType.CROSS_DEVICE,
    errno_module.ENOSPC: RelocationErrorType.DISK_SPACE,
    errno_module.EIO: RelocationErrorType.IO_ERROR,
    errno_module.EROFS: RelocationErrorType.IO_ERROR,
}


class RelocationError(FaxJobError):
    """Raised when a call file cannot be moved into the Asterisk spool.

    The job is already 'processed' when this happens; the call file stays
    in the staging area for an operator to move by hand.
    """

    def __init__(
        self,
        source: Path,
        destination: Path,
        error_type: RelocationErrorType,
        reason: str,
        job_id: int | None = None,
    ) -> None:
        self.source = source
        self.destination = destination
        self.error_type = error_type
        super().__init__(
            f"Could not move call file {source} to {destination} "
            f"({error_type.value}): {reason}",
            job_id,
        )


# =============================================================================
# Fatal errors
# =============================================================================


class FatalLoopError(AstfaxError):
    """Base exception for errors that stop the poll loop."""


class DirectoryCreationError(FatalLoopError):
    """Raised when a required spool directory cannot be created."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Could not create directory {path}: {reason}")


class StoreConnectivityError(FatalLoopError):
    """Raised when the job store cannot be reached."""
