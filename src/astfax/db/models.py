"""Data models for the fax job store."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class FaxState(Enum):
    """Lifecycle state of an outgoing fax.

    State transitions (strictly forward, one step at a time):
        created → processing   (pipeline picks the job up)
        processing → processed (call file written and chowned)

    Terminal state: processed. A failed job stays in 'processing' for an
    operator to inspect.
    """

    CREATED = "created"
    PROCESSING = "processing"
    PROCESSED = "processed"

    @property
    def previous(self) -> FaxState | None:
        """The state a job must be in to move into this one."""
        return _PREVIOUS_STATE.get(self)

    def can_transition_to(self, target: FaxState) -> bool:
        """Return True if target is the single forward step from this state."""
        return target.previous is self


_PREVIOUS_STATE = {
    FaxState.PROCESSING: FaxState.CREATED,
    FaxState.PROCESSED: FaxState.PROCESSING,
}


@dataclass
class FaxJob:
    """One outbound fax request (a faxes_outgoing row)."""

    id: int
    filename: str
    outgoing_number_id: int
    to: str
    state: FaxState = FaxState.CREATED
    # Raw PDF bytes; empty when loaded for listing only
    fax_data: bytes = field(default=b"", repr=False)
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class TrunkNumber:
    """An outbound line from trunk_numbers."""

    id: int
    full_number: str
    ps_endpoints_id: str
    # P-Preferred-Identity header value, None when the trunk sets none
    header_ppid: str | None = None
