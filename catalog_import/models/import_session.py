from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from .canonical_row import CanonicalRow
from .validation import ValidationResult

"""ImportSession model and apply lifecycle types.

An ImportSession binds one ValidationResult to the rows it was computed from.
A new upload always creates a new session; sessions are never merged.

State transitions: idle -> applying -> (applied | failed)
A failed session may go back to applying on an explicit re-apply.
"""

__all__ = [
    "SessionStatus",
    "InvalidSessionStateError",
    "SnapshotContext",
    "SnapshotHandle",
    "ApplyOutcome",
    "ImportSession",
]


class SessionStatus(Enum):
    IDLE = "idle"
    APPLYING = "applying"
    APPLIED = "applied"
    FAILED = "failed"


_ALLOWED_TRANSITIONS: dict[SessionStatus, set[SessionStatus]] = {
    SessionStatus.IDLE: {SessionStatus.APPLYING},
    SessionStatus.APPLYING: {SessionStatus.APPLIED, SessionStatus.FAILED},
    SessionStatus.APPLIED: set(),
    SessionStatus.FAILED: {SessionStatus.APPLYING},
}


class InvalidSessionStateError(Exception):
    """Raised on a lifecycle transition the session does not allow."""


@dataclass(frozen=True)
class SnapshotContext:
    """Context passed to the snapshot collaborator."""
    import_type: str  # "bulk_csv" / "bulk_xlsx"
    product_count: int


@dataclass(frozen=True)
class SnapshotHandle:
    snapshot_id: str
    created_at: datetime
    product_count: int = 0


@dataclass(frozen=True)
class ApplyOutcome:
    """Terminal result of one apply attempt (applied | failed)."""
    status: SessionStatus
    snapshot: SnapshotHandle | None = None
    rows_written: int = 0
    error: str | None = None
    error_type: str | None = None  # SNAPSHOT_FAILURE / WRITE_FAILURE
    snapshot_orphaned: bool = False  # snapshot exists but write failed

    @property
    def applied(self) -> bool:
        return self.status is SessionStatus.APPLIED

    @property
    def message(self) -> str:
        if self.applied:
            snapshot_id = self.snapshot.snapshot_id if self.snapshot is not None else "none"
            return f"{self.rows_written} products applied (rollback snapshot {snapshot_id})"
        if self.snapshot is None:
            return f"snapshot could not be created, catalog was not modified: {self.error}"
        return (
            f"catalog write failed: {self.error}. Product data may be mid-transition; "
            f"snapshot {self.snapshot.snapshot_id} is available for manual rollback"
        )


@dataclass
class ImportSession:
    """One parsed + validated upload, owned by the apply orchestrator."""
    source_name: str
    import_type: str
    rows: tuple[CanonicalRow, ...]
    result: ValidationResult
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    status: SessionStatus = SessionStatus.IDLE
    outcome: ApplyOutcome | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def transition(self, new_status: SessionStatus) -> None:
        """Move to `new_status`, raising InvalidSessionStateError if not allowed."""
        with self._lock:
            if new_status not in _ALLOWED_TRANSITIONS[self.status]:
                raise InvalidSessionStateError(
                    f"session {self.session_id}: cannot move from "
                    f"{self.status.value} to {new_status.value}"
                )
            self.status = new_status

    def finish(self, outcome: ApplyOutcome) -> None:
        self.transition(outcome.status)
        self.outcome = outcome
