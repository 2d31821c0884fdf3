from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.canonical_row import CanonicalRow
from ..models.import_session import (
    ApplyOutcome,
    ImportSession,
    SessionStatus,
    SnapshotContext,
    SnapshotHandle,
)

"""Apply orchestration.

Gates on the validation verdict, takes a rollback snapshot through the
snapshot collaborator, and only then performs the bulk catalog write.

- A failing ValidationResult is rejected locally, no collaborator is called.
- Snapshot failure -> FAILED, the write is never attempted.
- Write failure -> FAILED, the snapshot is reported as available for manual
  rollback. No partial rollback and no retries here.
"""

__all__ = [
    "SnapshotCreator",
    "CatalogWriter",
    "ApplyRejectedError",
    "SnapshotFailure",
    "WriteFailure",
    "ApplyOrchestrator",
]

logger = logging.getLogger(__name__)


class SnapshotCreator(Protocol):
    def create_snapshot(self, context: SnapshotContext) -> SnapshotHandle: ...


class CatalogWriter(Protocol):
    def apply_catalog_write(self, rows: Sequence[CanonicalRow]) -> int: ...


class ApplyRejectedError(Exception):
    """Raised when apply is requested for a result that has blocking errors."""


class SnapshotFailure(Exception):
    """Snapshot could not be created; the catalog was not touched."""


class WriteFailure(Exception):
    """Catalog write failed after a snapshot was taken."""


class ApplyOrchestrator:
    """Runs one apply attempt per call: gate -> snapshot -> write."""

    def __init__(
        self,
        snapshots: SnapshotCreator,
        writer: CatalogWriter,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self._snapshots = snapshots
        self._writer = writer
        self._error_log = error_log if error_log is not None else ErrorLogBuffer()

    @property
    def error_log(self) -> ErrorLogBuffer:
        return self._error_log

    def apply(self, session: ImportSession) -> ApplyOutcome:
        """Apply `session.rows` to the catalog.

        Raises:
            ApplyRejectedError: the session's validation result is not valid
            InvalidSessionStateError: the session is applying or already applied

        Returns:
            ApplyOutcome with status APPLIED or FAILED
        """
        if not session.result.is_valid:
            raise ApplyRejectedError(
                f"session {session.session_id} has {session.result.error_count} blocking "
                "validation error(s); fix them and re-upload"
            )
        session.transition(SessionStatus.APPLYING)
        logger.info(
            "applying session=%s source=%s rows=%d",
            session.session_id,
            session.source_name,
            len(session.rows),
        )

        context = SnapshotContext(import_type=session.import_type, product_count=len(session.rows))
        try:
            snapshot = self._snapshots.create_snapshot(context)
        except Exception as e:
            # タイムアウト含め全て失敗扱い。書き込みは行わない
            outcome = ApplyOutcome(
                status=SessionStatus.FAILED,
                error=str(e) or type(e).__name__,
                error_type="SNAPSHOT_FAILURE",
            )
            return self._fail(session, outcome)

        logger.info("snapshot created id=%s session=%s", snapshot.snapshot_id, session.session_id)

        try:
            written = self._writer.apply_catalog_write(session.rows)
        except Exception as e:
            outcome = ApplyOutcome(
                status=SessionStatus.FAILED,
                snapshot=snapshot,
                error=str(e) or type(e).__name__,
                error_type="WRITE_FAILURE",
                snapshot_orphaned=True,
            )
            return self._fail(session, outcome)

        outcome = ApplyOutcome(status=SessionStatus.APPLIED, snapshot=snapshot, rows_written=written)
        session.finish(outcome)
        logger.info("session=%s %s", session.session_id, outcome.message)
        return outcome

    def _fail(self, session: ImportSession, outcome: ApplyOutcome) -> ApplyOutcome:
        session.finish(outcome)
        logger.error("session=%s %s", session.session_id, outcome.message)
        self._error_log.append(
            ErrorRecord.create(
                source=session.source_name,
                session_id=session.session_id,
                row=-1,
                error_type=outcome.error_type or "APPLY_FAILURE",
                message=outcome.message,
            )
        )
        try:
            self._error_log.flush()
        except OSError:
            # エラーログ書き込み失敗で結果を上書きしない
            logger.warning("could not write error log", exc_info=True)
        return outcome
