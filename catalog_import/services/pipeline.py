from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.canonical_row import CanonicalRow
from ..models.import_session import ApplyOutcome, ImportSession
from ..models.validation import Severity
from ..readers import FileFormat, ParseError, detect_format, parse
from .export import serialize
from .normalizer import normalize
from .orchestrator import ApplyOrchestrator
from .validation import validate

"""Import pipeline / session manager.

parse -> normalize -> validate runs in a worker thread so the caller's event
loop stays responsive. Every load() starts a new generation; a load that
finishes after a newer one started is discarded (SessionSupersededError).
Apply runs shielded: cancelling the caller does not interrupt a write that
already started.
"""

__all__ = [
    "SessionSupersededError",
    "build_session",
    "ImportPipeline",
]

logger = logging.getLogger(__name__)


class SessionSupersededError(Exception):
    """A newer upload replaced the session this operation belonged to."""


def build_session(
    data: bytes,
    filename: str,
    fmt: FileFormat | None = None,
    *,
    encoding: str = "utf-8-sig",
    error_log: ErrorLogBuffer | None = None,
) -> ImportSession:
    """Synchronous core: bytes -> validated ImportSession. Raises ParseError."""
    try:
        file_format = fmt or detect_format(filename, data)
        table = parse(data, file_format, encoding=encoding)
    except ParseError as e:
        logger.error("parse failed source=%s: %s", filename, e)
        if error_log is not None:
            error_log.append(
                ErrorRecord.create(
                    source=filename, session_id="", row=-1, error_type="PARSE_ERROR", message=str(e)
                )
            )
        raise

    rows = normalize(table)
    result = validate(rows)
    session = ImportSession(
        source_name=filename,
        import_type=file_format.import_type,
        rows=tuple(rows),
        result=result,
    )
    if error_log is not None:
        for issue in result.issues:
            if issue.severity is Severity.ERROR:
                error_log.append(
                    ErrorRecord.create(
                        source=filename,
                        session_id=session.session_id,
                        row=issue.row,
                        error_type="VALIDATION_ERROR",
                        message=issue.message,
                    )
                )
    logger.info(
        "loaded source=%s format=%s rows=%d valid=%s session=%s",
        filename,
        file_format.value,
        result.total_rows,
        result.is_valid,
        session.session_id,
    )
    return session


class ImportPipeline:
    """Owns the current ImportSession and serializes work against it."""

    def __init__(
        self,
        orchestrator: ApplyOrchestrator,
        *,
        encoding: str = "utf-8-sig",
    ) -> None:
        self._orchestrator = orchestrator
        self._encoding = encoding
        self._generation = 0
        self._current: ImportSession | None = None
        self._apply_lock = asyncio.Lock()

    @property
    def current(self) -> ImportSession | None:
        return self._current

    async def load(self, data: bytes, filename: str, fmt: FileFormat | None = None) -> ImportSession:
        """Parse and validate a new upload, replacing the current session."""
        self._generation += 1
        generation = self._generation
        # 新しいアップロードで旧セッションは無効
        self._current = None
        error_log = self._orchestrator.error_log
        try:
            session = await asyncio.to_thread(
                build_session, data, filename, fmt, encoding=self._encoding, error_log=error_log
            )
        finally:
            error_log.flush()
        if generation != self._generation:
            logger.info("discarding stale load source=%s", filename)
            raise SessionSupersededError(f"upload '{filename}' was replaced by a newer upload")
        self._current = session
        return session

    async def apply(self, session: ImportSession) -> ApplyOutcome:
        """Apply `session` if it is still the current one.

        The orchestrator call is shielded from cancellation once started.
        """
        if session is not self._current:
            raise SessionSupersededError(f"session {session.session_id} is no longer current")
        async with self._apply_lock:
            # ロック待ちの間に新しい load が始まっていないか再確認
            if session is not self._current:
                raise SessionSupersededError(f"session {session.session_id} is no longer current")
            task = asyncio.ensure_future(asyncio.to_thread(self._orchestrator.apply, session))
            return await asyncio.shield(task)

    def export(self, rows: Sequence[CanonicalRow] | ImportSession, fmt: FileFormat) -> bytes:
        if isinstance(rows, ImportSession):
            rows = rows.rows
        return serialize(rows, fmt)
