from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

row=-1 is used for file-level errors (parse failures, snapshot/write
failures) where no single row applies.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        source: uploaded file name
        session_id: import session id ("" before a session exists)
        row: spreadsheet row number, -1 for file-level errors
        error_type: error classification in UPPER_SNAKE_CASE
        message: human readable description
    """
    timestamp: str
    source: str
    session_id: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(source: str, session_id: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            source=source,
            session_id=session_id,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # dataclass -> dict のみ (追加キー禁止)
        return json.dumps(asdict(self), ensure_ascii=False)
