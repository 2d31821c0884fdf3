from __future__ import annotations

import json
from pathlib import Path

from catalog_import.logging.error_log import ErrorLogBuffer
from catalog_import.models.error_record import ErrorRecord


def _record(row: int = 3) -> ErrorRecord:
    return ErrorRecord.create(
        source="products.csv", session_id="abc", row=row, error_type="VALIDATION_ERROR", message="x"
    )


def test_flush_writes_json_lines_and_clears(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path / "logs")
    buf.append(_record(2))
    buf.append(_record(5))

    path = buf.flush()

    assert path is not None
    assert path.parent == tmp_path / "logs"
    assert path.name.startswith("import-errors-")
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["row"] for line in lines] == [2, 5]
    assert buf.records == []


def test_flush_without_records_creates_nothing(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()


def test_successive_flushes_append_to_same_file(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path)
    buf.append(_record())
    first = buf.flush()
    buf.append(_record())
    second = buf.flush()
    assert first == second
    assert len(second.read_text(encoding="utf-8").splitlines()) == 2
