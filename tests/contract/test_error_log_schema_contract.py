from __future__ import annotations

import json

import jsonschema
import pytest

from catalog_import.logging.error_log import ErrorLogBuffer
from catalog_import.models.error_record import ErrorRecord
from catalog_import.readers import ParseError
from catalog_import.services.pipeline import build_session
from tests.helpers import LONG_DESCRIPTION

"""Error log JSON Lines contract: one object per line, fixed keys only."""

ERROR_LOG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "required": ["timestamp", "source", "session_id", "row", "error_type", "message"],
    "properties": {
        "timestamp": {"type": "string", "pattern": r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$"},
        "source": {"type": "string"},
        "session_id": {"type": "string"},
        "row": {"type": "integer", "minimum": -1},
        "error_type": {"type": "string", "pattern": "^[A-Z][A-Z_]*$"},
        "message": {"type": "string"},
    },
}


def test_error_log_schema_valid_example():
    record = {
        "timestamp": "2025-09-26T10:12:33Z",
        "source": "products.csv",
        "session_id": "3f2a9c",
        "row": 4,
        "error_type": "VALIDATION_ERROR",
        "message": "Missing required fields: title",
    }
    jsonschema.validate(record, ERROR_LOG_SCHEMA)


def test_error_log_schema_rejects_extra_key():
    record = json.loads(
        ErrorRecord.create("products.csv", "s1", 2, "VALIDATION_ERROR", "x").to_json_line()
    )
    record["sheet"] = "Products"
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(record, ERROR_LOG_SCHEMA)


def test_written_log_lines_match_schema(tmp_path):
    data = (
        "handle,title,description\n"
        f"p1,,{LONG_DESCRIPTION}\n"
        f"p1,Hat,{LONG_DESCRIPTION}\n"
    ).encode("utf-8")
    buf = ErrorLogBuffer(tmp_path)
    session = build_session(data, "products.csv", error_log=buf)
    path = buf.flush()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    for line in lines:
        record = json.loads(line)
        jsonschema.validate(record, ERROR_LOG_SCHEMA)
        assert record["session_id"] == session.session_id


def test_parse_failure_logged_with_unknown_row(tmp_path):
    buf = ErrorLogBuffer(tmp_path)
    with pytest.raises(ParseError):
        build_session(b"", "empty.csv", error_log=buf)
    (record,) = buf.records
    jsonschema.validate(json.loads(record.to_json_line()), ERROR_LOG_SCHEMA)
    assert record.row == -1
    assert record.error_type == "PARSE_ERROR"
