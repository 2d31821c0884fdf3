from __future__ import annotations

import logging

import pytest

from catalog_import.readers import ParseError
from catalog_import.readers.excel_reader import read_xlsx_bytes
from tests.helpers import make_xlsx


def test_read_first_sheet_headers_and_rows():
    data = make_xlsx(
        {
            "Products": [
                ["Handle", "Title", "Price"],
                ["p1", "Hat", 5],
                ["p2", "Cap", "7.50"],
            ]
        }
    )
    table = read_xlsx_bytes(data)
    assert table.sheet_name == "Products"
    assert table.headers == ["handle", "title", "price"]
    assert table.rows[0] == {"handle": "p1", "title": "Hat", "price": "5"}
    assert table.rows[1]["price"] == "7.50"


def test_empty_rows_are_skipped_and_missing_cells_are_empty_strings():
    data = make_xlsx(
        {
            "Sheet1": [
                ["handle", "title", "tags"],
                ["p1", "Hat", None],
                [None, None, None],
                ["p2", "Cap", "summer"],
            ]
        }
    )
    table = read_xlsx_bytes(data)
    assert len(table.rows) == 2
    assert table.rows[0]["tags"] == ""
    assert table.rows[1] == {"handle": "p2", "title": "Cap", "tags": "summer"}


def test_only_first_sheet_is_read(caplog):
    data = make_xlsx(
        {
            "First": [["handle"], ["p1"]],
            "Second": [["handle"], ["p2"], ["p3"]],
        }
    )
    with caplog.at_level(logging.WARNING, logger="catalog_import"):
        table = read_xlsx_bytes(data)
    assert [r["handle"] for r in table.rows] == ["p1"]
    assert "Second" in caplog.text


def test_header_only_sheet_gives_zero_rows():
    table = read_xlsx_bytes(make_xlsx({"Sheet1": [["handle", "title"]]}))
    assert table.headers == ["handle", "title"]
    assert table.row_count == 0


@pytest.mark.parametrize("data", [b"PK\x03\x04not really a zip", b"plain text, not a workbook"])
def test_corrupt_workbook_raises_parse_error(data: bytes):
    with pytest.raises(ParseError, match="unreadable workbook"):
        read_xlsx_bytes(data)


def test_headers_trimmed_but_cell_text_kept():
    data = make_xlsx({"Sheet1": [[" Handle ", "Title "], ["p1", "  Padded "]]})
    table = read_xlsx_bytes(data)
    assert table.headers == ["handle", "title"]
    assert table.rows[0]["title"] == "  Padded "
