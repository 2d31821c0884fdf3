from __future__ import annotations

import logging

from ..models.raw_table import RawTable
from .formats import ParseError

"""Delimited-text (CSV) reader.

A small character scanner instead of the csv module. A quote at the start of
a field opens a quoted section, a doubled quote inside it is a literal quote,
and commas and newlines only separate fields/records outside quotes. A quote
anywhere else is kept as text. Headers are trimmed and lower-cased; cell
values are kept as written.
"""

__all__ = [
    "split_records",
    "split_csv_line",
    "read_csv_bytes",
]

logger = logging.getLogger(__name__)


def split_records(text: str) -> list[str]:
    """Split text into records on newlines that are not inside quotes.

    A quote only opens a quoted section at the start of a field, so a stray
    `"` in the middle of a value (e.g. `27" monitor`) cannot swallow the
    following lines. Blank records are discarded; a trailing carriage return
    is dropped.
    """
    records: list[str] = []
    current: list[str] = []
    in_quotes = False
    at_field_start = True
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if in_quotes:
            if ch == '"':
                if i + 1 < n and text[i + 1] == '"':
                    current.append('""')
                    i += 2
                    continue
                in_quotes = False
            current.append(ch)
        elif ch == "\n":
            records.append("".join(current).rstrip("\r"))
            current = []
            at_field_start = True
        else:
            if ch == '"' and at_field_start:
                in_quotes = True
            elif ch == ",":
                at_field_start = True
                current.append(ch)
                i += 1
                continue
            if not ch.isspace():
                at_field_start = False
            current.append(ch)
        i += 1
    if current:
        records.append("".join(current).rstrip("\r"))
    return [r for r in records if r.strip()]


def split_csv_line(line: str) -> list[str]:
    """Split one record into raw field values (not trimmed).

    Same quoting rule as split_records: a quote is only special at the start
    of a field (leading whitespace before it is dropped) and inside a quoted
    section; anywhere else it is a literal character.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    at_field_start = True
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if in_quotes:
            if ch == '"':
                if i + 1 < n and line[i + 1] == '"':
                    # "" -> literal quote
                    current.append('"')
                    i += 2
                    continue
                in_quotes = False
            else:
                current.append(ch)
        elif ch == '"' and at_field_start:
            current = []
            in_quotes = True
            at_field_start = False
        elif ch == ",":
            fields.append("".join(current))
            current = []
            at_field_start = True
        else:
            if not ch.isspace():
                at_field_start = False
            current.append(ch)
        i += 1
    fields.append("".join(current))
    return fields


def _to_row(headers: list[str], cells: list[str]) -> dict[str, str]:
    row: dict[str, str] = {}
    for idx, header in enumerate(headers):
        # 重複ヘッダは先勝ち
        if header in row:
            continue
        row[header] = cells[idx] if idx < len(cells) else ""
    return row


def read_csv_bytes(data: bytes, encoding: str = "utf-8-sig") -> RawTable:
    """Decode CSV bytes into a RawTable (first record is the header)."""
    try:
        text = data.decode(encoding)
    except (UnicodeDecodeError, LookupError) as e:
        raise ParseError(f"could not decode CSV as {encoding}: {e}") from e

    records = split_records(text)
    if not records:
        raise ParseError("file contains no data")

    headers = [h.strip().strip('"').lower() for h in split_csv_line(records[0])]
    rows: list[dict[str, str]] = []
    for record in records[1:]:
        cells = split_csv_line(record)
        if not any(c.strip() for c in cells):
            continue
        rows.append(_to_row(headers, cells))

    logger.debug("csv parsed headers=%s rows=%d", headers, len(rows))
    return RawTable(headers=headers, rows=rows)
