"""Format readers: raw upload bytes -> RawTable."""

from __future__ import annotations

from ..models.raw_table import RawTable
from .csv_reader import read_csv_bytes, split_csv_line, split_records
from .excel_reader import read_xlsx_bytes
from .formats import FileFormat, ParseError, detect_format

__all__ = [
    "FileFormat",
    "ParseError",
    "detect_format",
    "parse",
    "read_csv_bytes",
    "read_xlsx_bytes",
    "split_csv_line",
    "split_records",
]


def parse(data: bytes, fmt: FileFormat, *, encoding: str = "utf-8-sig") -> RawTable:
    """Decode `data` with the reader for `fmt`. Raises ParseError."""
    if fmt is FileFormat.CSV:
        return read_csv_bytes(data, encoding=encoding)
    if fmt is FileFormat.XLSX:
        return read_xlsx_bytes(data)
    raise ParseError(f"unsupported file format: {fmt}")
