from __future__ import annotations

import io
import logging
from typing import Any

import pandas as pd

from ..models.raw_table import RawTable
from .formats import ParseError

"""Spreadsheet (xlsx) reader.

Only the first worksheet is read; later sheets are ignored with a warning.
Row 1 is the header row (trimmed, lower-cased), every following non-empty row
is a data row. Cell text is kept as written.
"""

__all__ = [
    "read_xlsx_bytes",
]

logger = logging.getLogger(__name__)


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value)


def read_xlsx_bytes(data: bytes) -> RawTable:
    """Read the first worksheet of an xlsx workbook into a RawTable."""
    try:
        with pd.ExcelFile(io.BytesIO(data), engine="openpyxl") as xls:
            sheet_names = [str(n) for n in xls.sheet_names]
            if not sheet_names:
                raise ParseError("workbook has no worksheets")
            first = sheet_names[0]
            if len(sheet_names) > 1:
                logger.warning(
                    "workbook has %d sheets, only '%s' is imported (ignored: %s)",
                    len(sheet_names),
                    first,
                    sheet_names[1:],
                )
            # 全セルを文字列として読む (NaN 変換なし)
            df = xls.parse(first, header=None, dtype=str, na_filter=False)
    except ParseError:
        raise
    except Exception as e:
        raise ParseError(f"unreadable workbook: {e}") from e

    if df.shape[0] == 0:
        raise ParseError(f"sheet '{first}' contains no data")

    values = df.values.tolist()
    headers = [_cell_text(c).strip().lower() for c in values[0]]
    rows: list[dict[str, str]] = []
    for raw in values[1:]:
        cells = [_cell_text(c) for c in raw]
        if not any(c.strip() for c in cells):
            continue
        row: dict[str, str] = {}
        for header, cell in zip(headers, cells, strict=False):
            if header not in row:
                row[header] = cell
        for header in headers:
            row.setdefault(header, "")
        rows.append(row)

    logger.debug("xlsx parsed sheet=%s headers=%s rows=%d", first, headers, len(rows))
    return RawTable(headers=headers, rows=rows, sheet_name=first)
