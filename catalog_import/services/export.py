from __future__ import annotations

import io
from collections.abc import Sequence
from datetime import date

import pandas as pd

from ..models.canonical_row import CANONICAL_FIELDS, CanonicalRow
from ..readers.formats import FileFormat

"""Export serializer: CanonicalRow list -> CSV or xlsx bytes.

Structural inverse of the readers + normalizer, using the same 8-column
schema. Runs regardless of the validation outcome.
"""

__all__ = [
    "EXPORT_SHEET_NAME",
    "serialize",
    "serialize_csv",
    "serialize_xlsx",
    "export_filename",
]

EXPORT_SHEET_NAME = "Products"


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def serialize_csv(rows: Sequence[CanonicalRow], encoding: str = "utf-8") -> bytes:
    lines = [",".join(CANONICAL_FIELDS)]
    lines.extend(",".join(_quote(v) for v in row.values()) for row in rows)
    return "\n".join(lines).encode(encoding)


def serialize_xlsx(rows: Sequence[CanonicalRow]) -> bytes:
    df = pd.DataFrame([row.values() for row in rows], columns=list(CANONICAL_FIELDS), dtype=str)
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=EXPORT_SHEET_NAME, index=False)
        # openpyxl は "=" 始まりを数式として保存するため文字列に戻す
        sheet = writer.sheets[EXPORT_SHEET_NAME]
        for row in sheet.iter_rows(min_row=2):
            for cell in row:
                if cell.data_type == "f":
                    cell.data_type = "s"
    return buf.getvalue()


def serialize(rows: Sequence[CanonicalRow], fmt: FileFormat) -> bytes:
    if fmt is FileFormat.CSV:
        return serialize_csv(rows)
    return serialize_xlsx(rows)


def export_filename(fmt: FileFormat, today: date | None = None) -> str:
    """Default download name, e.g. products_2024-05-01.csv."""
    day = today or date.today()
    return f"products_{day.isoformat()}{fmt.extension}"
