from __future__ import annotations

import io

import pandas as pd

from catalog_import.models.canonical_row import CanonicalRow

LONG_DESCRIPTION = "A durable, well-reviewed product with a description over fifty characters."


def make_xlsx(sheets: dict[str, list[list[object]]]) -> bytes:
    """Build an xlsx workbook in memory; first list of each sheet is the header row."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return buf.getvalue()


def product(handle: str, title: str | None = None, **kwargs: str) -> CanonicalRow:
    """CanonicalRow with valid required fields unless overridden."""
    values = {
        "handle": handle,
        "title": title if title is not None else f"Product {handle}",
        "description": LONG_DESCRIPTION,
        "tags": "general",
    }
    values.update(kwargs)
    return CanonicalRow(**values)
