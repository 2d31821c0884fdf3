from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

"""Batched INSERT ... ON CONFLICT DO UPDATE via psycopg2.extras.execute_values.

Table and column names are expected to come from configuration, not from
uploaded data. Values are always passed as parameters.
"""


class BatchUpsertError(Exception):
    pass


@dataclass(frozen=True)
class BatchMetrics:
    """Timing for a single execute_values call."""
    batch_size: int
    elapsed_seconds: float
    start_time: float
    end_time: float


@dataclass(frozen=True)
class UpsertResult:
    upserted_rows: int


def _quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def build_upsert_sql(table: str, columns: Sequence[str], conflict_column: str) -> str:
    cols_sql = ",".join(_quote_ident(c) for c in columns)
    updates = ",".join(
        f"{_quote_ident(c)}=EXCLUDED.{_quote_ident(c)}" for c in columns if c != conflict_column
    )
    sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s ON CONFLICT ({_quote_ident(conflict_column)})"
    if updates:
        sql += f" DO UPDATE SET {updates}"
    else:
        sql += " DO NOTHING"
    return sql


def batch_upsert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    conflict_column: str,
    page_size: int = 500,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> UpsertResult:
    """Upsert `rows` into `table` keyed by `conflict_column`.

    Parameters
    ----------
    cursor: psycopg2 cursor (transaction is managed by the caller)
    table: target table (from config)
    columns: column names, same order as each row
    rows: row value sequences
    conflict_column: unique column used for ON CONFLICT
    page_size: execute_values page_size
    metrics_callback: receives BatchMetrics after the call; not invoked when
        `rows` is empty
    """
    rows_list = [list(r) for r in rows]
    if not rows_list:
        return UpsertResult(upserted_rows=0)

    sql = build_upsert_sql(table, columns, conflict_column)

    start_time = time.time()
    try:
        execute_values(cursor, sql, rows_list, page_size=page_size)
    except Exception as e:
        raise BatchUpsertError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(rows_list),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    return UpsertResult(upserted_rows=len(rows_list))
