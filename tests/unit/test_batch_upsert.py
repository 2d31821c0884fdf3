from __future__ import annotations

import pytest

import catalog_import.db.batch_upsert as bu
from catalog_import.db.batch_upsert import (
    BatchUpsertError,
    UpsertResult,
    batch_upsert,
    build_upsert_sql,
)


class DummyCursor:
    def __init__(self) -> None:
        self.queries: list[str] = []
        self.rows: list[list] = []


# execute_values を差し替え (DB 不要でロジックのみ検証)
@pytest.fixture(autouse=True)
def patch_execute_values(monkeypatch):
    def fake_execute_values(cursor, sql, rows, page_size=100):
        cursor.queries.append(sql)
        cursor.rows.extend(rows)

    monkeypatch.setattr(bu, "execute_values", fake_execute_values)
    return fake_execute_values


def test_build_upsert_sql_updates_all_but_conflict_column():
    sql = build_upsert_sql("products", ["handle", "title", "price"], "handle")
    assert sql == (
        'INSERT INTO products ("handle","title","price") VALUES %s '
        'ON CONFLICT ("handle") DO UPDATE SET "title"=EXCLUDED."title","price"=EXCLUDED."price"'
    )


def test_build_upsert_sql_conflict_only_column_does_nothing():
    assert build_upsert_sql("t", ["handle"], "handle").endswith('ON CONFLICT ("handle") DO NOTHING')


def test_batch_upsert_basic():
    cur = DummyCursor()
    res = batch_upsert(cur, "products", ["handle", "title"], [("p1", "Hat"), ("p2", "Cap")], "handle")
    assert res == UpsertResult(upserted_rows=2)
    assert cur.rows == [["p1", "Hat"], ["p2", "Cap"]]
    assert len(cur.queries) == 1


def test_batch_upsert_empty_rows_skips_execute():
    cur = DummyCursor()
    metrics = []
    res = batch_upsert(cur, "products", ["handle"], [], "handle", metrics_callback=metrics.append)
    assert res.upserted_rows == 0
    assert cur.queries == []
    assert metrics == []


def test_batch_upsert_reports_metrics():
    metrics = []
    batch_upsert(DummyCursor(), "products", ["handle"], [["p1"]], "handle", metrics_callback=metrics.append)
    assert len(metrics) == 1
    assert metrics[0].batch_size == 1
    assert metrics[0].elapsed_seconds >= 0


def test_batch_upsert_wraps_driver_errors(monkeypatch):
    def failing(*args, **kwargs):
        raise RuntimeError("unique violation")

    monkeypatch.setattr(bu, "execute_values", failing)
    metrics = []
    with pytest.raises(BatchUpsertError, match="unique violation"):
        batch_upsert(DummyCursor(), "products", ["handle"], [["p1"]], "handle", metrics_callback=metrics.append)
    assert len(metrics) == 1
