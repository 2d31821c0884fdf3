from __future__ import annotations

import pytest

from catalog_import.db.memory_store import InMemoryCatalog
from catalog_import.models.import_session import SnapshotContext
from tests.helpers import product


def test_write_upserts_by_handle():
    catalog = InMemoryCatalog([product("p1", "Old")])
    catalog.apply_catalog_write([product("p1", "New"), product("p2")])
    assert catalog.products["p1"].title == "New"
    assert set(catalog.products) == {"p1", "p2"}


def test_snapshot_then_restore():
    catalog = InMemoryCatalog([product("p1", "Old")])
    snap = catalog.create_snapshot(SnapshotContext("bulk_csv", 1))
    catalog.apply_catalog_write([product("p1", "New"), product("p2")])

    assert catalog.restore(snap.snapshot_id) == 1
    assert catalog.products["p1"].title == "Old"
    assert snap.product_count == 1


def test_restore_unknown_snapshot():
    with pytest.raises(LookupError):
        InMemoryCatalog().restore("nope")
