import threading
import time

import pytest

from storefront.database import DatabaseNotConnected, FileBackedDB


def test_requires_connect(tmp_path):
    db = FileBackedDB(tmp_path / "fresh")
    with pytest.raises(DatabaseNotConnected):
        db.list_records("orders")
    db.connect()
    assert (tmp_path / "fresh").is_dir()
    assert db.list_records("orders") == []
    db.disconnect()
    with pytest.raises(DatabaseNotConnected):
        db.get_record("orders", "id", "x")


def test_create_get_update(db):
    row = db.create_record("widgets", {"name": "clasp", "notes": "N/A", "price": 12.5})
    assert row["id"]
    got = db.get_record("widgets", "id", row["id"])
    # cells come back as strings; free text like "N/A" is not turned into a blank
    assert got == {"name": "clasp", "notes": "N/A", "price": "12.5", "id": row["id"]}

    updated = db.update_record("widgets", "id", row["id"], {"notes": "", "colour": "gold"})
    assert updated["notes"] == ""
    assert updated["colour"] == "gold"
    assert db.update_record("widgets", "id", "missing", {"notes": "x"}) is None
    assert db.get_record("widgets", "unknown_column", "x") is None


def test_query_filter_sort_and_slice(db):
    for name, price, kind in [("a", "100", "ring"), ("b", "5", "ring"), ("c", "30", "chain"), ("d", "7", "ring")]:
        db.create_record("items", {"name": name, "price": price, "kind": kind})

    rows, total = db.query_records("items", {"kind": "ring"}, sort_by="price", ascending=True)
    assert total == 3
    assert [r["name"] for r in rows] == ["b", "d", "a"]

    rows, total = db.query_records("items", sort_by="price", ascending=False, skip=1, limit=2)
    assert total == 4
    assert [r["name"] for r in rows] == ["c", "d"]

    rows, total = db.query_records("items", sort_by="name", ascending=False)
    assert [r["name"] for r in rows] == ["d", "c", "b", "a"]

    rows, total = db.query_records("items", {"missing_column": "x"})
    assert (rows, total) == ([], 0)

    # unknown sort column keeps file order
    rows, _ = db.query_records("items", sort_by="nope")
    assert [r["name"] for r in rows] == ["a", "b", "c", "d"]


def test_excel_tables(tmp_path):
    db = FileBackedDB(tmp_path, {"orders": "orders.xlsx"}).connect()
    row = db.create_record("orders", {"status": "Delivered"})
    assert (tmp_path / "orders.xlsx").exists()
    assert db.get_record("orders", "id", row["id"])["status"] == "Delivered"


def test_reads_never_see_a_partial_table(db):
    existing = db.create_record("orders", {"status": "Order Confirmed", "notes": "x" * 200})
    stop = threading.Event()
    errors = []

    def writer():
        for _ in range(150):
            if stop.is_set():
                break
            db.create_record("orders", {"status": "Order Confirmed", "notes": "y" * 200})
            time.sleep(0.002)

    def reader():
        try:
            for _ in range(50):
                row = db.get_record("orders", "id", existing["id"])
                if row is None:
                    errors.append("missing")
                _, total = db.query_records("orders", {"id": existing["id"]})
                if total != 1:
                    errors.append(f"total={total}")
        except Exception as exc:  # collected and reported by the assertion below
            errors.append(type(exc).__name__)
        finally:
            stop.set()

    threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    assert errors == []
    assert not list(db.data_dir.glob("*.tmp.csv"))
