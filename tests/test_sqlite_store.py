# tests/test_sqlite_store.py
from __future__ import annotations

import pytest

from sitedash.errors import FormatError
from sitedash.repositories.db import MIGRATIONS, Database
from sitedash.repositories.sqlite_store import SQLiteStore


def test_migrations_apply_once(tmp_path):
    db = Database(path=str(tmp_path / "m.db"))
    try:
        assert db.run_migrations() == [name for name, _ in MIGRATIONS]
        assert db.run_migrations() == []
        tables = {r[0] for r in db.conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        assert "sheet_rows" in tables
    finally:
        db.close()


def test_insert_list_query(sqlite_store: SQLiteStore):
    assert sqlite_store.insert("Projects", [{"ProjectID": "HT-01", "Name": "A"}, {"ProjectID": "HT-02", "Name": "B"}]) == 2
    assert [r["Name"] for r in sqlite_store.list("Projects")] == ["A", "B"]
    assert sqlite_store.query("Projects", "ProjectID", "HT-02") == [{"ProjectID": "HT-02", "Name": "B"}]
    assert sqlite_store.list("Tasks") == []
    assert sqlite_store.insert("Tasks", []) == 0


def test_query_compares_trimmed_text(sqlite_store: SQLiteStore):
    sqlite_store.insert("Expenses", [{"ProjectID": " HT-01 ", "Amount": 10}, {"ProjectID": "HT-010", "Amount": 5}])
    assert len(sqlite_store.query("Expenses", "ProjectID", "HT-01")) == 1


def test_update_with_extra_match(sqlite_store: SQLiteStore):
    sqlite_store.insert("Tasks", [
        {"ProjectID": "HT-01", "TaskName": "1. A", "Status": "Pending"},
        {"ProjectID": "HT-01", "TaskName": "2. B", "Status": "Pending"},
        {"ProjectID": "HT-02", "TaskName": "1. A", "Status": "Pending"},
    ])
    n = sqlite_store.update("Tasks", "ProjectID", "HT-01", {"Status": "Completed"}, extra_match={"TaskName": "1. A"})
    assert n == 1
    statuses = [(r["ProjectID"], r["TaskName"], r["Status"]) for r in sqlite_store.list("Tasks")]
    assert statuses == [
        ("HT-01", "1. A", "Completed"),
        ("HT-01", "2. B", "Pending"),
        ("HT-02", "1. A", "Pending"),
    ]
    assert sqlite_store.update("Tasks", "ProjectID", "HT-09", {"Status": "Completed"}) == 0


def test_delete_counts(sqlite_store: SQLiteStore):
    sqlite_store.insert("Materials", [{"ProjectID": "HT-01"}, {"ProjectID": "HT-01"}, {"ProjectID": "HT-02"}])
    assert sqlite_store.delete("Materials", "ProjectID", "HT-01") == 2
    assert sqlite_store.delete("Materials", "ProjectID", "HT-01") == 0
    assert len(sqlite_store.list("Materials")) == 1


def test_corrupt_row_is_a_format_error(sqlite_store: SQLiteStore):
    sqlite_store._db.conn.execute("INSERT INTO sheet_rows(sheet, data) VALUES ('Projects', '{broken')")
    with pytest.raises(FormatError):
        sqlite_store.list("Projects")


def test_persists_across_reopen(tmp_path):
    path = str(tmp_path / "p.db")
    s = SQLiteStore.open(path)
    s.insert("Projects", [{"ProjectID": "HT-01"}])
    s.close()
    s = SQLiteStore.open(path)
    try:
        assert s.query("Projects", "ProjectID", "HT-01")
    finally:
        s.close()
