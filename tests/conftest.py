# Rev 0.1.0

"""Pytest fixtures for sitedash (Rev 0.1.0)"""
from __future__ import annotations

import threading
from concurrent.futures import Executor, Future
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

import pytest

from sitedash.errors import StoreError
from sitedash.repositories.record_store import Record, RecordStore, build_match, matches
from sitedash.repositories.sqlite_store import SQLiteStore

TODAY = date(2023, 3, 15)


# --- A tiny in-memory stub store just for unit tests --------------------------

class MemoryStore(RecordStore):
    """
    Dict-of-lists store with failure injection:
      fail[(op, collection)] = StoreError(...)   raise on that call
      confirm_limit[collection] = n              insert confirms at most n rows
    """

    name = "memory"

    def __init__(self, rows: Optional[Mapping[str, Iterable[Mapping[str, Any]]]] = None):
        self.rows: Dict[str, List[Record]] = {k: [dict(r) for r in v] for k, v in (rows or {}).items()}
        self.fail: Dict[Tuple[str, str], StoreError] = {}
        self.confirm_limit: Dict[str, int] = {}
        self.calls: List[Tuple[str, str]] = []
        self.on_query: Optional[Callable[[str, str, Any], None]] = None
        self._lock = threading.Lock()

    def _check(self, op: str, collection: str) -> None:
        with self._lock:
            self.calls.append((op, collection))
        err = self.fail.get((op, collection))
        if err is not None:
            raise err

    def list(self, collection: str) -> List[Record]:
        self._check("list", collection)
        return [dict(r) for r in self.rows.get(collection, [])]

    def query(self, collection: str, field: str, value: Any) -> List[Record]:
        self._check("query", collection)
        if self.on_query is not None:
            self.on_query(collection, field, value)
        return [dict(r) for r in self.rows.get(collection, []) if matches(r, {field: value})]

    def insert(self, collection: str, records: Iterable[Mapping[str, Any]]) -> int:
        self._check("insert", collection)
        rows = [dict(r) for r in records]
        rows = rows[: self.confirm_limit.get(collection, len(rows))]
        self.rows.setdefault(collection, []).extend(rows)
        return len(rows)

    def update(self, collection, match_field, match_value, patch, *, extra_match=None) -> int:
        self._check("update", collection)
        criteria = build_match(match_field, match_value, extra_match)
        n = 0
        for r in self.rows.get(collection, []):
            if matches(r, criteria):
                r.update(patch)
                n += 1
        return n

    def delete(self, collection: str, match_field: str, match_value: Any) -> int:
        self._check("delete", collection)
        keep, gone = [], 0
        for r in self.rows.get(collection, []):
            if matches(r, {match_field: match_value}):
                gone += 1
            else:
                keep.append(r)
        self.rows[collection] = keep
        return gone


class ImmediateExecutor(Executor):
    """Runs submitted work inline; keeps viewmodel tests single-threaded."""

    def submit(self, fn, *args, **kwargs):
        fut: Future = Future()
        try:
            fut.set_result(fn(*args, **kwargs))
        except Exception as e:  # handed to the future like a pool would
            fut.set_exception(e)
        return fut


# --- Fixtures --------------------------------------------------------------

@pytest.fixture()
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def sqlite_store(tmp_path: Path):
    store = SQLiteStore.open(str(tmp_path / "test.db"))
    try:
        yield store
    finally:
        store.close()


@pytest.fixture()
def today() -> date:
    return TODAY


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtCore import QCoreApplication
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture()
def immediate_executor() -> ImmediateExecutor:
    return ImmediateExecutor()
