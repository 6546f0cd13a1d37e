# Rev 0.1.0
# src/sitedash/repositories/sqlite_store.py
from __future__ import annotations

import json
import logging
import sqlite3
import threading
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from sitedash.errors import FormatError, TransportError
from sitedash.repositories.db import Database
from sitedash.repositories.record_store import Record, RecordStore, build_match, matches

log = logging.getLogger("sitedash.repositories.sqlite")


class SQLiteStore(RecordStore):
    """
    Local, offline record store: each sheet row is one JSON document in
    sheet_rows. Same contract and matching rules as the remote sheets, so the
    dashboard cannot tell the difference.
    Access is serialized with a lock; the dashboard reads from worker threads.
    """

    name = "sqlite"

    def __init__(self, db: Database):
        self._db = db
        self._lock = threading.RLock()

    @classmethod
    def open(cls, path: str) -> "SQLiteStore":
        db = Database(path)
        db.run_migrations()
        return cls(db)

    def close(self) -> None:
        self._db.close()

    # --- internals ------------------------------------------------------------

    def _fetch(self, collection: str) -> List[Tuple[int, Record]]:
        try:
            cur = self._db.conn.execute(
                "SELECT id, data FROM sheet_rows WHERE sheet = ? ORDER BY id", (collection,)
            )
            raw = cur.fetchall()
        except sqlite3.Error as e:
            log.exception("Reading %s failed", collection)
            raise TransportError(f"Local store error reading {collection}: {e}", collection=collection) from e
        out: List[Tuple[int, Record]] = []
        for row_id, data in raw:
            try:
                rec = json.loads(data)
            except ValueError as e:
                raise FormatError(f"Row {row_id} in {collection} is not valid JSON", collection=collection) from e
            if isinstance(rec, dict):
                out.append((row_id, rec))
        return out

    def _write(self, collection: str, statements: Iterable[Tuple[str, tuple]]) -> None:
        con = self._db.conn
        try:
            con.execute("BEGIN;")
            for sql, params in statements:
                con.execute(sql, params)
        except sqlite3.Error as e:
            con.execute("ROLLBACK;")
            log.exception("Writing %s failed", collection)
            raise TransportError(f"Local store error writing {collection}: {e}", collection=collection) from e
        else:
            con.execute("COMMIT;")

    @staticmethod
    def _dump(rec: Mapping[str, Any]) -> str:
        return json.dumps(dict(rec), default=str, ensure_ascii=False)

    # --- RecordStore ------------------------------------------------------------

    def list(self, collection: str) -> List[Record]:
        with self._lock:
            return [rec for _, rec in self._fetch(collection)]

    def insert(self, collection: str, records: Iterable[Mapping[str, Any]]) -> int:
        rows = [self._dump(r) for r in records]
        if not rows:
            return 0
        with self._lock:
            self._write(
                collection,
                [("INSERT INTO sheet_rows(sheet, data) VALUES (?, ?)", (collection, data)) for data in rows],
            )
        log.debug("Inserted %s row(s) into %s", len(rows), collection)
        return len(rows)

    def update(
        self,
        collection: str,
        match_field: str,
        match_value: Any,
        patch: Mapping[str, Any],
        *,
        extra_match: Optional[Mapping[str, Any]] = None,
    ) -> int:
        criteria = build_match(match_field, match_value, extra_match)
        with self._lock:
            hits = [(row_id, rec) for row_id, rec in self._fetch(collection) if matches(rec, criteria)]
            self._write(
                collection,
                [
                    (
                        "UPDATE sheet_rows SET data = ?, updated_at_utc = datetime('now') WHERE id = ?",
                        (self._dump({**rec, **patch}), row_id),
                    )
                    for row_id, rec in hits
                ],
            )
        return len(hits)

    def delete(self, collection: str, match_field: str, match_value: Any) -> int:
        with self._lock:
            ids = [row_id for row_id, rec in self._fetch(collection) if matches(rec, {match_field: match_value})]
            self._write(collection, [("DELETE FROM sheet_rows WHERE id = ?", (row_id,)) for row_id in ids])
        return len(ids)
