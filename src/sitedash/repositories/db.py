# Rev 0.1.0

"""SQLite connection & migration runner (Rev 0.1.0)
- WAL mode, foreign_keys=ON
- Applies the embedded MIGRATIONS in lexical order
- Tracks applied names in schema_migrations(filename TEXT PRIMARY KEY, applied_at UTC)
"""
from __future__ import annotations
import logging
import sqlite3
from pathlib import Path
from datetime import datetime, timezone
from typing import Sequence, Tuple

from sitedash.utils.paths import DB_PATH, ensure_dirs

log = logging.getLogger("sitedash.db")

# One JSON document per spreadsheet row; the sheet name plays the table's role.
MIGRATIONS: Sequence[Tuple[str, str]] = (
    (
        "0001_sheet_rows.sql",
        """
        CREATE TABLE IF NOT EXISTS sheet_rows (
            id             INTEGER PRIMARY KEY AUTOINCREMENT,
            sheet          TEXT NOT NULL,
            data           TEXT NOT NULL,
            created_at_utc TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at_utc TEXT
        );
        CREATE INDEX IF NOT EXISTS idx_sheet_rows_sheet ON sheet_rows(sheet);
        """,
    ),
)


class Database:
    def __init__(self, path: Path | str = DB_PATH) -> None:
        self.path = str(path)
        if self.path != ":memory:":
            ensure_dirs()
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.path, isolation_level=None, check_same_thread=False)
        self.conn.execute("PRAGMA journal_mode=WAL;")
        self.conn.execute("PRAGMA foreign_keys=ON;")
        self.conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_migrations (filename TEXT PRIMARY KEY, applied_at TEXT NOT NULL)"
        )
        log.info("SQLite open %s", self.path)

    def close(self) -> None:
        self.conn.close()

    def applied(self) -> set[str]:
        rows = self.conn.execute("SELECT filename FROM schema_migrations").fetchall()
        return {r[0] for r in rows}

    def apply_sql(self, sql: str) -> None:
        self.conn.executescript(sql)

    def run_migrations(self, migrations: Sequence[Tuple[str, str]] = MIGRATIONS) -> list[str]:
        applied = self.applied()
        to_apply = [(name, sql) for name, sql in sorted(migrations) if name not in applied]
        for name, sql in to_apply:
            self.apply_sql(sql)
            self.conn.execute(
                "INSERT INTO schema_migrations(filename, applied_at) VALUES(?, ?)",
                (name, datetime.now(timezone.utc).isoformat()),
            )
            log.info("Applied migration %s", name)
        return [name for name, _ in to_apply]
