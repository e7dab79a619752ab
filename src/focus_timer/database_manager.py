"""SQLite file holding everything the timer keeps between runs.

A single key/value ``settings`` table stores the work/break durations, the
notification opt-out and the serialized timer snapshot. ``init_db`` only
creates what is missing, so it is safe to call on every launch.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import sqlite3
from typing import Iterable


SCHEMA = """
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


@dataclass(slots=True)
class DBConfig:
    path: Path
    # snapshot is rewritten every tick
    journal_mode: str = "WAL"
    synchronous: str = "NORMAL"


class DatabaseManager:
    def __init__(self, config: DBConfig):
        self.config = config
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        if self._conn is None:
            self.config.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.config.path)
            conn.row_factory = sqlite3.Row
            conn.execute(f"PRAGMA journal_mode={self.config.journal_mode}")
            conn.execute(f"PRAGMA synchronous={self.config.synchronous}")
            self._conn = conn
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def init_db(self) -> None:
        conn = self.connect()
        with conn:
            conn.executescript(SCHEMA)

    def query_one(self, sql: str, params: Iterable | None = None) -> sqlite3.Row | None:
        return self.connect().execute(sql, params or []).fetchone()


__all__ = ["DBConfig", "DatabaseManager"]
