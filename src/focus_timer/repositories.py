from __future__ import annotations

"""Key/value helpers over the ``settings`` table."""

from .database_manager import DatabaseManager


def get_setting(db: DatabaseManager, key: str) -> str | None:
    row = db.query_one("SELECT value FROM settings WHERE key=?", (key,))
    return row["value"] if row else None


def set_setting(db: DatabaseManager, key: str, value: str) -> None:
    conn = db.connect()
    with conn:
        conn.execute(
            "INSERT INTO settings(key, value) VALUES(?, ?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
            (key, value),
        )


def delete_setting(db: DatabaseManager, key: str) -> None:
    conn = db.connect()
    with conn:
        conn.execute("DELETE FROM settings WHERE key=?", (key,))


__all__ = ["get_setting", "set_setting", "delete_setting"]
