from __future__ import annotations

"""Durable storage for the single timer snapshot.

The snapshot is a JSON object kept under the ``timerState`` key of the
settings table. Reads never raise: a missing, unparsable or mistyped value is
reported as "no snapshot". Writes are best-effort; a failed write is logged and
the next successful one overwrites whatever is stored.
"""

import json
import logging
import sqlite3

from .database_manager import DatabaseManager
from .models import TimerSnapshot
from .repositories import delete_setting, get_setting, set_setting

SNAPSHOT_KEY = "timerState"
_log = logging.getLogger(__name__)


class SnapshotStore:
    def __init__(self, db: DatabaseManager, key: str = SNAPSHOT_KEY) -> None:
        self._db = db
        self._key = key

    def save(self, snapshot: TimerSnapshot) -> bool:
        try:
            set_setting(self._db, self._key, json.dumps(snapshot.to_dict()))
        except sqlite3.Error as e:
            _log.warning("snapshot write failed: %s", e, extra={"_json_key": self._key})
            return False
        return True

    def load(self) -> TimerSnapshot | None:
        try:
            raw = get_setting(self._db, self._key)
        except sqlite3.Error as e:
            _log.warning("snapshot read failed: %s", e, extra={"_json_key": self._key})
            return None
        if not raw:
            return None
        try:
            return TimerSnapshot.from_dict(json.loads(raw))
        except ValueError as e:  # JSONDecodeError is a ValueError too
            _log.warning("discarding malformed snapshot: %s", e, extra={"_json_key": self._key})
            return None

    def clear(self) -> bool:
        try:
            delete_setting(self._db, self._key)
        except sqlite3.Error as e:
            _log.warning("snapshot clear failed: %s", e, extra={"_json_key": self._key})
            return False
        return True


__all__ = ["SnapshotStore", "SNAPSHOT_KEY"]
