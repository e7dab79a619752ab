import json
import sqlite3

from focus_timer import snapshot_store as snapshot_module
from focus_timer.models import Phase, TimerSnapshot
from focus_timer.repositories import get_setting, set_setting
from focus_timer.snapshot_store import SNAPSHOT_KEY, SnapshotStore


def test_missing_snapshot_is_none(db):
    assert SnapshotStore(db).load() is None


def test_save_overwrites_and_uses_timer_state_key(db):
    store = SnapshotStore(db)
    store.save(TimerSnapshot(True, 100, Phase.WORK, 1000))
    store.save(TimerSnapshot(False, 42, Phase.BREAK, 2000))
    raw = json.loads(get_setting(db, SNAPSHOT_KEY))  # type: ignore[arg-type]
    assert raw == {"isRunning": False, "timeLeft": 42, "isBreak": True, "lastUpdate": 2000}
    assert store.load() == TimerSnapshot(False, 42, Phase.BREAK, 2000)


def test_clear_removes_snapshot(db):
    store = SnapshotStore(db)
    store.save(TimerSnapshot(True, 100, Phase.WORK, 1000))
    assert store.clear() is True
    assert store.load() is None
    assert get_setting(db, SNAPSHOT_KEY) is None


def test_malformed_snapshot_is_treated_as_missing(db):
    store = SnapshotStore(db)
    set_setting(db, SNAPSHOT_KEY, "{not json")
    assert store.load() is None
    set_setting(db, SNAPSHOT_KEY, json.dumps({"isRunning": 1, "timeLeft": "x"}))
    assert store.load() is None
    set_setting(db, SNAPSHOT_KEY, json.dumps([1, 2, 3]))
    assert store.load() is None


def test_write_failure_is_swallowed(db, monkeypatch, caplog):
    def boom(*_args, **_kwargs):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(snapshot_module, "set_setting", boom)
    monkeypatch.setattr(snapshot_module, "delete_setting", boom)
    store = SnapshotStore(db)
    assert store.save(TimerSnapshot(True, 10, Phase.WORK, 1)) is False
    assert store.clear() is False
    assert "snapshot write failed" in caplog.text


def test_read_failure_is_treated_as_missing(db, monkeypatch):
    def boom(*_args, **_kwargs):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(snapshot_module, "get_setting", boom)
    assert SnapshotStore(db).load() is None
