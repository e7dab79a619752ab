from __future__ import annotations

"""TimerSettingsStore keeps the work/break durations with a change signal."""

import json
import logging
from pathlib import Path

from PyQt6.QtCore import QObject, pyqtSignal

from .database_manager import DatabaseManager
from .models import TimerSettings, TimerSettingsError
from .repositories import get_setting, set_setting


WORK_KEY = "timer.work_minutes"
BREAK_KEY = "timer.break_minutes"
_log = logging.getLogger(__name__)


class TimerSettingsStore(QObject):
    changed = pyqtSignal(object)  # TimerSettings

    def __init__(self, db: DatabaseManager, defaults: TimerSettings | None = None):
        super().__init__()
        self._db = db
        self._defaults = defaults or TimerSettings()
        self._cached: TimerSettings | None = None

    # --- Access ---------------------------------------------------------
    def get(self) -> TimerSettings:
        if self._cached is None:
            self._cached = self._load()
        return self._cached

    def _load(self) -> TimerSettings:
        work = self._read_int(WORK_KEY, self._defaults.work_minutes)
        brk = self._read_int(BREAK_KEY, self._defaults.break_minutes)
        try:
            return TimerSettings(work_minutes=work, break_minutes=brk).validate()
        except TimerSettingsError as e:
            _log.warning("stored timer settings invalid, using defaults: %s", e)
            return self._defaults

    def _read_int(self, key: str, default: int) -> int:
        v = get_setting(self._db, key)
        if not v:
            return default
        try:
            return int(v)
        except ValueError:
            return default

    # --- Update ---------------------------------------------------------
    def update(self, settings: TimerSettings) -> TimerSettings:
        settings.validate()
        set_setting(self._db, WORK_KEY, str(settings.work_minutes))
        set_setting(self._db, BREAK_KEY, str(settings.break_minutes))
        self._cached = settings
        _log.info(
            "timer settings updated",
            extra={"_json_work": settings.work_minutes, "_json_break": settings.break_minutes},
        )
        self.changed.emit(settings)
        return settings

    # --- Export/Import --------------------------------------------------
    def export_json(self, path: Path) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.get().to_dict(), f, indent=2)

    @staticmethod
    def read_json(path: Path) -> TimerSettings:
        """Parse an exported settings file; TimerSettingsError if unusable."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise TimerSettingsError(f"cannot read settings file {path}: {e}") from e
        if not isinstance(data, dict):
            raise TimerSettingsError("settings file must contain a JSON object")
        return TimerSettings.from_dict(data)


__all__ = ["TimerSettingsStore", "WORK_KEY", "BREAK_KEY"]
