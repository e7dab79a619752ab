from __future__ import annotations

import sys
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os

from PyQt6.QtCore import QObject, Qt
from PyQt6.QtGui import QColor, QIcon, QPainter, QPixmap
from PyQt6.QtWidgets import QApplication, QMenu, QSystemTrayIcon

from .database_manager import DBConfig, DatabaseManager
from .logging_setup import configure_logging
from .models import Phase, TimerState, format_remaining
from .notifications import NotificationDispatcher, QtTonePlayer, TrayNotifier
from .scheduler import QtTickScheduler
from .settings_store import TimerSettingsStore
from .snapshot_store import SnapshotStore
from .timer_engine import TimerEngine


APP_NAME = "Focus Timer"
DATA_DIR_ENV = "FOCUS_TIMER_DATA_DIR"
PHASE_COLORS = {Phase.WORK: "#3b82f6", Phase.BREAK: "#10b981"}


@dataclass(slots=True)
class AppState:
    data_dir: Path
    db: DatabaseManager
    settings: TimerSettingsStore
    notifier: NotificationDispatcher
    engine: TimerEngine


def resolve_data_dir() -> Path:
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path(__file__).resolve().parent.parent.parent / "data"


def get_app_state(tray: QSystemTrayIcon | None = None, data_dir: Path | None = None) -> AppState:
    data_dir = data_dir or resolve_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    # Logging first
    configure_logging(data_dir)
    db = DatabaseManager(DBConfig(path=data_dir / "focus_timer.sqlite"))
    db.init_db()
    settings = TimerSettingsStore(db)
    notifier = NotificationDispatcher(db, tone_player=QtTonePlayer(), visual=TrayNotifier(tray))
    engine = TimerEngine(settings, SnapshotStore(db), QtTickScheduler(), notifier=notifier)
    logging.getLogger(__name__).info(
        "app_state_created", extra={"_json_data_dir": str(data_dir)}
    )
    return AppState(data_dir=data_dir, db=db, settings=settings, notifier=notifier, engine=engine)


def _phase_icon(phase: Phase, size: int = 32) -> QIcon:  # pragma: no cover UI
    pm = QPixmap(size, size)
    pm.fill(Qt.GlobalColor.transparent)
    painter = QPainter(pm)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)
    painter.setBrush(QColor(PHASE_COLORS[phase]))
    painter.setPen(Qt.PenStyle.NoPen)
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pm)


class TrayController(QObject):  # pragma: no cover - UI glue
    """Tray icon forwarding Start/Pause and Reset into the engine."""

    def __init__(self, tray: QSystemTrayIcon, state: AppState) -> None:
        super().__init__(tray)
        self._tray = tray
        self._engine = state.engine

        self._menu = QMenu()
        self._act_toggle = self._menu.addAction("Start")
        self._act_reset = self._menu.addAction("Reset")
        self._act_notify = self._menu.addAction("Notifications")
        self._act_notify.setCheckable(True)
        self._act_notify.setChecked(state.notifier.is_enabled())
        self._menu.addSeparator()
        self._act_quit = self._menu.addAction("Quit")
        self._tray.setContextMenu(self._menu)

        self._act_toggle.triggered.connect(self._engine.toggle)
        self._act_reset.triggered.connect(self._engine.reset)
        self._act_notify.toggled.connect(state.notifier.set_enabled)
        self._act_quit.triggered.connect(QApplication.instance().quit)  # type: ignore[union-attr]
        self._tray.activated.connect(self._on_activated)
        self._engine.state_changed.connect(self._render)
        self._render(self._engine.state())

    def _on_activated(self, reason: QSystemTrayIcon.ActivationReason) -> None:
        if reason == QSystemTrayIcon.ActivationReason.Trigger:
            self._engine.toggle()

    def _render(self, state: TimerState) -> None:
        label = "Focus" if state.phase is Phase.WORK else "Break"
        status = "" if state.running else " (paused)"
        self._tray.setToolTip(f"{APP_NAME}: {label} {format_remaining(state.remaining_seconds)}{status}")
        self._tray.setIcon(_phase_icon(state.phase))
        self._act_toggle.setText("Pause" if state.running else "Start")


def run(argv: Optional[list[str]] = None) -> int:  # pragma: no cover
    if argv is None:
        argv = sys.argv
    app = QApplication(argv)
    app.setQuitOnLastWindowClosed(False)
    # A catch-up transition notifies from the engine constructor
    tray = QSystemTrayIcon(_phase_icon(Phase.WORK))
    tray.setVisible(True)
    state = get_app_state(tray)
    TrayController(tray, state)
    state.notifier.ensure_permission()
    app.aboutToQuit.connect(state.engine.shutdown)
    app.aboutToQuit.connect(state.db.close)
    return app.exec()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(run())
