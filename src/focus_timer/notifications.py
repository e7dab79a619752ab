from __future__ import annotations

"""Phase-end notifications: a synthesized tone and a system tray message.

Both channels are best-effort. Any failure (no audio device, QtMultimedia
missing, no system tray, permission withdrawn) is logged and dropped so the
timer keeps running regardless.

Permission model:
 - DEFAULT until the first request, which happens lazily on first dispatch
   (or earlier if the app calls ``ensure_permission`` at startup).
 - GRANTED when the platform has a tray that can show messages and the user
   has not muted notifications (``notifications.enabled`` setting).
 - DENIED otherwise; the visual channel is skipped silently. The audible cue
   does not depend on permission.
"""

import logging
import math
import struct
from enum import Enum
from typing import Callable, Optional, Protocol

from PyQt6.QtCore import QObject, pyqtSignal

from .database_manager import DatabaseManager
from .models import PhaseEndEvent
from .repositories import get_setting, set_setting

NOTIFY_ENABLED_KEY = "notifications.enabled"
APP_TITLE = "Focus Timer"

TONE_FREQUENCY_HZ = 800.0
TONE_DURATION_S = 1.0
TONE_SAMPLE_RATE = 22050
TONE_START_GAIN = 0.3
TONE_END_GAIN = 0.01

_log = logging.getLogger(__name__)


class NotificationError(RuntimeError):
    pass


class NotificationPermission(str, Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


def synthesize_tone(
    frequency: float = TONE_FREQUENCY_HZ,
    duration: float = TONE_DURATION_S,
    sample_rate: int = TONE_SAMPLE_RATE,
    start_gain: float = TONE_START_GAIN,
    end_gain: float = TONE_END_GAIN,
) -> bytes:
    """Render a sine beep as 16-bit little-endian mono PCM.

    Gain falls exponentially from ``start_gain`` to ``end_gain`` over the
    duration, which gives the soft decaying "ding" rather than a hard cut.
    """
    n_frames = int(sample_rate * duration)
    if n_frames <= 0:
        return b""
    ratio = end_gain / start_gain
    samples = []
    for i in range(n_frames):
        t = i / sample_rate
        gain = start_gain * ratio ** (t / duration)
        samples.append(int(32767 * gain * math.sin(2 * math.pi * frequency * t)))
    return struct.pack(f"<{n_frames}h", *samples)


class TonePlayer(Protocol):
    def play(self, pcm: bytes, sample_rate: int) -> None: ...


class VisualNotifier(Protocol):
    def is_available(self) -> bool: ...

    def show(self, title: str, body: str) -> None: ...


class QtTonePlayer(QObject):  # pragma: no cover - needs an audio device
    """Plays raw PCM through the default output with QAudioSink."""

    def __init__(self, parent: QObject | None = None):
        super().__init__(parent)
        self._active: list[tuple[object, object]] = []

    def play(self, pcm: bytes, sample_rate: int) -> None:
        try:
            from PyQt6.QtCore import QBuffer, QByteArray, QIODevice
            from PyQt6.QtMultimedia import QAudioFormat, QAudioSink, QMediaDevices
        except ImportError as e:
            raise NotificationError(f"QtMultimedia unavailable: {e}") from e

        device = QMediaDevices.defaultAudioOutput()
        if device.isNull():
            raise NotificationError("no audio output device")
        fmt = QAudioFormat()
        fmt.setSampleRate(sample_rate)
        fmt.setChannelCount(1)
        fmt.setSampleFormat(QAudioFormat.SampleFormat.Int16)
        if not device.isFormatSupported(fmt):
            raise NotificationError("audio device rejects 16-bit mono output")

        sink = QAudioSink(device, fmt, self)
        buf = QBuffer(self)
        buf.setData(QByteArray(pcm))
        buf.open(QIODevice.OpenModeFlag.ReadOnly)
        entry = (sink, buf)
        sink.stateChanged.connect(lambda state: self._on_state(entry, state))
        self._active.append(entry)
        sink.start(buf)

    def _on_state(self, entry, state) -> None:
        from PyQt6.QtMultimedia import QAudio

        if state not in (QAudio.State.IdleState, QAudio.State.StoppedState):
            return
        if entry not in self._active:
            return
        self._active.remove(entry)
        sink, buf = entry
        sink.stop()
        buf.close()
        sink.deleteLater()
        buf.deleteLater()


class TrayNotifier:  # pragma: no cover - needs a desktop session
    """Shows balloon messages through a QSystemTrayIcon."""

    def __init__(self, tray=None, timeout_ms: int = 5000):
        self._tray = tray
        self._timeout_ms = timeout_ms

    def is_available(self) -> bool:
        from PyQt6.QtWidgets import QApplication, QSystemTrayIcon

        if QApplication.instance() is None:
            return False
        return QSystemTrayIcon.isSystemTrayAvailable() and QSystemTrayIcon.supportsMessages()

    def show(self, title: str, body: str) -> None:
        from PyQt6.QtGui import QIcon
        from PyQt6.QtWidgets import QSystemTrayIcon

        if self._tray is None:
            if not self.is_available():
                raise NotificationError("system tray unavailable")
            self._tray = QSystemTrayIcon(QIcon())
            self._tray.setToolTip(APP_TITLE)
            self._tray.setVisible(True)
        self._tray.showMessage(title, body, QSystemTrayIcon.MessageIcon.Information, self._timeout_ms)


class NotificationDispatcher(QObject):
    permission_changed = pyqtSignal(object)  # NotificationPermission
    dispatched = pyqtSignal(object)  # PhaseEndEvent

    def __init__(
        self,
        db: Optional[DatabaseManager] = None,
        tone_player: Optional[TonePlayer] = None,
        visual: Optional[VisualNotifier] = None,
        tone_factory: Callable[[], bytes] = synthesize_tone,
        sample_rate: int = TONE_SAMPLE_RATE,
    ) -> None:
        super().__init__()
        self._db = db
        self._tone_player = tone_player
        self._visual = visual
        self._tone_factory = tone_factory
        self._sample_rate = sample_rate
        self._tone: bytes | None = None
        self._permission = NotificationPermission.DEFAULT

    # --- Permission ----------------------------------------------------
    @property
    def permission(self) -> NotificationPermission:
        return self._permission

    def ensure_permission(self) -> NotificationPermission:
        if self._permission is NotificationPermission.DEFAULT:
            return self.request_permission()
        return self._permission

    def request_permission(self) -> NotificationPermission:
        granted = False
        try:
            granted = self.is_enabled() and self._visual is not None and self._visual.is_available()
        except Exception as e:
            _log.warning("notification permission check failed: %s", e)
        new = NotificationPermission.GRANTED if granted else NotificationPermission.DENIED
        if new is not self._permission:
            self._permission = new
            _log.info("notification permission %s", new.value, extra={"_json_permission": new.value})
            self.permission_changed.emit(new)
        return new

    def is_enabled(self) -> bool:
        if self._db is None:
            return True
        return get_setting(self._db, NOTIFY_ENABLED_KEY) != "0"

    def set_enabled(self, enabled: bool) -> NotificationPermission:
        if self._db is not None:
            set_setting(self._db, NOTIFY_ENABLED_KEY, "1" if enabled else "0")
        return self.request_permission()

    # --- Dispatch -------------------------------------------------------
    def dispatch(self, event: PhaseEndEvent) -> None:
        self._play_tone()
        self._show_visual(event)
        self.dispatched.emit(event)

    def _play_tone(self) -> None:
        if self._tone_player is None:
            return
        try:
            if self._tone is None:
                self._tone = self._tone_factory()
            self._tone_player.play(self._tone, self._sample_rate)
        except Exception as e:
            _log.warning("could not play notification sound: %s", e)

    def _show_visual(self, event: PhaseEndEvent) -> None:
        if self.ensure_permission() is not NotificationPermission.GRANTED:
            return
        try:
            self._visual.show(event.title, event.body)  # type: ignore[union-attr]
        except Exception as e:
            _log.warning(
                "could not show notification: %s", e, extra={"_json_phase": event.ended.value}
            )


__all__ = [
    "NotificationDispatcher",
    "NotificationError",
    "NotificationPermission",
    "QtTonePlayer",
    "TrayNotifier",
    "synthesize_tone",
    "NOTIFY_ENABLED_KEY",
]
