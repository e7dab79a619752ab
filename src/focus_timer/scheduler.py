from __future__ import annotations

"""One-shot callback scheduling used to drive timer ticks."""

from typing import Callable, Protocol

from PyQt6.QtCore import QObject, QTimer


class TickScheduler(Protocol):
    def schedule_in(self, seconds: float, callback: Callable[[], None]) -> object: ...

    def cancel(self, handle: object) -> None: ...


class QtTickScheduler(QObject):
    """Each scheduled call gets its own single-shot QTimer so it can be cancelled."""

    def __init__(self, parent: QObject | None = None):
        super().__init__(parent)
        self._pending: set[QTimer] = set()

    def schedule_in(self, seconds: float, callback: Callable[[], None]) -> QTimer:
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.setInterval(max(0, int(seconds * 1000)))

        def fire() -> None:
            self._discard(timer)
            callback()

        timer.timeout.connect(fire)
        self._pending.add(timer)
        timer.start()
        return timer

    def cancel(self, handle: object) -> None:
        if isinstance(handle, QTimer) and handle in self._pending:
            handle.stop()
            self._discard(handle)

    def _discard(self, timer: QTimer) -> None:
        self._pending.discard(timer)
        timer.deleteLater()

    @property
    def pending_count(self) -> int:
        return len(self._pending)


__all__ = ["TickScheduler", "QtTickScheduler"]
