from __future__ import annotations

"""Work/break countdown engine with restart recovery.

Design:
 - State is (phase, remaining_seconds, running); every mutation is mirrored
   into the persisted TimerSnapshot and announced through ``state_changed``.
 - The constructor restores the last snapshot and reconciles it against the
   wall clock before anything is scheduled, so no tick can see stale state.
 - Ticks are one-shot callbacks from an injected TickScheduler; at most one is
   pending at any time.
 - Reaching zero flips the phase, reloads the duration from settings, pauses
   the engine and dispatches a notification.
"""

import logging
import time
from typing import Callable, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from .models import (
    Phase,
    PhaseEndEvent,
    TimerSettings,
    TimerSnapshot,
    TimerState,
    phase_end_event,
)
from .notifications import NotificationDispatcher
from .scheduler import TickScheduler
from .settings_store import TimerSettingsStore
from .snapshot_store import SnapshotStore

TimeProvider = Callable[[], int]  # epoch milliseconds

_log = logging.getLogger(__name__)


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class TimerEngine(QObject):
    state_changed = pyqtSignal(object)  # TimerState
    phase_finished = pyqtSignal(object)  # PhaseEndEvent

    def __init__(
        self,
        settings: TimerSettingsStore,
        store: SnapshotStore,
        scheduler: TickScheduler,
        notifier: Optional[NotificationDispatcher] = None,
        time_provider: Optional[TimeProvider] = None,
        tick_interval: float = 1.0,
    ) -> None:
        super().__init__()
        self._settings = settings
        self._store = store
        self._scheduler = scheduler
        self._notifier = notifier
        self._time_provider: TimeProvider = time_provider or _epoch_ms
        self._tick_interval = tick_interval

        self._tick_handle: object | None = None
        self._ready = False
        self._closed = False

        cfg = self._settings.get()
        self._phase: Phase = Phase.WORK
        self._remaining: int = cfg.full_duration(Phase.WORK)
        self._running: bool = False

        self._restore()
        self._persist()
        self._ready = True
        if self._running:
            self._schedule_tick()
        self._emit_state()

    # --- Properties -----------------------------------------------------
    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def settings(self) -> TimerSettings:
        return self._settings.get()

    def full_duration(self, phase: Phase | None = None) -> int:
        return self._settings.get().full_duration(phase or self._phase)

    @property
    def progress_percent(self) -> float:
        return self.state().progress_percent

    def state(self) -> TimerState:
        return TimerState(
            phase=self._phase,
            remaining_seconds=self._remaining,
            running=self._running,
            full_duration_seconds=self.full_duration(),
            ready=self._ready,
        )

    # --- Public API -----------------------------------------------------
    def start(self) -> None:
        if not self._running:
            self._running = True
            self._schedule_tick()
            _log.info("timer started", extra={"_json_phase": self._phase.value, "_json_remaining": self._remaining})
        self._persist()
        self._emit_state()

    def pause(self) -> None:
        if self._running:
            self._running = False
            self._cancel_tick()
            _log.info("timer paused", extra={"_json_phase": self._phase.value, "_json_remaining": self._remaining})
        self._persist()
        self._emit_state()

    def toggle(self) -> None:
        if self._running:
            self.pause()
        else:
            self.start()

    def reset(self) -> None:
        self._cancel_tick()
        self._running = False
        self._remaining = self.full_duration()
        # Stays unpersisted until the next command
        self._store.clear()
        _log.info("timer reset", extra={"_json_phase": self._phase.value})
        self._emit_state()

    def update_settings(self, new_settings: TimerSettings) -> None:
        new_settings.validate()
        self._settings.update(new_settings)
        if not self._running:
            self._remaining = new_settings.full_duration(self._phase)
        self._persist()
        self._emit_state()

    def shutdown(self) -> None:
        if self._closed:
            return
        self._cancel_tick()
        self._persist()
        self._closed = True

    # --- Internal: restore ----------------------------------------------
    def _restore(self) -> None:
        snapshot = self._store.load()
        if snapshot is None:
            return
        if not snapshot.running and snapshot.remaining_seconds > 0:
            # Verbatim, even above the current phase length after a
            # settings change mid-run
            self._phase = snapshot.phase
            self._remaining = snapshot.remaining_seconds
            _log.info("restored paused timer", extra={"_json_phase": self._phase.value})
            return
        if not snapshot.running:
            # A paused zero is a phase that ended without being flipped
            self._phase = snapshot.phase
            self._finish_phase()
            return

        elapsed = max(0, (self._time_provider() - snapshot.saved_at_ms) // 1000)
        if snapshot.remaining_seconds > elapsed:
            self._phase = snapshot.phase
            self._remaining = snapshot.remaining_seconds - elapsed
            self._running = True
            _log.info(
                "resumed running timer",
                extra={"_json_phase": self._phase.value, "_json_elapsed": elapsed},
            )
            return

        # The phase ran out while we were away. Only one flip is applied even
        # if several phases' worth of time has passed.
        _log.info(
            "phase elapsed while inactive",
            extra={"_json_phase": snapshot.phase.value, "_json_elapsed": elapsed},
        )
        self._phase = snapshot.phase
        self._finish_phase()

    # --- Internal: ticking ----------------------------------------------
    def _schedule_tick(self) -> None:
        self._cancel_tick()
        self._tick_handle = self._scheduler.schedule_in(self._tick_interval, self._on_tick)

    def _cancel_tick(self) -> None:
        if self._tick_handle is not None:
            self._scheduler.cancel(self._tick_handle)
            self._tick_handle = None

    def _on_tick(self) -> None:
        self._tick_handle = None
        if not self._running or self._closed:
            return
        self._remaining -= 1
        if self._remaining <= 0:
            self._remaining = 0
            self._finish_phase()
        self._persist()
        if self._running:
            self._schedule_tick()
        self._emit_state()

    def _finish_phase(self) -> None:
        ended = self._phase
        event = phase_end_event(ended)
        self._notify(event)
        self._phase = ended.other
        self._remaining = self.full_duration(self._phase)
        self._running = False
        self._cancel_tick()
        _log.info(
            "phase finished",
            extra={"_json_ended": ended.value, "_json_next": self._phase.value},
        )
        self.phase_finished.emit(event)

    def _notify(self, event: PhaseEndEvent) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.dispatch(event)
        except Exception:
            _log.exception("notification dispatch failed")

    # --- Internal: persistence ------------------------------------------
    def _snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            running=self._running,
            remaining_seconds=self._remaining,
            phase=self._phase,
            saved_at_ms=self._time_provider(),
        )

    def _persist(self) -> None:
        self._store.save(self._snapshot())

    def _emit_state(self) -> None:
        self.state_changed.emit(self.state())


__all__ = ["TimerEngine", "TimeProvider"]
