from __future__ import annotations

"""Value types shared by the timer engine, stores and notifications."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


WORK_MINUTES_RANGE = (1, 60)
BREAK_MINUTES_RANGE = (1, 30)


class TimerSettingsError(ValueError):
    """Raised when work/break minutes fall outside their allowed range."""


class Phase(str, Enum):
    WORK = "work"
    BREAK = "break"

    @property
    def other(self) -> "Phase":
        return Phase.BREAK if self is Phase.WORK else Phase.WORK


def _check_minutes(name: str, value: Any, bounds: tuple[int, int]) -> None:
    # bool is an int subclass; True must not pass as 1 minute
    if isinstance(value, bool) or not isinstance(value, int):
        raise TimerSettingsError(f"{name} must be an integer number of minutes, got {value!r}")
    lo, hi = bounds
    if not (lo <= value <= hi):
        raise TimerSettingsError(f"{name} must be between {lo} and {hi} minutes, got {value}")


@dataclass(slots=True, frozen=True)
class TimerSettings:
    work_minutes: int = 25
    break_minutes: int = 5

    def validate(self) -> "TimerSettings":
        _check_minutes("work_minutes", self.work_minutes, WORK_MINUTES_RANGE)
        _check_minutes("break_minutes", self.break_minutes, BREAK_MINUTES_RANGE)
        return self

    def full_duration(self, phase: Phase) -> int:
        """Length of ``phase`` in seconds."""
        minutes = self.work_minutes if phase is Phase.WORK else self.break_minutes
        return minutes * 60

    # Exchange format used by the settings form: {workTime, breakTime}
    def to_dict(self) -> dict[str, int]:
        return {"workTime": self.work_minutes, "breakTime": self.break_minutes}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TimerSettings":
        try:
            settings = cls(work_minutes=data["workTime"], break_minutes=data["breakTime"])
        except (KeyError, TypeError) as e:
            raise TimerSettingsError(f"invalid settings payload: {e}") from e
        return settings.validate()


@dataclass(slots=True, frozen=True)
class TimerSnapshot:
    running: bool
    remaining_seconds: int
    phase: Phase
    saved_at_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "isRunning": self.running,
            "timeLeft": self.remaining_seconds,
            "isBreak": self.phase is Phase.BREAK,
            "lastUpdate": self.saved_at_ms,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "TimerSnapshot":
        """Build a snapshot from its stored form; ValueError on any schema mismatch."""
        if not isinstance(data, dict):
            raise ValueError("snapshot must be a JSON object")
        running = data.get("isRunning")
        time_left = data.get("timeLeft")
        is_break = data.get("isBreak")
        last_update = data.get("lastUpdate")
        if not isinstance(running, bool) or not isinstance(is_break, bool):
            raise ValueError("isRunning/isBreak must be booleans")
        for name, value in (("timeLeft", time_left), ("lastUpdate", last_update)):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer")
        if time_left < 0:
            raise ValueError("timeLeft must be non-negative")
        return cls(
            running=running,
            remaining_seconds=time_left,
            phase=Phase.BREAK if is_break else Phase.WORK,
            saved_at_ms=last_update,
        )


@dataclass(slots=True, frozen=True)
class TimerState:
    phase: Phase
    remaining_seconds: int
    running: bool
    full_duration_seconds: int
    ready: bool = True

    @property
    def progress_percent(self) -> float:
        full = self.full_duration_seconds
        if full <= 0:
            return 0.0
        pct = (full - self.remaining_seconds) / full * 100
        return max(0.0, min(100.0, pct))


@dataclass(slots=True, frozen=True)
class PhaseEndEvent:
    ended: Phase
    next_phase: Phase
    title: str
    body: str


PHASE_END_MESSAGES: dict[Phase, tuple[str, str]] = {
    Phase.WORK: ("Break Time!", "Great work! Time for a well-deserved break."),
    Phase.BREAK: ("Work Time!", "Break is over. Time to get back to work!"),
}


def phase_end_event(ended: Phase) -> PhaseEndEvent:
    title, body = PHASE_END_MESSAGES[ended]
    return PhaseEndEvent(ended=ended, next_phase=ended.other, title=title, body=body)


def format_remaining(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


__all__ = [
    "Phase",
    "TimerSettings",
    "TimerSettingsError",
    "TimerSnapshot",
    "TimerState",
    "PhaseEndEvent",
    "phase_end_event",
    "format_remaining",
    "WORK_MINUTES_RANGE",
    "BREAK_MINUTES_RANGE",
]
