import pytest

from focus_timer.models import (
    Phase,
    TimerSettings,
    TimerSettingsError,
    TimerSnapshot,
    TimerState,
    format_remaining,
    phase_end_event,
)


def test_full_duration_over_valid_ranges():
    for work in range(1, 61):
        for brk in range(1, 31):
            s = TimerSettings(work, brk).validate()
            assert s.full_duration(Phase.WORK) == work * 60
            assert s.full_duration(Phase.BREAK) == brk * 60


@pytest.mark.parametrize(
    "work,brk",
    [(0, 5), (61, 5), (25, 0), (25, 31), (-1, 5), (25.0, 5), (True, 5), ("25", 5)],
)
def test_settings_validation_rejects(work, brk):
    with pytest.raises(TimerSettingsError):
        TimerSettings(work, brk).validate()


def test_settings_dict_exchange():
    s = TimerSettings.from_dict({"workTime": 50, "breakTime": 10})
    assert s == TimerSettings(50, 10)
    assert s.to_dict() == {"workTime": 50, "breakTime": 10}
    with pytest.raises(TimerSettingsError):
        TimerSettings.from_dict({"workTime": 50})
    with pytest.raises(TimerSettingsError):
        TimerSettings.from_dict({"workTime": 90, "breakTime": 10})


def test_snapshot_uses_fixed_field_names():
    snap = TimerSnapshot(running=True, remaining_seconds=100, phase=Phase.BREAK, saved_at_ms=123)
    assert snap.to_dict() == {"isRunning": True, "timeLeft": 100, "isBreak": True, "lastUpdate": 123}
    assert TimerSnapshot.from_dict(snap.to_dict()) == snap


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"isRunning": "yes", "timeLeft": 1, "isBreak": False, "lastUpdate": 1},
        {"isRunning": True, "timeLeft": "1", "isBreak": False, "lastUpdate": 1},
        {"isRunning": True, "timeLeft": -5, "isBreak": False, "lastUpdate": 1},
        {"isRunning": True, "timeLeft": 5, "isBreak": False},
        {"isRunning": True, "timeLeft": 5.5, "isBreak": False, "lastUpdate": 1},
    ],
)
def test_snapshot_rejects_schema_drift(data):
    with pytest.raises(ValueError):
        TimerSnapshot.from_dict(data)


def test_progress_percent_is_clamped():
    assert TimerState(Phase.WORK, 1500, False, 1500).progress_percent == 0.0
    assert TimerState(Phase.WORK, 750, True, 1500).progress_percent == 50.0
    # Settings shrank mid-run: remaining exceeds the new full duration
    assert TimerState(Phase.WORK, 1500, True, 600).progress_percent == 0.0


def test_phase_end_messages():
    ev = phase_end_event(Phase.WORK)
    assert ev.next_phase is Phase.BREAK
    assert ev.body == "Great work! Time for a well-deserved break."
    ev = phase_end_event(Phase.BREAK)
    assert ev.next_phase is Phase.WORK
    assert ev.body == "Break is over. Time to get back to work!"


def test_format_remaining():
    assert format_remaining(0) == "00:00"
    assert format_remaining(65) == "01:05"
    assert format_remaining(3600) == "60:00"
    assert format_remaining(-3) == "00:00"
