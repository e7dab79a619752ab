from focus_timer.scheduler import QtTickScheduler


def test_qt_scheduler_fires_once(qtbot):
    scheduler = QtTickScheduler()
    fired = []
    scheduler.schedule_in(0.01, lambda: fired.append(1))
    assert scheduler.pending_count == 1
    qtbot.waitUntil(lambda: fired == [1], timeout=1000)
    assert scheduler.pending_count == 0


def test_qt_scheduler_cancel(qtbot):
    scheduler = QtTickScheduler()
    fired = []
    handle = scheduler.schedule_in(0.05, lambda: fired.append("cancelled"))
    scheduler.schedule_in(0.1, lambda: fired.append("kept"))
    scheduler.cancel(handle)
    scheduler.cancel(handle)  # second cancel is a no-op
    qtbot.waitUntil(lambda: fired == ["kept"], timeout=1000)
    qtbot.wait(100)
    assert fired == ["kept"]
