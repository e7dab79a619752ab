import os
from pathlib import Path
import sys
import pytest

# Headless Qt for CI
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Ensure src/ is on sys.path for direct test invocation without an editable install
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from focus_timer.database_manager import DBConfig, DatabaseManager


class FakeClock:
    """Epoch-millisecond clock advanced by hand."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now = start_ms

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)

    def __call__(self) -> int:
        return self.now


class ManualScheduler:
    """TickScheduler that only fires when the test says so."""

    def __init__(self, clock: FakeClock | None = None):
        self.clock = clock
        self.pending: dict[int, tuple[float, object]] = {}
        self.scheduled_total = 0
        self._next_id = 0

    def schedule_in(self, seconds, callback):
        self._next_id += 1
        self.pending[self._next_id] = (seconds, callback)
        self.scheduled_total += 1
        return self._next_id

    def cancel(self, handle) -> None:
        self.pending.pop(handle, None)

    def fire(self, times: int = 1) -> int:
        """Run the pending tick up to ``times`` times; returns how many ran."""
        ran = 0
        for _ in range(times):
            if not self.pending:
                break
            handle = next(iter(self.pending))
            seconds, callback = self.pending.pop(handle)
            if self.clock is not None:
                self.clock.advance(seconds)
            callback()
            ran += 1
        return ran


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def dispatch(self, event) -> None:
        self.events.append(event)


@pytest.fixture()
def db(tmp_path: Path):
    config = DBConfig(path=tmp_path / "test.sqlite")
    manager = DatabaseManager(config)
    manager.init_db()
    yield manager
    manager.close()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def scheduler(clock: FakeClock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


def test_init_idempotent(db: DatabaseManager):
    # Second call keeps existing rows
    conn = db.connect()
    with conn:
        conn.execute("INSERT INTO settings(key, value) VALUES('k', 'v')")
    db.init_db()
    row = db.query_one("SELECT value FROM settings WHERE key='k'")
    assert row["value"] == "v"

