"""Shared test helpers for PomoTrack."""

from contextlib import contextmanager
from datetime import date, datetime, timedelta

from sqlalchemy.exc import OperationalError

from pomotrack.timer.engine import TimerEngine


class Collector:
    """Capture callback invocations or pyqtSignal emissions into a list."""

    def __init__(self):
        self.items: list = []

    def slot(self, *args):
        self.items.append(args if len(args) > 1 else args[0] if args else None)

    def __call__(self, *args):
        self.slot(*args)

    def __len__(self):
        return len(self.items)

    def __getitem__(self, idx):
        return self.items[idx]

    @property
    def last(self):
        return self.items[-1] if self.items else None

    def clear(self):
        self.items.clear()


class FakeClock:
    """Callable stand-in for ``datetime.now`` that only moves when told."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def today(self) -> date:
        return self.now.date()

    def advance(self, **delta) -> None:
        self.now += timedelta(**delta)


def advance(engine: TimerEngine, seconds: int, clock: FakeClock | None = None) -> None:
    """Fire *seconds* ticks, moving the clock along with them."""
    for _ in range(seconds):
        if clock is not None:
            clock.advance(seconds=1)
        engine._on_tick()


def run_phase(engine: TimerEngine, clock: FakeClock | None = None) -> None:
    """Start the current phase and tick it all the way to zero."""
    engine.start()
    advance(engine, engine.remaining, clock)


def complete_session(engine: TimerEngine) -> None:
    """Fast-complete the current session by jumping to the last tick."""
    engine._state.current_time = 1
    engine._on_tick()


class FakeTickSource:
    """Replaces the engine's QTimer; ``active`` controls start() success."""

    def __init__(self, active: bool = True):
        self.active = active
        self.running = False

    def start(self):
        self.running = self.active

    def stop(self):
        self.running = False

    def isActive(self):
        return self.running


class FailingDatabase:
    """Database whose sessions raise an OperationalError with *message*.

    With ``delegate`` set, only the first ``failures`` sessions fail and the
    rest are served by the real database.
    """

    def __init__(self, message: str, delegate=None, failures: int | None = None):
        self.message = message
        self.delegate = delegate
        self.failures = failures

    def init(self):
        if self.delegate is not None:
            self.delegate.init()

    @contextmanager
    def session(self):
        if self.failures is None or self.failures > 0:
            if self.failures is not None:
                self.failures -= 1
            raise OperationalError("INSERT INTO kv_store", {}, Exception(self.message))
        with self.delegate.session() as db:
            yield db
