"""Shared pytest fixtures for PomoTrack tests."""

import sys
from datetime import datetime
import pytest

from PyQt6.QtCore import QCoreApplication

from pomotrack.settings import Settings
from pomotrack.stats import StatisticsEngine
from pomotrack.storage import Database, KeyValueStore
from pomotrack.timer.engine import TimerEngine

from helpers import FakeClock


@pytest.fixture(scope="session")
def qapp():
    """A single QCoreApplication shared across the entire test run."""
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    yield app


@pytest.fixture
def database():
    """A fresh in-memory SQLite database per test."""
    db = Database("sqlite:///:memory:")
    yield db
    db.dispose()


@pytest.fixture
def store(database):
    return KeyValueStore(database)


@pytest.fixture
def clock():
    """Wall clock pinned to 2026-03-10 09:00 local time."""
    return FakeClock(datetime(2026, 3, 10, 9, 0, 0))


@pytest.fixture
def statistics(store, clock):
    engine = StatisticsEngine(store, today=clock.today)
    yield engine
    engine.destroy()


@pytest.fixture
def engine(qapp, statistics, clock):
    """Fresh TimerEngine with default settings and a fake clock."""
    timer = TimerEngine(Settings(), statistics=statistics, clock=clock)
    yield timer
    timer.destroy()


@pytest.fixture
def fast_engine(qapp, statistics, clock):
    """Engine with one-minute work/short phases and a two-minute long break."""
    timer = TimerEngine(
        Settings(work_duration=1, short_break_duration=1, long_break_duration=2),
        statistics=statistics,
        clock=clock,
    )
    yield timer
    timer.destroy()
