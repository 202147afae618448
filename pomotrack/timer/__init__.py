"""Timer package."""

from .engine import (
    TimerEngine,
    TimerState,
    elapsed_minutes,
    SESSIONS_UNTIL_LONG_BREAK,
    TICK_INTERVAL_MS,
)

__all__ = [
    "TimerEngine",
    "TimerState",
    "elapsed_minutes",
    "SESSIONS_UNTIL_LONG_BREAK",
    "TICK_INTERVAL_MS",
]
