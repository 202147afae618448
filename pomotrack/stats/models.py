"""Aggregate records persisted by the statistics engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, asdict
from typing import Any


def _count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return max(0, int(value))


@dataclass
class DailyStats:
    """Per-day counters.  ``date`` is a local ``YYYY-MM-DD`` string."""

    date: str
    completed_sessions: int = 0
    work_minutes: int = 0
    break_minutes: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DailyStats":
        return cls(
            date=str(data["date"]),
            completed_sessions=_count(data.get("completed_sessions")),
            work_minutes=_count(data.get("work_minutes")),
            break_minutes=_count(data.get("break_minutes")),
        )


@dataclass
class UserStats:
    """Lifetime counters plus the retained daily buckets."""

    total_sessions: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    daily_stats: list[DailyStats] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Any) -> "UserStats":
        """Rebuild from stored JSON; garbled fields become their zero value."""
        if not isinstance(data, dict):
            return cls()
        daily: list[DailyStats] = []
        raw_daily = data.get("daily_stats")
        if isinstance(raw_daily, list):
            for entry in raw_daily:
                if isinstance(entry, dict) and "date" in entry:
                    daily.append(DailyStats.from_dict(entry))
        return cls(
            total_sessions=_count(data.get("total_sessions")),
            current_streak=_count(data.get("current_streak")),
            longest_streak=_count(data.get("longest_streak")),
            daily_stats=daily,
        )

    def copy(self) -> "UserStats":
        return UserStats.from_dict(self.to_dict())

    def day(self, key: str) -> DailyStats | None:
        for entry in self.daily_stats:
            if entry.date == key:
                return entry
        return None
