"""Statistics package."""

from .engine import (
    StatisticsEngine,
    calculate_streak,
    prune_daily_stats,
    RETENTION_DAYS,
)
from .models import DailyStats, UserStats

__all__ = [
    "StatisticsEngine",
    "calculate_streak",
    "prune_daily_stats",
    "RETENTION_DAYS",
    "DailyStats",
    "UserStats",
]
