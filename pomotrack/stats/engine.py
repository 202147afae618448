"""Statistics engine: folds completed sessions into durable aggregates.

Days are bucketed by the *local* calendar date of each session's start
time, stored as ``YYYY-MM-DD``.  Streaks count consecutive days with at
least one completed session and must end today or yesterday.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable, Optional

from ..observers import Subscribers, Unsubscribe
from ..sessions import Session, SessionType
from ..storage import KeyValueStore, STATISTICS_KEY
from .models import DailyStats, UserStats

RETENTION_DAYS = 90
QUOTA_RETENTION_DAYS = 30  # tighter window used when storage is full


def _parse_day(key: str) -> date | None:
    try:
        return date.fromisoformat(key)
    except (TypeError, ValueError):
        return None


def calculate_streak(daily_stats: list[DailyStats], today: date) -> int:
    """Consecutive active days ending today or yesterday."""
    active = sorted(
        (
            day
            for day in (_parse_day(d.date) for d in daily_stats if d.completed_sessions > 0)
            if day is not None
        ),
        reverse=True,
    )
    if not active:
        return 0
    if (today - active[0]).days > 1:
        return 0

    streak = 1
    for newer, older in zip(active, active[1:]):
        if (newer - older).days != 1:
            break
        streak += 1
    return streak


def prune_daily_stats(
    daily_stats: list[DailyStats], today: date, keep_days: int = RETENTION_DAYS
) -> list[DailyStats]:
    """Drop buckets older than *keep_days* (and any with an unreadable date)."""
    cutoff = today - timedelta(days=keep_days)
    kept = []
    for entry in daily_stats:
        day = _parse_day(entry.date)
        if day is not None and day >= cutoff:
            kept.append(entry)
    return kept


class StatisticsEngine:
    """Durable session accounting, independent of any running timer.

    Stats are loaded once from the store; afterwards the in-memory copy is
    authoritative and every mutation is written back before subscribers
    are notified.  A failed write is logged and does not undo the update.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        today: Callable[[], date] = date.today,
        logger: Optional[logging.Logger] = None,
    ):
        self._store = store
        self._today = today
        self._logger = logger or logging.getLogger("pomotrack.stats")
        self._listeners = Subscribers("stats change", logger=self._logger)
        self._stats = UserStats.from_dict(store.get(STATISTICS_KEY, None))
        self._unregister_pruner = store.add_pruner(STATISTICS_KEY, self._prune_stored)

    # ══════════════════════════════════════════════════════════════════
    #  MUTATIONS
    # ══════════════════════════════════════════════════════════════════

    def record_session(self, session: Session) -> None:
        """Fold one naturally completed session into the aggregates."""
        if not session.completed:
            return

        stats = self._stats
        day_key = session.start_time.date().isoformat()
        bucket = stats.day(day_key)
        if bucket is None:
            bucket = DailyStats(date=day_key)
            stats.daily_stats.append(bucket)

        bucket.completed_sessions += 1
        if session.type == SessionType.WORK:
            bucket.work_minutes += session.duration
        else:
            bucket.break_minutes += session.duration
        stats.total_sessions += 1

        today = self._today()
        stats.current_streak = calculate_streak(stats.daily_stats, today)
        stats.longest_streak = max(stats.longest_streak, stats.current_streak)
        stats.daily_stats = prune_daily_stats(stats.daily_stats, today)

        self._logger.info(
            "Recorded %s session: %s min (total=%d streak=%d)",
            session.type.value,
            session.duration,
            stats.total_sessions,
            stats.current_streak,
        )
        self._save()
        self._listeners.notify(stats.copy())

    def reset_stats(self) -> None:
        """Wipe all statistics.  Confirmation is the caller's job."""
        self._stats = UserStats()
        self._save()
        self._listeners.notify(self._stats.copy())

    # ══════════════════════════════════════════════════════════════════
    #  READS
    # ══════════════════════════════════════════════════════════════════

    def get_stats(self) -> UserStats:
        return self._stats.copy()

    def get_today_stats(self) -> DailyStats:
        key = self._today().isoformat()
        bucket = self._stats.day(key)
        if bucket is None:
            return DailyStats(date=key)
        return DailyStats.from_dict(vars(bucket))

    def get_recent_stats(self, days: int = 7) -> list[DailyStats]:
        """Buckets for the last *days* calendar days, oldest first."""
        if days <= 0:
            return []
        cutoff = self._today() - timedelta(days=days - 1)
        recent: list[tuple[date, DailyStats]] = []
        for entry in self._stats.copy().daily_stats:
            day = _parse_day(entry.date)
            if day is not None and day >= cutoff:
                recent.append((day, entry))
        recent.sort(key=lambda pair: pair[0])
        return [entry for _, entry in recent]

    def get_current_streak(self) -> int:
        return self._stats.current_streak

    def get_total_sessions(self) -> int:
        return self._stats.total_sessions

    # ══════════════════════════════════════════════════════════════════
    #  SUBSCRIPTIONS / LIFECYCLE
    # ══════════════════════════════════════════════════════════════════

    def on_stats_change(self, callback: Callable[[UserStats], None]) -> Unsubscribe:
        return self._listeners.add(callback)

    def destroy(self) -> None:
        self._listeners.clear()
        self._unregister_pruner()

    # ── internal ──────────────────────────────────────────────────────

    def _save(self) -> None:
        try:
            if not self._store.set(STATISTICS_KEY, self._stats.to_dict()):
                self._logger.error("Statistics could not be saved")
        except Exception:
            self._logger.exception("Error saving statistics")

    def _prune_stored(self, value):
        stats = UserStats.from_dict(value)
        stats.daily_stats = prune_daily_stats(
            stats.daily_stats, self._today(), QUOTA_RETENTION_DAYS
        )
        return stats.to_dict()
