"""Headless console timer: python -m pomotrack."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from datetime import date
from typing import Callable, Optional

from PyQt6.QtCore import QCoreApplication, QObject, QTimer

from .notifications import SessionNotifier
from .sessions import SESSION_NAMES, SessionType
from .settings import SettingsStore
from .stats import StatisticsEngine, calculate_streak
from .storage import Database, KeyValueStore
from .timer import TimerEngine

AUTO_START_DELAY_MS = 5000


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Configure logging for the application."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("pomotrack")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pomotrack", description=__doc__)
    parser.add_argument("--db-url", help="SQLAlchemy URL (default: $POMOTRACK_DB_URL or data dir)")
    parser.add_argument("--work", type=int, help="work duration in minutes (5-60)")
    parser.add_argument("--short-break", type=int, help="short break in minutes (1-15)")
    parser.add_argument("--long-break", type=int, help="long break in minutes (5-30)")
    parser.add_argument("--no-sound", action="store_true", help="disable completion sounds")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


class ConsoleRunner(QObject):
    """Wires the engines together and narrates progress to the log."""

    def __init__(
        self,
        timer: TimerEngine,
        settings: SettingsStore,
        statistics: StatisticsEngine,
        logger: logging.Logger,
        parent: QObject | None = None,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        super().__init__(parent)
        self._timer = timer
        self._today = today
        self._settings = settings
        self._statistics = statistics
        self._logger = logger

        timer.on_tick(self._on_tick)
        timer.on_complete(self._on_complete)
        settings.on_settings_change(timer.update_settings)
        statistics.on_stats_change(
            lambda stats: self._logger.info(
                "Total sessions: %d, streak: %d day(s)",
                stats.total_sessions,
                stats.current_streak,
            )
        )

    def begin(self) -> None:
        state = self._timer.get_timer_state()
        self._logger.info(
            "%s #%d (%d min)",
            SESSION_NAMES[state.session_type],
            state.session_count,
            state.total_time // 60,
        )
        if not self._timer.start():
            self._logger.error("Timer could not start")

    def summary(self) -> str:
        """Today's totals and the streak as it stands today.

        The stored streak is only refreshed by a new session, so it is
        recomputed here to drop a run that has lapsed since.
        """
        today = self._statistics.get_today_stats()
        streak = calculate_streak(self._statistics.get_stats().daily_stats, self._today())
        return (
            f"Today: {today.completed_sessions} session(s), "
            f"{today.work_minutes} work min, {today.break_minutes} break min. "
            f"Streak: {streak} day(s)."
        )

    def _on_tick(self, remaining: int) -> None:
        if remaining > 0 and remaining % 60 == 0:
            self._logger.info("%d min remaining", remaining // 60)

    def _on_complete(self, finished: SessionType) -> None:
        self._logger.info("%s finished", SESSION_NAMES[finished])
        # The engine transitions after completion subscribers return.
        QTimer.singleShot(AUTO_START_DELAY_MS, self._maybe_auto_start)

    def _maybe_auto_start(self) -> None:
        state = self._timer.get_timer_state()
        if not state.is_idle:
            return
        settings = self._settings.get_settings()
        is_break = state.session_type != SessionType.WORK
        if (is_break and settings.auto_start_breaks) or (
            not is_break and settings.auto_start_work
        ):
            self.begin()
        else:
            self._logger.info(
                "Next up: %s. Restart to continue or enable auto-start.",
                SESSION_NAMES[state.session_type],
            )
            QCoreApplication.quit()


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    logger = setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    app = QCoreApplication(sys.argv[:1])
    app.setApplicationName("PomoTrack")

    store = KeyValueStore(Database(args.db_url))
    store.on_error(
        lambda error: logger.warning("Storage problem (%s): %s", error.type.value, error.message)
    )
    settings_store = SettingsStore(store)
    changes = {
        name: value
        for name, value in (
            ("work_duration", args.work),
            ("short_break_duration", args.short_break),
            ("long_break_duration", args.long_break),
        )
        if value is not None
    }
    if args.no_sound:
        changes["sound_enabled"] = False
    if changes:
        settings_store.update_settings(**changes)

    sounds = None
    if settings_store.get_settings().sound_enabled:
        from .audio import SoundManager
        sounds = SoundManager(app)
    notifier = SessionNotifier(sounds, app)
    notifier.notification_shown.connect(lambda title, body: print(f"\n{title}\n{body}\n"))

    statistics = StatisticsEngine(store)
    timer = TimerEngine(
        settings_store.get_settings(), app, statistics=statistics, notifier=notifier
    )
    runner = ConsoleRunner(timer, settings_store, statistics, logger, app)

    signal.signal(signal.SIGINT, lambda *_: QCoreApplication.quit())
    # Give the interpreter a chance to run the SIGINT handler.
    heartbeat = QTimer(app)
    heartbeat.timeout.connect(lambda: None)
    heartbeat.start(250)

    print("PomoTrack ready! Ctrl-C to stop.")
    if store.is_using_fallback():
        print("Using temporary storage: progress will not be saved.")
    runner.begin()
    code = app.exec()

    timer.destroy()
    statistics.destroy()
    settings_store.destroy()
    print(runner.summary())
    sys.exit(code)


if __name__ == "__main__":
    main()
