"""Timer state machine for PomoTrack.

Phases
------
WORK          Focus interval.
SHORT_BREAK   Break after each work session except every fourth.
LONG_BREAK    Break after the fourth work session of a cycle.

Activity
--------
idle     Not counting; ``current_time == total_time``.
running  ``QTimer`` decrements ``current_time`` once per second.
paused   Countdown frozen; ``start()`` resumes without a reset.

Transitions
-----------
idle    → running                 (start; records the wall-clock start)
paused  → running                 (start)
running → paused                  (pause)
any     → idle, same phase        (reset)
any     → idle, next phase        (skip, or the countdown reaching 0)

Only a countdown that reaches zero after a ``start()`` produces a
:class:`~pomotrack.sessions.Session` for the statistics engine.  ``skip()``
still fires completion subscribers so the UI can react, but nothing is
recorded.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Optional, TYPE_CHECKING

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from ..observers import Subscribers, Unsubscribe
from ..sessions import Session, SessionType
from ..settings import Settings, DEFAULT_SETTINGS

if TYPE_CHECKING:
    from ..notifications import SessionNotifier
    from ..stats import StatisticsEngine


# ── constants ─────────────────────────────────────────────────────────────

SESSIONS_UNTIL_LONG_BREAK = 4
TICK_INTERVAL_MS = 1000


# ── state ─────────────────────────────────────────────────────────────────


@dataclass
class TimerState:
    """Snapshot of "now".  ``is_running`` and ``is_paused`` are exclusive."""

    is_running: bool
    is_paused: bool
    current_time: int  # seconds remaining
    total_time: int  # seconds in the active phase
    session_type: SessionType
    session_count: int  # 1-based position within the cycle
    cycle_count: int  # long breaks begun so far

    @property
    def is_idle(self) -> bool:
        return not self.is_running and not self.is_paused

    @property
    def progress(self) -> float:
        """0.0 → 1.0 progress through the current phase."""
        if self.total_time <= 0:
            return 0.0
        elapsed = self.total_time - self.current_time
        return max(0.0, min(1.0, elapsed / self.total_time))


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, rounded half up, never negative."""
    seconds = (end - start).total_seconds()
    return max(0, math.floor(seconds / 60 + 0.5))


# ── engine ────────────────────────────────────────────────────────────────


class TimerEngine(QObject):
    """Single authoritative Pomodoro timer.

    Plain-Python subscribers (``on_tick`` / ``on_complete``) are invoked
    one by one with their exceptions logged and swallowed.  The Qt signals
    carry the same events for widgets.

    Signals
    -------
    tick(current_time: int)
        Every decrement, and whenever ``current_time`` is reset.
    state_changed(state: TimerState)
        A fresh snapshot after every mutation.
    session_completed(session_type: SessionType)
        The phase just left, on natural completion and on skip.
    """

    tick = pyqtSignal(int)
    state_changed = pyqtSignal(object)
    session_completed = pyqtSignal(object)

    def __init__(
        self,
        settings: Settings | None = None,
        parent: QObject | None = None,
        *,
        statistics: Optional["StatisticsEngine"] = None,
        notifier: Optional["SessionNotifier"] = None,
        clock: Callable[[], datetime] = datetime.now,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(parent)

        self._settings: Settings = settings or DEFAULT_SETTINGS
        self._statistics = statistics
        self._notifier = notifier
        self._clock = clock
        self._logger = logger or logging.getLogger("pomotrack.timer")

        self._tick_listeners = Subscribers("tick", logger=self._logger)
        self._complete_listeners = Subscribers("complete", logger=self._logger)

        work_seconds = self._settings.seconds_for(SessionType.WORK)
        self._state = TimerState(
            is_running=False,
            is_paused=False,
            current_time=work_seconds,
            total_time=work_seconds,
            session_type=SessionType.WORK,
            session_count=1,
            cycle_count=0,
        )
        self._session_start: datetime | None = None

        self._qt_timer = QTimer(self)
        self._qt_timer.setInterval(TICK_INTERVAL_MS)
        self._qt_timer.timeout.connect(self._on_tick)

        self._apply_notifier_settings()

    # ══════════════════════════════════════════════════════════════════
    #  PUBLIC PROPERTIES
    # ══════════════════════════════════════════════════════════════════

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def session_type(self) -> SessionType:
        return self._state.session_type

    @property
    def remaining(self) -> int:
        """Seconds left on the clock."""
        return self._state.current_time

    def get_timer_state(self) -> TimerState:
        """Always a copy; mutating it has no effect on the engine."""
        return replace(self._state)

    # ══════════════════════════════════════════════════════════════════
    #  CONTROLS
    # ══════════════════════════════════════════════════════════════════

    def start(self) -> bool:
        """Start from idle or resume from paused.

        Returns ``False`` if the tick source could not be activated (for
        instance no Qt event loop exists); the activity is left unchanged.
        """
        if self._state.is_running:
            return True

        self._qt_timer.start()
        if not self._qt_timer.isActive():
            self._logger.error("Tick source could not be started; timer stays %s",
                               "paused" if self._state.is_paused else "idle")
            return False

        if not self._state.is_paused:
            self._session_start = self._clock()
            self._logger.info(
                "Started %s: %ss", self._state.session_type.value, self._state.current_time
            )
        else:
            self._logger.info("Resumed %s", self._state.session_type.value)
        self._state.is_running = True
        self._state.is_paused = False
        self._emit_state()
        return True

    def pause(self) -> None:
        if not self._state.is_running:
            return
        self._qt_timer.stop()
        self._state.is_running = False
        self._state.is_paused = True
        self._logger.info(
            "Paused %s: remaining=%ss", self._state.session_type.value, self._state.current_time
        )
        self._emit_state()

    def reset(self) -> None:
        """Back to the start of the current phase.  Never recorded."""
        self._qt_timer.stop()
        self._session_start = None
        self._state.is_running = False
        self._state.is_paused = False
        self._restore_full_time()
        self._notify_tick()
        self._emit_state()

    def skip(self) -> None:
        """Leave the current phase now.  Not recorded as a completed session."""
        self._qt_timer.stop()
        self._session_start = None
        finished = self._state.session_type
        self._logger.info("Skipped %s", finished.value)
        self._fire_complete(finished)
        self._advance()

    def update_settings(self, settings: Settings) -> None:
        """Adopt new durations.

        When idle the current phase is resized immediately; a running or
        paused countdown keeps its length until the next transition.
        """
        self._settings = settings
        self._apply_notifier_settings()
        if self._state.is_idle:
            self._restore_full_time()
            self._notify_tick()
            self._emit_state()

    # ══════════════════════════════════════════════════════════════════
    #  SUBSCRIPTIONS / LIFECYCLE
    # ══════════════════════════════════════════════════════════════════

    def on_tick(self, callback: Callable[[int], None]) -> Unsubscribe:
        return self._tick_listeners.add(callback)

    def on_complete(self, callback: Callable[[SessionType], None]) -> Unsubscribe:
        return self._complete_listeners.add(callback)

    def destroy(self) -> None:
        """Stop ticking and drop every subscriber.  Safe to repeat."""
        self._qt_timer.stop()
        self._tick_listeners.clear()
        self._complete_listeners.clear()

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL: timer mechanics
    # ══════════════════════════════════════════════════════════════════

    def _on_tick(self) -> None:
        if not self._state.is_running:
            return
        self._state.current_time = max(0, self._state.current_time - 1)
        self._notify_tick()
        if self._state.current_time <= 0:
            self._finish_session()

    def _finish_session(self) -> None:
        self._qt_timer.stop()
        finished = self._state.session_type
        end_time = self._clock()

        if self._session_start is not None:
            session = Session(
                type=finished,
                start_time=self._session_start,
                end_time=end_time,
                duration=elapsed_minutes(self._session_start, end_time),
            )
            self._session_start = None
            self._record(session)

        self._logger.info("Completed %s", finished.value)
        self._announce(finished)
        self._fire_complete(finished)
        self._advance()

    def _advance(self) -> None:
        """Move to the next phase and leave the timer idle."""
        state = self._state
        if state.session_type == SessionType.WORK:
            if state.session_count >= SESSIONS_UNTIL_LONG_BREAK:
                state.session_type = SessionType.LONG_BREAK
                state.session_count = 1
                state.cycle_count += 1
            else:
                state.session_type = SessionType.SHORT_BREAK
        elif state.session_type == SessionType.SHORT_BREAK:
            state.session_type = SessionType.WORK
            state.session_count += 1
        else:
            # cycle_count was already bumped when the long break began
            state.session_type = SessionType.WORK

        state.is_running = False
        state.is_paused = False
        self._restore_full_time()
        self._notify_tick()
        self._emit_state()

    def _restore_full_time(self) -> None:
        seconds = self._settings.seconds_for(self._state.session_type)
        self._state.current_time = seconds
        self._state.total_time = seconds

    # ══════════════════════════════════════════════════════════════════
    #  INTERNAL: collaborators
    # ══════════════════════════════════════════════════════════════════

    def _record(self, session: Session) -> None:
        if self._statistics is None:
            return
        try:
            self._statistics.record_session(session)
        except Exception:
            self._logger.exception("Failed to record %s session", session.type.value)

    def _announce(self, finished: SessionType) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.show_session_complete(finished)
        except Exception:
            self._logger.exception("Completion notification failed")

    def _apply_notifier_settings(self) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.set_sound_enabled(self._settings.sound_enabled)
            self._notifier.set_notifications_enabled(self._settings.notifications_enabled)
        except Exception:
            self._logger.exception("Could not update notifier settings")

    def _fire_complete(self, finished: SessionType) -> None:
        self._complete_listeners.notify(finished)
        self.session_completed.emit(finished)

    def _notify_tick(self) -> None:
        self._tick_listeners.notify(self._state.current_time)
        self.tick.emit(self._state.current_time)

    def _emit_state(self) -> None:
        self.state_changed.emit(self.get_timer_state())
