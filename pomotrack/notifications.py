"""Completion announcements: a sound plus a title/body message.

Delivery is best effort.  Nothing raised by the sound player or by a
``notification_shown`` consumer is allowed to reach the timer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from PyQt6.QtCore import QObject, pyqtSignal

from .sessions import SessionType


class SoundPlayer(Protocol):
    def play(self, name: str) -> None: ...


@dataclass(frozen=True)
class CompletionMessage:
    title: str
    body: str
    sound: str


COMPLETION_MESSAGES: dict[SessionType, CompletionMessage] = {
    SessionType.WORK: CompletionMessage(
        "Work Session Complete! 🎉",
        "Great job! Time for a well-deserved break.",
        "work_complete",
    ),
    SessionType.SHORT_BREAK: CompletionMessage(
        "Break Time Over! ⚡",
        "Ready to get back to work? Let's stay focused!",
        "break_complete",
    ),
    SessionType.LONG_BREAK: CompletionMessage(
        "Long Break Complete! 🚀",
        "You've completed a full cycle! Ready for the next round?",
        "break_complete",
    ),
}


class SessionNotifier(QObject):
    """Plays the completion sound and publishes the completion message.

    Signals
    -------
    notification_shown(title: str, body: str)
        Emitted when notifications are enabled; a tray icon or console
        runner displays it.
    """

    notification_shown = pyqtSignal(str, str)

    def __init__(
        self,
        sounds: Optional[SoundPlayer] = None,
        parent: QObject | None = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(parent)
        self._sounds = sounds
        self._logger = logger or logging.getLogger("pomotrack.notifications")
        self._sound_enabled = True
        self._notifications_enabled = False

    def set_sound_enabled(self, enabled: bool) -> None:
        self._sound_enabled = enabled

    def set_notifications_enabled(self, enabled: bool) -> None:
        self._notifications_enabled = enabled

    @property
    def sound_enabled(self) -> bool:
        return self._sound_enabled

    @property
    def notifications_enabled(self) -> bool:
        return self._notifications_enabled

    def show_session_complete(self, session_type: SessionType) -> None:
        message = COMPLETION_MESSAGES[session_type]
        if self._sound_enabled and self._sounds is not None:
            try:
                self._sounds.play(message.sound)
            except Exception:
                self._logger.warning("Failed to play notification sound", exc_info=True)
        if self._notifications_enabled:
            self._logger.info("%s %s", message.title, message.body)
            self.notification_shown.emit(message.title, message.body)
