"""Phase enum and the completed-session record passed to statistics."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class SessionType(str, Enum):
    WORK = "work"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"


SESSION_NAMES: dict[SessionType, str] = {
    SessionType.WORK: "Work Session",
    SessionType.SHORT_BREAK: "Short Break",
    SessionType.LONG_BREAK: "Long Break",
}


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Session:
    """A phase that ran to zero.

    ``duration`` is whole minutes of wall-clock time between ``start_time``
    and ``end_time``, not the nominal phase length.
    """

    type: SessionType
    start_time: datetime
    end_time: datetime
    duration: int
    completed: bool = True
    id: str = field(default_factory=_new_id)
