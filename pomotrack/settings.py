"""User settings with validation and key-value persistence.

Settings are stored as JSON under the ``pomodoro_settings`` key.

Usage::

    store = SettingsStore(KeyValueStore(Database()))
    store.update_settings(work_duration=50)
    engine.update_settings(store.get_settings())
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, asdict, fields, replace
from typing import Any, Callable, Mapping, Optional

from .observers import Subscribers, Unsubscribe
from .sessions import SessionType
from .storage import KeyValueStore, SETTINGS_KEY


@dataclass(frozen=True)
class Settings:
    """All user-configurable preferences.  Durations are in minutes."""

    # ── timer ─────────────────────────────────────────────────────────
    work_duration: int = 25
    short_break_duration: int = 5
    long_break_duration: int = 15
    auto_start_breaks: bool = False
    auto_start_work: bool = False

    # ── notifications ─────────────────────────────────────────────────
    sound_enabled: bool = True
    notifications_enabled: bool = False  # enabled once the user opts in

    def minutes_for(self, session_type: SessionType) -> int:
        if session_type == SessionType.SHORT_BREAK:
            return self.short_break_duration
        if session_type == SessionType.LONG_BREAK:
            return self.long_break_duration
        return self.work_duration

    def seconds_for(self, session_type: SessionType) -> int:
        return self.minutes_for(session_type) * 60


DEFAULT_SETTINGS = Settings()

# Inclusive (min, max) bounds in minutes.
DURATION_BOUNDS: dict[str, tuple[int, int]] = {
    "work_duration": (5, 60),
    "short_break_duration": (1, 15),
    "long_break_duration": (5, 30),
}


def _validate_duration(value: Any, low: int, high: int, default: int) -> int:
    # bool is an int subclass; True is not a duration.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if math.isnan(value) or value < low or value > high:
        return default
    return int(round(value))


def validate_settings(data: Mapping[str, Any]) -> Settings:
    """Build a Settings from arbitrary input.  Never raises.

    Missing or invalid durations fall back to their default; so do toggles
    that are not real booleans.  Unknown keys are ignored.
    """
    values: dict[str, Any] = {}
    for f in fields(Settings):
        default = getattr(DEFAULT_SETTINGS, f.name)
        raw = data.get(f.name, default)
        if f.name in DURATION_BOUNDS:
            low, high = DURATION_BOUNDS[f.name]
            values[f.name] = _validate_duration(raw, low, high, default)
        else:
            values[f.name] = raw if isinstance(raw, bool) else default
    return Settings(**values)


class SettingsStore:
    """Holds the current Settings, persists them and notifies on change."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self._store = store
        self._logger = logger or logging.getLogger("pomotrack.settings")
        self._listeners = Subscribers("settings change", logger=self._logger)
        self._settings = self._load()

    def get_settings(self) -> Settings:
        return self._settings

    def update_settings(self, **changes: Any) -> Settings:
        """Merge *changes* into the current settings, validate and save."""
        merged = {**asdict(self._settings), **changes}
        self._settings = validate_settings(merged)
        self._save()
        self._listeners.notify(self._settings)
        return self._settings

    def reset_to_defaults(self) -> Settings:
        self._settings = replace(DEFAULT_SETTINGS)
        self._save()
        self._listeners.notify(self._settings)
        return self._settings

    def on_settings_change(self, callback: Callable[[Settings], None]) -> Unsubscribe:
        return self._listeners.add(callback)

    def destroy(self) -> None:
        self._listeners.clear()

    # ── internal ──────────────────────────────────────────────────────

    def _load(self) -> Settings:
        stored = self._store.get(SETTINGS_KEY, None)
        if isinstance(stored, dict):
            return validate_settings(stored)
        return DEFAULT_SETTINGS

    def _save(self) -> None:
        if not self._store.set(SETTINGS_KEY, asdict(self._settings)):
            self._logger.warning("Settings could not be saved")
