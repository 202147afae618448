"""Tests for settings validation and the persisted settings store."""

from __future__ import annotations

from dataclasses import asdict

import pytest

from pomotrack.sessions import SessionType
from pomotrack.settings import (
    DEFAULT_SETTINGS,
    DURATION_BOUNDS,
    Settings,
    SettingsStore,
    validate_settings,
)
from pomotrack.storage import SETTINGS_KEY

from helpers import Collector


# ═══════════════════════════════════════════════════════════════════════
#  DEFAULTS
# ═══════════════════════════════════════════════════════════════════════


class TestDefaults:
    def test_durations(self):
        s = Settings()
        assert (s.work_duration, s.short_break_duration, s.long_break_duration) == (25, 5, 15)

    def test_toggles(self):
        s = Settings()
        assert s.sound_enabled is True
        assert s.notifications_enabled is False
        assert s.auto_start_breaks is False
        assert s.auto_start_work is False

    def test_seconds_for(self):
        s = Settings(work_duration=30, short_break_duration=3, long_break_duration=20)
        assert s.seconds_for(SessionType.WORK) == 1800
        assert s.seconds_for(SessionType.SHORT_BREAK) == 180
        assert s.seconds_for(SessionType.LONG_BREAK) == 1200

    def test_frozen(self):
        with pytest.raises(AttributeError):
            Settings().work_duration = 10


# ═══════════════════════════════════════════════════════════════════════
#  VALIDATION
# ═══════════════════════════════════════════════════════════════════════


class TestValidation:
    def test_valid_values_kept(self):
        s = validate_settings({"work_duration": 50, "short_break_duration": 10,
                               "long_break_duration": 30, "sound_enabled": False})
        assert s == Settings(work_duration=50, short_break_duration=10,
                             long_break_duration=30, sound_enabled=False)

    @pytest.mark.parametrize("field", sorted(DURATION_BOUNDS))
    def test_bounds_inclusive(self, field):
        low, high = DURATION_BOUNDS[field]
        assert getattr(validate_settings({field: low}), field) == low
        assert getattr(validate_settings({field: high}), field) == high

    @pytest.mark.parametrize("field", sorted(DURATION_BOUNDS))
    def test_out_of_bounds_falls_back_to_default(self, field):
        low, high = DURATION_BOUNDS[field]
        default = getattr(DEFAULT_SETTINGS, field)
        assert getattr(validate_settings({field: low - 1}), field) == default
        assert getattr(validate_settings({field: high + 1}), field) == default

    @pytest.mark.parametrize("bad", ["30", None, float("nan"), True, [25]])
    def test_malformed_durations(self, bad):
        assert validate_settings({"work_duration": bad}).work_duration == 25

    def test_floats_are_rounded(self):
        assert validate_settings({"work_duration": 29.6}).work_duration == 30

    def test_non_bool_toggle_falls_back(self):
        s = validate_settings({"sound_enabled": "no", "auto_start_work": 1})
        assert s.sound_enabled is True
        assert s.auto_start_work is False

    def test_unknown_keys_ignored(self):
        assert validate_settings({"theme": "dark"}) == DEFAULT_SETTINGS


# ═══════════════════════════════════════════════════════════════════════
#  STORE
# ═══════════════════════════════════════════════════════════════════════


class TestSettingsStore:
    def test_defaults_when_nothing_stored(self, store):
        assert SettingsStore(store).get_settings() == DEFAULT_SETTINGS

    def test_update_persists_and_notifies(self, store):
        settings = SettingsStore(store)
        c = Collector()
        settings.on_settings_change(c)
        updated = settings.update_settings(work_duration=45, auto_start_breaks=True)
        assert updated.work_duration == 45
        assert c.last == updated
        assert store.get(SETTINGS_KEY, None) == asdict(updated)

    def test_invalid_update_is_coerced(self, store):
        settings = SettingsStore(store)
        settings.update_settings(work_duration=45)
        s = settings.update_settings(work_duration=500, short_break_duration=0)
        assert s.work_duration == 25
        assert s.short_break_duration == 5

    def test_reload_from_store(self, store):
        SettingsStore(store).update_settings(long_break_duration=20)
        assert SettingsStore(store).get_settings().long_break_duration == 20

    def test_stored_garbage_is_validated(self, store):
        store.set(SETTINGS_KEY, {"work_duration": -3, "sound_enabled": "yes"})
        s = SettingsStore(store).get_settings()
        assert s.work_duration == 25
        assert s.sound_enabled is True

    def test_reset_to_defaults(self, store):
        settings = SettingsStore(store)
        settings.update_settings(work_duration=45)
        assert settings.reset_to_defaults() == DEFAULT_SETTINGS
        assert store.get(SETTINGS_KEY, None) == asdict(DEFAULT_SETTINGS)

    def test_destroy_clears_listeners(self, store):
        settings = SettingsStore(store)
        c = Collector()
        settings.on_settings_change(c)
        settings.destroy()
        settings.update_settings(work_duration=30)
        assert len(c) == 0

    def test_drives_engine(self, store, engine):
        settings = SettingsStore(store)
        settings.on_settings_change(engine.update_settings)
        settings.update_settings(work_duration=40)
        assert engine.remaining == 40 * 60
