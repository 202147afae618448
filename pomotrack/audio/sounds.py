"""Completion sounds synthesized with numpy and played via QSoundEffect.

Each sound is rendered once to a WAV file in the data directory and loaded
from there on later launches.

Sound names
-----------
- ``work_complete``:  three ascending notes (C5→E5→G5)
- ``break_complete``: single A5 chime with a one-second decay
"""

from __future__ import annotations

import io
import logging
import wave
from pathlib import Path
from typing import Callable, Optional

import numpy as np

from PyQt6.QtCore import QObject, QUrl
from PyQt6.QtMultimedia import QSoundEffect

from ..storage import default_data_dir


SOUND_NAMES = ("work_complete", "break_complete")

SAMPLE_RATE = 44100


# ═══════════════════════════════════════════════════════════════════════════
#  WAV SYNTHESIS HELPERS
# ═══════════════════════════════════════════════════════════════════════════


def _timeline(duration_s: float) -> np.ndarray:
    return np.arange(int(SAMPLE_RATE * duration_s)) / SAMPLE_RATE


def _decaying_tone(
    freq: float,
    duration_s: float,
    gain: float,
    *,
    floor: float = 0.01,
) -> np.ndarray:
    """Tone whose amplitude ramps exponentially from *gain* down to *floor*."""
    t = _timeline(duration_s)
    wave_ = np.sin(2 * np.pi * freq * t)
    envelope = gain * (floor / gain) ** (t / duration_s)
    return wave_ * envelope


def _to_wav_bytes(samples: np.ndarray) -> bytes:
    """Mono 16-bit PCM WAV from float samples in -1..1."""
    pcm = (np.clip(samples, -1.0, 1.0) * 32767).astype(np.int16)
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(pcm.tobytes())
    return buf.getvalue()


# ═══════════════════════════════════════════════════════════════════════════
#  SOUND GENERATORS
# ═══════════════════════════════════════════════════════════════════════════


def _generate_work_complete() -> bytes:
    """Notes start 150 ms apart and ring for 300 ms each, so they overlap."""
    notes = (523.0, 659.0, 784.0)
    offset = int(SAMPLE_RATE * 0.15)
    note = [_decaying_tone(freq, 0.3, 0.2) for freq in notes]
    out = np.zeros(offset * (len(notes) - 1) + len(note[0]))
    for i, tone in enumerate(note):
        out[i * offset: i * offset + len(tone)] += tone
    return _to_wav_bytes(out)


def _generate_break_complete() -> bytes:
    return _to_wav_bytes(_decaying_tone(880.0, 1.0, 0.3))


_GENERATORS: dict[str, Callable[[], bytes]] = {
    "work_complete": _generate_work_complete,
    "break_complete": _generate_break_complete,
}


# ═══════════════════════════════════════════════════════════════════════════
#  SOUND MANAGER
# ═══════════════════════════════════════════════════════════════════════════


class SoundManager(QObject):
    """Caches the generated WAV files and plays them.

    Usage::

        mgr = SoundManager(parent=self)
        mgr.set_volume(70)
        mgr.play("work_complete")
    """

    def __init__(
        self,
        parent: QObject | None = None,
        *,
        sounds_dir: Path | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(parent)
        self._logger = logger or logging.getLogger("pomotrack.audio")
        self._enabled = True
        self._volume = 0.7  # 0.0–1.0
        self._sounds_dir = sounds_dir or default_data_dir() / "sounds"
        self._effects: dict[str, QSoundEffect] = {}

        self._ensure_wav_files()
        self._load_effects()

    # ── public API ────────────────────────────────────────────────────

    def set_volume(self, level: int) -> None:
        """Set volume (0-100).  Updates all loaded effects."""
        self._volume = max(0, min(level, 100)) / 100.0
        for effect in self._effects.values():
            effect.setVolume(self._volume)

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled

    def play(self, name: str) -> None:
        """Play a sound by name.  No-op if disabled or name unknown."""
        if not self._enabled:
            return
        effect = self._effects.get(name)
        if effect is not None:
            effect.play()

    @property
    def volume(self) -> int:
        return round(self._volume * 100)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def sounds_dir(self) -> Path:
        return self._sounds_dir

    # ── internal ──────────────────────────────────────────────────────

    def _ensure_wav_files(self) -> None:
        try:
            self._sounds_dir.mkdir(parents=True, exist_ok=True)
            for name, generate in _GENERATORS.items():
                path = self._sounds_dir / f"{name}.wav"
                if not path.exists():
                    path.write_bytes(generate())
        except OSError as error:
            # Playback simply becomes a no-op for missing files.
            self._logger.warning("Could not write sound cache: %s", error)

    def _load_effects(self) -> None:
        for name in SOUND_NAMES:
            path = self._sounds_dir / f"{name}.wav"
            if path.exists():
                effect = QSoundEffect(self)
                effect.setSource(QUrl.fromLocalFile(str(path)))
                effect.setVolume(self._volume)
                self._effects[name] = effect
