"""
Shared fixtures: synthetic signals and on-disk WAV helpers.

Every signal is generated with numpy so tests never depend on recordings.
"""

import io
from typing import Callable, Sequence

import numpy as np
import pytest
import scipy.io.wavfile

from revscore.audio import AudioBuffer

SR = 22050


def harmonic_tone(freq: float, duration: float = 1.5, sr: int = SR, amp: float = 0.5) -> np.ndarray:
    """A voice-like tone: fundamental plus two decaying harmonics."""
    t = np.arange(int(duration * sr)) / sr
    y = np.sin(2 * np.pi * freq * t) + 0.5 * np.sin(4 * np.pi * freq * t) + 0.25 * np.sin(6 * np.pi * freq * t)
    return amp * y / np.max(np.abs(y))


def note_sequence(freqs: Sequence[float], note_s: float = 0.4, gap_s: float = 0.3, sr: int = SR) -> np.ndarray:
    """Notes separated by silent gaps; 0 Hz gives a rest."""
    parts = []
    for f in freqs:
        parts.append(harmonic_tone(f, note_s, sr) if f > 0 else np.zeros(int(note_s * sr)))
        parts.append(np.zeros(int(gap_s * sr)))
    return np.concatenate(parts)


def wav_bytes(y: np.ndarray, sr: int = SR) -> bytes:
    buf = io.BytesIO()
    scipy.io.wavfile.write(buf, sr, (np.clip(y, -1, 1) * 32767).astype(np.int16))
    return buf.getvalue()


@pytest.fixture
def sr() -> int:
    return SR


@pytest.fixture
def tone() -> AudioBuffer:
    return AudioBuffer.from_float(harmonic_tone(220.0), SR)


@pytest.fixture
def detuned_tone() -> AudioBuffer:
    return AudioBuffer.from_float(harmonic_tone(233.0), SR)


@pytest.fixture
def noise() -> AudioBuffer:
    rng = np.random.default_rng(7)
    return AudioBuffer.from_float(0.3 * rng.standard_normal(int(1.5 * SR)), SR)


@pytest.fixture
def melody() -> AudioBuffer:
    return AudioBuffer.from_float(note_sequence([220.0, 262.0, 330.0, 262.0]), SR)


@pytest.fixture
def silence() -> AudioBuffer:
    return AudioBuffer(np.zeros(SR, dtype=np.int16), SR)


@pytest.fixture
def make_wav(tmp_path) -> Callable[[str, np.ndarray], str]:
    def _write(name: str, y: np.ndarray) -> str:
        path = tmp_path / name
        path.write_bytes(wav_bytes(y))
        return str(path)
    return _write
