from __future__ import annotations

import logging
import math
from typing import Union

import librosa
import numpy as np
import scipy.signal

from .audio import AudioBuffer

logger = logging.getLogger(__name__)

Signal = Union[AudioBuffer, np.ndarray]

WINDOW_SIZE = 2048
HOP_SIZE = 1024

# squared cosine similarity is rescaled so that moderate overlap earns nothing
RESCALE_FLOOR = 0.6
RESCALE_CEILING = 0.9
NORM_EPSILON = 1e-4


def _as_signal(x: Signal) -> np.ndarray:
    if isinstance(x, AudioBuffer):
        return x.as_float()
    return np.asarray(x, dtype=np.float64).reshape(-1)


def peak_normalize(x: np.ndarray) -> np.ndarray:
    peak = float(np.max(np.abs(x))) if x.size else 0.0
    if peak <= 0.0:
        return np.zeros_like(x, dtype=np.float64)
    return x / peak


def average_spectrum(x: np.ndarray, window_size: int = WINDOW_SIZE, hop_size: int = HOP_SIZE) -> np.ndarray:
    """
    Mean magnitude spectrum over Hamming-windowed frames.

    Returns window_size // 2 bins; all zeros when the signal is shorter than one window.
    """
    n_bins = window_size // 2
    if x.size < window_size:
        return np.zeros(n_bins, dtype=np.float64)

    frames = librosa.util.frame(np.ascontiguousarray(x), frame_length=window_size, hop_length=hop_size)
    window = scipy.signal.get_window("hamming", window_size, fftbins=False)
    mags = np.abs(np.fft.rfft(frames * window[:, None], axis=0))[:n_bins]
    return mags.mean(axis=1)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    denom = float(np.linalg.norm(a) * np.linalg.norm(b))
    if denom < NORM_EPSILON:
        return 0.0
    return float(np.clip(np.dot(a, b) / denom, 0.0, 1.0))


def rescale(similarity: float) -> float:
    if similarity <= RESCALE_FLOOR:
        return 0.0
    if similarity > RESCALE_CEILING:
        return 1.0
    return (similarity - RESCALE_FLOOR) / (RESCALE_CEILING - RESCALE_FLOOR)


class SpectralComparer:
    """Whole-clip spectral similarity on a 0..100 scale."""

    def __init__(self, window_size: int = WINDOW_SIZE, hop_size: int = HOP_SIZE):
        self.window_size = window_size
        self.hop_size = hop_size

    def spectral_similarity(self, a: Signal, b: Signal) -> float:
        """Rescaled similarity in [0, 1]. Raises on malformed input."""
        x = _as_signal(a)
        y = _as_signal(b)
        n = min(x.size, y.size)
        if n == 0:
            return 0.0

        spec_x = average_spectrum(peak_normalize(x[:n]), self.window_size, self.hop_size)
        spec_y = average_spectrum(peak_normalize(y[:n]), self.window_size, self.hop_size)

        cos = cosine_similarity(spec_x, spec_y)
        scaled = rescale(cos * cos)
        logger.debug("Spectral cosine=%.4f squared=%.4f rescaled=%.4f", cos, cos * cos, scaled)
        return scaled

    def compare(self, a: Signal, b: Signal) -> int:
        try:
            similarity = self.spectral_similarity(a, b)
        except Exception:
            logger.exception("Spectral comparison failed; scoring as 0")
            return 0
        if not math.isfinite(similarity):
            return 0
        return int(min(100, max(0, math.floor(similarity * 100.0 + 0.5))))
