from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import librosa
import numpy as np

from .audio import AudioBuffer
from .config import TuningParameters

logger = logging.getLogger(__name__)

# Classifier framing
FRAME_LENGTH = 1024
HOP_LENGTH = 512

# Pitch search range for the human voice
FMIN_HZ = 65.0
FMAX_HZ = 1000.0

# pYIN needs roughly two periods of the lowest pitch inside one frame
_MIN_PERIODS_PER_FRAME = 2.2

N_MELS = 26
N_MFCC = 13  # c0 (energy) is dropped

STABILITY_STD_HZ = 50.0
MIN_VOICED_FRAMES = 3
MIN_MFCC_FRAMES = 2


@dataclass(frozen=True)
class VocalFeatures:
    pitch_stability: float
    pitch_contour: float
    mfcc_spread: float
    voiced_ratio: float

    @classmethod
    def zero(cls) -> "VocalFeatures":
        return cls(0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class RawVocalStats:
    """
    Normalizer-independent clip statistics.

    Kept separately from VocalFeatures so a tuning run can re-derive features
    for any contour/MFCC normalizer without touching the audio again.
    """
    pitch_std_hz: float
    mean_abs_delta_hz: float
    mfcc_variance: float
    voiced_frames: int
    total_frames: int
    mfcc_frames: int

    def to_features(self, contour_normalizer: float, mfcc_normalizer: float) -> VocalFeatures:
        if self.voiced_frames >= MIN_VOICED_FRAMES:
            stability = 1.0 - _clamp01(self.pitch_std_hz / STABILITY_STD_HZ)
            contour = _clamp01(self.mean_abs_delta_hz / contour_normalizer)
        else:
            stability = 0.0
            contour = 0.0

        spread = _clamp01(self.mfcc_variance / mfcc_normalizer) if self.mfcc_frames >= MIN_MFCC_FRAMES else 0.0
        voiced_ratio = self.voiced_frames / self.total_frames if self.total_frames > 0 else 0.0
        return VocalFeatures(
            pitch_stability=stability,
            pitch_contour=contour,
            mfcc_spread=spread,
            voiced_ratio=voiced_ratio,
        )


def _clamp01(x: float) -> float:
    return float(min(1.0, max(0.0, x)))


def compute_raw_stats(pitches_hz: np.ndarray, mfcc_frames: np.ndarray) -> RawVocalStats:
    """
    pitches_hz: per-frame f0 with 0 for unvoiced frames.
    mfcc_frames: (n_frames, n_coeffs).
    """
    pitches_hz = np.asarray(pitches_hz, dtype=float).reshape(-1)
    voiced = pitches_hz[np.isfinite(pitches_hz) & (pitches_hz > 0)]

    pitch_std = float(np.std(voiced)) if voiced.size else 0.0
    mean_delta = float(np.mean(np.abs(np.diff(voiced)))) if voiced.size >= 2 else 0.0

    mfcc_frames = np.asarray(mfcc_frames, dtype=float)
    n_mfcc_frames = int(mfcc_frames.shape[0]) if mfcc_frames.ndim == 2 else 0
    mfcc_var = mfcc_variance(mfcc_frames) if n_mfcc_frames >= MIN_MFCC_FRAMES else 0.0

    return RawVocalStats(
        pitch_std_hz=pitch_std,
        mean_abs_delta_hz=mean_delta,
        mfcc_variance=mfcc_var,
        voiced_frames=int(voiced.size),
        total_frames=int(pitches_hz.size),
        mfcc_frames=n_mfcc_frames,
    )


def mfcc_variance(mfcc_frames: np.ndarray) -> float:
    # mean over coefficients of the per-coefficient variance across frames
    if mfcc_frames.ndim != 2 or mfcc_frames.shape[0] < 2:
        return 0.0
    return float(np.mean(np.var(mfcc_frames, axis=0)))


def hz_to_semitones(f0_hz: np.ndarray, reference_hz: float = 440.0, semitones_per_octave: float = 12.0) -> np.ndarray:
    """Semitones relative to reference_hz; NaN where the frame is unvoiced."""
    f0_hz = np.asarray(f0_hz, dtype=float)
    out = np.full_like(f0_hz, np.nan, dtype=float)
    good = np.isfinite(f0_hz) & (f0_hz > 0)
    out[good] = semitones_per_octave * np.log2(f0_hz[good] / reference_hz)
    return out


def _pyin_range(sr: int, frame_length: int, fmin: float, fmax: float) -> Tuple[float, float]:
    fmin_eff = max(fmin, _MIN_PERIODS_PER_FRAME * sr / frame_length)
    fmax_eff = min(fmax, sr / 2.0 - 1.0)
    return fmin_eff, fmax_eff


class FeatureExtractor:
    """
    Frame-wise pitch (pYIN) and timbre (MFCC) extraction.

    Frames are not centred: frame i covers samples [i*hop, i*hop + frame_length).
    """

    def __init__(
        self,
        frame_length: int = FRAME_LENGTH,
        hop_length: int = HOP_LENGTH,
        fmin: float = FMIN_HZ,
        fmax: float = FMAX_HZ,
    ):
        self.frame_length = frame_length
        self.hop_length = hop_length
        self.fmin = fmin
        self.fmax = fmax

    def n_frames(self, n_samples: int, frame_length: Optional[int] = None, hop_length: Optional[int] = None) -> int:
        frame_length = frame_length or self.frame_length
        hop_length = hop_length or self.hop_length
        if n_samples < frame_length:
            return 0
        return 1 + (n_samples - frame_length) // hop_length

    def pitch_track(
        self,
        y: np.ndarray,
        sr: int,
        frame_length: Optional[int] = None,
        hop_length: Optional[int] = None,
    ) -> np.ndarray:
        """Per-frame f0 in Hz, 0 where unvoiced."""
        frame_length = frame_length or self.frame_length
        hop_length = hop_length or self.hop_length
        n = self.n_frames(len(y), frame_length, hop_length)
        if n == 0:
            return np.zeros(0, dtype=float)
        if not np.any(y):
            return np.zeros(n, dtype=float)

        fmin, fmax = _pyin_range(sr, frame_length, self.fmin, self.fmax)
        if fmin >= fmax:
            logger.warning("No usable pitch range at sr=%d, frame=%d; track is unvoiced", sr, frame_length)
            return np.zeros(n, dtype=float)

        f0, voiced_flag, _voiced_prob = librosa.pyin(
            np.ascontiguousarray(y, dtype=np.float64),
            fmin=fmin,
            fmax=fmax,
            sr=sr,
            frame_length=frame_length,
            hop_length=hop_length,
            center=False,
        )
        f0 = np.where(voiced_flag & np.isfinite(f0), f0, 0.0)
        return f0[:n].astype(float)

    def mfcc_frames(
        self,
        y: np.ndarray,
        sr: int,
        frame_length: Optional[int] = None,
        hop_length: Optional[int] = None,
    ) -> np.ndarray:
        """(n_frames, 13) cepstral vectors without c0."""
        frame_length = frame_length or self.frame_length
        hop_length = hop_length or self.hop_length
        if self.n_frames(len(y), frame_length, hop_length) == 0:
            return np.zeros((0, N_MFCC), dtype=float)

        mfcc = librosa.feature.mfcc(
            y=np.ascontiguousarray(y, dtype=np.float64),
            sr=sr,
            n_mfcc=N_MFCC + 1,
            n_fft=frame_length,
            hop_length=hop_length,
            n_mels=N_MELS,
            center=False,
        )
        return mfcc[1:].T.astype(float)

    def raw_stats(self, audio: AudioBuffer) -> RawVocalStats:
        y = audio.as_float()
        pitches = self.pitch_track(y, audio.sample_rate)
        mfcc = self.mfcc_frames(y, audio.sample_rate)
        stats = compute_raw_stats(pitches, mfcc)
        logger.debug(
            "Raw stats: std=%.2fHz delta=%.2fHz mfcc_var=%.2f voiced=%d/%d",
            stats.pitch_std_hz, stats.mean_abs_delta_hz, stats.mfcc_variance,
            stats.voiced_frames, stats.total_frames,
        )
        return stats

    def extract(self, audio: AudioBuffer, params: TuningParameters = TuningParameters()) -> VocalFeatures:
        return self.raw_stats(audio).to_features(params.contour_normalizer, params.mfcc_normalizer)
