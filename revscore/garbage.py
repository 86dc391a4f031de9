from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import librosa
import numpy as np
import scipy.signal

from .config import GarbageDetectionParameters
from .features import mfcc_variance

logger = logging.getLogger(__name__)

# Each failed filter adds its weight; above the verdict threshold the attempt is rejected
MFCC_WEIGHT = 0.25
MONOTONE_WEIGHT = 0.25
OSCILLATION_WEIGHT = 0.15
ENTROPY_WEIGHT = 0.20
ZCR_WEIGHT = 0.15
SILENCE_WEIGHT = 0.15
VERDICT_THRESHOLD = 0.4

ENTROPY_FRAMES = 10

REPETITIVE = "Repetitive sound pattern detected"
MONOTONE = "Monotone/droning detected"
OSCILLATING = "Unnatural pitch oscillation"
LOW_COMPLEXITY = "Low audio complexity (noise/hum)"
ABNORMAL_SIGNATURE = "Abnormal audio signature"
NO_PAUSES = "No natural speech pauses"


@dataclass(frozen=True)
class PitchContourAnalysis:
    std_hz: float
    oscillation_rate: float
    is_monotone: bool
    is_oscillating: bool


@dataclass(frozen=True)
class GarbageAnalysis:
    is_garbage: bool
    confidence: float
    failed_filters: Tuple[str, ...] = ()
    filter_results: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def passed(cls) -> "GarbageAnalysis":
        return cls(is_garbage=False, confidence=0.0)


def analyze_pitch_contour(pitches_hz: np.ndarray, params: GarbageDetectionParameters) -> PitchContourAnalysis:
    """Drone and wobble checks over the voiced part of a pitch track."""
    voiced = np.asarray(pitches_hz, dtype=float)
    voiced = voiced[np.isfinite(voiced) & (voiced > 0)]
    if voiced.size < 3:
        return PitchContourAnalysis(0.0, 0.0, False, False)

    std = float(np.std(voiced))
    mid = voiced[1:-1]
    peaks = (mid > voiced[:-2]) & (mid > voiced[2:])
    troughs = (mid < voiced[:-2]) & (mid < voiced[2:])
    rate = float(np.count_nonzero(peaks | troughs)) / mid.size
    return PitchContourAnalysis(
        std_hz=std,
        oscillation_rate=rate,
        is_monotone=std < params.pitch_monotone_threshold,
        is_oscillating=rate > params.pitch_oscillation_rate,
    )


def spectral_entropy(frame: np.ndarray) -> float:
    """Shannon entropy of the power spectrum, normalized to [0, 1]."""
    window = scipy.signal.get_window("hamming", frame.size, fftbins=False)
    power = np.abs(np.fft.rfft(frame * window)) ** 2
    total = float(power.sum())
    if total <= 0.0 or power.size < 2:
        return 0.0
    p = power / total
    p = p[p > 0]
    return float(-np.sum(p * np.log(p)) / np.log(power.size))


class GarbageDetector:
    """
    Rejects attempts that are clearly not a try at the reference:
    repeated syllables, a held hum, noise, or sound with no pauses at all.
    """

    def detect(
        self,
        y: np.ndarray,
        sr: int,
        pitches_hz: np.ndarray,
        mfcc_frames: np.ndarray,
        params: GarbageDetectionParameters,
        frame_length: int = 2048,
        hop_length: int = 1024,
    ) -> GarbageAnalysis:
        if not params.enabled:
            return GarbageAnalysis.passed()

        failed: List[str] = []
        results: Dict[str, float] = {}
        score = 0.0

        if mfcc_frames.ndim == 2 and mfcc_frames.shape[0] >= 2:
            variance = mfcc_variance(mfcc_frames)
            results["mfcc_variance"] = variance
            if variance < params.mfcc_variance_threshold:
                score += MFCC_WEIGHT
                failed.append(REPETITIVE)

        if np.asarray(pitches_hz).size >= 3:
            contour = analyze_pitch_contour(pitches_hz, params)
            results["pitch_stddev"] = contour.std_hz
            results["pitch_oscillation"] = contour.oscillation_rate
            if contour.is_monotone:
                score += MONOTONE_WEIGHT
                failed.append(MONOTONE)
            if contour.is_oscillating:
                score += OSCILLATION_WEIGHT
                failed.append(OSCILLATING)

        if y.size >= frame_length:
            y = np.ascontiguousarray(y, dtype=np.float64)
            frames = librosa.util.frame(y, frame_length=frame_length, hop_length=hop_length)

            entropies = [spectral_entropy(frames[:, i]) for i in range(min(ENTROPY_FRAMES, frames.shape[1]))]
            avg_entropy = float(np.mean(entropies))
            results["spectral_entropy"] = avg_entropy
            if avg_entropy < params.spectral_entropy_threshold:
                score += ENTROPY_WEIGHT
                failed.append(LOW_COMPLEXITY)

            zcr = float(np.mean(librosa.feature.zero_crossing_rate(
                y, frame_length=frame_length, hop_length=hop_length, center=False,
            )))
            results["zero_crossing_rate"] = zcr
            if zcr < params.zcr_min_threshold or zcr > params.zcr_max_threshold:
                score += ZCR_WEIGHT
                failed.append(ABNORMAL_SIGNATURE)

            rms = librosa.feature.rms(y=y, frame_length=frame_length, hop_length=hop_length, center=False)[0]
            silence_ratio = float(np.mean(rms < params.silence_threshold))
            results["silence_ratio"] = silence_ratio
            if silence_ratio < params.silence_ratio_min:
                score += SILENCE_WEIGHT
                failed.append(NO_PAUSES)

        verdict = score > VERDICT_THRESHOLD
        logger.debug("Garbage score %.2f (%s) failed=%s", score, "reject" if verdict else "accept", failed)
        return GarbageAnalysis(
            is_garbage=verdict,
            confidence=score,
            failed_filters=tuple(failed),
            filter_results=results,
        )
