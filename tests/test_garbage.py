"""
Tests for revscore/garbage.py: the attempt filter that rejects hums,
repeated syllables and noise before scoring.
"""

import numpy as np
import pytest

from revscore.config import GarbageDetectionParameters
from revscore.garbage import (
    MONOTONE,
    NO_PAUSES,
    OSCILLATING,
    REPETITIVE,
    GarbageDetector,
    analyze_pitch_contour,
    spectral_entropy,
)
from conftest import SR

ON = GarbageDetectionParameters(enabled=True)


def _sine(freq=220.0, duration=1.0):
    t = np.arange(int(duration * SR)) / SR
    return 0.5 * np.sin(2 * np.pi * freq * t)


class TestPitchContour:
    def test_held_pitch_is_monotone(self):
        contour = analyze_pitch_contour(np.full(50, 220.0), ON)
        assert contour.is_monotone
        assert contour.std_hz == 0.0
        assert contour.oscillation_rate == 0.0

    def test_zigzag_is_oscillating(self):
        contour = analyze_pitch_contour(np.tile([200.0, 300.0], 20), ON)
        assert contour.oscillation_rate == pytest.approx(1.0)
        assert contour.is_oscillating
        assert not contour.is_monotone

    def test_glide_is_neither(self):
        contour = analyze_pitch_contour(np.arange(200.0, 300.0, 10.0), ON)
        assert not contour.is_monotone
        assert not contour.is_oscillating

    def test_unvoiced_frames_ignored(self):
        contour = analyze_pitch_contour(np.array([0.0, np.nan, 220.0, 0.0]), ON)
        assert contour == analyze_pitch_contour(np.array([]), ON)
        assert not contour.is_monotone


class TestSpectralEntropy:
    def test_silent_frame_is_zero(self):
        assert spectral_entropy(np.zeros(2048)) == 0.0

    def test_noise_above_tone(self):
        rng = np.random.default_rng(3)
        noisy = spectral_entropy(rng.standard_normal(2048))
        pure = spectral_entropy(_sine()[:2048])
        assert 0.0 <= pure < noisy <= 1.0


class TestGarbageDetector:
    def test_disabled_passes_everything(self):
        verdict = GarbageDetector().detect(_sine(), SR, np.full(50, 220.0), np.zeros((20, 13)),
                                           GarbageDetectionParameters())
        assert not verdict.is_garbage
        assert verdict.confidence == 0.0
        assert verdict.failed_filters == ()

    def test_held_hum_is_rejected(self):
        verdict = GarbageDetector().detect(_sine(), SR, np.full(50, 220.0), np.zeros((20, 13)), ON)
        assert verdict.is_garbage
        assert verdict.confidence > 0.4
        assert REPETITIVE in verdict.failed_filters
        assert MONOTONE in verdict.failed_filters
        assert NO_PAUSES in verdict.failed_filters

    def test_varied_attempt_with_pauses_is_accepted(self):
        rng = np.random.default_rng(0)
        y = np.concatenate([0.3 * rng.standard_normal(int(0.5 * SR)), np.zeros(int(0.2 * SR))])
        pitches = np.arange(200.0, 300.0, 10.0)
        mfcc = rng.standard_normal((20, 13)) * 10
        verdict = GarbageDetector().detect(y, SR, pitches, mfcc, ON)
        assert not verdict.is_garbage
        assert verdict.filter_results["silence_ratio"] == pytest.approx(3 / 14)
        assert NO_PAUSES not in verdict.failed_filters
        assert MONOTONE not in verdict.failed_filters

    def test_oscillation_reported(self):
        verdict = GarbageDetector().detect(np.zeros(100), SR, np.tile([200.0, 300.0], 20), np.zeros((1, 13)), ON)
        assert verdict.failed_filters == (OSCILLATING,)
        assert verdict.confidence == pytest.approx(0.15)
        assert not verdict.is_garbage

    def test_short_clip_skips_frame_filters(self):
        verdict = GarbageDetector().detect(np.zeros(100), SR, np.array([]), np.zeros((1, 13)), ON)
        assert verdict.filter_results == {}
        assert not verdict.is_garbage
