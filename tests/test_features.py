"""
Tests for revscore/features.py: pitch/MFCC extraction and feature reduction.
"""

import numpy as np
import pytest

from revscore.audio import AudioBuffer
from revscore.features import (
    FeatureExtractor,
    RawVocalStats,
    VocalFeatures,
    compute_raw_stats,
    hz_to_semitones,
    mfcc_variance,
)

from conftest import SR, harmonic_tone


class TestRawStats:
    def test_steady_track_is_fully_stable(self):
        stats = compute_raw_stats(np.full(50, 220.0), np.zeros((50, 13)))
        f = stats.to_features(15.0, 350.0)
        assert f.pitch_stability == 1.0
        assert f.pitch_contour == 0.0
        assert f.voiced_ratio == 1.0

    def test_stddev_of_50hz_gives_zero_stability(self):
        stats = compute_raw_stats(np.array([150.0, 250.0] * 10), np.zeros((20, 13)))
        assert stats.pitch_std_hz == pytest.approx(50.0)
        assert stats.to_features(15.0, 350.0).pitch_stability == pytest.approx(0.0)

    def test_contour_skips_unvoiced_frames(self):
        stats = compute_raw_stats(np.array([100.0, 0.0, 110.0, 0.0, 120.0]), np.zeros((5, 13)))
        assert stats.mean_abs_delta_hz == pytest.approx(10.0)
        f = stats.to_features(15.0, 350.0)
        assert f.pitch_contour == pytest.approx(10.0 / 15.0)
        assert f.voiced_ratio == pytest.approx(0.6)

    def test_fewer_than_three_voiced_frames(self):
        f = compute_raw_stats(np.array([0.0, 200.0, 0.0, 300.0]), np.zeros((4, 13))).to_features(15.0, 350.0)
        assert f.pitch_stability == 0.0
        assert f.pitch_contour == 0.0
        assert f.voiced_ratio == 0.5

    def test_mfcc_spread_needs_two_frames(self):
        one_frame = compute_raw_stats(np.full(5, 200.0), np.ones((1, 13)))
        assert one_frame.to_features(15.0, 350.0).mfcc_spread == 0.0

    def test_mfcc_spread_is_clamped(self):
        frames = np.vstack([np.full(13, -100.0), np.full(13, 100.0)])
        f = compute_raw_stats(np.full(5, 200.0), frames).to_features(15.0, 350.0)
        assert f.mfcc_spread == 1.0

    def test_normalizers_rescale_without_reextraction(self):
        stats = RawVocalStats(
            pitch_std_hz=0.0, mean_abs_delta_hz=6.0, mfcc_variance=100.0,
            voiced_frames=10, total_frames=10, mfcc_frames=10,
        )
        assert stats.to_features(12.0, 200.0).pitch_contour == pytest.approx(0.5)
        assert stats.to_features(30.0, 200.0).pitch_contour == pytest.approx(0.2)
        assert stats.to_features(30.0, 400.0).mfcc_spread == pytest.approx(0.25)

    def test_no_frames(self):
        f = compute_raw_stats(np.zeros(0), np.zeros((0, 13))).to_features(15.0, 350.0)
        assert f == VocalFeatures.zero()

    def test_mfcc_variance_is_mean_of_per_coefficient_variance(self):
        frames = np.array([[0.0, 0.0], [2.0, 4.0]])
        # variances 1 and 4
        assert mfcc_variance(frames) == pytest.approx(2.5)


class TestSemitones:
    def test_reference_is_zero(self):
        st = hz_to_semitones(np.array([440.0, 880.0, 220.0, 0.0]))
        assert st[:3] == pytest.approx([0.0, 12.0, -12.0])
        assert np.isnan(st[3])


class TestFeatureExtractor:
    def test_frame_count(self):
        ex = FeatureExtractor(frame_length=1024, hop_length=512)
        assert ex.n_frames(1023) == 0
        assert ex.n_frames(1024) == 1
        assert ex.n_frames(1024 + 512 * 3) == 4

    def test_pitch_of_steady_tone(self):
        ex = FeatureExtractor()
        f0 = ex.pitch_track(harmonic_tone(220.0, duration=1.0), SR)
        voiced = f0[f0 > 0]
        assert voiced.size > 0.8 * f0.size
        assert np.median(voiced) == pytest.approx(220.0, rel=0.03)

    def test_short_signal_gives_empty_track(self):
        assert FeatureExtractor().pitch_track(np.ones(100) * 0.1, SR).size == 0

    def test_silence_is_unvoiced(self):
        ex = FeatureExtractor()
        f0 = ex.pitch_track(np.zeros(SR), SR)
        assert f0.size == ex.n_frames(SR)
        assert not f0.any()

    def test_mfcc_shape(self):
        ex = FeatureExtractor()
        frames = ex.mfcc_frames(harmonic_tone(220.0, duration=1.0), SR)
        assert frames.shape == (ex.n_frames(SR), 13)

    def test_mfcc_short_signal(self):
        assert FeatureExtractor().mfcc_frames(np.ones(10), SR).shape == (0, 13)

    def test_extract_steady_tone(self):
        f = FeatureExtractor().extract(AudioBuffer.from_float(harmonic_tone(220.0), SR))
        assert f.pitch_stability > 0.9
        assert f.voiced_ratio > 0.8
        for value in (f.pitch_stability, f.pitch_contour, f.mfcc_spread, f.voiced_ratio):
            assert 0.0 <= value <= 1.0
