from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import librosa
import numpy as np

from .audio import AudioBuffer
from .config import ChallengeDirection, ParameterBundle
from .errors import ScoringError
from .features import FeatureExtractor, hz_to_semitones
from .garbage import GarbageAnalysis, GarbageDetector
from .melody import (
    contour_similarity,
    extract_segments,
    frame_pitch_similarity,
    interval_accuracy,
    melodic_ratio,
    melodic_variation,
    monotone_penalty,
    phrase_similarity,
    rhythm_similarity,
    vocal_effort_similarity,
    voiced_mask,
)
from .presets import normal_mode
from .spectral import SpectralComparer

logger = logging.getLogger(__name__)

SILENCE_FEEDBACK = "Silence was recorded. Please try singing next time!"
GARBAGE_FEEDBACK = "That didn't sound like a real attempt. Try copying the clip!"

RIGHT_CONTENT = "right_content"
RIGHT_CONTENT_FLAT = "right_content_flat"
RIGHT_CONTENT_DIFFERENT_MELODY = "right_content_different_melody"
WRONG_CONTENT_FLAT = "wrong_content_flat"
WRONG_CONTENT_INSUFFICIENT = "wrong_content_insufficient"
WRONG_CONTENT_STANDARD = "wrong_content_standard"


@dataclass(frozen=True)
class SimilarityMetrics:
    pitch: float = 0.0
    mfcc: float = 0.0
    spectral: float = 0.0


@dataclass(frozen=True)
class ContentMetrics:
    contour: float
    interval: float
    phrase: float
    rhythm: float
    spectral: float
    best: float
    average: float
    right_content: bool
    melodic_ratio: float
    tier: str
    penalty: float


@dataclass(frozen=True)
class ScoringResult:
    score: int
    raw_score: float
    metrics: SimilarityMetrics = field(default_factory=SimilarityMetrics)
    feedback: Tuple[str, ...] = ()
    content: Optional[ContentMetrics] = None
    garbage: Optional[GarbageAnalysis] = None

    @classmethod
    def empty(cls) -> "ScoringResult":
        return cls(score=0, raw_score=0.0)

    @property
    def is_garbage(self) -> bool:
        return self.garbage is not None and self.garbage.is_garbage


def rms(y: np.ndarray) -> float:
    if y.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(y))))


def align_clips(reference: np.ndarray, attempt: np.ndarray, threshold: float) -> Tuple[np.ndarray, np.ndarray]:
    """Trim leading quiet samples from both clips and cut them to a common length."""
    def first_loud(y: np.ndarray) -> int:
        idx = np.flatnonzero(np.abs(y) > threshold)
        return int(idx[0]) if idx.size else 0

    ref_start = first_loud(reference)
    att_start = first_loud(attempt)
    n = min(reference.size - ref_start, attempt.size - att_start)
    if n <= 0:
        return np.zeros(0), np.zeros(0)
    return reference[ref_start:ref_start + n], attempt[att_start:att_start + n]


def _pad_to(y: np.ndarray, n: int) -> np.ndarray:
    if y.size >= n:
        return y
    return np.pad(y, (0, n - y.size))


def mfcc_similarity(reference: np.ndarray, attempt: np.ndarray, dtw_normalization_factor: float) -> float:
    """exp(-average DTW path cost / factor) over Euclidean frame distances."""
    if reference.shape[0] < 2 or attempt.shape[0] < 2:
        return 0.0
    D, _wp = librosa.sequence.dtw(X=reference.T, Y=attempt.T, metric="euclidean")
    avg = float(D[-1, -1]) / max(reference.shape[0], attempt.shape[0])
    similarity = math.exp(-avg / dtw_normalization_factor)
    logger.debug("DTW avg distance %.2f -> similarity %.3f", avg, similarity)
    return similarity


def scale_score(raw: float, bundle: ParameterBundle, direction: ChallengeDirection) -> int:
    scoring = bundle.scoring
    scaling = bundle.scaling
    clamped = min(1.0, max(0.0, raw))

    lo = scoring.min_score_threshold
    hi = scoring.perfect_score_threshold
    curve = scoring.score_curve
    if direction is ChallengeDirection.REVERSE:
        lo *= scaling.reverse_min_score_adjustment
        hi *= scaling.reverse_perfect_score_adjustment
        curve *= scaling.reverse_curve_adjustment

    if clamped < lo:
        return 0
    if clamped > hi:
        return 100
    span = hi - lo
    if span <= 0:
        return 0
    normalized = (clamped - lo) / span
    curved = normalized ** (1.0 / max(scaling.minimum_curve_protection, curve))
    return int(min(100, max(0, math.floor(curved * 100.0 + 0.5))))


def build_feedback(
    score: int,
    metrics: SimilarityMetrics,
    content: Optional[ContentMetrics],
    bundle: ParameterBundle,
    direction: ChallengeDirection,
) -> Tuple[str, ...]:
    scaling = bundle.scaling
    feedback: List[str] = []

    if score >= scaling.incredible_feedback_threshold:
        feedback.append("Incredible! You're a reverse singing master!")
    elif score >= scaling.great_job_feedback_threshold:
        feedback.append("Great job! You're really getting the hang of this!")
    elif score >= scaling.good_effort_feedback_threshold:
        feedback.append("Good effort! Keep practicing!")
    else:
        feedback.append("Nice try! Reverse singing is tough!")

    if min(metrics.pitch, metrics.mfcc) < scaling.additional_feedback_threshold:
        if metrics.pitch < metrics.mfcc:
            feedback.append("Tip: try to match the melody's shape more closely.")
        else:
            feedback.append("Tip: work on matching the vocal sound and quality.")

    if content is not None:
        if not content.right_content:
            feedback.append("Tip: that didn't sound like the same phrase. Listen again and copy the words.")
        elif content.tier == RIGHT_CONTENT_FLAT:
            feedback.append("Tip: right words! Now add more of the melody.")
        elif content.melodic_ratio >= bundle.content.high_melodic_threshold and score < scaling.great_job_feedback_threshold:
            feedback.append("Your melody is on track. Polish the timing and tone.")

    if direction is ChallengeDirection.REVERSE and score < scaling.good_effort_feedback_threshold:
        feedback.append("Reverse challenges are hard. Listen to the reversed clip a few more times.")
    return tuple(feedback)


def _content_tier(
    right_content: bool,
    ratio: float,
    contour: float,
    bundle: ParameterBundle,
) -> Tuple[str, float]:
    c = bundle.content
    if right_content:
        if ratio < c.low_melodic_threshold:
            return RIGHT_CONTENT_FLAT, c.right_content_flat_penalty
        if contour < c.medium_melodic_threshold:
            return RIGHT_CONTENT_DIFFERENT_MELODY, c.right_content_different_melody_penalty
        return RIGHT_CONTENT, 0.0
    if ratio < c.low_melodic_threshold:
        return WRONG_CONTENT_FLAT, c.wrong_content_flat_penalty
    if ratio < c.insufficient_melody_threshold:
        return WRONG_CONTENT_INSUFFICIENT, c.wrong_content_insufficient_penalty
    return WRONG_CONTENT_STANDARD, c.wrong_content_standard_penalty


class ScoringEngine:
    """
    Scores an attempt against a reference clip.

    The active ParameterBundle is held behind a single attribute. apply_preset
    replaces it in one assignment and every scoring call reads it exactly once,
    so a call never mixes parameters from two presets.
    """

    def __init__(
        self,
        bundle: Optional[ParameterBundle] = None,
        extractor: Optional[FeatureExtractor] = None,
        comparer: Optional[SpectralComparer] = None,
        garbage_detector: Optional[GarbageDetector] = None,
    ):
        self._bundle = bundle if bundle is not None else normal_mode()
        self.extractor = extractor or FeatureExtractor()
        self.comparer = comparer or SpectralComparer()
        self.garbage_detector = garbage_detector or GarbageDetector()

    @property
    def bundle(self) -> ParameterBundle:
        return self._bundle

    def apply_preset(self, bundle: ParameterBundle) -> None:
        if not isinstance(bundle, ParameterBundle):
            raise TypeError(f"expected ParameterBundle, got {type(bundle).__name__}")
        self._bundle = bundle
        logger.info("Applied preset %s", bundle.label)

    def score(
        self,
        attempt: AudioBuffer,
        reference: AudioBuffer,
        bundle: Optional[ParameterBundle] = None,
        direction: ChallengeDirection = ChallengeDirection.FORWARD,
    ) -> ScoringResult:
        try:
            return self.score_or_raise(attempt, reference, bundle, direction)
        except ScoringError as e:
            logger.warning("Scoring failed: %s", e)
        except Exception:
            logger.exception("Unexpected scoring failure")
        return ScoringResult.empty()

    def score_or_raise(
        self,
        attempt: AudioBuffer,
        reference: AudioBuffer,
        bundle: Optional[ParameterBundle] = None,
        direction: ChallengeDirection = ChallengeDirection.FORWARD,
    ) -> ScoringResult:
        params = bundle if bundle is not None else self._bundle
        scoring = params.scoring
        audio_cfg = params.audio

        sr = reference.sample_rate
        y_ref = reference.as_float()
        y_att = attempt.as_float()
        if attempt.sample_rate != sr and y_att.size:
            y_att = librosa.resample(y_att, orig_sr=attempt.sample_rate, target_sr=sr)

        attempt_rms = rms(y_att)
        if attempt_rms < scoring.silence_threshold:
            logger.debug("Silence: rms %.4f < %.4f", attempt_rms, scoring.silence_threshold)
            return ScoringResult(score=0, raw_score=0.0, feedback=(SILENCE_FEEDBACK,))

        ref_al, att_al = align_clips(y_ref, y_att, audio_cfg.audio_alignment_threshold)
        if ref_al.size == 0:
            raise ScoringError("nothing left to compare after alignment")

        # (a) spectral
        spectral = self.comparer.compare(att_al, ref_al) / 100.0

        ref_st = self._semitones(self._pitch_hz(ref_al, sr, params), params)
        att_hz = self._pitch_hz(att_al, sr, params)
        att_st = self._semitones(att_hz, params)
        ref_mfcc = self._mfcc(ref_al, sr, params)
        att_mfcc = self._mfcc(att_al, sr, params)

        if params.garbage.enabled:
            verdict = self.garbage_detector.detect(
                att_al, sr, att_hz, att_mfcc, params.garbage,
                audio_cfg.mfcc_frame_size, audio_cfg.mfcc_hop_size,
            )
            if verdict.is_garbage:
                capped = params.garbage.garbage_score_max
                logger.info("Attempt rejected as garbage: %s", ", ".join(verdict.failed_filters))
                return ScoringResult(
                    score=capped,
                    raw_score=capped / 100.0,
                    metrics=SimilarityMetrics(spectral=spectral),
                    feedback=(GARBAGE_FEEDBACK,),
                    garbage=verdict,
                )

        # (b) pitch and timbre
        absolute = frame_pitch_similarity(ref_st, att_st, scoring.pitch_tolerance, params.melodic)
        absolute *= monotone_penalty(ref_st, att_st, params.melodic)
        effort = vocal_effort_similarity(ref_st, att_st, scoring)
        pitch = (absolute + effort) / 2.0
        mfcc = mfcc_similarity(ref_mfcc, att_mfcc, scoring.dtw_normalization_factor)
        metrics = SimilarityMetrics(pitch=pitch, mfcc=mfcc, spectral=spectral)

        raw = pitch * scoring.pitch_weight + mfcc * scoring.mfcc_weight
        logger.debug("Pitch %.3f (abs %.3f, effort %.3f) MFCC %.3f -> %.3f", pitch, absolute, effort, mfcc, raw)

        # (e) intervals, (f) phrases and rhythm
        musical = params.musical
        interval = interval_accuracy(ref_st, att_st, musical)
        ref_segments = extract_segments(voiced_mask(ref_st))
        att_segments = extract_segments(voiced_mask(att_st))
        phrase = phrase_similarity(ref_segments, att_segments, len(ref_st), len(att_st), musical)
        rhythm = rhythm_similarity(ref_segments, att_segments, musical.rhythm_difference_softening)
        if bool(ref_segments) != bool(att_segments):
            raw *= (1.0 - musical.empty_phrases_penalty) * (1.0 - musical.empty_rhythm_penalty)
            logger.debug("One-sided phrase structure; raw now %.3f", raw)

        # (c) content tier, (d) melodic effort
        contour = contour_similarity(ref_st, att_st)
        signals = [contour, interval, phrase, rhythm, spectral]
        best = max(signals)
        average = float(np.mean(signals))
        right_content = (
            best >= params.content.content_detection_best_threshold
            or average >= params.content.content_detection_avg_threshold
        )
        ratio = melodic_ratio(melodic_variation(ref_st, params.melodic), melodic_variation(att_st, params.melodic))
        tier, penalty = _content_tier(right_content, ratio, contour, params)
        raw *= 1.0 - penalty
        content = ContentMetrics(
            contour=contour,
            interval=interval,
            phrase=phrase,
            rhythm=rhythm,
            spectral=spectral,
            best=best,
            average=average,
            right_content=right_content,
            melodic_ratio=ratio,
            tier=tier,
            penalty=penalty,
        )
        logger.debug("Content %s (best %.3f avg %.3f ratio %.3f) penalty %.2f", tier, best, average, ratio, penalty)

        consistency = (1.0 - abs(pitch - mfcc)) * scoring.consistency_bonus
        confidence = min(1.0, attempt_rms * params.scaling.rms_confidence_multiplier) * scoring.confidence_bonus
        boosted = raw * (1.0 + consistency + confidence)

        final = scale_score(boosted, params, direction)
        logger.debug("Final score %d (%s, %s)", final, params.label, direction.value)

        return ScoringResult(
            score=final,
            raw_score=min(1.0, max(0.0, raw)),
            metrics=metrics,
            feedback=build_feedback(final, metrics, content, params, direction),
            content=content,
        )

    def _pitch_hz(self, y: np.ndarray, sr: int, params: ParameterBundle) -> np.ndarray:
        a = params.audio
        y = _pad_to(y, a.pitch_frame_size)
        return self.extractor.pitch_track(y, sr, a.pitch_frame_size, a.pitch_hop_size)

    @staticmethod
    def _semitones(f0: np.ndarray, params: ParameterBundle) -> np.ndarray:
        a = params.audio
        return hz_to_semitones(f0, a.pitch_reference_freq, a.semitones_per_octave)

    def _mfcc(self, y: np.ndarray, sr: int, params: ParameterBundle) -> np.ndarray:
        a = params.audio
        y = _pad_to(y, a.mfcc_frame_size)
        return self.extractor.mfcc_frames(y, sr, a.mfcc_frame_size, a.mfcc_hop_size)
