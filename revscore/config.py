from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class DifficultyLevel(Enum):
    EASY = ("Easy", "Very forgiving - great for beginners")
    NORMAL = ("Normal", "Balanced scoring - the default experience")
    HARD = ("Hard", "Challenging - for experienced users")
    EXPERT = ("Expert", "Very strict - only for advanced singers")
    MASTER = ("Master", "Perfection required - for the elite")

    def __init__(self, display_name: str, description: str):
        self.display_name = display_name
        self.description = description


class ChallengeDirection(Enum):
    FORWARD = "forward"
    REVERSE = "reverse"


def _check_unit(owner: object, *names: str) -> None:
    for name in names:
        value = getattr(owner, name)
        if not (0.0 <= value <= 1.0):
            raise ValueError(f"{type(owner).__name__}.{name} must be in [0, 1], got {value}")


def _check_positive(owner: object, *names: str) -> None:
    for name in names:
        value = getattr(owner, name)
        if not value > 0:
            raise ValueError(f"{type(owner).__name__}.{name} must be positive, got {value}")


@dataclass(frozen=True)
class ScoringParameters:
    # Weighted blend: pitch dominates, timbre is a minor term
    pitch_weight: float = 0.85
    mfcc_weight: float = 0.15

    # Pitch comparison (semitones)
    pitch_tolerance: float = 15.0
    variance_penalty: float = 0.5
    dtw_normalization_factor: float = 35.0

    # Attempts quieter than this RMS are treated as silence
    silence_threshold: float = 0.01

    # Score curve: raw below min -> 0, above perfect -> 100
    min_score_threshold: float = 0.20
    perfect_score_threshold: float = 0.80
    score_curve: float = 2.0

    consistency_bonus: float = 0.05
    confidence_bonus: float = 0.05

    # Vocal effort similarity weights
    effort_weight: float = 0.35
    intensity_weight: float = 0.45
    range_weight: float = 0.2

    intensity_penalty_threshold: float = 0.15
    intensity_penalty_multiplier: float = 0.2

    def __post_init__(self) -> None:
        if not math.isclose(self.pitch_weight + self.mfcc_weight, 1.0, abs_tol=1e-3):
            raise ValueError(
                f"pitch_weight + mfcc_weight must be 1.0, got {self.pitch_weight} + {self.mfcc_weight}"
            )
        _check_unit(
            self,
            "pitch_weight", "mfcc_weight", "variance_penalty", "silence_threshold",
            "min_score_threshold", "perfect_score_threshold",
            "consistency_bonus", "confidence_bonus",
            "effort_weight", "intensity_weight", "range_weight",
            "intensity_penalty_threshold", "intensity_penalty_multiplier",
        )
        _check_positive(self, "pitch_tolerance", "dtw_normalization_factor", "score_curve")
        if self.min_score_threshold >= self.perfect_score_threshold:
            raise ValueError("min_score_threshold must be below perfect_score_threshold")


@dataclass(frozen=True)
class AudioProcessingParameters:
    pitch_frame_size: int = 4096
    pitch_hop_size: int = 1024

    mfcc_frame_size: int = 2048
    mfcc_hop_size: int = 1024

    semitones_per_octave: float = 12.0
    pitch_reference_freq: float = 440.0  # A4

    # First sample louder than this marks the start of the clip
    audio_alignment_threshold: float = 0.005

    def __post_init__(self) -> None:
        _check_positive(
            self,
            "pitch_frame_size", "pitch_hop_size", "mfcc_frame_size", "mfcc_hop_size",
            "semitones_per_octave", "pitch_reference_freq",
        )
        _check_unit(self, "audio_alignment_threshold")


@dataclass(frozen=True)
class ContentDetectionParameters:
    # Right content if the best similarity or the average similarity clears its bar
    content_detection_best_threshold: float = 0.35
    content_detection_avg_threshold: float = 0.25

    # Melodic effort relative to the reference
    high_melodic_threshold: float = 0.6
    medium_melodic_threshold: float = 0.4
    low_melodic_threshold: float = 0.3
    insufficient_melody_threshold: float = 0.5

    # Right content: light penalties
    right_content_flat_penalty: float = 0.2
    right_content_different_melody_penalty: float = 0.1

    # Wrong content: harsh penalties
    wrong_content_flat_penalty: float = 0.75
    wrong_content_insufficient_penalty: float = 0.6
    wrong_content_standard_penalty: float = 0.5

    def __post_init__(self) -> None:
        _check_unit(
            self,
            "content_detection_best_threshold", "content_detection_avg_threshold",
            "high_melodic_threshold", "medium_melodic_threshold",
            "low_melodic_threshold", "insufficient_melody_threshold",
            "right_content_flat_penalty", "right_content_different_melody_penalty",
            "wrong_content_flat_penalty", "wrong_content_insufficient_penalty",
            "wrong_content_standard_penalty",
        )


@dataclass(frozen=True)
class MelodicAnalysisParameters:
    melodic_range_weight: float = 0.4
    melodic_transition_weight: float = 0.35
    melodic_variance_weight: float = 0.25

    melodic_range_semitones: float = 12.0
    melodic_variance_threshold: float = 10.0
    melodic_transition_threshold: float = 0.5

    # exp(-diff / rate) beyond the tolerance
    pitch_difference_decay_rate: float = 5.0
    silence_to_silence_score: float = 0.7

    # Legacy monotone check on pitch variance (semitones^2)
    monotone_detection_threshold: float = 2.0
    flat_speech_threshold: float = 0.5
    monotone_penalty: float = 0.3

    def __post_init__(self) -> None:
        _check_unit(
            self,
            "melodic_range_weight", "melodic_transition_weight", "melodic_variance_weight",
            "silence_to_silence_score", "monotone_penalty",
        )
        _check_positive(
            self,
            "melodic_range_semitones", "melodic_variance_threshold",
            "melodic_transition_threshold", "pitch_difference_decay_rate",
        )


@dataclass(frozen=True)
class MusicalSimilarityParameters:
    # Interval tiers (semitones)
    same_interval_threshold: float = 0.5
    same_interval_score: float = 1.0
    close_interval_threshold: float = 1.0
    close_interval_score: float = 0.8
    similar_interval_threshold: float = 2.0
    similar_interval_score: float = 0.5
    different_interval_score: float = 0.1

    # Phrase structure
    empty_phrases_penalty: float = 0.3
    phrase_count_difference_threshold: float = 0.5
    phrase_count_penalty_multiplier: float = 0.5
    phrase_weight_balance: float = 2.0

    # Rhythm
    empty_rhythm_penalty: float = 0.2
    rhythm_difference_softening: float = 0.5
    segment_count_softening: float = 0.5

    def __post_init__(self) -> None:
        if not (self.same_interval_threshold <= self.close_interval_threshold <= self.similar_interval_threshold):
            raise ValueError("interval thresholds must be ordered same <= close <= similar")
        _check_unit(
            self,
            "same_interval_score", "close_interval_score", "similar_interval_score",
            "different_interval_score", "empty_phrases_penalty",
            "phrase_count_difference_threshold", "phrase_count_penalty_multiplier",
            "empty_rhythm_penalty",
        )
        _check_positive(
            self, "phrase_weight_balance", "rhythm_difference_softening", "segment_count_softening",
        )


@dataclass(frozen=True)
class ScoreScalingParameters:
    # Reverse challenges get relaxed thresholds; these may only relax
    reverse_min_score_adjustment: float = 0.9
    reverse_perfect_score_adjustment: float = 0.95
    reverse_curve_adjustment: float = 1.1
    minimum_curve_protection: float = 0.1

    incredible_feedback_threshold: int = 90
    great_job_feedback_threshold: int = 75
    good_effort_feedback_threshold: int = 50
    additional_feedback_threshold: float = 0.6

    rms_confidence_multiplier: float = 5.0

    def __post_init__(self) -> None:
        if not (0.0 < self.reverse_min_score_adjustment <= 1.0):
            raise ValueError("reverse_min_score_adjustment must be in (0, 1]")
        if not (0.0 < self.reverse_perfect_score_adjustment <= 1.0):
            raise ValueError("reverse_perfect_score_adjustment must be in (0, 1]")
        if self.reverse_curve_adjustment < 1.0:
            raise ValueError("reverse_curve_adjustment must be >= 1")
        if not (
            100 >= self.incredible_feedback_threshold
            >= self.great_job_feedback_threshold
            >= self.good_effort_feedback_threshold
            >= 0
        ):
            raise ValueError("feedback thresholds must be ordered within 0..100")
        _check_unit(self, "additional_feedback_threshold")
        _check_positive(self, "minimum_curve_protection", "rms_confidence_multiplier")


@dataclass(frozen=True)
class GarbageDetectionParameters:
    # Off for the plain difficulty ladder; the speech and singing presets switch it on
    enabled: bool = False

    mfcc_variance_threshold: float = 0.3
    # Std of voiced pitch (Hz) below which an attempt is a drone
    pitch_monotone_threshold: float = 10.0
    # Fraction of pitch frames that are local peaks or troughs
    pitch_oscillation_rate: float = 0.5
    spectral_entropy_threshold: float = 0.5
    zcr_min_threshold: float = 0.02
    zcr_max_threshold: float = 0.2
    silence_ratio_min: float = 0.1
    silence_threshold: float = 0.01

    # Flagged attempts get this score instead of being rated
    garbage_score_max: int = 10

    def __post_init__(self) -> None:
        _check_unit(
            self,
            "pitch_oscillation_rate", "spectral_entropy_threshold",
            "zcr_min_threshold", "zcr_max_threshold",
            "silence_ratio_min", "silence_threshold",
        )
        if self.mfcc_variance_threshold < 0 or self.pitch_monotone_threshold < 0:
            raise ValueError("garbage variance thresholds must be non-negative")
        if self.zcr_min_threshold > self.zcr_max_threshold:
            raise ValueError("zcr_min_threshold must not exceed zcr_max_threshold")
        if not (0 <= self.garbage_score_max <= 100):
            raise ValueError("garbage_score_max must be within 0..100")


@dataclass(frozen=True)
class ParameterBundle:
    """
    One complete, internally consistent parameter set.

    Bundles are immutable: a preset change builds a new bundle and the engine
    swaps its handle, so no reader ever sees two difficulty levels mixed.
    """
    difficulty: DifficultyLevel = DifficultyLevel.NORMAL
    scoring: ScoringParameters = field(default_factory=ScoringParameters)
    content: ContentDetectionParameters = field(default_factory=ContentDetectionParameters)
    melodic: MelodicAnalysisParameters = field(default_factory=MelodicAnalysisParameters)
    musical: MusicalSimilarityParameters = field(default_factory=MusicalSimilarityParameters)
    audio: AudioProcessingParameters = field(default_factory=AudioProcessingParameters)
    scaling: ScoreScalingParameters = field(default_factory=ScoreScalingParameters)
    garbage: GarbageDetectionParameters = field(default_factory=GarbageDetectionParameters)
    # Special modes (content/melody focused) are not rungs on the difficulty ladder
    mode: Optional[str] = None
    # "speech" or "singing" for the mode-routed preset families
    vocal_mode: Optional[str] = None

    @property
    def label(self) -> str:
        base = self.mode or self.difficulty.display_name
        return f"{base} ({self.vocal_mode})" if self.vocal_mode else base


@dataclass(frozen=True)
class TuningParameters:
    speech_threshold: float = 0.2
    singing_threshold: float = 0.4
    stability_weight: float = 0.2
    contour_weight: float = 0.3
    voiced_weight: float = 0.5
    contour_normalizer: float = 15.0   # Hz of average pitch movement that maps to contour 1.0
    mfcc_normalizer: float = 350.0

    def __post_init__(self) -> None:
        _check_positive(self, "contour_normalizer", "mfcc_normalizer")

    def __str__(self) -> str:
        return (
            f"speech={self.speech_threshold}, singing={self.singing_threshold}, "
            f"weights=[{self.stability_weight},{self.contour_weight},{self.voiced_weight}], "
            f"norm=[{self.contour_normalizer},{self.mfcc_normalizer}]"
        )
