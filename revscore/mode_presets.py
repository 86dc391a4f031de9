from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from .config import (
    ContentDetectionParameters,
    DifficultyLevel,
    GarbageDetectionParameters,
    MelodicAnalysisParameters,
    MusicalSimilarityParameters,
    ParameterBundle,
    ScoreScalingParameters,
    ScoringParameters,
)

SPEECH = "speech"
SINGING = "singing"


# Speech: content over melody, wide pitch tolerance, lenient garbage filter

def easy_speech() -> ParameterBundle:
    return ParameterBundle(
        difficulty=DifficultyLevel.EASY,
        vocal_mode=SPEECH,
        scoring=ScoringParameters(
            pitch_weight=0.65,
            mfcc_weight=0.35,
            pitch_tolerance=50.0,
            min_score_threshold=0.08,
            perfect_score_threshold=0.75,
            score_curve=3.0,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.20,
            content_detection_avg_threshold=0.10,
            right_content_flat_penalty=0.05,
            right_content_different_melody_penalty=0.02,
            wrong_content_standard_penalty=0.35,
        ),
        melodic=MelodicAnalysisParameters(
            monotone_detection_threshold=0.5,
            flat_speech_threshold=1.5,
            monotone_penalty=0.05,
            melodic_range_weight=0.05,
            melodic_transition_weight=0.05,
            melodic_variance_weight=0.9,
        ),
        musical=MusicalSimilarityParameters(
            same_interval_score=0.8,
            close_interval_score=0.7,
            empty_phrases_penalty=0.1,
            empty_rhythm_penalty=0.05,
        ),
        scaling=ScoreScalingParameters(
            incredible_feedback_threshold=75,
            great_job_feedback_threshold=55,
            good_effort_feedback_threshold=35,
            # capped: a reverse adjustment above 1.0 would tighten the threshold
            reverse_perfect_score_adjustment=1.0,
        ),
        garbage=GarbageDetectionParameters(
            enabled=True,
            mfcc_variance_threshold=0.10,
            pitch_monotone_threshold=3.0,
            pitch_oscillation_rate=1.0,
            spectral_entropy_threshold=0.25,
            zcr_min_threshold=0.005,
            zcr_max_threshold=0.45,
            silence_ratio_min=0.02,
            garbage_score_max=30,
        ),
    )


def normal_speech() -> ParameterBundle:
    return ParameterBundle(
        difficulty=DifficultyLevel.NORMAL,
        vocal_mode=SPEECH,
        scoring=ScoringParameters(
            pitch_weight=0.70,
            mfcc_weight=0.30,
            pitch_tolerance=40.0,
            min_score_threshold=0.12,
            perfect_score_threshold=0.85,
            score_curve=2.8,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.30,
            content_detection_avg_threshold=0.20,
            right_content_flat_penalty=0.08,
            right_content_different_melody_penalty=0.04,
            wrong_content_standard_penalty=0.50,
        ),
        melodic=MelodicAnalysisParameters(
            monotone_detection_threshold=0.8,
            flat_speech_threshold=1.0,
            monotone_penalty=0.10,
            melodic_range_weight=0.10,
            melodic_transition_weight=0.10,
            melodic_variance_weight=0.80,
        ),
        musical=MusicalSimilarityParameters(
            same_interval_score=0.85,
            close_interval_score=0.75,
            empty_phrases_penalty=0.15,
            empty_rhythm_penalty=0.10,
        ),
        scaling=ScoreScalingParameters(
            incredible_feedback_threshold=80,
            great_job_feedback_threshold=60,
            good_effort_feedback_threshold=40,
            reverse_perfect_score_adjustment=1.0,
        ),
        garbage=GarbageDetectionParameters(
            enabled=True,
            mfcc_variance_threshold=0.25,
            pitch_monotone_threshold=8.0,
            pitch_oscillation_rate=0.7,
            spectral_entropy_threshold=0.45,
            zcr_min_threshold=0.015,
            zcr_max_threshold=0.30,
            silence_ratio_min=0.08,
            garbage_score_max=15,
        ),
    )


def hard_speech() -> ParameterBundle:
    return ParameterBundle(
        difficulty=DifficultyLevel.HARD,
        vocal_mode=SPEECH,
        scoring=ScoringParameters(
            pitch_weight=0.75,
            mfcc_weight=0.25,
            pitch_tolerance=30.0,
            min_score_threshold=0.18,
            perfect_score_threshold=0.80,
            score_curve=2.3,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.35,
            content_detection_avg_threshold=0.25,
            right_content_flat_penalty=0.15,
            right_content_different_melody_penalty=0.08,
            wrong_content_standard_penalty=0.65,
        ),
        melodic=MelodicAnalysisParameters(
            monotone_detection_threshold=1.5,
            flat_speech_threshold=0.8,
            monotone_penalty=0.20,
            melodic_range_weight=0.20,
            melodic_transition_weight=0.20,
            melodic_variance_weight=0.60,
        ),
        musical=MusicalSimilarityParameters(
            same_interval_score=0.90,
            close_interval_score=0.80,
            empty_phrases_penalty=0.20,
            empty_rhythm_penalty=0.15,
        ),
        scaling=ScoreScalingParameters(
            incredible_feedback_threshold=85,
            great_job_feedback_threshold=65,
            good_effort_feedback_threshold=45,
            reverse_perfect_score_adjustment=0.98,
        ),
        garbage=GarbageDetectionParameters(
            enabled=True,
            mfcc_variance_threshold=0.35,
            pitch_monotone_threshold=10.0,
            pitch_oscillation_rate=0.6,
            spectral_entropy_threshold=0.55,
            zcr_min_threshold=0.018,
            zcr_max_threshold=0.25,
            silence_ratio_min=0.10,
            garbage_score_max=18,
        ),
    )


def expert_speech() -> ParameterBundle:
    return ParameterBundle(
        difficulty=DifficultyLevel.EXPERT,
        vocal_mode=SPEECH,
        scoring=ScoringParameters(
            pitch_weight=0.80,
            mfcc_weight=0.20,
            pitch_tolerance=20.0,
            min_score_threshold=0.22,
            perfect_score_threshold=0.85,
            score_curve=2.0,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.40,
            content_detection_avg_threshold=0.30,
            right_content_flat_penalty=0.20,
            right_content_different_melody_penalty=0.12,
            wrong_content_standard_penalty=0.70,
        ),
        melodic=MelodicAnalysisParameters(
            monotone_detection_threshold=2.0,
            flat_speech_threshold=0.6,
            monotone_penalty=0.25,
            melodic_range_weight=0.25,
            melodic_transition_weight=0.25,
            melodic_variance_weight=0.50,
        ),
        musical=MusicalSimilarityParameters(
            same_interval_score=0.95,
            close_interval_score=0.85,
            empty_phrases_penalty=0.25,
            empty_rhythm_penalty=0.18,
        ),
        scaling=ScoreScalingParameters(
            incredible_feedback_threshold=90,
            great_job_feedback_threshold=70,
            good_effort_feedback_threshold=50,
            reverse_perfect_score_adjustment=0.96,
        ),
        garbage=GarbageDetectionParameters(
            enabled=True,
            mfcc_variance_threshold=0.40,
            pitch_monotone_threshold=12.0,
            pitch_oscillation_rate=0.5,
            spectral_entropy_threshold=0.60,
            zcr_min_threshold=0.022,
            zcr_max_threshold=0.20,
            silence_ratio_min=0.12,
            garbage_score_max=15,
        ),
    )


def master_speech() -> ParameterBundle:
    return ParameterBundle(
        difficulty=DifficultyLevel.MASTER,
        vocal_mode=SPEECH,
        scoring=ScoringParameters(
            pitch_weight=0.85,
            mfcc_weight=0.15,
            pitch_tolerance=15.0,
            min_score_threshold=0.30,
            perfect_score_threshold=0.88,
            score_curve=1.8,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.50,
            content_detection_avg_threshold=0.35,
            right_content_flat_penalty=0.30,
            right_content_different_melody_penalty=0.20,
            wrong_content_standard_penalty=0.75,
        ),
        melodic=MelodicAnalysisParameters(
            monotone_detection_threshold=3.0,
            flat_speech_threshold=0.3,
            monotone_penalty=0.6,
            melodic_range_weight=0.30,
            melodic_transition_weight=0.30,
            melodic_variance_weight=0.40,
        ),
        musical=MusicalSimilarityParameters(
            same_interval_score=1.0,
            close_interval_score=0.90,
            empty_phrases_penalty=0.30,
            empty_rhythm_penalty=0.20,
        ),
        scaling=ScoreScalingParameters(
            incredible_feedback_threshold=95,
            great_job_feedback_threshold=75,
            good_effort_feedback_threshold=55,
            reverse_min_score_adjustment=0.95,
            reverse_perfect_score_adjustment=0.98,
            reverse_curve_adjustment=1.05,
        ),
        garbage=GarbageDetectionParameters(
            enabled=True,
            mfcc_variance_threshold=0.50,
            pitch_monotone_threshold=14.0,
            pitch_oscillation_rate=0.45,
            spectral_entropy_threshold=0.70,
            zcr_min_threshold=0.025,
            zcr_max_threshold=0.18,
            silence_ratio_min=0.15,
            garbage_score_max=12,
        ),
    )


# Singing: melody dominates, tight pitch tolerance, strict garbage filter

def easy_singing() -> ParameterBundle:
    return ParameterBundle(
        difficulty=DifficultyLevel.EASY,
        vocal_mode=SINGING,
        scoring=ScoringParameters(
            pitch_weight=0.85,
            mfcc_weight=0.15,
            pitch_tolerance=25.0,
            min_score_threshold=0.15,
            perfect_score_threshold=0.85,
            score_curve=2.0,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.30,
            content_detection_avg_threshold=0.20,
            right_content_flat_penalty=0.25,
            right_content_different_melody_penalty=0.15,
            wrong_content_standard_penalty=0.20,
        ),
        melodic=MelodicAnalysisParameters(
            monotone_detection_threshold=2.5,
            flat_speech_threshold=0.5,
            monotone_penalty=0.3,
            melodic_range_weight=0.35,
            melodic_transition_weight=0.4,
            melodic_variance_weight=0.25,
        ),
        musical=MusicalSimilarityParameters(
            same_interval_score=1.0,
            close_interval_score=0.85,
            similar_interval_score=0.6,
            empty_phrases_penalty=0.4,
            empty_rhythm_penalty=0.3,
        ),
        scaling=ScoreScalingParameters(
            incredible_feedback_threshold=85,
            great_job_feedback_threshold=65,
            good_effort_feedback_threshold=45,
            reverse_perfect_score_adjustment=0.92,
        ),
        garbage=GarbageDetectionParameters(
            enabled=True,
            mfcc_variance_threshold=0.35,
            pitch_monotone_threshold=12.0,
            pitch_oscillation_rate=0.4,
            spectral_entropy_threshold=0.6,
            zcr_min_threshold=0.02,
            zcr_max_threshold=0.18,
            silence_ratio_min=0.12,
            garbage_score_max=15,
        ),
    )


def normal_singing() -> ParameterBundle:
    return ParameterBundle(
        difficulty=DifficultyLevel.NORMAL,
        vocal_mode=SINGING,
        scoring=ScoringParameters(
            pitch_weight=0.90,
            mfcc_weight=0.10,
            pitch_tolerance=20.0,
            min_score_threshold=0.22,
            perfect_score_threshold=0.92,
            score_curve=1.8,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.45,
            content_detection_avg_threshold=0.35,
            right_content_flat_penalty=0.30,
            right_content_different_melody_penalty=0.20,
            wrong_content_standard_penalty=0.40,
        ),
        melodic=MelodicAnalysisParameters(
            monotone_detection_threshold=3.0,
            flat_speech_threshold=0.4,
            monotone_penalty=0.4,
            melodic_range_weight=0.35,
            melodic_transition_weight=0.4,
            melodic_variance_weight=0.25,
        ),
        musical=MusicalSimilarityParameters(
            same_interval_score=1.0,
            close_interval_score=0.85,
            similar_interval_score=0.6,
            empty_phrases_penalty=0.35,
            empty_rhythm_penalty=0.25,
        ),
        scaling=ScoreScalingParameters(
            incredible_feedback_threshold=88,
            great_job_feedback_threshold=70,
            good_effort_feedback_threshold=50,
            reverse_perfect_score_adjustment=0.95,
        ),
        garbage=GarbageDetectionParameters(
            enabled=True,
            mfcc_variance_threshold=0.45,
            pitch_monotone_threshold=15.0,
            pitch_oscillation_rate=0.35,
            spectral_entropy_threshold=0.70,
            zcr_min_threshold=0.025,
            zcr_max_threshold=0.15,
            silence_ratio_min=0.15,
            garbage_score_max=12,
        ),
    )


def hard_singing() -> ParameterBundle:
    return ParameterBundle(
        difficulty=DifficultyLevel.HARD,
        vocal_mode=SINGING,
        scoring=ScoringParameters(
            pitch_weight=0.93,
            mfcc_weight=0.07,
            pitch_tolerance=12.0,
            min_score_threshold=0.30,
            perfect_score_threshold=0.90,
            score_curve=1.5,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.55,
            content_detection_avg_threshold=0.40,
            right_content_flat_penalty=0.40,
            right_content_different_melody_penalty=0.25,
            wrong_content_standard_penalty=0.45,
        ),
        melodic=MelodicAnalysisParameters(
            monotone_detection_threshold=5.0,
            flat_speech_threshold=0.2,
            monotone_penalty=0.6,
            melodic_range_weight=0.45,
            melodic_transition_weight=0.35,
            melodic_variance_weight=0.20,
        ),
        musical=MusicalSimilarityParameters(
            same_interval_score=1.0,
            close_interval_score=0.85,
            similar_interval_score=0.5,
            empty_phrases_penalty=0.40,
            empty_rhythm_penalty=0.30,
        ),
        scaling=ScoreScalingParameters(
            incredible_feedback_threshold=92,
            great_job_feedback_threshold=75,
            good_effort_feedback_threshold=55,
            reverse_perfect_score_adjustment=0.90,
        ),
        garbage=GarbageDetectionParameters(
            enabled=True,
            mfcc_variance_threshold=0.50,
            pitch_monotone_threshold=18.0,
            pitch_oscillation_rate=0.30,
            spectral_entropy_threshold=0.75,
            zcr_min_threshold=0.028,
            zcr_max_threshold=0.12,
            silence_ratio_min=0.18,
            garbage_score_max=10,
        ),
    )


def expert_singing() -> ParameterBundle:
    return ParameterBundle(
        difficulty=DifficultyLevel.EXPERT,
        vocal_mode=SINGING,
        scoring=ScoringParameters(
            pitch_weight=0.96,
            mfcc_weight=0.04,
            pitch_tolerance=8.0,
            min_score_threshold=0.35,
            perfect_score_threshold=0.95,
            score_curve=1.2,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.60,
            content_detection_avg_threshold=0.45,
            right_content_flat_penalty=0.50,
            right_content_different_melody_penalty=0.35,
            wrong_content_standard_penalty=0.60,
        ),
        melodic=MelodicAnalysisParameters(
            monotone_detection_threshold=6.0,
            flat_speech_threshold=0.15,
            monotone_penalty=0.7,
            melodic_range_weight=0.45,
            melodic_transition_weight=0.35,
            melodic_variance_weight=0.20,
        ),
        musical=MusicalSimilarityParameters(
            same_interval_score=1.0,
            close_interval_score=0.80,
            similar_interval_score=0.4,
            empty_phrases_penalty=0.45,
            empty_rhythm_penalty=0.35,
        ),
        scaling=ScoreScalingParameters(
            incredible_feedback_threshold=95,
            great_job_feedback_threshold=80,
            good_effort_feedback_threshold=60,
            reverse_perfect_score_adjustment=0.88,
        ),
        garbage=GarbageDetectionParameters(
            enabled=True,
            mfcc_variance_threshold=0.55,
            pitch_monotone_threshold=20.0,
            pitch_oscillation_rate=0.25,
            spectral_entropy_threshold=0.80,
            zcr_min_threshold=0.030,
            zcr_max_threshold=0.10,
            silence_ratio_min=0.20,
            garbage_score_max=8,
        ),
    )


def master_singing() -> ParameterBundle:
    return ParameterBundle(
        difficulty=DifficultyLevel.MASTER,
        vocal_mode=SINGING,
        scoring=ScoringParameters(
            pitch_weight=0.98,
            mfcc_weight=0.02,
            pitch_tolerance=3.0,
            min_score_threshold=0.45,
            perfect_score_threshold=0.98,
            score_curve=1.0,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.70,
            content_detection_avg_threshold=0.55,
            right_content_flat_penalty=0.60,
            right_content_different_melody_penalty=0.45,
            wrong_content_standard_penalty=0.70,
        ),
        melodic=MelodicAnalysisParameters(
            monotone_detection_threshold=6.0,
            flat_speech_threshold=0.1,
            monotone_penalty=0.8,
            melodic_range_weight=0.4,
            melodic_transition_weight=0.35,
            melodic_variance_weight=0.25,
        ),
        musical=MusicalSimilarityParameters(
            same_interval_score=1.0,
            close_interval_score=0.75,
            similar_interval_score=0.3,
            empty_phrases_penalty=0.50,
            empty_rhythm_penalty=0.40,
        ),
        scaling=ScoreScalingParameters(
            incredible_feedback_threshold=98,
            great_job_feedback_threshold=85,
            good_effort_feedback_threshold=70,
            reverse_min_score_adjustment=0.85,
            reverse_perfect_score_adjustment=0.90,
            # capped: a reverse curve below 1.0 would make reverse harder than forward
            reverse_curve_adjustment=1.0,
        ),
        garbage=GarbageDetectionParameters(
            enabled=True,
            mfcc_variance_threshold=0.65,
            pitch_monotone_threshold=25.0,
            pitch_oscillation_rate=0.20,
            spectral_entropy_threshold=0.85,
            zcr_min_threshold=0.035,
            zcr_max_threshold=0.08,
            silence_ratio_min=0.22,
            garbage_score_max=5,
        ),
    )


_SPEECH_LADDER: Dict[DifficultyLevel, Callable[[], ParameterBundle]] = {
    DifficultyLevel.EASY: easy_speech,
    DifficultyLevel.NORMAL: normal_speech,
    DifficultyLevel.HARD: hard_speech,
    DifficultyLevel.EXPERT: expert_speech,
    DifficultyLevel.MASTER: master_speech,
}

_SINGING_LADDER: Dict[DifficultyLevel, Callable[[], ParameterBundle]] = {
    DifficultyLevel.EASY: easy_singing,
    DifficultyLevel.NORMAL: normal_singing,
    DifficultyLevel.HARD: hard_singing,
    DifficultyLevel.EXPERT: expert_singing,
    DifficultyLevel.MASTER: master_singing,
}


def speech_preset(level: DifficultyLevel) -> ParameterBundle:
    return _SPEECH_LADDER[level]()


def singing_preset(level: DifficultyLevel) -> ParameterBundle:
    return _SINGING_LADDER[level]()


def all_speech_presets() -> List[Tuple[DifficultyLevel, Callable[[], ParameterBundle]]]:
    return list(_SPEECH_LADDER.items())


def all_singing_presets() -> List[Tuple[DifficultyLevel, Callable[[], ParameterBundle]]]:
    return list(_SINGING_LADDER.items())
