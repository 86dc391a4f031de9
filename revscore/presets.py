from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from .config import (
    ContentDetectionParameters,
    DifficultyLevel,
    MelodicAnalysisParameters,
    ParameterBundle,
    ScoreScalingParameters,
    ScoringParameters,
)

CONTENT_FOCUSED = "content_focused"
MELODY_FOCUSED = "melody_focused"


def easy_mode() -> ParameterBundle:
    return ParameterBundle(
        difficulty=DifficultyLevel.EASY,
        scoring=ScoringParameters(
            pitch_weight=0.75,
            mfcc_weight=0.25,
            pitch_tolerance=20.0,
            min_score_threshold=0.15,
            perfect_score_threshold=0.75,
            score_curve=2.5,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.25,
            content_detection_avg_threshold=0.15,
            right_content_flat_penalty=0.1,
            right_content_different_melody_penalty=0.05,
            wrong_content_standard_penalty=0.3,
        ),
        melodic=MelodicAnalysisParameters(
            monotone_detection_threshold=1.5,
            flat_speech_threshold=0.7,
            monotone_penalty=0.2,
        ),
    )


def normal_mode() -> ParameterBundle:
    return ParameterBundle(difficulty=DifficultyLevel.NORMAL)


def hard_mode() -> ParameterBundle:
    return ParameterBundle(
        difficulty=DifficultyLevel.HARD,
        scoring=ScoringParameters(
            pitch_weight=0.9,
            mfcc_weight=0.1,
            pitch_tolerance=8.0,
            min_score_threshold=0.3,
            perfect_score_threshold=0.9,
            score_curve=1.5,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.5,
            content_detection_avg_threshold=0.35,
            right_content_flat_penalty=0.3,
            right_content_different_melody_penalty=0.2,
            wrong_content_standard_penalty=0.7,
        ),
        melodic=MelodicAnalysisParameters(
            monotone_detection_threshold=2.5,
            flat_speech_threshold=0.3,
            monotone_penalty=0.5,
        ),
    )


def expert_mode() -> ParameterBundle:
    return ParameterBundle(
        difficulty=DifficultyLevel.EXPERT,
        scoring=ScoringParameters(
            pitch_weight=0.95,
            mfcc_weight=0.05,
            pitch_tolerance=5.0,  # quarter-tone precision
            min_score_threshold=0.4,
            perfect_score_threshold=0.95,
            score_curve=1.2,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.6,
            content_detection_avg_threshold=0.45,
            right_content_flat_penalty=0.4,
            right_content_different_melody_penalty=0.3,
            wrong_content_standard_penalty=0.8,
        ),
        melodic=MelodicAnalysisParameters(
            monotone_detection_threshold=3.0,
            flat_speech_threshold=0.2,
            monotone_penalty=0.7,
        ),
        scaling=ScoreScalingParameters(
            incredible_feedback_threshold=95,
            great_job_feedback_threshold=85,
            good_effort_feedback_threshold=70,
        ),
    )


def master_mode() -> ParameterBundle:
    return ParameterBundle(
        difficulty=DifficultyLevel.MASTER,
        scoring=ScoringParameters(
            pitch_weight=0.98,
            mfcc_weight=0.02,
            pitch_tolerance=3.0,
            min_score_threshold=0.5,
            perfect_score_threshold=0.98,
            score_curve=1.0,  # linear
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.7,
            content_detection_avg_threshold=0.55,
            right_content_flat_penalty=0.5,
            right_content_different_melody_penalty=0.4,
            wrong_content_standard_penalty=0.9,
        ),
        melodic=MelodicAnalysisParameters(
            monotone_detection_threshold=4.0,
            flat_speech_threshold=0.1,
            monotone_penalty=0.9,
        ),
        scaling=ScoreScalingParameters(
            incredible_feedback_threshold=98,
            great_job_feedback_threshold=90,
            good_effort_feedback_threshold=80,
            # no reverse relief at master level
            reverse_min_score_adjustment=1.0,
            reverse_perfect_score_adjustment=1.0,
            reverse_curve_adjustment=1.0,
        ),
    )


def content_focused_mode() -> ParameterBundle:
    """Rewards getting the words right over matching the tune."""
    return ParameterBundle(
        difficulty=DifficultyLevel.NORMAL,
        mode=CONTENT_FOCUSED,
        scoring=ScoringParameters(
            pitch_weight=0.95,
            mfcc_weight=0.05,
            pitch_tolerance=25.0,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.2,
            content_detection_avg_threshold=0.1,
            right_content_flat_penalty=0.05,
            right_content_different_melody_penalty=0.02,
            wrong_content_standard_penalty=0.8,
        ),
    )


def melody_focused_mode() -> ParameterBundle:
    """Rewards exact melody matching."""
    return ParameterBundle(
        difficulty=DifficultyLevel.NORMAL,
        mode=MELODY_FOCUSED,
        scoring=ScoringParameters(
            pitch_weight=0.95,
            mfcc_weight=0.05,
            pitch_tolerance=5.0,
        ),
        content=ContentDetectionParameters(
            content_detection_best_threshold=0.6,
            content_detection_avg_threshold=0.4,
            right_content_flat_penalty=0.4,
            right_content_different_melody_penalty=0.3,
            wrong_content_standard_penalty=0.4,
        ),
        melodic=MelodicAnalysisParameters(
            melodic_range_weight=0.5,
            melodic_transition_weight=0.4,
            melodic_variance_weight=0.1,
        ),
    )


_LADDER: Dict[DifficultyLevel, Callable[[], ParameterBundle]] = {
    DifficultyLevel.EASY: easy_mode,
    DifficultyLevel.NORMAL: normal_mode,
    DifficultyLevel.HARD: hard_mode,
    DifficultyLevel.EXPERT: expert_mode,
    DifficultyLevel.MASTER: master_mode,
}

_SPECIAL_MODES: Dict[str, Callable[[], ParameterBundle]] = {
    CONTENT_FOCUSED: content_focused_mode,
    MELODY_FOCUSED: melody_focused_mode,
}


def preset(level: DifficultyLevel) -> ParameterBundle:
    return _LADDER[level]()


def all_difficulty_presets() -> List[Tuple[DifficultyLevel, Callable[[], ParameterBundle]]]:
    return list(_LADDER.items())


def preset_names() -> List[str]:
    return [level.name.lower() for level in _LADDER] + list(_SPECIAL_MODES)


def preset_by_name(name: str) -> ParameterBundle:
    """
    Resolve 'hard', 'HARD', 'melody_focused', 'melody-focused' etc.
    Raises KeyError for unknown names.
    """
    key = name.strip().lower().replace("-", "_")
    if key in _SPECIAL_MODES:
        return _SPECIAL_MODES[key]()
    try:
        return preset(DifficultyLevel[key.upper()])
    except KeyError:
        raise KeyError(f"Unknown preset {name!r}; expected one of {preset_names()}") from None
