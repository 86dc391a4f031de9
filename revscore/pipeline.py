from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Dict, Optional

from .audio import DEFAULT_SAMPLE_RATE, load_audio_mono
from .classifier import VocalAnalysis, VocalModeClassifier
from .config import ChallengeDirection, DifficultyLevel, ParameterBundle, TuningParameters
from .presets import normal_mode
from .report import summarize_result
from .routing import RoutedScore, VocalModeRouter
from .scoring import ScoringEngine, ScoringResult
from .spectral import SpectralComparer
from .tuner import OptimizationResult, ParameterTuner, ProgressCallback, SearchRanges, load_training_corpus

logger = logging.getLogger(__name__)


def score_files(
    attempt_path: str,
    reference_path: str,
    bundle: Optional[ParameterBundle] = None,
    direction: ChallengeDirection = ChallengeDirection.FORWARD,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> ScoringResult:
    reference = load_audio_mono(reference_path, target_sr=sample_rate)
    attempt = load_audio_mono(attempt_path, target_sr=sample_rate)
    engine = ScoringEngine(bundle or normal_mode())
    return engine.score(attempt, reference, direction=direction)


def score_files_routed(
    attempt_path: str,
    reference_path: str,
    level: DifficultyLevel = DifficultyLevel.NORMAL,
    direction: ChallengeDirection = ChallengeDirection.FORWARD,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> RoutedScore:
    reference = load_audio_mono(reference_path, target_sr=sample_rate)
    attempt = load_audio_mono(attempt_path, target_sr=sample_rate)
    return VocalModeRouter().score(attempt, reference, level=level, direction=direction)


def classify_file(
    path: str,
    params: TuningParameters = TuningParameters(),
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> VocalAnalysis:
    audio = load_audio_mono(path, target_sr=sample_rate)
    return VocalModeClassifier(params).classify(audio)


def compare_files(path_a: str, path_b: str, sample_rate: int = DEFAULT_SAMPLE_RATE) -> int:
    a = load_audio_mono(path_a, target_sr=sample_rate)
    b = load_audio_mono(path_b, target_sr=sample_rate)
    return SpectralComparer().compare(a, b)


def tune_directory(
    directory: str,
    ranges: SearchRanges = SearchRanges(),
    max_workers: Optional[int] = None,
    progress: Optional[ProgressCallback] = None,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> OptimizationResult:
    samples = load_training_corpus(directory, sample_rate=sample_rate)
    tuner = ParameterTuner(max_workers=max_workers)
    return tuner.search(samples, ranges, progress=progress)


def analysis_to_dict(analysis: VocalAnalysis) -> Dict[str, Any]:
    return {
        "mode": analysis.mode.value,
        "confidence": analysis.confidence,
        "features": asdict(analysis.features),
    }


def routed_to_dict(routed: RoutedScore) -> Dict[str, Any]:
    out = summarize_result(routed.result)
    out["vocal_mode"] = routed.decision.routed_mode.value
    out["detected_mode"] = routed.decision.analysis.mode.value
    return out
