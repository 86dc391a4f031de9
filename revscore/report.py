from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from .scoring import ScoringResult
from .tuner import OptimizationResult


def format_report(result: OptimizationResult) -> str:
    """
    Plain-text tuning report, one fact per line.
    """
    p = result.parameters
    lines = [
        "=== Vocal mode tuning report ===",
        f"Accuracy: {result.accuracy * 100.0:.1f}% ({result.correct_classifications}/{result.total_samples})",
        f"Combinations tested: {result.combinations_tested}",
        f"Elapsed: {result.elapsed_s:.2f}s",
        "",
        "Best parameters:",
        f"  speech_threshold:   {p.speech_threshold}",
        f"  singing_threshold:  {p.singing_threshold}",
        f"  stability_weight:   {p.stability_weight}",
        f"  contour_weight:     {p.contour_weight}",
        f"  voiced_weight:      {p.voiced_weight}",
        f"  contour_normalizer: {p.contour_normalizer}",
        f"  mfcc_normalizer:    {p.mfcc_normalizer}",
        "",
        "Per-sample results:",
        result.detail_report,
    ]
    return "\n".join(lines) + "\n"


def render_parameter_snippet(result: OptimizationResult) -> str:
    p = result.parameters
    return (
        f"# Tuned on {result.total_samples} clips, accuracy {result.accuracy * 100.0:.1f}%\n"
        "TUNED_PARAMETERS = TuningParameters(\n"
        f"    speech_threshold={p.speech_threshold},\n"
        f"    singing_threshold={p.singing_threshold},\n"
        f"    stability_weight={p.stability_weight},\n"
        f"    contour_weight={p.contour_weight},\n"
        f"    voiced_weight={p.voiced_weight},\n"
        f"    contour_normalizer={p.contour_normalizer},\n"
        f"    mfcc_normalizer={p.mfcc_normalizer},\n"
        ")\n"
    )


def summarize_result(result: Any) -> Dict[str, Any]:
    """JSON-ready dict for a ScoringResult or an OptimizationResult."""
    if isinstance(result, ScoringResult):
        return {
            "score": result.score,
            "raw_score": result.raw_score,
            "metrics": asdict(result.metrics),
            "feedback": list(result.feedback),
            "content": asdict(result.content) if result.content is not None else None,
            "is_garbage": result.is_garbage,
        }
    if isinstance(result, OptimizationResult):
        return {
            "parameters": asdict(result.parameters),
            "accuracy": result.accuracy,
            "correct_classifications": result.correct_classifications,
            "total_samples": result.total_samples,
            "combinations_tested": result.combinations_tested,
            "elapsed_s": result.elapsed_s,
            "detail_report": result.detail_report.splitlines(),
        }
    raise TypeError(f"cannot summarize {type(result).__name__}")
