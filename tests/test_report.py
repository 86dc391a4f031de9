"""
Tests for revscore/report.py: text report, snippet and JSON summaries.
"""

import pytest

from revscore.config import TuningParameters
from revscore.report import format_report, render_parameter_snippet, summarize_result
from revscore.scoring import ScoringResult, SimilarityMetrics
from revscore.tuner import OptimizationResult


@pytest.fixture
def optimization() -> OptimizationResult:
    return OptimizationResult(
        parameters=TuningParameters(speech_threshold=0.25, singing_threshold=0.35, mfcc_normalizer=300.0),
        accuracy=0.9,
        correct_classifications=9,
        total_samples=10,
        detail_report="OK   speech_01.wav: expected SPEECH, got SPEECH (0.512)",
        combinations_tested=25600,
        elapsed_s=1.5,
    )


class TestFormatReport:
    def test_headline(self, optimization):
        text = format_report(optimization)
        assert "Accuracy: 90.0% (9/10)" in text
        assert "Combinations tested: 25600" in text
        assert "speech_threshold:   0.25" in text
        assert text.rstrip().endswith("(0.512)")


class TestSnippet:
    def test_contains_winning_values(self, optimization):
        snippet = render_parameter_snippet(optimization)
        assert "TuningParameters(" in snippet
        assert "singing_threshold=0.35," in snippet
        assert "mfcc_normalizer=300.0," in snippet
        assert snippet.startswith("# Tuned on 10 clips, accuracy 90.0%")


class TestSummarize:
    def test_scoring_result(self):
        result = ScoringResult(score=42, raw_score=0.4, metrics=SimilarityMetrics(0.5, 0.6, 0.1), feedback=("hi",))
        summary = summarize_result(result)
        assert summary == {
            "score": 42,
            "raw_score": 0.4,
            "metrics": {"pitch": 0.5, "mfcc": 0.6, "spectral": 0.1},
            "feedback": ["hi"],
            "content": None,
            "is_garbage": False,
        }

    def test_optimization_result(self, optimization):
        summary = summarize_result(optimization)
        assert summary["parameters"]["mfcc_normalizer"] == 300.0
        assert summary["detail_report"] == ["OK   speech_01.wav: expected SPEECH, got SPEECH (0.512)"]

    def test_rejects_other_types(self):
        with pytest.raises(TypeError):
            summarize_result({"score": 1})
