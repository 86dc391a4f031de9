"""
Tests for revscore/routing.py: classify the reference, then score with the
matching speech or singing ladder.
"""

from unittest.mock import MagicMock

import pytest

from revscore.classifier import VocalAnalysis, VocalMode
from revscore.config import ChallengeDirection, DifficultyLevel
from revscore.features import VocalFeatures
from revscore.mode_presets import SINGING, SPEECH, singing_preset, speech_preset
from revscore.routing import VocalModeRouter, bundle_for_mode
from revscore.scoring import ScoringEngine, ScoringResult


def _classifier(mode: VocalMode) -> MagicMock:
    classifier = MagicMock()
    classifier.classify.return_value = VocalAnalysis(mode, 0.8, VocalFeatures.zero())
    return classifier


class TestBundleForMode:
    @pytest.mark.parametrize("level", list(DifficultyLevel))
    def test_families(self, level):
        assert bundle_for_mode(VocalMode.SINGING, level) == singing_preset(level)
        assert bundle_for_mode(VocalMode.SPEECH, level) == speech_preset(level)
        assert bundle_for_mode(VocalMode.UNKNOWN, level) == speech_preset(level)


class TestVocalModeRouter:
    @pytest.mark.parametrize(
        "detected, routed, family",
        [
            (VocalMode.SINGING, VocalMode.SINGING, SINGING),
            (VocalMode.SPEECH, VocalMode.SPEECH, SPEECH),
            (VocalMode.UNKNOWN, VocalMode.SPEECH, SPEECH),
        ],
    )
    def test_route(self, tone, detected, routed, family):
        decision = VocalModeRouter(classifier=_classifier(detected)).route(tone, DifficultyLevel.HARD)
        assert decision.analysis.mode is detected
        assert decision.routed_mode is routed
        assert decision.bundle.vocal_mode == family
        assert decision.bundle.difficulty is DifficultyLevel.HARD

    def test_unknown_logs_fallback(self, tone, caplog):
        with caplog.at_level("WARNING", logger="revscore.routing"):
            VocalModeRouter(classifier=_classifier(VocalMode.UNKNOWN)).route(tone)
        assert "falling back to speech" in caplog.text

    def test_engine_gets_routed_bundle(self, tone, detuned_tone):
        engine = MagicMock()
        engine.score.return_value = ScoringResult(score=50, raw_score=0.5)
        router = VocalModeRouter(classifier=_classifier(VocalMode.SINGING), engine=engine)

        routed = router.score(detuned_tone, tone, DifficultyLevel.EXPERT, ChallengeDirection.REVERSE)

        engine.score.assert_called_once_with(
            detuned_tone, tone, bundle=singing_preset(DifficultyLevel.EXPERT), direction=ChallengeDirection.REVERSE,
        )
        assert routed.result.score == 50
        assert routed.decision.routed_mode is VocalMode.SINGING

    def test_classifies_reference_only(self, tone, noise):
        classifier = _classifier(VocalMode.SPEECH)
        VocalModeRouter(classifier=classifier, engine=MagicMock()).score(noise, tone)
        classifier.classify.assert_called_once_with(tone)

    def test_end_to_end(self, tone):
        routed = VocalModeRouter(engine=ScoringEngine()).score(tone, tone)
        assert routed.decision.bundle.vocal_mode in {SPEECH, SINGING}
        assert 0 <= routed.result.score <= 100
        if routed.result.is_garbage:
            assert routed.result.score == routed.decision.bundle.garbage.garbage_score_max
