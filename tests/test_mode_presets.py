"""
Tests for revscore/mode_presets.py: the speech and singing difficulty ladders.
"""

import pytest

from revscore.config import DifficultyLevel, ParameterBundle
from revscore.mode_presets import (
    SINGING,
    SPEECH,
    all_singing_presets,
    all_speech_presets,
    normal_singing,
    normal_speech,
    singing_preset,
    speech_preset,
)
from revscore.presets import preset

LEVELS = list(DifficultyLevel)


class TestLadders:
    @pytest.mark.parametrize("level, factory", all_speech_presets() + all_singing_presets())
    def test_every_bundle_is_valid(self, level, factory):
        bundle = factory()
        assert isinstance(bundle, ParameterBundle)
        assert bundle.difficulty is level
        assert bundle.garbage.enabled

    def test_every_level_is_covered(self):
        assert [lvl for lvl, _ in all_speech_presets()] == LEVELS
        assert [lvl for lvl, _ in all_singing_presets()] == LEVELS

    @pytest.mark.parametrize("level", LEVELS)
    def test_vocal_mode_tag(self, level):
        assert speech_preset(level).vocal_mode == SPEECH
        assert singing_preset(level).vocal_mode == SINGING

    @pytest.mark.parametrize("level", LEVELS)
    def test_singing_weighs_pitch_more(self, level):
        assert singing_preset(level).scoring.pitch_weight > speech_preset(level).scoring.pitch_weight

    @pytest.mark.parametrize("level", LEVELS)
    def test_reverse_only_relaxes(self, level):
        for bundle in (speech_preset(level), singing_preset(level)):
            assert bundle.scaling.reverse_min_score_adjustment <= 1.0
            assert bundle.scaling.reverse_perfect_score_adjustment <= 1.0
            assert bundle.scaling.reverse_curve_adjustment >= 1.0

    def test_garbage_cap_tightens_with_level(self):
        caps = [singing_preset(level).garbage.garbage_score_max for level in LEVELS]
        assert caps == sorted(caps, reverse=True)
        assert speech_preset(DifficultyLevel.EASY).garbage.garbage_score_max == 30

    def test_plain_ladder_has_no_filter(self):
        assert not preset(DifficultyLevel.NORMAL).garbage.enabled
        assert preset(DifficultyLevel.NORMAL).vocal_mode is None


class TestNormalValues:
    def test_normal_speech(self):
        bundle = normal_speech()
        assert bundle.scoring.pitch_weight == pytest.approx(0.70)
        assert bundle.garbage.pitch_monotone_threshold == 8.0
        assert bundle.garbage.garbage_score_max == 15

    def test_normal_singing(self):
        bundle = normal_singing()
        assert bundle.scoring.pitch_weight == pytest.approx(0.90)
        assert bundle.garbage.mfcc_variance_threshold == pytest.approx(0.45)
        assert bundle.garbage.garbage_score_max == 12

    def test_label_names_mode(self):
        assert normal_speech().label == "Normal (speech)"
        assert normal_singing().label == "Normal (singing)"
