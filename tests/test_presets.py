"""
Tests for revscore/presets.py: the difficulty ladder and special modes.
"""

import pytest

from revscore.config import DifficultyLevel
from revscore.presets import (
    all_difficulty_presets,
    content_focused_mode,
    easy_mode,
    hard_mode,
    master_mode,
    melody_focused_mode,
    normal_mode,
    preset,
    preset_by_name,
    preset_names,
)
from revscore.scoring import ScoringEngine


class TestLadder:
    @pytest.mark.parametrize(
        "level, pitch_weight, tolerance, min_score, perfect, curve",
        [
            (DifficultyLevel.EASY, 0.75, 20, 0.15, 0.75, 2.5),
            (DifficultyLevel.NORMAL, 0.85, 15, 0.20, 0.80, 2.0),
            (DifficultyLevel.HARD, 0.90, 8, 0.30, 0.90, 1.5),
            (DifficultyLevel.EXPERT, 0.95, 5, 0.40, 0.95, 1.2),
            (DifficultyLevel.MASTER, 0.98, 3, 0.50, 0.98, 1.0),
        ],
    )
    def test_headline_values(self, level, pitch_weight, tolerance, min_score, perfect, curve):
        s = preset(level).scoring
        assert s.pitch_weight == pitch_weight
        assert s.pitch_tolerance == tolerance
        assert s.min_score_threshold == min_score
        assert s.perfect_score_threshold == perfect
        assert s.score_curve == curve

    def test_every_preset_keeps_weight_invariant(self):
        for _level, make in all_difficulty_presets():
            s = make().scoring
            assert s.pitch_weight + s.mfcc_weight == pytest.approx(1.0, abs=1e-3)

    def test_ladder_order(self):
        levels = [level for level, _make in all_difficulty_presets()]
        assert levels == list(DifficultyLevel)

    def test_preset_difficulty_matches_level(self):
        for level in DifficultyLevel:
            assert preset(level).difficulty is level

    def test_master_has_no_reverse_relief(self):
        sc = master_mode().scaling
        assert (sc.reverse_min_score_adjustment, sc.reverse_perfect_score_adjustment, sc.reverse_curve_adjustment) == (1.0, 1.0, 1.0)

    def test_harder_levels_penalize_wrong_content_more(self):
        penalties = [make().content.wrong_content_standard_penalty for _level, make in all_difficulty_presets()]
        assert penalties == sorted(penalties)

    def test_fresh_bundle_each_call(self):
        assert normal_mode() == normal_mode()
        assert normal_mode() is not normal_mode()


class TestSpecialModes:
    def test_content_focused(self):
        b = content_focused_mode()
        assert b.mode == "content_focused"
        assert b.difficulty is DifficultyLevel.NORMAL
        assert b.scoring.pitch_tolerance == 25.0
        assert b.content.content_detection_best_threshold == 0.2

    def test_melody_focused(self):
        b = melody_focused_mode()
        assert b.mode == "melody_focused"
        assert b.melodic.melodic_range_weight == 0.5
        assert b.scoring.pitch_tolerance == 5.0

    def test_special_modes_are_not_on_the_ladder(self):
        ladder = [make() for _level, make in all_difficulty_presets()]
        assert content_focused_mode() not in ladder
        assert melody_focused_mode() not in ladder


class TestPresetByName:
    @pytest.mark.parametrize("name", ["hard", "HARD", " Hard "])
    def test_difficulty_names(self, name):
        assert preset_by_name(name) == hard_mode()

    def test_special_mode_with_dash(self):
        assert preset_by_name("melody-focused") == melody_focused_mode()

    def test_unknown_raises_key_error(self):
        with pytest.raises(KeyError, match="Unknown preset"):
            preset_by_name("legendary")

    def test_names_cover_everything(self):
        assert preset_names() == ["easy", "normal", "hard", "expert", "master", "content_focused", "melody_focused"]


class TestApplyPreset:
    def test_easy_then_hard_leaves_exactly_hard(self):
        engine = ScoringEngine()
        engine.apply_preset(easy_mode())
        engine.apply_preset(hard_mode())
        assert engine.bundle == hard_mode()
        assert engine.bundle.content == hard_mode().content
        assert engine.bundle.melodic == hard_mode().melodic

    def test_rejects_partial_groups(self):
        engine = ScoringEngine()
        with pytest.raises(TypeError):
            engine.apply_preset(hard_mode().scoring)  # type: ignore[arg-type]
        assert engine.bundle == normal_mode()
