from __future__ import annotations

import logging
from typing import List, Tuple

import numpy as np

from .config import MelodicAnalysisParameters, MusicalSimilarityParameters, ScoringParameters

logger = logging.getLogger(__name__)

# Segment rules (frames)
MIN_SEGMENT_FRAMES = 3
MIN_GAP_FRAMES = 5

# Interval changes at or below this are treated as a held note
INTERVAL_EPSILON = 0.1

Segment = Tuple[int, int]


# --- Semitone sequences: NaN marks an unvoiced frame ---
def voiced_mask(semitones: np.ndarray) -> np.ndarray:
    return np.isfinite(np.asarray(semitones, dtype=float))


def voiced_values(semitones: np.ndarray) -> np.ndarray:
    s = np.asarray(semitones, dtype=float)
    return s[np.isfinite(s)]


def pitch_variance(semitones: np.ndarray) -> float:
    v = voiced_values(semitones)
    if v.size < 2:
        return 0.0
    return float(np.var(v))


def monotone_penalty(reference: np.ndarray, attempt: np.ndarray, melodic: MelodicAnalysisParameters) -> float:
    """Penalty factor for a flat attempt at a melodic reference (1.0 = no penalty)."""
    ref_var = pitch_variance(reference)
    att_var = pitch_variance(attempt)
    if ref_var > melodic.monotone_detection_threshold and att_var < melodic.flat_speech_threshold:
        logger.debug("Monotone attempt: ref var=%.2f attempt var=%.2f", ref_var, att_var)
        return melodic.monotone_penalty
    return 1.0


def frame_pitch_similarity(
    reference: np.ndarray,
    attempt: np.ndarray,
    tolerance: float,
    melodic: MelodicAnalysisParameters,
) -> float:
    """
    Frame-by-frame agreement. Both voiced: exp decay beyond the tolerance.
    Both unvoiced: silence_to_silence_score. One-sided voicing: 0.
    """
    n = min(len(reference), len(attempt))
    if n < 2:
        return 0.0
    ref = np.asarray(reference[:n], dtype=float)
    att = np.asarray(attempt[:n], dtype=float)
    ref_v = np.isfinite(ref)
    att_v = np.isfinite(att)

    scores = np.zeros(n, dtype=float)
    both = ref_v & att_v
    diff = np.abs(ref[both] - att[both])
    scores[both] = np.exp(-np.maximum(0.0, diff - tolerance) / melodic.pitch_difference_decay_rate)
    scores[~ref_v & ~att_v] = melodic.silence_to_silence_score
    return float(scores.mean())


def vocal_effort_similarity(reference: np.ndarray, attempt: np.ndarray, scoring: ScoringParameters) -> float:
    n_ref = len(reference)
    n_att = len(attempt)
    if n_ref == 0 or n_att == 0:
        return 0.0

    ref_active = voiced_values(reference)
    att_active = voiced_values(attempt)

    # how much of each clip is voiced
    effort = 1.0 - abs(ref_active.size / n_ref - att_active.size / n_att)

    ref_var = pitch_variance(reference)
    att_var = pitch_variance(attempt)
    max_var = max(ref_var, att_var)
    intensity = min(ref_var, att_var) / max_var if max_var > 0 else 1.0

    if ref_active.size and att_active.size:
        ref_range = float(ref_active.max() - ref_active.min())
        att_range = float(att_active.max() - att_active.min())
        max_range = max(ref_range, att_range)
        range_score = 1.0 - abs(ref_range - att_range) / max_range if max_range > 0 else 1.0
    else:
        range_score = 0.0

    # very low intensity agreement usually means different content
    if intensity < scoring.intensity_penalty_threshold:
        intensity *= scoring.intensity_penalty_multiplier

    logger.debug("Effort=%.3f intensity=%.3f range=%.3f", effort, intensity, range_score)
    return (
        effort * scoring.effort_weight
        + intensity * scoring.intensity_weight
        + range_score * scoring.range_weight
    )


def _voiced_intervals(semitones: np.ndarray) -> np.ndarray:
    s = np.asarray(semitones, dtype=float)
    if s.size < 2:
        return np.zeros(0, dtype=float)
    d = np.diff(s)
    d = d[np.isfinite(d)]
    return d[np.abs(d) > INTERVAL_EPSILON]


def interval_accuracy(reference: np.ndarray, attempt: np.ndarray, musical: MusicalSimilarityParameters) -> float:
    if len(reference) < 3 or len(attempt) < 3:
        return 0.0
    ref_iv = _voiced_intervals(reference)
    att_iv = _voiced_intervals(attempt)
    n = min(ref_iv.size, att_iv.size)
    if n == 0:
        return 0.0

    diff = np.abs(ref_iv[:n] - att_iv[:n])
    scores = np.select(
        [
            diff <= musical.same_interval_threshold,
            diff <= musical.close_interval_threshold,
            diff <= musical.similar_interval_threshold,
        ],
        [musical.same_interval_score, musical.close_interval_score, musical.similar_interval_score],
        default=musical.different_interval_score,
    )
    return float(scores.mean())


def contour_similarity(reference: np.ndarray, attempt: np.ndarray) -> float:
    """Pearson correlation over frames voiced in both clips, mapped to [0, 1]."""
    n = min(len(reference), len(attempt))
    if n < 3:
        return 0.0
    ref = np.asarray(reference[:n], dtype=float)
    att = np.asarray(attempt[:n], dtype=float)
    both = np.isfinite(ref) & np.isfinite(att)
    if both.sum() < 3:
        return 0.0
    r, a = ref[both], att[both]
    if np.std(r) == 0 or np.std(a) == 0:
        # a held note carries no shape to correlate
        return 0.5
    corr = float(np.corrcoef(r, a)[0, 1])
    if not np.isfinite(corr):
        return 0.0
    return (corr + 1.0) / 2.0


def melodic_variation(semitones: np.ndarray, melodic: MelodicAnalysisParameters) -> float:
    v = voiced_values(semitones)
    if v.size < 2:
        return 0.0
    range_score = min(1.0, float(v.max() - v.min()) / melodic.melodic_range_semitones)
    transition_score = min(1.0, float(np.mean(np.abs(np.diff(v)))) / melodic.melodic_transition_threshold)
    variance_score = min(1.0, float(np.var(v)) / melodic.melodic_variance_threshold)
    return (
        range_score * melodic.melodic_range_weight
        + transition_score * melodic.melodic_transition_weight
        + variance_score * melodic.melodic_variance_weight
    )


def melodic_ratio(reference_score: float, attempt_score: float) -> float:
    # a flat reference asks for no melodic effort
    if reference_score <= 1e-6:
        return 1.0
    return attempt_score / reference_score


# --- Phrase structure ---
def extract_segments(voiced: np.ndarray, min_segment: int = MIN_SEGMENT_FRAMES, min_gap: int = MIN_GAP_FRAMES) -> List[Segment]:
    """
    Inclusive (start, end) frame ranges of voiced phrases.

    Gaps shorter than min_gap frames do not split a phrase; phrases shorter
    than min_segment frames are dropped.
    """
    segments: List[Segment] = []
    start = -1
    silence = 0
    n = len(voiced)

    for i in range(n):
        if voiced[i]:
            if start == -1:
                start = i
            silence = 0
        else:
            silence += 1
            if start != -1 and silence >= min_gap:
                end = i - silence
                if end - start + 1 >= min_segment:
                    segments.append((start, end))
                start = -1

    if start != -1:
        end = n - 1 - silence
        if end - start + 1 >= min_segment:
            segments.append((start, end))
    return segments


def segment_count_similarity(n_ref: int, n_att: int, softening: float) -> float:
    if n_ref == 0 and n_att == 0:
        return 1.0
    if n_ref == 0 or n_att == 0:
        return 0.0
    return (min(n_ref, n_att) / max(n_ref, n_att)) ** softening


def phrase_similarity(
    ref_segments: List[Segment],
    att_segments: List[Segment],
    ref_frames: int,
    att_frames: int,
    musical: MusicalSimilarityParameters,
) -> float:
    n_ref, n_att = len(ref_segments), len(att_segments)
    if n_ref == 0 and n_att == 0:
        return 1.0
    if n_ref == 0 or n_att == 0:
        return 0.0

    count_score = segment_count_similarity(n_ref, n_att, musical.segment_count_softening)
    if min(n_ref, n_att) / max(n_ref, n_att) < musical.phrase_count_difference_threshold:
        count_score *= musical.phrase_count_penalty_multiplier

    n = min(n_ref, n_att)
    ref_pos = np.array([s for s, _ in ref_segments[:n]], dtype=float) / max(1, ref_frames)
    att_pos = np.array([s for s, _ in att_segments[:n]], dtype=float) / max(1, att_frames)
    position_score = 1.0 - float(np.mean(np.abs(ref_pos - att_pos)))

    balance = musical.phrase_weight_balance
    return (count_score * balance + position_score) / (balance + 1.0)


def rhythm_similarity(ref_segments: List[Segment], att_segments: List[Segment], softening: float) -> float:
    if not ref_segments or not att_segments:
        return 0.0
    n = min(len(ref_segments), len(att_segments))
    ref_d = np.array([e - s + 1 for s, e in ref_segments[:n]], dtype=float)
    att_d = np.array([e - s + 1 for s, e in att_segments[:n]], dtype=float)
    ratios = np.minimum(ref_d, att_d) / np.maximum(ref_d, att_d)
    return float(np.mean(ratios ** softening))
