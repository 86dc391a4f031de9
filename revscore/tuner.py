from __future__ import annotations

import itertools
import logging
import multiprocessing
import os
import threading
import time
from concurrent.futures import FIRST_COMPLETED, ProcessPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from .audio import AudioBuffer, DEFAULT_SAMPLE_RATE, load_audio_mono
from .classifier import VocalMode, classify_features
from .config import TuningParameters
from .errors import AudioFormatError, TuningCancelledError, TuningError
from .features import FeatureExtractor, RawVocalStats, VocalFeatures

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, float], None]

AUDIO_SUFFIXES = {".wav", ".mp3", ".flac", ".m4a", ".ogg"}
LABEL_PREFIXES = {
    "speech_": VocalMode.SPEECH,
    "singing_": VocalMode.SINGING,
}

# Combinations per worker task; progress advances once per finished task
CHUNK_SIZE = 256
CANCEL_POLL_S = 0.05


@dataclass(frozen=True)
class TrainingSample:
    name: str
    audio: AudioBuffer
    label: VocalMode


@dataclass(frozen=True)
class CachedSample:
    name: str
    label: VocalMode
    stats: RawVocalStats


@dataclass(frozen=True)
class SearchRanges:
    # Enumeration order, outermost first
    speech_thresholds: Tuple[float, ...] = (0.20, 0.25, 0.30, 0.35)
    singing_thresholds: Tuple[float, ...] = (0.30, 0.35, 0.40, 0.45)
    stability_weights: Tuple[float, ...] = (0.2, 0.3, 0.4, 0.5)
    contour_weights: Tuple[float, ...] = (0.2, 0.3, 0.4, 0.5)
    voiced_weights: Tuple[float, ...] = (0.2, 0.3, 0.4, 0.5)
    contour_normalizers: Tuple[float, ...] = (15.0, 18.0, 20.0, 25.0, 30.0)
    mfcc_normalizers: Tuple[float, ...] = (200.0, 250.0, 300.0, 350.0, 400.0)

    def __post_init__(self) -> None:
        for name, values in self._axes():
            if not values:
                raise ValueError(f"SearchRanges.{name} must not be empty")
        for name in ("contour_normalizers", "mfcc_normalizers"):
            if any(v <= 0 for v in getattr(self, name)):
                raise ValueError(f"SearchRanges.{name} must be positive")

    def _axes(self) -> List[Tuple[str, Tuple[float, ...]]]:
        return [
            ("speech_thresholds", self.speech_thresholds),
            ("singing_thresholds", self.singing_thresholds),
            ("stability_weights", self.stability_weights),
            ("contour_weights", self.contour_weights),
            ("voiced_weights", self.voiced_weights),
            ("contour_normalizers", self.contour_normalizers),
            ("mfcc_normalizers", self.mfcc_normalizers),
        ]

    @property
    def total(self) -> int:
        n = 1
        for _name, values in self._axes():
            n *= len(values)
        return n

    def combinations(self, start: int = 0, stop: Optional[int] = None) -> Iterator[Tuple[int, TuningParameters]]:
        """(index, parameters) in the fixed enumeration order, optionally sliced."""
        product = itertools.product(*(values for _name, values in self._axes()))
        for index, combo in enumerate(itertools.islice(product, start, stop), start):
            yield index, TuningParameters(*combo)


@dataclass(frozen=True)
class OptimizationResult:
    parameters: TuningParameters
    accuracy: float
    correct_classifications: int
    total_samples: int
    detail_report: str
    combinations_tested: int = 1
    elapsed_s: float = 0.0


@dataclass
class _LocalBest:
    index: int = -1
    correct: int = -1
    parameters: Optional[TuningParameters] = None


def _label_from_name(filename: str) -> Optional[VocalMode]:
    lower = filename.lower()
    for prefix, label in LABEL_PREFIXES.items():
        if lower.startswith(prefix):
            return label
    return None


def load_training_corpus(directory: str, sample_rate: int = DEFAULT_SAMPLE_RATE) -> List[TrainingSample]:
    """
    Load labelled clips named speech_* / singing_* from a directory.
    Undecodable files are skipped with a warning; an unusable corpus raises TuningError.
    """
    if not os.path.isdir(directory):
        raise TuningError(f"training directory not found: {directory}")

    samples: List[TrainingSample] = []
    for filename in sorted(os.listdir(directory)):
        if os.path.splitext(filename)[1].lower() not in AUDIO_SUFFIXES:
            continue
        label = _label_from_name(filename)
        if label is None:
            logger.debug("Skipping unlabelled file %s", filename)
            continue
        try:
            audio = load_audio_mono(os.path.join(directory, filename), target_sr=sample_rate)
        except AudioFormatError as e:
            logger.warning("Skipping %s: %s", filename, e)
            continue
        if len(audio) == 0:
            logger.warning("Skipping %s: no audio data", filename)
            continue
        samples.append(TrainingSample(name=filename, audio=audio, label=label))

    if not samples:
        raise TuningError(f"no labelled training clips in {directory}")
    logger.info("Loaded %d training clips from %s", len(samples), directory)
    return samples


def _count_correct(
    params: TuningParameters,
    cache: Sequence[CachedSample],
    features: Sequence[VocalFeatures],
) -> int:
    correct = 0
    for sample, feats in zip(cache, features):
        mode, _confidence = classify_features(feats, params)
        if mode == sample.label:
            correct += 1
    return correct


_worker_stop = None


def _init_worker(stop_flag) -> None:
    global _worker_stop
    _worker_stop = stop_flag


def _search_chunk(
    cache: Sequence[CachedSample],
    ranges: SearchRanges,
    start: int,
    stop: int,
) -> _LocalBest:
    best = _LocalBest()
    features_by_norm: Dict[Tuple[float, float], List[VocalFeatures]] = {}
    for index, params in ranges.combinations(start, stop):
        if _worker_stop is not None and _worker_stop.is_set():
            raise TuningCancelledError(f"search cancelled at combination {index}")

        key = (params.contour_normalizer, params.mfcc_normalizer)
        features = features_by_norm.get(key)
        if features is None:
            features = [s.stats.to_features(*key) for s in cache]
            features_by_norm[key] = features

        correct = _count_correct(params, cache, features)
        # strict improvement keeps the earliest combination on ties
        if correct > best.correct:
            best = _LocalBest(index=index, correct=correct, parameters=params)
    return best


class ParameterTuner:
    """
    Grid search over classifier parameters.

    Features are extracted once per clip (preprocess); the search then only
    re-derives normalized features from the cached raw statistics.
    """

    def __init__(self, extractor: Optional[FeatureExtractor] = None, max_workers: Optional[int] = None):
        self.extractor = extractor or FeatureExtractor()
        self.max_workers = max_workers or min(8, os.cpu_count() or 1)

    def preprocess(self, samples: Sequence[TrainingSample]) -> List[CachedSample]:
        if not samples:
            raise TuningError("no training samples to preprocess")
        cache: List[CachedSample] = []
        for sample in samples:
            try:
                stats = self.extractor.raw_stats(sample.audio)
            except Exception as e:
                raise TuningError(f"feature extraction failed for {sample.name}: {e}") from e
            cache.append(CachedSample(name=sample.name, label=sample.label, stats=stats))
        logger.info("Preprocessed %d clips", len(cache))
        return cache

    def search(
        self,
        samples: Sequence[TrainingSample],
        ranges: SearchRanges = SearchRanges(),
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> OptimizationResult:
        return self.search_cached(self.preprocess(samples), ranges, progress=progress, cancel=cancel)

    def search_cached(
        self,
        cache: Sequence[CachedSample],
        ranges: SearchRanges = SearchRanges(),
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> OptimizationResult:
        """
        Grid search over cached features in worker processes.

        progress(current, total, percent) is called from the calling thread
        with strictly increasing counts as chunks complete. Setting cancel
        stops every worker at its next combination and raises
        TuningCancelledError.
        """
        if not cache:
            raise TuningError("empty feature cache")

        started = time.perf_counter()
        total = ranges.total
        cancel = cancel or threading.Event()

        n_workers = max(1, min(self.max_workers, total))
        chunk = max(1, min(CHUNK_SIZE, -(-total // n_workers)))
        bounds = [(start, min(start + chunk, total)) for start in range(0, total, chunk)]
        logger.info(
            "Searching %d combinations over %d clips with %d workers (%d chunks)",
            total, len(cache), n_workers, len(bounds),
        )

        ctx = multiprocessing.get_context()
        stop_flag = ctx.Event()
        local_bests: List[_LocalBest] = []
        done = 0
        with ProcessPoolExecutor(
            max_workers=n_workers, mp_context=ctx, initializer=_init_worker, initargs=(stop_flag,),
        ) as pool:
            pending = {pool.submit(_search_chunk, cache, ranges, start, stop): stop - start for start, stop in bounds}
            try:
                while pending:
                    if cancel.is_set():
                        raise TuningCancelledError(f"search cancelled after {done} of {total} combinations")
                    finished, _ = wait(pending, timeout=CANCEL_POLL_S, return_when=FIRST_COMPLETED)
                    for future in finished:
                        size = pending.pop(future)
                        local_bests.append(future.result())
                        done += size
                        if progress is not None:
                            progress(done, total, done * 100.0 / total)
                if cancel.is_set():
                    raise TuningCancelledError("search cancelled")
            except BaseException:
                stop_flag.set()
                for future in pending:
                    future.cancel()
                raise

        winner = min(local_bests, key=lambda b: (-b.correct, b.index))
        elapsed = time.perf_counter() - started
        result = self.evaluate(winner.parameters, cache)
        logger.info(
            "Best accuracy %.1f%% (%d/%d) with %s in %.2fs",
            result.accuracy * 100.0, result.correct_classifications, result.total_samples,
            result.parameters, elapsed,
        )
        return OptimizationResult(
            parameters=result.parameters,
            accuracy=result.accuracy,
            correct_classifications=result.correct_classifications,
            total_samples=result.total_samples,
            detail_report=result.detail_report,
            combinations_tested=total,
            elapsed_s=elapsed,
        )

    def evaluate(self, params: TuningParameters, cache: Sequence[CachedSample]) -> OptimizationResult:
        if not cache:
            raise TuningError("empty feature cache")
        lines = []
        correct = 0
        for sample in cache:
            features = sample.stats.to_features(params.contour_normalizer, params.mfcc_normalizer)
            mode, confidence = classify_features(features, params)
            ok = mode == sample.label
            correct += ok
            lines.append(
                f"{'OK  ' if ok else 'MISS'} {sample.name}: expected {sample.label.name}, "
                f"got {mode.name} ({confidence:.3f})"
            )
        return OptimizationResult(
            parameters=params,
            accuracy=correct / len(cache),
            correct_classifications=correct,
            total_samples=len(cache),
            detail_report="\n".join(lines),
        )
