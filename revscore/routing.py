from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .audio import AudioBuffer
from .classifier import VocalAnalysis, VocalMode, VocalModeClassifier
from .config import ChallengeDirection, DifficultyLevel, ParameterBundle
from .mode_presets import singing_preset, speech_preset
from .scoring import ScoringEngine, ScoringResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoutingDecision:
    analysis: VocalAnalysis
    # UNKNOWN references are scored as speech
    routed_mode: VocalMode
    bundle: ParameterBundle


@dataclass(frozen=True)
class RoutedScore:
    result: ScoringResult
    decision: RoutingDecision


def bundle_for_mode(mode: VocalMode, level: DifficultyLevel) -> ParameterBundle:
    if mode is VocalMode.SINGING:
        return singing_preset(level)
    return speech_preset(level)


class VocalModeRouter:
    """
    Classifies the reference clip and scores the attempt with the speech or
    singing parameter family at the requested difficulty.
    """

    def __init__(
        self,
        classifier: Optional[VocalModeClassifier] = None,
        engine: Optional[ScoringEngine] = None,
    ):
        self.classifier = classifier or VocalModeClassifier()
        self.engine = engine or ScoringEngine()

    def route(self, reference: AudioBuffer, level: DifficultyLevel = DifficultyLevel.NORMAL) -> RoutingDecision:
        analysis = self.classifier.classify(reference)
        routed = VocalMode.SINGING if analysis.mode is VocalMode.SINGING else VocalMode.SPEECH
        if analysis.mode is VocalMode.UNKNOWN:
            logger.warning("Reference mode unknown, falling back to speech scoring")
        bundle = bundle_for_mode(routed, level)
        logger.info("Reference classified %s (%.3f) -> %s", analysis.mode.value, analysis.confidence, bundle.label)
        return RoutingDecision(analysis=analysis, routed_mode=routed, bundle=bundle)

    def score(
        self,
        attempt: AudioBuffer,
        reference: AudioBuffer,
        level: DifficultyLevel = DifficultyLevel.NORMAL,
        direction: ChallengeDirection = ChallengeDirection.FORWARD,
    ) -> RoutedScore:
        decision = self.route(reference, level)
        result = self.engine.score(attempt, reference, bundle=decision.bundle, direction=direction)
        return RoutedScore(result=result, decision=decision)
