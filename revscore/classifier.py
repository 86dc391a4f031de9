from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .audio import AudioBuffer
from .config import TuningParameters
from .features import FeatureExtractor, VocalFeatures

logger = logging.getLogger(__name__)

# Speech indicators are fixed; only the singing side is tunable
SPEECH_INSTABILITY_WEIGHT = 0.4
SPEECH_FLATNESS_WEIGHT = 0.3
SPEECH_TIMBRE_WEIGHT = 0.1

FALLBACK_CONFIDENCE = 0.25


class VocalMode(str, Enum):
    SPEECH = "speech"
    SINGING = "singing"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class VocalAnalysis:
    mode: VocalMode
    confidence: float
    features: VocalFeatures

    @classmethod
    def unknown(cls) -> "VocalAnalysis":
        return cls(VocalMode.UNKNOWN, 0.0, VocalFeatures.zero())


def speech_score(features: VocalFeatures) -> float:
    return (
        SPEECH_INSTABILITY_WEIGHT * (1.0 - features.pitch_stability)
        + SPEECH_FLATNESS_WEIGHT * (1.0 - features.pitch_contour)
        + SPEECH_TIMBRE_WEIGHT * features.mfcc_spread
    )


def singing_score(features: VocalFeatures, params: TuningParameters) -> float:
    return (
        params.stability_weight * features.pitch_stability
        + params.contour_weight * features.pitch_contour
        + params.voiced_weight * features.voiced_ratio
    )


def classify_features(features: VocalFeatures, params: TuningParameters = TuningParameters()) -> Tuple[VocalMode, float]:
    speech = speech_score(features)
    singing = singing_score(features, params)
    speech_ok = speech > params.speech_threshold
    singing_ok = singing > params.singing_threshold

    if speech_ok and singing_ok:
        # equal scores resolve to SPEECH
        if singing > speech:
            return VocalMode.SINGING, singing
        return VocalMode.SPEECH, speech
    if speech_ok:
        return VocalMode.SPEECH, speech
    if singing_ok:
        return VocalMode.SINGING, singing
    return VocalMode.SPEECH, FALLBACK_CONFIDENCE


class VocalModeClassifier:
    def __init__(self, params: TuningParameters = TuningParameters(), extractor: Optional[FeatureExtractor] = None):
        self.params = params
        self.extractor = extractor or FeatureExtractor()

    def classify(self, audio: AudioBuffer) -> VocalAnalysis:
        if len(audio) == 0:
            logger.warning("No audio data; vocal mode is unknown")
            return VocalAnalysis.unknown()
        try:
            features = self.extractor.extract(audio, self.params)
        except Exception:
            logger.exception("Feature extraction failed; vocal mode is unknown")
            return VocalAnalysis.unknown()

        mode, confidence = classify_features(features, self.params)
        logger.debug(
            "Vocal mode %s (%.3f): stability=%.3f contour=%.3f mfcc=%.3f voiced=%.3f",
            mode.value, confidence,
            features.pitch_stability, features.pitch_contour, features.mfcc_spread, features.voiced_ratio,
        )
        return VocalAnalysis(mode, confidence, features)
