from __future__ import annotations


class RevscoreError(Exception):
    """Base class for engine errors."""


class AudioFormatError(RevscoreError):
    """Raised when raw bytes cannot be decoded as 16-bit mono PCM."""


class ScoringError(RevscoreError):
    """Raised by the strict scoring path. The public path collapses it to a zero score."""


class TuningError(RevscoreError):
    """Corpus loading or preprocessing failed during a tuning run."""


class TuningCancelledError(TuningError):
    pass
