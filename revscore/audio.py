from __future__ import annotations

import logging
from dataclasses import dataclass

import librosa
import numpy as np

from .errors import AudioFormatError

logger = logging.getLogger(__name__)

WAV_HEADER_BYTES = 44
DEFAULT_SAMPLE_RATE = 44100
PCM16_SCALE = 32767.0


@dataclass(frozen=True)
class AudioBuffer:
    """Mono 16-bit PCM samples plus their sample rate. Never mutated by the engine."""
    samples: np.ndarray
    sample_rate: int = DEFAULT_SAMPLE_RATE

    def __post_init__(self) -> None:
        samples = np.asarray(self.samples)
        if samples.ndim != 1:
            raise AudioFormatError(f"expected mono samples, got shape {samples.shape}")
        if self.sample_rate <= 0:
            raise AudioFormatError(f"sample_rate must be positive, got {self.sample_rate}")
        samples = samples.astype(np.int16, copy=True)
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_s(self) -> float:
        return len(self) / float(self.sample_rate)

    def as_float(self) -> np.ndarray:
        # float64 copy in [-1, 1]
        return self.samples.astype(np.float64) / PCM16_SCALE

    @classmethod
    def empty(cls, sample_rate: int = DEFAULT_SAMPLE_RATE) -> "AudioBuffer":
        return cls(np.zeros(0, dtype=np.int16), sample_rate)

    @classmethod
    def from_pcm16_bytes(cls, raw: bytes, sample_rate: int = DEFAULT_SAMPLE_RATE) -> "AudioBuffer":
        usable = len(raw) - (len(raw) % 2)  # a trailing odd byte is dropped
        samples = np.frombuffer(raw[:usable], dtype="<i2")
        return cls(samples, sample_rate)

    @classmethod
    def from_wav_bytes(cls, raw: bytes) -> "AudioBuffer":
        """
        Strip the canonical 44-byte header and decode the PCM payload.
        The sample rate is read from header bytes 24..28 (little endian).
        """
        if len(raw) < WAV_HEADER_BYTES:
            logger.warning("WAV payload shorter than header (%d bytes); treating as empty", len(raw))
            return cls.empty()
        sample_rate = int.from_bytes(raw[24:28], "little")
        if sample_rate <= 0:
            logger.warning("WAV header has no sample rate; assuming %d Hz", DEFAULT_SAMPLE_RATE)
            sample_rate = DEFAULT_SAMPLE_RATE
        return cls.from_pcm16_bytes(raw[WAV_HEADER_BYTES:], sample_rate)

    @classmethod
    def from_float(cls, y: np.ndarray, sample_rate: int) -> "AudioBuffer":
        y = np.clip(np.asarray(y, dtype=np.float64), -1.0, 1.0)
        return cls(np.round(y * PCM16_SCALE).astype(np.int16), sample_rate)


def load_audio_mono(path: str, target_sr: int = DEFAULT_SAMPLE_RATE) -> AudioBuffer:
    # librosa loads float32 in [-1, 1] and resamples for us
    try:
        y, sr = librosa.load(path, sr=target_sr, mono=True)
    except Exception as e:
        raise AudioFormatError(f"could not decode {path}: {e}") from e
    logger.debug("Loaded %s: %d samples at %d Hz", path, len(y), sr)
    return AudioBuffer.from_float(y, int(sr))
