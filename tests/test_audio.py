"""
Tests for revscore/audio.py: the PCM input boundary.
"""

import struct

import numpy as np
import pytest

from revscore.audio import AudioBuffer, load_audio_mono
from revscore.errors import AudioFormatError

from conftest import harmonic_tone


def _wav_header(sample_rate: int, n_bytes: int) -> bytes:
    return (
        b"RIFF" + struct.pack("<I", 36 + n_bytes) + b"WAVE"
        + b"fmt " + struct.pack("<IHHIIHH", 16, 1, 1, sample_rate, sample_rate * 2, 2, 16)
        + b"data" + struct.pack("<I", n_bytes)
    )


class TestAudioBuffer:
    def test_from_wav_bytes_strips_header(self):
        pcm = np.array([0, 1000, -1000, 32767], dtype="<i2").tobytes()
        buf = AudioBuffer.from_wav_bytes(_wav_header(16000, len(pcm)) + pcm)
        assert buf.sample_rate == 16000
        assert buf.samples.tolist() == [0, 1000, -1000, 32767]

    def test_from_wav_bytes_too_short_is_empty(self):
        buf = AudioBuffer.from_wav_bytes(b"RIFF")
        assert len(buf) == 0
        assert buf.sample_rate == 44100

    def test_from_pcm16_drops_trailing_odd_byte(self):
        buf = AudioBuffer.from_pcm16_bytes(b"\x01\x00\x02", 8000)
        assert buf.samples.tolist() == [1]

    def test_as_float_scale(self):
        buf = AudioBuffer(np.array([32767, -32767, 0], dtype=np.int16), 8000)
        assert buf.as_float().tolist() == pytest.approx([1.0, -1.0, 0.0])

    def test_from_float_clips(self):
        buf = AudioBuffer.from_float(np.array([2.0, -2.0, 0.5]), 8000)
        assert buf.samples.tolist() == [32767, -32767, 16384]

    def test_samples_are_read_only(self):
        buf = AudioBuffer(np.zeros(4, dtype=np.int16), 8000)
        with pytest.raises(ValueError):
            buf.samples[0] = 1

    def test_caller_array_is_not_shared(self):
        raw = np.zeros(4, dtype=np.int16)
        buf = AudioBuffer(raw, 8000)
        raw[0] = 5
        assert buf.samples[0] == 0

    def test_rejects_stereo(self):
        with pytest.raises(AudioFormatError):
            AudioBuffer(np.zeros((2, 4), dtype=np.int16), 8000)

    def test_rejects_bad_sample_rate(self):
        with pytest.raises(AudioFormatError):
            AudioBuffer(np.zeros(4, dtype=np.int16), 0)

    def test_duration(self):
        assert AudioBuffer(np.zeros(8000, dtype=np.int16), 16000).duration_s == pytest.approx(0.5)


class TestLoadAudioMono:
    def test_loads_and_resamples(self, make_wav):
        path = make_wav("tone.wav", harmonic_tone(220.0, duration=1.0))
        buf = load_audio_mono(path, target_sr=11025)
        assert buf.sample_rate == 11025
        assert abs(len(buf) - 11025) <= 1

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(AudioFormatError):
            load_audio_mono(str(tmp_path / "nope.wav"))
