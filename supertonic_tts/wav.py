"""16-bit PCM mono WAV serialization."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Union

import numpy as np
import soundfile as sf

_PCM_SCALE = 32767
_SUBTYPE_BITS = {"PCM_U8": 8, "PCM_16": 16, "PCM_24": 24, "PCM_32": 32, "FLOAT": 32, "DOUBLE": 64}


@dataclass(frozen=True)
class WavHeader:
    sample_rate: int
    num_channels: int
    bits_per_sample: int
    num_samples: int

    @property
    def block_align(self) -> int:
        return self.num_channels * self.bits_per_sample // 8

    @property
    def byte_rate(self) -> int:
        return self.sample_rate * self.block_align

    @property
    def data_size(self) -> int:
        return self.num_samples * self.block_align

    @property
    def duration(self) -> float:
        return self.num_samples / self.sample_rate


def quantize(samples: Sequence[float]) -> np.ndarray:
    """Clamp to [-1, 1], scale by 32767 and floor to int16.

    Flooring (rather than rounding) keeps output bit-identical with the
    reference encoder. NaN encodes as silence.
    """
    audio = np.nan_to_num(np.asarray(samples, dtype=np.float64).reshape(-1), nan=0.0)
    return np.floor(np.clip(audio, -1.0, 1.0) * _PCM_SCALE).astype("<i2")


def encode_wav(samples: Sequence[float], sample_rate: int) -> bytes:
    """Serialize float samples to a mono 16-bit PCM WAV buffer (44-byte header)."""
    buf = io.BytesIO()
    # int16 input is written as-is, so the floor quantization survives
    sf.write(buf, quantize(samples), int(sample_rate), format="WAV", subtype="PCM_16")
    return buf.getvalue()


def read_wav_header(buf: bytes) -> WavHeader:
    """Read the format fields of a WAV buffer written by :func:`encode_wav`."""
    try:
        info = sf.info(io.BytesIO(buf))
    except sf.LibsndfileError as e:
        raise ValueError(f"Not a readable RIFF/WAVE buffer: {e}") from e
    if info.format != "WAV":
        raise ValueError(f"Not a RIFF/WAVE buffer (format {info.format})")
    if info.subtype not in _SUBTYPE_BITS:
        raise ValueError(f"Unsupported WAV subtype {info.subtype}")
    return WavHeader(
        sample_rate=info.samplerate,
        num_channels=info.channels,
        bits_per_sample=_SUBTYPE_BITS[info.subtype],
        num_samples=info.frames,
    )


def write_wav(path: Union[str, Path], samples: Sequence[float], sample_rate: int) -> Path:
    """Quantize ``samples`` and write them to ``path``; returns the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    sf.write(str(path), quantize(samples), int(sample_rate), format="WAV", subtype="PCM_16")
    return path
