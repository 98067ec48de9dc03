"""Initial noisy latent for the denoising loop."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np

from .tokenizer import length_to_mask

# Lower bound on the first uniform draw; keeps log(u1) finite.
_U1_FLOOR = 1e-4


def latent_lengths(
    durations: Sequence[float],
    sample_rate: int,
    chunk_size: int,
) -> Tuple[np.ndarray, int]:
    """Per-item latent frame counts and the batch maximum.

    ``wav_len = floor(duration * sample_rate)`` and
    ``latent_len = ceil(wav_len / chunk_size)``.
    """
    durations = np.asarray(durations, dtype=np.float64).reshape(-1)
    wav_lengths = np.floor(durations * sample_rate).astype(np.int64)
    wav_len_max = int(np.floor(durations.max() * sample_rate))
    lengths = (wav_lengths + chunk_size - 1) // chunk_size
    return lengths, (wav_len_max + chunk_size - 1) // chunk_size


def box_muller(shape: Tuple[int, ...], rng: np.random.Generator) -> np.ndarray:
    """Standard normal samples from two independent uniform draws per entry."""
    u1 = np.maximum(_U1_FLOOR, rng.random(shape))
    u2 = rng.random(shape)
    return np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)


def sample_noisy_latent(
    durations: Sequence[float],
    sample_rate: int,
    base_chunk_size: int,
    chunk_compress_factor: int,
    latent_dim: int,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Draw Gaussian noise sized from predicted durations and mask the padding.

    Returns:
        xt: float32 ``(batch, latent_dim * chunk_compress_factor, latent_len)``
            with every entry past an item's own latent length set to 0.
        latent_mask: float32 ``(batch, 1, latent_len)``.
    """
    if rng is None:
        rng = np.random.default_rng()
    chunk_size = base_chunk_size * chunk_compress_factor
    lengths, latent_len = latent_lengths(durations, sample_rate, chunk_size)
    channels = latent_dim * chunk_compress_factor

    xt = box_muller((len(lengths), channels, latent_len), rng)
    latent_mask = length_to_mask(lengths, latent_len)
    xt = xt * latent_mask
    return xt.astype(np.float32), latent_mask
