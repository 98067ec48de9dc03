"""Mock backend for testing — shape-correct deterministic outputs, no model files."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

import numpy as np

from supertonic_tts.backends.base import ModelBackend, ModelRole
from supertonic_tts.config import ModelConfig


class MockBackend(ModelBackend):
    """Stands in for any of the four models.

    - duration_predictor: ``seconds_per_token`` x valid token count, or the next
      values of ``durations`` when given (one per batch item, consumed in order).
    - text_encoder: the text mask repeated over ``text_dim`` channels.
    - vector_estimator: halves the masked latent.
    - vocoder: a 220 Hz sine, ``chunk_size`` samples per latent frame.

    Every input dict is recorded in ``calls``.
    """

    backend_type = "mock"
    requires_model_file = False

    def __init__(
        self,
        role: Union[ModelRole, str],
        config: ModelConfig,
        seconds_per_token: float = 0.05,
        durations: Optional[Iterable[float]] = None,
        text_dim: int = 8,
    ) -> None:
        super().__init__(role)
        self.config = config
        self.seconds_per_token = seconds_per_token
        self._durations = iter(durations) if durations is not None else None
        self.text_dim = text_dim
        self.calls: List[Dict[str, np.ndarray]] = []

    @classmethod
    def load(
        cls,
        role: Union[ModelRole, str],
        source: Optional[Union[str, Path, bytes]],
        *,
        config: ModelConfig,
        providers: Optional[Sequence[str]] = None,
    ) -> "MockBackend":
        return cls(role, config)

    def run(self, inputs: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        self.calls.append(dict(inputs))
        if self.role is ModelRole.DURATION_PREDICTOR:
            return {"duration": self._duration(inputs["text_mask"])}
        if self.role is ModelRole.TEXT_ENCODER:
            mask = np.asarray(inputs["text_mask"], dtype=np.float32)
            return {"text_emb": np.repeat(mask, self.text_dim, axis=1)}
        if self.role is ModelRole.VECTOR_ESTIMATOR:
            latent = np.asarray(inputs["noisy_latent"], dtype=np.float32)
            mask = np.asarray(inputs["latent_mask"], dtype=np.float32)
            return {"denoised_latent": latent * mask * 0.5}
        latent = np.asarray(inputs["latent"], dtype=np.float32)
        n = latent.shape[2] * self.config.chunk_size
        t = np.arange(n, dtype=np.float32) / self.config.sample_rate
        wav = 0.5 * np.sin(2 * np.pi * 220.0 * t)
        return {"wav_tts": np.tile(wav, (latent.shape[0], 1)).astype(np.float32)}

    def _duration(self, text_mask: np.ndarray) -> np.ndarray:
        lengths = np.asarray(text_mask).sum(axis=(1, 2))
        if self._durations is None:
            return (lengths * self.seconds_per_token).astype(np.float32)
        return np.array([next(self._durations) for _ in lengths], dtype=np.float32)
