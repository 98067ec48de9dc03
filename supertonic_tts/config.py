"""Configuration and asset location management."""

from __future__ import annotations

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, List, Mapping

from .errors import AssetLoadError

_DEFAULT_ASSETS = "hf://Supertone/supertonic-2"
_DEFAULT_PROVIDERS = "CPUExecutionProvider"


def _default_assets() -> str:
    return os.environ.get("SUPERTONIC_ASSETS", _DEFAULT_ASSETS)


def _default_providers() -> List[str]:
    raw = os.environ.get("SUPERTONIC_PROVIDERS", _DEFAULT_PROVIDERS)
    return [p.strip() for p in raw.split(",") if p.strip()]


@dataclass
class AssetsConfig:
    """Where the model files, config and voice styles live.

    ``assets`` may be a local directory, an ``http(s)://`` base URL or a
    Hugging Face repo written as ``hf://<repo_id>``. Within it, models and
    ``tts.json``/``unicode_indexer.json`` sit under ``onnx_subdir`` and voice
    style JSON files under ``voices_subdir``.

    Can be configured via:
    - Constructor arguments
    - Environment variables: SUPERTONIC_ASSETS, SUPERTONIC_PROVIDERS
    """
    assets: str = field(default_factory=_default_assets)
    onnx_subdir: str = "onnx"
    voices_subdir: str = "voice_styles"
    revision: str | None = None
    providers: List[str] = field(default_factory=_default_providers)

    def __post_init__(self):
        self.assets = str(self.assets)
        if not self.providers:
            raise ValueError("providers must name at least one ONNX Runtime execution provider")

    @property
    def is_local(self) -> bool:
        return "://" not in self.assets

    @property
    def tts_json(self) -> str:
        return f"{self.onnx_subdir}/tts.json"

    @property
    def unicode_indexer(self) -> str:
        return f"{self.onnx_subdir}/unicode_indexer.json"

    @property
    def duration_predictor(self) -> str:
        return f"{self.onnx_subdir}/duration_predictor.onnx"

    @property
    def text_encoder(self) -> str:
        return f"{self.onnx_subdir}/text_encoder.onnx"

    @property
    def vector_estimator(self) -> str:
        return f"{self.onnx_subdir}/vector_estimator.onnx"

    @property
    def vocoder(self) -> str:
        return f"{self.onnx_subdir}/vocoder.onnx"

    def voice_style(self, voice: str) -> str:
        return f"{self.voices_subdir}/{voice}.json"

    @property
    def voices_dir(self) -> Path:
        if not self.is_local:
            raise ValueError(f"voices_dir is only defined for local assets, got {self.assets}")
        return Path(self.assets).expanduser() / self.voices_subdir

    def validate(self):
        """Raise FileNotFoundError if any required local asset is missing."""
        if not self.is_local:
            return
        root = Path(self.assets).expanduser()
        required = [self.tts_json, self.unicode_indexer, self.duration_predictor,
                    self.text_encoder, self.vector_estimator, self.vocoder]
        for rel in required:
            path = root / rel
            if not path.exists():
                raise FileNotFoundError(f"Required file not found: {path}")


@dataclass(frozen=True)
class ModelConfig:
    """Acoustic settings read from ``tts.json``."""
    sample_rate: int
    base_chunk_size: int
    chunk_compress_factor: int
    latent_dim: int

    @property
    def chunk_size(self) -> int:
        """Waveform samples covered by one latent frame."""
        return self.base_chunk_size * self.chunk_compress_factor

    @property
    def latent_channels(self) -> int:
        return self.latent_dim * self.chunk_compress_factor

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ModelConfig":
        try:
            cfg = cls(
                sample_rate=int(data["ae"]["sample_rate"]),
                base_chunk_size=int(data["ae"]["base_chunk_size"]),
                chunk_compress_factor=int(data["ttl"]["chunk_compress_factor"]),
                latent_dim=int(data["ttl"]["latent_dim"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise AssetLoadError(f"Invalid tts.json: missing or malformed key {e}") from e
        for name in ("sample_rate", "base_chunk_size", "chunk_compress_factor", "latent_dim"):
            if getattr(cfg, name) <= 0:
                raise AssetLoadError(f"Invalid tts.json: {name} must be positive")
        return cfg
