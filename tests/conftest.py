"""
Shared pytest fixtures for supertonic_tts tests.

No real model weights are needed: a tiny acoustic config, an identity
code-point indexer, synthetic voice styles and the mock backends stand in.
"""

import json
from pathlib import Path

import numpy as np
import pytest

from supertonic_tts.assets import AssetLoader
from supertonic_tts.backends import MockBackend, ModelRole
from supertonic_tts.config import AssetsConfig, ModelConfig
from supertonic_tts.pipeline import TextToSpeech
from supertonic_tts.tokenizer import UnicodeProcessor
from supertonic_tts.voices import Style

SAMPLE_RATE = 16000

# chunk_size = 128 samples per latent frame, 8 latent channels
MODEL_CONFIG = ModelConfig(
    sample_rate=SAMPLE_RATE,
    base_chunk_size=64,
    chunk_compress_factor=2,
    latent_dim=4,
)

TTS_JSON = {
    "ae": {"sample_rate": SAMPLE_RATE, "base_chunk_size": 64},
    "ttl": {"chunk_compress_factor": 2, "latent_dim": 4},
}

# Identity table over Latin-1: ord(c) -> ord(c); anything above 0xFF is unknown
INDEXER = list(range(256))


def style_dict(batch: int = 1, fill: float = 0.1) -> dict:
    """Voice style JSON payload with the nested data/dims layout."""
    return {
        "style_ttl": {
            "data": np.full((batch, 4, 8), fill).tolist(),
            "dims": [batch, 4, 8],
        },
        "style_dp": {
            "data": np.full((batch, 2, 8), fill).tolist(),
            "dims": [batch, 2, 8],
        },
    }


def make_style(batch: int = 1) -> Style:
    return Style.from_dict(style_dict(batch))


def make_backends(durations=None, seconds_per_token: float = 0.05) -> dict:
    """One MockBackend per model role; ``durations`` scripts the duration predictor."""
    return {
        ModelRole.DURATION_PREDICTOR: MockBackend(
            ModelRole.DURATION_PREDICTOR,
            MODEL_CONFIG,
            seconds_per_token=seconds_per_token,
            durations=durations,
        ),
        ModelRole.TEXT_ENCODER: MockBackend(ModelRole.TEXT_ENCODER, MODEL_CONFIG),
        ModelRole.VECTOR_ESTIMATOR: MockBackend(ModelRole.VECTOR_ESTIMATOR, MODEL_CONFIG),
        ModelRole.VOCODER: MockBackend(ModelRole.VOCODER, MODEL_CONFIG),
    }


# ---------------------------------------------------------------------------
# Asset directory
# ---------------------------------------------------------------------------


def write_assets(root: Path, voices=("M1", "F1")) -> Path:
    """Lay out a local asset directory (config, indexer, voice styles)."""
    (root / "onnx").mkdir(parents=True, exist_ok=True)
    (root / "voice_styles").mkdir(parents=True, exist_ok=True)
    (root / "onnx" / "tts.json").write_text(json.dumps(TTS_JSON))
    (root / "onnx" / "unicode_indexer.json").write_text(json.dumps(INDEXER))
    for i, voice in enumerate(voices):
        payload = style_dict(fill=0.1 * (i + 1))
        (root / "voice_styles" / f"{voice}.json").write_text(json.dumps(payload))
    return root


@pytest.fixture
def assets_dir(tmp_path):
    return write_assets(tmp_path / "assets")


@pytest.fixture
def assets_config(assets_dir):
    return AssetsConfig(assets=str(assets_dir))


@pytest.fixture
def processor():
    return UnicodeProcessor(INDEXER)


@pytest.fixture
def style():
    return make_style()


@pytest.fixture
def tts(assets_dir, assets_config):
    """Engine on mock backends with voices M1/F1 available; no voice loaded."""
    return TextToSpeech(
        MODEL_CONFIG,
        UnicodeProcessor(INDEXER),
        make_backends(),
        loader=AssetLoader(assets_dir),
        assets=assets_config,
        seed=0,
    )
