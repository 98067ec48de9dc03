"""Supertonic TTS -- on-device text-to-speech inference with ONNX Runtime."""

from .pipeline import TextToSpeech, Stage
from .config import AssetsConfig, ModelConfig
from .voices import Style, VOICES, list_voices, resolve_voice
from .normalizer import Normalizer, NormalizerConfig, normalize, AVAILABLE_LANGS
from .segmenter import Segmenter, SegmenterConfig, chunk_text
from .synthesize_long import synthesize_long, LongSynthesisConfig
from .wav import encode_wav, read_wav_header, write_wav
from .errors import (
    SupertonicError,
    InvalidLanguage,
    UnsupportedStyleShape,
    AssetLoadError,
    VoiceNotFound,
    BackendInvocationError,
    SynthesisFailure,
)

__all__ = [
    "TextToSpeech",
    "Stage",
    "AssetsConfig",
    "ModelConfig",
    "Style",
    "VOICES",
    "list_voices",
    "resolve_voice",
    "Normalizer",
    "NormalizerConfig",
    "normalize",
    "AVAILABLE_LANGS",
    "Segmenter",
    "SegmenterConfig",
    "chunk_text",
    "synthesize_long",
    "LongSynthesisConfig",
    "encode_wav",
    "read_wav_header",
    "write_wav",
    "SupertonicError",
    "InvalidLanguage",
    "UnsupportedStyleShape",
    "AssetLoadError",
    "VoiceNotFound",
    "BackendInvocationError",
    "SynthesisFailure",
]
__version__ = "0.1.0"
