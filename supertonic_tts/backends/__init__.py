"""Backend registry."""

from supertonic_tts.backends.base import ModelBackend, ModelRole
from supertonic_tts.backends.mock import MockBackend
from supertonic_tts.backends.onnx import OnnxBackend

BACKENDS: dict[str, type[ModelBackend]] = {
    "onnx": OnnxBackend,
    "mock": MockBackend,
}

__all__ = [
    "ModelBackend",
    "ModelRole",
    "MockBackend",
    "OnnxBackend",
    "BACKENDS",
]
