"""Exception types raised by the synthesis engine."""

from __future__ import annotations

from typing import Optional


class SupertonicError(Exception):
    """Base class for every error raised by supertonic_tts."""


class InvalidLanguage(SupertonicError, ValueError):
    """Language tag outside the supported set."""

    def __init__(self, language: str, supported: list[str]):
        self.language = language
        self.supported = list(supported)
        super().__init__(
            f"Unsupported language '{language}'. Supported: {', '.join(self.supported)}"
        )


class UnsupportedStyleShape(SupertonicError, ValueError):
    """Style tensors whose batch dimension is not 1 were passed to single-speaker synthesis."""


class AssetLoadError(SupertonicError, OSError):
    """A config, indexer, voice style or model file could not be fetched or parsed."""


class AssetNotFound(AssetLoadError, FileNotFoundError):
    """The asset source has no file at the requested path."""


class VoiceNotFound(AssetNotFound):
    """Requested voice style does not exist."""


class BackendInvocationError(SupertonicError, RuntimeError):
    """An inference backend failed to run a model."""


class SynthesisFailure(BackendInvocationError):
    """A pipeline stage failed; ``stage`` names the stage that was being entered."""

    def __init__(self, stage: str, message: str, chunk_index: Optional[int] = None):
        self.stage = stage
        self.detail = message
        self.chunk_index = chunk_index
        where = f" (chunk {chunk_index})" if chunk_index is not None else ""
        super().__init__(f"{stage} failed{where}: {message}")
