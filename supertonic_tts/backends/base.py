"""Abstract base class for model backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional, Sequence, Tuple, Union
from pathlib import Path

import numpy as np

from supertonic_tts.errors import BackendInvocationError

if TYPE_CHECKING:
    from supertonic_tts.config import ModelConfig


class ModelRole(str, Enum):
    """The four models of the synthesis pipeline."""

    DURATION_PREDICTOR = "duration_predictor"
    TEXT_ENCODER = "text_encoder"
    VECTOR_ESTIMATOR = "vector_estimator"
    VOCODER = "vocoder"

    @property
    def inputs(self) -> Tuple[str, ...]:
        return _ROLE_INPUTS[self]

    @property
    def output(self) -> str:
        return _ROLE_OUTPUTS[self]

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


_ROLE_INPUTS: Dict[ModelRole, Tuple[str, ...]] = {
    ModelRole.DURATION_PREDICTOR: ("text_ids", "style_dp", "text_mask"),
    ModelRole.TEXT_ENCODER: ("text_ids", "style_ttl", "text_mask"),
    ModelRole.VECTOR_ESTIMATOR: (
        "noisy_latent",
        "text_emb",
        "style_ttl",
        "latent_mask",
        "text_mask",
        "current_step",
        "total_step",
    ),
    ModelRole.VOCODER: ("latent",),
}

_ROLE_OUTPUTS: Dict[ModelRole, str] = {
    ModelRole.DURATION_PREDICTOR: "duration",
    ModelRole.TEXT_ENCODER: "text_emb",
    ModelRole.VECTOR_ESTIMATOR: "denoised_latent",
    ModelRole.VOCODER: "wav_tts",
}


class ModelBackend(ABC):
    """Runs one model: named tensor inputs in, named tensor outputs out.

    Each pipeline stage holds one backend. Calling the backend checks that
    every input the role needs is present, runs :meth:`run` and returns the
    role's output tensor. Any failure surfaces as BackendInvocationError.
    """

    backend_type: str = ""
    # False for backends that fabricate outputs and never read a model file
    requires_model_file: bool = True

    def __init__(self, role: Union[ModelRole, str]) -> None:
        self.role = ModelRole(role)

    @classmethod
    @abstractmethod
    def load(
        cls,
        role: Union[ModelRole, str],
        source: Optional[Union[str, Path, bytes]],
        *,
        config: "ModelConfig",
        providers: Optional[Sequence[str]] = None,
    ) -> "ModelBackend":
        """Build a backend for ``role`` from a model path or serialized bytes."""
        ...

    @abstractmethod
    def run(self, inputs: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        """Run inference. Returns output tensors keyed by name."""
        ...

    def __call__(self, **inputs: np.ndarray) -> np.ndarray:
        missing = [name for name in self.role.inputs if name not in inputs]
        if missing:
            raise BackendInvocationError(f"{self.role.value}: missing inputs {missing}")
        try:
            outputs = self.run(inputs)
        except BackendInvocationError:
            raise
        except Exception as e:
            raise BackendInvocationError(f"{self.role.value} backend failed: {e}") from e
        if self.role.output not in outputs:
            raise BackendInvocationError(
                f"{self.role.value}: backend returned {sorted(outputs)}, "
                f"expected '{self.role.output}'"
            )
        return np.asarray(outputs[self.role.output])

    def close(self) -> None:
        """Release backend resources."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(role='{self.role.value}')"
