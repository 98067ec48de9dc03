"""ONNX Runtime backend — runs the exported Supertonic models."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import onnxruntime as ort

from supertonic_tts.backends.base import ModelBackend, ModelRole
from supertonic_tts.config import ModelConfig
from supertonic_tts.errors import AssetLoadError


class OnnxBackend(ModelBackend):
    backend_type = "onnx"

    def __init__(self, role: Union[ModelRole, str], session: ort.InferenceSession) -> None:
        super().__init__(role)
        self._session = session
        self._input_names: List[str] = [i.name for i in session.get_inputs()]
        self._output_names: List[str] = [o.name for o in session.get_outputs()]

    @classmethod
    def load(
        cls,
        role: Union[ModelRole, str],
        source: Optional[Union[str, Path, bytes]],
        *,
        config: Optional[ModelConfig] = None,
        providers: Optional[Sequence[str]] = None,
    ) -> "OnnxBackend":
        if source is None:
            raise AssetLoadError(f"No model source given for {ModelRole(role).value}")
        model = source if isinstance(source, bytes) else str(source)
        try:
            session = ort.InferenceSession(
                model, providers=list(providers or ["CPUExecutionProvider"])
            )
        except Exception as e:
            where = "<bytes>" if isinstance(source, bytes) else str(source)
            raise AssetLoadError(
                f"Failed to load {ModelRole(role).value} model from {where}: {e}"
            ) from e
        return cls(role, session)

    def run(self, inputs: Dict[str, np.ndarray]) -> Dict[str, np.ndarray]:
        if self._session is None:
            raise RuntimeError("OnnxBackend closed")
        feed = {name: inputs[name] for name in self._input_names}
        values = self._session.run(self._output_names, feed)
        return dict(zip(self._output_names, values))

    def close(self) -> None:
        self._session = None
