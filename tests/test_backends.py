"""Unit tests for model backends — mock-based, always run (no real models needed)."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from supertonic_tts.backends import BACKENDS, MockBackend, ModelBackend, ModelRole, OnnxBackend
from supertonic_tts.errors import AssetLoadError, BackendInvocationError

from conftest import MODEL_CONFIG


def _duration_inputs(lengths=(3, 5)):
    max_len = max(lengths)
    mask = (np.arange(max_len)[None, :] < np.array(lengths)[:, None]).astype(np.float32)
    return {
        "text_ids": np.zeros((len(lengths), max_len), dtype=np.int64),
        "style_dp": np.zeros((len(lengths), 2, 8), dtype=np.float32),
        "text_mask": mask[:, None, :],
    }


# ---------------------------------------------------------------------------
# ModelRole / registry
# ---------------------------------------------------------------------------


class TestModelRole:
    def test_tensor_names(self):
        assert ModelRole.DURATION_PREDICTOR.inputs == ("text_ids", "style_dp", "text_mask")
        assert ModelRole.TEXT_ENCODER.inputs == ("text_ids", "style_ttl", "text_mask")
        assert ModelRole.VECTOR_ESTIMATOR.inputs == (
            "noisy_latent",
            "text_emb",
            "style_ttl",
            "latent_mask",
            "text_mask",
            "current_step",
            "total_step",
        )
        assert ModelRole.VOCODER.inputs == ("latent",)
        assert ModelRole.DURATION_PREDICTOR.output == "duration"
        assert ModelRole.TEXT_ENCODER.output == "text_emb"
        assert ModelRole.VECTOR_ESTIMATOR.output == "denoised_latent"
        assert ModelRole.VOCODER.output == "wav_tts"

    def test_display_name(self):
        assert ModelRole.VECTOR_ESTIMATOR.display_name == "Vector Estimator"

    def test_registry(self):
        assert BACKENDS == {"onnx": OnnxBackend, "mock": MockBackend}
        assert OnnxBackend.requires_model_file is True
        assert MockBackend.requires_model_file is False


# ---------------------------------------------------------------------------
# ModelBackend.__call__
# ---------------------------------------------------------------------------


class _Scripted(ModelBackend):
    backend_type = "scripted"

    def __init__(self, role, outputs=None, error=None):
        super().__init__(role)
        self.outputs = outputs or {}
        self.error = error

    @classmethod
    def load(cls, role, source, *, config, providers=None):
        return cls(role)

    def run(self, inputs):
        if self.error is not None:
            raise self.error
        return self.outputs


class TestModelBackendCall:
    def test_returns_role_output(self):
        b = _Scripted(ModelRole.VOCODER, outputs={"wav_tts": [[0.1, 0.2]]})
        out = b(latent=np.zeros((1, 8, 1)))
        assert isinstance(out, np.ndarray)
        np.testing.assert_allclose(out, [[0.1, 0.2]])

    def test_missing_input(self):
        b = _Scripted(ModelRole.DURATION_PREDICTOR, outputs={"duration": [1.0]})
        with pytest.raises(BackendInvocationError, match="missing inputs.*style_dp"):
            b(text_ids=np.zeros((1, 1)), text_mask=np.ones((1, 1, 1)))

    def test_run_error_wrapped(self):
        b = _Scripted(ModelRole.VOCODER, error=RuntimeError("boom"))
        with pytest.raises(BackendInvocationError, match="vocoder backend failed: boom") as exc:
            b(latent=np.zeros((1, 8, 1)))
        assert isinstance(exc.value.__cause__, RuntimeError)

    def test_missing_output(self):
        b = _Scripted(ModelRole.TEXT_ENCODER, outputs={"other": [0]})
        with pytest.raises(BackendInvocationError, match="expected 'text_emb'"):
            b(text_ids=np.zeros((1, 1)), style_ttl=np.zeros((1, 4, 8)), text_mask=np.ones((1, 1, 1)))

    def test_repr(self):
        assert repr(_Scripted("vocoder")) == "_Scripted(role='vocoder')"


# ---------------------------------------------------------------------------
# MockBackend
# ---------------------------------------------------------------------------


class TestMockBackend:
    def test_duration_from_token_count(self):
        b = MockBackend(ModelRole.DURATION_PREDICTOR, MODEL_CONFIG, seconds_per_token=0.1)
        out = b(**_duration_inputs((3, 5)))
        np.testing.assert_allclose(out, [0.3, 0.5], rtol=1e-6)
        assert len(b.calls) == 1

    def test_scripted_durations(self):
        b = MockBackend(ModelRole.DURATION_PREDICTOR, MODEL_CONFIG, durations=[1.0, 1.5, 2.0])
        np.testing.assert_allclose(b(**_duration_inputs((3, 5))), [1.0, 1.5])
        np.testing.assert_allclose(b(**_duration_inputs((4,))), [2.0])

    def test_text_encoder_shape(self):
        b = MockBackend(ModelRole.TEXT_ENCODER, MODEL_CONFIG, text_dim=6)
        inputs = _duration_inputs((3, 5))
        out = b(text_ids=inputs["text_ids"], style_ttl=np.zeros((2, 4, 8)), text_mask=inputs["text_mask"])
        assert out.shape == (2, 6, 5)

    def test_vector_estimator_respects_mask(self):
        b = MockBackend(ModelRole.VECTOR_ESTIMATOR, MODEL_CONFIG)
        latent = np.ones((1, 8, 4), dtype=np.float32)
        mask = np.array([[[1, 1, 0, 0]]], dtype=np.float32)
        out = b(
            noisy_latent=latent,
            text_emb=np.zeros((1, 8, 3)),
            style_ttl=np.zeros((1, 4, 8)),
            latent_mask=mask,
            text_mask=np.ones((1, 1, 3)),
            current_step=np.zeros(1, dtype=np.float32),
            total_step=np.ones(1, dtype=np.float32),
        )
        assert (out[..., :2] == 0.5).all()
        assert (out[..., 2:] == 0.0).all()

    def test_vocoder_length(self):
        b = MockBackend(ModelRole.VOCODER, MODEL_CONFIG)
        out = b(latent=np.zeros((2, 8, 10), dtype=np.float32))
        assert out.shape == (2, 10 * MODEL_CONFIG.chunk_size)
        assert np.abs(out).max() <= 0.5 + 1e-6

    def test_load_ignores_source(self):
        b = MockBackend.load("vocoder", None, config=MODEL_CONFIG)
        assert b.role is ModelRole.VOCODER


# ---------------------------------------------------------------------------
# OnnxBackend
# ---------------------------------------------------------------------------


def _node(name):
    node = MagicMock()
    node.name = name
    return node


def _fake_session(input_names, output_names, result):
    session = MagicMock()
    session.get_inputs.return_value = [_node(n) for n in input_names]
    session.get_outputs.return_value = [_node(n) for n in output_names]
    session.run.return_value = result
    return session


class TestOnnxBackend:
    def test_run_feeds_declared_inputs(self):
        session = _fake_session(["latent"], ["wav_tts"], [np.zeros((1, 256))])
        b = OnnxBackend(ModelRole.VOCODER, session)
        out = b(latent=np.zeros((1, 8, 2)), extra=np.zeros(1))
        assert out.shape == (1, 256)
        args, _ = session.run.call_args
        assert args[0] == ["wav_tts"]
        assert list(args[1]) == ["latent"]

    def test_load_builds_session(self, tmp_path):
        model = tmp_path / "vocoder.onnx"
        model.write_bytes(b"onnx")
        session = _fake_session(["latent"], ["wav_tts"], [])
        with patch("supertonic_tts.backends.onnx.ort.InferenceSession", return_value=session) as ctor:
            b = OnnxBackend.load("vocoder", model, config=MODEL_CONFIG, providers=["CPUExecutionProvider"])
        ctor.assert_called_once_with(str(model), providers=["CPUExecutionProvider"])
        assert b.role is ModelRole.VOCODER

    def test_load_from_bytes(self):
        session = _fake_session(["latent"], ["wav_tts"], [])
        with patch("supertonic_tts.backends.onnx.ort.InferenceSession", return_value=session) as ctor:
            OnnxBackend.load("vocoder", b"model-bytes", config=MODEL_CONFIG)
        assert ctor.call_args[0][0] == b"model-bytes"

    def test_load_failure_is_asset_error(self, tmp_path):
        with patch(
            "supertonic_tts.backends.onnx.ort.InferenceSession",
            side_effect=RuntimeError("bad model"),
        ):
            with pytest.raises(AssetLoadError, match="Failed to load vocoder.*bad model"):
                OnnxBackend.load("vocoder", tmp_path / "x.onnx", config=MODEL_CONFIG)

    def test_closed_backend_raises(self):
        b = OnnxBackend(ModelRole.VOCODER, _fake_session(["latent"], ["wav_tts"], []))
        b.close()
        with pytest.raises(BackendInvocationError, match="closed"):
            b(latent=np.zeros((1, 8, 1)))
