"""Tests for high-level long-text synthesis."""

import warnings
from unittest.mock import MagicMock

import numpy as np
import pytest

from supertonic_tts.backends import ModelRole
from supertonic_tts.errors import (
    BackendInvocationError,
    InvalidLanguage,
    SynthesisFailure,
    UnsupportedStyleShape,
)
from supertonic_tts.pipeline import TextToSpeech
from supertonic_tts.synthesize_long import LongSynthesisConfig, synthesize_long
from supertonic_tts.tokenizer import UnicodeProcessor

from conftest import INDEXER, MODEL_CONFIG, SAMPLE_RATE, make_backends, make_style

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

TWO_PARAGRAPHS = "First paragraph here.\n\nSecond paragraph here."

SIMPLE_TEXT = (
    "This is sentence one. This is sentence two. " "This is sentence three. This is sentence four."
)


def _make_tts(durations=None) -> TextToSpeech:
    """Engine on mock backends; ``durations`` scripts per-chunk durations."""
    return TextToSpeech(
        MODEL_CONFIG, UnicodeProcessor(INDEXER), make_backends(durations=durations), seed=0
    )


def _run(text, tts=None, **kwargs):
    kwargs.setdefault("lang", "en")
    kwargs.setdefault("style", make_style())
    kwargs.setdefault("total_step", 2)
    kwargs.setdefault("speed", 1.0)
    return synthesize_long(text, tts=tts or _make_tts(), **kwargs)


# ---------------------------------------------------------------------------
# LongSynthesisConfig tests
# ---------------------------------------------------------------------------


class TestLongSynthesisConfig:
    def test_defaults(self) -> None:
        cfg = LongSynthesisConfig()
        assert cfg.silence_duration == 0.3
        assert cfg.max_chars is None
        assert cfg.verbose is False

    def test_negative_silence_rejected(self) -> None:
        with pytest.raises(ValueError, match="silence_duration"):
            LongSynthesisConfig(silence_duration=-0.1)

    def test_invalid_max_chars(self) -> None:
        with pytest.raises(ValueError, match="max_chars"):
            LongSynthesisConfig(max_chars=0)


# ---------------------------------------------------------------------------
# Basic behaviour
# ---------------------------------------------------------------------------


class TestSynthesizeLongBasic:
    def test_returns_float32_and_duration(self) -> None:
        wav, duration = _run("Hello there.")
        assert isinstance(wav, np.ndarray)
        assert wav.dtype == np.float32
        assert wav.ndim == 1
        assert duration == pytest.approx(len("<en>Hello there.</en>") * 0.05, rel=1e-5)

    def test_chunk_trimmed_to_predicted_duration(self) -> None:
        wav, duration = _run("Hello there.", tts=_make_tts(durations=[0.51]))
        assert len(wav) == int(np.floor(float(np.float32(0.51)) * SAMPLE_RATE))

    def test_empty_text_returns_empty_array(self) -> None:
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            wav, duration = _run("")
        assert wav.size == 0
        assert duration == 0.0
        assert any("no text chunks" in str(x.message) for x in w)

    def test_whitespace_only_returns_empty_array(self) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            wav, duration = _run("   \n\n  ")
        assert wav.size == 0

    def test_infer_called_for_each_chunk(self) -> None:
        tts = _make_tts()
        _run(TWO_PARAGRAPHS, tts=tts)
        assert len(tts.backends[ModelRole.DURATION_PREDICTOR].calls) == 2
        assert len(tts.backends[ModelRole.VOCODER].calls) == 2


# ---------------------------------------------------------------------------
# Concatenation
# ---------------------------------------------------------------------------


class TestConcatenation:
    def test_two_chunks_total_duration(self) -> None:
        wav, duration = _run(
            TWO_PARAGRAPHS, tts=_make_tts(durations=[1.0, 1.5]), silence_duration=0.3
        )
        assert duration == pytest.approx(2.8)
        assert abs(len(wav) - (1.0 + 0.3 + 1.5) * SAMPLE_RATE) <= 2

    def test_silence_inserted_between_chunks(self) -> None:
        wav, _ = _run(TWO_PARAGRAPHS, tts=_make_tts(durations=[1.0, 1.0]), silence_duration=0.25)
        first = SAMPLE_RATE
        gap = wav[first : first + int(0.25 * SAMPLE_RATE)]
        assert gap.size == 4000
        assert (gap == 0.0).all()

    def test_zero_silence(self) -> None:
        wav, duration = _run(
            TWO_PARAGRAPHS, tts=_make_tts(durations=[1.0, 1.0]), silence_duration=0.0
        )
        assert len(wav) == 2 * SAMPLE_RATE
        assert duration == pytest.approx(2.0)

    def test_config_object_overrides_kwargs(self) -> None:
        cfg = LongSynthesisConfig(silence_duration=0.5)
        wav, duration = _run(
            TWO_PARAGRAPHS,
            tts=_make_tts(durations=[1.0, 1.0]),
            silence_duration=0.1,
            config=cfg,
        )
        assert duration == pytest.approx(2.5)
        assert len(wav) == int(2.5 * SAMPLE_RATE)


# ---------------------------------------------------------------------------
# Validation and failures
# ---------------------------------------------------------------------------


class TestValidation:
    def test_batched_style_rejected(self) -> None:
        with pytest.raises(UnsupportedStyleShape):
            _run("Hello there.", style=make_style(batch=2))

    def test_batched_style_rejected_for_empty_text(self) -> None:
        with pytest.raises(UnsupportedStyleShape):
            _run("", style=make_style(batch=2))

    def test_invalid_language(self) -> None:
        with pytest.raises(InvalidLanguage):
            _run("Hello there.", lang="de")

    def test_failure_reports_chunk_index(self) -> None:
        tts = _make_tts()
        tts.backends[ModelRole.VOCODER] = MagicMock(
            side_effect=[np.zeros((1, 20000), dtype=np.float32), BackendInvocationError("oom")]
        )
        with pytest.raises(SynthesisFailure) as exc:
            _run(TWO_PARAGRAPHS, tts=tts)
        assert exc.value.chunk_index == 1
        assert exc.value.stage == "vocoded"
        assert "chunk 1" in str(exc.value)


# ---------------------------------------------------------------------------
# Callbacks
# ---------------------------------------------------------------------------


class TestSynthesizeLongCallback:
    def test_on_chunk_called_once_per_chunk(self) -> None:
        seen = []
        _run(TWO_PARAGRAPHS, on_chunk=lambda i, total, text: seen.append((i, total, text)))
        assert seen == [
            (0, 2, "First paragraph here."),
            (1, 2, "Second paragraph here."),
        ]

    def test_on_chunk_done_stats(self) -> None:
        stats = []
        _run(
            TWO_PARAGRAPHS,
            tts=_make_tts(durations=[1.0, 1.5]),
            on_chunk_done=lambda i, total, s: stats.append(s),
        )
        assert [s["audio_duration_s"] for s in stats] == [1.0, 1.5]
        assert set(stats[0]) == {"chunk_text", "audio_duration_s", "wall_time_s", "realtime_factor"}

    def test_progress_per_chunk(self) -> None:
        calls = []
        _run(TWO_PARAGRAPHS, total_step=3, on_progress=lambda s, t: calls.append((s, t)))
        assert calls == [(1, 3), (2, 3), (3, 3)] * 2

    def test_max_chars_controls_chunk_size(self) -> None:
        seen = []
        _run(SIMPLE_TEXT, max_chars=50, on_chunk=lambda i, total, text: seen.append(text))
        assert len(seen) == 2
        assert all(len(t) <= 50 for t in seen)

    def test_verbose_prints(self, capsys) -> None:
        _run(TWO_PARAGRAPHS, verbose=True)
        out = capsys.readouterr().out
        assert "2 chunk(s)" in out
        assert "[1/2]" in out and "[2/2]" in out
