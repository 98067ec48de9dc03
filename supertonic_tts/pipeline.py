"""Supertonic inference pipeline: duration, text encoding, denoising, vocoding."""

from __future__ import annotations

import warnings
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .assets import AssetLoader
from .backends import BACKENDS, ModelBackend, ModelRole
from .config import AssetsConfig, ModelConfig
from .errors import (
    AssetLoadError,
    BackendInvocationError,
    SynthesisFailure,
    UnsupportedStyleShape,
)
from .latent import sample_noisy_latent
from .synthesize_long import synthesize_long
from .tokenizer import UnicodeProcessor
from .voices import Style, load_voice_style
from .wav import encode_wav

DEFAULT_SPEED = 1.05
DEFAULT_TOTAL_STEP = 5
DEFAULT_SILENCE_DURATION = 0.3

ProgressCallback = Callable[[int, int], None]


class Stage(str, Enum):
    """States one ``infer`` call passes through, in order."""

    TOKENIZED = "tokenized"
    DURATION_PREDICTED = "duration_predicted"
    TEXT_ENCODED = "text_encoded"
    DENOISING = "denoising"
    VOCODED = "vocoded"
    DONE = "done"


def _notify(callback: Optional[Callable], *args) -> None:
    """Invoke a progress-style callback; its failures never abort synthesis."""
    if callback is None:
        return
    try:
        callback(*args)
    except Exception as e:
        warnings.warn(f"Progress callback raised {type(e).__name__}: {e}", stacklevel=3)


def _check_total_step(total_step) -> int:
    if isinstance(total_step, bool) or not isinstance(total_step, (int, np.integer)):
        raise ValueError(f"total_step must be a positive integer, got {total_step!r}")
    if total_step < 1:
        raise ValueError(f"total_step must be a positive integer, got {total_step}")
    return int(total_step)


def _load_indexer(loader: AssetLoader, relpath: str) -> List[int]:
    data = loader.load_json(relpath)
    if not isinstance(data, list) or not all(
        isinstance(v, int) and not isinstance(v, bool) for v in data
    ):
        raise AssetLoadError(
            f"Invalid unicode indexer {loader.describe(relpath)}: expected a flat integer array"
        )
    return data


class TextToSpeech:
    """Supertonic text-to-speech engine.

    Holds the four model backends, the tokenizer and one current voice
    style. Building it is expensive (model sessions); create once and reuse.

    Usage:
        tts = TextToSpeech.from_assets(AssetsConfig(assets="~/models/supertonic-2"))
        tts.load_voice("F1")
        wav, duration = tts.synthesize("Hello there.", lang="en")
        write_wav("hello.wav", wav, tts.sample_rate)
    """

    def __init__(
        self,
        config: ModelConfig,
        processor: UnicodeProcessor,
        backends: Mapping[ModelRole, ModelBackend],
        *,
        loader: Optional[AssetLoader] = None,
        assets: Optional[AssetsConfig] = None,
        seed: Optional[int] = None,
    ):
        missing = [role.value for role in ModelRole if role not in backends]
        if missing:
            raise ValueError(f"Missing backends for {missing}")
        self.config = config
        self.processor = processor
        self.backends: Dict[ModelRole, ModelBackend] = dict(backends)
        self.loader = loader
        self.assets = assets or AssetsConfig()
        self.rng = np.random.default_rng(seed)

        # Current-style slot; only load_voice/set_style replace it
        self._style: Optional[Style] = None
        self._voice: Optional[str] = None

    # ── construction ──────────────────────────────────────────────────────────

    @classmethod
    def from_assets(
        cls,
        assets: Optional[AssetsConfig] = None,
        *,
        backend: str = "onnx",
        loader: Optional[AssetLoader] = None,
        on_load: Optional[Callable[[str, int, int], None]] = None,
        seed: Optional[int] = None,
    ) -> "TextToSpeech":
        """Load ``tts.json``, the unicode indexer and the four models.

        ``on_load(name, index, total)`` is called before each model is loaded.
        Raises AssetLoadError if anything cannot be fetched or parsed; no
        engine is returned in that case.
        """
        if assets is None:
            assets = AssetsConfig()
        try:
            backend_cls = BACKENDS[backend]
        except KeyError:
            raise ValueError(
                f"Unknown backend '{backend}'. Available: {', '.join(sorted(BACKENDS))}"
            ) from None
        if loader is None:
            loader = AssetLoader(assets.assets, revision=assets.revision)

        config = ModelConfig.from_dict(loader.load_json(assets.tts_json))
        processor = UnicodeProcessor(_load_indexer(loader, assets.unicode_indexer))

        roles = list(ModelRole)
        backends: Dict[ModelRole, ModelBackend] = {}
        try:
            for i, role in enumerate(roles):
                _notify(on_load, role.display_name, i + 1, len(roles))
                source = None
                if backend_cls.requires_model_file:
                    source = loader.model_source(getattr(assets, role.value))
                backends[role] = backend_cls.load(
                    role, source, config=config, providers=assets.providers
                )
        except Exception:
            for b in backends.values():
                b.close()
            raise

        return cls(config, processor, backends, loader=loader, assets=assets, seed=seed)

    # ── voice handling ────────────────────────────────────────────────────────

    @property
    def sample_rate(self) -> int:
        return self.config.sample_rate

    @property
    def style(self) -> Optional[Style]:
        return self._style

    @property
    def current_voice(self) -> Optional[str]:
        """Name of the voice last loaded with ``load_voice`` (None for ad-hoc styles)."""
        return self._voice

    def load_voice(self, voice: str) -> Style:
        """Make ``voice`` (e.g. ``"F1"``) the current style.

        On any failure the previous style stays current.
        """
        if self.loader is None:
            raise AssetLoadError("Engine has no asset source to load voices from")
        style = load_voice_style(self.loader, self.assets.voice_style(voice), voice)
        if style.batch_size != 1:
            raise UnsupportedStyleShape(
                f"Voice '{voice}' has style batch {style.batch_size}; expected 1"
            )
        self._style = style
        self._voice = voice
        return style

    def set_style(self, style: Style, voice: Optional[str] = None) -> None:
        if style.batch_size != 1:
            raise UnsupportedStyleShape(f"Style batch must be 1, got {style.batch_size}")
        self._style = style
        self._voice = voice

    # ── inference ─────────────────────────────────────────────────────────────

    def _invoke(self, stage: Stage, role: ModelRole, **inputs: np.ndarray) -> np.ndarray:
        try:
            return self.backends[role](**inputs)
        except BackendInvocationError as e:
            raise SynthesisFailure(stage.value, str(e)) from e

    def infer(
        self,
        texts: Sequence[str],
        langs: Sequence[str],
        style: Style,
        total_step: int,
        speed: float = DEFAULT_SPEED,
        on_progress: Optional[ProgressCallback] = None,
        *,
        rng: Optional[np.random.Generator] = None,
        on_stage: Optional[Callable[[Stage], None]] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Synthesize one batch of texts.

        Args:
            texts: Raw texts; each is normalized for its language.
            langs: Language codes, one per text.
            style: Voice style whose batch equals ``len(texts)``.
            total_step: Number of denoising steps (positive integer).
            speed: Durations are divided by this (>1 speaks faster).
            on_progress: ``f(step, total_step)`` before each denoising step.
            rng: Noise source; defaults to the engine's generator.
            on_stage: ``f(stage)`` as each stage is entered.

        Returns:
            (wav, durations): float32 ``(batch, samples)`` and seconds per item.
        """
        total_step = _check_total_step(total_step)
        if not speed > 0:
            raise ValueError(f"speed must be > 0, got {speed}")
        if style.batch_size != len(texts):
            raise UnsupportedStyleShape(
                f"Style batch {style.batch_size} does not match {len(texts)} text(s)"
            )
        if rng is None:
            rng = self.rng

        batch = self.processor(texts, langs)
        _notify(on_stage, Stage.TOKENIZED)
        n = len(batch)

        _notify(on_stage, Stage.DURATION_PREDICTED)
        duration = self._invoke(
            Stage.DURATION_PREDICTED,
            ModelRole.DURATION_PREDICTOR,
            text_ids=batch.text_ids,
            style_dp=style.dp,
            text_mask=batch.text_mask,
        )
        duration = duration.astype(np.float32).reshape(-1)
        if duration.shape[0] != n:
            raise SynthesisFailure(
                Stage.DURATION_PREDICTED.value,
                f"expected {n} durations, got {duration.shape[0]}",
            )
        duration = duration / np.float32(speed)

        _notify(on_stage, Stage.TEXT_ENCODED)
        text_emb = self._invoke(
            Stage.TEXT_ENCODED,
            ModelRole.TEXT_ENCODER,
            text_ids=batch.text_ids,
            style_ttl=style.ttl,
            text_mask=batch.text_mask,
        ).astype(np.float32)

        _notify(on_stage, Stage.DENOISING)
        xt, latent_mask = sample_noisy_latent(
            duration,
            self.config.sample_rate,
            self.config.base_chunk_size,
            self.config.chunk_compress_factor,
            self.config.latent_dim,
            rng=rng,
        )
        total = np.full(n, total_step, dtype=np.float32)
        for step in range(total_step):
            _notify(on_progress, step + 1, total_step)
            out = self._invoke(
                Stage.DENOISING,
                ModelRole.VECTOR_ESTIMATOR,
                noisy_latent=xt,
                text_emb=text_emb,
                style_ttl=style.ttl,
                latent_mask=latent_mask,
                text_mask=batch.text_mask,
                current_step=np.full(n, step, dtype=np.float32),
                total_step=total,
            )
            if out.size != xt.size:
                raise SynthesisFailure(
                    Stage.DENOISING.value,
                    f"denoised latent has {out.size} values, expected shape {xt.shape}",
                )
            xt = out.reshape(xt.shape).astype(np.float32)

        _notify(on_stage, Stage.VOCODED)
        wav = self._invoke(Stage.VOCODED, ModelRole.VOCODER, latent=xt)
        wav = wav.astype(np.float32).reshape(n, -1)

        _notify(on_stage, Stage.DONE)
        return wav, duration

    def synthesize(
        self,
        text: str,
        lang: str = "en",
        *,
        voice: Optional[str] = None,
        style: Optional[Style] = None,
        total_step: int = DEFAULT_TOTAL_STEP,
        speed: float = DEFAULT_SPEED,
        silence_duration: float = DEFAULT_SILENCE_DURATION,
        seed: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
        on_chunk: Optional[Callable[[int, int, str], None]] = None,
        on_chunk_done: Optional[Callable[[int, int, dict], None]] = None,
        verbose: bool = False,
    ) -> Tuple[np.ndarray, float]:
        """Synthesize text of any length with the current (or given) style.

        ``voice`` switches the current voice first when it differs from
        :attr:`current_voice`. ``seed`` makes the noise reproducible.

        Returns:
            (waveform, duration_seconds)
        """
        if voice is not None and voice != self._voice:
            self.load_voice(voice)
        if style is None:
            style = self._style
        if style is None:
            raise ValueError("No voice loaded; call load_voice() or pass style=")
        rng = np.random.default_rng(seed) if seed is not None else None
        return synthesize_long(
            text,
            tts=self,
            lang=lang,
            style=style,
            total_step=total_step,
            speed=speed,
            silence_duration=silence_duration,
            on_progress=on_progress,
            on_chunk=on_chunk,
            on_chunk_done=on_chunk_done,
            verbose=verbose,
            rng=rng,
        )

    def synthesize_wav(
        self,
        text: str,
        lang: str,
        voice: Optional[str] = None,
        total_step: int = DEFAULT_TOTAL_STEP,
        speed: float = DEFAULT_SPEED,
        silence_duration: float = DEFAULT_SILENCE_DURATION,
    ) -> bytes:
        """Synthesize and return a complete mono 16-bit WAV file."""
        wav, _ = self.synthesize(
            text,
            lang,
            voice=voice,
            total_step=total_step,
            speed=speed,
            silence_duration=silence_duration,
        )
        return encode_wav(wav, self.sample_rate)

    def close(self) -> None:
        for b in self.backends.values():
            b.close()

    def __repr__(self) -> str:
        return (
            f"TextToSpeech(sample_rate={self.sample_rate}, "
            f"voice={self._voice!r}, backends={sorted(r.value for r in self.backends)})"
        )
