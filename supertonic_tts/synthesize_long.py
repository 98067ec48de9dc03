"""High-level long-text synthesis.

Takes arbitrary-length text, chunks it at sentence boundaries, runs each
chunk through the engine, and stitches the audio together.

Pipeline:
    text → [segmenter] → [TextToSpeech.infer per chunk]
         → [trim to predicted duration] → [numpy concat with silence]
         → final waveform + total duration

Example::

    from supertonic_tts import TextToSpeech
    from supertonic_tts.synthesize_long import synthesize_long

    tts = TextToSpeech.from_assets()
    style = tts.load_voice("M1")
    wav, duration = synthesize_long(
        "It was the best of times, it was the worst of times...",
        tts=tts,
        lang="en",
        style=style,
        total_step=5,
    )
"""

from __future__ import annotations

import time
import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

import numpy as np

from .errors import SynthesisFailure, UnsupportedStyleShape
from .segmenter import chunk_text, max_len_for_language

if TYPE_CHECKING:
    from .pipeline import TextToSpeech
    from .voices import Style


@dataclass
class LongSynthesisConfig:
    """Configuration for long-text synthesis.

    Args:
        silence_duration: Seconds of silence inserted between chunks.
        max_chars: Override the per-chunk character budget. If None, uses the
                   language default (120 for Korean, 300 otherwise).
        verbose: Print progress (chunk count, index, text preview).
    """

    silence_duration: float = 0.3
    max_chars: Optional[int] = None
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.silence_duration < 0:
            raise ValueError(f"silence_duration must be >= 0, got {self.silence_duration}")
        if self.max_chars is not None and self.max_chars < 1:
            raise ValueError(f"max_chars must be >= 1, got {self.max_chars}")


def synthesize_long(
    text: str,
    *,
    tts: "TextToSpeech",
    lang: str,
    style: "Style",
    total_step: int,
    speed: float = 1.05,
    silence_duration: float = 0.3,
    max_chars: Optional[int] = None,
    config: Optional[LongSynthesisConfig] = None,
    verbose: bool = False,
    rng: Optional[np.random.Generator] = None,
    # f(step, total_step), before each denoising step of every chunk
    on_progress: Optional[Callable[[int, int], None]] = None,
    # f(chunk_index, total_chunks, chunk_text), before each chunk
    on_chunk: Optional[Callable[[int, int, str], None]] = None,
    # f(chunk_index, total_chunks, stats_dict)
    # stats_dict keys: chunk_text, audio_duration_s, wall_time_s, realtime_factor
    on_chunk_done: Optional[Callable[[int, int, dict], None]] = None,
) -> Tuple[np.ndarray, float]:
    """Synthesize arbitrarily long text by chunking, synthesizing, and stitching.

    Args:
        text: Input text of any length.
        tts: A TextToSpeech engine (loaded once outside this call).
        lang: Language code for every chunk.
        style: Single-speaker style (batch dimension 1).
        total_step: Denoising steps per chunk.
        speed: Speaking-rate factor forwarded to ``infer``.
        silence_duration: Gap between chunks in seconds.
        max_chars: Override the language's chunk budget.
        config: Full LongSynthesisConfig (overrides silence/max_chars/verbose).
        rng: Noise generator shared by all chunks.

    Returns:
        (waveform, total_duration): float32 mono audio at ``tts.sample_rate``
        and the sum of predicted chunk durations plus one silence per seam.
    """
    if config is None:
        config = LongSynthesisConfig(
            silence_duration=silence_duration, max_chars=max_chars, verbose=verbose
        )
    if style.batch_size != 1:
        raise UnsupportedStyleShape(
            f"Long-text synthesis takes a single style, got batch {style.batch_size}"
        )

    # ── 1. Segment ───────────────────────────────────────────────────────────
    max_len = config.max_chars or max_len_for_language(lang)
    chunks = chunk_text(text, max_len)

    if not chunks:
        warnings.warn("synthesize_long: no text chunks produced, returning empty audio.")
        return np.zeros(0, dtype=np.float32), 0.0

    if config.verbose:
        print(f"synthesize_long: {len(chunks)} chunk(s) from {len(text)} chars")

    # ── 2. Synthesize each chunk ─────────────────────────────────────────────
    sample_rate = tts.sample_rate
    audio_parts: List[np.ndarray] = []
    total_duration = 0.0

    for i, chunk in enumerate(chunks):
        if config.verbose:
            preview = chunk[:60] + ("..." if len(chunk) > 60 else "")
            print(f"  [{i+1}/{len(chunks)}] {preview!r}")

        if on_chunk is not None:
            on_chunk(i, len(chunks), chunk)

        t0 = time.perf_counter()
        try:
            wav, duration = tts.infer(
                [chunk], [lang], style, total_step, speed, on_progress, rng=rng
            )
        except SynthesisFailure as e:
            raise SynthesisFailure(e.stage, e.detail, chunk_index=i) from e
        wall_time = time.perf_counter() - t0

        chunk_duration = float(duration[0])
        # Vocoder output is padded to whole latent frames
        audio = wav[0, : int(np.floor(chunk_duration * sample_rate))]
        realtime_factor = chunk_duration / wall_time if wall_time > 0 else 0.0

        if on_chunk_done is not None:
            on_chunk_done(
                i,
                len(chunks),
                {
                    "chunk_text": chunk,
                    "audio_duration_s": chunk_duration,
                    "wall_time_s": wall_time,
                    "realtime_factor": realtime_factor,
                },
            )

        audio_parts.append(audio)
        total_duration += chunk_duration

    # ── 3. Stitch ────────────────────────────────────────────────────────────
    total_duration += config.silence_duration * (len(audio_parts) - 1)
    if len(audio_parts) == 1:
        return audio_parts[0], total_duration

    silence = np.zeros(int(np.floor(config.silence_duration * sample_rate)), dtype=np.float32)
    pieces: List[np.ndarray] = []
    for i, part in enumerate(audio_parts):
        pieces.append(part)
        if i < len(audio_parts) - 1:
            pieces.append(silence)
    return np.concatenate(pieces, axis=0), total_duration
