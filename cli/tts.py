#!/usr/bin/env python3
"""Command-line synthesis for Supertonic TTS."""

from pathlib import Path

import click

from supertonic_tts import AssetsConfig, TextToSpeech
from supertonic_tts.backends import BACKENDS
from supertonic_tts.errors import SupertonicError
from supertonic_tts.normalizer import AVAILABLE_LANGS
from supertonic_tts.voices import VOICES, list_voices, load_voice_style_file, resolve_voice
from supertonic_tts.wav import write_wav


# ── helpers ───────────────────────────────────────────────────────────────────


def _build_config(assets):
    kwargs = {}
    if assets:
        kwargs["assets"] = assets
    return AssetsConfig(**kwargs)


def _fmt_eta(seconds: float) -> str:
    """Format a seconds value as a human-readable ETA string."""
    s = int(seconds)
    if s < 60:
        return f"{s}s"
    m, s = divmod(s, 60)
    if m < 60:
        return f"{m}m{s:02d}s"
    h, m = divmod(m, 60)
    return f"{h}h{m:02d}m{s:02d}s"


def _make_verbose_callbacks():
    """Return (on_chunk, on_chunk_done) callbacks that print per-chunk progress
    with an ETA derived from the rolling mean wall-time per chunk."""
    wall_times: list[float] = []

    def on_chunk(i, total, chunk_text):
        remaining = total - i
        if wall_times:
            mean_wall = sum(wall_times) / len(wall_times)
            eta = _fmt_eta(mean_wall * remaining)
            eta_str = f"  ETA ~{eta} ({remaining} chunk(s) left)"
        else:
            eta_str = f"  ({remaining} chunk(s) remaining)"
        preview = chunk_text[:60].replace("\n", " ")
        click.echo(f"  [{i+1}/{total}] {preview!r}{eta_str}")

    def on_chunk_done(i, total, stats):
        wall_times.append(stats["wall_time_s"])
        mean_wall = sum(wall_times) / len(wall_times)
        remaining = total - (i + 1)
        eta_str = (
            f"  ETA ~{_fmt_eta(mean_wall * remaining)} ({remaining} left)"
            if remaining > 0
            else "  done"
        )
        click.echo(
            f"         audio: {stats['audio_duration_s']:.2f}s | "
            f"wall: {stats['wall_time_s']:.1f}s | "
            f"{stats['realtime_factor']:.1f}x realtime |{eta_str}"
        )

    return on_chunk, on_chunk_done


def _on_load(name, index, total):
    click.echo(f"  [{index}/{total}] loading {name}")


# ── command ───────────────────────────────────────────────────────────────────


@click.command("synthesize")
@click.option("--text", default=None, help="Text to synthesize.")
@click.option(
    "--file",
    "text_file",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="UTF-8 text file to synthesize.",
)
@click.option(
    "--lang",
    default="en",
    show_default=True,
    help=f"Language code ({', '.join(AVAILABLE_LANGS)}).",
)
# Voice
@click.option(
    "--voice",
    default="M1",
    show_default=True,
    help=f"Voice style name ({', '.join(VOICES)}).",
)
@click.option(
    "--voice-file",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Voice style JSON file (overrides --voice).",
)
# Quality
@click.option(
    "--steps",
    default=5,
    show_default=True,
    type=click.IntRange(min=1),
    help="Denoising steps per chunk. More steps: higher quality, slower.",
)
@click.option(
    "--speed",
    default=1.05,
    show_default=True,
    type=float,
    help="Speaking rate; predicted durations are divided by this.",
)
@click.option(
    "--silence",
    default=0.3,
    show_default=True,
    type=click.FloatRange(min=0.0),
    help="Seconds of silence inserted between synthesized chunks.",
)
@click.option("--seed", default=None, type=int, help="Seed for reproducible noise.")
# Output
@click.option("--out", default="output.wav", show_default=True, help="Output WAV file.")
# Assets
@click.option(
    "--assets",
    default=None,
    help="Asset source: local directory, http(s) URL or hf://<repo>. "
    "Defaults to $SUPERTONIC_ASSETS or hf://Supertone/supertonic-2.",
)
@click.option(
    "--backend",
    default="onnx",
    show_default=True,
    type=click.Choice(sorted(BACKENDS)),
    help="Inference backend. 'mock' runs without model files.",
)
# Utility
@click.option(
    "--list-voices",
    "do_list_voices",
    is_flag=True,
    help="List available voice names and exit.",
)
@click.option("-v", "--verbose", is_flag=True, help="Print per-chunk progress.")
def synthesize(
    text,
    text_file,
    lang,
    voice,
    voice_file,
    steps,
    speed,
    silence,
    seed,
    out,
    assets,
    backend,
    do_list_voices,
    verbose,
):
    """Synthesize speech with Supertonic.

    Text is chunked at sentence boundaries, each chunk is synthesized, and the
    audio is stitched with silence in between.

    \b
    Input (pick one):
      --text "..."               inline text
      --file PATH                read text from a UTF-8 file

    \b
    Examples:
      supertonic synthesize --text "Hello world." --voice F1 --out hello.wav

      supertonic synthesize --file chapter01.txt --lang fr --steps 10 -v

      supertonic synthesize --list-voices --assets ~/models/supertonic-2
    """
    config = _build_config(assets)

    # ── --list-voices utility ─────────────────────────────────────────────────
    if do_list_voices:
        names = list_voices(config.voices_dir) if config.is_local else list(VOICES)
        if names:
            click.echo("\n".join(names))
        else:
            click.echo(f"No voices found in {config.voices_dir}", err=True)
        return

    if bool(text) == bool(text_file):
        raise click.UsageError("Provide exactly one of --text or --file.")
    if speed <= 0:
        raise click.BadParameter("must be > 0", param_hint="--speed")

    if text_file:
        input_text = Path(text_file).read_text(encoding="utf-8")
    else:
        input_text = text

    try:
        click.echo(f"Loading models from {config.assets}...")
        tts = TextToSpeech.from_assets(
            config, backend=backend, on_load=_on_load if verbose else None
        )
        if voice_file:
            tts.set_style(load_voice_style_file(voice_file), voice=Path(voice_file).stem)
        elif config.is_local and config.voices_dir.is_dir():
            path = resolve_voice(config.voices_dir, voice)
            tts.set_style(load_voice_style_file(path), voice=path.stem)
        else:
            tts.load_voice(voice)

        preview = input_text[:80].replace("\n", " ")
        click.echo(f"Synthesizing: {preview}{'...' if len(input_text) > 80 else ''}")
        click.echo(
            f"  Voice: {tts.current_voice}  |  Language: {lang}  |  "
            f"Steps: {steps}  |  Speed: {speed}"
        )

        on_chunk, on_chunk_done = _make_verbose_callbacks() if verbose else (None, None)
        audio, duration = tts.synthesize(
            input_text,
            lang,
            total_step=steps,
            speed=speed,
            silence_duration=silence,
            seed=seed,
            on_chunk=on_chunk,
            on_chunk_done=on_chunk_done,
        )
    except SupertonicError as e:
        raise click.ClickException(str(e))

    wav_path = write_wav(Path(out).with_suffix(".wav"), audio, tts.sample_rate)
    click.echo(f"Saved {duration:.2f}s of audio to {wav_path}")


if __name__ == "__main__":
    synthesize()
