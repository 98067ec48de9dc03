"""Download the Supertonic model files and voice styles into a local directory.

Files downloaded
----------------
From Supertone/supertonic-2 on HuggingFace:

    onnx/tts.json                   acoustic config
    onnx/unicode_indexer.json       code point -> token id table
    onnx/duration_predictor.onnx
    onnx/text_encoder.onnx
    onnx/vector_estimator.onnx
    onnx/vocoder.onnx
    voice_styles/{M1..M5,F1..F5}.json

Usage
-----
    supertonic download-assets --out-dir ~/models/supertonic-2

    # or via Python
    python -m cli.download_assets --out-dir ~/models/supertonic-2
"""

from __future__ import annotations

from pathlib import Path
from typing import List

import click
from huggingface_hub import hf_hub_download

from supertonic_tts.config import AssetsConfig
from supertonic_tts.voices import VOICES

_SUPERTONIC_HF_REPO = "Supertone/supertonic-2"


def asset_files(voices=VOICES) -> List[str]:
    """Relative paths of every file a local asset directory needs."""
    layout = AssetsConfig(assets=".")
    files = [
        layout.tts_json,
        layout.unicode_indexer,
        layout.duration_predictor,
        layout.text_encoder,
        layout.vector_estimator,
        layout.vocoder,
    ]
    files.extend(layout.voice_style(v) for v in voices)
    return files


@click.command("download-assets")
@click.option(
    "--out-dir",
    required=True,
    type=click.Path(file_okay=False, writable=True),
    help="Directory to write the model files and voice styles into.",
)
@click.option(
    "--repo",
    default=_SUPERTONIC_HF_REPO,
    show_default=True,
    help="HuggingFace repo to download from.",
)
@click.option("--revision", default=None, help="Branch, tag or commit of the repo.")
@click.option(
    "--skip-existing/--no-skip-existing",
    default=True,
    show_default=True,
    help="Skip files that already exist in the output directory.",
)
def download_assets(out_dir: str, repo: str, revision: str | None, skip_existing: bool) -> None:
    """Download Supertonic ONNX models, config and voice styles.

    After this command completes, point the synthesizer at the output directory:

        supertonic synthesize --assets <out-dir> --text "Hello world."

    or set the environment variable permanently:

        export SUPERTONIC_ASSETS=<out-dir>
    """
    out = Path(out_dir).expanduser().resolve()
    out.mkdir(parents=True, exist_ok=True)

    click.echo(f"Output directory : {out}")
    click.echo(f"Source repo      : {repo}")
    click.echo()

    for fname in asset_files():
        dest = out / fname
        if skip_existing and dest.exists():
            click.echo(f"  skip  {fname} (exists)")
            continue
        click.echo(f"  fetching {fname} …")
        try:
            hf_hub_download(repo, filename=fname, revision=revision, local_dir=str(out))
        except Exception as e:
            raise click.ClickException(f"Failed to download {fname} from {repo}: {e}")

    click.echo()
    click.echo("All assets ready.")
    files = sorted(p for p in out.rglob("*") if p.is_file() and ".cache" not in p.parts)
    total_mb = sum(f.stat().st_size for f in files) / 1024**2
    click.echo(f"  {'TOTAL':35s}  {total_mb:6.1f} MB in {len(files)} file(s)")
    click.echo()
    click.echo("Next step — run synthesis:")
    click.echo(f'  supertonic synthesize --assets "{out}" --text "Hello world." --out out.wav')


if __name__ == "__main__":
    download_assets()
