"""CLI commands for the HTTP synthesis service."""

from __future__ import annotations

import json
import sys

import click

from supertonic_tts.srv.config import DEFAULT_CONFIG_PATH


@click.group("srv")
def srv():
    """HTTP synthesis service."""


@srv.command()
@click.option("--host", default=None, help="Bind address (overrides config).")
@click.option("--port", default=None, type=int, help="Port (overrides config).")
@click.option("--config", default=DEFAULT_CONFIG_PATH, show_default=True, help="Path to srv.yaml")
def start(host: str | None, port: int | None, config: str) -> None:
    """Start the srv service."""
    import uvicorn

    from supertonic_tts.srv.app import create_app
    from supertonic_tts.srv.config import load_srv_config

    srv_config = load_srv_config(config)
    if host:
        srv_config.host = host
    if port:
        srv_config.port = port

    app = create_app(config=srv_config)

    click.echo(f"Starting srv on http://{srv_config.host}:{srv_config.port}")
    uvicorn.run(app, host=srv_config.host, port=srv_config.port, log_level=srv_config.log_level)


def _http_client(url: str):
    import httpx

    return httpx.Client(base_url=url, timeout=30.0)


@srv.command()
@click.option("--url", default="http://127.0.0.1:8765", show_default=True)
def health(url: str) -> None:
    """Check service health."""
    try:
        client = _http_client(url)
        r = client.get("/health")
        r.raise_for_status()
        data = r.json()
        click.echo(json.dumps(data, indent=2))
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@srv.command()
@click.option("--url", default="http://127.0.0.1:8765", show_default=True)
def voices(url: str) -> None:
    """List the voices the service can load."""
    try:
        client = _http_client(url)
        r = client.get("/voices")
        r.raise_for_status()
        data = r.json()
        click.echo("\n".join(data["voices"]))
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@srv.command()
@click.argument("text")
@click.option("--lang", default=None, help="Language code (service default if omitted).")
@click.option("--voice", default=None, help="Voice name (service default if omitted).")
@click.option("--steps", default=None, type=int, help="Denoising steps.")
@click.option("--out", default="output.wav", show_default=True, help="Output WAV file.")
@click.option("--url", default="http://127.0.0.1:8765", show_default=True)
def say(
    text: str,
    lang: str | None,
    voice: str | None,
    steps: int | None,
    out: str,
    url: str,
) -> None:
    """Synthesize TEXT on the running service and save the WAV."""
    body = {"text": text}
    if lang is not None:
        body["lang"] = lang
    if voice is not None:
        body["voice"] = voice
    if steps is not None:
        body["total_step"] = steps
    try:
        client = _http_client(url)
        r = client.post("/synthesize", json=body)
        r.raise_for_status()
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    with open(out, "wb") as f:
        f.write(r.content)
    click.echo(f"Saved {r.headers.get('X-Duration-Seconds', '?')}s of audio to {out}")
