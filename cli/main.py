#!/usr/bin/env python3
"""Supertonic TTS — unified command-line interface.

Usage:

    supertonic synthesize --text "Hello world" --voice F1 --out hello.wav
    supertonic download-assets --out-dir ~/models/supertonic-2
    supertonic srv start --config ~/.config/supertonic/srv.yaml
"""

import click

from cli.tts import synthesize
from cli.download_assets import download_assets
from cli.srv import srv


@click.group()
def main():
    """Supertonic on-device text-to-speech toolkit."""


main.add_command(synthesize)
main.add_command(download_assets)
main.add_command(srv)


if __name__ == "__main__":
    main()
