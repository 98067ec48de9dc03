"""Service configuration."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG_PATH = "~/.config/supertonic/srv.yaml"


@dataclass
class SrvConfig:
    host: str = "127.0.0.1"
    port: int = 8765
    log_level: str = "info"
    # None falls back to SUPERTONIC_ASSETS / the Hugging Face repo
    assets: Optional[str] = None
    backend: str = "onnx"
    default_voice: str = "M1"
    default_lang: str = "en"
    total_step: int = 5
    speed: float = 1.05
    silence_duration: float = 0.3

    def __post_init__(self) -> None:
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be in 1..65535, got {self.port}")
        if self.total_step < 1:
            raise ValueError(f"total_step must be >= 1, got {self.total_step}")
        if self.speed <= 0:
            raise ValueError(f"speed must be > 0, got {self.speed}")
        if self.silence_duration < 0:
            raise ValueError(f"silence_duration must be >= 0, got {self.silence_duration}")


def load_srv_config(path: str = DEFAULT_CONFIG_PATH) -> SrvConfig:
    """Load the YAML service config.

    If the file does not exist, creates it with the default config.
    """
    expanded = Path(os.path.expanduser(path))
    if not expanded.exists():
        config = SrvConfig()
        expanded.parent.mkdir(parents=True, exist_ok=True)
        expanded.write_text(yaml.dump(asdict(config), default_flow_style=False))
        return config

    with open(expanded) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Invalid service config at {expanded}: must be a mapping")
    known = {f.name for f in fields(SrvConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Invalid service config at {expanded}: unknown keys {unknown}")

    return SrvConfig(**data)
