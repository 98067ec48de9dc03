"""Voice style loading and voice directory resolution helpers."""

from __future__ import annotations

import json
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Sequence

import numpy as np

from .assets import AssetLoader
from .errors import AssetLoadError, AssetNotFound, VoiceNotFound

VOICES: tuple[str, ...] = ("M1", "M2", "M3", "M4", "M5", "F1", "F2", "F3", "F4", "F5")


@dataclass(frozen=True)
class Style:
    """Learned voice embeddings: ``ttl`` conditions the text encoder and
    denoiser, ``dp`` the duration predictor. Leading dimension is the style
    batch."""

    ttl: np.ndarray
    dp: np.ndarray

    def __post_init__(self) -> None:
        for name in ("ttl", "dp"):
            arr = np.asarray(getattr(self, name), dtype=np.float32)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)
        if self.ttl.ndim == 0 or self.dp.ndim == 0:
            raise ValueError("style tensors must have a batch dimension")
        if self.ttl.shape[0] != self.dp.shape[0]:
            raise ValueError(
                f"style_ttl and style_dp batch sizes differ: "
                f"{self.ttl.shape[0]} vs {self.dp.shape[0]}"
            )

    @property
    def batch_size(self) -> int:
        return int(self.ttl.shape[0])

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Style":
        """Parse the voice style JSON layout: ``{"style_ttl": {"data", "dims"}, "style_dp": ...}``."""
        try:
            ttl = _tensor(data["style_ttl"])
            dp = _tensor(data["style_dp"])
        except (KeyError, TypeError, ValueError) as e:
            raise AssetLoadError(f"Invalid voice style: {e}") from e
        return cls(ttl=ttl, dp=dp)

    @classmethod
    def stack(cls, styles: Sequence["Style"]) -> "Style":
        """Concatenate single styles into one batch (for batched ``infer``)."""
        if not styles:
            raise ValueError("stack requires at least one style")
        return cls(
            ttl=np.concatenate([s.ttl for s in styles], axis=0),
            dp=np.concatenate([s.dp for s in styles], axis=0),
        )


def _tensor(entry: Mapping[str, Any]) -> np.ndarray:
    arr = np.asarray(entry["data"], dtype=np.float32)
    dims = entry.get("dims")
    return arr.reshape(dims) if dims is not None else arr


def load_voice_style(loader: AssetLoader, relpath: str, voice: str | None = None) -> Style:
    """Load one voice style JSON through ``loader``.

    Raises VoiceNotFound if the file does not exist, AssetLoadError if it
    cannot be fetched or parsed.
    """
    try:
        data = loader.load_json(relpath)
    except AssetNotFound as e:
        label = voice or relpath
        raise VoiceNotFound(f"Voice '{label}' not found at {loader.describe(relpath)}") from e
    return Style.from_dict(data)


def load_voice_style_file(path: str | Path) -> Style:
    """Load a voice style JSON from an explicit file path."""
    p = Path(path)
    if not p.is_file():
        raise VoiceNotFound(f"Voice style file not found: {p}")
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise AssetLoadError(f"Failed to read voice style {p}: {e}") from e
    return Style.from_dict(data)


def list_voices(voices_dir: str | Path) -> List[str]:
    """Return sorted list of voice names (``.json`` stems) available in voices_dir."""
    d = Path(voices_dir)
    if not d.is_dir():
        raise FileNotFoundError(f"voices_dir not found: {d}")
    return sorted(p.stem for p in d.iterdir() if p.suffix.lower() == ".json")


def resolve_voice(voices_dir: str | Path, voice: str) -> Path:
    """Map a voice name to its style file in a local ``voice_styles`` directory.

    An exact stem wins. Otherwise a unique case-insensitive stem is accepted
    with a warning, so ``--voice f1`` finds ``F1.json``.
    """
    by_stem = {name: Path(voices_dir) / f"{name}.json" for name in list_voices(voices_dir)}
    if voice in by_stem:
        return by_stem[voice]

    folded = [name for name in by_stem if name.casefold() == voice.casefold()]
    if len(folded) == 1:
        warnings.warn(
            f"Voice '{voice}' resolved to '{folded[0]}' ignoring case.",
            stacklevel=2,
        )
        return by_stem[folded[0]]
    if folded:
        raise VoiceNotFound(f"Voice '{voice}' matches several styles ignoring case: {folded}")

    listing = ", ".join(by_stem) or "(none)"
    raise VoiceNotFound(f"Voice '{voice}' not found in {voices_dir}. Available voices: {listing}")
