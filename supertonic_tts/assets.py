"""Fetching model config, indexer, voice styles and model files.

An asset source is one of:

- a local directory:            ``~/models/supertonic-2``
- an HTTP(S) base URL:          ``https://example.com/supertonic-2``
- a Hugging Face model repo:    ``hf://Supertone/supertonic-2``

Paths inside the source are relative and use ``/`` separators
(``onnx/tts.json``, ``voice_styles/F1.json``).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional, Union

import httpx
from huggingface_hub import hf_hub_download

from .errors import AssetLoadError, AssetNotFound

_HF_SCHEME = "hf://"


class AssetLoader:
    """Reads assets from a local directory, a URL or a Hugging Face repo.

    Every failure (missing file, network error, unparsable JSON) is raised as
    AssetLoadError; missing files specifically as AssetNotFound.
    """

    def __init__(
        self,
        source: Union[str, Path],
        *,
        revision: Optional[str] = None,
        timeout: float = 60.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.source = str(source)
        self.revision = revision
        self.timeout = timeout
        self._client = client
        if self.source.startswith(_HF_SCHEME):
            self.kind = "hf"
            self.repo_id = self.source[len(_HF_SCHEME) :].strip("/")
            if not self.repo_id:
                raise ValueError(f"Missing repo id in asset source '{self.source}'")
        elif self.source.startswith(("http://", "https://")):
            self.kind = "http"
            self.base_url = self.source.rstrip("/")
        else:
            self.kind = "local"
            self.root = Path(self.source).expanduser()

    # ── location ──────────────────────────────────────────────────────────────

    def describe(self, relpath: str) -> str:
        if self.kind == "hf":
            return f"{_HF_SCHEME}{self.repo_id}/{relpath}"
        if self.kind == "http":
            return f"{self.base_url}/{relpath}"
        return str(self.root / relpath)

    def local_path(self, relpath: str) -> Path:
        """Path to the asset on disk, downloading it first for Hugging Face sources."""
        if self.kind == "local":
            path = self.root / relpath
            if not path.is_file():
                raise AssetNotFound(f"Asset not found: {path}")
            return path
        if self.kind == "hf":
            return self._hf_download(relpath)
        raise ValueError(f"HTTP asset '{self.describe(relpath)}' has no local path")

    def _hf_download(self, relpath: str) -> Path:
        try:
            return Path(hf_hub_download(self.repo_id, filename=relpath, revision=self.revision))
        except Exception as e:
            status = getattr(getattr(e, "response", None), "status_code", None)
            if status == 404:
                raise AssetNotFound(f"Asset not found: {self.describe(relpath)}") from e
            raise AssetLoadError(f"Failed to download {self.describe(relpath)}: {e}") from e

    # ── reading ───────────────────────────────────────────────────────────────

    def read_bytes(self, relpath: str) -> bytes:
        if self.kind == "http":
            return self._http_get(relpath)
        path = self.local_path(relpath)
        try:
            return path.read_bytes()
        except OSError as e:
            raise AssetLoadError(f"Failed to read {path}: {e}") from e

    def _http_get(self, relpath: str) -> bytes:
        url = self.describe(relpath)
        try:
            if self._client is not None:
                r = self._client.get(url, follow_redirects=True)
            else:
                r = httpx.get(url, follow_redirects=True, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise AssetLoadError(f"Failed to fetch {url}: {e}") from e
        if r.status_code == 404:
            raise AssetNotFound(f"Asset not found: {url}")
        try:
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise AssetLoadError(f"Failed to fetch {url}: HTTP {r.status_code}") from e
        return r.content

    def load_json(self, relpath: str) -> Any:
        raw = self.read_bytes(relpath)
        try:
            return json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise AssetLoadError(f"Invalid JSON in {self.describe(relpath)}: {e}") from e

    def model_source(self, relpath: str) -> Union[Path, bytes]:
        """What ONNX Runtime should load: a file path, or the bytes for URL sources."""
        if self.kind == "http":
            return self._http_get(relpath)
        return self.local_path(relpath)

    def __repr__(self) -> str:
        return f"AssetLoader(source='{self.source}', kind='{self.kind}')"
