"""Code-point tokenizer: normalized text to vocabulary ids plus validity mask."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .normalizer import normalize

UNKNOWN_ID = -1
PAD_ID = 0


@dataclass(frozen=True)
class TokenBatch:
    """Right-padded id grid ``(batch, max_len)`` and float mask ``(batch, 1, max_len)``."""

    text_ids: np.ndarray
    text_mask: np.ndarray

    @property
    def lengths(self) -> np.ndarray:
        return self.text_mask.sum(axis=(1, 2)).astype(np.int64)

    def __len__(self) -> int:
        return self.text_ids.shape[0]


def length_to_mask(lengths: Sequence[int], max_len: Optional[int] = None) -> np.ndarray:
    """Build a ``(batch, 1, max_len)`` float32 mask with 1.0 at ``j < lengths[i]``."""
    lengths = np.asarray(lengths, dtype=np.int64)
    if max_len is None:
        max_len = int(lengths.max()) if lengths.size else 0
    mask = np.arange(max_len)[None, :] < lengths[:, None]
    return mask.astype(np.float32)[:, None, :]


class UnicodeProcessor:
    """Maps every Unicode code point through a fixed lookup table.

    ``indexer[cp]`` is the vocabulary id of code point ``cp``; code points past
    the end of the table become ``UNKNOWN_ID`` rather than being dropped.

    Example::

        proc = UnicodeProcessor(indexer)
        batch = proc(["Hello there."], ["en"])
        batch.text_ids.shape   # (1, len("<en>Hello there.</en>"))
    """

    def __init__(self, indexer: Sequence[int]):
        self.indexer = np.asarray(indexer, dtype=np.int64)

    @property
    def vocab_span(self) -> int:
        return int(self.indexer.shape[0])

    def _ids(self, text: str) -> np.ndarray:
        cps = np.fromiter((ord(c) for c in text), dtype=np.int64, count=len(text))
        ids = np.full(cps.shape, UNKNOWN_ID, dtype=np.int64)
        known = cps < self.vocab_span
        ids[known] = self.indexer[cps[known]]
        return ids

    def encode(self, texts: Sequence[str]) -> TokenBatch:
        """Index already-normalized strings into a padded batch."""
        if not texts:
            raise ValueError("encode requires at least one text")
        rows: List[np.ndarray] = [self._ids(t) for t in texts]
        lengths = [len(r) for r in rows]
        max_len = max(lengths)
        text_ids = np.full((len(rows), max_len), PAD_ID, dtype=np.int64)
        for i, row in enumerate(rows):
            text_ids[i, : len(row)] = row
        return TokenBatch(text_ids=text_ids, text_mask=length_to_mask(lengths, max_len))

    def __call__(self, texts: Sequence[str], langs: Sequence[str]) -> TokenBatch:
        """Normalize each text for its language, then index the batch."""
        if len(texts) != len(langs):
            raise ValueError(
                f"texts and langs must have the same length, got {len(texts)} and {len(langs)}"
            )
        if not texts:
            raise ValueError("tokenize requires at least one text")
        return self.encode([normalize(t, lang) for t, lang in zip(texts, langs)])

    def __repr__(self) -> str:
        return f"UnicodeProcessor(vocab_span={self.vocab_span})"
