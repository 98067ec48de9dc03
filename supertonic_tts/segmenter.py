"""Sentence segmentation for long-text TTS synthesis.

Splits arbitrary-length text into chunks suitable for one inference pass.
Paragraphs (blank-line separated) never share a chunk; within a paragraph
sentences are packed greedily up to a character budget. Sentence boundaries
are whitespace after ``.``, ``!`` or ``?``, except after common abbreviations
(``Dr.``, ``e.g.``, ``Ave.`` ...) and single capital-letter initials.

Korean text is segmented with a tighter budget (120 characters) than the
other languages (300).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from .normalizer import resolve_language

DEFAULT_MAX_CHARS = 300

# Languages whose model needs shorter inference units
_MAX_CHARS_BY_LANG: dict[str, int] = {
    "ko": 120,
}

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n+")
_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")
_INITIAL = re.compile(r"\b[A-Z]\.$")

_ABBREVIATIONS = (
    "Mr.",
    "Mrs.",
    "Ms.",
    "Dr.",
    "Prof.",
    "Sr.",
    "Jr.",
    "Ph.D.",
    "etc.",
    "e.g.",
    "i.e.",
    "vs.",
    "Inc.",
    "Ltd.",
    "Co.",
    "Corp.",
    "St.",
    "Ave.",
    "Blvd.",
)


def max_len_for_language(lang: str) -> int:
    """Character budget per chunk for ``lang`` (120 for Korean, 300 otherwise)."""
    return _MAX_CHARS_BY_LANG.get(resolve_language(lang), DEFAULT_MAX_CHARS)


def _is_abbreviation(head: str) -> bool:
    return head.endswith(_ABBREVIATIONS) or _INITIAL.search(head) is not None


def split_sentences(paragraph: str) -> List[str]:
    """Split one paragraph into sentences, keeping abbreviations intact."""
    sentences: List[str] = []
    start = 0
    for match in _SENTENCE_BREAK.finditer(paragraph):
        if _is_abbreviation(paragraph[: match.start()]):
            continue
        sentences.append(paragraph[start : match.start()])
        start = match.end()
    sentences.append(paragraph[start:])
    return [s for s in sentences if s]


def chunk_text(text: str, max_len: int = DEFAULT_MAX_CHARS) -> List[str]:
    """Split text into chunks of at most ``max_len`` characters.

    A sentence longer than ``max_len`` is emitted as its own chunk; sentences
    are never broken. Returns an empty list for empty or whitespace-only text.

    Raises:
        TypeError: if ``text`` is not a string.
    """
    if not isinstance(text, str):
        raise TypeError(f"chunk_text expects a string, got {type(text).__name__}")

    paragraphs = [p.strip() for p in _PARAGRAPH_BREAK.split(text.strip())]

    chunks: List[str] = []
    for paragraph in paragraphs:
        if not paragraph:
            continue
        current = ""
        for sentence in split_sentences(paragraph):
            if len(current) + len(sentence) + 1 <= max_len:
                current += (" " if current else "") + sentence
            else:
                if current:
                    chunks.append(current.strip())
                current = sentence
        if current:
            chunks.append(current.strip())
    return chunks


@dataclass
class SegmenterConfig:
    """Configuration for sentence segmentation.

    Args:
        language: Language name or ISO code (en, ko, es, pt, fr).
        max_chars: Max characters per chunk. Defaults to the language budget
                   (120 for Korean, 300 otherwise).
    """

    language: str = "en"
    max_chars: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_chars is None:
            self.max_chars = max_len_for_language(self.language)
        else:
            resolve_language(self.language)
        if self.max_chars <= 0:
            raise ValueError(f"max_chars must be positive, got {self.max_chars}")


class Segmenter:
    """Splits long text into TTS-sized chunks respecting sentence boundaries.

    Example::

        seg = Segmenter(SegmenterConfig(language="en", max_chars=300))
        chunks = seg.segment("Long text goes here...")
        # ["First few sentences.", "Next few sentences.", ...]
    """

    def __init__(self, config: SegmenterConfig = None):
        if config is None:
            config = SegmenterConfig()
        self.config = config

    def segment(self, text: str) -> List[str]:
        return chunk_text(text, self.config.max_chars)

    def __repr__(self) -> str:
        return (
            f"Segmenter(language='{self.config.language}', "
            f"max_chars={self.config.max_chars})"
        )
