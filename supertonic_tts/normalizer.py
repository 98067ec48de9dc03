"""Text cleanup and language tagging for TTS preprocessing.

Turns raw user text into the canonical form the Supertonic text encoder was
trained on: Unicode-decomposed, emoji-free, with typographic punctuation
folded to ASCII, sentence-final punctuation guaranteed and the whole string
wrapped in ``<lang>...</lang>`` tags.

The transformation is a pure function of (text, language); running it on its
own output returns the same string.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass

from .errors import InvalidLanguage

AVAILABLE_LANGS: tuple[str, ...] = ("en", "ko", "es", "pt", "fr")

# Maps friendly language names to the ISO codes used in the language tags
_LANG_TO_CODE: dict[str, str] = {
    "english": "en",
    "en": "en",
    "korean": "ko",
    "ko": "ko",
    "spanish": "es",
    "es": "es",
    "portuguese": "pt",
    "pt": "pt",
    "french": "fr",
    "fr": "fr",
}

_EMOJI_PATTERN = re.compile(
    "[\U0001f600-\U0001f64f\U0001f300-\U0001f5ff\U0001f680-\U0001f6ff"
    "\U0001f700-\U0001f77f\U0001f780-\U0001f7ff\U0001f800-\U0001f8ff"
    "\U0001f900-\U0001f9ff\U0001fa00-\U0001fa6f\U0001fa70-\U0001faff"
    "\u2600-\u26ff\u2700-\u27bf\U0001f1e6-\U0001f1ff]+"
)

_CHAR_REP_MAP = {
    "–": "-",  # en dash
    "‑": "-",  # non-breaking hyphen
    "—": "-",  # em dash
    "_": " ",
    "“": '"',  # left double quote
    "”": '"',  # right double quote
    "‘": "'",  # left single quote
    "’": "'",  # right single quote
    "´": "'",  # acute accent
    "`": "'",
    "[": " ",
    "]": " ",
    "|": " ",
    "/": " ",
    "#": " ",
    "→": " ",
    "←": " ",
}
_CHAR_REP_TABLE = str.maketrans(_CHAR_REP_MAP)

_REMOVED_SYMBOLS = re.compile(r"[♥☆♡©\\]")

_EXPR_REP_MAP = {
    "@": " at ",
    "e.g.,": "for example, ",
    "i.e.,": "that is, ",
}

_SPACE_BEFORE_PUNCT = re.compile(r"\s+(?=[,.!?;:'])")
_DUPLICATE_QUOTES = ('""', "''", "``")
_WHITESPACE = re.compile(r"\s+")

# Latin and CJK sentence-final punctuation, quotes and closing brackets
_TERMINAL_CHARS = frozenset(".!?;:,'\")]}…。」』】〉》›»")


def resolve_language(language: str) -> str:
    code = _LANG_TO_CODE.get(language.lower()) if isinstance(language, str) else None
    if code is None:
        raise InvalidLanguage(str(language), list(AVAILABLE_LANGS))
    return code


def is_valid_lang(language: str) -> bool:
    """True if ``language`` is a supported ISO code or language name."""
    try:
        resolve_language(language)
    except InvalidLanguage:
        return False
    return True


def _unwrap(text: str, code: str) -> str:
    open_tag, close_tag = f"<{code}>", f"</{code}>"
    if text.startswith(open_tag) and text.endswith(close_tag):
        return text[len(open_tag) : len(text) - len(close_tag)]
    return text


def clean_text(text: str) -> str:
    """Apply the character-level cleanup steps (everything except tagging)."""
    text = unicodedata.normalize("NFKD", text)
    text = _EMOJI_PATTERN.sub("", text)
    text = text.translate(_CHAR_REP_TABLE)
    text = _REMOVED_SYMBOLS.sub("", text)
    # Dropping a space can complete a phrase ("e.g .,"), so repeat until stable
    while True:
        prev = text
        for k, v in _EXPR_REP_MAP.items():
            text = text.replace(k, v)
        text = _SPACE_BEFORE_PUNCT.sub("", text)
        if text == prev:
            break

    for dup in _DUPLICATE_QUOTES:
        while dup in text:
            text = text.replace(dup, dup[0])

    text = _WHITESPACE.sub(" ", text).strip()

    if not text or text[-1] not in _TERMINAL_CHARS:
        text += "."
    return text


def normalize(text: str, lang: str) -> str:
    """Normalize ``text`` and wrap it in ``<lang>...</lang>`` tags.

    Raises InvalidLanguage if ``lang`` is not one of en, ko, es, pt, fr (or
    the matching language name). Text that is already wrapped in this
    language's tags is unwrapped first, so the result is tagged exactly once.
    """
    code = resolve_language(lang)
    if not isinstance(text, str):
        raise TypeError(f"normalize expects a string, got {type(text).__name__}")
    text = clean_text(_unwrap(text, code))
    return f"<{code}>{text}</{code}>"


@dataclass
class NormalizerConfig:
    """Configuration for text normalization.

    Args:
        language: Language name or ISO code. Supported: english/en, korean/ko,
                  spanish/es, portuguese/pt, french/fr.
    """

    language: str = "en"

    def __post_init__(self) -> None:
        resolve_language(self.language)  # validate early

    @property
    def code(self) -> str:
        return resolve_language(self.language)


class Normalizer:
    """Normalizer bound to a single language.

    Example::

        norm = Normalizer(NormalizerConfig(language="english"))
        norm.normalize("Hello — world")
        # "<en>Hello - world.</en>"
    """

    def __init__(self, config: NormalizerConfig = None):
        if config is None:
            config = NormalizerConfig()
        self.config = config

    def normalize(self, text: str) -> str:
        return normalize(text, self.config.code)

    def __repr__(self) -> str:
        return f"Normalizer(language='{self.config.language}')"
