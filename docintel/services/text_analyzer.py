"""Frequency-based text analysis used by every deterministic fallback.

Pure functions only: identical input always yields identical output.
"""

import re
from collections import Counter
from dataclasses import dataclass
from typing import FrozenSet, List, Tuple

MIN_SENTENCE_CHARS = 20  # sentences must be longer than this
MIN_PARAGRAPH_CHARS = 50
KEY_TERM_MIN_LENGTH = 6
KEY_TERM_LIMIT = 15
IMPORTANT_SENTENCE_LIMIT = 10
INTRO_FRACTION = 0.2

STOPWORDS: FrozenSet[str] = frozenset({
    "the", "this", "that", "with", "from", "which", "their", "there",
    "these", "those", "where", "while", "about", "would", "could", "should",
    "other", "through", "between", "within", "without", "because", "however",
})

_SENTENCE_BOUNDARY = re.compile(r"[.!?]+")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_NON_WORD = re.compile(r"[^\w]")


@dataclass(frozen=True)
class TextAnalysis:
    """Statistics extracted from one text."""

    sentences: Tuple[str, ...]
    paragraphs: Tuple[str, ...]
    key_terms: Tuple[str, ...]
    important_sentences: Tuple[str, ...]
    intro_section: Tuple[str, ...]
    source_text: str = ""


def split_sentences(text: str, min_chars: int = MIN_SENTENCE_CHARS) -> List[str]:
    """Split on sentence-terminal punctuation, dropping short fragments.

    Returned sentences are stripped and carry no terminal punctuation.
    """
    pieces = (piece.strip() for piece in _SENTENCE_BOUNDARY.split(text))
    return [piece for piece in pieces if len(piece) > min_chars]


def split_paragraphs(text: str, min_chars: int = MIN_PARAGRAPH_CHARS) -> List[str]:
    pieces = (piece.strip() for piece in _PARAGRAPH_BREAK.split(text))
    return [piece for piece in pieces if len(piece) > min_chars]


def normalize_word(word: str) -> str:
    return _NON_WORD.sub("", word.lower())


def rank_terms(
    text: str,
    min_length: int = KEY_TERM_MIN_LENGTH,
    limit: int = KEY_TERM_LIMIT,
) -> List[str]:
    """Return the ``limit`` most frequent words of at least ``min_length`` characters.

    Ties keep first-occurrence order, so the ranking is deterministic.
    """
    frequencies: Counter = Counter()
    for raw in text.split():
        word = normalize_word(raw)
        if len(word) >= min_length and word not in STOPWORDS:
            frequencies[word] += 1
    return [word for word, _ in frequencies.most_common(limit)]


def analyze_text(
    text: str,
    *,
    min_word_length: int = KEY_TERM_MIN_LENGTH,
    top_terms: int = KEY_TERM_LIMIT,
) -> TextAnalysis:
    sentences = split_sentences(text)
    key_terms = rank_terms(text, min_length=min_word_length, limit=top_terms)

    important = [
        sentence for sentence in sentences
        if any(term in sentence.lower() for term in key_terms)
    ][:IMPORTANT_SENTENCE_LIMIT]

    intro_count = int(len(sentences) * INTRO_FRACTION)

    return TextAnalysis(
        sentences=tuple(sentences),
        paragraphs=tuple(split_paragraphs(text)),
        key_terms=tuple(key_terms),
        important_sentences=tuple(important),
        intro_section=tuple(sentences[:intro_count]),
        source_text=text,
    )
