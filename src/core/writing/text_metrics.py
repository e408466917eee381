# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Lightweight text statistics shared by style drift and AI-risk scoring.

These are heuristic surface measures (word and sentence lengths, type
to token ratio), not linguistic analysis.
"""

import re
from dataclasses import dataclass

_WORD_RE = re.compile(r"[A-Za-z0-9']+")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_WHITESPACE_RE = re.compile(r"\s+")


def split_words(text: str) -> list[str]:
    """Split on whitespace, dropping empty tokens."""
    return [w for w in _WHITESPACE_RE.split(text) if w]


def tokenize(text: str) -> list[str]:
    """Extract alphanumeric word tokens, ignoring punctuation."""
    return _WORD_RE.findall(text)


def split_sentences(text: str) -> list[str]:
    """Split on terminal punctuation, keeping non-blank sentences."""
    return [s.strip() for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]


def complexity_score(text: str) -> float:
    """Weighted combination of mean word length and mean sentence length.

    ``score = mean_word_length * 10 + mean_sentence_length * 2``, where
    words are whitespace-separated and sentences are split on ``.!?``.
    Empty text scores 0.
    """
    words = split_words(text)
    sentences = split_sentences(text)
    if not words or not sentences:
        return 0.0

    avg_word_length = sum(len(w) for w in words) / len(words)
    avg_sentence_length = len(words) / len(sentences)
    return avg_word_length * 10 + avg_sentence_length * 2


@dataclass(frozen=True)
class TextProfile:
    """Surface statistics of one text."""

    word_count: int
    avg_word_length: float
    avg_sentence_length: float
    vocabulary_diversity: float
    long_word_ratio: float


def profile_text(text: str) -> TextProfile:
    """Compute surface statistics over word tokens.

    Returns a zeroed profile for text with no word tokens.
    """
    tokens = tokenize(text)
    if not tokens:
        return TextProfile(0, 0.0, 0.0, 0.0, 0.0)

    sentences = split_sentences(text) or [text]
    unique = {t.lower() for t in tokens}
    return TextProfile(
        word_count=len(tokens),
        avg_word_length=sum(len(t) for t in tokens) / len(tokens),
        avg_sentence_length=len(tokens) / len(sentences),
        vocabulary_diversity=len(unique) / len(tokens),
        long_word_ratio=sum(1 for t in tokens if len(t) > 8) / len(tokens),
    )


def word_trigrams(text: str) -> list[str]:
    """Lowercased consecutive word triples."""
    tokens = [t.lower() for t in tokenize(text)]
    return [" ".join(tokens[i : i + 3]) for i in range(len(tokens) - 2)]
