"""String normalization and similarity helpers."""

from __future__ import annotations

import re
from difflib import SequenceMatcher

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: str | None) -> str:
    """Lowercase, drop punctuation and collapse whitespace."""
    if not text:
        return ""
    text = _NON_WORD.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", text).strip()


def tokens(text: str) -> set[str]:
    """Split normalized text into a set of word tokens."""
    return set(normalize(text).split())


def token_overlap(a: str, b: str) -> float:
    """Jaccard overlap between the token sets of two strings."""
    left, right = tokens(a), tokens(b)
    if not left or not right:
        return 0.0
    return len(left & right) / len(left | right)


def edit_similarity(a: str, b: str) -> float:
    """Character-level similarity ratio between two normalized strings."""
    a, b = normalize(a), normalize(b)
    if not a or not b:
        return 0.0
    return SequenceMatcher(None, a, b).ratio()


def similarity(a: str, b: str) -> float:
    """Best of token overlap and edit similarity, in [0, 1]."""
    return max(token_overlap(a, b), edit_similarity(a, b))


def strip_quotes(text: str) -> str:
    """Strip surrounding whitespace, quotes and trailing punctuation."""
    return text.strip().strip("\"'“”‘’").strip().rstrip(".,;!?").strip()
