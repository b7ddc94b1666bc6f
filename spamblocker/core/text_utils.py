"""
Text heuristics shared by the content factor.
"""

from __future__ import annotations

import re
from collections import Counter

_NON_WORD = re.compile(r"[^\w\s]")
_REPEATED_CHAR = re.compile(r"(.)\1{4,}", re.IGNORECASE | re.DOTALL)


def _word_set(text: str) -> set[str]:
    return {w for w in _NON_WORD.sub(" ", text.lower()).split() if len(w) > 2}


def text_similarity(text1: str | None, text2: str | None) -> float:
    """Jaccard similarity of the two texts' word sets (words longer than 2 chars)."""
    if not text1 or not text2:
        return 0.0
    words1 = _word_set(text1)
    words2 = _word_set(text2)
    if not words1 or not words2:
        return 0.0
    return len(words1 & words2) / len(words1 | words2)


def has_excessive_caps(text: str) -> bool:
    """More than half the letters are uppercase (needs 20+ chars, 10+ letters)."""
    if len(text) < 20:
        return False
    letters = [c for c in text if c.isascii() and c.isalpha()]
    if len(letters) < 10:
        return False
    upper = sum(1 for c in letters if c.isupper())
    return upper / len(letters) > 0.5


def has_repetitive_patterns(text: str) -> bool:
    """A character repeated 5+ times in a row, or any 3+ letter word used 5+ times."""
    if _REPEATED_CHAR.search(text):
        return True

    words = text.lower().split()
    if len(words) < 5:
        return False
    counts = Counter(w for w in words if len(w) >= 3)
    return any(count >= 5 for count in counts.values())
