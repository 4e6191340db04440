"""
Lexical similarity filter.

Treats two words as "the same" for game purposes when they are equal or
differ only by one of a fixed list of common suffixes. This is a cheap
stand-in for stemming: it blocks trivial variants (``vote``/``votes``,
``jump``/``jumping``) but knows nothing about synonyms; that is the
Match Judge's job.
"""
from __future__ import annotations

from typing import Iterable, Optional, Sequence

from mindmeld.models.game import Round

SUFFIXES: Sequence[str] = (
    "s", "es", "ed", "ing", "ly", "ate", "ion", "r", "red", "ring", "led",
)


def is_same_word(a: str, b: str) -> bool:
    """Return ``True`` if *a* and *b* are equal or suffix variants of each other."""
    a = a.lower()
    b = b.lower()
    if a == b:
        return True
    if not a or not b:
        return False
    for suffix in SUFFIXES:
        if a == b + suffix or b == a + suffix:
            return True
    return False


def used_words(rounds: Iterable[Round], *extra_words: Optional[str]) -> list:
    """All non-blank words of *rounds* (both players) plus *extra_words*, stripped and lower-cased."""
    words = []
    for r in rounds:
        words.append(r.user_guess)
        words.append(r.ai_guess)
    words.extend(w for w in extra_words if w)
    return [w.strip().lower() for w in words if w and w.strip()]


def is_previously_used(
    word: str,
    rounds: Iterable[Round],
    *extra_words: Optional[str],
) -> bool:
    """
    ``True`` if *word* is the same word (per :func:`is_same_word`) as any guess
    already made in *rounds* or any of *extra_words*.
    """
    return any(is_same_word(word, existing) for existing in used_words(rounds, *extra_words))
