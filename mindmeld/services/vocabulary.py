"""
Vocabulary helpers: every word the store has seen, and which words in a
finished game are new to it.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Sequence

from mindmeld.models.game import Round

WORD_FIELDS = ("userWord", "aiWord", "correctGuess")


def collect_unique_words(rows: Iterable[Dict[str, Any]]) -> List[str]:
    """
    Deduplicated, lower-cased string values of the word fields of *rows*,
    in first-seen order.  Missing or non-string values are ignored.
    """
    seen: Dict[str, None] = {}
    for row in rows:
        for field in WORD_FIELDS:
            value = row.get(field)
            if isinstance(value, str) and value.strip():
                seen.setdefault(value.strip().lower(), None)
    return list(seen)


def find_new_words(
    rounds: Sequence[Round],
    final_word: str,
    known_words: Iterable[str],
) -> List[str]:
    """Words from *rounds* and *final_word* that are not in *known_words* (case-insensitive)."""
    known = {w.lower() for w in known_words}
    new_words: List[str] = []
    for r in rounds:
        for word in (r.user_guess, r.ai_guess):
            if word and word.lower() not in known:
                new_words.append(word)
    if final_word and final_word.lower() not in known:
        new_words.append(final_word)
    return new_words
