"""
Word list used to validate AI guesses.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, Set

logger = logging.getLogger(__name__)


class WordDictionary:
    """
    Lower-cased set of acceptable words.

    An empty dictionary means "no word list available": :meth:`accepts`
    then lets every word through so the game keeps working without one.
    """

    MIN_WORD_LENGTH: int = 2

    def __init__(self, words: Iterable[str] = ()) -> None:
        self._words: Set[str] = {
            w.strip().lower() for w in words if len(w.strip()) >= self.MIN_WORD_LENGTH
        }

    @classmethod
    def load(cls, path: str) -> "WordDictionary":
        """Read one word per line from *path*; a missing file yields an empty dictionary."""
        try:
            text = Path(path).read_text(encoding="utf-8", errors="ignore")
        except OSError as exc:
            logger.error("Could not load dictionary from %s: %s", path, exc)
            return cls()
        dictionary = cls(text.splitlines())
        logger.info("Loaded %d dictionary words from %s", len(dictionary), path)
        return dictionary

    @property
    def is_loaded(self) -> bool:
        return bool(self._words)

    def accepts(self, word: str) -> bool:
        if not self.is_loaded:
            return True
        return word.strip().lower() in self._words

    def __contains__(self, word: object) -> bool:
        return isinstance(word, str) and word.strip().lower() in self._words

    def __len__(self) -> int:
        return len(self._words)

    def __iter__(self) -> Iterator[str]:
        return iter(self._words)
