"""
In-memory game types shared by the services.
"""
from __future__ import annotations

import dataclasses
from typing import Optional


@dataclasses.dataclass(frozen=True)
class Round:
    """One user-guess / AI-guess pair within a game session."""

    round_number: Optional[int]
    user_guess: str
    ai_guess: str


@dataclasses.dataclass(frozen=True)
class CandidateGuess:
    """A historical correct guess surfaced by retrieval, already weighted."""

    word: str
    score: float
    source: str = "pair"  # "pair" or "word"


@dataclasses.dataclass
class RoundRow:
    """A round prepared for persistence, with its derived correct guess."""

    round_number: int
    user_guess: str
    ai_guess: str
    correct_guess: str

    @property
    def embedding_input(self) -> str:
        return f"{self.user_guess} + {self.ai_guess} = {self.correct_guess}"
