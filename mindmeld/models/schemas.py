"""
Pydantic schemas for request/response validation.

Field names on the wire are camelCase to match the game client; Python
attributes stay snake_case through aliases.
"""
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum

from mindmeld.models.game import Round


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Round Schemas
class RoundResult(_CamelModel):
    """One round as sent by the game client."""

    round: Optional[int] = Field(None, ge=1)
    user_guess: str = Field("", alias="userGuess")
    ai_guess: str = Field("", alias="aiGuess")

    def to_round(self) -> Round:
        return Round(
            round_number=self.round,
            user_guess=self.user_guess,
            ai_guess=self.ai_guess,
        )


class RecordRoundRequest(_CamelModel):
    """Body of POST /record-round."""

    round_results: List[RoundResult] = Field(..., alias="roundResults")
    final_correct_guess: str = Field("", alias="finalCorrectGuess")


class RecordRoundResponse(BaseModel):
    """Result of recording a finished game."""

    message: str
    recorded: int = 0
    skipped: int = 0


# Retrieval Schemas
class TopGuessesResponse(_CamelModel):
    """Parallel-array encoding of ranked candidate guesses (index-aligned)."""

    top_guesses: List[str] = Field(default_factory=list, alias="topGuesses")
    similarity: List[float] = Field(default_factory=list)


class UniqueWordsResponse(_CamelModel):
    """Deduplicated lower-cased vocabulary of every stored round."""

    unique_words: List[str] = Field(default_factory=list, alias="uniqueWords")


class NewWordsRequest(_CamelModel):
    """Body of POST /new-words."""

    round_results: List[RoundResult] = Field(default_factory=list, alias="roundResults")
    final_word: str = Field(..., min_length=1, alias="finalWord")


class NewWordsResponse(_CamelModel):
    new_words: List[str] = Field(default_factory=list, alias="newWords")


# Generation Schemas
class CandidateSchema(BaseModel):
    word: str
    score: float


class GenerateGuessRequest(_CamelModel):
    """Body of POST /generate-guess and POST /games/{id}/ai-guess."""

    prev_user_word: Optional[str] = Field(None, alias="prevUserWord")
    prev_ai_word: Optional[str] = Field(None, alias="prevAiWord")
    round_results: List[RoundResult] = Field(default_factory=list, alias="roundResults")

    @model_validator(mode="after")
    def check_previous_pair(self) -> "GenerateGuessRequest":
        """Previous words come as a pair: both for a later round, neither for the first."""
        has_user = bool((self.prev_user_word or "").strip())
        has_ai = bool((self.prev_ai_word or "").strip())
        if has_user != has_ai:
            raise ValueError("prevUserWord and prevAiWord must be given together")
        return self


class GenerateGuessResponse(BaseModel):
    """A validated AI guess."""

    guess: str
    attempts: int
    rejected: List[str] = Field(default_factory=list)
    candidates: List[CandidateSchema] = Field(default_factory=list)


class GenerationPhaseSchema(str, Enum):
    """Lifecycle of a background AI guess."""

    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


class GenerationStatusResponse(BaseModel):
    """Status of a background AI guess for one game."""

    game_id: str
    phase: GenerationPhaseSchema
    is_generating: bool
    result: Optional[GenerateGuessResponse] = None
    error: Optional[str] = None
    elapsed_seconds: float = 0.0


# Match Schemas
class MatchRequest(_CamelModel):
    user_guess: str = Field(..., min_length=1, alias="userGuess")
    ai_guess: str = Field(..., min_length=1, alias="aiGuess")


class MatchResponse(BaseModel):
    match: bool


# Health Schemas
class HealthCheckResponse(BaseModel):
    """Schema for health check response."""

    status: str
    database: str
    ollama: str
    rounds_stored: Optional[int] = None
    dictionary_words: int = 0
    timestamp: datetime
