"""Database, game and schema models for MindMeld."""
from mindmeld.models.database_models import RoundRecord
from mindmeld.models.game import CandidateGuess, Round, RoundRow
from mindmeld.models.schemas import (
    RoundResult,
    RecordRoundRequest,
    RecordRoundResponse,
    TopGuessesResponse,
    UniqueWordsResponse,
    GenerateGuessRequest,
    GenerateGuessResponse,
    MatchRequest,
    MatchResponse,
    HealthCheckResponse,
)

__all__ = [
    # Database models
    "RoundRecord",
    # Game types
    "CandidateGuess",
    "Round",
    "RoundRow",
    # Pydantic schemas
    "RoundResult",
    "RecordRoundRequest",
    "RecordRoundResponse",
    "TopGuessesResponse",
    "UniqueWordsResponse",
    "GenerateGuessRequest",
    "GenerateGuessResponse",
    "MatchRequest",
    "MatchResponse",
    "HealthCheckResponse",
]
