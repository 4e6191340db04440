"""
AI guess and match endpoints.

Routes
------
POST /api/generate-guess             — generate the AI's guess and wait for it
POST /api/check-match                — do the two guesses count as the same word?
POST /api/games/{game_id}/ai-guess   — start generating in the background (202)
GET  /api/games/{game_id}/ai-guess   — status of that guess; ``?wait=true`` awaits it
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mindmeld.dependencies.services import (
    get_dictionary,
    get_generator,
    get_judge,
    get_tracker,
)
from mindmeld.exceptions import GenerationExhausted, LLMServiceError
from mindmeld.models.schemas import (
    CandidateSchema,
    GenerateGuessRequest,
    GenerateGuessResponse,
    GenerationPhaseSchema,
    GenerationStatusResponse,
    MatchRequest,
    MatchResponse,
)
from mindmeld.services.dictionary import WordDictionary
from mindmeld.services.generation_tracker import (
    GenerationInProgress,
    GenerationStatus,
    GenerationTracker,
)
from mindmeld.services.guess_generator import GuessGenerator, GuessResult
from mindmeld.services.match_judge import MatchJudge

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(result: GuessResult) -> GenerateGuessResponse:
    return GenerateGuessResponse(
        guess=result.word,
        attempts=result.attempts,
        rejected=result.rejected,
        candidates=[CandidateSchema(word=c.word, score=c.score) for c in result.candidates],
    )


def _to_status(status_obj: GenerationStatus) -> GenerationStatusResponse:
    return GenerationStatusResponse(
        game_id=status_obj.game_id,
        phase=GenerationPhaseSchema(status_obj.phase.value),
        is_generating=status_obj.is_generating,
        result=_to_response(status_obj.result) if status_obj.result is not None else None,
        error=status_obj.error,
        elapsed_seconds=status_obj.elapsed_seconds,
    )


# ---------------------------------------------------------------------------
# POST /generate-guess
# ---------------------------------------------------------------------------

@router.post("/generate-guess", response_model=GenerateGuessResponse)
async def generate_guess(
    request: GenerateGuessRequest,
    generator: GuessGenerator = Depends(get_generator),
    dictionary: WordDictionary = Depends(get_dictionary),
) -> GenerateGuessResponse:
    """
    Generate a dictionary word the game has not used yet.

    422 when no valid word was found within the attempt limit,
    503 when the language model is unavailable.
    """
    rounds = [r.to_round() for r in request.round_results]
    try:
        result = await generator.generate_guess(
            request.prev_user_word, request.prev_ai_word, rounds, dictionary
        )
    except GenerationExhausted as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    except LLMServiceError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return _to_response(result)


# ---------------------------------------------------------------------------
# POST /check-match
# ---------------------------------------------------------------------------

@router.post("/check-match", response_model=MatchResponse)
async def check_match(
    request: MatchRequest,
    judge: MatchJudge = Depends(get_judge),
) -> MatchResponse:
    """Ask the match judge whether the two guesses are the same word."""
    try:
        match = await judge.is_match(request.user_guess, request.ai_guess)
    except LLMServiceError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
    return MatchResponse(match=match)


# ---------------------------------------------------------------------------
# Background generation per game
# ---------------------------------------------------------------------------

@router.post(
    "/games/{game_id}/ai-guess",
    response_model=GenerationStatusResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def start_ai_guess(
    game_id: str,
    request: GenerateGuessRequest,
    generator: GuessGenerator = Depends(get_generator),
    dictionary: WordDictionary = Depends(get_dictionary),
    tracker: GenerationTracker = Depends(get_tracker),
) -> GenerationStatusResponse:
    """Start generating the AI's guess for *game_id*; 409 if one is already running."""
    rounds = [r.to_round() for r in request.round_results]
    try:
        status_obj = tracker.start(
            game_id,
            generator.generate_guess(
                request.prev_user_word, request.prev_ai_word, rounds, dictionary
            ),
        )
    except GenerationInProgress as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return _to_status(status_obj)


@router.get("/games/{game_id}/ai-guess", response_model=GenerationStatusResponse)
async def get_ai_guess(
    game_id: str,
    wait: bool = Query(False, description="Block until the guess is finished"),
    tracker: GenerationTracker = Depends(get_tracker),
) -> GenerationStatusResponse:
    """Current status of the game's AI guess; with ``wait=true`` awaits completion."""
    status_obj = await tracker.wait(game_id) if wait else tracker.get_status(game_id)
    if status_obj is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No AI guess started for game {game_id}.",
        )
    return _to_status(status_obj)
