"""
Round history endpoints.

Routes
------
GET  /api/get-rounds     — ranked historical correct guesses for a word pair
GET  /api/get-all-words  — every word the round history has seen
POST /api/record-round   — persist a finished game
POST /api/new-words      — which words of a finished game are new to the store
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from mindmeld.config import Settings
from mindmeld.dependencies.services import get_config, get_recorder, get_retrieval, get_store
from mindmeld.exceptions import RecordingError
from mindmeld.models.schemas import (
    NewWordsRequest,
    NewWordsResponse,
    RecordRoundRequest,
    RecordRoundResponse,
    TopGuessesResponse,
    UniqueWordsResponse,
)
from mindmeld.services.retrieval import RetrievalEngine
from mindmeld.services.round_recorder import RoundRecorder
from mindmeld.services.round_store import RoundHistoryStore
from mindmeld.services.vocabulary import collect_unique_words, find_new_words

logger = logging.getLogger(__name__)

router = APIRouter()


async def _scan_unique_words(store: RoundHistoryStore, config: Settings):
    try:
        rows = await store.scan_all(limit=config.SCAN_ROW_LIMIT)
    except Exception as exc:
        logger.error("get-all-words: scan failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Round history is not available.",
        )
    words = collect_unique_words(rows)
    logger.info("Found %d rows, extracted %d unique words", len(rows), len(words))
    return words


# ---------------------------------------------------------------------------
# GET /get-rounds
# ---------------------------------------------------------------------------

@router.get("/get-rounds", response_model=TopGuessesResponse)
async def get_rounds(
    user_word: Optional[str] = Query(None, alias="userWord"),
    ai_word: Optional[str] = Query(None, alias="aiWord"),
    word: Optional[str] = Query(None, description="Legacy form: '<userWord> + <aiWord>'"),
    retrieval: RetrievalEngine = Depends(get_retrieval),
) -> TopGuessesResponse:
    """
    Ranked candidate guesses from past games, as index-aligned
    ``topGuesses`` / ``similarity`` arrays.  Store or embedding outages
    degrade to empty arrays.
    """
    if user_word and ai_word:
        candidates = await retrieval.retrieve_context(user_word, ai_word)
    elif word and word.strip():
        candidates = await retrieval.retrieve_for_query(word)
    else:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Missing "userWord" and "aiWord" (or legacy "word") query parameters',
        )

    return TopGuessesResponse(
        top_guesses=[c.word for c in candidates],
        similarity=[c.score for c in candidates],
    )


# ---------------------------------------------------------------------------
# GET /get-all-words
# ---------------------------------------------------------------------------

@router.get("/get-all-words", response_model=UniqueWordsResponse)
async def get_all_words(
    store: RoundHistoryStore = Depends(get_store),
    config: Settings = Depends(get_config),
) -> UniqueWordsResponse:
    """Deduplicated lower-cased vocabulary of all stored rounds."""
    return UniqueWordsResponse(unique_words=await _scan_unique_words(store, config))


# ---------------------------------------------------------------------------
# POST /record-round
# ---------------------------------------------------------------------------

@router.post("/record-round", response_model=RecordRoundResponse)
async def record_round(
    request: RecordRoundRequest,
    recorder: RoundRecorder = Depends(get_recorder),
) -> RecordRoundResponse:
    """
    Derive each round's correct guess, embed it, and insert it into the
    round history.  A failed batch returns 500; the game itself stands.
    """
    if not request.round_results:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing or invalid roundResults data",
        )

    rounds = [r.to_round() for r in request.round_results]
    try:
        summary = await recorder.record(rounds, request.final_correct_guess)
    except RecordingError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"{exc} ({exc.inserted} rows stored before the failure)",
        )

    return RecordRoundResponse(
        message=summary.message,
        recorded=summary.recorded,
        skipped=summary.skipped,
    )


# ---------------------------------------------------------------------------
# POST /new-words
# ---------------------------------------------------------------------------

@router.post("/new-words", response_model=NewWordsResponse)
async def new_words(
    request: NewWordsRequest,
    store: RoundHistoryStore = Depends(get_store),
    config: Settings = Depends(get_config),
) -> NewWordsResponse:
    """Words of a finished game that no stored round contains yet."""
    known = await _scan_unique_words(store, config)
    rounds = [r.to_round() for r in request.round_results]
    return NewWordsResponse(new_words=find_new_words(rounds, request.final_word, known))
