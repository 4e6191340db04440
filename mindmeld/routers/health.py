"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from datetime import datetime
import logging

from mindmeld.dependencies.services import get_dictionary, get_embedder, get_store
from mindmeld.models.schemas import HealthCheckResponse
from mindmeld.services.dictionary import WordDictionary
from mindmeld.services.embedding import OllamaEmbeddingService
from mindmeld.services.round_store import RoundHistoryStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=HealthCheckResponse)
async def health_check(
    store: RoundHistoryStore = Depends(get_store),
    embedder: OllamaEmbeddingService = Depends(get_embedder),
    dictionary: WordDictionary = Depends(get_dictionary),
):
    """
    Health check endpoint to verify system status.

    Returns:
        HealthCheckResponse with status of the round history and Ollama
    """
    # Check database connection
    db_status = "ok"
    rounds_stored = None
    try:
        rounds_stored = await store.count()
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "error"

    # Check Ollama connection
    ollama_status = "ok"
    try:
        if not await embedder.check_ollama_health():
            ollama_status = "error"
    except Exception as e:
        logger.error(f"Ollama health check failed: {e}")
        ollama_status = "error"

    overall_status = "healthy" if db_status == "ok" and ollama_status == "ok" else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        database=db_status,
        ollama=ollama_status,
        rounds_stored=rounds_stored,
        dictionary_words=len(dictionary),
        timestamp=datetime.utcnow()
    )
