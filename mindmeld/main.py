"""
Main FastAPI application for the MindMeld backend.
Handles CORS, request logging middleware, lifespan events, and router registration.
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mindmeld.config import settings
from mindmeld.database import AsyncSessionLocal, close_db, init_db
from mindmeld.dependencies.services import build_services
from mindmeld.routers import guesses, health, rounds

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Startup / shutdown helpers
# ---------------------------------------------------------------------------

async def _check_database() -> bool:
    """Initialise the round_data table and verify the connection."""
    try:
        await init_db()
        logger.info("✓ Database connection OK")
        return True
    except Exception as exc:
        logger.error("✗ Database connection failed: %s", exc)
        raise


async def _check_ollama(embedder) -> dict:
    """
    Verify Ollama is reachable and check that the required models are available.
    Returns a dict with status info.  Never raises; warnings are logged instead.
    """
    result = {"reachable": False, "embed_model": False, "llm_model": False, "models": []}
    available = await embedder.list_models()
    if available is None:
        logger.error("✗ Ollama unreachable — embedding and LLM features will fail")
        return result

    result["reachable"] = True
    result["models"] = available
    logger.info("✓ Ollama reachable — available models: %s", available)

    for key, model in (
        ("embed_model", settings.OLLAMA_EMBED_MODEL),
        ("llm_model", settings.OLLAMA_LLM_MODEL),
    ):
        # Partial match so "nomic-embed-text:latest" still matches
        result[key] = any(
            m == model or m.startswith(model.split(":")[0]) for m in available
        )
        if result[key]:
            logger.info("  ✓ Model '%s' is available", model)
        else:
            logger.warning("  ⚠ Model '%s' not found — run: ollama pull %s", model, model)
    return result


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown event handler."""
    logger.info("=" * 60)
    logger.info("  Starting MindMeld backend …")
    logger.info("=" * 60)

    # 1 — Database (required; raises on failure)
    await _check_database()

    # 2 — Services, built from one explicit Settings object
    services = build_services(settings, AsyncSessionLocal)
    app.state.services = services
    if not services.dictionary.is_loaded:
        logger.warning(
            "⚠ Dictionary %s is empty or missing — AI guesses will not be "
            "checked against a word list",
            settings.DICTIONARY_PATH,
        )

    # 3 — Ollama (optional; logs warnings but continues)
    ollama_status = await _check_ollama(services.embedder)
    if not ollama_status["reachable"]:
        logger.warning(
            "Ollama is not running.  Start it with: ollama serve\n"
            "  Guess generation and round recording will be unavailable until Ollama is up."
        )

    logger.info("=" * 60)
    logger.info("  MindMeld backend ready on http://%s:%d", settings.HOST, settings.PORT)
    logger.info("  Swagger UI : http://%s:%d/docs", settings.HOST, settings.PORT)
    logger.info("  Health     : http://%s:%d/api/health", settings.HOST, settings.PORT)
    logger.info("=" * 60)

    yield  # ← server is running

    logger.info("Shutting down MindMeld backend …")
    await close_db()
    logger.info("✓ Shutdown complete.")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="MindMeld API",
    description=(
        "**MindMeld**: a word-association game where you and the AI try to "
        "land on the same word.\n\n"
        "Key endpoints:\n"
        "- `GET  /api/get-rounds` — ranked guesses from past games\n"
        "- `POST /api/generate-guess` — the AI's next guess\n"
        "- `POST /api/check-match` — do two guesses match?\n"
        "- `POST /api/record-round` — learn from a finished game\n"
        "- `GET  /api/get-all-words` — every word seen so far\n"
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every request with method, path, status code, and elapsed time.
    Attaches an ``X-Process-Time`` header (milliseconds) to every response.
    """
    t0 = time.monotonic()
    response = await call_next(request)
    elapsed_ms = round((time.monotonic() - t0) * 1000, 2)

    # Skip noisy health-check polling from the frontend
    if request.url.path not in ("/api/health/", "/api/health", "/"):
        logger.info(
            "%s %s → %d  (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    return response


# ---------------------------------------------------------------------------
# Global exception handler
# ---------------------------------------------------------------------------

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return a structured JSON error for any unhandled exception."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": str(exc),
            "path": str(request.url.path),
            "timestamp": datetime.utcnow().isoformat(),
        },
    )


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(health.router,   prefix="/api/health", tags=["Health"])
app.include_router(rounds.router,   prefix="/api",        tags=["Rounds"])
app.include_router(guesses.router,  prefix="/api",        tags=["Guesses"])


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

@app.get("/", tags=["Root"], include_in_schema=False)
async def root():
    """API root: basic service info."""
    return {
        "name": "MindMeld API",
        "version": "0.1.0",
        "description": "Word-association game backend",
        "docs": "/docs",
        "health": "/api/health",
        "endpoints": {
            "get_rounds": "/api/get-rounds",
            "get_all_words": "/api/get-all-words",
            "record_round": "/api/record-round",
            "new_words": "/api/new-words",
            "generate_guess": "/api/generate-guess",
            "check_match": "/api/check-match",
            "ai_guess": "/api/games/{game_id}/ai-guess",
        },
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "mindmeld.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level="info",
    )
