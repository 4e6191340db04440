"""
Embedding generation service using Ollama API.

Provides:
- OllamaEmbeddingService: concurrency-limited, retrying, caching, normalizing embedder
- check_ollama_health / list_models: reachability checks used by /api/health
"""
from __future__ import annotations

import asyncio
import hashlib
import logging
import math
import time
from typing import Dict, List, Optional

import httpx

from mindmeld.config import Settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pure vector helpers
# ---------------------------------------------------------------------------

def _hash_text(content: str) -> str:
    """SHA-256 digest of a text string, used as cache key."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def _normalize(vector: List[float]) -> List[float]:
    """Return a unit-length copy of *vector*."""
    magnitude = math.sqrt(sum(x * x for x in vector))
    if magnitude == 0.0:
        return vector
    return [x / magnitude for x in vector]


# ---------------------------------------------------------------------------
# Main service class
# ---------------------------------------------------------------------------

class OllamaEmbeddingService:
    """
    Embedding generation via Ollama with production-quality safeguards:

    * Semaphore caps concurrent Ollama calls (MAX_CONCURRENT = 3)
    * Exponential-backoff retries on connection / HTTP errors (MAX_RETRIES = 3)
    * Unit-length normalization before storage
    * Per-instance content-hash cache: identical text is embedded only once

    Failures never raise: :meth:`embed_text` returns ``None`` and callers
    decide how to degrade.
    """

    MAX_CONCURRENT: int = 3
    MAX_RETRIES: int = 3
    CACHE_SIZE: int = 2048

    def __init__(
        self,
        config: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = config.OLLAMA_BASE_URL
        self.model = config.OLLAMA_EMBED_MODEL
        self.expected_dim = config.VECTOR_DIMENSION
        self.timeout = httpx.Timeout(60.0, connect=10.0)
        self._transport = transport
        self._semaphore = asyncio.Semaphore(self.MAX_CONCURRENT)
        self._cache: Dict[str, List[float]] = {}

    # ------------------------------------------------------------------
    # Primary API
    # ------------------------------------------------------------------

    async def embed_text(self, text: str) -> Optional[List[float]]:
        """
        Embed a single text string.

        Returns a normalized (unit-length) vector, or ``None`` on permanent
        failure.  Results are cached by SHA-256 of the stripped input text.
        """
        if not text or not text.strip():
            logger.warning("embed_text: received empty/blank text — skipping")
            return None

        text = text.strip()
        key = _hash_text(text)
        if key in self._cache:
            return self._cache[key]

        embedding = await self._call_ollama_with_retry(text)
        if embedding is not None:
            if len(self._cache) >= self.CACHE_SIZE:
                self._cache.pop(next(iter(self._cache)))
            self._cache[key] = embedding
        return embedding

    async def check_ollama_health(self) -> bool:
        """Return ``True`` if Ollama is reachable and returns HTTP 200."""
        return await self.list_models() is not None

    async def list_models(self) -> Optional[List[str]]:
        """Names of the models Ollama has pulled, or ``None`` if unreachable."""
        try:
            async with self._client(timeout=5.0) as client:
                resp = await client.get(f"{self.base_url}/api/tags")
            if resp.status_code != 200:
                return None
            return [m["name"] for m in resp.json().get("models", [])]
        except Exception as exc:
            logger.error("Ollama health check failed: %s", exc)
            return None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _client(self, timeout) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    async def _call_ollama_with_retry(self, text: str) -> Optional[List[float]]:
        """
        POST to Ollama /api/embeddings with up to MAX_RETRIES attempts.
        Uses the semaphore to cap concurrency.  Exponential backoff on
        transient errors (connection failures, non-200 responses).
        """
        async with self._semaphore:
            for attempt in range(1, self.MAX_RETRIES + 1):
                try:
                    t0 = time.perf_counter()
                    async with self._client(timeout=self.timeout) as client:
                        resp = await client.post(
                            f"{self.base_url}/api/embeddings",
                            json={"model": self.model, "prompt": text},
                        )
                    elapsed_ms = (time.perf_counter() - t0) * 1000

                    if resp.status_code != 200:
                        logger.error(
                            "Ollama /api/embeddings returned %d "
                            "(attempt %d/%d): %s",
                            resp.status_code,
                            attempt,
                            self.MAX_RETRIES,
                            resp.text[:300],
                        )
                        if attempt < self.MAX_RETRIES:
                            await asyncio.sleep(2 ** (attempt - 1))
                        continue

                    raw: Optional[List[float]] = resp.json().get("embedding")
                    if not raw:
                        logger.error(
                            "Ollama response missing 'embedding' field "
                            "(attempt %d/%d)",
                            attempt,
                            self.MAX_RETRIES,
                        )
                        if attempt < self.MAX_RETRIES:
                            await asyncio.sleep(2 ** (attempt - 1))
                        continue

                    if len(raw) != self.expected_dim:
                        logger.error(
                            "Dimension mismatch: expected %d, got %d",
                            self.expected_dim,
                            len(raw),
                        )
                        # The store's vector column is fixed-size
                        return None

                    normalized = _normalize(raw)
                    logger.debug(
                        "Embedded %r → %d-dim in %.1f ms",
                        text[:60],
                        self.expected_dim,
                        elapsed_ms,
                    )
                    return normalized

                except httpx.ConnectError as exc:
                    logger.warning(
                        "Ollama connect error (attempt %d/%d): %s",
                        attempt,
                        self.MAX_RETRIES,
                        exc,
                    )
                    if attempt < self.MAX_RETRIES:
                        await asyncio.sleep(2 ** (attempt - 1))

                except httpx.TimeoutException as exc:
                    logger.warning(
                        "Ollama timeout (attempt %d/%d): %s",
                        attempt,
                        self.MAX_RETRIES,
                        exc,
                    )
                    if attempt < self.MAX_RETRIES:
                        await asyncio.sleep(2 ** (attempt - 1))

                except Exception as exc:
                    logger.error("Unexpected error calling Ollama: %s", exc)
                    return None

        logger.error(
            "All %d embedding attempts failed for text %r",
            self.MAX_RETRIES,
            text[:60],
        )
        return None
