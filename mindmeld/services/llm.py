"""
Completion client for the Ollama /api/generate endpoint.

Both the guess generator and the match judge talk to the language model
through :class:`OllamaLLMService`.  Unlike the embedding client, transport
failures are raised as :class:`LLMServiceError`: a guess or a match decision
cannot be silently degraded, so the caller has to see the outage.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

import httpx

from mindmeld.config import Settings
from mindmeld.exceptions import LLMServiceError

logger = logging.getLogger(__name__)


class OllamaLLMService:
    """
    Thin async wrapper over Ollama's non-streaming generate call.

    Limits concurrency to MAX_CONCURRENT simultaneous LLM calls.
    """

    MAX_CONCURRENT: int = 4

    def __init__(
        self,
        config: Settings,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = config.OLLAMA_BASE_URL
        self.model = model or config.OLLAMA_LLM_MODEL
        self.llm_timeout = float(config.OLLAMA_TIMEOUT)
        self.timeout = httpx.Timeout(self.llm_timeout, connect=10.0)
        self._transport = transport
        self._semaphore = asyncio.Semaphore(self.MAX_CONCURRENT)

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = 0.9,
        max_tokens: int = 16,
    ) -> str:
        """
        POST to Ollama /api/generate and return the response text.

        Raises:
            LLMServiceError: on timeout, connection failure or a non-200 response.
        """
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "num_predict": max_tokens,
                "temperature": temperature,
            },
        }
        if system:
            payload["system"] = system

        async with self._semaphore:
            t0 = time.perf_counter()
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self._transport
                ) as client:
                    resp = await client.post(f"{self.base_url}/api/generate", json=payload)
            except httpx.TimeoutException as exc:
                logger.error("complete: request timed out after %.0f s", self.llm_timeout)
                raise LLMServiceError(f"LLM request timed out: {exc}") from exc
            except httpx.HTTPError as exc:
                logger.error("complete: connection error — %s", exc)
                raise LLMServiceError(f"LLM unreachable: {exc}") from exc

        if resp.status_code != 200:
            logger.error(
                "complete: Ollama returned HTTP %d: %s",
                resp.status_code,
                resp.text[:300],
            )
            raise LLMServiceError(f"LLM returned HTTP {resp.status_code}")

        text = resp.json().get("response", "")
        logger.debug(
            "complete: model=%s → %r in %.1f ms",
            self.model,
            text[:40],
            (time.perf_counter() - t0) * 1000,
        )
        return text
