"""
In-memory stand-ins for the round history store, the embedding client and
the completion model.  They follow the same async interfaces as the real
services, so the real retrieval / generation / recording code runs on top.
"""
from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from mindmeld.exceptions import LLMServiceError


class TextVector(list):
    """A fake embedding that remembers which text produced it."""

    def __init__(self, text: str) -> None:
        super().__init__([float(len(text)), 1.0, 0.0, 0.0])
        self.text = text


class FakeEmbedder:
    def __init__(self, fail_on: Sequence[str] = (), raise_on: Sequence[str] = ()) -> None:
        self.fail_on = set(fail_on)
        self.raise_on = set(raise_on)
        self.calls: List[str] = []
        self.healthy = True

    async def embed_text(self, text: str) -> Optional[List[float]]:
        self.calls.append(text)
        if text in self.raise_on:
            raise RuntimeError(f"embedding exploded for {text!r}")
        if text in self.fail_on:
            return None
        return TextVector(text)

    async def check_ollama_health(self) -> bool:
        return self.healthy

    async def list_models(self):
        return ["nomic-embed-text:latest"] if self.healthy else None


Hit = Tuple[Dict[str, object], float]


def hit(correct_guess: str, similarity: float, user_word: str = "x", ai_word: str = "y") -> Hit:
    return (
        {"userWord": user_word, "aiWord": ai_word, "correctGuess": correct_guess},
        similarity,
    )


class FakeStore:
    """Search results are keyed by the query text that produced the vector."""

    def __init__(
        self,
        results: Optional[Dict[str, List[Hit]]] = None,
        rows: Optional[List[Dict[str, object]]] = None,
    ) -> None:
        self.results = results or {}
        self.rows = rows or []
        self.failing_queries: set = set()
        self.searches: List[Tuple[str, int]] = []
        self.inserted: List[list] = []
        self.max_id: Optional[int] = None
        self.next_id_error: Optional[Exception] = None
        self.fail_batch: Optional[int] = None  # 1-based batch number to fail
        self.scan_error: Optional[Exception] = None

    async def similarity_search(self, query_vector, limit: int) -> List[Hit]:
        text = query_vector.text
        self.searches.append((text, limit))
        if text in self.failing_queries:
            raise ConnectionError("store unreachable")
        hits = sorted(self.results.get(text, []), key=lambda h: h[1], reverse=True)
        return hits[:limit]

    async def scan_all(self, limit: int = 10_000) -> List[Dict[str, object]]:
        if self.scan_error is not None:
            raise self.scan_error
        return list(self.rows[:limit])

    async def next_id(self) -> int:
        if self.next_id_error is not None:
            raise self.next_id_error
        return 0 if self.max_id is None else self.max_id + 1

    async def insert_many(self, records) -> int:
        if self.fail_batch is not None and len(self.inserted) + 1 == self.fail_batch:
            raise ConnectionError("insert failed")
        self.inserted.append(list(records))
        return len(records)

    async def count(self) -> int:
        return len(self.rows)


Response = Union[str, Exception]


class FakeLLM:
    """
    Replays scripted responses in order (the last one repeats).  A callable
    script receives the prompt and returns the response.
    """

    def __init__(self, script: Union[Sequence[Response], Callable[[str], Response]] = ("word",)) -> None:
        self.script = script
        self.calls: List[Dict[str, object]] = []
        self.gate: Optional[asyncio.Event] = None

    @property
    def prompts(self) -> List[str]:
        return [c["prompt"] for c in self.calls]

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = 0.9,
        max_tokens: int = 16,
    ) -> str:
        self.calls.append(
            {"prompt": prompt, "system": system, "temperature": temperature, "max_tokens": max_tokens}
        )
        if self.gate is not None:
            await self.gate.wait()

        if callable(self.script):
            response = self.script(prompt)
        else:
            idx = min(len(self.calls) - 1, len(self.script) - 1)
            response = self.script[idx]

        if isinstance(response, Exception):
            raise response
        return response


def unreachable_llm() -> FakeLLM:
    return FakeLLM([LLMServiceError("LLM unreachable: connection refused")])
