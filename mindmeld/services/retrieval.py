"""
Retrieval & reranking of historical correct guesses.

Given the previous round's two words, the engine embeds up to three query
strings, searches the round history concurrently, and blends the hits:

* ``"<user> + <ai>"``: the combined pair, weight ``PAIR_WEIGHT`` (1.0)
* ``"<user>"`` / ``"<ai>"``: each word alone, weight ``WORD_WEIGHT`` (0.5)

A word found by several strategies keeps its best weighted score (never the
sum).  Any strategy that fails contributes nothing; retrieval never fails a
round.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Dict, List, Optional, Sequence

from mindmeld.config import Settings
from mindmeld.models.game import CandidateGuess
from mindmeld.services.lexical import is_same_word

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class QueryStrategy:
    """One similarity query issued against the round history."""

    query: str
    limit: int
    weight: float
    source: str


class RetrievalEngine:
    """Turns prior game words into a ranked list of candidate guesses."""

    def __init__(self, store, embedder, config: Settings) -> None:
        self.store = store
        self.embedder = embedder
        self.pair_limit = config.PAIR_QUERY_LIMIT
        self.word_limit = config.WORD_QUERY_LIMIT
        self.pair_weight = config.PAIR_WEIGHT
        self.word_weight = config.WORD_WEIGHT
        self.max_candidates = config.MAX_CANDIDATES
        self.include_word_queries = config.INCLUDE_WORD_QUERIES

    async def retrieve_context(
        self,
        prev_user_word: Optional[str],
        prev_ai_word: Optional[str],
    ) -> List[CandidateGuess]:
        """Ranked candidates for the round after *prev_user_word* / *prev_ai_word*."""
        user_word = (prev_user_word or "").strip()
        ai_word = (prev_ai_word or "").strip()
        if not user_word or not ai_word:
            return []

        strategies = [
            QueryStrategy(f"{user_word} + {ai_word}", self.pair_limit, self.pair_weight, "pair"),
        ]
        if self.include_word_queries:
            strategies.append(QueryStrategy(user_word, self.word_limit, self.word_weight, "word"))
            strategies.append(QueryStrategy(ai_word, self.word_limit, self.word_weight, "word"))

        return await self._run(strategies, exclude=(user_word, ai_word))

    async def retrieve_for_query(self, word: str) -> List[CandidateGuess]:
        """
        Legacy single-string form: ``"a + b"`` is routed to
        :meth:`retrieve_context`, a lone word runs one full-weight query.
        """
        parts = [p.strip() for p in word.split("+")]
        if len(parts) == 2 and all(parts):
            return await self.retrieve_context(parts[0], parts[1])

        word = word.strip()
        if not word:
            return []
        strategy = QueryStrategy(word, self.pair_limit, self.pair_weight, "pair")
        return await self._run([strategy], exclude=(word,))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run(
        self,
        strategies: Sequence[QueryStrategy],
        exclude: Sequence[str],
    ) -> List[CandidateGuess]:
        results = await asyncio.gather(
            *[self._search(s) for s in strategies],
            return_exceptions=True,
        )

        best: Dict[str, CandidateGuess] = {}
        for strategy, hits in zip(strategies, results):
            if isinstance(hits, Exception):
                logger.warning(
                    "retrieval: %s query %r failed: %s", strategy.source, strategy.query, hits
                )
                continue

            for record, similarity in hits:
                word = (record.get("correctGuess") or "").strip().lower()
                if not word or any(is_same_word(word, w) for w in exclude):
                    continue
                score = similarity * strategy.weight
                current = best.get(word)
                if current is None or score > current.score:
                    best[word] = CandidateGuess(word=word, score=score, source=strategy.source)

        ranked = sorted(best.values(), key=lambda c: c.score, reverse=True)
        ranked = ranked[: self.max_candidates]
        logger.info(
            "retrieval: %s → %s",
            " | ".join(s.query for s in strategies),
            [(c.word, round(c.score, 4)) for c in ranked],
        )
        return ranked

    async def _search(self, strategy: QueryStrategy):
        vector = await self.embedder.embed_text(strategy.query)
        if vector is None:
            raise RuntimeError("embedding unavailable")
        return await self.store.similarity_search(vector, strategy.limit)
