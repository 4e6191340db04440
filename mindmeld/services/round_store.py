"""
Round history store backed by PostgreSQL + pgvector.

Each public method opens its own session from the injected session factory,
so the retrieval engine can run several similarity searches concurrently
without sharing an ``AsyncSession`` (which is not safe for concurrent use).
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mindmeld.models.database_models import RoundRecord

logger = logging.getLogger(__name__)


def _vector_literal(vector: Sequence[float]) -> str:
    """pgvector expects the literal string ``"[a,b,c,...]"``."""
    return "[" + ",".join(f"{v:.8f}" for v in vector) + "]"


class RoundHistoryStore:
    """Persisted collection of past rounds with cosine similarity search."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def scan_all(self, limit: int = 10_000) -> List[Dict[str, Any]]:
        """
        Unfiltered scan of the round words, bounded by *limit* rows.

        Rows may repeat words; consumers deduplicate.
        """
        async with self._session_factory() as session:
            result = await session.execute(
                select(
                    RoundRecord.user_word,
                    RoundRecord.ai_word,
                    RoundRecord.correct_guess,
                ).limit(limit)
            )
            rows = result.all()

        return [
            {"userWord": user_word, "aiWord": ai_word, "correctGuess": correct_guess}
            for user_word, ai_word, correct_guess in rows
        ]

    async def similarity_search(
        self,
        query_vector: Sequence[float],
        limit: int,
    ) -> List[Tuple[Dict[str, Any], float]]:
        """
        Return up to *limit* rounds ordered by descending similarity to
        *query_vector*.

        Similarity is reported in [0, 1] as ``1 - cosine_distance / 2``
        (pgvector's ``<=>`` distance ranges over [0, 2]).
        """
        sql = text(
            """
            SELECT
                id,
                "roundNumber",
                "userWord",
                "aiWord",
                "correctGuess",
                1 - (vector <=> CAST(:embedding AS vector)) / 2 AS similarity
            FROM round_data
            ORDER BY vector <=> CAST(:embedding AS vector)
            LIMIT :limit
            """
        )
        async with self._session_factory() as session:
            result = await session.execute(
                sql, {"embedding": _vector_literal(query_vector), "limit": limit}
            )
            rows = result.mappings().all()

        return [
            (
                {
                    "id": row["id"],
                    "roundNumber": row["roundNumber"],
                    "userWord": row["userWord"],
                    "aiWord": row["aiWord"],
                    "correctGuess": row["correctGuess"],
                },
                float(row["similarity"]),
            )
            for row in rows
        ]

    async def next_id(self) -> int:
        """One past the current maximum id (0 for an empty store)."""
        async with self._session_factory() as session:
            max_id = (await session.execute(select(func.max(RoundRecord.id)))).scalar()
        return 0 if max_id is None else int(max_id) + 1

    async def insert_many(self, records: Sequence[RoundRecord]) -> int:
        """Insert one batch in a single transaction. Returns the batch size."""
        async with self._session_factory() as session:
            try:
                session.add_all(list(records))
                await session.commit()
            except Exception:
                await session.rollback()
                raise
        return len(records)

    async def count(self) -> int:
        async with self._session_factory() as session:
            return int((await session.execute(select(func.count(RoundRecord.id)))).scalar() or 0)
