"""
Round recorder: persists a finished game so later games can retrieve it.

For every round the "correct guess" is derived after the fact: it is the
word the user actually played next (the following round's user guess), and
for the last round it is the final winning word.  Each surviving row is
embedded on its own, so one failed embedding only loses that row, and rows
are inserted in fixed-size batches.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import List, Sequence

from mindmeld.config import Settings
from mindmeld.exceptions import RecordingError
from mindmeld.models.database_models import RoundRecord
from mindmeld.models.game import Round, RoundRow

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class RecordSummary:
    """Returned by :meth:`RoundRecorder.record`."""

    recorded: int
    skipped: int
    rows: List[RoundRow]

    @property
    def message(self) -> str:
        learned = [f"{r.user_guess} | {r.ai_guess} => {r.correct_guess}" for r in self.rows]
        return f"Learning {self.recorded} correct guesses: {learned}"


def derive_correct_guesses(rounds: Sequence[Round], final_correct_guess: str) -> List[RoundRow]:
    """
    Attach the retrospective correct guess to each round.

    Round numbers default to the 1-based position when the caller omitted them.
    """
    rows = []
    for idx, r in enumerate(rounds):
        if idx < len(rounds) - 1:
            correct = rounds[idx + 1].user_guess or ""
        else:
            correct = final_correct_guess or ""
        rows.append(
            RoundRow(
                round_number=r.round_number if r.round_number is not None else idx + 1,
                user_guess=(r.user_guess or "").strip(),
                ai_guess=(r.ai_guess or "").strip(),
                correct_guess=correct.strip(),
            )
        )
    return rows


class RoundRecorder:
    """Derives, embeds and stores the rounds of a finished game."""

    def __init__(self, store, embedder, config: Settings) -> None:
        self.store = store
        self.embedder = embedder
        self.batch_size = config.RECORD_BATCH_SIZE

    async def record(self, rounds: Sequence[Round], final_correct_guess: str) -> RecordSummary:
        """
        Embed and insert every complete round.

        Raises:
            RecordingError: a batch insert failed; earlier batches stay stored.
        """
        rows = derive_correct_guesses(rounds, final_correct_guess)

        try:
            next_id = await self.store.next_id()
        except Exception as exc:
            logger.warning("record: could not determine max id, starting from 0: %s", exc)
            next_id = 0

        records: List[RoundRecord] = []
        kept: List[RoundRow] = []
        skipped = 0
        for row in rows:
            if not row.user_guess or not row.ai_guess or not row.correct_guess:
                logger.warning("record: skipping round %d, missing guess data", row.round_number)
                skipped += 1
                continue

            try:
                vector = await self.embedder.embed_text(row.embedding_input)
            except Exception as exc:
                logger.error("record: embedder raised for round %d: %s", row.round_number, exc)
                vector = None
            if vector is None:
                logger.error(
                    "record: embedding failed for round %d (%r), skipping",
                    row.round_number,
                    row.embedding_input,
                )
                skipped += 1
                continue

            records.append(
                RoundRecord(
                    id=next_id,
                    round_number=row.round_number,
                    user_word=row.user_guess,
                    ai_word=row.ai_guess,
                    correct_guess=row.correct_guess,
                    vector=vector,
                )
            )
            kept.append(row)
            next_id += 1

        inserted = 0
        for start in range(0, len(records), self.batch_size):
            batch = records[start : start + self.batch_size]
            batch_num = start // self.batch_size + 1
            try:
                inserted += await self.store.insert_many(batch)
            except Exception as exc:
                logger.error("record: batch %d (%d rows) failed: %s", batch_num, len(batch), exc)
                raise RecordingError(
                    f"Error inserting rows into round history (batch {batch_num}): {exc}",
                    inserted=inserted,
                ) from exc
            logger.info("record: batch %d inserted (%d rows)", batch_num, len(batch))

        summary = RecordSummary(recorded=inserted, skipped=skipped, rows=kept)
        logger.info("record: %s", summary.message)
        return summary
