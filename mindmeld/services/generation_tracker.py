"""
In-memory tracker for background AI guesses, one per game.

Usage
-----
    status = tracker.start(game_id, generator.generate_guess(...))
    # ... later, instead of polling on a timer:
    status = await tracker.wait(game_id)
"""
from __future__ import annotations

import asyncio
import dataclasses
import enum
import functools
import logging
import time
from typing import Any, Coroutine, Dict, Optional

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Generation phase enum
# ---------------------------------------------------------------------------

class GenerationPhase(str, enum.Enum):
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Generation status (mutable dataclass shared between task and waiter)
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class GenerationStatus:
    game_id: str
    phase: GenerationPhase = GenerationPhase.GENERATING
    result: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    started_at: float = dataclasses.field(default_factory=time.monotonic)
    completed_at: Optional[float] = None

    @property
    def is_generating(self) -> bool:
        return self.phase is GenerationPhase.GENERATING

    @property
    def elapsed_seconds(self) -> float:
        end = self.completed_at if self.completed_at else time.monotonic()
        return round(end - self.started_at, 2)


# ---------------------------------------------------------------------------
# Tracker
# ---------------------------------------------------------------------------

class GenerationInProgress(RuntimeError):
    """A guess is already being generated for this game."""


class GenerationTracker:
    """
    Owns the asyncio.Task generating each game's AI guess.

    Finished statuses stay readable for ``STATUS_TTL`` seconds, and at most
    ``MAX_FINISHED`` of them are kept; older ones are evicted on the next start.
    """

    STATUS_TTL: float = 600.0
    MAX_FINISHED: int = 1024

    def __init__(self) -> None:
        self._tasks: Dict[str, asyncio.Task] = {}
        self._status: Dict[str, GenerationStatus] = {}

    def is_generating(self, game_id: str) -> bool:
        task = self._tasks.get(game_id)
        return task is not None and not task.done()

    def get_status(self, game_id: str) -> Optional[GenerationStatus]:
        return self._status.get(game_id)

    def start(self, game_id: str, coro: Coroutine[Any, Any, Any]) -> GenerationStatus:
        """
        Launch a background generation for *game_id*.

        The returned status object is shared with the running task; its phase
        always ends as COMPLETED or FAILED, never stuck in GENERATING.
        """
        if self.is_generating(game_id):
            coro.close()
            raise GenerationInProgress(f"A guess is already being generated for game {game_id}")

        self._evict_finished()
        status = GenerationStatus(game_id=game_id)
        self._status.pop(game_id, None)
        self._status[game_id] = status

        async def _wrapper() -> None:
            try:
                status.result = await coro
                status.phase = GenerationPhase.COMPLETED
            except Exception as exc:
                logger.error("Guess generation failed for game %s: %s", game_id, exc)
                status.phase = GenerationPhase.FAILED
                status.error = str(exc)[:300]
                status.error_type = type(exc).__name__
            finally:
                status.completed_at = time.monotonic()
                if status.phase is GenerationPhase.GENERATING:
                    status.phase = GenerationPhase.FAILED
                    status.error = status.error or "generation cancelled"

        task = asyncio.create_task(_wrapper())
        self._tasks[game_id] = task
        task.add_done_callback(functools.partial(self._cleanup, game_id))

        logger.info("Guess generation started for game %s", game_id)
        return status

    async def wait(self, game_id: str) -> Optional[GenerationStatus]:
        """Await the in-flight generation for *game_id* (if any) and return its status."""
        task = self._tasks.get(game_id)
        if task is not None:
            await asyncio.shield(task)
        return self._status.get(game_id)

    def _cleanup(self, game_id: str, task: asyncio.Task) -> None:
        """Remove the reference to *task* unless a newer run has replaced it."""
        if self._tasks.get(game_id) is task:
            del self._tasks[game_id]

    def _evict_finished(self) -> None:
        """Drop finished statuses past their TTL, then the oldest beyond MAX_FINISHED."""
        now = time.monotonic()
        finished = [
            game_id
            for game_id, status in self._status.items()
            if not status.is_generating and status.completed_at is not None
        ]
        expired = [g for g in finished if now - self._status[g].completed_at >= self.STATUS_TTL]
        for game_id in expired:
            del self._status[game_id]

        remaining = [g for g in finished if g in self._status]
        overflow = len(remaining) - self.MAX_FINISHED
        for game_id in remaining[: max(overflow, 0)]:
            del self._status[game_id]
        if expired or overflow > 0:
            logger.debug("Evicted %d finished guess statuses", len(expired) + max(overflow, 0))
