"""
AI guess generation: a bounded generate → validate → retry loop.

Public API
----------
GuessGenerator.generate_guess(prev_user_word, prev_ai_word, round_history, dictionary)
    -> GuessResult, or raises GenerationExhausted
GuessGenerator.is_generating / wait_until_idle()
    -> lets the caller await an in-flight guess instead of polling

Each attempt asks the completion model for one word.  A word that is not in
the dictionary, or is a lexical variant of a word already played (or already
rejected in this call), goes onto the exclusion list and the model is asked
again with that list in the prompt.  The loop stops after
``MAX_GENERATION_ATTEMPTS``.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import random
import re
from typing import List, Optional, Sequence

from mindmeld.config import Settings
from mindmeld.exceptions import GenerationExhausted
from mindmeld.models.game import CandidateGuess, Round
from mindmeld.services.dictionary import WordDictionary
from mindmeld.services.lexical import is_previously_used, used_words

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Prompt templates
# ---------------------------------------------------------------------------

SEED_ALPHABET = "abcdefghijklmnopqrstuvwy"
SEED_LENGTH = 16

_GAME_INTRO = (
    "You are playing a word-association game. Your partner is about to guess a word. "
    "The goal is for you and your play partner to independently guess the same word."
)

_FIRST_ROUND_PROMPT = """\
This is the first round. Create your word. It should be a single English noun, verb, \
adverb, or adjective. It must start with the letter '{first}'. Either the second or \
third letter must be '{second}'. Use at least one other letter from the following: \
'{rest}'. The only exception to these rules is if no words can be made with the \
assigned letters. In that case, create any word.\
"""

_RELATION_PROMPT = "What single word relates to both '{user_word}' and '{ai_word}'?"

_HINT_PROMPT = "Most likely answers based on previous games: {hints}"

_STRICT_RULE = (
    "# *STRICT RULE: Your response must be only a single word. "
    "Do not use any previous round's words.*"
)

_FORBIDDEN = "FORBIDDEN WORDS: {words}!"

_WORD_RE = re.compile(r"[A-Za-z]+(?:['-][A-Za-z]+)*")


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class GuessResult:
    """A validated guess plus how it was reached."""

    word: str
    attempts: int
    rejected: List[str]
    candidates: List[CandidateGuess]
    seed: Optional[str] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_seed(rng: random.Random) -> str:
    """Shuffle the seed alphabet and keep the first 16 letters."""
    letters = list(SEED_ALPHABET)
    rng.shuffle(letters)
    return "".join(letters[:SEED_LENGTH])


def extract_word(response: str) -> str:
    """First word-like token of a model response, lower-cased ("" if none)."""
    match = _WORD_RE.search(response or "")
    return match.group(0).lower() if match else ""


def build_prompt(
    prev_user_word: Optional[str],
    prev_ai_word: Optional[str],
    candidates: Sequence[CandidateGuess] = (),
    excluded: Sequence[str] = (),
    seed: Optional[str] = None,
) -> str:
    """Assemble the generation prompt for one attempt."""
    parts = [_GAME_INTRO]
    if (prev_user_word or "").strip() and (prev_ai_word or "").strip():
        parts.append(_RELATION_PROMPT.format(user_word=prev_user_word, ai_word=prev_ai_word))
        if candidates:
            hints = ", ".join(f"{c.word} (score: {c.score:.3f})" for c in candidates)
            parts.append(_HINT_PROMPT.format(hints=hints))
    elif seed:
        parts.append(_FIRST_ROUND_PROMPT.format(first=seed[0], second=seed[1], rest=seed[2:]))

    parts.append(_STRICT_RULE)
    if excluded:
        parts.append(_FORBIDDEN.format(words=", ".join(excluded)))
    return "\n\n".join(parts)


# ---------------------------------------------------------------------------
# Main service class
# ---------------------------------------------------------------------------

class GuessGenerator:
    """Produces the AI's guess for a round."""

    MAX_TOKENS: int = 16

    def __init__(
        self,
        llm,
        retrieval,
        config: Settings,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.llm = llm
        self.retrieval = retrieval
        self.max_attempts = config.MAX_GENERATION_ATTEMPTS
        self.temperature = config.GUESS_TEMPERATURE
        self._rng = rng or random.Random()
        self._idle = asyncio.Event()
        self._idle.set()
        self._in_flight = 0

    @property
    def is_generating(self) -> bool:
        return not self._idle.is_set()

    async def wait_until_idle(self) -> None:
        """Return once no generation is in flight."""
        await self._idle.wait()

    async def generate_guess(
        self,
        prev_user_word: Optional[str],
        prev_ai_word: Optional[str],
        round_history: Sequence[Round],
        dictionary: WordDictionary,
    ) -> GuessResult:
        """
        Generate a dictionary word not yet used in the game.

        Raises:
            GenerationExhausted: no valid word within ``max_attempts``.
            LLMServiceError: the completion model is unreachable.
        """
        self._in_flight += 1
        self._idle.clear()
        try:
            return await self._generate(prev_user_word, prev_ai_word, round_history, dictionary)
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.set()

    async def _generate(
        self,
        prev_user_word: Optional[str],
        prev_ai_word: Optional[str],
        round_history: Sequence[Round],
        dictionary: WordDictionary,
    ) -> GuessResult:
        # Without both previous words there is nothing to relate to
        first_round = not ((prev_user_word or "").strip() and (prev_ai_word or "").strip())
        seed = make_seed(self._rng) if first_round else None
        candidates: List[CandidateGuess] = []
        if not first_round:
            candidates = await self.retrieval.retrieve_context(prev_user_word, prev_ai_word)

        history = list(round_history)
        rejected: List[str] = []
        # Exclusion set: every word already played, then each rejection in order
        excluded = list(dict.fromkeys(used_words(history, prev_user_word, prev_ai_word)))

        for attempt in range(1, self.max_attempts + 1):
            prompt = build_prompt(prev_user_word, prev_ai_word, candidates, excluded, seed)
            response = await self.llm.complete(
                prompt, temperature=self.temperature, max_tokens=self.MAX_TOKENS
            )
            word = extract_word(response)

            reason = self._rejection_reason(word, excluded, dictionary)
            if reason is None:
                logger.info("generate_guess: %r accepted on attempt %d", word, attempt)
                return GuessResult(
                    word=word,
                    attempts=attempt,
                    rejected=rejected,
                    candidates=candidates,
                    seed=seed,
                )

            logger.info(
                "generate_guess: rejected %r (%s), attempt %d/%d",
                word or response[:40],
                reason,
                attempt,
                self.max_attempts,
            )
            if word and word not in rejected:
                rejected.append(word)
            if word and word not in excluded:
                excluded.append(word)

        logger.error(
            "generate_guess: exhausted %d attempts (rejected: %s)", self.max_attempts, rejected
        )
        raise GenerationExhausted(self.max_attempts, rejected)

    @staticmethod
    def _rejection_reason(
        word: str,
        excluded: Sequence[str],
        dictionary: WordDictionary,
    ) -> Optional[str]:
        if not word:
            return "empty response"
        if not dictionary.accepts(word):
            return "not in dictionary"
        if is_previously_used(word, (), *excluded):
            return "previously used"
        return None
