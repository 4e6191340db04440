"""
Match judge: decides whether the two players' words count as the same word.
"""
from __future__ import annotations

import logging

from mindmeld.services.lexical import is_same_word

logger = logging.getLogger(__name__)

_JUDGE_SYSTEM = (
    "Determine if the following two words are the same. Ignore capitalization, spacing, "
    "and allow for reasonable spelling mistakes. Words which have the same root but are "
    "different tenses or grammatical forms may be considered the same, for example "
    "'running' and 'runner', 'jumping' and 'jump', 'perform' and 'performance', 'vote' "
    "and 'votes', 'create' and 'creator', etc. would be considered the same. "
    "Return only `true` or `false`."
)

_JUDGE_PROMPT = "Word 1: {word_a}\nWord 2: {word_b}"


class MatchJudge:
    """
    Lexical variants match immediately; everything else is put to the judge
    model, and only an exact ``true`` answer counts.  Malformed or empty model
    output is a miss.
    """

    MAX_TOKENS: int = 5

    def __init__(self, llm) -> None:
        self.llm = llm

    async def is_match(self, word_a: str, word_b: str) -> bool:
        a = word_a.strip().lower()
        b = word_b.strip().lower()
        if not a or not b:
            return False
        if is_same_word(a, b):
            return True

        response = await self.llm.complete(
            _JUDGE_PROMPT.format(word_a=a, word_b=b),
            system=_JUDGE_SYSTEM,
            temperature=0.0,
            max_tokens=self.MAX_TOKENS,
        )
        verdict = response.strip() == "true"
        logger.info("is_match: %r vs %r → %r (%s)", a, b, response.strip()[:20], verdict)
        return verdict
