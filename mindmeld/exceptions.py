"""
Exception types raised by the MindMeld services.
"""
from typing import List, Sequence


class MindMeldError(Exception):
    """Base class for service-level failures."""


class LLMServiceError(MindMeldError):
    """Raised when the completion model cannot be reached or returns an error."""


class GenerationExhausted(MindMeldError):
    """Raised when guess generation runs out of attempts without a valid word."""

    def __init__(self, attempts: int, rejected: Sequence[str]) -> None:
        self.attempts = attempts
        self.rejected: List[str] = list(rejected)
        super().__init__(
            f"No valid guess after {attempts} attempts "
            f"(rejected: {', '.join(self.rejected) or 'none'})"
        )


class RecordingError(MindMeldError):
    """Raised when a batch of finished rounds cannot be inserted."""

    def __init__(self, message: str, inserted: int = 0) -> None:
        self.inserted = inserted
        super().__init__(message)
