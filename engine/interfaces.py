"""Abstract base classes for dependency injection."""

from abc import ABC, abstractmethod

from .models import TacticType


class ContentServiceError(Exception):
    """The content-generation service could not produce a usable answer."""


class ContentProvider(ABC):
    """Abstract base class for the content-generation service.

    Methods are blocking; the engine runs them in an executor with a timeout.
    Any exception, a None result or an empty result is treated as the
    service being unavailable and replaced with local fallback content.
    """

    @abstractmethod
    def generate_suggestions(self, current_input: str, target: str, difficulty: int,
                             puzzle_type: str | None = None,
                             puzzle: str | None = None) -> dict | None:
        """Returns {'character_suggestions': [...], 'word_suggestions': [...]} or None."""
        pass

    @abstractmethod
    def generate_contextual_hint(self, current_input: str, target: str, difficulty: int,
                                 puzzle_type: str | None = None, puzzle: str | None = None,
                                 time_spent: float | None = None) -> dict | None:
        """Returns {'hint': str, 'type': str, 'urgency': 'low'|'medium'|'high'} or None."""
        pass

    @abstractmethod
    def generate_tactic_content(self, tactic: TacticType, puzzle: str | None, target: str,
                                difficulty: int, current_input: str,
                                progress: float | None = None,
                                time_spent: float | None = None) -> str | None:
        """Returns the text shown for a fired pressure tactic."""
        pass

    @abstractmethod
    def generate_feedback_message(self, current_input: str, target: str, difficulty: int,
                                  is_valid: bool, is_complete: bool) -> str:
        """Returns a short status line for the current input."""
        pass
