"""Domain models for the answer-input engine."""

import time
from dataclasses import dataclass, field
from enum import Enum

from .config import MIN_DIFFICULTY, MAX_DIFFICULTY


class CharStatus(str, Enum):
    CORRECT = 'correct'
    PARTIAL = 'partial'
    INCORRECT = 'incorrect'
    UNKNOWN = 'unknown'


class TacticType(str, Enum):
    """The six pressure tactics."""
    FALSE_FEEDBACK = 'false-feedback'
    MISLEADING_HINTS = 'misleading-hints'
    TIME_PRESSURE = 'time-pressure'
    SOCIAL_PRESSURE = 'social-pressure'
    CONFIDENCE_MANIPULATION = 'confidence-manipulation'
    RED_HERRINGS = 'red-herrings'


class Intensity(str, Enum):
    SUBTLE = 'subtle'
    MODERATE = 'moderate'
    AGGRESSIVE = 'aggressive'
    MAXIMUM = 'maximum'


class SuggestionTiming(str, Enum):
    IMMEDIATE = 'immediate'
    MODERATE = 'moderate'
    ON_REQUEST = 'on-request'
    NONE = 'none'


class MessageTone(str, Enum):
    HELPFUL = 'helpful'
    BALANCED = 'balanced'
    CHALLENGING = 'challenging'


class Urgency(str, Enum):
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'


class SessionStatus(str, Enum):
    ACTIVE = 'active'
    SOLVED = 'solved'
    ABANDONED = 'abandoned'


@dataclass(frozen=True)
class CursorPosition:
    start: int = 0
    end: int = 0

    def clamp(self, length: int) -> 'CursorPosition':
        """Keep both ends inside a text of the given length."""
        start = max(0, min(self.start, length))
        end = max(start, min(self.end, length))
        return CursorPosition(start, end)

    def to_dict(self) -> dict:
        return {'start': self.start, 'end': self.end}


@dataclass(frozen=True)
class EditSnapshot:
    """A recorded (text, cursor) pair used for undo/redo."""
    text: str
    cursor: CursorPosition = CursorPosition()
    timestamp: float = field(default_factory=time.time, compare=False)

    def to_dict(self) -> dict:
        return {'text': self.text, 'cursor': self.cursor.to_dict()}


@dataclass(frozen=True)
class WordPart:
    """A run of either word characters or whitespace, with its offset."""
    text: str
    is_space: bool
    index: int


@dataclass(frozen=True)
class CharacterValidation:
    index: int
    char: str
    status: CharStatus
    expected_char: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    word_valid: list[bool] = field(default_factory=list)
    char_status: list[CharStatus] = field(default_factory=list)
    word_parts: list[WordPart] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'word_valid': list(self.word_valid),
            'char_status': [s.value for s in self.char_status],
        }


@dataclass(frozen=True)
class CharacterSuggestion:
    position: int
    suggested_char: str
    confidence: float
    reason: str | None = None


@dataclass(frozen=True)
class WordSuggestion:
    word: str
    confidence: float
    reason: str | None = None


@dataclass(frozen=True)
class SuggestionResult:
    characters: list[CharacterSuggestion] = field(default_factory=list)
    words: list[WordSuggestion] = field(default_factory=list)
    from_fallback: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.characters and not self.words

    def to_dict(self) -> dict:
        return {
            'character_suggestions': [
                {'position': c.position, 'suggested_char': c.suggested_char,
                 'confidence': c.confidence, 'reason': c.reason}
                for c in self.characters
            ],
            'word_suggestions': [
                {'word': w.word, 'confidence': w.confidence, 'reason': w.reason}
                for w in self.words
            ],
            'from_fallback': self.from_fallback,
        }


@dataclass(frozen=True)
class ContextualHint:
    hint: str
    type: str = 'direction'
    urgency: Urgency = Urgency.MEDIUM
    from_fallback: bool = False

    def to_dict(self) -> dict:
        return {
            'hint': self.hint,
            'type': self.type,
            'urgency': self.urgency.value,
            'from_fallback': self.from_fallback,
        }


@dataclass(frozen=True)
class SuggestionContext:
    """Puzzle context forwarded with every content request."""
    difficulty: int
    puzzle_type: str | None = None
    puzzle: str | None = None


def clamp_difficulty(difficulty: int) -> int:
    return max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, int(difficulty)))


class AnswerSession:
    """State of one puzzle attempt."""

    def __init__(self, target_answer: str, difficulty: int, started_at: float, edit_history,
                 puzzle: str | None = None, puzzle_type: str | None = None):
        self._target_answer = target_answer
        self._difficulty = clamp_difficulty(difficulty)
        self._started_at = started_at
        self.puzzle = puzzle
        self.puzzle_type = puzzle_type
        self.current_input = ''
        self.cursor = CursorPosition()
        self.edit_history = edit_history
        self.status = SessionStatus.ACTIVE

    @property
    def target_answer(self) -> str:
        return self._target_answer

    @property
    def difficulty(self) -> int:
        return self._difficulty

    @property
    def started_at(self) -> float:
        return self._started_at

    @property
    def context(self) -> SuggestionContext:
        return SuggestionContext(self._difficulty, self.puzzle_type, self.puzzle)

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def elapsed(self, now: float) -> float:
        """Seconds since the attempt began."""
        return max(0.0, now - self._started_at)

    def to_dict(self) -> dict:
        return {
            'current_input': self.current_input,
            'cursor': self.cursor.to_dict(),
            'difficulty': self._difficulty,
            'puzzle_type': self.puzzle_type,
            'status': self.status.value,
            'can_undo': self.edit_history.can_undo(),
            'can_redo': self.edit_history.can_redo(),
        }
