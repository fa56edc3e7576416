"""Completion estimate for the answer being typed."""

from .config import (
    PROGRESS_WORD_WEIGHT, PROGRESS_CHAR_WEIGHT,
    PROGRESS_FLOOR_TRIGGER, PROGRESS_FLOOR_BONUS, PROGRESS_FLOOR_CAP
)
from .models import CharStatus
from .utils import split_words
from .validation import AnswerValidator

PARTIAL_CHAR_CREDIT = 0.5


class ProgressEstimator:
    """Maps (input, target) to a completion score in [0, 1].

    The base score blends the fraction of target words already matched with
    the fraction of target characters typed correctly (near misses earn half
    credit). Progress is not monotonic: deleting text lowers it, so callers
    must not assume it only grows.

    Floor correction: any non-blank input whose base score is below 0.10 is
    reported as ``min(0.15, base + 0.05)``. This is intentional. Pressure
    tactics gate on ``min_progress`` thresholds close to zero, and without
    the floor a user who is typing but has not matched anything yet would
    never reach them.
    """

    def __init__(self, validator: AnswerValidator | None = None,
                 word_weight: float = PROGRESS_WORD_WEIGHT,
                 char_weight: float = PROGRESS_CHAR_WEIGHT):
        self.validator = validator or AnswerValidator()
        total = word_weight + char_weight
        self.word_weight = word_weight / total
        self.char_weight = char_weight / total

    def base_score(self, input: str, target: str) -> float:
        target_words = split_words(target)
        if not target_words or not input.strip():
            return 0.0

        valid_words = sum(self.validator.validate_words(input, target))
        word_fraction = min(1.0, valid_words / len(target_words))

        statuses = self.validator.validate_characters(input, target)
        credit = sum(
            1.0 if status == CharStatus.CORRECT else PARTIAL_CHAR_CREDIT
            for status in statuses
            if status in (CharStatus.CORRECT, CharStatus.PARTIAL)
        )
        char_fraction = min(1.0, credit / len(target))

        return self.word_weight * word_fraction + self.char_weight * char_fraction

    def estimate(self, input: str, target: str) -> float:
        if not input.strip():
            return 0.0
        if not target.strip():
            return 1.0
        if self.validator.is_correct(input, target):
            return 1.0
        base = self.base_score(input, target)
        if base < PROGRESS_FLOOR_TRIGGER:
            return min(PROGRESS_FLOOR_CAP, base + PROGRESS_FLOOR_BONUS)
        return max(0.0, min(1.0, base))
