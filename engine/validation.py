"""Word- and character-level validation of typed input against the answer."""

from .config import CHAR_PARTIAL_THRESHOLD, FUZZY_MATCH_THRESHOLD, WORD_MATCH_THRESHOLD
from .models import CharacterValidation, CharStatus, ValidationResult
from .utils import calculate_similarity, normalize_string, split_words, split_words_preserving_spaces

# Sound-alike substitutions people commonly make when guessing a spelling
CHAR_SUBSTITUTIONS = {
    'a': 'eo',
    'e': 'ai',
    'i': 'ey',
    'o': 'au',
    'u': 'o',
    's': 'zc',
    'z': 's',
    'c': 'sk',
    'k': 'c',
}
KEYBOARD_ROWS = ('qwertyuiop', 'asdfghjkl', 'zxcvbnm')

SUBSTITUTION_SCORE = 0.7
ADJACENT_KEY_SCORE = 0.5


def char_similarity(typed: str, expected: str) -> float:
    """Score a near miss between two single characters (0.0-1.0).

    Comparison is case-insensitive. A known substitution scores 0.7 and a
    neighbouring key on the same QWERTY row scores 0.5.
    """
    typed, expected = typed.casefold(), expected.casefold()
    if typed == expected:
        return 1.0
    if expected in CHAR_SUBSTITUTIONS.get(typed, ''):
        return SUBSTITUTION_SCORE
    for row in KEYBOARD_ROWS:
        i, j = row.find(typed), row.find(expected)
        if i >= 0 and j >= 0 and abs(i - j) <= 1:
            return ADJACENT_KEY_SCORE
    return 0.0


class AnswerValidator:
    """Compares input with a target answer.

    All checks are pure functions of (input, target) and safe to repeat.
    """

    def __init__(self, word_threshold: float = WORD_MATCH_THRESHOLD,
                 partial_threshold: float = CHAR_PARTIAL_THRESHOLD):
        self.word_threshold = word_threshold
        self.partial_threshold = partial_threshold

    def validate_words(self, input: str, target: str) -> list[bool]:
        """One flag per typed word: does it match the target word in that position?"""
        target_words = split_words(target)
        result = []
        for i, word in enumerate(split_words(input)):
            if i >= len(target_words):
                result.append(False)
                continue
            result.append(calculate_similarity(word, target_words[i]) >= self.word_threshold)
        return result

    def character_details(self, input: str, target: str) -> list[CharacterValidation]:
        details = []
        for i, char in enumerate(input):
            if i >= len(target):
                details.append(CharacterValidation(i, char, CharStatus.UNKNOWN))
                continue
            expected = target[i]
            score = char_similarity(char, expected)
            if score == 1.0:
                status = CharStatus.CORRECT
            elif score >= self.partial_threshold:
                status = CharStatus.PARTIAL
            else:
                status = CharStatus.INCORRECT
            details.append(CharacterValidation(i, char, status, expected))
        return details

    def validate_characters(self, input: str, target: str) -> list[CharStatus]:
        return [detail.status for detail in self.character_details(input, target)]

    def similarity(self, input: str, target: str) -> float:
        return calculate_similarity(input, target)

    def is_correct(self, input: str, target: str, threshold: float = FUZZY_MATCH_THRESHOLD) -> bool:
        """Whether the puzzle counts as solved with this input."""
        normalized_input = normalize_string(input)
        normalized_target = normalize_string(target)
        if normalized_input == normalized_target:
            return True
        if not normalized_input:
            return False
        return calculate_similarity(normalized_input, normalized_target) >= threshold

    def validate(self, input: str, target: str) -> ValidationResult:
        if not input.strip():
            return ValidationResult()
        return ValidationResult(
            word_valid=self.validate_words(input, target),
            char_status=self.validate_characters(input, target),
            word_parts=split_words_preserving_spaces(input),
        )
