"""Text utilities for answer matching and editing."""

import re
from functools import lru_cache

from .config import SIMILARITY_CACHE_SIZE
from .models import CursorPosition, WordPart

PERFECT_SIMILARITY = 100.0

_PUNCTUATION = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')
_WORD_OR_SPACE = re.compile(r'\S+|\s+')


@lru_cache(maxsize=SIMILARITY_CACHE_SIZE)
def normalize_string(text: str) -> str:
    """Case-fold, trim, drop punctuation and collapse whitespace."""
    text = _PUNCTUATION.sub('', text.casefold().strip())
    return _WHITESPACE.sub(' ', text).strip()


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance using a single rolling row."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


@lru_cache(maxsize=SIMILARITY_CACHE_SIZE)
def _similarity_of_normalized(a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if longest == 0:
        return PERFECT_SIMILARITY
    return (longest - levenshtein_distance(a, b)) / longest * PERFECT_SIMILARITY


def calculate_similarity(a: str, b: str) -> float:
    """Similarity percentage (0-100) of two strings after normalization."""
    if a == b:
        return PERFECT_SIMILARITY
    a, b = normalize_string(a), normalize_string(b)
    if a == b:
        return PERFECT_SIMILARITY
    # Order the pair so (a, b) and (b, a) share a cache entry
    if b < a:
        a, b = b, a
    return _similarity_of_normalized(a, b)


def split_words_preserving_spaces(text: str) -> list[WordPart]:
    """Split text into alternating word and whitespace runs.

    Joining the ``text`` of every part gives back the input unchanged, so a
    renderer can reproduce the whitespace verbatim.
    """
    return [
        WordPart(match.group(0), match.group(0).isspace(), match.start())
        for match in _WORD_OR_SPACE.finditer(text)
    ]


def split_words(text: str) -> list[str]:
    return [part.text for part in split_words_preserving_spaces(text) if not part.is_space]


def replace_selection(text: str, cursor: CursorPosition, insert: str) -> tuple[str, CursorPosition]:
    """Replace the selected range with ``insert`` and collapse the cursor after it."""
    cursor = cursor.clamp(len(text))
    new_text = text[:cursor.start] + insert + text[cursor.end:]
    position = cursor.start + len(insert)
    return new_text, CursorPosition(position, position)


def delete_backward(text: str, cursor: CursorPosition) -> tuple[str, CursorPosition]:
    """Backspace: remove the selection, or the character before the cursor."""
    cursor = cursor.clamp(len(text))
    if cursor.start != cursor.end:
        return replace_selection(text, cursor, '')
    if cursor.start == 0:
        return text, cursor
    position = cursor.start - 1
    return text[:position] + text[cursor.start:], CursorPosition(position, position)


def delete_forward(text: str, cursor: CursorPosition) -> tuple[str, CursorPosition]:
    """Delete key: remove the selection, or the character after the cursor."""
    cursor = cursor.clamp(len(text))
    if cursor.start != cursor.end:
        return replace_selection(text, cursor, '')
    if cursor.start >= len(text):
        return text, cursor
    return text[:cursor.start] + text[cursor.start + 1:], cursor
