"""Deterministic local content used when the content service is unavailable."""

import random

from .config import FALLBACK_CONFIDENCE
from .models import (
    CharacterSuggestion, ContextualHint, MessageTone, SuggestionResult,
    TacticType, Urgency, WordSuggestion
)

TACTIC_FALLBACKS = {
    TacticType.FALSE_FEEDBACK: [
        "Hmm, that doesn't look quite right...",
        "Are you sure about that spelling?",
        "Something in there seems off.",
    ],
    TacticType.MISLEADING_HINTS: [
        "Think about this from a different angle...",
        "The obvious reading is rarely the right one.",
        "Have you considered what the picture is NOT showing?",
    ],
    TacticType.TIME_PRESSURE: [
        "Time's ticking...",
        "Most solvers are done by now.",
        "The clock doesn't stop for anyone.",
    ],
    TacticType.SOCIAL_PRESSURE: [
        "Most users find this straightforward...",
        "Nearly everyone got this one today.",
        "Your friends solved this in under a minute.",
    ],
    TacticType.CONFIDENCE_MANIPULATION: [
        "Are you sure about that?",
        "That's a bold guess.",
        "Interesting choice... very interesting.",
    ],
    TacticType.RED_HERRINGS: [
        "Consider alternative interpretations...",
        "Don't forget the colours might matter.",
        "What if the order of the symbols is the real clue?",
    ],
}

FEEDBACK_COMPLETE = "Perfect! Press Enter to submit."
FEEDBACK_VALID = "Looking good! Keep going..."
FEEDBACK_BY_TONE = {
    MessageTone.HELPFUL: "Not quite right. Try again...",
    MessageTone.BALANCED: "Not quite. Keep thinking...",
    MessageTone.CHALLENGING: "",
}


def pick_tactic_fallback(tactic: TacticType, rng: random.Random) -> str:
    return rng.choice(TACTIC_FALLBACKS[tactic])


def simple_character_suggestion(current_input: str, target: str) -> str | None:
    """Next character of the answer after what has been typed."""
    typed = current_input.casefold().strip()
    answer = target.casefold().strip()
    if len(typed) >= len(answer):
        return None
    return answer[len(typed)]


def simple_word_suggestion(current_input: str, target: str) -> str | None:
    """Prefix of the expected word, one letter longer than the typed word."""
    input_words = current_input.casefold().split()
    answer_words = target.casefold().split()
    if not input_words or len(input_words) > len(answer_words):
        return None

    typed_word = input_words[-1]
    expected = answer_words[len(input_words) - 1]
    if len(typed_word) < len(expected) / 2:
        return expected[:len(typed_word) + 1]
    return None


def local_suggestions(current_input: str, target: str) -> SuggestionResult:
    char = simple_character_suggestion(current_input, target)
    word = simple_word_suggestion(current_input, target)
    return SuggestionResult(
        characters=[CharacterSuggestion(len(current_input), char, FALLBACK_CONFIDENCE)] if char else [],
        words=[WordSuggestion(word, FALLBACK_CONFIDENCE)] if word else [],
        from_fallback=True,
    )


def local_hint(progress: float) -> ContextualHint:
    if progress < 0.3:
        return ContextualHint("Keep thinking. Say the picture out loud.", 'encouragement',
                              Urgency.LOW, from_fallback=True)
    if progress < 0.7:
        return ContextualHint("You're on the right track. Look at each part separately.",
                              'direction', Urgency.MEDIUM, from_fallback=True)
    return ContextualHint("Almost there! Check the last word.", 'strategy',
                          Urgency.HIGH, from_fallback=True)


def local_feedback_message(tone: MessageTone, is_valid: bool, is_complete: bool) -> str:
    if is_complete and is_valid:
        return FEEDBACK_COMPLETE
    if is_valid:
        return FEEDBACK_VALID
    return FEEDBACK_BY_TONE[tone]
