"""Per-difficulty-tier configuration.

Difficulty 1-10 maps onto four tiers. Each tier carries the text-field
behaviour (suggestion timing, feedback granularity, tone) and the pressure
tactic table. Everything here is immutable and handed to the engine
explicitly.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .models import Intensity, MessageTone, SuggestionTiming, TacticType, clamp_difficulty

TIER_HARD = 'hard'
TIER_DIFFICULT = 'difficult'
TIER_EVIL = 'evil'
TIER_IMPOSSIBLE = 'impossible'

# Lowest difficulty of each tier, checked from the top down
TIER_MIN_DIFFICULTY = {
    TIER_IMPOSSIBLE: 9,
    TIER_EVIL: 8,
    TIER_DIFFICULT: 7,
}


@dataclass(frozen=True)
class TacticConfig:
    enabled: bool
    base_intensity: Intensity
    trigger_probability: float
    min_progress: float
    max_progress: float
    min_time_seconds: float
    cooldown_seconds: float

    def __post_init__(self):
        for name in ('trigger_probability', 'min_progress', 'max_progress'):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")
        if self.min_progress > self.max_progress:
            raise ValueError(
                f"min_progress ({self.min_progress}) exceeds max_progress ({self.max_progress})"
            )
        if self.min_time_seconds < 0 or self.cooldown_seconds < 0:
            raise ValueError("min_time_seconds and cooldown_seconds must not be negative")


@dataclass(frozen=True)
class InputConfig:
    suggestion_threshold: int        # Characters typed before suggestions appear
    suggestion_timing: SuggestionTiming
    suggestion_delay_ms: int
    character_feedback: bool
    word_feedback: bool
    visual_intensity: float
    show_autocomplete: bool
    show_contextual_hints: bool
    message_tone: MessageTone
    provide_corrections: bool


@dataclass(frozen=True)
class PressureConfig:
    enabled: bool
    intensity_multiplier: float
    tactics: Mapping[TacticType, TacticConfig]
    system_prompt: str
    temperature: float

    def __post_init__(self):
        missing = set(TacticType) - set(self.tactics)
        if missing:
            raise ValueError(f"Missing tactic configs: {sorted(t.value for t in missing)}")
        # Freeze the mapping so a shared profile cannot be edited in place
        object.__setattr__(self, 'tactics', MappingProxyType(dict(self.tactics)))


@dataclass(frozen=True)
class TierProfile:
    name: str
    input: InputConfig
    pressure: PressureConfig


@dataclass(frozen=True)
class CharacterFeedback:
    show_correct: bool
    show_partial: bool
    show_incorrect: bool
    color_intensity: float


@dataclass(frozen=True)
class SuggestionLimits:
    max_suggestions: int
    character_level: bool
    word_level: bool
    confidence_threshold: float


def _tactics(false_feedback, misleading_hints, time_pressure, social_pressure,
             confidence, red_herrings) -> dict:
    return {
        TacticType.FALSE_FEEDBACK: TacticConfig(*false_feedback),
        TacticType.MISLEADING_HINTS: TacticConfig(*misleading_hints),
        TacticType.TIME_PRESSURE: TacticConfig(*time_pressure),
        TacticType.SOCIAL_PRESSURE: TacticConfig(*social_pressure),
        TacticType.CONFIDENCE_MANIPULATION: TacticConfig(*confidence),
        TacticType.RED_HERRINGS: TacticConfig(*red_herrings),
    }


S, M, A, X = Intensity.SUBTLE, Intensity.MODERATE, Intensity.AGGRESSIVE, Intensity.MAXIMUM

# (enabled, intensity, probability, min_progress, max_progress, min_time, cooldown)
TIER_PROFILES = {
    TIER_HARD: TierProfile(
        name=TIER_HARD,
        input=InputConfig(
            suggestion_threshold=4,
            suggestion_timing=SuggestionTiming.MODERATE,
            suggestion_delay_ms=1000,
            character_feedback=True,
            word_feedback=True,
            visual_intensity=0.7,
            show_autocomplete=True,
            show_contextual_hints=True,
            message_tone=MessageTone.HELPFUL,
            provide_corrections=True,
        ),
        pressure=PressureConfig(
            enabled=True,
            intensity_multiplier=0.4,
            tactics=_tactics(
                (True, S, 0.2, 0.2, 0.9, 20, 15),
                (True, S, 0.15, 0.15, 0.85, 30, 20),
                (True, S, 0.1, 0.3, 0.9, 45, 30),
                (True, S, 0.08, 0.25, 0.85, 40, 25),
                (True, S, 0.18, 0.3, 0.85, 45, 20),
                (True, S, 0.12, 0.2, 0.85, 30, 25),
            ),
            system_prompt=(
                "You add a light layer of playful challenge to a puzzle game.\n"
                "Make the puzzle feel slightly harder without being obvious.\n"
                "Stay gentle and encouraging while planting mild doubt."
            ),
            temperature=0.7,
        ),
    ),
    TIER_DIFFICULT: TierProfile(
        name=TIER_DIFFICULT,
        input=InputConfig(
            suggestion_threshold=5,
            suggestion_timing=SuggestionTiming.MODERATE,
            suggestion_delay_ms=1500,
            character_feedback=False,
            word_feedback=True,
            visual_intensity=0.5,
            show_autocomplete=True,
            show_contextual_hints=True,
            message_tone=MessageTone.BALANCED,
            provide_corrections=False,
        ),
        pressure=PressureConfig(
            enabled=True,
            intensity_multiplier=0.6,
            tactics=_tactics(
                (True, M, 0.25, 0.25, 0.95, 20, 15),
                (True, M, 0.2, 0.15, 0.85, 30, 25),
                (True, S, 0.15, 0.4, 0.9, 60, 40),
                (True, S, 0.12, 0.3, 0.85, 45, 30),
                (True, M, 0.2, 0.35, 0.9, 45, 20),
                (True, M, 0.18, 0.25, 0.85, 30, 30),
            ),
            system_prompt=(
                "You design mind games for a challenging puzzle game.\n"
                "Make the puzzle feel more difficult through subtle misdirection.\n"
                "Create doubt while staying plausible. Be clever, not obvious."
            ),
            temperature=0.8,
        ),
    ),
    TIER_EVIL: TierProfile(
        name=TIER_EVIL,
        input=InputConfig(
            suggestion_threshold=6,
            suggestion_timing=SuggestionTiming.ON_REQUEST,
            suggestion_delay_ms=2000,
            character_feedback=False,
            word_feedback=True,
            visual_intensity=0.3,
            show_autocomplete=False,
            show_contextual_hints=True,
            message_tone=MessageTone.CHALLENGING,
            provide_corrections=False,
        ),
        pressure=PressureConfig(
            enabled=True,
            intensity_multiplier=0.8,
            tactics=_tactics(
                (True, A, 0.35, 0.2, 0.98, 15, 10),
                (True, A, 0.3, 0.1, 0.9, 20, 18),
                (True, M, 0.25, 0.3, 0.95, 45, 30),
                (True, M, 0.2, 0.25, 0.9, 30, 25),
                (True, A, 0.3, 0.3, 0.95, 30, 15),
                (True, A, 0.28, 0.2, 0.9, 20, 25),
            ),
            system_prompt=(
                "You run the misdirection layer of an intense puzzle game.\n"
                "Make the puzzle seem very difficult through clever mind games.\n"
                "Create real doubt and false confidence while staying subtle."
            ),
            temperature=0.9,
        ),
    ),
    TIER_IMPOSSIBLE: TierProfile(
        name=TIER_IMPOSSIBLE,
        input=InputConfig(
            suggestion_threshold=8,
            suggestion_timing=SuggestionTiming.ON_REQUEST,
            suggestion_delay_ms=3000,
            character_feedback=False,
            word_feedback=True,
            visual_intensity=0.2,
            show_autocomplete=False,
            show_contextual_hints=False,
            message_tone=MessageTone.CHALLENGING,
            provide_corrections=False,
        ),
        pressure=PressureConfig(
            enabled=True,
            intensity_multiplier=1.0,
            tactics=_tactics(
                (True, X, 0.5, 0.15, 1.0, 10, 8),
                (True, X, 0.45, 0.05, 0.95, 15, 12),
                (True, A, 0.4, 0.25, 1.0, 30, 20),
                (True, A, 0.35, 0.2, 0.95, 20, 18),
                (True, X, 0.45, 0.25, 1.0, 20, 10),
                (True, X, 0.4, 0.15, 0.95, 15, 20),
            ),
            system_prompt=(
                "You run the misdirection layer of the hardest puzzles in the game.\n"
                "Make the puzzle seem nearly impossible through masterful mind games:\n"
                "doubt, false confidence, and the illusion of time running out.\n"
                "Every tactic should feel fresh, subtle enough to go unnoticed, and effective."
            ),
            temperature=1.0,
        ),
    ),
}

del S, M, A, X


def get_tier_name(difficulty: int) -> str:
    difficulty = clamp_difficulty(difficulty)
    for name, minimum in TIER_MIN_DIFFICULTY.items():
        if difficulty >= minimum:
            return name
    return TIER_HARD


def get_tier_profile(difficulty: int) -> TierProfile:
    return TIER_PROFILES[get_tier_name(difficulty)]


def get_character_feedback(config: InputConfig) -> CharacterFeedback:
    """Which character highlights a tier shows."""
    return CharacterFeedback(
        show_correct=config.character_feedback,
        show_partial=config.character_feedback and config.visual_intensity > 0.5,
        show_incorrect=config.character_feedback and config.visual_intensity > 0.6,
        color_intensity=config.visual_intensity,
    )


def get_suggestion_limits(config: InputConfig, difficulty: int) -> SuggestionLimits:
    easy = clamp_difficulty(difficulty) <= 6
    return SuggestionLimits(
        max_suggestions=(5 if easy else 3) if config.show_autocomplete else 0,
        character_level=config.show_autocomplete and easy,
        word_level=config.show_autocomplete,
        confidence_threshold=0.6 if easy else 0.8,
    )
