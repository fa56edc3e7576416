from .models import (
    AnswerSession, CharStatus, CursorPosition, EditSnapshot, SessionStatus,
    SuggestionResult, ContextualHint, TacticType, Intensity, ValidationResult
)
from .interfaces import ContentProvider, ContentServiceError
from .history import EditHistoryManager
from .validation import AnswerValidator
from .progress import ProgressEstimator
from .suggestions import SuggestionScheduler
from .pressure import PressureTriggerEngine, calculate_adaptive_intensity, should_trigger
from .session import InputSession
from .tiers import TierProfile, get_tier_name, get_tier_profile
from .utils import calculate_similarity, normalize_string, split_words_preserving_spaces
from .config import (
    MIN_DIFFICULTY, MAX_DIFFICULTY, DEFAULT_DIFFICULTY,
    FUZZY_MATCH_THRESHOLD, HISTORY_MAX_DEPTH, CONTENT_TIMEOUT_SECONDS
)

__all__ = [
    'AnswerSession', 'CharStatus', 'CursorPosition', 'EditSnapshot', 'SessionStatus',
    'SuggestionResult', 'ContextualHint', 'TacticType', 'Intensity', 'ValidationResult',
    'ContentProvider', 'ContentServiceError',
    'EditHistoryManager', 'AnswerValidator', 'ProgressEstimator',
    'SuggestionScheduler', 'PressureTriggerEngine', 'InputSession',
    'calculate_adaptive_intensity', 'should_trigger',
    'TierProfile', 'get_tier_name', 'get_tier_profile',
    'calculate_similarity', 'normalize_string', 'split_words_preserving_spaces',
    'MIN_DIFFICULTY', 'MAX_DIFFICULTY', 'DEFAULT_DIFFICULTY',
    'FUZZY_MATCH_THRESHOLD', 'HISTORY_MAX_DEPTH', 'CONTENT_TIMEOUT_SECONDS'
]
