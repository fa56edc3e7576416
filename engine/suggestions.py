"""Debounced, cancellable suggestion and contextual-hint requests."""

import logging
from typing import Callable

from .config import CONTENT_TIMEOUT_SECONDS, HINT_DEBOUNCE_MS
from .fallbacks import local_hint, local_suggestions
from .interfaces import ContentProvider
from .models import (
    CharacterSuggestion, ContextualHint, SuggestionContext, SuggestionResult,
    SuggestionTiming, Urgency, WordSuggestion
)
from .scheduling import BackgroundTasks, Debouncer, RequestSequence, call_provider
from .tiers import InputConfig, get_suggestion_limits

logger = logging.getLogger(__name__)


class SuggestionScheduler:
    """Decides when to ask the content service for suggestions and hints.

    Every request takes a new sequence number and its response is applied
    only while that number is still the latest one issued, so the last
    request wins regardless of the order responses arrive in. Failures,
    timeouts and empty answers fall back to local heuristics.
    """

    def __init__(self, provider: ContentProvider | None, config: InputConfig,
                 context: SuggestionContext, tasks: BackgroundTasks | None = None,
                 hint_delay: float = HINT_DEBOUNCE_MS / 1000,
                 timeout: float = CONTENT_TIMEOUT_SECONDS,
                 on_update: Callable[[], None] | None = None):
        self.provider = provider
        self.config = config
        self.context = context
        self.limits = get_suggestion_limits(config, context.difficulty)
        self.tasks = tasks or BackgroundTasks()
        self.timeout = timeout
        self.on_update = on_update

        self._suggestion_seq = RequestSequence()
        self._hint_seq = RequestSequence()
        self._suggestion_timer = Debouncer(self.tasks, config.suggestion_delay_ms / 1000, 'suggestions')
        self._hint_timer = Debouncer(self.tasks, hint_delay, 'contextual-hint')
        self._closed = False

        self.suggestions = SuggestionResult()
        self.hint: ContextualHint | None = None
        self.panel_open = False

    def qualifies(self, current_input: str) -> bool:
        return bool(current_input.strip()) and len(current_input) >= self.config.suggestion_threshold

    def on_input(self, current_input: str, target: str, progress: float = 0.0,
                 time_spent: float | None = None) -> None:
        """React to an accepted edit. Must be called from the event loop."""
        if self._closed:
            return
        self._update_suggestions(current_input, target)
        self.schedule_hint(current_input, target, progress, time_spent)

    def _update_suggestions(self, current_input: str, target: str) -> None:
        if not self.qualifies(current_input):
            self._suggestion_timer.cancel()
            self._suggestion_seq.invalidate()
            had_content = not self.suggestions.is_empty or self.panel_open
            self.suggestions = SuggestionResult()
            self.panel_open = False
            if had_content:
                self._notify()
            return

        timing = self.config.suggestion_timing
        if timing == SuggestionTiming.IMMEDIATE:
            self.tasks.spawn(self.request_suggestions(current_input, target), name='suggestions')
        elif timing == SuggestionTiming.MODERATE:
            self._suggestion_timer.schedule(lambda: self.request_suggestions(current_input, target))
        elif timing == SuggestionTiming.ON_REQUEST and self.panel_open:
            self.tasks.spawn(self.request_suggestions(current_input, target), name='suggestions')

    def schedule_hint(self, current_input: str, target: str, progress: float,
                     time_spent: float | None) -> None:
        if not (self.config.show_contextual_hints and current_input.strip()):
            self._hint_timer.cancel()
            self._hint_seq.invalidate()
            if self.hint is not None:
                self.hint = None
                self._notify()
            return
        self._hint_timer.schedule(
            lambda: self.request_hint(current_input, target, progress, time_spent)
        )

    def open_panel(self) -> None:
        self.panel_open = True

    def close_panel(self) -> None:
        self.panel_open = False
        self._notify()

    async def request_suggestions(self, current_input: str, target: str,
                                  context: SuggestionContext | None = None) -> SuggestionResult | None:
        """Fetch suggestions now. Returns None if a newer request superseded this one."""
        number = self._suggestion_seq.issue()
        if not self.qualifies(current_input) or self.config.suggestion_timing == SuggestionTiming.NONE:
            result = SuggestionResult()
        else:
            result = await self._fetch_suggestions(current_input, target, context or self.context)

        if self._closed or not self._suggestion_seq.is_current(number):
            logger.debug(f"Discarding stale suggestions #{number} (latest #{self._suggestion_seq.latest})")
            return None
        self.suggestions = result
        if not result.is_empty:
            self.panel_open = True
        self._notify()
        return result

    async def _fetch_suggestions(self, current_input: str, target: str,
                                 context: SuggestionContext) -> SuggestionResult:
        if self.provider is None or not (self.limits.word_level or self.limits.character_level):
            return local_suggestions(current_input, target)
        try:
            raw = await call_provider(
                self.provider.generate_suggestions,
                current_input, target, context.difficulty, context.puzzle_type, context.puzzle,
                timeout=self.timeout,
            )
        except Exception as e:
            logger.warning(f"Suggestion service unavailable, using local fallback: {type(e).__name__}: {e}")
            return local_suggestions(current_input, target)

        result = self._parse_suggestions(raw)
        if result.is_empty:
            logger.info("Suggestion service returned nothing usable, using local fallback")
            return local_suggestions(current_input, target)
        return result

    def _parse_suggestions(self, raw) -> SuggestionResult:
        if not isinstance(raw, dict):
            return SuggestionResult()

        threshold = self.limits.confidence_threshold
        characters = []
        if self.limits.character_level:
            for item in raw.get('character_suggestions') or []:
                try:
                    suggestion = CharacterSuggestion(
                        position=int(item['position']),
                        suggested_char=str(item['suggested_char']),
                        confidence=float(item['confidence']),
                        reason=item.get('reason'),
                    )
                except (KeyError, TypeError, ValueError, AttributeError) as e:
                    logger.debug(f"Skipping malformed character suggestion {item!r}: {e}")
                    continue
                if len(suggestion.suggested_char) == 1 and suggestion.confidence >= threshold:
                    characters.append(suggestion)

        words = []
        if self.limits.word_level:
            for item in raw.get('word_suggestions') or []:
                try:
                    suggestion = WordSuggestion(
                        word=str(item['word']).strip(),
                        confidence=float(item['confidence']),
                        reason=item.get('reason'),
                    )
                except (KeyError, TypeError, ValueError, AttributeError) as e:
                    logger.debug(f"Skipping malformed word suggestion {item!r}: {e}")
                    continue
                if suggestion.word and suggestion.confidence >= threshold:
                    words.append(suggestion)

        limit = self.limits.max_suggestions
        return SuggestionResult(characters=characters[:limit], words=words[:limit])

    async def request_hint(self, current_input: str, target: str, progress: float = 0.0,
                           time_spent: float | None = None,
                           context: SuggestionContext | None = None) -> ContextualHint | None:
        """Fetch a contextual hint now. Returns None if superseded."""
        number = self._hint_seq.issue()
        context = context or self.context
        hint = None
        if self.provider is not None:
            try:
                raw = await call_provider(
                    self.provider.generate_contextual_hint,
                    current_input, target, context.difficulty, context.puzzle_type, context.puzzle,
                    time_spent, timeout=self.timeout,
                )
                hint = self._parse_hint(raw)
            except Exception as e:
                logger.warning(f"Hint service unavailable, using local fallback: {type(e).__name__}: {e}")
        if hint is None:
            hint = local_hint(progress)

        if self._closed or not self._hint_seq.is_current(number):
            logger.debug(f"Discarding stale hint #{number} (latest #{self._hint_seq.latest})")
            return None
        self.hint = hint
        self._notify()
        return hint

    def _parse_hint(self, raw) -> ContextualHint | None:
        if isinstance(raw, str):
            return ContextualHint(raw.strip()) if raw.strip() else None
        if not isinstance(raw, dict) or not str(raw.get('hint') or '').strip():
            return None
        try:
            urgency = Urgency(raw.get('urgency', Urgency.MEDIUM.value))
        except ValueError:
            urgency = Urgency.MEDIUM
        return ContextualHint(str(raw['hint']).strip(), str(raw.get('type') or 'direction'), urgency)

    def first_word_suggestion(self) -> str | None:
        if self.suggestions.words:
            return self.suggestions.words[0].word
        return None

    def cancel_pending(self) -> None:
        """Drop scheduled requests and make in-flight responses stale."""
        self._suggestion_timer.cancel()
        self._hint_timer.cancel()
        self._suggestion_seq.invalidate()
        self._hint_seq.invalidate()

    def close(self) -> None:
        self._closed = True
        self.cancel_pending()

    def _notify(self) -> None:
        if self.on_update is not None and not self._closed:
            self.on_update()
