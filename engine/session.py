"""The answer-input session driven by a rendering layer."""

import dataclasses
import logging
import random
import time
from typing import Callable

from .config import (
    CONTENT_TIMEOUT_SECONDS, DEFAULT_DIFFICULTY, HINT_DEBOUNCE_MS,
    PRESSURE_CHECK_INTERVAL_SECONDS, VALIDATION_DEBOUNCE_MS
)
from .fallbacks import local_feedback_message
from .history import EditHistoryManager
from .interfaces import ContentProvider
from .models import AnswerSession, CursorPosition, EditSnapshot, SessionStatus, ValidationResult
from .pressure import PressureTriggerEngine
from .progress import ProgressEstimator
from .scheduling import BackgroundTasks, Debouncer, RequestSequence, call_provider
from .suggestions import SuggestionScheduler
from .tiers import TierProfile, get_character_feedback, get_tier_profile
from .utils import delete_backward, delete_forward, replace_selection, split_words_preserving_spaces
from .validation import AnswerValidator

logger = logging.getLogger(__name__)


class InputSession:
    """One puzzle attempt: edits in, validation, progress, suggestions and tactics out.

    Every edit method applies the change synchronously and returns whether it
    was accepted. Validation, suggestions, hints and tactic content follow on
    background tasks, so edit methods must be called from a running event
    loop. Listeners registered with ``subscribe`` are called after each state
    change.
    """

    def __init__(self, target_answer: str, difficulty: int = DEFAULT_DIFFICULTY,
                 provider: ContentProvider | None = None, puzzle: str | None = None,
                 puzzle_type: str | None = None, profile: TierProfile | None = None,
                 max_length: int | None = None, rng: random.Random | None = None,
                 clock: Callable[[], float] = time.monotonic,
                 validation_delay: float = VALIDATION_DEBOUNCE_MS / 1000,
                 hint_delay: float = HINT_DEBOUNCE_MS / 1000,
                 check_interval: float = PRESSURE_CHECK_INTERVAL_SECONDS,
                 timeout: float = CONTENT_TIMEOUT_SECONDS,
                 history_depth: int | None = None,
                 on_submit: Callable[[str], None] | None = None,
                 validator: AnswerValidator | None = None):
        self.clock = clock
        history = EditHistoryManager() if history_depth is None else EditHistoryManager(history_depth)
        self.session = AnswerSession(target_answer, difficulty, clock(), history, puzzle, puzzle_type)
        self.profile = profile or get_tier_profile(self.session.difficulty)
        self.provider = provider
        self.max_length = max_length
        self.timeout = timeout
        self.on_submit = on_submit
        self.validator = validator or AnswerValidator()
        self.estimator = ProgressEstimator(self.validator)
        self.character_feedback = get_character_feedback(self.profile.input)

        self.tasks = BackgroundTasks()
        self._validation_timer = Debouncer(self.tasks, validation_delay, 'validation')
        self._feedback_seq = RequestSequence()
        self.suggestions = SuggestionScheduler(
            provider, self.profile.input, self.session.context, tasks=self.tasks,
            hint_delay=hint_delay, timeout=timeout, on_update=self._notify,
        )
        self.pressure = PressureTriggerEngine(
            self.profile.pressure, provider, target_answer, self.session.context,
            rng=rng, clock=clock, tasks=self.tasks, check_interval=check_interval,
            timeout=timeout, on_update=self._notify,
        )

        self.validation = ValidationResult()
        self.progress = 0.0
        self.feedback_message = ''
        self._listeners: list[Callable[['InputSession'], None]] = []
        self._closed = False

        logger.info(
            f"Session started: difficulty {self.session.difficulty} ({self.profile.name}), "
            f"{len(target_answer)} character answer"
        )

    @property
    def current_input(self) -> str:
        return self.session.current_input

    @property
    def cursor(self) -> CursorPosition:
        return self.session.cursor

    @property
    def target_answer(self) -> str:
        return self.session.target_answer

    @property
    def status(self) -> SessionStatus:
        return self.session.status

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def elapsed(self) -> float:
        return self.session.elapsed(self.clock())

    def can_undo(self) -> bool:
        return self.session.edit_history.can_undo()

    def can_redo(self) -> bool:
        return self.session.edit_history.can_redo()

    def is_correct(self) -> bool:
        return self.validator.is_correct(self.session.current_input, self.session.target_answer)

    # Edit events

    def set_text(self, text: str, cursor: CursorPosition | None = None) -> bool:
        """Raw change event: the field now holds ``text``."""
        if cursor is None:
            cursor = CursorPosition(len(text), len(text))
        return self._apply_edit(text, cursor)

    def insert(self, text: str, cursor: CursorPosition | None = None) -> bool:
        new_text, new_cursor = replace_selection(self.current_input, cursor or self.cursor, text)
        return self._apply_edit(new_text, new_cursor)

    def paste(self, text: str, cursor: CursorPosition | None = None) -> bool:
        """Insert pasted text; line breaks become spaces."""
        text = text.replace('\r\n', ' ').replace('\n', ' ').replace('\r', ' ')
        return self.insert(text, cursor)

    def delete_backward(self, cursor: CursorPosition | None = None) -> bool:
        new_text, new_cursor = delete_backward(self.current_input, cursor or self.cursor)
        return self._apply_edit(new_text, new_cursor)

    def delete_forward(self, cursor: CursorPosition | None = None) -> bool:
        new_text, new_cursor = delete_forward(self.current_input, cursor or self.cursor)
        return self._apply_edit(new_text, new_cursor)

    def accept_suggestion(self) -> bool:
        """Replace the last typed word with the top word suggestion."""
        word = self.suggestions.first_word_suggestion()
        if self._closed or not word:
            return False
        text = self.current_input
        words = [part for part in split_words_preserving_spaces(text) if not part.is_space]
        new_text = text[:words[-1].index] + word if words else word
        accepted = self._apply_edit(new_text, CursorPosition(len(new_text), len(new_text)))
        if accepted:
            self.suggestions.close_panel()
        return accepted

    def undo(self) -> bool:
        if self._closed:
            return False
        snapshot = self.session.edit_history.undo(self.current_input, self.cursor)
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    def redo(self) -> bool:
        if self._closed:
            return False
        snapshot = self.session.edit_history.redo(self.current_input, self.cursor)
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    def _apply_edit(self, text: str, cursor: CursorPosition) -> bool:
        if self._closed or not self.session.is_active:
            logger.debug("Ignoring edit on a closed session")
            return False
        if self.max_length is not None and len(text) > self.max_length:
            logger.debug(f"Rejected edit: {len(text)} characters exceeds max length {self.max_length}")
            return False

        cursor = cursor.clamp(len(text))
        if text == self.session.current_input:
            self.session.cursor = cursor
            self._notify()
            return True

        self.session.edit_history.push(EditSnapshot(self.session.current_input, self.session.cursor))
        self.session.current_input = text
        self.session.cursor = cursor
        self._after_change()
        return True

    def _restore(self, snapshot: EditSnapshot) -> None:
        self.session.current_input = snapshot.text
        self.session.cursor = snapshot.cursor.clamp(len(snapshot.text))
        self._after_change()

    def _after_change(self) -> None:
        text = self.session.current_input
        target = self.session.target_answer

        self._schedule_validation()
        self.progress = self.estimator.estimate(text, target)
        self._refresh_feedback()

        elapsed = self.elapsed
        if text.strip():
            self.pressure.check(self.progress, elapsed, text)
        else:
            self.pressure.cancel_pending()
        self.suggestions.on_input(text, target, self.progress, elapsed)
        self._notify()

    # Validation and feedback

    def _schedule_validation(self) -> None:
        if not self.session.current_input.strip():
            self._validation_timer.cancel()
            self.validation = ValidationResult()
            return
        self._validation_timer.schedule(self.flush_validation)

    def flush_validation(self) -> ValidationResult:
        """Validate the current input now instead of waiting for the debounce."""
        self._validation_timer.cancel()
        self.validation = self.validator.validate(self.session.current_input, self.session.target_answer)
        self._notify()
        return self.validation

    def _refresh_feedback(self) -> None:
        text = self.session.current_input
        target = self.session.target_answer
        if not text.strip():
            self._feedback_seq.invalidate()
            self.feedback_message = ''
            return

        words_valid = self.validator.validate_words(text, target)
        is_valid = bool(words_valid) and all(words_valid)
        is_complete = self.is_correct()
        self.feedback_message = local_feedback_message(self.profile.input.message_tone, is_valid, is_complete)

        if self.provider is not None:
            number = self._feedback_seq.issue()
            self.tasks.spawn(
                self._fetch_feedback(number, text, target, is_valid, is_complete),
                name='feedback-message',
            )

    async def _fetch_feedback(self, number: int, text: str, target: str,
                              is_valid: bool, is_complete: bool) -> None:
        try:
            message = await call_provider(
                self.provider.generate_feedback_message,
                text, target, self.session.difficulty, is_valid, is_complete,
                timeout=self.timeout,
            )
        except Exception as e:
            logger.warning(f"Feedback message unavailable, keeping local text: {type(e).__name__}: {e}")
            return
        if self._closed or not self._feedback_seq.is_current(number):
            logger.debug(f"Discarding stale feedback message #{number}")
            return
        if isinstance(message, str):
            self.feedback_message = message
            self._notify()

    # Suggestions

    async def request_suggestions(self):
        """Open the suggestion panel and fetch suggestions for the current input."""
        if self._closed:
            return None
        self.suggestions.open_panel()
        return await self.suggestions.request_suggestions(self.current_input, self.target_answer)

    # Lifecycle

    def submit(self) -> bool:
        """Accept the answer if it is correct. Tears the session down on success."""
        if self._closed or not self.session.is_active:
            return False
        if not self.is_correct():
            logger.debug("Submit rejected: answer is not correct")
            return False

        answer = self.session.current_input
        self.session.status = SessionStatus.SOLVED
        logger.info(f"Answer accepted after {self.elapsed:.1f}s")
        self._notify()
        if self.on_submit is not None:
            self.on_submit(answer)
        self.close()
        return True

    def close(self) -> None:
        """Cancel every timer and in-flight request. Later events are ignored."""
        if self._closed:
            return
        if self.session.is_active:
            self.session.status = SessionStatus.ABANDONED
        self._closed = True
        self._validation_timer.cancel()
        self._feedback_seq.invalidate()
        self.suggestions.close()
        self.pressure.close()
        self.tasks.cancel_all()
        self._listeners.clear()
        logger.info(f"Session closed ({self.session.status.value})")

    async def wait_idle(self) -> None:
        """Wait for every pending timer and request to finish."""
        await self.tasks.wait()

    def subscribe(self, listener: Callable[['InputSession'], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Session listener failed")

    def state(self) -> dict:
        """Everything a renderer needs, as plain data."""
        elapsed = self.elapsed
        hint = self.suggestions.hint
        state = self.session.to_dict()
        state.update({
            'tier': self.profile.name,
            'validation': self.validation.to_dict(),
            'progress': round(self.progress, 4),
            'is_correct': self.is_correct(),
            'feedback_message': self.feedback_message,
            'suggestions': self.suggestions.suggestions.to_dict(),
            'suggestions_open': self.suggestions.panel_open,
            'hint': hint.to_dict() if hint is not None else None,
            'active_tactics': [t.to_dict() for t in self.pressure.snapshot(self.progress, elapsed)],
            'character_feedback': dataclasses.asdict(self.character_feedback),
            'elapsed_seconds': round(elapsed, 2),
        })
        return state
