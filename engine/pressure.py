"""Probabilistic pressure tactics gated by progress, time and cooldowns.

Each tactic moves through IDLE -> ELIGIBLE -> FIRED -> COOLING -> IDLE. A
tactic fires when its progress window and minimum time are satisfied, its
cooldown has passed, and a Bernoulli draw with the tactic's probability
succeeds. Firing stamps ``last_triggered_at`` and asks the content service
for the tactic's text; a failure there falls back to a static phrase.

Intensity is a separate, continuous reading of how strongly active tactics
should be rendered. It grows near the finish line and with time spent.
"""

import logging
import random
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .config import (
    CONTENT_TIMEOUT_SECONDS, INTENSITY_MAX_TIME_FACTOR, INTENSITY_TIME_WINDOW_SECONDS,
    PRESSURE_CHECK_INTERVAL_SECONDS, PRESSURE_PROGRESS_DELTA, RED_HERRING_HISTORY,
    TACTIC_DISPLAY_SECONDS
)
from .fallbacks import pick_tactic_fallback
from .interfaces import ContentProvider
from .models import Intensity, SuggestionContext, TacticType
from .scheduling import BackgroundTasks, Debouncer, RequestSequence, call_provider
from .tiers import PressureConfig, TacticConfig

logger = logging.getLogger(__name__)

INTENSITY_VALUES = {
    Intensity.SUBTLE: 0.3,
    Intensity.MODERATE: 0.6,
    Intensity.AGGRESSIVE: 0.85,
    Intensity.MAXIMUM: 1.0,
}


class TacticPhase(str, Enum):
    IDLE = 'idle'
    ELIGIBLE = 'eligible'
    FIRED = 'fired'
    COOLING = 'cooling'


def calculate_adaptive_intensity(base_intensity: Intensity, progress: float,
                                 time_spent: float, intensity_multiplier: float) -> float:
    """Rendering strength of a tactic, clamped to [0, 1].

    Boosted by 30% at 70-90% progress and 10% at 50-70%, scaled by a time
    factor growing linearly from 1.0 to 2.0 over five minutes, then by the
    tier's multiplier.
    """
    intensity = INTENSITY_VALUES[Intensity(base_intensity)]

    if 0.7 <= progress <= 0.9:
        intensity *= 1.3
    elif 0.5 <= progress < 0.7:
        intensity *= 1.1

    time_factor = 1.0 + max(0.0, time_spent) / INTENSITY_TIME_WINDOW_SECONDS
    intensity *= min(INTENSITY_MAX_TIME_FACTOR, time_factor)
    intensity *= intensity_multiplier

    return min(1.0, max(0.0, intensity))


def within_gates(config: TacticConfig, progress: float, time_spent: float) -> bool:
    return (
        config.enabled
        and config.min_progress <= progress <= config.max_progress
        and time_spent >= config.min_time_seconds
    )


def is_cooling(config: TacticConfig, last_triggered_at: float | None, now: float) -> bool:
    return last_triggered_at is not None and now - last_triggered_at < config.cooldown_seconds


def should_trigger(config: TacticConfig, progress: float, time_spent: float,
                   last_triggered_at: float | None, now: float, rng: random.Random) -> bool:
    """All four conditions must hold; the random draw is taken last."""
    if not within_gates(config, progress, time_spent):
        return False
    if is_cooling(config, last_triggered_at, now):
        return False
    return rng.random() < config.trigger_probability


class TacticState:
    """Mutable per-tactic state, owned by the engine."""

    def __init__(self):
        self.last_triggered_at = None
        self.phase = TacticPhase.IDLE
        self.message = None
        self.messages = []

    def to_dict(self) -> dict:
        return {
            'last_triggered_at': self.last_triggered_at,
            'phase': self.phase.value,
            'message': self.message,
            'messages': list(self.messages),
        }


@dataclass(frozen=True)
class ActiveTactic:
    tactic: TacticType
    phase: TacticPhase
    message: str | None
    messages: tuple
    intensity: float

    def to_dict(self) -> dict:
        return {
            'tactic': self.tactic.value,
            'phase': self.phase.value,
            'message': self.message,
            'messages': list(self.messages),
            'intensity': round(self.intensity, 4),
        }


class PressureTriggerEngine:
    """Runs the tactic state machines for one session.

    The engine is throttled: ``check`` evaluates at most once per
    ``check_interval`` seconds unless progress moved by more than
    ``progress_delta``. A throttled call leaves a trailing evaluation
    scheduled for the end of the interval.
    """

    def __init__(self, config: PressureConfig, provider: ContentProvider | None = None,
                 target: str = '', context: SuggestionContext | None = None,
                 rng: random.Random | None = None, clock: Callable[[], float] = time.monotonic,
                 tasks: BackgroundTasks | None = None,
                 check_interval: float = PRESSURE_CHECK_INTERVAL_SECONDS,
                 progress_delta: float = PRESSURE_PROGRESS_DELTA,
                 display_seconds: float = TACTIC_DISPLAY_SECONDS,
                 timeout: float = CONTENT_TIMEOUT_SECONDS,
                 on_update: Callable[[], None] | None = None):
        self.config = config
        self.provider = provider
        self.target = target
        self.context = context or SuggestionContext(difficulty=5)
        self.rng = rng or random.Random()
        self.clock = clock
        self.tasks = tasks or BackgroundTasks()
        self.check_interval = check_interval
        self.progress_delta = progress_delta
        self.display_seconds = display_seconds
        self.timeout = timeout
        self.on_update = on_update

        self.state = {tactic: TacticState() for tactic in TacticType}
        self.active_tactics: frozenset[TacticType] = frozenset()
        self._content_seq = {tactic: RequestSequence() for tactic in TacticType}
        self._trailing = Debouncer(self.tasks, check_interval, 'pressure-check')
        self._latest = None
        self._last_check_at = None
        self._last_check_progress = None
        self._closed = False

    @property
    def last_check_at(self) -> float | None:
        return self._last_check_at

    def phase(self, tactic: TacticType) -> TacticPhase:
        return self.state[tactic].phase

    def evaluate(self, progress: float, time_spent: float) -> list[TacticType]:
        """Run one cycle of every tactic's state machine. Returns the tactics that fired."""
        now = self.clock()
        self._last_check_at = now
        self._last_check_progress = progress

        if not self.config.enabled:
            for tactic_state in self.state.values():
                tactic_state.phase = TacticPhase.IDLE
            self.active_tactics = frozenset()
            return []

        fired = []
        for tactic, tactic_config in self.config.tactics.items():
            tactic_state = self.state[tactic]
            if not tactic_config.enabled:
                tactic_state.phase = TacticPhase.IDLE
            elif is_cooling(tactic_config, tactic_state.last_triggered_at, now):
                tactic_state.phase = TacticPhase.COOLING
            elif not within_gates(tactic_config, progress, time_spent):
                tactic_state.phase = TacticPhase.IDLE
            elif self.rng.random() < tactic_config.trigger_probability:
                tactic_state.last_triggered_at = now
                tactic_state.phase = TacticPhase.FIRED
                fired.append(tactic)
            else:
                tactic_state.phase = TacticPhase.ELIGIBLE

        # Replaced, not merged: only fresh firings and tactics still on screen survive
        self.active_tactics = frozenset(
            tactic for tactic, tactic_state in self.state.items()
            if tactic in fired or (
                tactic_state.last_triggered_at is not None
                and now - tactic_state.last_triggered_at < self.display_seconds
            )
        )
        if fired:
            logger.info(
                f"Pressure tactics fired at progress {progress:.2f}, {time_spent:.0f}s: "
                f"{', '.join(t.value for t in fired)}"
            )
        return fired

    def needs_check(self, progress: float) -> bool:
        if self._last_check_at is None:
            return True
        if abs(progress - self._last_check_progress) > self.progress_delta:
            return True
        return self.clock() - self._last_check_at >= self.check_interval

    def check(self, progress: float, time_spent: float, current_input: str) -> list[TacticType] | None:
        """Throttled evaluation plus content requests for fired tactics.

        Returns the fired tactics, or None when the call was throttled. Must be
        called from the event loop.
        """
        if self._closed:
            return None
        self._latest = (progress, time_spent, current_input, self.clock())
        if not self.needs_check(progress):
            remaining = self.check_interval - (self.clock() - self._last_check_at)
            if not self._trailing.pending:
                self._trailing.schedule(self._trailing_check, delay=max(0.0, remaining))
            logger.debug(f"Pressure check throttled, trailing check in {remaining:.2f}s")
            return None
        self._trailing.cancel()
        return self._run_cycle(progress, time_spent, current_input)

    def cancel_pending(self) -> None:
        """Drop the trailing check and clear what is on screen, e.g. when the input is blanked."""
        self._trailing.cancel()
        self._latest = None
        for sequence in self._content_seq.values():
            sequence.invalidate()
        if self.active_tactics:
            self.active_tactics = frozenset()
            self._notify()

    def _trailing_check(self) -> None:
        if self._closed or self._latest is None:
            return
        progress, time_spent, current_input, recorded_at = self._latest
        if not current_input.strip():
            return
        time_spent += max(0.0, self.clock() - recorded_at)
        self._run_cycle(progress, time_spent, current_input)

    def _run_cycle(self, progress: float, time_spent: float, current_input: str) -> list[TacticType]:
        fired = self.evaluate(progress, time_spent)
        for tactic in fired:
            number = self._content_seq[tactic].issue()
            self.tasks.spawn(
                self._apply_content(tactic, number, progress, time_spent, current_input),
                name=f"tactic-{tactic.value}",
            )
        self._notify()
        return fired

    async def generate_content(self, tactic: TacticType, progress: float, time_spent: float,
                               current_input: str) -> str:
        """Text for a fired tactic. Never raises; falls back to a static phrase."""
        if self.provider is None:
            return pick_tactic_fallback(tactic, self.rng)
        try:
            text = await call_provider(
                self.provider.generate_tactic_content,
                tactic, self.context.puzzle, self.target, self.context.difficulty, current_input,
                progress=progress, time_spent=time_spent, timeout=self.timeout,
            )
        except Exception as e:
            logger.warning(f"Content for {tactic.value} unavailable, using fallback: {type(e).__name__}: {e}")
            return pick_tactic_fallback(tactic, self.rng)
        if not isinstance(text, str) or not text.strip():
            logger.warning(f"Empty content for {tactic.value}, using fallback")
            return pick_tactic_fallback(tactic, self.rng)
        return text.strip()

    async def _apply_content(self, tactic: TacticType, number: int, progress: float,
                             time_spent: float, current_input: str) -> None:
        text = await self.generate_content(tactic, progress, time_spent, current_input)
        if self._closed or not self._content_seq[tactic].is_current(number):
            logger.debug(f"Discarding stale {tactic.value} content #{number}")
            return
        tactic_state = self.state[tactic]
        tactic_state.message = text
        if tactic == TacticType.RED_HERRINGS:
            tactic_state.messages = (tactic_state.messages + [text])[-RED_HERRING_HISTORY:]
        else:
            tactic_state.messages = [text]
        self._notify()

    def intensity(self, tactic: TacticType, progress: float, time_spent: float) -> float:
        return calculate_adaptive_intensity(
            self.config.tactics[tactic].base_intensity,
            progress, time_spent, self.config.intensity_multiplier,
        )

    def snapshot(self, progress: float, time_spent: float) -> list[ActiveTactic]:
        """Active tactics with their current message and intensity."""
        return [
            ActiveTactic(
                tactic=tactic,
                phase=self.state[tactic].phase,
                message=self.state[tactic].message,
                messages=tuple(self.state[tactic].messages),
                intensity=self.intensity(tactic, progress, time_spent),
            )
            for tactic in TacticType
            if tactic in self.active_tactics
        ]

    def close(self) -> None:
        self._closed = True
        self._trailing.cancel()
        for sequence in self._content_seq.values():
            sequence.invalidate()

    def _notify(self) -> None:
        if self.on_update is not None and not self._closed:
            self.on_update()
