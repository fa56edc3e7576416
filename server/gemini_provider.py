"""Gemini content provider implementation."""

import ast
import json
import logging
import re
import threading
import time
import google.generativeai as genai

from engine.fallbacks import local_feedback_message
from engine.interfaces import ContentProvider, ContentServiceError
from engine.config import MAX_DIFFICULTY
from engine.models import TacticType
from engine.progress import ProgressEstimator
from engine.tiers import get_suggestion_limits, get_tier_profile

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

_JSON_LITERALS = {'true': 'True', 'false': 'False', 'null': 'None'}
_LITERAL_OR_STRING = re.compile(r'("(?:\\.|[^"\\])*"|\'(?:\\.|[^\'\\])*\')|\b(true|false|null)\b')

HELP_LEVELS = {
    'hard': "Provide helpful suggestions after a few characters",
    'difficult': "Provide moderate suggestions, let the user think",
    'evil': "Provide minimal suggestions, only when really stuck",
    'impossible': "Provide almost no suggestions, maximum challenge",
}

TACTIC_INSTRUCTIONS = {
    TacticType.FALSE_FEEDBACK: "Write one short line that makes the player doubt a part of their answer that is actually fine.",
    TacticType.MISLEADING_HINTS: "Write one short hint that nudges the player towards a plausible but wrong reading of the puzzle.",
    TacticType.TIME_PRESSURE: "Write one short line that makes the player feel time is running out.",
    TacticType.SOCIAL_PRESSURE: "Write one short line comparing the player unfavourably with other solvers.",
    TacticType.CONFIDENCE_MANIPULATION: "Write one short line that shakes the player's confidence in their current guess.",
    TacticType.RED_HERRINGS: "Write one short line pointing at an irrelevant detail of the puzzle as if it mattered.",
}


class GeminiProvider(ContentProvider):
    """Gemini content provider implementation."""

    def __init__(self, api_key: str, model_name: str = 'gemini-2.0-flash'):
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(model_name)
        self.model_name = model_name
        self.estimator = ProgressEstimator()
        self._stats = {}
        self._stats_lock = threading.Lock()

    def _execute(self, operation: str, prompt: str, temperature: float = 0.7) -> tuple[str, int]:
        start_time = time.time()
        try:
            response = self.model.generate_content(
                prompt, generation_config={'temperature': temperature}
            )
            text = response.text
        except Exception:
            self._record(operation, int((time.time() - start_time) * 1000), failed=True)
            raise
        ms = int((time.time() - start_time) * 1000)
        self._record(operation, ms)
        logger.debug(f"{operation} answered in {ms}ms")
        return (text, ms)

    def _record(self, operation: str, ms: int, failed: bool = False):
        with self._stats_lock:
            stats = self._stats.setdefault(operation, {'calls': 0, 'failures': 0, 'total_ms': 0})
            stats['calls'] += 1
            stats['total_ms'] += ms
            if failed:
                stats['failures'] += 1

    def get_stats(self) -> dict:
        """Call count, failures, total and average latency per operation."""
        with self._stats_lock:
            return {
                operation: {
                    **stats,
                    'average_ms': stats['total_ms'] / stats['calls'] if stats['calls'] else 0,
                }
                for operation, stats in self._stats.items()
            }

    def _extract(self, response: str) -> str:
        s = response.replace('```python', '').replace('```json', '').replace('```', '')
        return s[s.find('{'):s.rfind('}')+1]

    def _sanitize(self, response: str) -> str:
        # JSON literals become Python ones; quoted strings are left untouched
        return _LITERAL_OR_STRING.sub(
            lambda m: m.group(1) or _JSON_LITERALS[m.group(2)],
            self._extract(response),
        )

    def _parse_dict(self, operation: str, response: str, required_key: str) -> dict | None:
        try:
            parsed = json.loads(self._extract(response))
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

        sanitized = self._sanitize(response)
        try:
            parsed = ast.literal_eval(sanitized)
            if not isinstance(parsed, dict):
                logger.warning(f"{operation} response is not a dict: {type(parsed)}")
                logger.warning(f"Raw response:\n{response}")
                return None
            return parsed
        except (SyntaxError, ValueError) as e:
            logger.error(f"Failed to parse {operation} response: {e}")
            logger.error(f"Raw response:\n{response}")
            logger.error(f"Sanitized response:\n{sanitized}")

            # Try to diagnose the issue
            if '{' not in response:
                logger.error("Diagnosis: No opening brace '{' found in response")
            elif '}' not in response:
                logger.error("Diagnosis: No closing brace '}' found in response")
            elif sanitized.count('{') != sanitized.count('}'):
                logger.error(f"Diagnosis: Mismatched braces - {{ count: {sanitized.count('{')}, }} count: {sanitized.count('}')}")
            elif f"'{required_key}'" not in response and f'"{required_key}"' not in response:
                logger.error(f"Diagnosis: '{required_key}' key not found in response")
            else:
                logger.error("Diagnosis: Unknown parsing issue - possibly malformed dict syntax")
            return None

    def generate_suggestions(self, current_input: str, target: str, difficulty: int,
                             puzzle_type: str | None = None, puzzle: str | None = None) -> dict | None:
        profile = get_tier_profile(difficulty)
        limits = get_suggestion_limits(profile.input, difficulty)

        prompt = f"""
            Generate suggestions for a puzzle answer being typed.

            Current input: "{current_input}"
            Correct answer: "{target}"
            Difficulty: {difficulty}/{MAX_DIFFICULTY} ({profile.name})
            {f'Puzzle: "{puzzle}"' if puzzle else ''}
            {f'Puzzle type: {puzzle_type}' if puzzle_type else ''}

            Generate suggestions that:
            - {'Provide character-level suggestions for the next 1-3 characters' if limits.character_level else 'Skip character-level suggestions'}
            - {f'Provide 1-{limits.max_suggestions} word-level, autocomplete-style suggestions' if limits.word_level else 'Skip word-level suggestions'}
            - {HELP_LEVELS[profile.name]}
            - Never reveal the full answer at once
            Only suggest if confidence is above {limits.confidence_threshold}. Be subtle and encouraging.

            Respond with ONLY a Python dictionary in this exact format:
            {{
                'character_suggestions': [{{'position': 0, 'suggested_char': 'a', 'confidence': 0.9, 'reason': '...'}}],
                'word_suggestions': [{{'word': '...', 'confidence': 0.9, 'reason': '...'}}]
            }}
            Return ONLY the dictionary, no other text.
        """
        response, ms = self._execute('suggestions', prompt)
        return self._parse_dict('suggestions', response, 'word_suggestions')

    def generate_contextual_hint(self, current_input: str, target: str, difficulty: int,
                                 puzzle_type: str | None = None, puzzle: str | None = None,
                                 time_spent: float | None = None) -> dict | None:
        profile = get_tier_profile(difficulty)
        progress = self.estimator.estimate(current_input, target)
        if progress < 0.3:
            goal = "Encourages the user to keep thinking"
        elif progress < 0.7:
            goal = "Provides gentle direction"
        else:
            goal = "Helps them finish strong"

        prompt = f"""
            Generate a contextual hint for a puzzle answer being typed.

            Current input: "{current_input}"
            Correct answer: "{target}"
            Difficulty: {difficulty}/{MAX_DIFFICULTY} ({profile.name})
            Progress: {round(progress * 100)}%
            {f'Puzzle: "{puzzle}"' if puzzle else ''}
            {f'Puzzle type: {puzzle_type}' if puzzle_type else ''}
            {f'Time spent: {int(time_spent)}s' if time_spent else ''}

            Generate a hint that:
            - Is appropriate for {profile.name} difficulty
            - {goal}
            - Matches a {profile.input.message_tone.value} tone
            - Does not give the answer away

            Respond with ONLY a Python dictionary:
            {{'hint': '...', 'type': 'encouragement' | 'direction' | 'correction' | 'strategy', 'urgency': 'low' | 'medium' | 'high'}}
        """
        response, ms = self._execute('contextual_hint', prompt)
        if '{' not in response:
            # Plain-text answer: use it as a direction hint
            text = response.strip()
            return {'hint': text, 'type': 'direction', 'urgency': 'medium'} if text else None
        return self._parse_dict('contextual_hint', response, 'hint')

    def generate_tactic_content(self, tactic: TacticType, puzzle: str | None, target: str,
                                difficulty: int, current_input: str,
                                progress: float | None = None,
                                time_spent: float | None = None) -> str | None:
        pressure = get_tier_profile(difficulty).pressure
        tactic = TacticType(tactic)

        prompt = f"""
            {pressure.system_prompt}

            {TACTIC_INSTRUCTIONS[tactic]}

            Puzzle: "{puzzle or 'unknown'}"
            Correct answer (never reveal or spell it out): "{target}"
            Player's current input: "{current_input}"
            {f'Progress: {round(progress * 100)}%' if progress is not None else ''}
            {f'Time spent: {int(time_spent)}s' if time_spent else ''}

            Keep it under 15 words. Write only the line itself, no quotes, no explanations.
        """
        response, ms = self._execute(f"tactic:{tactic.value}", prompt, temperature=pressure.temperature)
        text = response.strip().strip('"').strip()
        if not text:
            raise ContentServiceError(f"Empty {tactic.value} content")
        if target and target.casefold() in text.casefold():
            logger.warning(f"{tactic.value} content revealed the answer, discarding it")
            raise ContentServiceError(f"{tactic.value} content revealed the answer")
        return text

    def generate_feedback_message(self, current_input: str, target: str, difficulty: int,
                                  is_valid: bool, is_complete: bool) -> str:
        # Local template, no model call
        tone = get_tier_profile(difficulty).input.message_tone
        return local_feedback_message(tone, is_valid, is_complete)
