"""Unit tests for the suggestion and hint scheduler."""

import asyncio
import unittest
from dataclasses import replace

from engine.models import SuggestionContext, SuggestionResult, SuggestionTiming, Urgency, WordSuggestion
from engine.suggestions import SuggestionScheduler
from engine.tiers import TIER_PROFILES
from tests.mocks import MockContentProvider

TARGET = "HELLO WORLD"

WORD_RESPONSE = {
    'character_suggestions': [{'position': 5, 'suggested_char': ' ', 'confidence': 0.9}],
    'word_suggestions': [
        {'word': 'HELLO', 'confidence': 0.95, 'reason': 'greeting'},
        {'word': 'low', 'confidence': 0.3},
    ],
}


class TestSuggestionScheduler(unittest.IsolatedAsyncioTestCase):
    """Tests for SuggestionScheduler."""

    def setUp(self):
        self.provider = MockContentProvider()

    def make_scheduler(self, tier='hard', difficulty=5, provider='mock', timeout=1.0, **overrides):
        overrides.setdefault('suggestion_threshold', 2)
        overrides.setdefault('suggestion_delay_ms', 50)
        config = replace(TIER_PROFILES[tier].input, **overrides)
        return SuggestionScheduler(
            self.provider if provider == 'mock' else provider, config,
            SuggestionContext(difficulty=difficulty, puzzle_type='rebus', puzzle='wave + globe'),
            hint_delay=0.01, timeout=timeout,
        )

    async def test_provider_suggestions_are_filtered(self):
        scheduler = self.make_scheduler()
        self.provider.set_suggestion_response(WORD_RESPONSE)

        result = await scheduler.request_suggestions("HE", TARGET)

        self.assertFalse(result.from_fallback)
        self.assertEqual([w.word for w in result.words], ['HELLO'])
        self.assertEqual(len(result.characters), 1)
        self.assertIs(scheduler.suggestions, result)
        self.assertTrue(scheduler.panel_open)
        self.assertEqual(scheduler.first_word_suggestion(), 'HELLO')

    async def test_context_forwarded(self):
        scheduler = self.make_scheduler(difficulty=4)
        await scheduler.request_suggestions("HE", TARGET)
        self.assertEqual(self.provider.generate_suggestions_calls, [("HE", TARGET, 4)])

    async def test_failure_uses_local_fallback(self):
        self.provider.fail = True
        scheduler = self.make_scheduler()

        with self.assertLogs('engine.suggestions', level='WARNING'):
            result = await scheduler.request_suggestions("HE", TARGET)

        self.assertTrue(result.from_fallback)
        self.assertEqual([w.word for w in result.words], ['hel'])
        self.assertEqual(result.characters[0].suggested_char, 'l')
        self.assertEqual(result.characters[0].position, 2)
        self.assertEqual(result.words[0].confidence, 0.5)

    async def test_empty_response_uses_local_fallback(self):
        self.provider.set_suggestion_response({'character_suggestions': [], 'word_suggestions': []})
        scheduler = self.make_scheduler()
        result = await scheduler.request_suggestions("HE", TARGET)
        self.assertTrue(result.from_fallback)

    async def test_malformed_entries_are_skipped(self):
        self.provider.set_suggestion_response({
            'word_suggestions': [{'confidence': 0.9}, {'word': 'HELLO', 'confidence': 'high'},
                                 {'word': 'HELLO', 'confidence': 0.9}],
        })
        scheduler = self.make_scheduler()
        result = await scheduler.request_suggestions("HE", TARGET)
        self.assertEqual(result.words, [WordSuggestion('HELLO', 0.9)])

    async def test_no_provider_uses_local_fallback(self):
        scheduler = self.make_scheduler(provider=None)
        result = await scheduler.request_suggestions("HE", TARGET)
        self.assertTrue(result.from_fallback)

    async def test_timeout_uses_local_fallback(self):
        self.provider.set_suggestion_response(WORD_RESPONSE, delay=0.3)
        scheduler = self.make_scheduler(timeout=0.05)
        result = await scheduler.request_suggestions("HE", TARGET)
        self.assertTrue(result.from_fallback)

    async def test_autocomplete_disabled_skips_provider(self):
        scheduler = self.make_scheduler(tier='evil', difficulty=8)
        result = await scheduler.request_suggestions("HELLO W", TARGET)
        self.assertEqual(self.provider.generate_suggestions_calls, [])
        self.assertTrue(result.from_fallback)

    async def test_below_threshold_returns_nothing(self):
        scheduler = self.make_scheduler()
        result = await scheduler.request_suggestions("H", TARGET)
        self.assertTrue(result.is_empty)
        self.assertEqual(self.provider.generate_suggestions_calls, [])

    async def test_stale_response_is_discarded(self):
        self.provider.set_suggestion_response(WORD_RESPONSE, delay=0.2)
        self.provider.set_suggestion_response(WORD_RESPONSE)
        scheduler = self.make_scheduler()

        first = asyncio.ensure_future(scheduler.request_suggestions("HE", TARGET))
        await asyncio.sleep(0.05)
        second = await scheduler.request_suggestions("HEL", TARGET)

        self.assertIsNotNone(second)
        self.assertIsNone(await first)

    async def test_on_input_below_threshold_clears(self):
        scheduler = self.make_scheduler()
        scheduler.suggestions = SuggestionResult(words=[WordSuggestion('HELLO', 0.9)])
        scheduler.panel_open = True

        scheduler.on_input("H", TARGET)

        self.assertTrue(scheduler.suggestions.is_empty)
        self.assertFalse(scheduler.panel_open)

    async def test_moderate_timing_debounces(self):
        scheduler = self.make_scheduler(suggestion_timing=SuggestionTiming.MODERATE)
        for text in ("HE", "HEL", "HELL"):
            scheduler.on_input(text, TARGET)
        self.assertEqual(self.provider.generate_suggestions_calls, [])

        await asyncio.sleep(0.15)
        await scheduler.tasks.wait()
        self.assertEqual([call[0] for call in self.provider.generate_suggestions_calls], ["HELL"])

    async def test_immediate_timing_fires_every_change(self):
        scheduler = self.make_scheduler(suggestion_timing=SuggestionTiming.IMMEDIATE)
        scheduler.on_input("HE", TARGET)
        scheduler.on_input("HEL", TARGET)
        await scheduler.tasks.wait()
        self.assertEqual(len(self.provider.generate_suggestions_calls), 2)

    async def test_on_request_timing_waits_for_panel(self):
        scheduler = self.make_scheduler(suggestion_timing=SuggestionTiming.ON_REQUEST)
        scheduler.on_input("HE", TARGET)
        await scheduler.tasks.wait()
        self.assertEqual(self.provider.generate_suggestions_calls, [])

        scheduler.open_panel()
        scheduler.on_input("HEL", TARGET)
        await scheduler.tasks.wait()
        self.assertEqual(len(self.provider.generate_suggestions_calls), 1)

    async def test_hint_from_provider(self):
        self.provider.set_hint_response({'hint': 'Think of greetings', 'type': 'direction', 'urgency': 'high'})
        scheduler = self.make_scheduler(suggestion_timing=SuggestionTiming.NONE)

        scheduler.on_input("HE", TARGET, progress=0.2)
        await scheduler.tasks.wait()

        self.assertEqual(scheduler.hint.hint, 'Think of greetings')
        self.assertEqual(scheduler.hint.urgency, Urgency.HIGH)
        self.assertFalse(scheduler.hint.from_fallback)

    async def test_hint_is_debounced(self):
        scheduler = self.make_scheduler(suggestion_timing=SuggestionTiming.NONE)
        scheduler.on_input("HE", TARGET, progress=0.1)
        scheduler.on_input("HEL", TARGET, progress=0.2)
        self.assertEqual(self.provider.generate_contextual_hint_calls, [])

        await asyncio.sleep(0.05)
        await scheduler.tasks.wait()
        self.assertEqual(self.provider.generate_contextual_hint_calls, [("HEL", TARGET, 5)])

    async def test_stale_hint_is_discarded(self):
        self.provider.set_hint_response({'hint': 'Slow hint', 'urgency': 'low'}, delay=0.3)
        self.provider.set_hint_response({'hint': 'Fast hint', 'urgency': 'high'})
        scheduler = self.make_scheduler()

        first = asyncio.ensure_future(scheduler.request_hint("HE", TARGET))
        await asyncio.sleep(0.05)
        second = await scheduler.request_hint("HEL", TARGET)

        self.assertEqual(second.hint, 'Fast hint')
        self.assertIsNone(await first)
        self.assertEqual(scheduler.hint.hint, 'Fast hint')
        self.assertEqual(scheduler.hint.urgency, Urgency.HIGH)

    async def test_hint_failure_uses_progress_band(self):
        self.provider.fail = True
        scheduler = self.make_scheduler()
        hint = await scheduler.request_hint("HELLO", TARGET, progress=0.5)
        self.assertTrue(hint.from_fallback)
        self.assertEqual(hint.urgency, Urgency.MEDIUM)

        hint = await scheduler.request_hint("HELLO WOR", TARGET, progress=0.8)
        self.assertEqual(hint.urgency, Urgency.HIGH)

    async def test_hint_with_bad_urgency(self):
        self.provider.set_hint_response({'hint': 'Look closer', 'urgency': 'extreme'})
        scheduler = self.make_scheduler()
        hint = await scheduler.request_hint("HE", TARGET)
        self.assertEqual(hint.urgency, Urgency.MEDIUM)
        self.assertEqual(hint.type, 'direction')

    async def test_plain_text_hint(self):
        self.provider.set_hint_response("  Say it out loud  ")
        scheduler = self.make_scheduler()
        hint = await scheduler.request_hint("HE", TARGET)
        self.assertEqual(hint.hint, "Say it out loud")

    async def test_hints_disabled(self):
        scheduler = self.make_scheduler(show_contextual_hints=False)
        scheduler.on_input("HE", TARGET)
        await scheduler.tasks.wait()
        self.assertIsNone(scheduler.hint)
        self.assertEqual(self.provider.generate_contextual_hint_calls, [])

    async def test_close_discards_in_flight(self):
        self.provider.set_suggestion_response(WORD_RESPONSE, delay=0.1)
        scheduler = self.make_scheduler()
        pending = asyncio.ensure_future(scheduler.request_suggestions("HE", TARGET))
        await asyncio.sleep(0)
        scheduler.close()
        self.assertIsNone(await pending)
        self.assertTrue(scheduler.suggestions.is_empty)


if __name__ == '__main__':
    unittest.main()
