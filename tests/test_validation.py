"""Unit tests for text utilities, answer validation and progress."""

import unittest

from engine.models import CharStatus, CursorPosition, WordPart
from engine.progress import ProgressEstimator
from engine.utils import (
    calculate_similarity, delete_backward, delete_forward,
    levenshtein_distance, normalize_string, replace_selection, split_words_preserving_spaces
)
from engine.validation import AnswerValidator, char_similarity


class TestTextUtils(unittest.TestCase):
    """Tests for engine.utils."""

    def test_normalize_string(self):
        self.assertEqual(normalize_string("  Hello,   World! "), "hello world")
        self.assertEqual(normalize_string("STRASSE"), normalize_string("strasse"))
        self.assertEqual(normalize_string("   "), "")

    def test_levenshtein_distance(self):
        self.assertEqual(levenshtein_distance("kitten", "sitting"), 3)
        self.assertEqual(levenshtein_distance("", "abc"), 3)
        self.assertEqual(levenshtein_distance("abc", "abc"), 0)

    def test_similarity(self):
        self.assertEqual(calculate_similarity("abc", "abc"), 100)
        self.assertEqual(calculate_similarity("", ""), 100)
        self.assertEqual(calculate_similarity("HELLO", "hello"), 100)
        self.assertAlmostEqual(calculate_similarity("hello", "hallo"), 80.0)
        self.assertEqual(calculate_similarity("abc", "xyz"), 0)

    def test_similarity_is_symmetric(self):
        self.assertEqual(calculate_similarity("world", "word"), calculate_similarity("word", "world"))

    def test_split_words_preserving_spaces(self):
        parts = split_words_preserving_spaces("a  bc")
        self.assertEqual(parts, [
            WordPart('a', False, 0),
            WordPart('  ', True, 1),
            WordPart('bc', False, 3),
        ])
        text = " leading and  trailing "
        self.assertEqual(''.join(p.text for p in split_words_preserving_spaces(text)), text)

    def test_replace_selection(self):
        self.assertEqual(replace_selection("helo", CursorPosition(2, 2), "l"), ("hello", CursorPosition(3, 3)))
        self.assertEqual(
            replace_selection("hello world", CursorPosition(0, 5), "HI"),
            ("HI world", CursorPosition(2, 2)),
        )

    def test_replace_selection_clamps_cursor(self):
        self.assertEqual(replace_selection("ab", CursorPosition(7, 9), "c"), ("abc", CursorPosition(3, 3)))

    def test_delete_backward(self):
        self.assertEqual(delete_backward("abc", CursorPosition(3, 3)), ("ab", CursorPosition(2, 2)))
        self.assertEqual(delete_backward("abc", CursorPosition(0, 0)), ("abc", CursorPosition(0, 0)))
        self.assertEqual(delete_backward("abcd", CursorPosition(1, 3)), ("ad", CursorPosition(1, 1)))

    def test_delete_forward(self):
        self.assertEqual(delete_forward("abc", CursorPosition(0, 0)), ("bc", CursorPosition(0, 0)))
        self.assertEqual(delete_forward("abc", CursorPosition(3, 3)), ("abc", CursorPosition(3, 3)))


class TestAnswerValidator(unittest.TestCase):
    """Tests for AnswerValidator."""

    def setUp(self):
        self.validator = AnswerValidator()

    def test_validate_words_positional(self):
        self.assertEqual(self.validator.validate_words("HELLO WROLD", "HELLO WORLD"), [True, False])
        self.assertEqual(self.validator.validate_words("WORLD HELLO", "HELLO WORLD"), [False, False])

    def test_validate_words_beyond_target_are_invalid(self):
        self.assertEqual(
            self.validator.validate_words("HELLO WORLD EXTRA", "HELLO WORLD"),
            [True, True, False],
        )

    def test_validate_words_fuzzy(self):
        self.assertEqual(
            self.validator.validate_words("chalenge accepted", "Challenge Accepted"),
            [True, True],
        )
        self.assertEqual(self.validator.validate_words("helo", "hello"), [False])

    def test_validate_characters_length_matches_input(self):
        for text in ("", "H", "HELLO", "HELLO WORLD!!"):
            self.assertEqual(len(self.validator.validate_characters(text, "HELLO")), len(text))

    def test_validate_characters_statuses(self):
        self.assertEqual(
            self.validator.validate_characters("hellp", "HELLO"),
            [CharStatus.CORRECT] * 4 + [CharStatus.PARTIAL],
        )
        self.assertEqual(
            self.validator.validate_characters("hx", "HELLO"),
            [CharStatus.CORRECT, CharStatus.INCORRECT],
        )

    def test_characters_past_target_are_unknown(self):
        statuses = self.validator.validate_characters("HI THERE", "HI")
        self.assertEqual(statuses[:2], [CharStatus.CORRECT, CharStatus.CORRECT])
        self.assertTrue(all(s == CharStatus.UNKNOWN for s in statuses[2:]))

    def test_identical_input_is_all_correct(self):
        target = "Hello World"
        statuses = self.validator.validate_characters(target, target)
        self.assertTrue(all(s == CharStatus.CORRECT for s in statuses))

    def test_char_similarity(self):
        self.assertEqual(char_similarity('A', 'a'), 1.0)
        self.assertEqual(char_similarity('a', 'e'), 0.7)
        self.assertEqual(char_similarity('p', 'o'), 0.5)
        self.assertEqual(char_similarity('x', 'e'), 0.0)

    def test_character_details(self):
        details = self.validator.character_details("hx", "HE")
        self.assertEqual(details[1].index, 1)
        self.assertEqual(details[1].char, 'x')
        self.assertEqual(details[1].expected_char, 'E')
        self.assertEqual(details[1].status, CharStatus.INCORRECT)

    def test_is_correct_reflexive(self):
        for text in ("HELLO WORLD", "a", "Once in a blue moon", "rock'n'roll"):
            self.assertTrue(self.validator.is_correct(text, text))

    def test_is_correct_ignores_case_whitespace_and_punctuation(self):
        self.assertTrue(self.validator.is_correct("  hello   WORLD ", "Hello World"))
        self.assertTrue(self.validator.is_correct("hello, world!", "Hello World"))

    def test_is_correct_fuzzy(self):
        self.assertTrue(self.validator.is_correct("helo world", "hello world"))
        self.assertFalse(self.validator.is_correct("help", "hello world"))
        self.assertFalse(self.validator.is_correct("", "hello world"))

    def test_is_correct_custom_threshold(self):
        self.assertFalse(self.validator.is_correct("helo world", "hello world", threshold=95))

    def test_validate_blank_input(self):
        result = self.validator.validate("   ", "HELLO")
        self.assertEqual(result.word_valid, [])
        self.assertEqual(result.char_status, [])

    def test_validate(self):
        result = self.validator.validate("HELLO WORLD", "HELLO WORLD")
        self.assertEqual(result.word_valid, [True, True])
        self.assertEqual(len(result.char_status), 11)
        self.assertEqual(''.join(p.text for p in result.word_parts), "HELLO WORLD")
        self.assertEqual(result.to_dict()['char_status'][0], 'correct')


class TestProgressEstimator(unittest.TestCase):
    """Tests for ProgressEstimator."""

    def setUp(self):
        self.estimator = ProgressEstimator()

    def test_blank_input(self):
        self.assertEqual(self.estimator.estimate("", "HELLO WORLD"), 0.0)
        self.assertEqual(self.estimator.estimate("   ", "HELLO WORLD"), 0.0)

    def test_correct_answer(self):
        self.assertEqual(self.estimator.estimate("hello world", "HELLO WORLD"), 1.0)

    def test_floor_correction(self):
        # One correct character of eleven: base is below 0.10
        self.assertAlmostEqual(self.estimator.estimate("H", "HELLO WORLD"), 0.6 / 11 + 0.05)
        self.assertAlmostEqual(self.estimator.estimate("zzz", "HELLO WORLD"), 0.05)

    def test_no_floor_above_trigger(self):
        self.assertAlmostEqual(self.estimator.estimate("HE", "HELLO WORLD"), 0.6 * 2 / 11)

    def test_partial_answer(self):
        self.assertAlmostEqual(
            self.estimator.estimate("HELLO", "HELLO WORLD"),
            0.4 * 0.5 + 0.6 * 5 / 11,
        )

    def test_deleting_lowers_progress(self):
        longer = self.estimator.estimate("HELLO WOR", "HELLO WORLD")
        shorter = self.estimator.estimate("HELLO", "HELLO WORLD")
        self.assertLess(shorter, longer)

    def test_empty_target(self):
        self.assertEqual(self.estimator.estimate("anything", ""), 1.0)

    def test_bounds(self):
        for text in ("H", "HELLO", "HELLO WORLD EXTRA WORDS", "zzzzzzzzzzzzzzzz"):
            progress = self.estimator.estimate(text, "HELLO WORLD")
            self.assertGreaterEqual(progress, 0.0)
            self.assertLessEqual(progress, 1.0)


if __name__ == '__main__':
    unittest.main()
