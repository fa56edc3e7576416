"""Unit tests for the edit history."""

import unittest

from engine.history import EditHistoryManager
from engine.models import AnswerSession, CursorPosition, EditSnapshot


class TestEditHistoryManager(unittest.TestCase):
    """Tests for EditHistoryManager."""

    def test_starts_empty(self):
        history = EditHistoryManager()
        self.assertFalse(history.can_undo())
        self.assertFalse(history.can_redo())
        self.assertEqual(history.max_depth, 50)

    def test_push_skips_duplicate_text(self):
        history = EditHistoryManager()
        self.assertTrue(history.push(EditSnapshot('H', CursorPosition(1, 1))))
        self.assertFalse(history.push(EditSnapshot('H', CursorPosition(0, 0))))
        self.assertEqual(history.undo_depth, 1)

    def test_undo_on_empty_stack_is_noop(self):
        history = EditHistoryManager()
        self.assertIsNone(history.undo('abc', CursorPosition(3, 3)))
        self.assertIsNone(history.redo('abc', CursorPosition(3, 3)))
        self.assertEqual(history.undo_depth, 0)
        self.assertEqual(history.redo_depth, 0)

    def test_undo_redo_round_trip(self):
        history = EditHistoryManager()
        history.push(EditSnapshot('', CursorPosition(0, 0)))

        restored = history.undo('H', CursorPosition(1, 1))
        self.assertEqual(restored.text, '')
        self.assertEqual(restored.cursor, CursorPosition(0, 0))
        self.assertTrue(history.can_redo())

        redone = history.redo(restored.text, restored.cursor)
        self.assertEqual(redone.text, 'H')
        self.assertEqual(redone.cursor, CursorPosition(1, 1))
        self.assertTrue(history.can_undo())
        self.assertFalse(history.can_redo())

    def test_push_clears_redo(self):
        history = EditHistoryManager()
        history.push(EditSnapshot('a'))
        history.undo('ab', CursorPosition(2, 2))
        self.assertTrue(history.can_redo())

        history.push(EditSnapshot('a'))
        self.assertFalse(history.can_redo())

    def test_redo_does_not_clear_redo_stack(self):
        history = EditHistoryManager()
        history.push(EditSnapshot('a'))
        history.push(EditSnapshot('b'))
        history.undo('c', CursorPosition())
        history.undo('b', CursorPosition())
        self.assertEqual(history.redo_depth, 2)

        snapshot = history.redo('a', CursorPosition())
        self.assertEqual(snapshot.text, 'b')
        self.assertEqual(history.redo_depth, 1)
        self.assertEqual(history.undo_depth, 1)

    def test_bounded_depth_drops_oldest(self):
        history = EditHistoryManager(max_depth=3)
        for text in ('a', 'b', 'c', 'd'):
            history.push(EditSnapshot(text))
        self.assertEqual(history.undo_depth, 3)

        texts = []
        current = 'e'
        while history.can_undo():
            snapshot = history.undo(current, CursorPosition())
            texts.append(snapshot.text)
            current = snapshot.text
        self.assertEqual(texts, ['d', 'c', 'b'])

    def test_invalid_depth(self):
        with self.assertRaises(ValueError):
            EditHistoryManager(max_depth=0)

    def test_clear(self):
        history = EditHistoryManager()
        history.push(EditSnapshot('a'))
        history.undo('b', CursorPosition())
        history.clear()
        self.assertFalse(history.can_undo())
        self.assertFalse(history.can_redo())

    def test_snapshot_equality_ignores_timestamp(self):
        first = EditSnapshot('abc', CursorPosition(1, 2), timestamp=1.0)
        second = EditSnapshot('abc', CursorPosition(1, 2), timestamp=2.0)
        self.assertEqual(first, second)
        self.assertEqual(first.to_dict(), {'text': 'abc', 'cursor': {'start': 1, 'end': 2}})


class TestAnswerSessionHistory(unittest.TestCase):
    """Tests for the history an AnswerSession is given."""

    def test_session_uses_given_history(self):
        history = EditHistoryManager(max_depth=2)
        session = AnswerSession('HELLO', 5, 0.0, history)
        self.assertIs(session.edit_history, history)
        self.assertFalse(session.to_dict()['can_undo'])

        history.push(EditSnapshot('H', CursorPosition(1, 1)))
        self.assertTrue(session.to_dict()['can_undo'])


if __name__ == '__main__':
    unittest.main()
