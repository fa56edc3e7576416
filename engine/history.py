"""Bounded undo/redo history of (text, cursor) snapshots."""

from collections import deque

from .config import HISTORY_MAX_DEPTH
from .models import CursorPosition, EditSnapshot


class EditHistoryManager:
    """Undo and redo stacks, each capped at ``max_depth`` entries.

    When a stack is full the oldest snapshot is dropped. Undo and redo take
    the live (text, cursor) so the state being left can be restored later.
    """

    def __init__(self, max_depth: int = HISTORY_MAX_DEPTH):
        if max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {max_depth}")
        self.max_depth = max_depth
        self._undo: deque[EditSnapshot] = deque(maxlen=max_depth)
        self._redo: deque[EditSnapshot] = deque(maxlen=max_depth)

    def push(self, snapshot: EditSnapshot) -> bool:
        """Record a snapshot for a new edit. Returns False for a duplicate."""
        if self._undo and self._undo[-1].text == snapshot.text:
            return False
        self._undo.append(snapshot)
        self._redo.clear()
        return True

    def undo(self, current_text: str, current_cursor: CursorPosition) -> EditSnapshot | None:
        if not self._undo:
            return None
        self._redo.append(EditSnapshot(current_text, current_cursor))
        return self._undo.pop()

    def redo(self, current_text: str, current_cursor: CursorPosition) -> EditSnapshot | None:
        if not self._redo:
            return None
        self._undo.append(EditSnapshot(current_text, current_cursor))
        return self._redo.pop()

    def can_undo(self) -> bool:
        return len(self._undo) > 0

    def can_redo(self) -> bool:
        return len(self._redo) > 0

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
