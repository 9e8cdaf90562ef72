import logging
from typing import List, Optional

from picross_model import CellState, Puzzle

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 200


class History:
    """Undo/redo stacks of whole player-state snapshots.

    Pushing a new snapshot clears the redo stack. When `max_depth` is set the
    oldest undo snapshots are dropped once the stack grows past it; `None`
    keeps everything.
    """

    def __init__(self, max_depth: Optional[int] = DEFAULT_MAX_DEPTH) -> None:
        self.max_depth = max_depth
        self.undo_stack: List[List[CellState]] = []
        self.redo_stack: List[List[CellState]] = []

    @property
    def can_undo(self) -> bool:
        return len(self.undo_stack) > 0

    @property
    def can_redo(self) -> bool:
        return len(self.redo_stack) > 0

    def push(self, puzzle: Puzzle) -> None:
        self.undo_stack.append(puzzle.snapshot_state())
        self.redo_stack.clear()
        if self.max_depth is not None and len(self.undo_stack) > self.max_depth:
            del self.undo_stack[:len(self.undo_stack) - self.max_depth]
        logger.debug("History push (%d undo)", len(self.undo_stack))

    def undo(self, puzzle: Puzzle) -> bool:
        if not self.can_undo:
            return False
        self.redo_stack.append(puzzle.snapshot_state())
        puzzle.restore_state(self.undo_stack.pop())
        return True

    def redo(self, puzzle: Puzzle) -> bool:
        if not self.can_redo:
            return False
        self.undo_stack.append(puzzle.snapshot_state())
        puzzle.restore_state(self.redo_stack.pop())
        return True

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()
