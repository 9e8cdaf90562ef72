import glob
import logging
import os
from typing import List, Tuple

from picross_codec import PuzzleFormatError
from picross_context import AppContext
from picross_model import PUZZLE_FILE_SUFFIX, Puzzle

logger = logging.getLogger(__name__)


def list_puzzle_files(directory: str) -> List[str]:
    if not directory or not os.path.isdir(directory):
        return []
    return sorted(glob.glob(os.path.join(directory, "*" + PUZZLE_FILE_SUFFIX)))


def load_puzzles(paths: List[str]) -> Tuple[List[Puzzle], List[str]]:
    """Parse every file; broken ones are skipped and returned in the second list."""
    puzzles: List[Puzzle] = []
    skipped: List[str] = []
    for path in paths:
        try:
            puzzles.append(Puzzle.from_file(path))
        except (PuzzleFormatError, OSError) as e:
            logger.warning("Skipping %s: %s", path, e)
            skipped.append(path)
    return puzzles, skipped


class Catalog:
    """Every puzzle from the factory and custom directories, plus the subset the player may edit."""

    def __init__(self, ctx: AppContext) -> None:
        self.ctx = ctx
        self.all: List[Puzzle] = []
        self.editable: List[Puzzle] = []
        self.skipped: List[str] = []

    def paths(self) -> List[str]:
        return list_puzzle_files(self.ctx.factory_dir) + list_puzzle_files(self.ctx.custom_dir)

    def refresh(self) -> None:
        puzzles, skipped = load_puzzles(self.paths())
        self.install(puzzles, skipped)

    def install(self, puzzles: List[Puzzle], skipped: List[str]) -> None:
        """Replace the collections with freshly loaded puzzles."""
        self.release_previews()
        for p in puzzles:
            p.notifier = self.ctx.notifier
        self.all = list(puzzles)
        self.editable = [p for p in puzzles if self.can_edit(p)]
        self.skipped = list(skipped)
        logger.info("Catalog: %d puzzles, %d editable, %d skipped",
                    len(self.all), len(self.editable), len(self.skipped))

    def can_edit(self, puzzle: Puzzle) -> bool:
        return self.ctx.debug or puzzle.author == self.ctx.identity

    def release_previews(self) -> None:
        for p in self.all:
            p.preview = None

    def collection(self, editor: bool) -> List[Puzzle]:
        return self.editable if editor else self.all
