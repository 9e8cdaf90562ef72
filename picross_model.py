import logging
import os
import re
import uuid
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence, Set

import pygame

from picross_codec import (
    BinaryReader, BinaryWriter, PuzzleFormatError,
    derive_clues, derive_clues_grid, pack_bits, unpack_bits,
)
from picross_context import (
    AppContext, Notifier, NullNotifier, SOUND_CROSS, SOUND_ERASE, SOUND_FILL,
)

logger = logging.getLogger(__name__)

# ----------------------------
# Domain model
# ----------------------------

PUZZLE_FILE_MAGIC = b"KGRM"
PUZZLE_FILE_VERSION = 2
PUZZLE_FILE_SUFFIX = ".kgram"

DEFAULT_TITLE = "Untitled"
DEFAULT_HIDDEN_TITLE = "????????"


class CellState(IntEnum):
    EMPTY = 0
    FILLED = 1
    CROSSED = 2
    CROSSED_AUTO = 3


class Axis(IntEnum):
    COLUMNS = 0
    ROWS = 1


class ImageImportError(Exception):
    """Raised when an image cannot be turned into a puzzle."""


@dataclass(frozen=True)
class Category:
    category_id: uuid.UUID
    name: str


CATEGORIES: List[Category] = [
    Category(uuid.UUID("21f9ebaa-fd9e-4aef-b1c0-7784505332bb"), "Activities"),
    Category(uuid.UUID("f99d6018-5d2a-490e-a6d4-86ba306f66de"), "Animals"),
    Category(uuid.UUID("3685d5ad-d4de-4c64-a909-fed9e354924b"), "Anime & Manga"),
    Category(uuid.UUID("e812e23e-53c6-4a48-a2c5-311ab0a0cbc2"), "Food"),
    Category(uuid.UUID("ca902d53-9c6b-4278-8ca3-2a58271140e6"), "Fun"),
    Category(uuid.UUID("a4659542-38fa-4163-881c-1bdd72abfc3b"), "Games & Media"),
    Category(uuid.UUID("8d5e0425-4a99-4a4f-a510-3f08b3fb0bef"), "Mythology"),
    Category(uuid.UUID("3b2ff551-cb7e-4233-abab-446820a6315e"), "Nature"),
    Category(uuid.UUID("3a0b6445-20a3-4c18-b465-b083ec01d5bc"), "People"),
    Category(uuid.UUID("e3c71c46-f4f3-4ff5-a0a1-a987be0cf2ec"), "Symbols"),
    Category(uuid.UUID("35818fdf-4af3-4788-a4ea-2158375360fd"), "Traditions"),
    Category(uuid.UUID("5dda4f68-c8ee-4657-aa76-95b22e007533"), "Transport"),
    Category(uuid.UUID("dde4b597-5384-45c8-9900-65e982e33044"), "Urban & City"),
    Category(uuid.UUID("33b3dd03-ace0-47c0-9da2-e00d8de01996"), "Weapons"),
]


class Puzzle:
    """A nonogram: hidden solution, player progress and the clues derived from the solution.

    Both grids are flat, row-major and only reachable through the accessors
    below; History works on copies from snapshot_state().
    """

    def __init__(
        self,
        width: int,
        height: int,
        author: Optional[uuid.UUID] = None,
        solution: Optional[Sequence[bool]] = None,
        puzzle_id: Optional[uuid.UUID] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        if width < 1 or height < 1:
            raise ValueError(f"Puzzle size must be positive, got {width}x{height}.")
        if solution is not None and len(solution) != width * height:
            raise ValueError("Solution length does not match puzzle size.")

        self.id: uuid.UUID = puzzle_id if puzzle_id is not None else uuid.uuid4()
        self.author: uuid.UUID = author if author is not None else uuid.UUID(int=0)
        self.title: str = DEFAULT_TITLE
        self.hidden_title: str = DEFAULT_HIDDEN_TITLE
        self.categories: Set[uuid.UUID] = set()
        self.notifier: Notifier = notifier if notifier is not None else NullNotifier()

        self._width = width
        self._height = height
        self._solution: List[bool] = [bool(v) for v in solution] if solution is not None else [False] * (width * height)
        self._state: List[CellState] = []

        self.clues: List[List[List[int]]] = [[], []]
        self.hint_crossed: List[List[List[bool]]] = [[], []]

        # pygame surface with the solution image, generated on demand
        self.preview: Optional[pygame.Surface] = None
        self.filename: Optional[str] = None

        self.prepare_for_play()

    # ----------------------------
    # Basic accessors
    # ----------------------------

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def _index(self, x: int, y: int) -> int:
        if not self.in_bounds(x, y):
            raise IndexError(f"Cell ({x},{y}) outside {self._width}x{self._height} puzzle.")
        return y * self._width + x

    def line_length(self, axis: int) -> int:
        """Number of cells along one line of the given axis."""
        return self._height if axis == Axis.COLUMNS else self._width

    def line_count(self, axis: int) -> int:
        return self._width if axis == Axis.COLUMNS else self._height

    def solution_at(self, x: int, y: int) -> bool:
        return self._solution[self._index(x, y)]

    def set_solution_at(self, x: int, y: int, fill: bool) -> None:
        i = self._index(x, y)
        if self._solution[i] == fill:
            return
        self._solution[i] = fill
        self.notifier.notify(SOUND_FILL if fill else SOUND_ERASE)

    def state_at(self, x: int, y: int) -> CellState:
        return self._state[self._index(x, y)]

    def set_state_at(self, x: int, y: int, value: CellState) -> None:
        i = self._index(x, y)
        if self._state[i] == value:
            return
        self._state[i] = value

        # Deduced crosses in this row and column no longer hold.
        if value in (CellState.EMPTY, CellState.FILLED):
            row = y * self._width
            for cx in range(self._width):
                if self._state[row + cx] == CellState.CROSSED_AUTO:
                    self._state[row + cx] = CellState.EMPTY
            for cy in range(self._height):
                j = cy * self._width + x
                if self._state[j] == CellState.CROSSED_AUTO:
                    self._state[j] = CellState.EMPTY

    def solution_copy(self) -> List[bool]:
        return list(self._solution)

    def snapshot_state(self) -> List[CellState]:
        return list(self._state)

    def restore_state(self, snapshot: Sequence[CellState]) -> None:
        if len(snapshot) != self._width * self._height:
            raise ValueError(f"State snapshot has {len(snapshot)} cells, expected {self._width * self._height}.")
        self._state = [CellState(v) for v in snapshot]

    # ----------------------------
    # Game lifecycle
    # ----------------------------

    def prepare_for_play(self) -> None:
        self._state = [CellState.EMPTY] * (self._width * self._height)
        self.regenerate_clues()

    def regenerate_clues(self) -> None:
        for axis in (Axis.COLUMNS, Axis.ROWS):
            clues = derive_clues_grid(self._solution, self._width, self._height, axis)
            old = self.hint_crossed[axis]
            crossed: List[List[bool]] = []
            for i, line in enumerate(clues):
                if i < len(old) and len(old[i]) == len(line):
                    crossed.append(old[i])
                else:
                    crossed.append([False] * len(line))
            self.clues[axis] = clues
            self.hint_crossed[axis] = crossed

    def clear_hint_crosses(self) -> None:
        self.hint_crossed = [[[False] * len(line) for line in self.clues[axis]] for axis in (Axis.COLUMNS, Axis.ROWS)]

    def resize(self, new_width: int, new_height: int) -> None:
        if new_width < 1 or new_height < 1:
            raise ValueError(f"Puzzle size must be positive, got {new_width}x{new_height}.")
        solution = [False] * (new_width * new_height)
        for y in range(min(new_height, self._height)):
            for x in range(min(new_width, self._width)):
                solution[y * new_width + x] = self._solution[y * self._width + x]
        self._solution = solution
        self._width = new_width
        self._height = new_height
        self.preview = None
        self.prepare_for_play()

    def is_solved(self) -> bool:
        for want, have in zip(self._solution, self._state):
            if want != (have == CellState.FILLED):
                return False
        return True

    def line_states(self, axis: int, index: int) -> List[CellState]:
        if axis == Axis.COLUMNS:
            return [self._state[y * self._width + index] for y in range(self._height)]
        return self._state[index * self._width:(index + 1) * self._width]

    def line_signature(self, axis: int, index: int) -> List[int]:
        """Run lengths of the player's filled cells along one line."""
        line = [s == CellState.FILLED for s in self.line_states(axis, index)]
        return derive_clues(line, len(line), 1, Axis.ROWS, 0)

    def line_signatures(self, axis: int) -> List[List[int]]:
        filled = [s == CellState.FILLED for s in self._state]
        return derive_clues_grid(filled, self._width, self._height, axis)

    def toggle_hint_cross(self, axis: int, line: int, clue_index: int) -> bool:
        flags = self.hint_crossed[axis][line]
        flags[clue_index] = not flags[clue_index]
        self.notifier.notify(SOUND_CROSS if flags[clue_index] else SOUND_ERASE)
        return flags[clue_index]

    # ----------------------------
    # Metadata
    # ----------------------------

    def is_previously_solved(self, ctx: AppContext) -> bool:
        return ctx.identity == self.author or ctx.archive.is_solved(self.id)

    def display_title(self, ctx: AppContext) -> str:
        if ctx.config.show_puzzle_names or self.is_previously_solved(ctx):
            return self.title
        return self.hidden_title

    def category_names(self) -> str:
        names = [c.name for c in CATEGORIES if c.category_id in self.categories]
        if not names:
            return "None"
        return ", ".join(names)

    # ----------------------------
    # Construction helpers
    # ----------------------------

    @classmethod
    def create(cls, width: int, height: int, author: uuid.UUID, notifier: Optional[Notifier] = None) -> "Puzzle":
        return cls(width, height, author=author, notifier=notifier)

    @classmethod
    def from_image(cls, path: str, author: uuid.UUID, notifier: Optional[Notifier] = None) -> "Puzzle":
        """One cell per pixel; pixels darker than 50% lightness are filled."""
        try:
            surf = pygame.image.load(path)
        except (pygame.error, OSError) as e:
            raise ImageImportError(f"Cannot load image {path}: {e}") from e

        w, h = surf.get_size()
        if w < 1 or h < 1:
            raise ImageImportError(f"Image {path} is empty.")
        solution = []
        for y in range(h):
            for x in range(w):
                solution.append(surf.get_at((x, y)).hsla[2] < 50.0)
        logger.info("Imported %dx%d puzzle from %s", w, h, path)
        return cls(w, h, author=author, solution=solution, notifier=notifier)

    # ----------------------------
    # Serialization
    # ----------------------------

    def to_bytes(self) -> bytes:
        w = BinaryWriter()
        w.write_bytes(PUZZLE_FILE_MAGIC)
        w.write_byte(PUZZLE_FILE_VERSION)
        w.write_uuid(self.id)
        w.write_uuid(self.author)
        w.write_string(self.title)
        w.write_int32(self._width)
        w.write_int32(self._height)

        cats = sorted(self.categories, key=lambda c: c.bytes_le)
        w.write_int32(len(cats))
        for c in cats:
            w.write_uuid(c)

        bits = pack_bits(self._solution)
        w.write_int32(len(bits))
        w.write_bytes(bits)
        return w.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes, notifier: Optional[Notifier] = None) -> "Puzzle":
        r = BinaryReader(data)
        if r.remaining < 4 or r.read_bytes(4) != PUZZLE_FILE_MAGIC:
            raise PuzzleFormatError("File is corrupted or not a puzzle file.")
        version = r.read_byte()
        if version < 1 or version > PUZZLE_FILE_VERSION:
            raise PuzzleFormatError(f"File version {version} incompatible.")

        puzzle_id = r.read_uuid()
        author = r.read_uuid()
        title = r.read_string()
        width = r.read_int32()
        height = r.read_int32()
        if width < 1 or height < 1:
            raise PuzzleFormatError(f"Invalid puzzle size {width}x{height}.")

        categories: Set[uuid.UUID] = set()
        if version >= 2:
            num = r.read_int32()
            if num < 0:
                raise PuzzleFormatError("Negative category count.")
            for _ in range(num):
                categories.add(r.read_uuid())

        solution = unpack_bits(r.read_bytes(r.read_int32()), width * height)

        ret = cls(width, height, author=author, solution=solution, puzzle_id=puzzle_id, notifier=notifier)
        ret.title = title
        ret.hidden_title = "?" * len(title)
        ret.categories = categories
        return ret

    @classmethod
    def from_file(cls, path: str, notifier: Optional[Notifier] = None) -> "Puzzle":
        with open(path, "rb") as f:
            data = f.read()
        ret = cls.from_bytes(data, notifier=notifier)
        ret.filename = path
        return ret

    def file_basename(self) -> str:
        if not self.title.strip():
            raise ValueError("Puzzle title must not be empty.")
        stem = f"{self.title[:20]}_{self.id}".lower()
        return re.sub(r"[^a-z0-9]", "_", stem) + PUZZLE_FILE_SUFFIX

    def save(self, directory: str) -> str:
        """Write the puzzle into `directory`; a previously written file of this puzzle is removed first."""
        path = os.path.join(directory, self.file_basename())
        if self.filename and os.path.exists(self.filename):
            os.remove(self.filename)
        self.filename = path
        with open(path, "wb") as f:
            f.write(self.to_bytes())
        logger.info("Saved puzzle '%s' to %s", self.title, path)
        return path
