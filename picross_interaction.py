"""
Board interaction: turns per-tick pointer samples into puzzle edits.

Play mode draws straight horizontal or vertical lines: press on a cell, drag,
release. The drag endpoint snaps to the nearest of four axis-aligned points at
the same Chebyshev distance from the anchor, and the whole segment is written
at release. Editor mode paints the solution grid cell by cell.

Controls (play):
- Primary button: fill / clear
- Secondary button: cross out / clear
- Middle button or pan modifier (space) + drag: pan
- Scroll: zoom
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from picross_context import (
    AppContext, MUSIC_CLEAR, SOUND_CROSS, SOUND_ERASE, SOUND_FILL, SOUND_PENCIL,
)
from picross_history import History
from picross_model import Axis, CellState, Puzzle

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]  # (x, y)

OFF_GRID: Cell = (-1, -1)

TILE_SIZES = (12, 16, 24, 32, 48)

PRIMARY = "primary"
SECONDARY = "secondary"

GESTURE_SOUNDS = {
    CellState.EMPTY: SOUND_ERASE,
    CellState.FILLED: SOUND_FILL,
    CellState.CROSSED: SOUND_CROSS,
}


class GesturePhase(Enum):
    IDLE = "idle"
    DRAWING = "drawing"


# ----------------------------
# Input abstraction
# ----------------------------

@dataclass
class PointerSample:
    """Raw device state for one tick."""
    x: int = 0
    y: int = 0
    primary: bool = False
    secondary: bool = False
    middle: bool = False
    pan_modifier: bool = False
    scroll: int = 0


@dataclass
class InputFrame:
    prev: PointerSample
    curr: PointerSample
    # False while a dialog or another layer owns the input
    active: bool = True

    @property
    def primary_down(self) -> bool:
        return self.curr.primary and not self.prev.primary

    @property
    def secondary_down(self) -> bool:
        return self.curr.secondary and not self.prev.secondary

    @property
    def middle_down(self) -> bool:
        return self.curr.middle and not self.prev.middle

    @property
    def pan_modifier_down(self) -> bool:
        return self.curr.pan_modifier and not self.prev.pan_modifier

    def held(self, button: str) -> bool:
        return self.curr.primary if button == PRIMARY else self.curr.secondary

    def pressed(self, button: str) -> bool:
        return self.primary_down if button == PRIMARY else self.secondary_down


class InputTracker:
    """Pairs each new sample with the previous one so edges can be detected."""

    def __init__(self) -> None:
        self._prev = PointerSample()

    def feed(self, sample: PointerSample, active: bool = True) -> InputFrame:
        frame = InputFrame(prev=self._prev, curr=sample, active=active)
        self._prev = sample
        return frame


# ----------------------------
# Camera
# ----------------------------

@dataclass
class Camera:
    offset_x: int = 0
    offset_y: int = 0
    tile_index: int = len(TILE_SIZES) - 1

    @property
    def tile_size(self) -> int:
        return TILE_SIZES[self.tile_index]

    def cell_at(self, px: int, py: int, width: int, height: int) -> Cell:
        t = self.tile_size
        if px < self.offset_x or py < self.offset_y:
            return OFF_GRID
        if px >= self.offset_x + width * t or py >= self.offset_y + height * t:
            return OFF_GRID
        return ((px - self.offset_x) // t, (py - self.offset_y) // t)

    def cell_to_screen(self, x: int, y: int) -> Tuple[int, int]:
        return self.offset_x + x * self.tile_size, self.offset_y + y * self.tile_size

    def zoom_to(self, level: int, width: int, height: int) -> None:
        """Change tile size keeping the board centre where it was."""
        level = max(0, min(len(TILE_SIZES) - 1, level))
        old = self.tile_size
        self.tile_index = level
        diff = self.tile_size - old
        self.offset_x -= int(diff * width / 2)
        self.offset_y -= int(diff * height / 2)

    def fit(self, width: int, height: int, view_w: int, view_h: int) -> None:
        """Largest tile size that leaves room for the clues, board centred."""
        def fits(size: int) -> bool:
            return int(width * 1.5 * size) < view_w - 256 and int(height * 1.5 * size) < view_h - 64

        self.tile_index = len(TILE_SIZES) - 1
        while self.tile_index > 0 and not fits(self.tile_size):
            self.tile_index -= 1
        self.offset_x = view_w // 2 - width * self.tile_size // 2
        self.offset_y = view_h // 2 - height * self.tile_size // 2

    def clamp(self, width: int, height: int, view_w: int, view_h: int) -> None:
        """Keep part of the board on screen."""
        margin = 100 + self.tile_size * 4
        xmin = -width * self.tile_size + margin
        ymin = -height * self.tile_size + margin
        xmax = view_w - 16
        ymax = view_h - 16
        self.offset_x = max(xmin, min(xmax, self.offset_x))
        self.offset_y = max(ymin, min(ymax, self.offset_y))


# ----------------------------
# Line geometry
# ----------------------------

def snap_endpoint(anchor: Cell, hover: Cell) -> Tuple[Cell, bool, int]:
    """Nearest of the four axis-aligned endpoints at the hover's Chebyshev distance.

    Returns (endpoint, vertical, linear_dist). Candidates are tried left,
    right, up, down; the first one wins a tie.
    """
    ax, ay = anchor
    hx, hy = hover
    dist = max(abs(hx - ax), abs(hy - ay))
    candidates = [
        ((ax - dist, ay), False),
        ((ax + dist, ay), False),
        ((ax, ay - dist), True),
        ((ax, ay + dist), True),
    ]
    best = candidates[0]
    best_dist = math.inf
    for cand in candidates:
        (cx, cy), _ = cand
        d = math.hypot(hx - cx, hy - cy)
        if d < best_dist:
            best_dist = d
            best = cand
    return best[0], best[1], dist


def segment_cells(anchor: Cell, endpoint: Cell) -> List[Cell]:
    out = []
    for y in range(min(anchor[1], endpoint[1]), max(anchor[1], endpoint[1]) + 1):
        for x in range(min(anchor[0], endpoint[0]), max(anchor[0], endpoint[0]) + 1):
            out.append((x, y))
    return out


def run_total(puzzle: Puzzle, anchor: Cell, endpoint: Cell, vertical: bool, target: CellState) -> int:
    """Drawn segment length plus adjacent cells that already hold `target` on either side."""
    if vertical:
        x = anchor[0]
        lo = min(anchor[1], endpoint[1])
        hi = max(anchor[1], endpoint[1])
        while lo > 0 and puzzle.state_at(x, lo - 1) == target:
            lo -= 1
        while hi < puzzle.height - 1 and puzzle.state_at(x, hi + 1) == target:
            hi += 1
    else:
        y = anchor[1]
        lo = min(anchor[0], endpoint[0])
        hi = max(anchor[0], endpoint[0])
        while lo > 0 and puzzle.state_at(lo - 1, y) == target:
            lo -= 1
        while hi < puzzle.width - 1 and puzzle.state_at(hi + 1, y) == target:
            hi += 1
    return hi - lo + 1


# ----------------------------
# Interaction engine
# ----------------------------

class SessionHooks:
    """What the interaction engine needs from the session that owns it."""

    @property
    def finished(self) -> bool:
        return False

    def begin_completion(self) -> None:
        pass

    def mark_dirty(self) -> None:
        pass


@dataclass
class GestureState:
    phase: GesturePhase = GesturePhase.IDLE
    anchor: Cell = OFF_GRID
    endpoint: Cell = OFF_GRID
    vertical: bool = False
    target: Optional[CellState] = None
    linear_dist: int = 0
    cell_total: int = 0

    @property
    def drawing(self) -> bool:
        return self.phase == GesturePhase.DRAWING

    @property
    def drawn_length(self) -> int:
        return self.linear_dist + 1


class BoardInteraction:
    def __init__(
        self,
        ctx: AppContext,
        puzzle: Puzzle,
        history: Optional[History] = None,
        hooks: Optional[SessionHooks] = None,
        editor: bool = False,
        view_size: Tuple[int, int] = (1280, 720),
    ) -> None:
        self.ctx = ctx
        self.history = history if history is not None else History()
        self.hooks = hooks if hooks is not None else SessionHooks()
        self.editor = editor
        self.view_w, self.view_h = view_size

        self.camera = Camera()
        self.gesture = GestureState()
        self.hover: Cell = OFF_GRID
        self.old_hover: Cell = OFF_GRID
        self.capture: Optional[str] = None
        self._pan_last: Tuple[int, int] = (0, 0)
        # editor paint target, decided by the first cell touched
        self._paint_fill: Optional[bool] = None

        self.line_state: List[List[List[int]]] = [[], []]
        self.puzzle = puzzle
        self.bind(puzzle)

    # ----------------------------
    # Lifecycle
    # ----------------------------

    def bind(self, puzzle: Puzzle) -> None:
        """Attach a puzzle and start over: fresh state, no history, board fitted to the view."""
        self.cancel_gesture()
        self.puzzle = puzzle
        puzzle.prepare_for_play()
        self.history.clear()
        self.capture = None
        self.hover = OFF_GRID
        self.old_hover = OFF_GRID
        self.camera.fit(puzzle.width, puzzle.height, self.view_w, self.view_h)
        self.recompute_line_state()

    def set_view_size(self, view_w: int, view_h: int) -> None:
        self.view_w, self.view_h = view_w, view_h

    def cancel_gesture(self) -> None:
        """Drop an in-progress gesture without touching the puzzle."""
        self.gesture = GestureState()
        self._paint_fill = None

    def recompute_line_state(self) -> None:
        self.line_state = [
            self.puzzle.line_signatures(Axis.COLUMNS),
            self.puzzle.line_signatures(Axis.ROWS),
        ]

    def is_clue_satisfied(self, axis: int, index: int) -> bool:
        lines = self.line_state[axis]
        return index < len(lines) and lines[index] == self.puzzle.clues[axis][index]

    # ----------------------------
    # Per-tick update
    # ----------------------------

    def update(self, frame: InputFrame) -> None:
        if self.hooks.finished:
            self.hover = OFF_GRID
            return
        if not frame.active:
            return

        p = self.puzzle
        curr = frame.curr

        if curr.scroll > 0 and self.camera.tile_index < len(TILE_SIZES) - 1:
            self.camera.zoom_to(self.camera.tile_index + 1, p.width, p.height)
        elif curr.scroll < 0 and self.camera.tile_index > 0:
            self.camera.zoom_to(self.camera.tile_index - 1, p.width, p.height)

        self.hover = self.camera.cell_at(curr.x, curr.y, p.width, p.height)

        if curr.pan_modifier or curr.middle:
            self.hover = OFF_GRID
            if frame.pan_modifier_down or frame.middle_down:
                self._pan_last = (curr.x, curr.y)
            if curr.primary or curr.secondary or curr.middle:
                self.camera.offset_x += curr.x - self._pan_last[0]
                self.camera.offset_y += curr.y - self._pan_last[1]
            self._pan_last = (curr.x, curr.y)

        if self.capture is None:
            if frame.primary_down:
                self.capture = PRIMARY
            elif frame.secondary_down:
                self.capture = SECONDARY

        if self.capture is not None:
            if self.editor:
                self._update_editor(frame)
            else:
                self._update_game(frame)

        if not curr.primary and not curr.secondary:
            self.old_hover = OFF_GRID

        self.camera.clamp(p.width, p.height, self.view_w, self.view_h)

    def _update_game(self, frame: InputFrame) -> None:
        button = self.capture
        if not frame.held(button):
            if self.gesture.drawing:
                self.commit()
            self.capture = None
            return

        if self.hover == OFF_GRID:
            return

        if not self.gesture.drawing and frame.pressed(button):
            self.start_gesture(self.hover, button)

        if not self.gesture.drawing or self.hover == self.old_hover:
            return
        self.old_hover = self.hover
        self.extend_gesture(self.hover)

    def _update_editor(self, frame: InputFrame) -> None:
        if not frame.curr.primary:
            if not frame.held(self.capture):
                self.capture = None
                self._paint_fill = None
            return
        if self.capture != PRIMARY:
            return
        if self.hover == OFF_GRID or self.hover == self.old_hover:
            return

        x, y = self.hover
        if self._paint_fill is None:
            self._paint_fill = not self.puzzle.solution_at(x, y)
        self.paint_solution(x, y, self._paint_fill)
        self.old_hover = self.hover

    # ----------------------------
    # Gesture steps
    # ----------------------------

    def start_gesture(self, cell: Cell, button: str) -> None:
        current = self.puzzle.state_at(*cell)
        if button == PRIMARY:
            filled = current not in (CellState.EMPTY, CellState.CROSSED_AUTO)
            target = CellState.EMPTY if filled else CellState.FILLED
        else:
            target = CellState.EMPTY if current == CellState.CROSSED else CellState.CROSSED
        self.gesture = GestureState(phase=GesturePhase.DRAWING, anchor=cell, target=target)
        # the anchor always counts as a newly hovered cell
        self.old_hover = OFF_GRID

    def extend_gesture(self, hover: Cell) -> None:
        g = self.gesture
        endpoint, vertical, dist = snap_endpoint(g.anchor, hover)
        if endpoint != g.endpoint:
            g.endpoint = endpoint
            self.ctx.notify(SOUND_PENCIL)
        g.vertical = vertical
        g.linear_dist = dist
        g.cell_total = run_total(self.puzzle, g.anchor, g.endpoint, vertical, g.target)

    def preview_cells(self) -> List[Cell]:
        """Cells the current gesture would change if released now."""
        g = self.gesture
        if not g.drawing or g.endpoint == OFF_GRID:
            return []
        out = []
        for x, y in segment_cells(g.anchor, g.endpoint):
            if not self.puzzle.in_bounds(x, y):
                continue
            if g.target == CellState.CROSSED and self.puzzle.state_at(x, y) == CellState.FILLED:
                continue
            out.append((x, y))
        return out

    def commit(self) -> None:
        g = self.gesture
        if not g.drawing:
            return
        p = self.puzzle

        self.history.push(p)

        for x, y in self.preview_cells():
            p.set_state_at(x, y, g.target)
        logger.debug("Committed %s line %s -> %s", g.target.name, g.anchor, g.endpoint)

        target = g.target
        self.gesture = GestureState()
        self.ctx.notify(GESTURE_SOUNDS[target])

        self.apply_auto_crossout()

        if p.is_solved():
            logger.info("Puzzle '%s' solved", p.title)
            self.ctx.archive.mark_solved(p.id)
            self.ctx.notify(MUSIC_CLEAR)
            self.hooks.begin_completion()

    def apply_auto_crossout(self) -> None:
        """Recompute line signatures; cross out the empty cells of every satisfied line."""
        p = self.puzzle
        enabled = self.ctx.config.auto_crossout
        for axis in (Axis.COLUMNS, Axis.ROWS):
            sigs = []
            for i in range(p.line_count(axis)):
                sig = p.line_signature(axis, i)
                sigs.append(sig)
                if not enabled or sig != p.clues[axis][i]:
                    continue
                for j in range(p.line_length(axis)):
                    x, y = (i, j) if axis == Axis.COLUMNS else (j, i)
                    if p.state_at(x, y) == CellState.EMPTY:
                        p.set_state_at(x, y, CellState.CROSSED_AUTO)
            self.line_state[axis] = sigs

    def paint_solution(self, x: int, y: int, fill: bool) -> None:
        self.puzzle.set_solution_at(x, y, fill)
        self.puzzle.regenerate_clues()
        self.hooks.mark_dirty()
