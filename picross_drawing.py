import math
import pygame
from dataclasses import dataclass
from typing import List, Optional, Tuple

from picross_interaction import OFF_GRID, BoardInteraction
from picross_model import Axis, CellState, Puzzle
import grid_style

PREVIEW_EXTENT = 200
PREVIEW_BORDER = 10

CELL_COLORS = {
    CellState.EMPTY: grid_style.COLOR_EMPTY,
    CellState.FILLED: grid_style.COLOR_FILLED,
    CellState.CROSSED: grid_style.COLOR_EMPTY,
    CellState.CROSSED_AUTO: grid_style.COLOR_EMPTY,
}


@dataclass
class ClueHit:
    rect: pygame.Rect
    axis: int
    line: int
    clue_index: int


def clamp_int(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def generate_preview(puzzle: Puzzle) -> pygame.Surface:
    """Black-on-white solution image, cached on the puzzle until the catalog drops it."""
    if puzzle.preview is not None:
        return puzzle.preview
    cell = int(math.ceil(PREVIEW_EXTENT / max(puzzle.width, puzzle.height)))
    surf = pygame.Surface((puzzle.width * cell + 2 * PREVIEW_BORDER, puzzle.height * cell + 2 * PREVIEW_BORDER))
    surf.fill(grid_style.COLOR_PREVIEW_BG)
    for y in range(puzzle.height):
        for x in range(puzzle.width):
            if puzzle.solution_at(x, y):
                rect = pygame.Rect(PREVIEW_BORDER + x * cell, PREVIEW_BORDER + y * cell, cell, cell)
                pygame.draw.rect(surf, grid_style.COLOR_PREVIEW_FILL, rect)
    puzzle.preview = surf
    return surf


def draw_cross(screen: pygame.Surface, rect: pygame.Rect, color: Tuple[int, int, int]) -> None:
    pad = max(2, rect.width // 5)
    pygame.draw.line(screen, color, (rect.left + pad, rect.top + pad), (rect.right - pad, rect.bottom - pad), 2)
    pygame.draw.line(screen, color, (rect.left + pad, rect.bottom - pad), (rect.right - pad, rect.top + pad), 2)


def draw_cell(screen: pygame.Surface, rect: pygame.Rect, state: CellState) -> None:
    pygame.draw.rect(screen, CELL_COLORS[state], rect)
    if state == CellState.CROSSED:
        draw_cross(screen, rect, grid_style.COLOR_CROSS)
    elif state == CellState.CROSSED_AUTO:
        draw_cross(screen, rect, grid_style.COLOR_CROSS_AUTO)
    pygame.draw.rect(screen, grid_style.COLOR_GRID_LINES, rect, 1)


def draw_board(screen: pygame.Surface, interaction: BoardInteraction, font: pygame.font.Font) -> None:
    puzzle = interaction.puzzle
    camera = interaction.camera
    t = camera.tile_size

    for y in range(puzzle.height):
        for x in range(puzzle.width):
            sx, sy = camera.cell_to_screen(x, y)
            rect = pygame.Rect(sx, sy, t, t)
            if interaction.editor:
                state = CellState.FILLED if puzzle.solution_at(x, y) else CellState.EMPTY
            else:
                state = puzzle.state_at(x, y)
            draw_cell(screen, rect, state)

    # group lines every five cells
    bx, by = camera.cell_to_screen(0, 0)
    for x in range(5, puzzle.width, 5):
        pygame.draw.line(screen, grid_style.COLOR_GROUP_LINES, (bx + x * t, by), (bx + x * t, by + puzzle.height * t), 2)
    for y in range(5, puzzle.height, 5):
        pygame.draw.line(screen, grid_style.COLOR_GROUP_LINES, (bx, by + y * t), (bx + puzzle.width * t, by + y * t), 2)

    if interaction.hover != OFF_GRID:
        hx, hy = camera.cell_to_screen(*interaction.hover)
        pygame.draw.rect(screen, grid_style.COLOR_HOVER, pygame.Rect(hx, hy, t, t), 2)

    g = interaction.gesture
    cells = interaction.preview_cells()
    if not cells:
        return
    for x, y in cells:
        sx, sy = camera.cell_to_screen(x, y)
        rect = pygame.Rect(sx, sy, t, t)
        draw_cell(screen, rect, g.target)
        pygame.draw.rect(screen, grid_style.COLOR_PREVIEW, rect, 3)

    # "drawn / existing run" counter next to the pointer
    if g.cell_total > 1 and g.cell_total != g.drawn_length and g.target != CellState.EMPTY:
        label = f"{g.drawn_length} / {g.cell_total}"
    else:
        label = str(g.drawn_length)
    mx, my = pygame.mouse.get_pos()
    surf = font.render(label, True, grid_style.COLOR_TEXT_OVERLAY)
    screen.blit(surf, (mx + 20, my + 20))


def draw_clues(screen: pygame.Surface, interaction: BoardInteraction, font: pygame.font.Font) -> List[ClueHit]:
    """Draw both clue strips and return the clickable number rectangles."""
    puzzle = interaction.puzzle
    camera = interaction.camera
    t = camera.tile_size
    back_len = 64 + t * 8
    hits: List[ClueHit] = []

    for axis in (Axis.COLUMNS, Axis.ROWS):
        for i, clues in enumerate(puzzle.clues[axis]):
            hovered = interaction.hover[0 if axis == Axis.COLUMNS else 1] == i
            if axis == Axis.COLUMNS:
                sx, sy = camera.cell_to_screen(i, 0)
                bg = pygame.Rect(sx, sy - back_len, t, back_len)
                alt = grid_style.COLOR_CLUE_BG_1 if i % 2 == 0 else grid_style.COLOR_CLUE_BG_2
            else:
                sx, sy = camera.cell_to_screen(0, i)
                bg = pygame.Rect(sx - back_len, sy, back_len, t)
                alt = grid_style.COLOR_CLUE_BG_2 if i % 2 == 0 else grid_style.COLOR_CLUE_BG_1
            pygame.draw.rect(screen, grid_style.COLOR_CLUE_BG_HOVER if hovered else alt, bg)

            satisfied = interaction.is_clue_satisfied(axis, i)
            n = len(clues)
            for j, value in enumerate(clues):
                done = satisfied or puzzle.hint_crossed[axis][i][j]
                color = grid_style.COLOR_TEXT_CLUE_DONE if done else grid_style.COLOR_TEXT_CLUE
                surf = font.render(str(value), True, color)
                if axis == Axis.COLUMNS:
                    cx = sx + t // 2
                    cy = sy - n * t + j * t + t // 2
                else:
                    cx = sx - n * t + j * t + t // 2
                    cy = sy + t // 2
                rect = surf.get_rect(center=(cx, cy))
                screen.blit(surf, rect)
                hits.append(ClueHit(rect=rect, axis=axis, line=i, clue_index=j))
    return hits


def pick_clue(hits: List[ClueHit], pos: Tuple[int, int]) -> Optional[ClueHit]:
    for hit in hits:
        if hit.rect.collidepoint(pos):
            return hit
    return None
