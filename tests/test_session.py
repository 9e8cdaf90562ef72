import pytest
import sys
import os
import uuid

import pygame

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from picross_context import AppContext, RecordingNotifier, MUSIC_EDIT, MUSIC_GAME
from picross_interaction import InputTracker, PointerSample
from picross_model import CATEGORIES, Axis, CellState, ImageImportError, Puzzle
from picross_session import GameSession


def make_ctx(tmp_path, debug=False):
    return AppContext(save_dir=str(tmp_path), factory_dir=str(tmp_path / "factory"),
                      notifier=RecordingNotifier(), debug=debug)


def idle():
    return InputTracker().feed(PointerSample(x=0, y=0))


def test_play_session_starts_music_and_timer(tmp_path):
    ctx = make_ctx(tmp_path)
    s = GameSession(ctx, Puzzle(3, 3))
    assert ctx.notifier.events == [MUSIC_GAME]
    assert s.puzzle.notifier is ctx.notifier
    s.tick(61.5, idle())
    assert s.format_time() == "01:01"


def test_timer_stops_when_finished(tmp_path):
    ctx = make_ctx(tmp_path)
    s = GameSession(ctx, Puzzle(1, 1))
    s.begin_completion()
    s.tick(5.0, idle())
    assert s.finished
    assert s.elapsed == 0.0


def test_restart_clears_progress(tmp_path):
    ctx = make_ctx(tmp_path)
    p = Puzzle(2, 2, solution=[True, False, False, True])
    s = GameSession(ctx, p)
    s.history.push(p)
    p.set_state_at(0, 0, CellState.FILLED)
    p.toggle_hint_cross(Axis.ROWS, 0, 0)
    s.elapsed = 12.0
    s.begin_completion()

    s.restart()
    assert all(p.state_at(x, y) == CellState.EMPTY for y in range(2) for x in range(2))
    assert not s.history.can_undo
    assert p.hint_crossed[Axis.ROWS][0] == [False]
    assert s.elapsed == 0.0
    assert not s.finished


def test_undo_redo(tmp_path):
    ctx = make_ctx(tmp_path)
    p = Puzzle(2, 1, solution=[True, True])
    s = GameSession(ctx, p)
    assert not s.undo()
    s.history.push(p)
    p.set_state_at(0, 0, CellState.FILLED)
    s.interaction.recompute_line_state()

    assert s.undo()
    assert p.state_at(0, 0) == CellState.EMPTY
    assert s.interaction.line_state[Axis.ROWS] == [[0]]
    assert s.redo()
    assert p.state_at(0, 0) == CellState.FILLED
    assert s.interaction.line_state[Axis.ROWS] == [[1]]
    assert not s.redo()


def test_new_puzzle_is_dirty_editor(tmp_path):
    ctx = make_ctx(tmp_path)
    s = GameSession.new_puzzle(ctx)
    assert s.editor
    assert s.dirty
    assert (s.puzzle.width, s.puzzle.height) == (10, 10)
    assert s.puzzle.author == ctx.identity
    assert MUSIC_EDIT in ctx.notifier.events


def test_editor_intro_shown_once(tmp_path):
    ctx = make_ctx(tmp_path)
    s = GameSession(ctx, Puzzle(2, 2), editor=True)
    assert s.take_editor_intro()
    assert not s.take_editor_intro()
    assert ctx.config.show_editor_intro is False


def test_metadata_edits_mark_dirty(tmp_path):
    ctx = make_ctx(tmp_path)
    s = GameSession(ctx, Puzzle(2, 2), editor=True)
    s.set_title(s.puzzle.title)
    assert not s.dirty
    s.set_title("Boat")
    assert s.dirty
    cat = CATEGORIES[11].category_id
    s.toggle_category(cat)
    assert cat in s.puzzle.categories
    s.toggle_category(cat)
    assert cat not in s.puzzle.categories


def test_resize_rebinds(tmp_path):
    ctx = make_ctx(tmp_path)
    s = GameSession(ctx, Puzzle(2, 2), editor=True)
    s.history.push(s.puzzle)
    s.resize(4, 3)
    assert (s.puzzle.width, s.puzzle.height) == (4, 3)
    assert len(s.puzzle.clues[Axis.COLUMNS]) == 4
    assert not s.history.can_undo
    assert s.dirty


def test_save_writes_custom_dir(tmp_path):
    ctx = make_ctx(tmp_path)
    s = GameSession.new_puzzle(ctx)
    s.set_title("Boat")
    assert s.save()
    assert not s.dirty
    assert os.path.dirname(s.puzzle.filename) == ctx.custom_dir
    assert Puzzle.from_file(s.puzzle.filename).title == "Boat"


def test_save_failure_is_reported(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    ctx = make_ctx(blocker)
    s = GameSession.new_puzzle(ctx)
    assert not s.save()
    assert s.dirty


def test_save_rejects_empty_title(tmp_path):
    ctx = make_ctx(tmp_path)
    s = GameSession.new_puzzle(ctx)
    s.set_title("")
    assert not s.save()
    assert s.dirty


def test_save_as_factory_only_in_debug(tmp_path):
    ctx = make_ctx(tmp_path)
    s = GameSession.new_puzzle(ctx)
    assert s.save_as_factory() is None

    ctx = make_ctx(tmp_path, debug=True)
    os.makedirs(ctx.factory_dir)
    s = GameSession.new_puzzle(ctx)
    path = s.save_as_factory()
    assert path is not None
    assert os.path.dirname(path) == ctx.factory_dir
    assert Puzzle.from_file(path).author == uuid.UUID(int=0)


def test_import_image_keeps_metadata(tmp_path):
    surf = pygame.Surface((4, 2))
    surf.fill((255, 255, 255))
    surf.set_at((1, 1), (0, 0, 0))
    path = str(tmp_path / "board.bmp")
    pygame.image.save(surf, path)

    ctx = make_ctx(tmp_path)
    s = GameSession.new_puzzle(ctx)
    s.set_title("Imported")
    s.toggle_category(CATEGORIES[0].category_id)
    s.import_image(path)
    assert (s.puzzle.width, s.puzzle.height) == (4, 2)
    assert s.puzzle.title == "Imported"
    assert s.puzzle.author == ctx.identity
    assert s.puzzle.categories == {CATEGORIES[0].category_id}
    assert s.puzzle.clues[Axis.ROWS] == [[0], [1]]


def test_import_failure_keeps_puzzle(tmp_path):
    ctx = make_ctx(tmp_path)
    s = GameSession.new_puzzle(ctx)
    before = s.puzzle
    with pytest.raises(ImageImportError):
        s.import_image(str(tmp_path / "missing.png"))
    assert s.puzzle is before
