import sys
import os

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from picross_context import AppContext, RecordingNotifier, MUSIC_CLEAR
from picross_interaction import InputTracker, PointerSample
from picross_ui import parse_args, start_session


def test_launch_session_is_editor(tmp_path):
    ctx = AppContext(save_dir=str(tmp_path), notifier=RecordingNotifier())
    s = start_session(ctx, (1280, 720))
    assert s.editor
    assert s.puzzle.author == ctx.identity

    # clicking on the board paints the solution, it never completes a game
    sx, sy = s.interaction.camera.cell_to_screen(0, 0)
    tracker = InputTracker()
    s.tick(0.1, tracker.feed(PointerSample(x=sx + 1, y=sy + 1, primary=True)))
    s.tick(0.1, tracker.feed(PointerSample(x=sx + 1, y=sy + 1)))
    assert s.puzzle.solution_at(0, 0)
    assert not s.finished
    assert ctx.archive.solved == []
    assert MUSIC_CLEAR not in ctx.notifier.events


def test_parse_args():
    args = parse_args(["--save-dir", "/tmp/x", "--debug"])
    assert args.save_dir == "/tmp/x"
    assert args.debug
    assert args.factory_dir == "puzzles"
    assert args.sound_dir == "sounds"
