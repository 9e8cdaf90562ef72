import logging
import uuid
from typing import Optional, Tuple

from picross_context import AppContext, MUSIC_EDIT, MUSIC_GAME
from picross_history import History
from picross_interaction import BoardInteraction, InputFrame, SessionHooks
from picross_model import Puzzle

logger = logging.getLogger(__name__)

NEW_PUZZLE_SIZE = (10, 10)


class GameSession(SessionHooks):
    """One puzzle being played or edited.

    Owns the undo history and the interaction engine, keeps the play timer and
    the completion flag, and tracks unsaved editor changes.
    """

    def __init__(self, ctx: AppContext, puzzle: Puzzle, editor: bool = False,
                 view_size: Tuple[int, int] = (1280, 720)) -> None:
        self.ctx = ctx
        self.editor = editor
        self.history = History()
        self.elapsed = 0.0
        self.dirty = False
        self._finished = False

        puzzle.notifier = ctx.notifier
        self.interaction = BoardInteraction(
            ctx, puzzle, history=self.history, hooks=self, editor=editor, view_size=view_size
        )
        ctx.notify(MUSIC_EDIT if editor else MUSIC_GAME)

    @classmethod
    def new_puzzle(cls, ctx: AppContext, view_size: Tuple[int, int] = (1280, 720)) -> "GameSession":
        w, h = NEW_PUZZLE_SIZE
        session = cls(ctx, Puzzle.create(w, h, ctx.identity, notifier=ctx.notifier), editor=True, view_size=view_size)
        session.mark_dirty()
        return session

    @property
    def puzzle(self) -> Puzzle:
        return self.interaction.puzzle

    # ----------------------------
    # SessionHooks
    # ----------------------------

    @property
    def finished(self) -> bool:
        return self._finished

    def begin_completion(self) -> None:
        self._finished = True
        logger.info("Completed '%s' in %s", self.puzzle.title, self.format_time())

    def mark_dirty(self) -> None:
        self.dirty = True

    # ----------------------------
    # Play
    # ----------------------------

    def tick(self, dt: float, frame: InputFrame) -> None:
        if not self._finished:
            self.elapsed += dt
        self.interaction.update(frame)

    def format_time(self) -> str:
        total = int(self.elapsed)
        return f"{total // 60:02d}:{total % 60:02d}"

    def restart(self) -> None:
        """Clear progress, hint crosses, history and timer."""
        self.interaction.bind(self.puzzle)
        self.puzzle.clear_hint_crosses()
        self.elapsed = 0.0
        self._finished = False

    def undo(self) -> bool:
        self.interaction.cancel_gesture()
        if not self.history.undo(self.puzzle):
            return False
        self.interaction.recompute_line_state()
        return True

    def redo(self) -> bool:
        self.interaction.cancel_gesture()
        if not self.history.redo(self.puzzle):
            return False
        self.interaction.recompute_line_state()
        return True

    # ----------------------------
    # Editor
    # ----------------------------

    def take_editor_intro(self) -> bool:
        """True the first time the editor is opened; the preference is cleared."""
        if self.editor and self.ctx.config.show_editor_intro:
            self.ctx.config.show_editor_intro = False
            return True
        return False

    def set_title(self, title: str) -> None:
        if title != self.puzzle.title:
            self.puzzle.title = title
            self.mark_dirty()

    def toggle_category(self, category_id: uuid.UUID) -> None:
        cats = self.puzzle.categories
        if category_id in cats:
            cats.discard(category_id)
        else:
            cats.add(category_id)
        self.mark_dirty()

    def resize(self, width: int, height: int) -> None:
        self.puzzle.resize(width, height)
        self.interaction.bind(self.puzzle)
        self.mark_dirty()

    def import_image(self, path: str) -> None:
        """Replace the puzzle with one built from an image, keeping title, author and categories.

        Raises ImageImportError; the current puzzle is untouched in that case.
        """
        new = Puzzle.from_image(path, self.puzzle.author, notifier=self.ctx.notifier)
        new.title = self.puzzle.title
        new.categories = set(self.puzzle.categories)
        self.interaction.bind(new)
        self.mark_dirty()

    def save(self) -> bool:
        """Write the puzzle to the custom directory. Failures are logged, not raised."""
        try:
            self.ctx.ensure_dirs()
            self.puzzle.save(self.ctx.custom_dir)
        except (OSError, ValueError) as e:
            logger.error("Save failed: %s", e)
            return False
        self.dirty = False
        return True

    def save_as_factory(self) -> Optional[str]:
        """Debug only: store without an author in the factory directory."""
        if not self.ctx.debug:
            return None
        self.puzzle.author = uuid.UUID(int=0)
        try:
            return self.puzzle.save(self.ctx.factory_dir)
        except (OSError, ValueError) as e:
            logger.error("Factory save failed: %s", e)
            return None
