"""
Picross (Pygame)

Features:
- Play Mode: pick a puzzle, draw lines of filled / crossed cells, undo/redo, restart.
- Editor Mode: create or edit your own puzzles, resize, import from image, save.

Controls (Play):
- Left drag: fill / clear a line
- Right drag: cross out / clear a line
- Middle drag or Space + drag: pan
- Mouse wheel: zoom
- Click a clue number: strike it out

Controls (Editor):
- Left drag: paint the solution
"""

import argparse
import logging
import os
from typing import Dict, List, Optional, Tuple

import pygame
import pygame_gui

from picross_context import AppContext, Notifier
from picross_catalog import Catalog
from picross_drawing import ClueHit, clamp_int, draw_board, draw_clues, generate_preview, pick_clue
from picross_interaction import InputTracker, PointerSample
from picross_model import CATEGORIES, ImageImportError, Puzzle
from picross_session import GameSession
from picross_worker import CatalogWorker
import grid_style

logger = logging.getLogger(__name__)

MAX_PUZZLE_SIZE = 100
MAX_LOG_LINES = 100


# ----------------------------
# Audio
# ----------------------------

class PygameNotifier(Notifier):
    """Plays `<sound_dir>/<event key with / replaced by _>.wav|.ogg` through pygame.mixer."""

    def __init__(self, ctx: AppContext, sound_dir: str) -> None:
        self.ctx = ctx
        self.sound_dir = sound_dir
        self._cache: Dict[str, Optional[pygame.mixer.Sound]] = {}

    def _find(self, event_key: str) -> Optional[str]:
        stem = event_key.replace("/", "_")
        for ext in (".wav", ".ogg"):
            path = os.path.join(self.sound_dir, stem + ext)
            if os.path.exists(path):
                return path
        return None

    def notify(self, event_key: str) -> None:
        if not pygame.mixer.get_init():
            return
        path = self._find(event_key)
        if path is None:
            return
        try:
            if event_key.startswith("music/"):
                pygame.mixer.music.load(path)
                pygame.mixer.music.set_volume(self.ctx.config.volume_music / 10.0)
                pygame.mixer.music.play(-1 if event_key != "music/clear" else 0)
                return
            if event_key not in self._cache:
                self._cache[event_key] = pygame.mixer.Sound(path)
            sound = self._cache[event_key]
            sound.set_volume(self.ctx.config.volume_sound / 10.0)
            sound.play()
        except pygame.error as e:
            logger.debug("Sound %s failed: %s", event_key, e)


# ----------------------------
# Log window
# ----------------------------

def html_escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
         .replace("<", "&lt;")
         .replace(">", "&gt;")
         .replace('"', "&quot;")
         .replace("'", "&#39;")
    )


class LogBox:
    def __init__(self, box: pygame_gui.elements.UITextBox) -> None:
        self.box = box
        self.lines: List[str] = []

    def append(self, msg: str) -> None:
        for line in msg.splitlines():
            line = line.strip()
            if line:
                self.lines.append(line)
        if len(self.lines) > MAX_LOG_LINES:
            del self.lines[0:len(self.lines) - MAX_LOG_LINES]
        self.box.set_text("<br>".join(html_escape(ln) for ln in self.lines))
        if self.box.scroll_bar is not None:
            self.box.scroll_bar.set_scroll_from_start_percentage(1.0)

    def clear(self) -> None:
        self.lines.clear()
        self.box.set_text("")


class LogBoxHandler(logging.Handler):
    """Forwards log records into the log window."""

    def __init__(self, log_box: LogBox) -> None:
        super().__init__(level=logging.INFO)
        self.log_box = log_box
        self.setFormatter(logging.Formatter("%(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.log_box.append(self.format(record))
        except Exception:
            self.handleError(record)


# ----------------------------
# Main
# ----------------------------

def start_session(ctx: AppContext, view_size: Tuple[int, int]) -> GameSession:
    """Launch into the editor on a new puzzle until one is picked from the list."""
    return GameSession.new_puzzle(ctx, view_size)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Nonogram game and editor.")
    parser.add_argument("--save-dir", default=None, help="Directory for player data and custom puzzles.")
    parser.add_argument("--factory-dir", default="puzzles", help="Directory with the bundled puzzles.")
    parser.add_argument("--sound-dir", default="sounds", help="Directory with sound effects.")
    parser.add_argument("--debug", action="store_true", help="Allow editing every puzzle.")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)

    ctx = AppContext(factory_dir=args.factory_dir, debug=args.debug)
    if args.save_dir:
        ctx.save_dir = args.save_dir
    ctx.load()

    pygame.init()
    pygame.display.set_caption("Picross")
    screen = pygame.display.set_mode((1280, 800), pygame.RESIZABLE)
    clock = pygame.time.Clock()
    ctx.notifier = PygameNotifier(ctx, args.sound_dir)

    font = pygame.font.SysFont("arial", 20)
    clue_font = pygame.font.SysFont("arial", 16, bold=True)

    ui_manager = pygame_gui.UIManager(screen.get_size())

    controls_win = pygame_gui.elements.UIWindow(
        pygame.Rect(20, 20, 260, 470), ui_manager, window_display_title="Controls", resizable=True
    )
    controls_win.close_window_button.hide()
    puzzles_win = pygame_gui.elements.UIWindow(
        pygame.Rect(20, 500, 260, 280), ui_manager, window_display_title="Puzzles", resizable=True
    )
    puzzles_win.close_window_button.hide()
    log_win = pygame_gui.elements.UIWindow(
        pygame.Rect(900, 560, 360, 220), ui_manager, window_display_title="Log", resizable=True
    )
    log_win.close_window_button.hide()
    editor_win = pygame_gui.elements.UIWindow(
        pygame.Rect(900, 20, 360, 290), ui_manager, window_display_title="Editor", visible=False
    )
    editor_win.close_window_button.hide()

    def button(y: int, text: str, container) -> pygame_gui.elements.UIButton:
        return pygame_gui.elements.UIButton(pygame.Rect(10, y, 230, 32), text, ui_manager, container=container)

    btn_play = button(10, "Play Mode", controls_win)
    btn_edit = button(48, "Editor Mode", controls_win)
    btn_new = button(86, "New Puzzle", controls_win)
    btn_undo = button(124, "Undo", controls_win)
    btn_redo = button(162, "Redo", controls_win)
    btn_restart = button(200, "Restart", controls_win)
    btn_save = button(238, "Save", controls_win)
    btn_import = button(276, "Import board.png", controls_win)
    btn_refresh = button(314, "Refresh List", controls_win)
    btn_autocross = button(352, "", controls_win)
    btn_names = button(390, "", controls_win)

    puzzle_list = pygame_gui.elements.UISelectionList(
        relative_rect=pygame.Rect(10, 10, 230, 220), item_list=[], manager=ui_manager, container=puzzles_win
    )

    log_box = LogBox(pygame_gui.elements.UITextBox(
        html_text="", relative_rect=pygame.Rect(10, 10, 330, 160), manager=ui_manager, container=log_win
    ))
    logging.getLogger().addHandler(LogBoxHandler(log_box))

    inp_title = pygame_gui.elements.UITextEntryLine(pygame.Rect(10, 10, 330, 30), ui_manager, container=editor_win)
    pygame_gui.elements.UILabel(pygame.Rect(10, 50, 60, 30), "Size:", ui_manager, container=editor_win)
    inp_w = pygame_gui.elements.UITextEntryLine(pygame.Rect(70, 50, 70, 30), ui_manager, container=editor_win)
    inp_h = pygame_gui.elements.UITextEntryLine(pygame.Rect(150, 50, 70, 30), ui_manager, container=editor_win)
    btn_resize = pygame_gui.elements.UIButton(pygame.Rect(230, 50, 110, 30), "Resize", ui_manager, container=editor_win)
    btn_apply_title = pygame_gui.elements.UIButton(pygame.Rect(10, 90, 330, 30), "Apply Title", ui_manager, container=editor_win)
    lbl_cats = pygame_gui.elements.UILabel(pygame.Rect(10, 130, 330, 30), "", ui_manager, container=editor_win)
    dd_category = pygame_gui.elements.UIDropDownMenu(
        ["Toggle category..."] + [c.name for c in CATEGORIES], "Toggle category...",
        pygame.Rect(10, 170, 330, 30), ui_manager, container=editor_win,
    )
    btn_factory = pygame_gui.elements.UIButton(pygame.Rect(10, 210, 330, 30), "Save as Factory", ui_manager, container=editor_win)
    if not ctx.debug:
        btn_factory.hide()

    catalog = Catalog(ctx)
    worker = CatalogWorker()
    worker.start()

    editor_mode = True
    listed: Dict[str, Puzzle] = {}

    def refresh_toggles() -> None:
        btn_autocross.set_text(f"Auto-crossout: {'on' if ctx.config.auto_crossout else 'off'}")
        btn_names.set_text(f"Show titles: {'on' if ctx.config.show_puzzle_names else 'off'}")

    def refresh_list() -> None:
        nonlocal listed
        listed = {}
        items = []
        for p in catalog.collection(editor_mode):
            text = f"{p.display_title(ctx)} ({p.width}x{p.height})"
            # pygame_gui needs unique item strings
            if text in listed:
                text = f"{text} #{len(items) + 1}"
            items.append(text)
            listed[text] = p
        puzzle_list.set_item_list(items)

    def request_refresh() -> None:
        worker.request_refresh([ctx.factory_dir, ctx.custom_dir])

    def open_session(new_session: GameSession) -> GameSession:
        new_session.interaction.set_view_size(*screen.get_size())
        new_session.interaction.bind(new_session.puzzle)
        if new_session.editor:
            editor_win.show()
            inp_title.set_text(new_session.puzzle.title)
            inp_w.set_text(str(new_session.puzzle.width))
            inp_h.set_text(str(new_session.puzzle.height))
            lbl_cats.set_text(f"Categories: {new_session.puzzle.category_names()}")
            if new_session.take_editor_intro():
                logger.info("Editor: paint with the left button, then Save. "
                            "Import reads board.png from %s.", ctx.save_dir)
        else:
            editor_win.hide()
        logger.info("Opened '%s'", new_session.puzzle.display_title(ctx))
        return new_session

    session = open_session(start_session(ctx, screen.get_size()))
    refresh_toggles()
    request_refresh()

    def is_over_ui(pos: Tuple[int, int]) -> bool:
        for w in (controls_win, puzzles_win, log_win, editor_win):
            if w.visible and w.get_abs_rect().collidepoint(pos):
                return True
        return False

    tracker = InputTracker()
    clue_hits: List[ClueHit] = []

    running = True
    try:
        while running:
            time_delta = clock.tick(60) / 1000.0
            scroll = 0

            for res in worker.poll():
                if res.ok:
                    catalog.install(res.puzzles, res.skipped)
                    refresh_list()
                else:
                    logger.error(res.error)

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                    break

                if event.type == pygame.VIDEORESIZE:
                    screen = pygame.display.set_mode(event.size, pygame.RESIZABLE)
                    ui_manager.set_window_resolution(event.size)
                    session.interaction.set_view_size(*event.size)

                ui_manager.process_events(event)

                if event.type == pygame.MOUSEWHEEL and not is_over_ui(pygame.mouse.get_pos()):
                    scroll += event.y

                if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1 and not is_over_ui(event.pos):
                    if not session.editor:
                        hit = pick_clue(clue_hits, event.pos)
                        if hit is not None:
                            session.puzzle.toggle_hint_cross(hit.axis, hit.line, hit.clue_index)

                if event.type == pygame_gui.UI_SELECTION_LIST_NEW_SELECTION and event.ui_element == puzzle_list:
                    picked = listed.get(event.text)
                    if picked is not None:
                        session = open_session(GameSession(ctx, picked, editor=editor_mode))
                        if not editor_mode:
                            generate_preview(session.puzzle)

                if event.type == pygame_gui.UI_DROP_DOWN_MENU_CHANGED and event.ui_element == dd_category:
                    cat = next((c for c in CATEGORIES if c.name == event.text), None)
                    if cat is not None and session.editor:
                        session.toggle_category(cat.category_id)
                        lbl_cats.set_text(f"Categories: {session.puzzle.category_names()}")

                if event.type == pygame_gui.UI_BUTTON_PRESSED:
                    if event.ui_element == btn_play:
                        editor_mode = False
                        refresh_list()
                    elif event.ui_element == btn_edit:
                        editor_mode = True
                        refresh_list()
                    elif event.ui_element == btn_new:
                        editor_mode = True
                        session = open_session(GameSession.new_puzzle(ctx, screen.get_size()))
                    elif event.ui_element == btn_undo:
                        session.undo()
                    elif event.ui_element == btn_redo:
                        session.redo()
                    elif event.ui_element == btn_restart:
                        session.restart()
                    elif event.ui_element == btn_save:
                        if session.editor and session.save():
                            request_refresh()
                    elif event.ui_element == btn_import:
                        if session.editor:
                            try:
                                session.import_image(os.path.join(ctx.save_dir, "board.png"))
                            except ImageImportError as e:
                                logger.error("Import failed: %s", e)
                    elif event.ui_element == btn_factory:
                        path = session.save_as_factory()
                        if path:
                            request_refresh()
                    elif event.ui_element == btn_refresh:
                        request_refresh()
                    elif event.ui_element == btn_autocross:
                        ctx.config.auto_crossout = not ctx.config.auto_crossout
                        refresh_toggles()
                    elif event.ui_element == btn_names:
                        ctx.config.show_puzzle_names = not ctx.config.show_puzzle_names
                        refresh_toggles()
                        refresh_list()
                    elif event.ui_element == btn_apply_title:
                        session.set_title(inp_title.get_text().strip() or session.puzzle.title)
                    elif event.ui_element == btn_resize:
                        try:
                            w = clamp_int(int(inp_w.get_text().strip()), 1, MAX_PUZZLE_SIZE)
                            h = clamp_int(int(inp_h.get_text().strip()), 1, MAX_PUZZLE_SIZE)
                            session.resize(w, h)
                        except ValueError:
                            logger.warning("Invalid size.")

            for btn, on in (
                (btn_undo, not session.editor and session.history.can_undo),
                (btn_redo, not session.editor and session.history.can_redo),
                (btn_save, session.editor and session.dirty),
                (btn_import, session.editor),
                (btn_restart, not session.editor),
            ):
                if on:
                    btn.enable()
                else:
                    btn.disable()

            mx, my = pygame.mouse.get_pos()
            left, middle, right = pygame.mouse.get_pressed()[:3]
            keys = pygame.key.get_pressed()
            sample = PointerSample(
                x=mx, y=my, primary=left, secondary=right, middle=middle,
                pan_modifier=bool(keys[pygame.K_SPACE]), scroll=scroll,
            )
            session.tick(time_delta, tracker.feed(sample, active=not is_over_ui((mx, my))))

            ui_manager.update(time_delta)

            screen.fill(grid_style.COLOR_BG)
            draw_board(screen, session.interaction, font)
            clue_hits = draw_clues(screen, session.interaction, clue_font) if not session.editor else []

            if session.finished:
                preview = generate_preview(session.puzzle)
                sw, sh = screen.get_size()
                screen.blit(preview, preview.get_rect(center=(sw // 2, sh // 2)))
                msg = f"Clear! '{session.puzzle.title}'"
                if ctx.config.show_timer:
                    msg += f" in {session.format_time()}"
                surf = font.render(msg, True, grid_style.COLOR_TEXT_OVERLAY)
                screen.blit(surf, surf.get_rect(center=(sw // 2, sh // 2 + preview.get_height() // 2 + 30)))
            elif ctx.config.show_timer and not session.editor:
                surf = font.render(session.format_time(), True, grid_style.COLOR_TEXT_OVERLAY)
                screen.blit(surf, (300, 24))

            ui_manager.draw_ui(screen)
            pygame.display.flip()
    except Exception as e:
        path = ctx.report_exception(e)
        if path:
            logger.error("Crash report written to %s", path)
        raise
    finally:
        worker.stop()
        ctx.save()
        pygame.quit()


if __name__ == "__main__":
    main()
