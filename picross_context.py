"""
Application context for the picross engine.

Holds what the game used to keep in process-wide statics: the player archive
(identity and solved puzzles), user preferences, the notifier used for audio
cues and the on-disk directory layout. One AppContext is built at startup and
handed to the catalog, sessions and interaction engines.
"""

import datetime
import logging
import os
import platform
import traceback
import uuid
from dataclasses import dataclass, field, fields
from typing import List, Optional

from picross_codec import BinaryReader, BinaryWriter, PuzzleFormatError

logger = logging.getLogger(__name__)

# ----------------------------
# Notification keys
# ----------------------------

SOUND_FILL = "board/fill"
SOUND_ERASE = "board/erase"
SOUND_CROSS = "board/cross"
SOUND_PENCIL = "ui/pencil"
MUSIC_CLEAR = "music/clear"
MUSIC_GAME = "music/game"
MUSIC_EDIT = "music/edit"

ARCHIVE_VERSION = 1
CONFIG_VERSION = 1


class Notifier:
    """Fire-and-forget sink for named events (sounds, music)."""

    def notify(self, event_key: str) -> None:
        raise NotImplementedError


class NullNotifier(Notifier):
    def notify(self, event_key: str) -> None:
        pass


class RecordingNotifier(Notifier):
    """Keeps every event key; used by tests and headless runs."""

    def __init__(self) -> None:
        self.events: List[str] = []

    def notify(self, event_key: str) -> None:
        self.events.append(event_key)

    def clear(self) -> None:
        self.events.clear()


# ----------------------------
# Player archive
# ----------------------------

class PlayArchive:
    def __init__(self, identity: Optional[uuid.UUID] = None) -> None:
        self.identity: uuid.UUID = identity if identity is not None else uuid.uuid4()
        self.solved: List[uuid.UUID] = []

    def is_solved(self, puzzle_id: uuid.UUID) -> bool:
        return puzzle_id in self.solved

    def mark_solved(self, puzzle_id: uuid.UUID) -> None:
        if puzzle_id not in self.solved:
            self.solved.append(puzzle_id)

    def to_bytes(self) -> bytes:
        w = BinaryWriter()
        w.write_byte(ARCHIVE_VERSION)
        w.write_uuid(self.identity)
        w.write_int32(len(self.solved))
        for pid in self.solved:
            w.write_uuid(pid)
        return w.getvalue()

    def load(self, path: str) -> None:
        """Load identity and solved list. Any failure leaves a fresh identity and an empty list."""
        self.solved = []
        self.identity = uuid.uuid4()
        if not os.path.exists(path):
            logger.info("No archive at %s, new player identity %s", path, self.identity)
            return
        try:
            with open(path, "rb") as f:
                r = BinaryReader(f.read())
            if r.read_byte() != ARCHIVE_VERSION:
                logger.warning("Archive %s has an unknown version, ignoring it.", path)
                return
            identity = r.read_uuid()
            solved = [r.read_uuid() for _ in range(r.read_int32())]
        except (OSError, PuzzleFormatError) as e:
            logger.warning("Archive read failed (%s), using new identity.", e)
            return
        self.identity = identity
        self.solved = solved

    def save(self, path: str) -> None:
        try:
            with open(path, "wb") as f:
                f.write(self.to_bytes())
        except OSError as e:
            logger.warning("Archive save failed: %s", e)


# ----------------------------
# User preferences
# ----------------------------

@dataclass
class UserConfig:
    volume_sound: int = 10
    volume_music: int = 9
    show_editor_intro: bool = True
    show_timer: bool = True
    show_puzzle_names: bool = False
    auto_crossout: bool = True
    background: int = 0

    def to_bytes(self) -> bytes:
        w = BinaryWriter()
        w.write_byte(CONFIG_VERSION)
        w.write_byte(self.volume_music)
        w.write_byte(self.volume_sound)
        w.write_bool(self.show_editor_intro)
        w.write_bool(self.show_timer)
        w.write_bool(self.show_puzzle_names)
        w.write_bool(self.auto_crossout)
        w.write_int32(self.background)
        return w.getvalue()

    def load(self, path: str) -> None:
        """Read preferences; on any problem the current values are kept."""
        if not os.path.exists(path):
            return
        try:
            with open(path, "rb") as f:
                r = BinaryReader(f.read())
            if r.read_byte() != CONFIG_VERSION:
                logger.warning("Options file %s has an unknown version, using defaults.", path)
                return
            values = UserConfig(
                volume_music=r.read_byte(),
                volume_sound=r.read_byte(),
                show_editor_intro=r.read_bool(),
                show_timer=r.read_bool(),
                show_puzzle_names=r.read_bool(),
                auto_crossout=r.read_bool(),
                background=r.read_int32(),
            )
        except (OSError, PuzzleFormatError) as e:
            logger.warning("Options read failed: %s", e)
            return
        for f in fields(self):
            setattr(self, f.name, getattr(values, f.name))

    def save(self, path: str) -> None:
        try:
            with open(path, "wb") as f:
                f.write(self.to_bytes())
        except OSError as e:
            logger.warning("Options save failed: %s", e)


# ----------------------------
# Context
# ----------------------------

def default_save_dir() -> str:
    return os.path.join(os.path.expanduser("~"), ".picross")


@dataclass
class AppContext:
    save_dir: str = field(default_factory=default_save_dir)
    factory_dir: str = "puzzles"
    notifier: Notifier = field(default_factory=NullNotifier)
    archive: PlayArchive = field(default_factory=PlayArchive)
    config: UserConfig = field(default_factory=UserConfig)
    # Debug builds may edit every puzzle and save factory puzzles.
    debug: bool = False

    @property
    def config_dir(self) -> str:
        return os.path.join(self.save_dir, "Save")

    @property
    def custom_dir(self) -> str:
        return os.path.join(self.save_dir, "Puzzles")

    @property
    def archive_path(self) -> str:
        return os.path.join(self.config_dir, "archive.bin")

    @property
    def options_path(self) -> str:
        return os.path.join(self.config_dir, "options.bin")

    @property
    def identity(self) -> uuid.UUID:
        return self.archive.identity

    def ensure_dirs(self) -> None:
        for d in (self.save_dir, self.config_dir, self.custom_dir):
            os.makedirs(d, exist_ok=True)

    def load(self) -> None:
        try:
            self.ensure_dirs()
        except OSError as e:
            logger.warning("Cannot create save directories: %s", e)
        self.archive.load(self.archive_path)
        self.config.load(self.options_path)
        logger.info("Loaded player %s (%d solved puzzles)", self.identity, len(self.archive.solved))

    def save(self) -> None:
        try:
            self.ensure_dirs()
        except OSError as e:
            logger.warning("Cannot create save directories: %s", e)
            return
        self.archive.save(self.archive_path)
        self.config.save(self.options_path)

    def notify(self, event_key: str) -> None:
        self.notifier.notify(event_key)

    def report_exception(self, exc: BaseException) -> Optional[str]:
        """Best-effort crash log in the save directory. Returns the path, or None if writing failed."""
        now = datetime.datetime.now()
        path = os.path.join(self.save_dir, f"crash{now.strftime('%Y%m%d%H%M%S%f')}.log")
        lines = [
            "===================================",
            "EXCEPTION REPORT",
            "===================================",
            "",
            f"Time: {now.isoformat(sep=' ', timespec='seconds')}",
            f"OS: {platform.platform()}",
            "",
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            "===================================",
            "END OF EXCEPTION REPORT",
            "===================================",
        ]
        try:
            os.makedirs(self.save_dir, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write("\n".join(lines) + "\n")
        except OSError:
            return None
        return path
