import sys
import os
import uuid

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from picross_context import AppContext, PlayArchive, UserConfig


def test_archive_round_trip(tmp_path):
    path = str(tmp_path / "archive.bin")
    a = PlayArchive()
    solved = uuid.uuid4()
    a.mark_solved(solved)
    a.mark_solved(solved)
    a.save(path)

    b = PlayArchive()
    b.load(path)
    assert b.identity == a.identity
    assert b.solved == [solved]
    assert b.is_solved(solved)


def test_archive_missing_file_gives_fresh_identity(tmp_path):
    a = PlayArchive()
    before = a.identity
    a.mark_solved(uuid.uuid4())
    a.load(str(tmp_path / "missing.bin"))
    assert a.identity != before
    assert a.solved == []


def test_archive_bad_version_ignored(tmp_path):
    path = tmp_path / "archive.bin"
    good = PlayArchive()
    data = bytearray(good.to_bytes())
    data[0] = 9
    path.write_bytes(bytes(data))

    a = PlayArchive()
    a.load(str(path))
    assert a.identity != good.identity
    assert a.solved == []


def test_archive_truncated_ignored(tmp_path):
    path = tmp_path / "archive.bin"
    path.write_bytes(PlayArchive().to_bytes()[:10])
    a = PlayArchive()
    a.load(str(path))
    assert a.solved == []


def test_options_round_trip(tmp_path):
    path = str(tmp_path / "options.bin")
    c = UserConfig(volume_sound=3, volume_music=7, show_editor_intro=False,
                   show_timer=False, show_puzzle_names=True, auto_crossout=False, background=2)
    c.save(path)
    d = UserConfig()
    d.load(path)
    assert d == c


def test_options_layout():
    data = UserConfig(volume_sound=3, volume_music=7).to_bytes()
    # version, music, sound, four flags, int32 background
    assert data[:3] == bytes([1, 7, 3])
    assert len(data) == 1 + 2 + 4 + 4


def test_options_bad_file_keeps_defaults(tmp_path):
    path = tmp_path / "options.bin"
    path.write_bytes(b"\x02\x01\x01")
    c = UserConfig()
    c.load(str(path))
    assert c == UserConfig()

    path.write_bytes(b"\x01\x01")
    c.load(str(path))
    assert c == UserConfig()


def test_context_layout_and_persistence(tmp_path):
    ctx = AppContext(save_dir=str(tmp_path))
    ctx.load()
    assert os.path.isdir(ctx.custom_dir)
    assert os.path.isdir(ctx.config_dir)
    ctx.config.auto_crossout = False
    ctx.archive.mark_solved(uuid.uuid4())
    ctx.save()

    other = AppContext(save_dir=str(tmp_path))
    other.load()
    assert other.identity == ctx.identity
    assert other.archive.solved == ctx.archive.solved
    assert other.config.auto_crossout is False


def test_report_exception(tmp_path):
    ctx = AppContext(save_dir=str(tmp_path))
    try:
        raise RuntimeError("boom")
    except RuntimeError as e:
        path = ctx.report_exception(e)
    assert path is not None
    with open(path, encoding="utf-8") as f:
        text = f.read()
    assert "EXCEPTION REPORT" in text
    assert "RuntimeError: boom" in text
