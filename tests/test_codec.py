import pytest
import itertools
import sys
import os
import uuid

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from picross_codec import (
    COLUMNS, ROWS, BinaryReader, BinaryWriter, PuzzleFormatError,
    derive_clues, derive_clues_grid, pack_bits, unpack_bits,
)


def runs(line):
    """Reference run-length computation used to check every 3x3 grid."""
    out = [len(list(g)) for k, g in itertools.groupby(line) if k]
    return out or [0]


def test_empty_line_yields_zero():
    cells = [False] * 4
    assert derive_clues(cells, 4, 1, ROWS, 0) == [0]
    assert derive_clues(cells, 4, 1, COLUMNS, 2) == [0]


def test_full_line_yields_length():
    cells = [True] * 6
    assert derive_clues(cells, 6, 1, ROWS, 0) == [6]
    assert derive_clues(cells, 1, 6, COLUMNS, 0) == [6]


def test_runs_are_ordered_along_the_line():
    # 5x2:
    # X X . X .
    # . X X X X
    cells = [True, True, False, True, False,
             False, True, True, True, True]
    assert derive_clues_grid(cells, 5, 2, ROWS) == [[2, 1], [4]]
    assert derive_clues_grid(cells, 5, 2, COLUMNS) == [[1], [2], [1], [2], [1]]


@pytest.mark.parametrize("mask", range(1 << 9))
def test_every_3x3_grid(mask):
    cells = [bool(mask & (1 << i)) for i in range(9)]
    for i in range(3):
        row = cells[i * 3:(i + 1) * 3]
        col = [cells[y * 3 + i] for y in range(3)]
        assert derive_clues(cells, 3, 3, ROWS, i) == runs(row)
        assert derive_clues(cells, 3, 3, COLUMNS, i) == runs(col)


def test_pack_bits_layout():
    bits = [True, False, False, False, False, False, False, False,
            False, True]
    data = pack_bits(bits)
    assert data == bytes([0x01, 0x02])
    assert unpack_bits(data, len(bits)) == bits


def test_pack_bits_adds_trailing_byte_on_multiple_of_eight():
    assert len(pack_bits([True] * 8)) == 2
    assert len(pack_bits([True] * 7)) == 1


def test_unpack_bits_rejects_short_data():
    with pytest.raises(PuzzleFormatError):
        unpack_bits(b"\x00", 9)


def test_string_length_prefix_uses_seven_bit_groups():
    w = BinaryWriter()
    w.write_string("a" * 200)
    data = w.getvalue()
    assert data[:2] == bytes([0xC8, 0x01])
    assert BinaryReader(data).read_string() == "a" * 200


def test_uuid_is_written_in_mixed_endian_order():
    u = uuid.UUID("00112233-4455-6677-8899-aabbccddeeff")
    w = BinaryWriter()
    w.write_uuid(u)
    assert w.getvalue()[:4] == bytes([0x33, 0x22, 0x11, 0x00])
    assert BinaryReader(w.getvalue()).read_uuid() == u


def test_reader_raises_on_truncation():
    r = BinaryReader(b"\x01\x02")
    with pytest.raises(PuzzleFormatError):
        r.read_int32()
