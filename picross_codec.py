import struct
import uuid
from typing import List, Sequence

# ----------------------------
# Axes
# ----------------------------

# COLUMNS: one clue list per x, scanning top to bottom.
# ROWS: one clue list per y, scanning left to right.
COLUMNS = 0
ROWS = 1


class PuzzleFormatError(ValueError):
    """Raised when a puzzle file is corrupted, truncated or of an unknown version."""


# ----------------------------
# Run-length clues
# ----------------------------

def derive_clues(cells: Sequence[object], width: int, height: int, axis: int, index: int) -> List[int]:
    """Run lengths of filled cells along one line.

    `cells` is a flat row-major grid of truthy (filled) / falsy values. A line
    without any filled cell yields [0] so every clue list has an entry.
    """
    if axis == COLUMNS:
        line = [cells[y * width + index] for y in range(height)]
    else:
        line = [cells[index * width + x] for x in range(width)]

    out: List[int] = []
    found = 0
    for filled in line:
        if not filled and found > 0:
            out.append(found)
            found = 0
        if filled:
            found += 1
    if found > 0 or not out:
        out.append(found)
    return out


def derive_clues_grid(cells: Sequence[object], width: int, height: int, axis: int) -> List[List[int]]:
    count = width if axis == COLUMNS else height
    return [derive_clues(cells, width, height, axis, i) for i in range(count)]


# ----------------------------
# Bitsets
# ----------------------------

def pack_bits(bits: Sequence[bool]) -> bytes:
    # Always one byte longer than strictly needed when len(bits) is a multiple
    # of 8; existing puzzle files were written that way.
    out = bytearray(len(bits) // 8 + 1)
    for i, b in enumerate(bits):
        if b:
            out[i >> 3] |= 1 << (i & 7)
    return bytes(out)


def unpack_bits(data: bytes, count: int) -> List[bool]:
    if len(data) * 8 < count:
        raise PuzzleFormatError(f"Bitset too short: {len(data)} bytes for {count} cells.")
    return [bool(data[i >> 3] & (1 << (i & 7))) for i in range(count)]


# ----------------------------
# Binary records
# ----------------------------

class BinaryWriter:
    """Little-endian record writer compatible with the files the game has always produced."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def write_bytes(self, data: bytes) -> None:
        self._buf += data

    def write_byte(self, v: int) -> None:
        self._buf += struct.pack("<B", v & 0xFF)

    def write_bool(self, v: bool) -> None:
        self.write_byte(1 if v else 0)

    def write_int32(self, v: int) -> None:
        self._buf += struct.pack("<i", v)

    def write_uuid(self, v: uuid.UUID) -> None:
        self._buf += v.bytes_le

    def write_string(self, s: str) -> None:
        data = s.encode("utf-8")
        n = len(data)
        # 7-bit encoded length prefix
        while n >= 0x80:
            self._buf.append((n & 0x7F) | 0x80)
            n >>= 7
        self._buf.append(n)
        self._buf += data


class BinaryReader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def read_bytes(self, n: int) -> bytes:
        if n < 0 or self._pos + n > len(self._data):
            raise PuzzleFormatError(f"Unexpected end of data at offset {self._pos} (wanted {n} bytes).")
        out = self._data[self._pos:self._pos + n]
        self._pos += n
        return out

    def read_byte(self) -> int:
        return self.read_bytes(1)[0]

    def read_bool(self) -> bool:
        return self.read_byte() != 0

    def read_int32(self) -> int:
        return struct.unpack("<i", self.read_bytes(4))[0]

    def read_uuid(self) -> uuid.UUID:
        return uuid.UUID(bytes_le=self.read_bytes(16))

    def read_string(self) -> str:
        n = 0
        shift = 0
        while True:
            b = self.read_byte()
            n |= (b & 0x7F) << shift
            if not b & 0x80:
                break
            shift += 7
            if shift > 28:
                raise PuzzleFormatError("Bad string length prefix.")
        try:
            return self.read_bytes(n).decode("utf-8")
        except UnicodeDecodeError as e:
            raise PuzzleFormatError(f"Bad string data: {e}") from e
