"""Cursor-based big-endian byte buffer with OSC alignment helpers."""

import struct

from .errors import ParseError, UnderrunError

UINT_MASK = 0xFFFFFFFF

_INT32 = struct.Struct(">i")
_UINT32 = struct.Struct(">I")
_FLOAT32 = struct.Struct(">f")
_FLOAT64 = struct.Struct(">d")


def alignment(n: int) -> int:
    """Return the number of pad bytes that follow ``n`` bytes of payload.

    This is always between 1 and 4: a payload that already ends on a word
    boundary still gets a full word of padding, so that strings always
    carry a NUL terminator.
    """
    return 4 - (n & 3)


def aligned(n: int) -> int:
    """Return ``n`` rounded up to the padded size (see :func:`alignment`)."""
    return n + alignment(n)


def is_aligned(n: int) -> bool:
    """Whether ``n`` is a valid OSC packet size (a non-empty multiple of 4)."""
    return n > 3 and (n & 3) == 0


class ByteBuffer:
    """A byte buffer with a read cursor and an append-only write end.

    Reads consume from the cursor forward and never move it backward. A
    read that cannot be satisfied raises :class:`UnderrunError` and leaves
    the cursor where it was. Writes always append to the end::

        buf = ByteBuffer()
        buf.write_padded(b"/foo")
        buf.write_i32(42)
        data = buf.getvalue()

        buf = ByteBuffer(data)
        buf.read_cstring()  # b"/foo"
        buf.read_i32()  # 42
    """

    __slots__ = ("_data", "_position")

    def __init__(self, data: bytes | bytearray | memoryview = b"") -> None:
        self._data = bytearray(data)
        self._position = 0

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return "<{} {}/{}>".format(
            type(self).__name__, self._position, len(self._data)
        )

    # -- State ---------------------------------------------------------------

    @property
    def position(self) -> int:
        return self._position

    @property
    def remaining(self) -> int:
        """Number of unread bytes."""
        return len(self._data) - self._position

    @property
    def empty(self) -> bool:
        return self._position >= len(self._data)

    def reset(self) -> "ByteBuffer":
        """Rewind the read cursor to the start of the buffer."""
        self._position = 0
        return self

    def skip(self, n: int) -> "ByteBuffer":
        """Advance the cursor by ``n`` bytes, stopping at the end."""
        self._position = min(self._position + max(n, 0), len(self._data))
        return self

    def getvalue(self) -> bytes:
        """Return the full buffer contents."""
        return bytes(self._data)

    # -- Reading -------------------------------------------------------------

    def _take(self, n: int) -> bytes:
        if n < 0 or self.remaining < n:
            raise UnderrunError(
                f"buffer underrun: wanted {n} bytes, {self.remaining} left"
            )
        start = self._position
        self._position += n
        return bytes(self._data[start : self._position])

    def _unpack(self, format_: struct.Struct) -> object:
        return format_.unpack(self._take(format_.size))[0]

    def read_i32(self) -> int:
        """Read a signed 32-bit integer."""
        return self._unpack(_INT32)  # type: ignore[return-value]

    def read_i64(self) -> int:
        """Read an unsigned 64-bit integer stored as two 32-bit words."""
        high, low = struct.unpack(">II", self._take(8))
        return (high << 32) | low

    def read_f32(self) -> float:
        return self._unpack(_FLOAT32)  # type: ignore[return-value]

    def read_f64(self) -> float:
        return self._unpack(_FLOAT64)  # type: ignore[return-value]

    def read_aligned(self, n: int) -> bytes:
        """Read ``n`` bytes; ``n`` must already be a multiple of 4."""
        return self._take(n)

    def read_padded(self, n: int) -> bytes:
        """Read ``n`` bytes of payload and drop the padding that follows."""
        if n < 0:
            raise UnderrunError(f"buffer underrun: negative read of {n} bytes")
        return self._take(aligned(n))[:n]

    def read_cstring(self) -> bytes:
        """Read a NUL-terminated, zero-padded string (without the NUL)."""
        end = self._data.find(b"\x00", self._position)
        if end < 0:
            raise UnderrunError("buffer underrun: unterminated string")
        return self.read_padded(end - self._position)

    def read_blob(self) -> bytes:
        """Read a 32-bit byte count followed by that many padded bytes."""
        start = self._position
        n = self.read_i32()
        if n < 0:
            self._position = start
            raise ParseError(f"negative blob size {n}")
        try:
            return self.read_padded(n)
        except UnderrunError:
            self._position = start
            raise

    # -- Writing -------------------------------------------------------------

    def write_i32(self, value: int) -> "ByteBuffer":
        """Write the low 32 bits of ``value`` as a big-endian word."""
        self._data += _UINT32.pack(value & UINT_MASK)
        return self

    def write_i64(self, value: int) -> "ByteBuffer":
        """Write ``value`` as two big-endian words, high word first."""
        self._data += struct.pack(">II", (value >> 32) & UINT_MASK, value & UINT_MASK)
        return self

    def write_f32(self, value: float) -> "ByteBuffer":
        self._data += _FLOAT32.pack(value)
        return self

    def write_f64(self, value: float) -> "ByteBuffer":
        self._data += _FLOAT64.pack(value)
        return self

    def write_aligned(self, data: bytes | bytearray | memoryview) -> "ByteBuffer":
        """Append ``data`` as is; its length must be a multiple of 4."""
        data = bytes(data)
        if len(data) & 3:
            raise ValueError(f"unaligned data of {len(data)} bytes")
        self._data += data
        return self

    def write_padded(self, data: bytes | bytearray | memoryview) -> "ByteBuffer":
        """Append ``data`` followed by 1 to 4 NUL bytes of padding."""
        data = bytes(data)
        self._data += data
        self._data += bytes(alignment(len(data)))
        return self

    def write_blob(self, data: bytes | bytearray | memoryview) -> "ByteBuffer":
        """Append a 32-bit byte count, then ``data`` padded."""
        data = bytes(data)
        self.write_i32(len(data))
        return self.write_padded(data)
