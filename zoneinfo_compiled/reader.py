import struct

from .errors import UnexpectedEofError

_U8 = struct.Struct(">B")
_I8 = struct.Struct(">b")
_U32 = struct.Struct(">I")
_I32 = struct.Struct(">i")
_I64 = struct.Struct(">q")


class ByteReader:
    """
    Bounds-checked, position-tracking view over an immutable byte buffer.
    All integers are big-endian.
    """

    def __init__(self, data: bytes, position: int = 0) -> None:
        self._data = memoryview(bytes(data))
        if not 0 <= position <= len(self._data):
            raise ValueError(f"Position {position} outside buffer")
        self._position = position

    @property
    def position(self) -> int:
        return self._position

    @property
    def remaining(self) -> int:
        return len(self._data) - self._position

    def _take(self, size: int) -> memoryview:
        if size < 0:
            raise ValueError(f"Cannot read a negative number of bytes: {size}")
        if size > self.remaining:
            raise UnexpectedEofError(
                f"Needed {size} bytes but only {self.remaining} remain",
                self._position,
            )
        start = self._position
        self._position += size
        return self._data[start : self._position]

    def _unpack(self, fmt: struct.Struct) -> int:
        return fmt.unpack(self._take(fmt.size))[0]

    def read_u8(self) -> int:
        return self._unpack(_U8)

    def read_i8(self) -> int:
        return self._unpack(_I8)

    def read_be_u32(self) -> int:
        return self._unpack(_U32)

    def read_be_i32(self) -> int:
        return self._unpack(_I32)

    def read_be_i64(self) -> int:
        return self._unpack(_I64)

    def read_bytes(self, size: int) -> memoryview:
        """Borrowed view of the next `size` bytes."""
        return self._take(size)

    def read_cstring_table(self, total_len: int) -> bytes:
        """
        Owned copy of a NUL-separated string table. Individual strings are
        sliced out later by offset.
        """
        return bytes(self._take(total_len))

    def read_array(self, fmt: str, count: int) -> tuple[int, ...]:
        """Unpack `count` big-endian values of a single struct code."""
        if count == 0:
            return ()
        layout = struct.Struct(f">{count}{fmt}")
        return layout.unpack(self._take(layout.size))

    def skip(self, size: int) -> None:
        self._take(size)
