"""
Bounds-checked cursor over a byte buffer.

Every parser in the package reads through a BitstreamReader. Reads never
index past the end of the buffer: they raise OutOfBounds instead, which the
owning parser treats as "this unit is truncated, move on to the next one".
"""

from typing import Union

from .exceptions import OutOfBounds

BytesLike = Union[bytes, bytearray, memoryview]


class BitstreamReader:
    """
    Read fixed-width big-endian fields from a byte buffer.

    The buffer is wrapped in a memoryview, so slicing with ``read_bytes`` and
    ``peek`` does not copy the underlying data.

    Example:
        >>> reader = BitstreamReader(b"\\x47\\x01\\x00")
        >>> reader.read_u8()
        71
        >>> reader.read_bits(3)
        0
        >>> reader.remaining()
        2
    """

    def __init__(self, data: BytesLike):
        self._data = memoryview(data)
        self._pos = 0
        self._bit = 0  # bits already consumed from the byte at _pos

    @property
    def position(self) -> int:
        """Current byte offset of the cursor."""
        return self._pos

    def remaining(self) -> int:
        """Number of whole bytes left after the cursor."""
        return len(self._data) - self._pos - (1 if self._bit else 0)

    def _require(self, n: int) -> None:
        if n < 0:
            raise ValueError(f"Byte count must be non-negative, got {n}")
        start = self._pos + (1 if self._bit else 0)
        remaining = len(self._data) - start
        if n > remaining:
            raise OutOfBounds(n, remaining)
        self._pos = start
        self._bit = 0

    def read_u8(self) -> int:
        self._require(1)
        value = self._data[self._pos]
        self._pos += 1
        return value

    def read_u16(self) -> int:
        self._require(2)
        value = int.from_bytes(self._data[self._pos:self._pos + 2], "big")
        self._pos += 2
        return value

    def read_u24(self) -> int:
        self._require(3)
        value = int.from_bytes(self._data[self._pos:self._pos + 3], "big")
        self._pos += 3
        return value

    def read_u32(self) -> int:
        self._require(4)
        value = int.from_bytes(self._data[self._pos:self._pos + 4], "big")
        self._pos += 4
        return value

    def read_bits(self, n: int) -> int:
        """
        Read ``n`` bits, most significant first.

        Bit reads may leave the cursor mid-byte; the next byte-wide read
        realigns to the following byte boundary.

        Raises:
            OutOfBounds: If fewer than ``n`` bits remain
        """
        if n < 0:
            raise ValueError(f"Bit count must be non-negative, got {n}")
        available = (len(self._data) - self._pos) * 8 - self._bit
        if n > available:
            raise OutOfBounds(n, available, unit="bits")

        value = 0
        for _ in range(n):
            byte = self._data[self._pos]
            value = (value << 1) | ((byte >> (7 - self._bit)) & 0x01)
            self._bit += 1
            if self._bit == 8:
                self._bit = 0
                self._pos += 1
        return value

    def read_bytes(self, n: int) -> memoryview:
        """Return a view of the next ``n`` bytes and advance past them."""
        self._require(n)
        view = self._data[self._pos:self._pos + n]
        self._pos += n
        return view

    def peek(self, n: int) -> memoryview:
        """Return a view of the next ``n`` bytes without moving the cursor."""
        if n < 0:
            raise ValueError(f"Byte count must be non-negative, got {n}")
        start = self._pos + (1 if self._bit else 0)
        remaining = len(self._data) - start
        if n > remaining:
            raise OutOfBounds(n, remaining)
        return self._data[start:start + n]

    def skip(self, n: int) -> None:
        self._require(n)
        self._pos += n

    def rest(self) -> memoryview:
        """Return a view of everything after the cursor and move to the end."""
        return self.read_bytes(self.remaining())
