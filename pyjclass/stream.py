"""
Big-endian primitive reads and writes over byte sources and sinks.
"""

import io
import struct
from typing import Optional

from .errors import FieldOverflow, SinkError, SourceError, UnexpectedEof


U1 = struct.Struct(">B")
U2 = struct.Struct(">H")
U4 = struct.Struct(">I")
U8 = struct.Struct(">Q")
I4 = struct.Struct(">i")
I8 = struct.Struct(">q")
F4 = struct.Struct(">f")
F8 = struct.Struct(">d")


class ByteReader:
    """Reads fixed-width big-endian values from anything with a read(n) method.

    ``offset`` is the absolute position of the next byte, used in error
    messages. ``limit`` bounds the reader to a payload slice when known.
    """

    def __init__(self, source, offset: int = 0, limit: Optional[int] = None):
        self.source = source
        self.offset = offset
        self.limit = limit

    @classmethod
    def from_bytes(cls, data: bytes, offset: int = 0) -> "ByteReader":
        return cls(io.BytesIO(data), offset=offset, limit=offset + len(data))

    @property
    def remaining(self) -> Optional[int]:
        if self.limit is None:
            return None
        return self.limit - self.offset

    def read_bytes(self, length: int) -> bytes:
        if length == 0:
            return b""
        chunks = []
        got = 0
        while got < length:
            try:
                chunk = self.source.read(length - got)
            except OSError as e:
                raise SourceError(f"Read failed at offset {self.offset + got}: {e}") from e
            if not chunk:
                raise UnexpectedEof(self.offset, length, got)
            chunks.append(chunk)
            got += len(chunk)
        self.offset += length
        return b"".join(chunks)

    def _unpack(self, fmt: struct.Struct):
        return fmt.unpack(self.read_bytes(fmt.size))[0]

    def read_struct(self, fmt: struct.Struct) -> tuple:
        return fmt.unpack(self.read_bytes(fmt.size))

    def read_u8(self) -> int:
        return self._unpack(U1)

    def read_u16(self) -> int:
        return self._unpack(U2)

    def read_u32(self) -> int:
        return self._unpack(U4)

    def read_u64(self) -> int:
        return self._unpack(U8)

    def read_i32(self) -> int:
        return self._unpack(I4)

    def read_i64(self) -> int:
        return self._unpack(I8)

    def read_f32(self) -> float:
        return self._unpack(F4)

    def read_f64(self) -> float:
        return self._unpack(F8)

    def read_u16_list(self) -> list[int]:
        """Read a u2 count followed by that many u2 values."""
        count = self.read_u16()
        return [self.read_u16() for _ in range(count)]


class ByteWriter:
    """Writes fixed-width big-endian values to anything with a write(b) method."""

    def __init__(self, sink):
        self.sink = sink
        self.offset = 0

    @classmethod
    def buffer(cls) -> "ByteWriter":
        """A writer over an in-memory buffer; see getvalue()."""
        return cls(io.BytesIO())

    def getvalue(self) -> bytes:
        return self.sink.getvalue()

    def write_bytes(self, data: bytes):
        try:
            self.sink.write(data)
        except OSError as e:
            raise SinkError(f"Write failed at offset {self.offset}: {e}") from e
        self.offset += len(data)

    def write_struct(self, fmt: struct.Struct, *values):
        try:
            data = fmt.pack(*values)
        except (struct.error, OverflowError) as e:
            raise FieldOverflow(values[0] if len(values) == 1 else values, fmt.format) from e
        self.write_bytes(data)

    def _pack(self, fmt: struct.Struct, value):
        self.write_struct(fmt, value)

    def write_u8(self, value: int):
        self._pack(U1, value)

    def write_u16(self, value: int):
        self._pack(U2, value)

    def write_u32(self, value: int):
        self._pack(U4, value)

    def write_u64(self, value: int):
        self._pack(U8, value)

    def write_i32(self, value: int):
        self._pack(I4, value)

    def write_i64(self, value: int):
        self._pack(I8, value)

    def write_f32(self, value: float):
        self._pack(F4, value)

    def write_f64(self, value: float):
        self._pack(F8, value)

    def write_u16_list(self, values: list[int]):
        """Write a u2 count recomputed from ``values``, then each value as u2."""
        self.write_u16(len(values))
        for value in values:
            self.write_u16(value)
