"""
Constant pool entries and the constant pool codec.

The pool is 1-indexed. Long and Double entries take two slots; the slot
after them is reserved and is kept as ``None`` in the entry list so that
list positions and logical indices always agree.
"""

import logging
import struct
from dataclasses import astuple, dataclass
from enum import IntEnum
from typing import ClassVar, Iterable, Iterator, Optional

from .errors import (
    ConstantTypeError, IndexOutOfRange, InvalidText, UnknownConstantTag,
)
from .stream import ByteReader, ByteWriter, F4, F8, U4, U8

logger = logging.getLogger(__name__)


class ConstantTag(IntEnum):
    UTF8 = 1
    INTEGER = 3
    FLOAT = 4
    LONG = 5
    DOUBLE = 6
    CLASS = 7
    STRING = 8
    FIELDREF = 9
    METHODREF = 10
    INTERFACE_METHODREF = 11
    NAME_AND_TYPE = 12
    METHOD_HANDLE = 15
    METHOD_TYPE = 16
    DYNAMIC = 17
    INVOKE_DYNAMIC = 18
    MODULE = 19
    PACKAGE = 20


class ReferenceKind(IntEnum):
    """reference_kind values of a MethodHandle constant."""
    GET_FIELD = 1
    GET_STATIC = 2
    PUT_FIELD = 3
    PUT_STATIC = 4
    INVOKE_VIRTUAL = 5
    INVOKE_STATIC = 6
    INVOKE_SPECIAL = 7
    NEW_INVOKE_SPECIAL = 8
    INVOKE_INTERFACE = 9


class Constant:
    """Base class of constant pool entries.

    Fixed-layout entries declare their body as a struct format over their
    dataclass fields, in field order.
    """

    TAG: ClassVar[ConstantTag]
    FORMAT: ClassVar[struct.Struct]
    WIDE: ClassVar[bool] = False

    @classmethod
    def read(cls, reader: ByteReader, index: int) -> "Constant":
        return cls(*reader.read_struct(cls.FORMAT))

    def write(self, out: ByteWriter, index: int):
        out.write_struct(self.FORMAT, *astuple(self))


def check_text(text: str) -> Optional[str]:
    """Return why ``text`` cannot be stored in a Utf8 constant, or None.

    Accepted: code points U+0001 to U+FFFF excluding surrogates. These are
    the characters whose standard UTF-8 bytes are also valid modified UTF-8.
    """
    for position, char in enumerate(text):
        code = ord(char)
        if code == 0:
            return f"NUL character at position {position}"
        if code > 0xFFFF:
            return f"supplementary character U+{code:06X} at position {position}"
        if 0xD800 <= code <= 0xDFFF:
            return f"surrogate U+{code:04X} at position {position}"
    return None


@dataclass
class Utf8Info(Constant):
    value: str

    TAG: ClassVar[ConstantTag] = ConstantTag.UTF8

    @classmethod
    def read(cls, reader: ByteReader, index: int) -> "Utf8Info":
        length = reader.read_u16()
        data = reader.read_bytes(length)
        try:
            value = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidText(index, str(e)) from e
        reason = check_text(value)
        if reason:
            raise InvalidText(index, reason)
        return cls(value)

    def write(self, out: ByteWriter, index: int):
        reason = check_text(self.value)
        if reason:
            raise InvalidText(index, reason)
        data = self.value.encode("utf-8")
        if len(data) > 0xFFFF:
            raise InvalidText(index, f"encoded length {len(data)} exceeds 65535 bytes")
        out.write_u16(len(data))
        out.write_bytes(data)


@dataclass
class IntegerInfo(Constant):
    value: int

    TAG: ClassVar[ConstantTag] = ConstantTag.INTEGER
    FORMAT: ClassVar[struct.Struct] = struct.Struct(">i")


@dataclass
class FloatInfo(Constant):
    """A float constant, kept as its IEEE 754 bit pattern so NaNs survive."""
    bits: int

    TAG: ClassVar[ConstantTag] = ConstantTag.FLOAT
    FORMAT: ClassVar[struct.Struct] = U4

    @classmethod
    def from_value(cls, value: float) -> "FloatInfo":
        return cls(U4.unpack(F4.pack(value))[0])

    @property
    def value(self) -> float:
        return F4.unpack(U4.pack(self.bits))[0]


@dataclass
class LongInfo(Constant):
    value: int

    TAG: ClassVar[ConstantTag] = ConstantTag.LONG
    FORMAT: ClassVar[struct.Struct] = struct.Struct(">q")
    WIDE: ClassVar[bool] = True


@dataclass
class DoubleInfo(Constant):
    """A double constant, kept as its IEEE 754 bit pattern so NaNs survive."""
    bits: int

    TAG: ClassVar[ConstantTag] = ConstantTag.DOUBLE
    FORMAT: ClassVar[struct.Struct] = U8
    WIDE: ClassVar[bool] = True

    @classmethod
    def from_value(cls, value: float) -> "DoubleInfo":
        return cls(U8.unpack(F8.pack(value))[0])

    @property
    def value(self) -> float:
        return F8.unpack(U8.pack(self.bits))[0]


_INDEX = struct.Struct(">H")
_INDEX_PAIR = struct.Struct(">HH")


@dataclass
class ClassInfo(Constant):
    name_index: int

    TAG: ClassVar[ConstantTag] = ConstantTag.CLASS
    FORMAT: ClassVar[struct.Struct] = _INDEX


@dataclass
class StringInfo(Constant):
    string_index: int

    TAG: ClassVar[ConstantTag] = ConstantTag.STRING
    FORMAT: ClassVar[struct.Struct] = _INDEX


@dataclass
class FieldrefInfo(Constant):
    class_index: int
    name_and_type_index: int

    TAG: ClassVar[ConstantTag] = ConstantTag.FIELDREF
    FORMAT: ClassVar[struct.Struct] = _INDEX_PAIR


@dataclass
class MethodrefInfo(Constant):
    class_index: int
    name_and_type_index: int

    TAG: ClassVar[ConstantTag] = ConstantTag.METHODREF
    FORMAT: ClassVar[struct.Struct] = _INDEX_PAIR


@dataclass
class InterfaceMethodrefInfo(Constant):
    class_index: int
    name_and_type_index: int

    TAG: ClassVar[ConstantTag] = ConstantTag.INTERFACE_METHODREF
    FORMAT: ClassVar[struct.Struct] = _INDEX_PAIR


@dataclass
class NameAndTypeInfo(Constant):
    name_index: int
    descriptor_index: int

    TAG: ClassVar[ConstantTag] = ConstantTag.NAME_AND_TYPE
    FORMAT: ClassVar[struct.Struct] = _INDEX_PAIR


@dataclass
class MethodHandleInfo(Constant):
    reference_kind: int
    reference_index: int

    TAG: ClassVar[ConstantTag] = ConstantTag.METHOD_HANDLE
    FORMAT: ClassVar[struct.Struct] = struct.Struct(">BH")


@dataclass
class MethodTypeInfo(Constant):
    descriptor_index: int

    TAG: ClassVar[ConstantTag] = ConstantTag.METHOD_TYPE
    FORMAT: ClassVar[struct.Struct] = _INDEX


@dataclass
class DynamicInfo(Constant):
    bootstrap_method_attr_index: int
    name_and_type_index: int

    TAG: ClassVar[ConstantTag] = ConstantTag.DYNAMIC
    FORMAT: ClassVar[struct.Struct] = _INDEX_PAIR


@dataclass
class InvokeDynamicInfo(Constant):
    bootstrap_method_attr_index: int
    name_and_type_index: int

    TAG: ClassVar[ConstantTag] = ConstantTag.INVOKE_DYNAMIC
    FORMAT: ClassVar[struct.Struct] = _INDEX_PAIR


@dataclass
class ModuleInfo(Constant):
    name_index: int

    TAG: ClassVar[ConstantTag] = ConstantTag.MODULE
    FORMAT: ClassVar[struct.Struct] = _INDEX


@dataclass
class PackageInfo(Constant):
    name_index: int

    TAG: ClassVar[ConstantTag] = ConstantTag.PACKAGE
    FORMAT: ClassVar[struct.Struct] = _INDEX


CONSTANT_TYPES: dict[int, type[Constant]] = {
    cls.TAG: cls for cls in (
        Utf8Info, IntegerInfo, FloatInfo, LongInfo, DoubleInfo, ClassInfo,
        StringInfo, FieldrefInfo, MethodrefInfo, InterfaceMethodrefInfo,
        NameAndTypeInfo, MethodHandleInfo, MethodTypeInfo, DynamicInfo,
        InvokeDynamicInfo, ModuleInfo, PackageInfo,
    )
}


class ConstantPool:
    """The constant pool of a class file.

    ``len(pool)`` is the constant_pool_count stored in the file, which is
    one more than the highest logical index.
    """

    def __init__(self, entries: Iterable[Constant] = ()):
        self._entries: list[Optional[Constant]] = [None]  # 1-indexed
        for entry in entries:
            self.append(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ConstantPool):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"ConstantPool({[e for _, e in self.items()]!r})"

    def __iter__(self) -> Iterator[Constant]:
        for _, entry in self.items():
            yield entry

    def items(self) -> Iterator[tuple[int, Constant]]:
        """Yield (logical index, entry), skipping slot 0 and reserved slots."""
        for index, entry in enumerate(self._entries):
            if entry is not None:
                yield index, entry

    def append(self, entry: Constant) -> int:
        """Add an entry at the end of the pool and return its logical index."""
        index = len(self._entries)
        self._entries.append(entry)
        # Long and Double take two slots
        if entry.WIDE:
            self._entries.append(None)
        return index

    def is_reserved(self, index: int) -> bool:
        return 0 <= index < len(self._entries) and self._entries[index] is None

    def __getitem__(self, index: int) -> Constant:
        if not 0 < index < len(self._entries):
            raise IndexOutOfRange(index, len(self._entries))
        entry = self._entries[index]
        if entry is None:
            raise IndexOutOfRange(
                index, len(self._entries), "reserved slot after a Long or Double")
        return entry

    def get(self, index: int, kind: type[Constant]) -> Constant:
        entry = self[index]
        if not isinstance(entry, kind):
            raise ConstantTypeError(
                f"Expected {kind.TAG.name} at index #{index}, got {entry.TAG.name}")
        return entry

    def get_utf8(self, index: int) -> str:
        return self.get(index, Utf8Info).value

    def get_class_name(self, index: int) -> Optional[str]:
        """Internal name of a Class entry; index 0 means "none" and gives None."""
        if index == 0:
            return None
        return self.get_utf8(self.get(index, ClassInfo).name_index)

    def get_string(self, index: int) -> str:
        """Text of a Utf8 entry, or of the Utf8 behind a String or Class entry."""
        entry = self[index]
        if isinstance(entry, Utf8Info):
            return entry.value
        if isinstance(entry, StringInfo):
            return self.get_utf8(entry.string_index)
        if isinstance(entry, ClassInfo):
            return self.get_utf8(entry.name_index)
        raise ConstantTypeError(f"#{index} is not a string, but a {entry.TAG.name}")

    def find_utf8(self, text: str) -> Optional[int]:
        """Logical index of the first Utf8 entry equal to ``text``, if any."""
        for index, entry in self.items():
            if isinstance(entry, Utf8Info) and entry.value == text:
                return index
        return None

    def lookup_utf8(self, index: int) -> Optional[str]:
        """Like get_utf8, but returns None instead of raising."""
        if 0 < index < len(self._entries):
            entry = self._entries[index]
            if isinstance(entry, Utf8Info):
                return entry.value
        return None

    @classmethod
    def read(cls, reader: ByteReader) -> "ConstantPool":
        pool = cls()
        count = reader.read_u16()
        index = 1
        while index < count:
            offset = reader.offset
            tag = reader.read_u8()
            kind = CONSTANT_TYPES.get(tag)
            if kind is None:
                raise UnknownConstantTag(tag, index, offset)
            entry = kind.read(reader, index)
            pool._entries.append(entry)
            if entry.WIDE and index + 1 < count:
                pool._entries.append(None)
                index += 2
            else:
                index += 1
        logger.debug("read constant pool: count=%d", count)
        return pool

    def write(self, out: ByteWriter):
        out.write_u16(len(self._entries))
        for index, entry in self.items():
            out.write_u8(entry.TAG)
            entry.write(out, index)
        logger.debug("wrote constant pool: count=%d", len(self._entries))
