"""
Java class file structure: reading with load() and writing with store().

The structure mirrors the file one-to-one. Everything outside the constant
pool refers to pool entries by logical index, exactly as the file does.
"""

import io
import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from .attributes import Attribute, read_attributes, write_attributes
from .constants import ConstantPool
from .errors import BadMagic
from .flags import AccessFlags
from .stream import ByteReader, ByteWriter

logger = logging.getLogger(__name__)

MAGIC = 0xCAFEBABE


class ClassFileVersion:
    JAVA_6 = (50, 0)
    JAVA_7 = (51, 0)
    JAVA_8 = (52, 0)
    JAVA_11 = (55, 0)
    JAVA_17 = (61, 0)
    JAVA_21 = (65, 0)


@dataclass
class MemberInfo:
    """Shared layout of fields and methods."""
    access_flags: AccessFlags
    name_index: int
    descriptor_index: int
    attributes: list[Attribute] = field(default_factory=list)

    def __post_init__(self):
        self.access_flags = AccessFlags(self.access_flags)

    @classmethod
    def read(cls, reader: ByteReader, pool: ConstantPool, raw: bool = False):
        access_flags = reader.read_u16()
        name_index = reader.read_u16()
        descriptor_index = reader.read_u16()
        attributes = read_attributes(reader, pool, raw)
        return cls(access_flags, name_index, descriptor_index, attributes)

    def write(self, out: ByteWriter):
        out.write_u16(self.access_flags)
        out.write_u16(self.name_index)
        out.write_u16(self.descriptor_index)
        write_attributes(out, self.attributes)

    def name(self, pool: ConstantPool) -> str:
        return pool.get_utf8(self.name_index)

    def descriptor(self, pool: ConstantPool) -> str:
        return pool.get_utf8(self.descriptor_index)


@dataclass
class FieldInfo(MemberInfo):
    """Field in a class file."""

    def parsed_descriptor(self, pool: ConstantPool):
        from .descriptors import parse_field_descriptor
        return parse_field_descriptor(self.descriptor(pool))


@dataclass
class MethodInfo(MemberInfo):
    """Method in a class file."""

    def parsed_descriptor(self, pool: ConstantPool):
        from .descriptors import parse_method_descriptor
        return parse_method_descriptor(self.descriptor(pool))


@dataclass
class ClassFile:
    """Represents a Java class file."""
    minor_version: int = 0
    major_version: int = ClassFileVersion.JAVA_8[0]
    constant_pool: ConstantPool = field(default_factory=ConstantPool)
    access_flags: AccessFlags = AccessFlags.PUBLIC | AccessFlags.SUPER
    this_class: int = 0
    super_class: int = 0  # 0 only for java/lang/Object
    interfaces: list[int] = field(default_factory=list)
    fields: list[FieldInfo] = field(default_factory=list)
    methods: list[MethodInfo] = field(default_factory=list)
    attributes: list[Attribute] = field(default_factory=list)
    magic: int = MAGIC

    def __post_init__(self):
        self.access_flags = AccessFlags(self.access_flags)

    @property
    def version(self) -> tuple[int, int]:
        return (self.major_version, self.minor_version)

    @property
    def name(self) -> str:
        return self.constant_pool.get_class_name(self.this_class)

    @property
    def super_name(self) -> Optional[str]:
        return self.constant_pool.get_class_name(self.super_class)

    @property
    def interface_names(self) -> list[str]:
        return [self.constant_pool.get_class_name(i) for i in self.interfaces]

    @classmethod
    def read(cls, reader: ByteReader, raw_attributes: bool = False) -> "ClassFile":
        """Read a class file from ``reader``; see load()."""
        magic = reader.read_u32()
        if magic != MAGIC:
            raise BadMagic(magic)

        minor = reader.read_u16()
        major = reader.read_u16()

        pool = ConstantPool.read(reader)

        access_flags = reader.read_u16()
        this_class = reader.read_u16()
        super_class = reader.read_u16()
        interfaces = reader.read_u16_list()

        fields_count = reader.read_u16()
        fields = [FieldInfo.read(reader, pool, raw_attributes) for _ in range(fields_count)]

        methods_count = reader.read_u16()
        methods = [MethodInfo.read(reader, pool, raw_attributes) for _ in range(methods_count)]

        attributes = read_attributes(reader, pool, raw_attributes)

        logger.debug(
            "read class file: version=%d.%d pool=%d fields=%d methods=%d attributes=%d bytes=%d",
            major, minor, len(pool), len(fields), len(methods), len(attributes), reader.offset)

        return cls(
            minor_version=minor,
            major_version=major,
            constant_pool=pool,
            access_flags=access_flags,
            this_class=this_class,
            super_class=super_class,
            interfaces=interfaces,
            fields=fields,
            methods=methods,
            attributes=attributes,
            magic=magic,
        )

    def write(self, out: ByteWriter):
        """Write the class file to ``out``; every count and length is recomputed."""
        out.write_u32(self.magic)
        out.write_u16(self.minor_version)
        out.write_u16(self.major_version)

        self.constant_pool.write(out)

        out.write_u16(self.access_flags)
        out.write_u16(self.this_class)
        out.write_u16(self.super_class)
        out.write_u16_list(self.interfaces)

        out.write_u16(len(self.fields))
        for fld in self.fields:
            fld.write(out)

        out.write_u16(len(self.methods))
        for method in self.methods:
            method.write(out)

        write_attributes(out, self.attributes)
        logger.debug("wrote class file: %d bytes", out.offset)

    def to_bytes(self) -> bytes:
        out = ByteWriter.buffer()
        self.write(out)
        return out.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes, raw_attributes: bool = False) -> "ClassFile":
        return load(data, raw_attributes=raw_attributes)


BytesLike = Union[bytes, bytearray, memoryview]


def load(source, *, raw_attributes: bool = False) -> ClassFile:
    """Read a class file.

    Args:
        source: An object with a read(n) method, or the class file bytes.
        raw_attributes: Keep every attribute as RawAttribute instead of
            decoding the attribute kinds this package knows about.

    Raises:
        DecodeError: On the first structural error; nothing is returned.
    """
    if isinstance(source, (bytes, bytearray, memoryview)):
        source = io.BytesIO(source)
    return ClassFile.read(ByteReader(source), raw_attributes=raw_attributes)


def store(classfile: ClassFile, sink):
    """Write ``classfile`` to an object with a write(b) method.

    Raises:
        EncodeError: On the first failure. Bytes already written stay written;
            callers that need atomic output should write to a temporary sink.
    """
    classfile.write(ByteWriter(sink))


def loads(data: BytesLike, *, raw_attributes: bool = False) -> ClassFile:
    return load(io.BytesIO(data), raw_attributes=raw_attributes)


def dumps(classfile: ClassFile) -> bytes:
    return classfile.to_bytes()


def read_class_file(path, *, raw_attributes: bool = False) -> ClassFile:
    """Read a single class file from disk."""
    with open(path, "rb") as f:
        return load(f, raw_attributes=raw_attributes)


def write_class_file(classfile: ClassFile, path):
    with open(path, "wb") as f:
        store(classfile, f)
