"""pyjclass - read and write Java class files."""

from .attributes import Attribute, RawAttribute, find_attribute
from .classfile import (
    ClassFile, ClassFileVersion, FieldInfo, MethodInfo, MAGIC,
    dumps, load, loads, read_class_file, store, write_class_file,
)
from .constants import ConstantPool, ConstantTag
from .errors import (
    BadMagic, ClassFileError, ConstantTypeError, DecodeError, EncodeError,
    FieldOverflow, IndexOutOfRange, InvalidDescriptor, InvalidText,
    MalformedAttribute, SinkError, SourceError, UnexpectedEof, UnknownConstantTag,
)
from .flags import AccessFlags

__version__ = "0.1.0"
__all__ = [
    "AccessFlags",
    "Attribute",
    "BadMagic",
    "ClassFile",
    "ClassFileError",
    "ClassFileVersion",
    "ConstantPool",
    "ConstantTag",
    "ConstantTypeError",
    "DecodeError",
    "EncodeError",
    "FieldInfo",
    "FieldOverflow",
    "IndexOutOfRange",
    "InvalidDescriptor",
    "InvalidText",
    "MAGIC",
    "MalformedAttribute",
    "MethodInfo",
    "RawAttribute",
    "SinkError",
    "SourceError",
    "UnexpectedEof",
    "UnknownConstantTag",
    "dumps",
    "find_attribute",
    "load",
    "loads",
    "read_class_file",
    "store",
    "write_class_file",
]
