"""
Attributes attached to classes, fields, methods, Code attributes and
record components.

Every attribute is read as ``attribute_name_index``, a u4 length and exactly
that many payload bytes. Attributes with a known name are then decoded from
the payload; anything else stays a RawAttribute and is written back as-is.
Lengths and counts are always recomputed on write.
"""

import logging
import struct
from dataclasses import astuple, dataclass, field, fields
from enum import IntEnum
from typing import Any, ClassVar, Optional

from .constants import ConstantPool
from .errors import MalformedAttribute, UnexpectedEof
from .flags import AccessFlags
from .stream import ByteReader, ByteWriter

logger = logging.getLogger(__name__)


class _LayoutError(Exception):
    """Payload bytes that do not match the attribute's layout."""

    def __init__(self, offset: int, reason: str):
        self.offset = offset
        self.reason = reason
        super().__init__(reason)


# ==================== TABLE ROWS ====================

class _Row:
    """A fixed-size table entry laid out as FORMAT over its fields."""

    FORMAT: ClassVar[struct.Struct]

    @classmethod
    def read(cls, reader: ByteReader):
        return cls(*reader.read_struct(cls.FORMAT))

    def write(self, out: ByteWriter):
        out.write_struct(self.FORMAT, *astuple(self))


def _read_table(reader: ByteReader, row_type: type) -> list:
    count = reader.read_u16()
    return [row_type.read(reader) for _ in range(count)]


def _write_table(out: ByteWriter, rows: list):
    out.write_u16(len(rows))
    for row in rows:
        row.write(out)


@dataclass
class ExceptionTableEntry(_Row):
    """An entry in the exception table."""
    start_pc: int
    end_pc: int
    handler_pc: int
    catch_type: int  # 0 for finally (catches all), otherwise constant pool index of class

    FORMAT = struct.Struct(">HHHH")


@dataclass
class LineNumber(_Row):
    start_pc: int
    line_number: int

    FORMAT = struct.Struct(">HH")


@dataclass
class LocalVariable(_Row):
    start_pc: int
    length: int
    name_index: int
    descriptor_index: int
    index: int

    FORMAT = struct.Struct(">HHHHH")


@dataclass
class LocalVariableType(_Row):
    start_pc: int
    length: int
    name_index: int
    signature_index: int
    index: int

    FORMAT = struct.Struct(">HHHHH")


@dataclass
class InnerClassEntry(_Row):
    """Represents an entry in the InnerClasses attribute."""
    inner_class_info_index: int
    outer_class_info_index: int  # 0 for anonymous/local
    inner_name_index: int  # 0 for anonymous
    inner_class_access_flags: AccessFlags

    FORMAT = struct.Struct(">HHHH")

    def __post_init__(self):
        self.inner_class_access_flags = AccessFlags(self.inner_class_access_flags)


@dataclass
class MethodParameter(_Row):
    name_index: int  # 0 for a parameter without a name
    access_flags: AccessFlags

    FORMAT = struct.Struct(">HH")

    def __post_init__(self):
        self.access_flags = AccessFlags(self.access_flags)


@dataclass
class LocalVarTarget(_Row):
    """One live range of a local variable targeted by a type annotation."""
    start_pc: int
    length: int
    index: int

    FORMAT = struct.Struct(">HHH")


@dataclass
class TypePathEntry(_Row):
    type_path_kind: int
    type_argument_index: int

    FORMAT = struct.Struct(">BB")


@dataclass
class ModuleRequires(_Row):
    requires_index: int
    requires_flags: AccessFlags
    requires_version_index: int

    FORMAT = struct.Struct(">HHH")

    def __post_init__(self):
        self.requires_flags = AccessFlags(self.requires_flags)


@dataclass
class ModuleExports:
    exports_index: int
    exports_flags: AccessFlags
    exports_to_index: list[int] = field(default_factory=list)

    def __post_init__(self):
        self.exports_flags = AccessFlags(self.exports_flags)

    @classmethod
    def read(cls, reader: ByteReader) -> "ModuleExports":
        return cls(reader.read_u16(), reader.read_u16(), reader.read_u16_list())

    def write(self, out: ByteWriter):
        out.write_u16(self.exports_index)
        out.write_u16(self.exports_flags)
        out.write_u16_list(self.exports_to_index)


@dataclass
class ModuleOpens:
    opens_index: int
    opens_flags: AccessFlags
    opens_to_index: list[int] = field(default_factory=list)

    def __post_init__(self):
        self.opens_flags = AccessFlags(self.opens_flags)

    @classmethod
    def read(cls, reader: ByteReader) -> "ModuleOpens":
        return cls(reader.read_u16(), reader.read_u16(), reader.read_u16_list())

    def write(self, out: ByteWriter):
        out.write_u16(self.opens_index)
        out.write_u16(self.opens_flags)
        out.write_u16_list(self.opens_to_index)


@dataclass
class ModuleProvides:
    provides_index: int
    provides_with_index: list[int] = field(default_factory=list)

    @classmethod
    def read(cls, reader: ByteReader) -> "ModuleProvides":
        return cls(reader.read_u16(), reader.read_u16_list())

    def write(self, out: ByteWriter):
        out.write_u16(self.provides_index)
        out.write_u16_list(self.provides_with_index)


@dataclass
class BootstrapMethod:
    bootstrap_method_ref: int
    bootstrap_arguments: list[int] = field(default_factory=list)

    @classmethod
    def read(cls, reader: ByteReader) -> "BootstrapMethod":
        return cls(reader.read_u16(), reader.read_u16_list())

    def write(self, out: ByteWriter):
        out.write_u16(self.bootstrap_method_ref)
        out.write_u16_list(self.bootstrap_arguments)


# ==================== ANNOTATIONS ====================

CONST_VALUE_TAGS = "BCDFIJSZs"


@dataclass
class ElementValue:
    """An annotation element value.

    ``value`` depends on ``tag``: a constant pool index for BCDFIJSZs and c,
    a (type_name_index, const_name_index) pair for e, an Annotation for @,
    and a list of ElementValue for [.
    """
    tag: str
    value: Any

    @classmethod
    def read(cls, reader: ByteReader) -> "ElementValue":
        offset = reader.offset
        tag = chr(reader.read_u8())

        if tag in CONST_VALUE_TAGS or tag == "c":
            return cls(tag, reader.read_u16())
        elif tag == "e":
            type_name_index = reader.read_u16()
            const_name_index = reader.read_u16()
            return cls(tag, (type_name_index, const_name_index))
        elif tag == "@":
            return cls(tag, Annotation.read(reader))
        elif tag == "[":
            num_values = reader.read_u16()
            return cls(tag, [cls.read(reader) for _ in range(num_values)])
        raise _LayoutError(offset, f"unknown element value tag {tag!r}")

    def write(self, out: ByteWriter):
        out.write_u8(ord(self.tag))
        if self.tag in CONST_VALUE_TAGS or self.tag == "c":
            out.write_u16(self.value)
        elif self.tag == "e":
            out.write_u16(self.value[0])
            out.write_u16(self.value[1])
        elif self.tag == "@":
            self.value.write(out)
        elif self.tag == "[":
            out.write_u16(len(self.value))
            for item in self.value:
                item.write(out)
        else:
            raise ValueError(f"Unknown element value tag: {self.tag!r}")


@dataclass
class ElementValuePair:
    element_name_index: int
    value: ElementValue


@dataclass
class Annotation:
    type_index: int  # Utf8 field descriptor, e.g. "Ljava/lang/Deprecated;"
    element_value_pairs: list[ElementValuePair] = field(default_factory=list)

    @classmethod
    def read(cls, reader: ByteReader) -> "Annotation":
        type_index = reader.read_u16()
        num_pairs = reader.read_u16()
        pairs = []
        for _ in range(num_pairs):
            name_index = reader.read_u16()
            pairs.append(ElementValuePair(name_index, ElementValue.read(reader)))
        return cls(type_index, pairs)

    def write(self, out: ByteWriter):
        out.write_u16(self.type_index)
        out.write_u16(len(self.element_value_pairs))
        for pair in self.element_value_pairs:
            out.write_u16(pair.element_name_index)
            pair.value.write(out)


def _read_annotations(reader: ByteReader) -> list[Annotation]:
    count = reader.read_u16()
    return [Annotation.read(reader) for _ in range(count)]


def _write_annotations(out: ByteWriter, annotations: list[Annotation]):
    out.write_u16(len(annotations))
    for annotation in annotations:
        annotation.write(out)


# target_type -> layout of target_info, except localvar targets
_TARGET_INFO_FORMATS: dict[int, struct.Struct] = {}
for _types, _fmt in (
    ((0x00, 0x01), ">B"),  # type_parameter
    ((0x10,), ">H"),  # supertype
    ((0x11, 0x12), ">BB"),  # type_parameter_bound
    ((0x13, 0x14, 0x15), ">"),  # empty
    ((0x16,), ">B"),  # formal_parameter
    ((0x17,), ">H"),  # throws
    ((0x42,), ">H"),  # catch
    ((0x43, 0x44, 0x45, 0x46), ">H"),  # offset
    ((0x47, 0x48, 0x49, 0x4A, 0x4B), ">HB"),  # type_argument
):
    for _type in _types:
        _TARGET_INFO_FORMATS[_type] = struct.Struct(_fmt)

LOCALVAR_TARGET_TYPES = (0x40, 0x41)


@dataclass
class TypeAnnotation:
    """A type annotation.

    ``target_info`` holds the target_info fields as a tuple of ints, or a
    tuple of LocalVarTarget for local variable targets (0x40, 0x41).
    """
    target_type: int
    target_info: tuple
    target_path: list[TypePathEntry]
    annotation: Annotation

    @classmethod
    def read(cls, reader: ByteReader) -> "TypeAnnotation":
        offset = reader.offset
        target_type = reader.read_u8()
        if target_type in LOCALVAR_TARGET_TYPES:
            target_info = tuple(_read_table(reader, LocalVarTarget))
        elif target_type in _TARGET_INFO_FORMATS:
            target_info = reader.read_struct(_TARGET_INFO_FORMATS[target_type])
        else:
            raise _LayoutError(offset, f"unknown type annotation target type {target_type:#04x}")
        path_length = reader.read_u8()
        target_path = [TypePathEntry.read(reader) for _ in range(path_length)]
        return cls(target_type, target_info, target_path, Annotation.read(reader))

    def write(self, out: ByteWriter):
        out.write_u8(self.target_type)
        if self.target_type in LOCALVAR_TARGET_TYPES:
            _write_table(out, list(self.target_info))
        else:
            out.write_struct(_TARGET_INFO_FORMATS[self.target_type], *self.target_info)
        out.write_u8(len(self.target_path))
        for entry in self.target_path:
            entry.write(out)
        self.annotation.write(out)


# ==================== STACK MAP FRAMES ====================

class VerificationTag(IntEnum):
    TOP = 0
    INTEGER = 1
    FLOAT = 2
    DOUBLE = 3
    LONG = 4
    NULL = 5
    UNINITIALIZED_THIS = 6
    OBJECT = 7
    UNINITIALIZED = 8


@dataclass
class VerificationTypeInfo:
    tag: int
    value: Optional[int] = None  # cpool_index for OBJECT, offset for UNINITIALIZED

    @classmethod
    def read(cls, reader: ByteReader) -> "VerificationTypeInfo":
        offset = reader.offset
        tag = reader.read_u8()
        if tag in (VerificationTag.OBJECT, VerificationTag.UNINITIALIZED):
            return cls(tag, reader.read_u16())
        if tag > VerificationTag.UNINITIALIZED:
            raise _LayoutError(offset, f"unknown verification type tag {tag}")
        return cls(tag)

    def write(self, out: ByteWriter):
        out.write_u8(self.tag)
        if self.tag in (VerificationTag.OBJECT, VerificationTag.UNINITIALIZED):
            out.write_u16(self.value)


SAME_LOCALS_1_STACK_ITEM_EXTENDED = 247
SAME_FRAME_EXTENDED = 251
FULL_FRAME = 255


@dataclass
class StackMapFrame:
    """One stack_map_frame.

    ``frame_type`` is the raw tag byte. For same (0-63) and
    same_locals_1_stack_item (64-127) frames ``offset_delta`` is implied by
    the tag and is not written separately.
    """
    frame_type: int
    offset_delta: int = 0
    locals: list[VerificationTypeInfo] = field(default_factory=list)
    stack: list[VerificationTypeInfo] = field(default_factory=list)

    @classmethod
    def read(cls, reader: ByteReader) -> "StackMapFrame":
        offset = reader.offset
        frame_type = reader.read_u8()
        frame = cls(frame_type)
        if frame_type < 64:
            frame.offset_delta = frame_type
        elif frame_type < 128:
            frame.offset_delta = frame_type - 64
            frame.stack.append(VerificationTypeInfo.read(reader))
        elif frame_type < SAME_LOCALS_1_STACK_ITEM_EXTENDED:
            raise _LayoutError(offset, f"reserved stack map frame type {frame_type}")
        else:
            frame.offset_delta = reader.read_u16()
            if frame_type == SAME_LOCALS_1_STACK_ITEM_EXTENDED:
                frame.stack.append(VerificationTypeInfo.read(reader))
            elif SAME_FRAME_EXTENDED < frame_type < FULL_FRAME:
                # append_frame
                for _ in range(frame_type - SAME_FRAME_EXTENDED):
                    frame.locals.append(VerificationTypeInfo.read(reader))
            elif frame_type == FULL_FRAME:
                for _ in range(reader.read_u16()):
                    frame.locals.append(VerificationTypeInfo.read(reader))
                for _ in range(reader.read_u16()):
                    frame.stack.append(VerificationTypeInfo.read(reader))
            # chop_frame (248-250) and same_frame_extended carry nothing else
        return frame

    def write(self, out: ByteWriter):
        out.write_u8(self.frame_type)
        if self.frame_type < 64:
            return
        if self.frame_type < 128:
            self.stack[0].write(out)
            return
        out.write_u16(self.offset_delta)
        if self.frame_type == SAME_LOCALS_1_STACK_ITEM_EXTENDED:
            self.stack[0].write(out)
        elif SAME_FRAME_EXTENDED < self.frame_type < FULL_FRAME:
            for info in self.locals:
                info.write(out)
        elif self.frame_type == FULL_FRAME:
            out.write_u16(len(self.locals))
            for info in self.locals:
                info.write(out)
            out.write_u16(len(self.stack))
            for info in self.stack:
                info.write(out)


# ==================== ATTRIBUTES ====================

@dataclass
class Attribute:
    """Base class of all attributes."""
    name_index: int

    NAME: ClassVar[str] = ""

    @classmethod
    def read(cls, reader: ByteReader, name_index: int, pool: ConstantPool) -> "Attribute":
        raise NotImplementedError

    def write_payload(self, out: ByteWriter):
        raise NotImplementedError

    def write(self, out: ByteWriter):
        payload = ByteWriter.buffer()
        self.write_payload(payload)
        data = payload.getvalue()
        out.write_u16(self.name_index)
        out.write_u32(len(data))
        out.write_bytes(data)

    def resolve_name(self, pool: ConstantPool) -> str:
        return pool.get_utf8(self.name_index)


@dataclass
class RawAttribute(Attribute):
    """An attribute kept as its undecoded payload bytes."""
    data: bytes

    def write_payload(self, out: ByteWriter):
        out.write_bytes(self.data)


@dataclass
class _FixedAttribute(Attribute):
    """An attribute whose payload is FORMAT over the fields after name_index."""

    FORMAT: ClassVar[struct.Struct]

    @classmethod
    def read(cls, reader, name_index, pool):
        return cls(name_index, *reader.read_struct(cls.FORMAT))

    def write_payload(self, out: ByteWriter):
        out.write_struct(self.FORMAT, *astuple(self)[1:])


@dataclass
class ConstantValue(_FixedAttribute):
    constantvalue_index: int

    NAME = "ConstantValue"
    FORMAT = struct.Struct(">H")


@dataclass
class Signature(_FixedAttribute):
    signature_index: int

    NAME = "Signature"
    FORMAT = struct.Struct(">H")


@dataclass
class SourceFile(_FixedAttribute):
    sourcefile_index: int

    NAME = "SourceFile"
    FORMAT = struct.Struct(">H")


@dataclass
class EnclosingMethod(_FixedAttribute):
    class_index: int
    method_index: int  # 0 when not enclosed by a method

    NAME = "EnclosingMethod"
    FORMAT = struct.Struct(">HH")


@dataclass
class NestHost(_FixedAttribute):
    host_class_index: int

    NAME = "NestHost"
    FORMAT = struct.Struct(">H")


@dataclass
class ModuleMainClass(_FixedAttribute):
    main_class_index: int

    NAME = "ModuleMainClass"
    FORMAT = struct.Struct(">H")


@dataclass
class Synthetic(_FixedAttribute):
    NAME = "Synthetic"
    FORMAT = struct.Struct(">")


@dataclass
class Deprecated(_FixedAttribute):
    NAME = "Deprecated"
    FORMAT = struct.Struct(">")


@dataclass
class _IndexListAttribute(Attribute):
    """An attribute whose payload is a u2 count and that many u2 indices."""

    @classmethod
    def read(cls, reader, name_index, pool):
        return cls(name_index, reader.read_u16_list())

    def write_payload(self, out: ByteWriter):
        out.write_u16_list(getattr(self, fields(self)[1].name))


@dataclass
class Exceptions(_IndexListAttribute):
    exception_index_table: list[int]

    NAME = "Exceptions"


@dataclass
class NestMembers(_IndexListAttribute):
    classes: list[int]

    NAME = "NestMembers"


@dataclass
class PermittedSubclasses(_IndexListAttribute):
    classes: list[int]

    NAME = "PermittedSubclasses"


@dataclass
class ModulePackages(_IndexListAttribute):
    package_index: list[int]

    NAME = "ModulePackages"


@dataclass
class _TableAttribute(Attribute):
    """An attribute whose payload is a u2 count and that many ROW entries."""

    ROW: ClassVar[type]

    @classmethod
    def read(cls, reader, name_index, pool):
        return cls(name_index, _read_table(reader, cls.ROW))

    def write_payload(self, out: ByteWriter):
        _write_table(out, getattr(self, fields(self)[1].name))


@dataclass
class InnerClasses(_TableAttribute):
    classes: list[InnerClassEntry]

    NAME = "InnerClasses"
    ROW = InnerClassEntry


@dataclass
class LineNumberTable(_TableAttribute):
    line_number_table: list[LineNumber]

    NAME = "LineNumberTable"
    ROW = LineNumber


@dataclass
class LocalVariableTable(_TableAttribute):
    local_variable_table: list[LocalVariable]

    NAME = "LocalVariableTable"
    ROW = LocalVariable


@dataclass
class LocalVariableTypeTable(_TableAttribute):
    local_variable_type_table: list[LocalVariableType]

    NAME = "LocalVariableTypeTable"
    ROW = LocalVariableType


@dataclass
class BootstrapMethods(_TableAttribute):
    bootstrap_methods: list[BootstrapMethod]

    NAME = "BootstrapMethods"
    ROW = BootstrapMethod


@dataclass
class StackMapTable(_TableAttribute):
    entries: list[StackMapFrame]

    NAME = "StackMapTable"
    ROW = StackMapFrame


@dataclass
class SourceDebugExtension(Attribute):
    debug_extension: bytes

    NAME = "SourceDebugExtension"

    @classmethod
    def read(cls, reader, name_index, pool):
        return cls(name_index, reader.read_bytes(reader.remaining))

    def write_payload(self, out: ByteWriter):
        out.write_bytes(self.debug_extension)


@dataclass
class MethodParameters(Attribute):
    parameters: list[MethodParameter]

    NAME = "MethodParameters"

    @classmethod
    def read(cls, reader, name_index, pool):
        count = reader.read_u8()  # parameters_count (u1)
        return cls(name_index, [MethodParameter.read(reader) for _ in range(count)])

    def write_payload(self, out: ByteWriter):
        out.write_u8(len(self.parameters))
        for parameter in self.parameters:
            parameter.write(out)


@dataclass
class _AnnotationsAttribute(Attribute):
    annotations: list[Annotation]

    @classmethod
    def read(cls, reader, name_index, pool):
        return cls(name_index, _read_annotations(reader))

    def write_payload(self, out: ByteWriter):
        _write_annotations(out, self.annotations)


@dataclass
class RuntimeVisibleAnnotations(_AnnotationsAttribute):
    NAME = "RuntimeVisibleAnnotations"


@dataclass
class RuntimeInvisibleAnnotations(_AnnotationsAttribute):
    NAME = "RuntimeInvisibleAnnotations"


@dataclass
class _ParameterAnnotationsAttribute(Attribute):
    parameter_annotations: list[list[Annotation]]

    @classmethod
    def read(cls, reader, name_index, pool):
        num_parameters = reader.read_u8()  # num_parameters (u1)
        return cls(name_index, [_read_annotations(reader) for _ in range(num_parameters)])

    def write_payload(self, out: ByteWriter):
        out.write_u8(len(self.parameter_annotations))
        for annotations in self.parameter_annotations:
            _write_annotations(out, annotations)


@dataclass
class RuntimeVisibleParameterAnnotations(_ParameterAnnotationsAttribute):
    NAME = "RuntimeVisibleParameterAnnotations"


@dataclass
class RuntimeInvisibleParameterAnnotations(_ParameterAnnotationsAttribute):
    NAME = "RuntimeInvisibleParameterAnnotations"


@dataclass
class _TypeAnnotationsAttribute(Attribute):
    annotations: list[TypeAnnotation]

    @classmethod
    def read(cls, reader, name_index, pool):
        count = reader.read_u16()
        return cls(name_index, [TypeAnnotation.read(reader) for _ in range(count)])

    def write_payload(self, out: ByteWriter):
        out.write_u16(len(self.annotations))
        for annotation in self.annotations:
            annotation.write(out)


@dataclass
class RuntimeVisibleTypeAnnotations(_TypeAnnotationsAttribute):
    NAME = "RuntimeVisibleTypeAnnotations"


@dataclass
class RuntimeInvisibleTypeAnnotations(_TypeAnnotationsAttribute):
    NAME = "RuntimeInvisibleTypeAnnotations"


@dataclass
class AnnotationDefault(Attribute):
    default_value: ElementValue

    NAME = "AnnotationDefault"

    @classmethod
    def read(cls, reader, name_index, pool):
        return cls(name_index, ElementValue.read(reader))

    def write_payload(self, out: ByteWriter):
        self.default_value.write(out)


@dataclass
class Module(Attribute):
    module_name_index: int
    module_flags: AccessFlags
    module_version_index: int
    requires: list[ModuleRequires] = field(default_factory=list)
    exports: list[ModuleExports] = field(default_factory=list)
    opens: list[ModuleOpens] = field(default_factory=list)
    uses: list[int] = field(default_factory=list)
    provides: list[ModuleProvides] = field(default_factory=list)

    NAME = "Module"

    def __post_init__(self):
        self.module_flags = AccessFlags(self.module_flags)

    @classmethod
    def read(cls, reader, name_index, pool):
        return cls(
            name_index,
            module_name_index=reader.read_u16(),
            module_flags=reader.read_u16(),
            module_version_index=reader.read_u16(),
            requires=_read_table(reader, ModuleRequires),
            exports=_read_table(reader, ModuleExports),
            opens=_read_table(reader, ModuleOpens),
            uses=reader.read_u16_list(),
            provides=_read_table(reader, ModuleProvides),
        )

    def write_payload(self, out: ByteWriter):
        out.write_u16(self.module_name_index)
        out.write_u16(self.module_flags)
        out.write_u16(self.module_version_index)
        _write_table(out, self.requires)
        _write_table(out, self.exports)
        _write_table(out, self.opens)
        out.write_u16_list(self.uses)
        _write_table(out, self.provides)


@dataclass
class RecordComponent:
    name_index: int
    descriptor_index: int
    attributes: list[Attribute] = field(default_factory=list)


@dataclass
class Record(Attribute):
    components: list[RecordComponent]

    NAME = "Record"

    @classmethod
    def read(cls, reader, name_index, pool):
        components = []
        for _ in range(reader.read_u16()):
            component_name_index = reader.read_u16()
            descriptor_index = reader.read_u16()
            components.append(RecordComponent(
                component_name_index, descriptor_index, read_attributes(reader, pool)))
        return cls(name_index, components)

    def write_payload(self, out: ByteWriter):
        out.write_u16(len(self.components))
        for component in self.components:
            out.write_u16(component.name_index)
            out.write_u16(component.descriptor_index)
            write_attributes(out, component.attributes)


@dataclass
class Code(Attribute):
    """Code attribute for a method. The bytecode is kept as opaque bytes."""
    max_stack: int = 0
    max_locals: int = 0
    code: bytes = b""
    exception_table: list[ExceptionTableEntry] = field(default_factory=list)
    attributes: list[Attribute] = field(default_factory=list)

    NAME = "Code"

    @classmethod
    def read(cls, reader, name_index, pool):
        max_stack = reader.read_u16()
        max_locals = reader.read_u16()
        code = reader.read_bytes(reader.read_u32())
        exception_table = _read_table(reader, ExceptionTableEntry)
        attributes = read_attributes(reader, pool)
        return cls(name_index, max_stack, max_locals, code, exception_table, attributes)

    def write_payload(self, out: ByteWriter):
        out.write_u16(self.max_stack)
        out.write_u16(self.max_locals)
        out.write_u32(len(self.code))
        out.write_bytes(self.code)
        _write_table(out, self.exception_table)
        write_attributes(out, self.attributes)


ATTRIBUTE_TYPES: dict[str, type[Attribute]] = {
    cls.NAME: cls for cls in (
        ConstantValue, Code, StackMapTable, Exceptions, InnerClasses,
        EnclosingMethod, Synthetic, Signature, SourceFile, SourceDebugExtension,
        LineNumberTable, LocalVariableTable, LocalVariableTypeTable, Deprecated,
        RuntimeVisibleAnnotations, RuntimeInvisibleAnnotations,
        RuntimeVisibleParameterAnnotations, RuntimeInvisibleParameterAnnotations,
        RuntimeVisibleTypeAnnotations, RuntimeInvisibleTypeAnnotations,
        AnnotationDefault, BootstrapMethods, MethodParameters, Module,
        ModulePackages, ModuleMainClass, NestHost, NestMembers, Record,
        PermittedSubclasses,
    )
}


def read_attribute(reader: ByteReader, pool: ConstantPool, raw: bool = False) -> Attribute:
    """Read one attribute; ``raw`` keeps the payload undecoded whatever its name."""
    name_index = reader.read_u16()
    length = reader.read_u32()
    offset = reader.offset
    data = reader.read_bytes(length)

    name = pool.lookup_utf8(name_index)
    if name is None:
        logger.debug("attribute name index #%d at offset %d is not a Utf8 entry; keeping raw",
                     name_index, offset)
    kind = None if raw or name is None else ATTRIBUTE_TYPES.get(name)
    if kind is None:
        return RawAttribute(name_index, data)

    payload = ByteReader.from_bytes(data, offset)
    try:
        attribute = kind.read(payload, name_index, pool)
    except UnexpectedEof as e:
        raise MalformedAttribute(name, e.offset, "payload is shorter than its layout") from e
    except _LayoutError as e:
        raise MalformedAttribute(name, e.offset, e.reason) from e
    if payload.remaining:
        raise MalformedAttribute(
            name, payload.offset, f"{payload.remaining} bytes left after decoding")
    return attribute


def read_attributes(reader: ByteReader, pool: ConstantPool, raw: bool = False) -> list[Attribute]:
    count = reader.read_u16()
    return [read_attribute(reader, pool, raw) for _ in range(count)]


def write_attributes(out: ByteWriter, attributes: list[Attribute]):
    out.write_u16(len(attributes))
    for attribute in attributes:
        attribute.write(out)


def find_attribute(attributes: list[Attribute], kind: type[Attribute]) -> Optional[Attribute]:
    """First attribute of the given decoded type, if any."""
    for attribute in attributes:
        if isinstance(attribute, kind):
            return attribute
    return None
