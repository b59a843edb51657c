"""Tests for loading and storing whole class files."""

import io
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from pyjclass import (
    MAGIC, AccessFlags, BadMagic, ClassFile, ClassFileError, ConstantPool, DecodeError,
    EncodeError, FieldInfo, FieldOverflow, InvalidText, MethodInfo, RawAttribute,
    SinkError, UnexpectedEof, dumps, find_attribute, load, loads, read_class_file,
    store, write_class_file,
)
from pyjclass.attributes import Code, ConstantValue, LineNumberTable, SourceFile
from pyjclass.constants import ClassInfo, DoubleInfo, LongInfo, Utf8Info
from pyjclass.descriptors import ArrayType, ObjectType, VOID

import _classbytes as cb
from _classbytes import FailingSink, TrickleSource


@pytest.fixture
def hello_bytes():
    return cb.hello_class()


@pytest.fixture
def hello(hello_bytes):
    return load(hello_bytes)


def build_class() -> ClassFile:
    """Build a class from scratch, the way a code generator would."""
    pool = ConstantPool()
    this_name = pool.append(Utf8Info("Point"))
    this_class = pool.append(ClassInfo(this_name))
    super_name = pool.append(Utf8Info("java/lang/Object"))
    super_class = pool.append(ClassInfo(super_name))
    pool.append(LongInfo(-1))
    x_name = pool.append(Utf8Info("x"))
    descriptor = pool.append(Utf8Info("D"))
    constant_value = pool.append(Utf8Info("ConstantValue"))
    zero = pool.append(DoubleInfo.from_value(0.0))
    code_name = pool.append(Utf8Info("Code"))
    init_name = pool.append(Utf8Info("<init>"))
    init_descriptor = pool.append(Utf8Info("()V"))

    return ClassFile(
        constant_pool=pool,
        this_class=this_class,
        super_class=super_class,
        fields=[FieldInfo(
            AccessFlags.PUBLIC | AccessFlags.STATIC | AccessFlags.FINAL,
            x_name, descriptor, [ConstantValue(constant_value, zero)],
        )],
        methods=[MethodInfo(
            AccessFlags.PUBLIC, init_name, init_descriptor,
            [Code(code_name, max_stack=1, max_locals=1, code=b"\xb1")],
        )],
    )


class TestLoad:
    def test_header(self, hello):
        assert hello.magic == MAGIC
        assert hello.version == (52, 0)
        assert hello.access_flags == AccessFlags.PUBLIC | AccessFlags.SUPER
        assert hello.name == "Hello"
        assert hello.super_name == "java/lang/Object"
        assert hello.interface_names == []

    def test_constant_pool(self, hello):
        pool = hello.constant_pool
        assert len(pool) == cb.HELLO_POOL_COUNT
        assert pool[13] == LongInfo(1234567890123)
        assert pool.is_reserved(14)
        assert pool[18].value == 3.5
        assert pool.is_reserved(19)
        assert pool.get_utf8(20) == "main"
        assert pool.get_string(23) == "Hello.java"

    def test_fields(self, hello):
        (big,) = hello.fields
        assert big.name(hello.constant_pool) == "BIG"
        assert big.descriptor(hello.constant_pool) == "J"
        assert big.access_flags == AccessFlags.PUBLIC | AccessFlags.STATIC | AccessFlags.FINAL
        assert big.attributes == [ConstantValue(17, 13)]

    def test_methods(self, hello):
        init, main = hello.methods
        pool = hello.constant_pool
        assert init.name(pool) == "<init>"
        assert init.parsed_descriptor(pool).return_type == VOID

        code = find_attribute(init.attributes, Code)
        assert code.code == cb.INIT_CODE
        assert (code.max_stack, code.max_locals) == (1, 1)
        lines = find_attribute(code.attributes, LineNumberTable)
        assert lines.line_number_table[0].line_number == 1

        assert main.parsed_descriptor(pool).parameters == (
            ArrayType(ObjectType("java/lang/String")),)
        main_code = find_attribute(main.attributes, Code)
        assert main_code.exception_table[0].catch_type == 0

    def test_class_attributes(self, hello):
        source_file, custom = hello.attributes
        assert source_file == SourceFile(11, 12)
        assert custom == RawAttribute(22, cb.CUSTOM_PAYLOAD)
        assert custom.resolve_name(hello.constant_pool) == "Custom"

    def test_raw_attributes(self, hello_bytes):
        cf = load(hello_bytes, raw_attributes=True)
        assert all(isinstance(a, RawAttribute) for a in cf.attributes)
        assert all(isinstance(a, RawAttribute) for m in cf.methods for a in m.attributes)
        assert cf.attributes[0].data == cb.u2(12)
        assert dumps(cf) == hello_bytes

    def test_no_super_class(self):
        data = cb.class_bytes(
            4, [cb.utf8("java/lang/Object"), cb.class_(1), cb.utf8("unused")],
            this_class=2, super_class=0)
        cf = loads(data)
        assert cf.super_class == 0
        assert cf.super_name is None
        assert dumps(cf) == data

    def test_interfaces(self):
        data = cb.class_bytes(
            5, [cb.utf8("A"), cb.class_(1), cb.utf8("java/io/Serializable"), cb.class_(3)],
            this_class=2, interfaces=(4,))
        cf = loads(data)
        assert cf.interfaces == [4]
        assert cf.interface_names == ["java/io/Serializable"]

    def test_stops_after_class(self, hello_bytes):
        source = io.BytesIO(hello_bytes + b"trailing")
        load(source)
        assert source.read() == b"trailing"


class TestRoundTrip:
    def test_bytes_identity(self, hello_bytes):
        assert dumps(load(hello_bytes)) == hello_bytes

    @pytest.mark.parametrize("wrap", [bytes, bytearray, memoryview, io.BytesIO])
    def test_source_types(self, hello_bytes, wrap):
        assert dumps(load(wrap(hello_bytes))) == hello_bytes

    @pytest.mark.parametrize("step", [1, 3, 7])
    def test_short_reads(self, hello_bytes, step):
        assert dumps(load(TrickleSource(hello_bytes, step))) == hello_bytes

    def test_store_to_sink(self, hello, hello_bytes):
        sink = io.BytesIO()
        store(hello, sink)
        assert sink.getvalue() == hello_bytes

    def test_constructed_structure(self):
        cf = build_class()
        data = dumps(cf)
        assert data[:4] == b"\xca\xfe\xba\xbe"
        assert loads(data) == cf
        assert dumps(loads(data)) == data

    def test_from_bytes(self, hello_bytes):
        cf = ClassFile.from_bytes(hello_bytes)
        assert cf.to_bytes() == hello_bytes

    def test_files(self, tmp_path, hello):
        path = tmp_path / "Hello.class"
        write_class_file(hello, path)
        assert read_class_file(path) == hello


class TestCountRecomputation:
    def test_removed_method(self, hello):
        hello.methods.pop()
        cf = loads(dumps(hello))
        assert len(cf.methods) == 1
        assert cf.methods[0].name(cf.constant_pool) == "<init>"

    def test_added_entries(self, hello):
        pool = hello.constant_pool
        name = pool.append(Utf8Info("Runnable"))
        hello.interfaces.append(pool.append(ClassInfo(name)))
        hello.attributes.append(RawAttribute(22, b"more"))
        hello.fields.append(FieldInfo(AccessFlags.PRIVATE, 15, 16))

        cf = loads(dumps(hello))
        assert len(cf.constant_pool) == cb.HELLO_POOL_COUNT + 2
        assert cf.interface_names == ["Runnable"]
        assert cf.attributes[-1] == RawAttribute(22, b"more")
        assert len(cf.fields) == 2

    def test_changed_raw_payload(self, hello):
        hello.attributes[1].data = b"\x00" * 300
        data = dumps(hello)
        assert data.endswith(cb.u2(22) + cb.u4(300) + b"\x00" * 300)


class TestDecodeErrors:
    def test_bad_magic(self):
        source = io.BytesIO(cb.class_bytes(1, [], magic=0xCAFEBABF))
        with pytest.raises(BadMagic) as exc_info:
            load(source)
        assert exc_info.value.magic == 0xCAFEBABF
        assert source.tell() == 4

    def test_every_truncation(self, hello_bytes):
        for length in range(len(hello_bytes)):
            with pytest.raises(UnexpectedEof):
                load(hello_bytes[:length])

    def test_truncated_attribute_reports_offset(self, hello_bytes):
        cut = len(hello_bytes) - 1
        with pytest.raises(UnexpectedEof) as exc_info:
            load(hello_bytes[:cut])
        assert exc_info.value.offset == len(hello_bytes) - len(cb.CUSTOM_PAYLOAD)
        assert exc_info.value.got == len(cb.CUSTOM_PAYLOAD) - 1

    def test_invalid_text(self):
        data = cb.class_bytes(2, [cb.utf8_raw(b"\xc0\x80")])
        with pytest.raises(InvalidText):
            load(data)

    def test_errors_share_a_base(self):
        assert issubclass(BadMagic, DecodeError)
        assert issubclass(UnexpectedEof, ClassFileError)
        assert issubclass(SinkError, EncodeError)
        assert issubclass(InvalidText, DecodeError)
        assert issubclass(InvalidText, EncodeError)


class TestEncodeErrors:
    def test_invalid_text(self, hello):
        hello.constant_pool[1].value = "Hello\x00"
        with pytest.raises(InvalidText) as exc_info:
            dumps(hello)
        assert exc_info.value.index == 1

    def test_too_many_interfaces(self, hello):
        hello.interfaces = [2] * 70000
        with pytest.raises(FieldOverflow):
            dumps(hello)

    def test_index_overflow(self, hello):
        hello.this_class = 0x10000
        with pytest.raises(FieldOverflow) as exc_info:
            dumps(hello)
        assert exc_info.value.value == 0x10000

    def test_sink_error(self, hello):
        with pytest.raises(SinkError) as exc_info:
            store(hello, FailingSink(limit=10))
        assert isinstance(exc_info.value.__cause__, OSError)
