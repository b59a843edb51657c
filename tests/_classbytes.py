"""Hand assembly of class file bytes for tests, independent of pyjclass."""

import struct


def u1(value: int) -> bytes:
    return struct.pack(">B", value)


def u2(value: int) -> bytes:
    return struct.pack(">H", value)


def u4(value: int) -> bytes:
    return struct.pack(">I", value)


def utf8(text: str) -> bytes:
    data = text.encode("utf-8")
    return u1(1) + u2(len(data)) + data


def utf8_raw(data: bytes) -> bytes:
    return u1(1) + u2(len(data)) + data


def integer(value: int) -> bytes:
    return u1(3) + struct.pack(">i", value)


def float_(value: float) -> bytes:
    return u1(4) + struct.pack(">f", value)


def long(value: int) -> bytes:
    return u1(5) + struct.pack(">q", value)


def double(value: float) -> bytes:
    return u1(6) + struct.pack(">d", value)


def class_(name_index: int) -> bytes:
    return u1(7) + u2(name_index)


def string(utf8_index: int) -> bytes:
    return u1(8) + u2(utf8_index)


def name_and_type(name_index: int, descriptor_index: int) -> bytes:
    return u1(12) + u2(name_index) + u2(descriptor_index)


def methodref(class_index: int, nat_index: int) -> bytes:
    return u1(10) + u2(class_index) + u2(nat_index)


def attribute(name_index: int, payload: bytes) -> bytes:
    return u2(name_index) + u4(len(payload)) + payload


def attributes(*attrs: bytes) -> bytes:
    return u2(len(attrs)) + b"".join(attrs)


def member(access: int, name_index: int, descriptor_index: int, *attrs: bytes) -> bytes:
    return u2(access) + u2(name_index) + u2(descriptor_index) + attributes(*attrs)


def class_bytes(pool_count: int, pool: list[bytes], access: int = 0x21,
                this_class: int = 0, super_class: int = 0,
                interfaces: tuple = (), fields: tuple = (), methods: tuple = (),
                class_attributes: tuple = (), version: tuple = (52, 0),
                magic: int = 0xCAFEBABE) -> bytes:
    major, minor = version
    out = bytearray()
    out += u4(magic) + u2(minor) + u2(major)
    out += u2(pool_count) + b"".join(pool)
    out += u2(access) + u2(this_class) + u2(super_class)
    out += u2(len(interfaces)) + b"".join(u2(i) for i in interfaces)
    out += u2(len(fields)) + b"".join(fields)
    out += u2(len(methods)) + b"".join(methods)
    out += attributes(*class_attributes)
    return bytes(out)


# Constant pool of the "Hello" class below. Logical indices:
#   13 is a Long (14 reserved), 18 is a Double (19 reserved).
HELLO_POOL = [
    utf8("Hello"),                  # 1
    class_(1),                      # 2
    utf8("java/lang/Object"),       # 3
    class_(3),                      # 4
    utf8("<init>"),                 # 5
    utf8("()V"),                    # 6
    name_and_type(5, 6),            # 7
    methodref(4, 7),                # 8
    utf8("Code"),                   # 9
    utf8("LineNumberTable"),        # 10
    utf8("SourceFile"),             # 11
    utf8("Hello.java"),             # 12
    long(1234567890123),            # 13, 14
    utf8("BIG"),                    # 15
    utf8("J"),                      # 16
    utf8("ConstantValue"),          # 17
    double(3.5),                    # 18, 19
    utf8("main"),                   # 20
    utf8("([Ljava/lang/String;)V"),  # 21
    utf8("Custom"),                 # 22
    string(12),                     # 23
]
HELLO_POOL_COUNT = 24

INIT_CODE = bytes([0x2A, 0xB7, 0x00, 0x08, 0xB1])  # aload_0; invokespecial #8; return
CUSTOM_PAYLOAD = b"\x01\x02\x03"


def code_payload(max_stack: int, max_locals: int, code: bytes,
                 exception_table: tuple = (), sub_attributes: tuple = ()) -> bytes:
    out = u2(max_stack) + u2(max_locals) + u4(len(code)) + code
    out += u2(len(exception_table))
    for start_pc, end_pc, handler_pc, catch_type in exception_table:
        out += u2(start_pc) + u2(end_pc) + u2(handler_pc) + u2(catch_type)
    return out + attributes(*sub_attributes)


def hello_class() -> bytes:
    """A small but complete class: one constant field, two methods, two class attributes."""
    big = member(0x19, 15, 16, attribute(17, u2(13)))
    init = member(0x01, 5, 6, attribute(9, code_payload(
        1, 1, INIT_CODE,
        sub_attributes=(attribute(10, u2(1) + u2(0) + u2(1)),),
    )))
    main = member(0x09, 20, 21, attribute(9, code_payload(
        0, 1, b"\xb1", exception_table=((0, 1, 0, 0),),
    )))
    return class_bytes(
        HELLO_POOL_COUNT, HELLO_POOL,
        this_class=2, super_class=4,
        fields=(big,), methods=(init, main),
        class_attributes=(
            attribute(11, u2(12)),
            attribute(22, CUSTOM_PAYLOAD),
        ),
    )


class TrickleSource:
    """A source that hands out at most ``step`` bytes per read() call."""

    def __init__(self, data: bytes, step: int = 1):
        self.data = data
        self.pos = 0
        self.step = step

    def read(self, n: int) -> bytes:
        n = min(n, self.step)
        chunk = self.data[self.pos:self.pos + n]
        self.pos += len(chunk)
        return chunk


class FailingSource:
    def read(self, n: int) -> bytes:
        raise OSError("device not ready")


class FailingSink:
    """A sink that fails once more than ``limit`` bytes have been written."""

    def __init__(self, limit: int = 0):
        self.limit = limit
        self.written = 0

    def write(self, data: bytes) -> int:
        if self.written + len(data) > self.limit:
            raise OSError("disk full")
        self.written += len(data)
        return len(data)
