"""
Exceptions raised while reading and writing class files.
"""

from typing import Optional


class ClassFileError(Exception):
    """Base class for every error raised by pyjclass."""
    pass


class DecodeError(ClassFileError):
    """Error while loading a class file."""
    pass


class EncodeError(ClassFileError):
    """Error while storing a class file."""
    pass


class UnexpectedEof(DecodeError):
    """The source ran out of bytes before a field was complete."""

    def __init__(self, offset: int, wanted: int, got: int):
        self.offset = offset
        self.wanted = wanted
        self.got = got
        super().__init__(
            f"Unexpected end of input at offset {offset}: wanted {wanted} bytes, got {got}")


class BadMagic(DecodeError):
    def __init__(self, magic: int):
        self.magic = magic
        super().__init__(f"Invalid class file magic: {magic:#010x}")


class UnknownConstantTag(DecodeError):
    def __init__(self, tag: int, index: int, offset: int):
        self.tag = tag
        self.index = index
        self.offset = offset
        super().__init__(
            f"Unknown constant pool tag {tag} at pool index #{index} (offset {offset})")


class InvalidText(DecodeError, EncodeError):
    """A Utf8 constant that cannot be represented as strict UTF-8.

    Raised on load when the stored bytes are not strict UTF-8 (this includes
    the modified encodings of NUL and supplementary characters), and on store
    when the text cannot be encoded or does not fit a u2 length.
    """

    def __init__(self, index: int, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"Invalid text in Utf8 constant #{index}: {reason}")


class MalformedAttribute(DecodeError):
    """A known attribute whose payload does not match its layout."""

    def __init__(self, name: str, offset: int, reason: str):
        self.name = name
        self.offset = offset
        self.reason = reason
        super().__init__(f"Malformed {name} attribute at offset {offset}: {reason}")


class FieldOverflow(EncodeError):
    def __init__(self, value, fmt: str):
        self.value = value
        self.fmt = fmt
        super().__init__(f"Value {value!r} does not fit field format {fmt!r}")


class SourceError(DecodeError):
    """I/O failure from the byte source; the original error is chained."""
    pass


class SinkError(EncodeError):
    """I/O failure from the byte sink; the original error is chained."""
    pass


class IndexOutOfRange(ClassFileError, IndexError):
    def __init__(self, index: int, size: int, detail: Optional[str] = None):
        self.index = index
        self.size = size
        message = f"Invalid constant pool index #{index} (pool count {size})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ConstantTypeError(ClassFileError, TypeError):
    """A pool entry was found but has the wrong kind for the lookup."""
    pass


class InvalidDescriptor(ClassFileError, ValueError):
    def __init__(self, text: str, reason: str = ""):
        self.text = text
        message = f"Invalid descriptor: {text!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
