"""
Access and property flags.

One IntFlag covers every flag word in the format; several bit values are
shared between contexts (e.g. SUPER for classes, SYNCHRONIZED for methods).
Bits without a name are kept as-is.
"""

from enum import IntFlag


class AccessFlags(IntFlag):
    PUBLIC = 0x0001
    PRIVATE = 0x0002
    PROTECTED = 0x0004
    STATIC = 0x0008
    FINAL = 0x0010
    SUPER = 0x0020  # For classes (invokespecial semantics)
    SYNCHRONIZED = 0x0020  # For methods
    OPEN = 0x0020  # For modules
    TRANSITIVE = 0x0020  # For module requires
    VOLATILE = 0x0040
    BRIDGE = 0x0040
    STATIC_PHASE = 0x0040  # For module requires
    TRANSIENT = 0x0080
    VARARGS = 0x0080
    NATIVE = 0x0100
    INTERFACE = 0x0200
    ABSTRACT = 0x0400
    STRICT = 0x0800
    SYNTHETIC = 0x1000
    ANNOTATION = 0x2000
    ENUM = 0x4000
    MODULE = 0x8000  # For classes
    MANDATED = 0x8000  # For parameters and module directives


CLASS_FLAGS = (
    (AccessFlags.PUBLIC, "public"),
    (AccessFlags.FINAL, "final"),
    (AccessFlags.SUPER, "super"),
    (AccessFlags.INTERFACE, "interface"),
    (AccessFlags.ABSTRACT, "abstract"),
    (AccessFlags.SYNTHETIC, "synthetic"),
    (AccessFlags.ANNOTATION, "annotation"),
    (AccessFlags.ENUM, "enum"),
    (AccessFlags.MODULE, "module"),
)

FIELD_FLAGS = (
    (AccessFlags.PUBLIC, "public"),
    (AccessFlags.PRIVATE, "private"),
    (AccessFlags.PROTECTED, "protected"),
    (AccessFlags.STATIC, "static"),
    (AccessFlags.FINAL, "final"),
    (AccessFlags.VOLATILE, "volatile"),
    (AccessFlags.TRANSIENT, "transient"),
    (AccessFlags.SYNTHETIC, "synthetic"),
    (AccessFlags.ENUM, "enum"),
)

METHOD_FLAGS = (
    (AccessFlags.PUBLIC, "public"),
    (AccessFlags.PRIVATE, "private"),
    (AccessFlags.PROTECTED, "protected"),
    (AccessFlags.STATIC, "static"),
    (AccessFlags.FINAL, "final"),
    (AccessFlags.SYNCHRONIZED, "synchronized"),
    (AccessFlags.BRIDGE, "bridge"),
    (AccessFlags.VARARGS, "varargs"),
    (AccessFlags.NATIVE, "native"),
    (AccessFlags.ABSTRACT, "abstract"),
    (AccessFlags.STRICT, "strict"),
    (AccessFlags.SYNTHETIC, "synthetic"),
)


def flag_names(flags: int, table: tuple[tuple[AccessFlags, str], ...]) -> list[str]:
    """Names of the bits of ``flags`` that are meaningful in the context of ``table``.

    Bit values are shared between contexts, so pass the table for the kind
    of item the flags belong to (CLASS_FLAGS, FIELD_FLAGS, METHOD_FLAGS).
    """
    return [name for bit, name in table if flags & bit]
