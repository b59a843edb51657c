"""
Field and method descriptor parser using Lark.

Descriptors are the compact type strings stored in Utf8 constants, e.g.
``I``, ``[Ljava/lang/String;`` or ``(IJ)V``.
"""

from dataclasses import dataclass
from typing import Union

from lark import Lark, Transformer, v_args
from lark.exceptions import LarkError

from .errors import InvalidDescriptor


GRAMMAR = r"""
    field_descriptor: field_type
    method_descriptor: "(" field_type* ")" return_type

    ?field_type: base_type | object_type | array_type
    ?return_type: field_type | void_type

    base_type: BASE_TYPE
    void_type: "V"
    object_type: "L" CLASS_NAME ";"
    array_type: "[" field_type

    BASE_TYPE: /[BCDFIJSZ]/
    CLASS_NAME: /[^;\[\.\/]+(\/[^;\[\.\/]+)*/
"""

BASE_TYPE_NAMES = {
    "B": "byte", "C": "char", "D": "double", "F": "float",
    "I": "int", "J": "long", "S": "short", "Z": "boolean", "V": "void",
}


@dataclass(frozen=True)
class BaseType:
    """Primitive type (B, C, D, F, I, J, S, Z) or void (V)."""
    code: str

    def __str__(self) -> str:
        return self.code

    @property
    def java_name(self) -> str:
        return BASE_TYPE_NAMES[self.code]


@dataclass(frozen=True)
class ObjectType:
    class_name: str  # internal form, e.g. "java/lang/String"

    def __str__(self) -> str:
        return f"L{self.class_name};"

    @property
    def java_name(self) -> str:
        return self.class_name.replace("/", ".")


@dataclass(frozen=True)
class ArrayType:
    element: Union[BaseType, ObjectType]
    dimensions: int = 1

    def __str__(self) -> str:
        return "[" * self.dimensions + str(self.element)

    @property
    def java_name(self) -> str:
        return self.element.java_name + "[]" * self.dimensions


FieldType = Union[BaseType, ObjectType, ArrayType]

VOID = BaseType("V")


@dataclass(frozen=True)
class MethodDescriptor:
    parameters: tuple[FieldType, ...]
    return_type: FieldType  # VOID for void methods

    def __str__(self) -> str:
        params = "".join(str(p) for p in self.parameters)
        return f"({params}){self.return_type}"

    def format(self, name: str) -> str:
        """Java-like rendering, e.g. ``int add(int, int)``."""
        params = ", ".join(p.java_name for p in self.parameters)
        return f"{self.return_type.java_name} {name}({params})"


@v_args(inline=True)
class DescriptorTransformer(Transformer):
    """Transforms the Lark parse tree to descriptor dataclasses."""

    def field_descriptor(self, field_type):
        return field_type

    def method_descriptor(self, *items):
        *parameters, return_type = items
        return MethodDescriptor(tuple(parameters), return_type)

    def base_type(self, token):
        return BaseType(str(token))

    def void_type(self):
        return VOID

    def object_type(self, token):
        return ObjectType(str(token))

    def array_type(self, element):
        if isinstance(element, ArrayType):
            return ArrayType(element.element, element.dimensions + 1)
        return ArrayType(element)


class DescriptorParser:
    """Parses field and method descriptors."""

    def __init__(self):
        self._parser = Lark(
            GRAMMAR,
            parser="earley",
            start=["field_descriptor", "method_descriptor"],
            maybe_placeholders=False,
        )
        self._transformer = DescriptorTransformer()

    def _parse(self, text: str, start: str):
        try:
            tree = self._parser.parse(text, start=start)
        except LarkError as e:
            reason = str(e).strip().splitlines()
            raise InvalidDescriptor(text, reason[0] if reason else type(e).__name__) from e
        return self._transformer.transform(tree)

    def parse_field(self, text: str) -> FieldType:
        return self._parse(text, "field_descriptor")

    def parse_method(self, text: str) -> MethodDescriptor:
        return self._parse(text, "method_descriptor")


_parser = None


def _get_parser() -> DescriptorParser:
    global _parser
    if _parser is None:
        _parser = DescriptorParser()
    return _parser


def parse_field_descriptor(text: str) -> FieldType:
    """Parse a field descriptor such as ``[[I`` or ``Ljava/lang/Object;``."""
    return _get_parser().parse_field(text)


def parse_method_descriptor(text: str) -> MethodDescriptor:
    """Parse a method descriptor such as ``(ILjava/lang/String;)V``."""
    return _get_parser().parse_method(text)
