"""Type mapping: declared parameter type -> native conversion operator.

The mapping is total. Every ParamType yields an operator; anything the
table does not name falls back to IDLAny.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..ir import NamedInterface, ParamType, Primitive, Sequence


@dataclass(frozen=True)
class IDLType:
    """A conversion operator, optionally parameterized.

    Renders as the C++ template argument to Converter<...>, e.g.
    IDLSequence<IDLOptional<IDLInt32>>.
    """

    name: str
    args: tuple[IDLType, ...] = ()

    def __str__(self) -> str:
        if not self.args:
            return self.name
        return self.name + "<" + ", ".join(str(a) for a in self.args) + ">"

    def is_optional(self) -> bool:
        return self.name == "IDLOptional"


IDL_ANY = IDLType("IDLAny")

_PRIMITIVE_OPERATORS: dict[str, IDLType] = {
    "boolean": IDLType("IDLBoolean"),
    "int32": IDLType("IDLInt32"),
    "int64": IDLType("IDLInt64"),
    "double": IDLType("IDLDouble"),
    "string": IDLType("IDLDOMString"),
    "object": IDLType("IDLObject"),
    "any": IDL_ANY,
    "function": IDLType("IDLCallback"),
}


def map_type(typ: ParamType) -> IDLType:
    """Map a parameter type to its conversion operator."""
    if isinstance(typ, Sequence):
        return IDLType("IDLSequence", (map_type(typ.element),))
    if isinstance(typ, NamedInterface):
        # The interface is its own converter
        return IDLType(typ.name)
    if isinstance(typ, Primitive):
        return _PRIMITIVE_OPERATORS.get(typ.kind, IDL_ANY)
    return IDL_ANY


def map_optional(typ: ParamType) -> IDLType:
    """Map a trailing optional parameter: absent or undefined input is valid."""
    return IDLType("IDLOptional", (map_type(typ),))
