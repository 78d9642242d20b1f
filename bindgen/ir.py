"""bindgen IR - the declaration model consumed by the generator.

This module defines the interface surface of one compilation unit: free
functions, at most one class, and their typed arguments and properties.
Each node's docstring documents its semantics and invariants.

Architecture:
    Analyzer output -> Frontend (load, validate) -> [IR] -> Middleend (plans) -> Backend -> C++

The model is produced once per generation pass and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union


# ============================================================
# TYPES
#
# All types are frozen (immutable, hashable).
# ============================================================


@dataclass(frozen=True)
class ParamType:
    """Base for all parameter types. Abstract."""


@dataclass(frozen=True)
class Primitive(ParamType):
    """Primitive types with a fixed conversion operator.

    | Kind     | Operator     |
    |----------|--------------|
    | void     | (none)       |
    | boolean  | IDLBoolean   |
    | int32    | IDLInt32     |
    | int64    | IDLInt64     |
    | double   | IDLDouble    |
    | string   | IDLDOMString |
    | object   | IDLObject    |
    | any      | IDLAny       |
    | function | IDLCallback  |

    The native value type is Converter<Operator>::ImplType.
    """

    kind: Literal[
        "void", "boolean", "int32", "int64", "double", "string", "object", "any", "function"
    ]


@dataclass(frozen=True)
class NamedInterface(ParamType):
    """A type whose conversion operator is the type itself.

    Converter<Name> is defined by the named interface, not by the
    generic mapping table.
    """

    name: str


@dataclass(frozen=True)
class Sequence(ParamType):
    """Homogeneous sequence. Nesting is permitted (sequence of sequence).

    Invariants:
    - element is a valid ParamType (not None, not void)
    """

    element: ParamType


@dataclass(frozen=True)
class PromiseType:
    """Return marker: the native call produces a ScriptPromise handle."""


@dataclass(frozen=True)
class InterfaceReturn:
    """Return marker: the native call produces an owning pointer to Name."""

    name: str


ReturnType = Union[ParamType, PromiseType, InterfaceReturn]

VOID = Primitive("void")
BOOLEAN = Primitive("boolean")
INT32 = Primitive("int32")
INT64 = Primitive("int64")
DOUBLE = Primitive("double")
STRING = Primitive("string")
OBJECT = Primitive("object")
ANY = Primitive("any")
FUNCTION = Primitive("function")
PROMISE = PromiseType()

PRIMITIVE_KINDS: tuple[str, ...] = (
    "void",
    "boolean",
    "int32",
    "int64",
    "double",
    "string",
    "object",
    "any",
    "function",
)


# ============================================================
# DECLARATIONS
# ============================================================


@dataclass(frozen=True)
class Argument:
    """A declared function argument.

    Invariants:
    - name is unique within its declaration
    - within a declaration, required arguments form a contiguous prefix
    """

    name: str
    typ: ParamType
    required: bool = True


@dataclass(frozen=True)
class FunctionDecl:
    """Free function, method, or constructor declaration.

    A constructor is a FunctionDecl named "constructor"; its return type is
    ignored and always treated as a new instance of the owning class.
    """

    name: str
    args: tuple[Argument, ...] = ()
    ret: ReturnType = VOID

    def required_count(self) -> int:
        """Number of required arguments (the length of the required prefix)."""
        count = 0
        for arg in self.args:
            if arg.required:
                count += 1
        return count

    def is_constructor(self) -> bool:
        return self.name == "constructor"


@dataclass(frozen=True)
class PropertyDecl:
    """Class property, exposed on the prototype as an accessor pair."""

    name: str
    typ: ParamType
    readonly: bool = False


@dataclass(frozen=True)
class ClassDecl:
    """Class declaration.

    Invariants:
    - property names are unique
    - method names are unique
    """

    constructor: FunctionDecl
    properties: tuple[PropertyDecl, ...] = ()
    methods: tuple[FunctionDecl, ...] = ()


@dataclass(frozen=True)
class FunctionMember:
    """A free function installed on the global object."""

    decl: FunctionDecl


@dataclass(frozen=True)
class ClassMember:
    """A class whose constructor is installed on the global object."""

    cls: ClassDecl


Member = Union[FunctionMember, ClassMember]


@dataclass(frozen=True)
class Module:
    """One compilation unit (one generated .cc/.h pair).

    id names the output files (qjs_<id>.cc) and backing_type is the native
    class implementing every member (Backing::fn for free functions,
    Backing::Create for the constructor).

    Invariants (checked by frontend.validate, not here):
    - at most one ClassMember
    - free function names do not clash with class method names
    """

    id: str
    backing_type: str
    members: tuple[Member, ...] = ()
    impl_path: str = ""  # "" = <include_prefix>/<id>.h

    def functions(self) -> list[FunctionDecl]:
        return [m.decl for m in self.members if isinstance(m, FunctionMember)]

    def classes(self) -> list[ClassDecl]:
        return [m.cls for m in self.members if isinstance(m, ClassMember)]

    def has_class(self) -> bool:
        return len(self.classes()) > 0


# ============================================================
# GENERATION OPTIONS
# ============================================================

DEFAULT_BANNER = """\
/*
 * Copyright (C) 2021 Alibaba Inc. All rights reserved.
 * Author: Kraken Team.
 */"""


@dataclass(frozen=True)
class Options:
    """Knobs shared by every phase of one generation pass.

    strict_arity: reject calls with more arguments than declared instead of
    ignoring the extras.
    """

    namespace: str = "kraken"
    strict_arity: bool = False
    banner: str = DEFAULT_BANNER
    include_prefix: str = "core"
    extra_includes: tuple[str, ...] = ()
