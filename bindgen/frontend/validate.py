"""Declaration validation.

Checks the structural invariants the generator relies on but does not
enforce while synthesizing: required arguments form a prefix, member names
are unique, every name and interface type is a C++ identifier that is not a
reserved word, and a module holds at most one class.
A module that fails any check is rejected before synthesis.
"""

from __future__ import annotations

import re

from ..ir import (
    ClassDecl,
    ClassMember,
    FunctionDecl,
    InterfaceReturn,
    Module,
    NamedInterface,
    ParamType,
    Primitive,
    ReturnType,
    Sequence,
)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# C++ keywords and alternative operator tokens
_CPP_RESERVED: frozenset[str] = frozenset(
    """
    alignas alignof and and_eq asm auto bitand bitor bool break case catch
    char char8_t char16_t char32_t class compl concept const consteval
    constexpr constinit const_cast continue co_await co_return co_yield
    decltype default delete do double dynamic_cast else enum explicit export
    extern false float for friend goto if inline int long mutable namespace
    new noexcept not not_eq nullptr operator or or_eq private protected
    public register reinterpret_cast requires return short signed sizeof
    static static_assert static_cast struct switch template this
    thread_local throw true try typedef typeid typename union unsigned using
    virtual void volatile wchar_t while xor xor_eq
    """.split()
)



class Violation:
    """A broken invariant with the declaration path it was found at."""

    def __init__(self, path: str, category: str, message: str) -> None:
        self.path: str = path
        self.category: str = category
        self.message: str = message

    def __repr__(self) -> str:
        return "error:" + self.path + ": [" + self.category + "] " + self.message

    def __str__(self) -> str:
        return self.__repr__()


class ValidationResult:
    """Result of validating one module."""

    def __init__(self) -> None:
        self._errors: list[Violation] = []

    def add_error(self, path: str, category: str, message: str) -> None:
        self._errors.append(Violation(path, category, message))

    def errors(self) -> list[Violation]:
        return self._errors

    def ok(self) -> bool:
        return len(self._errors) == 0


class InvalidDeclaration(Exception):
    """Generation-time rejection of a module that breaks a model invariant."""

    def __init__(self, module_id: str, errors: list[Violation]) -> None:
        self.module_id: str = module_id
        self.errors: list[Violation] = errors
        super().__init__(
            "invalid declarations in module '"
            + module_id
            + "': "
            + "; ".join(str(e) for e in errors)
        )


def is_identifier(name: str) -> bool:
    """A name that can be spelled as-is in the generated C++."""
    return _IDENTIFIER.match(name) is not None and name not in _CPP_RESERVED


def _type_names(typ: ReturnType) -> list[str]:
    """Interface names a type spells out, through any sequence nesting."""
    if isinstance(typ, Sequence):
        return _type_names(typ.element)
    if isinstance(typ, (NamedInterface, InterfaceReturn)):
        return [typ.name]
    return []


def _check_type_names(typ: ReturnType, path: str, result: ValidationResult) -> None:
    for name in _type_names(typ):
        if not is_identifier(name):
            result.add_error(path, "types", "type '" + name + "' is not a valid identifier")


def _contains_void(typ: ParamType) -> bool:
    if isinstance(typ, Primitive):
        return typ.kind == "void"
    if isinstance(typ, Sequence):
        return _contains_void(typ.element)
    return False


def _check_function(decl: FunctionDecl, path: str, result: ValidationResult) -> None:
    if not is_identifier(decl.name):
        result.add_error(path, "names", "'" + decl.name + "' is not a valid identifier")
    seen: set[str] = set()
    seen_optional = ""
    for i, arg in enumerate(decl.args):
        arg_path = path + ".args[" + str(i) + "]"
        if not is_identifier(arg.name):
            result.add_error(
                arg_path, "names", "'" + arg.name + "' is not a valid identifier"
            )
        if arg.name in seen:
            result.add_error(arg_path, "names", "duplicate argument '" + arg.name + "'")
        seen.add(arg.name)
        if _contains_void(arg.typ):
            result.add_error(arg_path, "types", "argument '" + arg.name + "' has void type")
        _check_type_names(arg.typ, arg_path, result)
        if not arg.required:
            if seen_optional == "":
                seen_optional = arg.name
        elif seen_optional != "":
            result.add_error(
                arg_path,
                "arity",
                "required argument '"
                + arg.name
                + "' follows optional argument '"
                + seen_optional
                + "'",
            )
    _check_type_names(decl.ret, path + ".return", result)


def _check_class(
    cls: ClassDecl, path: str, free_names: set[str], result: ValidationResult
) -> None:
    _check_function(cls.constructor, path + ".constructor", result)
    prop_names: set[str] = set()
    for i, prop in enumerate(cls.properties):
        prop_path = path + ".properties[" + str(i) + "]"
        if not is_identifier(prop.name):
            result.add_error(
                prop_path, "names", "'" + prop.name + "' is not a valid identifier"
            )
        if prop.name in prop_names:
            result.add_error(prop_path, "names", "duplicate property '" + prop.name + "'")
        prop_names.add(prop.name)
        if _contains_void(prop.typ):
            result.add_error(prop_path, "types", "property '" + prop.name + "' has void type")
        _check_type_names(prop.typ, prop_path, result)
    method_names: set[str] = set()
    for i, method in enumerate(cls.methods):
        method_path = path + ".methods[" + str(i) + "]"
        _check_function(method, method_path, result)
        if method.name == "constructor":
            result.add_error(method_path, "names", "'constructor' cannot be declared as a method")
        if method.name in method_names:
            result.add_error(method_path, "names", "duplicate method '" + method.name + "'")
        method_names.add(method.name)
        # Free functions and methods share the callback namespace of the unit
        if method.name in free_names:
            result.add_error(
                method_path,
                "names",
                "method '" + method.name + "' clashes with a global function of the same name",
            )
        # Properties and methods share the prototype
        if method.name in prop_names:
            result.add_error(
                method_path,
                "names",
                "method '" + method.name + "' clashes with a property of the same name",
            )


def check_module(module: Module) -> ValidationResult:
    """Validate one module. Never raises; collects every violation."""
    result = ValidationResult()
    root = module.id if module.id else "<module>"
    if not is_identifier(module.id):
        result.add_error(root, "names", "module id '" + module.id + "' is not a valid identifier")
    if not is_identifier(module.backing_type):
        result.add_error(
            root,
            "names",
            "backing type '" + module.backing_type + "' is not a valid identifier",
        )
    free_names: set[str] = set()
    class_count = 0
    for i, member in enumerate(module.members):
        member_path = root + ".members[" + str(i) + "]"
        if isinstance(member, ClassMember):
            class_count += 1
            continue
        decl = member.decl
        _check_function(decl, member_path, result)
        if decl.name in free_names:
            result.add_error(member_path, "names", "duplicate function '" + decl.name + "'")
        free_names.add(decl.name)
    if class_count > 0 and module.backing_type in free_names:
        result.add_error(
            root,
            "names",
            "global function '" + module.backing_type + "' clashes with the class constructor",
        )
    if class_count > 1:
        result.add_error(
            root,
            "classes",
            "module declares "
            + str(class_count)
            + " classes; at most one class per module is supported",
        )
    for i, member in enumerate(module.members):
        if isinstance(member, ClassMember):
            _check_class(member.cls, root + ".members[" + str(i) + "]", free_names, result)
    return result
