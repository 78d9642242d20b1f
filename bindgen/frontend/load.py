"""Load the analyzer's declaration model from JSON-compatible dicts.

Input shape (one module, or {"modules": [...]} for several):

    {
      "id": "canvas",
      "backing_type": "Canvas",
      "impl": "core/html/canvas",              (optional)
      "members": [
        {"kind": "function", "name": "draw",
         "args": [{"name": "x", "type": "int32", "required": true}],
         "return": "void"},
        {"kind": "class",
         "constructor": {"args": [...]},
         "properties": [{"name": "width", "type": "double", "readonly": true}],
         "methods": [{"name": "fill", "args": [], "return": "Promise"}]}
      ]
    }

Types are primitive kind names, {"sequence": <type>}, or any other string,
which names an interface. A return of "Promise" or of a bare interface name
selects the bespoke result handling (a promise handle or an owning pointer).
A return of {"converted": <name>} instead passes the interface value back
through Converter<name>, like any other parameter type.
"""

from __future__ import annotations

import json

from ..ir import (
    PRIMITIVE_KINDS,
    PROMISE,
    Argument,
    ClassDecl,
    ClassMember,
    FunctionDecl,
    FunctionMember,
    InterfaceReturn,
    Member,
    Module,
    NamedInterface,
    ParamType,
    Primitive,
    PropertyDecl,
    ReturnType,
    Sequence,
)

_TOO_DEEP = "input nested too deeply"


class LoadError(Exception):
    """Malformed declaration input, with the path of the offending node."""

    def __init__(self, path: str, msg: str) -> None:
        self.path: str = path
        self.msg: str = msg
        super().__init__(path + ": " + msg)


def _expect_dict(node: object, path: str) -> dict[str, object]:
    if not isinstance(node, dict):
        raise LoadError(path, "expected an object")
    return node


def _expect_list(node: object, path: str) -> list[object]:
    if node is None:
        return []
    if not isinstance(node, list):
        raise LoadError(path, "expected an array")
    return node


def _expect_str(node: object, path: str) -> str:
    if not isinstance(node, str) or node == "":
        raise LoadError(path, "expected a non-empty string")
    return node


def _expect_bool(node: object, path: str, default: bool) -> bool:
    if node is None:
        return default
    if not isinstance(node, bool):
        raise LoadError(path, "expected a boolean")
    return node


def load_type(node: object, path: str) -> ParamType:
    """Decode a parameter type."""
    if isinstance(node, str):
        if node in PRIMITIVE_KINDS:
            return Primitive(node)  # type: ignore[arg-type]
        return NamedInterface(node)
    if isinstance(node, dict) and "sequence" in node:
        return Sequence(load_type(node["sequence"], path + ".sequence"))
    raise LoadError(path, "unrecognized type " + json.dumps(node))


def load_return_type(node: object, path: str) -> ReturnType:
    """Decode a return type. Bare interface names return owning pointers."""
    if node is None:
        return Primitive("void")
    if node == "Promise":
        return PROMISE
    if isinstance(node, dict) and "converted" in node:
        return NamedInterface(_expect_str(node["converted"], path + ".converted"))
    if isinstance(node, str) and node not in PRIMITIVE_KINDS:
        return InterfaceReturn(node)
    return load_type(node, path)


def load_function(node: object, path: str, default_name: str = "") -> FunctionDecl:
    d = _expect_dict(node, path)
    if default_name != "" and d.get("name") is None:
        name = default_name
    else:
        name = _expect_str(d.get("name"), path + ".name")
    args: list[Argument] = []
    for i, raw in enumerate(_expect_list(d.get("args"), path + ".args")):
        arg_path = path + ".args[" + str(i) + "]"
        a = _expect_dict(raw, arg_path)
        args.append(
            Argument(
                name=_expect_str(a.get("name"), arg_path + ".name"),
                typ=load_type(a.get("type"), arg_path + ".type"),
                required=_expect_bool(a.get("required"), arg_path + ".required", True),
            )
        )
    ret = load_return_type(d.get("return"), path + ".return")
    return FunctionDecl(name, tuple(args), ret)


def load_class(d: dict[str, object], path: str) -> ClassDecl:
    constructor_node = d.get("constructor")
    if constructor_node is None:
        constructor = FunctionDecl("constructor")
    else:
        constructor = load_function(constructor_node, path + ".constructor", "constructor")
    properties: list[PropertyDecl] = []
    for i, raw in enumerate(_expect_list(d.get("properties"), path + ".properties")):
        prop_path = path + ".properties[" + str(i) + "]"
        p = _expect_dict(raw, prop_path)
        properties.append(
            PropertyDecl(
                name=_expect_str(p.get("name"), prop_path + ".name"),
                typ=load_type(p.get("type"), prop_path + ".type"),
                readonly=_expect_bool(p.get("readonly"), prop_path + ".readonly", False),
            )
        )
    methods: list[FunctionDecl] = []
    for i, raw in enumerate(_expect_list(d.get("methods"), path + ".methods")):
        methods.append(load_function(raw, path + ".methods[" + str(i) + "]"))
    return ClassDecl(constructor, tuple(properties), tuple(methods))


def load_module(node: object, path: str = "module") -> Module:
    d = _expect_dict(node, path)
    module_id = _expect_str(d.get("id"), path + ".id")
    members: list[Member] = []
    for i, raw in enumerate(_expect_list(d.get("members"), path + ".members")):
        member_path = path + ".members[" + str(i) + "]"
        m = _expect_dict(raw, member_path)
        kind = m.get("kind")
        if kind == "function":
            members.append(FunctionMember(load_function(m, member_path)))
        elif kind == "class":
            members.append(ClassMember(load_class(m, member_path)))
        else:
            raise LoadError(member_path + ".kind", "expected 'function' or 'class'")
    impl = d.get("impl")
    return Module(
        id=module_id,
        backing_type=_expect_str(d.get("backing_type"), path + ".backing_type"),
        members=tuple(members),
        impl_path=_expect_str(impl, path + ".impl") if impl is not None else "",
    )


def load_modules(node: object) -> list[Module]:
    """Decode either a single module object or {"modules": [...]}."""
    d = _expect_dict(node, "$")
    try:
        if "modules" in d:
            raw = _expect_list(d["modules"], "modules")
            return [load_module(m, "modules[" + str(i) + "]") for i, m in enumerate(raw)]
        return [load_module(d)]
    except RecursionError as e:
        raise LoadError("$", _TOO_DEEP) from e


def loads(source: str) -> list[Module]:
    """Decode JSON text into modules."""
    try:
        node = json.loads(source)
    except RecursionError as e:
        raise LoadError("$", _TOO_DEEP) from e
    except ValueError as e:
        raise LoadError("$", "invalid JSON: " + str(e)) from e
    return load_modules(node)
