"""Serialization of IR and plans to JSON-compatible dicts."""

from __future__ import annotations

import json

from .ir import (
    ClassDecl,
    ClassMember,
    FunctionDecl,
    InterfaceReturn,
    Module,
    NamedInterface,
    ParamType,
    Primitive,
    PromiseType,
    PropertyDecl,
    ReturnType,
    Sequence,
)
from .middleend.accessors import AccessorPlan
from .middleend.assemble import ClassPlan, ModulePlan, Registrations
from .middleend.dispatch import (
    CallPlan,
    ConvertedResult,
    DispatchPoint,
    PromiseResult,
    Result,
    VoidResult,
    WrappableResult,
)


# --- Declarations (same shape frontend.load reads) ---


def type_to_json(typ: ParamType) -> object:
    if isinstance(typ, Primitive):
        return typ.kind
    if isinstance(typ, NamedInterface):
        return typ.name
    if isinstance(typ, Sequence):
        return {"sequence": type_to_json(typ.element)}
    raise NotImplementedError(f"type: {type(typ).__name__}")


def return_to_json(ret: ReturnType) -> object:
    """A bare name is read back as InterfaceReturn, so converted interfaces are tagged."""
    if isinstance(ret, NamedInterface):
        return {"converted": ret.name}
    if isinstance(ret, PromiseType):
        return "Promise"
    if isinstance(ret, InterfaceReturn):
        return ret.name
    return type_to_json(ret)


def function_to_dict(decl: FunctionDecl) -> dict[str, object]:
    return {
        "name": decl.name,
        "args": [
            {"name": a.name, "type": type_to_json(a.typ), "required": a.required}
            for a in decl.args
        ],
        "return": return_to_json(decl.ret),
    }


def _property_to_dict(prop: PropertyDecl) -> dict[str, object]:
    return {"name": prop.name, "type": type_to_json(prop.typ), "readonly": prop.readonly}


def class_to_dict(cls: ClassDecl) -> dict[str, object]:
    return {
        "kind": "class",
        "constructor": function_to_dict(cls.constructor),
        "properties": [_property_to_dict(p) for p in cls.properties],
        "methods": [function_to_dict(m) for m in cls.methods],
    }


def module_to_dict(module: Module) -> dict[str, object]:
    members: list[object] = []
    for member in module.members:
        if isinstance(member, ClassMember):
            members.append(class_to_dict(member.cls))
        else:
            d = function_to_dict(member.decl)
            d["kind"] = "function"
            members.append(d)
    result: dict[str, object] = {
        "id": module.id,
        "backing_type": module.backing_type,
        "members": members,
    }
    if module.impl_path != "":
        result["impl"] = module.impl_path
    return result


# --- Plans ---


def _result_to_dict(result: Result) -> dict[str, object]:
    if isinstance(result, VoidResult):
        return {"kind": "void"}
    if isinstance(result, PromiseResult):
        return {"kind": "promise"}
    if isinstance(result, WrappableResult):
        return {"kind": "wrappable", "type": result.type_name}
    if isinstance(result, ConvertedResult):
        return {"kind": "converted", "op": str(result.op)}
    raise NotImplementedError(f"result kind: {type(result).__name__}")


def _point_to_dict(point: DispatchPoint) -> dict[str, object]:
    return {
        "conversions": [
            {"arg": c.arg.name, "slot": c.slot, "op": str(c.op)} for c in point.conversions
        ],
        "when": "always" if point.catch_all else "argc <= " + str(point.arity),
        "call_args": list(point.call_args),
    }


def call_plan_to_dict(plan: CallPlan) -> dict[str, object]:
    return {
        "name": plan.name,
        "callee": plan.callee,
        "mode": plan.mode,
        "required": plan.required,
        "accepted": plan.accepted,
        "strict_arity": plan.strict_arity,
        "points": [_point_to_dict(p) for p in plan.points],
        "result": _result_to_dict(plan.result),
    }


def _accessor_to_dict(accessor: AccessorPlan) -> dict[str, object]:
    return {
        "name": accessor.prop.name,
        "op": str(accessor.op),
        "getter": accessor.getter,
        "setter": accessor.setter,
    }


def registrations_to_dict(regs: Registrations) -> dict[str, object]:
    return {
        "global_functions": [
            {"name": e.name, "callback": e.callback, "length": e.length}
            for e in regs.global_functions
        ],
        "constructor": regs.constructor.name if regs.constructor is not None else None,
        "prototype_methods": [
            {"name": e.name, "callback": e.callback, "length": e.length}
            for e in regs.prototype_methods
        ],
        "prototype_properties": [
            {"name": e.name, "getter": e.getter, "setter": e.setter}
            for e in regs.prototype_properties
        ],
    }


def plan_to_dict(plan: ModulePlan) -> dict[str, object]:
    members: list[object] = []
    for member in plan.members:
        if isinstance(member, ClassPlan):
            members.append(
                {
                    "kind": "class",
                    "constructor": call_plan_to_dict(member.constructor),
                    "accessors": [_accessor_to_dict(a) for a in member.accessors],
                    "methods": [call_plan_to_dict(m) for m in member.methods],
                }
            )
        else:
            d = call_plan_to_dict(member)
            d["kind"] = "function"
            members.append(d)
    return {
        "id": plan.module.id,
        "wrapper": plan.wrapper_name,
        "members": members,
        "registrations": registrations_to_dict(plan.registrations),
    }


def to_json(obj: object) -> str:
    """Serialize object to pretty-printed JSON."""
    return json.dumps(obj, indent=2)
