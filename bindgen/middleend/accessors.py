"""Accessor synthesis: property -> getter and optional setter callbacks."""

from __future__ import annotations

from dataclasses import dataclass

from ..ir import PropertyDecl
from .typemap import IDLType, map_type


def _upper_first(s: str) -> str:
    return (s[0].upper() + s[1:]) if s else ""


@dataclass(frozen=True)
class AccessorPlan:
    """Callbacks for one property.

    setter and native_setter are None exactly when the property is readonly.
    A setter callback converts argv[0] with op, calls native_setter, and
    returns the engine success token.
    """

    prop: PropertyDecl
    op: IDLType
    getter: str
    native_getter: str
    setter: str | None = None
    native_setter: str | None = None

    def has_setter(self) -> bool:
        return self.setter is not None


def plan_accessor(prop: PropertyDecl) -> AccessorPlan:
    op = map_type(prop.typ)
    getter = prop.name + "AttributeGetCallback"
    if prop.readonly:
        return AccessorPlan(prop, op, getter, prop.name)
    return AccessorPlan(
        prop,
        op,
        getter,
        prop.name,
        setter=prop.name + "AttributeSetCallback",
        native_setter="set" + _upper_first(prop.name),
    )
