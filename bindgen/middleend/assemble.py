"""Module assembly: per-member plans plus the four registration tables.

Each member contributes a Registrations value; the module plan is the merge
of those values, so no table is shared or mutated while members are
synthesized.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from ..frontend.validate import InvalidDeclaration, Violation, check_module
from ..ir import ClassDecl, ClassMember, FunctionMember, Module, Options
from .accessors import AccessorPlan, plan_accessor
from .dispatch import CallPlan, plan_call


# ============================================================
# REGISTRATION TABLES
# ============================================================


@dataclass(frozen=True)
class FunctionEntry:
    """MemberInstaller::FunctionConfig row: {name, callback, length}."""

    name: str
    callback: str
    length: int


@dataclass(frozen=True)
class PropertyEntry:
    """MemberInstaller::AttributeConfig row: {name, getter, setter-or-nullptr}."""

    name: str
    getter: str
    setter: str | None


@dataclass(frozen=True)
class ConstructorEntry:
    """Global attribute holding the class constructor."""

    name: str


@dataclass(frozen=True)
class Registrations:
    """Installation tables of a module (or of a single member before merge)."""

    global_functions: tuple[FunctionEntry, ...] = ()
    constructor: ConstructorEntry | None = None
    prototype_methods: tuple[FunctionEntry, ...] = ()
    prototype_properties: tuple[PropertyEntry, ...] = ()

    def merge(self, other: Registrations) -> Registrations:
        if self.constructor is not None and other.constructor is not None:
            raise InvalidDeclaration(
                self.constructor.name,
                [Violation(self.constructor.name, "classes", "constructor registered twice")],
            )
        return Registrations(
            global_functions=self.global_functions + other.global_functions,
            constructor=self.constructor if self.constructor is not None else other.constructor,
            prototype_methods=self.prototype_methods + other.prototype_methods,
            prototype_properties=self.prototype_properties + other.prototype_properties,
        )

    def has_class(self) -> bool:
        return self.constructor is not None


# ============================================================
# PLANS
# ============================================================


@dataclass(frozen=True)
class ClassPlan:
    """Constructor, accessors, and methods of the module's class."""

    constructor: CallPlan
    accessors: tuple[AccessorPlan, ...] = ()
    methods: tuple[CallPlan, ...] = ()


MemberPlan = Union[CallPlan, ClassPlan]


@dataclass(frozen=True)
class ModulePlan:
    """A module ready for rendering."""

    module: Module
    options: Options
    members: tuple[MemberPlan, ...] = ()
    registrations: Registrations = field(default_factory=Registrations)

    @property
    def class_name(self) -> str:
        return self.module.backing_type

    @property
    def wrapper_name(self) -> str:
        return "QJS" + self.module.backing_type

    def functions(self) -> list[CallPlan]:
        return [m for m in self.members if isinstance(m, CallPlan)]

    def class_plan(self) -> ClassPlan | None:
        for m in self.members:
            if isinstance(m, ClassPlan):
                return m
        return None


def plan_function(
    member: FunctionMember, module: Module, options: Options
) -> tuple[CallPlan, Registrations]:
    decl = member.decl
    plan = plan_call(decl, "function", module.backing_type, options.strict_arity)
    regs = Registrations(global_functions=(FunctionEntry(decl.name, decl.name, len(decl.args)),))
    return plan, regs


def plan_class(
    cls: ClassDecl, module: Module, options: Options
) -> tuple[ClassPlan, Registrations]:
    constructor = plan_call(
        cls.constructor, "constructor", module.backing_type, options.strict_arity
    )
    accessors: list[AccessorPlan] = []
    properties: list[PropertyEntry] = []
    for prop in cls.properties:
        accessor = plan_accessor(prop)
        accessors.append(accessor)
        properties.append(PropertyEntry(prop.name, accessor.getter, accessor.setter))
    methods: list[CallPlan] = []
    method_entries: list[FunctionEntry] = []
    for method in cls.methods:
        methods.append(plan_call(method, "method", module.backing_type, options.strict_arity))
        method_entries.append(FunctionEntry(method.name, method.name, len(method.args)))
    regs = Registrations(
        constructor=ConstructorEntry(module.backing_type),
        prototype_methods=tuple(method_entries),
        prototype_properties=tuple(properties),
    )
    return ClassPlan(constructor, tuple(accessors), tuple(methods)), regs


def plan_module(module: Module, options: Options | None = None) -> ModulePlan:
    """Validate a module and plan every member. Raises InvalidDeclaration."""
    if options is None:
        options = Options()
    result = check_module(module)
    if not result.ok():
        raise InvalidDeclaration(module.id, result.errors())
    members: list[MemberPlan] = []
    regs = Registrations()
    for member in module.members:
        if isinstance(member, ClassMember):
            class_plan, member_regs = plan_class(member.cls, module, options)
            members.append(class_plan)
        else:
            call_plan, member_regs = plan_function(member, module, options)
            members.append(call_plan)
        regs = regs.merge(member_regs)
    return ModulePlan(module, options, tuple(members), regs)
