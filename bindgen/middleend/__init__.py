"""Synthesis passes (read-only over the IR, producing plans)."""

from .accessors import AccessorPlan, plan_accessor
from .assemble import ModulePlan, Registrations, plan_module
from .dispatch import (
    ArityError,
    BindingError,
    CallPlan,
    ConversionError,
    DispatchPoint,
    plan_call,
    trace_call,
)
from .typemap import IDLType, map_optional, map_type

__all__ = [
    "AccessorPlan",
    "ArityError",
    "BindingError",
    "CallPlan",
    "ConversionError",
    "DispatchPoint",
    "IDLType",
    "ModulePlan",
    "Registrations",
    "map_optional",
    "map_type",
    "plan_accessor",
    "plan_call",
    "plan_module",
    "trace_call",
]
