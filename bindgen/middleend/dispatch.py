"""Call-body synthesis: one declaration -> a progressive-arity dispatch chain.

A JavaScript call supplies any number of arguments. The native side has one
statically typed entry point per supported arity. The chain below turns the
former into the latter:

    1. argc < R                      -> ArityError, nothing converted
    2. convert required slots 0..R-1 (each failure aborts the call)
    3. argc <= R                     -> call with R arguments
    4. for each optional slot i:
         convert slot i as IDLOptional
         argc <= i + 1               -> call with arguments 0..i
    5. the last point is unconditional, so extra arguments are ignored
       (or rejected up front under Options.strict_arity)

The chain is data (CallPlan); backend.qjs renders it and trace_call executes
it against Python values, so the runtime semantics of emitted code can be
checked without compiling C++.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Sequence, Union

from ..ir import (
    VOID,
    Argument,
    FunctionDecl,
    InterfaceReturn,
    PromiseType,
)
from .typemap import IDLType, map_optional, map_type

CallMode = Literal["function", "method", "constructor"]


# ============================================================
# RUNTIME ERRORS
#
# Conditions raised by emitted code at call time. Here they are raised by
# trace_call, which models that code.
# ============================================================


class BindingError(Exception):
    """Base for call-time failures of a generated binding."""


class ArityError(BindingError):
    """Too few (or, under strict arity, too many) arguments.

    accepted is None for the too-few case and the declared argument count
    when too many arguments were passed under strict arity.
    """

    def __init__(
        self, name: str, required: int, actual: int, accepted: int | None = None
    ) -> None:
        self.name: str = name
        self.required: int = required
        self.actual: int = actual
        self.accepted: int | None = accepted
        if accepted is None:
            msg = arity_message(name, required) % actual
        else:
            msg = excess_arity_message(name, accepted) % actual
        super().__init__(msg)


class ConversionError(BindingError):
    """A supplied value cannot be converted to its declared type."""

    def __init__(self, arg: str, op: IDLType) -> None:
        self.arg: str = arg
        self.op: IDLType = op
        super().__init__("cannot convert argument '" + arg + "' to " + str(op))


def arity_message(name: str, required: int) -> str:
    """printf-style message for too few arguments; %d is the actual count."""
    return (
        "Failed to execute '"
        + name
        + "' : "
        + str(required)
        + " argument required, but %d present."
    )


def excess_arity_message(name: str, accepted: int) -> str:
    """printf-style message for too many arguments; %d is the actual count."""
    return (
        "Failed to execute '"
        + name
        + "' : at most "
        + str(accepted)
        + " arguments accepted, but %d present."
    )


# ============================================================
# RESULT KINDS
# ============================================================


@dataclass(frozen=True)
class VoidResult:
    """No result variable; the callback returns the engine's null token."""


@dataclass(frozen=True)
class PromiseResult:
    """ScriptPromise handle converted through its own ToQuickJS()."""


@dataclass(frozen=True)
class WrappableResult:
    """Owning pointer to a native instance, initialized to nullptr."""

    type_name: str


@dataclass(frozen=True)
class ConvertedResult:
    """Converter<op>::ImplType converted back through Converter<op>::ToValue."""

    op: IDLType


Result = Union[VoidResult, PromiseResult, WrappableResult, ConvertedResult]


# ============================================================
# PLAN
# ============================================================


@dataclass(frozen=True)
class Conversion:
    """Convert argv[slot] into the local args_<name>."""

    arg: Argument
    slot: int
    op: IDLType

    @property
    def var(self) -> str:
        return "args_" + self.arg.name

    @property
    def optional(self) -> bool:
        return self.op.is_optional()


@dataclass(frozen=True)
class DispatchPoint:
    """One candidate native invocation.

    conversions run before the arity check of this point. The point fires
    when argc <= arity, or unconditionally when catch_all is set. call_args
    lists every argument converted so far, in declared order.
    """

    conversions: tuple[Conversion, ...]
    arity: int
    call_args: tuple[str, ...]
    catch_all: bool = False

    def fires(self, argc: int) -> bool:
        return self.catch_all or argc <= self.arity


@dataclass(frozen=True)
class CallPlan:
    """Everything needed to render or execute one callback body."""

    name: str
    callee: str
    mode: CallMode
    required: int
    accepted: int
    strict_arity: bool
    points: tuple[DispatchPoint, ...]
    result: Result

    def conversions(self) -> list[Conversion]:
        """All conversions of the chain in execution order."""
        result: list[Conversion] = []
        for point in self.points:
            result.extend(point.conversions)
        return result

    def is_static(self) -> bool:
        return self.mode != "method"


def callee_name(decl: FunctionDecl) -> str:
    """Native member implementing decl; constructors map to Create."""
    if decl.is_constructor():
        return "Create"
    return decl.name


def plan_result(decl: FunctionDecl, mode: CallMode, backing_type: str) -> Result:
    if mode == "constructor":
        return WrappableResult(backing_type)
    ret = decl.ret
    if isinstance(ret, PromiseType):
        return PromiseResult()
    if isinstance(ret, InterfaceReturn):
        return WrappableResult(ret.name)
    if ret == VOID:
        return VoidResult()
    return ConvertedResult(map_type(ret))


def plan_call(
    decl: FunctionDecl,
    mode: CallMode,
    backing_type: str,
    strict_arity: bool = False,
) -> CallPlan:
    """Build the dispatch chain for one declaration."""
    required = decl.required_count()
    required_args = decl.args[:required]
    optional_args = decl.args[required:]
    call_args: list[str] = []
    conversions: list[Conversion] = []
    for slot, arg in enumerate(required_args):
        conversions.append(Conversion(arg, slot, map_type(arg.typ)))
        call_args.append(arg.name)
    points: list[DispatchPoint] = [
        DispatchPoint(
            tuple(conversions),
            required,
            tuple(call_args),
            catch_all=len(optional_args) == 0,
        )
    ]
    for i, arg in enumerate(optional_args):
        slot = required + i
        call_args.append(arg.name)
        points.append(
            DispatchPoint(
                (Conversion(arg, slot, map_optional(arg.typ)),),
                slot + 1,
                tuple(call_args),
                catch_all=i == len(optional_args) - 1,
            )
        )
    return CallPlan(
        name=decl.name,
        callee=callee_name(decl),
        mode=mode,
        required=required,
        accepted=len(decl.args),
        strict_arity=strict_arity,
        points=tuple(points),
        result=plan_result(decl, mode, backing_type),
    )


# ============================================================
# EXECUTION MODEL
# ============================================================


@dataclass(frozen=True)
class Invocation:
    """The native call a dispatch chain ended in."""

    callee: str
    point: DispatchPoint
    values: tuple[object, ...]

    @property
    def argc(self) -> int:
        """Number of native arguments (excluding the exception state)."""
        return len(self.values)


Converter = Callable[[Conversion, object], object]


def trace_call(plan: CallPlan, argv: Sequence[object], convert: Converter) -> Invocation:
    """Run the dispatch chain the way the emitted callback does.

    convert(conversion, value) returns the native value or raises
    ConversionError; a raise aborts the chain before any later conversion
    or invocation.
    """
    argc = len(argv)
    if argc < plan.required:
        raise ArityError(plan.name, plan.required, argc)
    if plan.strict_arity and argc > plan.accepted:
        raise ArityError(plan.name, plan.required, argc, plan.accepted)
    values: list[object] = []
    for point in plan.points:
        for conversion in point.conversions:
            values.append(convert(conversion, argv[conversion.slot]))
        if point.fires(argc):
            return Invocation(plan.callee, point, tuple(values))
    raise BindingError("dispatch chain for '" + plan.name + "' has no catch-all point")
