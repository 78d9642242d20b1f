"""Tests for call-body dispatch planning and its execution model."""

import pytest

from bindgen.ir import (
    BOOLEAN,
    DOUBLE,
    INT32,
    PROMISE,
    STRING,
    Argument,
    FunctionDecl,
    InterfaceReturn,
    NamedInterface,
)
from bindgen.middleend.dispatch import (
    ArityError,
    ConversionError,
    ConvertedResult,
    PromiseResult,
    VoidResult,
    WrappableResult,
    plan_call,
    trace_call,
)
from bindgen.middleend.typemap import IDLType


def _recording_converter(log: list, fail_slot: int = -1):
    """Converter that records each conversion and fails at fail_slot."""

    def convert(conversion, value):
        log.append(conversion.slot)
        if conversion.slot == fail_slot:
            raise ConversionError(conversion.arg.name, conversion.op)
        return ("converted", value)

    return convert


def _decl(required: int, optional: int) -> FunctionDecl:
    args = []
    for i in range(required):
        args.append(Argument("r" + str(i), INT32, True))
    for i in range(optional):
        args.append(Argument("o" + str(i), STRING, False))
    return FunctionDecl("f", tuple(args))


# ============================================================
# plan shape
# ============================================================


def test_draw_plan_has_one_point_per_supported_arity(draw_decl):
    plan = plan_call(draw_decl, "function", "Canvas")
    assert plan.required == 1
    assert plan.accepted == 2
    assert [p.arity for p in plan.points] == [1, 2]
    assert [p.call_args for p in plan.points] == [("x",), ("x", "label")]
    assert plan.points[-1].catch_all
    assert not plan.points[0].catch_all


def test_required_conversions_belong_to_first_point(draw_decl):
    plan = plan_call(draw_decl, "function", "Canvas")
    first = plan.points[0]
    assert [(c.var, c.slot, str(c.op)) for c in first.conversions] == [
        ("args_x", 0, "IDLInt32")
    ]
    second = plan.points[1]
    assert [(c.var, c.slot, str(c.op)) for c in second.conversions] == [
        ("args_label", 1, "IDLOptional<IDLDOMString>")
    ]


def test_optional_slots_read_their_declared_position():
    plan = plan_call(_decl(2, 3), "function", "X")
    assert [c.slot for c in plan.conversions()] == [0, 1, 2, 3, 4]


def test_no_arguments_single_catch_all():
    plan = plan_call(FunctionDecl("ping"), "function", "X")
    assert len(plan.points) == 1
    assert plan.points[0].catch_all
    assert plan.points[0].call_args == ()


def test_all_optional_first_point_has_no_conversions():
    plan = plan_call(_decl(0, 2), "function", "X")
    assert plan.points[0].conversions == ()
    assert plan.points[0].arity == 0
    assert not plan.points[0].catch_all


def test_constructor_calls_create_and_returns_instance():
    decl = FunctionDecl("constructor", (Argument("w", DOUBLE, True),), BOOLEAN)
    plan = plan_call(decl, "constructor", "Canvas")
    assert plan.callee == "Create"
    assert plan.result == WrappableResult("Canvas")
    assert plan.is_static()


def test_method_is_not_static(draw_decl):
    assert not plan_call(draw_decl, "method", "Canvas").is_static()


@pytest.mark.parametrize(
    "ret,expected",
    [
        (PROMISE, PromiseResult()),
        (InterfaceReturn("Element"), WrappableResult("Element")),
        (INT32, ConvertedResult(IDLType("IDLInt32"))),
    ],
)
def test_result_kinds(ret, expected):
    plan = plan_call(FunctionDecl("g", (), ret), "function", "X")
    assert plan.result == expected


def test_void_result():
    assert plan_call(FunctionDecl("g"), "function", "X").result == VoidResult()


def test_named_interface_return_uses_generic_converter():
    plan = plan_call(FunctionDecl("g", (), NamedInterface("Event")), "function", "X")
    assert isinstance(plan.result, ConvertedResult)
    assert str(plan.result.op) == "Event"


# ============================================================
# execution model
# ============================================================


def test_draw_one_argument_calls_with_required_only(draw_decl):
    plan = plan_call(draw_decl, "function", "Canvas")
    log: list = []
    inv = trace_call(plan, [5], _recording_converter(log))
    assert inv.callee == "draw"
    assert inv.point.call_args == ("x",)
    assert inv.values == (("converted", 5),)
    assert log == [0]


def test_draw_two_arguments_converts_optional(draw_decl):
    plan = plan_call(draw_decl, "function", "Canvas")
    log: list = []
    inv = trace_call(plan, [5, "hi"], _recording_converter(log))
    assert inv.point.call_args == ("x", "label")
    assert inv.argc == 2
    assert log == [0, 1]


def test_draw_zero_arguments_is_arity_error(draw_decl):
    plan = plan_call(draw_decl, "function", "Canvas")
    log: list = []
    with pytest.raises(ArityError) as exc:
        trace_call(plan, [], _recording_converter(log))
    assert exc.value.required == 1
    assert exc.value.actual == 0
    assert exc.value.accepted is None
    assert log == []
    assert str(exc.value) == "Failed to execute 'draw' : 1 argument required, but 0 present."


@pytest.mark.parametrize("required,optional", [(0, 0), (0, 3), (1, 1), (2, 2), (3, 0)])
def test_exactly_the_supplied_optionals_are_converted(required, optional):
    plan = plan_call(_decl(required, optional), "function", "X")
    for argc in range(required, required + optional + 1):
        log: list = []
        inv = trace_call(plan, list(range(argc)), _recording_converter(log))
        assert log == list(range(argc))
        assert inv.argc == argc


@pytest.mark.parametrize("required,optional", [(1, 0), (2, 3)])
def test_too_few_arguments_never_converts(required, optional):
    plan = plan_call(_decl(required, optional), "function", "X")
    for argc in range(required):
        log: list = []
        with pytest.raises(ArityError) as exc:
            trace_call(plan, list(range(argc)), _recording_converter(log))
        assert (exc.value.required, exc.value.actual) == (required, argc)
        assert log == []


@pytest.mark.parametrize("fail_slot", [0, 1, 2, 3])
def test_conversion_failure_stops_the_chain(fail_slot):
    plan = plan_call(_decl(2, 2), "function", "X")
    log: list = []
    with pytest.raises(ConversionError) as exc:
        trace_call(plan, [10, 11, 12, 13], _recording_converter(log, fail_slot))
    assert log == list(range(fail_slot + 1))
    assert exc.value.arg == plan.conversions()[fail_slot].arg.name


def test_excess_arguments_are_ignored_by_default(draw_decl):
    plan = plan_call(draw_decl, "function", "Canvas")
    log: list = []
    inv = trace_call(plan, [1, "a", "extra", "more"], _recording_converter(log))
    assert inv.point.call_args == ("x", "label")
    assert log == [0, 1]


def test_excess_arguments_rejected_under_strict_arity(draw_decl):
    plan = plan_call(draw_decl, "function", "Canvas", strict_arity=True)
    log: list = []
    with pytest.raises(ArityError) as exc:
        trace_call(plan, [1, "a", "extra"], _recording_converter(log))
    assert exc.value.accepted == 2
    assert exc.value.actual == 3
    assert log == []
    assert "at most 2 arguments accepted, but 3 present." in str(exc.value)


def test_strict_arity_still_accepts_full_call(draw_decl):
    plan = plan_call(draw_decl, "function", "Canvas", strict_arity=True)
    inv = trace_call(plan, [1, "a"], _recording_converter([]))
    assert inv.argc == 2
