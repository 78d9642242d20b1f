"""Tests for plan serialization (the --stop-at plan output)."""

import json

from bindgen.ir import Module
from bindgen.middleend.assemble import plan_module
from bindgen.serialize import plan_to_dict, to_json


def test_plan_shape(canvas_module: Module) -> None:
    d = plan_to_dict(plan_module(canvas_module))
    assert d["id"] == "canvas"
    assert d["wrapper"] == "QJSCanvas"
    draw, cls = d["members"]
    assert draw["kind"] == "function"
    assert draw["mode"] == "function"
    assert [p["when"] for p in draw["points"]] == ["argc <= 1", "always"]
    assert draw["points"][1]["call_args"] == ["x", "label"]
    assert draw["result"] == {"kind": "void"}
    assert cls["kind"] == "class"
    assert cls["constructor"]["callee"] == "Create"
    assert cls["constructor"]["result"] == {"kind": "wrappable", "type": "Canvas"}
    assert cls["accessors"] == [
        {
            "name": "value",
            "op": "IDLInt32",
            "getter": "valueAttributeGetCallback",
            "setter": None,
        }
    ]
    assert [m["name"] for m in cls["methods"]] == ["resize", "toDataURL"]
    assert cls["methods"][1]["result"] == {"kind": "converted", "op": "IDLDOMString"}


def test_conversion_ops_render_optional(canvas_module: Module) -> None:
    d = plan_to_dict(plan_module(canvas_module))
    conversions = [c for p in d["members"][0]["points"] for c in p["conversions"]]
    assert conversions == [
        {"arg": "x", "slot": 0, "op": "IDLInt32"},
        {"arg": "label", "slot": 1, "op": "IDLOptional<IDLDOMString>"},
    ]


def test_registrations(canvas_module: Module) -> None:
    regs = plan_to_dict(plan_module(canvas_module))["registrations"]
    assert regs["global_functions"] == [{"name": "draw", "callback": "draw", "length": 2}]
    assert regs["constructor"] == "Canvas"
    assert [e["name"] for e in regs["prototype_methods"]] == ["resize", "toDataURL"]
    assert regs["prototype_properties"] == [
        {"name": "value", "getter": "valueAttributeGetCallback", "setter": None}
    ]


def test_to_json_is_valid_json(canvas_module: Module) -> None:
    text = to_json(plan_to_dict(plan_module(canvas_module)))
    assert json.loads(text)["wrapper"] == "QJSCanvas"
    assert "\n  " in text
