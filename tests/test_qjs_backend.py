"""Tests for QJSBackend rendering details not covered by codegen/*.tests."""

from bindgen import generate
from bindgen.backend.qjs import header_filename, source_filename
from bindgen.ir import (
    INT32,
    Argument,
    FunctionDecl,
    FunctionMember,
    Module,
    Options,
)


def _free_module(**kwargs) -> Module:
    decl = FunctionDecl("clearTimeout", (Argument("id", INT32),))
    return Module(id="timer", backing_type="Timer", members=(FunctionMember(decl),), **kwargs)


def test_filenames() -> None:
    assert source_filename("html_element") == "qjs_html_element.cc"
    assert header_filename("html_element") == "qjs_html_element.h"


def test_unit_names_follow_module_id(canvas_module: Module) -> None:
    unit = generate(canvas_module)
    assert unit.module_id == "canvas"
    assert [name for name, _ in unit.files()] == ["qjs_canvas.h", "qjs_canvas.cc"]


def test_function_only_module_has_one_table() -> None:
    source = generate(_free_module()).source
    assert "InstallGlobalFunctions" in source
    assert "InstallConstructor" not in source
    assert "InstallPrototypeMethods" not in source
    assert "InstallPrototypeProperties" not in source
    assert "wrapper_type_info_" not in source


def test_class_module_has_four_tables(canvas_module: Module) -> None:
    source = generate(canvas_module).source
    for installer in (
        "InstallGlobalFunctions",
        "InstallConstructor",
        "InstallPrototypeMethods",
        "InstallPrototypeProperties",
    ):
        assert "void QJSCanvas::" + installer + "(ExecutingContext* context) {" in source


def test_class_without_functions_still_installs_empty_global_table(canvas_module: Module) -> None:
    module = Module(
        id=canvas_module.id,
        backing_type=canvas_module.backing_type,
        members=canvas_module.members[1:],
    )
    source = generate(module).source
    start = source.index("InstallGlobalFunctions(ExecutingContext* context) {")
    end = source.index("MemberInstaller::InstallFunctions(context, context->Global()", start)
    assert '{"' not in source[start:end]


def test_readonly_property_has_no_setter(canvas_module: Module) -> None:
    source = generate(canvas_module).source
    assert '{"value", valueAttributeGetCallback, nullptr},' in source
    assert "valueAttributeSetCallback" not in source


def test_callbacks_emitted_in_declared_order(canvas_module: Module) -> None:
    source = generate(canvas_module).source
    draw = source.index("static JSValue draw(")
    ctor = source.index("JSValue QJSCanvas::ConstructorCallback(")
    getter = source.index("static JSValue valueAttributeGetCallback(")
    resize = source.index("static JSValue resize(")
    to_data_url = source.index("static JSValue toDataURL(")
    install = source.index("void QJSCanvas::Install(")
    assert draw < ctor < getter < resize < to_data_url < install


def test_method_result_converted_back(canvas_module: Module) -> None:
    source = generate(canvas_module).source
    assert "Converter<IDLDOMString>::ImplType return_value;" in source
    assert "return_value = self->toDataURL(exception_state);" in source
    assert "return Converter<IDLDOMString>::ToValue(ctx, return_value);" in source


def test_no_arity_guard_without_required_arguments(canvas_module: Module) -> None:
    source = generate(canvas_module).source
    body = source[source.index("static JSValue toDataURL(") :]
    body = body[: body.index("\n}\n")]
    assert "JS_ThrowTypeError" not in body


def test_strict_arity_guard() -> None:
    source = generate(_free_module(), Options(strict_arity=True)).source
    assert "if (argc > 1) {" in source
    assert (
        "Failed to execute 'clearTimeout' : at most 1 arguments accepted, but %d present."
        in source
    )


def test_lenient_arity_by_default() -> None:
    source = generate(_free_module()).source
    assert "if (argc > 1)" not in source


def test_default_implementation_include() -> None:
    source = generate(_free_module()).source
    assert '#include "core/timer.h"' in source
    assert source.index('#include "qjs_timer.h"') < source.index(
        '#include "bindings/qjs/member_installer.h"'
    )


def test_include_options() -> None:
    options = Options(include_prefix="bridge/core", extra_includes=("bindings/qjs/atom_string.h",))
    source = generate(_free_module(), options).source
    assert '#include "bridge/core/timer.h"' in source
    assert '#include "bindings/qjs/atom_string.h"' in source


def test_impl_path_overrides_prefix() -> None:
    source = generate(_free_module(impl_path="core/frame/dom_timer")).source
    assert '#include "core/frame/dom_timer.h"' in source
    assert '#include "core/timer.h"' not in source


def test_banner_on_both_files() -> None:
    unit = generate(_free_module())
    assert unit.source.startswith("/*\n * Copyright (C) 2021 Alibaba Inc.")
    assert unit.header.startswith("/*\n * Copyright (C) 2021 Alibaba Inc.")


def test_empty_banner() -> None:
    unit = generate(_free_module(), Options(banner=""))
    assert unit.source.startswith('#include "qjs_timer.h"')
    assert unit.header.startswith("#ifndef BRIDGE_QJS_TIMER_H_")


def test_namespace_option() -> None:
    unit = generate(_free_module(), Options(namespace="webf"))
    for text in (unit.source, unit.header):
        assert "namespace webf {" in text
        assert "}  // namespace webf" in text
        assert "kraken" not in text.split("*/", 1)[1]


def test_header_without_class_has_no_wrapper_type_info() -> None:
    header = generate(_free_module()).header
    assert "wrapper_type_info" not in header
    assert "class QJSTimer final {" in header


def test_generation_is_deterministic(canvas_module: Module) -> None:
    assert generate(canvas_module) == generate(canvas_module)
