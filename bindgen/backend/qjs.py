"""QJSBackend: ModulePlan -> QuickJS binding source (.cc) and header (.h).

Everything here is rendering. Dispatch order, conversions and table
contents are decided by the middleend plans; this module only spells them
out against the fixed native runtime API (Converter<T>, ExceptionState,
MemberInstaller, toScriptWrappable).
"""

from __future__ import annotations

from ..middleend.accessors import AccessorPlan
from ..middleend.assemble import (
    ClassPlan,
    FunctionEntry,
    ModulePlan,
    PropertyEntry,
)
from ..middleend.dispatch import (
    CallPlan,
    Conversion,
    ConvertedResult,
    DispatchPoint,
    PromiseResult,
    Result,
    VoidResult,
    WrappableResult,
    arity_message,
    excess_arity_message,
)
from .util import Emitter, escape_string, to_screaming_snake

CALLBACK_PARAMS = "JSContext* ctx, JSValueConst this_val, int argc, JSValueConst* argv"
CONSTRUCTOR_PARAMS = (
    "JSContext* ctx, JSValue func_obj, JSValue this_val, int argc, JSValue* argv, int flags"
)
NULL_TOKEN = "JS_NULL"

RUNTIME_INCLUDES: tuple[str, ...] = (
    "bindings/qjs/member_installer.h",
    "bindings/qjs/qjs_function.h",
    "bindings/qjs/converter_impl.h",
    "bindings/qjs/script_wrappable.h",
    "bindings/qjs/script_promise.h",
    "core/executing_context.h",
)


def source_filename(module_id: str) -> str:
    return "qjs_" + module_id + ".cc"


def header_filename(module_id: str) -> str:
    return "qjs_" + module_id + ".h"


class QJSBackend(Emitter):
    """Emit QuickJS glue for one module plan."""

    def __init__(self) -> None:
        super().__init__("  ")
        self._plan: ModulePlan | None = None

    # ── entry points ─────────────────────────────────────────

    def emit_source(self, plan: ModulePlan) -> str:
        self.reset()
        self._plan = plan
        module = plan.module
        options = plan.options
        self._emit_banner()
        self.line('#include "' + header_filename(module.id) + '"')
        for include in RUNTIME_INCLUDES:
            self.line('#include "' + include + '"')
        impl = module.impl_path or (options.include_prefix + "/" + module.id)
        self.line('#include "' + impl + '.h"')
        for include in options.extra_includes:
            self.line('#include "' + include + '"')
        self.line()
        self.line("namespace " + options.namespace + " {")
        self.line()
        cls = plan.class_plan()
        if cls is not None:
            self._emit_wrapper_type_info()
            self.line()
        for member in plan.members:
            if isinstance(member, ClassPlan):
                self._emit_class(member)
            else:
                self._emit_global_function(member)
        self._emit_install()
        self.line()
        self._emit_install_global_functions(plan.registrations.global_functions)
        if plan.registrations.has_class():
            self.line()
            self._emit_install_constructor()
            self.line()
            self._emit_install_prototype_methods(plan.registrations.prototype_methods)
            self.line()
            self._emit_install_prototype_properties(plan.registrations.prototype_properties)
        self.line()
        self.line("}  // namespace " + options.namespace)
        return self.output() + "\n"

    def emit_header(self, plan: ModulePlan) -> str:
        self.reset()
        self._plan = plan
        options = plan.options
        guard = "BRIDGE_QJS_" + to_screaming_snake(plan.module.id) + "_H_"
        has_class = plan.registrations.has_class()
        self._emit_banner()
        self.line("#ifndef " + guard)
        self.line("#define " + guard)
        self.line()
        self.line("#include <quickjs/quickjs.h>")
        if has_class:
            self.line('#include "bindings/qjs/wrapper_type_info.h"')
        self.line()
        self.line("namespace " + options.namespace + " {")
        self.line()
        self.line("class ExecutingContext;")
        self.line()
        self.line("class " + plan.wrapper_name + " final {")
        self.line(" public:")
        self.indent += 1
        self.line("static void Install(ExecutingContext* context);")
        if has_class:
            self.line()
            self.line("static WrapperTypeInfo* GetWrapperTypeInfo() {")
            self.line("  return const_cast<WrapperTypeInfo*>(&wrapper_type_info_);")
            self.line("}")
            self.line()
            self.line("static JSValue ConstructorCallback(" + CONSTRUCTOR_PARAMS + ");")
            self.line()
            self.line("static const WrapperTypeInfo wrapper_type_info_;")
        self.indent -= 1
        self.line()
        self.line(" private:")
        self.indent += 1
        self.line("static void InstallGlobalFunctions(ExecutingContext* context);")
        if has_class:
            self.line("static void InstallConstructor(ExecutingContext* context);")
            self.line("static void InstallPrototypeMethods(ExecutingContext* context);")
            self.line("static void InstallPrototypeProperties(ExecutingContext* context);")
        self.indent -= 1
        self.line("};")
        self.line()
        self.line("}  // namespace " + options.namespace)
        self.line()
        self.line("#endif  // " + guard)
        return self.output() + "\n"

    # ── helpers ──────────────────────────────────────────────

    def _module_plan(self) -> ModulePlan:
        assert self._plan is not None
        return self._plan

    def _emit_banner(self) -> None:
        banner = self._module_plan().options.banner
        if banner:
            for text in banner.split("\n"):
                self.lines.append(text)
            self.line()

    def _emit_wrapper_type_info(self) -> None:
        plan = self._module_plan()
        wrapper = plan.wrapper_name
        name = plan.class_name
        self.line(
            "const WrapperTypeInfo "
            + wrapper
            + "::wrapper_type_info_ {JS_CLASS_"
            + to_screaming_snake(name)
            + ', "'
            + escape_string(name)
            + '", nullptr, '
            + wrapper
            + "::ConstructorCallback};"
        )
        self.line(
            "const WrapperTypeInfo& "
            + name
            + "::wrapper_type_info_ = "
            + wrapper
            + "::wrapper_type_info_;"
        )

    # ── callbacks ────────────────────────────────────────────

    def _emit_global_function(self, plan: CallPlan) -> None:
        self.open("static JSValue " + plan.name + "(" + CALLBACK_PARAMS + ") {")
        self._emit_call_body(plan)
        self.close()
        self.line()

    def _emit_class(self, cls: ClassPlan) -> None:
        wrapper = self._module_plan().wrapper_name
        self.open("JSValue " + wrapper + "::ConstructorCallback(" + CONSTRUCTOR_PARAMS + ") {")
        self._emit_call_body(cls.constructor)
        self.close()
        self.line()
        for accessor in cls.accessors:
            self._emit_getter(accessor)
            self.line()
        for accessor in cls.accessors:
            if accessor.has_setter():
                self._emit_setter(accessor)
                self.line()
        for method in cls.methods:
            self.open("static JSValue " + method.name + "(" + CALLBACK_PARAMS + ") {")
            self._emit_call_body(method)
            self.close()
            self.line()

    def _emit_receiver(self) -> None:
        class_name = self._module_plan().class_name
        self.line("auto* self = toScriptWrappable<" + class_name + ">(this_val);")
        self.line("assert(self != nullptr);")

    def _emit_getter(self, accessor: AccessorPlan) -> None:
        self.open("static JSValue " + accessor.getter + "(" + CALLBACK_PARAMS + ") {")
        self._emit_receiver()
        self.line(
            "return Converter<"
            + str(accessor.op)
            + ">::ToValue(ctx, self->"
            + accessor.native_getter
            + "());"
        )
        self.close()

    def _emit_setter(self, accessor: AccessorPlan) -> None:
        assert accessor.setter is not None and accessor.native_setter is not None
        self.open("static JSValue " + accessor.setter + "(" + CALLBACK_PARAMS + ") {")
        self._emit_receiver()
        self.line("ExceptionState exception_state;")
        self.line("JSValue value = argc > 0 ? argv[0] : JS_UNDEFINED;")
        self.line(
            "auto&& v = Converter<" + str(accessor.op) + ">::FromValue(ctx, value, exception_state);"
        )
        self._emit_exception_check()
        self.line("self->" + accessor.native_setter + "(v);")
        self.line("return " + NULL_TOKEN + ";")
        self.close()

    # ── call bodies ──────────────────────────────────────────

    def _emit_call_body(self, plan: CallPlan) -> None:
        if plan.required > 0:
            self.open("if (argc < " + str(plan.required) + ") {")
            message = arity_message(escape_string(plan.name), plan.required)
            self.line('return JS_ThrowTypeError(ctx, "' + message + '", argc);')
            self.close()
            self.line()
        if plan.strict_arity:
            self.open("if (argc > " + str(plan.accepted) + ") {")
            message = excess_arity_message(escape_string(plan.name), plan.accepted)
            self.line('return JS_ThrowTypeError(ctx, "' + message + '", argc);')
            self.close()
            self.line()
        self.line("ExceptionState exception_state;")
        decl = self._result_decl(plan.result)
        if decl:
            self.line(decl)
        if plan.is_static():
            self.line("ExecutingContext* context = ExecutingContext::From(ctx);")
        else:
            self._emit_receiver()
        self.line()
        self.open("do {  // Dummy loop for use of 'break'.")
        for i, point in enumerate(plan.points):
            if i > 0:
                self.line()
            self._emit_point(plan, point)
        self.close("} while (false);")
        self.line()
        self._emit_exception_check()
        self.line("return " + self._result_value(plan.result) + ";")

    def _emit_point(self, plan: CallPlan, point: DispatchPoint) -> None:
        for conversion in point.conversions:
            self._emit_conversion(conversion)
        if point.catch_all:
            if point.conversions:
                self.line()
            self.line(self._invocation(plan, point))
            return
        if point.conversions:
            self.line()
        self.open("if (argc <= " + str(point.arity) + ") {")
        self.line(self._invocation(plan, point))
        self.line("break;")
        self.close()

    def _emit_conversion(self, conversion: Conversion) -> None:
        self.line(
            "auto&& "
            + conversion.var
            + " = Converter<"
            + str(conversion.op)
            + ">::FromValue(ctx, argv["
            + str(conversion.slot)
            + "], exception_state);"
        )
        self._emit_exception_check()

    def _emit_exception_check(self) -> None:
        self.open("if (exception_state.HasException()) {")
        self.line("return exception_state.ToQuickJS();")
        self.close()

    def _invocation(self, plan: CallPlan, point: DispatchPoint) -> str:
        args = ["args_" + name for name in point.call_args]
        args.append("exception_state")
        if plan.is_static():
            target = self._module_plan().class_name + "::" + plan.callee
            args.insert(0, "context")
        else:
            target = "self->" + plan.callee
        call = target + "(" + ", ".join(args) + ");"
        if isinstance(plan.result, VoidResult):
            return call
        return "return_value = " + call

    def _result_decl(self, result: Result) -> str:
        if isinstance(result, VoidResult):
            return ""
        if isinstance(result, PromiseResult):
            return "ScriptPromise return_value;"
        if isinstance(result, WrappableResult):
            return result.type_name + "* return_value = nullptr;"
        if isinstance(result, ConvertedResult):
            return "Converter<" + str(result.op) + ">::ImplType return_value;"
        raise NotImplementedError(f"result kind: {type(result).__name__}")

    def _result_value(self, result: Result) -> str:
        if isinstance(result, VoidResult):
            return NULL_TOKEN
        if isinstance(result, PromiseResult):
            return "return_value.ToQuickJS()"
        if isinstance(result, WrappableResult):
            return "return_value->ToQuickJS()"
        if isinstance(result, ConvertedResult):
            return "Converter<" + str(result.op) + ">::ToValue(ctx, return_value)"
        raise NotImplementedError(f"result kind: {type(result).__name__}")

    # ── installers ───────────────────────────────────────────

    def _emit_install(self) -> None:
        plan = self._module_plan()
        self.open("void " + plan.wrapper_name + "::Install(ExecutingContext* context) {")
        self.line("InstallGlobalFunctions(context);")
        if plan.registrations.has_class():
            self.line("InstallConstructor(context);")
            self.line("InstallPrototypeMethods(context);")
            self.line("InstallPrototypeProperties(context);")
        self.close()

    def _function_rows(self, entries: tuple[FunctionEntry, ...]) -> None:
        for entry in entries:
            self.line(
                '{"'
                + escape_string(entry.name)
                + '", '
                + entry.callback
                + ", "
                + str(entry.length)
                + "},"
            )

    def _property_rows(self, entries: tuple[PropertyEntry, ...]) -> None:
        for entry in entries:
            setter = entry.setter if entry.setter is not None else "nullptr"
            self.line(
                '{"' + escape_string(entry.name) + '", ' + entry.getter + ", " + setter + "},"
            )

    def _emit_install_global_functions(self, entries: tuple[FunctionEntry, ...]) -> None:
        wrapper = self._module_plan().wrapper_name
        self.open("void " + wrapper + "::InstallGlobalFunctions(ExecutingContext* context) {")
        self.open("std::initializer_list<MemberInstaller::FunctionConfig> functionConfig {")
        self._function_rows(entries)
        self.close("};")
        self.line()
        self.line("MemberInstaller::InstallFunctions(context, context->Global(), functionConfig);")
        self.close()

    def _emit_prototype_lookup(self) -> None:
        self.line("const WrapperTypeInfo* wrapper_type_info = GetWrapperTypeInfo();")
        self.line(
            "JSValue prototype = context->contextData()->prototypeForType(wrapper_type_info);"
        )
        self.line()

    def _emit_install_constructor(self) -> None:
        plan = self._module_plan()
        constructor = plan.registrations.constructor
        assert constructor is not None
        self.open("void " + plan.wrapper_name + "::InstallConstructor(ExecutingContext* context) {")
        self.line("const WrapperTypeInfo* wrapper_type_info = GetWrapperTypeInfo();")
        self.line(
            "JSValue constructor = context->contextData()->constructorForType(wrapper_type_info);"
        )
        self.line()
        self.open("std::initializer_list<MemberInstaller::AttributeConfig> attributeConfig {")
        self.line('{"' + escape_string(constructor.name) + '", nullptr, nullptr, constructor},')
        self.close("};")
        self.line()
        self.line("MemberInstaller::InstallAttributes(context, context->Global(), attributeConfig);")
        self.close()

    def _emit_install_prototype_methods(self, entries: tuple[FunctionEntry, ...]) -> None:
        wrapper = self._module_plan().wrapper_name
        self.open("void " + wrapper + "::InstallPrototypeMethods(ExecutingContext* context) {")
        self._emit_prototype_lookup()
        self.open("std::initializer_list<MemberInstaller::FunctionConfig> functionConfig {")
        self._function_rows(entries)
        self.close("};")
        self.line()
        self.line("MemberInstaller::InstallFunctions(context, prototype, functionConfig);")
        self.close()

    def _emit_install_prototype_properties(self, entries: tuple[PropertyEntry, ...]) -> None:
        wrapper = self._module_plan().wrapper_name
        self.open("void " + wrapper + "::InstallPrototypeProperties(ExecutingContext* context) {")
        self._emit_prototype_lookup()
        self.open("std::initializer_list<MemberInstaller::AttributeConfig> attributesConfig {")
        self._property_rows(entries)
        self.close("};")
        self.line()
        self.line("MemberInstaller::InstallAttributes(context, prototype, attributesConfig);")
        self.close()


def emit_source(plan: ModulePlan) -> str:
    """Render the .cc file of a planned module."""
    return QJSBackend().emit_source(plan)


def emit_header(plan: ModulePlan) -> str:
    """Render the .h file of a planned module."""
    return QJSBackend().emit_header(plan)
