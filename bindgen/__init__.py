"""bindgen - QuickJS binding generator. Public API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .backend.qjs import emit_header, emit_source, header_filename, source_filename
from .frontend import InvalidDeclaration, LoadError, loads
from .ir import Module, Options
from .middleend.assemble import plan_module


@dataclass(frozen=True)
class GeneratedUnit:
    """The emitted header and source of one module."""

    module_id: str
    header_name: str
    header: str
    source_name: str
    source: str

    def files(self) -> list[tuple[str, str]]:
        return [(self.header_name, self.header), (self.source_name, self.source)]


def generate(module: Module, options: Options | None = None) -> GeneratedUnit:
    """Plan and render one module. Raises InvalidDeclaration."""
    plan = plan_module(module, options)
    return GeneratedUnit(
        module_id=module.id,
        header_name=header_filename(module.id),
        header=emit_header(plan),
        source_name=source_filename(module.id),
        source=emit_source(plan),
    )


def generate_all(
    modules: Iterable[Module], options: Options | None = None
) -> list[GeneratedUnit]:
    """Generate every module independently, in input order."""
    return [generate(m, options) for m in modules]


def generate_from_json(source: str, options: Options | None = None) -> list[GeneratedUnit]:
    """Load analyzer JSON and generate every module it describes."""
    return generate_all(loads(source), options)


__all__ = [
    "GeneratedUnit",
    "InvalidDeclaration",
    "LoadError",
    "Module",
    "Options",
    "generate",
    "generate_all",
    "generate_from_json",
]
