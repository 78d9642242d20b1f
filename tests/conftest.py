"""Pytest configuration for bindgen test suite."""

import sys
from pathlib import Path

import pytest

# Add repository root to path for bindgen imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from bindgen.ir import (  # noqa: E402
    DOUBLE,
    INT32,
    STRING,
    Argument,
    ClassDecl,
    ClassMember,
    FunctionDecl,
    FunctionMember,
    Module,
    PropertyDecl,
)


@pytest.fixture
def draw_decl() -> FunctionDecl:
    """draw(x: int32, label?: string)."""
    return FunctionDecl(
        "draw",
        (Argument("x", INT32, True), Argument("label", STRING, False)),
    )


@pytest.fixture
def canvas_module(draw_decl: FunctionDecl) -> Module:
    """One free function plus one class with a 1+1 argument constructor."""
    cls = ClassDecl(
        constructor=FunctionDecl(
            "constructor",
            (Argument("width", DOUBLE, True), Argument("height", DOUBLE, False)),
        ),
        properties=(PropertyDecl("value", INT32, readonly=True),),
        methods=(
            FunctionDecl("resize", (Argument("factor", DOUBLE, True),)),
            FunctionDecl("toDataURL", (), STRING),
        ),
    )
    return Module(
        id="canvas",
        backing_type="Canvas",
        members=(FunctionMember(draw_decl), ClassMember(cls)),
    )
