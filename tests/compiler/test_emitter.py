# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for declaration emission."""

from typing import Any

import pytest

from defspec import runtime
from defspec.compiler.descriptor import function_spec
from defspec.compiler.emitter import DEFAULT_RUNTIME_ALIAS, DeclarationScope, GeneratedDecl, emit
from defspec.compiler.errors import DuplicateSignature

# ###############
# Helpers
# ###############


def _describe() -> GeneratedDecl:
    return emit(
        function_spec(
            "describe",
            [("n", "int")],
            "str",
            ["(0) -> 'zero'", "(n) when n < 0 -> 'negative'", "(_) -> 'positive'"],
        )
    )


def _load(decl: GeneratedDecl) -> Any:
    """Execute the rendered function and return it."""
    namespace: dict[str, Any] = {DEFAULT_RUNTIME_ALIAS: runtime}
    exec(compile("from __future__ import annotations\n" + decl.render(), "<test>", "exec"), namespace)
    return namespace[decl.name]


# ###############
# The three declarations
# ###############


class TestDeclarations:
    def test_signature_render(self) -> None:
        decl = emit(function_spec("add", [("a", "int"), ("b", "int \\\\ 1")], "int", "a + b"))
        assert decl.signature.render() == "def add(a: int, b: int) -> int: ..."

    def test_forward_render_carries_defaults(self) -> None:
        decl = emit(function_spec("add", [("a", "int"), ("b", "int \\\\ 1")], "int", "a + b"))
        assert decl.forward.render() == "def add(a, b=1): ..."
        assert decl.forward.arity == 2

    def test_default_expression_is_normalized(self) -> None:
        decl = emit(function_spec("f", [("xs", "list \\\\ [ 1,2 ]")], "list", "xs"))
        assert decl.forward.defaults == ("[1, 2]",)

    def test_generic_constraints_become_type_parameters(self) -> None:
        decl = emit(
            function_spec(
                "pick",
                [("xs", "list[a]"), ("n", "b")],
                "a",
                "xs[n]",
                constraints=[("a", "Any"), ("b", "int")],
            )
        )
        assert decl.signature.render() == "def pick[a, b: int](xs: list[a], n: b) -> a: ..."

    def test_forward_arity_matches_every_implementation(self) -> None:
        decl = _describe()
        assert len(decl.implementations) == 3
        assert all(impl.arity == decl.forward.arity for impl in decl.implementations)

    def test_fresh_declarations_per_spec(self) -> None:
        spec = function_spec("f", [("x", "int")], "int", "x")
        assert emit(spec) is not emit(spec)
        assert emit(spec).signature == emit(spec).signature


# ###############
# Executable rendering
# ###############


class TestRender:
    def test_total_body_is_emitted_directly(self) -> None:
        decl = emit(function_spec("add", [("a", "int"), ("b", "int \\\\ 1")], "int", "a + b"))
        assert decl.render() == "def add(a: int, b: int = 1) -> int:\n    return a + b"

    def test_clauses_dispatch_with_match(self) -> None:
        source = _describe().render()
        assert "_arguments = (n,)" in source
        assert "match _arguments:" in source
        assert "case [0]:" in source
        assert "case [n] if n < 0:" in source
        assert "raise _defspec_rt.NoClauseMatch('describe', _arguments)" in source

    def test_guarded_body_dispatches(self) -> None:
        source = emit(function_spec("inc", [("x", "guard[int]")], "int", "x + 1")).render()
        assert "case [x] if _defspec_rt.is_integer(x):" in source

    def test_stub_elides_defaults_and_keeps_type_parameters(self) -> None:
        decl = emit(
            function_spec("first", [("xs", "list[a]"), ("d", "a \\\\ None")], "a", "xs[0]", constraints=[("a", "Any")])
        )
        assert decl.render_stub() == "def first[a](xs: list[a], d: a = ...) -> a: ..."

    def test_self_name_substituted(self) -> None:
        decl = emit(function_spec("same", [("other", "Self")], "Self", "other"))
        assert decl.render_stub(self_name="Point", decorators=("staticmethod",)) == (
            "@staticmethod\ndef same(other: Point) -> Point: ..."
        )

    def test_custom_runtime_alias(self) -> None:
        decl = emit(function_spec("inc", [("x", "guard[int]")], "int", "x + 1"), runtime="rt")
        assert "rt.is_integer(x)" in decl.render()
        assert "raise rt.NoClauseMatch('inc', _arguments)" in decl.render()

    def test_subject_avoids_parameter_names(self) -> None:
        decl = emit(function_spec("f", [("_arguments", "guard[int]")], "int", "_arguments"))
        assert decl.subject == "_arguments_1"
        assert "_arguments_1 = (_arguments,)" in decl.render()


class TestRenderedBehaviour:
    def test_clauses_tried_in_order(self) -> None:
        describe = _load(_describe())
        assert describe(0) == "zero"
        assert describe(-4) == "negative"
        assert describe(9) == "positive"

    def test_guard_mismatch_raises_no_clause_match(self) -> None:
        inc = _load(emit(function_spec("inc", [("x", "guard[int]")], "int", "x + 1")))
        assert inc(1) == 2
        with pytest.raises(runtime.NoClauseMatch) as exc_info:
            inc("1")
        assert exc_info.value.arguments == ("1",)
        with pytest.raises(runtime.NoClauseMatch):
            inc(True)

    def test_defaults_apply(self) -> None:
        add = _load(emit(function_spec("add", [("a", "int"), ("b", "int \\\\ 1")], "int", "a + b")))
        assert add(1) == 2
        assert add(1, 5) == 6

    def test_recursive_clauses(self) -> None:
        namespace: dict[str, Any] = {DEFAULT_RUNTIME_ALIAS: runtime}
        decl = emit(
            function_spec(
                "count",
                [("xs", "list")],
                "int",
                ["([]) -> 0", "([_, *rest]) -> 1 + count(rest)"],
            )
        )
        exec(compile("from __future__ import annotations\n" + decl.render(), "<test>", "exec"), namespace)
        assert namespace["count"]([1, 2, 3]) == 3


# ###############
# Declaration scopes
# ###############


class TestDeclarationScope:
    def test_declare_records_name(self) -> None:
        scope = DeclarationScope()
        scope.declare(function_spec("f", [("x", "int")], "int", "x"))
        assert "f" in scope
        assert "g" not in scope

    def test_repeated_declaration_raises(self) -> None:
        scope = DeclarationScope()
        spec = function_spec("f", [("x", "int")], "int", "x")
        scope.declare(spec)
        with pytest.raises(DuplicateSignature, match="declared more than once"):
            scope.declare(spec)

    def test_conflicting_signature_raises(self) -> None:
        scope = DeclarationScope()
        scope.declare(function_spec("f", [("x", "int")], "int", "x"))
        with pytest.raises(DuplicateSignature, match="conflicting signatures") as exc_info:
            scope.declare(function_spec("f", [("x", "str")], "str", "x"))
        assert exc_info.value.function == "f"

    def test_separate_scopes_are_independent(self) -> None:
        spec = function_spec("f", [("x", "int")], "int", "x")
        DeclarationScope().declare(spec)
        DeclarationScope().declare(spec)
