# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for guard synthesis."""

import ast

import pytest

from defspec.compiler.binding import BindingContext
from defspec.compiler.descriptor import parse_param
from defspec.compiler.errors import UnsupportedGuardType
from defspec.compiler.guards import PREDICATES, combined_guard, guard_expr
from defspec.model.specs import ParamSpec
from defspec.model.types import BaseSymbol

# ###############
# Helpers
# ###############


def _guard(*params: ParamSpec) -> str | None:
    context = BindingContext(params)
    expr = combined_guard(params, context, function="f", runtime="rt")
    return None if expr is None else ast.unparse(expr)


# ###############
# Single parameters
# ###############


class TestGuardExpr:
    def test_unguarded_parameter_has_no_guard(self) -> None:
        param = parse_param("x", "int")
        assert guard_expr(param, BindingContext([param]), function="f", runtime="rt") is None

    @pytest.mark.parametrize(
        ("descriptor", "predicate"),
        [
            ("int", "is_integer"),
            ("float", "is_float"),
            ("number", "is_number"),
            ("bool", "is_boolean"),
            ("str", "is_text"),
            ("bytes", "is_binary"),
            ("list[int]", "is_list"),
            ("tuple", "is_tuple"),
            ("dict[str, int]", "is_map"),
            ("Callable", "is_callable"),
            ("Process", "is_process_reference"),
            ("Reference", "is_reference"),
        ],
    )
    def test_base_types_map_to_runtime_predicates(self, descriptor: str, predicate: str) -> None:
        assert _guard(parse_param("x", f"guard[{descriptor}]")) == f"rt.{predicate}(x)"

    def test_every_guardable_symbol_has_a_predicate(self) -> None:
        assert set(PREDICATES) == set(BaseSymbol) - {BaseSymbol.ANY}

    def test_union_combines_with_or(self) -> None:
        assert _guard(parse_param("x", "guard[int | str]")) == "rt.is_integer(x) or rt.is_text(x)"

    @pytest.mark.parametrize("descriptor", ["Any", "Positive.t", "Self", "Decimal", "int | Decimal"])
    def test_unguardable_types_raise(self, descriptor: str) -> None:
        param = parse_param("x", f"guard[{descriptor}]")
        with pytest.raises(UnsupportedGuardType) as exc_info:
            guard_expr(param, BindingContext([param]), function="scale", runtime="rt")
        assert exc_info.value.function == "scale"
        assert "cannot guard parameter 'x'" in str(exc_info.value)


# ###############
# Combined guards
# ###############


class TestCombinedGuard:
    def test_no_guarded_parameters(self) -> None:
        assert _guard(parse_param("a", "int"), parse_param("b", "str")) is None

    def test_guards_are_anded_in_parameter_order(self) -> None:
        params = (
            parse_param("a", "guard[int]"),
            parse_param("b", "str"),
            parse_param("c", "guard[str]"),
            parse_param("d", "guard[list]"),
        )
        assert _guard(*params) == "rt.is_integer(a) and rt.is_text(c) and rt.is_list(d)"

    def test_single_guard_is_not_wrapped(self) -> None:
        assert _guard(parse_param("a", "int"), parse_param("b", "guard[float]")) == "rt.is_float(b)"

    def test_guard_uses_runtime_alias(self) -> None:
        param = parse_param("n", "guard[int]")
        expr = guard_expr(param, BindingContext([param]), function="f", runtime="_defspec_rt_1")
        assert expr is not None
        assert ast.unparse(expr) == "_defspec_rt_1.is_integer(n)"
