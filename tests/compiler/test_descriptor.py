# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for parameter descriptor parsing."""

import pytest

from defspec.compiler.descriptor import DescriptorError, function_spec, parse_param, parse_type
from defspec.compiler.errors import ParseError
from defspec.model.specs import ClauseSpec, Expr, ParamMode, Visibility
from defspec.model.types import (
    BaseSymbol,
    BaseType,
    ExternalType,
    NamedType,
    SelfType,
    UnionType,
)

# ###############
# Helpers
# ###############


def _base(symbol: BaseSymbol, *args: object) -> BaseType:
    return BaseType(symbol=symbol, args=tuple(args))


# ###############
# Modes and defaults
# ###############


class TestParseParam:
    def test_plain_type(self) -> None:
        param = parse_param("x", "int")
        assert param.name == "x"
        assert param.type == _base(BaseSymbol.INTEGER)
        assert param.default is None
        assert param.mode == ParamMode.NONE

    def test_default_value(self) -> None:
        param = parse_param("x", "int \\\\ 0")
        assert param.type == _base(BaseSymbol.INTEGER)
        assert param.default == Expr(source="0")
        assert param.mode == ParamMode.NONE

    def test_default_may_be_any_expression(self) -> None:
        param = parse_param("items", "list \\\\ [1, 2] + [3]")
        assert param.default is not None
        assert param.default.source == "[1, 2] + [3]"

    def test_guard_wrapper(self) -> None:
        param = parse_param("n", "guard[int]")
        assert param.mode == ParamMode.GUARD
        assert param.type == _base(BaseSymbol.INTEGER)

    def test_guard_with_default(self) -> None:
        param = parse_param("n", "guard[int] \\\\ 10")
        assert param.mode == ParamMode.GUARD
        assert param.default == Expr(source="10")

    def test_validate_wrapper(self) -> None:
        param = parse_param("amount", "validate[Positive.t] \\\\ 1")
        assert param.mode == ParamMode.VALIDATE
        assert param.type == ExternalType(module="Positive")
        assert param.default == Expr(source="1")

    def test_validate_dotted_module(self) -> None:
        param = parse_param("amount", "validate[myapp.values.Positive.t]")
        assert param.type == ExternalType(module="myapp.values.Positive")

    def test_validate_self(self) -> None:
        param = parse_param("other", "validate[Self]")
        assert param.mode == ParamMode.VALIDATE
        assert param.type == SelfType()

    def test_unknown_wrapper_falls_back_to_plain_type(self) -> None:
        param = parse_param("x", "foo[int]")
        assert param.mode == ParamMode.NONE
        assert param.type == NamedType(name="foo", args=(_base(BaseSymbol.INTEGER),))

    def test_wrapper_must_be_outermost(self) -> None:
        param = parse_param("x", "list[guard[int]]")
        assert param.mode == ParamMode.NONE
        assert param.type == _base(BaseSymbol.LIST, NamedType(name="guard", args=(_base(BaseSymbol.INTEGER),)))

    def test_wrapper_followed_by_more_type_is_not_a_wrapper(self) -> None:
        param = parse_param("x", "guard[int] | None")
        assert param.mode == ParamMode.NONE
        assert isinstance(param.type, UnionType)

    def test_default_marker_inside_string_is_ignored(self) -> None:
        param = parse_param("sep", "str \\\\ '\\\\\\\\'")
        assert param.type == _base(BaseSymbol.TEXT)
        assert param.default is not None
        assert param.default.source == "'\\\\\\\\'"


# ###############
# Type expressions
# ###############


class TestParseType:
    @pytest.mark.parametrize(
        ("text", "symbol"),
        [
            ("int", BaseSymbol.INTEGER),
            ("float", BaseSymbol.FLOAT),
            ("number", BaseSymbol.NUMBER),
            ("bool", BaseSymbol.BOOLEAN),
            ("str", BaseSymbol.TEXT),
            ("bytes", BaseSymbol.BINARY),
            ("dict", BaseSymbol.MAP),
            ("Callable", BaseSymbol.FUNCTION),
            ("Process", BaseSymbol.PROCESS),
            ("Reference", BaseSymbol.REFERENCE),
            ("Any", BaseSymbol.ANY),
        ],
    )
    def test_base_symbols(self, text: str, symbol: BaseSymbol) -> None:
        assert parse_type(text) == _base(symbol)

    def test_parameterized_base_type(self) -> None:
        assert parse_type("dict[str, list[int]]") == _base(
            BaseSymbol.MAP,
            _base(BaseSymbol.TEXT),
            _base(BaseSymbol.LIST, _base(BaseSymbol.INTEGER)),
        )

    def test_union(self) -> None:
        assert parse_type("int | str | None") == UnionType(
            members=(_base(BaseSymbol.INTEGER), _base(BaseSymbol.TEXT), NamedType(name="None"))
        )

    def test_callable_with_argument_list(self) -> None:
        assert parse_type("Callable[[int], str]") == _base(
            BaseSymbol.FUNCTION,
            NamedType(name="", args=(_base(BaseSymbol.INTEGER),)),
            _base(BaseSymbol.TEXT),
        )

    def test_ellipsis(self) -> None:
        assert parse_type("tuple[int, ...]") == _base(
            BaseSymbol.TUPLE, _base(BaseSymbol.INTEGER), NamedType(name="...")
        )

    def test_t_with_arguments_is_not_a_value_module(self) -> None:
        assert parse_type("Box.t[int]") == NamedType(name="Box.t", args=(_base(BaseSymbol.INTEGER),))

    def test_bare_t_is_a_named_type(self) -> None:
        assert parse_type("t") == NamedType(name="t")

    @pytest.mark.parametrize("text", ["", "int int", "list[", "int)", "|int", "a.", "a $ b"])
    def test_malformed_types(self, text: str) -> None:
        with pytest.raises(DescriptorError):
            parse_type(text)

    def test_descriptor_errors_are_parse_errors(self) -> None:
        assert issubclass(DescriptorError, ParseError)

    def test_error_position_is_offset(self) -> None:
        with pytest.raises(DescriptorError) as exc_info:
            parse_type("list[int", line=4, column=20)
        assert exc_info.value.line == 4
        assert exc_info.value.column == 24


class TestDescriptorErrors:
    def test_unbalanced_brackets(self) -> None:
        with pytest.raises(DescriptorError):
            parse_param("x", "guard[int")

    def test_invalid_default(self) -> None:
        with pytest.raises(DescriptorError, match="Invalid default value"):
            parse_param("x", "int \\\\ 1 +")

    def test_missing_type_before_default(self) -> None:
        with pytest.raises(DescriptorError, match="Expected a type"):
            parse_param("x", "\\\\ 1")


# ###############
# FunctionSpec construction
# ###############


class TestFunctionSpec:
    def test_single_expression_body(self) -> None:
        spec = function_spec("double", [("x", "int")], "int", "x * 2")
        assert spec.name == "double"
        assert [p.name for p in spec.params] == ["x"]
        assert spec.return_type == _base(BaseSymbol.INTEGER)
        assert spec.body == Expr(source="x * 2")
        assert not spec.has_clauses
        assert spec.visibility == Visibility.PUBLIC

    def test_clause_body(self) -> None:
        spec = function_spec(
            "sign",
            [("n", "int")],
            "int",
            ["(0) -> 0", "(n) when n < 0 -> -1", "(_) -> 1"],
        )
        assert spec.has_clauses
        assert isinstance(spec.body, tuple)
        assert len(spec.body) == 3
        assert all(isinstance(c, ClauseSpec) for c in spec.body)
        assert spec.body[1].guard == Expr(source="n < 0")

    def test_statement_entries_are_joined(self) -> None:
        spec = function_spec("f", [("x", "int")], "int", ["y = x + 1", "y * 2"])
        assert spec.body == Expr(source="y = x + 1\ny * 2")

    def test_constraints(self) -> None:
        spec = function_spec(
            "first",
            [("xs", "list[a]")],
            "a",
            "xs[0]",
            constraints=[("a", "Any")],
            visibility=Visibility.PRIVATE,
        )
        assert spec.constraints[0].name == "a"
        assert spec.constraints[0].type == _base(BaseSymbol.ANY)
        assert spec.params[0].type == _base(BaseSymbol.LIST, NamedType(name="a"))
        assert spec.return_type == NamedType(name="a")
        assert spec.visibility == Visibility.PRIVATE

    def test_invalid_body_raises_parse_error(self) -> None:
        with pytest.raises(ParseError, match="Invalid function body"):
            function_spec("f", [], "int", "x +")

    def test_invalid_descriptor_raises(self) -> None:
        with pytest.raises(DescriptorError):
            function_spec("f", [("x", "list[")], "int", "x")
