# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""End-to-end tests: definition source compiled, loaded and called."""

from __future__ import annotations

from typing import Any

import pytest

from defspec.compiler.errors import DuplicateSignature, ShadowedModuleReference
from defspec.compiler.module import DefinitionError, compile_source, load_source
from defspec.compiler.parser import ParseError
from defspec.result import Err, Ok
from defspec.runtime import InvalidResult, NoClauseMatch, ValidationAbort

# ###############
# Value modules
# ###############


class Positive:
    @staticmethod
    def default() -> int:
        return 1

    @staticmethod
    def validate(value: Any) -> Ok[int] | Err:
        if isinstance(value, int) and value > 0:
            return Ok(value)
        return Err("must be a positive integer")


class Trimmed:
    @staticmethod
    def default() -> str:
        return ""

    @staticmethod
    def validate(value: Any) -> Ok[str] | Err:
        if isinstance(value, str):
            return Ok(value.strip())
        return Err("must be text")


class Broken:
    @staticmethod
    def validate(value: Any) -> Any:
        return value


# ###############
# Helpers
# ###############


def _load(source: str, **modules: Any) -> dict[str, Any]:
    return load_source(source, dict(modules))


def _recording(name: str, calls: list[tuple[str, Any]]) -> type:
    """Build a value module that records its calls and rejects negative numbers."""

    def validate(value: Any) -> Ok[Any] | Err:
        calls.append((name, value))
        return Err("negative") if value < 0 else Ok(value)

    return type(name, (), {"validate": staticmethod(validate), "default": staticmethod(lambda: 0)})


# ###############
# Guards
# ###############


class TestGuards:
    def test_guard_accepts_matching_arguments(self) -> None:
        ns = _load("defun inc(x: guard[int]) -> int:\n    x + 1\n")
        assert ns["inc"](41) == 42

    def test_guard_mismatch_raises(self) -> None:
        ns = _load("defun inc(x: guard[int]) -> int:\n    x + 1\n")
        with pytest.raises(NoClauseMatch) as exc_info:
            ns["inc"](1.5)
        assert exc_info.value.function == "inc"
        assert exc_info.value.arguments == (1.5,)

    def test_boolean_is_not_an_integer(self) -> None:
        ns = _load("defun inc(x: guard[int]) -> int:\n    x + 1\n")
        with pytest.raises(NoClauseMatch):
            ns["inc"](True)

    def test_union_guard(self) -> None:
        ns = _load("defun show(x: guard[int | str]) -> str:\n    str(x)\n")
        assert ns["show"](1) == "1"
        assert ns["show"]("a") == "a"
        with pytest.raises(NoClauseMatch):
            ns["show"](None)

    def test_all_guards_must_hold(self) -> None:
        ns = _load("defun rep(s: guard[str], n: guard[int]) -> str:\n    s * n\n")
        assert ns["rep"]("ab", 2) == "abab"
        with pytest.raises(NoClauseMatch):
            ns["rep"]("ab", "2")


# ###############
# Validation
# ###############


class TestValidation:
    def test_valid_argument_is_rebound_to_validated_value(self) -> None:
        ns = _load("defun greet(name: validate[Trimmed.t]) -> str:\n    'hi ' + name\n", Trimmed=Trimmed)
        assert ns["greet"]("  bo  ") == "hi bo"

    def test_invalid_argument_aborts(self) -> None:
        ns = _load("defun double(n: validate[Positive.t]) -> int:\n    n * 2\n", Positive=Positive)
        with pytest.raises(ValidationAbort) as exc_info:
            ns["double"](-3)
        assert str(exc_info.value) == "validation error for n: must be a positive integer"
        assert exc_info.value.name == "n"
        assert exc_info.value.value == -3

    def test_validation_is_fail_fast_in_parameter_order(self) -> None:
        calls: list[tuple[str, Any]] = []
        ns = _load(
            "defun pair(a: validate[First.t], b: validate[Second.t]) -> tuple:\n    (a, b)\n",
            First=_recording("First", calls),
            Second=_recording("Second", calls),
        )
        assert ns["pair"](1, 2) == (1, 2)
        assert calls == [("First", 1), ("Second", 2)]
        calls.clear()
        with pytest.raises(ValidationAbort) as exc_info:
            ns["pair"](-1, -2)
        assert exc_info.value.name == "a"
        assert calls == [("First", -1)]

    def test_default_is_validated(self) -> None:
        ns = _load("defun double(n: validate[Positive.t] \\\\ 0) -> int:\n    n * 2\n", Positive=Positive)
        with pytest.raises(ValidationAbort):
            ns["double"]()
        assert ns["double"](4) == 8

    def test_non_result_return_is_reported(self) -> None:
        ns = _load("defun f(x: validate[Broken.t]) -> int:\n    x\n", Broken=Broken)
        with pytest.raises(InvalidResult, match="Broken.validate returned 5"):
            ns["f"](5)

    def test_guard_and_validation_combined(self) -> None:
        ns = _load(
            "defun f(n: guard[int], m: validate[Positive.t]) -> int:\n    n + m\n",
            Positive=Positive,
        )
        assert ns["f"](1, 2) == 3
        with pytest.raises(NoClauseMatch):
            ns["f"]("1", 2)
        with pytest.raises(ValidationAbort):
            ns["f"](1, 0)

    def test_shadowed_module_is_a_compile_error(self) -> None:
        with pytest.raises(ShadowedModuleReference):
            compile_source("defun f(Positive: int, x: validate[Positive.t]) -> int:\n    x\n")

    def test_body_rebinding_module_is_a_compile_error(self) -> None:
        with pytest.raises(ShadowedModuleReference, match="the body rebinds 'Positive'"):
            compile_source("defun f(n: validate[Positive.t]) -> int:\n    Positive = 3\n    n + Positive\n")


# ###############
# Clauses and bodies
# ###############


class TestBodies:
    def test_clauses_are_tried_in_declaration_order(self) -> None:
        ns = _load(
            """
defun classify(n: int) -> str:
    (0) -> "zero"
    (n) when n < 0 -> "negative"
    (n) when n < 10 -> "small"
    (_) -> "large"
"""
        )
        assert [ns["classify"](n) for n in (0, -5, 3, 50)] == ["zero", "negative", "small", "large"]

    def test_unmatched_clauses_raise(self) -> None:
        ns = _load("defun only_zero(n: int) -> int:\n    (0) -> 0\n")
        with pytest.raises(NoClauseMatch, match=r"only_zero matches arguments \(1\)"):
            ns["only_zero"](1)

    def test_recursive_clauses(self) -> None:
        ns = _load(
            """
defun dumbmap(xs: list[a], f: Callable) -> list[b] when a: Any, b: Any:
    ([], _) -> []
    ([h, *t], f) -> [f(h), *dumbmap(t, f)]
"""
        )
        assert ns["dumbmap"]([1, 2, 3], lambda x: x * 10) == [10, 20, 30]

    def test_defaults(self) -> None:
        ns = _load("defun greet(name: str, times: guard[int] \\\\ 1) -> str:\n    name * times\n")
        assert ns["greet"]("a") == "a"
        assert ns["greet"]("a", 3) == "aaa"

    def test_default_evaluated_once_at_definition(self) -> None:
        ns = _load("defun push(x: int, acc: list \\\\ []) -> list:\n    acc.append(x)\n    acc\n")
        assert ns["push"](1) == [1]
        assert ns["push"](2) == [1, 2]

    def test_statement_block(self) -> None:
        ns = _load(
            """
defun total(xs: list) -> int:
    result = 0
    for x in xs:
        result += x
    result
"""
        )
        assert ns["total"]([1, 2, 3]) == 6

    def test_user_imports_are_available(self) -> None:
        ns = _load("import math\n\ndefun root(x: float) -> float:\n    math.sqrt(x)\n")
        assert ns["root"](9.0) == 3.0


# ###############
# Module shape
# ###############


class TestModule:
    def test_private_functions_are_not_exported(self) -> None:
        ns = _load("defun a() -> int:\n    b()\n\ndefunp b() -> int:\n    2\n")
        assert ns["__all__"] == ["a"]
        assert ns["a"]() == 2

    def test_testable_private_functions_stay_callable(self) -> None:
        ns = _load("defun a() -> int:\n    b(1)\n\ndefunpt b(x: int) -> int:\n    x + 1\n")
        assert ns["__all__"] == ["a"]
        assert ns["b"](4) == 5

    def test_repeated_declaration_is_rejected(self) -> None:
        with pytest.raises(DuplicateSignature):
            compile_source("defun f() -> int:\n    1\n\ndefun f() -> int:\n    1\n")

    def test_conflicting_declaration_is_rejected(self) -> None:
        with pytest.raises(DuplicateSignature, match="conflicting signatures"):
            compile_source("defun f(x: int) -> int:\n    x\n\ndefun f(x: str) -> str:\n    x\n")

    def test_semantic_errors_are_collected(self) -> None:
        with pytest.raises(DefinitionError) as exc_info:
            compile_source("defun f(x: int, x: int) -> int:\n    x\n\ndefstruct P:\n    t: M\n")
        assert len(exc_info.value.errors) == 2

    def test_required_parameter_after_default_is_rejected(self) -> None:
        with pytest.raises(DefinitionError) as exc_info:
            load_source("defun f(a: int \\\\ 1, b: int) -> int:\n    a + b\n")
        assert [e.message for e in exc_info.value.errors] == [
            "Parameter 'b' of function 'f' has no default but follows parameter 'a', which has one"
        ]

    def test_parse_errors_propagate(self) -> None:
        with pytest.raises(ParseError):
            compile_source("defun f( -> int:\n")

    def test_rendered_source_header(self) -> None:
        source = compile_source("import math\n\ndefun f() -> int:\n    1\n", "shapes.dfn").render_source()
        lines = source.splitlines()
        assert lines[0] == "# Generated by defspec from shapes.dfn. Do not edit."
        assert "import defspec.runtime as _defspec_rt" in lines
        assert "import math" in lines
        assert "__all__ = ['f']" in lines

    def test_rendered_stub(self) -> None:
        stub = compile_source(
            "defun first(xs: list[a], d: a \\\\ None) -> a when a: Any:\n    xs[0] if xs else d\n"
        ).render_stub()
        assert "def first[a](xs: list[a], d: a = ...) -> a: ..." in stub
        assert "from typing import Any, ClassVar, Self" in stub

    def test_namespace_receives_module_name(self) -> None:
        ns = _load("defun f() -> int:\n    1\n")
        assert ns["__name__"] == "defspec_generated"


# ###############
# Hygiene
# ###############


class TestHygiene:
    def test_user_temporaries_are_not_clobbered(self) -> None:
        ns = _load(
            "defun f(x: validate[Trimmed.t]) -> str:\n    _value = '!'\n    x + _value\n",
            Trimmed=Trimmed,
        )
        assert ns["f"]("  a ") == "a!"

    def test_parameter_named_like_the_dispatch_subject(self) -> None:
        ns = _load("defun f(_arguments: guard[int]) -> int:\n    _arguments * 2\n")
        assert ns["f"](4) == 8

    def test_function_named_like_the_runtime_alias(self) -> None:
        module = compile_source("defun _defspec_rt(x: guard[int]) -> int:\n    x\n")
        assert module.runtime == "_defspec_rt_1"
        ns = load_source("defun _defspec_rt(x: guard[int]) -> int:\n    x\n")
        assert ns["_defspec_rt"](3) == 3
        with pytest.raises(NoClauseMatch):
            ns["_defspec_rt"]("3")

    def test_import_alias_is_avoided(self) -> None:
        module = compile_source("import math as _defspec_rt\n\ndefun f() -> float:\n    _defspec_rt.pi\n")
        assert module.runtime == "_defspec_rt_1"
