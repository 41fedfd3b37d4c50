# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Guard synthesis: type descriptors to dispatch predicates.

Guards run as part of clause matching, so they may only call the fixed
predicates of :mod:`defspec.runtime`. Types that would need arbitrary code to
check (value modules, ``Self``, named types, ``Any``) cannot be guarded.
"""

from __future__ import annotations

import ast
from collections.abc import Sequence

from defspec.compiler.binding import BindingContext
from defspec.compiler.errors import UnsupportedGuardType
from defspec.model.specs import ParamMode, ParamSpec
from defspec.model.types import BaseSymbol, BaseType, TypeExpr, UnionType, render_type

# ###############
# Public Interface
# ###############

PREDICATES: dict[BaseSymbol, str] = {
    BaseSymbol.INTEGER: "is_integer",
    BaseSymbol.FLOAT: "is_float",
    BaseSymbol.NUMBER: "is_number",
    BaseSymbol.BOOLEAN: "is_boolean",
    BaseSymbol.TEXT: "is_text",
    BaseSymbol.BINARY: "is_binary",
    BaseSymbol.LIST: "is_list",
    BaseSymbol.TUPLE: "is_tuple",
    BaseSymbol.MAP: "is_map",
    BaseSymbol.FUNCTION: "is_callable",
    BaseSymbol.PROCESS: "is_process_reference",
    BaseSymbol.REFERENCE: "is_reference",
}


def guard_expr(param: ParamSpec, context: BindingContext, *, function: str, runtime: str) -> ast.expr | None:
    """Return the predicate for a guarded parameter, or None if it is not guarded.

    Args:
        param: The parameter.
        context: Binding context of the function being compiled.
        function: Name of the function, for error reporting.
        runtime: Name the runtime module is bound to in the generated module.

    Raises:
        UnsupportedGuardType: If no predicate exists for the parameter's type.
    """
    if param.mode != ParamMode.GUARD:
        return None
    return _predicate(param, param.type, context, function, runtime)


def combined_guard(
    params: Sequence[ParamSpec], context: BindingContext, *, function: str, runtime: str
) -> ast.expr | None:
    """AND together the guards of all parameters, left to right in parameter order."""
    guards = [
        guard
        for param in params
        if (guard := guard_expr(param, context, function=function, runtime=runtime)) is not None
    ]
    if not guards:
        return None
    if len(guards) == 1:
        return guards[0]
    return ast.BoolOp(op=ast.And(), values=guards)


# ################
# Implementation
# ################


def _predicate(
    param: ParamSpec, type_expr: TypeExpr, context: BindingContext, function: str, runtime: str
) -> ast.expr:
    if isinstance(type_expr, UnionType):
        return ast.BoolOp(
            op=ast.Or(),
            values=[_predicate(param, member, context, function, runtime) for member in type_expr.members],
        )
    if isinstance(type_expr, BaseType) and type_expr.symbol in PREDICATES:
        return ast.Call(
            func=ast.Attribute(
                value=ast.Name(id=runtime, ctx=ast.Load()),
                attr=PREDICATES[type_expr.symbol],
                ctx=ast.Load(),
            ),
            args=[context.load(param.name)],
            keywords=[],
        )
    raise UnsupportedGuardType(
        function,
        f"cannot guard parameter '{param.name}': no predicate for type {render_type(type_expr)}",
    )
