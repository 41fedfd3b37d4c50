# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Validation injection: value-module types to call-and-unwrap statements.

For a parameter declared as ``validate[Positive.t]`` the compiler emits::

    match Positive.validate(amount):
        case rt.Ok(_value):
            amount = _value
        case rt.Err(_error):
            raise rt.ValidationAbort('amount', amount, _error)
        case _result:
            raise rt.InvalidResult('Positive', _result)

The statements of all validated parameters run in declaration order before
the body, so the first failure aborts the call before later parameters are
validated.
"""

from __future__ import annotations

import ast
from collections.abc import Sequence

from defspec.compiler.binding import BindingContext
from defspec.compiler.errors import ShadowedModuleReference, UnsupportedValidationType
from defspec.model.specs import ParamMode, ParamSpec
from defspec.model.types import ExternalType, SelfType, render_type

# ###############
# Public Interface
# ###############


def validation_stmt(
    param: ParamSpec,
    context: BindingContext,
    *,
    function: str,
    runtime: str,
    self_module: str | None = None,
) -> ast.stmt | None:
    """Return the validation statement for a validated parameter, or None.

    Args:
        param: The parameter.
        context: Binding context of the function being compiled.
        function: Name of the function, for error reporting.
        runtime: Name the runtime module is bound to in the generated module.
        self_module: The enclosing value module that ``Self`` refers to, if any.

    Raises:
        UnsupportedValidationType: If the parameter's type has no value module.
        ShadowedModuleReference: If a parameter name, or a name the body binds,
            hides the value module.
    """
    if param.mode != ParamMode.VALIDATE:
        return None
    module = _module_ref(param, function, self_module)
    root = module.split(".")[0]
    if context.is_bound(root):
        raise ShadowedModuleReference(
            function,
            f"parameter '{root}' hides value module '{module}' used to validate '{param.name}'",
        )
    if context.is_assigned(root):
        raise ShadowedModuleReference(
            function,
            f"the body rebinds '{root}', hiding value module '{module}' used to validate '{param.name}'",
        )
    name = context.load(param.name).id
    value = context.fresh("value")
    error = context.fresh("error")
    other = context.fresh("result")
    source = (
        f"match {module}.validate({name}):\n"
        f"    case {runtime}.Ok({value}):\n"
        f"        {name} = {value}\n"
        f"    case {runtime}.Err({error}):\n"
        f"        raise {runtime}.ValidationAbort({param.name!r}, {name}, {error})\n"
        f"    case {other}:\n"
        f"        raise {runtime}.InvalidResult({module!r}, {other})\n"
    )
    return ast.parse(source).body[0]


def validation_stmts(
    params: Sequence[ParamSpec],
    context: BindingContext,
    *,
    function: str,
    runtime: str,
    self_module: str | None = None,
) -> list[ast.stmt]:
    """Return the validation statements of all validated parameters, in parameter order."""
    statements: list[ast.stmt] = []
    for param in params:
        stmt = validation_stmt(param, context, function=function, runtime=runtime, self_module=self_module)
        if stmt is not None:
            statements.append(stmt)
    return statements


# ################
# Implementation
# ################


def _module_ref(param: ParamSpec, function: str, self_module: str | None) -> str:
    if isinstance(param.type, ExternalType):
        return param.type.module
    if isinstance(param.type, SelfType):
        if self_module is None:
            raise UnsupportedValidationType(
                function,
                f"cannot validate parameter '{param.name}': Self has no enclosing value module",
            )
        return self_module
    raise UnsupportedValidationType(
        function,
        f"cannot validate parameter '{param.name}': {render_type(param.type)} is not a value module type",
    )
