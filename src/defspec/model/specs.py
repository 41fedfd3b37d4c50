# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Declarations accepted by the compiler: functions, their parameters and clauses, and structs."""

from __future__ import annotations

import ast
import textwrap
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

from defspec.model.types import TypeExpr

# ###############
# Public Interface
# ###############


class Expr(BaseModel):
    """A fragment of Python source: an expression or a block of statements.

    The fragment is kept as text so declarations stay serializable; the
    compiler parses it into an ``ast`` tree on demand.
    """

    model_config = ConfigDict(frozen=True)

    source: str

    def expression(self) -> ast.expr:
        """Parse the fragment as a single expression.

        Raises:
            SyntaxError: If the fragment is not a valid expression.
        """
        return ast.parse(self.source.strip(), mode="eval").body

    def statements(self) -> list[ast.stmt]:
        """Parse the fragment as a block of statements.

        Raises:
            SyntaxError: If the fragment is not a valid statement block.
        """
        return ast.parse(textwrap.dedent(self.source).strip()).body


class Pattern(BaseModel):
    """A single structural pattern of a clause, in ``match``/``case`` syntax."""

    model_config = ConfigDict(frozen=True)

    source: str

    def tree(self) -> ast.pattern:
        """Parse the fragment as a ``case`` pattern.

        Raises:
            SyntaxError: If the fragment is not a valid pattern.
        """
        module = ast.parse(f"match _:\n    case {self.source.strip()}:\n        pass\n")
        match_stmt = module.body[0]
        assert isinstance(match_stmt, ast.Match)
        return match_stmt.cases[0].pattern


class ParamMode(Enum):
    """Special handling requested for a parameter."""

    NONE = "none"
    GUARD = "guard"
    VALIDATE = "validate"


class ParamSpec(BaseModel):
    """One declared parameter: name, type, optional default and mode."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeExpr
    default: Expr | None = None
    mode: ParamMode = ParamMode.NONE


class ClauseSpec(BaseModel):
    """One alternative of a multi-clause body: ``(patterns) when guard -> body``."""

    model_config = ConfigDict(frozen=True)

    patterns: tuple[Pattern, ...]
    guard: Expr | None = None
    body: Expr


class Constraint(BaseModel):
    """A generic type variable and the type it is bounded by."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeExpr


class Visibility(Enum):
    """Whether a function is exported from its generated module."""

    PUBLIC = "public"
    PRIVATE = "private"


class FunctionSpec(BaseModel):
    """The full declared contract and body of one function."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["function"] = "function"
    name: str
    params: tuple[ParamSpec, ...] = ()
    return_type: TypeExpr
    constraints: tuple[Constraint, ...] = ()
    body: Expr | tuple[ClauseSpec, ...]
    visibility: Visibility = Visibility.PUBLIC

    @property
    def has_clauses(self) -> bool:
        """Return True if the body is a list of pattern-matched clauses."""
        return isinstance(self.body, tuple)


class StructField(BaseModel):
    """A struct field and the value module validating it."""

    model_config = ConfigDict(frozen=True)

    name: str
    module: str


class StructSpec(BaseModel):
    """A record type declared as an ordered list of fields."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["struct"] = "struct"
    name: str
    fields: tuple[StructField, ...] = ()


Declaration = Annotated[FunctionSpec | StructSpec, _Field(discriminator="kind")]


class DefinitionFile(BaseModel):
    """Top-level model representing the parsed contents of a single .dfn file."""

    imports: list[str] = _Field(default_factory=list)
    declarations: list[Declaration] = _Field(default_factory=list)

    @property
    def functions(self) -> list[FunctionSpec]:
        return [d for d in self.declarations if isinstance(d, FunctionSpec)]

    @property
    def structs(self) -> list[StructSpec]:
        return [d for d in self.declarations if isinstance(d, StructSpec)]
