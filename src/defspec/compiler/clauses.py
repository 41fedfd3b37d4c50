# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Body classification and clause expansion.

A body is either one block of Python statements, or an ordered list of
clauses written ``(patterns) [when guard] -> expression``. Each clause turns
into one :class:`Implementation`; a statement block turns into exactly one
implementation whose patterns simply capture the parameters.
"""

from __future__ import annotations

import ast
from collections.abc import Sequence
from dataclasses import dataclass

from defspec.compiler.binding import BindingContext
from defspec.compiler.errors import (
    ClauseArityMismatch,
    ClauseGuardConflict,
    ClauseValidationConflict,
    ParseError,
)
from defspec.compiler.guards import combined_guard
from defspec.compiler.scanner import LexerError, Token, TokenType, find_top_level, matching_close, tokenize
from defspec.compiler.validation import validation_stmts
from defspec.model.specs import ClauseSpec, Expr, FunctionSpec, ParamMode, Pattern

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class Implementation:
    """One concrete alternative of a generated function.

    Attributes:
        patterns: One ``case`` pattern per parameter.
        guard: Extra condition the call must satisfy, if any.
        statements: The statements run when the alternative is selected.
        captures_parameters: True when the patterns only capture the
            parameters, so the alternative accepts every call its guard accepts.
    """

    patterns: tuple[ast.pattern, ...]
    guard: ast.expr | None
    statements: tuple[ast.stmt, ...]
    captures_parameters: bool = False

    @property
    def arity(self) -> int:
        return len(self.patterns)

    @property
    def is_total(self) -> bool:
        """Return True if the alternative accepts every call."""
        return self.captures_parameters and self.guard is None


def classify_body(entries: Sequence[str], *, lines: Sequence[int] | None = None) -> Expr | tuple[ClauseSpec, ...]:
    """Decide whether body entries form a clause list or a single statement block.

    The entries form a clause list when there is at least one entry and every
    entry has the clause shape. Otherwise they are joined, in order, into one
    block.

    Args:
        entries: The body entries, one per logical line.
        lines: Source line of each entry, for error reporting.

    Raises:
        ParseError: If a clause or the block is not valid Python.
    """
    line_numbers = list(lines) if lines is not None else [1] * len(entries)
    scanned = [_scan(entry, line) for entry, line in zip(entries, line_numbers)]
    shapes = [_clause_shape(tokens) for tokens in scanned]
    if entries and all(shape is not None for shape in shapes):
        return tuple(
            _to_clause(entry, tokens, shape)
            for entry, tokens, shape in zip(entries, scanned, shapes)
            if shape is not None
        )
    block = Expr(source="\n".join(entries))
    first_line = line_numbers[0] if line_numbers else 1
    try:
        statements = block.statements()
    except SyntaxError as exc:
        line = first_line + (exc.lineno or 1) - 1
        raise ParseError(f"Invalid function body: {exc.msg}", line, exc.offset or 1) from exc
    if not statements:
        raise ParseError("Function body is empty", first_line, 1)
    return block


def expand(
    spec: FunctionSpec,
    context: BindingContext,
    *,
    runtime: str,
    self_module: str | None = None,
) -> tuple[Implementation, ...]:
    """Turn the body of *spec* into its implementations.

    Raises:
        ClauseGuardConflict: If a clause list is combined with guarded parameters.
        ClauseValidationConflict: If a clause list is combined with validated parameters.
        ClauseArityMismatch: If a clause has the wrong number of patterns.
        UnsupportedGuardType: If a guarded parameter's type has no predicate.
        UnsupportedValidationType: If a validated parameter's type has no value module.
    """
    if isinstance(spec.body, tuple):
        return _expand_clauses(spec, spec.body, context)
    guard = combined_guard(spec.params, context, function=spec.name, runtime=runtime)
    statements = validation_stmts(
        spec.params, context, function=spec.name, runtime=runtime, self_module=self_module
    )
    statements.extend(context.adopt(stmt) for stmt in spec.body.statements())
    if not statements:
        statements.append(ast.Pass())
    elif isinstance(statements[-1], ast.Expr):
        statements[-1] = ast.Return(value=statements[-1].value)
    patterns = tuple(
        ast.MatchAs(pattern=None, name=None if b.name == "_" else b.name) for b in context.bindings
    )
    return (Implementation(patterns, guard, tuple(statements), captures_parameters=True),)


# ################
# Implementation
# ################


@dataclass(frozen=True)
class _Shape:
    """Token indices delimiting the parts of one clause."""

    close: int
    when: int
    arrow: int


def _scan(entry: str, line: int) -> list[Token]:
    try:
        return tokenize(entry, line=line)
    except LexerError as exc:
        raise ParseError(str(exc).split(": ", 1)[1], exc.line, exc.column) from exc


def _clause_shape(tokens: list[Token]) -> _Shape | None:
    """Return the clause structure of an entry, or None if it is not a clause."""
    if not tokens or tokens[0].type != TokenType.LPAREN:
        return None
    close = matching_close(tokens, 0)
    if close == -1:
        return None
    after = tokens[close + 1]
    if after.type == TokenType.ARROW:
        return _Shape(close, -1, close + 1)
    if after.type == TokenType.NAME and after.value == "when":
        arrow = find_top_level(tokens, TokenType.ARROW, start=close + 2)
        if arrow > close + 2:
            return _Shape(close, close + 1, arrow)
    return None


def _to_clause(entry: str, tokens: list[Token], shape: _Shape) -> ClauseSpec:
    opening = tokens[0]
    arrow = tokens[shape.arrow]
    patterns = _parse_patterns(entry[opening.end : tokens[shape.close].start], opening)
    guard = None
    if shape.when != -1:
        guard = _checked_expr(entry[tokens[shape.when].end : arrow.start], tokens[shape.when], "clause guard")
    body = _checked_expr(entry[arrow.end :], arrow, "clause body")
    return ClauseSpec(patterns=patterns, guard=guard, body=body)


def _parse_patterns(inner: str, at: Token) -> tuple[Pattern, ...]:
    """Parse the comma-separated argument patterns of a clause."""
    if not inner.strip():
        return ()
    try:
        module = ast.parse(f"match _:\n    case [{inner}]:\n        pass\n")
    except SyntaxError as exc:
        raise ParseError(f"Invalid clause patterns: {exc.msg}", at.line, at.column) from exc
    match_stmt = module.body[0]
    assert isinstance(match_stmt, ast.Match)
    sequence = match_stmt.cases[0].pattern
    assert isinstance(sequence, ast.MatchSequence)
    for pattern in sequence.patterns:
        if isinstance(pattern, ast.MatchStar):
            raise ParseError("Star patterns cannot stand for clause arguments", at.line, at.column)
    return tuple(Pattern(source=ast.unparse(pattern)) for pattern in sequence.patterns)


def _checked_expr(source: str, at: Token, what: str) -> Expr:
    expr = Expr(source=source.strip())
    try:
        expr.expression()
    except SyntaxError as exc:
        raise ParseError(f"Invalid {what}: {exc.msg}", at.line, at.column) from exc
    return expr


def _expand_clauses(
    spec: FunctionSpec, clauses: tuple[ClauseSpec, ...], context: BindingContext
) -> tuple[Implementation, ...]:
    guarded = [p.name for p in spec.params if p.mode == ParamMode.GUARD]
    if guarded:
        raise ClauseGuardConflict(
            spec.name, f"clause bodies cannot be combined with guarded parameters ({', '.join(guarded)})"
        )
    validated = [p.name for p in spec.params if p.mode == ParamMode.VALIDATE]
    if validated:
        raise ClauseValidationConflict(
            spec.name, f"clause bodies cannot be combined with validated parameters ({', '.join(validated)})"
        )
    implementations: list[Implementation] = []
    for number, clause in enumerate(clauses, start=1):
        if len(clause.patterns) != len(spec.params):
            raise ClauseArityMismatch(
                spec.name,
                f"clause {number} has {len(clause.patterns)} pattern(s), expected {len(spec.params)}",
            )
        guard = context.adopt(clause.guard.expression()) if clause.guard is not None else None
        body = context.adopt(clause.body.expression())
        implementations.append(
            Implementation(
                patterns=tuple(p.tree() for p in clause.patterns),
                guard=guard,
                statements=(ast.Return(value=body),),
            )
        )
    return tuple(implementations)
