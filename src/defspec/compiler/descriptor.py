# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Parameter descriptor parsing.

A descriptor is the text written after a parameter name. Its vocabulary is
small and fixed::

    int                     plain type
    int \\\\ 0                type with a default value (any Python expression)
    guard[int]              type checked as part of clause dispatch
    validate[Positive.t]    value rebound through the module's validate()

The two wrappers are recognized only as the outermost shape of the type part.
Anything else, including unknown wrappers such as ``checked[int]``, is read
as a plain type with no special handling.
"""

from __future__ import annotations

from collections.abc import Sequence

from defspec.compiler.clauses import classify_body
from defspec.compiler.errors import ParseError
from defspec.compiler.scanner import (
    LexerError,
    Token,
    TokenType,
    find_top_level,
    matching_close,
    tokenize,
)
from defspec.model.specs import Constraint, Expr, FunctionSpec, ParamMode, ParamSpec, Visibility
from defspec.model.types import (
    BaseSymbol,
    BaseType,
    ExternalType,
    NamedType,
    SelfType,
    TypeExpr,
    UnionType,
)

# ###############
# Public Interface
# ###############


class DescriptorError(ParseError):
    """Raised when descriptor text cannot be read as a type expression."""


def parse_param(name: str, raw: str, *, line: int = 1, column: int = 1) -> ParamSpec:
    """Turn one ``(name, descriptor)`` pair into a :class:`ParamSpec`.

    Args:
        name: The parameter name.
        raw: The descriptor text.
        line: Line number of the descriptor, for error reporting.
        column: Column number of the descriptor, for error reporting.

    Raises:
        DescriptorError: If the descriptor is lexically broken, its type part
            is not a type expression, or its default is not a Python expression.
    """
    tokens = _scan(raw, line, column)
    type_tokens, default = _extract_default(raw, tokens)
    mode, inner = _extract_mode(type_tokens)
    return ParamSpec(name=name, type=_TypeParser(inner).parse(), default=default, mode=mode)


def parse_type(raw: str, *, line: int = 1, column: int = 1) -> TypeExpr:
    """Parse a bare type expression such as ``list[int]`` or ``Positive.t``.

    Raises:
        DescriptorError: If *raw* is not a type expression.
    """
    tokens = _scan(raw, line, column)
    return _TypeParser(tokens[:-1]).parse()


def function_spec(
    name: str,
    params: Sequence[tuple[str, str]],
    returns: str,
    body: str | Sequence[str],
    *,
    constraints: Sequence[tuple[str, str]] = (),
    visibility: Visibility = Visibility.PUBLIC,
) -> FunctionSpec:
    """Build a :class:`FunctionSpec` from raw descriptor text.

    Args:
        name: The function name.
        params: Ordered ``(name, descriptor)`` pairs.
        returns: The return type expression.
        body: A single expression/statement block, or the ordered entries of
            the body. Entries that all read ``(patterns) [when guard] -> expr``
            form a clause list.
        constraints: Ordered ``(type_variable, bound)`` pairs.
        visibility: Whether the function is exported from its module.

    Raises:
        DescriptorError: If any descriptor or type expression is malformed.
        ParseError: If a clause or the body is not valid Python.
    """
    entries = [body] if isinstance(body, str) else list(body)
    return FunctionSpec(
        name=name,
        params=tuple(parse_param(param_name, raw) for param_name, raw in params),
        return_type=parse_type(returns),
        constraints=tuple(Constraint(name=var, type=parse_type(bound)) for var, bound in constraints),
        body=classify_body(entries),
        visibility=visibility,
    )


# ################
# Implementation
# ################

_BASE_SYMBOLS: dict[str, BaseSymbol] = {symbol.value: symbol for symbol in BaseSymbol}

_WRAPPERS: dict[str, ParamMode] = {
    "guard": ParamMode.GUARD,
    "validate": ParamMode.VALIDATE,
}


def _scan(raw: str, line: int, column: int) -> list[Token]:
    try:
        return tokenize(raw, line=line, column=column)
    except LexerError as exc:
        raise DescriptorError(str(exc).split(": ", 1)[1], exc.line, exc.column) from exc


def _extract_default(raw: str, tokens: list[Token]) -> tuple[list[Token], Expr | None]:
    """Split ``inner \\\\ default`` into the inner type tokens and the default expression."""
    index = find_top_level(tokens, TokenType.DEFAULT)
    if index == -1:
        return tokens[:-1], None
    marker = tokens[index]
    default = Expr(source=raw[marker.end :].strip())
    try:
        default.expression()
    except SyntaxError as exc:
        raise DescriptorError(f"Invalid default value: {exc.msg}", marker.line, marker.column) from exc
    return tokens[:index], default


def _extract_mode(tokens: list[Token]) -> tuple[ParamMode, list[Token]]:
    """Strip an outermost ``guard[...]`` or ``validate[...]`` wrapper."""
    if (
        len(tokens) >= 3
        and tokens[0].type == TokenType.NAME
        and tokens[0].value in _WRAPPERS
        and tokens[1].type == TokenType.LBRACKET
        and matching_close(tokens, 1) == len(tokens) - 1
    ):
        return _WRAPPERS[tokens[0].value], tokens[2:-1]
    return ParamMode.NONE, tokens


class _TypeParser:
    """Recursive-descent parser for type expressions.

    Grammar::

        union   := primary ('|' primary)*
        primary := dotted ['[' members ']'] | '[' members ']' | '...' | STRING | NUMBER
        members := union (',' union)* [',']
    """

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    def parse(self) -> TypeExpr:
        if not self._tokens:
            raise DescriptorError("Expected a type", 1, 1)
        result = self._parse_union()
        if self._pos < len(self._tokens):
            tok = self._tokens[self._pos]
            raise DescriptorError(f"Unexpected {tok.value!r} in type expression", tok.line, tok.column)
        return result

    # ------------------------------------------------------------------
    # Token access helpers
    # ------------------------------------------------------------------

    def _check(self, *types: TokenType) -> bool:
        return self._pos < len(self._tokens) and self._tokens[self._pos].type in types

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        self._pos += 1
        return tok

    def _expect(self, token_type: TokenType) -> Token:
        if not self._check(token_type):
            tok = self._tokens[self._pos] if self._pos < len(self._tokens) else self._tokens[-1]
            raise DescriptorError(f"Expected {token_type.value!r} in type expression", tok.line, tok.column)
        return self._advance()

    # ------------------------------------------------------------------
    # Grammar rules
    # ------------------------------------------------------------------

    def _parse_union(self) -> TypeExpr:
        members = [self._parse_primary()]
        while self._check(TokenType.PIPE):
            self._advance()
            members.append(self._parse_primary())
        if len(members) == 1:
            return members[0]
        return UnionType(members=tuple(members))

    def _parse_primary(self) -> TypeExpr:
        if self._check(TokenType.LBRACKET):
            return NamedType(name="", args=self._parse_members())
        if self._check(TokenType.STRING, TokenType.NUMBER):
            return NamedType(name=self._advance().value)
        if self._check(TokenType.DOT):
            for _ in range(3):
                self._expect(TokenType.DOT)
            return NamedType(name="...")
        parts = [self._expect(TokenType.NAME).value]
        while self._check(TokenType.DOT):
            self._advance()
            parts.append(self._expect(TokenType.NAME).value)
        args = self._parse_members() if self._check(TokenType.LBRACKET) else ()
        return _classify(parts, args)

    def _parse_members(self) -> tuple[TypeExpr, ...]:
        self._expect(TokenType.LBRACKET)
        members: list[TypeExpr] = []
        while not self._check(TokenType.RBRACKET):
            members.append(self._parse_union())
            if not self._check(TokenType.COMMA):
                break
            self._advance()
        self._expect(TokenType.RBRACKET)
        return tuple(members)


def _classify(parts: list[str], args: tuple[TypeExpr, ...]) -> TypeExpr:
    """Map a dotted name onto the matching descriptor variant."""
    if len(parts) >= 2 and parts[-1] == "t" and not args:
        return ExternalType(module=".".join(parts[:-1]))
    if parts == ["Self"] and not args:
        return SelfType()
    if len(parts) == 1 and parts[0] in _BASE_SYMBOLS:
        return BaseType(symbol=_BASE_SYMBOLS[parts[0]], args=args)
    return NamedType(name=".".join(parts), args=args)
