# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Parser for .dfn definition files.

A definition file is a sequence of top-level blocks, each introduced by an
unindented line:

    from myapp.values import Positive

    defun scale(x: validate[Positive.t], factor: guard[int] \\\\ 2) -> int:
        x * factor

    defunp helper(xs: list[a]) -> a when a: Any:
        ([x]) -> x
        ([x, *_]) -> x

    defstruct Point:
        x: Coord
        y: Coord

Headers are read with the scanner; indented body lines are passed through as
Python source. A line whose brackets are left open continues on the next
line, as in Python.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from defspec.compiler.clauses import classify_body
from defspec.compiler.descriptor import parse_param, parse_type
from defspec.compiler.errors import ParseError
from defspec.compiler.scanner import (
    LexerError,
    Token,
    TokenType,
    bracket_depth,
    find_top_level,
    matching_close,
    split_top_level,
    tokenize,
)
from defspec.model.specs import (
    Constraint,
    DefinitionFile,
    FunctionSpec,
    ParamSpec,
    StructField,
    StructSpec,
    Visibility,
)

logger = logging.getLogger(__name__)

__all__ = ["ParseError", "parse"]

# ###############
# Public Interface
# ###############


def parse(source: str) -> DefinitionFile:
    """Parse definition source text into a DefinitionFile.

    Args:
        source: The full text of a .dfn file.

    Returns:
        A DefinitionFile with imports and declarations in source order.

    Raises:
        ParseError: If the source is syntactically invalid. Descriptor errors
            are reported as :class:`~defspec.compiler.descriptor.DescriptorError`,
            a ParseError subclass.
    """
    return _Parser(_logical_lines(source)).parse()


# ################
# Implementation
# ################

_FUNCTION_KEYWORDS: dict[str, Visibility] = {
    "defun": Visibility.PUBLIC,
    "defunp": Visibility.PRIVATE,
    # Private but reachable from tests, which every module-level function already is.
    "defunpt": Visibility.PRIVATE,
}


@dataclass(frozen=True)
class _Line:
    """One logical line: a physical line plus any bracket continuation lines.

    Attributes:
        number: 1-based number of the first physical line.
        indent: Width of the leading whitespace of the first physical line.
        text: The line with its leading whitespace removed.
    """

    number: int
    indent: int
    text: str


def _logical_lines(source: str) -> list[_Line]:
    """Group physical lines into logical lines, skipping blank and comment-only lines."""
    physical = source.splitlines()
    result: list[_Line] = []
    index = 0
    while index < len(physical):
        raw = physical[index]
        stripped = raw.lstrip()
        if not stripped or stripped.startswith("#"):
            index += 1
            continue
        number = index + 1
        indent = len(raw) - len(stripped)
        parts = [stripped]
        index += 1
        while not _is_complete("\n".join(parts)) and index < len(physical):
            continuation = physical[index]
            prefix = raw[:indent]
            parts.append(continuation[indent:] if continuation.startswith(prefix) else continuation)
            index += 1
        text = "\n".join(parts)
        if not _is_complete(text):
            try:
                tokenize(text, line=number, column=indent + 1)
            except LexerError as exc:
                raise ParseError(str(exc).split(": ", 1)[1], exc.line, exc.column) from exc
            raise ParseError("Unexpected end of input in continued line", number, indent + 1)
        result.append(_Line(number, indent, text))
    return result


def _is_complete(text: str) -> bool:
    """Return True if *text* closes every bracket and string it opens."""
    try:
        depth = bracket_depth(text)
    except LexerError:
        return False
    return depth <= 0 and not (text.endswith("\\") and not text.endswith("\\\\"))


class _Parser:
    """Block parser over logical lines."""

    def __init__(self, lines: list[_Line]) -> None:
        self._lines = lines
        self._pos = 0

    def parse(self) -> DefinitionFile:
        result = DefinitionFile()
        while self._pos < len(self._lines):
            line = self._lines[self._pos]
            if line.indent != 0:
                raise ParseError("Unexpected indentation", line.number, line.indent + 1)
            self._pos += 1
            keyword = line.text.split(None, 1)[0]
            if keyword in ("import", "from"):
                result.imports.append(line.text)
            elif keyword in _FUNCTION_KEYWORDS:
                result.declarations.append(self._parse_function(line, keyword))
            elif keyword == "defstruct":
                result.declarations.append(self._parse_struct(line))
            else:
                raise ParseError(
                    f"Expected 'defun', 'defunp', 'defunpt', 'defstruct' or an import, got {keyword!r}",
                    line.number,
                    1,
                )
        logger.debug("Parsed %d import(s) and %d declaration(s)", len(result.imports), len(result.declarations))
        return result

    # ------------------------------------------------------------------
    # Block helpers
    # ------------------------------------------------------------------

    def _body(self) -> list[_Line]:
        """Consume the indented lines following a header."""
        body: list[_Line] = []
        while self._pos < len(self._lines) and self._lines[self._pos].indent > 0:
            body.append(self._lines[self._pos])
            self._pos += 1
        return body

    def _header_tokens(self, line: _Line, keyword: str) -> tuple[str, list[Token]]:
        """Tokenize a header after its keyword; the header must end with ':'."""
        offset = len(keyword)
        text = line.text[offset:]
        try:
            tokens = tokenize(text, line=line.number, column=offset + 1)
        except LexerError as exc:
            raise ParseError(str(exc).split(": ", 1)[1], exc.line, exc.column) from exc
        if len(tokens) < 2 or tokens[-2].type != TokenType.COLON:
            last = tokens[-1]
            raise ParseError(f"Expected ':' at the end of the '{keyword}' header", last.line, last.column)
        if tokens[0].type != TokenType.NAME:
            raise ParseError(f"Expected a name after '{keyword}'", tokens[0].line, tokens[0].column)
        return text, tokens

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def _parse_function(self, header: _Line, keyword: str) -> FunctionSpec:
        visibility = _FUNCTION_KEYWORDS[keyword]
        text, tokens = self._header_tokens(header, keyword)
        name = tokens[0]
        if tokens[1].type != TokenType.LPAREN:
            raise ParseError("Expected '(' after the function name", tokens[1].line, tokens[1].column)
        close = matching_close(tokens, 1)
        arrow = tokens[close + 1]
        if arrow.type != TokenType.ARROW:
            raise ParseError("Expected '->' and a return type", arrow.line, arrow.column)
        colon = len(tokens) - 2
        when = find_top_level(tokens, TokenType.NAME, "when", start=close + 2)
        return_end = when if when != -1 else colon
        if return_end == close + 2:
            raise ParseError("Expected a return type", arrow.line, arrow.column)
        first = tokens[close + 2]
        return_type = parse_type(
            text[first.start : tokens[return_end - 1].end], line=first.line, column=first.column
        )
        params = self._parse_params(text, tokens[2:close])
        constraints = self._parse_constraints(text, tokens[when + 1 : colon]) if when != -1 else ()

        body = self._body()
        if not body:
            raise ParseError(f"Expected an indented body for '{name.value}'", header.number, 1)
        base = body[0].indent
        entries = [" " * (line.indent - base) + line.text for line in body]
        return FunctionSpec(
            name=name.value,
            params=params,
            return_type=return_type,
            constraints=constraints,
            body=classify_body(entries, lines=[line.number for line in body]),
            visibility=visibility,
        )

    def _parse_params(self, text: str, tokens: list[Token]) -> tuple[ParamSpec, ...]:
        params: list[ParamSpec] = []
        for group in split_top_level(tokens, TokenType.COMMA):
            name, raw, at = self._annotated(text, group, "parameter", tokens)
            params.append(parse_param(name, raw, line=at.line, column=at.column))
        return tuple(params)

    def _parse_constraints(self, text: str, tokens: list[Token]) -> tuple[Constraint, ...]:
        groups = split_top_level(tokens, TokenType.COMMA)
        if not groups:
            raise ParseError("Expected type constraints after 'when'", tokens[0].line if tokens else 1, 1)
        constraints: list[Constraint] = []
        for group in groups:
            name, raw, at = self._annotated(text, group, "type variable", tokens)
            constraints.append(Constraint(name=name, type=parse_type(raw, line=at.line, column=at.column)))
        return tuple(constraints)

    @staticmethod
    def _annotated(text: str, group: list[Token], what: str, context: list[Token]) -> tuple[str, str, Token]:
        """Split ``name: descriptor`` into the name, descriptor text and descriptor position."""
        if len(group) < 3 or group[0].type != TokenType.NAME or group[1].type != TokenType.COLON:
            at = group[0] if group else context[0]
            raise ParseError(f"Expected '<{what}>: <type>'", at.line, at.column)
        return group[0].value, text[group[2].start : group[-1].end], group[2]

    # ------------------------------------------------------------------
    # Structs
    # ------------------------------------------------------------------

    def _parse_struct(self, header: _Line) -> StructSpec:
        _, header_tokens = self._header_tokens(header, "defstruct")
        if len(header_tokens) != 3:
            extra = header_tokens[1]
            raise ParseError("Expected 'defstruct <Name>:'", extra.line, extra.column)
        fields: list[StructField] = []
        for line in self._body():
            try:
                tokens = tokenize(line.text, line=line.number, column=line.indent + 1)
            except LexerError as exc:
                raise ParseError(str(exc).split(": ", 1)[1], exc.line, exc.column) from exc
            fields.append(self._parse_field(line, tokens))
        return StructSpec(name=header_tokens[0].value, fields=tuple(fields))

    @staticmethod
    def _parse_field(line: _Line, tokens: list[Token]) -> StructField:
        shape = [tok.type for tok in tokens[:-1]]
        dotted = shape[2:]
        valid = (
            len(shape) >= 3
            and shape[0] == TokenType.NAME
            and shape[1] == TokenType.COLON
            and len(dotted) % 2 == 1
            and all(t == (TokenType.NAME if i % 2 == 0 else TokenType.DOT) for i, t in enumerate(dotted))
        )
        if not valid:
            raise ParseError("Expected '<field>: <Module>'", line.number, line.indent + 1)
        module = "".join(tok.value for tok in tokens[2:-1])
        return StructField(name=tokens[0].value, module=module)
