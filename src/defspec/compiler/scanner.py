# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexical scanner for declaration fragments.

Declarations mix the descriptor vocabulary (``guard[int] \\\\ 0``,
``(patterns) when guard -> body``) with embedded Python source. The scanner
only needs to find the structural tokens of the former, so it recognizes
Python strings, numbers, names, brackets and operators well enough to skip
over embedded code, and records source offsets so that the embedded parts
can be sliced out verbatim and handed to ``ast``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

# ###############
# Public Interface
# ###############


class TokenType(enum.Enum):
    """All token types produced by the scanner."""

    # Brackets
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    LBRACE = "{"
    RBRACE = "}"

    # Structural symbols
    COMMA = ","
    COLON = ":"
    DOT = "."
    PIPE = "|"
    ARROW = "->"
    DEFAULT = "\\\\"

    # Any other operator run (+, ==, **, ...)
    OP = "OP"

    # Literals and names
    NAME = "NAME"
    NUMBER = "NUMBER"
    STRING = "STRING"

    # End of input
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A lexical token with its source location.

    Attributes:
        type: The kind of token.
        value: The raw text of the token.
        line: 1-based line number where the token starts.
        column: 1-based column number where the token starts.
        start: Offset of the first character in the scanned text.
        end: Offset one past the last character in the scanned text.
    """

    type: TokenType
    value: str
    line: int
    column: int
    start: int
    end: int


class LexerError(Exception):
    """Raised when the scanner encounters an invalid character or unterminated literal.

    Attributes:
        line: 1-based line number of the error.
        column: 1-based column number of the error.
    """

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(f"Line {line}, column {column}: {message}")
        self.line = line
        self.column = column


def tokenize(source: str, *, line: int = 1, column: int = 1) -> list[Token]:
    """Tokenize a declaration fragment.

    Whitespace, backslash line continuations and ``#`` comments are skipped.

    Args:
        source: The text to scan.
        line: Line number of the first character, for error reporting.
        column: Column number of the first character, for error reporting.

    Returns:
        A list of Token objects ending with a single EOF token.

    Raises:
        LexerError: On unexpected characters, unterminated string literals,
            or unbalanced brackets.
    """
    return _Lexer(source, line, column).tokenize()


OPENING: frozenset[TokenType] = frozenset({TokenType.LPAREN, TokenType.LBRACKET, TokenType.LBRACE})
CLOSING: frozenset[TokenType] = frozenset({TokenType.RPAREN, TokenType.RBRACKET, TokenType.RBRACE})


def split_top_level(tokens: list[Token], separator: TokenType) -> list[list[Token]]:
    """Split a token list on *separator* tokens that are not nested in brackets.

    A trailing EOF token is dropped. An empty input yields an empty list, and a
    trailing separator does not produce an empty final group.
    """
    groups: list[list[Token]] = []
    current: list[Token] = []
    depth = 0
    for tok in tokens:
        if tok.type == TokenType.EOF:
            break
        if tok.type in OPENING:
            depth += 1
        elif tok.type in CLOSING:
            depth -= 1
        if tok.type == separator and depth == 0:
            groups.append(current)
            current = []
            continue
        current.append(tok)
    if current:
        groups.append(current)
    return groups


def find_top_level(tokens: list[Token], token_type: TokenType, value: str | None = None, start: int = 0) -> int:
    """Return the index of the first un-nested token of *token_type* at or after *start*, or -1.

    Nesting depth is counted from *start*. When *value* is given, the token's
    text must also match.
    """
    depth = 0
    for index in range(start, len(tokens)):
        tok = tokens[index]
        if depth == 0 and tok.type == token_type and (value is None or tok.value == value):
            return index
        if tok.type in OPENING:
            depth += 1
        elif tok.type in CLOSING:
            depth -= 1
    return -1


def matching_close(tokens: list[Token], index: int) -> int:
    """Return the index of the bracket closing the one at *index*."""
    depth = 0
    for position in range(index, len(tokens)):
        if tokens[position].type in OPENING:
            depth += 1
        elif tokens[position].type in CLOSING:
            depth -= 1
            if depth == 0:
                return position
    return -1


def bracket_depth(source: str) -> int:
    """Return the number of brackets left open at the end of *source*.

    Used by the file parser to join continuation lines.
    """
    depth = 0
    for tok in _Lexer(source, 1, 1, check_balance=False).tokenize():
        if tok.type in OPENING:
            depth += 1
        elif tok.type in CLOSING:
            depth -= 1
    return depth


# ################
# Implementation
# ################

_SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    ".": TokenType.DOT,
    "|": TokenType.PIPE,
}

_OPERATOR_CHARS = frozenset("+-*/%@&^~<>=!;")

_CLOSER_FOR: dict[TokenType, TokenType] = {
    TokenType.LPAREN: TokenType.RPAREN,
    TokenType.LBRACKET: TokenType.RBRACKET,
    TokenType.LBRACE: TokenType.RBRACE,
}


class _Lexer:
    """Internal scanner state machine."""

    def __init__(self, source: str, line: int, column: int, *, check_balance: bool = True) -> None:
        self._source = source
        self._pos = 0
        self._line = line
        self._column = column
        self._check_balance = check_balance
        self._tokens: list[Token] = []
        self._open: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Run the scanner and return all tokens including the terminal EOF."""
        while self._pos < len(self._source):
            self._skip_whitespace_and_comments()
            if self._pos >= len(self._source):
                break
            self._scan_token()
        if self._check_balance and self._open:
            tok = self._open[-1]
            raise LexerError(f"Unclosed {tok.value!r}", tok.line, tok.column)
        self._tokens.append(Token(TokenType.EOF, "", self._line, self._column, self._pos, self._pos))
        return self._tokens

    # ------------------------------------------------------------------
    # Low-level character access helpers
    # ------------------------------------------------------------------

    def _current(self) -> str:
        """Return the character at the current position, or '' at end of input."""
        if self._pos < len(self._source):
            return self._source[self._pos]
        return ""

    def _peek(self) -> str:
        """Return the character one position ahead, or '' at end of input."""
        if self._pos + 1 < len(self._source):
            return self._source[self._pos + 1]
        return ""

    def _advance(self) -> str:
        """Consume the current character, update position tracking, and return it."""
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return ch

    def _emit(self, token_type: TokenType, start: int, line: int, col: int) -> Token:
        tok = Token(token_type, self._source[start : self._pos], line, col, start, self._pos)
        self._tokens.append(tok)
        return tok

    # ------------------------------------------------------------------
    # Whitespace and comment skipping
    # ------------------------------------------------------------------

    def _skip_whitespace_and_comments(self) -> None:
        """Skip whitespace, line continuations and comments at the current position."""
        while self._pos < len(self._source):
            ch = self._current()
            if ch in " \t\r\n\f":
                self._advance()
            elif ch == "\\" and self._peek() == "\n":
                self._advance()
                self._advance()
            elif ch == "#":
                while self._pos < len(self._source) and self._current() != "\n":
                    self._advance()
            else:
                break

    # ------------------------------------------------------------------
    # Token scanning dispatcher
    # ------------------------------------------------------------------

    def _scan_token(self) -> None:
        """Dispatch to the appropriate handler based on the current character."""
        ch = self._current()
        start = self._pos
        line = self._line
        col = self._column

        if ch in _SINGLE_CHAR_TOKENS:
            self._advance()
            tok = self._emit(_SINGLE_CHAR_TOKENS[ch], start, line, col)
            self._track_brackets(tok)
        elif ch == "-" and self._peek() == ">":
            self._advance()
            self._advance()
            self._emit(TokenType.ARROW, start, line, col)
        elif ch == "\\":
            if self._peek() != "\\":
                raise LexerError("Unexpected character: '\\'", line, col)
            self._advance()
            self._advance()
            self._emit(TokenType.DEFAULT, start, line, col)
        elif ch in _OPERATOR_CHARS:
            while self._current() in _OPERATOR_CHARS and not self._at_arrow():
                self._advance()
            self._emit(TokenType.OP, start, line, col)
        elif ch in "\"'":
            self._scan_string(start, line, col)
        elif ch.isdigit():
            self._scan_number(start, line, col)
        elif ch.isalpha() or ch == "_":
            self._scan_name(start, line, col)
        else:
            raise LexerError(f"Unexpected character: {ch!r}", line, col)

    def _at_arrow(self) -> bool:
        return self._current() == "-" and self._peek() == ">"

    def _track_brackets(self, tok: Token) -> None:
        if tok.type in OPENING:
            self._open.append(tok)
        elif tok.type in CLOSING:
            if not self._open:
                if self._check_balance:
                    raise LexerError(f"Unmatched {tok.value!r}", tok.line, tok.column)
                return
            opener = self._open.pop()
            if self._check_balance and _CLOSER_FOR[opener.type] != tok.type:
                raise LexerError(
                    f"{tok.value!r} does not close {opener.value!r} opened at line {opener.line}, "
                    f"column {opener.column}",
                    tok.line,
                    tok.column,
                )

    # ------------------------------------------------------------------
    # Literal scanners
    # ------------------------------------------------------------------

    def _scan_string(self, start: int, line: int, col: int) -> None:
        """Scan a single- or triple-quoted Python string literal.

        Escapes are skipped, not decoded: only the extent of the literal matters.
        """
        quote = self._current()
        triple = self._source.startswith(quote * 3, self._pos)
        delimiter = quote * 3 if triple else quote
        for _ in delimiter:
            self._advance()
        while self._pos < len(self._source):
            if self._source.startswith(delimiter, self._pos):
                for _ in delimiter:
                    self._advance()
                self._emit(TokenType.STRING, start, line, col)
                return
            ch = self._current()
            if ch == "\n" and not triple:
                break
            if ch == "\\" and self._pos + 1 < len(self._source):
                self._advance()
            self._advance()
        raise LexerError("Unterminated string literal", line, col)

    def _scan_number(self, start: int, line: int, col: int) -> None:
        """Scan a numeric literal (integers, floats, exponents, hex, imaginary)."""
        while self._pos < len(self._source):
            ch = self._current()
            if ch.isalnum() or ch == "_":
                self._advance()
            elif ch == "." and self._peek().isdigit():
                self._advance()
            elif ch in "+-" and self._source[self._pos - 1] in "eE" and self._peek().isdigit():
                self._advance()
            else:
                break
        self._emit(TokenType.NUMBER, start, line, col)

    def _scan_name(self, start: int, line: int, col: int) -> None:
        """Scan an identifier; a string prefix such as ``r`` or ``b`` stays a separate NAME token."""
        while self._pos < len(self._source) and (self._current().isalnum() or self._current() == "_"):
            self._advance()
        self._emit(TokenType.NAME, start, line, col)
