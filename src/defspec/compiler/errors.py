# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compile-time errors raised while turning a declaration into generated code.

Every error aborts compilation of the declaration it concerns. All of them
derive from :class:`CompileError` so callers can report them uniformly.
"""

from __future__ import annotations

# ###############
# Public Interface
# ###############


class CompileError(Exception):
    """Base class for errors that abort compilation of one declaration.

    Attributes:
        function: Name of the declaration being compiled.
    """

    def __init__(self, function: str, message: str) -> None:
        super().__init__(f"{function}: {message}")
        self.function = function


class UnsupportedGuardType(CompileError):
    """A guard was requested on a type that has no predicate."""


class UnsupportedValidationType(CompileError):
    """Validation was requested on a type that has no value module."""


class ClauseGuardConflict(CompileError):
    """A clause-list body was combined with a guarded parameter."""


class ClauseValidationConflict(CompileError):
    """A clause-list body was combined with a validated parameter."""


class ClauseArityMismatch(CompileError):
    """A clause declares a different number of patterns than the function has parameters."""


class DuplicateSignature(CompileError):
    """The same function name was declared more than once in one scope."""


class ShadowedModuleReference(CompileError):
    """A parameter, or a name the body binds, hides the value module used to validate a parameter."""


class ParseError(Exception):
    """Raised when declaration text is syntactically invalid.

    Attributes:
        line: 1-based line number of the error.
        column: 1-based column number of the error.
    """

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(f"Line {line}, column {column}: {message}")
        self.line = line
        self.column = column
