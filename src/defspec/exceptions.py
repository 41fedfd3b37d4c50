# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Fatal errors raised by generated functions at call time."""

from __future__ import annotations

from typing import Any

# ###############
# Public Interface
# ###############


class DefspecRuntimeError(Exception):
    """Base class for the fatal errors raised by generated functions."""


class ValidationAbort(DefspecRuntimeError):
    """Raised when a validated parameter or struct field fails validation.

    Attributes:
        name: The parameter or field name.
        value: The raw value that was rejected.
        error: The diagnostic returned by the value module.
    """

    def __init__(self, name: str, value: Any, error: Any) -> None:
        super().__init__(f"validation error for {name}: {error}")
        self.name = name
        self.value = value
        self.error = error


class NoClauseMatch(DefspecRuntimeError):
    """Raised when no clause of a generated function accepts the call arguments.

    Attributes:
        function: Name of the called function.
        arguments: The actual argument values, in parameter order.
    """

    def __init__(self, function: str, arguments: tuple[Any, ...]) -> None:
        rendered = ", ".join(repr(a) for a in arguments)
        super().__init__(f"no clause of {function} matches arguments ({rendered})")
        self.function = function
        self.arguments = arguments


class InvalidResult(DefspecRuntimeError):
    """Raised when a value module's ``validate`` returns neither Ok nor Err."""

    def __init__(self, module: str, result: Any) -> None:
        super().__init__(f"{module}.validate returned {result!r}, expected Ok or Err")
        self.module = module
        self.result = result
