# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Success/failure results returned by value modules and schema operations.

Both variants are frozen dataclasses so generated code can dispatch on them
with ``match`` statements (``case Ok(value): ...``).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A successful result wrapping *value*."""

    value: T


@dataclass(frozen=True)
class Err:
    """A failed result wrapping a diagnostic.

    Attributes:
        error: The diagnostic describing the failure. Value modules usually
            return a message string; schema operations return structured
            diagnostics (see :mod:`defspec.schema.records`).
    """

    error: Any


Result = Ok[T] | Err


def is_result(obj: object) -> bool:
    """Return True if *obj* is an :class:`Ok` or an :class:`Err`."""
    return isinstance(obj, (Ok, Err))


def map_ok(result: Result[T], fn: Callable[[T], U]) -> Result[U]:
    """Apply *fn* to the value of a successful result, passing failures through."""
    if isinstance(result, Ok):
        return Ok(fn(result.value))
    return result


def sequence(results: Iterable[Result[T]]) -> Result[list[T]]:
    """Collect successful values in order, stopping at the first failure.

    The iterable is consumed lazily, so producers placed after the first
    failure are never evaluated.
    """
    values: list[T] = []
    for result in results:
        if isinstance(result, Err):
            return result
        values.append(result.value)
    return Ok(values)


def unwrap(result: Result[T]) -> T:
    """Return the value of a successful result or raise ``ValueError``."""
    if isinstance(result, Ok):
        return result.value
    raise ValueError(f"unwrap called on a failed result: {result.error}")
