# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Runtime support imported by every generated module.

Generated code reaches everything through a single module alias, so the names
in this module form the complete runtime surface: the guard predicates, the
result variants, the run-time errors, and the record helpers used by
compiled structs.
"""

from __future__ import annotations

import subprocess
import weakref
from multiprocessing.process import BaseProcess
from typing import Any, Protocol, TypeVar

from defspec.exceptions import DefspecRuntimeError, InvalidResult, NoClauseMatch, ValidationAbort
from defspec.result import Err, Ok, Result, sequence
from defspec.schema.records import (
    FieldError,
    MalformedInput,
    field,
    field_default,
    is_mapping,
    record,
    struct_new,
    struct_update,
    struct_validate,
)

T_co = TypeVar("T_co", covariant=True)

# ###############
# Public Interface
# ###############


class ValueModule(Protocol[T_co]):
    """The contract a module must satisfy to be used as a validated type."""

    def default(self) -> T_co: ...

    def validate(self, value: Any) -> Result[T_co]: ...


# Guard predicates, referenced by name from synthesized guards.


def is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def is_float(value: Any) -> bool:
    return isinstance(value, float)


def is_number(value: Any) -> bool:
    return is_integer(value) or is_float(value)


def is_boolean(value: Any) -> bool:
    return isinstance(value, bool)


def is_text(value: Any) -> bool:
    return isinstance(value, str)


def is_binary(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray, memoryview))


def is_list(value: Any) -> bool:
    return isinstance(value, list)


def is_tuple(value: Any) -> bool:
    return isinstance(value, tuple)


def is_map(value: Any) -> bool:
    return isinstance(value, dict)


def is_callable(value: Any) -> bool:
    return callable(value)


def is_process_reference(value: Any) -> bool:
    return isinstance(value, (BaseProcess, subprocess.Popen))


def is_reference(value: Any) -> bool:
    return isinstance(value, weakref.ReferenceType)


__all__ = [
    "DefspecRuntimeError",
    "Err",
    "FieldError",
    "InvalidResult",
    "MalformedInput",
    "NoClauseMatch",
    "Ok",
    "Result",
    "ValidationAbort",
    "ValueModule",
    "field",
    "field_default",
    "is_binary",
    "is_boolean",
    "is_callable",
    "is_float",
    "is_integer",
    "is_list",
    "is_map",
    "is_mapping",
    "is_number",
    "is_process_reference",
    "is_reference",
    "is_text",
    "is_tuple",
    "record",
    "sequence",
    "struct_new",
    "struct_update",
    "struct_validate",
]
