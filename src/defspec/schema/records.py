# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Runtime helpers behind the ``new``, ``validate`` and ``update`` operations of compiled structs.

A compiled struct is a frozen dataclass carrying a ``__schema__`` class
attribute: the ordered ``(field_name, value_module)`` pairs it was declared
with. Every helper here walks that schema in declaration order and stops at
the first failing field.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any, TypeVar

from defspec.exceptions import InvalidResult, ValidationAbort
from defspec.result import Err, Ok, Result, map_ok, sequence

logger = logging.getLogger(__name__)

R = TypeVar("R")

# ###############
# Public Interface
# ###############


@dataclasses.dataclass(frozen=True)
class FieldError:
    """Diagnostic for a struct field whose value was rejected by its value module.

    Attributes:
        field: Name of the rejected field.
        value: The raw value found in the input mapping.
        error: The diagnostic returned by the field's value module.
    """

    field: str
    value: Any
    error: Any

    def __str__(self) -> str:
        return f"invalid value {self.value!r} for field '{self.field}': {self.error}"


@dataclasses.dataclass(frozen=True)
class MalformedInput:
    """Diagnostic for input that is not mapping-shaped."""

    record: str
    value: Any

    def __str__(self) -> str:
        return f"validation error for {self.record}: expected a mapping, got {self.value!r}"


def record(cls: type[R]) -> type[R]:
    """Turn a generated class body into an immutable record type."""
    return dataclasses.dataclass(frozen=True)(cls)


def field(module: Any) -> Any:
    """Return a dataclass field whose default is taken from *module*."""
    return dataclasses.field(default_factory=lambda: field_default(module))


def field_default(module: Any) -> Any:
    """Return ``module.default()``, or None when the module cannot provide one.

    Failures are not propagated: a field whose module has no usable default
    starts out unset.
    """
    try:
        return module.default()
    except Exception as exc:
        logger.debug("No default available from %s: %s", _module_name(module), exc)
        return None


def is_mapping(value: Any) -> bool:
    """Return True for a mapping or for a list/tuple of key-value pairs."""
    if isinstance(value, Mapping):
        return True
    if isinstance(value, (list, tuple)):
        return all(isinstance(item, tuple) and len(item) == 2 for item in value)
    return False


def struct_new(cls: type[R], mapping: Any) -> R:
    """Build a record from *mapping*, substituting module defaults for absent fields.

    Raises:
        TypeError: If *mapping* is not mapping-shaped.
        ValidationAbort: On the first field whose value fails validation.
    """
    if not is_mapping(mapping):
        raise TypeError(f"{cls.__name__}.new expects a mapping, got {mapping!r}")

    def checked() -> Iterator[Result[tuple[str, Any]]]:
        for name, module in cls.__schema__:
            found, raw = _lookup(mapping, name)
            yield _check(name, module, raw) if found else Ok((name, module.default()))

    outcome = sequence(checked())
    if isinstance(outcome, Err):
        failure: FieldError = outcome.error
        raise ValidationAbort(failure.field, failure.value, failure.error)
    return cls(**dict(outcome.value))


def struct_validate(cls: type[R], mapping: Any) -> Result[R]:
    """Validate every field of *mapping*; absent fields are validated as None."""
    if not is_mapping(mapping):
        return Err(MalformedInput(cls.__name__, mapping))

    def checked() -> Iterator[Result[tuple[str, Any]]]:
        for name, module in cls.__schema__:
            _, raw = _lookup(mapping, name)
            yield _check(name, module, raw)

    return map_ok(sequence(checked()), lambda pairs: cls(**dict(pairs)))


def struct_update(cls: type[R], existing: R, mapping: Any) -> Result[R]:
    """Validate only the fields present in *mapping* and apply them to *existing*."""

    def checked() -> Iterator[Result[tuple[str, Any]]]:
        for name, module in cls.__schema__:
            found, raw = _lookup(mapping, name)
            if found:
                yield _check(name, module, raw)

    return map_ok(sequence(checked()), lambda pairs: dataclasses.replace(existing, **dict(pairs)))


# ################
# Implementation
# ################


def _lookup(mapping: Any, name: str) -> tuple[bool, Any]:
    """Find *name* in a mapping or pair list.

    A key matches when it equals the field name or when it is an ``Enum``
    member whose name is the field name. The first matching entry wins.
    """
    if isinstance(mapping, Mapping) and name in mapping:
        return True, mapping[name]
    items = mapping.items() if isinstance(mapping, Mapping) else mapping
    for key, value in items:
        if key == name or (isinstance(key, Enum) and key.name == name):
            return True, value
    return False, None


def _check(name: str, module: Any, raw: Any) -> Result[tuple[str, Any]]:
    result = module.validate(raw)
    match result:
        case Ok(value):
            return Ok((name, value))
        case Err(error):
            return Err(FieldError(name, raw, error))
        case _:
            raise InvalidResult(_module_name(module), result)


def _module_name(module: Any) -> str:
    return getattr(module, "__name__", repr(module))
