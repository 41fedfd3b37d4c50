# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Type descriptors attached to parameters, return values and generic constraints."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

# ###############
# Public Interface
# ###############


class BaseSymbol(Enum):
    """The fixed set of base types. Values are the spellings used in descriptors."""

    INTEGER = "int"
    FLOAT = "float"
    NUMBER = "number"
    BOOLEAN = "bool"
    TEXT = "str"
    BINARY = "bytes"
    LIST = "list"
    TUPLE = "tuple"
    MAP = "dict"
    FUNCTION = "Callable"
    PROCESS = "Process"
    REFERENCE = "Reference"
    ANY = "Any"


class BaseType(BaseModel):
    """A base type, optionally parameterized (``list[int]``)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["base"] = "base"
    symbol: BaseSymbol
    args: tuple[TypeExpr, ...] = ()


class ExternalType(BaseModel):
    """The type ``t`` of a value module, written ``Module.t``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["external"] = "external"
    module: str


class SelfType(BaseModel):
    """The type of the enclosing value module, written ``Self``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["self"] = "self"


class NamedType(BaseModel):
    """Any other named type: typing names, classes, or declared type variables."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["named"] = "named"
    name: str
    args: tuple[TypeExpr, ...] = ()


class UnionType(BaseModel):
    """A union of two or more types, written ``A | B``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["union"] = "union"
    members: tuple[TypeExpr, ...]


# The `kind` discriminator keeps parsing and deserialization unambiguous.
TypeExpr = Annotated[
    BaseType | ExternalType | SelfType | NamedType | UnionType,
    _Field(discriminator="kind"),
]


def render_type(type_expr: TypeExpr, self_name: str | None = None) -> str:
    """Render a type descriptor as a Python annotation.

    Args:
        type_expr: The descriptor to render.
        self_name: Name substituted for ``Self``. When None, ``Self`` is kept.
    """
    if isinstance(type_expr, BaseType):
        head = _BASE_ANNOTATIONS[type_expr.symbol]
        if not type_expr.args:
            return head
        return f"{head}[{', '.join(render_type(a, self_name) for a in type_expr.args)}]"
    if isinstance(type_expr, ExternalType):
        return f"{type_expr.module}.t"
    if isinstance(type_expr, SelfType):
        return self_name or "Self"
    if isinstance(type_expr, NamedType):
        if not type_expr.args:
            return type_expr.name
        return f"{type_expr.name}[{', '.join(render_type(a, self_name) for a in type_expr.args)}]"
    return " | ".join(render_type(m, self_name) for m in type_expr.members)


# ################
# Implementation
# ################

_BASE_ANNOTATIONS: dict[BaseSymbol, str] = {
    BaseSymbol.INTEGER: "int",
    BaseSymbol.FLOAT: "float",
    BaseSymbol.NUMBER: "int | float",
    BaseSymbol.BOOLEAN: "bool",
    BaseSymbol.TEXT: "str",
    BaseSymbol.BINARY: "bytes",
    BaseSymbol.LIST: "list",
    BaseSymbol.TUPLE: "tuple",
    BaseSymbol.MAP: "dict",
    BaseSymbol.FUNCTION: "Callable",
    BaseSymbol.PROCESS: "BaseProcess",
    BaseSymbol.REFERENCE: "ReferenceType",
    BaseSymbol.ANY: "Any",
}

# Resolve forward references for models that nest TypeExpr.
BaseType.model_rebuild()
NamedType.model_rebuild()
UnionType.model_rebuild()
