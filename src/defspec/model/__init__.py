# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Declaration model for defspec (type descriptors, functions, clauses, structs)."""

from defspec.model.specs import (
    ClauseSpec,
    Constraint,
    DefinitionFile,
    Expr,
    FunctionSpec,
    ParamMode,
    ParamSpec,
    Pattern,
    StructField,
    StructSpec,
    Visibility,
)
from defspec.model.types import (
    BaseSymbol,
    BaseType,
    ExternalType,
    NamedType,
    SelfType,
    TypeExpr,
    UnionType,
    render_type,
)

__all__ = [
    # Type descriptors
    "BaseSymbol",
    "BaseType",
    "ExternalType",
    "SelfType",
    "NamedType",
    "UnionType",
    "TypeExpr",
    "render_type",
    # Declarations
    "Expr",
    "Pattern",
    "ParamMode",
    "ParamSpec",
    "ClauseSpec",
    "Constraint",
    "Visibility",
    "FunctionSpec",
    "StructField",
    "StructSpec",
    "DefinitionFile",
]
