# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Record schemas: the runtime helpers that compiled structs delegate to."""

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

__all__ = [
    "FieldError",
    "MalformedInput",
    "field",
    "field_default",
    "is_mapping",
    "record",
    "struct_new",
    "struct_update",
    "struct_validate",
]
