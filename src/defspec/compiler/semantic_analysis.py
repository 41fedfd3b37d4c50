# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Semantic analysis for parsed definition files.

Checks structural correctness of the parsed model before code generation:
duplicate names, reserved names and identifiers Python cannot bind. Errors
that depend on how a function compiles (unsupported guard types, clause
conflicts, repeated declarations) are raised by the compiler itself.
"""

from __future__ import annotations

import ast
import keyword
from dataclasses import dataclass

from defspec.model.specs import DefinitionFile, FunctionSpec, StructSpec

# ###############
# Public Interface
# ###############

RESERVED_FIELD_NAMES: frozenset[str] = frozenset({"new", "validate", "update", "t", "__schema__"})


@dataclass(frozen=True)
class SemanticError:
    """A structural error detected during semantic analysis.

    Attributes:
        message: Human-readable description of the error.
    """

    message: str


def analyze(definition_file: DefinitionFile) -> list[SemanticError]:
    """Perform semantic analysis on a parsed DefinitionFile.

    Checks performed:
    - Import lines must be Python import statements.
    - Struct names are unique and do not clash with function names.
    - Parameter names are unique within each function.
    - Type variable names are unique within each function's constraints.
    - Parameters with defaults come after all parameters without one.
    - Field names are unique within each struct and are not one of the
      names the struct compiler defines (``new``, ``validate``, ``update``,
      ``t``, ``__schema__``).
    - No declared name is a Python keyword.

    Args:
        definition_file: The parsed file to analyze.

    Returns:
        A list of :class:`SemanticError` instances. An empty list means no
        semantic errors were found.
    """
    errors: list[SemanticError] = []
    errors.extend(_check_imports(definition_file.imports))
    errors.extend(_check_top_level_names(definition_file))
    for function in definition_file.functions:
        errors.extend(_check_function(function))
    for struct in definition_file.structs:
        errors.extend(_check_struct(struct))
    return errors


# ################
# Implementation
# ################


def _check_duplicate_names(names: list[str], fmt: str) -> list[SemanticError]:
    """Return a SemanticError for each name that appears more than once.

    Only one error per unique duplicate name is emitted. *fmt* must contain a
    single ``{}`` placeholder that will be filled with the duplicate name.
    """
    seen: set[str] = set()
    reported: set[str] = set()
    errors: list[SemanticError] = []
    for name in names:
        if name in seen:
            if name not in reported:
                errors.append(SemanticError(fmt.format(name)))
                reported.add(name)
        else:
            seen.add(name)
    return errors


def _check_keywords(names: list[str], fmt: str) -> list[SemanticError]:
    return [SemanticError(fmt.format(name)) for name in names if keyword.iskeyword(name)]


def _check_imports(imports: list[str]) -> list[SemanticError]:
    errors: list[SemanticError] = []
    for line in imports:
        try:
            body = ast.parse(line).body
        except SyntaxError:
            errors.append(SemanticError(f"Invalid import statement '{line}'"))
            continue
        if len(body) != 1 or not isinstance(body[0], (ast.Import, ast.ImportFrom)):
            errors.append(SemanticError(f"Invalid import statement '{line}'"))
    return errors


def _check_top_level_names(definition_file: DefinitionFile) -> list[SemanticError]:
    errors = _check_duplicate_names(
        [s.name for s in definition_file.structs],
        "Duplicate struct name '{}'",
    )
    function_names = {f.name for f in definition_file.functions}
    for name in sorted(function_names & {s.name for s in definition_file.structs}):
        errors.append(SemanticError(f"Name '{name}' is defined as both a function and a struct"))
    errors.extend(
        _check_keywords([f.name for f in definition_file.functions], "Function name '{}' is a Python keyword")
    )
    errors.extend(_check_keywords([s.name for s in definition_file.structs], "Struct name '{}' is a Python keyword"))
    return errors


def _check_function(function: FunctionSpec) -> list[SemanticError]:
    params = [p.name for p in function.params]
    variables = [c.name for c in function.constraints]
    errors = _check_duplicate_names(params, f"Duplicate parameter name '{{}}' in function '{function.name}'")
    errors.extend(
        _check_duplicate_names(variables, f"Duplicate type variable '{{}}' in function '{function.name}'")
    )
    errors.extend(_check_keywords(params, f"Parameter '{{}}' of function '{function.name}' is a Python keyword"))
    errors.extend(
        _check_keywords(variables, f"Type variable '{{}}' of function '{function.name}' is a Python keyword")
    )
    errors.extend(_check_default_order(function))
    return errors


def _check_default_order(function: FunctionSpec) -> list[SemanticError]:
    """Report each parameter without a default that follows one with a default."""
    errors: list[SemanticError] = []
    defaulted: str | None = None
    for param in function.params:
        if param.default is not None:
            defaulted = param.name
        elif defaulted is not None:
            errors.append(
                SemanticError(
                    f"Parameter '{param.name}' of function '{function.name}' has no default "
                    f"but follows parameter '{defaulted}', which has one"
                )
            )
    return errors


def _check_struct(struct: StructSpec) -> list[SemanticError]:
    names = [f.name for f in struct.fields]
    errors = _check_duplicate_names(names, f"Duplicate field name '{{}}' in struct '{struct.name}'")
    errors.extend(
        SemanticError(f"Field name '{name}' in struct '{struct.name}' is reserved")
        for name in names
        if name in RESERVED_FIELD_NAMES
    )
    errors.extend(_check_keywords(names, f"Field '{{}}' of struct '{struct.name}' is a Python keyword"))
    return errors
