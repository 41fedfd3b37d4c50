# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Assembly of generated modules.

Combines the generated functions and records of one definition file into a
Python module, its ``.pyi`` stub and its signature manifest, and loads
generated modules directly from definition source.
"""

from __future__ import annotations

import ast
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from defspec.compiler.artifact import FieldEntry, Manifest, ParamEntry, SignatureEntry, StructEntry
from defspec.compiler.binding import collect_identifiers, fresh_name
from defspec.compiler.emitter import DeclarationScope, GeneratedDecl, spec_fragments
from defspec.compiler.parser import parse
from defspec.compiler.semantic_analysis import SemanticError, analyze
from defspec.compiler.structs import GeneratedStruct, compile_struct, struct_operations
from defspec.model.specs import DefinitionFile, FunctionSpec, StructSpec, Visibility
from defspec.model.types import render_type

logger = logging.getLogger(__name__)

RUNTIME_MODULE = "defspec.runtime"

# ###############
# Public Interface
# ###############


class DefinitionError(Exception):
    """Raised when a definition file fails semantic analysis.

    Attributes:
        errors: The semantic errors found, in detection order.
    """

    def __init__(self, errors: list[SemanticError]) -> None:
        super().__init__("\n".join(e.message for e in errors))
        self.errors = errors


@dataclass(frozen=True)
class GeneratedModule:
    """The compiled form of one definition file.

    Attributes:
        source_label: Where the definitions came from, for generated headers.
        definition: The definitions the module was compiled from.
        items: One generated function or record per declaration, in order.
        runtime: Name the runtime module is bound to in the generated module.
    """

    source_label: str
    definition: DefinitionFile
    items: tuple[GeneratedDecl | GeneratedStruct, ...]
    runtime: str

    @property
    def exports(self) -> list[str]:
        """Names listed in ``__all__``: public functions and all records."""
        return [
            item.name
            for item in self.items
            if isinstance(item, GeneratedStruct) or item.visibility == Visibility.PUBLIC
        ]

    def render_source(self) -> str:
        """Render the executable Python module."""
        lines = [
            f"# Generated by defspec from {self.source_label}. Do not edit.",
            "from __future__ import annotations",
            "",
            f"import {RUNTIME_MODULE} as {self.runtime}",
        ]
        lines.extend(self.definition.imports)
        lines.extend(["", f"__all__ = {self.exports!r}"])
        for item in self.items:
            lines.extend(["", "", item.render()])
        return "\n".join(lines) + "\n"

    def render_stub(self) -> str:
        """Render the ``.pyi`` stub declaring every generated signature."""
        lines = [
            f"# Generated by defspec from {self.source_label}. Do not edit.",
            "from collections.abc import Callable",
            "from dataclasses import dataclass",
            "from multiprocessing.process import BaseProcess",
            "from typing import Any, ClassVar, Self",
            "from weakref import ReferenceType",
            "",
            f"import {RUNTIME_MODULE} as {self.runtime}",
        ]
        lines.extend(self.definition.imports)
        lines.extend(["", f"__all__ = {self.exports!r}"])
        for item in self.items:
            lines.extend(["", "", item.render_stub()])
        return "\n".join(lines) + "\n"

    def manifest(self) -> Manifest:
        """Describe the generated signatures for documentation tooling."""
        result = Manifest(source=self.source_label)
        for declaration, item in zip(self.definition.declarations, self.items):
            if isinstance(declaration, FunctionSpec) and isinstance(item, GeneratedDecl):
                result.functions.append(_signature_entry(declaration, item))
            elif isinstance(declaration, StructSpec) and isinstance(item, GeneratedStruct):
                operations = struct_operations(declaration, self.runtime)
                result.structs.append(
                    StructEntry(
                        name=declaration.name,
                        fields=[FieldEntry(name=f.name, module=f.module) for f in declaration.fields],
                        operations=[
                            _signature_entry(spec, decl, self_name=declaration.name)
                            for spec, decl in zip(operations, item.methods)
                        ],
                    )
                )
        return result


def compile_definitions(definition_file: DefinitionFile, source_label: str = "<string>") -> GeneratedModule:
    """Compile every declaration of a parsed definition file.

    The runtime alias is chosen so that it differs from every identifier in
    the file.

    Raises:
        CompileError: If a declaration fails to compile, including
            :class:`~defspec.compiler.errors.DuplicateSignature` for a name
            declared twice.
    """
    runtime = fresh_name("defspec_rt", _identifiers(definition_file))
    scope = DeclarationScope()
    items: list[GeneratedDecl | GeneratedStruct] = []
    for declaration in definition_file.declarations:
        if isinstance(declaration, FunctionSpec):
            items.append(scope.declare(declaration, runtime=runtime))
        else:
            items.append(compile_struct(declaration, runtime=runtime))
    logger.debug("Compiled %d declaration(s) from %s", len(items), source_label)
    return GeneratedModule(source_label=source_label, definition=definition_file, items=tuple(items), runtime=runtime)


def compile_source(text: str, source_label: str = "<string>") -> GeneratedModule:
    """Parse, analyze and compile definition source text.

    Raises:
        ParseError: If the text is syntactically invalid.
        DefinitionError: If semantic analysis reports errors.
        CompileError: If a declaration fails to compile.
    """
    definition_file = parse(text)
    errors = analyze(definition_file)
    if errors:
        raise DefinitionError(errors)
    return compile_definitions(definition_file, source_label)


def load_source(
    text: str,
    namespace: dict[str, Any] | None = None,
    *,
    source_label: str = "<defspec>",
) -> dict[str, Any]:
    """Compile definition source text and execute the generated module.

    Args:
        text: Definition source text.
        namespace: Globals to execute the module in. Names it already holds
            (such as value modules) are visible to the generated code.
        source_label: Filename reported in tracebacks.

    Returns:
        The namespace, populated with the generated functions and records.
    """
    module = compile_source(text, source_label)
    globals_ = namespace if namespace is not None else {}
    globals_.setdefault("__name__", "defspec_generated")
    code = compile(module.render_source(), source_label, "exec")
    exec(code, globals_)
    return globals_


# ################
# Implementation
# ################


def _identifiers(definition_file: DefinitionFile) -> set[str]:
    """Every identifier used anywhere in *definition_file*."""
    taken = collect_identifiers(_import_trees(definition_file.imports))
    for declaration in definition_file.declarations:
        taken.add(declaration.name)
        if isinstance(declaration, FunctionSpec):
            taken.update(p.name for p in declaration.params)
            taken.update(collect_identifiers(spec_fragments(declaration)))
        else:
            taken.update(f.module.split(".")[0] for f in declaration.fields)
    return taken


def _import_trees(imports: list[str]) -> Iterator[ast.AST]:
    for line in imports:
        try:
            yield ast.parse(line)
        except SyntaxError:
            # Reported by semantic analysis.
            continue


def _signature_entry(spec: FunctionSpec, decl: GeneratedDecl, self_name: str | None = None) -> SignatureEntry:
    return SignatureEntry(
        name=spec.name,
        visibility=spec.visibility.value,
        params=[
            ParamEntry(
                name=param.name,
                type=render_type(param.type, self_name),
                default=default,
                mode=param.mode.value,
            )
            for param, default in zip(spec.params, decl.forward.defaults)
        ],
        returns=decl.signature.returns(self_name),
        constraints={c.name: render_type(c.type, self_name) for c in spec.constraints},
        implementations=len(decl.implementations),
        stub=decl.signature.render(self_name),
    )
