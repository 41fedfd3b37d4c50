# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Struct schema compilation.

A ``defstruct`` becomes a frozen dataclass whose fields default to their
value module's ``default()``. Its ``new``, ``validate`` and ``update``
operations are ordinary FunctionSpecs compiled by the function compiler and
attached as static methods; their bodies delegate to the helpers in
:mod:`defspec.schema.records`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from defspec.compiler.descriptor import function_spec
from defspec.compiler.emitter import DEFAULT_RUNTIME_ALIAS, DeclarationScope, GeneratedDecl
from defspec.model.specs import FunctionSpec, StructField, StructSpec

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class GeneratedStruct:
    """The generated record type of one StructSpec.

    Attributes:
        name: Name of the record class.
        fields: The declared fields, in order.
        methods: The compiled ``new``, ``validate`` and ``update`` operations.
        runtime: Name the runtime module is bound to in the generated module.
    """

    name: str
    fields: tuple[StructField, ...]
    methods: tuple[GeneratedDecl, ...]
    runtime: str = DEFAULT_RUNTIME_ALIAS

    def render(self) -> str:
        """Render the executable class definition."""
        lines = [f"@{self.runtime}.record", f"class {self.name}:"]
        for f in self.fields:
            lines.append(f"    {f.name}: {f.module}.t = {self.runtime}.field({f.module})")
        if self.fields:
            lines.append("")
        lines.append(f"    __schema__ = {self._schema()}")
        for method in self.methods:
            lines.append("")
            lines.extend(_indent(method.render(self_name=self.name, decorators=("staticmethod",))))
        lines.extend(["", "", f"{self.name}.t = {self.name}"])
        return "\n".join(lines)

    def render_stub(self) -> str:
        """Render the ``.pyi`` declaration of the record class."""
        lines = ["@dataclass(frozen=True)", f"class {self.name}:"]
        lines.extend(f"    {f.name}: {f.module}.t = ..." for f in self.fields)
        lines.append(f"    t: ClassVar[type[{self.name}]]")
        lines.append("    __schema__: ClassVar[tuple[tuple[str, Any], ...]]")
        for method in self.methods:
            lines.extend(_indent(method.render_stub(self_name=self.name, decorators=("staticmethod",))))
        return "\n".join(lines)

    def _schema(self) -> str:
        pairs = [f"({f.name!r}, {f.module})" for f in self.fields]
        if len(pairs) == 1:
            return f"({pairs[0]},)"
        return f"({', '.join(pairs)})"


def compile_struct(struct: StructSpec, *, runtime: str = DEFAULT_RUNTIME_ALIAS) -> GeneratedStruct:
    """Compile a StructSpec into its record class and operations.

    Raises:
        CompileError: If an operation fails to compile.
    """
    scope = DeclarationScope()
    methods = tuple(
        scope.declare(spec, runtime=runtime, self_module=struct.name) for spec in struct_operations(struct, runtime)
    )
    logger.debug("Compiled struct %s with %d field(s)", struct.name, len(struct.fields))
    return GeneratedStruct(name=struct.name, fields=struct.fields, methods=methods, runtime=runtime)


def struct_operations(struct: StructSpec, runtime: str = DEFAULT_RUNTIME_ALIAS) -> list[FunctionSpec]:
    """Return the FunctionSpecs of ``new``, ``validate`` and ``update`` for *struct*."""
    name = struct.name
    mapping = _param("mapping", name)
    record = _param("record", name)
    other = _param("other", name)
    result = f"{runtime}.Result[Self]"
    return [
        function_spec(
            "new",
            [(mapping, "Any")],
            "Self",
            f"{runtime}.struct_new({name}, {mapping})",
        ),
        function_spec(
            "validate",
            [(mapping, "Any")],
            result,
            [
                f"({mapping}) when {runtime}.is_mapping({mapping}) -> {runtime}.struct_validate({name}, {mapping})",
                f"({other}) -> {runtime}.Err({runtime}.MalformedInput({name!r}, {other}))",
            ],
        ),
        function_spec(
            "update",
            [(record, "Self"), (mapping, "Any")],
            result,
            [
                f"({name}() as {record}, {mapping}) when {runtime}.is_mapping({mapping})"
                f" -> {runtime}.struct_update({name}, {record}, {mapping})",
            ],
        ),
    ]


# ################
# Implementation
# ################


def _param(preferred: str, struct_name: str) -> str:
    """Return a parameter name that does not hide the record class."""
    return preferred if preferred != struct_name else f"{preferred}_"


def _indent(text: str) -> list[str]:
    return [f"    {line}" if line else "" for line in text.splitlines()]
