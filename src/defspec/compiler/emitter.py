# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Declaration emission: one FunctionSpec to its generated declarations.

Every function yields three artifacts:

* a :class:`SignatureDecl` (parameter types, return type and generic
  constraints) documenting the contract,
* a :class:`ForwardDecl` (parameter names and defaults) fixing the arity,
* one or more :class:`~defspec.compiler.clauses.Implementation` alternatives.

Python has a single ``def`` per name, so the executable rendering fuses the
three: the header carries the forward declaration annotated with the
signature, and the body dispatches over the implementations with ``match``.
The signature on its own is rendered into ``.pyi`` stubs.
"""

from __future__ import annotations

import ast
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from defspec.compiler.binding import BindingContext
from defspec.compiler.clauses import Implementation, expand
from defspec.compiler.errors import DuplicateSignature
from defspec.model.specs import Constraint, FunctionSpec, Visibility
from defspec.model.types import BaseSymbol, BaseType, ExternalType, TypeExpr, render_type

logger = logging.getLogger(__name__)

DEFAULT_RUNTIME_ALIAS = "_defspec_rt"

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class SignatureDecl:
    """The declared contract of a function. Carries no executable code."""

    name: str
    param_names: tuple[str, ...]
    param_types: tuple[TypeExpr, ...]
    return_type: TypeExpr
    constraints: tuple[Constraint, ...] = ()

    def render(self, self_name: str | None = None) -> str:
        """Render as a stub line: ``def f[a](x: list[a]) -> a: ...``."""
        params = ", ".join(
            f"{name}: {render_type(t, self_name)}" for name, t in zip(self.param_names, self.param_types)
        )
        return f"def {self.name}{self.type_parameters(self_name)}({params}) -> {self.returns(self_name)}: ..."

    def returns(self, self_name: str | None = None) -> str:
        return render_type(self.return_type, self_name)

    def type_parameters(self, self_name: str | None = None) -> str:
        """Render the generic constraints as a type parameter list, or ''."""
        if not self.constraints:
            return ""
        rendered = []
        for constraint in self.constraints:
            if isinstance(constraint.type, BaseType) and constraint.type.symbol == BaseSymbol.ANY:
                rendered.append(constraint.name)
            else:
                rendered.append(f"{constraint.name}: {render_type(constraint.type, self_name)}")
        return f"[{', '.join(rendered)}]"


@dataclass(frozen=True)
class ForwardDecl:
    """Parameter names with their default expressions; fixes arity and defaults."""

    name: str
    param_names: tuple[str, ...]
    defaults: tuple[str | None, ...]

    @property
    def arity(self) -> int:
        return len(self.param_names)

    def render(self) -> str:
        """Render as ``def f(a, b=1): ...``."""
        params = ", ".join(
            name if default is None else f"{name}={default}" for name, default in zip(self.param_names, self.defaults)
        )
        return f"def {self.name}({params}): ..."


@dataclass(frozen=True)
class GeneratedDecl:
    """Everything generated for one FunctionSpec."""

    signature: SignatureDecl
    forward: ForwardDecl
    implementations: tuple[Implementation, ...]
    visibility: Visibility = Visibility.PUBLIC
    runtime: str = DEFAULT_RUNTIME_ALIAS
    subject: str = "_arguments"

    @property
    def name(self) -> str:
        return self.forward.name

    def render(self, self_name: str | None = None, decorators: Sequence[str] = ()) -> str:
        """Render the executable Python function."""
        header = self._header(stub_defaults=False, self_name=self_name)
        body = ast.unparse(ast.Module(body=list(self._body()), type_ignores=[]))
        lines = [f"@{decorator}" for decorator in decorators]
        lines.append(f"{header}:")
        lines.extend(f"    {line}" if line else "" for line in body.splitlines())
        return "\n".join(lines)

    def render_stub(self, self_name: str | None = None, decorators: Sequence[str] = ()) -> str:
        """Render the ``.pyi`` stub: the signature with defaults elided."""
        header = self._header(stub_defaults=True, self_name=self_name)
        lines = [f"@{decorator}" for decorator in decorators]
        lines.append(f"{header}: ...")
        return "\n".join(lines)

    def _header(self, *, stub_defaults: bool, self_name: str | None) -> str:
        params = []
        columns = zip(self.forward.param_names, self.signature.param_types, self.forward.defaults)
        for name, type_expr, default in columns:
            text = f"{name}: {render_type(type_expr, self_name)}"
            if default is not None:
                text += " = ..." if stub_defaults else f" = {default}"
            params.append(text)
        type_params = self.signature.type_parameters(self_name) if stub_defaults else ""
        return f"def {self.name}{type_params}({', '.join(params)}) -> {self.signature.returns(self_name)}"

    def _body(self) -> Iterator[ast.stmt]:
        if len(self.implementations) == 1 and self.implementations[0].is_total:
            yield from self.implementations[0].statements
            return
        yield ast.Assign(
            targets=[ast.Name(id=self.subject, ctx=ast.Store())],
            value=ast.Tuple(elts=[ast.Name(id=n, ctx=ast.Load()) for n in self.forward.param_names], ctx=ast.Load()),
        )
        yield ast.Match(
            subject=ast.Name(id=self.subject, ctx=ast.Load()),
            cases=[
                ast.match_case(
                    pattern=ast.MatchSequence(patterns=list(impl.patterns)),
                    guard=impl.guard,
                    body=list(impl.statements),
                )
                for impl in self.implementations
            ],
        )
        yield ast.Raise(
            exc=ast.Call(
                func=ast.Attribute(
                    value=ast.Name(id=self.runtime, ctx=ast.Load()), attr="NoClauseMatch", ctx=ast.Load()
                ),
                args=[ast.Constant(value=self.name), ast.Name(id=self.subject, ctx=ast.Load())],
                keywords=[],
            ),
            cause=None,
        )


def emit(
    spec: FunctionSpec,
    *,
    runtime: str = DEFAULT_RUNTIME_ALIAS,
    self_module: str | None = None,
) -> GeneratedDecl:
    """Compile one FunctionSpec into its generated declarations.

    Args:
        spec: The function to compile.
        runtime: Name the runtime module is bound to in the generated module.
        self_module: The enclosing value module that ``Self`` refers to, if any.

    Raises:
        CompileError: Any of the compile-time errors of
            :mod:`defspec.compiler.errors`.
    """
    reserved = {runtime, spec.name} | {
        p.type.module.split(".")[0] for p in spec.params if isinstance(p.type, ExternalType)
    }
    if self_module is not None:
        reserved.add(self_module.split(".")[0])
    context = BindingContext(spec.params, spec_fragments(spec), reserved=reserved)
    implementations = expand(spec, context, runtime=runtime, self_module=self_module)
    decl = GeneratedDecl(
        signature=SignatureDecl(
            name=spec.name,
            param_names=tuple(p.name for p in spec.params),
            param_types=tuple(p.type for p in spec.params),
            return_type=spec.return_type,
            constraints=spec.constraints,
        ),
        forward=ForwardDecl(
            name=spec.name,
            param_names=tuple(p.name for p in spec.params),
            defaults=tuple(ast.unparse(p.default.expression()) if p.default else None for p in spec.params),
        ),
        implementations=implementations,
        visibility=spec.visibility,
        runtime=runtime,
        subject=context.fresh("arguments"),
    )
    logger.debug("Emitted %s with %d implementation(s)", spec.name, len(implementations))
    return decl


def spec_fragments(spec: FunctionSpec) -> Iterator[ast.AST]:
    """Yield the parsed user-written fragments of *spec*: defaults, patterns, guards, bodies."""
    for param in spec.params:
        if param.default is not None:
            yield param.default.expression()
    if isinstance(spec.body, tuple):
        for clause in spec.body:
            yield from (pattern.tree() for pattern in clause.patterns)
            if clause.guard is not None:
                yield clause.guard.expression()
            yield clause.body.expression()
    else:
        yield from spec.body.statements()


class DeclarationScope:
    """Tracks the declarations of one scope; one declared signature per name."""

    def __init__(self) -> None:
        self._signatures: dict[str, SignatureDecl] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._signatures

    def declare(
        self,
        spec: FunctionSpec,
        *,
        runtime: str = DEFAULT_RUNTIME_ALIAS,
        self_module: str | None = None,
    ) -> GeneratedDecl:
        """Emit *spec* and record its signature.

        Raises:
            DuplicateSignature: If the name is already declared in this scope.
        """
        decl = emit(spec, runtime=runtime, self_module=self_module)
        existing = self._signatures.get(spec.name)
        if existing is not None:
            if existing != decl.signature:
                raise DuplicateSignature(
                    spec.name,
                    f"conflicting signatures: '{existing.render()}' and '{decl.signature.render()}'",
                )
            raise DuplicateSignature(spec.name, "declared more than once in the same scope")
        self._signatures[spec.name] = decl.signature
        return decl
