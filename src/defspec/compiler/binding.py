# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Hygienic name binding for generated functions.

Guards, validation statements and the user-written body of a function are
produced by different parts of the compiler but end up in one Python scope.
A :class:`BindingContext` is the single scope table they all go through:
every reference to a parameter is built from the table, and every name the
compiler introduces on its own comes from :meth:`BindingContext.fresh`, which
never returns an identifier that occurs anywhere in the user's fragments.
"""

from __future__ import annotations

import ast
import copy
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from defspec.model.specs import ParamSpec

N = TypeVar("N", bound=ast.AST)

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class Binding:
    """The binding of one parameter.

    Attributes:
        index: Position of the parameter in the declaration.
        name: The local name the parameter is bound to in the generated function.
    """

    index: int
    name: str


class BindingContext:
    """Scope table shared by every fragment of one generated function."""

    def __init__(
        self,
        params: Sequence[ParamSpec],
        fragments: Iterable[ast.AST] = (),
        *,
        reserved: Iterable[str] = (),
    ) -> None:
        fragments = list(fragments)
        self._bindings: dict[str, Binding] = {}
        for index, param in enumerate(params):
            self._bindings.setdefault(param.name, Binding(index, param.name))
        self._taken: set[str] = set(self._bindings) | set(reserved) | collect_identifiers(fragments)
        self._assigned: set[str] = collect_assigned_names(fragments)

    @property
    def bindings(self) -> list[Binding]:
        """All parameter bindings in declaration order."""
        return sorted(self._bindings.values(), key=lambda b: b.index)

    def is_bound(self, name: str) -> bool:
        """Return True if *name* is a parameter of the function."""
        return name in self._bindings

    def is_assigned(self, name: str) -> bool:
        """Return True if the user's fragments bind *name* in the function's own scope."""
        return name in self._assigned

    def load(self, name: str) -> ast.Name:
        """Return a fresh node reading the parameter called *name*."""
        return ast.Name(id=self._bindings[name].name, ctx=ast.Load())

    def store(self, name: str) -> ast.Name:
        """Return a fresh node rebinding the parameter called *name*."""
        return ast.Name(id=self._bindings[name].name, ctx=ast.Store())

    def arguments(self) -> ast.Tuple:
        """Return a tuple expression of all parameters, in declaration order."""
        return ast.Tuple(elts=[self.load(b.name) for b in self.bindings], ctx=ast.Load())

    def fresh(self, hint: str) -> str:
        """Return a new identifier, distinct from every name seen so far."""
        name = fresh_name(hint, self._taken)
        self._taken.add(name)
        return name

    def adopt(self, node: N) -> N:
        """Return a copy of a user fragment whose parameter references go through this table."""
        return _Rebinder(self).visit(copy.deepcopy(node))


def collect_identifiers(nodes: Iterable[ast.AST]) -> set[str]:
    """Return every identifier bound or referenced anywhere in *nodes*."""
    names: set[str] = set()
    for root in nodes:
        for node in ast.walk(root):
            if isinstance(node, ast.Name):
                names.add(node.id)
            elif isinstance(node, ast.arg):
                names.add(node.arg)
            elif isinstance(node, (ast.MatchAs, ast.MatchStar)) and node.name:
                names.add(node.name)
            elif isinstance(node, ast.MatchMapping) and node.rest:
                names.add(node.rest)
            elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
                names.add(node.name)
            elif isinstance(node, ast.alias):
                names.add((node.asname or node.name).split(".")[0])
    return names


def collect_assigned_names(nodes: Iterable[ast.AST]) -> set[str]:
    """Return every name that *nodes* bind in the scope they run in.

    Bodies of nested functions, lambdas and classes are skipped since their
    assignments are local to them; the names of nested definitions count.
    """
    collector = _AssignmentCollector()
    for root in nodes:
        collector.visit(root)
    return collector.names


def fresh_name(hint: str, taken: set[str]) -> str:
    """Return ``_hint`` or the first ``_hint_N`` not in *taken*."""
    candidate = f"_{hint}"
    counter = 1
    while candidate in taken:
        candidate = f"_{hint}_{counter}"
        counter += 1
    return candidate


# ################
# Implementation
# ################


class _AssignmentCollector(ast.NodeVisitor):
    def __init__(self) -> None:
        self.names: set[str] = set()

    def visit_Name(self, node: ast.Name) -> None:
        if isinstance(node.ctx, (ast.Store, ast.Del)):
            self.names.add(node.id)

    def _visit_definition(self, node: ast.FunctionDef | ast.AsyncFunctionDef | ast.ClassDef) -> None:
        self.names.add(node.name)
        for decorator in node.decorator_list:
            self.visit(decorator)

    visit_FunctionDef = _visit_definition
    visit_AsyncFunctionDef = _visit_definition
    visit_ClassDef = _visit_definition

    def visit_Lambda(self, node: ast.Lambda) -> None:
        for default in [*node.args.defaults, *node.args.kw_defaults]:
            if default is not None:
                self.visit(default)

    def visit_alias(self, node: ast.alias) -> None:
        self.names.add((node.asname or node.name).split(".")[0])

    def visit_MatchAs(self, node: ast.MatchAs) -> None:
        if node.name:
            self.names.add(node.name)
        self.generic_visit(node)

    def visit_MatchStar(self, node: ast.MatchStar) -> None:
        if node.name:
            self.names.add(node.name)

    def visit_MatchMapping(self, node: ast.MatchMapping) -> None:
        if node.rest:
            self.names.add(node.rest)
        self.generic_visit(node)

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        if node.name:
            self.names.add(node.name)
        self.generic_visit(node)


class _Rebinder(ast.NodeTransformer):
    """Replaces parameter references with nodes built by the binding context."""

    def __init__(self, context: BindingContext) -> None:
        self._context = context

    def visit_Name(self, node: ast.Name) -> ast.AST:
        if not self._context.is_bound(node.id):
            return node
        if isinstance(node.ctx, ast.Store):
            replacement = self._context.store(node.id)
        elif isinstance(node.ctx, ast.Load):
            replacement = self._context.load(node.id)
        else:
            return node
        return ast.copy_location(replacement, node)
