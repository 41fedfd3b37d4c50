# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Incremental build of .dfn definition files.

Implements a CMake-style cache: a generated module is reused when it already
exists and is strictly newer than its definition file. Outputs mirror the
source layout below the build directory::

    <source_root>/billing/amounts.dfn
    -> <build_dir>/billing/amounts.py
    -> <build_dir>/billing/amounts.pyi             (emit_stubs)
    -> <build_dir>/billing/amounts.defspec.json    (emit_manifest)
"""

from __future__ import annotations

import logging
from pathlib import Path

from defspec.compiler.artifact import ARTIFACT_SUFFIX, write_artifact
from defspec.compiler.errors import CompileError, ParseError
from defspec.compiler.module import DefinitionError, GeneratedModule, compile_source

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".dfn"

# ###############
# Public Interface
# ###############


class CompilerError(Exception):
    """Raised when the build encounters any unrecoverable error.

    Covers unreadable sources, parse errors, semantic errors and compile
    errors, each reported with the offending file.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


def compile_files(
    files: list[Path],
    build_dir: Path,
    source_root: Path,
    *,
    emit_stubs: bool = True,
    emit_manifest: bool = True,
) -> dict[str, Path]:
    """Compile a list of .dfn files into Python modules.

    For each file, the compiler:
    1. Checks whether up-to-date outputs already exist (cache hit).
    2. Otherwise parses, analyzes and compiles the file.
    3. Writes the module, and optionally its stub and manifest, to
       *build_dir* (mirroring the source layout).

    Args:
        files: Paths to the .dfn source files to compile.
        build_dir: Root directory for generated modules.
        source_root: Directory the source layout is taken relative to.
        emit_stubs: Also write a ``.pyi`` stub next to each module.
        emit_manifest: Also write a JSON signature manifest next to each module.

    Returns:
        A mapping from canonical keys (e.g. ``"billing/amounts"``) to the
        generated module paths.

    Raises:
        CompilerError: On any compilation failure.
    """
    outputs: dict[str, Path] = {}
    for source_file in files:
        key = _rel_key(source_file, source_root)
        targets = _targets(key, build_dir, emit_stubs=emit_stubs, emit_manifest=emit_manifest)
        if all(_is_up_to_date(source_file, target) for target in targets):
            logger.debug("Up to date: %s", source_file)
        else:
            _write(compile_file(source_file), targets)
            logger.info("Compiled %s -> %s", source_file, targets[0])
        outputs[key] = targets[0]
    return outputs


def compile_file(source_file: Path) -> GeneratedModule:
    """Read and compile one .dfn file without writing anything.

    Raises:
        CompilerError: If the file cannot be read or fails to compile.
    """
    try:
        source_text = source_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise CompilerError(f"Cannot read source file '{source_file}': {exc}") from exc

    try:
        return compile_source(source_text, source_label=source_file.name)
    except ParseError as exc:
        raise CompilerError(f"Parse error in '{source_file}': {exc}") from exc
    except DefinitionError as exc:
        error_lines = "\n".join(f"  {e.message}" for e in exc.errors)
        raise CompilerError(f"Semantic errors in '{source_file}':\n{error_lines}") from exc
    except CompileError as exc:
        raise CompilerError(f"Compile error in '{source_file}': {exc}") from exc


# ################
# Implementation
# ################


def _rel_key(source_file: Path, source_root: Path) -> str:
    """Return the canonical key for a source file (relative path without extension).

    Raises:
        CompilerError: If the file is not under *source_root*.
    """
    try:
        rel = source_file.relative_to(source_root)
    except ValueError:
        raise CompilerError(f"Source file '{source_file}' is not under '{source_root}'") from None
    return str(rel.with_suffix("")).replace("\\", "/")


def _targets(key: str, build_dir: Path, *, emit_stubs: bool, emit_manifest: bool) -> list[Path]:
    """Return the output paths for *key*; the generated module always comes first."""
    base = build_dir.joinpath(*key.split("/"))
    targets = [base.with_name(base.name + ".py")]
    if emit_stubs:
        targets.append(base.with_name(base.name + ".pyi"))
    if emit_manifest:
        targets.append(base.with_name(base.name + ARTIFACT_SUFFIX))
    return targets


def _is_up_to_date(source_file: Path, target: Path) -> bool:
    """Return True if *target* exists and is strictly newer than *source_file*."""
    if not target.exists():
        return False
    return target.stat().st_mtime > source_file.stat().st_mtime


def _write(module: GeneratedModule, targets: list[Path]) -> None:
    targets[0].parent.mkdir(parents=True, exist_ok=True)
    for target in targets:
        if target.name.endswith(ARTIFACT_SUFFIX):
            write_artifact(module.manifest(), target)
        elif target.suffix == ".pyi":
            target.write_text(module.render_stub(), encoding="utf-8")
        else:
            target.write_text(module.render_source(), encoding="utf-8")
