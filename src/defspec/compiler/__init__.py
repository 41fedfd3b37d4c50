# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiler pipeline for function definitions: descriptors, guards, validation, clauses, emission and structs."""

from defspec.compiler.artifact import ARTIFACT_SUFFIX, Manifest, deserialize, read_artifact, serialize, write_artifact
from defspec.compiler.build import CompilerError, compile_file, compile_files
from defspec.compiler.descriptor import DescriptorError, function_spec, parse_param, parse_type
from defspec.compiler.emitter import DeclarationScope, ForwardDecl, GeneratedDecl, SignatureDecl, emit
from defspec.compiler.errors import (
    ClauseArityMismatch,
    ClauseGuardConflict,
    ClauseValidationConflict,
    CompileError,
    DuplicateSignature,
    ParseError,
    ShadowedModuleReference,
    UnsupportedGuardType,
    UnsupportedValidationType,
)
from defspec.compiler.module import (
    DefinitionError,
    GeneratedModule,
    compile_definitions,
    compile_source,
    load_source,
)
from defspec.compiler.parser import parse
from defspec.compiler.semantic_analysis import SemanticError, analyze
from defspec.compiler.structs import GeneratedStruct, compile_struct, struct_operations

__all__ = [
    "parse",
    "ParseError",
    "DescriptorError",
    "parse_param",
    "parse_type",
    "function_spec",
    "analyze",
    "SemanticError",
    "emit",
    "DeclarationScope",
    "SignatureDecl",
    "ForwardDecl",
    "GeneratedDecl",
    "compile_struct",
    "struct_operations",
    "GeneratedStruct",
    "CompileError",
    "UnsupportedGuardType",
    "UnsupportedValidationType",
    "ClauseGuardConflict",
    "ClauseValidationConflict",
    "ClauseArityMismatch",
    "DuplicateSignature",
    "ShadowedModuleReference",
    "compile_definitions",
    "compile_source",
    "load_source",
    "GeneratedModule",
    "DefinitionError",
    "serialize",
    "deserialize",
    "write_artifact",
    "read_artifact",
    "Manifest",
    "ARTIFACT_SUFFIX",
    "compile_file",
    "compile_files",
    "CompilerError",
]
