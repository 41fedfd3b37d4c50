# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the defspec command-line interface."""

import argparse
import logging
import sys
from pathlib import Path

from yachalk import chalk

from defspec.compiler.artifact import serialize
from defspec.compiler.build import SOURCE_SUFFIX, CompilerError, compile_file, compile_files
from defspec.workspace.config import (
    WORKSPACE_FILE,
    WorkspaceConfig,
    WorkspaceConfigError,
    load_workspace_config,
)

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the defspec CLI."""
    parser = argparse.ArgumentParser(
        prog="defspec",
        description="defspec: compile declarative function definitions into Python modules",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log compiler activity to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # init subcommand
    init_parser = subparsers.add_parser(
        "init",
        help="Initialize a new defspec workspace",
        description="Create a workspace configuration file in a directory.",
    )
    init_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory to initialize the workspace in (default: current directory)",
    )

    # check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Check all definition files of a workspace",
        description="Parse, analyze and compile every .dfn file without writing output.",
    )
    check_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory containing the defspec workspace (default: current directory)",
    )

    # build subcommand
    build_parser = subparsers.add_parser(
        "build",
        help="Generate Python modules for a workspace",
        description="Compile every .dfn file of a workspace into the build directory.",
    )
    build_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory containing the defspec workspace (default: current directory)",
    )

    # emit subcommand
    emit_parser = subparsers.add_parser(
        "emit",
        help="Print the generated code of one definition file",
        description="Compile a single .dfn file and print the result to stdout.",
    )
    emit_parser.add_argument("file", help="The .dfn file to compile")
    emit_parser.add_argument(
        "--format",
        choices=["module", "stub", "manifest"],
        default="module",
        help="What to print (default: module)",
    )

    args = parser.parse_args()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    sys.exit(_dispatch(args))


# ################
# Implementation
# ################

_DEFAULT_BUILD_DIR = "generated"


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "init":
        return _cmd_init(args)
    if args.command == "check":
        return _cmd_check(args)
    if args.command == "build":
        return _cmd_build(args)
    if args.command == "emit":
        return _cmd_emit(args)
    return 0


def _error(message: str) -> None:
    print(chalk.red(f"Error: {message}"), file=sys.stderr)


def _cmd_init(args: argparse.Namespace) -> int:
    """Handle the init subcommand."""
    directory = Path(args.directory).resolve()

    if not directory.exists():
        _error(f"directory '{directory}' does not exist.")
        return 1

    workspace_file = directory / WORKSPACE_FILE

    if workspace_file.exists():
        _error(f"workspace already exists at '{workspace_file}'.")
        return 1

    workspace_content = (
        "# defspec workspace configuration\n"
        "# This file marks the root of a defspec workspace.\n"
        "\n"
        f"build-directory: {_DEFAULT_BUILD_DIR}\n"
        "source-directories:\n"
        "  - .\n"
        "emit-stubs: true\n"
        "emit-manifest: true\n"
    )
    workspace_file.write_text(workspace_content, encoding="utf-8")
    print(chalk.green(f"Initialized defspec workspace at '{workspace_file}'."))
    return 0


def _load_workspace(directory_arg: str) -> tuple[Path, WorkspaceConfig] | None:
    """Resolve the workspace directory and load its configuration, reporting errors."""
    directory = Path(directory_arg).resolve()

    if not directory.exists():
        _error(f"directory '{directory}' does not exist.")
        return None

    workspace_file = directory / WORKSPACE_FILE
    if not workspace_file.exists():
        _error(f"no defspec workspace found at '{directory}'. Run 'defspec init' to initialize a workspace.")
        return None

    try:
        config = load_workspace_config(workspace_file)
    except WorkspaceConfigError as exc:
        _error(str(exc))
        return None
    return directory, config


def _source_files(directory: Path, config: WorkspaceConfig) -> list[tuple[Path, list[Path]]]:
    """Return each source directory with the .dfn files found below it."""
    build_dir = directory / config.build_directory
    found: list[tuple[Path, list[Path]]] = []
    for source_dir in config.source_directories:
        root = (directory / source_dir).resolve()
        files = sorted(f for f in root.rglob(f"*{SOURCE_SUFFIX}") if build_dir not in f.parents)
        if files:
            found.append((root, files))
    return found


def _cmd_check(args: argparse.Namespace) -> int:
    """Handle the check subcommand."""
    loaded = _load_workspace(args.directory)
    if loaded is None:
        return 1
    directory, config = loaded

    files = [f for _, group in _source_files(directory, config) for f in group]
    if not files:
        print(f"No {SOURCE_SUFFIX} files found in the workspace.")
        return 0

    print(f"Checking {len(files)} definition file(s)...")
    has_errors = False
    for source_file in files:
        try:
            compile_file(source_file)
        except CompilerError as exc:
            _error(str(exc))
            has_errors = True

    if has_errors:
        return 1

    print(chalk.green("No issues found."))
    return 0


def _cmd_build(args: argparse.Namespace) -> int:
    """Handle the build subcommand."""
    loaded = _load_workspace(args.directory)
    if loaded is None:
        return 1
    directory, config = loaded

    groups = _source_files(directory, config)
    if not groups:
        print(f"No {SOURCE_SUFFIX} files found in the workspace.")
        return 0

    build_dir = directory / config.build_directory
    written = 0
    for root, files in groups:
        try:
            outputs = compile_files(
                files,
                build_dir,
                root,
                emit_stubs=config.emit_stubs,
                emit_manifest=config.emit_manifest,
            )
        except CompilerError as exc:
            _error(str(exc))
            return 1
        written += len(outputs)

    print(chalk.green(f"Built {written} module(s) into '{build_dir}'."))
    return 0


def _cmd_emit(args: argparse.Namespace) -> int:
    """Handle the emit subcommand."""
    source_file = Path(args.file)
    if not source_file.is_file():
        _error(f"file '{source_file}' does not exist.")
        return 1

    try:
        module = compile_file(source_file)
    except CompilerError as exc:
        _error(str(exc))
        return 1

    if args.format == "stub":
        sys.stdout.write(module.render_stub())
    elif args.format == "manifest":
        print(serialize(module.manifest()))
    else:
        sys.stdout.write(module.render_source())
    return 0
