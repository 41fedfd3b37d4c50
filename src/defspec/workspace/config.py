# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the defspec workspace configuration file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

# ###############
# Public Interface
# ###############

WORKSPACE_FILE = ".defspec-workspace.yaml"


class WorkspaceConfigError(Exception):
    """Raised when a workspace configuration file is invalid or cannot be loaded."""


@dataclass
class WorkspaceConfig:
    """The parsed configuration for a defspec workspace.

    Attributes:
        build_directory: Relative path (from the workspace root) for generated modules.
        source_directories: Relative paths searched for .dfn files. Defaults
            to the workspace root.
        emit_stubs: Whether the build writes ``.pyi`` stubs.
        emit_manifest: Whether the build writes JSON signature manifests.
    """

    build_directory: str
    source_directories: list[str] = field(default_factory=lambda: ["."])
    emit_stubs: bool = True
    emit_manifest: bool = True


def load_workspace_config(path: Path) -> WorkspaceConfig:
    """Load and parse a defspec workspace configuration file.

    Args:
        path: Path to the `.defspec-workspace.yaml` file.

    Returns:
        A WorkspaceConfig instance populated from the file.

    Raises:
        WorkspaceConfigError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise WorkspaceConfigError(f"Workspace config file not found: {path}") from None
    except OSError as exc:
        raise WorkspaceConfigError(f"Cannot read workspace config file: {exc}") from exc

    return parse_workspace_config(text, source_label=str(path))


def parse_workspace_config(text: str, source_label: str = "<string>") -> WorkspaceConfig:
    """Parse workspace config YAML text into a WorkspaceConfig.

    Args:
        text: Raw YAML content.
        source_label: Human-readable label used in error messages (e.g. the file path).

    Raises:
        WorkspaceConfigError: If the YAML is invalid or required fields are missing.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise WorkspaceConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if not isinstance(data, dict):
        raise WorkspaceConfigError(f"{source_label}: workspace config must be a YAML mapping")

    config = WorkspaceConfig(build_directory=_require_string(data, "build-directory", source_label))

    if "source-directories" in data:
        raw_dirs = data["source-directories"]
        if not isinstance(raw_dirs, list) or not all(isinstance(d, str) for d in raw_dirs):
            raise WorkspaceConfigError(f"{source_label}: 'source-directories' must be a list of strings")
        if not raw_dirs:
            raise WorkspaceConfigError(f"{source_label}: 'source-directories' must not be empty")
        config.source_directories = raw_dirs

    config.emit_stubs = _optional_bool(data, "emit-stubs", source_label, default=True)
    config.emit_manifest = _optional_bool(data, "emit-manifest", source_label, default=True)
    return config


# ################
# Implementation
# ################


def _require_string(mapping: dict[str, object], key: str, source_label: str) -> str:
    """Extract a required string field from a mapping, raising WorkspaceConfigError if missing."""
    if key not in mapping:
        raise WorkspaceConfigError(f"{source_label}: missing required field '{key}'")
    value = mapping[key]
    if not isinstance(value, str):
        raise WorkspaceConfigError(f"{source_label}: '{key}' must be a string")
    return value


def _optional_bool(mapping: dict[str, object], key: str, source_label: str, *, default: bool) -> bool:
    if key not in mapping:
        return default
    value = mapping[key]
    if not isinstance(value, bool):
        raise WorkspaceConfigError(f"{source_label}: '{key}' must be true or false")
    return value
