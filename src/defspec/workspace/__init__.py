# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Workspace configuration handling for defspec."""

from defspec.workspace.config import (
    WORKSPACE_FILE,
    WorkspaceConfig,
    WorkspaceConfigError,
    load_workspace_config,
    parse_workspace_config,
)

__all__ = [
    "WORKSPACE_FILE",
    "WorkspaceConfig",
    "WorkspaceConfigError",
    "load_workspace_config",
    "parse_workspace_config",
]
