# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Signature manifests of compiled definition files.

Next to each generated module the build writes a compact JSON manifest that
lists the declared signatures, so documentation tools can read the contract
of a module without importing it. The format is versioned so future schema
changes can be detected.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# ###############
# Public Interface
# ###############

ARTIFACT_FORMAT_VERSION = "1"
ARTIFACT_SUFFIX = ".defspec.json"


class ParamEntry(BaseModel):
    """One parameter of a documented signature."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    default: str | None = None
    mode: str = "none"


class SignatureEntry(BaseModel):
    """The documented contract of one generated function."""

    model_config = ConfigDict(frozen=True)

    name: str
    visibility: str = "public"
    params: list[ParamEntry] = Field(default_factory=list)
    returns: str
    constraints: dict[str, str] = Field(default_factory=dict)
    implementations: int = 1
    stub: str


class FieldEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    module: str


class StructEntry(BaseModel):
    """The documented shape of one generated record type."""

    model_config = ConfigDict(frozen=True)

    name: str
    fields: list[FieldEntry] = Field(default_factory=list)
    operations: list[SignatureEntry] = Field(default_factory=list)


class Manifest(BaseModel):
    """All signatures of one compiled definition file."""

    v: str = ARTIFACT_FORMAT_VERSION
    source: str
    functions: list[SignatureEntry] = Field(default_factory=list)
    structs: list[StructEntry] = Field(default_factory=list)


def serialize(manifest: Manifest) -> str:
    """Serialize a Manifest to a compact JSON string."""
    return manifest.model_dump_json()


def deserialize(data: str) -> Manifest:
    """Deserialize a Manifest from a JSON string.

    Args:
        data: JSON string produced by :func:`serialize`.

    Returns:
        The reconstructed :class:`Manifest`.

    Raises:
        ValueError: If the artifact format version is not recognised or the
            data does not describe a manifest.
    """
    obj = json.loads(data)
    version = obj.get("v")
    if version != ARTIFACT_FORMAT_VERSION:
        raise ValueError(f"Unsupported artifact format version: {version!r}")
    return Manifest.model_validate(obj)


def write_artifact(manifest: Manifest, path: Path) -> None:
    """Write a manifest to *path*, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize(manifest), encoding="utf-8")


def read_artifact(path: Path) -> Manifest:
    """Read and deserialize a manifest from *path*."""
    return deserialize(path.read_text(encoding="utf-8"))
