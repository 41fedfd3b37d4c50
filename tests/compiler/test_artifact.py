# Copyright 2026 defspec Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for signature manifests."""

import json
from pathlib import Path

import pytest

from defspec.compiler.artifact import (
    ARTIFACT_FORMAT_VERSION,
    Manifest,
    deserialize,
    read_artifact,
    serialize,
    write_artifact,
)
from defspec.compiler.module import compile_source

SOURCE = """
defun scale(x: validate[Positive.t], factor: guard[int] \\\\ 2) -> int:
    x * factor

defunp first(xs: list[a]) -> a when a: Any:
    ([x, *_]) -> x

defstruct Point:
    x: geometry.Coord
"""

# ###############
# Helpers
# ###############


def _manifest() -> Manifest:
    return compile_source(SOURCE, "shapes.dfn").manifest()


# ###############
# Manifest contents
# ###############


class TestManifest:
    def test_source_and_version(self) -> None:
        manifest = _manifest()
        assert manifest.source == "shapes.dfn"
        assert manifest.v == ARTIFACT_FORMAT_VERSION

    def test_function_entries(self) -> None:
        scale, first = _manifest().functions
        assert scale.name == "scale"
        assert scale.visibility == "public"
        assert [(p.name, p.type, p.default, p.mode) for p in scale.params] == [
            ("x", "Positive.t", None, "validate"),
            ("factor", "int", "2", "guard"),
        ]
        assert scale.returns == "int"
        assert scale.implementations == 1
        assert scale.stub == "def scale(x: Positive.t, factor: int) -> int: ..."
        assert first.visibility == "private"
        assert first.constraints == {"a": "Any"}
        assert first.stub == "def first[a](xs: list[a]) -> a: ..."

    def test_struct_entries(self) -> None:
        (point,) = _manifest().structs
        assert point.name == "Point"
        assert [(f.name, f.module) for f in point.fields] == [("x", "geometry.Coord")]
        assert [op.name for op in point.operations] == ["new", "validate", "update"]
        new, validate, update = point.operations
        assert new.returns == "Point"
        assert validate.returns == "_defspec_rt.Result[Point]"
        assert validate.implementations == 2
        assert [p.type for p in update.params] == ["Point", "Any"]

    def test_empty_source(self) -> None:
        manifest = compile_source("").manifest()
        assert manifest.functions == []
        assert manifest.structs == []


# ###############
# Serialization
# ###############


class TestSerialization:
    def test_roundtrip(self) -> None:
        manifest = _manifest()
        assert deserialize(serialize(manifest)) == manifest

    def test_json_is_compact(self) -> None:
        data = serialize(_manifest())
        assert "\n" not in data
        assert json.loads(data)["v"] == ARTIFACT_FORMAT_VERSION

    def test_unknown_version_rejected(self) -> None:
        data = json.loads(serialize(_manifest()))
        data["v"] = "0"
        with pytest.raises(ValueError, match="Unsupported artifact format version: '0'"):
            deserialize(json.dumps(data))

    def test_missing_version_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unsupported artifact format version: None"):
            deserialize('{"source": "x.dfn"}')

    def test_malformed_manifest_rejected(self) -> None:
        with pytest.raises(ValueError):
            deserialize(json.dumps({"v": ARTIFACT_FORMAT_VERSION, "functions": []}))


class TestFileIO:
    def test_write_and_read_artifact(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "shapes.defspec.json"
        manifest = _manifest()
        write_artifact(manifest, path)
        assert path.exists()
        assert read_artifact(path) == manifest
