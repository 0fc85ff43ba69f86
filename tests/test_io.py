"""Tests for definition loading and document writing."""

import json
from datetime import date
from enum import Enum

import pytest
import yaml

from oasbuilder.config import FileFormat
from oasbuilder.core.loader import load_definition_file
from oasbuilder.core.writer import to_plain, write_document
from oasbuilder.descriptors import StringDescriptor
from oasbuilder.errors import DefinitionError


class TestLoadDefinitionFile:
    """Test the load_definition_file function."""

    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "api.yaml"
        path.write_text("info:\n  title: T\n  version: '1'\n")

        data, file_format = load_definition_file(path)

        assert data == {"info": {"title": "T", "version": "1"}}
        assert file_format == FileFormat.YAML

    def test_loads_yml(self, tmp_path):
        path = tmp_path / "api.yml"
        path.write_text("info: {title: T, version: '1'}\n")

        _, file_format = load_definition_file(path)

        assert file_format == FileFormat.YAML

    def test_loads_json(self, tmp_path):
        path = tmp_path / "api.json"
        path.write_text('{"info": {"title": "T", "version": "1"}}')

        data, file_format = load_definition_file(path)

        assert data["info"]["title"] == "T"
        assert file_format == FileFormat.JSON

    def test_yaml_aliases_are_shared_objects(self, tmp_path):
        """Test that an alias loads as the very same object as its anchor."""
        path = tmp_path / "api.yaml"
        path.write_text("a: &x {type: string}\nb: *x\n")

        data, _ = load_definition_file(path)

        assert data["a"] is data["b"]

    def test_recursive_anchor_loads(self, tmp_path):
        """Test that a self-referencing anchor still loads."""
        path = tmp_path / "api.yaml"
        path.write_text("node: &n {children: [*n]}\n")

        data, _ = load_definition_file(path)

        assert data["node"]["children"][0] is data["node"]

    def test_duplicate_keys_are_rejected(self, tmp_path):
        """Test that a repeated key is an error instead of silently overwriting."""
        path = tmp_path / "api.yaml"
        path.write_text(
            "responses:\n  \"200\": {description: first}\n  \"200\": {description: second}\n"
        )

        with pytest.raises(yaml.YAMLError, match="duplicate key"):
            load_definition_file(path)

    def test_merge_keys_are_allowed(self, tmp_path):
        """Test that YAML merge keys are not mistaken for duplicates."""
        path = tmp_path / "api.yaml"
        path.write_text("base: &b {type: string}\nchild:\n  <<: *b\n  format: email\n")

        data, _ = load_definition_file(path)

        assert data["child"] == {"type": "string", "format": "email"}

    def test_empty_file_raises(self, tmp_path):
        path = tmp_path / "api.yaml"
        path.write_text("# nothing\n")

        with pytest.raises(DefinitionError, match="empty"):
            load_definition_file(path)

    def test_non_mapping_top_level_raises(self, tmp_path):
        path = tmp_path / "api.json"
        path.write_text("[1, 2]")

        with pytest.raises(DefinitionError, match="top level must be a mapping"):
            load_definition_file(path)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_definition_file(tmp_path / "missing.yaml")

    def test_unsupported_extension_raises(self, tmp_path):
        path = tmp_path / "api.txt"
        path.write_text("")

        with pytest.raises(ValueError, match="Unsupported file format"):
            load_definition_file(path)


class TestWriteDocument:
    """Test the write_document function."""

    def test_writes_json_with_trailing_newline(self, tmp_path):
        path = tmp_path / "openapi.json"

        write_document({"openapi": "3.1.0"}, path, FileFormat.JSON)

        content = path.read_text()
        assert json.loads(content) == {"openapi": "3.1.0"}
        assert content.endswith("\n")

    def test_writes_yaml_preserving_key_order(self, tmp_path):
        path = tmp_path / "openapi.yaml"

        write_document({"openapi": "3.1.0", "info": {"title": "T"}}, path, FileFormat.YAML)

        content = path.read_text()
        assert content.index("openapi") < content.index("info")
        assert yaml.safe_load(content) == {"openapi": "3.1.0", "info": {"title": "T"}}

    def test_yaml_output_has_no_aliases(self, tmp_path):
        """Test that a fragment appearing twice is written out twice."""
        path = tmp_path / "openapi.yaml"
        shared = {"type": "string"}

        write_document({"a": shared, "b": shared}, path, FileFormat.YAML)

        content = path.read_text()
        assert "&" not in content
        assert "*" not in content

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "out" / "nested" / "openapi.json"

        write_document({}, path, FileFormat.JSON)

        assert path.exists()

    def test_unsupported_format_raises(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported file format"):
            write_document({}, tmp_path / "openapi.txt", "txt")


class Color(Enum):
    RED = "red"
    BLUE = "blue"


class TestToPlain:
    """Test conversion of built documents into serialisable values."""

    def test_plain_values_are_unchanged(self):
        document = {"a": [1, 2.5, "x", None, True]}

        assert to_plain(document) == document

    def test_caller_values_are_converted(self):
        """Test defaults and enums written from Python code."""
        result = to_plain(
            {
                "enum": [Color.RED, Color.BLUE],
                "default": (1, 2),
                "tags": {"b", "a"},
                "since": date(2024, 1, 2),
            }
        )

        assert result == {
            "enum": ["red", "blue"],
            "default": [1, 2],
            "tags": ["a", "b"],
            "since": "2024-01-02",
        }

    def test_shared_fragments_are_copied(self):
        shared = {"type": "string"}

        result = to_plain({"a": shared, "b": shared})

        assert result["a"] == result["b"]
        assert result["a"] is not result["b"]

    def test_leftover_descriptor_raises_with_path(self):
        with pytest.raises(TypeError, match=r"\$\.schema: unconverted StringDescriptor"):
            to_plain({"schema": StringDescriptor()})

    def test_unknown_value_raises(self):
        with pytest.raises(TypeError, match="cannot serialise"):
            to_plain({"x": object()})

    def test_writer_serialises_converted_values(self, tmp_path):
        path = tmp_path / "openapi.json"

        write_document({"default": (Color.RED,)}, path, FileFormat.JSON)

        assert json.loads(path.read_text()) == {"default": ["red"]}
