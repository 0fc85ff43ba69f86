"""Module for loading document definition files."""

import json
from pathlib import Path
from typing import Any

import yaml

from oasbuilder.config import FileFormat
from oasbuilder.errors import DefinitionError

_MERGE_TAG = "tag:yaml.org,2002:merge"


class DefinitionYamlLoader(yaml.SafeLoader):
    """
    Safe YAML loader that rejects duplicate mapping keys.

    PyYAML keeps the last of two equal keys, which would silently drop a
    response or a component. Anchors and aliases are untouched: an alias still
    loads as the very object its anchor produced.
    """

    def construct_mapping(self, node, deep=False):
        seen: set[tuple[str, str]] = set()
        for key_node, _ in node.value:
            if not isinstance(key_node, yaml.ScalarNode) or key_node.tag == _MERGE_TAG:
                continue
            key = (key_node.tag, key_node.value)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key_node.value!r}",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def _read(path: Path, suffix: str) -> tuple[Any, FileFormat]:
    with open(path, encoding="utf-8") as f:
        if suffix == ".json":
            return json.load(f), FileFormat.JSON
        return yaml.load(f, Loader=DefinitionYamlLoader), FileFormat.YAML


def load_definition_file(path: Path) -> tuple[dict, FileFormat]:
    """
    Load a document definition from a JSON or YAML file.

    YAML anchors and aliases are preserved as shared objects, so an aliased
    node becomes one shared descriptor once parsed. JSON has no aliases;
    sharing there goes through ``$ref`` entries and ``openapi.ref`` names.

    Args:
        path: Path to the definition file (.json, .yaml, or .yml)

    Returns:
        A tuple of (parsed_dict, FileFormat)

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file extension is not .json, .yaml, or .yml
        DefinitionError: If the file is empty or its top level is not a mapping
        json.JSONDecodeError: If JSON parsing fails
        yaml.YAMLError: If YAML parsing fails, including duplicate keys
    """
    if not path.exists():
        raise FileNotFoundError(f"Definition file not found: {path}")

    suffix = path.suffix.lower()
    if suffix not in (".json", ".yaml", ".yml"):
        raise ValueError(f"Unsupported file format: {suffix}. Expected .json, .yaml, or .yml")

    data, file_format = _read(path, suffix)

    if data is None:
        raise DefinitionError(path.name, "definition file is empty")
    if not isinstance(data, dict):
        raise DefinitionError(
            path.name, f"top level must be a mapping, got {type(data).__name__}"
        )
    return data, file_format
