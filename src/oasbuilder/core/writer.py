"""Module for writing generated OpenAPI documents."""

import json
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

from oasbuilder.config import FileFormat
from oasbuilder.descriptors import Descriptor


def to_plain(value: Any, path: str = "$") -> Any:
    """
    Convert a built document into plain JSON-compatible values.

    Descriptor defaults and enum values come from caller code and may hold
    tuples, sets, enums, dates or pydantic models. Every container is rebuilt,
    so a fragment shared between components is written out in full each time.

    Raises:
        TypeError: If a descriptor or another unsupported value is left in the
            document; the message names its path
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, dict):
        return {str(k): to_plain(v, f"{path}.{k}") for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v, f"{path}[{i}]") for i, v in enumerate(value)]
    if isinstance(value, (set, frozenset)):
        items = [to_plain(v, f"{path}[]") for v in value]
        return sorted(items, key=repr)
    if isinstance(value, Enum):
        return to_plain(value.value, path)
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Descriptor):
        raise TypeError(f"{path}: unconverted {type(value).__name__} in document")
    raise TypeError(f"{path}: cannot serialise value of type {type(value).__name__}")


def write_document(data: dict, path: Path, format: FileFormat) -> None:
    """
    Write an OpenAPI document to a JSON or YAML file.

    Args:
        data: The document as a Python dictionary
        path: Path where the file should be written
        format: FileFormat indicating whether to write JSON or YAML

    Raises:
        ValueError: If an unsupported FileFormat is provided
        TypeError: If the document holds a value that cannot be serialised
        IOError: If writing to the file fails
    """
    if format not in (FileFormat.JSON, FileFormat.YAML):
        raise ValueError(f"Unsupported file format: {format}")

    plain = to_plain(data)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        if format == FileFormat.JSON:
            json.dump(plain, f, indent=2, ensure_ascii=False)
            f.write("\n")
        else:
            yaml.safe_dump(plain, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
