"""Specification extension keys (``x-...``)."""

from typing import Any


def is_specification_extension(key: Any) -> bool:
    """Return True when ``key`` names a specification extension."""
    return isinstance(key, str) and key.startswith("x-")
