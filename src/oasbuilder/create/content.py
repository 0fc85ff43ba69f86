"""Content (media type map) generation for responses."""

from typing import Any

from oasbuilder.create.components import ComponentRegistry
from oasbuilder.create.schema import Direction, SchemaState, create_schema_or_ref
from oasbuilder.descriptors import Descriptor


def create_media_type(
    media_type: dict[str, Any], registry: ComponentRegistry, direction: Direction
) -> dict[str, Any]:
    """Convert one Media Type Object; only a descriptor ``schema`` is converted."""
    result = dict(media_type)
    schema = media_type.get("schema")
    if isinstance(schema, Descriptor):
        result["schema"] = create_schema_or_ref(
            schema, SchemaState(registry=registry, direction=direction)
        )
    return result


def create_content(
    content: dict[str, Any], registry: ComponentRegistry, direction: Direction
) -> dict[str, Any]:
    """
    Convert a content map keyed by media type.

    Args:
        content: Mapping of media type (e.g. ``application/json``) to a media
            type definition whose ``schema`` may be a descriptor
        registry: The component registry for this build
        direction: ``output`` for response bodies, ``input`` for request bodies

    Returns:
        The content map with descriptor schemas converted; extension keys and
        plain schema objects are copied unchanged
    """
    return {
        key: media_type if not isinstance(media_type, dict) else create_media_type(
            media_type, registry, direction
        )
        for key, media_type in content.items()
    }
