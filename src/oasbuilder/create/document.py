"""Assembly of a complete OpenAPI document from a parsed definition."""

from typing import Any

from oasbuilder.core.definition import HTTP_METHODS, DocumentDefinition
from oasbuilder.create.components import (
    ComponentRegistry,
    create_components_object,
)
from oasbuilder.create.responses import create_responses
from oasbuilder.create.specification_extension import is_specification_extension
from oasbuilder.errors import DefinitionError, DuplicateComponentError

DEFAULT_OPENAPI_VERSION = "3.1.0"


def create_operation(operation: dict[str, Any], registry: ComponentRegistry) -> dict[str, Any]:
    result = dict(operation)
    if "responses" in operation:
        result["responses"] = create_responses(operation["responses"], registry)
    return result


def create_paths(paths: dict[str, Any], registry: ComponentRegistry) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for route, path_item in paths.items():
        if is_specification_extension(route):
            result[route] = path_item
            continue
        result[route] = {
            key: create_operation(value, registry) if key in HTTP_METHODS else value
            for key, value in path_item.items()
        }
    return result


def _own_ref(kind: str, obj: Any) -> str | None:
    """The stable name an entry asks for itself, independent of its key."""
    if kind == "schemas":
        return obj.schema_ref
    if kind == "headers":
        return obj.header_metadata.get("ref")
    return obj.get("ref")


def reserve_components(definition: DocumentDefinition, registry: ComponentRegistry) -> None:
    """
    Reserve the names given under ``components`` for their definitions.

    The key is the only name an entry is published under, so an entry that
    asks for a different name, or one object listed under two keys, is rejected.

    Raises:
        DefinitionError: If an entry's own ref or an earlier key disagrees
            with its key
    """
    for kind, entries in definition.components.items():
        for name, obj in entries.items():
            path = f"components.{kind}.{name}"
            own = _own_ref(kind, obj)
            if own and own != name:
                raise DefinitionError(path, f"declares ref '{own}', which differs from its key")
            record = registry.lookup(kind, obj)
            if record is not None and record.ref != name:
                raise DefinitionError(path, f"is already listed as '{record.ref}'")
            registry.reserve(kind, obj, name)


def create_document(
    definition: DocumentDefinition,
    registry: ComponentRegistry | None = None,
    openapi_version: str | None = None,
) -> dict[str, Any]:
    """
    Build the OpenAPI document for a definition.

    Args:
        definition: The parsed document definition
        registry: Registry to populate; a fresh one is used when omitted
        openapi_version: Version used when the definition does not set one

    Returns:
        The document as a plain dictionary, ready to be written
    """
    if registry is None:
        registry = ComponentRegistry()

    reserve_components(definition, registry)

    document: dict[str, Any] = {
        "openapi": definition.openapi or openapi_version or DEFAULT_OPENAPI_VERSION,
        "info": definition.info,
    }
    document.update(definition.extra)
    document["paths"] = create_paths(definition.paths, registry)

    components = create_components_object(registry)
    for kind, refs in definition.component_refs.items():
        named = components.setdefault(kind, {})
        for name, ref in refs.items():
            if name in named:
                raise DuplicateComponentError(kind, name)
            named[name] = ref
    components.update(definition.extra_components)
    if components:
        document["components"] = components
    return document
