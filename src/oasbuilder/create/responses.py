"""Response and header generation.

Every builder here receives the same ComponentRegistry so that a descriptor or
response definition reused across responses resolves to one registration.
"""

from collections.abc import Mapping
from typing import Any

from oasbuilder.create.components import (
    CompleteRecord,
    ComponentRegistry,
    create_component_header_ref,
    create_component_response_ref,
)
from oasbuilder.create.content import create_content
from oasbuilder.create.schema import SchemaState, create_schema_or_ref
from oasbuilder.create.specification_extension import is_specification_extension
from oasbuilder.descriptors import Descriptor, ObjectDescriptor
from oasbuilder.errors import ReferenceInvariantError

NamedDescriptors = ObjectDescriptor | Mapping[str, Descriptor]


def create_base_header(descriptor: Descriptor, registry: ComponentRegistry) -> dict[str, Any]:
    """Build the inline Header Object for a descriptor, without registering it."""
    extras = {k: v for k, v in descriptor.header_metadata.items() if k != "ref"}
    header = dict(extras)
    header["schema"] = create_schema_or_ref(
        descriptor, SchemaState(registry=registry, direction="input")
    )
    if not descriptor.is_optional():
        header["required"] = True
    return header


def create_header_or_ref(descriptor: Descriptor, registry: ComponentRegistry) -> dict[str, Any]:
    """
    Build a Header Object, or a reference to a registered one.

    The first call for a named descriptor fixes its header under
    ``components.headers``; every later call returns the same reference.

    Raises:
        ReferenceInvariantError: If the base header came back as a reference,
            which would leave nowhere to attach ``required``
    """
    record = registry.lookup("headers", descriptor)
    if isinstance(record, CompleteRecord):
        return {"$ref": create_component_header_ref(record.ref)}

    base_header = create_base_header(descriptor, registry)
    if "$ref" in base_header:
        raise ReferenceInvariantError("Unexpected reference object in place of a header")

    ref = descriptor.header_metadata.get("ref") or (record.ref if record else None)
    if ref:
        registry.register("headers", descriptor, CompleteRecord(ref=ref, fragment=base_header))
        return {"$ref": create_component_header_ref(ref)}

    return base_header


def create_response_headers(
    response_headers: NamedDescriptors | None, registry: ComponentRegistry
) -> dict[str, Any] | None:
    if response_headers is None:
        return None
    if isinstance(response_headers, ObjectDescriptor):
        response_headers = response_headers.properties
    return {name: create_header_or_ref(d, registry) for name, d in response_headers.items()}


def create_headers(
    headers: Mapping[str, Any] | None,
    response_headers: NamedDescriptors | None,
    registry: ComponentRegistry,
) -> dict[str, Any] | None:
    """
    Merge literal headers with headers generated from descriptors.

    Returns None when neither is given, so that no ``headers`` key is emitted.
    Literal headers are applied last and win on a name collision.
    """
    if headers is None and response_headers is None:
        return None

    result = create_response_headers(response_headers, registry) or {}
    result.update(headers or {})
    return result


def create_response(response: dict[str, Any], registry: ComponentRegistry) -> dict[str, Any]:
    """
    Build a Response Object, or a reference to a registered one.

    Recognised keys of ``response`` are ``content``, ``headers`` (literal
    Header Objects), ``responseHeaders`` (descriptors by header name) and
    ``ref`` (stable name under ``components.responses``). Every other key is
    copied onto the result. A bare ``{"$ref": ...}`` is returned unchanged.
    """
    if "$ref" in response:
        return response

    record = registry.lookup("responses", response)
    if isinstance(record, CompleteRecord):
        return {"$ref": create_component_response_ref(record.ref)}

    rest = {
        k: v
        for k, v in response.items()
        if k not in ("content", "headers", "responseHeaders", "ref")
    }
    content = response.get("content")

    result = dict(rest)
    maybe_headers = create_headers(
        response.get("headers"), response.get("responseHeaders"), registry
    )
    if maybe_headers is not None:
        result["headers"] = maybe_headers
    if content is not None:
        result["content"] = create_content(content, registry, "output")

    ref = response.get("ref") or (record.ref if record else None)
    if ref:
        registry.register("responses", response, CompleteRecord(ref=ref, fragment=result))
        return {"$ref": create_component_response_ref(ref)}

    return result


def create_responses(responses: Mapping[str, Any], registry: ComponentRegistry) -> dict[str, Any]:
    """Build a Responses Object, keeping every key and its order."""
    result: dict[str, Any] = {}
    for key, response in responses.items():
        if is_specification_extension(key):
            result[key] = response
            continue
        result[key] = create_response(response, registry)
    return result
