"""Conversion of descriptors into OpenAPI 3.1 Schema Objects.

Named descriptors (``openapi.ref``) are registered under ``components.schemas``
and replaced by a ``$ref`` wherever they occur. The name is reserved before the
body is built, so a descriptor that refers back to itself through a lazy
descriptor resolves to a ``$ref`` instead of recursing forever.
"""

from dataclasses import dataclass, field
from typing import Any, Literal

from oasbuilder.create.components import (
    CompleteRecord,
    ComponentRegistry,
    create_component_schema_ref,
)
from oasbuilder.descriptors import (
    ArrayDescriptor,
    BooleanDescriptor,
    DefaultDescriptor,
    Descriptor,
    EnumDescriptor,
    NullableDescriptor,
    NullDescriptor,
    NumberDescriptor,
    ObjectDescriptor,
    OptionalDescriptor,
    StringDescriptor,
    UnionDescriptor,
    resolve_lazy,
)
from oasbuilder.errors import CycleDetectedError

Direction = Literal["input", "output"]


@dataclass
class SchemaState:
    """Context threaded through one schema conversion."""

    registry: ComponentRegistry
    direction: Direction
    visiting: set[int] = field(default_factory=set)


def create_schema_or_ref(descriptor: Descriptor, state: SchemaState) -> dict[str, Any]:
    """
    Convert a descriptor, registering it when it carries a stable name.

    Args:
        descriptor: The descriptor to convert
        state: Registry, direction and the set of descriptors being built

    Returns:
        Either an inline Schema Object or ``{"$ref": "#/components/schemas/<name>"}``

    Raises:
        CycleDetectedError: If an unnamed descriptor is reached again while it
            is still being converted
    """
    descriptor = resolve_lazy(descriptor)
    registry = state.registry

    record = registry.lookup("schemas", descriptor)
    if isinstance(record, CompleteRecord):
        return {"$ref": create_component_schema_ref(record.ref)}

    ref = descriptor.schema_ref or (record.ref if record else None)

    if id(descriptor) in state.visiting:
        if ref:
            return {"$ref": create_component_schema_ref(ref)}
        raise CycleDetectedError(
            f"{type(descriptor).__name__} refers to itself; give it an openapi ref "
            "so it can be registered as a component"
        )

    if ref:
        registry.reserve("schemas", descriptor, ref)

    state.visiting.add(id(descriptor))
    try:
        schema = create_schema(descriptor, state)
    finally:
        state.visiting.discard(id(descriptor))

    if ref:
        registry.register("schemas", descriptor, CompleteRecord(ref=ref, fragment=schema))
        return {"$ref": create_component_schema_ref(ref)}

    return schema


def create_schema(descriptor: Descriptor, state: SchemaState) -> dict[str, Any]:
    """Convert a descriptor into an inline Schema Object."""
    descriptor = resolve_lazy(descriptor)

    if isinstance(descriptor, OptionalDescriptor):
        schema = _wrapped(descriptor.inner, state)
    elif isinstance(descriptor, NullableDescriptor):
        schema = _nullable(create_schema_or_ref(descriptor.inner, state))
    elif isinstance(descriptor, DefaultDescriptor):
        schema = _wrapped(descriptor.inner, state)
        if "$ref" in schema:
            schema = {"allOf": [schema]}
        schema["default"] = descriptor.default
    elif isinstance(descriptor, StringDescriptor):
        schema = _drop_none(
            {
                "type": "string",
                "format": descriptor.format,
                "pattern": descriptor.pattern,
                "minLength": descriptor.min_length,
                "maxLength": descriptor.max_length,
            }
        )
    elif isinstance(descriptor, NumberDescriptor):
        schema = _drop_none(
            {
                "type": "integer" if descriptor.integer else "number",
                "minimum": descriptor.minimum,
                "maximum": descriptor.maximum,
            }
        )
    elif isinstance(descriptor, BooleanDescriptor):
        schema = {"type": "boolean"}
    elif isinstance(descriptor, NullDescriptor):
        schema = {"type": "null"}
    elif isinstance(descriptor, EnumDescriptor):
        schema = _enum(descriptor.values)
    elif isinstance(descriptor, ArrayDescriptor):
        schema = {"type": "array"}
        if descriptor.items is not None:
            schema["items"] = create_schema_or_ref(descriptor.items, state)
        schema.update(
            _drop_none({"minItems": descriptor.min_items, "maxItems": descriptor.max_items})
        )
    elif isinstance(descriptor, ObjectDescriptor):
        schema = _object(descriptor, state)
    elif isinstance(descriptor, UnionDescriptor):
        schema = {"anyOf": [create_schema_or_ref(option, state) for option in descriptor.options]}
    else:
        raise TypeError(f"Unsupported descriptor type: {type(descriptor).__name__}")

    if descriptor.description is not None:
        schema["description"] = descriptor.description
    schema.update(descriptor.schema_extras)
    return schema


def _wrapped(inner: Descriptor, state: SchemaState) -> dict[str, Any]:
    # Copy so that wrapper metadata never leaks into a shared inner schema.
    return dict(create_schema_or_ref(inner, state))


def _nullable(schema: dict[str, Any]) -> dict[str, Any]:
    schema_type = schema.get("type")
    if isinstance(schema_type, str) and "$ref" not in schema:
        result = dict(schema)
        result["type"] = [schema_type, "null"]
        if "enum" in result and None not in result["enum"]:
            result["enum"] = [*result["enum"], None]
        return result
    if isinstance(schema_type, list):
        result = dict(schema)
        if "null" not in schema_type:
            result["type"] = [*schema_type, "null"]
        return result
    return {"anyOf": [schema, {"type": "null"}]}


def _enum(values: list[Any]) -> dict[str, Any]:
    schema: dict[str, Any] = {}
    if values and all(isinstance(v, str) for v in values):
        schema["type"] = "string"
    elif values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        schema["type"] = "integer"
    elif values and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
        schema["type"] = "number"
    schema["enum"] = list(values)
    return schema


def _object(descriptor: ObjectDescriptor, state: SchemaState) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    required: list[str] = []
    for name, prop in descriptor.properties.items():
        properties[name] = create_schema_or_ref(prop, state)
        if _is_required(prop, state.direction):
            required.append(name)

    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    if descriptor.additional_properties is not None:
        schema["additionalProperties"] = descriptor.additional_properties
    return schema


def _is_required(prop: Descriptor, direction: Direction) -> bool:
    """A defaulted property is always present in output but may be omitted in input."""
    if not prop.is_optional():
        return True
    return direction == "output" and isinstance(resolve_lazy(prop), DefaultDescriptor)


def _drop_none(values: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}
