"""Parsing of document definitions into descriptors and response definitions.

A definition is an OpenAPI-like mapping (usually read from YAML) in which
schemas are written as descriptor nodes::

    type: object
    properties:
      id: {type: integer}
      name: {type: string, optional: true}
    openapi:
      ref: User

Node identity carries over: a node reached twice (a YAML alias such as
``*user``) produces the same descriptor instance, which is what lets the
builders emit it once under ``components`` and reference it everywhere else.
A node reached again while it is still being parsed becomes a lazy descriptor,
so recursive anchors are supported.
"""

from dataclasses import dataclass, field
from typing import Any

from oasbuilder.create.specification_extension import is_specification_extension
from oasbuilder.descriptors import (
    ArrayDescriptor,
    BooleanDescriptor,
    DefaultDescriptor,
    Descriptor,
    EnumDescriptor,
    LazyDescriptor,
    NullableDescriptor,
    NullDescriptor,
    NumberDescriptor,
    ObjectDescriptor,
    OptionalDescriptor,
    StringDescriptor,
    UnionDescriptor,
)
from oasbuilder.errors import DefinitionError

HTTP_METHODS = {"get", "put", "post", "delete", "options", "head", "patch", "trace"}

# Component kinds whose entries are built from descriptors and registered by
# identity. Any other kind under `components` is copied through unchanged.
REGISTERED_KINDS = ("schemas", "headers", "responses")

_PRIMITIVE_TYPES = {"string", "number", "integer", "boolean", "null", "array", "object"}


@dataclass
class DocumentDefinition:
    """A parsed document definition, ready to be assembled."""

    info: dict[str, Any]
    paths: dict[str, Any] = field(default_factory=dict)
    openapi: str | None = None
    components: dict[str, dict[str, Any]] = field(default_factory=dict)
    component_refs: dict[str, dict[str, Any]] = field(default_factory=dict)
    extra_components: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)


class DefinitionParser:
    """Turns definition nodes into descriptors, memoised by node identity."""

    def __init__(self) -> None:
        self._descriptors: dict[int, Descriptor] = {}
        self._responses: dict[int, dict[str, Any]] = {}
        self._in_progress: set[int] = set()
        # Parsed components.headers, for resolving header references by name.
        self.header_components: dict[str, Descriptor] = {}
        # Keeps parsed nodes alive so their ids stay unique.
        self._nodes: list[Any] = []

    def parse_descriptor(self, node: Any, path: str) -> Descriptor:
        if isinstance(node, Descriptor):
            return node
        if not isinstance(node, dict):
            raise DefinitionError(path, f"expected a mapping, got {type(node).__name__}")

        key = id(node)
        if key in self._descriptors:
            return self._descriptors[key]
        if key in self._in_progress:
            return LazyDescriptor(getter=lambda: self._descriptors[key])

        self._in_progress.add(key)
        self._nodes.append(node)
        try:
            descriptor = self._build_descriptor(node, path)
        finally:
            self._in_progress.discard(key)
        self._descriptors[key] = descriptor
        return descriptor

    def _build_descriptor(self, node: dict[str, Any], path: str) -> Descriptor:
        descriptor = self._base_descriptor(node, path)

        if node.get("nullable"):
            descriptor = NullableDescriptor(inner=descriptor)
        if "default" in node:
            descriptor = DefaultDescriptor(inner=descriptor, default=node["default"])
        if node.get("optional"):
            descriptor = OptionalDescriptor(inner=descriptor)

        openapi = node.get("openapi") or {}
        if not isinstance(openapi, dict):
            raise DefinitionError(f"{path}.openapi", "expected a mapping")
        descriptor.openapi = dict(openapi)
        return descriptor

    def _base_descriptor(self, node: dict[str, Any], path: str) -> Descriptor:
        description = node.get("description")

        if "anyOf" in node:
            options = node["anyOf"]
            if not isinstance(options, list):
                raise DefinitionError(f"{path}.anyOf", "expected a list")
            return UnionDescriptor(
                options=[
                    self.parse_descriptor(option, f"{path}.anyOf[{i}]")
                    for i, option in enumerate(options)
                ],
                description=description,
            )

        if "enum" in node:
            values = node["enum"]
            if not isinstance(values, list):
                raise DefinitionError(f"{path}.enum", "expected a list")
            return EnumDescriptor(values=list(values), description=description)

        node_type = node.get("type")
        if node_type is None and "properties" in node:
            node_type = "object"
        if node_type not in _PRIMITIVE_TYPES:
            raise DefinitionError(f"{path}.type", f"unsupported type: {node_type!r}")

        if node_type == "string":
            return StringDescriptor(
                format=node.get("format"),
                pattern=node.get("pattern"),
                min_length=node.get("minLength"),
                max_length=node.get("maxLength"),
                description=description,
            )
        if node_type in ("number", "integer"):
            return NumberDescriptor(
                integer=node_type == "integer",
                minimum=node.get("minimum"),
                maximum=node.get("maximum"),
                description=description,
            )
        if node_type == "boolean":
            return BooleanDescriptor(description=description)
        if node_type == "null":
            return NullDescriptor(description=description)
        if node_type == "array":
            items = node.get("items")
            return ArrayDescriptor(
                items=self.parse_descriptor(items, f"{path}.items") if items is not None else None,
                min_items=node.get("minItems"),
                max_items=node.get("maxItems"),
                description=description,
            )

        properties = node.get("properties") or {}
        if not isinstance(properties, dict):
            raise DefinitionError(f"{path}.properties", "expected a mapping")
        return ObjectDescriptor(
            properties={
                name: self.parse_descriptor(prop, f"{path}.properties.{name}")
                for name, prop in properties.items()
            },
            additional_properties=node.get("additionalProperties"),
            description=description,
        )

    def parse_response(self, node: Any, path: str) -> dict[str, Any]:
        if not isinstance(node, dict):
            raise DefinitionError(path, f"expected a mapping, got {type(node).__name__}")
        if "$ref" in node:
            return node

        key = id(node)
        if key in self._responses:
            return self._responses[key]
        self._nodes.append(node)

        response = dict(node)
        if "responseHeaders" in node:
            headers = node["responseHeaders"]
            if not isinstance(headers, dict):
                raise DefinitionError(f"{path}.responseHeaders", "expected a mapping")
            named: dict[str, Any] = {}
            literal = dict(node.get("headers") or {})
            for name, header in headers.items():
                if isinstance(header, dict) and "$ref" in header:
                    resolved = self.resolve_header_ref(header["$ref"])
                    if resolved is None:
                        literal.setdefault(name, header)
                        continue
                    header = resolved
                named[name] = self.parse_descriptor(header, f"{path}.responseHeaders.{name}")
            response["responseHeaders"] = named
            if literal:
                response["headers"] = literal
        if "content" in node:
            response["content"] = self.parse_content(node["content"], f"{path}.content")

        self._responses[key] = response
        return response

    def resolve_header_ref(self, ref: str) -> Descriptor | None:
        """Return the components.headers descriptor a local reference points at."""
        prefix = "#/components/headers/"
        if not isinstance(ref, str) or not ref.startswith(prefix):
            return None
        return self.header_components.get(ref[len(prefix):])

    def parse_content(self, node: Any, path: str) -> dict[str, Any]:
        if not isinstance(node, dict):
            raise DefinitionError(path, "expected a mapping")
        content: dict[str, Any] = {}
        for media_type, media in node.items():
            if is_specification_extension(media_type) or not isinstance(media, dict):
                content[media_type] = media
                continue
            media = dict(media)
            schema = media.get("schema")
            if schema is not None and not (isinstance(schema, dict) and "$ref" in schema):
                media["schema"] = self.parse_descriptor(schema, f"{path}.{media_type}.schema")
            content[media_type] = media
        return content

    def parse_responses(self, node: Any, path: str) -> dict[str, Any]:
        if not isinstance(node, dict):
            raise DefinitionError(path, "expected a mapping")
        return {
            str(code): response
            if is_specification_extension(code)
            else self.parse_response(response, f"{path}.{code}")
            for code, response in node.items()
        }

    def parse_paths(self, node: Any) -> dict[str, Any]:
        if not isinstance(node, dict):
            raise DefinitionError("paths", "expected a mapping")
        paths: dict[str, Any] = {}
        for route, item in node.items():
            if is_specification_extension(route):
                paths[route] = item
                continue
            if not isinstance(item, dict):
                raise DefinitionError(f"paths.{route}", "expected a mapping")
            path_item = dict(item)
            for method, operation in item.items():
                if method not in HTTP_METHODS:
                    continue
                operation_path = f"paths.{route}.{method}"
                if not isinstance(operation, dict):
                    raise DefinitionError(operation_path, "expected a mapping")
                operation = dict(operation)
                if "responses" in operation:
                    operation["responses"] = self.parse_responses(
                        operation["responses"], f"{operation_path}.responses"
                    )
                path_item[method] = operation
            paths[route] = path_item
        return paths


def parse_definition(data: dict[str, Any]) -> DocumentDefinition:
    """
    Parse a raw definition mapping.

    Args:
        data: The definition as loaded from JSON or YAML

    Returns:
        The parsed DocumentDefinition

    Raises:
        DefinitionError: If a node is malformed; the message names its path
    """
    if not isinstance(data, dict):
        raise DefinitionError("$", "definition must be a mapping")
    info = data.get("info")
    if not isinstance(info, dict):
        raise DefinitionError("info", "expected a mapping with title and version")

    raw_components = data.get("components") or {}
    if not isinstance(raw_components, dict):
        raise DefinitionError("components", "expected a mapping")

    parser = DefinitionParser()
    components: dict[str, dict[str, Any]] = {}
    component_refs: dict[str, dict[str, Any]] = {}
    extra_components = {k: v for k, v in raw_components.items() if k not in REGISTERED_KINDS}

    # Components first, so that paths reusing the same nodes share identity.
    # Headers come before responses so response headers can refer to them.
    for kind in REGISTERED_KINDS:
        entries = raw_components.get(kind)
        if entries is None:
            continue
        if not isinstance(entries, dict):
            raise DefinitionError(f"components.{kind}", "expected a mapping")
        parse = parser.parse_response if kind == "responses" else parser.parse_descriptor
        for name, entry in entries.items():
            # A reference entry is an alias to something else: copied as is.
            if isinstance(entry, dict) and "$ref" in entry:
                component_refs.setdefault(kind, {})[name] = entry
                continue
            components.setdefault(kind, {})[name] = parse(entry, f"components.{kind}.{name}")
        if kind == "headers":
            parser.header_components = dict(components.get("headers", {}))

    return DocumentDefinition(
        info=info,
        paths=parser.parse_paths(data.get("paths") or {}),
        openapi=data.get("openapi"),
        components=components,
        component_refs=component_refs,
        extra_components=extra_components,
        extra={
            k: v for k, v in data.items() if k not in ("openapi", "info", "paths", "components")
        },
    )
