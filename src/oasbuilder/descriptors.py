"""Value-shape descriptors.

A descriptor describes the shape of a value (an object, a string, an optional
wrapper, ...). Descriptors are owned by the caller and never mutated by the
builders. They are compared by identity: reusing the same instance in several
places is what makes a component shared, two structurally equal instances stay
unrelated.

The ``openapi`` metadata mapping may carry:

- ``ref``: stable name under ``components.schemas``
- ``header``: header metadata, ``{"ref": name, **extra header fields}``
- any other key, copied onto the generated schema object
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


@dataclass(eq=False)
class Descriptor:
    """Base class for all descriptors."""

    description: str | None = field(default=None, kw_only=True)
    openapi: dict[str, Any] = field(default_factory=dict, kw_only=True)

    def is_optional(self) -> bool:
        return False

    @property
    def schema_ref(self) -> str | None:
        return self.openapi.get("ref")

    @property
    def header_metadata(self) -> dict[str, Any]:
        return self.openapi.get("header") or {}

    @property
    def schema_extras(self) -> dict[str, Any]:
        """Metadata copied verbatim onto the generated schema."""
        return {k: v for k, v in self.openapi.items() if k not in ("ref", "header")}


@dataclass(eq=False)
class StringDescriptor(Descriptor):
    format: str | None = None
    pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None


@dataclass(eq=False)
class NumberDescriptor(Descriptor):
    integer: bool = False
    minimum: float | None = None
    maximum: float | None = None


@dataclass(eq=False)
class BooleanDescriptor(Descriptor):
    pass


@dataclass(eq=False)
class NullDescriptor(Descriptor):
    pass


@dataclass(eq=False)
class EnumDescriptor(Descriptor):
    values: list[Any] = field(default_factory=list)


@dataclass(eq=False)
class ArrayDescriptor(Descriptor):
    items: Descriptor | None = None
    min_items: int | None = None
    max_items: int | None = None


@dataclass(eq=False)
class ObjectDescriptor(Descriptor):
    properties: dict[str, Descriptor] = field(default_factory=dict)
    additional_properties: bool | None = None


@dataclass(eq=False)
class UnionDescriptor(Descriptor):
    options: list[Descriptor] = field(default_factory=list)


@dataclass(eq=False)
class OptionalDescriptor(Descriptor):
    inner: Descriptor

    def is_optional(self) -> bool:
        return True


@dataclass(eq=False)
class NullableDescriptor(Descriptor):
    inner: Descriptor

    def is_optional(self) -> bool:
        return self.inner.is_optional()


@dataclass(eq=False)
class DefaultDescriptor(Descriptor):
    """Wraps a descriptor with a default value, which also makes it optional."""

    inner: Descriptor
    default: Any = None

    def is_optional(self) -> bool:
        return True


@dataclass(eq=False)
class LazyDescriptor(Descriptor):
    """Defers to a descriptor produced on demand, used for recursive shapes."""

    getter: Callable[[], Descriptor]

    def resolve(self) -> Descriptor:
        return self.getter()

    def is_optional(self) -> bool:
        return resolve_lazy(self).is_optional()


def resolve_lazy(descriptor: Descriptor) -> Descriptor:
    """Follow lazy descriptors until a concrete one is reached."""
    while isinstance(descriptor, LazyDescriptor):
        descriptor = descriptor.resolve()
    return descriptor
