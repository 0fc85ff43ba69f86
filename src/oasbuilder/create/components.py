"""Component registry shared by every builder during one document build.

Components are keyed by the identity of the object that defines them (a
descriptor or a response definition), never by structural equality. A record
starts out ``pending`` when a name is reserved for an object that has not been
built yet, and becomes ``complete`` once its fragment is known. A complete
record never changes for the rest of the build.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Literal

from oasbuilder.errors import ComponentRegistrationError, DuplicateComponentError

ComponentKind = Literal["schemas", "headers", "responses"]

COMPONENT_KINDS: tuple[ComponentKind, ...] = ("schemas", "headers", "responses")


@dataclass(frozen=True)
class PendingRecord:
    """A reserved name for an object that has not been built yet."""

    ref: str | None = None
    type: Literal["pending"] = "pending"


@dataclass(frozen=True)
class CompleteRecord:
    """A built component and the stable name it is published under."""

    ref: str
    fragment: dict
    type: Literal["complete"] = "complete"


RegistrationRecord = PendingRecord | CompleteRecord


class ComponentStore:
    """Insertion-ordered mapping keyed by object identity.

    The key object itself is kept alive next to its record so that its ``id()``
    cannot be reused by another object while the build runs.
    """

    def __init__(self) -> None:
        self._entries: dict[int, tuple[Any, RegistrationRecord]] = {}

    def get(self, obj: Any) -> RegistrationRecord | None:
        entry = self._entries.get(id(obj))
        return entry[1] if entry else None

    def set(self, obj: Any, record: RegistrationRecord) -> None:
        self._entries[id(obj)] = (obj, record)

    def __contains__(self, obj: Any) -> bool:
        return id(obj) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def items(self) -> Iterator[tuple[Any, RegistrationRecord]]:
        return iter(list(self._entries.values()))


class ComponentRegistry:
    """Per-build store of registered components, one store per kind."""

    def __init__(self) -> None:
        self.schemas = ComponentStore()
        self.headers = ComponentStore()
        self.responses = ComponentStore()
        # name -> fragment of every complete record, per kind
        self._named: dict[str, dict[str, dict]] = {kind: {} for kind in COMPONENT_KINDS}

    def store(self, kind: ComponentKind) -> ComponentStore:
        if kind not in COMPONENT_KINDS:
            raise ValueError(f"Unknown component kind: {kind}")
        return getattr(self, kind)

    def lookup(self, kind: ComponentKind, obj: Any) -> RegistrationRecord | None:
        return self.store(kind).get(obj)

    def register(self, kind: ComponentKind, obj: Any, record: RegistrationRecord) -> None:
        """
        Write a record for ``obj``.

        Raises:
            ComponentRegistrationError: If ``obj`` is already complete
            DuplicateComponentError: If another object already completed under
                the same name with a different fragment
        """
        store = self.store(kind)
        existing = store.get(obj)
        if isinstance(existing, CompleteRecord):
            raise ComponentRegistrationError(
                f"components.{kind}.{existing.ref} is already registered for this object"
            )
        if isinstance(record, CompleteRecord):
            named = self._named[kind]
            if record.ref in named and named[record.ref] != record.fragment:
                raise DuplicateComponentError(kind, record.ref)
            named.setdefault(record.ref, record.fragment)
        store.set(obj, record)

    def reserve(self, kind: ComponentKind, obj: Any, ref: str | None) -> None:
        """Reserve ``ref`` for ``obj`` unless the object is already registered."""
        store = self.store(kind)
        if obj not in store:
            store.set(obj, PendingRecord(ref=ref))

    def pending(self, kind: ComponentKind) -> list[Any]:
        return [obj for obj, record in self.store(kind).items() if isinstance(record, PendingRecord)]

    def completed(self, kind: ComponentKind) -> dict[str, dict]:
        """Return built components of ``kind`` by name, in registration order."""
        result: dict[str, dict] = {}
        for _, record in self.store(kind).items():
            if isinstance(record, CompleteRecord):
                result.setdefault(record.ref, record.fragment)
        return result


def create_component_schema_ref(ref: str) -> str:
    return f"#/components/schemas/{ref}"


def create_component_header_ref(ref: str) -> str:
    return f"#/components/headers/{ref}"


def create_component_response_ref(ref: str) -> str:
    return f"#/components/responses/{ref}"


def create_components_object(registry: ComponentRegistry) -> dict[str, dict]:
    """
    Build the ``components`` section of the document.

    Objects that were reserved under a name but never reached while building
    the paths are built here, which may in turn register further components,
    so this loops until nothing is left pending.

    Args:
        registry: The registry populated while building the document

    Returns:
        Mapping of component kind to named components; kinds with no entries
        are omitted
    """
    # Deferred: responses and schema import this module.
    from oasbuilder.create.responses import create_header_or_ref, create_response
    from oasbuilder.create.schema import SchemaState, create_schema_or_ref

    attempted: set[tuple[str, int]] = set()

    def _todo(kind: ComponentKind) -> list[Any]:
        objs = [obj for obj in registry.pending(kind) if (kind, id(obj)) not in attempted]
        attempted.update((kind, id(obj)) for obj in objs)
        return objs

    while True:
        schemas = _todo("schemas")
        headers = _todo("headers")
        responses = _todo("responses")
        if not (schemas or headers or responses):
            break
        for descriptor in schemas:
            create_schema_or_ref(descriptor, SchemaState(registry=registry, direction="output"))
        for descriptor in headers:
            create_header_or_ref(descriptor, registry)
        for response in responses:
            create_response(response, registry)

    components: dict[str, dict] = {}
    for kind in COMPONENT_KINDS:
        named = registry.completed(kind)
        if named:
            components[kind] = named
    return components
