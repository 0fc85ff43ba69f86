"""Tests for the component registry."""

import pytest

from oasbuilder.create.components import (
    CompleteRecord,
    ComponentRegistry,
    PendingRecord,
    create_component_header_ref,
    create_component_response_ref,
    create_component_schema_ref,
    create_components_object,
)
from oasbuilder.descriptors import NumberDescriptor, StringDescriptor
from oasbuilder.errors import ComponentRegistrationError, DuplicateComponentError


class TestComponentRegistry:
    """Test lookup and registration semantics."""

    def test_lookup_unknown_object_returns_none(self):
        """Test that an object never registered has no record."""
        registry = ComponentRegistry()

        assert registry.lookup("headers", StringDescriptor()) is None

    def test_register_and_lookup_complete_record(self):
        """Test that a registered record is returned for the same object."""
        registry = ComponentRegistry()
        descriptor = StringDescriptor()
        record = CompleteRecord(ref="Token", fragment={"schema": {"type": "string"}})

        registry.register("headers", descriptor, record)

        assert registry.lookup("headers", descriptor) is record
        assert record.type == "complete"

    def test_lookup_is_by_identity_not_equality(self):
        """Test that two equal dicts are tracked as unrelated objects."""
        registry = ComponentRegistry()
        first = {"description": "ok"}
        second = {"description": "ok"}

        registry.register("responses", first, CompleteRecord(ref="Ok", fragment=dict(first)))

        assert registry.lookup("responses", second) is None
        assert len(registry.responses) == 1

    def test_kinds_are_independent(self):
        """Test that a registration in one kind is invisible in another."""
        registry = ComponentRegistry()
        descriptor = StringDescriptor()

        registry.register("schemas", descriptor, CompleteRecord(ref="S", fragment={}))

        assert registry.lookup("headers", descriptor) is None

    def test_reregistering_complete_object_raises(self):
        """Test that a complete record can never be replaced."""
        registry = ComponentRegistry()
        descriptor = StringDescriptor()
        registry.register("headers", descriptor, CompleteRecord(ref="A", fragment={}))

        with pytest.raises(ComponentRegistrationError):
            registry.register("headers", descriptor, CompleteRecord(ref="B", fragment={}))

    def test_pending_record_can_be_completed(self):
        """Test the pending to complete transition."""
        registry = ComponentRegistry()
        descriptor = StringDescriptor()

        registry.reserve("headers", descriptor, "Token")
        assert registry.lookup("headers", descriptor) == PendingRecord(ref="Token")
        assert registry.pending("headers") == [descriptor]

        registry.register("headers", descriptor, CompleteRecord(ref="Token", fragment={}))

        assert registry.lookup("headers", descriptor).type == "complete"
        assert registry.pending("headers") == []

    def test_reserve_does_not_overwrite_existing_record(self):
        """Test that reserving an already registered object is a no-op."""
        registry = ComponentRegistry()
        descriptor = StringDescriptor()
        record = CompleteRecord(ref="Token", fragment={})
        registry.register("headers", descriptor, record)

        registry.reserve("headers", descriptor, "Other")

        assert registry.lookup("headers", descriptor) is record

    def test_same_name_with_different_fragment_raises(self):
        """Test that one name cannot point at two different definitions."""
        registry = ComponentRegistry()
        registry.register(
            "headers", StringDescriptor(), CompleteRecord(ref="Id", fragment={"a": 1})
        )

        with pytest.raises(DuplicateComponentError) as exc_info:
            registry.register(
                "headers", StringDescriptor(), CompleteRecord(ref="Id", fragment={"a": 2})
            )

        assert exc_info.value.kind == "headers"
        assert exc_info.value.name == "Id"

    def test_same_name_with_equal_fragment_is_allowed(self):
        """Test that equal definitions may share a name and are emitted once."""
        registry = ComponentRegistry()
        registry.register("headers", StringDescriptor(), CompleteRecord(ref="Id", fragment={"a": 1}))
        registry.register("headers", StringDescriptor(), CompleteRecord(ref="Id", fragment={"a": 1}))

        assert len(registry.headers) == 2
        assert registry.completed("headers") == {"Id": {"a": 1}}

    def test_conflict_is_checked_against_first_registration(self):
        """Test that a clash is caught however many entries were registered since."""
        registry = ComponentRegistry()
        registry.register("schemas", StringDescriptor(), CompleteRecord(ref="Id", fragment={"a": 1}))
        for i in range(50):
            registry.register(
                "schemas", StringDescriptor(), CompleteRecord(ref=f"Other{i}", fragment={"i": i})
            )

        with pytest.raises(DuplicateComponentError):
            registry.register(
                "schemas", StringDescriptor(), CompleteRecord(ref="Id", fragment={"a": 2})
            )

    def test_pending_names_do_not_count_as_conflicts(self):
        """Test that only complete records take part in the name check."""
        registry = ComponentRegistry()
        registry.reserve("headers", StringDescriptor(), "Id")

        registry.register("headers", StringDescriptor(), CompleteRecord(ref="Id", fragment={"a": 1}))

        assert registry.completed("headers") == {"Id": {"a": 1}}

    def test_unknown_kind_raises(self):
        """Test that only the supported kinds are accepted."""
        registry = ComponentRegistry()

        with pytest.raises(ValueError, match="Unknown component kind"):
            registry.lookup("parameters", StringDescriptor())

    def test_unhashable_objects_are_supported(self):
        """Test that plain dicts work as keys."""
        registry = ComponentRegistry()
        response = {"description": "ok"}

        registry.reserve("responses", response, "Ok")

        assert response in registry.responses


class TestReferenceHelpers:
    """Test component reference paths."""

    def test_schema_ref(self):
        assert create_component_schema_ref("User") == "#/components/schemas/User"

    def test_header_ref(self):
        assert create_component_header_ref("RateLimit") == "#/components/headers/RateLimit"

    def test_response_ref(self):
        assert create_component_response_ref("NotFound") == "#/components/responses/NotFound"


class TestCreateComponentsObject:
    """Test the components section built from a registry."""

    def test_empty_registry_returns_empty_mapping(self):
        """Test that nothing is emitted for an unused registry."""
        assert create_components_object(ComponentRegistry()) == {}

    def test_completed_components_are_grouped_by_kind(self):
        """Test the shape of the components section."""
        registry = ComponentRegistry()
        registry.register(
            "headers", StringDescriptor(), CompleteRecord(ref="Trace", fragment={"x": 1})
        )
        registry.register("responses", {}, CompleteRecord(ref="Ok", fragment={"y": 2}))

        result = create_components_object(registry)

        assert result == {"headers": {"Trace": {"x": 1}}, "responses": {"Ok": {"y": 2}}}

    def test_pending_header_is_materialised(self):
        """Test that a reserved but unused header is still built."""
        registry = ComponentRegistry()
        registry.reserve("headers", NumberDescriptor(integer=True), "RateLimit")

        result = create_components_object(registry)

        assert result == {
            "headers": {"RateLimit": {"schema": {"type": "integer"}, "required": True}}
        }

    def test_pending_response_registers_its_schemas(self):
        """Test that materialising a response can register further components."""
        registry = ComponentRegistry()
        user = StringDescriptor(openapi={"ref": "UserId"})
        response = {"description": "A user id", "content": {"text/plain": {"schema": user}}}
        registry.reserve("responses", response, "UserIdResponse")

        result = create_components_object(registry)

        assert result["schemas"] == {"UserId": {"type": "string"}}
        assert result["responses"] == {
            "UserIdResponse": {
                "description": "A user id",
                "content": {"text/plain": {"schema": {"$ref": "#/components/schemas/UserId"}}},
            }
        }

    def test_pending_without_name_is_dropped(self):
        """Test that a pending record with no name does not loop forever."""
        registry = ComponentRegistry()
        registry.reserve("headers", StringDescriptor(), None)

        assert create_components_object(registry) == {}
