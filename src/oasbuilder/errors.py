"""Exceptions raised while building an OpenAPI document."""


class OasBuilderError(Exception):
    """Base class for all document build errors."""


class ReferenceInvariantError(OasBuilderError):
    """A reference object was produced where a concrete object was required.

    This signals a broken contract between the builders and the schema
    conversion service, not bad input, so it aborts the whole build.
    """


class ComponentRegistrationError(OasBuilderError):
    """An object already completed in the registry was registered again."""


class DuplicateComponentError(OasBuilderError):
    """Two different components were registered under the same name."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(
            f"Component name '{name}' is already used in components.{kind} "
            "by a different definition"
        )


class CycleDetectedError(OasBuilderError):
    """An unnamed descriptor refers back to itself while being converted."""


class DefinitionError(OasBuilderError):
    """The document definition contains a node that cannot be parsed."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")
