"""Pipeline that turns a definition file into an OpenAPI document file.

1. Load the definition from a JSON or YAML file
2. Parse it into descriptors and response definitions
3. Build the document, registering shared components
4. Write the document back out
"""

from pathlib import Path

from rich.console import Console

from oasbuilder.config import FileFormat, ProjectConfig
from oasbuilder.core.definition import parse_definition
from oasbuilder.core.loader import load_definition_file
from oasbuilder.core.writer import write_document
from oasbuilder.create.components import ComponentRegistry
from oasbuilder.create.document import create_document


def build_spec(
    input_path: Path,
    output_path: Path,
    config: ProjectConfig | None = None,
    output_format: FileFormat | None = None,
    console: Console | None = None,
) -> ComponentRegistry:
    """
    Load a definition, build its OpenAPI document and save the result.

    Args:
        input_path: Path to the definition file (.json, .yaml, or .yml)
        output_path: Path where the document will be written
        config: Project configuration; defaults apply when omitted
        output_format: Format to write; falls back to the config, then to the
            input file's format
        console: Optional Rich Console for progress output

    Returns:
        The registry populated during the build

    Raises:
        FileNotFoundError: If the input file doesn't exist
        ValueError: If the input file has an unsupported extension
        OasBuilderError: If the definition is invalid or cannot be built
    """
    config = config or ProjectConfig()

    data, input_format = load_definition_file(input_path)
    if console:
        console.print(f"  [dim]→ loaded {input_path.name}[/dim]")

    definition = parse_definition(data)
    if console:
        console.print(f"  [dim]→ parsed {len(definition.paths)} path(s)[/dim]")

    registry = ComponentRegistry()
    document = create_document(definition, registry, openapi_version=config.openapi_version)
    if console:
        console.print(
            f"  [dim]→ registered {len(registry.completed('schemas'))} schema(s), "
            f"{len(registry.completed('headers'))} header(s), "
            f"{len(registry.completed('responses'))} response(s)[/dim]"
        )

    write_document(document, output_path, output_format or config.output_format or input_format)
    return registry
