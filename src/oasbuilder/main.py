"""Main CLI entry point for oasbuilder."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from oasbuilder.config import FileFormat, load_config
from oasbuilder.core.definition import parse_definition
from oasbuilder.core.loader import load_definition_file
from oasbuilder.create.components import COMPONENT_KINDS, ComponentRegistry
from oasbuilder.create.document import create_document
from oasbuilder.manager import build_spec

app = typer.Typer(
    name="oasbuilder",
    help="Build OpenAPI documents with shared components from descriptor definitions",
)
console = Console()

_SUFFIXES = {FileFormat.JSON: ".json", FileFormat.YAML: ".yaml"}


def derive_output_path(definition_path: Path, name: str | None, format: FileFormat | None) -> Path:
    """
    Derive the output document path from the definition path.

    Args:
        definition_path: The definition file
        name: Output file name without extension (defaults to "openapi")
        format: Output format (defaults to the definition's own extension)

    Returns:
        Path next to the definition file
    """
    suffix = _SUFFIXES[format] if format else definition_path.suffix
    return definition_path.parent / f"{name or 'openapi'}{suffix}"


@app.command()
def build(
    definition: str = typer.Argument(..., help="Path to the definition file (.yaml/.yml/.json)"),
    output: str = typer.Option(
        None,
        "--output",
        "-o",
        help="Where to write the document (defaults to openapi.<ext> next to the definition)",
    ),
    format: FileFormat = typer.Option(
        None,
        "--format",
        "-f",
        help="Output format (defaults to the config file, then the definition's format)",
    ),
) -> None:
    """Build an OpenAPI document from a definition file."""
    definition_path = Path(definition).resolve()
    config = load_config(definition_path.parent)
    output_format = format or config.output_format

    output_path = (
        Path(output).resolve()
        if output
        else derive_output_path(definition_path, config.output_name, output_format)
    )

    console.print()
    console.print("[bold blue]oasbuilder[/bold blue]")
    console.print(f"[dim]Definition: {definition_path}[/dim]")
    console.print()

    with console.status("[bold yellow]Building document..."):
        try:
            registry = build_spec(
                definition_path,
                output_path,
                config=config,
                output_format=output_format,
                console=console,
            )
        except Exception as e:
            console.print(f"[bold red]✗[/bold red] Failed to build document: {e}")
            raise typer.Exit(1)

    total = sum(len(registry.completed(kind)) for kind in COMPONENT_KINDS)
    console.print(f"[bold green]✓[/bold green] Document written to: {output_path.name}")
    console.print(f"[dim]{total} shared component(s) registered[/dim]")
    console.print()


@app.command()
def components(
    definition: str = typer.Argument(..., help="Path to the definition file (.yaml/.yml/.json)"),
) -> None:
    """List the components a definition registers, without writing anything."""
    definition_path = Path(definition).resolve()
    config = load_config(definition_path.parent)

    try:
        data, _ = load_definition_file(definition_path)
        registry = ComponentRegistry()
        create_document(parse_definition(data), registry, openapi_version=config.openapi_version)
    except Exception as e:
        console.print(f"[bold red]✗[/bold red] Failed to build document: {e}")
        raise typer.Exit(1)

    table = Table(title="Registered components")
    table.add_column("Kind")
    table.add_column("Name")
    table.add_column("Reference")
    for kind in COMPONENT_KINDS:
        for name in registry.completed(kind):
            table.add_row(kind, name, f"#/components/{kind}/{name}")
    console.print(table)


if __name__ == "__main__":
    app()
