"""Command-line interface for zapgen code generation."""

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.table import Table

from zapgen.generator.golang import emit_file, generate_file
from zapgen.generator.logs import configure_logging, report
from zapgen.generator.options import GeneratorOptions, KeyStyle, PathsMode
from zapgen.generator.parser import load_schema
from zapgen.generator.schema import Schema, walk_messages
from zapgen.generator.types import SchemaError

if TYPE_CHECKING:
    from zapgen.generator.emitter import GenerationResult
    from zapgen.generator.types import ProtoFile

log = logging.getLogger(__name__)


def _load(input_file: str, deps: tuple[str, ...]) -> Schema:
    sources: list[tuple[str, str]] = []
    for path in (input_file, *deps):
        with open(path, encoding="utf-8") as f:
            sources.append((path, f.read()))
    return load_schema(sources)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log discovery and emission details")
def cli(verbose: bool) -> None:
    """zapgen: zap log marshaler generator for protobuf messages."""
    configure_logging(verbose)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input .proto file")
@click.option("--output", "-o", "output_file", default=None, help="Output file (default stdout)")
@click.option(
    "--dep",
    "-d",
    "deps",
    multiple=True,
    help="Additional .proto file providing imported types (repeatable)",
)
@click.option(
    "--keys",
    type=click.Choice([k.value for k in KeyStyle]),
    default=KeyStyle.GO.value,
    show_default=True,
    help="Field name used as the log key",
)
@click.option("--package", default=None, help="Go package name override")
def gen(
    input_file: str,
    output_file: str | None,
    deps: tuple[str, ...],
    keys: str,
    package: str | None,
) -> None:
    """Generate zap marshalers from a .proto file."""
    options = GeneratorOptions(paths=PathsMode.SOURCE_RELATIVE, keys=KeyStyle(keys), package=package)

    try:
        schema = _load(input_file, deps)
        generated = generate_file(schema, input_file, options)
    except SchemaError as exc:
        log.error("%s", exc)
        sys.exit(1)

    report(generated.diagnostics)

    if output_file is None:
        click.echo(generated.content, nl=False)
    else:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(generated.content)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input .proto file")
@click.option("--dep", "-d", "deps", multiple=True, help="Additional .proto file (repeatable)")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, deps: tuple[str, ...], output_json: bool) -> None:
    """Display messages, generated procedures and diagnostics."""
    try:
        schema = _load(input_file, deps)
        file = schema.file(input_file)
        result = emit_file(schema, input_file)
    except SchemaError as exc:
        log.error("%s", exc)
        sys.exit(1)

    if output_json:
        _output_json(file, result)
    else:
        _output_plain(file, result)


def _disposition(full_name: str, is_map_entry: bool, emitted: set[str]) -> str:
    if is_map_entry:
        return "map entry"
    return "emitted" if full_name in emitted else "skipped"


def _output_json(file: ProtoFile, result: GenerationResult) -> None:
    """Output file info as JSON."""
    emitted = {p.type_name for p in result.procedures}
    data: dict = {
        "file": {
            "path": file.path,
            "package": file.package,
            "syntax": file.syntax,
            "go_package": file.go_package,
        },
        "messages": {},
        "diagnostics": [],
    }

    for message in walk_messages(file.messages):
        data["messages"][message.full_name] = {
            "go_name": message.go_name,
            "fields": len(message.fields),
            "procedure": _disposition(message.full_name, message.is_map_entry, emitted),
        }

    for diag in result.diagnostics:
        data["diagnostics"].append(
            {
                "severity": diag.severity.value,
                "type": diag.type_name,
                "field": diag.field_name,
                "message": diag.message,
            }
        )

    print(json.dumps(data, indent=2))


def _output_plain(file: ProtoFile, result: GenerationResult) -> None:
    """Output file info using rich text formatting."""
    console = Console()
    emitted = {p.type_name for p in result.procedures}

    console.print("[bold cyan]File[/bold cyan]")
    file_table = Table(show_header=False, box=None, padding=(0, 2, 0, 2))
    file_table.add_column("Label", style="dim")
    file_table.add_column("Value", style="white")
    file_table.add_row("Path", file.path)
    file_table.add_row("Package", file.package or "(none)")
    file_table.add_row("Syntax", file.syntax)
    file_table.add_row("Go package", file.go_package or "(none)")
    console.print(file_table)
    console.print()

    console.print("[bold cyan]Messages[/bold cyan]")
    message_table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    message_table.add_column("Name", style="white")
    message_table.add_column("Go type", style="yellow")
    message_table.add_column("Fields", style="dim", justify="right")
    message_table.add_column("Procedure", style="green")

    for message in walk_messages(file.messages):
        message_table.add_row(
            message.full_name,
            message.go_name,
            str(len(message.fields)),
            _disposition(message.full_name, message.is_map_entry, emitted),
        )

    console.print(message_table)
    console.print()

    console.print("[bold cyan]Diagnostics[/bold cyan]")
    if not result.diagnostics:
        console.print("  none")
        return

    diag_table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    diag_table.add_column("Severity", style="red")
    diag_table.add_column("Where", style="white")
    diag_table.add_column("Message", style="dim")
    for diag in result.diagnostics:
        where = diag.type_name if diag.field_name is None else f"{diag.type_name}.{diag.field_name}"
        diag_table.add_row(diag.severity.value, where, diag.message)
    console.print(diag_table)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
