"""Yade CLI - derive error rendering and cause lookup from a type schema.

Commands:
    yade generate <schema>   Emit Python implementation classes
    yade check <schema>      Validate annotations and summarize each variant
    yade schema <targets>    Export annotated Python classes as a schema
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from yade.codegen import generate_module
from yade.config import GeneratorConfig, load_config
from yade.diagnostics import format_diagnostic
from yade.exceptions import ConfigError, GenerationError, SchemaError
from yade.introspect import type_definition
from yade.message import compile_message
from yade.parser import parse_display
from yade.resolver import classify_causes
from yade.schema import TypeDefinition, dump_schema, load_schema

app = typer.Typer(
    name="yade",
    help="Derive error rendering and cause lookup from annotated type schemas",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log each generation step"),
    ] = False,
):
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


def _load_config(config_path: Optional[Path]) -> GeneratorConfig:
    if config_path is not None and not config_path.exists():
        raise typer.BadParameter(f"'{config_path}' does not exist", param_hint="--config")
    try:
        return load_config(config_path or Path("pyproject.toml"))
    except ConfigError as e:
        raise typer.BadParameter(str(e), param_hint="--config")


def _load(schema: Path, config_path: Optional[Path]) -> tuple[list[TypeDefinition], GeneratorConfig]:
    config = _load_config(config_path)
    try:
        typedefs = load_schema(schema)
    except SchemaError as e:
        raise typer.BadParameter(str(e), param_hint="SCHEMA")
    return typedefs, config


def _fail(err: GenerationError) -> NoReturn:
    typer.echo(format_diagnostic(err), err=True)
    raise typer.Exit(1)


@app.command("generate")
def generate_command(
    schema: Annotated[
        Path,
        typer.Argument(help="JSON schema file with one type definition or a list"),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("-o", "--output", help="Write the module here instead of stdout"),
    ] = None,
    display_only: Annotated[
        bool,
        typer.Option("--display-only", help="Generate rendering only (no cause lookup)"),
    ] = False,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", help="pyproject.toml with a [tool.yade] table"),
    ] = None,
):
    """Generate implementation classes for every type in a schema.

    Examples:
        yade generate errors.json -o errors_impl.py
        yade generate kinds.json --display-only
    """
    typedefs, config = _load(schema, config_path)

    try:
        source = generate_module(typedefs, error=not display_only, config=config)
    except GenerationError as err:
        _fail(err)

    if output is None:
        typer.echo(source, nl=False)
    else:
        output.write_text(source)
        typer.echo(f"Wrote {len(typedefs)} implementation(s) to {output}", err=True)


@app.command("check")
def check_command(
    schema: Annotated[
        Path,
        typer.Argument(help="JSON schema file with one type definition or a list"),
    ],
    display_only: Annotated[
        bool,
        typer.Option("--display-only", help="Check rendering only (no cause lookup)"),
    ] = False,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", help="pyproject.toml with a [tool.yade] table"),
    ] = None,
):
    """Validate annotations and print each variant's message and cause.

    Examples:
        yade check errors.json
        yade check errors.json --display-only
    """
    typedefs, config = _load(schema, config_path)

    table = Table(title="yade")
    table.add_column("Type")
    table.add_column("Variant")
    table.add_column("Message")
    table.add_column("Cause")

    try:
        for typedef in typedefs:
            # Full generation validates everything the summary does not show
            generate_module([typedef], error=not display_only, config=config)
            causes = {} if display_only else classify_causes(typedef, config=config)
            for variant in typedef.all_variants():
                display = parse_display(variant.attrs, variant=variant.name, config=config)
                message = compile_message(variant, display, config=config)
                binding = causes.get(variant.name)
                args = ", ".join(variant.label(i) for i in message.fields)
                text = message.template if message.literal else f"{message.template!r}"
                if args:
                    text = f"{text} ({args})"
                cause = "-" if binding is None else binding.kind.value
                if binding is not None and binding.index is not None:
                    cause = f"{cause}: {variant.label(binding.index)}"
                table.add_row(typedef.name, variant.name, escape(text), cause)
    except GenerationError as err:
        _fail(err)

    Console().print(table)


@app.command("schema")
def schema_command(
    targets: Annotated[
        list[str],
        typer.Argument(help="Annotated classes to export, as module:Class"),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("-o", "--output", help="Write the schema here instead of stdout"),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", help="pyproject.toml with a [tool.yade] table"),
    ] = None,
):
    """Export annotated Python classes as a JSON type schema.

    Examples:
        yade schema myapp.errors:FetchError myapp.errors:FetchKind
    """
    config = _load_config(config_path)

    typedefs = []
    try:
        for target in targets:
            typedefs.append(type_definition(_load_class(target), config=config))
    except GenerationError as err:
        _fail(err)

    text = dump_schema(typedefs) + "\n"
    if output is None:
        typer.echo(text, nl=False)
    else:
        output.write_text(text)
        typer.echo(f"Wrote {len(typedefs)} type definition(s) to {output}", err=True)


def _load_class(target: str) -> type:
    """Import ``module:Class`` (nested classes as ``module:Outer.Inner``)."""
    module_name, sep, attr_path = target.partition(":")
    if not sep or not attr_path:
        raise typer.BadParameter(f"'{target}' is not of the form module:Class")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise typer.BadParameter(f"Cannot import module '{module_name}': {e}")

    obj: object = module
    for part in attr_path.split("."):
        if not hasattr(obj, part):
            raise typer.BadParameter(f"Module '{module_name}' has no attribute '{attr_path}'")
        obj = getattr(obj, part)

    if not isinstance(obj, type):
        raise typer.BadParameter(f"'{attr_path}' is not a class, got {type(obj).__name__}")
    return obj


def main():
    app()


if __name__ == "__main__":
    main()
