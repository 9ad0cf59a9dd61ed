import logging
from pathlib import Path

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from fixedrec.codegen.emit_py import render_source
from fixedrec.compiler import build_parser, compile_schema
from fixedrec.config import CompilerConfig
from fixedrec.errors import SchemaError
from fixedrec.export import (
    SUPPORTED_FORMATS,
    dumps,
    outcome_to_row,
    records_to_arrow,
    records_to_csv,
    records_to_jsonl,
)
from fixedrec.frontend.loader import load_schema, sample_schema
from fixedrec.runtime.dispatcher import ParseOutcome
from fixedrec.schema.model import RecordFormatSchema

app = typer.Typer(help="Compile fixed-length tagged record schemas into parsers.")
console = Console()
err_console = Console(stderr=True)
LOGGER = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log compiler decisions."),
) -> None:
    _setup_logging(verbose)


def _compile(path: Path, config: CompilerConfig) -> RecordFormatSchema:
    if not path.is_file():
        raise typer.BadParameter(f"Schema file not found: {path}")
    try:
        return compile_schema(load_schema(path), config)
    except SchemaError as exc:
        raise typer.BadParameter(f"Invalid schema {path}: {exc}") from exc


def _print_data(text: str) -> None:
    console.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True)


@app.command()
def check(
    schema: Path = typer.Argument(..., help="Schema file (.yaml/.yml or .json)."),
) -> None:
    """Validate a schema and show every field's resolved range."""
    compiled = _compile(schema, CompilerConfig())
    table = Table(title=f"{compiled.target_name} (tag length {compiled.tag_length})")
    table.add_column("tag")
    table.add_column("variant")
    table.add_column("field")
    table.add_column("range")
    table.add_column("type")
    for variant in compiled.variants:
        for field in variant.fields:
            table.add_row(
                escape(variant.tag),
                variant.name,
                field.name,
                escape(f"[{field.start}, {field.end})"),
                str(field.value_type),
            )
    console.print(table)
    console.print(f"[bold green]OK[/] {len(compiled.variants)} record types")


@app.command()
def parse(
    schema: Path = typer.Argument(..., help="Schema file (.yaml/.yml or .json)."),
    input: Path = typer.Argument(..., help="Fixed-width data file, one record per line."),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Optional path to write parsed records."
    ),
    format: str = typer.Option(
        "json", "--format", "-f", help="Output format: json | jsonl | csv | arrow."
    ),
    strict: bool = typer.Option(
        False, "--strict/--lenient", help="Abort on the first record that fails to parse."
    ),
    pad: bool = typer.Option(False, "--pad", help="Right-pad lines shorter than their layout."),
    encoding: str = typer.Option("utf-8", "--encoding", "-e", help="Input text encoding."),
) -> None:
    """Parse a data file with a compiled schema."""
    fmt = format.lower()
    if fmt not in SUPPORTED_FORMATS:
        raise typer.BadParameter(f"Unsupported format '{format}'. Choose from {SUPPORTED_FORMATS}.")
    if fmt in {"csv", "arrow"} and output is None:
        raise typer.BadParameter(f"--output is required for {fmt} output.")
    if not input.is_file():
        raise typer.BadParameter(f"Input file not found: {input}")

    config = CompilerConfig(pad_short_lines=pad)
    parser = build_parser(_compile(schema, config), config)

    outcomes: list[ParseOutcome] = []
    try:
        with input.open(encoding=encoding, newline="") as f:
            for outcome in parser.parse_lines(f):
                if strict and outcome.error is not None:
                    err_console.print(f"[bold red]line {outcome.line_number}:[/] {outcome.error}")
                    raise typer.Exit(code=1)
                outcomes.append(outcome)
    except UnicodeDecodeError as exc:
        raise typer.BadParameter(f"Input {input} is not valid {encoding}: {exc}") from exc
    except LookupError as exc:
        raise typer.BadParameter(f"Unknown encoding '{encoding}'.") from exc

    errors = sum(1 for o in outcomes if not o.ok)
    LOGGER.info("parsed %d lines from %s, %d failed", len(outcomes), input, errors)
    if output is None:
        if fmt == "jsonl":
            for outcome in outcomes:
                _print_data(dumps(outcome_to_row(outcome)).decode())
        else:
            _print_data(dumps([outcome_to_row(o) for o in outcomes], indent=True).decode())
    else:
        if fmt == "csv":
            records_to_csv(outcomes, output)
        elif fmt == "arrow":
            records_to_arrow(outcomes, output)
        elif fmt == "jsonl":
            records_to_jsonl(outcomes, output)
        else:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_bytes(dumps([outcome_to_row(o) for o in outcomes], indent=True))
        console.print(f"[bold green]Wrote[/] {len(outcomes)} records to {output}")
    if errors:
        err_console.print(f"[yellow]{errors} of {len(outcomes)} lines failed to parse.[/]")


@app.command("compile")
def compile_cmd(
    schema: Path = typer.Argument(..., help="Schema file (.yaml/.yml or .json)."),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Optional path to write the generated module."
    ),
    pad: bool = typer.Option(False, "--pad", help="Right-pad lines shorter than their layout."),
) -> None:
    """Render a standalone Python parser module for a schema."""
    config = CompilerConfig(pad_short_lines=pad)
    compiled = _compile(schema, config)
    try:
        source = render_source(compiled, config)
    except SchemaError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(source)
        console.print(f"[bold green]Wrote parser[/] for {compiled.target_name} to {output}")
    else:
        _print_data(source)


@app.command()
def sample(
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Optional path to write the sample schema."
    ),
) -> None:
    """Emit a sample schema to start from."""
    text = yaml.safe_dump(sample_schema(), sort_keys=False)
    if output:
        output.write_text(text)
        console.print(f"[bold green]Wrote sample schema[/] to {output}")
    else:
        _print_data(text)


if __name__ == "__main__":
    app()
