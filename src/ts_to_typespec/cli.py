"""Command-line interface for the ts_to_typespec package."""

from __future__ import annotations

import glob
import logging
from pathlib import Path
from typing import Annotated

import typer
import ujson as json
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from . import get_version
from .api import convert_files, write_document
from .config import ConverterConfig, config_json_schema, load_converter_config
from .errors import ConversionError

app = typer.Typer(help="Convert annotated TypeScript declarations to TypeSpec")
console = Console()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def find_inputs(pattern: str) -> list[Path]:
    """Files matching ``pattern`` (``**`` recurses), sorted for a stable order."""
    matches = (Path(match) for match in glob.glob(pattern, recursive=True))
    return sorted(path for path in matches if path.is_file())


def _fail(message: str) -> typer.Exit:
    console.print(f"[bold red]{message}[/]")
    return typer.Exit(code=1)


@app.command()
def version() -> None:
    """Print the installed package version."""
    typer.echo(get_version())


@app.command()
def convert(
    pattern: Annotated[str, typer.Argument(help="Glob pattern of TypeScript input files.")],
    output: Annotated[
        Path, typer.Option("--output", "-o", help="Directory for the generated document.")
    ] = Path("typespec"),
    config: Annotated[
        Path | None,
        typer.Option(exists=True, dir_okay=False, readable=True, help="YAML or JSON config."),
    ] = None,
    workers: Annotated[int, typer.Option(min=1, help="Units converted in parallel.")] = 1,
    log_level: Annotated[
        str, typer.Option(help=f"Logging level ({'/'.join(LOG_LEVELS)}).")
    ] = "WARNING",
) -> None:
    """Convert every exported declaration in the matching files into one document."""
    if log_level.upper() not in LOG_LEVELS:
        raise typer.BadParameter(f"{log_level} is not one of {', '.join(LOG_LEVELS)}")
    configure_logging(log_level)
    try:
        cfg = load_converter_config(config) if config is not None else ConverterConfig()
    except ValueError as exc:
        raise _fail(escape(str(exc))) from exc

    files = find_inputs(pattern)
    if not files:
        raise _fail(f"No files match {escape(pattern)}")

    try:
        text = convert_files(files, config=cfg, workers=workers)
        path = write_document(text, output, cfg.output_name)
    except (OSError, UnicodeDecodeError, ConversionError) as exc:
        raise _fail(f"Failed to convert: {escape(str(exc))}") from exc
    console.print(f"[bold green]Converted {len(files)} files:[/] {path}")


@app.command("config-schema")
def config_schema(
    out: Annotated[Path, typer.Argument(help="Destination JSON schema path.")],
) -> None:
    """Write the JSON schema of the converter config."""
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(config_json_schema(), indent=2))
    console.print(f"[bold green]Schema written:[/] {out}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
