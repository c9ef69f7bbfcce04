"""
Command-line interface for tagtab.

Provides commands to inspect and validate tagged-tab files.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .core.decoder import Decoder
from .core.reader import Reader
from .exceptions import ParseError, TagTabError
from .models.enums import LogLevel
from .utils.logging import setup_logging

app = typer.Typer(
    name="tagtab",
    help="Inspect and validate tagged-tab files",
    add_completion=False,
)

console = Console()


def _rune(value: Optional[str]) -> Optional[str]:
    """Accept ``\\t`` or ``tab`` for a tab on the command line."""
    if value in ("\\t", "tab"):
        return "\t"
    return value


def _printable(text: str) -> str:
    return text.replace("\r", "\\r").replace("\n", "\\n").replace("\t", "\\t")


def _report_error(path: Path, error: TagTabError) -> None:
    where = ""
    if isinstance(error, ParseError) and error.line is not None:
        where = f":{error.line}"
        if error.column is not None:
            where += f":{error.column}"
    console.print(f"[bold red]❌ {path}{where}[/bold red] {error.message}")


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Configure logging for every command."""
    setup_logging(LogLevel.DEBUG if debug else None)


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold cyan]tagtab[/bold cyan] version {__version__}")


@app.command()
def records(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to read"),
    formats: bool = typer.Option(False, "--formats", help="Show each field's quoting"),
    delimiter: Optional[str] = typer.Option(None, "--delimiter", "-d", help="Field delimiter"),
    comment: Optional[str] = typer.Option(None, "--comment", "-c", help="Comment character"),
):
    """
    Print raw records as a table.

    Records may have different widths; short rows are padded with blanks.
    """
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", justify="right")

    rows: list[list[str]] = []
    width = 0
    try:
        with path.open("rb") as stream:
            reader = Reader(
                stream,
                delimiter=_rune(delimiter),
                comment=_rune(comment),
                fields_per_record=-1,
            )
            while (parsed := reader.read_with_format()) is not None:
                values, fmts = parsed
                cells = [_printable(v) for v in values]
                if formats:
                    cells = [f"{f}{c}{f}" for c, f in zip(cells, fmts)]
                rows.append(cells)
                width = max(width, len(cells))
    except TagTabError as e:
        _report_error(path, e)
        raise typer.Exit(code=1)

    for i in range(width):
        table.add_column(str(i + 1))
    for n, cells in enumerate(rows, start=1):
        table.add_row(str(n), *cells, *([""] * (width - len(cells))))

    console.print(table)
    console.print(f"[dim]{len(rows)} records[/dim]")


@app.command()
def show(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Typed stream to read"),
    delimiter: Optional[str] = typer.Option(None, "--delimiter", "-d", help="Field delimiter"),
    comment: Optional[str] = typer.Option(None, "--comment", "-c", help="Comment character"),
):
    """Print a typed stream as one table per registered type."""
    tables: dict[tuple[str, str], Table] = {}
    try:
        with path.open("rb") as stream:
            decoder = Decoder(stream, delimiter=_rune(delimiter), comment=_rune(comment))
            for descriptor, values in decoder.rows():
                table = tables.get(descriptor.key)
                if table is None:
                    table = Table(title=descriptor.qualified_name, header_style="bold cyan")
                    for column in descriptor.columns:
                        table.add_column(column)
                    tables[descriptor.key] = table
                table.add_row(*(_printable(v) for v in values))
    except TagTabError as e:
        _report_error(path, e)
        raise typer.Exit(code=1)

    if not tables:
        console.print("[yellow]No typed rows found[/yellow]")
    for table in tables.values():
        console.print(table)


@app.command()
def check(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="File to validate"),
    typed: bool = typer.Option(
        True, "--typed/--raw", help="Validate registry control rows, or only the record grammar"
    ),
    delimiter: Optional[str] = typer.Option(None, "--delimiter", "-d", help="Field delimiter"),
    comment: Optional[str] = typer.Option(None, "--comment", "-c", help="Comment character"),
):
    """Read the whole file and report the first error, if any."""
    try:
        with path.open("rb") as stream:
            if typed:
                decoder = Decoder(stream, delimiter=_rune(delimiter), comment=_rune(comment))
                count = sum(1 for _ in decoder.rows())
                kinds = len(decoder.registry)
            else:
                reader = Reader(
                    stream,
                    delimiter=_rune(delimiter),
                    comment=_rune(comment),
                    fields_per_record=-1,
                )
                count = len(reader.read_all())
                kinds = None
    except TagTabError as e:
        _report_error(path, e)
        raise typer.Exit(code=1)

    summary = f"{count} rows"
    if kinds is not None:
        summary += f", {kinds} types"
    console.print(f"[bold green]✅ {path}[/bold green] {summary}")
