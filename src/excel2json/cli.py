"""CLI entry point for excel2json."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from excel2json import DEFAULT_INDENT, __version__
from excel2json.errors import ConversionError
from excel2json.io import load_sheet, write_json
from excel2json.models import ConversionSummary, ResolvedColumn
from excel2json.pipeline import parse_column_list, sheet_to_records

app = typer.Typer(
    name="excel2json",
    help="excel2json — Convert an Excel sheet to a JSON array of records.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    err_console.print(f"[red]x[/red] {escape(msg)}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"excel2json v{__version__}")
        raise typer.Exit()


def _columns_table(columns: Sequence[ResolvedColumn]) -> RichTable:
    tbl = RichTable(title="Selected Columns")
    tbl.add_column("#", justify="right")
    tbl.add_column("Column")
    tbl.add_column("Header")
    tbl.add_column("Key", style="bold")
    for col in columns:
        tbl.add_row(
            str(col.column.ordinal), col.column.letter, escape(col.header), escape(col.key)
        )
    return tbl


# ── Conversion ───────────────────────────────────────────────────


def run_conversion(
    input_file: Path,
    sheet: str,
    output: Path,
    columns: Sequence[int] | None = None,
    *,
    indent: int | None = DEFAULT_INDENT,
    echo: Callable[..., None] = _noop,
) -> ConversionSummary:
    """Convert *sheet* of *input_file* into a JSON array written to *output*.

    Load -> select sheet -> normalise headers -> convert rows -> serialise.
    The first failure is raised as a :class:`ConversionError`; nothing is
    written to *output* in that case.
    """
    echo("[blue]>[/blue] Loading workbook …")
    frame = load_sheet(input_file, sheet)
    echo(f"  {len(frame)} rows x {len(frame.columns)} columns (including header row)")

    echo("[blue]>[/blue] Selecting columns …")
    converted = sheet_to_records(frame, columns, sheet=sheet)
    echo(_columns_table(converted.columns))

    echo("[blue]>[/blue] Converting rows …")
    echo(f"  {len(converted.records)} records")

    echo("[blue]>[/blue] Writing JSON …")
    write_json(output, converted.records, indent=indent)
    echo(f"  Output -> {output}")

    return ConversionSummary(
        input_path=str(input_file),
        sheet=sheet,
        output_path=str(output),
        visible_columns=len(converted.visible),
        selected_columns=len(converted.columns),
        records=len(converted.records),
    )


# ── Command ──────────────────────────────────────────────────────


@app.command()
def main(
    input_file: Path = typer.Argument(
        ..., metavar="FILE", help="Input Excel file path (.xlsx)."
    ),
    sheet: str = typer.Argument(
        ..., metavar="SHEET", help="Sheet name to convert (exact, case-sensitive)."
    ),
    output: Path = typer.Option(
        ..., "--output", "-o",
        help="Output JSON file path.",
    ),
    columns: str | None = typer.Option(
        None, "--columns", "-c",
        help=(
            "Visible column numbers to include (comma-separated, e.g. 1,2,3). "
            "Only columns with non-empty headers are counted. "
            "If not specified, all visible columns are included."
        ),
    ),
    indent: int = typer.Option(
        DEFAULT_INDENT, "--indent",
        min=0,
        help="JSON indentation; 0 writes compact output.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; errors are still reported.",
    ),
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Convert one sheet of an Excel workbook to a JSON array of records."""
    echo = _printer(quiet)
    try:
        requested = parse_column_list(columns) if columns is not None else None

        if not quiet:
            console.print(Panel(
                f"[bold]excel2json[/bold] v{__version__}\n"
                f"Input:  {escape(str(input_file))}\n"
                f"Sheet:  {escape(sheet)}\n"
                f"Output: {escape(str(output))}",
                title="Conversion Start", border_style="blue",
            ))

        summary = run_conversion(
            input_file, sheet, output, requested, indent=indent, echo=echo
        )
    except ConversionError as exc:
        _err(f"{exc.kind}: {exc}")
        raise typer.Exit(code=exc.exit_code)
    except Exception as exc:
        _err(f"Unexpected internal error: {exc}")
        raise typer.Exit(code=1)

    if not quiet:
        console.print(Panel(
            f"[green]Done[/green] — {summary.records} records -> {escape(summary.output_path)}\n"
            f"Visible columns:  {summary.visible_columns}\n"
            f"Selected columns: {summary.selected_columns}\n"
            f"Total records:    {summary.records}",
            title="Conversion Complete", border_style="green",
        ))
