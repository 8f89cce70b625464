"""
Command-line interface for pdffiller.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from pdffiller import engine
from pdffiller.config import DEFAULT_RENDER_DPI
from pdffiller.state.session import DocumentSession

console = Console()

password_option = click.option(
    "--password",
    default=None,
    help="Password for encrypted PDFs",
    type=str,
)


def _open(input_pdf: str, password: str | None) -> DocumentSession:
    session = DocumentSession()
    if not session.load(Path(input_pdf), password):
        console.print(f"[bold red]✗ Error:[/bold red] {session.last_error}")
        sys.exit(1)
    return session


def _parse_assignment(raw: str) -> tuple[str, str]:
    name, separator, value = raw.partition("=")
    if not separator or not name:
        raise click.BadParameter(f"Expected NAME=VALUE, got {raw!r}", param_hint="--value")
    return name, value


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose):
    """
    pdffiller - fill PDF forms from the command line.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    engine.initialize(quiet=not verbose)


@cli.command(name="info")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@password_option
def show_info(input_pdf, password):
    """
    Display document information.

    Example:

        pdffiller info form.pdf
    """
    session = _open(input_pdf, password)

    info_table = Table(title="PDF Information", show_header=False)
    info_table.add_column("Property", style="cyan")
    info_table.add_column("Value", style="green")

    info_table.add_row("File", Path(input_pdf).name)
    info_table.add_row("Title", session.title or "(none)")
    info_table.add_row("Author", session.author or "(none)")
    info_table.add_row("Pages", str(session.page_count))
    info_table.add_row("Has form", "yes" if session.has_form else "no")
    info_table.add_row("Fields", str(len(session.list_fields())))

    console.print(info_table)


@cli.command(name="fields")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@password_option
@click.option("--json", "as_json", is_flag=True, help="Print fields as JSON")
def list_fields(input_pdf, password, as_json):
    """
    List the form fields of a PDF.

    Examples:

        pdffiller fields form.pdf

        pdffiller fields form.pdf --json > fields.json
    """
    session = _open(input_pdf, password)
    fields = session.list_fields()

    if as_json:
        click.echo(json.dumps([record.to_dict() for record in fields], indent=2, ensure_ascii=False))
        return

    table = Table(title=f"Form fields ({len(fields)})")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Page", justify="right")
    table.add_column("Value", style="green")
    table.add_column("Flags", style="dim")

    for record in fields:
        if record.field_type.value in ("checkbox", "radio"):
            shown = "☑" if record.is_checked else "☐"
        else:
            shown = record.value
        flags = []
        if record.read_only:
            flags.append("read-only")
        if record.required:
            flags.append("required")
        page = str(record.page_index + 1) if record.page_index >= 0 else "?"
        table.add_row(record.full_name, record.field_type.value, page, shown, ", ".join(flags))

    console.print(table)


@cli.command(name="fill")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.argument("output_pdf", type=click.Path(dir_okay=False))
@password_option
@click.option(
    "--value", "-v", "assignments",
    multiple=True,
    help="Field assignment NAME=VALUE (repeatable)",
)
@click.option(
    "--values-json",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON object mapping field names to values",
)
@click.option("--flatten", is_flag=True, help="Lock all fields read-only after filling")
@click.option("--strict", is_flag=True, help="Do not write output if any field fails")
def fill(input_pdf, output_pdf, password, assignments, values_json, flatten, strict):
    """
    Fill form fields and save the result.

    Examples:

        pdffiller fill form.pdf out.pdf -v FirstName=Jane -v Agree=true

        pdffiller fill form.pdf out.pdf --values-json values.json --flatten
    """
    values: dict[str, str] = {}
    if values_json:
        try:
            loaded = json.loads(Path(values_json).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            console.print(f"[bold red]✗ Error:[/bold red] cannot read {values_json}: {exc}")
            sys.exit(1)
        if not isinstance(loaded, dict):
            console.print("[bold red]✗ Error:[/bold red] values file must contain a JSON object")
            sys.exit(1)
        values.update({str(name): "" if value is None else str(value) for name, value in loaded.items()})
    for raw in assignments:
        name, value = _parse_assignment(raw)
        values[name] = value

    session = _open(input_pdf, password)

    report = session.set_field_values_report(values)
    failed = {name: error for name, error in report.items() if error is not None}
    applied = len(report) - len(failed)
    console.print(f"[bold green]✓ Set {applied} field(s)[/bold green]")
    for name, error in failed.items():
        console.print(f"  [yellow]•[/yellow] {name}: {error}")

    if failed and strict:
        console.print("[bold red]✗ Not saving: some fields could not be set[/bold red]")
        sys.exit(1)

    if flatten and not session.flatten_form():
        console.print(f"[bold red]✗ Error:[/bold red] {session.last_error}")
        sys.exit(1)

    if not session.save_to_file(output_pdf):
        console.print(f"[bold red]✗ Error:[/bold red] {session.last_error}")
        sys.exit(1)

    console.print(f"[dim]Saved to {output_pdf}[/dim]")


@cli.command(name="render")
@click.argument("input_pdf", type=click.Path(exists=True, dir_okay=False))
@click.argument("output_png", type=click.Path(dir_okay=False))
@password_option
@click.option("--page", "-p", default=1, type=int, help="Page number (1-based)")
@click.option("--dpi", default=DEFAULT_RENDER_DPI, type=float, help="Resolution in dots per inch")
def render(input_pdf, output_png, password, page, dpi):
    """
    Render one page to a PNG image.

    Example:

        pdffiller render form.pdf page1.png --page 1 --dpi 100
    """
    session = _open(input_pdf, password)
    png = session.render_page(page - 1, dpi)
    if png is None:
        console.print(f"[bold red]✗ Error:[/bold red] {session.last_error}")
        sys.exit(1)

    Path(output_png).write_bytes(png)
    console.print(f"[bold green]✓ Rendered page {page}[/bold green] [dim]→ {output_png}[/dim]")


if __name__ == "__main__":  # pragma: no cover
    cli()
