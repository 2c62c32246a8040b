"""InvoiceForge CLI.

Commands:
- fields: List canonical invoice fields
- detect: Show auto-detected column mappings and workbook layout
- validate: Transform a workbook into invoices and validate them
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from invoiceforge.config import get_config
from invoiceforge.core.logging import configure_logging
from invoiceforge.ingestion.workbook import Workbook, WorkbookError, load_workbook
from invoiceforge.mapping.dictionary import FIELD_DEFINITIONS
from invoiceforge.models import InvoiceStatus
from invoiceforge.pipeline.orchestrator import (
    InvoicePipeline,
    dump_mapping_file,
    load_mapping_file,
)
from invoiceforge.reporting.error_report import write_error_report
from invoiceforge.reporting.formatting import format_currency, format_date, sanitize_filename

app = typer.Typer(
    name="invoiceforge",
    help="InvoiceForge - Spreadsheet to invoice normalization",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    """Configure logging before any command runs."""
    config = get_config()
    configure_logging(level=log_level or config.log_level, log_format=config.log_format)


def _load(file: Path) -> Workbook:
    try:
        return load_workbook(file)
    except FileNotFoundError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)
    except WorkbookError as e:
        console.print(f"[red]✗[/red] {e.code}: {e}")
        raise typer.Exit(1)


@app.command()
def fields():
    """List canonical invoice fields and whether they are required."""
    table = Table(title="Invoice Fields")
    table.add_column("Field", style="cyan")
    table.add_column("Required")
    table.add_column("Example headers", style="dim")

    for definition in FIELD_DEFINITIONS:
        table.add_row(
            definition.field,
            "[bold]yes[/bold]" if definition.required else "",
            ", ".join(definition.patterns[:4]),
        )
    console.print(table)


@app.command()
def detect(
    file: Path = typer.Argument(..., help="Workbook (CSV/XLSX)"),
    sheets: list[str] | None = typer.Option(None, "--sheet", "-s", help="Sheet to include (repeatable)"),
    save_mapping: Path | None = typer.Option(
        None, "--save-mapping", help="Write detected mappings to a YAML file"
    ),
):
    """Show auto-detected column mappings for a workbook."""
    workbook = _load(file)
    pipeline = InvoicePipeline()

    try:
        report = pipeline.detect(workbook, sheets or None)
    except WorkbookError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[bold]Layout:[/bold] {report.excel_format.value}")

    for sheet_name, mappings in report.sheet_mappings.items():
        table = Table(title=f"Sheet: {sheet_name}")
        table.add_column("Column")
        table.add_column("Field", style="cyan")
        table.add_column("Confidence", justify="right")
        table.add_column("Samples", style="dim")
        for m in mappings:
            confidence = f"{m.confidence}%" if m.is_mapped else "-"
            table.add_row(
                m.source_column,
                m.target_field or "[yellow]unmapped[/yellow]",
                confidence,
                ", ".join(m.sample_values[:3]),
            )
        console.print(table)

    if report.relationships:
        console.print("\n[bold]Relationships:[/bold]")
        for rel in report.relationships:
            console.print(
                f"  {rel.from_sheet}.{rel.from_column} → {rel.to_sheet}.{rel.to_column} "
                f"({rel.confidence}%)"
            )

    if report.missing_required_fields:
        console.print(
            f"\n[yellow]⚠[/yellow] Missing required fields: "
            f"{', '.join(report.missing_required_fields)}"
        )
    else:
        console.print("\n[bold green]✓[/bold green] All required fields mapped")

    if save_mapping:
        dump_mapping_file(save_mapping, report.all_mappings)
        console.print(f"[green]✓[/green] Mappings saved to {save_mapping}")


@app.command()
def validate(
    file: Path = typer.Argument(..., help="Workbook (CSV/XLSX)"),
    mapping: Path | None = typer.Option(None, "--mapping", "-m", help="Confirmed mappings (YAML)"),
    sheets: list[str] | None = typer.Option(None, "--sheet", "-s", help="Sheet to include (repeatable)"),
    multi: bool | None = typer.Option(
        None, "--multi/--single", help="Force relational or single-sheet mode"
    ),
    errors_csv: Path | None = typer.Option(
        None, "--errors-csv", help="Error report CSV file, or a directory to write <workbook>_errors.csv into"
    ),
    json_out: Path | None = typer.Option(None, "--json", help="Write invoices + validation as JSON"),
    limit: int = typer.Option(10, "--limit", help="Max issues to print"),
):
    """Transform a workbook into invoices and validate them."""
    workbook = _load(file)
    pipeline = InvoicePipeline()

    confirmed = None
    if mapping:
        try:
            confirmed = load_mapping_file(mapping)
        except (FileNotFoundError, ValueError) as e:
            console.print(f"[red]✗[/red] {e}")
            raise typer.Exit(1)

    sheet_mode = None if multi is None else ("multi" if multi else "single")

    try:
        result = pipeline.run(workbook, confirmed, sheet_mode, sheets or None)
    except WorkbookError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Validation: {file.name}")
    table.add_column("Invoice")
    table.add_column("Customer")
    table.add_column("Issued")
    table.add_column("Items", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Status")
    table.add_column("Payment", style="dim")

    status_style = {
        InvoiceStatus.VALID: "[green]valid[/green]",
        InvoiceStatus.WARNING: "[yellow]warning[/yellow]",
        InvoiceStatus.ERROR: "[red]error[/red]",
    }
    for invoice in result.invoices:
        table.add_row(
            invoice.invoice_number,
            invoice.customer.name,
            format_date(invoice.issue_date),
            str(len(invoice.line_items)),
            format_currency(invoice.grand_total, invoice.currency),
            status_style[invoice.status],
            invoice.payment_status.value if invoice.payment_status else "",
        )
    console.print(table)

    stats = result.stats
    console.print(
        f"\n[bold]Total:[/bold] {stats.total}  "
        f"[green]valid {stats.valid}[/green]  "
        f"[yellow]warnings {stats.warnings}[/yellow]  "
        f"[red]errors {stats.errors}[/red]"
    )

    issues = result.validation.errors + result.validation.warnings
    for issue in issues[:limit]:
        marker = "[red]✗[/red]" if issue.severity.value == "error" else "[yellow]⚠[/yellow]"
        console.print(f"  {marker} {issue.message}", highlight=False)
    if len(issues) > limit:
        console.print(f"  ... {len(issues) - limit} more", style="dim")

    if errors_csv:
        if errors_csv.is_dir():
            errors_csv = errors_csv / f"{sanitize_filename(file.stem)}_errors.csv"
        count = write_error_report(errors_csv, result.invoices, result.validation)
        console.print(f"[green]✓[/green] Error report: {errors_csv} ({count} rows)")

    if json_out:
        payload = {
            "invoices": [inv.model_dump(mode="json", by_alias=True) for inv in result.invoices],
            "validation": result.validation.model_dump(mode="json", by_alias=True),
            "stats": stats.model_dump(by_alias=True),
        }
        json_out.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"[green]✓[/green] JSON written to {json_out}")


if __name__ == "__main__":
    app()
