"""PanelCalc CLI - async commands over the load calculation core.

Commands:
- init: Initialize database schema
- import-items: Import a CSV/XLSX item list into a voltage table
- calculate: Validate and calculate voltage tables
- report: Heat, loading and phase balance reports for a project
- export-package: Export a job project as a project package file
- import-package: Import a project package file as a new job project
- lock-table: Lock or unlock a voltage table
- templates: Manage saved column-mapping templates
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from panelcalc.config import get_config
from panelcalc.core.logging import configure_logging
from panelcalc.db.connection import close_db, get_session, init_db
from panelcalc.db.queries import fetch_voltage_table, fetch_voltage_tables
from panelcalc.electrical.service import CalculationOutcome, calculate_voltage_table, set_table_lock
from panelcalc.errors import PanelCalcError
from panelcalc.matching.catalog import load_catalog_snapshot
from panelcalc.models import MatchState
from panelcalc.packages.io import dump_package, export_job_project, import_job_project
from panelcalc.pipeline.import_session import ImportSession
from panelcalc.pipeline.templates import MappingTemplateStore
from panelcalc.pipeline.types import IMPORT_FIELDS
from panelcalc.reporting.excel_export import export_report_to_excel
from panelcalc.reporting.reports import build_project_report

app = typer.Typer(
    name="panelcalc",
    help="PanelCalc - electrical load calculation for panel design",
    no_args_is_help=True,
)
templates_cli = typer.Typer(help="Column-mapping templates")
app.add_typer(templates_cli, name="templates")

console = Console()

# Failures reported as one message per command
_EXPECTED_ERRORS = (PanelCalcError, LookupError, ValueError, FileNotFoundError)


def _run(coro) -> None:
    """Run an async command body, turning expected failures into exit code 1."""

    async def _main():
        try:
            await coro
        finally:
            await close_db()

    try:
        asyncio.run(_main())
    except _EXPECTED_ERRORS as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    """Configure logging before any command runs."""
    try:
        config = get_config()
    except KeyError as e:
        console.print(f"[red]✗[/red] {e.args[0]}")
        raise typer.Exit(1)
    configure_logging(log_level or config.log_level, config.log_format)


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")
    if drop:
        console.print("[yellow]Dropping existing tables...[/yellow]")

    _run(init_db(drop=drop))
    console.print("[bold green]✓[/bold green] Database initialized")


def _parse_mappings(values: list[str]) -> dict[str, str]:
    mappings = {}
    for value in values:
        field, sep, column = value.partition("=")
        if not sep or not field.strip() or not column.strip():
            raise typer.BadParameter(f"Expected FIELD=COLUMN, got '{value}'")
        mappings[field.strip()] = column.strip()
    return mappings


@app.command(name="import-items")
def import_items_cmd(
    file: Path = typer.Argument(..., help="Item list (CSV/XLSX)"),
    table_id: int = typer.Option(..., "--table", help="Target voltage table ID"),
    mapping: list[str] = typer.Option(
        [], "--map", "-m", help="Column mapping FIELD=COLUMN (repeatable)"
    ),
    template: str | None = typer.Option(None, "--template", help="Apply a saved mapping template"),
    save_template: str | None = typer.Option(
        None, "--save-template", help="Save the final mapping under this name"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Match and preview without writing"),
):
    """Import an item list into a voltage table.

    Rows are matched exactly (normalized) against the parts catalog. Only
    matched rows are imported; unmatched rows are listed and skipped.
    """
    config = get_config()
    store = MappingTemplateStore(config.templates_path)
    import_session = ImportSession(config.matching)

    try:
        import_session.load_file(file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    console.print(
        f"[bold]Loaded[/bold] {len(import_session.rows)} rows from {file.name} "
        f"({len(import_session.headers)} columns)"
    )

    if template:
        saved = store.find_by_name(template) or store.get(template)
        if saved is None:
            console.print(f"[red]✗[/red] Mapping template not found: {template}")
            raise typer.Exit(1)
        dropped = import_session.apply_template(saved)
        if dropped:
            console.print(f"[yellow]⚠[/yellow] Template fields not in file: {', '.join(dropped)}")

    try:
        for field, column in _parse_mappings(mapping).items():
            import_session.set_mapping(field, column)
        import_session.advance_to_matching()
    except (ValueError, PanelCalcError) as e:
        console.print(f"[red]✗[/red] {e}")
        console.print("Fields: " + ", ".join(
            f"{f.id}{'*' if f.required else ''}" for f in IMPORT_FIELDS
        ))
        console.print("Columns: " + ", ".join(import_session.headers))
        raise typer.Exit(1)

    if save_template:
        saved = store.save(save_template, import_session.mappings)
        console.print(f"[green]✓[/green] Saved mapping template '{saved.name}' ({saved.id})")

    async def _import():
        async with get_session() as session:
            catalog = await load_catalog_snapshot(session)
            console.print(f"Matching against {len(catalog)} catalog parts...")

            def _progress(processed: int, total: int) -> None:
                console.print(f"  {processed}/{total} rows", style="dim")

            results = await import_session.run_matching(catalog, on_progress=_progress)

            unmatched = [r for r in results if r.state == MatchState.UNMATCHED]
            if unmatched:
                table = Table(title="Unmatched Rows")
                table.add_column("Row", justify="right")
                table.add_column("Part Number", style="cyan")
                table.add_column("Best Candidate", style="yellow")
                table.add_column("Confidence", justify="right")
                pn_column = import_session.mappings["part_number"]
                for r in unmatched[:20]:
                    row = import_session.rows[r.row_index]
                    table.add_row(
                        str(r.row_index + 1),
                        row.get(pn_column, ""),
                        r.matched_part_number or "-",
                        f"{r.confidence:.2f}",
                    )
                console.print(table)
                import_session.skip_unmatched()

            stats = import_session.stats()
            console.print(
                f"Matched: {stats.matched}  Skipped: {stats.skipped}  Total: {stats.total}"
            )

            if dry_run:
                preview = import_session.preview_line_items()
                table = Table(title="Preview")
                table.add_column("Part Number", style="cyan")
                table.add_column("Description")
                table.add_column("Qty", justify="right")
                for item in preview[:20]:
                    table.add_row(item.part_number, item.description or "", str(item.qty))
                console.print(table)
                console.print("[yellow]Dry run - nothing written[/yellow]")
                return

            summary = await import_session.commit(session, table_id)
            console.print(
                f"[bold green]✓[/bold green] Imported {summary.inserted} line items "
                f"into voltage table {summary.voltage_table_id}"
            )

    _run(_import())


def _print_outcome(outcome: CalculationOutcome, voltage_type: str) -> None:
    for issue in outcome.issues:
        style = "red" if issue.is_error else "yellow"
        console.print(f"  [{style}]{issue.severity.value}[/{style}] {issue.field}: {issue.message}")

    if not outcome.calculated:
        console.print(
            f"[red]✗[/red] Table {outcome.voltage_table_id} ({voltage_type}): "
            f"{len(outcome.errors)} error(s), not calculated"
        )
        return

    result = outcome.result
    table = Table(title=f"Voltage Table {outcome.voltage_table_id} ({voltage_type})")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Items", str(result.item_count))
    table.add_row("Total Watts", f"{result.total_watts:,.2f} W")
    table.add_row("Total Amperes", f"{result.total_amperes:,.2f} A")
    table.add_row("Heat", f"{result.total_btu:,.2f} BTU/hr")
    if result.balance_pct is not None or "3PH" in voltage_type:
        loading = result.phase_loading
        table.add_row("L1 / L2 / L3", f"{loading.L1:,.2f} / {loading.L2:,.2f} / {loading.L3:,.2f} W")
        balance = "N/A" if result.balance_pct is None else f"{result.balance_pct:.1f}%"
        table.add_row("Imbalance", balance)
    console.print(table)


@app.command()
def calculate(
    table_id: int | None = typer.Argument(None, help="Voltage table ID"),
    project_id: int | None = typer.Option(
        None, "--project", help="Calculate every table of a load calc project"
    ),
):
    """Validate and calculate voltage tables, caching their totals."""
    if table_id is None and project_id is None:
        raise typer.BadParameter("Give a voltage table ID or --project")

    async def _calculate():
        async with get_session() as session:
            if project_id is not None:
                tables = await fetch_voltage_tables(session, project_id)
                if not tables:
                    console.print(f"[yellow]No voltage tables in project {project_id}[/yellow]")
                    return
                targets = [(t.id, t.voltage_type) for t in tables]
            else:
                table = await fetch_voltage_table(session, table_id)
                if table is None:
                    raise LookupError(f"Voltage table not found: {table_id}")
                targets = [(table.id, table.voltage_type)]

            blocked = 0
            for target_id, voltage_type in targets:
                outcome = await calculate_voltage_table(session, target_id)
                _print_outcome(outcome, voltage_type)
                blocked += 0 if outcome.calculated else 1

        if blocked:
            raise typer.Exit(1)

    _run(_calculate())


@app.command()
def report(
    project_id: int = typer.Argument(..., help="Load calc project ID"),
    output: Path | None = typer.Option(None, "--out", "-o", help="Output XLSX file"),
):
    """Heat, loading and three-phase balance reports for a project."""

    async def _report():
        async with get_session() as session:
            project_report = await build_project_report(session, project_id)

        heat = Table(title="Heat by Location")
        heat.add_column("Location", style="cyan")
        heat.add_column("Tables", justify="right")
        heat.add_column("Heat (W)", justify="right")
        for row in project_report.heat:
            style = "red" if row.total_watts > 1000 else None
            heat.add_row(row.location_name, str(row.table_count), f"{row.total_watts:,.1f}", style=style)
        console.print(heat)

        loading = Table(title="Loading by Voltage Table")
        loading.add_column("Location", style="cyan")
        loading.add_column("Voltage")
        loading.add_column("Watts", justify="right")
        loading.add_column("Amperes", justify="right")
        loading.add_column("Calculated")
        for row in project_report.loading:
            loading.add_row(
                row.location_name,
                row.voltage_type,
                f"{row.total_watts:,.1f}",
                f"{row.total_amperes:,.1f}",
                "yes" if row.is_calculated else "[yellow]no[/yellow]",
            )
        console.print(loading)

        if project_report.balance:
            balance = Table(title="Three-Phase Balance")
            balance.add_column("Location", style="cyan")
            balance.add_column("Voltage")
            balance.add_column("L1", justify="right")
            balance.add_column("L2", justify="right")
            balance.add_column("L3", justify="right")
            balance.add_column("Imbalance", justify="right")
            for row in project_report.balance:
                balance.add_row(
                    row.location_name,
                    row.voltage_type,
                    f"{row.L1:,.1f}",
                    f"{row.L2:,.1f}",
                    f"{row.L3:,.1f}",
                    "N/A" if row.balance_pct is None else f"{row.balance_pct:.1f}%",
                )
            console.print(balance)
        else:
            console.print("[dim]No 3-phase tables in this project[/dim]")

        if output:
            output.write_bytes(export_report_to_excel(project_report, f"Project {project_id}"))
            console.print(f"\n[green]✓[/green] Report saved to: {output}")

    _run(_report())


@app.command(name="export-package")
def export_package_cmd(
    job_project_id: int = typer.Argument(..., help="Job project ID"),
    output: Path = typer.Option(..., "--out", "-o", help="Output JSON file"),
):
    """Export a job project as a portable project package file."""

    async def _export():
        async with get_session() as session:
            document = await export_job_project(session, job_project_id, get_config().packages)

        output.write_text(dump_package(document), encoding="utf-8")
        console.print(
            f"[bold green]✓[/bold green] Exported {document.job_project.project_number}: "
            f"{len(document.packages)} packages, {len(document.locations)} locations, "
            f"{len(document.items)} items -> {output}"
        )

    _run(_export())


@app.command(name="import-package")
def import_package_cmd(
    file: Path = typer.Argument(..., help="Project package JSON file"),
):
    """Import a project package file as a new job project."""
    if not file.exists():
        console.print(f"[red]✗[/red] File not found: {file}")
        raise typer.Exit(1)

    async def _import():
        async with get_session() as session:
            imported = await import_job_project(
                session, file.read_text(encoding="utf-8"), get_config().packages
            )

        console.print(
            f"[bold green]✓[/bold green] Imported job project '{imported.project_number}' "
            f"(id {imported.job_project_id}): {imported.packages} packages, "
            f"{imported.locations} locations, {imported.items} items"
        )
        if imported.skipped_locations or imported.skipped_items:
            console.print(
                f"[yellow]⚠[/yellow] Skipped {imported.skipped_locations} locations and "
                f"{imported.skipped_items} items with unknown parents"
            )

    _run(_import())


@app.command(name="lock-table")
def lock_table_cmd(
    table_id: int = typer.Argument(..., help="Voltage table ID"),
    unlock: bool = typer.Option(False, "--unlock", help="Unlock instead of lock"),
):
    """Lock a voltage table against imports (or unlock it)."""

    async def _lock():
        async with get_session() as session:
            table = await set_table_lock(session, table_id, not unlock)
        state = "locked" if table.is_locked else "unlocked"
        console.print(f"[green]✓[/green] Voltage table {table_id} {state}")

    _run(_lock())


@templates_cli.command("list")
def templates_list():
    """List saved mapping templates."""
    templates = MappingTemplateStore(get_config().templates_path).list()
    if not templates:
        console.print("[yellow]No mapping templates saved[/yellow]")
        return

    table = Table(title="Mapping Templates")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Mappings")
    table.add_column("Created")
    for t in templates:
        table.add_row(
            t.id,
            t.name,
            ", ".join(f"{k}={v}" for k, v in t.mappings.items()),
            t.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@templates_cli.command("delete")
def templates_delete(template_id: str = typer.Argument(..., help="Template ID")):
    """Delete a saved mapping template."""
    if not MappingTemplateStore(get_config().templates_path).delete(template_id):
        console.print(f"[red]✗[/red] Mapping template not found: {template_id}")
        raise typer.Exit(1)
    console.print("[green]✓[/green] Template deleted")


if __name__ == "__main__":
    app()
