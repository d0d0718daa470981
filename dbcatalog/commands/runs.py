"""Crawl run history commands."""

import typer
from typing import Optional
from rich.console import Console
from rich.table import Table
from ..logging import get_run_logger

app = typer.Typer(help="Inspect logged crawl runs")
console = Console()


def _require_logging():
    run_logger = get_run_logger()
    if not run_logger.enabled:
        console.print(
            "[yellow]Crawl run logging is not enabled. Set DBCATALOG_RUN_LOGGING_ENABLED=true to enable.[/yellow]"
        )
        raise typer.Exit(1)
    return run_logger


@app.command("list")
def list_runs(
    status: Optional[str] = typer.Option(None, "--status", help="Filter by status (success, error, started)"),
    database_type: Optional[str] = typer.Option(None, "--database-type", "-t", help="Filter by database type"),
    since_hours: int = typer.Option(24, "--since-hours", help="Look back N hours"),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum number of runs"),
):
    """List recent crawl runs."""
    run_logger = _require_logging()
    runs = run_logger.query_runs(
        status=status,
        database_type=database_type,
        since_hours=since_hours,
        limit=limit,
    )
    if not runs:
        console.print("[yellow]No crawl runs found.[/yellow]")
        return

    table = Table(title=f"Crawl Runs (last {since_hours}h)")
    table.add_column("Run ID", style="cyan")
    table.add_column("Timestamp", style="blue")
    table.add_column("Database", style="green")
    table.add_column("Status", style="magenta")
    table.add_column("Tables", justify="right")
    table.add_column("FKs", justify="right")
    table.add_column("Degraded", style="yellow")

    for run in runs:
        status_text = run.get("status") or "-"
        if status_text == "error":
            status_text = "[red]error[/red]"
        table.add_row(
            run.get("run_id", "N/A"),
            str(run.get("timestamp", "")),
            f"{run.get('database_type') or '-'}: {run.get('database_path') or '-'}",
            status_text,
            str(run.get("tables_count") or 0),
            str(run.get("foreign_keys_count") or 0),
            ", ".join(run.get("degraded_categories") or []) or "-",
        )

    console.print(table)


@app.command("show")
def show_run(run_id: str = typer.Argument(..., help="Run ID")):
    """Show details of one crawl run."""
    run_logger = _require_logging()
    run = run_logger.get_run(run_id)
    if run is None:
        console.print(f"[red]No crawl run with ID {run_id}[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]Crawl run: {run['run_id']}[/bold]")
    console.print(f"  Timestamp: {run.get('timestamp')}")
    console.print(f"  Command: {run.get('command')}")
    console.print(f"  Database: {run.get('database_type')} {run.get('database_path') or ''}")
    console.print(f"  Schema filter: {run.get('schema_filter') or 'All schemas'}")
    console.print(f"  Status: {run.get('status')}")
    console.print(f"  Duration: {run.get('duration_ms') or 0}ms")
    console.print(
        f"  Catalog: {run.get('schemas_count') or 0} schemas, {run.get('tables_count') or 0} tables, "
        f"{run.get('columns_count') or 0} columns"
    )
    console.print(
        f"  Relationships: {run.get('foreign_keys_count') or 0} foreign keys, "
        f"{run.get('weak_associations_count') or 0} weak associations"
    )
    degraded = run.get("degraded_categories") or []
    if degraded:
        console.print(f"  [yellow]Degraded: {', '.join(degraded)}[/yellow]")
    if run.get("skipped_rows"):
        console.print(f"  Skipped rows: {run['skipped_rows']}")
    if run.get("error_message"):
        console.print(f"  [red]Error ({run.get('error_type')}): {run['error_message']}[/red]")


@app.command("stats")
def run_stats(since_hours: int = typer.Option(24, "--since-hours", help="Look back N hours")):
    """Show crawl run statistics."""
    run_logger = _require_logging()
    stats = run_logger.get_stats(since_hours=since_hours)

    console.print(f"[bold]Crawl runs in the last {since_hours} hours[/bold]")
    console.print(f"  Total: {stats['total_runs']}")
    console.print(f"  Success: [green]{stats['success_count']}[/green]")
    console.print(f"  Errors: [red]{stats['error_count']}[/red]")
    console.print(f"  Average duration: {stats['avg_duration_ms']}ms")
    console.print(f"  Tables crawled: {stats['total_tables_crawled']}")
    console.print(f"  Foreign keys found: {stats['total_foreign_keys_found']}")
    console.print(f"  Weak associations found: {stats['total_weak_associations_found']}")

    if stats["by_database_type"]:
        table = Table(title="By database type")
        table.add_column("Type", style="cyan")
        table.add_column("Runs", justify="right")
        table.add_column("Success", justify="right", style="green")
        table.add_column("Errors", justify="right", style="red")
        for entry in stats["by_database_type"]:
            table.add_row(
                entry["database_type"],
                str(entry["count"]),
                str(entry["success"] or 0),
                str(entry["errors"] or 0),
            )
        console.print(table)

    for error in stats["recent_errors"]:
        console.print(f"  [red]{error['run_id']} {error['timestamp']}: {error['error_message']}[/red]")
