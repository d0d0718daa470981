"""Crawl commands - assemble a catalog from a live database."""

import json
import re
from typing import Dict, List, Optional

import typer
from typing_extensions import Annotated
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from ..config import Settings, settings
from ..crawl import CrawlResult, InclusionRule, InclusionRules, crawl_catalog
from ..database import DatabaseIntrospector, DuckDBIntrospector, SnowflakeIntrospector
from ..database.export import catalog_to_dict
from ..errors import ConnectionFailure
from ..logging import log_crawl_run

app = typer.Typer(help="Crawl database metadata into a catalog")
console = Console()


def _parse_queries(query: Optional[List[str]]) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    for entry in query or []:
        name, sep, sql = entry.partition("=")
        if not sep or not name.strip():
            console.print(f"[red]Invalid --query {entry!r}, expected NAME=SQL[/red]")
            raise typer.Exit(1)
        overrides[name.strip()] = sql
    return overrides


def _settings_for(weak_associations: Optional[bool], query: Optional[List[str]] = None) -> Settings:
    update = {}
    if weak_associations is not None:
        update["weak_associations"] = weak_associations
    overrides = _parse_queries(query)
    if overrides:
        update["dialect_queries"] = {**settings.dialect_queries, **overrides}
    if not update:
        return settings
    return settings.model_copy(update=update)


def _inclusion_for(crawl_settings: Settings, schema: Optional[str]) -> InclusionRules:
    rules = InclusionRules.from_settings(crawl_settings)
    if schema:
        # Match the schema name with or without its catalog prefix
        rules.schemas = InclusionRule(rf"(.*\.)?{re.escape(schema)}")
    return rules


def _run_crawl(
    introspector: DatabaseIntrospector,
    database_type: str,
    database_path: str,
    schema: Optional[str],
    weak_associations: Optional[bool],
    query: Optional[List[str]],
    arguments: dict,
) -> CrawlResult:
    crawl_settings = _settings_for(weak_associations, query)
    inclusion = _inclusion_for(crawl_settings, schema)

    # The run log sees the original exception before it becomes an exit code
    try:
        with log_crawl_run(
            command="crawl",
            database_type=database_type,
            database_path=database_path,
            schema_filter=schema,
            arguments=arguments,
        ) as ctx:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
                transient=True,
            ) as progress:
                progress.add_task("Crawling database metadata...", total=None)
                with introspector:
                    result = crawl_catalog(introspector, settings=crawl_settings, inclusion=inclusion)
            ctx.record_result(result)
    except ImportError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except ConnectionFailure as e:
        console.print(f"[red]Error connecting to {database_type}: {e.message}[/red]")
        raise typer.Exit(1)
    return result


def _print_summary(result: CrawlResult) -> None:
    catalog = result.catalog
    diagnostics = result.diagnostics

    console.print("\n[green]Crawled Schema:[/green]")
    for schema in catalog.schemas:
        console.print(f"  Schema: [cyan]{schema.full_name}[/cyan]")
        for table in catalog.get_tables(schema):
            kind = " (view)" if table.is_view else ""
            console.print(f"    - {table.name}{kind} ({len(table.columns)} columns)")

    references = catalog.foreign_keys + catalog.weak_associations
    if references:
        ref_table = Table(title="Table References")
        ref_table.add_column("Name", style="cyan")
        ref_table.add_column("From", style="green")
        ref_table.add_column("To", style="yellow")
        ref_table.add_column("Kind", style="magenta")
        for reference in references:
            ref_table.add_row(
                reference.specific_name,
                ", ".join(r.foreign_key_column.full_name for r in reference.column_references),
                ", ".join(r.primary_key_column.full_name for r in reference.column_references),
                reference.kind.value,
            )
        console.print(ref_table)

    strategy_table = Table(title="Retrieval")
    strategy_table.add_column("Category", style="cyan")
    strategy_table.add_column("Strategy", style="green")
    strategy_table.add_column("Time (s)", style="magenta")
    for category, strategy in diagnostics.strategies.items():
        elapsed = diagnostics.timings.get(category)
        strategy_table.add_row(category, strategy, f"{elapsed:.3f}" if elapsed is not None else "-")
    console.print(strategy_table)

    console.print(
        f"\n[bold]Total: {len(catalog.tables)} tables, {catalog.column_count()} columns, "
        f"{len(catalog.foreign_keys)} foreign keys, {len(catalog.weak_associations)} weak associations[/bold]"
    )
    if diagnostics.degraded_categories:
        console.print(
            f"[yellow]Degraded categories: {', '.join(diagnostics.degraded_categories)}[/yellow]"
        )


def _emit(result: CrawlResult, output: Optional[str], as_json: bool) -> None:
    if output or as_json:
        payload = catalog_to_dict(result.catalog)
        payload["diagnostics"] = result.diagnostics.to_dict()
        text = json.dumps(payload, indent=2, default=str)
        if output:
            with open(output, "w") as f:
                f.write(text)
            console.print(f"[green]Catalog written to {output}[/green]")
        else:
            console.print_json(text)
            return
    _print_summary(result)


@app.command("duckdb")
def from_duckdb(
    database_path: str = typer.Argument(..., help="Path to the .duckdb file"),
    schema: Optional[str] = typer.Option(None, "--schema", "-s", help="Specific schema to crawl (default: all)"),
    weak_associations: Optional[bool] = typer.Option(
        None, "--weak-associations/--no-weak-associations", help="Infer undeclared relationships from naming"
    ),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the catalog as JSON to a file"),
    as_json: bool = typer.Option(False, "--json", help="Print the catalog as JSON"),
    query: Annotated[Optional[List[str]], typer.Option(
        "--query", "-q",
        help="Data dictionary query override as NAME=SQL; an empty SQL disables the query. Can be specified multiple times."
    )] = None,
):
    """Crawl a DuckDB database file.

    Examples:
        dbcatalog crawl duckdb ./shop.duckdb
        dbcatalog crawl duckdb ./shop.duckdb --schema main --weak-associations --json
    """
    if not as_json:
        console.print(Panel(
            f"[bold blue]Crawling DuckDB[/bold blue]\n"
            f"Database: {database_path}\n"
            f"Schema: {schema or 'All schemas'}",
            title="dbcatalog"
        ))

    introspector = DuckDBIntrospector(database_path=database_path, read_only=True)
    result = _run_crawl(
        introspector, "duckdb", database_path, schema, weak_associations, query,
        {"schema": schema, "weak_associations": weak_associations, "output": output, "query": query},
    )
    _emit(result, output, as_json)


@app.command("snowflake")
def from_snowflake(
    database: str = typer.Argument(..., help="Snowflake database name"),
    schema: Optional[str] = typer.Option(None, "--schema", "-s", help="Specific schema to crawl (default: all)"),
    account: Optional[str] = typer.Option(None, "--account", "-a", help="Snowflake account (or SNOWFLAKE_ACCOUNT env)"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Snowflake user (or SNOWFLAKE_USER env)"),
    password: Optional[str] = typer.Option(None, "--password", help="Snowflake password (or SNOWFLAKE_PASSWORD env)"),
    warehouse: Optional[str] = typer.Option(None, "--warehouse", help="Snowflake warehouse (or SNOWFLAKE_WAREHOUSE env)"),
    role: Optional[str] = typer.Option(None, "--role", "-r", help="Snowflake role (or SNOWFLAKE_ROLE env)"),
    weak_associations: Optional[bool] = typer.Option(
        None, "--weak-associations/--no-weak-associations", help="Infer undeclared relationships from naming"
    ),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the catalog as JSON to a file"),
    as_json: bool = typer.Option(False, "--json", help="Print the catalog as JSON"),
    query: Annotated[Optional[List[str]], typer.Option(
        "--query", "-q",
        help="Data dictionary query override as NAME=SQL; an empty SQL disables the query. Can be specified multiple times."
    )] = None,
):
    """Crawl a Snowflake database.

    Examples:
        dbcatalog crawl snowflake ANALYTICS --schema PUBLIC
    """
    if not as_json:
        console.print(Panel(
            f"[bold blue]Crawling Snowflake[/bold blue]\n"
            f"Database: {database}\n"
            f"Schema: {schema or 'All schemas'}",
            title="dbcatalog"
        ))

    introspector = SnowflakeIntrospector(
        database=database,
        account=account,
        user=user,
        password=password,
        warehouse=warehouse,
        role=role,
    )
    result = _run_crawl(
        introspector, "snowflake", database, schema, weak_associations, query,
        {"schema": schema, "weak_associations": weak_associations, "output": output, "query": query},
    )
    _emit(result, output, as_json)
