"""dbcatalog - Main entry point."""

import logging

import typer
from rich.console import Console
from .commands import crawl, runs
from .config import settings

app = typer.Typer(
    name="dbcatalog",
    help="Crawl relational database metadata into a navigable catalog",
    add_completion=False,
)

# Add subcommands
app.add_typer(crawl.app, name="crawl")
app.add_typer(runs.app, name="runs")

console = Console()


@app.command()
def config():
    """Show current configuration."""
    console.print("[bold]Current Configuration[/bold]")
    for category in (
        "foreign_keys",
        "check_constraints",
        "triggers",
        "views",
        "table_privileges",
        "column_privileges",
    ):
        console.print(f"  {category} strategy: {settings.strategy_for(category).value}")
    identifier_case = settings.identifier_case.value if settings.identifier_case else "database default"
    console.print(f"  Identifier case: {identifier_case}")
    console.print(f"  Query overrides: {', '.join(sorted(settings.dialect_queries)) or 'None'}")
    console.print(f"  Schemas: include {settings.schema_include!r}, exclude {settings.schema_exclude!r}")
    console.print(f"  Tables: include {settings.table_include!r}, exclude {settings.table_exclude!r}")
    console.print(f"  Weak associations: {'Enabled' if settings.weak_associations else 'Disabled'}")
    console.print(f"  Run logging: {'Enabled' if settings.run_logging_enabled else 'Disabled'}")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show crawl progress logging")):
    """
    dbcatalog - Crawl relational database metadata into a catalog.

    Examples:

        dbcatalog crawl duckdb ./shop.duckdb

        dbcatalog crawl snowflake ANALYTICS --schema PUBLIC --weak-associations

        dbcatalog runs list --status error
    """
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING, format="%(levelname)s: %(message)s")


if __name__ == "__main__":
    app()
