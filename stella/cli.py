"""
Stella CLI

Command-line interface for the sales dashboard assistant.

Usage:
    stella ask "What are the top selling products?"   # Single question
    stella operations --category products             # Catalog listing
    stella serve --port 8000                           # Run the API server
"""

import asyncio
import logging

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from stella import __version__
from stella.config import get_settings
from stella.models.agent import ResolutionResult
from stella.models.api import parse_mentions
from stella.operations.catalog import build_default_catalog
from stella.pipeline.orchestrator import create_pipeline

console = Console()

_TITLES = {
    "conversational": "[bold green]Stella[/bold green]",
    "data": "[bold green]Answer[/bold green]",
    "error": "[bold red]Error[/bold red]",
}


def configure_cli_logging(verbose: bool) -> None:
    if verbose:
        get_settings().logging.configure()
        return
    logging.basicConfig(level=logging.CRITICAL)
    for logger_name in ("stella", "httpx", "openai", "anthropic", "asyncpg", "google"):
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)


def print_result(result: ResolutionResult) -> None:
    title = _TITLES[result.response_type]
    if result.clarification_needed:
        title = "[bold yellow]More details needed[/bold yellow]"
    console.print(Panel(Markdown(result.response_text), title=title))
    if result.operation_used:
        console.print(f"[dim]Answered with: {result.operation_used}[/dim]")


@click.group()
@click.version_option(version=__version__, prog_name="Stella")
@click.option("--verbose", "-v", is_flag=True, help="Show pipeline logs")
def cli(verbose: bool):
    """Stella - plain-language questions over the sales dashboard."""
    configure_cli_logging(verbose)


@cli.command()
@click.argument("query")
def ask(query: str):
    """Ask a single question and exit."""

    async def run_query() -> ResolutionResult:
        pipeline = await create_pipeline()
        try:
            with console.status("[cyan]Thinking...[/cyan]", spinner="dots"):
                return await pipeline.run(query=query, mentions=parse_mentions(query))
        finally:
            await pipeline.connector.close()

    try:
        result = asyncio.run(run_query())
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        console.print("[yellow]Hint: set DATABASE_URL in the environment or .env[/yellow]")
        raise click.exceptions.Exit(1) from e

    print_result(result)
    if result.kind == "error":
        raise click.exceptions.Exit(1)


@cli.command()
@click.option("--category", "-c", default=None, help="Only show this category")
def operations(category: str | None):
    """List the catalog operations."""
    catalog = build_default_catalog()
    if category and category not in catalog.categories:
        console.print(f"[red]Unknown category: {category}[/red]")
        console.print(f"Available: {', '.join(catalog.categories)}")
        raise click.exceptions.Exit(1)

    table = Table(title="Operations", show_lines=False)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Category", style="magenta")
    table.add_column("Parameters")
    table.add_column("Description")

    for operation in catalog:
        if category and operation.category != category:
            continue
        params = ", ".join(param.name for param in operation.parameters) or "-"
        table.add_row(operation.name, operation.category, params, operation.description)

    console.print(table)


@cli.command()
@click.option("--host", default=None, help="Bind address (default: API_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: API_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    config = get_settings()
    uvicorn.run(
        "stella.api.main:app",
        host=host or config.api_host,
        port=port or config.api_port,
        reload=reload,
        log_level=config.logging.level.lower(),
    )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
