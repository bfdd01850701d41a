"""
Command-line interface for the listing poster.

Uses Typer to provide commands for posting a listing URL, posting
manually entered details, checking platform status and running the
HTTP service. Loads .env files for platform credentials.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
import typer

from .config import AppConfig, load_config
from .core.types import PostResult
from .errors import FetchError
from .logging_utils import setup_logging
from .platforms.factory import create_clients
from .runner import close_clients, platform_status, process_listing, process_manual

app = typer.Typer(add_completion=False)
console = Console()


def _load(config: Path | None, log_level: str | None) -> AppConfig:
    # Load environment variables from .env if available
    load_dotenv()
    cfg = load_config(str(config) if config else None)
    if log_level:
        cfg.logging.level = log_level
    setup_logging(cfg.logging)
    return cfg


def _print_result(result: PostResult, show_message: bool) -> None:
    console.print(f"[bold]{result.listing.title}[/bold]  category: [cyan]{result.category.value}[/cyan]")
    if show_message:
        console.rule("Message")
        console.print(result.message, markup=False)
        console.rule()

    if not result.results:
        console.print("[yellow]No destinations attempted (no ready platforms or dry run).[/yellow]")
        return

    table = Table("Platform", "Destination", "Outcome", "Detail")
    for item in result.results:
        outcome = "[green]sent[/green]" if item.success else "[red]failed[/red]"
        table.add_row(item.platform, item.destination, outcome, item.delivery_id or item.error or "")
    console.print(table)
    console.print(f"Posted to {result.sent_count}/{len(result.results)} destination(s)")


async def _run_with_clients(cfg: AppConfig, runner):
    clients = create_clients(cfg.platforms)
    try:
        return await runner(clients)
    finally:
        await close_clients(clients)


@app.command()
def post(
    url: str = typer.Argument(..., help="Listing page URL."),
    message: str = typer.Option("", "--message", "-m", help="Custom message added to the post."),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compose and route without sending."),
    propagate_fetch_errors: bool | None = typer.Option(
        None,
        "--fail-on-fetch-error/--fallback-on-fetch-error",
        help="Abort when the page cannot be fetched instead of posting a placeholder.",
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Scrape a listing URL and post it to the channels for its category."""
    cfg = _load(config, log_level)
    if propagate_fetch_errors is not None:
        cfg.fetch.propagate_errors = propagate_fetch_errors

    try:
        result = asyncio.run(
            _run_with_clients(cfg, lambda clients: process_listing(url, message, cfg, clients, dry_run=dry_run))
        )
    except FetchError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    _print_result(result, show_message=dry_run)


@app.command()
def manual(
    url: str = typer.Argument(..., help="Listing page URL."),
    title: str = typer.Option(..., "--title", "-t"),
    description: str = typer.Option("", "--description", "-d"),
    price: str = typer.Option("", "--price", "-p"),
    message: str = typer.Option("", "--message", "-m", help="Custom message added to the post."),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compose and route without sending."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Post manually entered listing details (when scraping is blocked)."""
    cfg = _load(config, log_level)
    result = asyncio.run(
        _run_with_clients(
            cfg,
            lambda clients: process_manual(url, title, description, price, message, cfg, clients, dry_run=dry_run),
        )
    )
    _print_result(result, show_message=dry_run)


@app.command()
def status(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Connect to every configured platform and report readiness."""
    cfg = _load(config, log_level)
    ready = asyncio.run(_run_with_clients(cfg, platform_status))
    if not ready:
        console.print("[yellow]No platforms enabled.[/yellow]")
    for name, is_ready in ready.items():
        console.print(f"{name}: {'[green]ready[/green]' if is_ready else '[red]not ready[/red]'}")


@app.command()
def serve(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Run the HTTP service with the web form."""
    import uvicorn

    from .server import create_app

    cfg = _load(config, log_level)
    uvicorn.run(
        create_app(cfg),
        host=host or cfg.server.host,
        port=port or cfg.server.port,
        log_level=cfg.logging.level.lower(),
    )


if __name__ == "__main__":
    app()
