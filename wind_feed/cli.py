"""
Command-line interface for the wind-energy news feed.

Uses Typer to provide commands for one-off refreshes, querying the cached
articles, running the periodic refresher and clearing the cache. Supports
loading .env files for API key and refresh-secret configuration.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console

from .api import ArticleQuery, ArticleService
from .cache import ArticleCache
from .config import AppConfig, load_config
from .errors import RefreshUnauthorized
from .logging_utils import setup_logging
from .runner import RefreshScheduler, build_client, build_provider, make_refresh, render_report

app = typer.Typer(add_completion=False, help="Irish wind-energy news aggregator.")
console = Console()


def _load(config: Path | None, log_level: str | None) -> AppConfig:
    load_dotenv()
    cfg = load_config(str(config) if config else None)
    if log_level:
        cfg.logging.level = log_level
    setup_logging(cfg.logging)
    return cfg


ConfigOption = typer.Option(None, "--config", "-c", exists=True, help="YAML config file.")
LogLevelOption = typer.Option(None, "--log-level", help="Logging level.")


@app.command()
def refresh(
    config: Path | None = ConfigOption,
    log_level: str | None = LogLevelOption,
    no_images: bool = typer.Option(False, "--no-images", help="Skip image scraping."),
    no_ai: bool = typer.Option(False, "--no-ai", help="Skip AI categorization."),
):
    """Fetch all feeds once, merge with the cache and write it back."""
    cfg = _load(config, log_level)
    if no_images:
        cfg.enrich.images_enabled = False
    if no_ai:
        cfg.enrich.ai_enabled = False

    async def _run():
        cache = ArticleCache.from_config(cfg.cache)
        async with build_client(cfg) as client:
            scheduler = RefreshScheduler.from_config(
                cfg, make_refresh(cfg, cache, client, build_provider(cfg, client))
            )
            return await scheduler.trigger("cli")

    render_report(asyncio.run(_run()), console)


@app.command()
def articles(
    config: Path | None = ConfigOption,
    log_level: str | None = LogLevelOption,
    province: list[str] = typer.Option(None, "--province", "-p", help="Province filter (repeatable)."),
    tag: list[str] = typer.Option(None, "--tag", "-t", help="Tag filter (repeatable)."),
    category: str | None = typer.Option(None, "--category", help="offshore or onshore."),
    search: str | None = typer.Option(None, "--search", "-s", help="Free-text search."),
    page: int = typer.Option(1, "--page"),
    page_size: int = typer.Option(50, "--page-size"),
    force: bool = typer.Option(False, "--force", help="Refresh before answering."),
    secret: str | None = typer.Option(None, "--secret", envvar="CRON_SECRET", help="Refresh secret for --force."),
):
    """Print the filtered article list as JSON."""
    cfg = _load(config, log_level)
    query = ArticleQuery(
        provinces=province or None,
        tags=tag or None,
        category=category,
        search=search,
        page=page,
        page_size=page_size,
        force=force,
        secret=secret,
    )

    async def _run():
        cache = ArticleCache.from_config(cfg.cache)
        async with build_client(cfg) as client:
            scheduler = RefreshScheduler.from_config(
                cfg, make_refresh(cfg, cache, client, build_provider(cfg, client))
            )
            return await ArticleService(cfg, cache, scheduler).get_articles(query)

    try:
        payload = asyncio.run(_run())
    except RefreshUnauthorized as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command()
def watch(
    config: Path | None = ConfigOption,
    log_level: str | None = LogLevelOption,
    interval_minutes: int | None = typer.Option(None, "--interval-minutes", help="Override refresh interval."),
):
    """Refresh at startup and then on a fixed interval until interrupted."""
    cfg = _load(config, log_level)
    if interval_minutes:
        cfg.scheduler.interval_minutes = interval_minutes

    async def _run():
        cache = ArticleCache.from_config(cfg.cache)
        async with build_client(cfg) as client:
            scheduler = RefreshScheduler.from_config(
                cfg, make_refresh(cfg, cache, client, build_provider(cfg, client))
            )
            console.print(f"Refreshing every {cfg.scheduler.interval_minutes} minutes (Ctrl+C to stop)")
            await scheduler.run_forever()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("Stopped")


@app.command("clear-cache")
def clear_cache(
    config: Path | None = ConfigOption,
    log_level: str | None = LogLevelOption,
):
    """Delete the cached article list."""
    cfg = _load(config, log_level)
    cleared = asyncio.run(ArticleCache.from_config(cfg.cache).clear())
    console.print("Cache cleared" if cleared else "[red]Cache clear failed[/red]")
    if not cleared:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
