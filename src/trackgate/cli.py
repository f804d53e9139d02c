"""Click CLI for trackgate — inspect sources, manage the cache, resolve tracks."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from trackgate.config.settings import GatewaySettings
from trackgate.errors.exceptions import TrackgateError
from trackgate.types import NetworkClass, SourceStats

console = Console()
error_console = Console(stderr=True)

T = TypeVar("T")

_NETWORK_CHOICES = [n.value for n in NetworkClass]


def _resolve_log_level(verbosity: int, base_level: str = "WARNING") -> int:
    """Configured ``log_level``, lowered by each ``-v``."""
    level = logging.getLevelName(str(base_level).upper())
    if not isinstance(level, int):
        level = logging.WARNING
    if verbosity == 1:
        level = min(level, logging.INFO)
    elif verbosity >= 2:
        level = logging.DEBUG
    return level


def _setup_logging(verbosity: int, base_level: str = "WARNING") -> None:
    """Configure logging based on the configured level and verbosity."""
    level = _resolve_log_level(verbosity, base_level)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )


def _split_sources(value: str | None) -> list[str] | None:
    if not value:
        return None
    return [s.strip() for s in value.split(",") if s.strip()]


def _run_with_gateway(
    job: Callable[[Any], Awaitable[T]], **overrides: Any
) -> T:
    """Start a gateway without maintenance jobs, run ``job`` and close it."""
    from trackgate.core import Gateway

    async def _run() -> T:
        gateway = Gateway(GatewaySettings.load(**overrides))
        try:
            await gateway.start(maintenance=False)
            return await job(gateway)
        finally:
            await gateway.close()

    try:
        return asyncio.run(_run())
    except (TrackgateError, ValueError) as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


def _format_ms_timestamp(value: int | None) -> str:
    if not value:
        return "-"
    return datetime.fromtimestamp(value / 1000).strftime("%Y-%m-%d %H:%M:%S")


@click.group()
@click.version_option(package_name="trackgate")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
def cli(verbose: int) -> None:
    """trackgate — source ranking and caching for blocked-track resolution."""
    try:
        base_level = GatewaySettings.load().log_level
    except ValueError:
        base_level = "WARNING"
    _setup_logging(verbose, base_level)


# ── sources ──


@cli.group()
def sources() -> None:
    """Source catalog and statistics commands."""


@sources.command("list")
def sources_list() -> None:
    """List known sources."""
    from trackgate.sources.catalog import MUSIC_SOURCES, describe_source, seed_quality

    settings = GatewaySettings.load()

    table = Table(title="Music Sources", show_header=True)
    table.add_column("Source", style="cyan")
    table.add_column("Seed quality")
    table.add_column("Default")
    table.add_column("Enabled")
    table.add_column("Notes")

    for code, info in MUSIC_SOURCES.items():
        table.add_row(
            describe_source(info),
            str(seed_quality(code)),
            "yes" if code in settings.default_sources else "no",
            "yes" if settings.is_source_enabled(code) else "[yellow]no[/yellow]",
            info.description,
        )

    console.print(table)


@sources.command("stats")
@click.argument("source", required=False)
def sources_stats(source: str | None) -> None:
    """Show source statistics, for one SOURCE or all."""

    async def _job(gateway: Any) -> dict[str, SourceStats]:
        if source is None:
            return gateway.registry.get_stats()
        stats = gateway.registry.get_stats(source)
        return {source: stats} if stats is not None else {}

    table_data = _run_with_gateway(_job)
    if not table_data:
        error_console.print(f"[yellow]No statistics for source '{source}'.[/yellow]")
        sys.exit(1)

    table = Table(title="Source Statistics", show_header=True)
    table.add_column("Source", style="cyan")
    table.add_column("Requests")
    table.add_column("Available")
    table.add_column("Success rate")
    table.add_column("Avg time (ms)")
    table.add_column("Quality")
    table.add_column("Last success")
    table.add_column("Last failure")

    for name, stats in sorted(table_data.items()):
        table.add_row(
            name,
            str(stats.total_requests),
            str(stats.available_count),
            f"{stats.success_rate:.1%}",
            f"{stats.avg_response_time_ms:.0f}",
            str(stats.quality_score),
            _format_ms_timestamp(stats.last_success_at),
            _format_ms_timestamp(stats.last_failure_at),
        )

    console.print(table)


@sources.command("rank")
@click.option("--sources", "source_list", type=str, default=None, help="Comma-separated candidates.")
@click.option(
    "--network",
    type=click.Choice(_NETWORK_CHOICES, case_sensitive=False),
    default=None,
    help="Client network class.",
)
def sources_rank(source_list: str | None, network: str | None) -> None:
    """Rank candidate sources (default order when none given)."""
    candidates = _split_sources(source_list)

    async def _job(gateway: Any) -> list[tuple[str, float | None]]:
        ranker = gateway.ranker
        if network is None:
            ranked = ranker.rank_sources(candidates)
        else:
            ranked = ranker.adjust_sources_for_network(candidates, network)
        return [(s, ranker.score(s)) for s in ranked]

    ranked = _run_with_gateway(_job)

    title = f"Ranked Sources ({network})" if network else "Ranked Sources"
    table = Table(title=title, show_header=True)
    table.add_column("#")
    table.add_column("Source", style="cyan")
    table.add_column("Score")

    for i, (name, score) in enumerate(ranked, 1):
        table.add_row(str(i), name, f"{score:.3f}" if score is not None else "-")

    console.print(table)
    if not ranked:
        error_console.print("[yellow]Every candidate was filtered out.[/yellow]")


@sources.command("reset")
@click.option("--source", type=str, default=None, help="Reset only this source.")
@click.confirmation_option(prompt="Are you sure you want to reset source statistics?")
def sources_reset(source: str | None) -> None:
    """Reset source statistics to their seeds."""

    async def _job(gateway: Any) -> bool:
        if source is not None and source not in gateway.registry.known_sources:
            return False
        await gateway.registry.reset_stats(source)
        return True

    if not _run_with_gateway(_job):
        error_console.print(f"[yellow]Unknown source '{source}', nothing reset.[/yellow]")
        return
    target = f"source '{source}'" if source else "all sources"
    console.print(f"[green]Statistics reset for {target}.[/green]")


# ── cache ──


@cli.group()
def cache() -> None:
    """Cache management commands."""


@cache.command("stats")
def cache_stats() -> None:
    """Show cache statistics."""

    async def _job(gateway: Any) -> Any:
        return gateway.cache.stats()

    stats = _run_with_gateway(_job)

    table = Table(title="Cache Statistics", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")

    table.add_row("Local entries", str(stats.memory_items))
    table.add_row("Hits", str(stats.hits))
    table.add_row("Misses", str(stats.misses))
    table.add_row("Hit rate", stats.hit_rate_display)
    table.add_row("Shared tier", "up" if stats.shared_available else "down")

    console.print(table)


@cache.command("clear")
@click.option("--prefix", type=str, default=None, help="Only keys starting with PREFIX.")
@click.option("--song", "song_id", type=str, default=None, help="Only entries for one song id.")
@click.option("--source", type=str, default=None, help="Only source-specific entries for SOURCE.")
@click.confirmation_option(prompt="Are you sure you want to clear the cache?")
def cache_clear(prefix: str | None, song_id: str | None, source: str | None) -> None:
    """Clear cached song data."""
    if sum(x is not None for x in (prefix, song_id, source)) > 1:
        error_console.print("[red]Error:[/red] use at most one of --prefix, --song, --source")
        sys.exit(2)

    async def _job(gateway: Any) -> int:
        if prefix is not None:
            return await gateway.cache.delete_by_prefix(prefix)
        if song_id is not None:
            return await gateway.songs.clear_song_cache(song_id)
        if source is not None:
            return await gateway.songs.clear_source_cache(source)
        return await gateway.songs.clear_all()

    removed = _run_with_gateway(_job)
    console.print(f"[green]Cache cleared ({removed} entries removed).[/green]")


# ── resolve ──


@cli.command()
@click.argument("track_id")
@click.option("--sources", "source_list", type=str, default=None, help="Comma-separated candidates.")
@click.option(
    "--network",
    type=click.Choice(_NETWORK_CHOICES, case_sensitive=False),
    default=None,
    help="Client network class.",
)
@click.option("--api-url", type=str, default=None, help="Music API URL (overrides config).")
def resolve(
    track_id: str, source_list: str | None, network: str | None, api_url: str | None
) -> None:
    """Resolve a playable link for TRACK_ID."""
    candidates = _split_sources(source_list)

    async def _job(gateway: Any) -> Any:
        return await gateway.match_song(track_id, sources=candidates, network=network)

    result = _run_with_gateway(_job, music_api_url=api_url)

    table = Table(title=f"Track {result.track_id}", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Source", result.source or "-")
    table.add_row("Cached", "yes" if result.cached else "no")
    table.add_row("URL", result.data.url or "-")
    table.add_row("Bitrate", str(result.data.br or "-"))
    if result.quality is not None:
        table.add_row("Format", result.quality.format)
        table.add_row("Quality score", f"{result.quality.score:.1f}")
    table.add_row("Sources tried", ", ".join(result.sources))

    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    cli()
