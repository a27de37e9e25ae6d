"""Command-line interface for Trip Album.

Built with Click for commands and Rich for terminal output.

Usage:
    tripalbum build ~/Pictures/Japan --places ./places.json
    tripalbum show
    tripalbum moments
    tripalbum moment caption MOMENT_ID "Sunset from the deck"
    tripalbum moment rerank MOMENT_ID ~/Pictures/Japan --places ./places.json
    tripalbum cache clear
    tripalbum config show
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from tripalbum import __version__
from tripalbum.ai.histogram import ColorHistogramEncoder
from tripalbum.cache import AlbumCache
from tripalbum.config import AppConfig, ConfigError, load_config
from tripalbum.core.models import Moment, TripAlbum
from tripalbum.core.results import FailureKind
from tripalbum.editing import (
    MomentEditor,
    all_moments,
    choose_place,
    moments_feed_status,
    replace_moment,
    set_caption,
)
from tripalbum.pipeline import AlbumPipeline
from tripalbum.providers.local_files import LocalPhotoProvider
from tripalbum.providers.places_json import JsonPlaceLookup
from tripalbum.utils.logging import setup_logging

logger = logging.getLogger(__name__)

console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def print_header(text: str) -> None:
    console.print()
    console.print(Panel(text, style="bold blue", expand=False))
    console.print()


def print_success(text: str) -> None:
    console.print(f"[green]✓[/green] {escape(text)}")


def print_warning(text: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {escape(text)}")


def print_error(text: str) -> None:
    console.print(f"[red]✗[/red] {escape(text)}")


def print_info(text: str) -> None:
    console.print(f"[blue]ℹ[/blue] {escape(text)}")


def _config(ctx: click.Context) -> AppConfig:
    return ctx.obj["config"]


def _cache(ctx: click.Context) -> AlbumCache:
    return AlbumCache(_config(ctx).paths.cache_dir)


def _load_albums(ctx: click.Context) -> list[TripAlbum]:
    albums, status = _cache(ctx).load_or_status()
    if not albums:
        print_info(status)
    return albums


def _find_moment(albums: list[TripAlbum], moment_id: str) -> Moment:
    for album in albums:
        moment = album.find_moment(moment_id)
        if moment is not None:
            return moment
    raise click.ClickException(f"No cached moment with id {moment_id}")


# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="tripalbum")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--config", "-c", "config_path", type=click.Path(path_type=Path), help="Path to config file")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, debug: bool, config_path: Path | None) -> None:
    """Trip Album - turn geotagged photos into trip albums.

    Photos are grouped into trips, days, and moments; each moment is named
    after the place it happened at and split into highlights.
    """
    ctx.ensure_object(dict)
    try:
        app_config = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e

    debug = debug or app_config.debug
    verbose = verbose or app_config.verbose
    setup_logging("DEBUG" if debug else "INFO" if verbose else "WARNING")

    ctx.obj["config"] = app_config
    ctx.obj["verbose"] = verbose


# =============================================================================
# Build Command
# =============================================================================


@cli.command()
@click.argument("photo_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--places",
    "-p",
    "places_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file of places to identify moments with",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write the albums to this JSON file",
)
@click.pass_context
def build(ctx: click.Context, photo_dir: Path, places_file: Path, output: Path | None) -> None:
    """Build trip albums from the photos in PHOTO_DIR."""
    app_config = _config(ctx)
    print_header("🧳 Building trip albums")

    pipeline = AlbumPipeline(
        LocalPhotoProvider(photo_dir),
        ColorHistogramEncoder(),
        JsonPlaceLookup(places_file, app_config.places.search_radius_meters),
        config=app_config,
        store=_cache(ctx),
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Starting...", total=100)

        def progress_callback(message: str, fraction: float) -> None:
            progress.update(task, description=message, completed=fraction * 100)

        pipeline.progress = progress_callback
        result = asyncio.run(pipeline.generate_trips())

    if result.albums:
        print_success(result.status_message)
    else:
        print_warning(result.status_message)

    degraded = len(result.failures)
    if degraded:
        print_info(f"{degraded} items were degraded during analysis")
        if ctx.obj["verbose"]:
            for kind in FailureKind:
                count = len(result.failures_of(kind))
                if count:
                    console.print(f"  {kind.value}: {count}")

    if output is not None and result.albums:
        payload = [album.model_dump(mode="json") for album in result.albums]
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print_success(f"Albums written to {output}")

    for album in result.albums:
        _print_album(album)


# =============================================================================
# Show / Moments Commands
# =============================================================================


def _print_album(album: TripAlbum) -> None:
    table = Table(title=escape(album.title), show_header=True, title_style="bold cyan")
    table.add_column("Date", style="cyan")
    table.add_column("Time")
    table.add_column("Moment")
    table.add_column("Highlights", justify="right")
    table.add_column("Photos", justify="right")

    for day in album.days:
        for index, moment in enumerate(day.moments):
            table.add_row(
                day.date if index == 0 else "",
                moment.time_label,
                escape(moment.name),
                str(len(moment.highlights)),
                str(len(moment.all_asset_ids)),
            )
    console.print(table)


@cli.command()
@click.pass_context
def show(ctx: click.Context) -> None:
    """List the albums from the last build."""
    albums = _load_albums(ctx)
    if not albums:
        return
    print_header(f"📚 {len(albums)} trip albums")
    for album in albums:
        _print_album(album)
        for day in album.days:
            console.print(f"  [dim]{day.date}[/dim] {escape(day.summary)}")
        console.print()


@cli.command()
@click.pass_context
def moments(ctx: click.Context) -> None:
    """Show every moment across all albums, latest first."""
    albums = _cache(ctx).load() or []
    status = moments_feed_status(albums)
    if status:
        print_info(status)
        return

    table = Table(show_header=True)
    table.add_column("Time", style="cyan")
    table.add_column("Moment")
    table.add_column("Caption")
    table.add_column("Id", style="dim")
    for moment in all_moments(albums):
        table.add_row(moment.time_label, escape(moment.name), escape(moment.caption or ""), moment.id)
    console.print(table)


# =============================================================================
# Moment Editing Commands
# =============================================================================


@cli.group()
def moment() -> None:
    """Edit a moment of the cached albums."""
    pass


def _save_moment(ctx: click.Context, albums: list[TripAlbum], edited: Moment) -> None:
    updated = replace_moment(albums, edited)
    if not _cache(ctx).save(updated):
        raise click.ClickException("Could not save the albums")


@moment.command("caption")
@click.argument("moment_id")
@click.argument("text")
@click.pass_context
def moment_caption(ctx: click.Context, moment_id: str, text: str) -> None:
    """Set the caption of MOMENT_ID (empty TEXT clears it)."""
    albums = _load_albums(ctx)
    edited = set_caption(_find_moment(albums, moment_id), text)
    _save_moment(ctx, albums, edited)
    print_success("Caption saved")


@moment.command("choose")
@click.argument("moment_id")
@click.argument("candidate_id")
@click.pass_context
def moment_choose(ctx: click.Context, moment_id: str, candidate_id: str) -> None:
    """Rename MOMENT_ID after one of its place candidates."""
    albums = _load_albums(ctx)
    try:
        edited = choose_place(_find_moment(albums, moment_id), candidate_id)
    except KeyError as e:
        raise click.ClickException(str(e.args[0])) from e
    _save_moment(ctx, albums, edited)
    print_success(f"Moment renamed to {edited.name}")


@moment.command("rerank")
@click.argument("moment_id")
@click.argument("photo_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--places",
    "-p",
    "places_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.pass_context
def moment_rerank(ctx: click.Context, moment_id: str, photo_dir: Path, places_file: Path) -> None:
    """Rank the places around MOMENT_ID's cover photo again."""
    app_config = _config(ctx)
    albums = _load_albums(ctx)
    editor = MomentEditor(
        LocalPhotoProvider(photo_dir),
        ColorHistogramEncoder(),
        JsonPlaceLookup(places_file, app_config.places.search_radius_meters),
        app_config.ranking,
    )
    result = asyncio.run(editor.rerank(_find_moment(albums, moment_id)))
    if not result.ok:
        print_warning(result.error)
        return

    _save_moment(ctx, albums, result.moment)
    table = Table(show_header=True)
    table.add_column("Candidate", style="dim")
    table.add_column("Name")
    table.add_column("Score", justify="right")
    for candidate in result.candidates:
        table.add_row(candidate.id, escape(candidate.name), f"{candidate.score:.3f}")
    console.print(table)


# =============================================================================
# Cache / Config Commands
# =============================================================================


@cli.group()
def cache() -> None:
    """Manage the album cache."""
    pass


@cache.command("clear")
@click.pass_context
def cache_clear(ctx: click.Context) -> None:
    """Remove the cached albums."""
    if _cache(ctx).clear():
        print_success("Album cache cleared")
    else:
        print_info("Album cache was already empty")


@cache.command("info")
@click.pass_context
def cache_info(ctx: click.Context) -> None:
    """Show where the cache lives and what it holds."""
    for key, value in _cache(ctx).get_stats().items():
        console.print(f"{key}: {escape(str(value))}")


@cli.group()
def config() -> None:
    """Inspect configuration."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show the effective configuration."""
    print_header("⚙️ Current Configuration")
    table = Table(show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in _config(ctx).to_summary().items():
        table.add_row(key, escape(str(value)))
    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Main entry point for the CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        console.print()
        print_info("Interrupted.")
        sys.exit(130)


if __name__ == "__main__":
    main()
