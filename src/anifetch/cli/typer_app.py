"""
anifetch Typer CLI Application

Command line front end for the AniDB metadata pipeline. Every command
builds the dependency container, runs one pipeline call on a fresh event
loop and prints the result with rich, or as JSON with --json.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from anifetch.cli.context import CliContext, LogLevel, get_cli_context, set_cli_context
from anifetch.cli.error_handler import handle_cli_error
from anifetch.cli.json_formatter import format_success_output
from anifetch.config.loader import get_config, reload_config
from anifetch.containers import Container
from anifetch.shared.constants import (
    AniDBEndpoints,
    Application,
    CLICommands,
    CLIDefaults,
    CLIHelp,
    CLIOptions,
    ProviderNames,
)
from anifetch.shared.logging import setup_structured_logger
from anifetch.shared.models.metadata import MetadataResult, RemoteSearchResult, SeriesInfo

T = TypeVar("T")

console = Console()


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        typer.echo(CLIHelp.VERSION_TEXT.format(version=Application.VERSION))
        raise typer.Exit


app = typer.Typer(
    name=CLIHelp.APP_NAME,
    help=CLIHelp.APP_DESCRIPTION,
    rich_markup_mode=CLIHelp.APP_STYLE,
    no_args_is_help=True,
)


@app.callback()
def main(
    config: Path | None = typer.Option(
        None,
        CLIOptions.CONFIG,
        CLIOptions.CONFIG_SHORT,
        help=CLIHelp.CONFIG_HELP,
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    log_level: LogLevel | None = typer.Option(
        None,
        CLIOptions.LOG_LEVEL,
        case_sensitive=False,
        help=CLIHelp.LOG_LEVEL_HELP,
    ),
    version: bool = typer.Option(
        False,
        CLIOptions.VERSION,
        CLIOptions.VERSION_SHORT,
        help=CLIHelp.VERSION_HELP,
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """anifetch - AniDB series metadata with ban-aware caching."""
    set_cli_context(CliContext(log_level=log_level, config_path=config))


def create_container() -> Container:
    """Load settings, configure logging and build the service container."""
    context = get_cli_context()
    settings = reload_config(context.config_path) if context.config_path else get_config()

    level = context.log_level.value if context.log_level else settings.logging.level
    setup_structured_logger(
        level=level,
        log_file=settings.logging.file,
        use_rich_console=settings.logging.console_output,
    )
    return Container()


async def _execute(container: Container, operation: Callable[[Container], Awaitable[T]]) -> T:
    try:
        return await operation(container)
    finally:
        await container.http_client().close()


def run_command(
    command: str,
    operation: Callable[[Container], Awaitable[T]],
    *,
    json_output: bool = False,
) -> T:
    """Run ``operation`` against a fresh container; errors exit the CLI."""
    try:
        container = create_container()
        return asyncio.run(_execute(container, operation))
    except (Exception, KeyboardInterrupt) as e:
        raise typer.Exit(handle_cli_error(e, command, json_output=json_output)) from e


def _emit_json(command: str, data: Any) -> None:
    typer.echo(format_success_output(command, data).decode("utf-8"))


def _format_date(value: Any) -> str:
    return value.date().isoformat() if value else "-"


def _print_series(result: MetadataResult) -> None:
    item = result.item
    aid = item.provider_ids.get(ProviderNames.ANIDB, "")
    if not result.has_metadata:
        console.print(f"[yellow]No metadata available for {AniDBEndpoints.SERIES_PAGE.format(aid=aid)}[/yellow]")
        return

    table = Table(title=item.name or aid, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Original title", item.original_title or "-")
    table.add_row("Premiered", _format_date(item.premiere_date))
    table.add_row("Ended", _format_date(item.end_date))
    table.add_row("Rating", f"{item.community_rating:.1f}" if item.community_rating is not None else "-")
    if item.official_rating:
        table.add_row("Official rating", item.official_rating)
    table.add_row("Genres", ", ".join(item.genres) or "-")
    table.add_row("Studios", ", ".join(item.studios) or "-")
    table.add_row("People", str(len(item.people)))
    table.add_row("Provider ids", ", ".join(f"{key}={value}" for key, value in sorted(item.provider_ids.items())))
    console.print(table)

    if item.overview:
        console.print(item.overview.replace("<br>", "\n"))


def _print_search_results(results: list[RemoteSearchResult]) -> None:
    if not results:
        console.print("[yellow]No matching series found[/yellow]")
        return

    table = Table(title="Search results")
    table.add_column("AniDB id", style="cyan")
    table.add_column("Title")
    table.add_column("Year")
    table.add_column("Image")
    for result in results:
        table.add_row(
            result.provider_ids.get(ProviderNames.ANIDB, "-"),
            result.name or "-",
            str(result.production_year) if result.production_year else "-",
            result.image_url or "-",
        )
    console.print(table)


@app.command(CLICommands.SERIES, help=CLIHelp.SERIES_HELP)
def series_command(
    aid: str = typer.Argument(..., help=CLIHelp.SERIES_ID_HELP),
    language: str = typer.Option(
        CLIDefaults.LANGUAGE,
        CLIOptions.LANGUAGE,
        CLIOptions.LANGUAGE_SHORT,
        help=CLIHelp.LANGUAGE_HELP,
    ),
    json_output: bool = typer.Option(False, CLIOptions.JSON, help=CLIHelp.JSON_HELP),
) -> None:
    """
    Fetch metadata for an AniDB series.

    Examples:
        anifetch series 1
        anifetch series 1 --language ja --json
    """
    info = SeriesInfo(provider_ids={ProviderNames.ANIDB: aid}, metadata_language=language)
    result = run_command(
        CLICommands.SERIES,
        lambda container: container.metadata_provider().get_metadata(info),
        json_output=json_output,
    )

    if json_output:
        _emit_json(CLICommands.SERIES, result)
    else:
        _print_series(result)


@app.command(CLICommands.SEARCH, help=CLIHelp.SEARCH_HELP)
def search_command(
    name: str = typer.Argument(..., help=CLIHelp.SEARCH_NAME_HELP),
    language: str = typer.Option(
        CLIDefaults.LANGUAGE,
        CLIOptions.LANGUAGE,
        CLIOptions.LANGUAGE_SHORT,
        help=CLIHelp.LANGUAGE_HELP,
    ),
    limit: int = typer.Option(CLIDefaults.SEARCH_LIMIT, CLIOptions.LIMIT, min=1, help=CLIHelp.SEARCH_LIMIT_HELP),
    json_output: bool = typer.Option(False, CLIOptions.JSON, help=CLIHelp.JSON_HELP),
) -> None:
    """Search AniDB series by title."""
    info = SeriesInfo(name=name, metadata_language=language)
    results = run_command(
        CLICommands.SEARCH,
        lambda container: container.metadata_provider(search_limit=limit).get_search_results(info),
        json_output=json_output,
    )

    if json_output:
        _emit_json(CLICommands.SEARCH, {"results": results})
    else:
        _print_search_results(results)


@app.command(CLICommands.IMAGE, help=CLIHelp.IMAGE_HELP)
def image_command(
    aid: str = typer.Argument(..., help=CLIHelp.SERIES_ID_HELP),
    json_output: bool = typer.Option(False, CLIOptions.JSON, help=CLIHelp.JSON_HELP),
) -> None:
    """Show the poster URL of an AniDB series."""
    images = run_command(
        CLICommands.IMAGE,
        lambda container: container.image_provider().get_images(aid),
        json_output=json_output,
    )

    if json_output:
        _emit_json(CLICommands.IMAGE, {"images": images})
    elif not images:
        console.print("[yellow]No image available[/yellow]")
    else:
        for image in images:
            console.print(image.url)


@app.command(CLICommands.PERSON, help=CLIHelp.PERSON_HELP)
def person_command(
    name: str = typer.Argument(..., help=CLIHelp.PERSON_NAME_HELP),
    json_output: bool = typer.Option(False, CLIOptions.JSON, help=CLIHelp.JSON_HELP),
) -> None:
    """Look up a person in the local person cache."""

    async def lookup(container: Container) -> Any:
        return await asyncio.to_thread(container.person_cache().get_person, name)

    person = run_command(CLICommands.PERSON, lookup, json_output=json_output)

    if json_output:
        _emit_json(CLICommands.PERSON, {"person": person})
    elif person is None:
        console.print(f"[yellow]{name} is not in the person cache[/yellow]")
    else:
        console.print(f"[bold]{person.name}[/bold]")
        console.print(f"  id:    {person.id or '-'}")
        console.print(f"  image: {person.image or '-'}")


@app.command(CLICommands.CACHE_STATUS, help=CLIHelp.CACHE_STATUS_HELP)
def cache_status_command(
    aid: str = typer.Argument(..., help=CLIHelp.SERIES_ID_HELP),
    json_output: bool = typer.Option(False, CLIOptions.JSON, help=CLIHelp.JSON_HELP),
) -> None:
    """Show cache validity, size and age of a series document and the ban state."""

    async def status(container: Container) -> dict[str, Any]:
        info = container.series_cache().info(aid)
        ban_state = container.ban_state()
        return {"document": info, "ban": ban_state.get_stats()}

    data = run_command(CLICommands.CACHE_STATUS, status, json_output=json_output)

    if json_output:
        _emit_json(CLICommands.CACHE_STATUS, data)
        return

    info = data["document"]
    ban = data["ban"]
    table = Table(title=AniDBEndpoints.SERIES_PAGE.format(aid=aid), show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Path", str(info.path))
    table.add_row("Cached", "yes" if info.exists else "no")
    table.add_row("Valid", "[green]yes[/green]" if info.valid else "[red]no[/red]")
    if info.exists:
        table.add_row("Size", f"{info.size} bytes")
        table.add_row("Age", f"{(info.age_seconds or 0) / 3600:.1f} hours")
    table.add_row("Ban recent", "yes" if ban["recent"] else "no")
    console.print(table)


if __name__ == "__main__":
    app()
