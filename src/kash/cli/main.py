"""
CLI for the kash disk cache.

Commands:
    kash get KEY - Print the value stored under KEY
    kash put KEY VALUE - Store VALUE under KEY
    kash remove KEY - Remove KEY
    kash clear - Remove every item and file from the cache
    kash list - Show tracked items
    kash config - Show current configuration
    kash version - Print version
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from kash import __version__
from kash.config import Settings, clear_settings_cache, get_settings
from kash.disk_cache import DiskCache
from kash.exceptions import KashError
from kash.logging import setup_logging
from kash.types import CacheOption

app = typer.Typer(
    name="kash",
    help="kash - persistent keyed blob cache",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

RootOption = Annotated[
    Optional[Path],
    typer.Option("--root", "-r", help="Parent directory of the cache"),
]
NameOption = Annotated[
    Optional[str],
    typer.Option("--name", "-n", help="Cache name"),
]


def _get_settings_safe() -> Settings | None:
    """Get settings, returning None if configuration is invalid."""
    try:
        clear_settings_cache()
        return get_settings()
    except Exception:
        return None


def _open_cache(root: Path | None, name: str | None) -> DiskCache:
    """Open the cache named by settings, with CLI overrides applied."""
    settings = _get_settings_safe()
    if settings is None:
        error_console.print(
            "[red]Error:[/red] Configuration is invalid. "
            "Run 'kash config' to see what's wrong."
        )
        raise typer.Exit(1)

    setup_logging(settings.LOG_LEVEL)

    overrides: dict[str, object] = {}
    if root is not None:
        overrides["ROOT_PATH"] = root
    if name is not None:
        overrides["CACHE_NAME"] = name

    try:
        settings = Settings(**{**settings.model_dump(), **overrides})
    except ValidationError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    try:
        return DiskCache.from_settings(settings)
    except KashError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def _format_millis(millis: int | None) -> str:
    if millis is None:
        return "[dim]never[/dim]"
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).isoformat(timespec="seconds")


@app.command()
def get(
    key: Annotated[str, typer.Argument(help="Cache key")],
    root: RootOption = None,
    name: NameOption = None,
) -> None:
    """Print the value stored under KEY."""
    cache = _open_cache(root, name)
    try:
        value = cache.get(key)
    except KashError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if value is None:
        error_console.print(f"[yellow]Not found:[/yellow] {escape(key)}")
        raise typer.Exit(1)

    typer.echo(value)


@app.command()
def put(
    key: Annotated[str, typer.Argument(help="Cache key")],
    value: Annotated[str, typer.Argument(help="Value to store")],
    ttl: Annotated[
        Optional[float],
        typer.Option("--ttl", "-t", help="Expire after this many seconds"),
    ] = None,
    root: RootOption = None,
    name: NameOption = None,
) -> None:
    """Store VALUE under KEY."""
    cache = _open_cache(root, name)
    option = CacheOption.expire_after(ttl) if ttl is not None else None
    try:
        cache.put_string(key, value, option)
    except KashError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[green]Stored[/green] {escape(key)}")


@app.command()
def remove(
    key: Annotated[str, typer.Argument(help="Cache key")],
    root: RootOption = None,
    name: NameOption = None,
) -> None:
    """Remove KEY from the cache."""
    cache = _open_cache(root, name)
    try:
        removed = cache.remove(key)
    except KashError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if removed:
        console.print(f"[green]Removed[/green] {escape(key)}")
    else:
        console.print(f"[yellow]Not found:[/yellow] {escape(key)}")


@app.command()
def clear(
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Do not ask for confirmation"),
    ] = False,
    root: RootOption = None,
    name: NameOption = None,
) -> None:
    """Remove every item and file from the cache."""
    cache = _open_cache(root, name)
    if not yes:
        typer.confirm(f"Delete everything under {cache.cache_dir}?", abort=True)

    count = cache.size()
    try:
        cache.evict_all()
    except KashError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    console.print(f"[green]Cleared[/green] {count} item(s)")


@app.command(name="list")
def list_items(
    root: RootOption = None,
    name: NameOption = None,
) -> None:
    """Show tracked items."""
    cache = _open_cache(root, name)
    items = cache.items()

    console.print()
    console.print(
        Panel(
            f"[bold]Directory:[/bold] {cache.cache_dir}\n"
            f"[bold]Items:[/bold] {len(items)}",
            title=f"[bold cyan]{cache.name}[/bold cyan]",
            border_style="cyan",
        )
    )

    if not items:
        return

    table = Table(show_header=True)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("File", style="dim")
    table.add_column("Created", style="green")
    table.add_column("Expires", style="yellow")

    for item in items:
        table.add_row(
            escape(item.key),
            item.filename,
            _format_millis(item.created_time),
            _format_millis(item.expired_time),
        )

    console.print(table)


@app.command()
def config() -> None:
    """Show current configuration."""
    console.print()
    console.print("[bold]kash Configuration[/bold]")
    console.print()

    settings = _get_settings_safe()

    if settings is None:
        error_console.print("[red]Configuration is invalid.[/red]")
        error_console.print()
        error_console.print("Check the KASH_* environment variables:")
        error_console.print("  - KASH_CACHE_NAME (single directory name)")
        error_console.print("  - KASH_MEMORY_CACHE_MAX_ENTRIES (positive integer)")
        error_console.print("  - KASH_MEMORY_CACHE_MAX_ENTRY_BYTES (non-negative integer)")
        error_console.print("  - KASH_CHARSET (known charset)")
        raise typer.Exit(1)

    table = Table(title="Settings", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key, value in settings.display().items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()
    console.print(f"[bold]Cache directory:[/bold] {settings.cache_dir}")
    console.print()


@app.command()
def version() -> None:
    """Print the version number."""
    console.print(f"kash version {__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
