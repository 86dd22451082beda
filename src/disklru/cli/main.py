"""
CLI for the disk LRU cache.

Commands:
    disklru stats - Show entry count, byte total and bounds
    disklru keys - List keys, least recently used first
    disklru get KEY - Print a value (or write it with --output)
    disklru set KEY [VALUE] - Store a value (or read it with --file)
    disklru delete KEY - Remove a key
    disklru clear - Remove every key
    disklru config - Show current configuration
    disklru version - Print version
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Annotated, Any, Coroutine, Optional, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from disklru import __version__
from disklru.cache.file_cache import FileLRUCache
from disklru.config import Settings, clear_settings_cache, get_settings
from disklru.exceptions import DiskLRUError
from disklru.logging import setup_logging

T = TypeVar("T")

app = typer.Typer(
    name="disklru",
    help="Disk-resident LRU cache with TTL expiry",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

DirOption = Annotated[
    Optional[Path], typer.Option("--dir", "-d", help="Cache directory")
]
MaxSizeOption = Annotated[
    Optional[float],
    typer.Option("--max-size", "-m", help="Capacity bound (<= 0 for unbounded)"),
]
UnitOption = Annotated[
    Optional[str], typer.Option("--unit", "-u", help="Bound unit: file or byte")
]
TTLOption = Annotated[
    Optional[float], typer.Option("--ttl", "-t", help="Time-to-live in seconds")
]


def _get_settings_safe() -> Settings | None:
    """Get settings, returning None if configuration is invalid."""
    try:
        clear_settings_cache()
        return get_settings()
    except ValidationError:
        return None


def _open(
    dir: Path | None,
    max_size: float | None,
    unit: str | None,
    ttl: float | None,
) -> FileLRUCache:
    settings = _get_settings_safe()
    if settings is None:
        error_console.print(
            "[red]Error:[/red] Configuration is invalid. "
            "Run 'disklru config' to see the current values."
        )
        raise typer.Exit(1)

    setup_logging(settings.LOG_LEVEL, log_file=settings.LOG_FILE)
    try:
        return FileLRUCache.from_settings(
            settings, dir=dir, max_size=max_size, max_size_unit=unit, ttl=ttl
        )
    except DiskLRUError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a cache coroutine, turning cache and I/O failures into exit code 1."""
    try:
        return asyncio.run(coro)
    except (DiskLRUError, OSError) as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def stats(
    dir: DirOption = None,
    max_size: MaxSizeOption = None,
    unit: UnitOption = None,
    ttl: TTLOption = None,
) -> None:
    """Show entry count, byte total and configured bounds."""
    cache = _open(dir, max_size, unit, ttl)
    result = _run(cache.stats())

    table = Table(title="Cache", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Directory", str(result.directory))
    table.add_row("Entries", str(result.entries))
    table.add_row("Bytes", str(result.bytes))
    table.add_row(
        "Max size",
        "unbounded" if result.max_size is None else f"{result.max_size:g} {result.max_size_unit.value}",
    )
    table.add_row("TTL", "none" if result.ttl is None else f"{result.ttl:g}s")
    console.print(table)


@app.command()
def keys(
    dir: DirOption = None,
    max_size: MaxSizeOption = None,
    unit: UnitOption = None,
    ttl: TTLOption = None,
) -> None:
    """List keys, least recently used first."""
    cache = _open(dir, max_size, unit, ttl)
    for key in _run(cache.keys()):
        console.print(key, markup=False, highlight=False, soft_wrap=True)


@app.command()
def get(
    key: Annotated[str, typer.Argument(help="Cache key")],
    peek: Annotated[
        bool, typer.Option("--peek", help="Do not refresh the key's recency")
    ] = False,
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Write value to this file")
    ] = None,
    dir: DirOption = None,
    max_size: MaxSizeOption = None,
    unit: UnitOption = None,
    ttl: TTLOption = None,
) -> None:
    """Print the value stored under KEY."""
    cache = _open(dir, max_size, unit, ttl)
    value = _run(cache.peek(key) if peek else cache.get(key))
    if value is None:
        error_console.print(f"[yellow]not found:[/yellow] {escape(key)}")
        raise typer.Exit(1)

    if output is not None:
        output.write_bytes(value)
        console.print(f"[dim]Wrote {len(value)} bytes to[/dim] {output}")
    else:
        sys.stdout.buffer.write(value)
        sys.stdout.buffer.flush()


@app.command("set")
def set_(
    key: Annotated[str, typer.Argument(help="Cache key")],
    value: Annotated[Optional[str], typer.Argument(help="Value (UTF-8 text)")] = None,
    file: Annotated[
        Optional[Path], typer.Option("--file", "-f", help="Read the value from a file")
    ] = None,
    dir: DirOption = None,
    max_size: MaxSizeOption = None,
    unit: UnitOption = None,
    ttl: TTLOption = None,
) -> None:
    """Store VALUE (or the contents of --file) under KEY."""
    if (value is None) == (file is None):
        error_console.print("[red]Error:[/red] give exactly one of VALUE or --file")
        raise typer.Exit(2)

    data: bytes | str = file.read_bytes() if file is not None else value  # type: ignore[assignment]
    cache = _open(dir, max_size, unit, ttl)
    _run(cache.set(key, data))
    console.print(f"[green]Stored[/green] {escape(key)}")


@app.command()
def delete(
    key: Annotated[str, typer.Argument(help="Cache key")],
    dir: DirOption = None,
    max_size: MaxSizeOption = None,
    unit: UnitOption = None,
    ttl: TTLOption = None,
) -> None:
    """Remove KEY from the cache."""
    cache = _open(dir, max_size, unit, ttl)
    _run(cache.delete(key))
    console.print(f"[green]Deleted[/green] {escape(key)}")


@app.command()
def clear(
    dir: DirOption = None,
    max_size: MaxSizeOption = None,
    unit: UnitOption = None,
    ttl: TTLOption = None,
) -> None:
    """Remove every entry from the cache."""
    cache = _open(dir, max_size, unit, ttl)
    _run(cache.clear())
    console.print("[green]Cache cleared[/green]")


@app.command()
def config() -> None:
    """Show current configuration from DISKLRU_* environment variables."""
    settings = _get_settings_safe()

    if settings is None:
        error_console.print("[red]Configuration is invalid.[/red]")
        error_console.print()
        error_console.print("Check the DISKLRU_* environment variables:")
        error_console.print("  - DISKLRU_MAX_SIZE, DISKLRU_TTL must be numbers")
        error_console.print("  - DISKLRU_MAX_SIZE_UNIT must be 'file' or 'byte'")
        raise typer.Exit(1)

    table = Table(title="Settings", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key, value in settings.display().items():
        display_value = str(value) if value is not None else "[dim]not set[/dim]"
        table.add_row(key, display_value)

    console.print(table)


@app.command()
def version() -> None:
    """Print version."""
    console.print(f"disklru {__version__}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
