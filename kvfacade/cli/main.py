"""
kvfacade CLI entry point.

Commands:
    kvfacade get KEY             — Print stored text
    kvfacade set KEY VALUE       — Store text, optionally with --ttl
    kvfacade get-object KEY      — Print a stored JSON object
    kvfacade delete KEY...       — Delete keys
    kvfacade exists KEY          — Check a key
    kvfacade delete-pattern PAT  — Delete keys matching a glob
    kvfacade expire KEY... --ttl — Set TTL on keys
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from kvfacade.codec import encode
from kvfacade.core.config import KVFacadeConfig
from kvfacade.core.errors import ConfigError, KVFacadeError
from kvfacade.core.logging import setup_logging
from kvfacade.store.redis_store import RedisStore

app = typer.Typer(
    name="kvfacade",
    help="kvfacade — typed access to a Redis key-value store.",
    add_completion=False,
)

console = Console()

EXIT_MISSING = 1
EXIT_STORE_ERROR = 2


def build_store(config: KVFacadeConfig) -> RedisStore:
    """Create the store the commands run against."""
    return RedisStore.from_config(config)


def _run(ctx: typer.Context, operation: Callable[[RedisStore], Awaitable[Any]]) -> Any:
    """Open a store, run one operation, always close the store."""
    config: KVFacadeConfig = ctx.obj

    async def runner() -> Any:
        async with build_store(config) as store:
            return await operation(store)

    try:
        return asyncio.run(runner())
    except KVFacadeError as e:
        console.print(f"[red]Error:[/red] {escape(e.message)}", highlight=False)
        raise typer.Exit(EXIT_STORE_ERROR)


def _print_value(value: str) -> None:
    console.print(value, markup=False, highlight=False, soft_wrap=True)


def _missing(key: str) -> None:
    console.print(f"[yellow](nil)[/yellow] {escape(key)}", highlight=False)
    raise typer.Exit(EXIT_MISSING)


@app.callback()
def main(
    ctx: typer.Context,
    url: str = typer.Option(None, "--url", help="Redis URL (overrides config)"),
    db: int = typer.Option(None, "--db", help="Database index (overrides config)"),
    case_sensitive: bool = typer.Option(
        False, "--case-sensitive", help="Do not lower-case keys"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    """Load configuration shared by every command."""
    overrides: dict[str, Any] = {}
    if url:
        overrides.setdefault("redis", {})["url"] = url
    if db is not None:
        overrides.setdefault("redis", {})["db_index"] = db
    if case_sensitive:
        overrides["keys"] = {"ignore_case": False}

    try:
        config = KVFacadeConfig.load(overrides=overrides)
    except ConfigError as e:
        console.print(f"[red]Error:[/red] {escape(e.message)}", highlight=False)
        raise typer.Exit(EXIT_STORE_ERROR)

    setup_logging(
        logging.DEBUG if verbose else config.logging.level,
        log_file=config.logging.file,
    )
    ctx.obj = config


@app.command()
def version() -> None:
    """Show kvfacade version."""
    from kvfacade import __version__

    console.print(f"kvfacade v{__version__}")


@app.command()
def get(ctx: typer.Context, key: str = typer.Argument(..., help="Key to read")) -> None:
    """Print the text stored at KEY."""
    value = _run(ctx, lambda store: store.get_text(key))
    if value is None:
        _missing(key)
    _print_value(value)


@app.command("set")
def set_(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Key to write"),
    value: str = typer.Argument(..., help="Text to store"),
    ttl: int = typer.Option(None, "--ttl", "-t", help="Expire after N seconds"),
) -> None:
    """Store VALUE at KEY."""
    _run(ctx, lambda store: store.set_text(key, value, ttl))
    console.print("OK")


@app.command("get-object")
def get_object(ctx: typer.Context, key: str = typer.Argument(..., help="Key to read")) -> None:
    """Pretty-print the JSON object stored at KEY."""
    value = _run(ctx, lambda store: store.get_object(key))
    if value is None:
        _missing(key)
    console.print_json(encode(value))


@app.command()
def delete(
    ctx: typer.Context,
    keys: list[str] = typer.Argument(..., help="Keys to delete"),
) -> None:
    """Delete one or more keys."""
    removed = _run(ctx, lambda store: store.delete_keys(keys))
    console.print(f"Deleted {removed} key(s)")


@app.command()
def exists(ctx: typer.Context, key: str = typer.Argument(..., help="Key to check")) -> None:
    """Exit 0 if KEY exists, 1 otherwise."""
    found = _run(ctx, lambda store: store.exists(key))
    console.print("true" if found else "false")
    if not found:
        raise typer.Exit(EXIT_MISSING)


@app.command("delete-pattern")
def delete_pattern(
    ctx: typer.Context,
    pattern: str = typer.Argument(..., help="Glob pattern, e.g. 'session:*'"),
    page_size: int = typer.Option(None, "--page-size", "-p", help="SCAN COUNT hint"),
) -> None:
    """Delete every key matching PATTERN."""
    removed = _run(ctx, lambda store: store.delete_by_pattern(pattern, page_size))
    console.print(f"Deleted {removed} key(s) matching {escape(pattern)}", highlight=False)


@app.command()
def expire(
    ctx: typer.Context,
    keys: list[str] = typer.Argument(..., help="Keys to update"),
    ttl: int = typer.Option(..., "--ttl", "-t", help="Seconds until expiry"),
) -> None:
    """Set the same TTL on every KEY."""
    _run(ctx, lambda store: store.batch_update_ttl(keys, ttl))
    console.print(f"TTL set to {ttl}s on {len(keys)} key(s)")


if __name__ == "__main__":
    app()
