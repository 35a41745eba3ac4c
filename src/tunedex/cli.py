"""Command line interface for tunedex."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from tunedex.config import DEFAULT_HOST, DEFAULT_PORT, AppConfig
from tunedex.errors import TunedexError
from tunedex.index.indexer import HashFailurePolicy, Indexer
from tunedex.index.search import list_files
from tunedex.web.app import create_app

console = Console()
app = typer.Typer(help="tunedex - content-addressed audio library server")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _policy(strict: bool) -> HashFailurePolicy:
    return HashFailurePolicy.ABORT if strict else HashFailurePolicy.SKIP


def _directory_argument():
    return typer.Argument(
        ...,
        help="Directory containing audio files.",
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    )


@app.command()
def scan(
    directory: Path = _directory_argument(),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Hashing workers"),
    strict: bool = typer.Option(False, "--strict", help="Abort if any file cannot be hashed"),
    force: bool = typer.Option(False, "--force", help="Rehash every file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Scan a directory once and print the resulting index."""
    _setup_logging(verbose)
    config = AppConfig(base_dir=directory, workers=workers, on_hash_error=_policy(strict))

    with Indexer(
        config.resolve_workers(),
        chunk_size=config.chunk_size,
        on_hash_error=config.on_hash_error,
    ) as indexer:
        try:
            result = indexer.scan(config.resolve_base_dir(), force=force)
        except TunedexError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=1) from exc

    files = list_files(result.index)
    if not files:
        console.print("[yellow]No audio files found.[/yellow]")
    else:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Id")
        table.add_column("Path")
        table.add_column("Mime")
        for entry in files:
            table.add_row(entry.id, entry.path, entry.mime)
        console.print(table)

    stats = result.stats
    console.print(
        f"Files: {len(files)}, hashed: {stats.hashed}, cached: {stats.cached}, "
        f"failed: {stats.failed}, duplicates: {stats.duplicates}, "
        f"unreadable: {stats.unreadable}"
    )


@app.command()
def serve(
    directory: Path = _directory_argument(),
    host: str = typer.Option(DEFAULT_HOST, help="Host interface"),
    port: int = typer.Option(DEFAULT_PORT, min=1, max=65535, help="Server port"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1, help="Hashing workers"),
    strict: bool = typer.Option(False, "--strict", help="Abort a scan if any file cannot be hashed"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index a directory and serve it over HTTP."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    _setup_logging(verbose)
    config = AppConfig(
        base_dir=directory,
        host=host,
        port=port,
        workers=workers,
        on_hash_error=_policy(strict),
    )

    console.print(f"Indexing [bold]{config.resolve_base_dir()}[/bold]...")
    try:
        web_app = create_app(config)
    except TunedexError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(f"Starting server on http://{config.host}:{config.port}")
    uvicorn.run(
        web_app,
        host=config.host,
        port=config.port,
        reload=False,
        log_level="info",
    )
