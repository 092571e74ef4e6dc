"""Inspect or reset the resume checkpoint."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from dumpresume.domain.errors import CheckpointCorrupt, SourceUnreadable
from dumpresume.infrastructure.adapters.checkpoint_store import FileCheckpointStore
from dumpresume.infrastructure.adapters.dump_reader import LocalDumpReader
from dumpresume.infrastructure.cli.settings_loader import load_settings_or_exit

app = typer.Typer(help="Inspect or reset the resume checkpoint")
console = Console()


@app.command()
def show(
    env_file: str | None = typer.Option(None, "--env-file", help="Path to .env file"),
    config_path: str = typer.Option("dumpresume.toml", "--config", help="Path to dumpresume.toml"),
) -> None:
    """Show the stored resume offset against the dump size."""
    settings = load_settings_or_exit(env_file, config_path)
    store = FileCheckpointStore(settings.resume_file)
    
    table = Table(title="Resume Checkpoint", show_header=True, header_style="bold")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Resume file", str(store.path))
    table.add_row("SQL file", str(settings.sql_file))
    
    try:
        checkpoint = store.read()
    except CheckpointCorrupt as e:
        table.add_row("Offset", f"[red]corrupt ({e.content[:20]!r}), next run starts at 0[/red]")
        checkpoint = None
    else:
        table.add_row("Offset", "none (fresh import)" if checkpoint is None else f"{checkpoint.offset} bytes")
    
    try:
        source = LocalDumpReader().describe(settings.sql_file)
    except SourceUnreadable as e:
        table.add_row("Dump size", f"[red]{e.reason}[/red]")
    else:
        table.add_row("Dump size", f"{source.total_size} bytes ({source.size_mb:.1f} MB)")
        if checkpoint is not None and source.total_size > 0:
            percentage = min(checkpoint.offset / source.total_size * 100, 100.0)
            table.add_row("Imported", f"{percentage:.1f}%")
    
    console.print(table)


@app.command()
def clear(
    env_file: str | None = typer.Option(None, "--env-file", help="Path to .env file"),
    config_path: str = typer.Option("dumpresume.toml", "--config", help="Path to dumpresume.toml"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Remove the resume file so the next import starts from the beginning."""
    settings = load_settings_or_exit(env_file, config_path)
    store = FileCheckpointStore(settings.resume_file)
    
    if not store.exists():
        console.print(f"No resume file at {store.path}")
        return
    if not yes and not typer.confirm(f"Remove {store.path}? The next import will start from byte 0"):
        raise typer.Exit(1)
    if not store.clear():
        console.print(f"[red]Could not remove {store.path}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Removed {store.path}[/green]")
