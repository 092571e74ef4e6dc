"""Run a resumable import of the configured SQL dump."""

from __future__ import annotations

import logging
import signal
import uuid
from contextlib import contextmanager
from typing import Iterator

import typer
from rich.console import Console

from dumpresume.application.use_cases.import_dump import import_dump
from dumpresume.domain.errors import CheckpointWriteError, ClientFailure, SourceUnreadable
from dumpresume.infrastructure.adapters.checkpoint_store import FileCheckpointStore
from dumpresume.infrastructure.adapters.docker_mysql_client import DockerMySQLClient
from dumpresume.infrastructure.adapters.dump_reader import LocalDumpReader
from dumpresume.infrastructure.adapters.rich_progress_reporter import RichProgressReporterAdapter
from dumpresume.infrastructure.cli.settings_loader import load_settings_or_exit
from dumpresume.infrastructure.logging import configure_logging, set_correlation_id

app = typer.Typer(help="Import a SQL dump with byte-offset resume")
console = Console()
logger = logging.getLogger(__name__)


@contextmanager
def sigterm_as_exit() -> Iterator[None]:
    """Turn SIGTERM into SystemExit so scoped cleanup runs; the checkpoint survives."""
    def _handler(signum: int, frame: object) -> None:
        raise SystemExit(128 + signum)
    
    previous = signal.signal(signal.SIGTERM, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


@app.command()
def run(
    env_file: str | None = typer.Option(None, "--env-file", help="Path to .env file (auto-detected if omitted)"),
    config_path: str = typer.Option("dumpresume.toml", "--config", help="Path to dumpresume.toml"),
    interval: float | None = typer.Option(
        None,
        "--interval",
        help="Seconds between progress checkpoints; lower means less replay after a crash",
    ),
    chunk_size: int | None = typer.Option(None, "--chunk-size", help="Bytes read from the dump per chunk"),
    exact_size: bool = typer.Option(
        False,
        "--exact-size",
        help="Count decompressed bytes of .gz dumps instead of trusting the gzip trailer (needed above 4 GiB)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Echo client output on the console"),
) -> None:
    """
    Import SQL_FILE into MYSQL_DATABASE inside CONTAINER_NAME.
    
    Resumes from the offset stored in RESUME_FILE. Exits 0 on success, or with
    the database client's exit status on failure (the resume file is kept).
    
    Examples:
        dumpresume import run
        dumpresume import run --env-file prod.env --interval 5
    """
    settings = load_settings_or_exit(
        env_file,
        config_path,
        progress_interval=interval,
        chunk_size=chunk_size,
    )
    configure_logging(logging.INFO, verbose=verbose, log_file=settings.log_file)
    set_correlation_id(str(uuid.uuid4()))
    
    console.print("[bold]🚀 MariaDB Large Dump Import[/bold]")
    console.print(f"📄 File: {settings.sql_file}")
    console.print(f"📋 Log file: {settings.log_file}")
    
    client = DockerMySQLClient(
        container=settings.container_name,
        database=settings.database,
        password=settings.root_password,
        user=settings.mysql_user,
        docker_bin=settings.docker_bin,
    )
    checkpoint_store = FileCheckpointStore(settings.resume_file)
    
    try:
        with sigterm_as_exit():
            result = import_dump(
                request=settings.to_request(),
                reader=LocalDumpReader(exact_gzip_size=exact_size),
                checkpoint_store=checkpoint_store,
                client=client,
                progress_reporter=RichProgressReporterAdapter(),
                policy=settings.session_policy(),
            )
    except SourceUnreadable as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)
    except ClientFailure as e:
        console.print(f"[red]❌ {e}[/red]")
        console.print(f"💾 Resume file: {checkpoint_store.path}")
        console.print(f"📋 Check log file: {settings.log_file}")
        raise typer.Exit(e.exit_status)
    except CheckpointWriteError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)
    
    if not result.succeeded:
        console.print(f"[red]❌ Import failed with status: {result.exit_status}[/red]")
        console.print(
            f"💾 Resume file preserved at: {checkpoint_store.path} "
            f"(offset {result.checkpoint_offset} of {result.total_size})"
        )
        console.print(f"📋 Check log file: {settings.log_file}")
        raise typer.Exit(result.exit_status)
    
    console.print("[green]✅ Import completed successfully[/green]")
