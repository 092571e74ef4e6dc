"""Show table statistics of the target database."""

from __future__ import annotations

import typer

from dumpresume.application.services.table_stats import collect_table_stats
from dumpresume.infrastructure.adapters.docker_mysql_client import DockerMySQLClient
from dumpresume.infrastructure.adapters.rich_progress_reporter import RichProgressReporterAdapter
from dumpresume.infrastructure.cli.settings_loader import load_settings_or_exit

app = typer.Typer(help="Database statistics")


@app.command()
def show(
    env_file: str | None = typer.Option(None, "--env-file", help="Path to .env file"),
    config_path: str = typer.Option("dumpresume.toml", "--config", help="Path to dumpresume.toml"),
) -> None:
    """Show the largest tables of MYSQL_DATABASE by data size."""
    settings = load_settings_or_exit(env_file, config_path)
    client = DockerMySQLClient(
        container=settings.container_name,
        database=settings.database,
        password=settings.root_password,
        user=settings.mysql_user,
        docker_bin=settings.docker_bin,
    )
    stats = collect_table_stats(client, settings.database, settings.session_policy())
    RichProgressReporterAdapter().display_table_stats(stats)
