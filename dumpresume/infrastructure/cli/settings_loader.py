"""Shared settings loading for CLI commands."""

from __future__ import annotations

from typing import Any

import typer

from dumpresume.infrastructure.config.settings import ImportSettings


def load_settings_or_exit(
    env_file: str | None,
    config_path: str,
    **overrides: Any,
) -> ImportSettings:
    """Load ImportSettings, exiting with status 1 and a readable message on error."""
    try:
        return ImportSettings.from_sources(env_file=env_file, toml_path=config_path, **overrides)
    except ValueError as e:
        typer.echo(f"Error loading configuration: {e}", err=True)
        raise typer.Exit(1)
