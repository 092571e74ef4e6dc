"""Pydantic settings for an import run, from .env and dumpresume.toml."""

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...application.dto.import_dump import ImportRequest
from ...domain.policy.session_policy import DEFAULT_SQL_MODE, SessionPolicy
from .environment import (
    get_env,
    load_environment_variables,
    missing_required_variables,
    require_env,
)

DEFAULT_LOG_FILE = Path("/tmp/mysql_import.log")

# Tunables readable from the environment: (env var, field name)
_ENV_TUNABLES = [
    ("LOG_FILE", "log_file"),
    ("DUMPRESUME_PROGRESS_INTERVAL", "progress_interval"),
    ("DUMPRESUME_CHUNK_SIZE", "chunk_size"),
    ("DUMPRESUME_DOCKER_BIN", "docker_bin"),
    ("DUMPRESUME_MYSQL_USER", "mysql_user"),
]


class ImportSettings(BaseModel):
    """Immutable configuration shared by every component of an import run."""
    
    model_config = ConfigDict(frozen=True)
    
    resume_file: Path
    sql_file: Path
    container_name: str
    database: str
    root_password: str = Field(repr=False)
    log_file: Path = DEFAULT_LOG_FILE
    progress_interval: float = Field(default=1.0, ge=0.0)
    chunk_size: int = Field(default=1024 * 1024, gt=0)
    docker_bin: str = "docker"
    mysql_user: str = "root"
    sql_mode: str = DEFAULT_SQL_MODE
    
    @field_validator("container_name", "database", "mysql_user", "docker_bin")
    @classmethod
    def validate_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must be non-empty")
        return v
    
    @classmethod
    def from_sources(
        cls,
        env_file: Path | str | None = None,
        toml_path: Path | str = "dumpresume.toml",
        **overrides: Any,
    ) -> "ImportSettings":
        """
        Load settings with precedence: overrides > system env > .env file > TOML > defaults.
        
        Connection and file settings (RESUME_FILE, SQL_FILE, CONTAINER_NAME,
        MYSQL_DATABASE, MYSQL_ROOT_PASSWORD) come only from the environment.
        Tunables may also be set in the ``[import]`` table of dumpresume.toml.
        
        Args:
            env_file: Path to the .env file (auto-detected if None)
            toml_path: Path to dumpresume.toml (ignored if missing)
            **overrides: Field values taking precedence over everything else (None values are ignored)
        
        Returns:
            ImportSettings instance
        
        Raises:
            ValueError: If a required variable is missing or a value is invalid
        """
        load_environment_variables(env_file)

        missing = missing_required_variables()
        if len(missing) > 1:
            raise ValueError(
                f"Required variables missing: {', '.join(missing)}.\n"
                f"  How to fix: Set them in your environment or add them to the .env file."
            )

        data: dict[str, Any] = {}
        toml_path = Path(toml_path)
        if toml_path.exists():
            with toml_path.open("rb") as f:
                data.update(tomllib.load(f).get("import", {}))
        
        for env_key, field_name in _ENV_TUNABLES:
            value = get_env(env_key)
            if value:
                data[field_name] = value
        
        data.update(
            resume_file=require_env("RESUME_FILE"),
            sql_file=require_env("SQL_FILE"),
            container_name=require_env("CONTAINER_NAME"),
            database=require_env("MYSQL_DATABASE"),
            root_password=require_env("MYSQL_ROOT_PASSWORD"),
        )
        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**data)
    
    def to_request(self) -> ImportRequest:
        return ImportRequest(
            sql_file=self.sql_file,
            container=self.container_name,
            database=self.database,
            progress_interval=self.progress_interval,
            chunk_size=self.chunk_size,
        )
    
    def session_policy(self) -> SessionPolicy:
        return SessionPolicy(sql_mode=self.sql_mode)
