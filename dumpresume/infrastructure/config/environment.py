"""Environment variable loading from .env files with precedence support."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Required for every import run
REQUIRED_VARIABLES = {
    "RESUME_FILE": "File holding the byte offset to resume from",
    "SQL_FILE": "SQL dump to import (.sql or .sql.gz)",
    "CONTAINER_NAME": "Docker container running MariaDB/MySQL",
    "MYSQL_DATABASE": "Target database name",
    "MYSQL_ROOT_PASSWORD": "Password of the database user",
}


def load_environment_variables(dotenv_path: Path | str | None = None) -> None:
    """
    Load environment variables from .env file with automatic detection.
    
    Environment variables from system environment take precedence over .env file values
    (python-dotenv's override=False).
    
    Args:
        dotenv_path: Optional path to .env file. If None, searches for .env file in:
                     - Current working directory
                     - Parent directories (up to 3 levels)
    """
    if dotenv_path is None:
        current = Path.cwd()
        search_paths = [
            current / ".env",
            current.parent / ".env",
            current.parent.parent / ".env",
            current.parent.parent.parent / ".env",
        ]
        
        for path in search_paths:
            if path.exists():
                dotenv_path = path
                logger.debug(f"Loading .env file from: {path}")
                break
        
        if dotenv_path is None:
            load_dotenv(override=False)
            return
    
    dotenv_path = Path(dotenv_path)
    if dotenv_path.exists():
        load_dotenv(dotenv_path, override=False)
        logger.debug(f"Loaded .env file from: {dotenv_path}")
    else:
        logger.debug(f".env file not found at: {dotenv_path}")


def get_env(key: str, default: str | None = None) -> str | None:
    """
    Get environment variable value.
    
    Args:
        key: Environment variable name
        default: Default value if not found
    
    Returns:
        Environment variable value or default
    """
    return os.getenv(key, default)


def require_env(key: str, description: str | None = None) -> str:
    """
    Require an environment variable with a clear error message.
    
    Args:
        key: Environment variable name
        description: Optional description of what the variable is used for
    
    Returns:
        Variable value (never empty)
    
    Raises:
        ValueError: If the variable is missing or empty, with guidance on how to set it
    """
    value = get_env(key)
    if value:
        return value
    
    desc = description or REQUIRED_VARIABLES.get(key, "required setting")
    error_msg = (
        f"Required variable '{key}' is missing.\n"
        f"  Description: {desc}\n"
        f"  How to fix: Set {key} in your environment or add it to the .env file.\n"
        f"  Example: {key}=..."
    )
    logger.error(error_msg)
    raise ValueError(error_msg)


def missing_required_variables() -> list[str]:
    """Names of required variables that are unset or empty."""
    return [key for key in REQUIRED_VARIABLES if not get_env(key)]
