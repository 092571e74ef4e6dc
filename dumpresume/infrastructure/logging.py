"""Logging for import runs: console and log file, every record tagged with the run's correlation ID."""

import contextvars
import functools
import logging
import sys
import uuid
from contextvars import ContextVar
from pathlib import Path
from typing import Callable, TypeVar

T = TypeVar("T")

# One ID per import run. Threads do not inherit it; start them through in_run_context.
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Shown for records emitted outside any run
NO_CORRELATION_ID = "-"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s correlation_id=%(correlation_id)s %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# Receives the database client's --verbose echo of every statement
CLIENT_OUTPUT_LOGGER = "dumpresume.client"


def get_correlation_id() -> str:
    """Return the current run's ID, starting a new run ID if none is set."""
    run_id = correlation_id_var.get()
    if run_id is None:
        run_id = str(uuid.uuid4())
        correlation_id_var.set(run_id)
    return run_id


def set_correlation_id(run_id: str) -> None:
    correlation_id_var.set(run_id)


def in_run_context(func: Callable[..., T]) -> Callable[..., T]:
    """
    Bind ``func`` to a snapshot of the caller's context, correlation ID included.
    
    Use the result as the target of exactly one thread or executor task: a
    context can only be entered by one thread at a time.
    """
    return functools.partial(contextvars.copy_context().run, func)


class CorrelationIDFilter(logging.Filter):
    """Stamps records with the run's correlation ID without starting a new run."""
    
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get() or NO_CORRELATION_ID  # type: ignore[attr-defined]
        return True


def configure_logging(
    level: int = logging.INFO,
    verbose: bool = False,
    log_file: Path | str | None = None,
) -> None:
    """
    Configure structured logging with correlation ID support.
    
    Console output goes to stdout at ``level``. When ``log_file`` is given, every
    record at DEBUG and above is appended to it, including the database
    client's statement echo.
    
    Args:
        level: Console logging level (default: INFO)
        verbose: If True, also show the client's statement echo on the console
        log_file: Optional file to append the full log to
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    correlation_filter = CorrelationIDFilter()
    
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    console.addFilter(correlation_filter)
    console.setLevel(logging.DEBUG if verbose else level)
    
    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.addHandler(console)
    root.setLevel(logging.DEBUG if log_file else console.level)
    
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.addFilter(correlation_filter)
        file_handler.setLevel(logging.DEBUG)
        root.addHandler(file_handler)
    
    # Statement echo is logged at DEBUG; keep it off the console unless verbose
    logging.getLogger(CLIENT_OUTPUT_LOGGER).setLevel(logging.DEBUG)
