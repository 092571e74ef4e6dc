"""Port interface for the containerized database client."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class ClientResult:
    """Outcome of a short administrative client invocation."""

    exit_status: int
    output: str

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


class ImportProcess(Protocol):
    """A running client fed SQL on standard input. Used as a context manager."""

    def write(self, chunk: bytes) -> None:
        """
        Send bytes to the client's standard input.
        
        Raises:
            BrokenPipeError: If the client has already exited
        """
        ...

    def close_stdin(self) -> None:
        """Signal end of input."""
        ...

    def wait(self) -> int:
        """Wait for the client to exit and return its exit status."""
        ...

    def __enter__(self) -> ImportProcess:
        ...

    def __exit__(self, exc_type, exc, tb) -> None:
        """Terminate the client if it is still running."""
        ...


class DatabaseClientPort(ABC):
    """Port for running the database client against the target database."""

    @abstractmethod
    def execute(self, script: str, batch: bool = False) -> ClientResult:
        """
        Run a short SQL script and capture its output.
        
        Args:
            script: SQL statements fed on standard input
            batch: Request tab-separated output without column names
        
        Returns:
            ClientResult with exit status and combined output
        """
        pass

    @abstractmethod
    def start_import(self, preamble: bytes = b"") -> ImportProcess:
        """
        Start a client that reads a dump from standard input.
        
        Args:
            preamble: Bytes written before any dump bytes (session setup)
        
        Returns:
            ImportProcess to stream the dump into
        """
        pass
