"""Domain model for a single import run."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .dump_source import DumpSource


@dataclass
class ImportSession:
    """
    Transient state of one import attempt. Nothing here is persisted beyond the checkpoint.
    
    Attributes:
        container: Docker container running the database server
        database: Target database name
        source: Dump being imported
        skip_offset: Bytes skipped at the start of the stream (the resume offset)
        bytes_sent: Source bytes written to the client during this run
        started_at: When streaming began
        finished_at: When the client exited
        exit_status: Exit status of the import client (None while running)
    """

    container: str
    database: str
    source: DumpSource
    skip_offset: int = 0
    bytes_sent: int = 0
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: datetime | None = None
    exit_status: int | None = None

    def finish(self, exit_status: int, bytes_sent: int) -> None:
        """Record the outcome of the transfer."""
        self.exit_status = exit_status
        self.bytes_sent = bytes_sent
        self.finished_at = datetime.now()

    @property
    def succeeded(self) -> bool:
        return self.exit_status == 0

    @property
    def duration_seconds(self) -> float:
        end = self.finished_at or datetime.now()
        return max((end - self.started_at).total_seconds(), 0.0)

    @property
    def throughput_mb_s(self) -> float:
        """Transfer speed in MB/s; 0.0 for instantaneous runs."""
        duration = self.duration_seconds
        if duration <= 0:
            return 0.0
        return self.bytes_sent / 1024 / 1024 / duration

    def __post_init__(self) -> None:
        """Validate import session."""
        if not self.container:
            raise ValueError("container must be non-empty")
        if not self.database:
            raise ValueError("database must be non-empty")
        if not 0 <= self.skip_offset <= self.source.total_size:
            raise ValueError(
                f"skip_offset must be within [0, {self.source.total_size}], got {self.skip_offset}"
            )
