"""Port interface for reporting transfer progress."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ...domain.models.import_session import ImportSession
    from ...domain.models.table_stats import TableStats


class TransferProgressContext(Protocol):
    """Progress of one byte transfer."""

    def update(self, bytes_sent: int) -> None:
        """Update progress with bytes sent so far in this run."""
        ...

    def finish(self) -> None:
        """Mark transfer as complete."""
        ...

    def fail(self, error: str) -> None:
        """
        Mark transfer as failed.
        
        Args:
            error: Error message
        """
        ...


class ProgressReporterPort(ABC):
    """Port for reporting progress and results of an import."""

    @abstractmethod
    def start_transfer(
        self,
        total_bytes: int,
        description: str = "Import",
    ) -> TransferProgressContext:
        """
        Start progress reporting for a transfer.
        
        Args:
            total_bytes: Bytes this run is expected to send
            description: Description for progress bar
        
        Returns:
            TransferProgressContext for updating progress
        """
        pass

    @abstractmethod
    def display_summary(self, session: ImportSession) -> None:
        """Display duration and throughput of a finished run."""
        pass

    @abstractmethod
    def display_table_stats(self, stats: list[TableStats]) -> None:
        """Display per-table row and size metrics."""
        pass
