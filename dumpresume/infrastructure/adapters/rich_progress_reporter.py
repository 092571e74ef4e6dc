"""Rich-based progress reporter adapter for dump transfers."""

from __future__ import annotations

import logging
import sys
import time
from typing import TYPE_CHECKING

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from ...application.ports.progress_reporter import ProgressReporterPort, TransferProgressContext

if TYPE_CHECKING:
    from ...domain.models.import_session import ImportSession
    from ...domain.models.table_stats import TableStats

logger = logging.getLogger(__name__)


class RichTransferProgressContext:
    """Transfer bar driven by a Rich Progress instance it owns."""

    def __init__(self, progress: Progress, task_id: TaskID, total_bytes: int) -> None:
        """
        Initialize transfer progress context.
        
        Args:
            progress: Started Rich Progress instance
            task_id: Task ID of the transfer bar
            total_bytes: Bytes expected this run
        """
        self.progress = progress
        self.task_id = task_id
        self.total_bytes = total_bytes
        self._stopped = False

    def update(self, bytes_sent: int) -> None:
        self.progress.update(self.task_id, completed=bytes_sent)

    def finish(self) -> None:
        self.progress.update(self.task_id, completed=self.total_bytes)
        self._stop()

    def fail(self, error: str) -> None:
        self.progress.update(self.task_id, description=f"[red]Import failed: {error[:50]}[/red]")
        self._stop()

    def _stop(self) -> None:
        if not self._stopped:
            self.progress.stop_task(self.task_id)
            self.progress.stop()
            self._stopped = True


class LoggingTransferProgressContext:
    """Fallback progress context for non-interactive mode using logging."""

    def __init__(
        self,
        total_bytes: int,
        description: str,
        update_interval: float = 10.0,
    ) -> None:
        """
        Initialize logging-based progress context.
        
        Args:
            total_bytes: Bytes expected this run
            description: Description for progress lines
            update_interval: Minimum seconds between progress lines
        """
        self.total_bytes = total_bytes
        self.description = description
        self.bytes_sent = 0
        self.start_time = time.time()
        self._last_update_time = self.start_time
        self._update_interval = update_interval
        logger.info(f"Starting: {description} ({total_bytes} bytes)")

    def update(self, bytes_sent: int) -> None:
        self.bytes_sent = bytes_sent
        now = time.time()
        if now - self._last_update_time < self._update_interval:
            return
        self._last_update_time = now
        
        elapsed = now - self.start_time
        percentage = (bytes_sent / self.total_bytes * 100) if self.total_bytes > 0 else 100.0
        if bytes_sent > 0:
            estimated_remaining = elapsed / bytes_sent * (self.total_bytes - bytes_sent)
            logger.info(
                f"Progress: {bytes_sent}/{self.total_bytes} bytes ({percentage:.1f}%) - "
                f"Elapsed: {elapsed:.1f}s, Estimated remaining: {estimated_remaining:.1f}s"
            )
        else:
            logger.info(f"Progress: 0/{self.total_bytes} bytes - Elapsed: {elapsed:.1f}s")

    def finish(self) -> None:
        elapsed = time.time() - self.start_time
        logger.info(f"Completed: {self.description} - {self.bytes_sent} bytes in {elapsed:.1f}s")

    def fail(self, error: str) -> None:
        logger.error(f"Failed: {self.description} after {self.bytes_sent} bytes - {error}")


class RichProgressReporterAdapter(ProgressReporterPort):
    """Rich-based progress reporter adapter."""

    def __init__(self, console: Console | None = None) -> None:
        """
        Initialize Rich progress reporter.
        
        Args:
            console: Console to render to (default: stdout when interactive, else stderr)
        """
        self.is_interactive = sys.stdout.isatty()
        self.console = console or Console(file=sys.stdout if self.is_interactive else sys.stderr)
        
        if not self.is_interactive:
            logger.info("Non-interactive mode detected - using structured logging for progress")

    def start_transfer(
        self,
        total_bytes: int,
        description: str = "Import",
    ) -> TransferProgressContext:
        if not self.is_interactive:
            return LoggingTransferProgressContext(total_bytes=total_bytes, description=description)
        
        progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
            console=self.console,
            expand=True,
        )
        progress.start()
        task_id = progress.add_task(description, total=total_bytes)
        return RichTransferProgressContext(progress, task_id, total_bytes)

    def display_summary(self, session: ImportSession) -> None:
        summary_table = Table(title="Import Statistics", show_header=True, header_style="bold")
        summary_table.add_column("Metric", style="cyan")
        summary_table.add_column("Value", style="green")
        
        summary_table.add_row("File", str(session.source.path))
        summary_table.add_row("Resumed From", f"{session.skip_offset} bytes")
        summary_table.add_row("Bytes Sent", str(session.bytes_sent))
        summary_table.add_row("Duration", f"{session.duration_seconds:.2f}s")
        summary_table.add_row("Speed", f"{session.throughput_mb_s:.2f} MB/s")
        
        self.console.print(summary_table)
        logger.info(
            f"Import statistics: {session.bytes_sent} bytes, "
            f"{session.duration_seconds:.2f}s, {session.throughput_mb_s:.2f} MB/s"
        )

    def display_table_stats(self, stats: list[TableStats]) -> None:
        if not stats:
            self.console.print("[yellow]No table statistics available.[/yellow]")
            return
        
        table = Table(title="Database Statistics", show_header=True, header_style="bold")
        table.add_column("Table", style="cyan")
        table.add_column("Rows", justify="right")
        table.add_column("Data MB", justify="right", style="green")
        table.add_column("Index MB", justify="right", style="green")
        for row in stats:
            table.add_row(
                row.name,
                "-" if row.rows is None else str(row.rows),
                f"{row.data_mb:.2f}",
                f"{row.index_mb:.2f}",
            )
        self.console.print(table)
