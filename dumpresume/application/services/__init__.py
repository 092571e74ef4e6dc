"""Application services for the streaming import."""

from .progress_channel import CheckpointWriter, ProgressChannel
from .progress_monitor import ProgressMonitor
from .table_stats import collect_table_stats

__all__ = ["CheckpointWriter", "ProgressChannel", "ProgressMonitor", "collect_table_stats"]
