"""Domain models for resumable dump imports."""

from .checkpoint import ResumeCheckpoint
from .dump_source import DumpSource
from .import_session import ImportSession
from .table_stats import TableStats

__all__ = [
    "DumpSource",
    "ImportSession",
    "ResumeCheckpoint",
    "TableStats",
]
