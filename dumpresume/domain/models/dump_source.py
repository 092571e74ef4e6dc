"""Domain model for the SQL dump being imported."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DumpSource:
    """
    A byte stream of SQL statements, optionally gzip-compressed.
    
    Attributes:
        path: Location of the dump file
        compressed: True when the file is gzip and must be decompressed while reading
        total_size: Size in bytes of the decompressed stream
        exact_size: False when total_size comes from the gzip trailer, which stores
            the size modulo 4 GiB and only for the last member
    """

    path: Path
    compressed: bool
    total_size: int
    exact_size: bool = True

    def remaining(self, offset: int) -> int:
        """Bytes still to send when resuming at ``offset``."""
        if offset < 0 or offset > self.total_size:
            raise ValueError(f"offset must be within [0, {self.total_size}], got {offset}")
        return self.total_size - offset

    @property
    def size_mb(self) -> float:
        return self.total_size / 1024 / 1024

    def __post_init__(self) -> None:
        """Validate dump source."""
        if not str(self.path):
            raise ValueError("path must be non-empty")
        if self.total_size < 0:
            raise ValueError("total_size must be >= 0")
