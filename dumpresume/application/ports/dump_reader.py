"""Port interface for reading SQL dump files."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Iterator

    from ...domain.models.dump_source import DumpSource


class DumpReaderPort(ABC):
    """Port for sizing and streaming plain or compressed dumps."""

    @abstractmethod
    def describe(self, path: Path, exact: bool = False) -> DumpSource:
        """
        Detect compression and decompressed size of a dump file.
        
        Args:
            path: Path to the dump file
            exact: Count decompressed bytes even where a cheaper estimate exists
        
        Returns:
            DumpSource with compressed flag and total_size
        
        Raises:
            SourceUnreadable: If the file cannot be stat'ed or its gzip framing is invalid
        """
        pass

    @abstractmethod
    def iter_chunks(
        self,
        source: DumpSource,
        offset: int = 0,
        chunk_size: int = 1024 * 1024,
    ) -> Iterator[bytes]:
        """
        Stream the decompressed dump starting exactly ``offset`` bytes in.
        
        Args:
            source: DumpSource from describe()
            offset: Decompressed bytes to skip
            chunk_size: Maximum size of each yielded chunk
        
        Yields:
            Non-empty byte chunks
        """
        pass
