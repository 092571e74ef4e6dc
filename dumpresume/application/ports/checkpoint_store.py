"""Port interface for the persisted resume offset."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class CheckpointStorePort(ABC):
    """Port for loading, saving and clearing the resume offset."""

    @property
    @abstractmethod
    def path(self) -> Path:
        """Location of the resume file."""
        pass

    @abstractmethod
    def load(self) -> int:
        """
        Load the resume offset.
        
        Returns:
            Offset in bytes; 0 if the file is absent or unparsable
        """
        pass

    @abstractmethod
    def save(self, offset: int) -> None:
        """
        Replace the stored offset atomically.
        
        Args:
            offset: Bytes of the decompressed source already sent
        
        Raises:
            CheckpointWriteError: If save fails
        """
        pass

    @abstractmethod
    def clear(self) -> bool:
        """
        Delete the resume file. Idempotent; failures are logged, not raised.
        
        Returns:
            True if no resume file remains afterwards
        """
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Check if the resume file exists."""
        pass
