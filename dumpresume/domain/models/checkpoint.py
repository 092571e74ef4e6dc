"""Domain model for the byte-offset resume checkpoint."""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import CheckpointCorrupt


@dataclass(frozen=True)
class ResumeCheckpoint:
    """
    Count of decompressed source bytes already sent to the database client.
    
    Persisted as a single decimal integer; a trailing newline is optional.
    """

    offset: int = 0

    def advance(self, offset: int) -> ResumeCheckpoint:
        """Return a checkpoint at ``offset`` unless that would move it backwards."""
        if offset <= self.offset:
            return self
        return ResumeCheckpoint(offset=offset)

    def is_complete(self, total_size: int) -> bool:
        return self.offset >= total_size

    def fits(self, total_size: int) -> bool:
        """True when the offset lies within ``[0, total_size]``."""
        return 0 <= self.offset <= total_size

    def to_text(self) -> str:
        """Serialize to the on-disk representation."""
        return f"{self.offset}\n"

    @classmethod
    def from_text(cls, text: str, path: str = "<resume file>") -> ResumeCheckpoint:
        """
        Parse the on-disk representation.
        
        Args:
            text: File content
            path: Path used in error messages
        
        Returns:
            ResumeCheckpoint
        
        Raises:
            CheckpointCorrupt: If content is not a non-negative decimal integer
        """
        stripped = text.strip()
        if not stripped.isdigit() or not stripped.isascii():
            raise CheckpointCorrupt(path, text)
        return cls(offset=int(stripped))

    def __post_init__(self) -> None:
        """Validate checkpoint."""
        if self.offset < 0:
            raise ValueError("offset must be >= 0")
