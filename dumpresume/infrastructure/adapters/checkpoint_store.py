"""Checkpoint store adapter for atomic resume-file I/O."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

from ...application.ports.checkpoint_store import CheckpointStorePort
from ...domain.errors import CheckpointCorrupt, CheckpointWriteError, CleanupFailure
from ...domain.models.checkpoint import ResumeCheckpoint

logger = logging.getLogger(__name__)

__all__ = ["CheckpointWriteError", "FileCheckpointStore"]


class FileCheckpointStore(CheckpointStorePort):
    """Resume offset kept as a single decimal integer in a file."""

    def __init__(self, path: Path | str) -> None:
        """
        Initialize checkpoint store.
        
        Args:
            path: Resume file location (RESUME_FILE)
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def read(self) -> ResumeCheckpoint | None:
        """
        Read the checkpoint strictly.
        
        Returns:
            ResumeCheckpoint, or None if the file doesn't exist
        
        Raises:
            CheckpointCorrupt: If the file does not hold a non-negative integer
        """
        try:
            text = self._path.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            return None
        return ResumeCheckpoint.from_text(text, path=str(self._path))

    def load(self) -> int:
        """
        Load the resume offset, treating a missing or corrupt file as 0.
        
        Returns:
            Offset in bytes
        """
        try:
            checkpoint = self.read()
        except CheckpointCorrupt as e:
            logger.warning(f"{e}; starting from offset 0")
            return 0
        except OSError as e:
            logger.warning(f"Cannot read resume file {self._path}: {e}; starting from offset 0")
            return 0
        
        if checkpoint is None:
            logger.debug(f"Resume file not found: {self._path}")
            return 0
        logger.debug(f"Resume offset loaded: {checkpoint.offset}", extra={"path": str(self._path)})
        return checkpoint.offset

    def save(self, offset: int) -> None:
        """
        Save offset atomically (write to temp file, then rename).
        
        Args:
            offset: Bytes of the decompressed source already sent
        
        Raises:
            CheckpointWriteError: If save fails
        """
        checkpoint = ResumeCheckpoint(offset=offset)
        temp_path: Path | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=self._path.parent,
                prefix=f".{self._path.name}.tmp.",
                delete=False,
                encoding="utf-8",
            ) as temp_file:
                temp_path = Path(temp_file.name)
                temp_file.write(checkpoint.to_text())
                temp_file.flush()
                os.fsync(temp_file.fileno())
            
            shutil.move(str(temp_path), str(self._path))
            logger.debug(f"Resume offset saved: {offset}", extra={"path": str(self._path)})
            
        except OSError as e:
            if temp_path is not None and temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError as cleanup_error:
                    logger.debug(f"Could not remove temp file {temp_path}: {cleanup_error}")
            
            error_msg = f"Failed to save resume offset to {self._path}: {e}"
            logger.error(error_msg)
            raise CheckpointWriteError(error_msg) from e

    def clear(self) -> bool:
        """
        Delete the resume file; missing file is not an error.
        
        Returns:
            True if no resume file remains
        """
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            failure = CleanupFailure(str(self._path), hint=f"Remove it manually ({e})")
            logger.warning(str(failure))
            return False
        logger.debug(f"Resume file removed: {self._path}")
        return True
