"""Ordered progress notifications between the stream pipeline and the checkpoint writer."""

from __future__ import annotations

import logging
import queue
from typing import TYPE_CHECKING

from ...domain.errors import CheckpointWriteError
from ...domain.models.checkpoint import ResumeCheckpoint

if TYPE_CHECKING:
    from typing import Iterator

    from ..ports.checkpoint_store import CheckpointStorePort

logger = logging.getLogger(__name__)

_CLOSED = object()


class ProgressChannel:
    """
    Single-writer, single-reader channel of absolute byte offsets.
    
    Publishing never blocks. The reader sees offsets in order, coalesced to the
    latest one available when it wakes up. Use as a context manager so the
    channel is closed on every exit path.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[object] = queue.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, offset: int) -> None:
        """Queue an offset notification."""
        if self._closed:
            raise RuntimeError("cannot publish on a closed progress channel")
        self._queue.put_nowait(offset)

    def close(self) -> None:
        """Signal the reader that no more notifications will follow. Idempotent."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    def __iter__(self) -> Iterator[int]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                return
            # Last write wins: skip notifications already superseded
            while True:
                try:
                    newer = self._queue.get_nowait()
                except queue.Empty:
                    break
                if newer is _CLOSED:
                    yield item  # type: ignore[misc]
                    return
                item = newer
            yield item  # type: ignore[misc]

    def __enter__(self) -> ProgressChannel:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class CheckpointWriter:
    """Consumes a ProgressChannel and persists offsets, best-effort."""

    def __init__(self, store: CheckpointStorePort, start_offset: int = 0) -> None:
        """
        Initialize checkpoint writer.
        
        Args:
            store: Checkpoint store receiving the offsets
            start_offset: Offset already persisted; lower notifications are ignored
        """
        self.store = store
        self.checkpoint = ResumeCheckpoint(offset=start_offset)
        self.writes = 0
        self.failures = 0

    @property
    def last_written(self) -> int:
        return self.checkpoint.offset

    def consume(self, channel: ProgressChannel) -> int:
        """
        Persist notifications until the channel closes.
        
        Write failures are logged and skipped; the next notification retries
        with a newer offset.
        
        Returns:
            Last offset durably written
        """
        for offset in channel:
            candidate = self.checkpoint.advance(offset)
            if candidate is self.checkpoint:
                continue
            try:
                self.store.save(candidate.offset)
            except CheckpointWriteError as e:
                self.failures += 1
                logger.warning(f"Progress checkpoint at {offset} bytes not saved: {e}")
                continue
            self.checkpoint = candidate
            self.writes += 1
        logger.debug(
            f"Checkpoint writer drained: {self.writes} writes, {self.failures} failures, "
            f"last offset {self.last_written}"
        )
        return self.last_written
