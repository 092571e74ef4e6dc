"""Byte-counting tee between the dump reader and the database client."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from typing import Iterable, Iterator

    from ..ports.progress_reporter import TransferProgressContext
    from .progress_channel import ProgressChannel


class ProgressMonitor:
    """
    Counts bytes handed to the client and publishes checkpoint offsets on an interval.
    
    A chunk counts as sent once the consumer asks for the next one, i.e. after
    its write returned. The final chunk is never published: the main flow owns
    the end-of-file checkpoint, so a client failing on the last statements
    leaves an offset below the total size.
    """

    def __init__(
        self,
        start_offset: int,
        channel: ProgressChannel,
        interval: float = 1.0,
        progress: TransferProgressContext | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize progress monitor.
        
        Args:
            start_offset: Resume offset the stream starts at
            channel: Channel receiving absolute offsets
            interval: Minimum seconds between notifications (0 = after every chunk)
            progress: Optional display context updated after every chunk
            clock: Monotonic time source
        """
        if interval < 0:
            raise ValueError(f"interval must be >= 0, got {interval}")
        self.start_offset = start_offset
        self.channel = channel
        self.interval = interval
        self.progress = progress
        self._clock = clock
        self._bytes_sent = 0
        self._last_published = start_offset

    @property
    def bytes_sent(self) -> int:
        return self._bytes_sent

    @property
    def last_published(self) -> int:
        return self._last_published

    def tee(self, chunks: Iterable[bytes]) -> Iterator[bytes]:
        """Pass chunks through, counting and publishing progress."""
        last_notice = self._clock()
        for chunk in chunks:
            now = self._clock()
            if self._bytes_sent and now - last_notice >= self.interval:
                self._last_published = self.start_offset + self._bytes_sent
                self.channel.publish(self._last_published)
                last_notice = now
            yield chunk
            self._bytes_sent += len(chunk)
            if self.progress is not None:
                self.progress.update(self._bytes_sent)
