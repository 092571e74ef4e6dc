"""Dump reader adapter for plain and gzip-compressed SQL files."""

from __future__ import annotations

import gzip
import logging
import struct
import zlib
from pathlib import Path
from typing import TYPE_CHECKING

from ...application.ports.dump_reader import DumpReaderPort
from ...domain.errors import SourceUnreadable
from ...domain.models.dump_source import DumpSource

if TYPE_CHECKING:
    from typing import BinaryIO, Iterator

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"
# 10-byte header + 8-byte trailer (CRC32, ISIZE)
_GZIP_MIN_SIZE = 18


class LocalDumpReader(DumpReaderPort):
    """Reads dumps from the local filesystem, decompressing ``.gz`` files on the fly."""

    def __init__(self, exact_gzip_size: bool = False) -> None:
        """
        Initialize dump reader.
        
        Args:
            exact_gzip_size: Count decompressed bytes instead of trusting the gzip
                trailer. The trailer (what ``gzip -l`` reports) stores the size
                modulo 4 GiB and only for the last member.
        """
        self.exact_gzip_size = exact_gzip_size

    def describe(self, path: Path, exact: bool = False) -> DumpSource:
        """
        Detect compression and decompressed size of a dump file.
        
        The gzip trailer is used unless ``exact`` (or ``exact_gzip_size``) is set.
        A trailer smaller than the compressed file cannot be the real size: the
        dump is then either above 4 GiB or multi-member, and is counted instead.
        
        Raises:
            SourceUnreadable: If the file cannot be stat'ed or its gzip framing is invalid
        """
        path = Path(path)
        try:
            stat = path.stat()
        except OSError as e:
            raise SourceUnreadable(str(path), f"cannot stat: {e.strerror or e}") from e
        if not path.is_file():
            raise SourceUnreadable(str(path), "not a regular file")
        
        if path.suffix != ".gz":
            return DumpSource(path=path, compressed=False, total_size=stat.st_size)
        
        if not (exact or self.exact_gzip_size):
            trailer_size = self._read_trailer_size(path, stat.st_size)
            if trailer_size >= stat.st_size:
                logger.debug(
                    f"gzip dump {path}: {stat.st_size} bytes compressed, "
                    f"{trailer_size} uncompressed per trailer"
                )
                return DumpSource(path=path, compressed=True, total_size=trailer_size, exact_size=False)
            logger.info(
                f"gzip trailer of {path} reports {trailer_size} bytes, less than the "
                f"compressed size; counting decompressed bytes"
            )
        
        total_size = self._count_decompressed(path)
        logger.debug(f"gzip dump {path}: {stat.st_size} bytes compressed, {total_size} uncompressed")
        return DumpSource(path=path, compressed=True, total_size=total_size)

    def iter_chunks(
        self,
        source: DumpSource,
        offset: int = 0,
        chunk_size: int = 1024 * 1024,
    ) -> Iterator[bytes]:
        """
        Stream the decompressed dump starting exactly ``offset`` bytes in.
        
        Raises:
            SourceUnreadable: If the file disappears or its compressed data is damaged
        """
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be > 0, got {chunk_size}")
        
        try:
            with self._open(source) as stream:
                if offset > 0:
                    stream.seek(offset)
                while True:
                    chunk = stream.read(chunk_size)
                    if not chunk:
                        break
                    yield chunk
        except (OSError, EOFError, zlib.error) as e:
            raise SourceUnreadable(str(source.path), f"read failed: {e}") from e

    def _open(self, source: DumpSource) -> BinaryIO:
        if source.compressed:
            return gzip.open(source.path, "rb")  # type: ignore[return-value]
        return open(source.path, "rb")

    def _read_trailer_size(self, path: Path, compressed_size: int) -> int:
        if compressed_size < _GZIP_MIN_SIZE:
            raise SourceUnreadable(str(path), f"too short for gzip ({compressed_size} bytes)")
        try:
            with open(path, "rb") as f:
                magic = f.read(2)
                f.seek(-4, 2)
                trailer = f.read(4)
        except OSError as e:
            raise SourceUnreadable(str(path), f"cannot read gzip listing: {e}") from e
        if magic != GZIP_MAGIC:
            raise SourceUnreadable(str(path), "missing gzip magic header")
        if len(trailer) != 4:
            raise SourceUnreadable(str(path), "truncated gzip trailer")
        return struct.unpack("<I", trailer)[0]

    def _count_decompressed(self, path: Path) -> int:
        total = 0
        try:
            with gzip.open(path, "rb") as f:
                while True:
                    chunk = f.read(1024 * 1024)
                    if not chunk:
                        break
                    total += len(chunk)
        except (OSError, EOFError, zlib.error) as e:
            raise SourceUnreadable(str(path), f"cannot decompress: {e}") from e
        return total
