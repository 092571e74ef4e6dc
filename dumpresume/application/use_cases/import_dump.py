"""Use case for resumable streaming import of a SQL dump."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import closing
from typing import TYPE_CHECKING

from ...domain.errors import ClientFailure
from ...domain.models.checkpoint import ResumeCheckpoint
from ...domain.models.import_session import ImportSession
from ...domain.policy.session_policy import SessionPolicy
from ...infrastructure.logging import get_correlation_id, in_run_context
from ..dto.import_dump import ImportRequest, ImportResult
from ..services.progress_channel import CheckpointWriter, ProgressChannel
from ..services.progress_monitor import ProgressMonitor
from ..services.table_stats import collect_table_stats

if TYPE_CHECKING:
    from ...domain.models.dump_source import DumpSource
    from ..ports.checkpoint_store import CheckpointStorePort
    from ..ports.database_client import ClientResult, DatabaseClientPort
    from ..ports.dump_reader import DumpReaderPort
    from ..ports.progress_reporter import ProgressReporterPort

logger = logging.getLogger(__name__)


def import_dump(
    request: ImportRequest,
    reader: DumpReaderPort,
    checkpoint_store: CheckpointStorePort,
    client: DatabaseClientPort,
    progress_reporter: ProgressReporterPort | None = None,
    policy: SessionPolicy | None = None,
) -> ImportResult:
    """
    Import a dump, resuming from the stored byte offset.
    
    Flow: size source → load offset → prepare session → stream remaining bytes
    (checkpointing on an interval) → on success mark EOF, restore checks,
    clear checkpoint and report statistics. On client failure the checkpoint
    is left in place and the client's exit status is returned.
    
    Args:
        request: ImportRequest with sql_file, container, database and tunables
        reader: DumpReaderPort for sizing and streaming the dump
        checkpoint_store: CheckpointStorePort holding the resume offset
        client: DatabaseClientPort for the containerized client
        progress_reporter: Optional progress reporter for transfer progress and summaries
        policy: Session relaxation policy (default: SessionPolicy())
    
    Returns:
        ImportResult; exit_status is the import client's exit status
    
    Raises:
        SourceUnreadable: If the dump cannot be sized or opened
        ClientFailure: If session preparation or finalization fails
    """
    policy = policy or SessionPolicy()
    correlation_id = get_correlation_id()
    
    source = reader.describe(request.sql_file)
    checkpoint = ResumeCheckpoint(checkpoint_store.load())
    if not checkpoint.fits(source.total_size) and not source.exact_size:
        logger.warning(
            f"Resume offset {checkpoint.offset} exceeds gzip trailer size {source.total_size}; "
            f"counting decompressed bytes"
        )
        source = reader.describe(request.sql_file, exact=True)
    if not checkpoint.fits(source.total_size):
        logger.warning(
            f"Resume offset {checkpoint.offset} exceeds source size {source.total_size}; restarting from 0"
        )
        checkpoint = ResumeCheckpoint()
    offset = checkpoint.offset
    
    logger.info(
        f"MariaDB large dump import: {source.path} ({source.size_mb:.0f} MB"
        f"{', gzip' if source.compressed else ''}), resume offset {offset} bytes",
        extra={"correlation_id": correlation_id, "container": request.container},
    )
    
    logger.info("Setting up MySQL session...")
    _run_admin(client, policy.prepare_script(), "prepare")
    
    # A failed first attempt must still leave a resume point behind
    checkpoint_store.save(offset)
    
    session = ImportSession(
        container=request.container,
        database=request.database,
        source=source,
        skip_offset=offset,
    )
    logger.info("Starting import...")
    exit_status, bytes_sent = _stream(
        request=request,
        source=source,
        offset=offset,
        reader=reader,
        checkpoint_store=checkpoint_store,
        client=client,
        policy=policy,
        progress_reporter=progress_reporter,
    )
    session.finish(exit_status, bytes_sent)
    
    if not session.succeeded:
        remaining = checkpoint_store.load()
        logger.error(f"Import failed with status: {exit_status}")
        logger.error(f"Resume file preserved at: {checkpoint_store.path} (offset {remaining})")
        return _result(session, checkpoint_offset=remaining)
    
    logger.info(f"Import pipe completed: {bytes_sent} bytes in {session.duration_seconds:.1f}s")
    end = checkpoint.advance(offset + bytes_sent)
    if not end.is_complete(source.total_size):
        logger.warning(f"Stream ended at {end.offset} bytes, short of the expected {source.total_size}")
    checkpoint_store.save(end.offset)
    
    logger.info("Restoring foreign key and unique checks...")
    _run_admin(client, policy.finalize_script(), "finalize")
    
    checkpoint_store.clear()
    
    stats = collect_table_stats(client, request.database, policy)
    if progress_reporter:
        progress_reporter.display_summary(session)
        progress_reporter.display_table_stats(stats)
    
    logger.info(
        f"Import completed successfully: {session.duration_seconds:.1f}s, "
        f"{session.throughput_mb_s:.2f} MB/s",
        extra={"correlation_id": correlation_id},
    )
    return _result(session, checkpoint_offset=None, table_stats=stats)


def _stream(
    request: ImportRequest,
    source: DumpSource,
    offset: int,
    reader: DumpReaderPort,
    checkpoint_store: CheckpointStorePort,
    client: DatabaseClientPort,
    policy: SessionPolicy,
    progress_reporter: ProgressReporterPort | None,
) -> tuple[int, int]:
    """
    Stream source bytes past ``offset`` into a fresh import client.
    
    Returns:
        (client exit status, source bytes written this run)
    """
    progress = (
        progress_reporter.start_transfer(source.remaining(offset), description="Import")
        if progress_reporter
        else None
    )
    writer = CheckpointWriter(checkpoint_store, start_offset=offset)
    
    # The channel exits first so the executor can join a drained writer
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="checkpoint-writer") as executor, \
            ProgressChannel() as channel:
        pending = executor.submit(in_run_context(writer.consume), channel)
        monitor = ProgressMonitor(
            start_offset=offset,
            channel=channel,
            interval=request.progress_interval,
            progress=progress,
        )
        try:
            with client.start_import(preamble=policy.stream_preamble()) as process:
                with closing(reader.iter_chunks(source, offset, request.chunk_size)) as chunks:
                    for chunk in monitor.tee(chunks):
                        try:
                            process.write(chunk)
                        except BrokenPipeError:
                            logger.warning(
                                f"Database client closed its input after "
                                f"{offset + monitor.bytes_sent} bytes"
                            )
                            break
                process.close_stdin()
                exit_status = process.wait()
        except BaseException as e:
            if progress is not None:
                progress.fail(str(e) or type(e).__name__)
            raise
    
    _report_writer_outcome(pending)
    
    if progress is not None:
        if exit_status == 0:
            progress.finish()
        else:
            progress.fail(f"client exited with status {exit_status}")
    return exit_status, monitor.bytes_sent


def _report_writer_outcome(pending: Future[int]) -> None:
    error = pending.exception()
    if error is not None:
        logger.warning(f"Checkpoint writer stopped early: {error}", exc_info=error)
    else:
        logger.debug(f"Last progress checkpoint: {pending.result()} bytes")


def _run_admin(client: DatabaseClientPort, script: str, stage: str) -> ClientResult:
    result = client.execute(script)
    for line in result.output.splitlines():
        if line.strip():
            logger.info(f"[{stage}] {line}")
    if not result.ok:
        raise ClientFailure(result.exit_status, stage)
    return result


def _result(
    session: ImportSession,
    checkpoint_offset: int | None,
    table_stats: list | None = None,
) -> ImportResult:
    return ImportResult(
        exit_status=session.exit_status if session.exit_status is not None else 1,
        total_size=session.source.total_size,
        skip_offset=session.skip_offset,
        bytes_sent=session.bytes_sent,
        duration_seconds=session.duration_seconds,
        checkpoint_offset=checkpoint_offset,
        table_stats=table_stats or [],
    )
