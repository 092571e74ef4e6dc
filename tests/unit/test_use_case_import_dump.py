"""Unit tests for the import_dump use case."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from dumpresume.application.dto.import_dump import ImportRequest
from dumpresume.application.ports.database_client import ClientResult
from dumpresume.application.use_cases.import_dump import import_dump
from dumpresume.domain.errors import ClientFailure, SourceUnreadable
from dumpresume.domain.models.dump_source import DumpSource
from dumpresume.infrastructure.logging import correlation_id_var

DATA = bytes(range(250)) * 4  # 1000 bytes


class MockDumpReader:
    """Reader serving DATA in fixed-size chunks."""
    
    def __init__(self, data: bytes = DATA) -> None:
        self.data = data
        self.offsets: list[int] = []
    
    def describe(self, path, exact=False):
        return DumpSource(path=Path(path), compressed=False, total_size=len(self.data))
    
    def iter_chunks(self, source, offset=0, chunk_size=1024 * 1024):
        self.offsets.append(offset)
        for start in range(offset, len(self.data), chunk_size):
            yield self.data[start:start + chunk_size]


class MockCheckpointStore:
    """In-memory checkpoint store."""
    
    def __init__(self, offset: int | None = None) -> None:
        self.offset = offset
        self.history: list[int] = []
        self.cleared = False
    
    @property
    def path(self) -> Path:
        return Path("/tmp/resume.offset")
    
    def load(self) -> int:
        return self.offset or 0
    
    def save(self, offset: int) -> None:
        self.offset = offset
        self.history.append(offset)
    
    def clear(self) -> bool:
        self.offset = None
        self.cleared = True
        return True
    
    def exists(self) -> bool:
        return self.offset is not None


class MockImportProcess:
    """Import process collecting bytes; optionally exits early."""
    
    def __init__(self, exit_status: int = 0, accept_bytes: int | None = None) -> None:
        self.exit_status = exit_status
        self.accept_bytes = accept_bytes
        self.preamble = b""
        self.received = bytearray()
        self.stdin_closed = False
        self.exited_cleanly = False
    
    def __enter__(self):
        return self
    
    def __exit__(self, exc_type, exc, tb):
        self.exited_cleanly = exc_type is None
    
    def write(self, chunk: bytes) -> None:
        if self.accept_bytes is not None and len(self.received) + len(chunk) > self.accept_bytes:
            raise BrokenPipeError("client gone")
        self.received.extend(chunk)
    
    def close_stdin(self) -> None:
        self.stdin_closed = True
    
    def wait(self) -> int:
        return self.exit_status


class MockDatabaseClient:
    """Database client recording scripts and serving one import process."""
    
    def __init__(
        self,
        process: MockImportProcess | None = None,
        prepare_status: int = 0,
        finalize_status: int = 0,
    ) -> None:
        self.process = process or MockImportProcess()
        self.prepare_status = prepare_status
        self.finalize_status = finalize_status
        self.scripts: list[str] = []
    
    def execute(self, script: str, batch: bool = False) -> ClientResult:
        self.scripts.append(script)
        if "FOREIGN_KEY_CHECKS=0" in script:
            return ClientResult(self.prepare_status, "status\nSession configured\n")
        if "FOREIGN_KEY_CHECKS=1" in script:
            return ClientResult(self.finalize_status, "status\nChecks restored\n")
        return ClientResult(0, "orders\t10\t1.00\t0.50\n")
    
    def start_import(self, preamble: bytes = b"") -> MockImportProcess:
        self.process.preamble = preamble
        return self.process


class MockProgressReporter:
    """Progress reporter recording calls."""
    
    def __init__(self) -> None:
        self.totals: list[int] = []
        self.updates: list[int] = []
        self.finished = False
        self.failed: str | None = None
        self.summaries = 0
        self.stats = None
    
    def start_transfer(self, total_bytes, description="Import"):
        self.totals.append(total_bytes)
        return self
    
    def update(self, bytes_sent):
        self.updates.append(bytes_sent)
    
    def finish(self):
        self.finished = True
    
    def fail(self, error):
        self.failed = error
    
    def display_summary(self, session):
        self.summaries += 1
    
    def display_table_stats(self, stats):
        self.stats = stats


def _request(**kwargs) -> ImportRequest:
    values = dict(
        sql_file=Path("/dumps/app.sql"),
        container="mariadb",
        database="app",
        progress_interval=0.0,
        chunk_size=100,
    )
    values.update(kwargs)
    return ImportRequest(**values)


def test_fresh_import_streams_everything_and_clears_checkpoint():
    """Test a fresh run sends all bytes and removes the checkpoint on success."""
    store = MockCheckpointStore()
    client = MockDatabaseClient()
    reader = MockDumpReader()
    
    result = import_dump(_request(), reader, store, client)
    
    assert result.succeeded
    assert bytes(client.process.received) == DATA
    assert reader.offsets == [0]
    assert store.cleared
    assert store.offset is None
    assert result.checkpoint_offset is None
    assert result.bytes_sent == 1000
    assert not result.resumed


def test_resume_sends_only_remaining_bytes():
    """Test a stored offset of 400 sends exactly bytes 401..1000."""
    store = MockCheckpointStore(offset=400)
    client = MockDatabaseClient()
    
    result = import_dump(_request(), MockDumpReader(), store, client)
    
    assert bytes(client.process.received) == DATA[400:]
    assert len(client.process.received) == 600
    assert result.skip_offset == 400
    assert result.resumed


@pytest.mark.parametrize("offset", [0, 1, 99, 100, 500, 999, 1000])
def test_bytes_sent_equals_remaining(offset):
    """Test every valid offset sends exactly total_size - offset bytes."""
    client = MockDatabaseClient()
    
    result = import_dump(_request(), MockDumpReader(), MockCheckpointStore(offset=offset), client)
    
    assert len(client.process.received) == 1000 - offset
    assert result.bytes_sent == 1000 - offset


def test_offset_beyond_source_restarts_from_zero():
    """Test a checkpoint larger than the source is discarded."""
    client = MockDatabaseClient()
    reader = MockDumpReader()
    
    import_dump(_request(), reader, MockCheckpointStore(offset=5000), client)
    
    assert reader.offsets == [0]
    assert bytes(client.process.received) == DATA


class TrailerSizedReader(MockDumpReader):
    """Compressed reader whose cheap size estimate is the last member's size only."""
    
    def __init__(self, data: bytes = DATA, trailer_size: int = 10) -> None:
        super().__init__(data)
        self.trailer_size = trailer_size
        self.exact_requests: list[bool] = []
    
    def describe(self, path, exact=False):
        self.exact_requests.append(exact)
        if exact:
            return DumpSource(path=Path(path), compressed=True, total_size=len(self.data))
        return DumpSource(path=Path(path), compressed=True, total_size=self.trailer_size, exact_size=False)


def test_offset_beyond_estimated_size_is_recounted_not_discarded():
    """Test an offset past a trailer-based size triggers an exact count and is kept."""
    store = MockCheckpointStore(offset=400)
    client = MockDatabaseClient()
    reader = TrailerSizedReader()
    
    result = import_dump(_request(), reader, store, client)
    
    assert reader.exact_requests == [False, True]
    assert reader.offsets == [400]
    assert result.skip_offset == 400
    assert result.total_size == 1000
    assert bytes(client.process.received) == DATA[400:]


def test_offset_beyond_exact_count_restarts_from_zero():
    """Test an offset past the counted size still restarts from 0."""
    reader = TrailerSizedReader()
    
    import_dump(_request(), reader, MockCheckpointStore(offset=5000), MockDatabaseClient())
    
    assert reader.exact_requests == [False, True]
    assert reader.offsets == [0]


def test_estimated_size_within_offset_is_not_recounted():
    """Test no exact count happens when the stored offset fits the estimate."""
    reader = TrailerSizedReader(trailer_size=1000)
    
    import_dump(_request(), reader, MockCheckpointStore(offset=400), MockDatabaseClient())
    
    assert reader.exact_requests == [False]
    assert reader.offsets == [400]


def test_eof_checkpoint_records_bytes_actually_streamed():
    """Test the end-of-stream checkpoint is the real end offset, not a size estimate."""
    store = MockCheckpointStore(offset=400)
    reader = TrailerSizedReader(trailer_size=500)
    
    with pytest.raises(ClientFailure):
        import_dump(_request(), reader, store, MockDatabaseClient(finalize_status=1))
    
    assert store.offset == 1000


def test_client_failure_preserves_checkpoint_and_status():
    """Test a client exiting 1 mid-stream keeps a partial checkpoint and returns status 1."""
    store = MockCheckpointStore()
    client = MockDatabaseClient(process=MockImportProcess(exit_status=1, accept_bytes=500))
    
    result = import_dump(_request(), MockDumpReader(), store, client)
    
    assert result.exit_status == 1
    assert store.offset is not None
    assert 0 <= store.offset < 1000
    assert store.offset == 500
    assert result.checkpoint_offset == 500
    assert not store.cleared
    # Checks are not restored and stats are not queried after a failed import
    assert len(client.scripts) == 1


def test_client_failure_after_all_bytes_never_checkpoints_eof():
    """Test a failure after the last chunk leaves the checkpoint below total_size."""
    store = MockCheckpointStore(offset=300)
    client = MockDatabaseClient(process=MockImportProcess(exit_status=1))
    
    result = import_dump(_request(), MockDumpReader(), store, client)
    
    assert result.exit_status == 1
    assert 300 <= store.offset < 1000
    assert 1000 not in store.history


def test_failure_checkpoint_never_below_start():
    """Test the checkpoint after a failure is at least the starting offset."""
    store = MockCheckpointStore(offset=700)
    client = MockDatabaseClient(process=MockImportProcess(exit_status=2, accept_bytes=0))
    
    result = import_dump(_request(), MockDumpReader(), store, client)
    
    assert result.exit_status == 2
    assert store.offset == 700


def test_fresh_failure_still_leaves_checkpoint():
    """Test a first run failing immediately still leaves a resume file at 0."""
    store = MockCheckpointStore()
    client = MockDatabaseClient(process=MockImportProcess(exit_status=1, accept_bytes=0))
    
    import_dump(_request(), MockDumpReader(), store, client)
    
    assert store.exists()
    assert store.offset == 0


def test_success_marks_eof_before_restoring_checks():
    """Test the EOF checkpoint is written once, before finalize and before clearing."""
    store = MockCheckpointStore()
    client = MockDatabaseClient()
    
    import_dump(_request(), MockDumpReader(), store, client)
    
    assert store.history.count(1000) == 1
    assert store.history[-1] == 1000


def test_session_scripts_order_and_preamble():
    """Test prepare runs first, finalize after the import, stats last."""
    client = MockDatabaseClient()
    
    import_dump(_request(), MockDumpReader(), MockCheckpointStore(), client)
    
    assert "FOREIGN_KEY_CHECKS=0" in client.scripts[0]
    assert "FOREIGN_KEY_CHECKS=1" in client.scripts[1]
    assert "information_schema.TABLES" in client.scripts[2]
    assert b"SET FOREIGN_KEY_CHECKS=0;" in client.process.preamble
    assert client.process.stdin_closed


def test_prepare_failure_raises_without_touching_checkpoint():
    """Test a failing session setup aborts before any checkpoint write."""
    store = MockCheckpointStore(offset=250)
    client = MockDatabaseClient(prepare_status=1)
    
    with pytest.raises(ClientFailure) as exc_info:
        import_dump(_request(), MockDumpReader(), store, client)
    
    assert exc_info.value.exit_status == 1
    assert exc_info.value.stage == "prepare"
    assert store.history == []
    assert client.process.received == bytearray()


def test_finalize_failure_keeps_eof_checkpoint():
    """Test a failing finalize leaves the checkpoint at EOF so a rerun only re-finalizes."""
    store = MockCheckpointStore()
    client = MockDatabaseClient(finalize_status=1)
    
    with pytest.raises(ClientFailure) as exc_info:
        import_dump(_request(), MockDumpReader(), store, client)
    
    assert exc_info.value.stage == "finalize"
    assert store.offset == 1000
    assert not store.cleared


def test_source_unreadable_propagates():
    """Test an unreadable source fails before the database is touched."""
    class BrokenReader(MockDumpReader):
        def describe(self, path, exact=False):
            raise SourceUnreadable(str(path), "cannot stat")
    
    client = MockDatabaseClient()
    
    with pytest.raises(SourceUnreadable):
        import_dump(_request(), BrokenReader(), MockCheckpointStore(), client)
    
    assert client.scripts == []


def test_progress_reporter_receives_transfer_and_stats():
    """Test the reporter sees the remaining total, updates, summary and stats."""
    reporter = MockProgressReporter()
    
    result = import_dump(
        _request(),
        MockDumpReader(),
        MockCheckpointStore(offset=400),
        MockDatabaseClient(),
        progress_reporter=reporter,
    )
    
    assert reporter.totals == [600]
    assert reporter.updates[-1] == 600
    assert reporter.finished
    assert reporter.summaries == 1
    assert [s.name for s in reporter.stats] == ["orders"]
    assert [s.name for s in result.table_stats] == ["orders"]


def test_progress_reporter_marks_failure():
    """Test the reporter is told when the client fails."""
    reporter = MockProgressReporter()
    
    import_dump(
        _request(),
        MockDumpReader(),
        MockCheckpointStore(),
        MockDatabaseClient(process=MockImportProcess(exit_status=3, accept_bytes=200)),
        progress_reporter=reporter,
    )
    
    assert reporter.failed is not None
    assert "3" in reporter.failed
    assert reporter.summaries == 0


def test_interruption_closes_process_and_keeps_checkpoint():
    """Test an interruption mid-stream exits the process context and keeps the checkpoint."""
    class InterruptingReader(MockDumpReader):
        def iter_chunks(self, source, offset=0, chunk_size=1024 * 1024):
            for index, chunk in enumerate(super().iter_chunks(source, offset, chunk_size)):
                if index == 4:
                    raise KeyboardInterrupt
                yield chunk
    
    store = MockCheckpointStore()
    client = MockDatabaseClient()
    
    with pytest.raises(KeyboardInterrupt):
        import_dump(_request(), InterruptingReader(), store, client)
    
    assert client.process.exited_cleanly is False
    assert store.offset is not None
    assert 0 <= store.offset < 1000
    assert not store.cleared


def test_checkpoint_writer_thread_runs_under_the_run_correlation_id():
    """Test progress checkpoints are saved from a thread carrying the caller's correlation ID."""
    class ContextRecordingStore(MockCheckpointStore):
        def __init__(self) -> None:
            super().__init__()
            self.seen: list[tuple[str, str | None]] = []
        
        def save(self, offset: int) -> None:
            self.seen.append((threading.current_thread().name, correlation_id_var.get()))
            super().save(offset)
    
    store = ContextRecordingStore()
    token = correlation_id_var.set("RUN-ID")
    try:
        import_dump(_request(), MockDumpReader(), store, MockDatabaseClient())
    finally:
        correlation_id_var.reset(token)
    
    writer_saves = [run_id for name, run_id in store.seen if name.startswith("checkpoint-writer")]
    assert writer_saves
    assert set(writer_saves) == {"RUN-ID"}
