from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ...domain.models.table_stats import TableStats


class ImportRequest(BaseModel):
    """Request DTO for the resumable import use case."""
    
    model_config = ConfigDict(frozen=True)
    
    sql_file: Path
    container: str
    database: str
    progress_interval: float = Field(default=1.0, ge=0.0)  # seconds between checkpoint writes
    chunk_size: int = Field(default=1024 * 1024, gt=0)


class ImportResult(BaseModel):
    """Result DTO for the resumable import use case."""
    
    exit_status: int
    total_size: int
    skip_offset: int
    bytes_sent: int
    duration_seconds: float
    checkpoint_offset: int | None = None  # value left on disk; None once cleared
    table_stats: list[TableStats] = []
    
    @property
    def succeeded(self) -> bool:
        return self.exit_status == 0
    
    @property
    def resumed(self) -> bool:
        return self.skip_offset > 0
