"""Domain model for post-import table statistics."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TableStats:
    """Row and size metrics for one table of the target schema."""

    name: str
    rows: int | None
    data_mb: float
    index_mb: float

    @classmethod
    def from_row(cls, fields: list[str]) -> TableStats:
        """
        Build from one tab-separated row of the statistics query.
        
        ``TABLE_ROWS`` is NULL for views, which the client prints as ``NULL``.
        
        Raises:
            ValueError: If the row has the wrong shape or non-numeric sizes
        """
        if len(fields) != 4:
            raise ValueError(f"expected 4 fields, got {len(fields)}")
        name, rows, data_mb, index_mb = fields
        return cls(
            name=name,
            rows=None if rows in ("NULL", "") else int(rows),
            data_mb=float(data_mb) if data_mb not in ("NULL", "") else 0.0,
            index_mb=float(index_mb) if index_mb not in ("NULL", "") else 0.0,
        )
