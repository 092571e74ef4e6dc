"""Post-import statistics read from information_schema."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...domain.models.table_stats import TableStats

if TYPE_CHECKING:
    from ...domain.policy.session_policy import SessionPolicy
    from ..ports.database_client import DatabaseClientPort

logger = logging.getLogger(__name__)


def collect_table_stats(
    client: DatabaseClientPort,
    database: str,
    policy: SessionPolicy,
) -> list[TableStats]:
    """
    Query per-table row and size metrics for ``database``.
    
    Diagnostics only: a failing query or unparsable rows are logged and skipped.
    
    Returns:
        TableStats rows ordered by data length, largest first
    """
    result = client.execute(policy.stats_query(database), batch=True)
    if not result.ok:
        logger.warning(
            f"Statistics query failed with status {result.exit_status}: {result.output.strip()[:200]}"
        )
        return []
    
    stats: list[TableStats] = []
    for line in result.output.splitlines():
        if not line.strip():
            continue
        try:
            stats.append(TableStats.from_row(line.split("\t")))
        except ValueError as e:
            logger.debug(f"Skipping statistics row {line!r}: {e}")
    return stats
