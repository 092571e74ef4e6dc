from dataclasses import dataclass

DEFAULT_SQL_MODE = (
    "STRICT_TRANS_TABLES,ERROR_FOR_DIVISION_BY_ZERO,NO_AUTO_CREATE_USER,NO_ENGINE_SUBSTITUTION"
)


@dataclass(frozen=True)
class SessionPolicy:
    """Session relaxation applied for a bulk load and restored afterwards."""
    
    sql_mode: str = DEFAULT_SQL_MODE
    stats_limit: int = 10
    
    def relax_statements(self) -> list[str]:
        return [
            f"SET SESSION sql_mode='{self.sql_mode}';",
            "SET FOREIGN_KEY_CHECKS=0;",
            "SET UNIQUE_CHECKS=0;",
        ]
    
    def prepare_script(self) -> str:
        """Idempotent script run before every attempt, resumed or not."""
        statements = self.relax_statements()
        statements.append("SELECT 'Session configured' AS status;")
        return "\n".join(statements) + "\n"
    
    def stream_preamble(self) -> bytes:
        """
        Relaxation statements sent ahead of the dump on the import connection.
        
        Session variables die with the connection that set them, so the import
        connection needs its own copy. Not counted in the resume offset.
        """
        return ("\n".join(self.relax_statements()) + "\n").encode("utf-8")
    
    def finalize_script(self) -> str:
        return "\n".join(
            [
                "SET FOREIGN_KEY_CHECKS=1;",
                "SET UNIQUE_CHECKS=1;",
                "SELECT 'Checks restored' AS status;",
            ]
        ) + "\n"
    
    def stats_query(self, database: str) -> str:
        """Largest tables of ``database`` by data length."""
        schema = database.replace("\\", "\\\\").replace("'", "''")
        return (
            "SELECT TABLE_NAME, TABLE_ROWS, "
            "ROUND(DATA_LENGTH / 1024 / 1024, 2), "
            "ROUND(INDEX_LENGTH / 1024 / 1024, 2) "
            "FROM information_schema.TABLES "
            f"WHERE TABLE_SCHEMA = '{schema}' "
            "ORDER BY DATA_LENGTH DESC "
            f"LIMIT {self.stats_limit};\n"
        )
    
    def __post_init__(self) -> None:
        """Validate session policy."""
        if not self.sql_mode or "'" in self.sql_mode:
            raise ValueError(f"sql_mode must be a non-empty flag list without quotes, got {self.sql_mode!r}")
        if self.stats_limit < 1:
            raise ValueError(f"stats_limit must be >= 1, got {self.stats_limit}")
