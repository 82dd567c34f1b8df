"""
models/migration.py
-------------------
Domain model for a single executable unit of a migration file.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class MigrationStatement:
    """
    One self-contained SQL statement extracted from a migration file.

    Attributes:
        index: 0-based position in the file. Execution order follows it.
        sql: Statement text with surrounding whitespace trimmed.
    """
    index: int
    sql: str

    def preview(self, width: int = 60) -> str:
        """First line of the statement, shortened for log output."""
        first = self.sql.splitlines()[0] if self.sql else ""
        return first if len(first) <= width else first[: width - 3] + "..."

    def __str__(self) -> str:
        return self.sql
