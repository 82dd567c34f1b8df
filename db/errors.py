"""
db/errors.py
------------
Exceptions raised by the database layer.

Only fatal conditions are exceptions. DNS failures, configuration mismatches,
a missing migration file and a failing schema probe are all recovered where
they happen and are therefore not represented here.
"""

from typing import Optional


class DatabaseError(Exception):
    """Base class for all database bootstrap errors."""


class MalformedConnectionURI(DatabaseError):
    """The DATABASE_URL could not be parsed into connection parameters."""


class DatabaseUnreachable(DatabaseError):
    """The initial health-check round trip failed."""


class PoolExhausted(DatabaseError):
    """No pooled connection became available within the acquire timeout."""


class PoolClosed(DatabaseError):
    """The pool was used after shutdown."""


class MigrationStatementFailed(DatabaseError):
    """
    A migration statement was rejected by the database.

    The original driver error is available as ``__cause__`` and ``cause``.
    Statements applied before this one are not rolled back.
    """

    def __init__(self, index: int, statement: str, cause: Exception,
                 position: Optional[str] = None):
        self.index = index
        self.statement = statement
        self.cause = cause
        self.position = position
        detail = str(cause).strip()
        if position:
            detail += f" (at position {position})"
        super().__init__(f"Migration statement #{index + 1} failed: {detail}")


class MigrationFileUnreadable(DatabaseError):
    """The migration file exists but could not be read or decoded."""
