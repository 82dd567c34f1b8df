"""
db/init_db.py
-------------
Applies the complete migration file if the schema does not exist yet.
Run this module directly to initialize a fresh database:
    python -m db.init_db
"""

from pathlib import Path
from typing import Iterable

import psycopg2
from psycopg2 import pool

from config import CORE_TABLES, MIGRATION_PATH
from db.connection import DatabasePool
from db.errors import (
    MigrationFileUnreadable,
    MigrationStatementFailed,
    PoolClosed,
    PoolExhausted,
)
from db.splitter import split_statements
from models.migration import MigrationStatement
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_PROBE_SQL = """
    SELECT COUNT(DISTINCT table_name)
    FROM information_schema.tables
    WHERE table_schema = 'public'
      AND table_name = ANY(%s);
"""


def needs_initialization(db_pool: DatabasePool, tables: Iterable[str] = CORE_TABLES) -> bool:
    """
    Decide whether the migration must run.

    Returns False only when every core table exists in the public schema.
    A failing probe counts as "not initialized".
    """
    expected = list(tables)
    try:
        rows = db_pool.query(SCHEMA_PROBE_SQL, (expected,))
    except (psycopg2.Error, pool.PoolError, PoolExhausted, PoolClosed) as e:
        logger.warning(f"Schema probe failed, proceeding with initialization: {e}")
        return True
    found = rows[0][0] if rows else 0
    if found >= len(expected):
        return False
    logger.info(f"Found {found}/{len(expected)} core tables.")
    return True


def _error_position(error: Exception):
    diag = getattr(error, "diag", None)
    return getattr(diag, "statement_position", None) if diag is not None else None


def apply_statements(db_pool: DatabasePool, statements: Iterable[MigrationStatement]) -> int:
    """
    Execute statements one by one, in order.

    Each statement commits on its own; nothing is wrapped in a transaction,
    so statements applied before a failure stay applied.

    Returns:
        Number of statements executed.

    Raises:
        MigrationStatementFailed: On the first statement the database rejects.
    """
    applied = 0
    for statement in statements:
        try:
            db_pool.execute(statement.sql)
        except psycopg2.Error as e:
            logger.error(f"Migration statement #{statement.index + 1} failed: {statement.preview()}")
            raise MigrationStatementFailed(
                statement.index, statement.sql, e, _error_position(e)
            ) from e
        applied += 1
        logger.debug(f"Applied #{statement.index + 1}: {statement.preview()}")
    return applied


def initialize_database(db_pool: DatabasePool, migration_path: Path = MIGRATION_PATH) -> bool:
    """
    Apply the migration file unless the schema is already there.

    Returns:
        True if the migration was applied, False if it was skipped.

    Raises:
        MigrationFileUnreadable: If the migration file cannot be read.
        MigrationStatementFailed: If any statement fails.
    """
    logger.info("Checking database initialization status...")
    if not needs_initialization(db_pool):
        logger.info("Database already initialized, skipping initialization.")
        return False

    migration_path = Path(migration_path)
    if not migration_path.is_file():
        logger.info(f"No migration file at {migration_path}, assuming migrations were run separately.")
        return False

    try:
        sql_text = migration_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Could not read migration file {migration_path}: {e}")
        raise MigrationFileUnreadable(f"Could not read {migration_path}: {e}") from e

    statements = split_statements(sql_text)
    logger.info(f"Running {len(statements)} statements from {migration_path.name}...")
    applied = apply_statements(db_pool, statements)
    logger.info(f"Database initialized successfully ({applied} statements).")
    return True


if __name__ == "__main__":
    from config import DATABASE_URL
    from db.connection import connect
    from db.resolver import resolve_connection

    db_pool = connect(resolve_connection(DATABASE_URL).spec)
    try:
        initialize_database(db_pool)
    finally:
        db_pool.close()
    print("✅ Database ready.")
