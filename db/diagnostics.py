"""
db/diagnostics.py
-----------------
Read-only database health report.

This module is an API for the HTTP layer: route handlers call `ping()` and
`run_diagnostics()` with the shared pool and serialize the returned dict.
Every check records its own failure instead of raising, so a partial
report is always returned.
"""

from datetime import datetime, timezone

import psycopg2
from psycopg2 import pool

from db.connection import DatabasePool
from db.errors import DatabaseError
from models.connection import HostClassification
from utils.logger import get_logger

logger = get_logger(__name__)

OK = "ok"
FAILED = "failed"
MISSING = "missing"

RESET_TOKEN_COLUMNS_SQL = """
    SELECT column_name, data_type
    FROM information_schema.columns
    WHERE table_name = 'users'
      AND column_name IN ('reset_token', 'reset_token_expiry')
    ORDER BY column_name;
"""

_CHECK_ERRORS = (psycopg2.Error, pool.PoolError, DatabaseError)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def ping() -> dict:
    """Liveness payload; touches nothing."""
    return {"status": OK, "message": "Diagnostic routes are working", "timestamp": _now()}


def run_diagnostics(db_pool: DatabasePool, classification: HostClassification) -> dict:
    """
    Build the database section of the diagnostic report.

    Args:
        db_pool: The shared pool.
        classification: Host facts from the resolver (for connection type).

    Returns:
        Dict with 'timestamp', 'checks' and 'summary'.
    """
    checks: dict[str, dict] = {}

    try:
        rows = db_pool.query("SELECT NOW()")
        checks["database"] = {
            "status": OK,
            "server_time": rows[0][0].isoformat() if rows else None,
            "connection_type": classification.provider,
            "pooler": classification.is_pooler_host,
        }
    except _CHECK_ERRORS as e:
        logger.error(f"Diagnostic database check failed: {e}")
        checks["database"] = {"status": FAILED, "error": str(e)}
        return _report(checks)

    try:
        rows = db_pool.query(RESET_TOKEN_COLUMNS_SQL)
        if rows:
            checks["reset_token_columns"] = {
                "status": OK,
                "columns": [f"{name} ({data_type})" for name, data_type in rows],
            }
        else:
            checks["reset_token_columns"] = {
                "status": MISSING,
                "message": "reset_token and reset_token_expiry columns not found in users table",
            }
    except _CHECK_ERRORS as e:
        checks["reset_token_columns"] = {"status": FAILED, "error": str(e)}

    try:
        rows = db_pool.query("SELECT COUNT(*) FROM users")
        checks["users"] = {"status": OK, "total_users": int(rows[0][0])}
    except _CHECK_ERRORS as e:
        checks["users"] = {"status": FAILED, "error": str(e)}

    return _report(checks)


def _report(checks: dict[str, dict]) -> dict:
    failed = sum(1 for check in checks.values() if check["status"] != OK)
    return {
        "timestamp": _now(),
        "checks": checks,
        "summary": {
            "total_checks": len(checks),
            "failed_checks": failed,
            "status": "all checks passed" if failed == 0 else f"{failed} check(s) failed",
        },
    }
