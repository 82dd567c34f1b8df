"""
main.py
-------
Entry point for the EscaShop database bootstrap.

Responsibilities:
    - Resolve DATABASE_URL into connection parameters.
    - Create the connection pool and verify connectivity.
    - Apply the migration file on a fresh database.
    - Keep the pool alive until a termination signal arrives.
"""

import signal
import sys
import threading

from config import APP_ENV, DATABASE_URL, IS_PRODUCTION
from db.connection import PoolLifecycle, connect
from db.errors import DatabaseError
from db.init_db import initialize_database
from db.resolver import resolve_connection
from utils.logger import get_logger, redact_url

logger = get_logger(__name__)


def bootstrap(url: str = DATABASE_URL):
    """
    Resolve, connect and initialize.

    Returns:
        (DatabasePool, ResolvedConnection)

    Raises:
        DatabaseError: On any fatal startup condition.
    """
    logger.info(f"Using PostgreSQL database {redact_url(url)}")
    resolved = resolve_connection(url)
    db_pool = connect(resolved.spec)
    try:
        initialize_database(db_pool)
    except DatabaseError:
        db_pool.close(drain_timeout=0)
        raise
    return db_pool, resolved


def main() -> None:
    """Bootstrap the database and wait for shutdown."""

    # ── 1. Database setup ─────────────────────────────────
    logger.info(f"Initializing database (env={APP_ENV})...")
    try:
        db_pool, _ = bootstrap()
    except DatabaseError as e:
        logger.error(f"Startup failed: {e}", exc_info=True)
        sys.exit(1)

    # ── 2. Shutdown wiring ────────────────────────────────
    lifecycle = PoolLifecycle(db_pool)
    lifecycle.install_signal_handlers(production=IS_PRODUCTION)

    # ── 3. Serve until a termination signal ───────────────
    logger.info("🚀 Database ready.")
    if hasattr(signal, "pause"):
        while True:
            signal.pause()
    threading.Event().wait()


if __name__ == "__main__":
    main()
