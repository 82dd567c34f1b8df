"""
db/connection.py
----------------
Manages the PostgreSQL connection pool.
Uses psycopg2's ThreadedConnectionPool for efficient connection reuse.

The pool is created once by ``connect()`` and handed to every consumer;
``PoolLifecycle`` owns its shutdown.
"""

import signal
import sys
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Optional, Sequence

import psycopg2
from psycopg2 import pool

from config import POOL_DRAIN_TIMEOUT_SECONDS
from db.errors import DatabaseUnreachable, PoolClosed, PoolExhausted
from models.connection import ConnectionSpec
from utils.logger import get_logger

logger = get_logger(__name__)


class DatabasePool:
    """
    The process-wide connection pool.

    Wraps a psycopg2 pool with a bounded wait on acquisition and
    bookkeeping of checked-out connections so ``close()`` can drain.
    """

    def __init__(self, spec: ConnectionSpec, pool_factory: Callable = pool.ThreadedConnectionPool):
        self.spec = spec
        self._pool = pool_factory(1, spec.pool_size_max, **spec.connect_kwargs())
        self._slots = threading.BoundedSemaphore(spec.pool_size_max)
        self._in_flight = 0
        self._idle = threading.Condition()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def acquire(self, timeout: Optional[float] = None):
        """
        Check out a connection, waiting at most ``timeout`` seconds.

        Raises:
            PoolClosed: If the pool was shut down.
            PoolExhausted: If no connection became available in time.
        """
        if self._closed:
            raise PoolClosed("Database pool is closed.")
        if timeout is None:
            timeout = self.spec.connect_timeout_ms / 1000
        if not self._slots.acquire(timeout=timeout):
            raise PoolExhausted(
                f"No database connection available after {timeout:.1f}s "
                f"(max {self.spec.pool_size_max})."
            )
        try:
            conn = self._pool.getconn()
        except Exception:
            self._slots.release()
            raise
        with self._idle:
            self._in_flight += 1
        return conn

    def release(self, conn, discard: bool = False) -> None:
        """Return a connection back to the pool."""
        try:
            if not self._closed:
                self._pool.putconn(conn, close=discard)
        finally:
            self._slots.release()
            with self._idle:
                self._in_flight -= 1
                self._idle.notify_all()

    @contextmanager
    def connection(self):
        """
        Borrow a connection for the duration of a ``with`` block.

        Commits on success, rolls back on error. Connections left broken
        by the error are discarded instead of being returned to the pool.
        """
        conn = self.acquire()
        discard = False
        try:
            yield conn
            conn.commit()
        except Exception:
            try:
                conn.rollback()
            except psycopg2.Error:
                discard = True
            if conn.closed:
                discard = True
            raise
        finally:
            self.release(conn, discard=discard)

    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> list[tuple]:
        """Run a parameterized query and return all rows."""
        with self.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return cur.fetchall() if cur.description else []

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> None:
        """Run a statement that returns no rows, committed on its own."""
        with self.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)

    def close(self, drain_timeout: float = POOL_DRAIN_TIMEOUT_SECONDS) -> None:
        """
        Stop handing out connections, wait for in-flight work, close all.

        Connections still checked out after ``drain_timeout`` are closed anyway.
        """
        if self._closed:
            return
        self._closed = True
        deadline = time.monotonic() + drain_timeout
        with self._idle:
            while self._in_flight > 0:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.warning(f"Closing pool with {self._in_flight} connection(s) still in use.")
                    break
                self._idle.wait(remaining)
        self._pool.closeall()
        logger.info("Database connection pool closed.")


def connect(spec: ConnectionSpec, pool_factory: Callable = pool.ThreadedConnectionPool) -> DatabasePool:
    """
    Build the pool and prove the database is reachable.

    Args:
        spec: Resolved connection parameters.
        pool_factory: psycopg2 pool class (swappable in tests).

    Returns:
        A ready DatabasePool.

    Raises:
        DatabaseUnreachable: If the pool cannot be created or the
            health-check round trip fails.
    """
    logger.info(
        f"Creating connection pool: host={spec.host} port={spec.port} "
        f"database={spec.database} user={spec.user} max={spec.pool_size_max}"
    )
    try:
        db_pool = DatabasePool(spec, pool_factory)
    except (psycopg2.Error, pool.PoolError) as e:
        logger.error(f"Failed to initialize database pool: {e}")
        raise DatabaseUnreachable(f"Could not connect to {spec.host}:{spec.port}: {e}") from e

    try:
        db_pool.query("SELECT 1")
    except (psycopg2.Error, pool.PoolError, PoolExhausted) as e:
        logger.error(f"Database health check failed: {e}")
        db_pool.close(drain_timeout=0)
        raise DatabaseUnreachable(f"Health check against {spec.host}:{spec.port} failed: {e}") from e

    logger.info("Database connection established.")
    return db_pool


class PoolLifecycle:
    """
    Graceful shutdown for the process-wide pool.

    ``shutdown()`` runs its close-and-exit sequence exactly once, no matter
    how many signals arrive or from which threads.
    """

    TERMINATION_SIGNALS = ("SIGTERM", "SIGQUIT")

    def __init__(self, db_pool: DatabasePool, exit_fn: Callable[[int], Any] = sys.exit,
                 drain_timeout: float = POOL_DRAIN_TIMEOUT_SECONDS):
        self.pool = db_pool
        self._exit = exit_fn
        self._drain_timeout = drain_timeout
        self._lock = threading.Lock()
        self._shutting_down = False

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def shutdown(self, *_signal_args) -> None:
        """Close the pool, then terminate the process. Later calls are no-ops."""
        with self._lock:
            if self._shutting_down:
                return
            self._shutting_down = True

        logger.info("Closing database connection pool...")
        try:
            self.pool.close(drain_timeout=self._drain_timeout)
        finally:
            self._exit(0)

    def install_signal_handlers(self, production: bool) -> list[str]:
        """
        Wire termination signals to ``shutdown``.

        SIGINT is only wired in production so Ctrl+C during development
        does not tear the pool down. Returns the names of wired signals.
        """
        names = list(self.TERMINATION_SIGNALS)
        if production:
            names.append("SIGINT")
        installed = []
        for name in names:
            signum = getattr(signal, name, None)
            if signum is None:
                continue  # SIGQUIT does not exist on Windows
            signal.signal(signum, self.shutdown)
            installed.append(name)
        logger.info(f"Shutdown handlers installed for: {', '.join(installed)}")
        return installed
