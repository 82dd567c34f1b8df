"""Shared fixtures: a fake psycopg2 pool so no database is needed."""

from unittest.mock import MagicMock

import pytest

from models.connection import ConnectionSpec


def make_connection(rows=None, description=True, execute_error=None):
    """A psycopg2-like connection whose cursor returns ``rows``."""
    cur = MagicMock()
    cur.description = [("col",)] if description else None
    cur.fetchall.return_value = rows if rows is not None else [(1,)]
    if execute_error is not None:
        cur.execute.side_effect = execute_error
    conn = MagicMock()
    conn.closed = 0
    conn.cursor.return_value.__enter__.return_value = cur
    return conn


class FakePsycopgPool:
    """Stands in for psycopg2.pool.ThreadedConnectionPool."""

    instances = []

    def __init__(self, minconn, maxconn, **kwargs):
        self.minconn = minconn
        self.maxconn = maxconn
        self.kwargs = kwargs
        self.connection = make_connection()
        self.returned = []
        self.closed_all = 0
        FakePsycopgPool.instances.append(self)

    def getconn(self):
        return self.connection

    def putconn(self, conn, close=False):
        self.returned.append((conn, close))

    def closeall(self):
        self.closed_all += 1


@pytest.fixture
def spec():
    return ConnectionSpec(
        host="10.0.0.5",
        port=5432,
        database="escashop",
        user="admin",
        password="s3cret",
        ssl_enabled=True,
    )


@pytest.fixture
def fake_pool_factory():
    FakePsycopgPool.instances = []
    return FakePsycopgPool
