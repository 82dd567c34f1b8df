from unittest.mock import Mock

import psycopg2
import pytest

import main
from db.errors import DatabaseUnreachable, MigrationFileUnreadable, MigrationStatementFailed


def test_bootstrap_resolves_connects_and_initializes(monkeypatch):
    db_pool = Mock()
    connect = Mock(return_value=db_pool)
    initialize = Mock(return_value=True)
    monkeypatch.setattr(main, "connect", connect)
    monkeypatch.setattr(main, "initialize_database", initialize)

    result, resolved = main.bootstrap("postgresql://u:p@localhost:5432/escashop")

    assert result is db_pool
    assert resolved.spec.database == "escashop"
    connect.assert_called_once_with(resolved.spec)
    initialize.assert_called_once_with(db_pool)


def test_bootstrap_closes_pool_when_migration_fails(monkeypatch):
    db_pool = Mock()
    failure = MigrationStatementFailed(0, "BROKEN;", psycopg2.ProgrammingError("syntax error"))
    monkeypatch.setattr(main, "connect", Mock(return_value=db_pool))
    monkeypatch.setattr(main, "initialize_database", Mock(side_effect=failure))

    with pytest.raises(MigrationStatementFailed):
        main.bootstrap("postgresql://u:p@localhost/escashop")
    db_pool.close.assert_called_once_with(drain_timeout=0)


def test_main_exits_non_zero_on_fatal_startup_error(monkeypatch):
    monkeypatch.setattr(main, "bootstrap", Mock(side_effect=DatabaseUnreachable("refused")))
    with pytest.raises(SystemExit) as exc_info:
        main.main()
    assert exc_info.value.code == 1


def test_bootstrap_closes_pool_when_migration_file_unreadable(monkeypatch):
    db_pool = Mock()
    monkeypatch.setattr(main, "connect", Mock(return_value=db_pool))
    monkeypatch.setattr(main, "initialize_database",
                        Mock(side_effect=MigrationFileUnreadable("permission denied")))

    with pytest.raises(MigrationFileUnreadable):
        main.bootstrap("postgresql://u:p@localhost/escashop")
    db_pool.close.assert_called_once_with(drain_timeout=0)
