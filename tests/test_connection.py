"""
Tests for the connection manager.

The psycopg pool is replaced with a mock, so these verify acquisition,
release, retry and error classification without a running database.
"""

from unittest.mock import MagicMock, call, patch

import psycopg
import pytest
from psycopg import errors as pg_errors
from psycopg_pool import PoolTimeout

from arena_store.core.errors import (
    ConstraintViolation,
    PoolExhausted,
    StatementFailed,
    StoreUnavailable,
)
from arena_store.pg_connection import ConnectionManager, classify_error
from arena_store.queries import Template


@pytest.fixture
def pool():
    with patch("arena_store.pg_connection.ConnectionPool") as pool_class:
        instance = pool_class.return_value
        instance.get_stats.return_value = {"pool_size": 0}
        yield instance


@pytest.fixture
def sleep():
    with patch("arena_store.pg_connection.time.sleep") as mock_sleep:
        yield mock_sleep


@pytest.fixture
def conn(pool):
    connection = MagicMock(closed=False, broken=False)
    pool.getconn.return_value = connection
    return connection


@pytest.fixture
def manager(settings, pool, sleep):
    return ConnectionManager(settings, open=False)


class TestClassifyError:
    """Driver errors never leave the manager unclassified."""

    def test_transport_error_is_unavailable(self):
        assert isinstance(classify_error(psycopg.OperationalError("down")), StoreUnavailable)

    def test_interface_error_is_unavailable(self):
        assert isinstance(classify_error(psycopg.InterfaceError("closed")), StoreUnavailable)

    def test_statement_timeout_is_unavailable(self):
        err = classify_error(pg_errors.QueryCanceled("canceling statement"))
        assert isinstance(err, StoreUnavailable)
        assert "timed out" in err.message

    def test_unique_violation_is_constraint(self):
        assert isinstance(classify_error(pg_errors.UniqueViolation("dup")), ConstraintViolation)

    def test_other_errors_are_statement_failures(self):
        assert isinstance(classify_error(psycopg.ProgrammingError("syntax")), StatementFailed)


class TestOpen:
    def test_open_retries_until_store_answers(self, settings, pool, sleep):
        pool.connection.side_effect = [PoolTimeout("not yet"), MagicMock()]

        ConnectionManager(settings)

        pool.open.assert_called_once_with(wait=False)
        assert pool.connection.call_count == 2
        sleep.assert_called_once_with(settings.reconnect_backoff_base)

    def test_open_gives_up_after_max_attempts(self, settings, pool, sleep):
        pool.connection.side_effect = psycopg.OperationalError("refused")

        with pytest.raises(StoreUnavailable):
            ConnectionManager(settings)

        assert pool.connection.call_count == settings.reconnect_max_attempts


class TestAcquireRelease:
    def test_acquire_returns_pooled_connection(self, manager, pool, conn):
        assert manager.acquire() is conn
        pool.getconn.assert_called_once_with(timeout=manager.settings.database_pool_timeout)

    def test_busy_full_pool_is_exhausted(self, manager, pool, sleep):
        pool.getconn.side_effect = PoolTimeout("busy")
        pool.get_stats.return_value = {"pool_size": manager.settings.database_pool_size}

        with pytest.raises(PoolExhausted):
            manager.acquire()

        # Exhaustion is reported immediately, not retried
        assert pool.getconn.call_count == 1
        sleep.assert_not_called()

    def test_unreachable_store_retries_with_backoff(self, manager, pool, sleep, settings):
        pool.getconn.side_effect = PoolTimeout("cannot connect")

        with pytest.raises(StoreUnavailable):
            manager.acquire()

        assert pool.getconn.call_count == settings.reconnect_max_attempts
        # base, 2*base capped at reconnect_backoff_max
        assert sleep.call_args_list == [call(0.01), call(0.02)]

    def test_backoff_is_capped(self, manager):
        assert manager._backoff(10) == manager.settings.reconnect_backoff_max

    def test_release_returns_connection_to_pool(self, manager, pool, conn):
        manager.release(conn)
        pool.putconn.assert_called_once_with(conn)

    def test_release_broken_connection_is_logged(self, manager, pool, caplog):
        broken = MagicMock(closed=False, broken=True)
        manager.release(broken)
        pool.putconn.assert_called_once_with(broken)
        assert "Discarding broken connection" in caplog.text


class TestScopedConnection:
    def test_commits_and_releases_on_success(self, manager, pool, conn):
        with manager.connection() as c:
            assert c is conn

        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        pool.putconn.assert_called_once_with(conn)

    def test_driver_error_is_classified_and_rolled_back(self, manager, pool, conn):
        with pytest.raises(StoreUnavailable):
            with manager.connection():
                raise psycopg.OperationalError("connection reset")

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        pool.putconn.assert_called_once_with(conn)

    def test_caller_error_propagates_unchanged(self, manager, pool, conn):
        with pytest.raises(KeyError):
            with manager.connection():
                raise KeyError("boom")

        conn.rollback.assert_called_once()
        pool.putconn.assert_called_once_with(conn)

    def test_broken_connection_is_not_rolled_back(self, manager, pool, conn):
        conn.broken = True
        with pytest.raises(StoreUnavailable):
            with manager.connection():
                raise psycopg.OperationalError("server closed the connection")

        conn.rollback.assert_not_called()
        pool.putconn.assert_called_once_with(conn)

    def test_with_connection_returns_result(self, manager, conn):
        assert manager.with_connection(lambda c: c is conn) is True
        conn.commit.assert_called_once()


class TestStatementHelpers:
    @pytest.fixture
    def cursor(self, conn):
        cur = conn.cursor.return_value.__enter__.return_value
        return cur

    def test_execute_binds_named_params_and_returns_rowcount(self, manager, cursor):
        cursor.rowcount = 1
        template = Template.parse("t", "DELETE FROM x WHERE id = %(id)s")

        assert manager.execute(template, {"id": 9, "other": 1}) == 1
        cursor.execute.assert_called_once_with(template.sql, {"id": 9})

    def test_execute_without_params(self, manager, cursor):
        cursor.rowcount = 4
        template = Template.parse("t", "DELETE FROM x")

        assert manager.execute(template) == 4
        cursor.execute.assert_called_once_with(template.sql, None)

    def test_fetchone_returns_dict_or_none(self, manager, cursor):
        template = Template.parse("t", "SELECT * FROM x WHERE id = %(id)s")

        cursor.fetchone.return_value = {"id": 9}
        assert manager.fetchone(template, {"id": 9}) == {"id": 9}

        cursor.fetchone.return_value = None
        assert manager.fetchone(template, {"id": 10}) is None

    def test_fetchall_on_caller_connection_does_not_commit(self, manager, conn, cursor):
        cursor.fetchall.return_value = [{"id": 1}, {"id": 2}]
        template = Template.parse("t", "SELECT * FROM x")

        rows = manager.fetchall(template, conn=conn)

        assert rows == [{"id": 1}, {"id": 2}]
        conn.commit.assert_not_called()
