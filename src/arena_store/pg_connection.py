"""
PostgreSQL connection manager for the arena store.

Owns the psycopg3 connection pool shared by every repository. Connections are
health-checked on checkout, broken ones are discarded instead of being reused,
and every driver error is classified into the arena store error taxonomy
before it leaves this module.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, Optional, TypeVar

import psycopg
from psycopg import errors as pg_errors
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from .core.config import Settings, get_settings
from .core.errors import (
    ArenaStoreError,
    ConstraintViolation,
    PoolExhausted,
    StatementFailed,
    StoreUnavailable,
)
from .queries import Template

logger = logging.getLogger(__name__)

T = TypeVar("T")


def classify_error(exc: psycopg.Error) -> ArenaStoreError:
    """Map a psycopg error onto the arena store error taxonomy."""
    if isinstance(exc, pg_errors.UniqueViolation):
        constraint = exc.diag.constraint_name if exc.diag else None
        return ConstraintViolation(str(exc).strip(), constraint=constraint)
    if isinstance(exc, pg_errors.QueryCanceled):
        return StoreUnavailable("Statement timed out")
    if isinstance(exc, (psycopg.OperationalError, psycopg.InterfaceError)):
        return StoreUnavailable()
    return StatementFailed(str(exc).strip() or type(exc).__name__)


class ConnectionManager:
    """
    PostgreSQL connection manager.

    Wraps a psycopg_pool.ConnectionPool with:
    - bounded waits (PoolExhausted instead of blocking forever)
    - bounded exponential backoff while the store is unreachable
    - scoped acquisition that always releases, commits or rolls back
    """

    def __init__(self, settings: Optional[Settings] = None, *, open: bool = True):
        """
        Initialize the connection manager.

        Args:
            settings: Connection and pool settings. Defaults to get_settings().
            open: Open the pool and verify the store is reachable immediately.
        """
        self.settings = settings if settings is not None else get_settings()

        kwargs: dict[str, Any] = {
            "row_factory": dict_row,
            "connect_timeout": self.settings.connect_timeout,
        }
        options = []
        if self.settings.statement_timeout_ms:
            options.append(f"-c statement_timeout={self.settings.statement_timeout_ms}")
        if self.settings.database_search_path:
            options.append(f"-c search_path={self.settings.database_search_path}")
        if options:
            kwargs["options"] = " ".join(options)

        self._pool = ConnectionPool(
            self.settings.db_url,
            min_size=self.settings.database_min_pool_size,
            max_size=self.settings.database_pool_size,
            timeout=self.settings.database_pool_timeout,
            kwargs=kwargs,
            check=ConnectionPool.check_connection,
            name="arena_store",
            open=False,
        )

        if open:
            self.open()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def open(self) -> None:
        """
        Open the pool and wait until the store answers.

        Raises:
            StoreUnavailable: If the store stays unreachable after
                reconnect_max_attempts consecutive attempts
        """
        self._pool.open(wait=False)

        def probe() -> None:
            with self._pool.connection(timeout=self.settings.connect_timeout) as conn:
                conn.execute("SELECT 1")

        self._retry(probe, "connect")
        logger.info(
            "Connection pool open (min=%d, max=%d)",
            self.settings.database_min_pool_size,
            self.settings.database_pool_size,
        )

    def close(self) -> None:
        """Close the connection pool."""
        self._pool.close()
        logger.info("Connection pool closed")

    def _backoff(self, attempt: int) -> float:
        delay = self.settings.reconnect_backoff_base * (2 ** attempt)
        return min(delay, self.settings.reconnect_backoff_max)

    def _retry(self, fn: Callable[[], T], action: str) -> T:
        """Run `fn`, retrying transport failures with bounded backoff."""
        attempts = self.settings.reconnect_max_attempts
        for attempt in range(attempts):
            try:
                return fn()
            except (psycopg.OperationalError, PoolTimeout) as e:
                if attempt == attempts - 1:
                    logger.error("Store unavailable after %d attempts to %s: %s", attempts, action, e)
                    raise StoreUnavailable() from e
                wait = self._backoff(attempt)
                logger.warning(
                    "Failed to %s (attempt %d/%d), retrying in %.2fs: %s",
                    action, attempt + 1, attempts, wait, e,
                )
                time.sleep(wait)
        raise StoreUnavailable()

    # =========================================================================
    # Acquire / Release
    # =========================================================================

    def _pool_is_full(self) -> bool:
        stats = self._pool.get_stats()
        return stats.get("pool_size", 0) >= self.settings.database_pool_size

    def acquire(self) -> psycopg.Connection:
        """
        Take a healthy connection from the pool.

        Raises:
            PoolExhausted: Every connection stayed busy for the whole wait
            StoreUnavailable: New connections could not be established
        """
        timeout = self.settings.database_pool_timeout

        def checkout() -> psycopg.Connection:
            try:
                return self._pool.getconn(timeout=timeout)
            except PoolTimeout as e:
                if self._pool_is_full():
                    raise PoolExhausted(timeout) from e
                raise

        return self._retry(checkout, "acquire a connection")

    def release(self, conn: psycopg.Connection) -> None:
        """Return a connection; broken ones are discarded by the pool."""
        if conn.closed or conn.broken:
            logger.warning("Discarding broken connection")
        self._pool.putconn(conn)

    @contextmanager
    def connection(self) -> Iterator[psycopg.Connection]:
        """
        Scoped connection: commits on success, rolls back on failure,
        and always releases.
        """
        conn = self.acquire()
        try:
            yield conn
            conn.commit()
        except psycopg.Error as e:
            self._rollback(conn)
            raise classify_error(e) from e
        except BaseException:
            self._rollback(conn)
            raise
        finally:
            self.release(conn)

    def with_connection(self, fn: Callable[[psycopg.Connection], T]) -> T:
        """Run `fn` with a scoped connection and return its result."""
        with self.connection() as conn:
            return fn(conn)

    @staticmethod
    def _rollback(conn: psycopg.Connection) -> None:
        if conn.closed or conn.broken:
            return
        try:
            conn.rollback()
        except psycopg.Error as e:
            logger.warning("Rollback failed, connection will be discarded: %s", e)

    # =========================================================================
    # Statement helpers
    # =========================================================================

    @contextmanager
    def _cursor(
        self, conn: Optional[psycopg.Connection]
    ) -> Iterator[psycopg.Cursor]:
        if conn is not None:
            with conn.cursor() as cur:
                yield cur
        else:
            with self.connection() as scoped:
                with scoped.cursor() as cur:
                    yield cur

    def _run(
        self,
        cur: psycopg.Cursor,
        template: Template,
        params: Optional[Mapping[str, Any]],
    ) -> None:
        bound = template.bind(params or {})
        logger.debug("Executing %s", template.name)
        cur.execute(template.sql, bound or None)

    def execute(
        self,
        template: Template,
        params: Optional[Mapping[str, Any]] = None,
        *,
        conn: Optional[psycopg.Connection] = None,
    ) -> int:
        """Execute a statement and return the affected row count."""
        with self._cursor(conn) as cur:
            self._run(cur, template, params)
            return cur.rowcount

    def fetchone(
        self,
        template: Template,
        params: Optional[Mapping[str, Any]] = None,
        *,
        conn: Optional[psycopg.Connection] = None,
    ) -> Optional[dict[str, Any]]:
        """Execute a statement and fetch one result as a dict."""
        with self._cursor(conn) as cur:
            self._run(cur, template, params)
            row = cur.fetchone()
            return dict(row) if row else None

    def fetchall(
        self,
        template: Template,
        params: Optional[Mapping[str, Any]] = None,
        *,
        conn: Optional[psycopg.Connection] = None,
    ) -> list[dict[str, Any]]:
        """Execute a statement and fetch all results as dicts."""
        with self._cursor(conn) as cur:
            self._run(cur, template, params)
            return [dict(row) for row in cur.fetchall()]


# Global instance
_db: Optional[ConnectionManager] = None


def get_db() -> ConnectionManager:
    """
    Get the global connection manager.

    Returns:
        ConnectionManager instance
    """
    global _db

    if _db is None:
        _db = ConnectionManager()

    return _db


def close_db() -> None:
    """Close the global connection manager."""
    global _db
    if _db is not None:
        _db.close()
        _db = None
