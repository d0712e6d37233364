"""
Pytest configuration for arena-store tests.

Unit tests run without a database. Integration tests need DATABASE_URL
(from the environment or a .env file at the repo root); they run inside a
throwaway schema that is dropped at the end of the session.
"""

import os
import uuid

import pytest
from dotenv import load_dotenv

from arena_store.core.config import Settings

TRUNCATE_TABLES = (
    "characters",
    "online_accounts",
    "online_characters",
    "matches",
    "character_statistics",
    "character_statistics_weekly",
    "banned_serials",
)


def pytest_configure(config):
    """Load a repo-level .env without overriding variables already set."""
    env_file = os.path.join(os.path.dirname(__file__), "..", ".env")
    if os.path.exists(env_file):
        load_dotenv(env_file, override=False)


@pytest.fixture
def settings():
    """Settings tuned for fast failure in unit tests."""
    return Settings(
        database_url="postgresql://arena@localhost:5432/arena_test",
        database_pool_size=4,
        database_pool_timeout=0.05,
        connect_timeout=1,
        reconnect_max_attempts=3,
        reconnect_backoff_base=0.01,
        reconnect_backoff_max=0.02,
    )


@pytest.fixture(scope="session")
def database_url():
    """Get the integration database URL."""
    url = os.environ.get("DATABASE_URL")
    if not url:
        pytest.skip("DATABASE_URL not set")
    return url


@pytest.fixture(scope="session")
def db(database_url):
    """Connection manager bound to a private schema with the full table set."""
    import psycopg

    from arena_store.pg_connection import ConnectionManager
    from arena_store.schema import init_schema

    schema = f"arena_test_{uuid.uuid4().hex[:8]}"
    with psycopg.connect(database_url, autocommit=True) as conn:
        conn.execute(f"CREATE SCHEMA {schema}")

    manager = ConnectionManager(
        Settings(
            database_url=database_url,
            database_search_path=schema,
            database_pool_size=8,
            database_pool_timeout=10,
            reconnect_max_attempts=2,
        )
    )
    init_schema(manager)

    yield manager

    manager.close()
    with psycopg.connect(database_url, autocommit=True) as conn:
        conn.execute(f"DROP SCHEMA {schema} CASCADE")


@pytest.fixture
def repos(db):
    """Fresh repository set over empty tables."""
    from arena_store.repositories import get_repositories

    with db.connection() as conn:
        conn.execute(f"TRUNCATE {', '.join(TRUNCATE_TABLES)} RESTART IDENTITY")
        conn.execute("UPDATE server_settings SET exp_multiplier = 1.0")
    return get_repositories(db)
