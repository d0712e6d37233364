"""
Arena Store

Persistence core for a multiplayer arena game server: characters, online
presence, match records and combat statistics, stored in PostgreSQL.

Key Features:
- Pooled, health-checked connections with bounded waits and backoff
- Immutable catalog of named-parameter statements (no SQL built from input)
- Crash-safe presence: startup recovery clears stale online rows
- Atomic insert-or-increment statistics (no lost updates under concurrency)

Usage:
    from arena_store import ConnectionManager, get_repositories, StatisticsDelta

    db = ConnectionManager()
    repos = get_repositories(db)

    repos.presence.startup_recovery()
    repos.presence.set_character_online(charid, tableid, arenaid, "A1")
    repos.statistics.accumulate(charid, hidden=False, deltas=StatisticsDelta(kills=3))
"""

from .core.config import Settings, get_settings
from .core.errors import (
    ArenaStoreError,
    CatalogError,
    ConstraintViolation,
    DuplicateName,
    InvalidDelta,
    InvalidMatch,
    MissingParameter,
    NotFound,
    PoolExhausted,
    SlotOccupied,
    StatementFailed,
    StoreUnavailable,
    TransientStoreError,
    UnknownQuery,
    ValidationFailure,
)
from .core.models import (
    Character,
    CharacterStatistics,
    Match,
    OnlineCharacter,
    StatisticsDelta,
)
from .core.types import week_start
from .pg_connection import ConnectionManager, close_db, get_db
from .queries import QueryCatalog, Template, get_catalog
from .repositories import RepositorySet, get_repositories
from .schema import init_schema

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Connection
    "ConnectionManager",
    "get_db",
    "close_db",
    # Catalog
    "QueryCatalog",
    "Template",
    "get_catalog",
    # Repositories
    "RepositorySet",
    "get_repositories",
    # Schema
    "init_schema",
    # Models
    "Character",
    "CharacterStatistics",
    "Match",
    "OnlineCharacter",
    "StatisticsDelta",
    "week_start",
    # Errors
    "ArenaStoreError",
    "TransientStoreError",
    "StoreUnavailable",
    "PoolExhausted",
    "StatementFailed",
    "NotFound",
    "ConstraintViolation",
    "DuplicateName",
    "SlotOccupied",
    "ValidationFailure",
    "InvalidDelta",
    "InvalidMatch",
    "CatalogError",
    "UnknownQuery",
    "MissingParameter",
]
