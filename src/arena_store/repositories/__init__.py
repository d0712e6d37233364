"""
Repository abstraction layer.

Provides store-agnostic interfaces for the arena store components,
with PostgreSQL implementations sharing one connection manager and
one query catalog.

Usage:
    from arena_store.repositories import get_repositories

    repos = get_repositories(db)
    repos.presence.startup_recovery()
    repos.statistics.accumulate(charid, False, StatisticsDelta(kills=1))
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .base import (
    AccountRepository,
    CharacterRepository,
    MatchRecorder,
    PresenceTracker,
    RepositorySet,
    ServerSettingsRepository,
    StatisticsAggregator,
)

if TYPE_CHECKING:
    from ..pg_connection import ConnectionManager
    from ..queries import QueryCatalog

__all__ = [
    "AccountRepository",
    "CharacterRepository",
    "MatchRecorder",
    "PresenceTracker",
    "RepositorySet",
    "ServerSettingsRepository",
    "StatisticsAggregator",
    "get_repositories",
]


def get_repositories(
    db: "ConnectionManager", catalog: Optional["QueryCatalog"] = None
) -> RepositorySet:
    """
    Get repository set for the given connection manager.

    Args:
        db: Connection manager shared by every repository
        catalog: Query catalog. Defaults to the packaged catalog.

    Returns:
        RepositorySet with all repository implementations
    """
    from ..queries import get_catalog
    from .postgres import (
        PostgresAccountRepository,
        PostgresCharacterRepository,
        PostgresMatchRecorder,
        PostgresPresenceTracker,
        PostgresServerSettingsRepository,
        PostgresStatisticsAggregator,
    )

    if catalog is None:
        catalog = get_catalog()

    return RepositorySet(
        characters=PostgresCharacterRepository(db, catalog),
        presence=PostgresPresenceTracker(db, catalog),
        statistics=PostgresStatisticsAggregator(db, catalog),
        matches=PostgresMatchRecorder(db, catalog),
        accounts=PostgresAccountRepository(db, catalog),
        server_settings=PostgresServerSettingsRepository(db, catalog),
    )
