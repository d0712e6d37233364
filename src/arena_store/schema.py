"""
Schema bootstrap for the arena store.

Creates the tables the query catalog expects, for local development and
integration tests. This is not a migration system: every statement is
CREATE ... IF NOT EXISTS and existing tables are left untouched.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from .core.types import (
    BANNED_SERIALS_TABLE,
    CHARACTERS_TABLE,
    MATCHES_TABLE,
    ONLINE_ACCOUNTS_TABLE,
    ONLINE_CHARACTERS_TABLE,
    SERVER_SETTINGS_TABLE,
    STATISTICS_OVERALL_TABLE,
    STATISTICS_WEEKLY_TABLE,
)

if TYPE_CHECKING:
    from .pg_connection import ConnectionManager

logger = logging.getLogger(__name__)

SCHEMA_FILE = Path(__file__).parent / "schema.sql"

ALL_TABLES = (
    CHARACTERS_TABLE,
    ONLINE_ACCOUNTS_TABLE,
    ONLINE_CHARACTERS_TABLE,
    MATCHES_TABLE,
    STATISTICS_OVERALL_TABLE,
    STATISTICS_WEEKLY_TABLE,
    BANNED_SERIALS_TABLE,
    SERVER_SETTINGS_TABLE,
)


def init_schema(db: "ConnectionManager") -> None:
    """
    Create any missing arena store tables.

    Args:
        db: Connection manager to run the DDL through
    """
    sql = SCHEMA_FILE.read_text(encoding="utf-8")
    logger.info("Applying schema from %s", SCHEMA_FILE)
    with db.connection() as conn:
        conn.execute(sql)


def get_table_counts(db: "ConnectionManager") -> dict[str, int]:
    """Row counts for every arena store table."""
    counts = {}
    with db.connection() as conn:
        for table in ALL_TABLES:
            # Table names come from the constants above, never from callers.
            row = conn.execute(f"SELECT COUNT(*) AS n FROM {table}").fetchone()
            counts[table] = row["n"]
    return counts
