"""
Core types and constants for the arena store.

This module provides:
- Table name constants (shared by the catalog and the schema)
- The ordered column set of the wide character record
- The statistics counter names
- week_start() for deriving the weekly statistics window key
"""

from datetime import date, datetime, timedelta
from typing import Union

# =============================================================================
# Table names
# =============================================================================

CHARACTERS_TABLE = "characters"
ONLINE_ACCOUNTS_TABLE = "online_accounts"
ONLINE_CHARACTERS_TABLE = "online_characters"
MATCHES_TABLE = "matches"
STATISTICS_OVERALL_TABLE = "character_statistics"
STATISTICS_WEEKLY_TABLE = "character_statistics_weekly"
BANNED_SERIALS_TABLE = "banned_serials"
SERVER_SETTINGS_TABLE = "server_settings"

# =============================================================================
# Character record layout
# =============================================================================

ABILITY_LIST_SLOTS = 10
SPELL_KEY_SLOTS = 10

CORE_STATS = (
    "agility",
    "constitution",
    "memory",
    "reasoning",
    "discipline",
    "empathy",
    "intuition",
    "presence",
    "quickness",
    "strength",
)

BONUS_STATS = ("spent_stat", "bonus_stat", "bonus_spent")

LIST_COLUMNS = tuple(f"list_{i}" for i in range(1, ABILITY_LIST_SLOTS + 1))
LIST_LEVEL_COLUMNS = tuple(f"list_level_{i}" for i in range(1, ABILITY_LIST_SLOTS + 1))
SPELL_KEY_COLUMNS = tuple(f"spell_key_{i}" for i in range(1, SPELL_KEY_SLOTS + 1))

# Every column written by save_new / save_existing, in statement order.
# `charid` is assigned by the store and `oplevel` is operator-managed,
# so neither is part of the saved attribute set.
CHARACTER_COLUMNS = (
    ("accountid", "slot", "name")
    + CORE_STATS
    + BONUS_STATS
    + LIST_COLUMNS
    + LIST_LEVEL_COLUMNS
    + ("class", "level", "spell_picks", "model", "experience")
    + SPELL_KEY_COLUMNS
)

# =============================================================================
# Statistics
# =============================================================================

STAT_COUNTERS = (
    "kills",
    "deaths",
    "raises",
    "damagedone",
    "damagetaken",
    "healingdone",
    "healingtaken",
    "wins",
    "losses",
)


def week_start(day: Union[date, datetime]) -> date:
    """
    Return the Monday of the ISO week containing `day`.

    This is the conventional key for the weekly statistics window.
    """
    if isinstance(day, datetime):
        day = day.date()
    return day - timedelta(days=day.weekday())
