"""
Core module for the arena store.

This module provides the foundational components:
- Configuration management (config.py)
- Error taxonomy (errors.py)
- Record models (models.py)
- Table names, column layouts and window keys (types.py)

Usage:
    from arena_store.core import Settings, get_settings
    from arena_store.core import Character, StatisticsDelta, Match
    from arena_store.core.errors import NotFound, StoreUnavailable
"""

# Configuration
from .config import Settings, get_settings

# Types
from .types import (
    CHARACTER_COLUMNS,
    STAT_COUNTERS,
    CHARACTERS_TABLE,
    ONLINE_ACCOUNTS_TABLE,
    ONLINE_CHARACTERS_TABLE,
    MATCHES_TABLE,
    STATISTICS_OVERALL_TABLE,
    STATISTICS_WEEKLY_TABLE,
    week_start,
)

# Models
from .models import (
    Character,
    CharacterStatistics,
    Match,
    OnlineCharacter,
    StatisticsDelta,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Types
    "CHARACTER_COLUMNS",
    "STAT_COUNTERS",
    "CHARACTERS_TABLE",
    "ONLINE_ACCOUNTS_TABLE",
    "ONLINE_CHARACTERS_TABLE",
    "MATCHES_TABLE",
    "STATISTICS_OVERALL_TABLE",
    "STATISTICS_WEEKLY_TABLE",
    "week_start",
    # Models
    "Character",
    "CharacterStatistics",
    "Match",
    "OnlineCharacter",
    "StatisticsDelta",
]
