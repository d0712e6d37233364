"""
Pydantic models for arena store records.

These models are used for:
- Carrying the wide character record as named fields (never positional lists)
- Building the named-parameter mappings bound to catalog templates
- Type-safe query results built from dict rows
"""

from __future__ import annotations

from datetime import date as date_type
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .types import CHARACTER_COLUMNS, STAT_COUNTERS


# =============================================================================
# Characters
# =============================================================================


class Character(BaseModel):
    """
    A player character.

    The full attribute set is always read and written as one unit.
    `charid` is None until the character has been saved for the first time.
    """

    model_config = ConfigDict(populate_by_name=True)

    charid: Optional[int] = None
    accountid: int
    slot: int
    name: str = Field(min_length=1)
    oplevel: int = 0

    # Core stats
    agility: int = 0
    constitution: int = 0
    memory: int = 0
    reasoning: int = 0
    discipline: int = 0
    empathy: int = 0
    intuition: int = 0
    presence: int = 0
    quickness: int = 0
    strength: int = 0

    # Derived / bonus stats
    spent_stat: int = 0
    bonus_stat: int = 0
    bonus_spent: int = 0

    # Ability lists and their levels
    list_1: int = 0
    list_2: int = 0
    list_3: int = 0
    list_4: int = 0
    list_5: int = 0
    list_6: int = 0
    list_7: int = 0
    list_8: int = 0
    list_9: int = 0
    list_10: int = 0
    list_level_1: int = 0
    list_level_2: int = 0
    list_level_3: int = 0
    list_level_4: int = 0
    list_level_5: int = 0
    list_level_6: int = 0
    list_level_7: int = 0
    list_level_8: int = 0
    list_level_9: int = 0
    list_level_10: int = 0

    # Progression
    class_: int = Field(default=0, alias="class")
    level: int = 1
    spell_picks: int = 0
    model: int = 0
    experience: int = 0

    # Spell key bindings
    spell_key_1: int = 0
    spell_key_2: int = 0
    spell_key_3: int = 0
    spell_key_4: int = 0
    spell_key_5: int = 0
    spell_key_6: int = 0
    spell_key_7: int = 0
    spell_key_8: int = 0
    spell_key_9: int = 0
    spell_key_10: int = 0

    def to_params(self) -> dict[str, Any]:
        """Named parameters for every saved column, plus charid."""
        data = self.model_dump(by_alias=True)
        params = {col: data[col] for col in CHARACTER_COLUMNS}
        params["charid"] = self.charid
        return params

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Character":
        """Build a character from a `characters` dict row."""
        return cls.model_validate(row)


# =============================================================================
# Presence
# =============================================================================


class OnlineCharacter(BaseModel):
    """Where an online character currently is."""

    charid: int
    tableid: int
    arenaid: int
    arenashortname: str


# =============================================================================
# Statistics
# =============================================================================


class StatisticsDelta(BaseModel):
    """
    Per-counter increments contributed by one statistics event.

    Sign is not checked here; the aggregator rejects negative deltas
    with InvalidDelta before touching the store.
    """

    kills: int = 0
    deaths: int = 0
    raises: int = 0
    damagedone: int = 0
    damagetaken: int = 0
    healingdone: int = 0
    healingtaken: int = 0
    wins: int = 0
    losses: int = 0

    def negative_fields(self) -> list[str]:
        """Names of counters with a negative increment."""
        return [name for name in STAT_COUNTERS if getattr(self, name) < 0]

    def to_params(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in STAT_COUNTERS}


class CharacterStatistics(StatisticsDelta):
    """A stored statistics ledger row (overall when `date` is None)."""

    charid: int
    date: Optional[date_type] = None
    hidden: bool = False

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CharacterStatistics":
        return cls.model_validate(row)


# =============================================================================
# Matches
# =============================================================================


class Match(BaseModel):
    """
    Creation record of an arena match.

    Required-field checks (arenaid, tableid, max_players > 0) are made by
    the match recorder so they surface as InvalidMatch.
    """

    matchid: Optional[int] = None
    arenaid: Optional[int] = None
    tableid: Optional[int] = None
    creation_time: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    player_count: int = 0
    highest_player_count: int = 0
    max_players: int = 0
    current_state: int = 0
    end_state: int = 0
    short_name: str = ""
    long_name: str = ""
    founder_charid: Optional[int] = None
    duration: int = 0
    level_range: str = ""
    mode: int = 0
    rules: int = 0

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(exclude={"matchid"})
