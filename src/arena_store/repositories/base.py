"""
Base repository protocols.

Defines abstract interfaces for the arena store components, so game logic
depends on behavior rather than on the PostgreSQL implementations.
Each interface owns a disjoint set of tables.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.models import (
    Character,
    CharacterStatistics,
    Match,
    OnlineCharacter,
    StatisticsDelta,
)


class CharacterRepository(ABC):
    """
    Abstract interface for character records.

    The wide attribute set is always read and written as a complete unit;
    there are no partial-field updates.
    """

    @abstractmethod
    def find_by_slot(self, accountid: int, slot: int) -> Optional[Character]:
        """Find the character in an account's roster slot."""
        ...

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[Character]:
        """Find a character by its globally unique name."""
        ...

    @abstractmethod
    def find_by_name_and_account(
        self, name: str, accountid: int
    ) -> Optional[Character]:
        """Find a character by name, only if it belongs to the account."""
        ...

    @abstractmethod
    def top_by_class(self, class_: int, limit: int = 10) -> list[Character]:
        """
        Leaderboard for a class.

        Ordered by experience descending. Characters with a non-zero
        oplevel (operators/GMs) never appear.
        """
        ...

    @abstractmethod
    def save_new(self, character: Character) -> int:
        """
        Insert a full character row.

        Returns:
            The new charid

        Raises:
            DuplicateName: The name is already taken
            SlotOccupied: The account already uses this slot
        """
        ...

    @abstractmethod
    def save_existing(self, character: Character) -> None:
        """
        Overwrite a full character row keyed by charid.

        Raises:
            NotFound: No character has this charid (nothing is inserted)
            DuplicateName: A rename collided with another character
        """
        ...

    @abstractmethod
    def delete_by_slot(self, accountid: int, name: str) -> None:
        """
        Delete one character of an account.

        Raises:
            NotFound: No row matched
        """
        ...


class PresenceTracker(ABC):
    """
    Abstract interface for online presence.

    A presence row's existence means "online". Writes are idempotent and
    deletes are tolerant of missing rows.
    """

    @abstractmethod
    def startup_recovery(self) -> tuple[int, int]:
        """
        Clear every online account and online character.

        Returns:
            (accounts cleared, characters cleared)
        """
        ...

    @abstractmethod
    def set_account_online(self, accountid: int) -> None:
        ...

    @abstractmethod
    def set_account_offline(self, accountid: int) -> None:
        ...

    @abstractmethod
    def set_all_accounts_offline(self) -> int:
        ...

    @abstractmethod
    def set_character_online(
        self, charid: int, tableid: int, arenaid: int, arenashortname: str
    ) -> None:
        """Insert presence or overwrite the location of an online character."""
        ...

    @abstractmethod
    def set_character_offline(self, charid: int) -> None:
        ...

    @abstractmethod
    def set_all_characters_offline(self) -> int:
        ...

    @abstractmethod
    def is_account_online(self, accountid: int) -> bool:
        ...

    @abstractmethod
    def find_character(self, charid: int) -> Optional[OnlineCharacter]:
        ...


class StatisticsAggregator(ABC):
    """
    Abstract interface for the overall and weekly statistics ledgers.

    Counters are accumulated atomically in the store; `hidden` is replaced
    with the latest value.
    """

    @abstractmethod
    def accumulate(
        self, charid: int, hidden: bool, deltas: StatisticsDelta
    ) -> None:
        """
        Add deltas to the overall ledger, inserting the row if absent.

        Raises:
            InvalidDelta: A counter increment is negative (nothing written)
        """
        ...

    @abstractmethod
    def accumulate_weekly(
        self, charid: int, window: date, hidden: bool, deltas: StatisticsDelta
    ) -> None:
        """
        Add deltas to the weekly ledger row for the given window key.

        Raises:
            InvalidDelta: A counter increment is negative (nothing written)
        """
        ...

    @abstractmethod
    def delete_for_character(self, charid: int) -> None:
        """Remove a character's history from both ledgers."""
        ...

    @abstractmethod
    def find_overall(self, charid: int) -> Optional[CharacterStatistics]:
        ...

    @abstractmethod
    def find_weekly(
        self, charid: int, window: date
    ) -> Optional[CharacterStatistics]:
        ...


class MatchRecorder(ABC):
    """Abstract interface for match creation records."""

    @abstractmethod
    def record_new(self, match: Match) -> int:
        """
        Insert a match creation record.

        Returns:
            The new matchid

        Raises:
            InvalidMatch: arenaid/tableid missing or max_players not positive
        """
        ...


class AccountRepository(ABC):
    """Abstract interface for account-level lookups."""

    @abstractmethod
    def is_serial_banned(self, serial: str) -> bool:
        ...


class ServerSettingsRepository(ABC):
    """Abstract interface for persisted server-wide settings."""

    @abstractmethod
    def set_exp_multiplier(self, multiplier: float) -> None:
        ...


@dataclass
class RepositorySet:
    """
    Collection of all repositories.

    Provides convenient access to all repository implementations.
    """
    characters: CharacterRepository
    presence: PresenceTracker
    statistics: StatisticsAggregator
    matches: MatchRecorder
    accounts: AccountRepository
    server_settings: ServerSettingsRepository
