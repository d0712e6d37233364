"""
PostgreSQL repository implementations.

Every statement comes from the query catalog and is bound through named
placeholders. Upserts and counter accumulation are single
INSERT ... ON CONFLICT statements, so concurrent callers are serialized by
the store's row locks rather than by any in-process lock.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Optional

from ..core.errors import (
    ConstraintViolation,
    DuplicateName,
    InvalidDelta,
    InvalidMatch,
    NotFound,
    SlotOccupied,
    ValidationFailure,
)
from ..core.models import (
    Character,
    CharacterStatistics,
    Match,
    OnlineCharacter,
    StatisticsDelta,
)
from .base import (
    AccountRepository,
    CharacterRepository,
    MatchRecorder,
    PresenceTracker,
    ServerSettingsRepository,
    StatisticsAggregator,
)

if TYPE_CHECKING:
    from ..pg_connection import ConnectionManager
    from ..queries import QueryCatalog, Template

logger = logging.getLogger(__name__)


# Unique constraint names declared in schema.sql
NAME_CONSTRAINT = "characters_name_key"
SLOT_CONSTRAINT = "characters_accountid_slot_key"


class _PostgresRepository:
    """Shared wiring: resolves this repository's templates up front."""

    QUERIES: tuple[str, ...] = ()

    def __init__(self, db: "ConnectionManager", catalog: "QueryCatalog"):
        self.db = db
        # Unknown names fail here, at construction, not on first use.
        self._queries = {name: catalog.get(name) for name in self.QUERIES}

    def _q(self, name: str) -> "Template":
        return self._queries[name]


class PostgresCharacterRepository(_PostgresRepository, CharacterRepository):
    """PostgreSQL implementation for character records."""

    QUERIES = (
        "character.find_by_slot",
        "character.find_by_name",
        "character.find_by_name_and_account",
        "character.top_by_class",
        "character.save_new",
        "character.save_existing",
        "character.delete",
    )

    def _find(self, query: str, params: dict[str, Any]) -> Optional[Character]:
        row = self.db.fetchone(self._q(query), params)
        return Character.from_row(row) if row else None

    def find_by_slot(self, accountid: int, slot: int) -> Optional[Character]:
        return self._find("character.find_by_slot", {"accountid": accountid, "slot": slot})

    def find_by_name(self, name: str) -> Optional[Character]:
        return self._find("character.find_by_name", {"name": name})

    def find_by_name_and_account(
        self, name: str, accountid: int
    ) -> Optional[Character]:
        return self._find(
            "character.find_by_name_and_account",
            {"name": name, "accountid": accountid},
        )

    def top_by_class(self, class_: int, limit: int = 10) -> list[Character]:
        if limit < 1:
            raise ValidationFailure(f"Leaderboard limit must be positive, got {limit}")
        rows = self.db.fetchall(
            self._q("character.top_by_class"), {"class": class_, "limit": limit}
        )
        return [Character.from_row(row) for row in rows]

    @staticmethod
    def _constraint_error(
        exc: ConstraintViolation, character: Character
    ) -> ConstraintViolation:
        """Translate a unique violation into DuplicateName / SlotOccupied."""
        constraint = (exc.constraint or "").lower()
        if constraint == SLOT_CONSTRAINT or "slot" in constraint:
            return SlotOccupied(character.accountid, character.slot, exc.constraint)
        if constraint == NAME_CONSTRAINT or "name" in constraint:
            return DuplicateName(character.name, exc.constraint)
        return exc

    def save_new(self, character: Character) -> int:
        """Insert a full row and return the assigned charid."""
        try:
            row = self.db.fetchone(self._q("character.save_new"), character.to_params())
        except ConstraintViolation as e:
            raise self._constraint_error(e, character) from e

        charid = row["charid"]
        logger.info(
            "Created character %d (account %d, slot %d)",
            charid, character.accountid, character.slot,
        )
        return charid

    def save_existing(self, character: Character) -> None:
        """Overwrite a full row; never inserts."""
        if character.charid is None:
            raise NotFound("Character", character.name)

        try:
            updated = self.db.execute(
                self._q("character.save_existing"), character.to_params()
            )
        except ConstraintViolation as e:
            raise self._constraint_error(e, character) from e

        if updated == 0:
            raise NotFound("Character", character.charid)

    def delete_by_slot(self, accountid: int, name: str) -> None:
        deleted = self.db.execute(
            self._q("character.delete"), {"accountid": accountid, "name": name}
        )
        if deleted == 0:
            raise NotFound("Character", (accountid, name))
        logger.info("Deleted character %r of account %d", name, accountid)


class PostgresPresenceTracker(_PostgresRepository, PresenceTracker):
    """PostgreSQL implementation for online accounts and characters."""

    QUERIES = (
        "presence.account_online",
        "presence.account_offline",
        "presence.all_accounts_offline",
        "presence.is_account_online",
        "presence.character_online",
        "presence.character_offline",
        "presence.all_characters_offline",
        "presence.find_character",
    )

    def startup_recovery(self) -> tuple[int, int]:
        """Drop every presence row left behind by a previous process."""
        with self.db.connection() as conn:
            accounts = self.db.execute(self._q("presence.all_accounts_offline"), conn=conn)
            characters = self.db.execute(
                self._q("presence.all_characters_offline"), conn=conn
            )
        logger.info(
            "Startup recovery cleared %d online accounts and %d online characters",
            accounts, characters,
        )
        return accounts, characters

    def set_account_online(self, accountid: int) -> None:
        self.db.execute(self._q("presence.account_online"), {"accountid": accountid})

    def set_account_offline(self, accountid: int) -> None:
        self.db.execute(self._q("presence.account_offline"), {"accountid": accountid})

    def set_all_accounts_offline(self) -> int:
        return self.db.execute(self._q("presence.all_accounts_offline"))

    def set_character_online(
        self, charid: int, tableid: int, arenaid: int, arenashortname: str
    ) -> None:
        self.db.execute(
            self._q("presence.character_online"),
            {
                "charid": charid,
                "tableid": tableid,
                "arenaid": arenaid,
                "arenashortname": arenashortname,
            },
        )

    def set_character_offline(self, charid: int) -> None:
        self.db.execute(self._q("presence.character_offline"), {"charid": charid})

    def set_all_characters_offline(self) -> int:
        return self.db.execute(self._q("presence.all_characters_offline"))

    def is_account_online(self, accountid: int) -> bool:
        row = self.db.fetchone(
            self._q("presence.is_account_online"), {"accountid": accountid}
        )
        return row is not None

    def find_character(self, charid: int) -> Optional[OnlineCharacter]:
        row = self.db.fetchone(self._q("presence.find_character"), {"charid": charid})
        return OnlineCharacter.model_validate(row) if row else None


class PostgresStatisticsAggregator(_PostgresRepository, StatisticsAggregator):
    """PostgreSQL implementation for the overall and weekly ledgers."""

    QUERIES = (
        "statistics.overall_accumulate",
        "statistics.weekly_accumulate",
        "statistics.overall_delete",
        "statistics.weekly_delete",
        "statistics.overall_find",
        "statistics.weekly_find",
    )

    def _accumulate(
        self, query: str, params: dict[str, Any], deltas: StatisticsDelta
    ) -> None:
        negative = deltas.negative_fields()
        if negative:
            raise InvalidDelta(negative)
        self.db.execute(self._q(query), {**params, **deltas.to_params()})

    def accumulate(
        self, charid: int, hidden: bool, deltas: StatisticsDelta
    ) -> None:
        self._accumulate(
            "statistics.overall_accumulate",
            {"charid": charid, "hidden": bool(hidden)},
            deltas,
        )

    def accumulate_weekly(
        self, charid: int, window: date, hidden: bool, deltas: StatisticsDelta
    ) -> None:
        if isinstance(window, datetime):
            window = window.date()
        self._accumulate(
            "statistics.weekly_accumulate",
            {"charid": charid, "date": window, "hidden": bool(hidden)},
            deltas,
        )

    def delete_for_character(self, charid: int) -> None:
        with self.db.connection() as conn:
            self.db.execute(self._q("statistics.overall_delete"), {"charid": charid}, conn=conn)
            self.db.execute(self._q("statistics.weekly_delete"), {"charid": charid}, conn=conn)

    def find_overall(self, charid: int) -> Optional[CharacterStatistics]:
        row = self.db.fetchone(self._q("statistics.overall_find"), {"charid": charid})
        return CharacterStatistics.from_row(row) if row else None

    def find_weekly(
        self, charid: int, window: date
    ) -> Optional[CharacterStatistics]:
        if isinstance(window, datetime):
            window = window.date()
        row = self.db.fetchone(
            self._q("statistics.weekly_find"), {"charid": charid, "date": window}
        )
        return CharacterStatistics.from_row(row) if row else None


class PostgresMatchRecorder(_PostgresRepository, MatchRecorder):
    """PostgreSQL implementation for match creation records."""

    QUERIES = ("match.record_new",)

    @staticmethod
    def _validate(match: Match) -> None:
        problems = []
        if match.arenaid is None:
            problems.append("arenaid is required")
        if match.tableid is None:
            problems.append("tableid is required")
        if match.max_players <= 0:
            problems.append(f"max_players must be positive, got {match.max_players}")
        if problems:
            raise InvalidMatch("; ".join(problems))

    def record_new(self, match: Match) -> int:
        self._validate(match)
        row = self.db.fetchone(self._q("match.record_new"), match.to_params())
        matchid = row["matchid"]
        logger.info(
            "Recorded match %d (arena %s, table %s)", matchid, match.arenaid, match.tableid
        )
        return matchid


class PostgresAccountRepository(_PostgresRepository, AccountRepository):
    """PostgreSQL implementation for account lookups."""

    QUERIES = ("account.is_serial_banned",)

    def is_serial_banned(self, serial: str) -> bool:
        row = self.db.fetchone(self._q("account.is_serial_banned"), {"serial": serial})
        return row is not None


class PostgresServerSettingsRepository(_PostgresRepository, ServerSettingsRepository):
    """PostgreSQL implementation for server-wide settings."""

    QUERIES = ("server_settings.set_exp_multiplier",)

    def set_exp_multiplier(self, multiplier: float) -> None:
        if multiplier <= 0:
            raise ValidationFailure(
                f"Experience multiplier must be positive, got {multiplier}"
            )
        updated = self.db.execute(
            self._q("server_settings.set_exp_multiplier"),
            {"exp_multiplier": multiplier},
        )
        if updated == 0:
            raise NotFound("Server settings", "exp_multiplier")
        logger.info("Experience multiplier set to %s", multiplier)
