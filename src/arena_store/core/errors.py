"""
Error taxonomy for the arena store.

Every failure surfaced to callers is one of these classes; raw driver
exceptions are classified at the connection boundary and never leak out.

    ArenaStoreError
    ├── TransientStoreError        retry with backoff
    │   ├── StoreUnavailable
    │   └── PoolExhausted
    ├── StatementFailed            non-transient store error
    ├── NotFound
    ├── ConstraintViolation        resolve with the user
    │   ├── DuplicateName
    │   └── SlotOccupied
    ├── ValidationFailure          caller bug, never sent to the store
    │   ├── InvalidDelta
    │   └── InvalidMatch
    └── CatalogError               misconfiguration, fatal
        ├── UnknownQuery
        └── MissingParameter
"""

from typing import Any, Iterable, Optional

ERROR_CONNECTING = (
    "Error connecting to the database server. "
    "You should restart the game server and the database server."
)


class ArenaStoreError(Exception):
    """Base exception for all arena store errors."""

    code = "ARENA_STORE_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


# ---------------------------------------------------------------------------
# Transient
# ---------------------------------------------------------------------------

class TransientStoreError(ArenaStoreError):
    """The store could not be reached in time. Safe to retry with backoff."""

    retryable = True


class StoreUnavailable(TransientStoreError):
    """Connection failure, transport error, or statement timeout."""

    code = "STORE_UNAVAILABLE"

    def __init__(self, message: str = ERROR_CONNECTING):
        super().__init__(message)


class PoolExhausted(TransientStoreError):
    """No pooled connection became free within the configured wait."""

    code = "POOL_EXHAUSTED"

    def __init__(self, timeout: float):
        super().__init__(f"No database connection available after {timeout:g}s")
        self.timeout = timeout


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class StatementFailed(ArenaStoreError):
    """The store rejected a statement for a reason other than availability."""

    code = "STATEMENT_FAILED"


# ---------------------------------------------------------------------------
# Row presence
# ---------------------------------------------------------------------------

class NotFound(ArenaStoreError):
    """The row an operation requires does not exist."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any):
        super().__init__(f"{resource} not found: {identifier!r}")
        self.resource = resource
        self.identifier = identifier


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------

class ConstraintViolation(ArenaStoreError):
    """A unique constraint rejected an insert or update."""

    code = "CONSTRAINT_VIOLATION"

    def __init__(self, message: str, constraint: Optional[str] = None):
        super().__init__(message)
        self.constraint = constraint


class DuplicateName(ConstraintViolation):
    """Character names are globally unique."""

    code = "DUPLICATE_NAME"

    def __init__(self, name: str, constraint: Optional[str] = None):
        super().__init__(f"Character name already taken: {name!r}", constraint)
        self.name = name


class SlotOccupied(ConstraintViolation):
    """An account already has a character in this slot."""

    code = "SLOT_OCCUPIED"

    def __init__(self, accountid: int, slot: int, constraint: Optional[str] = None):
        super().__init__(
            f"Account {accountid} already has a character in slot {slot}", constraint
        )
        self.accountid = accountid
        self.slot = slot


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------

class ValidationFailure(ArenaStoreError):
    """Caller supplied invalid input."""

    code = "VALIDATION_ERROR"


class InvalidDelta(ValidationFailure):
    """A statistics delta contained a negative counter."""

    code = "INVALID_DELTA"

    def __init__(self, fields: Iterable[str]):
        self.fields = tuple(fields)
        super().__init__(
            "Statistics deltas must be non-negative: " + ", ".join(self.fields)
        )


class InvalidMatch(ValidationFailure):
    """A match record is missing required fields."""

    code = "INVALID_MATCH"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class CatalogError(ArenaStoreError):
    """The query catalog is misconfigured or misused."""

    code = "CATALOG_ERROR"


class UnknownQuery(CatalogError):
    """No template is registered under the requested name."""

    code = "UNKNOWN_QUERY"

    def __init__(self, name: str):
        super().__init__(f"Unknown query: {name!r}")
        self.name = name


class MissingParameter(CatalogError):
    """A template was bound without all of its named parameters."""

    code = "MISSING_PARAMETER"

    def __init__(self, query: str, missing: Iterable[str]):
        self.query = query
        self.missing = tuple(missing)
        super().__init__(
            f"Query {query!r} missing parameters: " + ", ".join(self.missing)
        )
