"""
Cache store base class shared by the position, note and daily-note stores.

A store keeps an in-memory copy of one table's rows for the signed-in user.
Its state is an immutable snapshot replaced wholesale on every change:

    StoreState(status=LOADING | READY | ERROR, rows=(...), last_error=StoreError | None)

Rules every store follows:
- nothing touches the database until a user is bound; until then the store
  reports LOADING with no rows
- binding a user triggers one full fetch that replaces the cached rows
- mutations update the cache by id only after the database call succeeds
- a failed operation leaves the rows untouched and records last_error;
  mutations also re-raise to the caller, a failed fetch only records
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Generic, Iterator, TypeVar

from sqlalchemy.orm import Session

from db import DatabaseManager, UserScopedRepository, get_db
from services.auth_service import User
from services.errors import (
    ErrorType,
    NotAuthenticatedError,
    RecordNotFound,
    StoreError,
    ValidationFailed,
    classify_exception,
    describe_exception,
)


logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


class StoreStatus(str, Enum):
    """Freshness of a store's cached rows."""
    LOADING = "loading"  # No fetch completed for the current user yet
    READY = "ready"      # Rows reflect the last successful fetch plus confirmed mutations
    ERROR = "error"      # Last fetch failed; rows are from the previous fetch


@dataclass(frozen=True)
class StoreState(Generic[RecordT]):
    """Immutable snapshot of a store."""
    status: StoreStatus = StoreStatus.LOADING
    rows: tuple[RecordT, ...] = ()
    last_error: StoreError | None = None


class CacheStore(Generic[RecordT]):
    """
    Base class for user-scoped table caches.

    Subclasses set repository_cls, record_cls and entity (plural noun used in
    messages, e.g. "positions").
    """

    repository_cls: type[UserScopedRepository]
    record_cls: type
    entity: str = "rows"
    label: str = "Row"

    def __init__(self, db: DatabaseManager | None = None, user: User | None = None):
        self.db = db if db is not None else get_db()
        self._user: User | None = None
        self._state: StoreState[RecordT] = StoreState()
        if user is not None:
            self.bind_user(user)

    # ──────────────────────────────────────────────────────────────────────
    # Read-only views
    # ──────────────────────────────────────────────────────────────────────

    @property
    def state(self) -> StoreState[RecordT]:
        return self._state

    @property
    def rows(self) -> tuple[RecordT, ...]:
        return self._state.rows

    @property
    def loading(self) -> bool:
        return self._state.status is StoreStatus.LOADING

    @property
    def error(self) -> StoreError | None:
        return self._state.last_error

    @property
    def user(self) -> User | None:
        return self._user

    def get(self, row_id: str) -> RecordT | None:
        """Cached row by id."""
        return next((r for r in self._state.rows if r.id == row_id), None)

    # ──────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────────────────────────────

    def bind_user(self, user: User | None) -> None:
        """Attach the store to a user (or detach with None) and fetch once."""
        if user == self._user and self._state.status is not StoreStatus.LOADING:
            return
        self._user = user
        self._state = StoreState()
        if user is not None:
            self.refetch()

    def refetch(self) -> StoreState[RecordT]:
        """Replace the cached rows with a full fetch. A failure is recorded and the previous rows kept."""
        if self._user is None:
            return self._state

        try:
            with self.db.session() as session:
                rows = self._repository(session).list_all()
                records = tuple(self.record_cls.from_row(row) for row in rows)
        except Exception as e:
            error = self._record_failure(e, f"fetch {self.entity}")
            self._state = replace(self._state, status=StoreStatus.ERROR, last_error=error)
            return self._state

        self._state = StoreState(status=StoreStatus.READY, rows=records, last_error=None)
        logger.info(f"Fetched {len(records)} {self.entity} for {self._user.email}")
        return self._state

    def clear_error(self) -> None:
        self._state = replace(self._state, last_error=None)

    # ──────────────────────────────────────────────────────────────────────
    # Helpers for subclasses
    # ──────────────────────────────────────────────────────────────────────

    def _repository(self, session: Session) -> UserScopedRepository:
        return self.repository_cls(session, self._user.id)

    def _require_user(self, action: str) -> User:
        """Current user, or record and raise NotAuthenticatedError."""
        if self._user is None:
            error = NotAuthenticatedError(f"User must be logged in to {action}")
            self._state = replace(
                self._state, last_error=StoreError(error.message, error.error_type)
            )
            raise error
        return self._user

    def _reject(self, message: str) -> None:
        """Record a validation failure and raise it; no database call is made."""
        self._state = replace(
            self._state, last_error=StoreError(message, ErrorType.VALIDATION)
        )
        logger.warning(f"Rejected {self.entity} input: {message}")
        raise ValidationFailed(message)

    def _not_found(self, row_id: str) -> RecordNotFound:
        return RecordNotFound(f"{self.label} {row_id} not found")

    def _record_failure(self, exc: BaseException, action: str) -> StoreError:
        error = StoreError(describe_exception(exc, action), classify_exception(exc))
        logger.error(f"{error.message} [{error.type.value}]")
        return error

    @contextmanager
    def _operation(self, action: str) -> Iterator[None]:
        """
        Wrap one database round-trip.

        Clears the previous error first; on failure records the classified
        error and re-raises without touching the cached rows.
        """
        self.clear_error()
        try:
            yield
        except Exception as e:
            error = self._record_failure(e, action)
            self._state = replace(self._state, last_error=error)
            raise

    def _prepend(self, record: RecordT) -> None:
        self._state = replace(self._state, rows=(record,) + self._state.rows)

    def _replace(self, record: RecordT) -> None:
        rows = tuple(record if r.id == record.id else r for r in self._state.rows)
        self._state = replace(self._state, rows=rows)

    def _remove_where(self, predicate: Callable[[RecordT], bool]) -> None:
        rows = tuple(r for r in self._state.rows if not predicate(r))
        self._state = replace(self._state, rows=rows)
