"""
Repository pattern for data access operations.

Each repository is bound to one session and one owning user. Every query is
filtered by that user_id, standing in for the row-level security of a hosted
backend. Per table the repositories expose the same four operation shapes:

    list_all  - select all rows, ordered
    insert    - insert one row, returning the stored row
    update    - update one row by id, returning the stored row (None if absent)
    delete    - delete one row by id
"""

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from db.models import AnalysisNote, Base, DailyNote, StockPosition


ModelT = TypeVar("ModelT", bound=Base)


class UserScopedRepository(Generic[ModelT]):
    """Base repository with the four user-scoped operation shapes."""

    model: type[ModelT]

    def __init__(self, session: Session, user_id: str):
        self.session = session
        self.user_id = user_id

    def _ordering(self) -> tuple:
        """Columns for list_all ordering (newest first)."""
        return (self.model.timestamp.desc(),)

    def list_all(self) -> Sequence[ModelT]:
        """Get all rows owned by the user, newest first."""
        stmt = (
            select(self.model)
            .where(self.model.user_id == self.user_id)
            .order_by(*self._ordering())
        )
        return self.session.scalars(stmt).all()

    def get_by_id(self, row_id: str) -> ModelT | None:
        """Get a row by ID (None if missing or owned by someone else)."""
        stmt = select(self.model).where(
            self.model.id == row_id,
            self.model.user_id == self.user_id,
        )
        return self.session.scalar(stmt)

    def insert(self, **values: Any) -> ModelT:
        """Insert one row and return it with defaults populated."""
        row = self.model(user_id=self.user_id, **values)
        self.session.add(row)
        self.session.flush()
        self.session.refresh(row)
        return row

    def update(self, row_id: str, **values: Any) -> ModelT | None:
        """Apply the given fields to one row and return the stored copy."""
        row = self.get_by_id(row_id)
        if row is None:
            return None
        for column, value in values.items():
            setattr(row, column, value)
        self.session.flush()
        self.session.refresh(row)
        return row

    def delete(self, row_id: str) -> bool:
        """Delete one row by ID. Returns False if nothing matched."""
        stmt = delete(self.model).where(
            self.model.id == row_id,
            self.model.user_id == self.user_id,
        )
        result = self.session.execute(stmt)
        return result.rowcount > 0


class StockPositionRepository(UserScopedRepository[StockPosition]):
    """Repository for the stock_positions table."""

    model = StockPosition


class AnalysisNoteRepository(UserScopedRepository[AnalysisNote]):
    """Repository for the analysis_notes table."""

    model = AnalysisNote

    def delete_by_stock(self, stock_id: str) -> int:
        """Delete every note attached to a position. Returns rows removed."""
        stmt = delete(AnalysisNote).where(
            AnalysisNote.user_id == self.user_id,
            AnalysisNote.stock_id == stock_id,
        )
        result = self.session.execute(stmt)
        return result.rowcount


class DailyNoteRepository(UserScopedRepository[DailyNote]):
    """Repository for the daily_notes table (ordered by journal date)."""

    model = DailyNote

    def _ordering(self) -> tuple:
        return (DailyNote.date.desc(), DailyNote.created_at.desc())
