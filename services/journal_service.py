"""
Journal Service - Ties the stores together for the dashboard and the CLI.

Provides:
- A StockJournal holding the position, note and daily-note stores bound to one
  auth session
- Per-position note counts (catalysts / blockers / research)
- Search over symbol and strategy
- The notes-then-position cascade delete
- pandas frames for the sortable / groupable positions table
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

import pandas as pd

from db import DatabaseManager, NoteCategory, get_db
from services.auth_service import AuthSession
from services.daily_note_service import DailyNoteStore
from services.errors import RecordNotFound
from services.note_service import AnalysisNoteStore
from services.position_service import StockPositionStore
from services.schemas import NewAnalysisNote, NoteRecord, PositionRecord


logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Result DTOs
# ──────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PositionSummary:
    """A position with the counts of notes attached to it."""
    position: PositionRecord
    catalysts_count: int = 0
    blockers_count: int = 0
    research_count: int = 0

    @property
    def notes_count(self) -> int:
        return self.catalysts_count + self.blockers_count + self.research_count

    @property
    def symbol(self) -> str:
        return self.position.symbol


@dataclass
class DeletePositionResult:
    """Result object for the notes-then-position delete."""
    symbol: str | None
    notes_deleted: int
    errors: list[str] = field(default_factory=list)
    status_message: str = ""

    @property
    def success(self) -> bool:
        return len(self.errors) == 0


# ──────────────────────────────────────────────────────────────────────────────
# Aggregation
# ──────────────────────────────────────────────────────────────────────────────


def summarize_positions(
    positions: Iterable[PositionRecord],
    notes: Iterable[NoteRecord],
) -> list[PositionSummary]:
    """Attach catalyst / blocker / research counts to each position (position order kept)."""
    counts: dict[str, dict[NoteCategory, int]] = {}
    for note in notes:
        per_category = counts.setdefault(note.stock_id, {})
        per_category[note.category] = per_category.get(note.category, 0) + 1

    summaries = []
    for position in positions:
        per_category = counts.get(position.id, {})
        summaries.append(
            PositionSummary(
                position=position,
                catalysts_count=per_category.get(NoteCategory.CATALYST, 0),
                blockers_count=per_category.get(NoteCategory.BLOCK, 0),
                research_count=per_category.get(NoteCategory.RESEARCH, 0),
            )
        )
    return summaries


def filter_summaries(summaries: Iterable[PositionSummary], search: str) -> list[PositionSummary]:
    """Case-insensitive substring match on symbol or strategy; blank search keeps all."""
    summaries = list(summaries)
    term = (search or "").strip().lower()
    if not term:
        return summaries
    return [
        s for s in summaries
        if term in s.position.symbol.lower() or term in s.position.strategy.lower()
    ]


TABLE_COLUMNS = [
    "id",
    "symbol",
    "strategy",
    "price",
    "position",
    "category",
    "risk_level",
    "position_size",
    "catalysts",
    "blockers",
    "research",
    "total_notes",
    "date",
]


def positions_frame(
    summaries: Iterable[PositionSummary],
    sort_by: str | None = None,
    ascending: bool = True,
) -> pd.DataFrame:
    """
    Build the positions table.

    Args:
        summaries: Positions with note counts
        sort_by: Optional column from TABLE_COLUMNS
        ascending: Sort direction

    Returns:
        DataFrame with one row per position (price as float for sorting).
    """
    records = [
        {
            "id": s.position.id,
            "symbol": s.position.symbol,
            "strategy": s.position.strategy,
            "price": float(s.position.price),
            "position": s.position.position.value,
            "category": s.position.category,
            "risk_level": s.position.risk_level,
            "position_size": s.position.position_size,
            "catalysts": s.catalysts_count,
            "blockers": s.blockers_count,
            "research": s.research_count,
            "total_notes": s.notes_count,
            "date": s.position.date,
        }
        for s in summaries
    ]
    df = pd.DataFrame.from_records(records, columns=TABLE_COLUMNS)

    if sort_by:
        if sort_by not in TABLE_COLUMNS:
            raise ValueError(f"Cannot sort by {sort_by!r}")
        df = df.sort_values(sort_by, ascending=ascending, kind="stable").reset_index(drop=True)
    return df


def group_positions(df: pd.DataFrame, group_by: str) -> dict[str, pd.DataFrame]:
    """Split the positions table into one frame per value of group_by (row order kept)."""
    if group_by not in df.columns:
        raise ValueError(f"Cannot group by {group_by!r}")
    return {
        str(key): group.reset_index(drop=True)
        for key, group in df.groupby(group_by, sort=True)
    }


def note_counts_frame(summaries: Iterable[PositionSummary]) -> pd.DataFrame:
    """Long-format counts (symbol, category, count) for charting."""
    rows = []
    for s in summaries:
        rows.extend([
            {"symbol": s.symbol, "category": "Catalysts", "count": s.catalysts_count},
            {"symbol": s.symbol, "category": "Blockers", "count": s.blockers_count},
            {"symbol": s.symbol, "category": "Research", "count": s.research_count},
        ])
    return pd.DataFrame.from_records(rows, columns=["symbol", "category", "count"])


# ──────────────────────────────────────────────────────────────────────────────
# Journal
# ──────────────────────────────────────────────────────────────────────────────


class StockJournal:
    """
    The three stores bound to one auth session.

    Usage:
        journal = StockJournal()
        journal.auth.sign_in("me@example.com")   # stores fetch on sign-in
        journal.summaries(search="tech")
    """

    def __init__(self, db: DatabaseManager | None = None, auth: AuthSession | None = None):
        self.db = db if db is not None else get_db()
        self.auth = auth if auth is not None else AuthSession()
        self.positions = StockPositionStore(self.db)
        self.notes = AnalysisNoteStore(self.db)
        self.daily_notes = DailyNoteStore(self.db)
        for store in (self.positions, self.notes, self.daily_notes):
            self.auth.subscribe(store.bind_user)

    @property
    def loading(self) -> bool:
        """True while both positions and notes are still loading."""
        return self.positions.loading and self.notes.loading

    @property
    def error_message(self) -> str | None:
        """First recorded position/note error, for a banner."""
        for error in (self.positions.error, self.notes.error):
            if error is not None:
                return error.message
        return None

    def clear_errors(self) -> None:
        self.positions.clear_error()
        self.notes.clear_error()

    def refresh(self) -> None:
        """Full refetch of every store."""
        for store in (self.positions, self.notes, self.daily_notes):
            store.refetch()

    def summaries(self, search: str = "") -> list[PositionSummary]:
        """Positions with note counts, filtered by search."""
        return filter_summaries(
            summarize_positions(self.positions.rows, self.notes.rows),
            search,
        )

    def notes_for_symbol(self, symbol: str) -> list[NoteRecord]:
        """Notes shown on the board for a selected position."""
        return self.notes.for_symbol(symbol)

    def add_note_for_symbol(self, symbol: str, new_note: NewAnalysisNote) -> NoteRecord:
        """Attach a note to the cached position with this symbol."""
        position = self.positions.get_by_symbol(symbol)
        if position is None:
            raise RecordNotFound("Stock position not found")
        return self.notes.add(position.id, position.symbol, new_note)

    def delete_position(self, position_id: str) -> DeletePositionResult:
        """
        Delete a position and all of its notes.

        Notes go first; if that fails the position is left intact. If the
        position delete then fails the notes stay deleted (no rollback).
        """
        position = self.positions.get(position_id)
        if position is None:
            return DeletePositionResult(
                symbol=None,
                notes_deleted=0,
                errors=[f"Position {position_id} not found"],
                status_message="❌ Position not found",
            )

        notes_deleted = 0
        try:
            notes_deleted = self.notes.delete_all_for_position(position.id)
            self.positions.delete(position.id)
        except Exception as e:
            logger.error(f"Failed to delete position {position.symbol}: {e}")
            return DeletePositionResult(
                symbol=position.symbol,
                notes_deleted=notes_deleted,
                errors=[str(e) or "Failed to delete position"],
                status_message=f"❌ Failed to delete {position.symbol}: {e}",
            )

        return DeletePositionResult(
            symbol=position.symbol,
            notes_deleted=notes_deleted,
            status_message=f"✅ Deleted {position.symbol} and all related notes",
        )
