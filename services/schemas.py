"""
Input and snapshot DTOs for the journal services.

Inputs (New*) are what forms and the CLI hand to the stores. Records are the
immutable cached copies of stored rows that the stores expose to callers.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from db.models import (
    AnalysisNote,
    DailyNote,
    NoteCategory,
    ParentCategory,
    PositionStatus,
    Sentiment,
    StockPosition,
)
from config import config


def today_iso() -> str:
    """Today's date as YYYY-MM-DD."""
    return date.today().isoformat()


# ──────────────────────────────────────────────────────────────────────────────
# Inputs
# ──────────────────────────────────────────────────────────────────────────────


@dataclass
class NewStockPosition:
    """Candidate position as entered by the user (price is raw text)."""
    symbol: str
    price: str
    position: PositionStatus | str = PositionStatus.WATCHING
    strategy: str = config.position_defaults.strategy
    category: str = config.position_defaults.category
    date: str = field(default_factory=today_iso)
    risk_level: int = config.position_defaults.risk_level
    position_size: float = config.position_defaults.position_size


@dataclass
class NewAnalysisNote:
    """
    Candidate analysis note.

    Tags are entered as comma-separated text, e.g. "earnings, tech".
    """
    title: str
    description: str
    category: NoteCategory | str = NoteCategory.RESEARCH
    parent_category: ParentCategory | str = ParentCategory.GENERAL
    sentiment: Sentiment | str | None = None
    date: str = field(default_factory=today_iso)
    tags: str = ""


@dataclass
class NewDailyNote:
    """Candidate daily journal entry."""
    content: str
    date: str = field(default_factory=today_iso)


# ──────────────────────────────────────────────────────────────────────────────
# Cached snapshots
# ──────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class PositionRecord:
    """Immutable copy of a stored stock position."""
    id: str
    symbol: str
    price: str
    position: PositionStatus
    strategy: str
    category: str
    risk_level: int
    position_size: float
    date: str
    timestamp: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: StockPosition) -> "PositionRecord":
        defaults = config.position_defaults
        return cls(
            id=row.id,
            symbol=row.symbol,
            price=row.price,
            position=PositionStatus(row.position),
            strategy=row.strategy or defaults.strategy,
            category=row.category or defaults.category,
            risk_level=row.risk_level or defaults.risk_level,
            position_size=row.position_size or defaults.position_size,
            date=row.date,
            timestamp=row.timestamp,
            updated_at=row.updated_at,
        )


@dataclass(frozen=True)
class NoteRecord:
    """Immutable copy of a stored analysis note."""
    id: str
    stock_id: str
    symbol: str
    category: NoteCategory
    parent_category: ParentCategory
    sentiment: Sentiment | None
    title: str
    description: str
    date: str
    timestamp: datetime
    tags: tuple[str, ...] = ()
    updated_at: datetime | None = None

    @property
    def container_id(self) -> str:
        """Board container this note currently sits in, e.g. "catalyst-financial"."""
        return f"{self.category.value}-{self.parent_category.value}"

    @classmethod
    def from_row(cls, row: AnalysisNote) -> "NoteRecord":
        return cls(
            id=row.id,
            stock_id=row.stock_id,
            symbol=row.symbol,
            category=NoteCategory(row.category),
            parent_category=ParentCategory(row.parent_category),
            sentiment=Sentiment(row.sentiment) if row.sentiment else None,
            title=row.title,
            description=row.description,
            date=row.date,
            timestamp=row.timestamp,
            tags=tuple(row.tags) if isinstance(row.tags, list) else (),
            updated_at=row.updated_at,
        )


@dataclass(frozen=True)
class DailyNoteRecord:
    """Immutable copy of a stored daily note."""
    id: str
    user_id: str
    date: str
    content: str
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: DailyNote) -> "DailyNoteRecord":
        return cls(
            id=row.id,
            user_id=row.user_id,
            date=row.date,
            content=row.content,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
