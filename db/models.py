"""
SQLAlchemy ORM Models for the Stock Analysis Journal.

Defines the three user-owned tables:
- Stock positions (tracked tickers with price/strategy/risk metadata)
- Analysis notes (catalyst / block / research notes attached to a position)
- Daily notes (free-text journal entries keyed by date)

Every row carries the owning user_id; repositories scope all queries by it.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import (
    JSON,
    DateTime,
    Enum as SQLEnum,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Current UTC instant (column default and onupdate hook)."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Primary key generator: random UUID4 as a string."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


def _enum_column(enum_cls: type[Enum], length: int = 20) -> SQLEnum:
    """Non-native enum column persisting member values (lowercase) rather than names."""
    return SQLEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
    )


class PositionStatus(str, Enum):
    """Lifecycle of a tracked position."""
    HOLDING = "holding"
    SOLD = "sold"
    WATCHING = "watching"


class NoteCategory(str, Enum):
    """Board column a note lives in."""
    CATALYST = "catalyst"   # Factor expected to drive the price
    BLOCK = "block"         # Obstacle to price movement
    RESEARCH = "research"   # Neutral research, never carries sentiment


class ParentCategory(str, Enum):
    """Fixed taxonomy for catalyst/block notes; research notes use GENERAL."""
    FINANCIAL = "financial"
    MANAGEMENT = "management"
    MARKET = "market"
    REGULATORY = "regulatory"
    OPERATIONAL = "operational"
    COMPETITIVE = "competitive"
    GENERAL = "general"


class Sentiment(str, Enum):
    """Directional view carried by catalyst and block notes."""
    BULLISH = "bullish"
    BEARISH = "bearish"


# Parent categories a catalyst/block note may be filed under (GENERAL excluded)
DIRECTIONAL_PARENT_CATEGORIES: tuple[ParentCategory, ...] = tuple(
    p for p in ParentCategory if p is not ParentCategory.GENERAL
)


class StockPosition(Base):
    """
    A tracked ticker: the root entity analysis notes attach to.

    Symbols are unique per user (enforced at service layer against the cached list).
    Price is kept as a decimal string fixed to 2 places, e.g. "182.50".
    """
    __tablename__ = "stock_positions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    symbol: Mapped[str] = mapped_column(String(5), nullable=False)
    price: Mapped[str] = mapped_column(String(12), nullable=False)
    position: Mapped[PositionStatus] = mapped_column(
        _enum_column(PositionStatus),
        nullable=False,
        default=PositionStatus.WATCHING,
    )
    strategy: Mapped[str] = mapped_column(String(50), nullable=False, default="General")
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="General")
    risk_level: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    position_size: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD format
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_stock_positions_user", "user_id"),
        Index("idx_stock_positions_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<StockPosition(id={self.id}, symbol={self.symbol}, position={self.position})>"


class AnalysisNote(Base):
    """
    Categorized analysis note attached to exactly one stock position.

    Invariant (enforced by the note service before every write):
        category == RESEARCH  <=>  sentiment is NULL and parent_category == GENERAL

    Fields:
        stock_id: Owning position (no FK cascade; the caller deletes notes first)
        symbol: Denormalized ticker of the owning position
        tags: Ordered JSON list of short strings
    """
    __tablename__ = "analysis_notes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    stock_id: Mapped[str] = mapped_column(String(36), nullable=False)
    symbol: Mapped[str] = mapped_column(String(5), nullable=False)
    category: Mapped[NoteCategory] = mapped_column(
        _enum_column(NoteCategory),
        nullable=False,
        default=NoteCategory.RESEARCH,
    )
    parent_category: Mapped[ParentCategory] = mapped_column(
        _enum_column(ParentCategory),
        nullable=False,
        default=ParentCategory.GENERAL,
    )
    sentiment: Mapped[Optional[Sentiment]] = mapped_column(
        _enum_column(Sentiment), nullable=True
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD format
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_analysis_notes_user", "user_id"),
        Index("idx_analysis_notes_stock", "stock_id"),
        Index("idx_analysis_notes_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AnalysisNote(id={self.id}, category={self.category}, title={self.title!r})>"


class DailyNote(Base):
    """Free-text journal entry keyed by date, independent of positions."""
    __tablename__ = "daily_notes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD format
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_daily_notes_user_date", "user_id", "date"),
    )

    def __repr__(self) -> str:
        return f"<DailyNote(id={self.id}, date={self.date})>"
