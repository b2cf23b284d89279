"""
Database package initialization.

Exports commonly used components for convenient imports:
    from db import get_db, StockPosition, AnalysisNote, etc.
"""

from db.models import (
    DIRECTIONAL_PARENT_CATEGORIES,
    AnalysisNote,
    Base,
    DailyNote,
    NoteCategory,
    ParentCategory,
    PositionStatus,
    Sentiment,
    StockPosition,
)
from db.session import (
    DatabaseManager,
    get_db,
    init_db,
)
from db.repositories import (
    AnalysisNoteRepository,
    DailyNoteRepository,
    StockPositionRepository,
    UserScopedRepository,
)

__all__ = [
    # Models
    "DIRECTIONAL_PARENT_CATEGORIES",
    "AnalysisNote",
    "Base",
    "DailyNote",
    "NoteCategory",
    "ParentCategory",
    "PositionStatus",
    "Sentiment",
    "StockPosition",
    # Session management
    "DatabaseManager",
    "get_db",
    "init_db",
    # Repositories
    "AnalysisNoteRepository",
    "DailyNoteRepository",
    "StockPositionRepository",
    "UserScopedRepository",
]
