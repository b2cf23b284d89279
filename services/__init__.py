"""
Services layer for business logic orchestration.

Provides reusable services that can be consumed by the CLI and Streamlit.
"""

from services.auth_service import AuthSession, User, user_for_email
from services.categorization import (
    DropTarget,
    MoveResult,
    apply_category_change,
    build_board,
    handle_drop,
    reclassify,
)
from services.daily_note_service import DailyNoteStore
from services.errors import (
    ErrorType,
    JournalError,
    NotAuthenticatedError,
    RecordNotFound,
    StoreError,
    ValidationFailed,
)
from services.journal_service import (
    DeletePositionResult,
    PositionSummary,
    StockJournal,
    positions_frame,
)
from services.note_service import AnalysisNoteStore
from services.position_service import StockPositionStore
from services.schemas import (
    DailyNoteRecord,
    NewAnalysisNote,
    NewDailyNote,
    NewStockPosition,
    NoteRecord,
    PositionRecord,
)
from services.store import StoreState, StoreStatus

__all__ = [
    # Auth
    "AuthSession",
    "User",
    "user_for_email",
    # Categorization
    "DropTarget",
    "MoveResult",
    "apply_category_change",
    "build_board",
    "handle_drop",
    "reclassify",
    # Stores
    "AnalysisNoteStore",
    "DailyNoteStore",
    "StockPositionStore",
    "StoreState",
    "StoreStatus",
    # Errors
    "ErrorType",
    "JournalError",
    "NotAuthenticatedError",
    "RecordNotFound",
    "StoreError",
    "ValidationFailed",
    # Journal
    "DeletePositionResult",
    "PositionSummary",
    "StockJournal",
    "positions_frame",
    # DTOs
    "DailyNoteRecord",
    "NewAnalysisNote",
    "NewDailyNote",
    "NewStockPosition",
    "NoteRecord",
    "PositionRecord",
]
