"""Shared test fixtures for the stock journal services."""

import pytest

from db import DatabaseManager
from services.auth_service import AuthSession, user_for_email
from services.daily_note_service import DailyNoteStore
from services.journal_service import StockJournal
from services.note_service import AnalysisNoteStore
from services.position_service import StockPositionStore
from services.schemas import NewAnalysisNote, NewStockPosition


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database per test."""
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'test.db'}")
    manager.create_tables()
    yield manager
    manager.dispose()


@pytest.fixture
def user():
    return user_for_email("trader@example.com")


@pytest.fixture
def positions(db, user):
    return StockPositionStore(db, user=user)


@pytest.fixture
def notes(db, user):
    return AnalysisNoteStore(db, user=user)


@pytest.fixture
def daily_notes(db, user):
    return DailyNoteStore(db, user=user)


@pytest.fixture
def journal(db):
    auth = AuthSession()
    journal = StockJournal(db, auth)
    auth.sign_in("trader@example.com")
    return journal


@pytest.fixture
def aapl(positions):
    return positions.add(NewStockPosition(symbol="aapl", price="182.5", strategy="Long-term growth"))


def catalyst(title="Services growth", parent="financial", sentiment="bullish", **kwargs):
    """Catalyst note input with sensible defaults."""
    return NewAnalysisNote(
        title=title,
        description=kwargs.pop("description", "Services revenue keeps compounding."),
        category="catalyst",
        parent_category=parent,
        sentiment=sentiment,
        **kwargs,
    )


def research(title="Supplier checks", **kwargs):
    """Research note input with sensible defaults."""
    return NewAnalysisNote(
        title=title,
        description=kwargs.pop("description", "Channel checks look steady."),
        category="research",
        **kwargs,
    )
