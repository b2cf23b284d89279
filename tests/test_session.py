"""
Tests for the database manager: file creation and transaction boundaries.
"""
import pytest

from db import DatabaseManager, StockPositionRepository
from services.auth_service import user_for_email


def test_missing_sqlite_directory_is_created(tmp_path):
    path = tmp_path / "nested" / "data" / "journal.db"
    manager = DatabaseManager(f"sqlite:///{path}")
    manager.create_tables()

    assert path.parent.is_dir()
    assert path.exists()
    manager.dispose()


def test_in_memory_url_needs_no_directory():
    manager = DatabaseManager("sqlite:///:memory:")
    manager.create_tables()
    manager.dispose()


def test_session_rolls_back_on_error(db):
    user = user_for_email("trader@example.com")

    with pytest.raises(RuntimeError):
        with db.session() as session:
            StockPositionRepository(session, user.id).insert(
                symbol="AAPL", price="182.50", date="2025-01-06"
            )
            raise RuntimeError("abort")

    with db.session() as session:
        assert StockPositionRepository(session, user.id).list_all() == []
