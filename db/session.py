"""
Database session management for the journal tables.

Each store call opens its own short transactional session. The default
backend is a local SQLite file; any SQLAlchemy URL can be configured.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base
from config import config


def _ensure_sqlite_dir(db_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    url = make_url(db_url)
    if url.get_backend_name() != "sqlite" or url.database in (None, "", ":memory:"):
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


class DatabaseManager:
    """
    Engine plus session factory for one database URL.

    Usage:
        db = DatabaseManager("sqlite:///db/journal.db")
        db.create_tables()
        with db.session() as session:
            StockPositionRepository(session, user.id).list_all()
    """

    def __init__(self, db_url: Path | str | None = None):
        self.db_url = str(db_url) if db_url else config.database.url
        _ensure_sqlite_dir(self.db_url)
        self.engine = create_engine(self.db_url, echo=False)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_tables(self) -> None:
        """Create the journal tables if they do not exist."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop the journal tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        """Close pooled connections."""
        self.engine.dispose()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        One transaction: commit on success, roll back and re-raise on error.

        Rows read inside stay loaded after the block (expire_on_commit=False).
        """
        session: Session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


_db_manager: DatabaseManager | None = None


def get_db(db_url: Path | str | None = None) -> DatabaseManager:
    """Shared manager for the process; db_url only applies on the first call."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager(db_url)
    return _db_manager


def init_db(db_url: Path | str | None = None, if_drop: bool = False) -> DatabaseManager:
    """
    Create the journal tables on the shared manager.

    Args:
        db_url: Optional custom database URL.
        if_drop: If True, drop existing tables before creating.
    """
    db = get_db(db_url)
    if if_drop:
        db.drop_tables()
    db.create_tables()
    return db
