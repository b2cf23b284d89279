"""
Position Service - Cached CRUD over the user's stock positions.

This service layer provides:
- Validation and normalization of new positions (symbol, price, text fields)
- Client-side symbol uniqueness against the loaded positions
- Partial updates that replace the cached row with the stored copy
- Deletion by id

Designed to be consumed by the CLI and the Streamlit dashboard.
"""

import logging
from typing import Any

from db import PositionStatus, StockPositionRepository
from db.models import utcnow
from config import config
from services.schemas import NewStockPosition, PositionRecord
from services.store import CacheStore
from services.validation import (
    format_price,
    normalize_symbol,
    validate_position,
    validate_position_update,
)


logger = logging.getLogger(__name__)


class StockPositionStore(CacheStore[PositionRecord]):
    """
    Cache of the signed-in user's positions, newest first.

    Usage:
        store = StockPositionStore(user=auth.user)
        record = store.add(NewStockPosition(symbol="aapl", price="182.5"))
        record.symbol, record.price  # ("AAPL", "182.50")
    """

    repository_cls = StockPositionRepository
    record_cls = PositionRecord
    entity = "positions"
    label = "Position"

    def get_by_symbol(self, symbol: str) -> PositionRecord | None:
        """Cached position by ticker (case-insensitive)."""
        symbol = normalize_symbol(symbol)
        return next((p for p in self.rows if p.symbol == symbol), None)

    def _duplicate_of(self, symbol: str, exclude_id: str | None = None) -> PositionRecord | None:
        symbol = symbol.lower()
        return next(
            (p for p in self.rows if p.symbol.lower() == symbol and p.id != exclude_id),
            None,
        )

    def add(self, new_position: NewStockPosition) -> PositionRecord:
        """
        Validate, persist and cache a new position.

        Raises:
            NotAuthenticatedError: No user is signed in
            ValidationFailed: Invalid input or the symbol is already tracked
            Exception: Database failure (recorded in self.error, re-raised)
        """
        self._require_user("add positions")

        validation_error = validate_position(new_position)
        if validation_error:
            self._reject(validation_error)

        symbol = normalize_symbol(new_position.symbol)
        if self._duplicate_of(symbol):
            self._reject(f"Position for {symbol} already exists")

        values = {
            "symbol": symbol,
            "price": format_price(new_position.price),
            "position": PositionStatus(new_position.position),
            "strategy": new_position.strategy.strip(),
            "category": new_position.category.strip() or config.position_defaults.category,
            "date": new_position.date,
            "risk_level": new_position.risk_level,
            "position_size": float(new_position.position_size),
        }

        with self._operation("save position"):
            with self.db.session() as session:
                row = self._repository(session).insert(**values)
                record = PositionRecord.from_row(row)

        self._prepend(record)
        logger.info(f"Added position {record.symbol} @ ${record.price}")
        return record

    def update(self, position_id: str, **updates: Any) -> PositionRecord:
        """
        Persist only the given fields and cache the stored copy.

        Accepted fields: symbol, price, position, strategy, category,
        risk_level, position_size, date. A blank category is left
        unchanged.
        """
        self._require_user("update positions")

        validation_error = validate_position_update(updates)
        if validation_error:
            self._reject(validation_error)

        values: dict[str, Any] = {}
        for name, value in updates.items():
            if name == "symbol":
                value = normalize_symbol(value)
                if self._duplicate_of(value, exclude_id=position_id):
                    self._reject(f"Position for {value} already exists")
            elif name == "price":
                value = format_price(value)
            elif name == "position":
                value = PositionStatus(value)
            elif name == "category" and not value.strip():
                continue
            elif name in ("strategy", "category"):
                value = value.strip()
            elif name == "position_size":
                value = float(value)
            values[name] = value
        values["updated_at"] = utcnow()

        with self._operation("update position"):
            with self.db.session() as session:
                row = self._repository(session).update(position_id, **values)
                if row is None:
                    raise self._not_found(position_id)
                record = PositionRecord.from_row(row)

        self._replace(record)
        logger.info(f"Updated position {record.symbol}: {', '.join(updates) or 'touch'}")
        return record

    def delete(self, position_id: str) -> None:
        """
        Delete one position by id.

        Notes attached to it are not touched here; see
        StockJournal.delete_position for the notes-then-position cascade.
        """
        self._require_user("delete positions")

        with self._operation("delete position"):
            with self.db.session() as session:
                deleted = self._repository(session).delete(position_id)

        if not deleted:
            logger.warning(f"Position {position_id} was already gone")
        self._remove_where(lambda p: p.id == position_id)
        logger.info(f"Deleted position {position_id}")
