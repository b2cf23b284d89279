"""
Note Service - Cached CRUD over categorized analysis notes.

Notes are attached to exactly one stock position and classified as catalyst,
block or research. Every write keeps the classification invariant:

    category == research  <=>  no sentiment and parent category "general"

Research notes submitted with a sentiment have it dropped before saving;
category changes re-derive sentiment and parent category.
"""

import logging
from dataclasses import replace
from typing import Any

from db import AnalysisNoteRepository, NoteCategory, ParentCategory, Sentiment
from db.models import utcnow
from services.categorization import CATEGORY_DEFAULT_SENTIMENT
from services.errors import ValidationFailed
from services.schemas import NewAnalysisNote, NoteRecord
from services.store import CacheStore
from services.validation import (
    classification_error,
    normalize_symbol,
    parse_tags,
    validate_note,
    validate_note_update,
)


logger = logging.getLogger(__name__)


def enforce_research_invariant(note: NewAnalysisNote) -> NewAnalysisNote:
    """Drop sentiment and file under "general" when the note is research."""
    if note.category == NoteCategory.RESEARCH:
        return replace(note, sentiment=None, parent_category=ParentCategory.GENERAL)
    return note


class AnalysisNoteStore(CacheStore[NoteRecord]):
    """
    Cache of the signed-in user's analysis notes, newest first.

    Usage:
        store = AnalysisNoteStore(user=auth.user)
        store.add(position.id, position.symbol, NewAnalysisNote(
            title="Q3 beat", description="...", category="catalyst",
            parent_category="financial", sentiment="bullish", tags="earnings",
        ))
    """

    repository_cls = AnalysisNoteRepository
    record_cls = NoteRecord
    entity = "analysis notes"
    label = "Note"

    def for_position(self, stock_id: str) -> list[NoteRecord]:
        """Cached notes attached to one position."""
        return [n for n in self.rows if n.stock_id == stock_id]

    def for_symbol(self, symbol: str) -> list[NoteRecord]:
        """Cached notes whose denormalized symbol matches."""
        symbol = normalize_symbol(symbol)
        return [n for n in self.rows if n.symbol == symbol]

    def add(self, stock_id: str, symbol: str, new_note: NewAnalysisNote) -> NoteRecord:
        """
        Validate, persist and cache a note for a position.

        Raises:
            NotAuthenticatedError: No user is signed in
            ValidationFailed: Invalid input
            Exception: Database failure (recorded in self.error, re-raised)
        """
        self._require_user("add notes")

        note = enforce_research_invariant(new_note)
        validation_error = validate_note(note, stock_id, symbol)
        if validation_error:
            self._reject(validation_error)

        values = {
            "stock_id": stock_id,
            "symbol": normalize_symbol(symbol),
            "category": NoteCategory(note.category),
            "parent_category": ParentCategory(note.parent_category),
            "sentiment": Sentiment(note.sentiment) if note.sentiment else None,
            "title": note.title.strip(),
            "description": note.description.strip(),
            "date": note.date,
            "tags": parse_tags(note.tags),
        }

        with self._operation("save note"):
            with self.db.session() as session:
                row = self._repository(session).insert(**values)
                record = NoteRecord.from_row(row)

        self._prepend(record)
        logger.info(f"Added {record.category.value} note {record.id} for {record.symbol}")
        return record

    def _classification_values(
        self,
        updates: dict[str, Any],
        current: NoteRecord,
    ) -> dict[str, Any]:
        """Resolve category/parent/sentiment for an update, re-deriving on category change."""
        values: dict[str, Any] = {}
        if "category" in updates:
            category = NoteCategory(updates["category"])
            values["category"] = category
            if category is NoteCategory.RESEARCH:
                values["sentiment"] = None
                values["parent_category"] = ParentCategory.GENERAL
                return values
            sentiment = updates.get("sentiment") or current.sentiment
            values["sentiment"] = Sentiment(sentiment) if sentiment else CATEGORY_DEFAULT_SENTIMENT[category]
        elif "sentiment" in updates:
            sentiment = updates["sentiment"]
            values["sentiment"] = Sentiment(sentiment) if sentiment else None

        if "parent_category" in updates:
            values["parent_category"] = ParentCategory(updates["parent_category"])

        invariant_error = classification_error(
            category=values.get("category", current.category),
            parent_category=values.get("parent_category", current.parent_category),
            sentiment=values.get("sentiment", current.sentiment),
        )
        if invariant_error:
            raise ValidationFailed(invariant_error)
        return values

    def update(self, note_id: str, **updates: Any) -> NoteRecord:
        """
        Persist only the given fields and cache the stored copy.

        Accepted fields: category, parent_category, sentiment, title,
        description, date, tags (list or comma-separated text).

        Classification changes are merged with, and checked against, the
        stored row rather than the cached copy.
        """
        self._require_user("update notes")

        validation_error = validate_note_update(updates)
        if validation_error:
            self._reject(validation_error)

        values: dict[str, Any] = {}
        for name in ("title", "description"):
            if name in updates:
                values[name] = updates[name].strip()
        if "date" in updates:
            values["date"] = updates["date"]
        if "tags" in updates:
            values["tags"] = parse_tags(updates["tags"])
        values["updated_at"] = utcnow()

        with self._operation("update note"):
            with self.db.session() as session:
                repository = self._repository(session)
                stored = repository.get_by_id(note_id)
                if stored is None:
                    raise self._not_found(note_id)
                values.update(self._classification_values(updates, NoteRecord.from_row(stored)))
                row = repository.update(note_id, **values)
                record = NoteRecord.from_row(row)

        self._replace(record)
        logger.info(f"Updated note {record.id}: {', '.join(updates) or 'touch'}")
        return record

    def delete(self, note_id: str) -> None:
        """Delete one note by id."""
        self._require_user("delete notes")

        with self._operation("delete note"):
            with self.db.session() as session:
                self._repository(session).delete(note_id)

        self._remove_where(lambda n: n.id == note_id)
        logger.info(f"Deleted note {note_id}")

    def delete_all_for_position(self, stock_id: str) -> int:
        """Delete every note attached to a position. Returns rows removed."""
        self._require_user("delete notes")

        with self._operation("delete notes"):
            with self.db.session() as session:
                removed = self._repository(session).delete_by_stock(stock_id)

        self._remove_where(lambda n: n.stock_id == stock_id)
        logger.info(f"Deleted {removed} notes for position {stock_id}")
        return removed
