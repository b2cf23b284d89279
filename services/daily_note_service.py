"""
Daily Note Service - Cached CRUD over free-text journal entries keyed by date.
"""

import logging
from dataclasses import replace
from typing import Any

from db import DailyNoteRepository
from db.models import utcnow
from services.schemas import DailyNoteRecord, NewDailyNote
from services.store import CacheStore
from services.validation import validate_daily_note


logger = logging.getLogger(__name__)


class DailyNoteStore(CacheStore[DailyNoteRecord]):
    """Cache of the signed-in user's daily notes, latest journal date first."""

    repository_cls = DailyNoteRepository
    record_cls = DailyNoteRecord
    entity = "daily notes"
    label = "Daily note"

    def _insert_sorted(self, record: DailyNoteRecord) -> None:
        # New entry goes before the first note with an older-or-equal date
        rows = list(self.rows)
        index = next((i for i, r in enumerate(rows) if r.date <= record.date), len(rows))
        rows.insert(index, record)
        self._state = replace(self._state, rows=tuple(rows))

    def add(self, new_note: NewDailyNote) -> DailyNoteRecord:
        """Validate, persist and cache a daily note."""
        self._require_user("add daily notes")

        validation_error = validate_daily_note(new_note)
        if validation_error:
            self._reject(validation_error)

        with self._operation("save daily note"):
            with self.db.session() as session:
                row = self._repository(session).insert(
                    date=new_note.date,
                    content=new_note.content.strip(),
                )
                record = DailyNoteRecord.from_row(row)

        self._insert_sorted(record)
        logger.info(f"Added daily note for {record.date}")
        return record

    def update(self, note_id: str, **updates: Any) -> DailyNoteRecord:
        """Persist content and/or date changes and cache the stored copy."""
        self._require_user("update daily notes")

        unknown = set(updates) - {"content", "date"}
        if unknown:
            self._reject(f"Unknown daily note field: {sorted(unknown)[0]}")
        if "content" in updates and not (updates["content"] or "").strip():
            self._reject("Content is required")
        if "date" in updates and not updates["date"]:
            self._reject("Date is required")

        values = dict(updates)
        if "content" in values:
            values["content"] = values["content"].strip()
        values["updated_at"] = utcnow()

        with self._operation("update daily note"):
            with self.db.session() as session:
                row = self._repository(session).update(note_id, **values)
                if row is None:
                    raise self._not_found(note_id)
                record = DailyNoteRecord.from_row(row)

        self._replace(record)
        logger.info(f"Updated daily note {record.id}")
        return record

    def delete(self, note_id: str) -> None:
        """Delete one daily note by id."""
        self._require_user("delete daily notes")

        with self._operation("delete daily note"):
            with self.db.session() as session:
                self._repository(session).delete(note_id)

        self._remove_where(lambda n: n.id == note_id)
        logger.info(f"Deleted daily note {note_id}")
