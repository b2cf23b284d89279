"""
Tests for the daily note store.
"""
import pytest

from services.daily_note_service import DailyNoteStore
from services.errors import RecordNotFound, ValidationFailed
from services.schemas import NewDailyNote


def test_add_and_order_by_date(daily_notes):
    middle = daily_notes.add(NewDailyNote(content="Fed minutes", date="2025-01-10"))
    latest = daily_notes.add(NewDailyNote(content="CPI soft", date="2025-01-15"))
    oldest = daily_notes.add(NewDailyNote(content="Quiet open", date="2025-01-02"))

    assert [n.id for n in daily_notes.rows] == [latest.id, middle.id, oldest.id]


def test_cache_order_matches_fetch_order(db, user, daily_notes):
    for day in ("2025-01-10", "2025-01-15", "2025-01-02"):
        daily_notes.add(NewDailyNote(content=f"Entry {day}", date=day))

    reloaded = DailyNoteStore(db, user=user)
    assert [n.date for n in reloaded.rows] == [n.date for n in daily_notes.rows]


def test_content_is_trimmed(daily_notes):
    note = daily_notes.add(NewDailyNote(content="  Added to NVDA  ", date="2025-01-10"))
    assert note.content == "Added to NVDA"


def test_blank_content_rejected(daily_notes):
    with pytest.raises(ValidationFailed, match="Content is required"):
        daily_notes.add(NewDailyNote(content="   ", date="2025-01-10"))
    assert daily_notes.rows == ()


def test_update_content_and_date(daily_notes):
    note = daily_notes.add(NewDailyNote(content="Draft", date="2025-01-10"))
    updated = daily_notes.update(note.id, content="Final", date="2025-01-11")

    assert updated.content == "Final"
    assert updated.date == "2025-01-11"
    assert daily_notes.get(note.id) == updated


def test_update_rejects_unknown_field(daily_notes):
    note = daily_notes.add(NewDailyNote(content="Draft", date="2025-01-10"))
    with pytest.raises(ValidationFailed, match="Unknown daily note field"):
        daily_notes.update(note.id, mood="great")


def test_update_missing_note(daily_notes):
    with pytest.raises(RecordNotFound, match="Daily note missing not found"):
        daily_notes.update("missing", content="x")


def test_delete(daily_notes):
    keep = daily_notes.add(NewDailyNote(content="Keep", date="2025-01-10"))
    drop = daily_notes.add(NewDailyNote(content="Drop", date="2025-01-11"))

    daily_notes.delete(drop.id)
    assert daily_notes.rows == (keep,)
