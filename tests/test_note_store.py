"""
Tests for the analysis note store: classification invariant, updates and
per-position deletes.
"""
import pytest
from sqlalchemy.exc import SQLAlchemyError

from conftest import catalyst, research
from db import AnalysisNoteRepository, NoteCategory, ParentCategory, Sentiment
from services.errors import ErrorType, ValidationFailed
from services.note_service import AnalysisNoteStore, enforce_research_invariant
from services.schemas import NewAnalysisNote


def test_add_catalyst_note(notes, aapl):
    note = notes.add(aapl.id, aapl.symbol, catalyst(tags="earnings, services"))

    assert note.category is NoteCategory.CATALYST
    assert note.parent_category is ParentCategory.FINANCIAL
    assert note.sentiment is Sentiment.BULLISH
    assert note.tags == ("earnings", "services")
    assert note.symbol == "AAPL"
    assert notes.rows[0] == note


def test_research_sentiment_dropped_before_saving(db, user, notes, aapl):
    note = notes.add(aapl.id, aapl.symbol, research(sentiment="bullish", parent_category="market"))

    assert note.sentiment is None
    assert note.parent_category is ParentCategory.GENERAL
    with db.session() as session:
        row = AnalysisNoteRepository(session, user.id).get_by_id(note.id)
        assert row.sentiment is None


def test_enforce_research_invariant_leaves_directional_notes_alone():
    note = catalyst()
    assert enforce_research_invariant(note) is note


def test_directional_note_without_sentiment_rejected(notes, aapl, monkeypatch):
    calls = []
    monkeypatch.setattr(AnalysisNoteRepository, "insert", lambda self, **kw: calls.append(kw))

    with pytest.raises(ValidationFailed, match="Sentiment is required"):
        notes.add(aapl.id, aapl.symbol, catalyst(sentiment=None))
    assert calls == []


def test_add_requires_stock_id(notes):
    with pytest.raises(ValidationFailed, match="Stock ID is required"):
        notes.add("", "AAPL", research())


def test_tags_are_capped_and_trimmed(notes, aapl):
    note = notes.add(aapl.id, aapl.symbol, research(tags=" a , b,, c "))
    assert note.tags == ("a", "b", "c")


def test_for_position_and_symbol(notes, positions, aapl):
    from services.schemas import NewStockPosition

    msft = positions.add(NewStockPosition(symbol="MSFT", price="410"))
    notes.add(aapl.id, aapl.symbol, research())
    notes.add(msft.id, msft.symbol, research(title="Azure"))

    assert [n.title for n in notes.for_position(msft.id)] == ["Azure"]
    assert [n.title for n in notes.for_symbol("aapl")] == ["Supplier checks"]


def test_update_text_fields(notes, aapl):
    note = notes.add(aapl.id, aapl.symbol, catalyst())
    updated = notes.update(note.id, title="  Services record  ", tags="services")

    assert updated.title == "Services record"
    assert updated.tags == ("services",)
    assert updated.sentiment is Sentiment.BULLISH
    assert notes.get(note.id) == updated


def test_changing_to_research_clears_sentiment(notes, aapl):
    note = notes.add(aapl.id, aapl.symbol, catalyst())
    updated = notes.update(note.id, category="research")

    assert updated.category is NoteCategory.RESEARCH
    assert updated.sentiment is None
    assert updated.parent_category is ParentCategory.GENERAL


def test_changing_research_to_block_uses_default_sentiment(notes, aapl):
    note = notes.add(aapl.id, aapl.symbol, research())
    updated = notes.update(note.id, category="block", parent_category="regulatory")

    assert updated.sentiment is Sentiment.BEARISH
    assert updated.parent_category is ParentCategory.REGULATORY


def test_changing_category_keeps_existing_sentiment(notes, aapl):
    note = notes.add(aapl.id, aapl.symbol, catalyst(sentiment="bearish"))
    updated = notes.update(note.id, category="block")

    assert updated.sentiment is Sentiment.BEARISH
    assert updated.parent_category is ParentCategory.FINANCIAL


def test_sentiment_on_existing_research_note_rejected(notes, aapl):
    note = notes.add(aapl.id, aapl.symbol, research())
    with pytest.raises(ValidationFailed, match="Research notes should not have sentiment"):
        notes.update(note.id, sentiment="bullish")
    assert notes.get(note.id) == note


def test_directional_note_cannot_move_to_general_parent(notes, aapl):
    note = notes.add(aapl.id, aapl.symbol, catalyst())
    with pytest.raises(ValidationFailed, match="Parent category"):
        notes.update(note.id, parent_category="general")


def test_update_checks_classification_against_stored_row(db, user, notes, aapl):
    stale = AnalysisNoteStore(db, user=user)
    note = notes.add(aapl.id, aapl.symbol, research())
    assert stale.get(note.id) is None

    with pytest.raises(ValidationFailed, match="Research notes should not have sentiment"):
        stale.update(note.id, sentiment="bullish")

    assert stale.error.type is ErrorType.VALIDATION
    with db.session() as session:
        row = AnalysisNoteRepository(session, user.id).get_by_id(note.id)
        assert row.sentiment is None


def test_uncached_directional_note_cannot_move_to_general_parent(db, user, notes, aapl):
    stale = AnalysisNoteStore(db, user=user)
    note = notes.add(aapl.id, aapl.symbol, catalyst())

    with pytest.raises(ValidationFailed, match="Parent category"):
        stale.update(note.id, parent_category="general")

    with db.session() as session:
        row = AnalysisNoteRepository(session, user.id).get_by_id(note.id)
        assert row.parent_category is ParentCategory.FINANCIAL


def test_uncached_category_change_keeps_stored_sentiment(db, user, notes, aapl):
    stale = AnalysisNoteStore(db, user=user)
    note = notes.add(aapl.id, aapl.symbol, catalyst(sentiment="bearish"))

    updated = stale.update(note.id, category="block")

    assert updated.category is NoteCategory.BLOCK
    assert updated.sentiment is Sentiment.BEARISH
    assert updated.parent_category is ParentCategory.FINANCIAL


def test_failed_update_leaves_cache_untouched(notes, aapl, monkeypatch):
    note = notes.add(aapl.id, aapl.symbol, catalyst())

    def fail(self, row_id, **values):
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(AnalysisNoteRepository, "update", fail)
    with pytest.raises(SQLAlchemyError):
        notes.update(note.id, title="Changed")

    assert notes.get(note.id) == note
    assert notes.error.type is ErrorType.DATABASE


def test_delete_all_for_position(db, user, notes, aapl):
    for title in ("One", "Two", "Three"):
        notes.add(aapl.id, aapl.symbol, research(title=title))

    assert notes.delete_all_for_position(aapl.id) == 3
    assert notes.rows == ()

    reloaded = AnalysisNoteStore(db, user=user)
    assert reloaded.rows == ()


def test_delete_single_note(notes, aapl):
    keep = notes.add(aapl.id, aapl.symbol, research(title="Keep"))
    drop = notes.add(aapl.id, aapl.symbol, research(title="Drop"))

    notes.delete(drop.id)
    assert notes.rows == (keep,)


def test_new_note_defaults_to_research():
    note = NewAnalysisNote(title="t", description="d")
    assert note.category is NoteCategory.RESEARCH
    assert note.sentiment is None
