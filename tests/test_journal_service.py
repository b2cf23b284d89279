"""
Tests for the journal: auth binding, note counts, search, table frames and the
notes-then-position delete.
"""
import pytest
from sqlalchemy.exc import SQLAlchemyError

from conftest import catalyst, research
from db import AnalysisNoteRepository, StockPositionRepository
from services.errors import RecordNotFound
from services.journal_service import (
    group_positions,
    note_counts_frame,
    positions_frame,
)
from services.schemas import NewAnalysisNote, NewStockPosition


@pytest.fixture
def seeded(journal):
    """AAPL with 3 notes, MSFT with 1, TSLA with none."""
    journal.positions.add(NewStockPosition(symbol="TSLA", price="248", strategy="Wait for pullback",
                                           position="watching", date="2025-01-10"))
    journal.positions.add(NewStockPosition(symbol="MSFT", price="410", strategy="Cloud growth",
                                           position="holding", date="2025-01-08"))
    journal.positions.add(NewStockPosition(symbol="AAPL", price="182.5", strategy="Long-term growth",
                                           position="holding", date="2025-01-06"))
    journal.add_note_for_symbol("AAPL", catalyst())
    journal.add_note_for_symbol("AAPL", catalyst(title="EU rules", parent="regulatory", sentiment="bearish"))
    journal.notes.update(journal.notes.rows[0].id, category="block")
    journal.add_note_for_symbol("AAPL", research())
    journal.add_note_for_symbol("MSFT", research(title="Azure checks"))
    return journal


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Auth binding
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_stores_follow_sign_in_and_out(seeded):
    assert len(seeded.positions.rows) == 3

    seeded.auth.sign_out()
    assert seeded.loading
    assert seeded.positions.rows == ()
    assert seeded.notes.rows == ()

    seeded.auth.sign_in("TRADER@example.com")
    assert len(seeded.positions.rows) == 3
    assert len(seeded.notes.rows) == 4


def test_other_user_sees_nothing(seeded):
    seeded.auth.sign_in("other@example.com")
    assert seeded.summaries() == []


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Counts and search
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_summaries_count_notes_by_category(seeded):
    by_symbol = {s.symbol: s for s in seeded.summaries()}

    aapl = by_symbol["AAPL"]
    assert (aapl.catalysts_count, aapl.blockers_count, aapl.research_count) == (1, 1, 1)
    assert aapl.notes_count == 3
    assert by_symbol["MSFT"].research_count == 1
    assert by_symbol["TSLA"].notes_count == 0


def test_search_matches_symbol_or_strategy(seeded):
    assert [s.symbol for s in seeded.summaries(search="aap")] == ["AAPL"]
    assert sorted(s.symbol for s in seeded.summaries(search="GROWTH")) == ["AAPL", "MSFT"]
    assert seeded.summaries(search="zzz") == []
    assert len(seeded.summaries(search="  ")) == 3


def test_add_note_for_unknown_symbol(journal):
    with pytest.raises(RecordNotFound, match="Stock position not found"):
        journal.add_note_for_symbol("NVDA", NewAnalysisNote(title="t", description="d"))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Table frames
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_positions_frame_sorts(seeded):
    summaries = seeded.summaries()

    by_price = positions_frame(summaries, sort_by="price")
    assert list(by_price["symbol"]) == ["AAPL", "TSLA", "MSFT"]

    by_notes = positions_frame(summaries, sort_by="total_notes", ascending=False)
    assert list(by_notes["symbol"])[0] == "AAPL"

    with pytest.raises(ValueError):
        positions_frame(summaries, sort_by="colour")


def test_positions_frame_empty():
    df = positions_frame([])
    assert df.empty
    assert "catalysts" in df.columns


def test_group_positions_by_status(seeded):
    groups = group_positions(positions_frame(seeded.summaries(), sort_by="symbol"), "position")

    assert set(groups) == {"holding", "watching"}
    assert list(groups["holding"]["symbol"]) == ["AAPL", "MSFT"]
    assert list(groups["watching"]["symbol"]) == ["TSLA"]


def test_note_counts_frame_is_long_format(seeded):
    counts = note_counts_frame(seeded.summaries())
    assert len(counts) == 9
    aapl = counts[counts["symbol"] == "AAPL"].set_index("category")["count"].to_dict()
    assert aapl == {"Catalysts": 1, "Blockers": 1, "Research": 1}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Cascade delete
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_delete_position_removes_notes_then_position(db, seeded):
    aapl = seeded.positions.get_by_symbol("AAPL")
    user_id = seeded.auth.user.id

    result = seeded.delete_position(aapl.id)

    assert result.success
    assert result.notes_deleted == 3
    assert result.status_message == "✅ Deleted AAPL and all related notes"
    assert seeded.positions.get(aapl.id) is None
    assert seeded.notes.for_position(aapl.id) == []
    assert len(seeded.notes.rows) == 1
    with db.session() as session:
        remaining = AnalysisNoteRepository(session, user_id).list_all()
        assert [n.symbol for n in remaining] == ["MSFT"]
        assert StockPositionRepository(session, user_id).get_by_id(aapl.id) is None


def test_failed_note_delete_keeps_position(seeded, monkeypatch):
    aapl = seeded.positions.get_by_symbol("AAPL")

    def fail(self, stock_id):
        raise SQLAlchemyError("database is read-only")

    monkeypatch.setattr(AnalysisNoteRepository, "delete_by_stock", fail)
    result = seeded.delete_position(aapl.id)

    assert not result.success
    assert result.status_message.startswith("❌ Failed to delete AAPL")
    assert seeded.positions.get(aapl.id) == aapl
    assert len(seeded.notes.for_position(aapl.id)) == 3
    assert seeded.error_message is not None


def test_delete_unknown_position(journal):
    result = journal.delete_position("missing")
    assert not result.success
    assert result.status_message == "❌ Position not found"


def test_refresh_picks_up_external_changes(db, seeded):
    from services.position_service import StockPositionStore

    other_tab = StockPositionStore(db, user=seeded.auth.user)
    other_tab.add(NewStockPosition(symbol="NVDA", price="138.2"))

    assert seeded.positions.get_by_symbol("NVDA") is None
    seeded.refresh()
    assert seeded.positions.get_by_symbol("NVDA") is not None
