"""
Tests for validation and normalization rules.
"""
import pytest

from services.schemas import NewAnalysisNote, NewDailyNote, NewStockPosition
from services.validation import (
    classification_error,
    collect_note_errors,
    collect_position_errors,
    format_price,
    format_tags,
    normalize_symbol,
    parse_tags,
    validate_daily_note,
    validate_note,
    validate_note_update,
    validate_position,
    validate_position_update,
)


def position(**overrides):
    values = {"symbol": "AAPL", "price": "182.50", "strategy": "Growth", "date": "2025-01-15"}
    values.update(overrides)
    return NewStockPosition(**values)


def note(**overrides):
    values = {
        "title": "Earnings beat",
        "description": "Revenue up 12% year over year.",
        "category": "catalyst",
        "parent_category": "financial",
        "sentiment": "bullish",
        "date": "2025-01-15",
    }
    values.update(overrides)
    return NewAnalysisNote(**values)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Positions
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_valid_position_passes():
    assert validate_position(position()) is None
    assert collect_position_errors(position()) == {}


def test_lowercase_symbol_normalizes_and_passes():
    assert normalize_symbol(" aapl ") == "AAPL"
    assert validate_position(position(symbol="aapl")) is None


@pytest.mark.parametrize("symbol,message", [
    ("", "Stock symbol is required"),
    ("   ", "Stock symbol is required"),
    ("TOOLONG1", "Stock symbol must be 1-5 uppercase letters"),
    ("BRK.B", "Stock symbol must be 1-5 uppercase letters"),
    ("ABCDEF", "Stock symbol must be 1-5 uppercase letters"),
])
def test_symbol_rules(symbol, message):
    assert validate_position(position(symbol=symbol)) == message


@pytest.mark.parametrize("price,message", [
    ("", "Price is required"),
    ("abc", "Price must be a positive number"),
    ("0", "Price must be a positive number"),
    ("-5", "Price must be a positive number"),
    ("nan", "Price must be a positive number"),
    ("1000000", "Price cannot exceed $999,999"),
])
def test_price_rules(price, message):
    assert validate_position(position(price=price)) == message


def test_price_upper_bound_is_inclusive():
    assert validate_position(position(price="999999")) is None


def test_strategy_length_boundary():
    assert validate_position(position(strategy="x" * 50)) is None
    assert validate_position(position(strategy="x" * 51)) == "Strategy cannot exceed 50 characters"
    assert validate_position(position(strategy="  ")) == "Strategy is required"


def test_risk_level_bounds():
    assert validate_position(position(risk_level=1)) is None
    assert validate_position(position(risk_level=100)) is None
    assert "between 1 and 100" in validate_position(position(risk_level=0))
    assert "between 1 and 100" in validate_position(position(risk_level=101))


def test_collect_position_errors_reports_every_field():
    errors = collect_position_errors(position(symbol="", price="", strategy="", date=""))
    assert set(errors) == {"symbol", "price", "strategy", "date"}


def test_position_update_checks_only_present_fields():
    assert validate_position_update({"price": "190"}) is None
    assert validate_position_update({"strategy": "x" * 51}) == "Strategy cannot exceed 50 characters"
    assert validate_position_update({"colour": "red"}) == "Unknown position field: colour"


def test_format_price_fixes_two_decimals():
    assert format_price("182.5") == "182.50"
    assert format_price(" 10 ") == "10.00"
    assert format_price(3.14159) == "3.14"
    with pytest.raises(ValueError):
        format_price("abc")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Notes
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_title_length_boundary():
    assert collect_note_errors(note(title="x" * 100)) == {}
    errors = collect_note_errors(note(title="x" * 101))
    assert errors["title"] == "Title cannot exceed 100 characters"


def test_description_length_boundary():
    assert collect_note_errors(note(description="x" * 2000)) == {}
    errors = collect_note_errors(note(description="x" * 2001))
    assert errors["description"] == "Description cannot exceed 2000 characters"


def test_directional_note_requires_sentiment():
    errors = collect_note_errors(note(category="block", sentiment=None))
    assert errors == {"sentiment": "Sentiment is required for catalyst and block notes"}


def test_form_check_tolerates_research_sentiment():
    research = note(category="research", parent_category="general", sentiment="bullish")
    assert collect_note_errors(research) == {}


def test_strict_check_rejects_research_sentiment():
    research = note(category="research", parent_category="general", sentiment="bullish")
    assert validate_note(research, "stock-1", "AAPL") == "Research notes should not have sentiment"


def test_strict_check_requires_owner():
    assert validate_note(note(), None, "AAPL") == "Stock ID is required"
    assert validate_note(note(), "stock-1", "") == "Stock symbol is required"
    assert validate_note(note(), "stock-1", "AAPL") is None


def test_invalid_category_is_reported():
    assert collect_note_errors(note(category="rumour"))["category"] == "Invalid category"


def test_directional_note_needs_taxonomy_parent():
    errors = collect_note_errors(note(parent_category="general"))
    assert "parent_category" in errors


def test_tag_limits():
    eleven = ", ".join(f"t{i}" for i in range(11))
    assert collect_note_errors(note(tags=eleven))["tags"] == "Maximum 10 tags allowed"
    assert collect_note_errors(note(tags="x" * 21))["tags"] == "Each tag must be 20 characters or less"
    assert collect_note_errors(note(tags="x" * 20)) == {}


def test_tags_parse_and_format():
    parsed = parse_tags("earnings, tech, regulation")
    assert parsed == ["earnings", "tech", "regulation"]
    assert parse_tags(format_tags(parsed)) == parsed


def test_tags_drop_blanks_and_cap():
    assert parse_tags(" a, ,b ,, ") == ["a", "b"]
    assert parse_tags("") == []
    assert len(parse_tags(",".join(str(i) for i in range(15)))) == 10


def test_classification_invariant():
    assert classification_error("research", "general", None) is None
    assert classification_error("research", "general", "bullish") == "Research notes should not have sentiment"
    assert classification_error("research", "financial", None) is not None
    assert classification_error("catalyst", "market", "bullish") is None
    assert classification_error("block", "market", None) == "Sentiment is required for catalyst and block notes"


def test_note_update_checks_only_present_fields():
    assert validate_note_update({"title": "New title"}) is None
    assert validate_note_update({"title": ""}) == "Title is required"
    assert validate_note_update({"sentiment": "sideways"}) == "Invalid sentiment"
    assert validate_note_update({"stock_id": "x"}) == "Unknown note field: stock_id"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Daily notes
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def test_daily_note_rules():
    assert validate_daily_note(NewDailyNote(content="Quiet day", date="2025-01-15")) is None
    assert validate_daily_note(NewDailyNote(content="  ", date="2025-01-15")) == "Content is required"
    assert validate_daily_note(NewDailyNote(content="Quiet day", date="")) == "Date is required"
