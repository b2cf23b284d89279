"""
Validation and normalization rules for positions, notes and daily notes.

All functions are pure: the same input always yields the same result and
nothing is written anywhere. Validators return None when the input is valid,
otherwise a human-readable reason. The collect_* variants return every failing
field at once for form display.
"""

import math
import re
from typing import Any, Iterable, Mapping

from db.models import (
    DIRECTIONAL_PARENT_CATEGORIES,
    NoteCategory,
    ParentCategory,
    PositionStatus,
    Sentiment,
)
from config import config
from services.schemas import NewAnalysisNote, NewDailyNote, NewStockPosition


_limits = config.validation
SYMBOL_PATTERN = re.compile(_limits.symbol_pattern)


# ──────────────────────────────────────────────────────────────────────────────
# Normalization helpers
# ──────────────────────────────────────────────────────────────────────────────


def normalize_symbol(symbol: str) -> str:
    """Trim and upper-case a ticker symbol ("aapl " -> "AAPL")."""
    return symbol.strip().upper()


def parse_price(price: Any) -> float | None:
    """Parse a price entry, returning None when it is not a finite number."""
    if price is None:
        return None
    try:
        value = float(str(price).strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def format_price(price: Any) -> str:
    """Render a price with exactly 2 decimals ("182.5" -> "182.50")."""
    value = parse_price(price)
    if value is None:
        raise ValueError(f"Not a price: {price!r}")
    return f"{value:.{config.ui.decimal_places}f}"


def split_tags(tags: str | Iterable[str] | None) -> list[str]:
    """Split comma-separated tags, trimming whitespace and dropping empties."""
    if not tags:
        return []
    parts = tags.split(",") if isinstance(tags, str) else tags
    return [t.strip() for t in parts if t and t.strip()]


def parse_tags(tags: str | Iterable[str] | None) -> list[str]:
    """Split tags and cap the result at the configured maximum."""
    return split_tags(tags)[: _limits.max_tags]


def format_tags(tags: Iterable[str]) -> str:
    """Join tags back into the comma-separated form used by the forms."""
    return ", ".join(tags)


def _coerce(enum_cls, value):
    """Enum member for value, or None if value is not a member."""
    if value is None or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


# ──────────────────────────────────────────────────────────────────────────────
# Field rules
# ──────────────────────────────────────────────────────────────────────────────


def _symbol_error(symbol: str | None) -> str | None:
    if not symbol or not symbol.strip():
        return "Stock symbol is required"
    if not SYMBOL_PATTERN.match(normalize_symbol(symbol)):
        return "Stock symbol must be 1-5 uppercase letters"
    return None


def _price_error(price: Any) -> str | None:
    if price is None or not str(price).strip():
        return "Price is required"
    value = parse_price(price)
    if value is None or value <= 0:
        return "Price must be a positive number"
    if value > _limits.max_price:
        return "Price cannot exceed $999,999"
    return None


def _strategy_error(strategy: str | None) -> str | None:
    if not strategy or not strategy.strip():
        return "Strategy is required"
    if len(strategy) > _limits.max_strategy_length:
        return f"Strategy cannot exceed {_limits.max_strategy_length} characters"
    return None


def _risk_level_error(risk_level: Any) -> str | None:
    if isinstance(risk_level, bool) or not isinstance(risk_level, int):
        return "Risk level must be a whole number"
    if not _limits.min_risk_level <= risk_level <= _limits.max_risk_level:
        return f"Risk level must be between {_limits.min_risk_level} and {_limits.max_risk_level}"
    return None


def _position_size_error(position_size: Any) -> str | None:
    if isinstance(position_size, bool) or not isinstance(position_size, (int, float)):
        return "Position size must be a number"
    if not math.isfinite(position_size) or position_size < 0:
        return "Position size cannot be negative"
    return None


def _date_error(value: str | None) -> str | None:
    if not value or not str(value).strip():
        return "Date is required"
    return None


def _title_error(title: str | None) -> str | None:
    if not title or not title.strip():
        return "Title is required"
    if len(title) > _limits.max_title_length:
        return f"Title cannot exceed {_limits.max_title_length} characters"
    return None


def _description_error(description: str | None) -> str | None:
    if not description or not description.strip():
        return "Description is required"
    if len(description) > _limits.max_description_length:
        return f"Description cannot exceed {_limits.max_description_length} characters"
    return None


def _tags_error(tags: str | Iterable[str] | None) -> str | None:
    parsed = split_tags(tags)
    if len(parsed) > _limits.max_tags:
        return f"Maximum {_limits.max_tags} tags allowed"
    if any(len(tag) > _limits.max_tag_length for tag in parsed):
        return f"Each tag must be {_limits.max_tag_length} characters or less"
    return None


def _parent_category_error(category: NoteCategory | None, parent: Any) -> str | None:
    if category is None or category is NoteCategory.RESEARCH:
        return None
    if _coerce(ParentCategory, parent) not in DIRECTIONAL_PARENT_CATEGORIES:
        return "Parent category must be one of: " + ", ".join(
            p.value for p in DIRECTIONAL_PARENT_CATEGORIES
        )
    return None


# ──────────────────────────────────────────────────────────────────────────────
# Positions
# ──────────────────────────────────────────────────────────────────────────────


def collect_position_errors(position: NewStockPosition) -> dict[str, str]:
    """Every failing field of a candidate position, keyed by field name."""
    checks = {
        "symbol": _symbol_error(position.symbol),
        "price": _price_error(position.price),
        "position": None if _coerce(PositionStatus, position.position) else "Invalid position status",
        "strategy": _strategy_error(position.strategy),
        "date": _date_error(position.date),
        "risk_level": _risk_level_error(position.risk_level),
        "position_size": _position_size_error(position.position_size),
    }
    return {name: message for name, message in checks.items() if message}


def validate_position(position: NewStockPosition) -> str | None:
    """First validation failure for a candidate position, or None."""
    errors = collect_position_errors(position)
    return next(iter(errors.values()), None)


_POSITION_FIELD_RULES = {
    "symbol": _symbol_error,
    "price": _price_error,
    "position": lambda v: None if _coerce(PositionStatus, v) else "Invalid position status",
    "strategy": _strategy_error,
    "category": lambda v: None if isinstance(v, str) else "Category must be text",
    "date": _date_error,
    "risk_level": _risk_level_error,
    "position_size": _position_size_error,
}


def validate_position_update(updates: Mapping[str, Any]) -> str | None:
    """Validate only the fields present in a partial position update."""
    for name, value in updates.items():
        rule = _POSITION_FIELD_RULES.get(name)
        if rule is None:
            return f"Unknown position field: {name}"
        message = rule(value)
        if message:
            return message
    return None


# ──────────────────────────────────────────────────────────────────────────────
# Analysis notes
# ──────────────────────────────────────────────────────────────────────────────


def collect_note_errors(note: NewAnalysisNote) -> dict[str, str]:
    """
    Form-level check of a candidate note, keyed by field name.

    Sentiment is required for catalyst/block notes; a research note carrying
    sentiment is not flagged here (the store drops it before saving).
    """
    category = _coerce(NoteCategory, note.category)
    checks = {
        "title": _title_error(note.title),
        "description": _description_error(note.description),
        "category": None if category else "Invalid category",
        "sentiment": None,
        "parent_category": _parent_category_error(category, note.parent_category),
        "date": _date_error(note.date),
        "tags": _tags_error(note.tags),
    }
    if category is not None and category is not NoteCategory.RESEARCH:
        if _coerce(Sentiment, note.sentiment) is None:
            checks["sentiment"] = "Sentiment is required for catalyst and block notes"
    return {name: message for name, message in checks.items() if message}


def validate_note(
    note: NewAnalysisNote,
    stock_id: str | None = None,
    symbol: str | None = None,
) -> str | None:
    """
    Strict check applied by the note store before persisting.

    Unlike the form check this also requires the owning stock id/symbol and
    rejects sentiment on research notes.
    """
    if not stock_id:
        return "Stock ID is required"
    if not symbol or not symbol.strip():
        return "Stock symbol is required"

    errors = collect_note_errors(note)
    for name in ("title", "description", "category"):
        if name in errors:
            return errors[name]

    category = NoteCategory(note.category)
    has_sentiment = _coerce(Sentiment, note.sentiment) is not None
    if category is not NoteCategory.RESEARCH and not has_sentiment:
        return "Sentiment is required for catalyst and block notes"
    if category is NoteCategory.RESEARCH and note.sentiment:
        return "Research notes should not have sentiment"

    for name in ("parent_category", "date", "tags"):
        if name in errors:
            return errors[name]
    return None


def classification_error(
    category: Any,
    parent_category: Any,
    sentiment: Any,
) -> str | None:
    """
    Check the category/sentiment/parent invariant of a stored note.

    research  <=>  no sentiment and parent "general"
    """
    resolved = _coerce(NoteCategory, category)
    if resolved is None:
        return "Invalid category"
    if resolved is NoteCategory.RESEARCH:
        if sentiment:
            return "Research notes should not have sentiment"
        if _coerce(ParentCategory, parent_category) is not ParentCategory.GENERAL:
            return "Research notes must use the general parent category"
        return None
    if _coerce(Sentiment, sentiment) is None:
        return "Sentiment is required for catalyst and block notes"
    return _parent_category_error(resolved, parent_category)


_NOTE_FIELD_RULES = {
    "title": _title_error,
    "description": _description_error,
    "date": _date_error,
    "tags": _tags_error,
    "category": lambda v: None if _coerce(NoteCategory, v) else "Invalid category",
    "parent_category": lambda v: None if _coerce(ParentCategory, v) else "Invalid parent category",
    "sentiment": lambda v: None if v is None or _coerce(Sentiment, v) else "Invalid sentiment",
}


def validate_note_update(updates: Mapping[str, Any]) -> str | None:
    """Validate only the fields present in a partial note update."""
    for name, value in updates.items():
        rule = _NOTE_FIELD_RULES.get(name)
        if rule is None:
            return f"Unknown note field: {name}"
        message = rule(value)
        if message:
            return message
    return None


# ──────────────────────────────────────────────────────────────────────────────
# Daily notes
# ──────────────────────────────────────────────────────────────────────────────


def validate_daily_note(note: NewDailyNote) -> str | None:
    """Daily notes need a date and non-blank content."""
    if _date_error(note.date):
        return "Date is required"
    if not note.content or not note.content.strip():
        return "Content is required"
    return None
