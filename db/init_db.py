"""
Database initialization script.

Creates all tables and optionally seeds a journal with sample positions,
analysis notes and daily notes.
Safe to run multiple times (idempotent).
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import config
from db.session import init_db, get_db
from services.errors import ValidationFailed
from services.journal_service import StockJournal
from services.schemas import NewAnalysisNote, NewDailyNote, NewStockPosition


SAMPLE_POSITIONS = [
    {"symbol": "AAPL", "price": "182.50", "position": "holding", "strategy": "Long-term growth",
     "category": "Technology", "risk_level": 35, "position_size": 50, "date": "2025-01-06"},
    {"symbol": "NVDA", "price": "138.20", "position": "holding", "strategy": "AI infrastructure",
     "category": "Technology", "risk_level": 70, "position_size": 25, "date": "2025-01-08"},
    {"symbol": "TSLA", "price": "248.00", "position": "watching", "strategy": "Wait for pullback",
     "category": "Automotive", "risk_level": 85, "position_size": 0, "date": "2025-01-10"},
]

SAMPLE_NOTES = {
    "AAPL": [
        {"title": "Services revenue record", "description": "Services grew double digits with expanding margins.",
         "category": "catalyst", "parent_category": "financial", "sentiment": "bullish",
         "date": "2025-01-07", "tags": "earnings, services"},
        {"title": "EU DMA compliance", "description": "App Store changes in the EU could pressure fees.",
         "category": "block", "parent_category": "regulatory", "sentiment": "bearish",
         "date": "2025-01-09", "tags": "regulation"},
        {"title": "Supplier checks", "description": "Channel checks point to steady iPhone builds.",
         "category": "research", "date": "2025-01-11", "tags": "supply chain"},
    ],
    "NVDA": [
        {"title": "Data center demand", "description": "Hyperscaler capex guidance raised again.",
         "category": "catalyst", "parent_category": "market", "sentiment": "bullish",
         "date": "2025-01-09", "tags": "ai, capex"},
        {"title": "Custom silicon", "description": "Large customers are designing in-house accelerators.",
         "category": "block", "parent_category": "competitive", "sentiment": "bearish",
         "date": "2025-01-12"},
    ],
}

SAMPLE_DAILY_NOTES = [
    {"date": "2025-01-10", "content": "CPI came in soft. Added to NVDA on the dip."},
    {"date": "2025-01-13", "content": "Quiet session, reviewed AAPL regulatory risk."},
]


def create_sample_data(email: str | None = None):
    """
    Create sample data for testing/demo purposes.

    Positions that already exist are skipped, so re-running only fills gaps.
    Notes and daily notes are only added alongside newly created positions.
    """
    journal = StockJournal(get_db())
    journal.auth.sign_in(email or config.auth.default_email)

    created = set()
    for position_data in SAMPLE_POSITIONS:
        try:
            record = journal.positions.add(NewStockPosition(**position_data))
        except ValidationFailed as e:
            print(f"  Skipped position {position_data['symbol']}: {e.message}")
            continue
        created.add(record.symbol)
        print(f"  Added position: {record.symbol} @ ${record.price}")

    for symbol, notes in SAMPLE_NOTES.items():
        if symbol not in created:
            continue
        for note_data in notes:
            record = journal.add_note_for_symbol(symbol, NewAnalysisNote(**note_data))
            print(f"  Added {record.category.value} note: {symbol} - {record.title}")

    if created:
        for daily_data in SAMPLE_DAILY_NOTES:
            record = journal.daily_notes.add(NewDailyNote(**daily_data))
            print(f"  Added daily note: {record.date}")


def main():
    """Initialize database and optionally create sample data."""
    import argparse

    parser = argparse.ArgumentParser(description="Initialize stock journal database")
    parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Create sample data for testing",
    )
    parser.add_argument(
        "--user",
        default=config.auth.default_email,
        help="Email of the journal owner for sample data",
    )
    args = parser.parse_args()

    # Initialize database with tables
    db = init_db()
    print("✅ Database initialized")
    print(f"   Location: {db.db_url}")

    if args.sample_data:
        print("\n📦 Creating sample data...")
        create_sample_data(args.user)
        print("✅ Sample data created")


if __name__ == "__main__":
    main()
