"""
Stock Analysis Journal - Main Entry Point.

A local-first journal for tracking stock positions and the catalysts, blockers
and research notes behind them.

Usage:
    # Initialize database (optionally with sample data)
    python main.py init
    python main.py init --sample-data

    # Positions
    python main.py add-position AAPL --price 182.5 --position holding --strategy "Long-term growth"
    python main.py update-position AAPL --price 190 --risk-level 40
    python main.py positions --search tech --sort-by price --desc
    python main.py positions --group-by position
    python main.py delete-position AAPL          # deletes its notes first

    # Analysis notes
    python main.py add-note AAPL --title "Services growth" --description "..." \\
        --category catalyst --parent financial --sentiment bullish --tags "earnings, services"
    python main.py notes AAPL                    # board view
    python main.py move-note 3f2a block-regulatory
    python main.py delete-note 3f2a

    # Daily journal
    python main.py add-daily "Fed minutes today, stayed flat" --date 2025-01-15
    python main.py daily

    # Launch dashboard
    python main.py dashboard

Every command acts as the user given by --user (default: STOCK_JOURNAL_USER).
"""

import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from config import config
from db import DIRECTIONAL_PARENT_CATEGORIES, NoteCategory, PositionStatus, Sentiment, init_db
from services.categorization import build_board, handle_drop
from services.errors import JournalError
from services.journal_service import StockJournal, group_positions, positions_frame, TABLE_COLUMNS
from services.schemas import NewAnalysisNote, NewDailyNote, NewStockPosition, today_iso


logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def open_journal(args) -> StockJournal:
    """Initialize the database and sign in as the requested user."""
    db = init_db(getattr(args, "db_url", None))
    journal = StockJournal(db)
    journal.auth.sign_in(args.user)
    return journal


def _find_note(journal: StockJournal, note_ref: str):
    """Note by full id or unique id prefix."""
    matches = [n for n in journal.notes.rows if n.id.startswith(note_ref)]
    if len(matches) != 1:
        raise JournalError(
            f"No note matches '{note_ref}'" if not matches else f"'{note_ref}' matches {len(matches)} notes"
        )
    return matches[0]


def _find_position(journal: StockJournal, symbol: str):
    position = journal.positions.get_by_symbol(symbol)
    if position is None:
        raise JournalError(f"No position for {symbol.upper()}")
    return position


def cmd_init(args):
    """Initialize the database."""
    db = init_db(args.db_url, if_drop=args.if_drop)
    if args.if_drop:
        print("⚠️ Existing tables dropped.")
    print("✅ Database initialized successfully")
    print(f"   Location: {db.db_url}")

    if args.sample_data:
        from db.init_db import create_sample_data

        create_sample_data(args.user)
        print("✅ Sample data created")


def cmd_positions(args):
    """List positions with note counts."""
    journal = open_journal(args)
    summaries = journal.summaries(search=args.search)

    if not summaries:
        print("No positions found." if args.search else "No positions tracked yet.")
        return

    df = positions_frame(summaries, sort_by=args.sort_by, ascending=not args.desc)
    groups = group_positions(df, args.group_by) if args.group_by else {"": df}

    for name, group in groups.items():
        title = f"📋 Positions ({len(group)})" if not name else f"📋 {args.group_by}: {name} ({len(group)})"
        print(f"\n{title}")
        print("-" * 78)
        print(f"{'Symbol':<7} {'Price':>10} {'Position':<9} {'Strategy':<20} {'Cat':>4} {'Blk':>4} {'Res':>4} {'Date':<10}")
        print("-" * 78)
        for _, row in group.iterrows():
            strategy = row["strategy"] if len(row["strategy"]) <= 20 else row["strategy"][:17] + "..."
            print(
                f"{row['symbol']:<7} ${row['price']:>9.2f} {row['position']:<9} {strategy:<20} "
                f"{row['catalysts']:>4} {row['blockers']:>4} {row['research']:>4} {row['date']:<10}"
            )


def cmd_add_position(args):
    """Add a position to track."""
    journal = open_journal(args)
    record = journal.positions.add(
        NewStockPosition(
            symbol=args.symbol,
            price=args.price,
            position=args.position,
            strategy=args.strategy,
            category=args.category,
            date=args.date or today_iso(),
            risk_level=args.risk_level,
            position_size=args.size,
        )
    )
    print(f"✅ Added {record.symbol} @ ${record.price} ({record.position.value})")


def cmd_update_position(args):
    """Update fields of an existing position."""
    journal = open_journal(args)
    position = _find_position(journal, args.symbol)

    updates = {
        name: value
        for name, value in (
            ("price", args.price),
            ("position", args.position),
            ("strategy", args.strategy),
            ("category", args.category),
            ("date", args.date),
            ("risk_level", args.risk_level),
            ("position_size", args.size),
        )
        if value is not None
    }
    if not updates:
        print("Nothing to update.")
        return

    record = journal.positions.update(position.id, **updates)
    print(f"✅ Updated {record.symbol}: {', '.join(updates)}")


def cmd_delete_position(args):
    """Delete a position and all notes attached to it."""
    journal = open_journal(args)
    position = _find_position(journal, args.symbol)
    result = journal.delete_position(position.id)
    print(result.status_message)
    if result.success:
        print(f"   Notes removed: {result.notes_deleted}")
        return 0
    return 1


def cmd_notes(args):
    """Show the analysis board for a position."""
    journal = open_journal(args)
    position = _find_position(journal, args.symbol)
    notes = journal.notes.for_position(position.id)

    print(f"\n🧠 {position.symbol} Analysis ({len(notes)} notes)")
    for column in build_board(notes):
        print(f"\n{column.label} ({column.count})")
        print("-" * 60)
        for container in column.containers:
            if not container.notes:
                continue
            print(f"  [{container.target.id}]")
            for note in container.notes:
                sentiment = f" {note.sentiment.value}" if note.sentiment else ""
                tags = f"  #{' #'.join(note.tags)}" if note.tags else ""
                print(f"    {note.id[:8]} {note.date}{sentiment}  {note.title}{tags}")


def cmd_add_note(args):
    """Attach an analysis note to a position."""
    journal = open_journal(args)
    parent = args.parent or ("general" if args.category == "research" else None)
    record = journal.add_note_for_symbol(
        args.symbol,
        NewAnalysisNote(
            title=args.title,
            description=args.description,
            category=args.category,
            parent_category=parent or "",
            sentiment=args.sentiment,
            date=args.date or today_iso(),
            tags=args.tags or "",
        ),
    )
    print(f"✅ Added {record.category.value} note for {record.symbol} ({record.id[:8]})")


def cmd_move_note(args):
    """Move a note onto another board container."""
    journal = open_journal(args)
    note = _find_note(journal, args.note_id)
    result = handle_drop(journal.notes, note.id, args.target)

    if not result.success:
        print(result.status_message)
        return 1
    if not result.moved:
        print(f"Note already in {note.container_id} or target '{args.target}' is not a board container.")
        return 0
    print(result.status_message)


def cmd_delete_note(args):
    """Delete a single note."""
    journal = open_journal(args)
    note = _find_note(journal, args.note_id)
    journal.notes.delete(note.id)
    print(f"✅ Deleted note \"{note.title}\"")


def cmd_daily(args):
    """List daily notes, latest first."""
    journal = open_journal(args)
    notes = journal.daily_notes.rows[: args.limit]

    if not notes:
        print("No daily notes yet.")
        return

    print(f"\n📅 Daily Notes (last {len(notes)})")
    print("-" * 60)
    for note in notes:
        print(f"{note.date}  {note.content}")


def cmd_add_daily(args):
    """Add a daily journal entry."""
    journal = open_journal(args)
    record = journal.daily_notes.add(NewDailyNote(content=args.content, date=args.date or today_iso()))
    print(f"✅ Daily note added for {record.date}")


def cmd_dashboard(args):
    """Launch the Streamlit dashboard."""
    import subprocess

    subprocess.run(
        [
            sys.executable,
            "-m",
            "streamlit",
            "run",
            str(config.project_root / "ui" / "app.py"),
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    """CLI argument parser."""
    limits = config.validation
    parser = argparse.ArgumentParser(
        description="Stock Analysis Journal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--user", default=config.auth.default_email, help="Email of the journal owner")
    parser.add_argument("--db-url", default=None, help="Custom database URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show info logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    position_choices = [p.value for p in PositionStatus]
    category_choices = [c.value for c in NoteCategory]
    parent_choices = [p.value for p in DIRECTIONAL_PARENT_CATEGORIES]
    sentiment_choices = [s.value for s in Sentiment]

    # init command
    init = subparsers.add_parser("init", help="Initialize database")
    init.add_argument("--if-drop", action="store_true", help="Drop existing tables before creating")
    init.add_argument("--sample-data", action="store_true", help="Create sample positions and notes")

    # positions command
    positions = subparsers.add_parser("positions", help="List positions with note counts")
    positions.add_argument("--search", default="", help="Filter by symbol or strategy")
    positions.add_argument("--sort-by", choices=TABLE_COLUMNS[1:], help="Sort column")
    positions.add_argument("--desc", action="store_true", help="Sort descending")
    positions.add_argument("--group-by", choices=config.ui.group_by_options, help="Group rows")

    # add-position command
    add_position = subparsers.add_parser("add-position", help="Track a new position")
    add_position.add_argument("symbol", help="Ticker symbol (1-5 letters)")
    add_position.add_argument("--price", required=True, help="Price per share")
    add_position.add_argument("--position", choices=position_choices, default="watching")
    add_position.add_argument(
        "--strategy", default=config.position_defaults.strategy,
        help=f"Strategy (max {limits.max_strategy_length} chars)",
    )
    add_position.add_argument("--category", default=config.position_defaults.category)
    add_position.add_argument("--date", help="Date (YYYY-MM-DD, default: today)")
    add_position.add_argument(
        "--risk-level", type=int, default=config.position_defaults.risk_level,
        help=f"Risk level {limits.min_risk_level}-{limits.max_risk_level}",
    )
    add_position.add_argument("--size", type=float, default=config.position_defaults.position_size, help="Position size")

    # update-position command
    update_position = subparsers.add_parser("update-position", help="Update a position")
    update_position.add_argument("symbol", help="Ticker symbol")
    update_position.add_argument("--price")
    update_position.add_argument("--position", choices=position_choices)
    update_position.add_argument("--strategy")
    update_position.add_argument("--category")
    update_position.add_argument("--date")
    update_position.add_argument("--risk-level", type=int)
    update_position.add_argument("--size", type=float)

    # delete-position command
    delete_position = subparsers.add_parser("delete-position", help="Delete a position and its notes")
    delete_position.add_argument("symbol", help="Ticker symbol")

    # notes command
    notes = subparsers.add_parser("notes", help="Show the analysis board for a position")
    notes.add_argument("symbol", help="Ticker symbol")

    # add-note command
    add_note = subparsers.add_parser("add-note", help="Attach an analysis note")
    add_note.add_argument("symbol", help="Ticker symbol")
    add_note.add_argument("--title", required=True, help=f"Title (max {limits.max_title_length} chars)")
    add_note.add_argument("--description", required=True, help="Description")
    add_note.add_argument("--category", choices=category_choices, default="research")
    add_note.add_argument("--parent", choices=parent_choices, help="Parent category (catalyst/block)")
    add_note.add_argument("--sentiment", choices=sentiment_choices, help="Required for catalyst/block")
    add_note.add_argument("--date", help="Date (YYYY-MM-DD, default: today)")
    add_note.add_argument("--tags", help=f"Comma-separated tags (max {limits.max_tags})")

    # move-note command
    move_note = subparsers.add_parser("move-note", help="Move a note to another board container")
    move_note.add_argument("note_id", help="Note id (or unique prefix)")
    move_note.add_argument("target", help="Container id, e.g. catalyst-financial or research-general")

    # delete-note command
    delete_note = subparsers.add_parser("delete-note", help="Delete a note")
    delete_note.add_argument("note_id", help="Note id (or unique prefix)")

    # daily command
    daily = subparsers.add_parser("daily", help="List daily notes")
    daily.add_argument("--limit", type=int, default=20, help="Max notes to show")

    # add-daily command
    add_daily = subparsers.add_parser("add-daily", help="Add a daily note")
    add_daily.add_argument("content", help="Note text")
    add_daily.add_argument("--date", help="Date (YYYY-MM-DD, default: today)")

    # dashboard command
    subparsers.add_parser("dashboard", help="Launch Streamlit dashboard")

    return parser


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "init": cmd_init,
        "positions": cmd_positions,
        "add-position": cmd_add_position,
        "update-position": cmd_update_position,
        "delete-position": cmd_delete_position,
        "notes": cmd_notes,
        "add-note": cmd_add_note,
        "move-note": cmd_move_note,
        "delete-note": cmd_delete_note,
        "daily": cmd_daily,
        "add-daily": cmd_add_daily,
        "dashboard": cmd_dashboard,
    }

    try:
        return commands[args.command](args)
    except JournalError as e:
        print(f"❌ {e.message}")
        return 1
    except SQLAlchemyError as e:
        print(f"❌ Database error: {str(e).splitlines()[0]}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
