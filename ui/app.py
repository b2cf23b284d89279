"""
Streamlit Dashboard for the Stock Analysis Journal.

Pages:
- Positions: searchable, sortable and groupable table with note counts, add /
  edit / delete forms and a note-count chart
- Analysis: catalyst / blocker / research board for one position, with
  "move to" controls and add / edit note forms
- Daily Notes: free-text journal entries by date
"""

from datetime import date

import plotly.express as px
import streamlit as st
from sqlalchemy.exc import SQLAlchemyError

from config import config
from db import DIRECTIONAL_PARENT_CATEGORIES, NoteCategory, PositionStatus, Sentiment, get_db, init_db
from services.categorization import (
    CATEGORY_DEFAULT_SENTIMENT,
    all_drop_targets,
    apply_category_change,
    build_board,
    handle_drop,
)
from services.errors import JournalError
from services.journal_service import (
    StockJournal,
    TABLE_COLUMNS,
    group_positions,
    note_counts_frame,
    positions_frame,
)
from services.schemas import NewAnalysisNote, NewDailyNote, NewStockPosition
from services.validation import collect_note_errors, collect_position_errors, format_tags


# Initialize database on app start
init_db()

POSITION_EMOJI = {
    PositionStatus.HOLDING: "🟢",
    PositionStatus.WATCHING: "👀",
    PositionStatus.SOLD: "⚪",
}

SENTIMENT_EMOJI = {
    Sentiment.BULLISH: "📈",
    Sentiment.BEARISH: "📉",
}


def configure_page():
    """Configure Streamlit page settings."""
    st.set_page_config(
        page_title=config.ui.page_title,
        page_icon="📊",
        layout=config.ui.layout,
        initial_sidebar_state="expanded",
    )


def get_journal() -> StockJournal:
    """Journal for this browser session, signed in as the default user on first use."""
    if "journal" not in st.session_state:
        journal = StockJournal(get_db())
        journal.auth.sign_in(config.auth.default_email)
        st.session_state.journal = journal
    return st.session_state.journal


def flash(message: str):
    """Queue a status message to show after the next rerun."""
    st.session_state.flash = message


def show_flash():
    message = st.session_state.pop("flash", None)
    if message:
        if message.startswith("❌"):
            st.error(message)
        else:
            st.success(message)


def run_action(action, *args, **kwargs):
    """
    Call a store operation and report failures inline.

    Returns the operation result, or None if it raised.
    """
    try:
        return action(*args, **kwargs)
    except JournalError as e:
        st.error(f"❌ {e.message}")
    except SQLAlchemyError:
        journal = get_journal()
        st.error(f"❌ {journal.error_message or 'Database error'}")
    return None


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return date.today()


def render_sidebar(journal: StockJournal) -> str:
    """Render sidebar navigation and identity controls; return selected page."""
    st.sidebar.title("📊 Stock Journal")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigation",
        ["Positions", "Analysis", "Daily Notes"],
        label_visibility="collapsed",
    )

    st.sidebar.markdown("---")
    user = journal.auth.user
    if user is not None:
        st.sidebar.caption(f"👤 {user.email}")
        if st.sidebar.button("Sign out"):
            journal.auth.sign_out()
            st.rerun()
        if st.sidebar.button("🔄 Refresh"):
            journal.refresh()
            st.rerun()
    else:
        email = st.sidebar.text_input("Email", value=config.auth.default_email)
        if st.sidebar.button("Sign in", type="primary"):
            try:
                journal.auth.sign_in(email)
            except ValueError as e:
                st.sidebar.error(str(e))
            else:
                st.rerun()

    return page


def render_error_banner(journal: StockJournal):
    """Show the last recorded store error with a dismiss button."""
    message = journal.error_message
    if not message:
        return
    col_msg, col_btn = st.columns([6, 1])
    col_msg.error(f"❌ {message}")
    if col_btn.button("Dismiss", key="dismiss_error"):
        journal.clear_errors()
        st.rerun()


# ──────────────────────────────────────────────────────────────────────────────
# Positions page
# ──────────────────────────────────────────────────────────────────────────────


@st.dialog("Edit Position")
def edit_position_dialog(position):
    """Dialog for editing one position."""
    limits = config.validation
    statuses = [s.value for s in PositionStatus]

    with st.form("edit_position_form"):
        st.text_input("Symbol", value=position.symbol, disabled=True)
        price = st.text_input("Price *", value=position.price)
        status = st.selectbox("Position", statuses, index=statuses.index(position.position.value))
        strategy = st.text_input("Strategy *", value=position.strategy, max_chars=limits.max_strategy_length)
        category = st.text_input("Category", value=position.category)
        risk_level = st.slider(
            "Risk Level", limits.min_risk_level, limits.max_risk_level, value=position.risk_level
        )
        position_size = st.number_input(
            "Position Size", min_value=0.0, value=float(position.position_size), step=1.0
        )
        entry_date = st.date_input("Date", value=_parse_date(position.date))

        col_a, col_b = st.columns(2)
        save = col_a.form_submit_button("Save Changes", type="primary")
        cancel = col_b.form_submit_button("Cancel")

    if cancel:
        st.rerun()

    if save:
        candidate = {
            "price": price,
            "position": status,
            "strategy": strategy,
            "category": category,
            "risk_level": int(risk_level),
            "position_size": float(position_size),
            "date": entry_date.isoformat(),
        }
        current = {
            "price": position.price,
            "position": position.position.value,
            "strategy": position.strategy,
            "category": position.category,
            "risk_level": position.risk_level,
            "position_size": float(position.position_size),
            "date": position.date,
        }
        updates = {name: value for name, value in candidate.items() if value != current[name]}

        if not updates:
            st.info("No changes detected")
            return

        record = run_action(get_journal().positions.update, position.id, **updates)
        if record is not None:
            flash(f"✅ Updated {record.symbol}")
            st.rerun()


@st.dialog("Delete Position")
def delete_position_dialog(summary):
    """Confirmation dialog for the notes-then-position delete."""
    position = summary.position
    st.warning(
        f"**Are you sure you want to delete {position.symbol}?**\n\n"
        f"This also deletes {summary.notes_count} related note(s)."
    )

    col_a, col_b = st.columns(2)
    do_delete = col_a.button("Delete Position", type="primary")
    cancel = col_b.button("Cancel")

    if cancel:
        st.rerun()

    if do_delete:
        result = get_journal().delete_position(position.id)
        if result.success:
            flash(result.status_message)
            st.rerun()
        else:
            st.error(result.status_message)


def _render_add_position_form(journal: StockJournal):
    """Form for tracking a new position, with per-field errors."""
    limits = config.validation
    defaults = config.position_defaults

    with st.expander("➕ Add Position"):
        with st.form("add_position_form", clear_on_submit=False):
            col1, col2, col3 = st.columns(3)
            with col1:
                symbol = st.text_input("Symbol *", placeholder="AAPL", max_chars=5)
                price = st.text_input("Price *", placeholder="182.50")
            with col2:
                status = st.selectbox(
                    "Position",
                    [s.value for s in PositionStatus],
                    index=[s.value for s in PositionStatus].index(PositionStatus.WATCHING.value),
                )
                strategy = st.text_input(
                    "Strategy *", value=defaults.strategy, max_chars=limits.max_strategy_length
                )
            with col3:
                category = st.text_input("Category", value=defaults.category)
                entry_date = st.date_input("Date", value=date.today())

            risk_level = st.slider(
                "Risk Level", limits.min_risk_level, limits.max_risk_level, value=defaults.risk_level
            )
            position_size = st.number_input(
                "Position Size", min_value=0.0, value=defaults.position_size, step=1.0
            )

            submitted = st.form_submit_button("Add Position", type="primary")

        if submitted:
            candidate = NewStockPosition(
                symbol=symbol,
                price=price,
                position=status,
                strategy=strategy,
                category=category,
                date=entry_date.isoformat(),
                risk_level=int(risk_level),
                position_size=float(position_size),
            )
            errors = collect_position_errors(candidate)
            if errors:
                for message in errors.values():
                    st.error(message)
                return

            record = run_action(journal.positions.add, candidate)
            if record is not None:
                flash(f"✅ Added {record.symbol} @ ${record.price}")
                st.rerun()


def _render_positions_table(journal: StockJournal, summaries):
    """Search, sort and group controls plus the positions table."""
    col_sort, col_dir, col_group = st.columns([2, 1, 2])
    with col_sort:
        sort_by = st.selectbox(
            "Sort by",
            TABLE_COLUMNS[1:],
            index=TABLE_COLUMNS[1:].index("date"),
        )
    with col_dir:
        descending = st.toggle("Descending", value=True)
    with col_group:
        group_by = st.selectbox(
            "Group by",
            ["None", *config.ui.group_by_options],
        )

    df = positions_frame(summaries, sort_by=sort_by, ascending=not descending)

    column_config = {
        "symbol": st.column_config.TextColumn("Symbol"),
        "strategy": st.column_config.TextColumn("Strategy"),
        "price": st.column_config.NumberColumn("Price", format="$%.2f"),
        "position": st.column_config.TextColumn("Position"),
        "category": st.column_config.TextColumn("Category"),
        "risk_level": st.column_config.ProgressColumn(
            "Risk", min_value=config.validation.min_risk_level,
            max_value=config.validation.max_risk_level, format="%d",
        ),
        "position_size": st.column_config.NumberColumn("Size"),
        "catalysts": st.column_config.NumberColumn("📈 Catalysts"),
        "blockers": st.column_config.NumberColumn("🚧 Blockers"),
        "research": st.column_config.NumberColumn("🔬 Research"),
        "total_notes": st.column_config.NumberColumn("Notes"),
        "date": st.column_config.TextColumn("Date"),
    }
    display_cols = TABLE_COLUMNS[1:]

    if group_by == "None":
        st.dataframe(df[display_cols], hide_index=True, column_config=column_config)
        return

    for name, group in group_positions(df, group_by).items():
        st.markdown(f"**{name}** ({len(group)})")
        st.dataframe(group[display_cols], hide_index=True, column_config=column_config)


def _render_position_actions(summaries):
    """One row per position with edit / delete buttons."""
    for summary in summaries:
        position = summary.position
        with st.container(border=True):
            col_info, col_actions = st.columns([5, 1])
            with col_info:
                emoji = POSITION_EMOJI.get(position.position, "")
                st.markdown(
                    f"**{emoji} {position.symbol}** / \\${position.price} / "
                    f"{position.strategy} / risk {position.risk_level}"
                )
                st.caption(
                    f"{summary.catalysts_count} catalysts · {summary.blockers_count} blockers · "
                    f"{summary.research_count} research · {position.date}"
                )
            with col_actions:
                col_edit, col_delete = st.columns(2)
                with col_edit:
                    if st.button("✏️", key=f"edit_{position.id}", help="Edit position"):
                        edit_position_dialog(position)
                with col_delete:
                    if st.button("🗑️", key=f"delete_{position.id}", help="Delete position"):
                        delete_position_dialog(summary)


def render_positions_page(journal: StockJournal):
    """
    Render Positions page.

    Shows:
    - Add position form
    - Searchable, sortable, groupable table with note counts
    - Note counts chart
    - Edit / delete actions
    """
    st.header("📈 Stock Positions")

    if journal.loading:
        st.info("Loading positions...")
        return

    _render_add_position_form(journal)

    search = st.text_input("🔍 Search", placeholder="Symbol or strategy")
    summaries = journal.summaries(search=search)

    if not summaries:
        if search:
            st.info(f"No positions match '{search}'.")
        else:
            st.info("No positions yet. Add your first position to get started!")
        return

    col1, col2, col3 = st.columns(3)
    col1.metric("Positions", len(summaries))
    col2.metric("Holding", sum(1 for s in summaries if s.position.position is PositionStatus.HOLDING))
    col3.metric("Notes", sum(s.notes_count for s in summaries))

    _render_positions_table(journal, summaries)

    st.divider()
    st.subheader("🧠 Notes per Position")
    counts = note_counts_frame(summaries)
    if counts["count"].sum() > 0:
        fig = px.bar(
            counts,
            x="symbol",
            y="count",
            color="category",
            barmode="group",
            color_discrete_map={
                "Catalysts": "#2ca02c",
                "Blockers": "#d62728",
                "Research": "#7f7f7f",
            },
        )
        fig.update_layout(xaxis_title=None, yaxis_title="Notes", legend_title=None)
        st.plotly_chart(fig)
    else:
        st.caption("No analysis notes yet.")

    st.divider()
    st.subheader("⚙️ Manage Positions")
    _render_position_actions(summaries)


# ──────────────────────────────────────────────────────────────────────────────
# Analysis page
# ──────────────────────────────────────────────────────────────────────────────


def _note_form_fields(prefix: str, note=None) -> dict:
    """Shared note widgets; returns the raw values entered."""
    limits = config.validation
    categories = [c.value for c in NoteCategory]
    parents = [p.value for p in DIRECTIONAL_PARENT_CATEGORIES]
    sentiments = [s.value for s in Sentiment]

    category = st.selectbox(
        "Category",
        categories,
        index=categories.index(note.category.value) if note else categories.index("research"),
        key=f"{prefix}_category",
    )
    col1, col2 = st.columns(2)
    with col1:
        current_parent = note.parent_category.value if note else parents[0]
        parent = st.selectbox(
            "Parent Category",
            parents,
            index=parents.index(current_parent) if current_parent in parents else 0,
            key=f"{prefix}_parent",
            help="Ignored for research notes",
        )
    with col2:
        default_sentiment = CATEGORY_DEFAULT_SENTIMENT.get(NoteCategory(category), Sentiment.BULLISH)
        current_sentiment = note.sentiment.value if note and note.sentiment else default_sentiment.value
        sentiment = st.selectbox(
            "Sentiment",
            sentiments,
            index=sentiments.index(current_sentiment),
            key=f"{prefix}_sentiment",
            help="Ignored for research notes",
        )
    title = st.text_input(
        "Title *", value=note.title if note else "", max_chars=limits.max_title_length, key=f"{prefix}_title"
    )
    description = st.text_area(
        "Description *",
        value=note.description if note else "",
        max_chars=limits.max_description_length,
        height=120,
        key=f"{prefix}_description",
    )
    col3, col4 = st.columns(2)
    with col3:
        note_date = st.date_input(
            "Date", value=_parse_date(note.date) if note else date.today(), key=f"{prefix}_date"
        )
    with col4:
        tags = st.text_input(
            "Tags",
            value=format_tags(note.tags) if note else "",
            placeholder="earnings, tech, regulation",
            key=f"{prefix}_tags",
        )

    classification = apply_category_change(category, sentiment, parent)
    return {
        **classification,
        "title": title,
        "description": description,
        "date": note_date.isoformat(),
        "tags": tags,
    }


@st.dialog("Edit Note")
def edit_note_dialog(note):
    """Dialog for editing one analysis note."""
    with st.form("edit_note_form"):
        values = _note_form_fields("edit", note)
        col_a, col_b = st.columns(2)
        save = col_a.form_submit_button("Save Changes", type="primary")
        cancel = col_b.form_submit_button("Cancel")

    if cancel:
        st.rerun()

    if save:
        errors = collect_note_errors(NewAnalysisNote(**values))
        if errors:
            for message in errors.values():
                st.error(message)
            return

        updates = {
            "category": values["category"],
            "parent_category": values["parent_category"],
            "sentiment": values["sentiment"],
        }
        for name in ("title", "description", "date"):
            if values[name] != getattr(note, name):
                updates[name] = values[name]
        if values["tags"] != format_tags(note.tags):
            updates["tags"] = values["tags"]

        record = run_action(get_journal().notes.update, note.id, **updates)
        if record is not None:
            flash(f"✅ Updated \"{record.title}\"")
            st.rerun()


@st.dialog("Delete Note")
def delete_note_dialog(note):
    st.warning(f"**Delete \"{note.title}\"?**")
    col_a, col_b = st.columns(2)
    do_delete = col_a.button("Delete Note", type="primary")
    cancel = col_b.button("Cancel")

    if cancel:
        st.rerun()

    if do_delete:
        if run_action(get_journal().notes.delete, note.id) is None and get_journal().notes.error:
            return
        flash(f"✅ Deleted \"{note.title}\"")
        st.rerun()


def _render_note_card(journal: StockJournal, note):
    """Render a single note with its move / edit / delete controls."""
    targets = all_drop_targets()
    target_ids = [t.id for t in targets]
    labels = {t.id: t.label for t in targets}

    with st.container(border=True):
        sentiment = SENTIMENT_EMOJI.get(note.sentiment, "🔬")
        st.markdown(f"**{sentiment} {note.title}**")
        st.caption(note.date)
        st.markdown(note.description)
        if note.tags:
            st.caption(" • ".join(f"`{tag}`" for tag in note.tags))

        move_to = st.selectbox(
            "Move to",
            target_ids,
            index=target_ids.index(note.container_id) if note.container_id in target_ids else 0,
            format_func=lambda target_id: labels[target_id],
            key=f"move_{note.id}",
            label_visibility="collapsed",
        )
        col_move, col_edit, col_delete = st.columns(3)
        with col_move:
            if st.button("↪️", key=f"do_move_{note.id}", help="Move note"):
                result = handle_drop(journal.notes, note.id, move_to, source_id=note.container_id)
                if not result.success:
                    st.error(result.status_message)
                elif result.moved:
                    flash(result.status_message)
                    st.rerun()
        with col_edit:
            if st.button("✏️", key=f"edit_note_{note.id}", help="Edit note"):
                edit_note_dialog(note)
        with col_delete:
            if st.button("🗑️", key=f"delete_note_{note.id}", help="Delete note"):
                delete_note_dialog(note)


def _render_board(journal: StockJournal, notes):
    """Three board columns, one container per drop target."""
    columns = build_board(notes)
    for ui_col, column in zip(st.columns(len(columns)), columns):
        with ui_col:
            st.subheader(f"{column.label} ({column.count})")
            for container in column.containers:
                if column.category is not NoteCategory.RESEARCH:
                    st.markdown(f"*{container.target.parent_category.value.capitalize()}*")
                if not container.notes:
                    st.caption("Empty")
                for note in container.notes:
                    _render_note_card(journal, note)


def _render_add_note_form(journal: StockJournal, position):
    with st.expander("➕ Add Note"):
        with st.form("add_note_form"):
            values = _note_form_fields("add")
            submitted = st.form_submit_button("Add Note", type="primary")

        if submitted:
            candidate = NewAnalysisNote(**values)
            errors = collect_note_errors(candidate)
            if errors:
                for message in errors.values():
                    st.error(message)
                return

            record = run_action(journal.notes.add, position.id, position.symbol, candidate)
            if record is not None:
                flash(f"✅ Added {record.category.value} note for {record.symbol}")
                st.rerun()


def render_analysis_page(journal: StockJournal):
    """
    Render Analysis page for one position.

    Notes are grouped into catalyst / blocker / research columns; the
    "move to" control reclassifies a note onto another container.
    """
    st.header("🧠 Analysis Board")

    if journal.loading:
        st.info("Loading notes...")
        return

    positions = journal.positions.rows
    if not positions:
        st.info("No positions yet. Add a position first.")
        return

    symbols = [p.symbol for p in positions]
    selected = st.selectbox(
        "Select Position",
        options=symbols,
        index=None,
        placeholder="Choose a ticker...",
        key="analysis_symbol",
    )
    if not selected:
        return

    position = journal.positions.get_by_symbol(selected)
    notes = journal.notes_for_symbol(selected)

    emoji = POSITION_EMOJI.get(position.position, "")
    st.caption(f"{emoji} {position.position.value} · ${position.price} · {position.strategy}")

    _render_add_note_form(journal, position)

    if not notes:
        st.info(f"No notes for {selected} yet.")
        return

    _render_board(journal, notes)


# ──────────────────────────────────────────────────────────────────────────────
# Daily notes page
# ──────────────────────────────────────────────────────────────────────────────


@st.dialog("Edit Daily Note")
def edit_daily_note_dialog(note):
    with st.form("edit_daily_form"):
        note_date = st.date_input("Date", value=_parse_date(note.date))
        content = st.text_area("Content *", value=note.content, height=160)
        col_a, col_b = st.columns(2)
        save = col_a.form_submit_button("Save Changes", type="primary")
        cancel = col_b.form_submit_button("Cancel")

    if cancel:
        st.rerun()

    if save:
        updates = {}
        if content != note.content:
            updates["content"] = content
        if note_date.isoformat() != note.date:
            updates["date"] = note_date.isoformat()
        if not updates:
            st.info("No changes detected")
            return

        record = run_action(get_journal().daily_notes.update, note.id, **updates)
        if record is not None:
            flash(f"✅ Updated daily note for {record.date}")
            st.rerun()


def render_daily_notes_page(journal: StockJournal):
    """Render Daily Notes page."""
    st.header("📅 Daily Notes")

    store = journal.daily_notes
    if store.loading:
        st.info("Loading daily notes...")
        return

    with st.form("add_daily_form", clear_on_submit=True):
        note_date = st.date_input("Date", value=date.today())
        content = st.text_area("Content *", placeholder="What happened in the market today?", height=120)
        submitted = st.form_submit_button("Add Note", type="primary")

    if submitted:
        record = run_action(store.add, NewDailyNote(content=content, date=note_date.isoformat()))
        if record is not None:
            flash(f"✅ Daily note added for {record.date}")
            st.rerun()

    if not store.rows:
        st.info("No daily notes yet.")
        return

    for note in store.rows:
        with st.container(border=True):
            col_info, col_actions = st.columns([5, 1])
            with col_info:
                st.markdown(f"**{note.date}**")
                st.markdown(note.content)
            with col_actions:
                col_edit, col_delete = st.columns(2)
                with col_edit:
                    if st.button("✏️", key=f"edit_daily_{note.id}", help="Edit note"):
                        edit_daily_note_dialog(note)
                with col_delete:
                    if st.button("🗑️", key=f"delete_daily_{note.id}", help="Delete note"):
                        if run_action(store.delete, note.id) is None and store.error:
                            continue
                        flash(f"✅ Deleted daily note for {note.date}")
                        st.rerun()


def main():
    """Main application entry point."""
    configure_page()

    journal = get_journal()

    # Render navigation
    page = render_sidebar(journal)

    if journal.auth.user is None:
        st.info("Sign in to view your journal.")
        return

    show_flash()
    render_error_banner(journal)

    # Render selected page
    if page == "Positions":
        render_positions_page(journal)
    elif page == "Analysis":
        render_analysis_page(journal)
    elif page == "Daily Notes":
        render_daily_notes_page(journal)


if __name__ == "__main__":
    main()
