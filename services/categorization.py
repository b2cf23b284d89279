"""
Categorization Service - Board layout and drag-and-drop reclassification.

The analysis board has three columns. Catalyst and block columns are split
into one container per parent category; research is a single container. Each
container is addressed by a drop-target id "<category>-<parentCategory>",
e.g. "catalyst-financial" or "research-general".

Moving a note onto a container rewrites its classification:

    research  -> parent "general", no sentiment
    catalyst  -> parent from target, sentiment bullish
    block     -> parent from target, sentiment bearish
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable

from db.models import (
    DIRECTIONAL_PARENT_CATEGORIES,
    NoteCategory,
    ParentCategory,
    Sentiment,
)
from services.schemas import NoteRecord

if TYPE_CHECKING:
    from services.note_service import AnalysisNoteStore


logger = logging.getLogger(__name__)


# Sentiment a note receives when moved into a directional column
CATEGORY_DEFAULT_SENTIMENT: dict[NoteCategory, Sentiment] = {
    NoteCategory.CATALYST: Sentiment.BULLISH,
    NoteCategory.BLOCK: Sentiment.BEARISH,
}

CATEGORY_LABELS: dict[NoteCategory, str] = {
    NoteCategory.CATALYST: "Catalysts",
    NoteCategory.BLOCK: "Blockers",
    NoteCategory.RESEARCH: "Research",
}


def container_id(category: NoteCategory | str, parent_category: ParentCategory | str) -> str:
    """Drop-target id for a category/parent pair."""
    return f"{NoteCategory(category).value}-{ParentCategory(parent_category).value}"


@dataclass(frozen=True)
class DropTarget:
    """Parsed drop-target id."""
    category: NoteCategory
    parent_category: ParentCategory

    @property
    def id(self) -> str:
        return container_id(self.category, self.parent_category)

    @property
    def label(self) -> str:
        if self.category is NoteCategory.RESEARCH:
            return CATEGORY_LABELS[self.category]
        return f"{CATEGORY_LABELS[self.category]} / {self.parent_category.value.capitalize()}"

    @classmethod
    def parse(cls, target_id: str | None) -> "DropTarget | None":
        """
        Parse "<category>-<parent>"; None for anything unusable.

        Research targets always resolve to the general container. Catalyst
        and block targets need a parent from the fixed taxonomy.
        """
        if not target_id or "-" not in target_id:
            return None
        raw_category, raw_parent = target_id.split("-", 1)
        try:
            category = NoteCategory(raw_category)
        except ValueError:
            return None

        if category is NoteCategory.RESEARCH:
            return cls(category, ParentCategory.GENERAL)

        try:
            parent = ParentCategory(raw_parent)
        except ValueError:
            return None
        if parent not in DIRECTIONAL_PARENT_CATEGORIES:
            return None
        return cls(category, parent)


def all_drop_targets() -> list[DropTarget]:
    """Every container on the board, in display order."""
    targets = [
        DropTarget(category, parent)
        for category in (NoteCategory.CATALYST, NoteCategory.BLOCK)
        for parent in DIRECTIONAL_PARENT_CATEGORIES
    ]
    targets.append(DropTarget(NoteCategory.RESEARCH, ParentCategory.GENERAL))
    return targets


def reclassify(target: DropTarget) -> dict[str, Any]:
    """
    Classification fields a note takes on when dropped onto target.

    Sentiment is always reset to the column default, even if the note already
    carried a compatible sentiment.
    """
    if target.category is NoteCategory.RESEARCH:
        return {
            "category": NoteCategory.RESEARCH,
            "parent_category": ParentCategory.GENERAL,
            "sentiment": None,
        }
    return {
        "category": target.category,
        "parent_category": target.parent_category,
        "sentiment": CATEGORY_DEFAULT_SENTIMENT[target.category],
    }


def apply_category_change(
    category: NoteCategory | str,
    sentiment: Sentiment | str | None,
    parent_category: ParentCategory | str,
) -> dict[str, Any]:
    """
    Form behaviour when the user picks a different category.

    Research clears sentiment and files under "general". Catalyst/block keep
    any existing sentiment (defaulting to bullish) and keep the parent.
    """
    category = NoteCategory(category)
    if category is NoteCategory.RESEARCH:
        return {
            "category": category,
            "sentiment": None,
            "parent_category": ParentCategory.GENERAL,
        }
    return {
        "category": category,
        "sentiment": Sentiment(sentiment) if sentiment else Sentiment.BULLISH,
        "parent_category": ParentCategory(parent_category),
    }


# ──────────────────────────────────────────────────────────────────────────────
# Drop handling
# ──────────────────────────────────────────────────────────────────────────────


@dataclass
class MoveResult:
    """Result object for a drop onto a board container."""
    note: NoteRecord | None
    moved: bool
    errors: list[str] = field(default_factory=list)
    status_message: str = ""

    @property
    def success(self) -> bool:
        """Whether the drop completed without error (a no-op counts as success)."""
        return len(self.errors) == 0


def handle_drop(
    store: "AnalysisNoteStore",
    note_id: str,
    target_id: str,
    source_id: str | None = None,
) -> MoveResult:
    """
    Move a cached note onto a board container.

    Args:
        store: Notes store used to persist the change
        note_id: Note being dragged
        target_id: Container it was dropped on
        source_id: Container it was dragged from (defaults to the note's own)

    Returns:
        MoveResult; moved is False for no-ops and ignored drops.
    """
    note = store.get(note_id)
    if note is None:
        return MoveResult(
            note=None,
            moved=False,
            errors=[f"Note {note_id} not found"],
            status_message="❌ Note not found",
        )

    source_id = source_id or note.container_id
    if source_id == target_id:
        return MoveResult(note=note, moved=False)

    target = DropTarget.parse(target_id)
    if target is None:
        logger.debug(f"Ignoring drop of {note_id} onto {target_id!r}")
        return MoveResult(note=note, moved=False)

    try:
        updated = store.update(note.id, **reclassify(target))
    except Exception as e:
        message = str(e) or "Failed to move note"
        return MoveResult(
            note=note,
            moved=False,
            errors=[message],
            status_message=f"❌ Move failed: {message}",
        )

    return MoveResult(
        note=updated,
        moved=True,
        status_message=f'✅ Moved "{note.title}" to {target.category.value} category',
    )


# ──────────────────────────────────────────────────────────────────────────────
# Board layout
# ──────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class BoardContainer:
    """One drop zone and the notes currently in it."""
    target: DropTarget
    notes: tuple[NoteRecord, ...]


@dataclass(frozen=True)
class BoardColumn:
    """A board column (catalysts, blockers or research)."""
    category: NoteCategory
    containers: tuple[BoardContainer, ...]

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self.category]

    @property
    def count(self) -> int:
        return sum(len(c.notes) for c in self.containers)


def _newest_first(notes: Iterable[NoteRecord]) -> tuple[NoteRecord, ...]:
    return tuple(sorted(notes, key=lambda n: (n.date, n.timestamp), reverse=True))


def build_board(notes: Iterable[NoteRecord]) -> list[BoardColumn]:
    """Group notes into board columns and containers, newest note date first."""
    notes = list(notes)
    columns = []
    for category in (NoteCategory.CATALYST, NoteCategory.BLOCK, NoteCategory.RESEARCH):
        containers = tuple(
            BoardContainer(
                target=target,
                notes=_newest_first(
                    n for n in notes
                    if n.category is category
                    and (category is NoteCategory.RESEARCH or n.parent_category is target.parent_category)
                ),
            )
            for target in all_drop_targets()
            if target.category is category
        )
        columns.append(BoardColumn(category=category, containers=containers))
    return columns
