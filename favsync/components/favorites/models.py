"""
Favorites component - Data models.

Change notifications (store -> reconciler), diffs (reconciler -> presentation),
and the result/error values returned by the component entry points.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal
from uuid import UUID

from favsync.domain.entities import FavoriteEntry

# --- Errors ---


ErrorCode = Literal[
    "fetch_failed",
    "invalid_entry",
    "move_rejected",
    "invalid_position",
    "not_found",
]


@dataclass(frozen=True)
class FavoritesError:
    """Recoverable favorites error, returned as a value."""

    code: ErrorCode
    message: str
    entry_id: UUID | None = None


@dataclass(frozen=True)
class MoveRejected:
    """
    Signal sent to the presentation when a move could not be applied.

    Carries the original positions so the presentation can snap the
    dragged item back.
    """

    from_position: int
    to_position: int
    entry_id: UUID | None
    reason: str
    code: ErrorCode = "move_rejected"


# --- Change Notifications (store -> reconciler) ---


@dataclass(frozen=True)
class InsertNotification:
    """An entry was added to the store."""

    entry: FavoriteEntry
    position: int


@dataclass(frozen=True)
class DeleteNotification:
    """An entry was removed from the store. Position is only a hint."""

    position: int
    entry_id: UUID | None = None


@dataclass(frozen=True)
class UpdateNotification:
    """An entry's content (and possibly its order) changed."""

    entry: FavoriteEntry
    old_position: int
    new_position: int | None = None


@dataclass(frozen=True)
class MoveNotification:
    """Reserved. Stores never originate moves."""

    entry_id: UUID
    old_position: int
    new_position: int


ChangeNotification = (
    InsertNotification | DeleteNotification | UpdateNotification | MoveNotification
)


# --- Order Persistence ---


@dataclass(frozen=True)
class OrderChange:
    """New order key for one entry."""

    entry_id: UUID
    order: int


# --- Diffs (reconciler -> presentation) ---


@dataclass(frozen=True)
class ItemInserted:
    position: int


@dataclass(frozen=True)
class ItemDeleted:
    position: int


@dataclass(frozen=True)
class ItemUpdated:
    position: int


@dataclass(frozen=True)
class ItemMoved:
    from_position: int
    to_position: int


@dataclass(frozen=True)
class ItemsReloaded:
    pass


Diff = ItemInserted | ItemDeleted | ItemUpdated | ItemMoved | ItemsReloaded


# --- Render Data ---


@dataclass(frozen=True)
class TileData:
    """Cell data for one favorite tile."""

    entry_id: UUID
    label: str
    accessibility_label: str
    url: str
    show_remove_button: bool


# --- Operation Results ---


@dataclass(frozen=True)
class FetchResult:
    """Outcome of an initial fetch or a reload."""

    success: bool
    count: int
    errors: tuple[FavoritesError, ...] = ()


@dataclass(frozen=True)
class MovePlan:
    """Reordered set plus the order keys that have to be persisted."""

    entries: tuple[FavoriteEntry, ...]
    changes: tuple[OrderChange, ...]


@dataclass(frozen=True)
class MoveResult:
    """Outcome of a user-driven move."""

    success: bool
    changes: tuple[OrderChange, ...] = ()
    rejection: MoveRejected | None = None


# --- Input Models ---


@dataclass(frozen=True)
class GetEntryInput:
    """Input for looking up an entry by position."""

    position: int


@dataclass(frozen=True)
class MoveInput:
    """Input for a user-driven reorder."""

    from_position: int
    to_position: int


@dataclass(frozen=True)
class SetEditingInput:
    """Input for toggling edit mode."""

    editing: bool


# --- Output Models ---


@dataclass(frozen=True)
class EntryOutput:
    """Output from entry lookup."""

    entry: FavoriteEntry | None
    errors: tuple[FavoritesError, ...]
    success: bool


@dataclass(frozen=True)
class EntryListOutput:
    """Output from list operation."""

    entries: tuple[FavoriteEntry, ...]
    total: int


@dataclass(frozen=True)
class MoveOutput:
    """Output from move operation."""

    changes: tuple[OrderChange, ...]
    errors: tuple[FavoritesError, ...]
    success: bool


@dataclass(frozen=True)
class EditingOutput:
    """Output from edit-mode toggle."""

    editing: bool
    changed: bool


@dataclass(frozen=True)
class InitializeOutput:
    """Output from initialization."""

    total: int
    errors: tuple[FavoritesError, ...] = field(default_factory=tuple)
    success: bool = True
