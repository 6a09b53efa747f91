"""
GridMirror - presentation-side copy of the favorites set.

Stands in for a grid widget: it never reads the reconciler's set wholesale
except on reload, and otherwise rebuilds its rows only from diffs plus
single-entry reads, the way a collection view re-requests cells.

Key behaviors:
- Applies insert/delete/update/move diffs in receipt order
- request_move moves the row optimistically, then forwards to the reconciler
- on_move_rejected snaps the row back
- Records every diff and edit-mode broadcast for inspection
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from favsync.components.favorites import (
    Diff,
    EntryLookupPort,
    FavoritesReconciler,
    ItemDeleted,
    ItemInserted,
    ItemMoved,
    ItemsReloaded,
    ItemUpdated,
    MoveRejected,
    MoveResult,
)
from favsync.domain.entities import FavoriteEntry

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class GridMirror:
    """
    Presentation adapter consuming reconciler diffs.

    Implements FavoritesPresentationPort.
    """

    source: EntryLookupPort
    rows: list[FavoriteEntry] = field(default_factory=list)
    diffs: list[Diff] = field(default_factory=list)
    rejections: list[MoveRejected] = field(default_factory=list)
    editing_events: list[bool] = field(default_factory=list)
    editing: bool = False

    @classmethod
    def attach(cls, reconciler: FavoritesReconciler) -> GridMirror:
        """Create a mirror synchronized with the reconciler and attach it."""
        mirror = cls(source=reconciler)
        mirror.rows = list(reconciler.entries())
        reconciler.attach_presentation(mirror)
        return mirror

    # --- Presentation port ---

    def on_inserted(self, position: int) -> None:
        self.diffs.append(ItemInserted(position))
        self.rows.insert(position, self._read(position))

    def on_deleted(self, position: int) -> None:
        self.diffs.append(ItemDeleted(position))
        del self.rows[position]

    def on_updated(self, position: int) -> None:
        self.diffs.append(ItemUpdated(position))
        self.rows[position] = self._read(position)

    def on_moved(self, from_position: int, to_position: int) -> None:
        self.diffs.append(ItemMoved(from_position, to_position))
        self.rows.insert(to_position, self.rows.pop(from_position))

    def on_reloaded(self) -> None:
        self.diffs.append(ItemsReloaded())
        self.rows = [self._read(position) for position in range(self.source.count())]

    def on_editing_changed(self, editing: bool) -> None:
        self.editing = editing
        self.editing_events.append(editing)

    def on_move_rejected(self, rejection: MoveRejected) -> None:
        self.rejections.append(rejection)
        size = len(self.rows)
        if 0 <= rejection.from_position < size and 0 <= rejection.to_position < size:
            # Undo the optimistic move made in request_move
            self.rows.insert(rejection.from_position, self.rows.pop(rejection.to_position))
        logger.info("Reverted rejected move: %s", rejection.reason)

    # --- User gestures ---

    def request_move(
        self,
        reconciler: FavoritesReconciler,
        from_position: int,
        to_position: int,
    ) -> MoveResult:
        """Drag a tile: move it on screen, then ask the reconciler to persist it."""
        size = len(self.rows)
        if 0 <= from_position < size and 0 <= to_position < size:
            self.rows.insert(to_position, self.rows.pop(from_position))
        return reconciler.move(from_position, to_position)

    # --- Internals ---

    def _read(self, position: int) -> FavoriteEntry:
        entry = self.source.entry_at(position)
        if entry is None:
            raise IndexError(f"Diff refers to missing favorite at position {position}")
        return entry
