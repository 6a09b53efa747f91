"""
Favorites component - Ordered favorites reconciliation.

Owns the authoritative in-memory ordered favorites set, applies store change
notifications, emits order-preserving diffs to the presentation, and
persists user-driven reorders.

Shell Layer - handles I/O and error conversion.

Key behaviors:
- Fetch failures degrade to an empty set, never raise
- Entries without a usable URL are excluded and logged once per entry
- Store notifications are resolved by entry id; positions are only hints
- Diffs are emitted after each state change, in order
- Failed moves leave the set untouched and signal the presentation
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Sequence
from dataclasses import replace
from uuid import UUID

from favsync.domain.entities import FavoriteEntry
from favsync.rules.models import FavoritesRules

from ._impl import (
    find_index,
    has_strict_order,
    insertion_index,
    order_collides,
    place_with_hint,
    plan_move,
    renumber,
    sort_by_order,
    validate_entry,
)
from .models import (
    ChangeNotification,
    DeleteNotification,
    EditingOutput,
    EntryListOutput,
    EntryOutput,
    FavoritesError,
    FetchResult,
    GetEntryInput,
    InitializeOutput,
    InsertNotification,
    MoveInput,
    MoveNotification,
    MoveOutput,
    MoveRejected,
    MoveResult,
    SetEditingInput,
    TileData,
    UpdateNotification,
)
from .ports import (
    EditingObserverPort,
    FavoritesPresentationPort,
    FavoritesStorePort,
    StorageError,
    SubscriptionPort,
)

logger = logging.getLogger(__name__)


class FavoritesReconciler:
    """
    Reconciles the favorites store with a presentation layer.

    Not meant for concurrent use; a re-entrant lock still serializes
    mutation and diff emission so the diff stream stays monotonic when a
    host delivers notifications from another thread.
    """

    def __init__(
        self,
        store: FavoritesStorePort,
        rules: FavoritesRules | None = None,
        presentation: FavoritesPresentationPort | None = None,
    ) -> None:
        self._store = store
        self._rules = rules or FavoritesRules()
        self._entries: list[FavoriteEntry] = []
        self._hidden_orders: dict[UUID, int] = {}
        self._reported_invalid: set[UUID] = set()
        self._presentation_ref: weakref.ref[FavoritesPresentationPort] | None = None
        self._editing_observers: list[EditingObserverPort] = []
        self._is_editing = False
        self._subscription: SubscriptionPort | None = None
        self._lock = threading.RLock()

        if presentation is not None:
            self.attach_presentation(presentation)

    # --- Lifecycle ---

    def initialize(self) -> FetchResult:
        """Fetch the full set and start listening for store changes."""
        with self._lock:
            result = self._fetch()
            if not result.success:
                self._entries = []
                result = replace(result, count=0)
            if self._subscription is None:
                self._subscription = self._store.subscribe(self.on_change_notification)
            return result

    def reload(self) -> FetchResult:
        """
        Re-fetch everything from the store (error recovery).

        On failure the current set is kept.
        """
        with self._lock:
            result = self._fetch()
            if result.success:
                self._emit_reloaded()
            return result

    def close(self) -> None:
        """Stop listening and drop all state."""
        with self._lock:
            if self._subscription is not None:
                self._subscription.unsubscribe()
                self._subscription = None
            self._entries = []
            self._hidden_orders.clear()
            self._editing_observers.clear()
            self._presentation_ref = None

    def _fetch(self) -> FetchResult:
        try:
            fetched = self._store.fetch_all()
        except StorageError as e:
            logger.error("Favorites fetch failed: %s", e)
            error = FavoritesError(code="fetch_failed", message=str(e))
            return FetchResult(success=False, count=len(self._entries), errors=(error,))

        errors: list[FavoritesError] = []
        valid: list[FavoriteEntry] = []
        self._hidden_orders = {}
        for entry in fetched:
            error = self._check(entry)
            if error is not None:
                errors.append(error)
                continue
            valid.append(entry)

        self._entries = sort_by_order(valid)
        reserved = self._reserved_orders()
        if not has_strict_order(self._entries) or any(
            entry.order in reserved for entry in self._entries
        ):
            logger.warning("Fetched favorites share order keys; renumbering")
            self._renumber()

        logger.info("Loaded %d favorites (%d invalid)", len(self._entries), len(errors))
        return FetchResult(success=True, count=len(self._entries), errors=tuple(errors))

    # --- Presentation Wiring ---

    def attach_presentation(self, presentation: FavoritesPresentationPort) -> None:
        """Keep a non-owning reference to the presentation."""
        with self._lock:
            self._presentation_ref = weakref.ref(presentation)

    def detach_presentation(self) -> None:
        with self._lock:
            self._presentation_ref = None

    def add_editing_observer(self, observer: EditingObserverPort) -> None:
        with self._lock:
            if observer not in self._editing_observers:
                self._editing_observers.append(observer)

    def remove_editing_observer(self, observer: EditingObserverPort) -> None:
        with self._lock:
            if observer in self._editing_observers:
                self._editing_observers.remove(observer)

    @property
    def presentation(self) -> FavoritesPresentationPort | None:
        if self._presentation_ref is None:
            return None
        return self._presentation_ref()

    # --- Reads ---

    @property
    def is_editing(self) -> bool:
        return self._is_editing

    def count(self) -> int:
        """Number of presentable favorites."""
        return len(self._entries)

    def entry_at(self, position: int) -> FavoriteEntry | None:
        """Entry at position, or None when out of bounds."""
        if 0 <= position < len(self._entries):
            return self._entries[position]
        return None

    def excluded_count(self) -> int:
        """Number of known favorites hidden for failing validation."""
        return len(self._hidden_orders)

    def index_of(self, entry_id: UUID) -> int | None:
        return find_index(self._entries, entry_id)

    def entries(self) -> tuple[FavoriteEntry, ...]:
        return tuple(self._entries)

    def render_tile(self, position: int) -> TileData | None:
        """Cell data for the tile at position, or None for a placeholder."""
        entry = self.entry_at(position)
        if entry is None or entry.url is None:
            return None
        label = entry.display_title
        return TileData(
            entry_id=entry.id,
            label=label,
            accessibility_label=label,
            url=entry.url,
            show_remove_button=self._is_editing,
        )

    # --- Edit Mode ---

    def set_editing(self, editing: bool) -> bool:
        """
        Toggle edit mode.

        Returns:
            True when the mode changed and observers were notified.
        """
        with self._lock:
            if editing == self._is_editing:
                return False
            self._is_editing = editing

            observers: list[EditingObserverPort] = []
            presentation = self.presentation
            if presentation is not None:
                observers.append(presentation)
            observers.extend(o for o in self._editing_observers if o is not presentation)

            for observer in observers:
                observer.on_editing_changed(editing)
            return True

    # --- User Reorder ---

    def move(self, from_position: int, to_position: int) -> MoveResult:
        """
        Move the entry at from_position to to_position and persist the order.

        Must be called on behalf of the attached presentation, which has
        already moved the item visually. On success it only receives
        updates for entries whose order key changed; a rejection tells it
        to put the item back. Hosts reordering without a gesture should
        detach the presentation first and reload it afterwards.
        """
        with self._lock:
            size = len(self._entries)
            if not (0 <= from_position < size and 0 <= to_position < size):
                entry = self.entry_at(from_position)
                rejection = MoveRejected(
                    from_position=from_position,
                    to_position=to_position,
                    entry_id=entry.id if entry else None,
                    reason=f"Positions out of range for {size} favorites",
                    code="invalid_position",
                )
                logger.warning(
                    "Move %d -> %d rejected: %s", from_position, to_position, rejection.reason
                )
                self._emit_move_rejected(rejection)
                return MoveResult(success=False, rejection=rejection)

            if from_position == to_position:
                return MoveResult(success=True)

            moved = self._entries[from_position]
            plan = plan_move(
                self._entries,
                from_position,
                to_position,
                self._rules.ordering,
                self._reserved_orders(),
            )
            if plan.changes:
                try:
                    self._store.persist_order(plan.changes)
                except StorageError as e:
                    rejection = MoveRejected(
                        from_position=from_position,
                        to_position=to_position,
                        entry_id=moved.id,
                        reason=str(e),
                    )
                    logger.warning("Move %d -> %d rejected: %s", from_position, to_position, e)
                    self._emit_move_rejected(rejection)
                    return MoveResult(success=False, rejection=rejection)

            self._entries = list(plan.entries)
            logger.debug(
                "Moved favorite %s from %d to %d (%d order keys written)",
                moved.id,
                from_position,
                to_position,
                len(plan.changes),
            )
            self._emit_updated_for({change.entry_id for change in plan.changes})
            return MoveResult(success=True, changes=plan.changes)

    # --- Store Notifications ---

    def on_change_notification(self, notification: ChangeNotification) -> None:
        """Apply one store change and emit the matching diffs."""
        with self._lock:
            if isinstance(notification, InsertNotification):
                self._apply_insert(notification)
            elif isinstance(notification, DeleteNotification):
                self._apply_delete(notification)
            elif isinstance(notification, UpdateNotification):
                self._apply_update(notification)
            elif isinstance(notification, MoveNotification):
                # Moves only ever originate here, never from the store
                logger.warning(
                    "Ignoring store-originated move of favorite %s", notification.entry_id
                )
            else:
                logger.error("Unknown change notification: %r", notification)

    def _apply_insert(self, notification: InsertNotification) -> None:
        entry = notification.entry
        if find_index(self._entries, entry.id) is not None:
            self._apply_update(UpdateNotification(entry=entry, old_position=notification.position))
            return
        if self._check(entry) is not None:
            self._release_hidden_order(entry.order)
            return
        self._insert(entry, hint=notification.position)

    def _apply_delete(self, notification: DeleteNotification) -> None:
        if notification.entry_id is not None:
            index = find_index(self._entries, notification.entry_id)
            if index is None:
                self._hidden_orders.pop(notification.entry_id, None)
                logger.debug("Ignoring delete of unknown favorite %s", notification.entry_id)
                return
        else:
            if not 0 <= notification.position < len(self._entries):
                logger.warning("Ignoring delete at stale position %d", notification.position)
                return
            logger.warning(
                "Delete without entry id; falling back to position %d", notification.position
            )
            index = notification.position

        del self._entries[index]
        self._emit_deleted(index)

    def _apply_update(self, notification: UpdateNotification) -> None:
        entry = notification.entry
        index = find_index(self._entries, entry.id)

        if self._check(entry) is not None:
            if index is not None:
                del self._entries[index]
                self._emit_deleted(index)
            self._release_hidden_order(entry.order)
            return

        if index is None:
            self._insert(entry, hint=notification.new_position)
            return

        del self._entries[index]
        collided = order_collides(self._entries, entry.order)
        if collided:
            new_index = place_with_hint(self._entries, entry.order, index)
        else:
            new_index = insertion_index(self._entries, entry.order)
        self._entries.insert(new_index, entry)

        needs_repair = collided or entry.order in self._reserved_orders()
        changed_ids = self._renumber() if needs_repair else set()

        if new_index != index:
            self._emit_moved(index, new_index)
        self._emit_updated(new_index)
        self._emit_updated_for(changed_ids - {entry.id})

    def _insert(self, entry: FavoriteEntry, hint: int | None) -> None:
        collided = order_collides(self._entries, entry.order)
        if collided:
            index = place_with_hint(self._entries, entry.order, hint)
        else:
            index = insertion_index(self._entries, entry.order)
        self._entries.insert(index, entry)

        needs_repair = collided or entry.order in self._reserved_orders()
        changed_ids = self._renumber() if needs_repair else set()

        self._emit_inserted(index)
        self._emit_updated_for(changed_ids - {entry.id})

    # --- Helpers ---

    def _check(self, entry: FavoriteEntry) -> FavoritesError | None:
        """Validate an entry, tracking and logging (once) the invalid ones."""
        error = validate_entry(entry, self._rules.validation.allowed_url_schemes)
        if error is None:
            self._hidden_orders.pop(entry.id, None)
            return None
        self._hidden_orders[entry.id] = entry.order
        if entry.id not in self._reported_invalid:
            self._reported_invalid.add(entry.id)
            logger.warning("Excluding invalid favorite: %s", error.message)
        return error

    def _reserved_orders(self) -> set[int]:
        """Order keys held by stored favorites that are not presented."""
        return set(self._hidden_orders.values())

    def _release_hidden_order(self, order: int) -> None:
        """Move presented entries off a key that a hidden favorite now holds."""
        if order_collides(self._entries, order):
            self._emit_updated_for(self._renumber())

    def _renumber(self) -> set[UUID]:
        """
        Restore unique order keys after a store-side collision.

        Returns:
            Ids of entries whose key changed.
        """
        renumbered, changes = renumber(
            self._entries, self._rules.ordering, self._reserved_orders()
        )
        self._entries = renumbered
        if changes:
            try:
                self._store.persist_order(changes)
            except StorageError as e:
                logger.warning("Could not persist repaired order keys: %s", e)
        return {change.entry_id for change in changes}

    # --- Diff Emission ---

    def _emit_inserted(self, position: int) -> None:
        presentation = self.presentation
        if presentation is not None:
            presentation.on_inserted(position)

    def _emit_deleted(self, position: int) -> None:
        presentation = self.presentation
        if presentation is not None:
            presentation.on_deleted(position)

    def _emit_updated(self, position: int) -> None:
        presentation = self.presentation
        if presentation is not None:
            presentation.on_updated(position)

    def _emit_updated_for(self, entry_ids: set[UUID]) -> None:
        if not entry_ids:
            return
        for position, entry in enumerate(self._entries):
            if entry.id in entry_ids:
                self._emit_updated(position)

    def _emit_moved(self, from_position: int, to_position: int) -> None:
        presentation = self.presentation
        if presentation is not None:
            presentation.on_moved(from_position, to_position)

    def _emit_reloaded(self) -> None:
        presentation = self.presentation
        if presentation is not None:
            presentation.on_reloaded()

    def _emit_move_rejected(self, rejection: MoveRejected) -> None:
        presentation = self.presentation
        if presentation is not None:
            presentation.on_move_rejected(rejection)


# --- Shell Layer Functions ---


def run_initialize(reconciler: FavoritesReconciler) -> InitializeOutput:
    """Load favorites; failures are reported, never raised."""
    result = reconciler.initialize()
    return InitializeOutput(
        total=result.count,
        errors=result.errors,
        success=result.success,
    )


def run_get_entry(
    input_data: GetEntryInput,
    reconciler: FavoritesReconciler,
) -> EntryOutput:
    """Get a favorite by position."""
    entry = reconciler.entry_at(input_data.position)

    if entry is None:
        return EntryOutput(
            entry=None,
            errors=(
                FavoritesError(
                    code="not_found",
                    message=f"No favorite at position {input_data.position}",
                ),
            ),
            success=False,
        )

    return EntryOutput(entry=entry, errors=(), success=True)


def run_list(reconciler: FavoritesReconciler) -> EntryListOutput:
    """List all presentable favorites in order."""
    entries = reconciler.entries()
    return EntryListOutput(entries=entries, total=len(entries))


def run_move(
    input_data: MoveInput,
    reconciler: FavoritesReconciler,
) -> MoveOutput:
    """Reorder a favorite on behalf of the attached presentation (see ``move``)."""
    result = reconciler.move(input_data.from_position, input_data.to_position)

    errors: Sequence[FavoritesError] = ()
    if result.rejection is not None:
        errors = (
            FavoritesError(
                code=result.rejection.code,
                message=result.rejection.reason,
                entry_id=result.rejection.entry_id,
            ),
        )

    return MoveOutput(
        changes=result.changes,
        errors=tuple(errors),
        success=result.success,
    )


def run_set_editing(
    input_data: SetEditingInput,
    reconciler: FavoritesReconciler,
) -> EditingOutput:
    """Toggle edit mode."""
    changed = reconciler.set_editing(input_data.editing)
    return EditingOutput(editing=reconciler.is_editing, changed=changed)
