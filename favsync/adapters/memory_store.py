"""
In-memory favorites store.

Keeps favorites in memory and notifies subscribers of every CRUD change.
Used for local development, demos and tests.

Key behaviors:
- fetch_all returns copies ordered by order key
- add/remove/update notify subscribers with store-side positions
- persist_order is all-or-nothing and silent
- Failure flags simulate an unreachable store
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from uuid import UUID

from favsync.components.favorites import (
    ChangeListener,
    ChangeNotification,
    DeleteNotification,
    EntryNotFoundError,
    InsertNotification,
    OrderChange,
    OrderConflictError,
    StorageUnavailableError,
    UpdateNotification,
)
from favsync.domain.entities import FavoriteEntry

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class MemorySubscription:
    """Subscription handle for the in-memory store."""

    store: InMemoryFavoritesStore
    listener: ChangeListener
    active: bool = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self.store._drop_subscription(self)


@dataclass(eq=False)
class InMemoryFavoritesStore:
    """
    Favorites store backed by a dict.

    Implements FavoritesStorePort.
    """

    # Configuration
    fail_fetch: bool = False
    fail_persist: bool = False

    # Recorded order writes for test assertions
    persist_calls: list[tuple[OrderChange, ...]] = field(default_factory=list)

    _entries: dict[UUID, FavoriteEntry] = field(default_factory=dict)
    _subscriptions: list[MemorySubscription] = field(default_factory=list)

    @classmethod
    def with_entries(cls, entries: Iterable[FavoriteEntry]) -> InMemoryFavoritesStore:
        store = cls()
        for entry in entries:
            store._entries[entry.id] = entry.model_copy()
        return store

    # --- FavoritesStorePort ---

    def fetch_all(self) -> list[FavoriteEntry]:
        if self.fail_fetch:
            raise StorageUnavailableError("In-memory store is offline")
        return [entry.model_copy() for entry in self._ordered()]

    def persist_order(self, changes: Sequence[OrderChange]) -> None:
        if self.fail_persist:
            raise StorageUnavailableError("In-memory store rejected the order write")

        unknown = [change.entry_id for change in changes if change.entry_id not in self._entries]
        if unknown:
            raise OrderConflictError(unknown)

        for change in changes:
            entry = self._entries[change.entry_id]
            self._entries[change.entry_id] = entry.model_copy(update={"order": change.order})
        self.persist_calls.append(tuple(changes))

    def subscribe(self, listener: ChangeListener) -> MemorySubscription:
        subscription = MemorySubscription(store=self, listener=listener)
        self._subscriptions.append(subscription)
        return subscription

    # --- CRUD (notifying) ---

    def add(self, entry: FavoriteEntry) -> FavoriteEntry:
        self._entries[entry.id] = entry.model_copy()
        position = self._position_of(entry.id)
        self._notify(InsertNotification(entry=entry.model_copy(), position=position))
        return entry

    def remove(self, entry_id: UUID) -> None:
        if entry_id not in self._entries:
            raise EntryNotFoundError(entry_id)
        position = self._position_of(entry_id)
        del self._entries[entry_id]
        self._notify(DeleteNotification(position=position, entry_id=entry_id))

    def update(self, entry: FavoriteEntry) -> FavoriteEntry:
        if entry.id not in self._entries:
            raise EntryNotFoundError(entry.id)
        old_position = self._position_of(entry.id)
        self._entries[entry.id] = entry.model_copy()
        new_position = self._position_of(entry.id)
        self._notify(
            UpdateNotification(
                entry=entry.model_copy(),
                old_position=old_position,
                new_position=new_position if new_position != old_position else None,
            )
        )
        return entry

    def get(self, entry_id: UUID) -> FavoriteEntry | None:
        entry = self._entries.get(entry_id)
        return entry.model_copy() if entry else None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    # --- Internals ---

    def _ordered(self) -> list[FavoriteEntry]:
        return sorted(self._entries.values(), key=lambda entry: entry.order)

    def _position_of(self, entry_id: UUID) -> int:
        return next(
            index for index, entry in enumerate(self._ordered()) if entry.id == entry_id
        )

    def _notify(self, notification: ChangeNotification) -> None:
        logger.debug("Store change: %r", notification)
        for subscription in list(self._subscriptions):
            subscription.listener(notification)

    def _drop_subscription(self, subscription: MemorySubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
