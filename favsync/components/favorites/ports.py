"""
Favorites component - Port interfaces.

The store is the source of truth; the presentation only consumes diffs.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol
from uuid import UUID

from favsync.domain.entities import FavoriteEntry

from .models import ChangeNotification, MoveRejected, OrderChange

ChangeListener = Callable[[ChangeNotification], None]


class SubscriptionPort(Protocol):
    """Handle returned by a store subscription."""

    def unsubscribe(self) -> None:
        """Stop delivering notifications to the listener."""
        ...


class FavoritesStorePort(Protocol):
    """Storage interface for favorites."""

    def fetch_all(self) -> list[FavoriteEntry]:
        """
        Return every favorite ordered by order key.

        Raises:
            StorageError: if the store cannot be read
        """
        ...

    def persist_order(self, changes: Sequence[OrderChange]) -> None:
        """
        Write new order keys atomically.

        Either every change is applied or none is. Order-only writes do
        not produce change notifications.

        Raises:
            StorageError: if the write is rejected
        """
        ...

    def subscribe(self, listener: ChangeListener) -> SubscriptionPort:
        """Register a change-notification listener."""
        ...


class EditingObserverPort(Protocol):
    """Receives edit-mode broadcasts."""

    def on_editing_changed(self, editing: bool) -> None:
        ...


class FavoritesPresentationPort(EditingObserverPort, Protocol):
    """Presentation layer consuming ordered diffs."""

    def on_inserted(self, position: int) -> None:
        ...

    def on_deleted(self, position: int) -> None:
        ...

    def on_updated(self, position: int) -> None:
        ...

    def on_moved(self, from_position: int, to_position: int) -> None:
        ...

    def on_reloaded(self) -> None:
        """The whole set changed; re-read everything."""
        ...

    def on_move_rejected(self, rejection: MoveRejected) -> None:
        """A requested move failed; revert the visual move."""
        ...


class EntryLookupPort(Protocol):
    """Read side of the reconciler used by presentations."""

    def count(self) -> int:
        ...

    def entry_at(self, position: int) -> FavoriteEntry | None:
        ...

    def index_of(self, entry_id: UUID) -> int | None:
        ...


# --- Store Errors ---


class StorageError(Exception):
    """Base class for favorites store errors."""


class StorageUnavailableError(StorageError):
    """Raised when the store cannot be reached in time."""


class OrderConflictError(StorageError):
    """Raised when an order write references entries the store no longer has."""

    def __init__(self, entry_ids: Sequence[UUID]) -> None:
        self.entry_ids = tuple(entry_ids)
        ids = ", ".join(str(entry_id) for entry_id in self.entry_ids)
        super().__init__(f"Order write conflicts with store state: {ids}")


class EntryNotFoundError(StorageError):
    """Raised when a store operation targets an unknown entry."""

    def __init__(self, entry_id: UUID) -> None:
        self.entry_id = entry_id
        super().__init__(f"Favorite not found: {entry_id}")
