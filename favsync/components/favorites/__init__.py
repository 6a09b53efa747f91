"""
Favorites component - Ordered favorites reconciliation.

Keeps an ordered set of favorite bookmarks in sync with a store and a
presentation layer, and persists user-driven reordering.
"""

from ._impl import allocate_order, plan_move, renumber, validate_entry, validate_url
from .component import (
    FavoritesReconciler,
    run_get_entry,
    run_initialize,
    run_list,
    run_move,
    run_set_editing,
)
from .models import (
    ChangeNotification,
    DeleteNotification,
    Diff,
    EditingOutput,
    EntryListOutput,
    EntryOutput,
    FavoritesError,
    FetchResult,
    GetEntryInput,
    InitializeOutput,
    InsertNotification,
    ItemDeleted,
    ItemInserted,
    ItemMoved,
    ItemsReloaded,
    ItemUpdated,
    MoveInput,
    MoveNotification,
    MoveOutput,
    MovePlan,
    MoveRejected,
    MoveResult,
    OrderChange,
    SetEditingInput,
    TileData,
    UpdateNotification,
)
from .ports import (
    ChangeListener,
    EditingObserverPort,
    EntryLookupPort,
    EntryNotFoundError,
    FavoritesPresentationPort,
    FavoritesStorePort,
    OrderConflictError,
    StorageError,
    StorageUnavailableError,
    SubscriptionPort,
)

__all__ = [
    # Reconciler
    "FavoritesReconciler",
    # Entry points
    "run_initialize",
    "run_get_entry",
    "run_list",
    "run_move",
    "run_set_editing",
    # Ordering core
    "allocate_order",
    "plan_move",
    "renumber",
    "validate_entry",
    "validate_url",
    # Notifications
    "ChangeNotification",
    "InsertNotification",
    "DeleteNotification",
    "UpdateNotification",
    "MoveNotification",
    # Diffs
    "Diff",
    "ItemInserted",
    "ItemDeleted",
    "ItemUpdated",
    "ItemMoved",
    "ItemsReloaded",
    # Input models
    "GetEntryInput",
    "MoveInput",
    "SetEditingInput",
    # Output models
    "EditingOutput",
    "EntryListOutput",
    "EntryOutput",
    "FetchResult",
    "InitializeOutput",
    "MoveOutput",
    "MovePlan",
    "MoveResult",
    "OrderChange",
    "TileData",
    # Errors
    "FavoritesError",
    "MoveRejected",
    "StorageError",
    "StorageUnavailableError",
    "OrderConflictError",
    "EntryNotFoundError",
    # Ports
    "ChangeListener",
    "EditingObserverPort",
    "EntryLookupPort",
    "FavoritesPresentationPort",
    "FavoritesStorePort",
    "SubscriptionPort",
]
