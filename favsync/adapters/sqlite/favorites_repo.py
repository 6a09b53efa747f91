import logging
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from favsync.components.favorites import (
    ChangeListener,
    ChangeNotification,
    DeleteNotification,
    EntryNotFoundError,
    InsertNotification,
    OrderChange,
    OrderConflictError,
    StorageError,
    StorageUnavailableError,
    UpdateNotification,
)
from favsync.domain.entities import FavoriteEntry

logger = logging.getLogger(__name__)


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


@dataclass(eq=False)
class SQLiteSubscription:
    store: "SQLiteFavoritesStore"
    listener: ChangeListener

    def unsubscribe(self) -> None:
        self.store._drop_subscription(self)


class SQLiteFavoritesStore:
    """
    Favorites store persisted in SQLite.

    CRUD writes notify subscribers after commit. Order-only writes
    (persist_order) run in one transaction and stay silent.
    """

    def __init__(self, db_path: str, busy_timeout_seconds: float = 5.0):
        self.db_path = db_path
        self.busy_timeout_seconds = busy_timeout_seconds
        self._subscriptions: list[SQLiteSubscription] = []

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout_seconds)
        except sqlite3.Error as e:
            raise StorageUnavailableError(f"Cannot open favorites database: {e}") from e
        conn.row_factory = dict_factory
        try:
            yield conn
            conn.commit()
        except sqlite3.OperationalError as e:
            # Locked/busy database or missing schema
            conn.rollback()
            raise StorageUnavailableError(f"Favorites database unavailable: {e}") from e
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(f"Favorites database error: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # --- FavoritesStorePort ---

    def fetch_all(self) -> list[FavoriteEntry]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM favorites ORDER BY order_key ASC, rowid ASC"
            ).fetchall()
        return [self._map_row(row) for row in rows]

    def persist_order(self, changes: Sequence[OrderChange]) -> None:
        if not changes:
            return
        with self._connect() as conn:
            unknown: list[UUID] = []
            for change in changes:
                cursor = conn.execute(
                    "UPDATE favorites SET order_key = ? WHERE id = ?",
                    (change.order, str(change.entry_id)),
                )
                if cursor.rowcount == 0:
                    unknown.append(change.entry_id)
            if unknown:
                # Raising inside the transaction rolls every update back
                raise OrderConflictError(unknown)
        logger.debug("Persisted %d order keys", len(changes))

    def subscribe(self, listener: ChangeListener) -> SQLiteSubscription:
        subscription = SQLiteSubscription(store=self, listener=listener)
        self._subscriptions.append(subscription)
        return subscription

    # --- CRUD (notifying) ---

    def add(self, entry: FavoriteEntry) -> FavoriteEntry:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO favorites (id, title, url, order_key, created_at)
                VALUES (?, ?, ?, ?, ?)
            """,
                (
                    str(entry.id),
                    entry.title,
                    entry.url,
                    entry.order,
                    datetime.now(UTC).isoformat(),
                ),
            )
            position = self._position_of(conn, entry.id)
        self._notify(InsertNotification(entry=entry.model_copy(), position=position))
        return entry

    def update(self, entry: FavoriteEntry) -> FavoriteEntry:
        with self._connect() as conn:
            old_position = self._position_of(conn, entry.id)
            if old_position is None:
                raise EntryNotFoundError(entry.id)
            conn.execute(
                "UPDATE favorites SET title = ?, url = ?, order_key = ? WHERE id = ?",
                (entry.title, entry.url, entry.order, str(entry.id)),
            )
            new_position = self._position_of(conn, entry.id)
        self._notify(
            UpdateNotification(
                entry=entry.model_copy(),
                old_position=old_position,
                new_position=new_position if new_position != old_position else None,
            )
        )
        return entry

    def remove(self, entry_id: UUID) -> None:
        with self._connect() as conn:
            position = self._position_of(conn, entry_id)
            if position is None:
                raise EntryNotFoundError(entry_id)
            conn.execute("DELETE FROM favorites WHERE id = ?", (str(entry_id),))
        self._notify(DeleteNotification(position=position, entry_id=entry_id))

    def get(self, entry_id: UUID) -> FavoriteEntry | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM favorites WHERE id = ?", (str(entry_id),)
            ).fetchone()
        return self._map_row(row) if row else None

    def max_order(self) -> int | None:
        with self._connect() as conn:
            row = conn.execute("SELECT MAX(order_key) AS max_order FROM favorites").fetchone()
        return row["max_order"]

    # --- Internals ---

    def _position_of(self, conn: sqlite3.Connection, entry_id: UUID) -> int | None:
        rows = conn.execute("SELECT id FROM favorites ORDER BY order_key ASC, rowid ASC").fetchall()
        return next(
            (index for index, row in enumerate(rows) if row["id"] == str(entry_id)),
            None,
        )

    def _map_row(self, row: dict[str, Any]) -> FavoriteEntry:
        return FavoriteEntry(
            id=UUID(row["id"]),
            title=row["title"],
            url=row["url"],
            order=row["order_key"],
        )

    def _notify(self, notification: ChangeNotification) -> None:
        for subscription in list(self._subscriptions):
            subscription.listener(notification)

    def _drop_subscription(self, subscription: SQLiteSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
