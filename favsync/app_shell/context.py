from __future__ import annotations

from dataclasses import dataclass, field

from favsync.adapters.sqlite.favorites_repo import SQLiteFavoritesStore
from favsync.adapters.sqlite.migrator import SQLiteMigrator
from favsync.components.favorites import FavoritesReconciler
from favsync.rules.models import FavoritesRules


@dataclass
class FavoritesContext:
    store: SQLiteFavoritesStore
    reconciler: FavoritesReconciler
    rules: FavoritesRules
    applied_migrations: list[str] = field(default_factory=list)

    @classmethod
    def create(
        cls, db_path: str, rules: FavoritesRules, migrate: bool = True
    ) -> FavoritesContext:
        timeout = rules.storage.busy_timeout_seconds
        applied: list[str] = []
        if migrate:
            applied = SQLiteMigrator(db_path, busy_timeout_seconds=timeout).run_migrations()

        store = SQLiteFavoritesStore(db_path, busy_timeout_seconds=timeout)
        reconciler = FavoritesReconciler(store, rules=rules)
        return cls(
            store=store,
            reconciler=reconciler,
            rules=rules,
            applied_migrations=applied,
        )

    def close(self) -> None:
        self.reconciler.close()
