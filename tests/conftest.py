import pytest

from favsync.adapters.sqlite.favorites_repo import SQLiteFavoritesStore
from favsync.adapters.sqlite.migrator import SQLiteMigrator
from favsync.domain.entities import FavoriteEntry


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "favorites.db")


@pytest.fixture
def migrator(db_path):
    return SQLiteMigrator(db_path)


@pytest.fixture
def sqlite_store(db_path, migrator):
    migrator.run_migrations()
    return SQLiteFavoritesStore(db_path, busy_timeout_seconds=0.5)


@pytest.fixture
def make_entry():
    """Factory for favorites with a valid URL derived from the title."""

    def _make(title: str, order: int, url: str | None = None) -> FavoriteEntry:
        return FavoriteEntry(
            title=title,
            url=url if url is not None else f"https://{title.lower()}.example.com",
            order=order,
        )

    return _make
