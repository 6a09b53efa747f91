"""
Reconciler wired to the SQLite store, as the CLI builds it.
"""

import logging

import pytest

from favsync.adapters.grid_mirror import GridMirror
from favsync.app_shell.context import FavoritesContext
from favsync.components.favorites import MoveInput, run_initialize, run_move
from favsync.domain.entities import FavoriteEntry
from favsync.rules.loader import default_rules


@pytest.fixture
def ctx(db_path):
    context = FavoritesContext.create(db_path, default_rules())
    yield context
    context.close()


def test_initialize_empty_database(ctx):
    output = run_initialize(ctx.reconciler)
    assert output.success is True
    assert output.total == 0


def test_store_changes_reach_presentation(ctx, make_entry):
    run_initialize(ctx.reconciler)
    mirror = GridMirror.attach(ctx.reconciler)

    a, b = make_entry("A", 1024), make_entry("B", 2048)
    ctx.store.add(a)
    ctx.store.add(b)
    ctx.store.update(b.model_copy(update={"order": 512}))
    ctx.store.add(FavoriteEntry(title="Broken", url=None, order=4096))

    assert [e.title for e in mirror.rows] == ["B", "A"]
    assert [(e.id, e.order) for e in mirror.rows] == [
        (e.id, e.order) for e in ctx.reconciler.entries()
    ]


def test_move_persists_across_sessions(db_path, make_entry):
    first = FavoritesContext.create(db_path, default_rules())
    for name, order in [("A", 1), ("B", 2), ("C", 3)]:
        first.store.add(make_entry(name, order))
    run_initialize(first.reconciler)

    output = run_move(MoveInput(from_position=0, to_position=2), first.reconciler)
    first.close()

    second = FavoritesContext.create(db_path, default_rules())
    run_initialize(second.reconciler)
    try:
        assert output.success is True
        assert len(output.changes) == 1
        assert [e.title for e in second.reconciler.entries()] == ["B", "C", "A"]
    finally:
        second.close()


def test_fetch_failure_is_logged_not_raised(tmp_path, caplog):
    ctx = FavoritesContext.create(str(tmp_path / "raw.db"), default_rules(), migrate=False)

    with caplog.at_level(logging.ERROR):
        output = run_initialize(ctx.reconciler)

    assert output.success is False
    assert ctx.reconciler.count() == 0
    assert "Favorites fetch failed" in caplog.text
