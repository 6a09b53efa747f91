import argparse
import logging
import sys
from pathlib import Path
from uuid import UUID

from favsync.app_shell.context import FavoritesContext
from favsync.components.favorites import (
    EntryNotFoundError,
    MoveInput,
    StorageError,
    run_initialize,
    run_list,
    run_move,
)
from favsync.domain.entities import FavoriteEntry
from favsync.rules.loader import default_rules, load_rules
from favsync.rules.models import FavoritesRules

logger = logging.getLogger("favsync.cli")

RULES_PATH = "favsync.yaml"


def get_rules(path: str) -> FavoritesRules:
    rules_path = Path(path)
    if not rules_path.exists():
        if path != RULES_PATH:
            logger.error(f"Rules file {path} not found.")
            sys.exit(1)
        return default_rules()
    try:
        return load_rules(rules_path)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)


def get_context(args: argparse.Namespace, rules: FavoritesRules) -> FavoritesContext:
    db_path = args.db or rules.storage.db_path
    ctx = FavoritesContext.create(db_path, rules)
    output = run_initialize(ctx.reconciler)
    if not output.success:
        for error in output.errors:
            logger.error(error.message)
        sys.exit(1)
    return ctx


def parse_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        logger.error(f"Not a favorite id: {value}")
        sys.exit(1)


def handle_init(ctx: FavoritesContext, args: argparse.Namespace) -> None:
    for filename in ctx.applied_migrations:
        print(f"Applied {filename}")
    print(f"Favorites database ready ({ctx.reconciler.count()} favorites).")


def handle_list(ctx: FavoritesContext, args: argparse.Namespace) -> None:
    output = run_list(ctx.reconciler)
    hidden = ctx.reconciler.excluded_count()
    if hidden:
        logger.warning(f"{hidden} favorites hidden (missing or invalid URL).")
    if output.total == 0:
        print("No favorites.")
        return
    for position, entry in enumerate(output.entries):
        print(f"{position:>3}  {entry.id}  {entry.display_title}  <{entry.url}>")


def handle_add(ctx: FavoritesContext, args: argparse.Namespace) -> None:
    ordering = ctx.rules.ordering
    last = ctx.store.max_order()
    order = (last if last is not None else ordering.min_order) + ordering.order_step

    entry = FavoriteEntry(title=args.title, url=args.url, order=order)
    ctx.store.add(entry)

    position = ctx.reconciler.index_of(entry.id)
    if position is None:
        logger.warning(f"Saved {entry.id}, but its URL is not presentable.")
        return
    print(f"Added {entry.id} at position {position}.")


def handle_remove(ctx: FavoritesContext, args: argparse.Namespace) -> None:
    entry_id = parse_id(args.id)
    try:
        ctx.store.remove(entry_id)
    except EntryNotFoundError as e:
        logger.error(str(e))
        sys.exit(1)
    print(f"Removed {entry_id}.")


def handle_rename(ctx: FavoritesContext, args: argparse.Namespace) -> None:
    entry_id = parse_id(args.id)
    entry = ctx.store.get(entry_id)
    if entry is None:
        logger.error(f"Favorite {entry_id} not found.")
        sys.exit(1)
    ctx.store.update(entry.model_copy(update={"title": args.title}))
    print(f"Renamed {entry_id}.")


def handle_move(ctx: FavoritesContext, args: argparse.Namespace) -> None:
    input_data = MoveInput(from_position=args.from_position, to_position=args.to_position)
    output = run_move(input_data, ctx.reconciler)
    if not output.success:
        for error in output.errors:
            logger.error(f"{error.code}: {error.message}")
        sys.exit(1)
    print(
        f"Moved {args.from_position} -> {args.to_position} "
        f"({len(output.changes)} order keys written)."
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Favorites CLI")
    parser.add_argument("--config", default=RULES_PATH, help="Path to favsync.yaml")
    parser.add_argument("--db", help="Favorites database (overrides storage.db_path)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # init
    subparsers.add_parser("init", help="Create or migrate the favorites database")

    # list
    subparsers.add_parser("list", help="List favorites in order")

    # add
    add_parser = subparsers.add_parser("add", help="Add a favorite at the end")
    add_parser.add_argument("url", help="URL of the favorite")
    add_parser.add_argument("--title", help="Display title")

    # remove
    remove_parser = subparsers.add_parser("remove", help="Remove a favorite")
    remove_parser.add_argument("id", help="Favorite id")

    # rename
    rename_parser = subparsers.add_parser("rename", help="Change a favorite's title")
    rename_parser.add_argument("id", help="Favorite id")
    rename_parser.add_argument("title", help="New title")

    # move
    move_parser = subparsers.add_parser("move", help="Reorder a favorite")
    move_parser.add_argument("from_position", type=int, help="Current position")
    move_parser.add_argument("to_position", type=int, help="New position")

    args = parser.parse_args()

    rules = get_rules(args.config)
    logging.basicConfig(level=getattr(logging, rules.logging.level))

    handlers = {
        "init": handle_init,
        "list": handle_list,
        "add": handle_add,
        "remove": handle_remove,
        "rename": handle_rename,
        "move": handle_move,
    }

    try:
        ctx = get_context(args, rules)
    except (StorageError, RuntimeError) as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        handlers[args.command](ctx, args)
    except StorageError as e:
        logger.error(str(e))
        sys.exit(1)
    finally:
        ctx.close()


if __name__ == "__main__":
    main()
