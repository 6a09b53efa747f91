"""
Favorites ordering core - order-key allocation and entry validation.

Functional Core - pure business logic, no I/O.

Key behaviors:
- Order keys are integers, unique and strictly increasing along the set
- A moved entry takes the midpoint of the gap between its new neighbours
- At the head/tail it takes a key one step beyond the edge neighbour
- Keys held by hidden (invalid) favorites are reserved and never reused
- When no gap is left the whole set is renumbered at multiples of the step
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections.abc import Collection, Iterable, Sequence
from urllib.parse import urlparse
from uuid import UUID

from favsync.domain.entities import FavoriteEntry
from favsync.rules.models import OrderingRules

from .models import FavoritesError, MovePlan, OrderChange

# --- Validation Functions ---


def validate_url(url: str | None, allowed_schemes: Iterable[str]) -> bool:
    """Check that a URL is present, parseable and uses an allowed scheme."""
    if not url or not url.strip():
        return False
    if any(ch.isspace() for ch in url):
        return False
    try:
        result = urlparse(url)
    except ValueError:
        return False
    if result.scheme.lower() not in set(allowed_schemes):
        return False
    return bool(result.netloc or result.path)


def validate_entry(
    entry: FavoriteEntry,
    allowed_schemes: Iterable[str],
) -> FavoritesError | None:
    """Return an invalid_entry error when the entry cannot be presented."""
    if validate_url(entry.url, allowed_schemes):
        return None
    return FavoritesError(
        code="invalid_entry",
        message=f"Favorite {entry.id} has no usable URL: {entry.url!r}",
        entry_id=entry.id,
    )


# --- Ordering Functions ---


def sort_by_order(entries: Iterable[FavoriteEntry]) -> list[FavoriteEntry]:
    """Stable sort by order key."""
    return sorted(entries, key=lambda entry: entry.order)


def has_strict_order(entries: Sequence[FavoriteEntry]) -> bool:
    """True when order keys are unique and strictly increasing."""
    return all(a.order < b.order for a, b in zip(entries, entries[1:], strict=False))


def insertion_index(entries: Sequence[FavoriteEntry], order: int) -> int:
    """Position at which an entry with this order key belongs."""
    return bisect_left(entries, order, key=lambda entry: entry.order)


def order_collides(entries: Sequence[FavoriteEntry], order: int) -> bool:
    """True when some entry already holds this order key."""
    index = insertion_index(entries, order)
    return index < len(entries) and entries[index].order == order


def place_with_hint(
    entries: Sequence[FavoriteEntry],
    order: int,
    hint: int | None,
) -> int:
    """
    Position for an entry whose order key may tie with existing entries.

    Without a tie the order key decides. With a tie the hint picks a slot
    inside the run of equal keys.
    """
    low = insertion_index(entries, order)
    high = bisect_right(entries, order, key=lambda entry: entry.order)
    if hint is None:
        return high
    return max(low, min(hint, high))


def _nearest_free(
    candidate: int,
    low: int,
    high: int | None,
    reserved: Collection[int],
) -> int | None:
    """Closest key to candidate inside the open interval (low, high) not in reserved."""
    for distance in range(1, len(reserved) + 2):
        for key in (candidate - distance, candidate + distance):
            if low < key and (high is None or key < high) and key not in reserved:
                return key
    return None


def allocate_order(
    prev_order: int | None,
    next_order: int | None,
    rules: OrderingRules,
    reserved: Collection[int] = (),
) -> int | None:
    """
    Pick an order key strictly between two neighbours.

    Keys in ``reserved`` belong to favorites that are stored but not
    presented, and are never handed out.

    Returns:
        The new key, or None when the gap is exhausted.
    """
    step = rules.order_step
    low = prev_order if prev_order is not None else rules.min_order - 1

    if prev_order is None and next_order is None:
        candidate = rules.min_order + step
    elif prev_order is None:
        assert next_order is not None
        candidate = next_order - step
        if candidate < rules.min_order:
            if next_order <= rules.min_order:
                return None
            candidate = rules.min_order + (next_order - rules.min_order) // 2
    elif next_order is None:
        candidate = prev_order + step
    else:
        if next_order - prev_order < 2:
            return None
        candidate = prev_order + (next_order - prev_order) // 2

    if candidate not in reserved:
        return candidate
    return _nearest_free(candidate, low, next_order, reserved)


def renumber(
    entries: Sequence[FavoriteEntry],
    rules: OrderingRules,
    reserved: Collection[int] = (),
) -> tuple[list[FavoriteEntry], list[OrderChange]]:
    """
    Assign fresh evenly spaced keys to the whole sequence, skipping reserved keys.

    Returns:
        Tuple of (entries, changes). Only entries whose key differs are
        listed in changes.
    """
    renumbered: list[FavoriteEntry] = []
    changes: list[OrderChange] = []
    order = rules.min_order
    for entry in entries:
        order += rules.order_step
        while order in reserved:
            order += rules.order_step
        if entry.order != order:
            entry = entry.model_copy(update={"order": order})
            changes.append(OrderChange(entry_id=entry.id, order=order))
        renumbered.append(entry)
    return renumbered, changes


def plan_move(
    entries: Sequence[FavoriteEntry],
    from_position: int,
    to_position: int,
    rules: OrderingRules,
    reserved: Collection[int] = (),
) -> MovePlan:
    """
    Compute the reordered set for a move without touching the input.

    Positions must be valid for ``entries``.
    """
    items = list(entries)
    moved = items.pop(from_position)
    items.insert(to_position, moved)

    prev_order = items[to_position - 1].order if to_position > 0 else None
    next_order = items[to_position + 1].order if to_position + 1 < len(items) else None

    new_order = allocate_order(prev_order, next_order, rules, reserved)
    if new_order is None:
        renumbered, changes = renumber(items, rules, reserved)
        return MovePlan(entries=tuple(renumbered), changes=tuple(changes))

    if new_order == moved.order:
        return MovePlan(entries=tuple(items), changes=())

    items[to_position] = moved.model_copy(update={"order": new_order})
    return MovePlan(
        entries=tuple(items),
        changes=(OrderChange(entry_id=moved.id, order=new_order),),
    )


def find_index(entries: Sequence[FavoriteEntry], entry_id: UUID) -> int | None:
    """Linear id lookup."""
    return next(
        (index for index, entry in enumerate(entries) if entry.id == entry_id),
        None,
    )
