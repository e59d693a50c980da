"""Structural queries over a flat item list.

The tree is stored as a flat list with parent references. These helpers
derive the parent -> children index on demand instead of maintaining it
incrementally, so every mutation reads the same structure.
"""

from collections import deque
from collections.abc import Callable, Iterable

from topictree.exceptions import LimitExceeded

from .types import Item


def name_sort_key(case_sensitive: bool = True) -> Callable[[Item], tuple]:
    """Return a sort key ordering items alphabetically by name.

    Case-sensitive mode is plain ordinal comparison. Case-insensitive mode
    compares casefolded names and falls back to ordinal order for ties so the
    result stays deterministic.
    """
    if case_sensitive:
        return lambda item: (item.name, item.id)
    return lambda item: (item.name.casefold(), item.name, item.id)


def index_by_id(items: Iterable[Item]) -> dict[str, Item]:
    return {item.id: item for item in items}


def build_child_index(items: Iterable[Item]) -> dict[str | None, list[Item]]:
    """Map each parent id (None for roots) to its children in input order."""
    children: dict[str | None, list[Item]] = {}
    for item in items:
        children.setdefault(item.parent_id, []).append(item)
    return children


def descendant_closure(items: list[Item], item_id: str) -> set[str]:
    """Return ``{item_id}`` plus the ids of all its descendants.

    Breadth-first over the child index; the result is the same fixed point
    as repeatedly scanning for items whose parent is already in the set.
    """
    children = build_child_index(items)
    closure = {item_id}
    queue = deque([item_id])
    while queue:
        current = queue.popleft()
        for child in children.get(current, []):
            if child.id not in closure:
                closure.add(child.id)
                queue.append(child.id)
    return closure


def is_self_or_descendant(items: list[Item], candidate_id: str, ancestor_id: str) -> bool:
    """True if ``candidate_id`` is ``ancestor_id`` or lies beneath it.

    Walks the parent chain upwards from the candidate. A chain that revisits
    an id (corrupt data) stops the walk.
    """
    by_id = index_by_id(items)
    current = by_id.get(candidate_id)
    visited: set[str] = set()
    while current is not None and current.id not in visited:
        if current.id == ancestor_id:
            return True
        visited.add(current.id)
        if current.parent_id is None:
            return False
        current = by_id.get(current.parent_id)
    return False


def siblings(
    items: Iterable[Item],
    parent_id: str | None,
    level: int,
    exclude_id: str | None = None,
) -> list[Item]:
    """Items sharing ``(parent_id, level)``, optionally excluding one id."""
    return [
        item for item in items
        if item.parent_id == parent_id and item.level == level and item.id != exclude_id
    ]


def ensure_capacity(
    items: Iterable[Item],
    parent_id: str | None,
    level: int,
    limit: int,
    exclude_id: str | None = None,
) -> None:
    """Raise LimitExceeded if the ``(parent_id, level)`` group is already full.

    Args:
        items: Current item list
        parent_id: Destination parent (None for roots)
        level: Destination level
        limit: Fanout limit
        exclude_id: Item being moved into the group (not counted)

    Raises:
        LimitExceeded: If the group already holds ``limit`` or more items
    """
    count = len(siblings(items, parent_id, level, exclude_id=exclude_id))
    if count >= limit:
        raise LimitExceeded(
            f"Cannot add more items at level {level}. Maximum of {limit} items reached.",
            parent_id=parent_id,
            level=level,
            count=count,
            limit=limit,
        )


def child_counts(items: Iterable[Item]) -> dict[str | None, int]:
    """Number of children per parent id (None counts the roots)."""
    counts: dict[str | None, int] = {}
    for item in items:
        counts[item.parent_id] = counts.get(item.parent_id, 0) + 1
    return counts
