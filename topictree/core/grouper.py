"""Relationship Grouper.

Orders the level-1 items so that linked items sit next to each other, with
everything else in alphabetical order.
"""

from .hierarchy import name_sort_key
from .types import Item


def build_adjacency(level1_items: list[Item]) -> dict[str, set[str]]:
    """Undirected neighbour sets restricted to the given level-1 items.

    A link whose target is not among ``level1_items`` is ignored.
    """
    ids = {item.id for item in level1_items}
    adjacency: dict[str, set[str]] = {item.id: set() for item in level1_items}
    for item in level1_items:
        for link in item.relationships:
            if link.target_id in ids and link.target_id != item.id:
                adjacency[item.id].add(link.target_id)
                adjacency[link.target_id].add(item.id)
    return adjacency


def group(level1_items: list[Item], case_sensitive: bool = True) -> list[str]:
    """Compute the top-level ordering.

    Items are visited in input order. The first unplaced item with at least
    one neighbour forms a block with its unplaced neighbours; the block is
    sorted by name and appended. An item whose neighbours were all placed
    already still forms a block of one at that point. Items with no
    neighbours follow, sorted by name.

    Args:
        level1_items: Valid level-1 items, in input order
        case_sensitive: Name comparison mode

    Returns:
        Ordered list of every level-1 item id
    """
    key = name_sort_key(case_sensitive)
    by_id = {item.id: item for item in level1_items}
    adjacency = build_adjacency(level1_items)

    ordered: list[str] = []
    placed: set[str] = set()

    for item in level1_items:
        if item.id in placed or not adjacency[item.id]:
            continue
        block = [by_id[item.id]] + [
            by_id[neighbour] for neighbour in adjacency[item.id] if neighbour not in placed
        ]
        for member in sorted(block, key=key):
            ordered.append(member.id)
            placed.add(member.id)

    remaining = [item for item in level1_items if item.id not in placed]
    ordered.extend(item.id for item in sorted(remaining, key=key))
    return ordered
