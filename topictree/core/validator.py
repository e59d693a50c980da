"""Tree Validator.

Removes items whose parent reference does not resolve, and drops
relationship links whose target cannot be a link partner. Both functions
are pure and idempotent.
"""

import logging

from .types import Item

logger = logging.getLogger(__name__)


def validate(items: list[Item]) -> list[Item]:
    """Remove orphaned items.

    An item is an orphan when its ``parent_id`` is set and matches no item in
    the list. Removing an orphan can orphan its own children, so removal is
    repeated until nothing changes. A single pass would leave those children
    behind as fresh orphans for the next call; repeating trades that for
    removing the orphan's whole subtree at once, which keeps
    ``validate(validate(x)) == validate(x)``.

    Args:
        items: Raw item list (not modified)

    Returns:
        New list of the surviving items in their input order
    """
    current = list(items)
    while True:
        ids = {item.id for item in current}
        kept = [item for item in current if item.parent_id is None or item.parent_id in ids]
        if len(kept) == len(current):
            break
        logger.debug("Dropped %d orphaned item(s)", len(current) - len(kept))
        current = kept
    return current


def strip_dangling_relationships(items: list[Item]) -> list[Item]:
    """Clear links that cannot take part in top-level grouping.

    A link survives when its holder is a level-1 item and its target exists,
    is a different item and is level 1. One-sided links and items holding
    several links are left for the grouper, which treats links as
    undirected. Items whose links are untouched are returned as-is; changed
    items are copies.
    """
    by_id = {item.id: item for item in items}

    def keeps(holder: Item, target_id: str) -> bool:
        target = by_id.get(target_id)
        return (
            holder.level == 1
            and target is not None
            and target.id != holder.id
            and target.level == 1
        )

    result = []
    for item in items:
        kept = [link for link in item.relationships if keeps(item, link.target_id)]
        if len(kept) != len(item.relationships):
            logger.debug("Clearing dangling relationship on item %s", item.id)
            result.append(item.copy(relationships=kept))
        else:
            result.append(item)
    return result
