"""Recursive Sibling Indexer and the reindex pass.

Sort keys:
- Level-1 items: ``position * 1000`` (1-based position in the grouped order),
  which leaves room for manual insertions between roots.
- Nested items: ``level * 100 + position * 10`` (0-based position among
  siblings sorted by name). The numeric space is reused per level, so an
  ``order_index`` only compares meaningfully between siblings that share
  ``parent_id`` and ``level``.
"""

import logging

from topictree.exceptions import LimitExceeded

from .grouper import group
from .hierarchy import build_child_index, name_sort_key
from .types import FanoutPolicy, Item
from .validator import strip_dangling_relationships, validate

logger = logging.getLogger(__name__)

ROOT_INDEX_STEP = 1000
LEVEL_INDEX_BASE = 100
SIBLING_INDEX_STEP = 10
DEFAULT_FANOUT_LIMIT = 10


def root_order_index(position: int) -> int:
    """Sort key of the level-1 item at 1-based ``position``."""
    return position * ROOT_INDEX_STEP


def nested_order_index(level: int, position: int) -> int:
    """Sort key of the nested item at 0-based ``position`` on ``level``."""
    return level * LEVEL_INDEX_BASE + position * SIBLING_INDEX_STEP


def reindex(
    items: list[Item],
    ordered_root_ids: list[str],
    policy: FanoutPolicy = FanoutPolicy.RAISE,
    fanout_limit: int = DEFAULT_FANOUT_LIMIT,
    case_sensitive: bool = True,
    existing_counts: dict[str | None, int] | None = None,
) -> list[Item]:
    """Assign ``order_index`` to every item reachable from the ordered roots.

    Args:
        items: Structurally valid items (not modified)
        ordered_root_ids: Level-1 ids in their final order
        policy: Behaviour when a child group exceeds ``fanout_limit``
        fanout_limit: Maximum children per (parent, level) group
        case_sensitive: Name comparison mode for sibling ordering
        existing_counts: Children per parent before the current operation.
            A group that is over the limit but no larger than it was is
            logged instead of raised, so legacy violations never block an
            operation that did not grow them.

    Returns:
        New item list, same order as the input, with updated sort keys.
        Items not reachable from a root keep their previous sort key.

    Raises:
        LimitExceeded: If a group exceeds the limit under FanoutPolicy.RAISE
            and the current operation grew it
    """
    result = [item.copy() for item in items]
    by_id = {item.id: item for item in result}
    children = build_child_index(result)
    key = name_sort_key(case_sensitive)

    for position, root_id in enumerate(ordered_root_ids, start=1):
        root = by_id.get(root_id)
        if root is not None:
            root.order_index = root_order_index(position)

    def assign_children(parent_id: str, level: int) -> None:
        group_items = [child for child in children.get(parent_id, []) if child.level == level]

        if len(group_items) > fanout_limit:
            message = (
                f"Too many items ({len(group_items)}) at level {level} under parent "
                f"{parent_id}. Maximum is {fanout_limit}."
            )
            preexisting = (
                existing_counts is not None
                and len(group_items) <= existing_counts.get(parent_id, 0)
            )
            if policy is FanoutPolicy.RAISE and not preexisting:
                raise LimitExceeded(
                    message,
                    parent_id=parent_id,
                    level=level,
                    count=len(group_items),
                    limit=fanout_limit,
                )
            logger.warning(message)

        for position, child in enumerate(sorted(group_items, key=key)):
            child.order_index = nested_order_index(level, position)
            assign_children(child.id, level + 1)

    for root_id in ordered_root_ids:
        if root_id in by_id:
            assign_children(root_id, 2)

    return result


def reindex_tree(
    items: list[Item],
    policy: FanoutPolicy = FanoutPolicy.RAISE,
    fanout_limit: int = DEFAULT_FANOUT_LIMIT,
    case_sensitive: bool = True,
    existing_counts: dict[str | None, int] | None = None,
) -> list[Item]:
    """Run the full reindex pass: validate, group, index.

    Orphans are dropped, links whose target is missing or not level 1 are
    cleared, the level-1 items are grouped by relationship and every subtree
    is indexed. The pass is a pure function of its input and safe to re-run.
    ``existing_counts`` is passed through to ``reindex``.
    """
    valid = strip_dangling_relationships(validate(items))
    level1_items = [item for item in valid if item.level == 1 and item.parent_id is None]
    ordered_root_ids = group(level1_items, case_sensitive=case_sensitive)
    logger.debug(
        "Reindexing %d item(s) under %d root(s)", len(valid), len(ordered_root_ids)
    )
    return reindex(
        valid,
        ordered_root_ids,
        policy=policy,
        fanout_limit=fanout_limit,
        case_sensitive=case_sensitive,
        existing_counts=existing_counts,
    )
