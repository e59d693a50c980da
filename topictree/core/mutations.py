"""Pure item-list transforms behind every mutation operation.

Each function takes the current item list, checks its preconditions before
touching anything, and returns a new list. Inputs are never modified; a
precondition failure raises and leaves the caller's state as it was.

The reindex pass is not run here. Callers persist the transformed list and
then run ``reindex_tree`` on it.
"""

import logging

from topictree.exceptions import ConflictError, CyclicMove, InvalidLevel, ResourceNotFound

from .hierarchy import descendant_closure, ensure_capacity, index_by_id, is_self_or_descendant, siblings
from .indexer import DEFAULT_FANOUT_LIMIT, ROOT_INDEX_STEP
from .types import DEFAULT_RELATIONSHIP_KIND, Item, Relationship, generate_item_id

logger = logging.getLogger(__name__)

DETAIL_FIELDS = ("notes", "link", "pdf_link", "type")


def _require(items: list[Item], item_id: str) -> Item:
    for item in items:
        if item.id == item_id:
            return item
    raise ResourceNotFound(f"Item '{item_id}' not found", {"item_id": item_id})


def _check_capacity(items, parent_id, level, fanout_limit, exclude_id=None) -> None:
    # Level-1 groups are unbounded
    if level > 1:
        ensure_capacity(items, parent_id, level, fanout_limit, exclude_id=exclude_id)


def _strip_links_into(items: list[Item], target_ids: set[str]) -> list[Item]:
    result = []
    for item in items:
        kept = [link for link in item.relationships if link.target_id not in target_ids]
        if len(kept) != len(item.relationships):
            result.append(item.copy(relationships=kept))
        else:
            result.append(item)
    return result


# ==========================================================================
# INSERTION
# ==========================================================================

def add_item(
    items: list[Item],
    name: str,
    level: int,
    parent_id: str | None = None,
    fanout_limit: int = DEFAULT_FANOUT_LIMIT,
    item_type: str | None = None,
    notes: str | None = None,
    link: str | None = None,
    pdf_link: str | None = None,
) -> tuple[list[Item], Item]:
    """Append a new item.

    The new item gets a placeholder ``order_index`` of the largest sibling
    key plus 1000 (1000 without siblings); the reindex pass replaces it.

    Args:
        items: Current item list
        name: Display name
        level: Target level (1 for a root)
        parent_id: Parent item id, None for a root
        fanout_limit: Maximum children per (parent, level) group

    Returns:
        Tuple of (new item list, created item)

    Raises:
        ResourceNotFound: If parent_id does not exist
        InvalidLevel: If level does not match the parent
        LimitExceeded: If the parent already has ``fanout_limit`` children
    """
    if parent_id is None:
        if level != 1:
            raise InvalidLevel(
                f"Root items must be at level 1, got level {level}",
                {"level": level},
            )
    else:
        parent = _require(items, parent_id)
        if level != parent.level + 1:
            raise InvalidLevel(
                f"Child of a level {parent.level} item must be at level "
                f"{parent.level + 1}, got level {level}",
                {"parent_id": parent_id, "level": level},
            )

    _check_capacity(items, parent_id, level, fanout_limit)

    sibling_keys = [item.order_index for item in siblings(items, parent_id, level)]
    placeholder = max(sibling_keys) + ROOT_INDEX_STEP if sibling_keys else ROOT_INDEX_STEP

    new_item = Item(
        id=generate_item_id(),
        name=name,
        level=level,
        parent_id=parent_id,
        order_index=placeholder,
        type=item_type,
        notes=notes,
        link=link,
        pdf_link=pdf_link,
    )
    return [item.copy() for item in items] + [new_item], new_item


def add_item_near(
    items: list[Item],
    reference_id: str,
    name: str,
    as_child: bool,
    fanout_limit: int = DEFAULT_FANOUT_LIMIT,
) -> tuple[list[Item], Item]:
    """Add an item as a sibling or child of a reference item."""
    reference = _require(items, reference_id)
    if as_child:
        return add_item(items, name, reference.level + 1, reference.id, fanout_limit)
    return add_item(items, name, reference.level, reference.parent_id, fanout_limit)


# ==========================================================================
# IN-PLACE EDITS
# ==========================================================================

def rename_item(items: list[Item], item_id: str, name: str) -> list[Item]:
    """Replace an item's name."""
    _require(items, item_id)
    return [item.copy(name=name) if item.id == item_id else item.copy() for item in items]


def update_item_details(items: list[Item], item_id: str, **details) -> list[Item]:
    """Replace opaque metadata (notes, link, pdf_link, type) on one item.

    Raises:
        ResourceNotFound: If the item does not exist
        ValueError: If a field other than the metadata fields is passed
    """
    unknown = set(details) - set(DETAIL_FIELDS)
    if unknown:
        raise ValueError(f"Unknown item detail field(s): {sorted(unknown)}")
    _require(items, item_id)
    return [item.copy(**details) if item.id == item_id else item.copy() for item in items]


# ==========================================================================
# DELETION
# ==========================================================================

def delete_item(items: list[Item], item_id: str) -> tuple[list[Item], set[str]]:
    """Remove an item and all its descendants.

    Links held by surviving items that point into the removed set are
    cleared.

    Returns:
        Tuple of (surviving items, removed ids)

    Raises:
        ResourceNotFound: If the item does not exist
    """
    _require(items, item_id)
    closure = descendant_closure(items, item_id)
    survivors = [item for item in items if item.id not in closure]
    return _strip_links_into(survivors, closure), closure


# ==========================================================================
# REPARENTING
# ==========================================================================

def move_item(
    items: list[Item],
    drag_id: str,
    drop_id: str,
    nested: bool,
    fanout_limit: int = DEFAULT_FANOUT_LIMIT,
) -> list[Item]:
    """Move an item (with its subtree) next to or under another item.

    With ``nested`` the dragged item becomes the last child of the drop
    item; otherwise it becomes the drop item's sibling. Every descendant's
    level shifts by the same amount as the dragged item. Only the dragged
    item's parent reference changes.

    Raises:
        ResourceNotFound: If either item does not exist
        CyclicMove: If the drop item is the dragged item or beneath it
        LimitExceeded: If the destination group is full
    """
    drag = _require(items, drag_id)
    drop = _require(items, drop_id)

    if is_self_or_descendant(items, drop_id, drag_id):
        raise CyclicMove(
            f"Cannot move item '{drag_id}' onto itself or one of its descendants",
            {"drag_id": drag_id, "drop_id": drop_id},
        )

    if nested:
        new_level, new_parent_id = drop.level + 1, drop.id
    else:
        new_level, new_parent_id = drop.level, drop.parent_id

    _check_capacity(items, new_parent_id, new_level, fanout_limit, exclude_id=drag_id)

    delta = new_level - drag.level
    subtree = descendant_closure(items, drag_id)

    result = []
    for item in items:
        if item.id == drag_id:
            result.append(item.copy(level=new_level, parent_id=new_parent_id))
        elif item.id in subtree:
            result.append(item.copy(level=item.level + delta))
        else:
            result.append(item.copy())

    if new_level != 1 and drag.relationships:
        # Links are only meaningful between level-1 items
        result = _strip_links_into(result, {drag_id})
        result = [item.copy(relationships=[]) if item.id == drag_id else item for item in result]

    logger.debug("Moved %s under %s (level %d -> %d)", drag_id, new_parent_id, drag.level, new_level)
    return result


def promote_item(
    items: list[Item],
    item_id: str,
    fanout_limit: int = DEFAULT_FANOUT_LIMIT,
) -> list[Item]:
    """Move an item one level up, becoming a sibling of its current parent.

    Every descendant's level decreases by one.

    Raises:
        ResourceNotFound: If the item does not exist
        InvalidLevel: If the item is already at level 1
        LimitExceeded: If the new (parent, level) group is full
    """
    item = _require(items, item_id)
    if item.level <= 1:
        raise InvalidLevel(
            "Item is already at top level",
            {"item_id": item_id, "level": item.level},
        )

    by_id = index_by_id(items)
    parent = by_id.get(item.parent_id) if item.parent_id is not None else None
    new_level = item.level - 1
    new_parent_id = parent.parent_id if parent is not None and new_level > 1 else None

    _check_capacity(items, new_parent_id, new_level, fanout_limit, exclude_id=item_id)

    subtree = descendant_closure(items, item_id)
    result = []
    for current in items:
        if current.id == item_id:
            result.append(current.copy(level=new_level, parent_id=new_parent_id))
        elif current.id in subtree:
            result.append(current.copy(level=current.level - 1))
        else:
            result.append(current.copy())
    return result


# ==========================================================================
# CROSS-TREE TRANSFER
# ==========================================================================

def split_subtree(items: list[Item], item_id: str) -> tuple[list[Item], list[Item]]:
    """Detach a level-1 item and its descendants for transfer to another tree.

    Returns:
        Tuple of (remaining items, moving items). Moving items have their
        links cleared; remaining items lose links into the moved set.

    Raises:
        ResourceNotFound: If the item does not exist
        InvalidLevel: If the item is not at level 1
    """
    item = _require(items, item_id)
    if item.level != 1:
        raise InvalidLevel(
            "Only top-level items can be moved between topics",
            {"item_id": item_id, "level": item.level},
        )

    closure = descendant_closure(items, item_id)
    moving = [current.copy(relationships=[]) for current in items if current.id in closure]
    remaining = _strip_links_into([current for current in items if current.id not in closure], closure)
    return remaining, moving


def graft_subtree(items: list[Item], moving: list[Item]) -> list[Item]:
    """Append transferred items to a tree.

    Raises:
        ConflictError: If a transferred id already exists in the tree
    """
    existing = {item.id for item in items}
    clashes = sorted(item.id for item in moving if item.id in existing)
    if clashes:
        raise ConflictError(
            f"Item id(s) already present in destination: {', '.join(clashes)}",
            {"item_ids": clashes},
        )
    return [item.copy() for item in items] + [item.copy() for item in moving]


# ==========================================================================
# RELATIONSHIPS
# ==========================================================================

def create_relationship(
    items: list[Item],
    source_id: str,
    target_id: str,
    kind: str = DEFAULT_RELATIONSHIP_KIND,
) -> list[Item]:
    """Link two level-1 items symmetrically.

    Raises:
        ResourceNotFound: If either item does not exist
        InvalidLevel: If either item is not at level 1
        ConflictError: If source and target are the same item, or either
            already holds a link
    """
    source = _require(items, source_id)
    target = _require(items, target_id)

    if source_id == target_id:
        raise ConflictError(
            "An item cannot be related to itself",
            {"item_id": source_id},
        )
    for endpoint in (source, target):
        if endpoint.level != 1:
            raise InvalidLevel(
                "Relationships are only allowed between top-level items",
                {"item_id": endpoint.id, "level": endpoint.level},
            )
    if source.relationships or target.relationships:
        raise ConflictError(
            "One or both items already have a relationship",
            {"source_id": source_id, "target_id": target_id},
        )

    result = []
    for item in items:
        if item.id == source_id:
            result.append(item.copy(relationships=[Relationship(target_id, kind)]))
        elif item.id == target_id:
            result.append(item.copy(relationships=[Relationship(source_id, kind)]))
        else:
            result.append(item.copy())
    return result


def delete_relationship(items: list[Item], source_id: str) -> tuple[list[Item], str]:
    """Remove the link held by an item and its partner's link back.

    Returns:
        Tuple of (new item list, former partner id)

    Raises:
        ResourceNotFound: If the item does not exist or holds no link
    """
    source = _require(items, source_id)
    link = source.relationship
    if link is None:
        raise ResourceNotFound(
            "Source item or relationship not found",
            {"item_id": source_id},
        )
    partner_id = link.target_id

    result = []
    for item in items:
        if item.id == source_id:
            result.append(item.copy(relationships=[]))
        elif item.id == partner_id:
            kept = [r for r in item.relationships if r.target_id != source_id]
            result.append(item.copy(relationships=kept))
        else:
            result.append(item.copy())
    return result, partner_id
