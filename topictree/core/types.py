"""Domain types for the topic tree engine.

These types define the in-memory representation of a tree and its items and
the document layout they are persisted with. Items are plain mutable
dataclasses; the engine's pure functions copy them before changing anything.
"""

from __future__ import annotations

import uuid as uuid_lib
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from topictree.exceptions import ErrorKind

DEFAULT_RELATIONSHIP_KIND = "related"


def generate_item_id() -> str:
    """Generate a new item id (uuid4 hex, 32 characters)."""
    return uuid_lib.uuid4().hex


class FanoutPolicy(Enum):
    """What the indexer does when a child group exceeds the fanout limit."""

    RAISE = "raise"  # reject the pass with LimitExceeded
    WARN = "warn"  # log and keep indexing (bulk recompute over legacy data)

    @classmethod
    def parse(cls, value: "FanoutPolicy | str") -> "FanoutPolicy":
        """Coerce a policy name to a FanoutPolicy.

        Raises:
            ValueError: If the name is not a known policy
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Unknown fanout policy: {value!r}. "
                f"Available: {[p.value for p in cls]}"
            ) from None


@dataclass
class Relationship:
    """Pairwise link from a level-1 item to another level-1 item."""

    target_id: str
    kind: str = DEFAULT_RELATIONSHIP_KIND

    def to_document(self) -> dict:
        return {"target_id": self.target_id, "relationship_type": self.kind}

    @classmethod
    def from_document(cls, doc: dict) -> Relationship:
        return cls(
            target_id=str(doc["target_id"]),
            kind=doc.get("relationship_type") or DEFAULT_RELATIONSHIP_KIND,
        )


@dataclass
class Item:
    """A node of a topic tree.

    Attributes:
        id: Immutable identifier
        name: Display name
        level: 1 for roots, parent.level + 1 otherwise
        parent_id: Parent item id, None only for level-1 items
        order_index: Sibling sort key, recomputed by the indexer
        type: Opaque item type tag
        notes: Opaque free text
        link: Opaque URL
        pdf_link: Opaque URL
        relationships: Zero or one pairwise link (level-1 items only)
    """

    id: str
    name: str
    level: int
    parent_id: str | None = None
    order_index: int = 0
    type: str | None = None
    notes: str | None = None
    link: str | None = None
    pdf_link: str | None = None
    relationships: list[Relationship] = field(default_factory=list)

    @property
    def relationship(self) -> Relationship | None:
        """The item's single link, if any."""
        return self.relationships[0] if self.relationships else None

    def copy(self, **changes: Any) -> Item:
        """Return a copy with its own relationship list, applying changes."""
        if "relationships" not in changes:
            changes["relationships"] = [replace(r) for r in self.relationships]
        return replace(self, **changes)

    def to_document(self) -> dict:
        """Serialize to the stored document layout."""
        return {
            "item_id": self.id,
            "item_name": self.name,
            "item_level": self.level,
            "item_type": self.type,
            "parent_item_id": self.parent_id,
            "order_index": self.order_index,
            "notes": self.notes,
            "link": self.link,
            "pdfLink": self.pdf_link,
            "relationships": [r.to_document() for r in self.relationships],
        }

    @classmethod
    def from_document(cls, doc: dict) -> Item:
        """Deserialize from the stored document layout.

        Missing optional keys load as their defaults.
        """
        parent_id = doc.get("parent_item_id")
        return cls(
            id=str(doc["item_id"]),
            name=doc.get("item_name") or "",
            level=int(doc["item_level"]),
            parent_id=str(parent_id) if parent_id is not None else None,
            order_index=int(doc.get("order_index") or 0),
            type=doc.get("item_type"),
            notes=doc.get("notes"),
            link=doc.get("link"),
            pdf_link=doc.get("pdfLink"),
            relationships=[
                Relationship.from_document(r) for r in doc.get("relationships") or []
            ],
        )


@dataclass
class Tree:
    """A named collection of items (one stored document)."""

    name: str
    items: list[Item] = field(default_factory=list)
    hierarchy_analysis: dict | None = None

    def get_item(self, item_id: str) -> Item | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def sorted_items(self) -> list[Item]:
        """Items in depth-first display order (siblings by order_index, then name)."""
        children: dict[str | None, list[Item]] = {}
        for item in self.items:
            children.setdefault(item.parent_id, []).append(item)

        ordered: list[Item] = []
        seen: set[str] = set()

        def visit(parent_id: str | None) -> None:
            for child in sorted(children.get(parent_id, []), key=lambda i: (i.order_index, i.name)):
                if child.id in seen:
                    continue
                seen.add(child.id)
                ordered.append(child)
                visit(child.id)

        visit(None)
        return ordered


@dataclass
class ActionResult:
    """Outcome of a service operation.

    Attributes:
        success: Whether the operation completed
        message: Human-readable summary
        error: Error message when the operation failed
        kind: Error kind when the operation failed
        data: Optional payload (item, tree, statistics)
    """

    success: bool
    message: str
    error: str | None = None
    kind: ErrorKind | None = None
    data: Any = None

    @classmethod
    def ok(cls, message: str, data: Any = None) -> ActionResult:
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, error: str, kind: ErrorKind | None) -> ActionResult:
        return cls(success=False, message=message, error=error, kind=kind)
