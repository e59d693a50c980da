"""Hierarchy analysis report.

An external analysis service proposes missing items and groupings for a
tree. The report is advisory data for presentation only: the engine stores
and returns it but never reads it when enforcing tree invariants.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from topictree.host.time import now_iso


@dataclass(frozen=True)
class MissingItem:
    """An item the analysis suggests adding."""

    suggested_item: str
    importance: str
    related_existing_items: tuple[str, ...] = ()


@dataclass(frozen=True)
class SuggestedHierarchy:
    """A grouping the analysis suggests (existing or new parent)."""

    parent_item: str
    child_items: tuple[str, ...]
    reasoning: str
    is_new_group: bool = False


@dataclass(frozen=True)
class HierarchyAnalysis:
    """Read-only analysis report attached to a tree."""

    missing_items: tuple[MissingItem, ...] = ()
    suggested_hierarchies: tuple[SuggestedHierarchy, ...] = ()
    analyzed_at: str = field(default_factory=now_iso)

    def to_document(self) -> dict:
        return {
            "missing_items": [
                {
                    "suggested_item": m.suggested_item,
                    "importance": m.importance,
                    "related_existing_items": list(m.related_existing_items),
                }
                for m in self.missing_items
            ],
            "suggested_hierarchies": [
                {
                    "parent_item": h.parent_item,
                    "child_items": list(h.child_items),
                    "reasoning": h.reasoning,
                    "is_new_group": h.is_new_group,
                }
                for h in self.suggested_hierarchies
            ],
            "analyzed_at": self.analyzed_at,
        }

    @classmethod
    def from_document(cls, doc: dict) -> HierarchyAnalysis:
        """Build a report from its stored or received document form.

        Raises:
            ValueError: If a required field is missing
        """
        try:
            missing = tuple(
                MissingItem(
                    suggested_item=m["suggested_item"],
                    importance=m.get("importance", ""),
                    related_existing_items=tuple(m.get("related_existing_items") or ()),
                )
                for m in doc.get("missing_items") or ()
            )
            hierarchies = tuple(
                SuggestedHierarchy(
                    parent_item=h["parent_item"],
                    child_items=tuple(h.get("child_items") or ()),
                    reasoning=h.get("reasoning", ""),
                    is_new_group=bool(h.get("is_new_group", False)),
                )
                for h in doc.get("suggested_hierarchies") or ()
            )
        except KeyError as e:
            raise ValueError(f"Analysis report is missing field {e}") from e

        analyzed_at = doc.get("analyzed_at")
        if analyzed_at is None:
            return cls(missing_items=missing, suggested_hierarchies=hierarchies)
        return cls(missing_items=missing, suggested_hierarchies=hierarchies, analyzed_at=str(analyzed_at))
