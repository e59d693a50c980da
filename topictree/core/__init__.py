"""Pure tree algorithms: validation, grouping, indexing and mutations."""

from .analysis import HierarchyAnalysis, MissingItem, SuggestedHierarchy
from .grouper import group
from .indexer import reindex, reindex_tree
from .types import ActionResult, FanoutPolicy, Item, Relationship, Tree
from .validator import strip_dangling_relationships, validate

__all__ = [
    "ActionResult",
    "FanoutPolicy",
    "HierarchyAnalysis",
    "Item",
    "MissingItem",
    "Relationship",
    "SuggestedHierarchy",
    "Tree",
    "group",
    "reindex",
    "reindex_tree",
    "strip_dangling_relationships",
    "validate",
]
