"""Topic tree consistency and reindexing engine.

Keeps ordered topic trees consistent under structural edits: every mutation
is followed by a reindex pass that drops orphans, clusters related top-level
items and assigns sibling sort keys.
"""

__version__ = "0.1.0"

from topictree.core.types import ActionResult, FanoutPolicy, Item, Relationship, Tree
from topictree.exceptions import (
    ConflictError,
    CyclicMove,
    ErrorKind,
    InvalidLevel,
    LimitExceeded,
    ResourceNotFound,
    StorageFailure,
    TopicTreeError,
)
from topictree.service import TopicTreeService, get_service

__all__ = [
    "ActionResult",
    "ConflictError",
    "CyclicMove",
    "ErrorKind",
    "FanoutPolicy",
    "InvalidLevel",
    "Item",
    "LimitExceeded",
    "Relationship",
    "ResourceNotFound",
    "StorageFailure",
    "TopicTreeError",
    "TopicTreeService",
    "Tree",
    "get_service",
]
