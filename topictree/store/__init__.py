"""Tree store.

Persists each topic tree as one document (name + JSON item array) and
offers an atomic scope for operations that write more than once or touch
more than one tree.
"""

from .base import TreeStoreAdapter
from .database import TreeStore, get_store, init_store

__all__ = [
    "TreeStoreAdapter",
    "TreeStore",
    "get_store",
    "init_store",
]
