"""Item Store Adapter protocol.

The engine only needs whole-document access to trees and an all-or-nothing
scope for the writes of one operation. Any backend offering these can stand
in for the bundled SQLite store.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Callable, Protocol, TypeVar

from topictree.core.types import Item, Tree

T = TypeVar("T")


class TreeStoreAdapter(Protocol):
    """Document store protocol for topic trees."""

    def load_tree(self, name: str) -> Tree:
        """Load a tree by name. Raises ResourceNotFound if missing."""
        ...

    def save_tree(self, name: str, items: list[Item]) -> None:
        """Replace a tree's items. Raises ResourceNotFound or StorageFailure."""
        ...

    def list_tree_names(self) -> list[str]:
        """Names of all stored trees."""
        ...

    def save_analysis(self, name: str, analysis: dict | None) -> None:
        """Replace a tree's advisory analysis report."""
        ...

    def atomically(self) -> AbstractContextManager[TreeStoreAdapter]:
        """Scope whose writes commit together or not at all."""
        ...

    def run_atomically(self, operation: Callable[[TreeStoreAdapter], T]) -> T:
        """Run ``operation`` inside an atomic scope and return its result."""
        ...
