"""Topic tree service (Mutation Engine).

Every structural operation follows the same sequence inside one atomic
scope of the store:

1. Load the tree document
2. Apply a pure transform from ``topictree.core.mutations``
3. Save the transformed item list
4. Run the reindex pass (validate, group, index) and save again

Preconditions are checked by the transform before the first write, so a
rejected operation writes nothing. A failure after the first write rolls
the scope back, so callers never observe a half-applied mutation.

Operations return an ``ActionResult`` rather than raising; only
``TopicTreeError`` is converted, anything else propagates.

USAGE:
    service = TopicTreeService(db_path="trees.db")
    result = service.add_item("Cardiovascular", "Hypertension")
    if result.success:
        item = result.data
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from topictree.config import Settings, default_settings
from topictree.core import mutations
from topictree.core.analysis import HierarchyAnalysis
from topictree.core.indexer import reindex_tree
from topictree.core.hierarchy import child_counts
from topictree.core.types import DEFAULT_RELATIONSHIP_KIND, ActionResult, FanoutPolicy, Item, Tree
from topictree.exceptions import ConflictError, StorageFailure, TopicTreeError
from topictree.store.base import TreeStoreAdapter
from topictree.store.database import TreeStore

logger = logging.getLogger(__name__)

Transform = Callable[[list[Item]], tuple]


class TopicTreeService:
    """Externally visible tree operations.

    Attributes:
        settings: Engine settings (fanout limit and policies, name ordering)
        db_path: Path to the tree store database
    """

    def __init__(self, db_path: Path | str | None = None, settings: Settings | None = None):
        """Initialize the service.

        Args:
            db_path: Store database. If None, uses settings.database_path
            settings: Engine settings. If None, uses the default settings
        """
        self.settings = settings or default_settings
        self.db_path = Path(db_path) if db_path else Path(self.settings.database_path)

    def _open_store(self) -> TreeStore:
        return TreeStore(self.db_path)

    # ==========================================================================
    # REINDEX PASS
    # ==========================================================================

    def _reindex_pass(
        self,
        store: TreeStoreAdapter,
        name: str,
        policy: FanoutPolicy | None = None,
        existing_counts: dict[str | None, int] | None = None,
    ) -> list[Item]:
        """Reindex a stored tree and save the result.

        Over-full groups that are no larger than in ``existing_counts`` are
        logged, not raised. Without counts the stored tree is its own
        baseline, so a plain reindex never fails on legacy data.
        """
        tree = store.load_tree(name)
        if existing_counts is None:
            existing_counts = child_counts(tree.items)
        items = reindex_tree(
            tree.items,
            policy=policy or self.settings.fanout_policy,
            fanout_limit=self.settings.fanout_limit,
            case_sensitive=self.settings.case_sensitive,
            existing_counts=existing_counts,
        )
        store.save_tree(name, items)
        return items

    def _apply(self, name: str, transform: Transform) -> tuple[list[Item], Any]:
        """Run transform + save + reindex pass as one atomic unit."""
        with self._open_store() as store:
            with store.atomically():
                tree = store.load_tree(name)
                baseline = child_counts(tree.items)
                new_items, payload = transform(tree.items)
                store.save_tree(name, new_items)
                items = self._reindex_pass(store, name, existing_counts=baseline)
        return items, payload

    @staticmethod
    def _failure(action: str, error: TopicTreeError) -> ActionResult:
        logger.info("%s: %s", action, error.message)
        return ActionResult.fail(action, error.message, error.kind)

    @staticmethod
    def _find(items: list[Item], item_id: str) -> Item | None:
        return next((item for item in items if item.id == item_id), None)

    # ==========================================================================
    # READ
    # ==========================================================================

    def fetch_tree(self, name: str, sort: bool = False) -> ActionResult:
        """Load a tree.

        Args:
            name: Tree name
            sort: Return items in depth-first display order instead of
                store order

        Returns:
            ActionResult with the Tree as data
        """
        try:
            with self._open_store() as store:
                tree = store.load_tree(name)
        except TopicTreeError as e:
            return self._failure("Failed to fetch topic", e)
        if sort:
            tree = Tree(name=tree.name, items=tree.sorted_items(), hierarchy_analysis=tree.hierarchy_analysis)
        return ActionResult.ok("Topic fetched", tree)

    # ==========================================================================
    # INSERTION AND EDITS
    # ==========================================================================

    def add_item(
        self,
        tree_name: str,
        name: str,
        level: int = 1,
        parent_id: str | None = None,
        item_type: str | None = None,
        notes: str | None = None,
        link: str | None = None,
        pdf_link: str | None = None,
    ) -> ActionResult:
        """Add an item under ``parent_id`` (None for a root).

        Returns:
            ActionResult with the created Item (final sort key) as data
        """
        def transform(items):
            return mutations.add_item(
                items,
                name,
                level,
                parent_id=parent_id,
                fanout_limit=self.settings.fanout_limit,
                item_type=item_type,
                notes=notes,
                link=link,
                pdf_link=pdf_link,
            )

        try:
            items, created = self._apply(tree_name, transform)
        except TopicTreeError as e:
            return self._failure("Failed to add item", e)

        logger.info("Added item %s to topic %r", created.id, tree_name)
        return ActionResult.ok("Item added successfully", self._find(items, created.id))

    def add_item_near(
        self,
        tree_name: str,
        reference_id: str,
        name: str,
        as_child: bool = False,
    ) -> ActionResult:
        """Add an item as sibling (default) or child of a reference item."""
        def transform(items):
            return mutations.add_item_near(
                items, reference_id, name, as_child, fanout_limit=self.settings.fanout_limit
            )

        try:
            items, created = self._apply(tree_name, transform)
        except TopicTreeError as e:
            return self._failure("Failed to add item", e)

        logger.info("Added item %s near %s in topic %r", created.id, reference_id, tree_name)
        return ActionResult.ok("Item added successfully", self._find(items, created.id))

    def rename_item(self, tree_name: str, item_id: str, name: str) -> ActionResult:
        """Rename an item.

        Goes through the same save-and-reindex path as structural edits,
        since a new name can change sibling order.
        """
        try:
            items, _ = self._apply(
                tree_name, lambda items: (mutations.rename_item(items, item_id, name), None)
            )
        except TopicTreeError as e:
            return self._failure("Failed to rename item", e)
        return ActionResult.ok("Item renamed successfully", self._find(items, item_id))

    def update_item_details(self, tree_name: str, item_id: str, **details: Any) -> ActionResult:
        """Update notes, link, pdf_link or type of an item."""
        try:
            items, _ = self._apply(
                tree_name,
                lambda items: (mutations.update_item_details(items, item_id, **details), None),
            )
        except TopicTreeError as e:
            return self._failure("Failed to update item", e)
        return ActionResult.ok("Item updated successfully", self._find(items, item_id))

    # ==========================================================================
    # STRUCTURAL CHANGES
    # ==========================================================================

    def delete_item(self, tree_name: str, item_id: str) -> ActionResult:
        """Delete an item and all its descendants.

        Returns:
            ActionResult with the sorted list of removed ids as data
        """
        try:
            _, removed = self._apply(tree_name, lambda items: mutations.delete_item(items, item_id))
        except TopicTreeError as e:
            return self._failure("Failed to delete item", e)

        logger.info("Deleted %d item(s) from topic %r", len(removed), tree_name)
        return ActionResult.ok("Item deleted successfully", sorted(removed))

    def move_item(self, tree_name: str, drag_id: str, drop_id: str, nested: bool = False) -> ActionResult:
        """Move an item next to (or, with ``nested``, under) another item."""
        def transform(items):
            moved = mutations.move_item(
                items, drag_id, drop_id, nested, fanout_limit=self.settings.fanout_limit
            )
            return moved, None

        try:
            items, _ = self._apply(tree_name, transform)
        except TopicTreeError as e:
            return self._failure("Failed to move item", e)
        return ActionResult.ok("Item moved successfully", self._find(items, drag_id))

    def promote_item_level(self, tree_name: str, item_id: str) -> ActionResult:
        """Move an item (with its subtree) up one level."""
        def transform(items):
            return mutations.promote_item(items, item_id, fanout_limit=self.settings.fanout_limit), None

        try:
            items, _ = self._apply(tree_name, transform)
        except TopicTreeError as e:
            return self._failure("Failed to move item up", e)
        return ActionResult.ok("Item moved up successfully", self._find(items, item_id))

    def move_item_across_trees(self, from_tree: str, to_tree: str, item_id: str) -> ActionResult:
        """Move a level-1 item and its subtree to another tree.

        Both trees are rewritten and reindexed inside one atomic scope.

        Returns:
            ActionResult with the sorted list of moved ids as data
        """
        try:
            if from_tree == to_tree:
                raise ConflictError(
                    "Source and destination topics are the same",
                    {"topic_name": from_tree},
                )
            with self._open_store() as store:
                with store.atomically():
                    source = store.load_tree(from_tree)
                    target = store.load_tree(to_tree)
                    baseline = child_counts(source.items + target.items)
                    remaining, moving = mutations.split_subtree(source.items, item_id)
                    grafted = mutations.graft_subtree(target.items, moving)
                    store.save_tree(from_tree, remaining)
                    store.save_tree(to_tree, grafted)
                    self._reindex_pass(store, from_tree, existing_counts=baseline)
                    self._reindex_pass(store, to_tree, existing_counts=baseline)
        except TopicTreeError as e:
            return self._failure("Failed to move item", e)

        moved_ids = sorted(item.id for item in moving)
        logger.info("Moved %d item(s) from %r to %r", len(moved_ids), from_tree, to_tree)
        return ActionResult.ok("Successfully moved item to new topic", moved_ids)

    # ==========================================================================
    # RELATIONSHIPS
    # ==========================================================================

    def create_relationship(
        self,
        tree_name: str,
        source_id: str,
        target_id: str,
        kind: str = DEFAULT_RELATIONSHIP_KIND,
    ) -> ActionResult:
        """Link two level-1 items."""
        try:
            self._apply(
                tree_name,
                lambda items: (mutations.create_relationship(items, source_id, target_id, kind), None),
            )
        except TopicTreeError as e:
            return self._failure("Failed to create relationship", e)
        return ActionResult.ok("Relationship created successfully")

    def delete_relationship(self, tree_name: str, source_id: str) -> ActionResult:
        """Remove the link held by ``source_id`` on both ends."""
        try:
            _, partner_id = self._apply(
                tree_name, lambda items: mutations.delete_relationship(items, source_id)
            )
        except TopicTreeError as e:
            return self._failure("Failed to delete relationship", e)
        return ActionResult.ok("Relationship deleted successfully", partner_id)

    # ==========================================================================
    # REINDEXING
    # ==========================================================================

    def reindex_tree(self, tree_name: str) -> ActionResult:
        """Run the reindex pass on demand.

        Safe to repeat; use it to recover after a non-atomic write failed
        between the mutation and its reindex.
        """
        try:
            with self._open_store() as store:
                with store.atomically():
                    items = self._reindex_pass(store, tree_name)
        except TopicTreeError as e:
            return self._failure("Failed to reindex topic", e)
        return ActionResult.ok("Topic reindexed", items)

    def reindex_all(self) -> ActionResult:
        """Recompute sort keys of every stored tree.

        Uses the bulk fanout policy, so over-full groups in existing data
        are logged instead of blocking the recompute.

        Returns:
            ActionResult with per-tree statistics as data
        """
        policy = self.settings.bulk_fanout_policy
        results = []
        try:
            with self._open_store() as store:
                for name in store.list_tree_names():
                    with store.atomically():
                        before = store.load_tree(name)
                        items = self._reindex_pass(store, name, policy=policy, existing_counts={})
                    top_level = [item for item in items if item.level == 1]
                    results.append({
                        "topic": name,
                        "top_level_items": len(top_level),
                        "relationship_count": sum(len(item.relationships) for item in top_level),
                        "total_items": len(before.items),
                    })
                    logger.info("Reindexed topic %r (%d items)", name, len(items))
        except TopicTreeError as e:
            return self._failure("Migration failed", e)

        return ActionResult.ok("Migration completed successfully", results)

    # ==========================================================================
    # ANALYSIS REPORT
    # ==========================================================================

    def save_analysis(self, tree_name: str, analysis: HierarchyAnalysis | dict) -> ActionResult:
        """Attach an advisory analysis report to a tree.

        A malformed report document is refused as a storage failure.
        """
        try:
            if isinstance(analysis, dict):
                analysis = self._parse_analysis(analysis, "Analysis report cannot be stored")
            with self._open_store() as store:
                store.save_analysis(tree_name, analysis.to_document())
        except TopicTreeError as e:
            return self._failure("Failed to save analysis", e)
        return ActionResult.ok("Analysis saved", analysis)

    def fetch_analysis(self, tree_name: str) -> ActionResult:
        """Read the analysis report of a tree (data is None when absent)."""
        try:
            with self._open_store() as store:
                tree = store.load_tree(tree_name)
            if tree.hierarchy_analysis is None:
                return ActionResult.ok("No analysis available", None)
            analysis = self._parse_analysis(
                tree.hierarchy_analysis, f"Topic '{tree_name}' has a corrupt analysis report"
            )
        except TopicTreeError as e:
            return self._failure("Failed to fetch analysis", e)
        return ActionResult.ok("Analysis fetched", analysis)

    @staticmethod
    def _parse_analysis(doc: dict, failure: str) -> HierarchyAnalysis:
        try:
            return HierarchyAnalysis.from_document(doc)
        except ValueError as e:
            raise StorageFailure(f"{failure}: {e}") from e


def get_service(db_path: Path | str | None = None) -> TopicTreeService:
    """Get a service bound to the configured (or given) store database."""
    return TopicTreeService(db_path=db_path)
