"""SQLite document store for topic trees."""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Callable, TypeVar

from topictree.core.types import Item, Tree
from topictree.exceptions import ConflictError, ResourceNotFound, StorageFailure
from topictree.host.time import now_iso
from topictree.schemas import get_sql_schema

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TreeStore:
    """SQLite-backed store of tree documents.

    Each tree is one row holding its items as a JSON array; writes replace
    the whole array.

    CONNECTION LIFECYCLE:
    - TreeStore MUST be used as context manager (enforced at runtime)
    - __enter__: creates connection, returns self
    - __exit__: commits on success, rolls back on exception, always closes
    - Outside an atomic scope every write commits immediately
    - Inside ``atomically()`` writes commit together when the outermost
      scope exits cleanly and roll back otherwise
    """

    def __init__(self, db_path: str | Path = "topictree.db"):
        """Initialize the store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._in_context = False
        self._atomic_depth = 0

    def _get_connection(self) -> sqlite3.Connection:
        """Get connection, enforcing context manager usage.

        Raises:
            RuntimeError: If the store is not being used as context manager
        """
        if not self._in_context:
            raise RuntimeError(
                "TreeStore must be used as context manager. "
                "Use: with get_store() as store: ..."
            )
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path))
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode = WAL")
        return self._conn

    def close(self):
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> TreeStore:
        self._in_context = True
        self._get_connection()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._in_context = False
        try:
            if self._conn is not None:
                if exc_type is None:
                    self._conn.commit()
                else:
                    self._conn.rollback()
        finally:
            self.close()

    def _commit_unless_atomic(self) -> None:
        if self._atomic_depth == 0:
            self._get_connection().commit()

    # ==========================================================================
    # INITIALIZATION
    # ==========================================================================

    def init_schema(self):
        """Initialize database schema from the bundled store.sql."""
        conn = self._get_connection()
        conn.executescript(get_sql_schema("store"))
        conn.commit()

    def get_schema_version(self) -> str | None:
        """Get current schema version."""
        cursor = self._get_connection().execute(
            "SELECT value FROM _schema_metadata WHERE key = 'version'"
        )
        row = cursor.fetchone()
        return row[0] if row else None

    # ==========================================================================
    # TREE DOCUMENTS
    # ==========================================================================

    def create_tree(self, name: str, items: list[Item] | None = None) -> Tree:
        """Create an empty (or pre-populated) tree.

        Raises:
            ConflictError: If a tree with this name already exists
            StorageFailure: On database errors
        """
        items = items or []
        now = now_iso()
        try:
            self._get_connection().execute(
                """INSERT INTO topic_tree (name, items, hierarchy_analysis, created_at, updated_at)
                   VALUES (?, ?, NULL, ?, ?)""",
                (name, json.dumps([item.to_document() for item in items]), now, now),
            )
            self._commit_unless_atomic()
        except sqlite3.IntegrityError as e:
            raise ConflictError(f"Topic '{name}' already exists", {"topic_name": name}) from e
        except sqlite3.Error as e:
            raise StorageFailure(f"Failed to create topic '{name}': {e}") from e
        return Tree(name=name, items=list(items))

    def load_tree(self, name: str) -> Tree:
        """Load a tree by name.

        Raises:
            ResourceNotFound: If the tree does not exist
            StorageFailure: On database errors or a corrupt document
        """
        try:
            row = self._get_connection().execute(
                "SELECT name, items, hierarchy_analysis FROM topic_tree WHERE name = ?",
                (name,),
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageFailure(f"Failed to load topic '{name}': {e}") from e

        if row is None:
            raise ResourceNotFound(f"Topic '{name}' not found", {"topic_name": name})

        try:
            items = [Item.from_document(doc) for doc in json.loads(row["items"])]
            analysis = json.loads(row["hierarchy_analysis"]) if row["hierarchy_analysis"] else None
        except (ValueError, KeyError, TypeError) as e:
            raise StorageFailure(f"Topic '{name}' has a corrupt document: {e}") from e

        return Tree(name=row["name"], items=items, hierarchy_analysis=analysis)

    def save_tree(self, name: str, items: list[Item]) -> None:
        """Replace the items of a tree.

        Raises:
            ResourceNotFound: If the tree does not exist
            StorageFailure: On database errors
        """
        payload = json.dumps([item.to_document() for item in items])
        try:
            cursor = self._get_connection().execute(
                "UPDATE topic_tree SET items = ?, updated_at = ? WHERE name = ?",
                (payload, now_iso(), name),
            )
            if cursor.rowcount == 0:
                raise ResourceNotFound(f"Topic '{name}' not found", {"topic_name": name})
            self._commit_unless_atomic()
        except sqlite3.Error as e:
            raise StorageFailure(f"Failed to save topic '{name}': {e}") from e

    def save_analysis(self, name: str, analysis: dict | None) -> None:
        """Replace the advisory analysis report of a tree.

        Raises:
            ResourceNotFound: If the tree does not exist
            StorageFailure: On database errors
        """
        payload = json.dumps(analysis) if analysis is not None else None
        try:
            cursor = self._get_connection().execute(
                "UPDATE topic_tree SET hierarchy_analysis = ?, updated_at = ? WHERE name = ?",
                (payload, now_iso(), name),
            )
            if cursor.rowcount == 0:
                raise ResourceNotFound(f"Topic '{name}' not found", {"topic_name": name})
            self._commit_unless_atomic()
        except sqlite3.Error as e:
            raise StorageFailure(f"Failed to save analysis for topic '{name}': {e}") from e

    def list_tree_names(self) -> list[str]:
        """Names of all stored trees, alphabetically."""
        try:
            rows = self._get_connection().execute(
                "SELECT name FROM topic_tree ORDER BY name"
            ).fetchall()
        except sqlite3.Error as e:
            raise StorageFailure(f"Failed to list topics: {e}") from e
        return [row["name"] for row in rows]

    # ==========================================================================
    # ATOMIC SCOPE
    # ==========================================================================

    class AtomicScope:
        """Context manager committing every write of the scope together.

        Nested scopes join the outermost one; only the outermost scope
        begins, commits or rolls back.
        """

        def __init__(self, store: "TreeStore"):
            self._store = store

        def __enter__(self) -> "TreeStore":
            store = self._store
            if store._atomic_depth == 0:
                conn = store._get_connection()
                try:
                    conn.commit()
                    conn.execute("BEGIN IMMEDIATE")
                except sqlite3.Error as e:
                    raise StorageFailure(f"Failed to begin atomic scope: {e}") from e
            store._atomic_depth += 1
            return store

        def __exit__(self, exc_type, exc_val, exc_tb):
            store = self._store
            store._atomic_depth -= 1
            if store._atomic_depth > 0:
                return False

            conn = store._get_connection()
            if exc_type is not None:
                self._rollback(conn)
                logger.warning("Atomic scope rolled back: %s", exc_val)
                return False

            try:
                conn.commit()
            except sqlite3.Error as e:
                self._rollback(conn)
                raise StorageFailure(f"Failed to commit atomic scope: {e}") from e
            return False

        @staticmethod
        def _rollback(conn: sqlite3.Connection) -> None:
            try:
                conn.rollback()
            except sqlite3.Error as e:
                logger.error("Rollback failed: %s", e)

    def atomically(self) -> "TreeStore.AtomicScope":
        """Create an atomic scope.

        Usage:
            with store.atomically():
                store.save_tree("Cardiovascular", items)
                store.save_tree("Respiratory", other_items)
                # Both commit together on successful exit
        """
        return self.AtomicScope(self)

    def run_atomically(self, operation: Callable[["TreeStore"], T]) -> T:
        """Run ``operation(store)`` inside an atomic scope and return its result."""
        with self.atomically() as store:
            return operation(store)


def get_store(db_path: str | Path | None = None) -> TreeStore:
    """Get a TreeStore instance.

    Args:
        db_path: Database path. If None, uses the configured database path.

    Returns:
        TreeStore (use as context manager)
    """
    if db_path is None:
        from topictree.config import default_settings
        db_path = default_settings.database_path
    return TreeStore(db_path)


def init_store(db_path: str | Path | None = None) -> None:
    """Create the store schema if it does not exist yet."""
    with get_store(db_path) as store:
        store.init_schema()
