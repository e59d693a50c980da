"""Pytest fixtures for topictree tests.

Every test gets its own SQLite file under ``tmp_path`` so tests never share
state and never touch the configured database.
"""

import pytest

from topictree.config import Settings
from topictree.core.types import Item, Relationship
from topictree.seed import seed_topics
from topictree.service import TopicTreeService
from topictree.store.database import TreeStore, init_store


def make_item(item_id, name, level=1, parent_id=None, order_index=0, link_to=None):
    """Build an Item with an optional symmetric-side link."""
    relationships = [Relationship(link_to)] if link_to else []
    return Item(
        id=item_id,
        name=name,
        level=level,
        parent_id=parent_id,
        order_index=order_index,
        relationships=relationships,
    )


@pytest.fixture
def item():
    """Factory fixture for building items in tests."""
    return make_item


@pytest.fixture
def db_path(tmp_path):
    """Path of an initialized, empty store database."""
    path = tmp_path / "topictree.db"
    init_store(path)
    return path


@pytest.fixture
def store(db_path):
    """Open TreeStore on the temporary database (used as context manager)."""
    with TreeStore(db_path) as tree_store:
        yield tree_store


@pytest.fixture
def settings(tmp_path, db_path):
    """Settings isolated from the user's config file and environment."""
    return Settings(
        database_path=db_path,
        config_path=tmp_path / "missing.toml",
        fanout_limit=10,
        fanout_policy="raise",
        bulk_fanout_policy="warn",
        case_sensitive=True,
    )


@pytest.fixture
def service(settings):
    """TopicTreeService with two empty trees: Cardiovascular and Respiratory."""
    seed_topics(settings.database_path, topics=("Cardiovascular", "Respiratory"))
    return TopicTreeService(settings=settings)


@pytest.fixture
def put_items(settings):
    """Replace a tree's items directly in the store, bypassing the engine."""
    def _put(tree_name, items):
        with TreeStore(settings.database_path) as tree_store:
            if tree_name not in tree_store.list_tree_names():
                tree_store.create_tree(tree_name)
            tree_store.save_tree(tree_name, items)
    return _put


@pytest.fixture
def load_items(settings):
    """Read a tree's stored items as a dict keyed by id."""
    def _load(tree_name):
        with TreeStore(settings.database_path) as tree_store:
            return {i.id: i for i in tree_store.load_tree(tree_name).items}
    return _load
