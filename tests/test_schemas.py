"""Tests for topictree.schemas module.

Coverage:
- get_sql_schema(layer) - Return the bundled store.sql
- get_type_schema(type_name) - Return a document JSON schema
- list_type_schemas() - List available schemas
"""

import pytest

from topictree.core.analysis import HierarchyAnalysis
from topictree.core.types import Item, Relationship
from topictree.schemas import get_sql_schema, get_type_schema, list_type_schemas


class TestGetSqlSchema:
    """Tests for get_sql_schema function."""

    def test_get_store_schema(self):
        """get_sql_schema('store') returns the tree store schema."""
        schema = get_sql_schema("store")

        assert "CREATE TABLE IF NOT EXISTS topic_tree" in schema
        assert "_schema_metadata" in schema

    def test_invalid_layer(self):
        """Unknown layers are rejected."""
        with pytest.raises(ValueError, match="Invalid layer"):
            get_sql_schema("core")


class TestGetTypeSchema:
    """Tests for get_type_schema function."""

    def test_item_schema(self):
        """The Item schema lists the stored document keys."""
        schema = get_type_schema("Item")

        assert schema["title"] == "Item"
        assert "pdfLink" in schema["properties"]

    def test_item_document_has_required_keys(self):
        """Serialized items carry every required key."""
        schema = get_type_schema("Item")
        doc = Item("a", "Alpha", 1, relationships=[Relationship("b")]).to_document()

        assert set(schema["required"]) <= set(doc)
        assert set(doc) <= set(schema["properties"])

    def test_analysis_document_has_required_keys(self):
        """Serialized reports carry every required key."""
        schema = get_type_schema("HierarchyAnalysis")

        assert set(schema["required"]) <= set(HierarchyAnalysis().to_document())

    def test_missing_schema(self):
        """Unknown types raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            get_type_schema("Nope")


class TestListTypeSchemas:
    """Tests for list_type_schemas function."""

    def test_lists_all_types(self):
        """All bundled document types are listed by title."""
        assert list_type_schemas() == ["HierarchyAnalysis", "Item", "Tree"]
