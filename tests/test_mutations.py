"""Tests for the pure mutation transforms.

Coverage:
- Add (root, child, placeholder key, level checks, fanout)
- Delete cascade and link cleanup
- Move (sibling, nested, cyclic, fanout, level shift)
- Promote
- Cross-tree split and graft
- Relationship create and delete
"""

import pytest

from topictree.core import mutations
from topictree.exceptions import ConflictError, CyclicMove, InvalidLevel, LimitExceeded, ResourceNotFound


def _by_id(items):
    return {i.id: i for i in items}


@pytest.fixture
def tree(item):
    """Two roots; A has child B which has child B2."""
    return [
        item("a", "Alpha", order_index=1000),
        item("b", "Beta", level=2, parent_id="a", order_index=200),
        item("b2", "Beta Two", level=3, parent_id="b", order_index=300),
        item("c", "Gamma", order_index=2000),
    ]


class TestAddItem:
    """Tests for add_item."""

    def test_add_root(self, tree):
        """A root is appended with a placeholder after the largest root key."""
        items, created = mutations.add_item(tree, "Delta", 1)

        assert created.level == 1
        assert created.parent_id is None
        assert created.order_index == 3000
        assert items[-1] is created
        assert len(created.id) == 32

    def test_add_child(self, tree):
        """A child gets the parent's level plus one."""
        items, created = mutations.add_item(tree, "Beta Three", 3, parent_id="b")

        assert created.parent_id == "b"
        assert created.order_index == 1300
        assert len(items) == 5

    def test_first_child_placeholder(self, tree):
        """Without siblings the placeholder is 1000."""
        _, created = mutations.add_item(tree, "Gamma One", 2, parent_id="c")

        assert created.order_index == 1000

    def test_metadata_is_stored(self, tree):
        """Opaque metadata is carried on the new item."""
        _, created = mutations.add_item(
            tree, "Delta", 1, item_type="topic", notes="n", link="http://x", pdf_link="http://y"
        )

        assert (created.type, created.notes, created.link, created.pdf_link) == (
            "topic", "n", "http://x", "http://y"
        )

    def test_missing_parent(self, tree):
        """An unknown parent is NotFound."""
        with pytest.raises(ResourceNotFound):
            mutations.add_item(tree, "Lost", 2, parent_id="nope")

    def test_wrong_level(self, tree):
        """The level must be parent.level + 1."""
        with pytest.raises(InvalidLevel):
            mutations.add_item(tree, "Skip", 4, parent_id="b")

    def test_root_must_be_level_one(self, tree):
        """A parentless item must be level 1."""
        with pytest.raises(InvalidLevel):
            mutations.add_item(tree, "Floating", 2)

    def test_eleventh_child_rejected(self, item):
        """A parent with ten children refuses an eleventh."""
        items = [item("p", "Parent")] + [
            item(f"c{n}", f"Child {n}", level=2, parent_id="p") for n in range(10)
        ]

        with pytest.raises(LimitExceeded) as exc_info:
            mutations.add_item(items, "Child 10", 2, parent_id="p")

        assert exc_info.value.count == 10
        assert len(items) == 11

    def test_input_not_modified(self, tree):
        """The caller's list is unchanged."""
        mutations.add_item(tree, "Delta", 1)

        assert len(tree) == 4

    def test_add_near_as_sibling(self, tree):
        """add_item_near defaults to a sibling of the reference."""
        _, created = mutations.add_item_near(tree, "b", "Beta Sibling", as_child=False)

        assert (created.level, created.parent_id) == (2, "a")

    def test_add_near_as_child(self, tree):
        """add_item_near can add under the reference."""
        _, created = mutations.add_item_near(tree, "b", "Beta Child", as_child=True)

        assert (created.level, created.parent_id) == (3, "b")


class TestEdits:
    """Tests for rename and metadata updates."""

    def test_rename(self, tree):
        """Only the name changes."""
        result = _by_id(mutations.rename_item(tree, "b", "Bravo"))

        assert result["b"].name == "Bravo"
        assert result["b"].level == 2
        assert tree[1].name == "Beta"

    def test_rename_missing(self, tree):
        """Renaming an unknown id is NotFound."""
        with pytest.raises(ResourceNotFound):
            mutations.rename_item(tree, "nope", "X")

    def test_update_details(self, tree):
        """Metadata fields can be replaced."""
        result = _by_id(mutations.update_item_details(tree, "a", notes="hello", link="http://a"))

        assert result["a"].notes == "hello"
        assert result["a"].link == "http://a"

    def test_update_rejects_structural_fields(self, tree):
        """Structural fields cannot be changed through details."""
        with pytest.raises(ValueError):
            mutations.update_item_details(tree, "a", level=3)


class TestDeleteItem:
    """Tests for cascading delete."""

    def test_cascade(self, tree):
        """Deleting A removes A, B and B2 in one call."""
        survivors, removed = mutations.delete_item(tree, "a")

        assert removed == {"a", "b", "b2"}
        assert [i.id for i in survivors] == ["c"]

    def test_delete_leaf(self, tree):
        """Deleting a leaf removes only the leaf."""
        survivors, removed = mutations.delete_item(tree, "b2")

        assert removed == {"b2"}
        assert len(survivors) == 3

    def test_links_into_removed_set_cleared(self, item):
        """Survivors lose links to removed items."""
        items = [item("a", "Alpha", link_to="c"), item("c", "Gamma", link_to="a")]

        survivors, _ = mutations.delete_item(items, "a")

        assert survivors[0].relationships == []

    def test_delete_missing(self, tree):
        """Deleting an unknown id is NotFound."""
        with pytest.raises(ResourceNotFound):
            mutations.delete_item(tree, "nope")


class TestMoveItem:
    """Tests for drag and drop reparenting."""

    def test_nested_move_shifts_subtree(self, tree):
        """Moving B under C keeps B2 under B and shifts nothing else."""
        result = _by_id(mutations.move_item(tree, "b", "c", nested=True))

        assert (result["b"].parent_id, result["b"].level) == ("c", 2)
        assert (result["b2"].parent_id, result["b2"].level) == ("b", 3)

    def test_sibling_move_to_root(self, tree):
        """Dropping B next to C makes B a root; B2 moves up a level."""
        result = _by_id(mutations.move_item(tree, "b", "c", nested=False))

        assert (result["b"].parent_id, result["b"].level) == (None, 1)
        assert result["b2"].level == 2

    def test_move_deeper(self, tree):
        """Nesting C under B2 shifts C down by three levels."""
        result = _by_id(mutations.move_item(tree, "c", "b2", nested=True))

        assert (result["c"].parent_id, result["c"].level) == ("b2", 4)

    def test_move_onto_self(self, tree):
        """An item cannot be dropped onto itself."""
        with pytest.raises(CyclicMove):
            mutations.move_item(tree, "a", "a", nested=True)

    def test_move_under_descendant(self, tree):
        """An item cannot be moved beneath its own descendant."""
        with pytest.raises(CyclicMove):
            mutations.move_item(tree, "a", "b2", nested=False)

    def test_full_destination(self, item):
        """A full destination group rejects the move."""
        items = [item("p", "Parent"), item("q", "Other"), item("m", "Mover", level=2, parent_id="q")]
        items += [item(f"c{n}", f"Child {n}", level=2, parent_id="p") for n in range(10)]

        with pytest.raises(LimitExceeded):
            mutations.move_item(items, "m", "p", nested=True)

    def test_reorder_within_full_group(self, item):
        """Moving within a full group does not count the moving item."""
        items = [item("p", "Parent")] + [
            item(f"c{n}", f"Child {n}", level=2, parent_id="p") for n in range(10)
        ]

        result = _by_id(mutations.move_item(items, "c0", "c5", nested=False))

        assert result["c0"].parent_id == "p"

    def test_nested_move_clears_links(self, item):
        """A linked root moved below level 1 loses its link on both ends."""
        items = [item("a", "Alpha", link_to="c"), item("c", "Gamma", link_to="a"), item("d", "Delta")]

        result = _by_id(mutations.move_item(items, "a", "d", nested=True))

        assert result["a"].relationships == []
        assert result["c"].relationships == []

    def test_no_cycles_after_move(self, tree):
        """Every parent chain ends at a root after a move."""
        result = _by_id(mutations.move_item(tree, "c", "b2", nested=True))

        for current in result.values():
            hops = 0
            while current.parent_id is not None:
                current = result[current.parent_id]
                hops += 1
                assert hops <= len(result)
            assert current.level == 1


class TestPromoteItem:
    """Tests for promote one level."""

    def test_promote_with_child(self, item):
        """Promoting level-3 X with level-4 child Y gives X=2, Y=3."""
        items = [
            item("r", "Root"),
            item("p", "Parent", level=2, parent_id="r"),
            item("x", "X", level=3, parent_id="p"),
            item("y", "Y", level=4, parent_id="x"),
        ]

        result = _by_id(mutations.promote_item(items, "x"))

        assert (result["x"].level, result["x"].parent_id) == (2, "r")
        assert (result["y"].level, result["y"].parent_id) == (3, "x")

    def test_promote_to_root(self, tree):
        """A level-2 item becomes a root."""
        result = _by_id(mutations.promote_item(tree, "b"))

        assert (result["b"].level, result["b"].parent_id) == (1, None)
        assert result["b2"].level == 2

    def test_promote_root_rejected(self, tree):
        """Level-1 items cannot be promoted."""
        with pytest.raises(InvalidLevel):
            mutations.promote_item(tree, "a")

    def test_promote_into_full_group(self, item):
        """The grandparent's full level-2 group rejects the promotion."""
        items = [item("r", "Root")] + [
            item(f"c{n}", f"Child {n}", level=2, parent_id="r") for n in range(10)
        ]
        items.append(item("x", "X", level=3, parent_id="c0"))

        with pytest.raises(LimitExceeded):
            mutations.promote_item(items, "x")


class TestCrossTree:
    """Tests for split_subtree and graft_subtree."""

    def test_split_moves_closure(self, tree):
        """The whole subtree leaves the source."""
        remaining, moving = mutations.split_subtree(tree, "a")

        assert {i.id for i in moving} == {"a", "b", "b2"}
        assert [i.id for i in remaining] == ["c"]

    def test_split_clears_links(self, item):
        """Moved items lose links; remaining items lose links into the moved set."""
        items = [item("a", "Alpha", link_to="c"), item("c", "Gamma", link_to="a")]

        remaining, moving = mutations.split_subtree(items, "a")

        assert moving[0].relationships == []
        assert remaining[0].relationships == []

    def test_split_nested_rejected(self, tree):
        """Only level-1 items move between trees."""
        with pytest.raises(InvalidLevel):
            mutations.split_subtree(tree, "b")

    def test_graft_appends(self, tree, item):
        """Grafted items are appended to the destination."""
        _, moving = mutations.split_subtree(tree, "a")

        result = mutations.graft_subtree([item("z", "Zulu")], moving)

        assert [i.id for i in result] == ["z", "a", "b", "b2"]

    def test_graft_id_clash(self, tree):
        """An id already present in the destination is a conflict."""
        _, moving = mutations.split_subtree(tree, "a")

        with pytest.raises(ConflictError):
            mutations.graft_subtree(tree, moving)


class TestRelationships:
    """Tests for create and delete relationship."""

    def test_create_is_symmetric(self, tree):
        """Both ends get a link to each other."""
        result = _by_id(mutations.create_relationship(tree, "a", "c"))

        assert result["a"].relationship.target_id == "c"
        assert result["c"].relationship.target_id == "a"
        assert result["a"].relationship.kind == "related"

    def test_create_custom_kind(self, tree):
        """The relationship kind is carried on both ends."""
        result = _by_id(mutations.create_relationship(tree, "a", "c", kind="contrast"))

        assert result["c"].relationship.kind == "contrast"

    def test_create_when_linked(self, item):
        """An endpoint with a link already is a conflict."""
        items = [
            item("a", "Alpha", link_to="b"),
            item("b", "Beta", link_to="a"),
            item("c", "Gamma"),
        ]

        with pytest.raises(ConflictError):
            mutations.create_relationship(items, "c", "a")

    def test_create_self_link(self, tree):
        """An item cannot be linked to itself."""
        with pytest.raises(ConflictError):
            mutations.create_relationship(tree, "a", "a")

    def test_create_nested_rejected(self, tree):
        """Only level-1 items can be linked."""
        with pytest.raises(InvalidLevel):
            mutations.create_relationship(tree, "a", "b")

    def test_create_missing(self, tree):
        """Unknown endpoints are NotFound."""
        with pytest.raises(ResourceNotFound):
            mutations.create_relationship(tree, "a", "nope")

    def test_delete_clears_both_ends(self, item):
        """Deleting from one end clears the partner too."""
        items = [item("a", "Alpha", link_to="c"), item("c", "Gamma", link_to="a")]

        result, partner = mutations.delete_relationship(items, "a")

        assert partner == "c"
        assert all(i.relationships == [] for i in result)

    def test_delete_without_link(self, tree):
        """Deleting a link that does not exist is NotFound."""
        with pytest.raises(ResourceNotFound):
            mutations.delete_relationship(tree, "a")
