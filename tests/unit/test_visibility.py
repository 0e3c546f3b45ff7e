"""
Tests for drawable node and edge resolution.
"""

from notecanvas.tree import FlatTree, Node, toggle_expanded
from notecanvas.visibility import (
    collapse_all, drawable_edges, drawable_ids, drawable_nodes, edge_id,
    expand_all, is_edge_drawable, is_node_drawable, resolve,
)


class TestDrawable:
    """Expand/collapse decides what is drawn."""

    def test_everything_drawn_when_expanded(self, sample_tree):
        """A fully expanded tree draws every node."""
        assert drawable_ids(sample_tree) == set(sample_tree.ids())

    def test_collapsed_parent_hides_children(self, sample_tree):
        """Collapsing study hides js and project."""
        tree = toggle_expanded(sample_tree, 2)
        assert drawable_ids(tree) == {1, 2, 3, 4, 7}
        assert is_node_drawable(tree, 2)
        assert not is_node_drawable(tree, 5)

    def test_collapsed_root_hides_all_but_root(self, sample_tree):
        """Only the root survives a collapsed root."""
        tree = toggle_expanded(sample_tree, 1)
        assert [n.id for n in drawable_nodes(tree)] == [1]
        assert drawable_edges(tree) == []

    def test_grandchildren_stay_hidden(self, sample_tree):
        """An expanded child under a collapsed root is still hidden."""
        tree = toggle_expanded(sample_tree, 1)
        assert tree.require(2).expanded
        assert not is_node_drawable(tree, 5)

    def test_root_always_drawable(self, sample_tree):
        """The root has no ancestors to hide it."""
        assert is_node_drawable(collapse_all(sample_tree), 1)

    def test_unknown_node(self, sample_tree):
        """Unknown ids are not drawable."""
        assert not is_node_drawable(sample_tree, 99)
        assert not is_edge_drawable(sample_tree, 99)


class TestEdges:
    """Parent-to-child lines."""

    def test_edge_per_child(self, sample_tree):
        """Every non-root node has an edge to its parent."""
        ids = [e.id for e in drawable_edges(sample_tree)]
        assert ids == [
            "line-1-2", "line-2-5", "line-2-6", "line-1-3", "line-1-4", "line-4-7",
        ]

    def test_edge_endpoints(self, sample_tree):
        """Edges run from the parent to the child center."""
        edge = next(e for e in drawable_edges(sample_tree) if e.id == edge_id(4, 7))
        assert (edge.x1, edge.y1, edge.x2, edge.y2) == (300, 200, 500, 200)

    def test_root_has_no_edge(self, sample_tree):
        """The root is not connected to anything above it."""
        assert not is_edge_drawable(sample_tree, 1)

    def test_hidden_child_hides_edge(self, sample_tree):
        """A collapsed parent hides the lines to its children."""
        tree = toggle_expanded(sample_tree, 4)
        assert "line-4-7" not in {e.id for e in drawable_edges(tree)}
        assert not is_edge_drawable(tree, 7)


class TestResolve:
    """The derived visible flag."""

    def test_resolve_sets_flags(self, sample_tree):
        """visible mirrors drawability after resolve."""
        tree = resolve(toggle_expanded(sample_tree, 2))
        assert not tree.require(5).visible
        assert tree.require(2).visible

    def test_resolve_unchanged_returns_same_tree(self, sample_tree):
        """Nothing to update means no copy."""
        assert resolve(sample_tree) is sample_tree

    def test_resolve_handles_any_order(self):
        """Children listed before parents still resolve."""
        tree = FlatTree([
            Node(3, 2, "c", 0, 0),
            Node(2, 1, "b", 0, 0, expanded=False),
            Node(1, None, "a", 0, 0),
        ])
        assert drawable_ids(tree) == {1, 2}

    def test_collapse_then_expand_all(self, sample_tree):
        """Bulk toggles reach every node."""
        collapsed = collapse_all(sample_tree)
        assert all(not n.expanded for n in collapsed)
        assert [n.id for n in collapsed if n.visible] == [1]
        expanded = expand_all(collapsed)
        assert all(n.expanded and n.visible for n in expanded)

    def test_toggle_root_twice_restores_drawable_set(self, sample_tree):
        """Collapsing and re-expanding a node gives back the same drawable set."""
        tree = toggle_expanded(sample_tree, 2)
        before = drawable_ids(tree)
        collapsed = toggle_expanded(tree, 1)
        assert drawable_ids(collapsed) == {1}
        restored = toggle_expanded(collapsed, 1)
        assert drawable_ids(restored) == before
        assert before == {1, 2, 3, 4, 7}
