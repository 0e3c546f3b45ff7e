"""
Tests for scene composition, label boxes and hit testing.
"""

from notecanvas.geometry import Line, centered_box, distance, estimate_text_size, midpoint
from notecanvas.scene import compose, node_at, node_rect
from notecanvas.tree import FlatTree, Node, toggle_expanded


class RecordingRenderer:
    """Returns plain tuples instead of drawing."""

    def draw_edge(self, edge_id, x1, y1, x2, y2):
        return ("edge", edge_id, (x1, y1, x2, y2))

    def draw_node(self, node_id, x, y, label, expanded, has_children):
        return ("node", node_id, label, expanded, has_children)


class TestGeometry:
    """Point and box helpers."""

    def test_distance_and_midpoint(self):
        """Classic 3-4-5 triangle."""
        assert distance((0, 0), (3, 4)) == 5
        assert midpoint((0, 0), (3, 4)) == (1.5, 2)

    def test_line_length(self):
        """A line knows its own length."""
        assert Line("line-1-2", 0, 0, 6, 8).length == 10

    def test_centered_box(self):
        """Measured size plus padding, centered on the point."""
        box = centered_box(100, 50, (40, 18), padding=8)
        assert (box.x, box.y, box.width, box.height) == (76, 37, 48, 26)
        assert box.center == (100, 50)


class TestCompose:
    """What the renderer is asked to draw."""

    def test_edges_then_nodes(self, sample_tree):
        """All six edges come before the seven nodes."""
        drawn = compose(sample_tree, RecordingRenderer())
        assert [d[0] for d in drawn] == ["edge"] * 6 + ["node"] * 7

    def test_node_details(self, sample_tree):
        """Nodes carry their label, expand state and whether they have children."""
        drawn = {d[1]: d for d in compose(sample_tree, RecordingRenderer()) if d[0] == "node"}
        assert drawn[2] == ("node", 2, "study", True, True)
        assert drawn[3] == ("node", 3, "game", True, False)

    def test_collapsed_subtree_skipped(self, sample_tree):
        """Hidden nodes and their edges are not drawn."""
        drawn = compose(toggle_expanded(sample_tree, 2), RecordingRenderer())
        ids = {d[1] for d in drawn}
        assert 5 not in ids and 6 not in ids
        assert "line-2-5" not in ids
        assert "line-1-2" in ids


class TestHitTesting:
    """Finding the node under a canvas point."""

    def test_node_rect(self, sample_tree):
        """The box is sized from the label."""
        width, height = estimate_text_size("today")
        rect = node_rect(sample_tree.require(1))
        assert rect.width == width + 8
        assert rect.height == height + 8
        assert rect.center == (100, 100)

    def test_hit_node(self, sample_tree):
        """A point inside the box hits the node."""
        assert node_at(sample_tree, 102, 98) == 1

    def test_miss(self, sample_tree):
        """Empty canvas hits nothing."""
        assert node_at(sample_tree, 0, 0) is None

    def test_hidden_nodes_not_hit(self, sample_tree):
        """Collapsed children cannot be picked."""
        assert node_at(toggle_expanded(sample_tree, 2), 500, 40) is None

    def test_topmost_wins(self):
        """Of two overlapping nodes the later one is on top."""
        tree = FlatTree([
            Node(1, None, "under", 0, 0),
            Node(2, 1, "over", 5, 0),
        ])
        assert node_at(tree, 3, 0) == 2

    def test_custom_measure(self, sample_tree):
        """A real text measure can replace the estimate."""
        def measure(text):
            return (200, 20)

        assert node_at(sample_tree, 180, 100, measure=measure) == 1
        assert node_at(sample_tree, 180, 100) is None
