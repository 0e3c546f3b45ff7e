"""Scene composition for the render collaborator, plus hit testing."""

from typing import Any, List, Optional, Protocol

from notecanvas.geometry import Rect, TextMeasure, centered_box, estimate_text_size
from notecanvas.tree import FlatTree, Node
from notecanvas.visibility import drawable_edges, drawable_ids


class Renderer(Protocol):
    """Turns positioned nodes and edges into drawables."""

    def draw_edge(self, edge_id: str, x1: float, y1: float,
                  x2: float, y2: float) -> Any:
        ...

    def draw_node(self, node_id: int, x: float, y: float, label: str,
                  expanded: bool, has_children: bool) -> Any:
        ...


def compose(tree: FlatTree, renderer: Renderer) -> List[Any]:
    """Draw every drawable edge, then every drawable node on top."""
    drawables = [
        renderer.draw_edge(edge.id, edge.x1, edge.y1, edge.x2, edge.y2)
        for edge in drawable_edges(tree)
    ]
    visible = drawable_ids(tree)
    parents = {n.parent_id for n in tree if n.parent_id is not None}
    for node in tree:
        if node.id in visible:
            drawables.append(renderer.draw_node(
                node.id, node.x, node.y, node.label, node.expanded, node.id in parents
            ))
    return drawables


def node_rect(node: Node, measure: TextMeasure = estimate_text_size,
              padding: float = 8) -> Rect:
    """Background box of a node in canvas space."""
    return centered_box(node.x, node.y, measure(node.label), padding)


def node_at(tree: FlatTree, cx: float, cy: float,
            measure: TextMeasure = estimate_text_size,
            padding: float = 8) -> Optional[int]:
    """Id of the topmost drawable node containing the canvas point."""
    visible = drawable_ids(tree)
    for node in reversed(tree.nodes):
        if node.id in visible and node_rect(node, measure, padding).contains_point(cx, cy):
            return node.id
    return None
