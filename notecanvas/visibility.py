"""Which nodes and edges are drawn, given the expand/collapse state.

A node is drawable when it is the root or every one of its ancestors is
expanded. An edge runs from a node to its parent and is drawable when that
node is drawable.
"""

from dataclasses import replace
from typing import Dict, List, Set

from notecanvas.geometry import Line
from notecanvas.tree import FlatTree, Node, find_ancestors


def all_ancestors_expanded(tree: FlatTree, node_id: int) -> bool:
    return all(a.expanded for a in find_ancestors(tree, node_id))


def is_node_drawable(tree: FlatTree, node_id: int) -> bool:
    node = tree.get(node_id)
    if node is None:
        return False
    return node.parent_id is None or all_ancestors_expanded(tree, node_id)


def is_edge_drawable(tree: FlatTree, node_id: int) -> bool:
    """Check the edge between node_id and its parent."""
    node = tree.get(node_id)
    if node is None or node.parent_id is None:
        return False
    return is_node_drawable(tree, node_id)


def drawable_ids(tree: FlatTree) -> Set[int]:
    """Resolve every node in one pass, memoizing along parent chains."""
    memo: Dict[int, bool] = {}

    def resolve_one(node: Node) -> bool:
        chain: List[Node] = []
        current = node
        while current.id not in memo:
            chain.append(current)
            if current.parent_id is None:
                memo[current.id] = True
                chain.pop()
                break
            current = tree.require(current.parent_id)
        # Walk back down: a child is drawable iff its parent is drawable and expanded.
        for item in reversed(chain):
            parent = tree.require(item.parent_id)
            memo[item.id] = memo[parent.id] and parent.expanded
        return memo[node.id]

    return {n.id for n in tree if resolve_one(n)}


def resolve(tree: FlatTree) -> FlatTree:
    """Copy of the tree with each node's derived visible flag recomputed."""
    visible = drawable_ids(tree)
    if all(n.visible == (n.id in visible) for n in tree):
        return tree
    return FlatTree(replace(n, visible=n.id in visible) for n in tree)


def drawable_nodes(tree: FlatTree) -> List[Node]:
    visible = drawable_ids(tree)
    return [n for n in tree if n.id in visible]


def edge_id(parent_id: int, child_id: int) -> str:
    return f"line-{parent_id}-{child_id}"


def drawable_edges(tree: FlatTree) -> List[Line]:
    """Parent-to-child lines for every drawable non-root node."""
    visible = drawable_ids(tree)
    edges = []
    for node in tree:
        if node.parent_id is None or node.id not in visible:
            continue
        parent = tree.require(node.parent_id)
        edges.append(Line(edge_id(parent.id, node.id), parent.x, parent.y, node.x, node.y))
    return edges


def set_all_expanded(tree: FlatTree, expanded: bool) -> FlatTree:
    """Expand or collapse every node, then refresh the visible flags."""
    return resolve(FlatTree(replace(n, expanded=expanded) for n in tree))


def expand_all(tree: FlatTree) -> FlatTree:
    return set_all_expanded(tree, True)


def collapse_all(tree: FlatTree) -> FlatTree:
    return set_all_expanded(tree, False)
