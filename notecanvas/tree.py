"""Flat node tree: nodes linked to their parent by id.

The tree is held as an ordered tuple of immutable nodes. Every mutation
returns a new FlatTree, so callers can apply updates as reducers against the
latest state.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple

logger = logging.getLogger(__name__)


class TreeError(Exception):
    """Base class for structural tree failures."""


class NotFoundError(TreeError):
    """An operation referenced a node id that is not in the tree."""

    def __init__(self, node_id: int):
        super().__init__(f"Node {node_id} not found")
        self.node_id = node_id


class CycleError(TreeError):
    """A reparent would make a node its own ancestor."""

    def __init__(self, node_id: int, new_parent_id: int):
        super().__init__(
            f"Cannot move node {node_id} under {new_parent_id}: "
            "a node cannot become a child of itself or its descendants"
        )
        self.node_id = node_id
        self.new_parent_id = new_parent_id


class InvalidTreeError(TreeError):
    """The node list does not describe a well-formed tree."""


@dataclass(frozen=True)
class Node:
    """A node in the mind map."""
    id: int
    parent_id: Optional[int]
    label: str
    x: float
    y: float
    expanded: bool = True
    visible: bool = True  # derived, see notecanvas.visibility

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


class FlatTree:
    """Ordered list of nodes with an id index."""

    def __init__(self, nodes: Iterable[Node] = ()):
        self._nodes: Tuple[Node, ...] = tuple(nodes)
        self._index: Dict[int, Node] = {}
        for node in self._nodes:
            if node.id in self._index:
                raise InvalidTreeError(f"Duplicate node id {node.id}")
            self._index[node.id] = node
        for node in self._nodes:
            if node.parent_id is not None and node.parent_id not in self._index:
                raise InvalidTreeError(
                    f"Node {node.id} references missing parent {node.parent_id}"
                )

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlatTree):
            return NotImplemented
        return self._nodes == other._nodes

    def __repr__(self) -> str:
        return f"FlatTree({list(self._nodes)!r})"

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return self._nodes

    def ids(self) -> List[int]:
        return [n.id for n in self._nodes]

    def get(self, node_id: int) -> Optional[Node]:
        return self._index.get(node_id)

    def require(self, node_id: int) -> Node:
        """Return the node or raise NotFoundError."""
        node = self._index.get(node_id)
        if node is None:
            raise NotFoundError(node_id)
        return node

    @property
    def root(self) -> Optional[Node]:
        for node in self._nodes:
            if node.parent_id is None:
                return node
        return None

    def children_of(self, node_id: int) -> List[Node]:
        return [n for n in self._nodes if n.parent_id == node_id]

    def has_children(self, node_id: int) -> bool:
        return any(n.parent_id == node_id for n in self._nodes)

    def validate(self) -> None:
        """Check the single-root and acyclic invariants.

        Duplicate ids and dangling parents are already rejected on
        construction.
        """
        if not self._nodes:
            return
        roots = [n.id for n in self._nodes if n.parent_id is None]
        if len(roots) != 1:
            raise InvalidTreeError(f"Expected exactly one root, found {roots}")
        for node in self._nodes:
            seen = {node.id}
            current = node
            while current.parent_id is not None:
                if current.parent_id in seen:
                    raise InvalidTreeError(f"Cycle through node {node.id}")
                seen.add(current.parent_id)
                current = self._index[current.parent_id]


# ==================== Import / Export ====================

def flatten(root: Mapping[str, Any]) -> FlatTree:
    """Flatten a nested tree depth-first, parent before children."""
    result: List[Node] = []

    def visit(source: Mapping[str, Any], parent_id: Optional[int]):
        result.append(Node(
            id=int(source["id"]),
            parent_id=parent_id,
            label=str(source.get("label", "")),
            x=float(source.get("x", 0.0)),
            y=float(source.get("y", 0.0)),
            expanded=bool(source.get("expanded", True)),
        ))
        for child in source.get("children") or ():
            visit(child, int(source["id"]))

    visit(root, None)
    tree = FlatTree(result)
    tree.validate()
    return tree


def unflatten(tree: FlatTree) -> Dict[str, Any]:
    """Rebuild the nested shape from parent ids.

    Children keep their flat-list order. Nodes without children get no
    "children" key, matching the import shape.
    """
    root = tree.root
    if root is None:
        raise InvalidTreeError("Cannot unflatten an empty tree")

    def build(node: Node) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": node.id,
            "label": node.label,
            "x": node.x,
            "y": node.y,
        }
        if not node.expanded:
            data["expanded"] = False
        children = tree.children_of(node.id)
        if children:
            data["children"] = [build(child) for child in children]
        return data

    return build(root)


# ==================== Queries ====================

def find_ancestors(tree: FlatTree, node_id: int) -> List[Node]:
    """Ancestors of a node, nearest first and root last.

    Returns an empty list when the node is unknown.
    """
    node = tree.get(node_id)
    if node is None:
        return []
    ancestors: List[Node] = []
    while node.parent_id is not None:
        node = tree.require(node.parent_id)
        ancestors.append(node)
    return ancestors


def descendant_ids(tree: FlatTree, node_id: int) -> Set[int]:
    """Ids of every node below node_id, gathered one level at a time."""
    found: Set[int] = set()
    frontier = {node_id}
    while frontier:
        level = {n.id for n in tree if n.parent_id in frontier}
        level -= found
        found |= level
        frontier = level
    return found


def find_descendants(tree: FlatTree, node_id: int) -> Set[Node]:
    """Every node whose ancestor chain contains node_id (unordered)."""
    ids = descendant_ids(tree, node_id)
    return {n for n in tree if n.id in ids}


def is_descendant(tree: FlatTree, node_id: int, potential_ancestor_id: int) -> bool:
    """Check if node_id lies below potential_ancestor_id."""
    return any(a.id == potential_ancestor_id for a in find_ancestors(tree, node_id))


# ==================== Mutations ====================

def move_nodes(tree: FlatTree, node_ids: Iterable[int], dx: float, dy: float) -> FlatTree:
    """Translate an explicit set of nodes. Ids no longer in the tree are ignored."""
    ids = set(node_ids)
    if not ids or (dx == 0 and dy == 0):
        return tree
    return FlatTree(
        replace(n, x=n.x + dx, y=n.y + dy) if n.id in ids else n
        for n in tree
    )


def move_subtree(tree: FlatTree, node_id: int, dx: float, dy: float) -> FlatTree:
    """Translate a node and all of its descendants by the same delta."""
    tree.require(node_id)
    return move_nodes(tree, {node_id} | descendant_ids(tree, node_id), dx, dy)


def rename_node(tree: FlatTree, node_id: int, label: str) -> FlatTree:
    """Replace a node's label. Unknown ids leave the tree as is."""
    if node_id not in tree:
        return tree
    return FlatTree(replace(n, label=label) if n.id == node_id else n for n in tree)


def add_child(tree: FlatTree, parent_id: int, label: str, *,
              new_id: Optional[int] = None,
              offset: Tuple[float, float] = (100, 100)) -> FlatTree:
    """Append a child node placed at the parent's position plus offset."""
    parent = tree.require(parent_id)
    if new_id is None:
        new_id = max(tree.ids(), default=0) + 1
    elif new_id in tree:
        raise InvalidTreeError(f"Node id {new_id} is already in use")
    child = Node(
        id=new_id,
        parent_id=parent_id,
        label=label,
        x=parent.x + offset[0],
        y=parent.y + offset[1],
    )
    logger.info("Added node %s under %s", new_id, parent_id)
    return FlatTree(tree.nodes + (child,))


def delete_subtree(tree: FlatTree, node_id: int) -> FlatTree:
    """Remove a node together with all of its descendants."""
    tree.require(node_id)
    removed = {node_id} | descendant_ids(tree, node_id)
    logger.info("Deleted node %s and %d descendant(s)", node_id, len(removed) - 1)
    return FlatTree(n for n in tree if n.id not in removed)


def reparent(tree: FlatTree, node_id: int, new_parent_id: int) -> FlatTree:
    """Attach a node (and its subtree) under a new parent."""
    tree.require(node_id)
    tree.require(new_parent_id)
    if new_parent_id == node_id or new_parent_id in descendant_ids(tree, node_id):
        raise CycleError(node_id, new_parent_id)
    logger.info("Moved node %s under %s", node_id, new_parent_id)
    return FlatTree(
        replace(n, parent_id=new_parent_id) if n.id == node_id else n
        for n in tree
    )


def toggle_expanded(tree: FlatTree, node_id: int) -> FlatTree:
    """Flip the expanded flag of exactly one node."""
    tree.require(node_id)
    return FlatTree(
        replace(n, expanded=not n.expanded) if n.id == node_id else n
        for n in tree
    )


class IdAllocator:
    """Hands out node ids that are never reused within a session."""

    def __init__(self, tree: Optional[FlatTree] = None):
        self._last = max(tree.ids(), default=0) if tree is not None else 0

    def next_id(self, tree: Optional[FlatTree] = None) -> int:
        """Return a fresh id, also above every id currently in tree."""
        if tree is not None:
            self._last = max(self._last, max(tree.ids(), default=0))
        self._last += 1
        return self._last
