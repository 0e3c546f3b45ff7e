"""Editing session state: the tree, the viewport, the mode and the selection.

MindMapEditor is the single owner of the flat tree and the viewport. The
gesture dispatcher and the menu actions change them only through the
methods here, and the GTK canvas redraws from it.
"""

import logging
from typing import Any, Callable, List, Optional

from notecanvas import tree as tree_ops
from notecanvas import viewport as vp_ops
from notecanvas.config import Settings
from notecanvas.gestures import MenuRequest
from notecanvas.scene import Renderer, compose
from notecanvas.tree import FlatTree, IdAllocator, TreeError
from notecanvas.viewport import ScreenSize, Viewport
from notecanvas.visibility import collapse_all, expand_all, resolve

logger = logging.getLogger(__name__)


class MindMapEditor:
    """Owns one mind map editing session."""

    def __init__(self, tree: FlatTree, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self._tree = resolve(tree)
        self._screen = ScreenSize()
        self._viewport = Viewport()
        self._edit_mode = False
        self._ids = IdAllocator(tree)

        self.selected_id: Optional[int] = None
        self.menu_open = False
        self.choosing_parent = False

        # Callbacks
        self.on_changed: Optional[Callable[[], None]] = None
        self.on_menu_requested: Optional[Callable[[MenuRequest], None]] = None
        self.on_message: Optional[Callable[[str], None]] = None

    # ==================== State ====================

    @property
    def tree(self) -> FlatTree:
        return self._tree

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def screen(self) -> ScreenSize:
        return self._screen

    @property
    def edit_mode(self) -> bool:
        return self._edit_mode

    def update_tree(self, reducer: Callable[[FlatTree], FlatTree]):
        """Apply a reducer to the current tree and refresh visibility."""
        new_tree = reducer(self._tree)
        if new_tree is self._tree:
            return
        self._tree = resolve(new_tree)
        if self.selected_id is not None and self.selected_id not in self._tree:
            self.selected_id = None
        self._notify_changed()

    def update_viewport(self, reducer: Callable[[Viewport], Viewport]):
        """Apply a reducer to the current viewport."""
        new_viewport = reducer(self._viewport)
        if new_viewport == self._viewport:
            return
        self._viewport = new_viewport
        self._notify_changed()

    def resize(self, width: float, height: float):
        """Track the drawing surface size."""
        first = self._screen.is_empty
        self._screen = ScreenSize(width, height)
        if first:
            self.update_viewport(
                lambda vp: vp_ops.for_screen(self._screen, vp.x, vp.y)
            )
        else:
            self.update_viewport(lambda vp: vp_ops.resize(vp, self._screen))

    def reset_zoom(self):
        self.update_viewport(lambda vp: vp_ops.reset_zoom(vp, self._screen))

    def drawables(self, renderer: Renderer) -> List[Any]:
        return compose(self._tree, renderer)

    # ==================== Modes ====================

    def enter_edit_mode(self):
        if not self._edit_mode:
            self._edit_mode = True
            self._notify_changed()

    def save_edit(self):
        """Leave edit mode keeping every change made in it."""
        self.exit_edit_mode()

    def exit_edit_mode(self):
        if not self._edit_mode:
            return
        self._edit_mode = False
        self.menu_open = False
        self.choosing_parent = False
        self._notify_changed()

    # ==================== Menu ====================

    def open_node_menu(self, request: MenuRequest):
        """Select the node and ask the shell to show the node menu."""
        if not self._edit_mode or request.node_id not in self._tree:
            return
        self.selected_id = request.node_id
        self.menu_open = True
        logger.debug("Menu for node %s via %s", request.node_id, request.source.value)
        if self.on_menu_requested:
            self.on_menu_requested(request)

    def close_menu(self):
        self.menu_open = False

    def rename_selected(self, label: str) -> bool:
        """Replace the selected node's label."""
        label = label.strip()
        if self.selected_id is None:
            return False
        if not label:
            self._report("A node needs a label")
            return False
        node_id = self.selected_id
        self.close_menu()
        self.update_tree(lambda t: tree_ops.rename_node(t, node_id, label))
        return True

    def add_child_to_selected(self, label: str) -> Optional[int]:
        """Add a child under the selected node and return its id."""
        label = label.strip()
        if self.selected_id is None:
            return None
        if not label:
            self._report("A node needs a label")
            return None
        parent_id = self.selected_id
        new_id = self._ids.next_id(self._tree)
        offset = (self.settings.child_offset_x, self.settings.child_offset_y)
        self.close_menu()
        if not self._apply(lambda t: tree_ops.add_child(
                t, parent_id, label, new_id=new_id, offset=offset)):
            return None
        return new_id

    def delete_selected(self) -> bool:
        """Delete the selected node and everything below it."""
        node_id = self.selected_id
        if node_id is None:
            return False
        node = self._tree.get(node_id)
        self.close_menu()
        if node is not None and node.is_root:
            self._report("The root node cannot be deleted")
            return False
        if not self._apply(lambda t: tree_ops.delete_subtree(t, node_id)):
            return False
        self.selected_id = None
        return True

    # ==================== Reparent by click ====================

    def begin_reparent(self) -> bool:
        """Start choosing a new parent for the selected node."""
        if not self._edit_mode or self.selected_id is None:
            return False
        self.close_menu()
        self.choosing_parent = True
        self._notify_changed()
        return True

    def cancel_reparent(self):
        if self.choosing_parent:
            self.choosing_parent = False
            self._notify_changed()

    def node_tapped(self, node_id: int):
        """A plain tap or click landed on a node."""
        if not (self._edit_mode and self.choosing_parent):
            return
        self.choosing_parent = False
        moving_id = self.selected_id
        if moving_id is None:
            return
        if not self._apply(lambda t: tree_ops.reparent(t, moving_id, node_id)):
            # Tree unchanged, but the choose-parent hint must go away
            self._notify_changed()

    # ==================== Expand / Collapse ====================

    def toggle_expanded(self, node_id: int):
        """Flip a node's expanded flag. Leaf nodes are left alone."""
        if not self._tree.has_children(node_id):
            return
        self._apply(lambda t: tree_ops.toggle_expanded(t, node_id))

    def expand_all(self):
        self.update_tree(expand_all)

    def collapse_all(self):
        self.update_tree(collapse_all)

    # ==================== Helpers ====================

    def _apply(self, reducer: Callable[[FlatTree], FlatTree]) -> bool:
        """Run a structural edit, reporting failures instead of raising."""
        try:
            new_tree = reducer(self._tree)
        except TreeError as exc:
            logger.warning("Rejected edit: %s", exc)
            self._report(str(exc))
            return False
        self.update_tree(lambda _t: new_tree)
        return True

    def _report(self, message: str):
        if self.on_message:
            self.on_message(message)

    def _notify_changed(self):
        if self.on_changed:
            self.on_changed()
