"""Canvas widget for rendering the node tree and feeding it pointer input."""

from typing import Any, Callable, Dict, Optional, Tuple

import gi

gi.require_version("Gtk", "4.0")
gi.require_version("Gdk", "4.0")
from gi.repository import Gtk, Gdk, GLib, Gio

import cairo

from notecanvas.config import Settings
from notecanvas.editor import MindMapEditor
from notecanvas.geometry import Line, Rect, centered_box
from notecanvas.gestures import (
    GestureDispatcher, MenuRequest, PointerEvent, PointerType, Target,
)
from notecanvas.scene import node_at
from notecanvas.viewport import screen_to_canvas
from notecanvas.widgets import confirm_action, prompt_text


FONT_FACE = "Sans"
FONT_SIZE = 14


class GLibTimers:
    """Timer queue on the GLib main loop."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> int:
        def _fire() -> bool:
            callback()
            return False  # one-shot
        return GLib.timeout_add(delay_ms, _fire)

    def cancel(self, handle: int) -> None:
        GLib.source_remove(handle)


class CairoTextMeasure:
    """Measures label text with the same font the canvas draws with."""

    def __init__(self):
        surface = cairo.ImageSurface(cairo.FORMAT_ARGB32, 1, 1)
        self._cr = cairo.Context(surface)
        self._cr.select_font_face(FONT_FACE, cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_NORMAL)
        self._cr.set_font_size(FONT_SIZE)
        self._cache: Dict[str, Tuple[float, float]] = {}

    def __call__(self, text: str) -> Tuple[float, float]:
        size = self._cache.get(text)
        if size is None:
            extents = self._cr.text_extents(text or " ")
            font = self._cr.font_extents()
            size = (extents.x_advance, font[2])  # font height
            self._cache[text] = size
        return size


class CairoRenderer:
    """Draws scene items into a cairo context already in canvas space."""

    def __init__(self, cr, measure: CairoTextMeasure, colors: dict,
                 padding: float, selected_id: Optional[int]):
        self.cr = cr
        self.measure = measure
        self.colors = colors
        self.padding = padding
        self.selected_id = selected_id

    def draw_edge(self, edge_id: str, x1: float, y1: float,
                  x2: float, y2: float) -> Line:
        cr = self.cr
        cr.set_source_rgb(*self.colors['edge'])
        cr.set_line_width(1.0)
        cr.move_to(x1, y1)
        cr.line_to(x2, y2)
        cr.stroke()
        return Line(edge_id, x1, y1, x2, y2)

    def draw_node(self, node_id: int, x: float, y: float, label: str,
                  expanded: bool, has_children: bool) -> Rect:
        cr = self.cr
        box = centered_box(x, y, self.measure(label), self.padding)

        cr.rectangle(box.x, box.y, box.width, box.height)
        cr.set_source_rgb(*self.colors['node_fill'])
        cr.fill_preserve()
        if node_id == self.selected_id:
            cr.set_source_rgb(*self.colors['selected'])
            cr.set_line_width(2.0)
        else:
            cr.set_source_rgb(*self.colors['node_border'])
            cr.set_line_width(1.0)
        cr.stroke()

        cr.set_source_rgb(*self.colors['text'])
        self._draw_centered_text(label, x, y)

        if has_children:
            self._draw_centered_text("-" if expanded else "+", x, y - 24)
        return box

    def _draw_centered_text(self, text: str, x: float, y: float):
        cr = self.cr
        extents = cr.text_extents(text)
        cr.move_to(x - extents.x_advance / 2 - extents.x_bearing,
                   y - extents.height / 2 - extents.y_bearing)
        cr.show_text(text)


class MindMapCanvas(Gtk.DrawingArea):
    """Drawing area showing the editor's tree through its viewport."""

    COLORS = {
        'background': (0.0, 0.0, 0.0),
        'node_fill': (0.0, 0.0, 0.0),
        'node_border': (1.0, 1.0, 1.0),
        'text': (1.0, 1.0, 1.0),
        'edge': (1.0, 1.0, 1.0),
        'selected': (1.0, 0.176, 0.176),      # #ff2d2d
        'hint': (0.533, 0.533, 0.533),        # #888888
    }

    def __init__(self, editor: MindMapEditor, settings: Optional[Settings] = None):
        super().__init__()

        self.editor = editor
        self.settings = settings or editor.settings
        self.measure = CairoTextMeasure()
        self.dispatcher = GestureDispatcher(editor, GLibTimers(), self.settings)

        self.last_mouse_x = 0.0
        self.last_mouse_y = 0.0

        # Touch sequences mapped to small integer pointer ids
        self._sequence_ids: Dict[Any, int] = {}
        self._next_pointer_id = 1

        # Context popover tracking
        self._context_popover: Optional[Gtk.PopoverMenu] = None

        editor.on_menu_requested = self._show_node_menu

        # Setup widget
        self.set_draw_func(self._on_draw)
        self.set_focusable(True)
        self.set_hexpand(True)
        self.set_vexpand(True)

        self._setup_event_controllers()
        self.connect("resize", self._on_resize)
        self.connect("unrealize", self._on_unrealize)

    def _setup_event_controllers(self):
        """Setup pointer, touch, wheel and click controllers."""
        # Raw pointer and touch streams for the gesture dispatcher
        legacy = Gtk.EventControllerLegacy()
        legacy.connect("event", self._on_event)
        self.add_controller(legacy)

        # Mouse double click
        click_ctrl = Gtk.GestureClick()
        click_ctrl.set_button(1)
        click_ctrl.connect("pressed", self._on_click)
        self.add_controller(click_ctrl)

        # Right-click for context menu
        right_click = Gtk.GestureClick()
        right_click.set_button(3)
        right_click.connect("pressed", self._on_right_click)
        self.add_controller(right_click)

        # Scroll (zoom)
        scroll_ctrl = Gtk.EventControllerScroll()
        scroll_ctrl.set_flags(Gtk.EventControllerScrollFlags.VERTICAL)
        scroll_ctrl.connect("scroll", self._on_scroll)
        self.add_controller(scroll_ctrl)

        # Keyboard
        key_ctrl = Gtk.EventControllerKey()
        key_ctrl.connect("key-pressed", self._on_key_pressed)
        self.add_controller(key_ctrl)

    # ==================== Drawing ====================

    def _on_draw(self, area, cr, width, height):
        """Main drawing function."""
        cr.save()

        cr.set_source_rgb(*self.COLORS['background'])
        cr.paint()

        vp = self.editor.viewport
        if vp.zoom > 0:
            cr.scale(1 / vp.zoom, 1 / vp.zoom)
            cr.translate(-vp.x, -vp.y)

        cr.select_font_face(FONT_FACE, cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_NORMAL)
        cr.set_font_size(FONT_SIZE)
        cr.set_line_cap(cairo.LINE_CAP_ROUND)

        renderer = CairoRenderer(
            cr, self.measure, self.COLORS, self.settings.node_padding,
            self.editor.selected_id if self.editor.edit_mode else None,
        )
        self.editor.drawables(renderer)

        cr.restore()

        if self.editor.choosing_parent:
            self._draw_hint(cr, "Tap the new parent node (Esc to cancel)")

    def _draw_hint(self, cr, text: str):
        cr.save()
        cr.set_source_rgb(*self.COLORS['hint'])
        cr.select_font_face(FONT_FACE, cairo.FONT_SLANT_NORMAL, cairo.FONT_WEIGHT_NORMAL)
        cr.set_font_size(12)
        cr.move_to(12, 24)
        cr.show_text(text)
        cr.restore()

    def _on_resize(self, area, width, height):
        self.editor.resize(width, height)

    def _on_unrealize(self, widget):
        # No timer may fire into a view that is gone
        self.dispatcher.teardown()

    # ==================== Input ====================

    def _find_node_at(self, x: float, y: float) -> Optional[int]:
        """Find the node at the given screen coordinates."""
        cx, cy = screen_to_canvas(self.editor.viewport, x, y)
        return node_at(self.editor.tree, cx, cy, self.measure, self.settings.node_padding)

    def _widget_point(self, event) -> Optional[Tuple[float, float]]:
        """Event position relative to this widget."""
        native = self.get_native()
        if native is None:
            return None
        ok, x, y = event.get_position()
        if not ok:
            return None
        sx, sy = native.get_surface_transform()
        ok, wx, wy = native.translate_coordinates(self, x - sx, y - sy)
        if not ok:
            return None
        return (wx, wy)

    def _pointer_type(self, event) -> PointerType:
        device = event.get_device()
        source = device.get_source() if device else None
        if source == Gdk.InputSource.TOUCHSCREEN:
            return PointerType.TOUCH
        if source == Gdk.InputSource.PEN:
            return PointerType.PEN
        return PointerType.MOUSE

    def _touch_pointer_id(self, event, release: bool = False) -> int:
        key = hash(event.get_event_sequence())
        pointer_id = self._sequence_ids.get(key)
        if pointer_id is None:
            pointer_id = self._next_pointer_id
            self._next_pointer_id += 1
            self._sequence_ids[key] = pointer_id
        if release:
            del self._sequence_ids[key]
        return pointer_id

    def _make_event(self, x: float, y: float, pointer_id: int,
                    pointer_type: PointerType, is_primary: bool,
                    button: int = 0) -> PointerEvent:
        node_id = self._find_node_at(x, y)
        return PointerEvent(
            pointer_id=pointer_id,
            x=x,
            y=y,
            pointer_type=pointer_type,
            is_primary=is_primary,
            button=button,
            target=Target.NODE if node_id is not None else Target.BACKGROUND,
            node_id=node_id,
        )

    def _on_event(self, controller, event) -> bool:
        """Translate GDK pointer and touch events for the dispatcher."""
        etype = event.get_event_type()
        point = self._widget_point(event)
        if point is None:
            return False
        x, y = point
        dispatcher = self.dispatcher

        if etype in (Gdk.EventType.TOUCH_BEGIN, Gdk.EventType.TOUCH_UPDATE,
                     Gdk.EventType.TOUCH_END, Gdk.EventType.TOUCH_CANCEL):
            done = etype in (Gdk.EventType.TOUCH_END, Gdk.EventType.TOUCH_CANCEL)
            pointer_id = self._touch_pointer_id(event, release=done)
            pe = self._make_event(x, y, pointer_id, PointerType.TOUCH,
                                  event.get_pointer_emulated())
            if etype == Gdk.EventType.TOUCH_BEGIN:
                dispatcher.pointer_down(pe)
            elif etype == Gdk.EventType.TOUCH_UPDATE:
                dispatcher.pointer_move(pe)
            elif etype == Gdk.EventType.TOUCH_END:
                dispatcher.pointer_up(pe)
            else:
                dispatcher.pointer_cancel(pe)
            return False

        pointer_type = self._pointer_type(event)
        if pointer_type == PointerType.TOUCH:
            return False  # emulated from the touch stream above

        if etype == Gdk.EventType.BUTTON_PRESS:
            button = event.get_button()
            self.grab_focus()
            # GDK numbers buttons from 1; the dispatcher uses 0 for the main one
            pe = self._make_event(x, y, 0, pointer_type, True, button - 1)
            dispatcher.pointer_down(pe)
        elif etype == Gdk.EventType.MOTION_NOTIFY:
            self.last_mouse_x, self.last_mouse_y = x, y
            dispatcher.pointer_move(PointerEvent(0, x, y, pointer_type))
        elif etype == Gdk.EventType.BUTTON_RELEASE:
            dispatcher.pointer_up(PointerEvent(0, x, y, pointer_type))
        return False

    def _on_click(self, gesture, n_press, x, y):
        """Mouse double click toggles expand/collapse."""
        device = gesture.get_device()
        if device and device.get_source() == Gdk.InputSource.TOUCHSCREEN:
            return  # touch double taps are timed by the dispatcher
        if n_press == 2:
            self.dispatcher.double_click(self._find_node_at(x, y))

    def _on_right_click(self, gesture, n_press, x, y):
        """Handle right-click for the node menu."""
        self.dispatcher.context_click(self._find_node_at(x, y), x, y)

    def _on_scroll(self, controller, dx, dy):
        """Handle scroll for zooming."""
        if dy == 0:
            return False
        self.dispatcher.wheel(dy, self.last_mouse_x, self.last_mouse_y)
        return True

    def _on_key_pressed(self, controller, keyval, keycode, state):
        """Escape leaves the choose-parent mode."""
        if keyval == Gdk.KEY_Escape and self.editor.choosing_parent:
            self.cancel_move()
            return True
        return False

    # ==================== Node menu ====================

    def _show_node_menu(self, request: MenuRequest):
        """Show the node popover next to where it was requested."""
        menu = Gio.Menu()
        menu.append("Edit Content", "canvas.edit-node")
        menu.append("Add Child Node", "canvas.add-child")
        menu.append("Move To...", "canvas.start-move")
        menu.append("Delete", "canvas.delete-node")

        action_group = Gio.SimpleActionGroup()

        edit_action = Gio.SimpleAction.new("edit-node", None)
        edit_action.connect("activate", lambda a, p: self._prompt_rename())
        action_group.add_action(edit_action)

        add_child_action = Gio.SimpleAction.new("add-child", None)
        add_child_action.connect("activate", lambda a, p: self._prompt_add_child())
        action_group.add_action(add_child_action)

        start_move_action = Gio.SimpleAction.new("start-move", None)
        start_move_action.connect("activate", lambda a, p: self._start_move())
        action_group.add_action(start_move_action)

        delete_action = Gio.SimpleAction.new("delete-node", None)
        delete_action.connect("activate", lambda a, p: self._confirm_delete())
        action_group.add_action(delete_action)

        self.insert_action_group("canvas", action_group)

        # Unparent previous popover if still attached
        if self._context_popover is not None:
            self._context_popover.unparent()
            self._context_popover = None

        popover = Gtk.PopoverMenu.new_from_model(menu)
        popover.set_parent(self)
        popover.set_has_arrow(True)

        # Defer unparent to idle so the action callback fires first
        def _on_popover_closed(p):
            def _do_unparent():
                if self._context_popover is p:
                    p.unparent()
                    self._context_popover = None
                self.editor.close_menu()
                return False
            GLib.idle_add(_do_unparent)
        popover.connect("closed", _on_popover_closed)

        self._context_popover = popover

        origin = request.origin
        rect = Gdk.Rectangle()
        rect.x = int(origin.x)
        rect.y = int(origin.y)
        rect.width = max(1, int(origin.width))
        rect.height = max(1, int(origin.height))
        popover.set_pointing_to(rect)
        popover.popup()
        self.queue_draw()

    def _selected_label(self) -> str:
        node_id = self.editor.selected_id
        node = self.editor.tree.get(node_id) if node_id is not None else None
        return node.label if node else ""

    def _prompt_rename(self):
        prompt_text(
            self.get_root(),
            heading="Edit Content",
            body="Enter the new node text:",
            initial=self._selected_label(),
            confirm_label="Save",
            on_confirm=self.editor.rename_selected,
        )

    def _prompt_add_child(self):
        prompt_text(
            self.get_root(),
            heading="Add Child Node",
            body=f"New child of \"{self._selected_label()}\":",
            initial="",
            confirm_label="Add",
            on_confirm=self.editor.add_child_to_selected,
        )

    def _confirm_delete(self):
        confirm_action(
            self.get_root(),
            heading="Delete Node?",
            body=f"Delete \"{self._selected_label()}\" and everything below it?",
            confirm_label="Delete",
            on_confirm=self.editor.delete_selected,
            destructive=True,
        )

    def _start_move(self):
        if self.editor.begin_reparent():
            self.grab_focus()
            self.queue_draw()

    def cancel_move(self):
        self.editor.cancel_reparent()
        self.queue_draw()
