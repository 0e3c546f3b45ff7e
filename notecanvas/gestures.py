"""Gesture dispatcher: turns raw pointer streams into canvas gestures.

One dispatcher serves the whole canvas. It classifies each pointer sequence
as a pan, a pinch zoom, a node drag or a tap, and on touch input tells taps,
double taps and long presses apart with two timers. It never holds tree or
viewport state itself; every update is applied as a reducer through the
host, so it always works against the latest snapshot.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Optional, Protocol

from notecanvas.config import Settings
from notecanvas.geometry import Point, Rect
from notecanvas.tree import FlatTree, descendant_ids, move_nodes
from notecanvas.viewport import (
    PinchStart, ScreenSize, Viewport, begin_pinch, pan, pinch_zoom, wheel_zoom,
)

logger = logging.getLogger(__name__)


class PointerType(Enum):
    MOUSE = "mouse"
    TOUCH = "touch"
    PEN = "pen"


class Target(Enum):
    """What the pointer went down on."""
    BACKGROUND = "background"
    NODE = "node"
    CHROME = "chrome"


class GestureKind(Enum):
    NONE = "none"
    PANNING = "panning"
    PINCH_ZOOM = "pinch_zoom"
    NODE_DRAG = "node_drag"
    TAP_PENDING = "tap_pending"


class MenuSource(Enum):
    CONTEXT_MENU = "contextmenu"
    LONG_PRESS = "longtap"


@dataclass(frozen=True)
class PointerEvent:
    """A pointer down/move/up sample in screen coordinates."""
    pointer_id: int
    x: float
    y: float
    pointer_type: PointerType = PointerType.MOUSE
    is_primary: bool = True
    button: int = 0  # 0 is the main button
    target: Target = Target.BACKGROUND
    node_id: Optional[int] = None

    @property
    def position(self) -> Point:
        return (self.x, self.y)


@dataclass(frozen=True)
class MenuRequest:
    """Ask the host to open the node menu next to origin (screen space)."""
    node_id: int
    origin: Rect
    source: MenuSource


class Timers(Protocol):
    """Single-threaded timer queue."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        ...

    def cancel(self, handle: Any) -> None:
        ...


class GestureHost(Protocol):
    """The state owner the dispatcher reads from and reduces into."""

    @property
    def tree(self) -> FlatTree:
        ...

    @property
    def viewport(self) -> Viewport:
        ...

    @property
    def screen(self) -> ScreenSize:
        ...

    @property
    def edit_mode(self) -> bool:
        ...

    def update_viewport(self, reducer: Callable[[Viewport], Viewport]) -> None:
        ...

    def update_tree(self, reducer: Callable[[FlatTree], FlatTree]) -> None:
        ...

    def open_node_menu(self, request: MenuRequest) -> None:
        ...

    def toggle_expanded(self, node_id: int) -> None:
        ...

    def node_tapped(self, node_id: int) -> None:
        ...


@dataclass
class GestureSession:
    """State of one continuous pointer interaction."""
    kind: GestureKind = GestureKind.NONE
    pointer_id: Optional[int] = None
    start: Point = (0.0, 0.0)
    last: Point = (0.0, 0.0)

    # Pinch
    pointers: Dict[int, Point] = field(default_factory=dict)
    pinch: Optional[PinchStart] = None

    # Node interaction
    node_id: Optional[int] = None
    carried_ids: FrozenSet[int] = frozenset()
    long_press: Any = None
    moved: bool = False
    long_press_fired: bool = False
    double_tapped: bool = False


class GestureDispatcher:
    """Classifies pointer input and drives the host."""

    def __init__(self, host: GestureHost, timers: Timers,
                 settings: Optional[Settings] = None):
        self._host = host
        self._timers = timers
        self.settings = settings or Settings()

        self._session = GestureSession()
        self._active: Dict[int, Point] = {}

        # Double-tap window outlives a single session
        self._tap_node: Optional[int] = None
        self._double_tap_timer: Any = None

    @property
    def session(self) -> GestureSession:
        return self._session

    @property
    def kind(self) -> GestureKind:
        return self._session.kind

    # ==================== Pointer stream ====================

    def pointer_down(self, event: PointerEvent):
        """Handle a pointer (mouse button, finger or pen) going down."""
        self._active[event.pointer_id] = event.position

        if not event.is_primary:
            others = [pid for pid in self._active if pid != event.pointer_id]
            if others and self._session.kind != GestureKind.NODE_DRAG:
                self._begin_pinch(others[0], event)
            return

        if event.pointer_type == PointerType.MOUSE and event.button != 0:
            return

        self._end_session()

        if event.target == Target.NODE and event.node_id is not None:
            self._node_down(event)
        elif event.target == Target.BACKGROUND:
            self._session = GestureSession(
                kind=GestureKind.PANNING,
                pointer_id=event.pointer_id,
                start=event.position,
                last=event.position,
            )
            logger.debug("Panning started at %s", event.position)

    def pointer_move(self, event: PointerEvent):
        """Handle a pointer moving, with or without a button held."""
        if event.pointer_id in self._active:
            self._active[event.pointer_id] = event.position

        session = self._session
        if session.kind == GestureKind.NONE:
            return

        if session.kind == GestureKind.PINCH_ZOOM:
            if event.pointer_id in session.pointers:
                session.pointers[event.pointer_id] = event.position
                self._apply_pinch(session)
            return

        if event.pointer_id != session.pointer_id:
            return

        dx = event.x - session.last[0]
        dy = event.y - session.last[1]
        session.last = event.position

        if session.node_id is not None:
            self._check_slop(session, event)

        if session.kind == GestureKind.PANNING:
            self._host.update_viewport(lambda vp: pan(vp, dx, dy))
        elif session.kind == GestureKind.NODE_DRAG:
            zoom = self._host.viewport.zoom
            carried = session.carried_ids
            self._host.update_tree(
                lambda tree: move_nodes(tree, carried, dx * zoom, dy * zoom)
            )

    def pointer_up(self, event: PointerEvent):
        """Handle a pointer being released."""
        self._active.pop(event.pointer_id, None)

        session = self._session
        if session.kind == GestureKind.NONE:
            return

        if session.kind == GestureKind.PINCH_ZOOM:
            if event.pointer_id in session.pointers:
                logger.debug("Pinch ended")
                self._end_session()
            return

        if event.pointer_id != session.pointer_id:
            return

        tapped = (
            session.node_id is not None
            and not session.moved
            and not session.long_press_fired
            and not session.double_tapped
        )
        node_id = session.node_id
        self._end_session()

        if tapped and node_id is not None:
            self._host.node_tapped(node_id)

    def pointer_cancel(self, event: PointerEvent):
        """The platform took the pointer away; drop everything in flight."""
        self._active.pop(event.pointer_id, None)
        session = self._session
        if (event.pointer_id == session.pointer_id
                or event.pointer_id in session.pointers):
            self._end_session()
        self._clear_double_tap()

    # ==================== Discrete input ====================

    def wheel(self, delta_y: float, x: float, y: float):
        """Zoom one wheel tick anchored at the pointer."""
        step = self.settings.wheel_zoom_step
        limits = self.settings.zoom_limits
        screen = self._host.screen
        self._host.update_viewport(
            lambda vp: wheel_zoom(vp, screen, delta_y, x, y, step, limits)
        )

    def context_click(self, node_id: Optional[int], x: float, y: float) -> bool:
        """Secondary click on a node opens its menu in edit mode."""
        if node_id is None or not self._host.edit_mode:
            return False
        self._host.open_node_menu(
            MenuRequest(node_id, Rect(x, y, 1, 1), MenuSource.CONTEXT_MENU)
        )
        return True

    def double_click(self, node_id: Optional[int]):
        """Desktop double click toggles expand/collapse."""
        if node_id is not None:
            self._host.toggle_expanded(node_id)

    def teardown(self):
        """Cancel every timer; the view is going away."""
        self._end_session()
        self._clear_double_tap()
        self._active.clear()

    # ==================== Internals ====================

    def _node_down(self, event: PointerEvent):
        node_id = event.node_id
        touch = event.pointer_type != PointerType.MOUSE
        session = GestureSession(
            pointer_id=event.pointer_id,
            start=event.position,
            last=event.position,
            node_id=node_id,
        )

        if touch:
            if self._tap_node == node_id and self._double_tap_timer is not None:
                self._clear_double_tap()
                session.double_tapped = True
                logger.debug("Double tap on node %s", node_id)
                self._host.toggle_expanded(node_id)
            else:
                self._arm_double_tap(node_id)

        if self._host.edit_mode:
            session.kind = GestureKind.NODE_DRAG
            session.carried_ids = frozenset(
                {node_id} | descendant_ids(self._host.tree, node_id)
            )
            if touch and not session.double_tapped:
                session.long_press = self._timers.call_later(
                    self.settings.long_press_ms,
                    lambda: self._fire_long_press(session),
                )
            logger.debug("Dragging node %s carrying %d node(s)",
                         node_id, len(session.carried_ids))
        elif touch:
            session.kind = GestureKind.TAP_PENDING
        else:
            return

        self._session = session

    def _begin_pinch(self, other_id: int, event: PointerEvent):
        self._cancel_long_press(self._session)
        self._clear_double_tap()
        p1 = self._active[other_id]
        p2 = event.position
        self._session = GestureSession(
            kind=GestureKind.PINCH_ZOOM,
            pointers={other_id: p1, event.pointer_id: p2},
            pinch=begin_pinch(self._host.viewport, p1, p2),
        )
        logger.debug("Pinch started between %s and %s", p1, p2)

    def _apply_pinch(self, session: GestureSession):
        if session.pinch is None or len(session.pointers) != 2:
            return
        p1, p2 = session.pointers.values()
        start = session.pinch
        screen = self._host.screen
        limits = self.settings.zoom_limits
        self._host.update_viewport(lambda vp: pinch_zoom(start, screen, p1, p2, limits) or vp)

    def _check_slop(self, session: GestureSession, event: PointerEvent):
        if session.moved:
            return
        slop = self.settings.tap_slop_px
        if (abs(event.x - session.start[0]) > slop
                or abs(event.y - session.start[1]) > slop):
            session.moved = True
            self._cancel_long_press(session)
            if self._tap_node == session.node_id:
                self._clear_double_tap()

    def _fire_long_press(self, session: GestureSession):
        session.long_press = None
        if session is not self._session or session.node_id is None:
            return
        session.long_press_fired = True
        x, y = session.last
        logger.debug("Long press on node %s", session.node_id)
        self._host.open_node_menu(
            MenuRequest(session.node_id, Rect(x, y, 1, 1), MenuSource.LONG_PRESS)
        )

    def _arm_double_tap(self, node_id: int):
        self._clear_double_tap()
        self._tap_node = node_id
        self._double_tap_timer = self._timers.call_later(
            self.settings.double_tap_ms, self._expire_double_tap
        )

    def _expire_double_tap(self):
        self._double_tap_timer = None
        self._tap_node = None

    def _clear_double_tap(self):
        if self._double_tap_timer is not None:
            self._timers.cancel(self._double_tap_timer)
            self._double_tap_timer = None
        self._tap_node = None

    def _cancel_long_press(self, session: GestureSession):
        if session.long_press is not None:
            self._timers.cancel(session.long_press)
            session.long_press = None

    def _end_session(self):
        self._cancel_long_press(self._session)
        self._session = GestureSession()
