"""Viewport transform engine.

The viewport is a view box into canvas space: (x, y) is the canvas point
shown at the screen's top-left corner and (width, height) is how much canvas
is visible. Its size is always the screen size times zoom, so zoom > 1 shows
more of the canvas (zoomed out) and zoom < 1 shows less (zoomed in).

All functions are pure and return a new Viewport. Degenerate input
(zero-size screen, coincident pinch pointers) leaves the viewport unchanged
rather than letting NaN or infinity into the state.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

from notecanvas.geometry import Point, distance, is_finite, midpoint

logger = logging.getLogger(__name__)

WHEEL_ZOOM_STEP = 1.1

# Pinch distances below this are treated as coincident pointers.
MIN_PINCH_DISTANCE = 1e-6


@dataclass(frozen=True)
class ScreenSize:
    """Physical pixel size of the drawing surface."""
    width: float = 0.0
    height: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class ZoomLimits:
    minimum: float = 0.1
    maximum: float = 10.0

    def clamp(self, zoom: float) -> float:
        return max(self.minimum, min(self.maximum, zoom))


@dataclass(frozen=True)
class Viewport:
    """Visible window into canvas space."""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    zoom: float = 1.0


@dataclass(frozen=True)
class PinchStart:
    """Snapshot taken when the second pointer goes down.

    Zoom during the pinch is always computed against this snapshot, not
    incrementally per move, so rounding does not drift.
    """
    distance: float
    center: Point
    viewport: Viewport


def for_screen(screen: ScreenSize, x: float = 0.0, y: float = 0.0) -> Viewport:
    """Identity viewport covering the whole screen."""
    return Viewport(x=x, y=y, width=screen.width, height=screen.height, zoom=1.0)


def resize(vp: Viewport, screen: ScreenSize) -> Viewport:
    """Follow a screen size change, keeping zoom and origin."""
    return replace(vp, width=screen.width * vp.zoom, height=screen.height * vp.zoom)


def reset_zoom(vp: Viewport, screen: ScreenSize) -> Viewport:
    """Back to zoom 1. The pan offset is kept."""
    return replace(vp, width=screen.width, height=screen.height, zoom=1.0)


def pan(vp: Viewport, dx: float, dy: float) -> Viewport:
    """Move the view by a screen-space pointer delta.

    The delta is scaled by zoom so the canvas follows the pointer 1:1 on
    screen at any zoom level.
    """
    if not is_finite(dx, dy) or (dx == 0 and dy == 0):
        return vp
    return replace(vp, x=vp.x - dx * vp.zoom, y=vp.y - dy * vp.zoom)


def zoom_about(vp: Viewport, screen: ScreenSize, new_zoom: float,
               anchor_x: float, anchor_y: float,
               limits: Optional[ZoomLimits] = None) -> Viewport:
    """Change zoom while keeping the canvas point under (anchor_x, anchor_y) fixed."""
    if screen.is_empty:
        return vp
    if limits is not None:
        new_zoom = limits.clamp(new_zoom)
    if not is_finite(new_zoom, anchor_x, anchor_y) or new_zoom <= 0:
        return vp

    ratio_x = anchor_x / screen.width
    ratio_y = anchor_y / screen.height
    delta_x = screen.width * -(new_zoom - vp.zoom) * ratio_x
    delta_y = screen.height * -(new_zoom - vp.zoom) * ratio_y

    result = Viewport(
        x=vp.x + delta_x,
        y=vp.y + delta_y,
        width=screen.width * new_zoom,
        height=screen.height * new_zoom,
        zoom=new_zoom,
    )
    if not is_finite(result.x, result.y, result.width, result.height):
        return vp
    return result


def wheel_zoom(vp: Viewport, screen: ScreenSize, delta_y: float,
               pointer_x: float, pointer_y: float,
               step: float = WHEEL_ZOOM_STEP,
               limits: Optional[ZoomLimits] = None) -> Viewport:
    """Zoom by one wheel tick anchored at the pointer.

    Scrolling up (negative delta) zooms in, scrolling down zooms out.
    """
    if delta_y < 0:
        new_zoom = vp.zoom / step
    elif delta_y > 0:
        new_zoom = vp.zoom * step
    else:
        return vp
    return zoom_about(vp, screen, new_zoom, pointer_x, pointer_y, limits)


def begin_pinch(vp: Viewport, p1: Point, p2: Point) -> PinchStart:
    return PinchStart(distance=distance(p1, p2), center=midpoint(p1, p2), viewport=vp)


def pinch_zoom(start: PinchStart, screen: ScreenSize, p1: Point, p2: Point,
               limits: Optional[ZoomLimits] = None) -> Optional[Viewport]:
    """Viewport for the current pointer pair of a pinch that began at start.

    Spreading the fingers apart lowers zoom (zooms in). The anchor is the
    midpoint captured at the start of the gesture. Returns None when the
    fingers currently coincide, so the caller keeps its current viewport.
    """
    if start.distance < MIN_PINCH_DISTANCE:
        return start.viewport
    current = distance(p1, p2)
    if current < MIN_PINCH_DISTANCE:
        return None
    new_zoom = start.distance / current * start.viewport.zoom
    cx, cy = start.center
    return zoom_about(start.viewport, screen, new_zoom, cx, cy, limits)


def screen_to_canvas(vp: Viewport, sx: float, sy: float) -> Point:
    return (vp.x + sx * vp.zoom, vp.y + sy * vp.zoom)


def canvas_to_screen(vp: Viewport, cx: float, cy: float) -> Point:
    if vp.zoom == 0:
        return (0.0, 0.0)
    return ((cx - vp.x) / vp.zoom, (cy - vp.y) / vp.zoom)
