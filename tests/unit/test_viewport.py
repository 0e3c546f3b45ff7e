"""
Tests for the viewport transform engine.

The viewport maps a screen point s to the canvas point vp.x + s * zoom, so
an anchored zoom is correct when that canvas point does not move.
"""

import math

import pytest

from notecanvas.viewport import (
    PinchStart, ScreenSize, Viewport, ZoomLimits, begin_pinch, canvas_to_screen,
    for_screen, pan, pinch_zoom, reset_zoom, resize, screen_to_canvas,
    wheel_zoom, zoom_about,
)

SCREEN = ScreenSize(800, 600)


@pytest.fixture
def vp():
    return for_screen(SCREEN)


def _canvas_point(viewport, sx, sy):
    return screen_to_canvas(viewport, sx, sy)


class TestBasics:
    """Reset, resize and coordinate conversion."""

    def test_for_screen(self, vp):
        """A fresh viewport covers the screen at zoom 1."""
        assert vp == Viewport(0, 0, 800, 600, 1.0)

    def test_reset_keeps_pan(self, vp):
        """Reset restores zoom and size but keeps the origin."""
        zoomed = zoom_about(pan(vp, 30, 20), SCREEN, 2.0, 100, 100)
        reset = reset_zoom(zoomed, SCREEN)
        assert reset.zoom == 1.0
        assert (reset.width, reset.height) == (800, 600)
        assert (reset.x, reset.y) == (zoomed.x, zoomed.y)

    def test_resize_tracks_zoom(self):
        """Size always equals screen size times zoom."""
        viewport = Viewport(5, 5, 1600, 1200, 2.0)
        resized = resize(viewport, ScreenSize(1000, 500))
        assert (resized.width, resized.height) == (2000, 1000)
        assert (resized.x, resized.y) == (5, 5)

    def test_conversion_round_trip(self):
        """screen_to_canvas and canvas_to_screen are inverses."""
        viewport = Viewport(-40, 25, 1200, 900, 1.5)
        cx, cy = screen_to_canvas(viewport, 120, 80)
        assert canvas_to_screen(viewport, cx, cy) == pytest.approx((120, 80))


class TestPan:
    """Dragging the background."""

    def test_pan_at_zoom_one(self, vp):
        """The origin moves opposite to the pointer."""
        moved = pan(vp, 10, -5)
        assert (moved.x, moved.y) == (-10, 5)

    def test_pan_scales_with_zoom(self):
        """At zoom 2 one screen pixel covers two canvas units."""
        viewport = Viewport(0, 0, 1600, 1200, 2.0)
        moved = pan(viewport, 10, 10)
        assert (moved.x, moved.y) == (-20, -20)

    def test_pan_keeps_content_under_pointer(self):
        """The canvas point under the pointer follows it 1:1 on screen."""
        viewport = Viewport(13, 7, 400, 300, 0.5)
        before = _canvas_point(viewport, 200, 150)
        after = _canvas_point(pan(viewport, 30, 40), 230, 190)
        assert after == pytest.approx(before)

    def test_zero_pan_is_noop(self, vp):
        """No delta, same viewport."""
        assert pan(vp, 0, 0) is vp


class TestWheelZoom:
    """Mouse wheel zoom anchored at the pointer."""

    def test_scroll_down_zooms_out(self, vp):
        """Positive delta multiplies zoom by the step."""
        assert wheel_zoom(vp, SCREEN, 1, 0, 0).zoom == pytest.approx(1.1)

    def test_scroll_up_zooms_in(self, vp):
        """Negative delta divides zoom by the step."""
        assert wheel_zoom(vp, SCREEN, -1, 0, 0).zoom == pytest.approx(1 / 1.1)

    def test_zoom_out_at_center(self, vp):
        """One tick out at the screen center keeps the centered canvas point."""
        zoomed = wheel_zoom(vp, SCREEN, 1, 400, 300)
        assert zoomed.zoom == pytest.approx(1.1)
        assert zoomed.x == pytest.approx(-40)
        assert zoomed.y == pytest.approx(-30)
        assert _canvas_point(zoomed, 400, 300) == pytest.approx((400, 300))

    def test_anchor_stays_fixed(self):
        """The canvas point under the pointer does not move."""
        viewport = Viewport(120, -60, 960, 720, 1.2)
        before = _canvas_point(viewport, 250, 410)
        zoomed = wheel_zoom(viewport, SCREEN, -1, 250, 410)
        assert _canvas_point(zoomed, 250, 410) == pytest.approx(before)

    def test_size_follows_zoom(self, vp):
        """Viewport size is the screen size times the new zoom."""
        zoomed = wheel_zoom(vp, SCREEN, 1, 100, 100)
        assert zoomed.width == pytest.approx(800 * zoomed.zoom)
        assert zoomed.height == pytest.approx(600 * zoomed.zoom)

    def test_in_then_out_restores_zoom(self, vp):
        """N ticks in followed by N ticks out returns to the start zoom."""
        current = vp
        for _ in range(7):
            current = wheel_zoom(current, SCREEN, -1, 320, 200)
        for _ in range(7):
            current = wheel_zoom(current, SCREEN, 1, 320, 200)
        assert current.zoom == pytest.approx(1.0)
        assert current.x == pytest.approx(0, abs=1e-9)
        assert current.y == pytest.approx(0, abs=1e-9)

    def test_limits_clamp(self):
        """Zoom never leaves the configured range."""
        viewport = Viewport(0, 0, 8000, 6000, 10.0)
        zoomed = wheel_zoom(viewport, SCREEN, 1, 0, 0, limits=ZoomLimits(0.1, 10.0))
        assert zoomed.zoom == 10.0

    def test_empty_screen_is_noop(self, vp):
        """Without a screen size there is nothing to anchor to."""
        assert wheel_zoom(vp, ScreenSize(0, 0), 1, 0, 0) is vp

    def test_zero_delta_is_noop(self, vp):
        """A zero wheel delta changes nothing."""
        assert wheel_zoom(vp, SCREEN, 0, 10, 10) is vp


class TestPinchZoom:
    """Two-pointer zoom."""

    def test_begin_pinch_snapshot(self, vp):
        """The start distance and midpoint are captured once."""
        start = begin_pinch(vp, (100, 100), (300, 100))
        assert start.distance == 200
        assert start.center == (200, 100)
        assert start.viewport is vp

    def test_spreading_zooms_in(self, vp):
        """Doubling the finger distance halves zoom."""
        start = begin_pinch(vp, (300, 300), (500, 300))
        zoomed = pinch_zoom(start, SCREEN, (200, 300), (600, 300))
        assert zoomed.zoom == pytest.approx(0.5)

    def test_pinching_zooms_out(self, vp):
        """Halving the finger distance doubles zoom."""
        start = begin_pinch(vp, (200, 300), (600, 300))
        zoomed = pinch_zoom(start, SCREEN, (300, 300), (500, 300))
        assert zoomed.zoom == pytest.approx(2.0)

    def test_anchor_is_start_midpoint(self, vp):
        """Zoom is anchored at the midpoint captured at the start."""
        start = begin_pinch(vp, (100, 100), (300, 300))
        before = _canvas_point(vp, 200, 200)
        # Fingers drift while spreading; the anchor does not follow them.
        zoomed = pinch_zoom(start, SCREEN, (50, 120), (450, 420))
        assert _canvas_point(zoomed, 200, 200) == pytest.approx(before)

    def test_computed_against_start(self, vp):
        """Repeated moves to the same spread give the same viewport."""
        start = begin_pinch(vp, (300, 300), (500, 300))
        first = pinch_zoom(start, SCREEN, (250, 300), (550, 300))
        pinch_zoom(start, SCREEN, (100, 300), (700, 300))
        again = pinch_zoom(start, SCREEN, (250, 300), (550, 300))
        assert again == first

    def test_zero_start_distance(self, vp):
        """Coincident pointers at the start never change the viewport."""
        start = begin_pinch(vp, (250, 250), (250, 250))
        zoomed = pinch_zoom(start, SCREEN, (200, 250), (300, 250))
        assert (zoomed.zoom, zoomed.x, zoomed.y) == (vp.zoom, vp.x, vp.y)
        assert all(math.isfinite(v) for v in (zoomed.x, zoomed.y, zoomed.width))

    def test_zero_current_distance(self, vp):
        """Fingers meeting mid-gesture give no new viewport."""
        start = PinchStart(100.0, (400, 300), vp)
        assert pinch_zoom(start, SCREEN, (400, 300), (400, 300)) is None
