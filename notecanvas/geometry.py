"""Small geometry helpers shared by the viewport, scene and gesture code."""

import math
from dataclasses import dataclass
from typing import Callable, Tuple


Point = Tuple[float, float]

# Measures rendered label text, returns (width, height).
TextMeasure = Callable[[str], Tuple[float, float]]

CHAR_WIDTH = 9
LINE_HEIGHT = 18


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(b[0] - a[0], b[1] - a[1])


def midpoint(a: Point, b: Point) -> Point:
    """Point halfway between a and b."""
    return ((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)


def is_finite(*values: float) -> bool:
    return all(math.isfinite(v) for v in values)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle."""
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Point:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def contains_point(self, px: float, py: float) -> bool:
        """Check if a point is inside this rectangle."""
        return (self.x <= px <= self.x + self.width and
                self.y <= py <= self.y + self.height)


@dataclass(frozen=True)
class Line:
    """Straight segment between two canvas points, identified for rendering."""
    id: str
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def length(self) -> float:
        return distance((self.x1, self.y1), (self.x2, self.y2))


def estimate_text_size(text: str) -> Tuple[float, float]:
    """Rough text extent used when no real font measurement is available."""
    return (len(text) * CHAR_WIDTH, LINE_HEIGHT)


def centered_box(cx: float, cy: float, text_size: Tuple[float, float],
                 padding: float = 8) -> Rect:
    """Background rectangle for a label: measured text size plus padding, centered on (cx, cy)."""
    width = text_size[0] + padding
    height = text_size[1] + padding
    return Rect(cx - width / 2, cy - height / 2, width, height)
