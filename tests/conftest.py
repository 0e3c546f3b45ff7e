"""Shared fixtures: a manual timer clock and the demo tree."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from notecanvas.sample_data import SAMPLE_TREE
from notecanvas.tree import flatten


class FakeTimers:
    """Timer queue driven by hand instead of by a main loop."""

    def __init__(self):
        self.now = 0
        self._next_handle = 1
        self._pending = {}

    def call_later(self, delay_ms, callback):
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = (self.now + delay_ms, callback)
        return handle

    def cancel(self, handle):
        self._pending.pop(handle, None)

    @property
    def pending(self):
        return len(self._pending)

    def advance(self, ms):
        """Move the clock forward, firing due callbacks in deadline order."""
        target = self.now + ms
        while True:
            due = [(when, handle) for handle, (when, _) in self._pending.items()
                   if when <= target]
            if not due:
                break
            when, handle = min(due)
            _, callback = self._pending.pop(handle)
            self.now = when
            callback()
        self.now = target


@pytest.fixture
def timers():
    return FakeTimers()


@pytest.fixture
def sample_tree():
    return flatten(SAMPLE_TREE)
