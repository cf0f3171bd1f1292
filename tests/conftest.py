"""
Pytest configuration and fixtures for SwingSync tests.

Provides a deterministic pyglet clock, prepared timelines and a notification
recorder shared by the unit tests.
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pyglet

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


# ==================== PYTEST CONFIGURATION ====================

def pytest_configure(config):
    """Add custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: unit test (fast, no I/O)")
    config.addinivalue_line("markers", "integration: integration test (with mocks)")
    config.addinivalue_line("markers", "slow: slow test (real file I/O)")


# ==================== CLOCK FIXTURES ====================

class ManualTime:
    """Time function whose value only changes when the test advances it."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class ManualClock:
    """
    pyglet Clock driven by a manual time function.

    advance() moves time forward and runs whatever the clock has due.
    """

    def __init__(self):
        self.time = ManualTime()
        self.clock = pyglet.clock.Clock(time_function=self.time)

    def advance(self, seconds: float):
        self.time.now += seconds
        self.clock.tick()


@pytest.fixture
def manual_clock():
    """Deterministic pyglet clock for driving playback ticks."""
    return ManualClock()


# ==================== TIMELINE FIXTURES ====================

@pytest.fixture
def timeline(manual_clock):
    """
    Empty ComparisonTimeline on the manual clock.

    Returns:
        ComparisonTimeline with no registered streams
    """
    from core.timeline import ComparisonTimeline

    tl = ComparisonTimeline(clock=manual_clock.clock)
    yield tl
    tl.close()


@pytest.fixture
def registered_timeline(timeline):
    """
    Timeline with stream A = 10s (600 steps) and B = 5s (300 steps), UNSYNCED.
    """
    from core.timeline import STREAM_A, STREAM_B

    timeline.register_stream_duration(STREAM_A, 10.0)
    timeline.register_stream_duration(STREAM_B, 5.0)
    return timeline


@pytest.fixture
def warped_timeline(registered_timeline):
    """
    SYNCED timeline with keyframes on and an Impact event placed at
    A=450 / B=100.

    Sync points: Start (v=0), Impact (v=500), End (v=1000).
    """
    from core.timeline import STREAM_A, STREAM_B

    tl = registered_timeline
    tl.toggle_addressing_mode()
    tl.set_keyframes_enabled(True)
    tl.add_event("Impact")
    move_label(tl, STREAM_A, "Impact", 450)
    move_label(tl, STREAM_B, "Impact", 100)
    tl.reset_after_drag()
    return tl


# ==================== RECORDER ====================

class NotificationRecorder:
    """Subscriber that records every (position, action, metadata) it receives."""

    def __init__(self):
        self.calls = []

    def __call__(self, position, action, metadata):
        self.calls.append((position, action, metadata))

    @property
    def actions(self):
        return [action for _, action, _ in self.calls]

    def clear(self):
        self.calls.clear()


@pytest.fixture
def recorder():
    return NotificationRecorder()


@pytest.fixture
def mock_media_handle():
    """
    Mock MediaHandle with a settable position and rate.
    """
    handle = MagicMock()
    handle.position = 0.0
    handle.rate = 1.0
    handle.duration = 10.0
    return handle


# ==================== HELPER FUNCTIONS ====================

def find_keyframe(timeline, stream_id, label):
    """Keyframe with label on stream_id (None if absent)."""
    for kf in timeline.keyframes(stream_id):
        if kf.label == label:
            return kf
    return None


def move_label(timeline, stream_id, label, step):
    """Move the keyframe with label on stream_id to step."""
    kf = find_keyframe(timeline, stream_id, label)
    return timeline.move_keyframe(stream_id, kf.id, step)
